import sys
from pathlib import Path


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from redis.exceptions import ConnectionError as RedisConnectionError  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

import lgl_sync.models  # noqa: E402,F401
from lgl_sync.app import create_app  # noqa: E402
from lgl_sync.core.settings import Settings, get_settings  # noqa: E402
from lgl_sync.db.base import Base  # noqa: E402
from lgl_sync.db.session import get_session  # noqa: E402
from lgl_sync.services.lgl import LglApiSettings, LglClient  # noqa: E402


class _FakePipeline:
    def __init__(self, redis: "FakeRedis") -> None:
        self._redis = redis
        self._commands: list[tuple[str, tuple]] = []

    async def __aenter__(self) -> "_FakePipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self._commands.clear()

    def rpush(self, key, *values):
        self._commands.append(("rpush", (key, *values)))
        return self

    def ltrim(self, key, start, end):
        self._commands.append(("ltrim", (key, start, end)))
        return self

    async def execute(self):
        results = []
        for name, args in self._commands:
            results.append(await getattr(self._redis, name)(*args))
        self._commands.clear()
        return results


class FakeRedis:
    """Just enough of redis.asyncio.Redis (decode_responses=True) for the services."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.lists: dict[str, list[str]] = {}
        self.expirations: dict[str, int] = {}

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value, ex=None):
        self.values[key] = value
        if ex is not None:
            self.expirations[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.values.pop(key, None) is not None:
                removed += 1
            if self.lists.pop(key, None) is not None:
                removed += 1
            self.expirations.pop(key, None)
        return removed

    async def rpush(self, key, *values):
        items = self.lists.setdefault(key, [])
        items.extend(values)
        return len(items)

    async def ltrim(self, key, start, end):
        items = self.lists.get(key, [])
        length = len(items)
        start = max(length + start, 0) if start < 0 else start
        end = length + end if end < 0 else end
        self.lists[key] = items[start : end + 1]
        return True

    async def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        end = len(items) if end == -1 else end + 1
        return list(items[start:end])

    async def llen(self, key):
        return len(self.lists.get(key, []))

    def pipeline(self, transaction=True):
        return _FakePipeline(self)

    async def aclose(self):
        return None


class BrokenRedis(FakeRedis):
    async def get(self, key):
        raise RedisConnectionError("redis unavailable")

    async def llen(self, key):
        raise RedisConnectionError("redis unavailable")


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        environment="development",
        database_url="sqlite+aiosqlite:///:memory:",
        admin_email="admin@example.org",
        admin_api_key="",
        lgl_api_url="https://lgl.test/api/v1",
        lgl_api_key="test-key",
        site_url="https://members.example.org",
    )


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        yield factory
    finally:
        await engine.dispose()


def lgl_client_for(handler) -> LglClient:
    config = LglApiSettings(base_url="https://lgl.test/api/v1", api_key="test-key")
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LglClient(config, http_client=http_client)


@pytest_asyncio.fixture
async def app_with_db(session_factory, fake_redis, test_settings):
    app = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    def _unrouted(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "not mocked"})

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.state.redis = fake_redis
    app.state.lgl_client = lgl_client_for(_unrouted)

    try:
        yield app, session_factory
    finally:
        app.dependency_overrides.clear()


def api_client(app) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
