from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from redis.asyncio import Redis

from lgl_sync.core.errors import StorageError
from lgl_sync.core.settings import get_settings
from lgl_sync.db.session import async_session
from lgl_sync.services.lgl import LglApiSettings, LglClient
from lgl_sync.services.renewals import RenewalReminderScheduler
from .api.routes import api_router
from .core.logging import configure_logging


APP_VERSION = "0.1.0"


def _session_factory():
    return async_session()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    renewal_scheduler = RenewalReminderScheduler(
        _session_factory,
        app.state.redis,
        settings=settings,
        interval_seconds=settings.renewal_scheduler_interval_seconds,
        subscriptions=getattr(app.state, "subscriptions", None),
    )
    app.state.renewal_scheduler = renewal_scheduler

    scheduler_enabled = settings.renewal_scheduler_enabled and settings.renewal_reminders_enabled
    if scheduler_enabled:
        renewal_scheduler.start()
        logger.info(
            "Renewal reminder scheduler enabled",
            interval_seconds=renewal_scheduler.interval_seconds,
        )
    else:
        logger.info(
            "Renewal reminder scheduler disabled",
            reason="renewal_scheduler_enabled is false",
        )

    try:
        yield
    finally:
        if scheduler_enabled and renewal_scheduler.is_running:
            await renewal_scheduler.stop()
        await app.state.lgl_client.aclose()
        await app.state.redis.aclose()


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage unavailable", path=request.url.path, error=str(exc), cause=repr(exc.__cause__))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage temporarily unavailable"},
    )


def create_app() -> FastAPI:
    """Application factory for the LGL sync FastAPI service."""
    settings = get_settings()
    configure_logging(
        service_name="lgl-sync",
        environment=settings.environment,
        version=APP_VERSION,
        level=settings.log_level,
    )

    app = FastAPI(
        title="LGL Sync API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.redis = Redis.from_url(settings.redis_url, decode_responses=True)
    app.state.lgl_client = LglClient(LglApiSettings.from_settings(settings))

    app.add_exception_handler(StorageError, _storage_error_handler)
    app.include_router(api_router)

    @app.get("/healthz", tags=["Health"])
    async def health_check() -> dict[str, str]:
        return {
            "status": "ok",
            "environment": settings.environment,
            "version": APP_VERSION,
        }

    return app
