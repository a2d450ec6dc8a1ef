"""Redis-backed email blocking settings and the temporary pause flag."""

from __future__ import annotations

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable

from loguru import logger
from pydantic import BaseModel, ValidationError, field_serializer, field_validator
from redis.asyncio import Redis
from redis.exceptions import RedisError

from lgl_sync.core.email import is_valid_email, normalize_address
from lgl_sync.core.errors import StorageError
from lgl_sync.core.settings import Settings


class EmailBlockingStoreError(StorageError):
    """Raised when blocking state cannot be read or written."""


class InvalidSettingsPayloadError(ValueError):
    """Raised when an imported settings document cannot be parsed."""


class EmailBlockingSettings(BaseModel):
    """Operator-controlled blocking settings.

    The whitelist is a set: addresses are lowercased, invalid entries dropped,
    duplicates collapse.
    """

    force_blocking: bool = False
    whitelist: frozenset[str] = frozenset()

    @field_validator("whitelist", mode="before")
    @classmethod
    def _parse_whitelist(cls, value: object) -> frozenset[str]:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            items: Iterable[object] = re.split(r"[\s,;]+", value)
        elif isinstance(value, (list, tuple, set, frozenset)):
            items = value
        else:
            raise ValueError("whitelist must be a list of email addresses")
        normalized = (normalize_address(str(item)) for item in items if str(item).strip())
        return frozenset(address for address in normalized if is_valid_email(address))

    @field_serializer("whitelist")
    def _serialize_whitelist(self, whitelist: frozenset[str]) -> list[str]:
        return sorted(whitelist)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailBlockingSettings":
        return cls(force_blocking=settings.force_email_blocking, whitelist=settings.email_whitelist)

    def allows(self, address: str) -> bool:
        return normalize_address(address) in self.whitelist


class EmailBlockingStateStore:
    """Persists blocking settings and the pause deadline in Redis.

    The pause key carries both a Redis TTL (so it disappears on its own) and
    the exact deadline as its value, which is what callers compare against.
    """

    _SETTINGS_KEY = "lgl:email_blocking:settings"
    _PAUSE_KEY = "lgl:email_blocking:paused_until"

    def __init__(self, redis_client: Redis, *, defaults: EmailBlockingSettings | None = None) -> None:
        self._redis = redis_client
        self._defaults = defaults or EmailBlockingSettings()

    async def load_settings(self) -> EmailBlockingSettings:
        try:
            raw = await self._redis.get(self._SETTINGS_KEY)
        except RedisError as exc:
            raise EmailBlockingStoreError("Failed to load email blocking settings") from exc
        if not raw:
            return self._defaults
        try:
            return EmailBlockingSettings.model_validate_json(raw)
        except ValidationError:
            logger.warning("Stored email blocking settings are invalid, using defaults", key=self._SETTINGS_KEY)
            return self._defaults

    async def save_settings(self, settings: EmailBlockingSettings) -> EmailBlockingSettings:
        try:
            await self._redis.set(self._SETTINGS_KEY, settings.model_dump_json())
        except RedisError as exc:
            raise EmailBlockingStoreError("Failed to save email blocking settings") from exc
        logger.info(
            "Email blocking settings saved",
            force_blocking=settings.force_blocking,
            whitelist_count=len(settings.whitelist),
        )
        return settings

    async def set_force_blocking(self, enabled: bool) -> EmailBlockingSettings:
        current = await self.load_settings()
        return await self.save_settings(current.model_copy(update={"force_blocking": enabled}))

    async def set_whitelist(self, addresses: Iterable[str]) -> EmailBlockingSettings:
        current = await self.load_settings()
        updated = EmailBlockingSettings(force_blocking=current.force_blocking, whitelist=list(addresses))
        return await self.save_settings(updated)

    async def export_settings(self) -> str:
        settings = await self.load_settings()
        return json.dumps(settings.model_dump(), indent=2, sort_keys=True)

    async def import_settings(self, document: str) -> EmailBlockingSettings:
        try:
            settings = EmailBlockingSettings.model_validate_json(document)
        except ValidationError as exc:
            raise InvalidSettingsPayloadError("Invalid email blocking settings document") from exc
        return await self.save_settings(settings)

    async def pause(self, duration_seconds: int, *, now: datetime | None = None) -> datetime:
        """Suspend blocking until ``now + duration_seconds``."""

        if duration_seconds < 1:
            raise ValueError("Pause duration must be at least one second")
        until = (now or datetime.now(timezone.utc)) + timedelta(seconds=duration_seconds)
        try:
            await self._redis.set(self._PAUSE_KEY, until.isoformat(), ex=duration_seconds)
        except RedisError as exc:
            raise EmailBlockingStoreError("Failed to pause email blocking") from exc
        logger.info("Email blocking paused", duration_seconds=duration_seconds, paused_until=until.isoformat())
        return until

    async def resume(self) -> None:
        try:
            await self._redis.delete(self._PAUSE_KEY)
        except RedisError as exc:
            raise EmailBlockingStoreError("Failed to resume email blocking") from exc
        logger.info("Email blocking resumed")

    async def paused_until(self, *, now: datetime | None = None) -> datetime | None:
        """Return the active pause deadline, or None when no pause is in effect."""

        try:
            raw = await self._redis.get(self._PAUSE_KEY)
        except RedisError as exc:
            raise EmailBlockingStoreError("Failed to read email blocking pause") from exc
        if not raw:
            return None
        try:
            until = datetime.fromisoformat(raw)
        except (TypeError, ValueError):
            logger.warning("Unreadable email blocking pause value", value=raw)
            return None
        if until.tzinfo is None:
            until = until.replace(tzinfo=timezone.utc)
        if until <= (now or datetime.now(timezone.utc)):
            return None
        return until


__all__ = [
    "EmailBlockingSettings",
    "EmailBlockingStateStore",
    "EmailBlockingStoreError",
    "InvalidSettingsPayloadError",
    "normalize_address",
]
