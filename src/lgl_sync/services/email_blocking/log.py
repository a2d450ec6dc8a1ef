"""Bounded log of emails the gate suppressed."""

from __future__ import annotations

import html
import json
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from loguru import logger
from redis.asyncio import Redis
from redis.exceptions import RedisError

from .state import EmailBlockingStoreError

DEFAULT_LOG_CAPACITY = 50
PREVIEW_LENGTH = 200

_TAG_PATTERN = re.compile(r"<[^>]+>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def message_preview(body: str | None, *, length: int = PREVIEW_LENGTH) -> str:
    """Strip markup from ``body`` and keep the first ``length`` characters."""

    if not body:
        return ""
    text = html.unescape(_TAG_PATTERN.sub(" ", body))
    return _WHITESPACE_PATTERN.sub(" ", text).strip()[:length]


@dataclass(slots=True)
class BlockedEmailEntry:
    timestamp: datetime
    to: list[str]
    subject: str
    message_preview: str
    headers: dict[str, str] = field(default_factory=dict)

    def to_json(self) -> str:
        payload = asdict(self)
        payload["timestamp"] = self.timestamp.isoformat()
        return json.dumps(payload, sort_keys=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "BlockedEmailEntry":
        payload: Mapping[str, Any] = json.loads(raw)
        timestamp = datetime.fromisoformat(payload["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        to = payload.get("to") or []
        return cls(
            timestamp=timestamp,
            to=[to] if isinstance(to, str) else list(to),
            subject=str(payload.get("subject") or ""),
            message_preview=str(payload.get("message_preview") or ""),
            headers={str(key): str(value) for key, value in (payload.get("headers") or {}).items()},
        )


class BlockedEmailLog:
    """Redis list holding the most recent ``capacity`` blocked emails.

    Appends push to the tail and trim to the last ``capacity`` items inside a
    single MULTI/EXEC, so concurrent writers never overshoot the cap.
    """

    _KEY = "lgl:email_blocking:log"

    def __init__(self, redis_client: Redis, *, capacity: int = DEFAULT_LOG_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("Blocked email log capacity must be positive")
        self._redis = redis_client
        self._capacity = capacity

    @property
    def capacity(self) -> int:
        return self._capacity

    async def append(self, entry: BlockedEmailEntry) -> None:
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.rpush(self._KEY, entry.to_json())
                pipe.ltrim(self._KEY, -self._capacity, -1)
                await pipe.execute()
        except RedisError as exc:
            raise EmailBlockingStoreError("Failed to record blocked email") from exc

    async def entries(self) -> list[BlockedEmailEntry]:
        """Return logged entries, newest first."""

        try:
            raw_entries = await self._redis.lrange(self._KEY, 0, -1)
        except RedisError as exc:
            raise EmailBlockingStoreError("Failed to read blocked email log") from exc

        entries: list[BlockedEmailEntry] = []
        for raw in reversed(raw_entries):
            try:
                entries.append(BlockedEmailEntry.from_json(raw))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping unreadable blocked email log entry")
        return entries

    async def count(self) -> int:
        try:
            return int(await self._redis.llen(self._KEY))
        except RedisError as exc:
            raise EmailBlockingStoreError("Failed to count blocked email log") from exc

    async def clear(self) -> None:
        try:
            await self._redis.delete(self._KEY)
        except RedisError as exc:
            raise EmailBlockingStoreError("Failed to clear blocked email log") from exc
        logger.info("Blocked email log cleared")


__all__ = [
    "BlockedEmailEntry",
    "BlockedEmailLog",
    "DEFAULT_LOG_CAPACITY",
    "PREVIEW_LENGTH",
    "message_preview",
]
