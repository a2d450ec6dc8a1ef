"""Background loop running the renewal reminder pass on an interval."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from loguru import logger
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from lgl_sync.core.settings import Settings
from lgl_sync.services.notifications import EmailBackend

from .dispatcher import build_dispatcher
from .strategy import SubscriptionIntegration


class RenewalReminderScheduler:
    """Run the reminder pass every ``interval_seconds`` until stopped."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        redis_client: Redis,
        *,
        settings: Settings,
        interval_seconds: int,
        email_backend: EmailBackend | None = None,
        subscriptions: SubscriptionIntegration | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._redis = redis_client
        self._settings = settings
        self.interval_seconds = interval_seconds
        self._email_backend = email_backend
        self._subscriptions = subscriptions
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.is_running: bool = False

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        self.is_running = True
        logger.info("Renewal reminder scheduler started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if not self._task:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        self.is_running = False
        logger.info("Renewal reminder scheduler stopped")

    async def dispatch_once(self) -> dict[str, Any]:
        async with self._session_factory() as session:
            dispatcher = build_dispatcher(
                session,
                self._redis,
                settings=self._settings,
                email_backend=self._email_backend,
                subscriptions=self._subscriptions,
            )
            summary = await dispatcher.run()
        return summary.as_dict()

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.dispatch_once()
            except Exception as exc:  # pragma: no cover
                logger.exception("Renewal reminder pass failed", error=str(exc))

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue


__all__ = ["RenewalReminderScheduler"]
