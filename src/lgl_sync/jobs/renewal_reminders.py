"""Job to run one membership renewal reminder pass."""

from __future__ import annotations

import datetime as dt
from typing import Any, Awaitable, Callable, Dict

from loguru import logger
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from lgl_sync.core.settings import Settings, get_settings
from lgl_sync.services.notifications import EmailBackend
from lgl_sync.services.renewals import SubscriptionIntegration, build_dispatcher

SessionFactory = Callable[[], AsyncSession] | Callable[[], Awaitable[AsyncSession]]


async def run_renewal_reminders(
    *,
    session_factory: SessionFactory,
    redis_client: Redis,
    settings: Settings | None = None,
    email_backend: EmailBackend | None = None,
    subscriptions: SubscriptionIntegration | None = None,
    now: dt.datetime | None = None,
) -> Dict[str, Any]:
    """Evaluate every member and send the reminders that are due."""

    settings = settings or get_settings()
    maybe_session = session_factory()
    if isinstance(maybe_session, AsyncSession):
        session = maybe_session
    else:
        session = await maybe_session

    async with session as managed_session:
        dispatcher = build_dispatcher(
            managed_session,
            redis_client,
            settings=settings,
            email_backend=email_backend,
            subscriptions=subscriptions,
        )
        summary = await dispatcher.run(now=now or dt.datetime.now(dt.timezone.utc))

    result = summary.as_dict()
    if result["errors"]:
        logger.bind(summary=result).warning("Renewal reminder job completed with delivery errors")
    return result


__all__ = ["run_renewal_reminders"]
