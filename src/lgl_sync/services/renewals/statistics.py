"""Renewal statistics for reporting."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .scheduler import RenewalScheduler, RenewalState
from .store import MemberRenewalStore
from .strategy import RenewalStrategyManager


async def renewal_statistics(store: MemberRenewalStore, strategy: RenewalStrategyManager) -> dict[str, Any]:
    """Count members by who owns their renewal, computed fresh each call."""

    members = await store.all_members()
    return await strategy.aggregate(member.member_id for member in members)


async def renewal_windows(
    store: MemberRenewalStore,
    scheduler: RenewalScheduler,
    *,
    now: datetime | None = None,
) -> dict[str, int]:
    members = await store.all_members()
    return scheduler.window_breakdown(
        (RenewalState.from_model(member) for member in members),
        now or datetime.now(timezone.utc),
    )


__all__ = ["renewal_statistics", "renewal_windows"]
