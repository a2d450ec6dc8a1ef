from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from lgl_sync.api.dependencies.security import require_admin_api_key
from lgl_sync.api.dependencies.services import get_renewal_scheduler, get_renewal_store, get_strategy_manager
from lgl_sync.services.renewals import (
    MemberRenewalStore,
    RenewalScheduler,
    RenewalStrategyManager,
    renewal_statistics,
    renewal_windows,
)

router = APIRouter(
    prefix="/renewals",
    tags=["Renewals"],
    dependencies=[Depends(require_admin_api_key)],
)


class RenewalStatisticsResponse(BaseModel):
    total: int
    host_managed: int
    plugin_managed: int
    integration_active: bool


class RenewalWindowsResponse(BaseModel):
    current: int
    due_soon: int
    overdue: int
    expired: int
    without_renewal_date: int
    grace_period_days: int


@router.get("/statistics", response_model=RenewalStatisticsResponse)
async def get_renewal_statistics(
    store: MemberRenewalStore = Depends(get_renewal_store),
    strategy: RenewalStrategyManager = Depends(get_strategy_manager),
) -> RenewalStatisticsResponse:
    """Who owns each member's renewal right now."""

    return RenewalStatisticsResponse(**await renewal_statistics(store, strategy))


@router.get("/windows", response_model=RenewalWindowsResponse)
async def get_renewal_windows(
    store: MemberRenewalStore = Depends(get_renewal_store),
    scheduler: RenewalScheduler = Depends(get_renewal_scheduler),
) -> RenewalWindowsResponse:
    counts = await renewal_windows(store, scheduler)
    return RenewalWindowsResponse(**counts, grace_period_days=scheduler.grace_period_days)
