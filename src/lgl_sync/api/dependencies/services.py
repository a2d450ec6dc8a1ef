"""Request-scoped service wiring for the API endpoints."""

from __future__ import annotations

from fastapi import Depends, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from lgl_sync.core.settings import Settings, get_settings
from lgl_sync.db.session import get_session
from lgl_sync.services.email_blocking import EmailBlockingGate, build_gate
from lgl_sync.services.lgl import LglClient
from lgl_sync.services.renewals import (
    MemberRenewalStore,
    NullSubscriptionIntegration,
    RenewalScheduler,
    RenewalSettings,
    RenewalStrategyManager,
    SubscriptionIntegration,
)
from lgl_sync.services.sync import GiftRouting, OrderSyncProcessor, SyncReconciler, SyncStatusStore


def get_redis(request: Request) -> Redis:
    return request.app.state.redis


def get_lgl_client(request: Request) -> LglClient:
    return request.app.state.lgl_client


def get_subscription_integration(request: Request) -> SubscriptionIntegration:
    integration = getattr(request.app.state, "subscriptions", None)
    return integration or NullSubscriptionIntegration()


def get_sync_store(session: AsyncSession = Depends(get_session)) -> SyncStatusStore:
    return SyncStatusStore(session)


def get_order_processor(
    store: SyncStatusStore = Depends(get_sync_store),
    client: LglClient = Depends(get_lgl_client),
    settings: Settings = Depends(get_settings),
) -> OrderSyncProcessor:
    return OrderSyncProcessor(
        SyncReconciler(store),
        client,
        gift_type_id=settings.lgl_gift_type_id,
        routing=GiftRouting.from_settings(settings),
    )


def get_renewal_store(session: AsyncSession = Depends(get_session)) -> MemberRenewalStore:
    return MemberRenewalStore(session)


def get_strategy_manager(
    integration: SubscriptionIntegration = Depends(get_subscription_integration),
) -> RenewalStrategyManager:
    return RenewalStrategyManager(integration)


def get_renewal_scheduler(settings: Settings = Depends(get_settings)) -> RenewalScheduler:
    return RenewalSettings.from_settings(settings).build_scheduler()


def get_email_blocking_gate(
    redis_client: Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> EmailBlockingGate:
    return build_gate(redis_client, settings)
