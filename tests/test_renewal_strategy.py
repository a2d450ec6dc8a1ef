from __future__ import annotations

import pytest

from lgl_sync.services.renewals import (
    InMemorySubscriptionIntegration,
    ManagedBy,
    NullSubscriptionIntegration,
    RenewalStrategyManager,
    SubscriptionLookupError,
)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["active", "pending", "on-hold", "Active"])
async def test_active_subscription_statuses_are_host_managed(status) -> None:
    manager = RenewalStrategyManager(InMemorySubscriptionIntegration({"m-1": ["cancelled", status]}))

    assert await manager.classify("m-1") is ManagedBy.HOST_SUBSCRIPTION


@pytest.mark.asyncio
async def test_inactive_subscriptions_fall_back_to_plugin() -> None:
    manager = RenewalStrategyManager(InMemorySubscriptionIntegration({"m-1": ["cancelled", "expired"]}))

    assert await manager.classify("m-1") is ManagedBy.PLUGIN
    assert await manager.classify("unknown") is ManagedBy.PLUGIN


@pytest.mark.asyncio
async def test_inactive_integration_means_plugin_for_everyone() -> None:
    integration = InMemorySubscriptionIntegration({"m-1": ["active"]}, active=False)
    manager = RenewalStrategyManager(integration)

    assert await manager.classify("m-1") is ManagedBy.PLUGIN
    assert await RenewalStrategyManager(NullSubscriptionIntegration()).classify("m-1") is ManagedBy.PLUGIN


@pytest.mark.asyncio
async def test_lookup_failure_classifies_as_plugin() -> None:
    class FlakyIntegration:
        def is_active(self) -> bool:
            return True

        async def has_active_subscription(self, member_id: str) -> bool:
            raise SubscriptionLookupError("subscriptions table unavailable")

    assert await RenewalStrategyManager(FlakyIntegration()).classify("m-1") is ManagedBy.PLUGIN


@pytest.mark.asyncio
async def test_aggregate_is_recomputed_every_call() -> None:
    integration = InMemorySubscriptionIntegration({"m-1": ["active"], "m-2": []})
    manager = RenewalStrategyManager(integration)

    first = await manager.aggregate(["m-1", "m-2", "m-3"])
    integration.set_statuses("m-2", ["on-hold"])
    second = await manager.aggregate(["m-1", "m-2", "m-3"])

    assert first == {"total": 3, "host_managed": 1, "plugin_managed": 2, "integration_active": True}
    assert second == {"total": 3, "host_managed": 2, "plugin_managed": 1, "integration_active": True}
