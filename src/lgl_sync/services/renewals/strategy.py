"""Decide whether the host store or this service owns a member's renewal."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Mapping, Protocol, Sequence

from loguru import logger

ACTIVE_SUBSCRIPTION_STATUSES = frozenset({"active", "pending", "on-hold"})


class ManagedBy(str, Enum):
    HOST_SUBSCRIPTION = "host_subscription"
    PLUGIN = "plugin"


class SubscriptionLookupError(RuntimeError):
    """Raised by an integration that cannot answer for a member right now."""


class SubscriptionIntegration(Protocol):
    """Read-only view of the host store's subscription system."""

    def is_active(self) -> bool:
        ...

    async def has_active_subscription(self, member_id: str) -> bool:
        ...


class NullSubscriptionIntegration:
    """Used when the host store has no subscription system installed."""

    def is_active(self) -> bool:
        return False

    async def has_active_subscription(self, member_id: str) -> bool:
        return False


class InMemorySubscriptionIntegration:
    """Subscription statuses held in memory, keyed by member id."""

    def __init__(self, statuses: Mapping[str, Sequence[str]] | None = None, *, active: bool = True) -> None:
        self._statuses = {member_id: list(values) for member_id, values in (statuses or {}).items()}
        self._active = active

    def is_active(self) -> bool:
        return self._active

    def set_statuses(self, member_id: str, statuses: Sequence[str]) -> None:
        self._statuses[member_id] = list(statuses)

    async def has_active_subscription(self, member_id: str) -> bool:
        return any(status.lower() in ACTIVE_SUBSCRIPTION_STATUSES for status in self._statuses.get(member_id, []))


class RenewalStrategyManager:
    """Classify members fresh on every call; nothing is cached."""

    def __init__(self, integration: SubscriptionIntegration) -> None:
        self._integration = integration

    @property
    def integration_active(self) -> bool:
        return self._integration.is_active()

    async def classify(self, member_id: str) -> ManagedBy:
        if not self._integration.is_active():
            return ManagedBy.PLUGIN
        try:
            has_subscription = await self._integration.has_active_subscription(member_id)
        except SubscriptionLookupError as exc:
            logger.warning(
                "Subscription lookup failed, member handled by renewal reminders",
                member_id=member_id,
                error=str(exc),
            )
            return ManagedBy.PLUGIN
        return ManagedBy.HOST_SUBSCRIPTION if has_subscription else ManagedBy.PLUGIN

    async def aggregate(self, member_ids: Iterable[str]) -> dict[str, int | bool]:
        host_managed = 0
        plugin_managed = 0
        for member_id in member_ids:
            if await self.classify(member_id) is ManagedBy.HOST_SUBSCRIPTION:
                host_managed += 1
            else:
                plugin_managed += 1
        return {
            "total": host_managed + plugin_managed,
            "host_managed": host_managed,
            "plugin_managed": plugin_managed,
            "integration_active": self.integration_active,
        }


__all__ = [
    "ACTIVE_SUBSCRIPTION_STATUSES",
    "InMemorySubscriptionIntegration",
    "ManagedBy",
    "NullSubscriptionIntegration",
    "RenewalStrategyManager",
    "SubscriptionIntegration",
    "SubscriptionLookupError",
]
