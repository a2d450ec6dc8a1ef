"""Membership renewal reminders."""

from .dispatcher import ReminderPassSummary, RenewalReminderDispatcher, RenewalSettings, build_dispatcher
from .runner import RenewalReminderScheduler
from .scheduler import (
    REMINDER_INTERVALS,
    TERMINAL_INTERVAL,
    MissingRenewalDateError,
    RenewalScheduler,
    RenewalState,
    RenewalWindow,
)
from .statistics import renewal_statistics, renewal_windows
from .store import MemberRenewalStore, RenewalStoreError
from .strategy import (
    ACTIVE_SUBSCRIPTION_STATUSES,
    InMemorySubscriptionIntegration,
    ManagedBy,
    NullSubscriptionIntegration,
    RenewalStrategyManager,
    SubscriptionIntegration,
    SubscriptionLookupError,
)
from .templates import RenderedTemplate, render_renewal_reminder

__all__ = [
    "ACTIVE_SUBSCRIPTION_STATUSES",
    "InMemorySubscriptionIntegration",
    "ManagedBy",
    "MemberRenewalStore",
    "MissingRenewalDateError",
    "NullSubscriptionIntegration",
    "REMINDER_INTERVALS",
    "ReminderPassSummary",
    "RenderedTemplate",
    "RenewalReminderDispatcher",
    "RenewalReminderScheduler",
    "RenewalScheduler",
    "RenewalSettings",
    "RenewalState",
    "RenewalStoreError",
    "RenewalStrategyManager",
    "RenewalWindow",
    "SubscriptionIntegration",
    "SubscriptionLookupError",
    "TERMINAL_INTERVAL",
    "build_dispatcher",
    "render_renewal_reminder",
    "renewal_statistics",
    "renewal_windows",
]
