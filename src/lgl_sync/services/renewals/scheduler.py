"""Which renewal reminder, if any, is due for a member."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Iterable
from zoneinfo import ZoneInfo

from lgl_sync.models.member_renewal import MemberRenewal

# Days before (positive) or after (negative) the renewal date, most future first.
REMINDER_INTERVALS: tuple[int, ...] = (30, 14, 7, 0, -7, -30)
TERMINAL_INTERVAL = REMINDER_INTERVALS[-1]
DUE_SOON_DAYS = REMINDER_INTERVALS[0]


class MissingRenewalDateError(ValueError):
    """Raised when scheduling is asked about a member without a renewal date."""


class RenewalWindow(str, Enum):
    CURRENT = "current"
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class RenewalState:
    """What the scheduler needs to know about one member."""

    member_id: str
    renewal_date: date | None
    last_reminder_interval_sent: int | None = None
    last_reminder_cycle_date: date | None = None
    email: str | None = None
    first_name: str | None = None

    @classmethod
    def from_model(cls, member: MemberRenewal) -> "RenewalState":
        return cls(
            member_id=member.member_id,
            renewal_date=member.renewal_date,
            last_reminder_interval_sent=member.last_reminder_interval_sent,
            last_reminder_cycle_date=member.last_reminder_cycle_date,
            email=member.email,
            first_name=member.first_name,
        )

    @property
    def last_sent_this_cycle(self) -> int | None:
        """The stored interval, or None when it belongs to an earlier renewal date."""

        if self.last_reminder_interval_sent is None:
            return None
        if self.last_reminder_cycle_date != self.renewal_date:
            return None
        return self.last_reminder_interval_sent


class RenewalScheduler:
    """Pure interval selection; callers persist what was sent."""

    def __init__(self, *, timezone_name: str = "America/New_York", grace_period_days: int = 30) -> None:
        if grace_period_days < 1:
            raise ValueError("Grace period must be at least one day")
        self._tz = ZoneInfo(timezone_name)
        self.grace_period_days = grace_period_days

    def today(self, now: datetime) -> date:
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(self._tz).date()

    def days_until_renewal(self, renewal_date: date, now: datetime) -> int:
        return (renewal_date - self.today(now)).days

    def due_interval(self, state: RenewalState, now: datetime) -> int | None:
        """Return the most overdue crossed interval not yet sent this cycle.

        Intervals at or after the last one sent are never offered again, so a
        member who missed several passes gets a single catch-up reminder and
        never a step backwards.
        """

        if state.renewal_date is None:
            raise MissingRenewalDateError(f"Member {state.member_id} has no renewal date")

        days_until = self.days_until_renewal(state.renewal_date, now)
        last_sent = state.last_sent_this_cycle
        eligible = [
            interval
            for interval in REMINDER_INTERVALS
            if days_until <= interval and (last_sent is None or interval < last_sent)
        ]
        return min(eligible) if eligible else None

    def is_member_active(self, state: RenewalState, now: datetime) -> bool:
        if state.renewal_date is None:
            raise MissingRenewalDateError(f"Member {state.member_id} has no renewal date")
        if state.last_sent_this_cycle == TERMINAL_INTERVAL:
            return False
        return self.days_until_renewal(state.renewal_date, now) >= -self.grace_period_days

    def classify_window(self, days_until_renewal: int) -> RenewalWindow:
        if days_until_renewal > DUE_SOON_DAYS:
            return RenewalWindow.CURRENT
        if days_until_renewal >= 0:
            return RenewalWindow.DUE_SOON
        if days_until_renewal >= -self.grace_period_days:
            return RenewalWindow.OVERDUE
        return RenewalWindow.EXPIRED

    def window_breakdown(self, states: Iterable[RenewalState], now: datetime) -> dict[str, int]:
        counts = {window.value: 0 for window in RenewalWindow}
        counts["without_renewal_date"] = 0
        for state in states:
            if state.renewal_date is None:
                counts["without_renewal_date"] += 1
                continue
            window = self.classify_window(self.days_until_renewal(state.renewal_date, now))
            counts[window.value] += 1
        return counts


__all__ = [
    "DUE_SOON_DAYS",
    "MissingRenewalDateError",
    "REMINDER_INTERVALS",
    "RenewalScheduler",
    "RenewalState",
    "RenewalWindow",
    "TERMINAL_INTERVAL",
]
