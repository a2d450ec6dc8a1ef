"""One renewal reminder pass over all members."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from lgl_sync.core.email import is_valid_email
from lgl_sync.core.settings import Settings
from lgl_sync.models.member_renewal import MemberRenewal
from lgl_sync.services.email_blocking import build_gate
from lgl_sync.services.notifications import EmailBackend, GatedEmailBackend, LoggingEmailBackend

from .scheduler import TERMINAL_INTERVAL, RenewalScheduler, RenewalState
from .store import MemberRenewalStore
from .strategy import ManagedBy, NullSubscriptionIntegration, RenewalStrategyManager, SubscriptionIntegration
from .templates import render_renewal_reminder


class RenewalSettings(BaseModel):
    enabled: bool = True
    grace_period_days: int = Field(default=30, ge=1)
    timezone: str = "America/New_York"
    batch_size: int = Field(default=100, ge=1)
    organization_name: str = "Upstate International"
    site_url: str = ""
    subject_overrides: dict[int, str] = Field(default_factory=dict)
    body_overrides: dict[int, str] = Field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RenewalSettings":
        return cls(
            enabled=settings.renewal_reminders_enabled,
            grace_period_days=settings.renewal_grace_period_days,
            timezone=settings.renewal_timezone,
            batch_size=settings.renewal_batch_size,
            organization_name=settings.organization_name,
            site_url=settings.site_url,
            subject_overrides=settings.renewal_email_subjects,
            body_overrides=settings.renewal_email_bodies,
        )

    def build_scheduler(self) -> RenewalScheduler:
        return RenewalScheduler(timezone_name=self.timezone, grace_period_days=self.grace_period_days)


@dataclass
class ReminderPassSummary:
    enabled: bool = True
    members_evaluated: int = 0
    reminders_sent: int = 0
    blocked: int = 0
    no_action: int = 0
    deactivated: int = 0
    skipped: dict[str, int] = field(default_factory=dict)
    errors: list[dict[str, Any]] = field(default_factory=list)

    def skip(self, reason: str) -> None:
        self.skipped[reason] = self.skipped.get(reason, 0) + 1

    def as_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "members_evaluated": self.members_evaluated,
            "reminders_sent": self.reminders_sent,
            "blocked": self.blocked,
            "no_action": self.no_action,
            "deactivated": self.deactivated,
            "skipped": dict(self.skipped),
            "errors": list(self.errors),
        }


class RenewalReminderDispatcher:
    """Classify, schedule, claim, compose and send, one member at a time.

    A claim is committed before the email is handed to the backend. Blocked
    sends keep the claim; a failing transport releases it so the next pass
    can try again.
    """

    def __init__(
        self,
        store: MemberRenewalStore,
        strategy: RenewalStrategyManager,
        backend: GatedEmailBackend,
        *,
        settings: RenewalSettings,
        scheduler: RenewalScheduler | None = None,
    ) -> None:
        self._store = store
        self._strategy = strategy
        self._backend = backend
        self._settings = settings
        self._scheduler = scheduler or settings.build_scheduler()

    async def run(self, *, now: datetime | None = None) -> ReminderPassSummary:
        summary = ReminderPassSummary(enabled=self._settings.enabled)
        if not self._settings.enabled:
            logger.info("Renewal reminders disabled, pass skipped")
            return summary

        now = now or datetime.now(timezone.utc)
        async for batch in self._store.iter_batches(self._settings.batch_size):
            for member in batch:
                summary.members_evaluated += 1
                await self._process_member(member, now, summary)

        logger.bind(summary=summary.as_dict()).info("Renewal reminder pass completed")
        return summary

    async def _process_member(self, member: MemberRenewal, now: datetime, summary: ReminderPassSummary) -> None:
        state = RenewalState.from_model(member)
        if state.renewal_date is None:
            summary.skip("no_renewal_date")
            return

        if await self._strategy.classify(state.member_id) is ManagedBy.HOST_SUBSCRIPTION:
            summary.skip("host_subscription")
            return

        interval = self._scheduler.due_interval(state, now)
        if interval is None:
            summary.no_action += 1
            return

        email = (state.email or "").strip()
        if not is_valid_email(email):
            logger.warning("Renewal reminder skipped, invalid email", member_id=state.member_id)
            summary.skip("invalid_email")
            return

        previous_sent_at = member.last_reminder_sent_at
        claimed = await self._store.claim_interval(
            state.member_id,
            expected_interval=state.last_reminder_interval_sent,
            expected_cycle_date=state.last_reminder_cycle_date,
            interval=interval,
            cycle_date=state.renewal_date,
            now=now,
        )
        if not claimed:
            summary.skip("already_claimed")
            return

        rendered = render_renewal_reminder(
            interval,
            first_name=state.first_name,
            renewal_date=state.renewal_date,
            days_until_renewal=self._scheduler.days_until_renewal(state.renewal_date, now),
            organization_name=self._settings.organization_name,
            site_url=self._settings.site_url,
            subject_overrides=self._settings.subject_overrides,
            body_overrides=self._settings.body_overrides,
        )

        try:
            delivered = await self._backend.send_email(
                email,
                rendered.subject,
                rendered.text_body,
                body_html=rendered.html_body,
                headers={"X-Renewal-Interval": str(interval)},
                now=now,
            )
        except Exception as exc:  # noqa: BLE001 - transport failures are reported per member
            logger.exception(
                "Renewal reminder delivery failed",
                member_id=state.member_id,
                interval=interval,
                error=str(exc),
            )
            await self._store.release_claim(
                state.member_id,
                interval=interval,
                cycle_date=state.renewal_date,
                previous_interval=state.last_reminder_interval_sent,
                previous_cycle_date=state.last_reminder_cycle_date,
                previous_sent_at=previous_sent_at,
            )
            summary.errors.append({"member_id": state.member_id, "interval": interval, "error": str(exc)})
            return

        if delivered:
            summary.reminders_sent += 1
            logger.info("Renewal reminder sent", member_id=state.member_id, interval=interval)
        else:
            summary.blocked += 1

        if interval == TERMINAL_INTERVAL:
            await self._store.mark_deactivated(state.member_id, now=now)
            summary.deactivated += 1
            logger.info("Membership marked inactive", member_id=state.member_id)


def build_dispatcher(
    session: AsyncSession,
    redis_client: Redis,
    *,
    settings: Settings,
    email_backend: EmailBackend | None = None,
    subscriptions: SubscriptionIntegration | None = None,
) -> RenewalReminderDispatcher:
    """Compose a dispatcher for one pass from application settings."""

    gated = GatedEmailBackend(email_backend or LoggingEmailBackend(), build_gate(redis_client, settings))
    return RenewalReminderDispatcher(
        MemberRenewalStore(session),
        RenewalStrategyManager(subscriptions or NullSubscriptionIntegration()),
        gated,
        settings=RenewalSettings.from_settings(settings),
    )


__all__ = ["ReminderPassSummary", "RenewalReminderDispatcher", "RenewalSettings", "build_dispatcher"]
