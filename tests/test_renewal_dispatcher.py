from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from lgl_sync.services.email_blocking import BlockedEmailLog, EmailBlockingGate, EmailBlockingStateStore
from lgl_sync.services.notifications import GatedEmailBackend, InMemoryEmailBackend
from lgl_sync.services.renewals import (
    InMemorySubscriptionIntegration,
    MemberRenewalStore,
    RenewalReminderDispatcher,
    RenewalSettings,
    RenewalStrategyManager,
)

NOW = datetime(2026, 5, 1, 15, 0, tzinfo=timezone.utc)
TODAY = date(2026, 5, 1)


class ExplodingBackend:
    async def send_email(self, recipient, subject, body_text, *, body_html=None, headers=None):
        raise ConnectionError("smtp relay down")


def _gate(fake_redis, *, is_development: bool) -> EmailBlockingGate:
    return EmailBlockingGate(
        EmailBlockingStateStore(fake_redis),
        BlockedEmailLog(fake_redis),
        admin_email="admin@example.org",
        is_development=is_development,
    )


def _dispatcher(session, fake_redis, *, backend=None, subscriptions=None, is_development=False, **settings):
    gated = GatedEmailBackend(backend or InMemoryEmailBackend(), _gate(fake_redis, is_development=is_development))
    return RenewalReminderDispatcher(
        MemberRenewalStore(session),
        RenewalStrategyManager(subscriptions or InMemorySubscriptionIntegration()),
        gated,
        settings=RenewalSettings(site_url="https://members.example.org", batch_size=2, **settings),
    )


async def _add_member(session_factory, member_id: str, days: int | None, email: str | None = None) -> None:
    async with session_factory() as session:
        await MemberRenewalStore(session).upsert_member(
            member_id,
            renewal_date=TODAY + timedelta(days=days) if days is not None else None,
            email=email if email is not None else f"{member_id}@example.org",
            first_name="Mia",
        )


async def _member(session_factory, member_id: str):
    async with session_factory() as session:
        return await MemberRenewalStore(session).get(member_id)


@pytest.mark.asyncio
async def test_due_reminder_is_sent_once(session_factory, fake_redis) -> None:
    await _add_member(session_factory, "m-1", 30)
    backend = InMemoryEmailBackend()

    async with session_factory() as session:
        first = await _dispatcher(session, fake_redis, backend=backend).run(now=NOW)
    async with session_factory() as session:
        second = await _dispatcher(session, fake_redis, backend=backend).run(now=NOW)

    assert first.reminders_sent == 1
    assert second.reminders_sent == 0
    assert second.no_action == 1
    assert len(backend.sent_messages) == 1
    assert backend.sent_messages[0]["To"] == "m-1@example.org"
    assert backend.sent_messages[0]["X-Renewal-Interval"] == "30"
    member = await _member(session_factory, "m-1")
    assert member.last_reminder_interval_sent == 30
    assert member.last_reminder_cycle_date == TODAY + timedelta(days=30)


@pytest.mark.asyncio
async def test_skip_reasons_are_reported(session_factory, fake_redis) -> None:
    await _add_member(session_factory, "no-date", None)
    await _add_member(session_factory, "host", 7)
    await _add_member(session_factory, "bad-email", 7, email="not-an-address")
    await _add_member(session_factory, "far-away", 90)
    subscriptions = InMemorySubscriptionIntegration({"host": ["active"]})

    async with session_factory() as session:
        summary = await _dispatcher(session, fake_redis, subscriptions=subscriptions).run(now=NOW)

    assert summary.members_evaluated == 4
    assert summary.skipped == {"no_renewal_date": 1, "host_subscription": 1, "invalid_email": 1}
    assert summary.no_action == 1
    assert summary.reminders_sent == 0


@pytest.mark.asyncio
async def test_blocked_send_keeps_the_claim(session_factory, fake_redis) -> None:
    await _add_member(session_factory, "m-1", 14)
    backend = InMemoryEmailBackend()

    async with session_factory() as session:
        summary = await _dispatcher(session, fake_redis, backend=backend, is_development=True).run(now=NOW)

    assert summary.blocked == 1
    assert summary.reminders_sent == 0
    assert backend.sent_messages == []
    assert (await _member(session_factory, "m-1")).last_reminder_interval_sent == 14
    assert len(await BlockedEmailLog(fake_redis).entries()) == 1


@pytest.mark.asyncio
async def test_transport_failure_releases_claim_and_continues(session_factory, fake_redis) -> None:
    await _add_member(session_factory, "m-1", 7)
    await _add_member(session_factory, "m-2", 7)

    async with session_factory() as session:
        summary = await _dispatcher(session, fake_redis, backend=ExplodingBackend()).run(now=NOW)

    assert summary.members_evaluated == 2
    assert [error["member_id"] for error in summary.errors] == ["m-1", "m-2"]
    assert all("smtp relay down" in error["error"] for error in summary.errors)
    assert (await _member(session_factory, "m-1")).last_reminder_interval_sent is None
    assert (await _member(session_factory, "m-2")).last_reminder_sent_at is None


@pytest.mark.asyncio
async def test_terminal_reminder_deactivates_member(session_factory, fake_redis) -> None:
    await _add_member(session_factory, "m-1", -35)

    async with session_factory() as session:
        summary = await _dispatcher(session, fake_redis).run(now=NOW)

    member = await _member(session_factory, "m-1")
    assert summary.reminders_sent == 1
    assert summary.deactivated == 1
    assert member.last_reminder_interval_sent == -30
    assert member.deactivated_at is not None


@pytest.mark.asyncio
async def test_disabled_reminders_do_nothing(session_factory, fake_redis) -> None:
    await _add_member(session_factory, "m-1", 30)
    backend = InMemoryEmailBackend()

    async with session_factory() as session:
        summary = await _dispatcher(session, fake_redis, backend=backend, enabled=False).run(now=NOW)

    assert summary.as_dict()["enabled"] is False
    assert summary.members_evaluated == 0
    assert backend.sent_messages == []
