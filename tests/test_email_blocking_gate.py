from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from lgl_sync.services.email_blocking import (
    BlockedEmailLog,
    BlockReason,
    EmailBlockingGate,
    EmailBlockingSettings,
    EmailBlockingStateStore,
    OutgoingEmail,
    build_gate,
    decide,
)

NOW = datetime(2026, 4, 1, 12, 0, tzinfo=timezone.utc)


def _gate(redis, *, is_development: bool | None = True, admin_email: str | None = "admin@example.org"):
    return EmailBlockingGate(
        EmailBlockingStateStore(redis),
        BlockedEmailLog(redis),
        admin_email=admin_email,
        is_development=is_development,
    )


def test_decision_order() -> None:
    forced = EmailBlockingSettings(force_blocking=True, whitelist=["qa@example.org"])
    paused_until = NOW + timedelta(minutes=5)

    def check(recipient, **kwargs):
        values = {
            "settings": EmailBlockingSettings(),
            "admin_email": "admin@example.org",
            "paused_until": None,
            "is_development": False,
            "now": NOW,
        }
        values.update(kwargs)
        return decide(recipient, **values)

    assert check("Admin@Example.org ", settings=forced).reason is BlockReason.ALLOW_LISTED
    assert check("QA@example.org", settings=forced, is_development=True).blocked is False
    assert check("member@example.org", settings=forced, paused_until=paused_until).reason is BlockReason.PAUSED
    assert check("member@example.org", settings=forced).reason is BlockReason.FORCED
    assert check("member@example.org", is_development=True).reason is BlockReason.DEVELOPMENT
    assert check("member@example.org").blocked is False


def test_unknown_environment_signal_blocks() -> None:
    decision = decide(
        "member@example.org",
        settings=EmailBlockingSettings(),
        admin_email=None,
        paused_until=None,
        is_development=None,
        now=NOW,
    )

    assert decision.blocked is True


@pytest.mark.asyncio
async def test_force_override_never_blocks_admin_address(fake_redis) -> None:
    gate = _gate(fake_redis, is_development=False)
    await gate.state.set_force_blocking(True)

    assert await gate.should_block("admin@example.org", now=NOW) is False
    assert await gate.should_block("member@example.org", now=NOW) is True


@pytest.mark.asyncio
async def test_pause_allows_mail_until_it_expires(fake_redis) -> None:
    gate = _gate(fake_redis, is_development=True)
    await gate.state.pause(300, now=NOW)

    assert await gate.should_block("member@example.org", now=NOW + timedelta(minutes=4)) is False
    assert await gate.should_block("member@example.org", now=NOW + timedelta(minutes=6)) is True
    assert fake_redis.expirations["lgl:email_blocking:paused_until"] == 300


@pytest.mark.asyncio
async def test_resume_clears_pause_immediately(fake_redis) -> None:
    gate = _gate(fake_redis, is_development=True)
    await gate.state.pause(300, now=NOW)
    await gate.state.resume()

    assert await gate.should_block("member@example.org", now=NOW) is True


@pytest.mark.asyncio
async def test_screen_records_blocked_mail_once(fake_redis) -> None:
    gate = _gate(fake_redis, is_development=True)
    email = OutgoingEmail(
        to=["admin@example.org", "member@example.org"],
        subject="Renewal",
        body="<p>Hello <b>there</b></p>",
        headers={"X-Renewal-Interval": "7"},
    )

    assert await gate.screen(email, now=NOW) is True

    entries = await gate.log.entries()
    assert len(entries) == 1
    assert entries[0].to == ["admin@example.org", "member@example.org"]
    assert entries[0].message_preview == "Hello there"
    assert entries[0].headers == {"X-Renewal-Interval": "7"}


@pytest.mark.asyncio
async def test_screen_allows_when_every_recipient_is_allowed(fake_redis) -> None:
    gate = _gate(fake_redis, is_development=True)
    await gate.state.set_whitelist(["qa@example.org"])

    email = OutgoingEmail.single("QA@example.org", "Test")

    assert await gate.screen(email, now=NOW) is False
    assert await gate.log.count() == 0


@pytest.mark.asyncio
async def test_status_snapshot(fake_redis) -> None:
    gate = _gate(fake_redis, is_development=True)
    await gate.state.set_whitelist(["a@example.org", "A@example.org", "b@example.org"])
    await gate.screen(OutgoingEmail.single("member@example.org", "Hi"), now=NOW)

    status = await gate.status(now=NOW)
    assert status.is_development is True
    assert status.is_force_blocking is False
    assert status.is_actively_blocking is True
    assert status.whitelist_count == 2
    assert status.blocked_count == 1

    until = await gate.state.pause(600, now=NOW)
    paused = await gate.status(now=NOW)
    assert paused.is_temporarily_paused is True
    assert paused.is_actively_blocking is False
    assert paused.paused_until == until
    assert paused.as_dict()["paused_until"] == until.isoformat()


@pytest.mark.asyncio
async def test_build_gate_uses_environment_detection(fake_redis, test_settings) -> None:
    production = test_settings.model_copy(
        update={"environment": "production", "site_url": "https://www.example.org", "site_host": "www.example.org"}
    )

    assert await build_gate(fake_redis, test_settings).should_block("member@example.org") is True
    assert await build_gate(fake_redis, production).should_block("member@example.org") is False
