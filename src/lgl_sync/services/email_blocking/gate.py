"""Decide whether outgoing mail may leave this environment."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Sequence

from loguru import logger
from redis.asyncio import Redis

from lgl_sync.core.environment import is_development_environment
from lgl_sync.core.settings import Settings

from .log import BlockedEmailEntry, BlockedEmailLog, message_preview
from .state import EmailBlockingSettings, EmailBlockingStateStore, normalize_address


class BlockReason(str, Enum):
    ALLOW_LISTED = "allow_listed"
    PAUSED = "paused"
    FORCED = "forced"
    DEVELOPMENT = "development"
    PRODUCTION = "production"


@dataclass(frozen=True, slots=True)
class BlockDecision:
    blocked: bool
    reason: BlockReason


@dataclass(slots=True)
class OutgoingEmail:
    to: list[str]
    subject: str
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def single(cls, recipient: str, subject: str, body: str = "", **headers: str) -> "OutgoingEmail":
        return cls(to=[recipient], subject=subject, body=body, headers=dict(headers))


@dataclass(frozen=True, slots=True)
class BlockingStatus:
    is_development: bool
    is_force_blocking: bool
    is_temporarily_paused: bool
    is_actively_blocking: bool
    paused_until: datetime | None
    whitelist_count: int
    blocked_count: int

    def as_dict(self) -> dict[str, object]:
        return {
            "is_development": self.is_development,
            "is_force_blocking": self.is_force_blocking,
            "is_temporarily_paused": self.is_temporarily_paused,
            "is_actively_blocking": self.is_actively_blocking,
            "paused_until": self.paused_until.isoformat() if self.paused_until else None,
            "whitelist_count": self.whitelist_count,
            "blocked_count": self.blocked_count,
        }


def decide(
    recipient: str,
    *,
    settings: EmailBlockingSettings,
    admin_email: str | None,
    paused_until: datetime | None,
    is_development: bool | None,
    now: datetime,
) -> BlockDecision:
    """Apply the blocking rules in order; the first rule that matches wins.

    An unknown environment signal (``None``) counts as development.
    """

    address = normalize_address(recipient)
    if (admin_email and address == normalize_address(admin_email)) or settings.allows(address):
        return BlockDecision(False, BlockReason.ALLOW_LISTED)
    if paused_until is not None and paused_until > now:
        return BlockDecision(False, BlockReason.PAUSED)
    if settings.force_blocking:
        return BlockDecision(True, BlockReason.FORCED)
    if is_development is None or is_development:
        return BlockDecision(True, BlockReason.DEVELOPMENT)
    return BlockDecision(False, BlockReason.PRODUCTION)


class EmailBlockingGate:
    """Screens outgoing mail against the persisted blocking state.

    State is read from the store on every call; nothing is cached between
    invocations.
    """

    def __init__(
        self,
        state: EmailBlockingStateStore,
        log: BlockedEmailLog,
        *,
        admin_email: str | None,
        is_development: bool | None,
    ) -> None:
        self._state = state
        self._log = log
        self._admin_email = admin_email
        self._is_development = is_development

    @property
    def state(self) -> EmailBlockingStateStore:
        return self._state

    @property
    def log(self) -> BlockedEmailLog:
        return self._log

    async def evaluate(self, recipient: str, *, now: datetime | None = None) -> BlockDecision:
        now = now or datetime.now(timezone.utc)
        settings = await self._state.load_settings()
        paused_until = await self._state.paused_until(now=now)
        return decide(
            recipient,
            settings=settings,
            admin_email=self._admin_email,
            paused_until=paused_until,
            is_development=self._is_development,
            now=now,
        )

    async def should_block(self, recipient: str, *, now: datetime | None = None) -> bool:
        decision = await self.evaluate(recipient, now=now)
        return decision.blocked

    async def record(self, email: OutgoingEmail, *, now: datetime | None = None) -> BlockedEmailEntry:
        entry = BlockedEmailEntry(
            timestamp=now or datetime.now(timezone.utc),
            to=list(email.to),
            subject=email.subject,
            message_preview=message_preview(email.body),
            headers=dict(email.headers),
        )
        await self._log.append(entry)
        return entry

    async def screen(self, email: OutgoingEmail, *, now: datetime | None = None) -> bool:
        """Return True when ``email`` must be suppressed, logging it once if so.

        Mail with several recipients goes out only when every recipient is
        allowed.
        """

        now = now or datetime.now(timezone.utc)
        recipients: Sequence[str] = email.to or [""]
        settings = await self._state.load_settings()
        paused_until = await self._state.paused_until(now=now)

        blocked_reason: BlockReason | None = None
        for recipient in recipients:
            decision = decide(
                recipient,
                settings=settings,
                admin_email=self._admin_email,
                paused_until=paused_until,
                is_development=self._is_development,
                now=now,
            )
            if decision.blocked:
                blocked_reason = decision.reason
                break

        if blocked_reason is None:
            return False

        await self.record(email, now=now)
        logger.info(
            "Outgoing email blocked",
            recipients=len(email.to),
            subject=email.subject,
            reason=blocked_reason.value,
        )
        return True

    async def status(self, *, now: datetime | None = None) -> BlockingStatus:
        now = now or datetime.now(timezone.utc)
        settings = await self._state.load_settings()
        paused_until = await self._state.paused_until(now=now)
        is_development = self._is_development is None or self._is_development
        is_paused = paused_until is not None
        return BlockingStatus(
            is_development=is_development,
            is_force_blocking=settings.force_blocking,
            is_temporarily_paused=is_paused,
            is_actively_blocking=(settings.force_blocking or is_development) and not is_paused,
            paused_until=paused_until,
            whitelist_count=len(settings.whitelist),
            blocked_count=await self._log.count(),
        )


def build_gate(redis_client: Redis, settings: Settings) -> EmailBlockingGate:
    """Wire a gate from application settings."""

    state = EmailBlockingStateStore(redis_client, defaults=EmailBlockingSettings.from_settings(settings))
    log = BlockedEmailLog(redis_client, capacity=settings.email_blocking_log_capacity)
    return EmailBlockingGate(
        state,
        log,
        admin_email=settings.admin_email or None,
        is_development=is_development_environment(settings),
    )


__all__ = [
    "BlockDecision",
    "BlockReason",
    "BlockingStatus",
    "EmailBlockingGate",
    "OutgoingEmail",
    "build_gate",
    "decide",
]
