"""Email backend wrapper that routes every message through the blocking gate."""

from __future__ import annotations

from datetime import datetime
from typing import Mapping

from lgl_sync.services.email_blocking import EmailBlockingGate, OutgoingEmail

from .backend import EmailBackend


class GatedEmailBackend:
    """Deliver through ``backend`` unless the gate suppresses the message."""

    def __init__(self, backend: EmailBackend, gate: EmailBlockingGate) -> None:
        self._backend = backend
        self._gate = gate

    async def send_email(
        self,
        recipient: str,
        subject: str,
        body_text: str,
        *,
        body_html: str | None = None,
        headers: Mapping[str, str] | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Return True when delivered, False when the gate blocked it."""

        email = OutgoingEmail(
            to=[recipient],
            subject=subject,
            body=body_html or body_text,
            headers=dict(headers or {}),
        )
        if await self._gate.screen(email, now=now):
            return False
        await self._backend.send_email(
            recipient,
            subject,
            body_text,
            body_html=body_html,
            headers=headers,
        )
        return True


__all__ = ["GatedEmailBackend"]
