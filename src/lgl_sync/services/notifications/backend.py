"""Email backend implementations for outgoing notifications."""

from __future__ import annotations

from dataclasses import dataclass
from email.message import EmailMessage
from typing import List, Mapping, Protocol

from loguru import logger


class EmailBackend(Protocol):
    """Minimal protocol for sending notification emails."""

    async def send_email(
        self,
        recipient: str,
        subject: str,
        body_text: str,
        *,
        body_html: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        ...


@dataclass
class InMemoryEmailBackend:
    """Test backend storing outbound messages in memory."""

    sent_messages: List[EmailMessage]

    def __init__(self) -> None:
        self.sent_messages = []

    async def send_email(
        self,
        recipient: str,
        subject: str,
        body_text: str,
        *,
        body_html: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        message = EmailMessage()
        message["To"] = recipient
        message["Subject"] = subject
        for name, value in (headers or {}).items():
            message[name] = value
        message.set_content(body_text)
        if body_html:
            message.add_alternative(body_html, subtype="html")
        self.sent_messages.append(message)


class LoggingEmailBackend:
    """Writes messages to the log instead of delivering them.

    Used when no transport is wired into the service.
    """

    async def send_email(
        self,
        recipient: str,
        subject: str,
        body_text: str,
        *,
        body_html: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        logger.info(
            "Email delivery handed to log backend",
            recipient=recipient,
            subject=subject,
            has_html=body_html is not None,
        )


__all__ = ["EmailBackend", "InMemoryEmailBackend", "LoggingEmailBackend"]
