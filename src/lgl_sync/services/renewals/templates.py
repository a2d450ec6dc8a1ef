"""Renewal reminder email content per interval."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from datetime import date
from typing import Mapping

from .scheduler import TERMINAL_INTERVAL

_PLACEHOLDER = re.compile(r"\{(first_name|renewal_date|days_until_renewal|organization_name)\}")
_TAG_PATTERN = re.compile(r"<[^>]+>")

_HEADLINES: dict[int, tuple[str, str]] = {
    30: ("One more month!", "Your {organization_name} membership renewal date is in 30 days."),
    14: ("Two more weeks!", "Your {organization_name} membership renewal date is in 14 days."),
    7: ("One more week!", "Your {organization_name} membership renewal date is in 7 days."),
    0: ("Today is the day!", "Your {organization_name} membership renewal date is today."),
    -7: ("Please renew your membership!", "Your {organization_name} membership renewal date has passed."),
}

_INACTIVITY_NOTICE = (
    "After 30 days past your membership renewal date your account will be marked inactive, "
    "and all data will be deleted after 60 days."
)


@dataclass
class RenderedTemplate:
    subject: str
    text_body: str
    html_body: str


def default_subject(interval: int) -> str:
    if interval == TERMINAL_INTERVAL:
        return "{first_name}, your {organization_name} membership is now INACTIVE"
    if interval < 0:
        return "{first_name}, your {organization_name} membership renewal date has passed!"
    if interval == 0:
        return "{first_name}, your {organization_name} membership renewal date is today!"
    return "{first_name}, your {organization_name} membership renewal is coming!"


def default_body(interval: int, *, site_url: str) -> str:
    account_url = f"{site_url.rstrip('/')}/my-account/"
    if interval == TERMINAL_INTERVAL:
        return (
            "<h1>There's an issue with your membership.</h1>"
            "<h2>Your renewal date has passed and your one month grace period has expired.</h2>"
            "<p><b>Your membership account has been marked as inactive.</b></p>"
            "<p>After 60 days of inactivity all data for your account will be removed.</p>"
            f'<p>To reactivate, reset your password at <a href="{account_url}lost-password">{account_url}lost-password</a>'
            " and complete a new membership checkout.</p>"
        )

    headline, detail = _HEADLINES.get(interval, _HEADLINES[-7] if interval < 0 else _HEADLINES[30])
    body = (
        f"<h1>{headline}</h1>"
        f"<h2>{detail}</h2>"
        f'<p>Please log in to your <a href="{account_url}">online account</a>, add your preferred '
        "membership level to your cart and complete your checkout.</p>"
    )
    if interval <= 7:
        body += f"<p>{_INACTIVITY_NOTICE}</p>"
    return body


def fill_placeholders(template: str, values: Mapping[str, str]) -> str:
    """Substitute known ``{name}`` placeholders, leaving any other braces alone."""

    return _PLACEHOLDER.sub(lambda match: values.get(match.group(1), match.group(0)), template)


def html_to_text(body: str) -> str:
    text = re.sub(r"</(h1|h2|h3|p|li)>", "\n", body)
    text = html.unescape(_TAG_PATTERN.sub("", text))
    return "\n".join(line.strip() for line in text.splitlines() if line.strip())


def render_renewal_reminder(
    interval: int,
    *,
    first_name: str | None,
    renewal_date: date,
    days_until_renewal: int,
    organization_name: str,
    site_url: str,
    subject_overrides: Mapping[int, str] | None = None,
    body_overrides: Mapping[int, str] | None = None,
) -> RenderedTemplate:
    """Render the reminder for ``interval``; operator overrides win when non-blank."""

    values = {
        "first_name": (first_name or "").strip() or "Member",
        "renewal_date": renewal_date.strftime("%B %d, %Y"),
        "days_until_renewal": str(days_until_renewal),
        "organization_name": organization_name,
    }
    escaped = {key: html.escape(value) for key, value in values.items()}

    subject_template = (subject_overrides or {}).get(interval, "").strip() or default_subject(interval)
    body_template = (body_overrides or {}).get(interval, "").strip() or default_body(interval, site_url=site_url)

    html_body = fill_placeholders(body_template, escaped)
    return RenderedTemplate(
        subject=fill_placeholders(subject_template, values),
        text_body=html_to_text(html_body),
        html_body=html_body,
    )


__all__ = [
    "RenderedTemplate",
    "default_body",
    "default_subject",
    "fill_placeholders",
    "html_to_text",
    "render_renewal_reminder",
]
