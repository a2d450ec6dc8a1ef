"""Email address helpers shared by the CRM client, renewals and the blocking gate."""

from __future__ import annotations

import re

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_address(value: str) -> str:
    return value.strip().lower()


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_PATTERN.match(value) is not None


__all__ = ["EMAIL_PATTERN", "is_valid_email", "normalize_address"]
