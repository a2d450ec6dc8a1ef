"""Little Green Light API client."""

from .client import ConstituentMatch, LglApiSettings, LglClient, extract_constituents, normalize_emails

__all__ = [
    "ConstituentMatch",
    "LglApiSettings",
    "LglClient",
    "extract_constituents",
    "normalize_emails",
]
