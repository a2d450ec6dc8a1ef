"""Development environment detection used by the email blocking gate."""

from __future__ import annotations

from lgl_sync.core.settings import Settings

DEV_INDICATORS: tuple[str, ...] = (
    ".local",
    "localhost",
    "127.0.0.1",
    ".dev",
    ".test",
    "staging",
    "development",
)

LOOPBACK_ADDRESSES = frozenset({"127.0.0.1", "::1"})


def detect_development_environment(
    host: str | None,
    site_url: str | None,
    server_addr: str | None = None,
) -> bool:
    """Return True when the host signals look like a non-production install.

    With neither a host nor a site URL there is nothing to go on, so the
    answer is True: suppressing mail is the safe failure.
    """

    host_value = (host or "").strip().lower()
    url_value = (site_url or "").strip().lower()
    if not host_value and not url_value:
        return True

    for indicator in DEV_INDICATORS:
        if indicator in host_value or indicator in url_value:
            return True

    return (server_addr or "").strip() in LOOPBACK_ADDRESSES


def is_development_environment(settings: Settings) -> bool:
    if not settings.is_production:
        return True
    return detect_development_environment(settings.site_host, settings.site_url, settings.server_addr)


__all__ = ["DEV_INDICATORS", "detect_development_environment", "is_development_environment"]
