"""CRM call outcomes as consumed by the sync reconciler."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from lgl_sync.models.sync_record import MatchMethodEnum


@dataclass(frozen=True, slots=True)
class CrmOutcome:
    """Result of a single CRM operation (constituent match/create or payment).

    ``payload`` is whatever the CRM client handed back and is kept only for
    audit. A success without an external id is not a usable success.
    """

    succeeded: bool
    external_id: str | None = None
    match_method: MatchMethodEnum = MatchMethodEnum.NONE
    matched_email: str | None = None
    payload: Any = None

    @classmethod
    def success(
        cls,
        external_id: Any,
        *,
        payload: Any = None,
        match_method: MatchMethodEnum = MatchMethodEnum.NONE,
        matched_email: str | None = None,
    ) -> "CrmOutcome":
        return cls(
            succeeded=True,
            external_id=_normalize_id(external_id),
            match_method=match_method,
            matched_email=matched_email,
            payload=payload,
        )

    @classmethod
    def failure(cls, payload: Any = None) -> "CrmOutcome":
        return cls(succeeded=False, payload=payload)

    @classmethod
    def from_response(
        cls,
        response: Any,
        *,
        match_method: MatchMethodEnum = MatchMethodEnum.NONE,
        matched_email: str | None = None,
    ) -> "CrmOutcome":
        """Interpret a normalized LGL client envelope.

        Anything that is not a mapping reporting success with ``data.id`` is a
        failure; the raw response is retained either way.
        """

        if not isinstance(response, Mapping):
            return cls.failure(response)
        if response.get("success") not in (True, 1):
            return cls.failure(response)
        data = response.get("data")
        external_id = data.get("id") if isinstance(data, Mapping) else None
        if _normalize_id(external_id) is None:
            return cls.failure(response)
        return cls.success(
            external_id,
            payload=response,
            match_method=match_method,
            matched_email=matched_email,
        )

    @property
    def ok(self) -> bool:
        return self.succeeded and self.external_id is not None


def _normalize_id(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def serialize_payload(payload: Any) -> str | None:
    """Render a diagnostic payload as text without ever discarding it."""

    if payload is None:
        return None
    if isinstance(payload, str):
        return payload
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload).decode("utf-8", errors="replace")
    try:
        return json.dumps(payload, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return repr(payload)


def summarize_response(raw: str | None) -> dict[str, Any] | str:
    """Compact audit view of a stored response (success, http code, error, id)."""

    if not raw:
        return "No data"
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    if not isinstance(decoded, dict):
        return raw

    data = decoded.get("data")
    http_code = decoded.get("http_code")
    if http_code is None and isinstance(data, dict):
        http_code = data.get("http_code")

    summary: dict[str, Any] = {
        "success": bool(decoded.get("success")),
        "http_code": http_code,
    }
    if "error" in decoded:
        summary["error"] = decoded["error"]
    if isinstance(data, dict) and "id" in data:
        summary["id"] = data["id"]
    return summary


__all__ = ["CrmOutcome", "serialize_payload", "summarize_response"]
