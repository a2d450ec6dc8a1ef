"""
LGL Client
==========
Async client for the Little Green Light REST API.

Every call returns a normalized envelope instead of raising:

    {"success": bool, "http_code": int, "data": ..., "error": str | None,
     "raw_response": str | None}

so that API failures flow into sync records as data.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import httpx
from loguru import logger
from pydantic import BaseModel

from lgl_sync.core.email import is_valid_email
from lgl_sync.core.settings import Settings


class LglApiSettings(BaseModel):
    base_url: str
    api_key: str
    timeout_seconds: float = 15.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "LglApiSettings":
        return cls(
            base_url=settings.lgl_api_url,
            api_key=settings.lgl_api_key,
            timeout_seconds=settings.lgl_request_timeout_seconds,
        )


@dataclass(frozen=True, slots=True)
class ConstituentMatch:
    constituent_id: str
    method: str
    email: str | None
    response: dict[str, Any]


class LglClient:
    """Client for the LGL constituents and gifts endpoints."""

    def __init__(
        self,
        config: LglApiSettings,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_seconds)
        self._owns_client = http_client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, Any] | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self._config.base_url or not self._config.api_key:
            logger.error("LGL API credentials not configured")
            return _error_response("LGL API URL or API key not configured")

        url = f"{self._config.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        logger.debug("LGL request", method=method, endpoint=endpoint)

        try:
            response = await self._client.request(
                method,
                url,
                params=dict(params) if params else None,
                json=dict(payload) if payload is not None else None,
                auth=(self._config.api_key, ""),
                headers={"Accept": "application/json"},
                timeout=self._config.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            logger.warning("LGL request failed", endpoint=endpoint, error=str(exc))
            return _error_response(f"HTTP Error: {exc}")

        body = response.text
        if response.status_code >= 400:
            logger.warning("LGL API error", endpoint=endpoint, http_code=response.status_code)
            return _error_response(f"HTTP {response.status_code}: {body}", http_code=response.status_code)

        try:
            decoded = json.loads(body) if body else None
        except json.JSONDecodeError as exc:
            logger.warning("LGL returned invalid JSON", endpoint=endpoint, error=str(exc))
            return {
                **_error_response(f"Invalid JSON response: {exc}", http_code=response.status_code),
                "raw_response": body,
            }

        return {
            "success": True,
            "http_code": response.status_code,
            "data": decoded,
            "error": None,
            "raw_response": body,
        }

    # =========================================================================
    # CONSTITUENTS
    # =========================================================================

    async def get_constituent(self, constituent_id: str) -> dict[str, Any]:
        return await self._request("GET", f"constituents/{constituent_id}.json")

    async def search_constituents(self, **criteria: Any) -> dict[str, Any]:
        return await self._request("GET", "constituents/search.json", params=criteria)

    async def create_constituent(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "constituents.json", payload=payload)

    async def find_constituent(self, name: str, emails: Iterable[str]) -> ConstituentMatch | None:
        """Look a person up by email first, then by name verified against email."""

        candidates = normalize_emails(emails)
        for email in candidates:
            response = await self.search_constituents(email=email)
            if not response["success"]:
                continue
            items = extract_constituents(response["data"])
            if items:
                return ConstituentMatch(
                    constituent_id=str(items[0]["id"]),
                    method="email",
                    email=email,
                    response=response,
                )

        clean_name = " ".join(name.split())
        if not clean_name:
            return None

        response = await self.search_constituents(q=clean_name)
        if not response["success"]:
            return None
        for item in extract_constituents(response["data"]):
            matched = _matching_email(item, candidates)
            if matched:
                return ConstituentMatch(
                    constituent_id=str(item["id"]),
                    method="name",
                    email=matched,
                    response=response,
                )

        logger.info("No LGL constituent matched", name=clean_name, emails=len(candidates))
        return None

    # =========================================================================
    # GIFTS
    # =========================================================================

    async def add_gift(self, constituent_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        return await self._request("POST", f"constituents/{constituent_id}/gifts.json", payload=payload)


def _error_response(message: str, *, http_code: int = 0) -> dict[str, Any]:
    return {
        "success": False,
        "http_code": http_code,
        "data": None,
        "error": message,
        "raw_response": None,
    }


def normalize_emails(emails: Iterable[str] | str | None) -> list[str]:
    if emails is None:
        return []
    if isinstance(emails, str):
        emails = [emails]
    seen: list[str] = []
    for email in emails:
        cleaned = str(email).strip().lower()
        if is_valid_email(cleaned) and cleaned not in seen:
            seen.append(cleaned)
    return seen


def extract_constituents(data: Any) -> list[dict[str, Any]]:
    """Pull constituent dicts out of the shapes LGL search responses come in."""

    if isinstance(data, dict):
        items = data.get("items")
        if isinstance(items, list):
            return [item for item in items if isinstance(item, dict) and "id" in item]
        if "id" in data:
            return [data]
        return []
    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict) and "id" in item]
    return []


def _matching_email(constituent: Mapping[str, Any], candidates: list[str]) -> str | None:
    addresses = constituent.get("email_addresses") or []
    for entry in addresses:
        address = entry.get("address") if isinstance(entry, Mapping) else entry
        if isinstance(address, str) and address.strip().lower() in candidates:
            return address.strip().lower()
    return None


__all__ = [
    "ConstituentMatch",
    "LglApiSettings",
    "LglClient",
    "extract_constituents",
    "normalize_emails",
]
