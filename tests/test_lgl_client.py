from __future__ import annotations

import httpx
import pytest

from conftest import lgl_client_for
from lgl_sync.services.lgl import LglApiSettings, LglClient, extract_constituents, normalize_emails


@pytest.mark.asyncio
async def test_find_constituent_matches_by_email_first() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        assert request.url.path.endswith("/constituents/search.json")
        if request.url.params.get("email") == "donor@example.org":
            return httpx.Response(200, json={"items": [{"id": 321, "first_name": "Dana"}]})
        return httpx.Response(200, json={"items": []})

    client = lgl_client_for(handler)
    match = await client.find_constituent("Dana Donor", [" Donor@Example.org ", "donor@example.org"])

    assert match is not None
    assert match.constituent_id == "321"
    assert match.method == "email"
    assert match.email == "donor@example.org"
    assert len(seen) == 1
    assert seen[0].headers["Authorization"].startswith("Basic ")


@pytest.mark.asyncio
async def test_find_constituent_falls_back_to_verified_name_search() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "email" in request.url.params:
            return httpx.Response(200, json={"items": []})
        assert request.url.params["q"] == "Dana Donor"
        return httpx.Response(
            200,
            json={
                "items": [
                    {"id": 1, "email_addresses": [{"address": "someone@else.org"}]},
                    {"id": 2, "email_addresses": [{"address": "DONOR@example.org"}]},
                ]
            },
        )

    client = lgl_client_for(handler)
    match = await client.find_constituent("  Dana   Donor ", ["donor@example.org"])

    assert match is not None
    assert match.constituent_id == "2"
    assert match.method == "name"


@pytest.mark.asyncio
async def test_name_match_without_matching_email_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "email" in request.url.params:
            return httpx.Response(200, json={"items": []})
        return httpx.Response(200, json={"items": [{"id": 1, "email_addresses": []}]})

    client = lgl_client_for(handler)

    assert await client.find_constituent("Dana Donor", ["donor@example.org"]) is None


@pytest.mark.asyncio
async def test_http_errors_become_failure_envelopes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="upstream exploded")

    client = lgl_client_for(handler)
    response = await client.create_constituent({"first_name": "Dana"})

    assert response["success"] is False
    assert response["http_code"] == 500
    assert "upstream exploded" in response["error"]


@pytest.mark.asyncio
async def test_invalid_json_keeps_raw_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    client = lgl_client_for(handler)
    response = await client.add_gift("9", {"received_amount": "10.00"})

    assert response["success"] is False
    assert response["raw_response"] == "<html>maintenance</html>"
    assert response["error"].startswith("Invalid JSON response")


@pytest.mark.asyncio
async def test_transport_errors_become_failure_envelopes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = lgl_client_for(handler)
    response = await client.get_constituent("9")

    assert response["success"] is False
    assert response["http_code"] == 0
    assert response["error"].startswith("HTTP Error")


@pytest.mark.asyncio
async def test_missing_credentials_short_circuit() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
        raise AssertionError("request should not be sent")

    client = LglClient(
        LglApiSettings(base_url="https://lgl.test/api/v1", api_key=""),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    response = await client.get_constituent("1")

    assert response["success"] is False
    assert "not configured" in response["error"]


def test_helpers_normalize_shapes() -> None:
    assert normalize_emails(["A@B.org", "a@b.org", "bad", ""]) == ["a@b.org"]
    assert normalize_emails(None) == []
    assert extract_constituents({"id": 5}) == [{"id": 5}]
    assert extract_constituents([{"id": 1}, {"name": "no id"}]) == [{"id": 1}]
    assert extract_constituents("nope") == []
