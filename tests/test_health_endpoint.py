import pytest

from conftest import api_client


@pytest.mark.asyncio
async def test_healthz_reports_database_and_scheduler(app_with_db) -> None:
    app, _ = app_with_db

    async with api_client(app) as client:
        response = await client.get("/api/v1/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok", "renewal_scheduler": "disabled"}


@pytest.mark.asyncio
async def test_root_healthz_reports_version(app_with_db) -> None:
    app, _ = app_with_db

    async with api_client(app) as client:
        response = await client.get("/healthz")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "version" in response.json()
