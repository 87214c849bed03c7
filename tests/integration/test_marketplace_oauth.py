"""Integration tests for marketplace account linking and token refresh."""

import pytest
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from services.marketplace_service.mercadolibre_client import MercadoLibreError
from services.marketplace_service.models import MarketplaceCredential
from sqlalchemy import select


@pytest.mark.asyncio
@pytest.mark.integration
async def test_oauth_liveness(marketplace_client):
    response = await marketplace_client.get("/api/ml-oauth")

    assert response.json() == {"ok": True, "message": "ml-oauth endpoint alive"}


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("body", [{}, {"code": ""}, None])
async def test_oauth_missing_code(marketplace_client, fake_ml, body):
    if body is None:
        response = await marketplace_client.post("/api/ml-oauth")
    else:
        response = await marketplace_client.post("/api/ml-oauth", json=body)

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing code"
    assert fake_ml.codes == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_oauth_callback_twice_keeps_one_row(
    marketplace_client, db_session, fake_ml
):
    first = await marketplace_client.post("/api/ml-oauth", json={"code": "TG-code-1"})
    fake_ml.grant.access_token = "APP_USR-access-second"
    second = await marketplace_client.post("/api/ml-oauth", json={"code": "TG-code-2"})

    assert first.status_code == 200
    assert second.json() == {"ok": True, "user_id": "123456789", "saved": True}
    rows = (await db_session.execute(select(MarketplaceCredential))).scalars().all()
    assert len(rows) == 1
    assert rows[0].access_token == "APP_USR-access-second"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_oauth_incomplete_grant(marketplace_client, db_session, fake_ml):
    fake_ml.grant = MercadoLibreError(
        message="Faltan datos críticos de MercadoLibre",
        response_data={"access_token": "APP_USR-x"},
    )

    response = await marketplace_client.post("/api/ml-oauth", json={"code": "TG-code"})

    assert response.status_code == 502
    assert response.json()["error"] == "MercadoLibre API error"
    rows = (await db_session.execute(select(MarketplaceCredential))).scalars().all()
    assert rows == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_manual_refresh_without_credentials(marketplace_client, fake_ml):
    response = await marketplace_client.post("/api/ml-refresh-token")

    assert response.status_code == 404
    assert response.json()["detail"] == "No refresh token available."


@pytest.mark.asyncio
@pytest.mark.integration
async def test_manual_refresh(marketplace_client, fake_ml, credential):
    response = await marketplace_client.get("/api/ml-refresh-token")

    data = response.json()
    assert response.status_code == 200
    assert data["success"] is True
    assert data["user_id"] == "123456789"
    assert data["expires_in"] == 21600
    assert fake_ml.refreshed == ["TG-refresh-old"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_manual_refresh_requires_admin(marketplace_client, fake_ml):
    from services.marketplace_service.app.main import app

    app.dependency_overrides[get_current_user] = lambda: AuthUser(sub="customer")

    response = await marketplace_client.post("/api/ml-refresh-token")

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cron_without_credentials(marketplace_client, fake_ml, set_env):
    set_env(CRON_SECRET=None)

    response = await marketplace_client.get("/api/cron-refresh-ml")

    assert response.status_code == 200
    assert response.json() == {"status": "No tokens found"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cron_refresh(marketplace_client, fake_ml, credential, set_env):
    set_env(CRON_SECRET="cron-secret")

    response = await marketplace_client.get(
        "/api/cron-refresh-ml", headers={"Authorization": "Bearer cron-secret"}
    )

    data = response.json()
    assert data["success"] is True
    assert data["user_id"] == "123456789"
    assert "refreshed_at" in data


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cron_rejects_wrong_secret(marketplace_client, fake_ml, credential, set_env):
    set_env(CRON_SECRET="cron-secret")

    response = await marketplace_client.get(
        "/api/cron-refresh-ml", headers={"Authorization": "Bearer nope"}
    )

    assert response.status_code == 401
    assert fake_ml.refreshed == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_cron_refresh_rejected_by_provider(
    marketplace_client, fake_ml, credential, set_env
):
    set_env(CRON_SECRET=None)
    fake_ml.grant = MercadoLibreError(
        message="invalid_grant", status_code=400, response_data={"error": "invalid_grant"}
    )

    response = await marketplace_client.get("/api/cron-refresh-ml")

    assert response.status_code == 400
    assert response.json()["message"] == "invalid_grant"
