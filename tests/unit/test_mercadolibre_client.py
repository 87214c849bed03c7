"""Unit tests for the MercadoLibre API client (HTTP layer mocked)."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from libs.common.errors import ConfigurationError
from services.marketplace_service.mercadolibre_client import (
    DEFAULT_CATEGORY_ID,
    MercadoLibreClient,
    MercadoLibreError,
    TokenGrant,
)


class TestTokenGrant:
    def test_from_response(self):
        grant = TokenGrant.from_response(
            {
                "user_id": 123456789,
                "access_token": "APP_USR-1",
                "refresh_token": "TG-1",
                "expires_in": 21600,
            }
        )

        assert grant.user_id == "123456789"
        assert grant.refresh_token == "TG-1"

    @pytest.mark.parametrize(
        "data",
        [
            {"access_token": "APP_USR-1"},
            {"user_id": 1},
            {"user_id": 1, "access_token": ""},
        ],
    )
    def test_missing_critical_fields(self, data):
        with pytest.raises(MercadoLibreError, match="Faltan datos"):
            TokenGrant.from_response(data)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_non_2xx_raises_with_provider_message():
    client = MercadoLibreClient(access_token="APP_USR-1", base_url="https://ml.test")

    with patch.object(
        httpx.AsyncClient,
        "request",
        new_callable=AsyncMock,
        return_value=httpx.Response(401, json={"message": "invalid_token"}),
    ):
        with pytest.raises(MercadoLibreError) as exc_info:
            await client.get_resource("/orders/1")

    assert exc_info.value.unauthorized is True
    assert exc_info.value.message == "invalid_token"
    assert exc_info.value.provider == "MercadoLibre"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_bearer_header_and_resource_path():
    client = MercadoLibreClient(access_token="APP_USR-1", base_url="https://ml.test")

    with patch.object(
        httpx.AsyncClient,
        "request",
        new_callable=AsyncMock,
        return_value=httpx.Response(200, json={"id": 1}),
    ) as request:
        assert await client.get_resource("orders/1") == {"id": 1}

    kwargs = request.await_args.kwargs
    assert kwargs["url"] == "https://ml.test/orders/1"
    assert kwargs["headers"]["Authorization"] == "Bearer APP_USR-1"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_predict_category():
    client = MercadoLibreClient(base_url="https://ml.test")
    client._request = AsyncMock(return_value=[{"category_id": "MLA1910"}])

    assert await client.predict_category("Dragón articulado") == "MLA1910"


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "outcome",
    [
        MercadoLibreError("not found", status_code=404),
        httpx.ConnectError("unreachable"),
        [],
    ],
)
async def test_predict_category_falls_back(outcome):
    client = MercadoLibreClient(base_url="https://ml.test")
    if isinstance(outcome, Exception):
        client._request = AsyncMock(side_effect=outcome)
    else:
        client._request = AsyncMock(return_value=outcome)

    assert await client.predict_category("???") == DEFAULT_CATEGORY_ID


@pytest.mark.asyncio
@pytest.mark.unit
async def test_subscribe_app_endpoint():
    client = MercadoLibreClient(access_token="APP_USR-1", base_url="https://ml.test")
    client._request = AsyncMock(return_value={"id": "sub-1"})

    result = await client.subscribe("app-1", "42", "https://shop/hook", "orders_v2")

    assert result["status"] == "SUSCRIPCIÓN EXITOSA (Método App)"
    assert client._request.await_args.args[1] == "/applications/app-1/notifications"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_subscribe_falls_back_to_user_endpoint():
    client = MercadoLibreClient(access_token="APP_USR-1", base_url="https://ml.test")
    client._request = AsyncMock(
        side_effect=[
            MercadoLibreError("forbidden", 403, {"error": "forbidden"}),
            {"id": "sub-2"},
        ]
    )

    result = await client.subscribe("app-1", "42", "https://shop/hook", "orders_v2")

    assert result["status"] == "SUSCRIPCIÓN EXITOSA (Método Usuario)"
    assert result["method1_error"] == {"error": "forbidden"}
    assert result["method2_result"] == {"id": "sub-2"}
    assert (
        client._request.await_args.args[1]
        == "/users/42/applications/app-1/notifications"
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_subscribe_both_methods_fail():
    client = MercadoLibreClient(access_token="APP_USR-1", base_url="https://ml.test")
    client._request = AsyncMock(
        side_effect=[
            MercadoLibreError("forbidden", 403, {"error": "forbidden"}),
            MercadoLibreError("bad request", 400, {"error": "bad_request"}),
        ]
    )

    result = await client.subscribe("app-1", "42", "https://shop/hook", "orders_v2")

    assert result["status"] == "FALLÓ TODO"
    assert result["method2_result"] == {"error": "bad_request"}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_exchange_code_requires_app_credentials(set_env):
    set_env(
        ML_APP_ID=None,
        VITE_ML_APP_ID=None,
        ML_APP_SECRET=None,
        VITE_ML_APP_SECRET=None,
    )
    client = MercadoLibreClient(base_url="https://ml.test")

    with pytest.raises(ConfigurationError) as exc_info:
        await client.exchange_code("TG-code")

    assert "ML_APP_ID" in exc_info.value.missing
    assert "ML_APP_SECRET" in exc_info.value.missing


@pytest.mark.asyncio
@pytest.mark.unit
async def test_exchange_code_posts_form(set_env):
    set_env(ML_APP_ID="app-1", ML_APP_SECRET="secret", ML_REDIRECT_URI="https://shop/cb")
    client = MercadoLibreClient(base_url="https://ml.test")
    client._request = AsyncMock(
        return_value={"user_id": 42, "access_token": "APP_USR-9", "refresh_token": "TG-9"}
    )

    grant = await client.exchange_code("TG-code")

    assert grant.user_id == "42"
    form = client._request.await_args.kwargs["form"]
    assert form["grant_type"] == "authorization_code"
    assert form["code"] == "TG-code"
    assert form["redirect_uri"] == "https://shop/cb"
