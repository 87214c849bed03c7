"""Integration tests for the Mercado Pago webhook.

Store updates go through the internal API of an in-process store app
(`store_bridge`), so the whole payment -> order path runs for real.
"""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from services.payments_service.mercadopago_client import (
    MercadoPagoError,
    MerchantOrder,
    PaymentDetails,
)
from services.store_service.models import OrderStatus
from tests.factories import OrderFactory, persist

CLIENT_FACTORY = "services.payments_service.routers.webhooks.get_mercadopago_client"


@pytest.fixture
def mp_configured(set_env):
    set_env(MP_ACCESS_TOKEN="TEST-access-token")


def _mp_client(payment=None, merchant_order=None, error=None):
    client = MagicMock()
    client.get_payment = AsyncMock(return_value=payment, side_effect=error)
    client.get_merchant_order = AsyncMock(return_value=merchant_order, side_effect=error)
    return client


@pytest.mark.asyncio
@pytest.mark.integration
async def test_webhook_liveness(payments_client, mp_configured):
    response = await payments_client.get("/api/webhook")

    assert response.status_code == 200
    data = response.json()
    assert data["ok"] is True
    assert data["lookingFor"]["MP_ACCESS_TOKEN"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_missing_access_token_is_server_misconfigured(payments_client, set_env):
    set_env(MP_ACCESS_TOKEN=None, MP_ACCESS=None, VITE_MP_ACCESS=None)

    response = await payments_client.post(
        "/api/webhook", json={"type": "payment", "data": {"id": "1"}}
    )

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Server misconfigured"
    assert data["missing"] == ["MP_ACCESS_TOKEN"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_empty_body_is_acknowledged(payments_client, mp_configured):
    response = await payments_client.post("/api/webhook", content=b"")

    assert response.status_code == 200
    assert response.json() == {"received": True, "note": "empty body"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unrelated_topic_is_acknowledged(payments_client, mp_configured):
    response = await payments_client.post(
        "/api/webhook", json={"type": "plan", "data": {"id": "7"}}
    )

    assert response.status_code == 200
    assert response.json() == {"received": True}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_approved_payment_moves_order_to_processing(
    payments_client, db_session, store_bridge, mp_configured
):
    order = await persist(db_session, OrderFactory.create())
    payment = PaymentDetails(
        id="1320001", status="approved", external_reference=str(order.id)
    )

    with patch(CLIENT_FACTORY, return_value=_mp_client(payment=payment)):
        response = await payments_client.post(
            "/api/webhook", json={"type": "payment", "data": {"id": "1320001"}}
        )

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "orderId": str(order.id),
        "status": "processing",
    }
    await db_session.refresh(order)
    assert order.status == OrderStatus.PROCESSING
    assert order.payment_id == "1320001"
    assert order.payment_status == "approved"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_legacy_query_notification(
    payments_client, db_session, store_bridge, mp_configured
):
    order = await persist(db_session, OrderFactory.create())
    payment = PaymentDetails(
        id="1320002", status="rejected", external_reference=str(order.id)
    )

    with patch(CLIENT_FACTORY, return_value=_mp_client(payment=payment)):
        response = await payments_client.post(
            "/api/webhook?topic=payment&id=1320002"
        )

    assert response.json()["status"] == "cancelled"
    await db_session.refresh(order)
    assert order.status == OrderStatus.CANCELLED


@pytest.mark.asyncio
@pytest.mark.integration
async def test_redelivery_leaves_same_state(
    payments_client, db_session, store_bridge, mp_configured
):
    order = await persist(db_session, OrderFactory.create())
    payment = PaymentDetails(
        id="1320003", status="approved", external_reference=str(order.id)
    )
    body = {"type": "payment", "data": {"id": "1320003"}}

    with patch(CLIENT_FACTORY, return_value=_mp_client(payment=payment)):
        first = await payments_client.post("/api/webhook", json=body)
        second = await payments_client.post("/api/webhook", json=body)

    assert first.json() == second.json()
    await db_session.refresh(order)
    assert order.status == OrderStatus.PROCESSING


@pytest.mark.asyncio
@pytest.mark.integration
async def test_merchant_order_uses_first_payment(
    payments_client, db_session, store_bridge, mp_configured
):
    order = await persist(db_session, OrderFactory.create())
    merchant_order = MerchantOrder(
        id="88",
        external_reference=str(order.id),
        payments=[
            {"id": 555, "status": "approved"},
            {"id": 556, "status": "rejected"},
        ],
    )

    with patch(CLIENT_FACTORY, return_value=_mp_client(merchant_order=merchant_order)):
        response = await payments_client.post(
            "/api/webhook", json={"type": "merchant_order", "data": {"id": "88"}}
        )

    data = response.json()
    assert data["source"] == "merchant_order"
    assert data["status"] == "processing"
    await db_session.refresh(order)
    assert order.payment_id == "555"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_payment_fetch_failure_is_acknowledged(
    payments_client, store_bridge, mp_configured
):
    error = MercadoPagoError("not found", status_code=404)

    with patch(CLIENT_FACTORY, return_value=_mp_client(error=error)):
        response = await payments_client.post(
            "/api/webhook", json={"type": "payment", "data": {"id": "404"}}
        )

    assert response.status_code == 200
    assert response.json() == {"received": True, "note": "mp fetch failed"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_payment_for_unknown_order(payments_client, store_bridge, mp_configured):
    payment = PaymentDetails(
        id="1320004", status="approved", external_reference=str(uuid.uuid4())
    )

    with patch(CLIENT_FACTORY, return_value=_mp_client(payment=payment)):
        response = await payments_client.post(
            "/api/webhook", json={"type": "payment", "data": {"id": "1320004"}}
        )

    assert response.status_code == 200
    assert response.json()["note"] == "order not found"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_manual_test_payment(
    payments_client, db_session, store_bridge, mp_configured
):
    order = await persist(db_session, OrderFactory.create())
    payment = PaymentDetails(id="77", status="in_process", external_reference=None)

    with patch(CLIENT_FACTORY, return_value=_mp_client(payment=payment)):
        response = await payments_client.post(
            f"/api/webhook?test_payment_id=77&order_id={order.id}"
        )

    data = response.json()
    assert data["test"] is True
    assert data["status"] == "pending"
