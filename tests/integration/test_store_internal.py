"""Integration tests for store_service internal (service-to-service) endpoints."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from libs.auth import dependencies as auth_dependencies
from services.store_service.models import OrderStatus, ShippingMethod
from tests.factories import OrderFactory, ProductFactory, persist


def _user_token(role: str = "authenticated") -> str:
    now = datetime.now(timezone.utc)
    return jwt.encode(
        {
            "sub": "user-1",
            "email": "buyer@example.com",
            "role": role,
            "exp": int((now + timedelta(minutes=5)).timestamp()),
        },
        auth_dependencies.settings.SUPABASE_JWT_SECRET,
        algorithm="HS256",
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_internal_requires_token(public_store_client):
    response = await public_store_client.post(
        "/internal/store/stock/decrement",
        json={"external_item_id": "MLA1", "quantity": 1},
    )

    assert response.status_code in (401, 403)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_internal_rejects_user_tokens(public_store_client):
    response = await public_store_client.post(
        "/internal/store/stock/decrement",
        json={"external_item_id": "MLA1", "quantity": 1},
        headers={"Authorization": f"Bearer {_user_token()}"},
    )

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_internal_accepts_service_tokens(public_store_client):
    response = await public_store_client.post(
        "/internal/store/stock/decrement",
        json={"external_item_id": "MLA404", "quantity": 1},
        headers={
            "Authorization": f"Bearer {auth_dependencies._service_role_jwt('tests')}"
        },
    )

    assert response.status_code == 200
    assert response.json()["linked"] is False


# ---------------------------------------------------------------------------
# Payment updates
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_apply_payment_is_idempotent(store_client, db_session):
    order = await persist(db_session, OrderFactory.create())
    body = {"status": "processing", "payment_id": "42", "payment_status": "approved"}

    first = await store_client.post(
        f"/internal/store/orders/{order.id}/payment", json=body
    )
    second = await store_client.post(
        f"/internal/store/orders/{order.id}/payment", json=body
    )

    assert first.json() == second.json()
    assert first.json() == {
        "updated": True,
        "order_id": str(order.id),
        "status": "processing",
    }
    await db_session.refresh(order)
    assert order.status == OrderStatus.PROCESSING
    assert order.payment_id == "42"
    assert order.payment_status == "approved"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_apply_payment_unknown_order(store_client):
    order_id = uuid.uuid4()

    response = await store_client.post(
        f"/internal/store/orders/{order_id}/payment",
        json={"status": "processing", "payment_id": "1", "payment_status": "approved"},
    )

    assert response.status_code == 200
    assert response.json() == {"updated": False, "order_id": str(order_id)}


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stock_decrement_replay(store_client, db_session):
    product = await persist(
        db_session, ProductFactory.create(stock=4, ml_item_id="MLA555")
    )
    body = {"external_item_id": "MLA555", "quantity": 3, "reference": "2000001"}

    first = await store_client.post("/internal/store/stock/decrement", json=body)
    second = await store_client.post("/internal/store/stock/decrement", json=body)

    assert first.json()["applied"] is True
    assert first.json()["stock"] == 1
    assert second.json()["duplicate"] is True
    assert second.json()["applied"] is False
    await db_session.refresh(product)
    assert product.stock == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stock_decrement_clamps(store_client, db_session):
    await persist(db_session, ProductFactory.create(stock=1, ml_item_id="MLA555"))

    response = await store_client.post(
        "/internal/store/stock/decrement",
        json={"external_item_id": "MLA555", "quantity": 5, "reference": "2000002"},
    )

    assert response.json()["stock"] == 0


# ---------------------------------------------------------------------------
# Shipments and listings
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_orders_awaiting_shipment(store_client, db_session):
    waiting = OrderFactory.create(payment_status="approved")
    pickup = OrderFactory.create(
        payment_status="approved", shipping_method=ShippingMethod.RETIRO
    )
    unpaid = OrderFactory.create(payment_status="pending")
    shipped = OrderFactory.create(payment_status="approved", ml_shipment_id="99")
    await persist(db_session, waiting, pickup, unpaid, shipped)

    response = await store_client.get("/internal/store/orders/awaiting-shipment")

    assert response.status_code == 200
    assert [o["id"] for o in response.json()] == [str(waiting.id)]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_record_shipment_defaults_tracking_to_shipment_id(
    store_client, db_session
):
    order = await persist(db_session, OrderFactory.create())

    response = await store_client.post(
        f"/internal/store/orders/{order.id}/shipment",
        json={"ml_shipment_id": "4455"},
    )

    assert response.status_code == 200
    assert response.json()["ml_shipment_id"] == "4455"
    assert response.json()["tracking_number"] == "4455"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_record_listing(store_client, db_session):
    product = await persist(db_session, ProductFactory.create())

    response = await store_client.post(
        f"/internal/store/products/{product.id}/listing",
        json={"ml_item_id": "MLA900001", "ml_status": "active"},
    )

    data = response.json()
    assert response.status_code == 200
    assert data["ml_item_id"] == "MLA900001"
    assert data["last_ml_sync"] is not None
