"""Mercado Pago payment webhook.

Mercado Pago retries any non-2xx answer, so after configuration is checked
every path returns 200 and failures are only logged.
"""

import json
from typing import Any, Optional

from fastapi import APIRouter, Request
from libs.common.config import get_settings
from libs.common.errors import require_settings
from libs.common.logging import get_logger
from libs.common.service_client import apply_order_payment
from services.payments_service.mercadopago_client import (
    MercadoPagoError,
    get_mercadopago_client,
)
from services.payments_service.services.payment_status import map_payment_status

router = APIRouter(tags=["payments"])
logger = get_logger(__name__)

CALLING_SERVICE = "payments"


def _check_configuration() -> None:
    settings = get_settings()
    require_settings(MP_ACCESS_TOKEN=settings.MP_ACCESS_TOKEN)


def _parse_body(raw: bytes) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Payment webhook body is not valid JSON")
        return {}
    return payload if isinstance(payload, dict) else {}


def _notification_fields(
    payload: dict[str, Any], query: dict[str, str]
) -> tuple[Optional[str], Optional[str]]:
    """Return (type, resource id) from the JSON body or the legacy IPN query string."""
    data = payload.get("data") or {}
    notification_type = payload.get("type") or query.get("type") or query.get("topic")
    resource_id = (
        (data.get("id") if isinstance(data, dict) else None)
        or query.get("data.id")
        or query.get("id")
    )
    return notification_type, str(resource_id) if resource_id else None


async def _apply(
    order_id: str, payment_id: Optional[str], payment_status: str
) -> tuple[str, Optional[dict]]:
    order_status = map_payment_status(payment_status)
    result = await apply_order_payment(
        order_id,
        status=order_status,
        payment_id=payment_id,
        payment_status=payment_status,
        calling_service=CALLING_SERVICE,
    )
    return order_status, result


# ============================================================================
# ENDPOINTS
# ============================================================================


@router.get("/api/webhook")
@router.get("/payments/webhooks/mercadopago")
async def webhook_status():
    """Liveness check for the webhook URL configured in Mercado Pago."""
    _check_configuration()
    settings = get_settings()
    return {
        "ok": True,
        "message": "Webhook activo",
        "lookingFor": {
            "MP_ACCESS_TOKEN": bool(settings.MP_ACCESS_TOKEN),
            "DATABASE_URL": bool(settings.DATABASE_URL),
            "STORE_SERVICE_URL": bool(settings.STORE_SERVICE_URL),
        },
    }


@router.post("/api/webhook")
@router.post("/payments/webhooks/mercadopago")
async def mercadopago_webhook(request: Request):
    """
    Mercado Pago notification endpoint.

    - `payment`: fetch the payment, map its status and update the order named by
      `external_reference`.
    - `merchant_order`: same, using the first payment attached to the order.
    - `?test_payment_id=&order_id=`: manual replay of a known payment.
    - Anything else is acknowledged and ignored.
    """
    _check_configuration()

    try:
        query = dict(request.query_params)

        # Manual test mode
        if query.get("test_payment_id"):
            return await _handle_test_payment(
                query["test_payment_id"], query.get("order_id")
            )

        payload = _parse_body(await request.body())
        notification_type, resource_id = _notification_fields(payload, query)
        logger.info(
            f"Payment notification received: type={notification_type} id={resource_id}",
            extra={"extra_fields": {"action": payload.get("action")}},
        )

        if not notification_type and not resource_id:
            logger.warning("Payment webhook received an empty body")
            return {"received": True, "note": "empty body"}

        if notification_type == "payment" and resource_id:
            return await _handle_payment(resource_id)

        if notification_type == "merchant_order" and resource_id:
            return await _handle_merchant_order(resource_id)

        return {"received": True}

    except Exception as e:
        logger.error(f"Error processing payment notification: {e}", exc_info=True)
        return {"received": True, "error": "processing error"}


# ============================================================================
# HANDLERS
# ============================================================================


async def _handle_payment(payment_id: str) -> dict:
    client = get_mercadopago_client()
    try:
        payment = await client.get_payment(payment_id)
    except MercadoPagoError as e:
        logger.error(f"Could not fetch payment {payment_id}: {e.status_code} {e.message}")
        return {"received": True, "note": "mp fetch failed"}

    order_id = payment.external_reference
    if not order_id:
        logger.warning(f"Payment {payment_id} has no external_reference")
        return {"received": True}

    order_status, result = await _apply(order_id, payment.id, payment.status or "pending")
    if result is None:
        return {"received": True, "error": "db update failed"}
    if not result.get("updated"):
        return {"received": True, "note": "order not found", "orderId": order_id}

    logger.info(f"Order {order_id} updated to {order_status}")
    return {"success": True, "orderId": order_id, "status": order_status}


async def _handle_merchant_order(merchant_order_id: str) -> dict:
    client = get_mercadopago_client()
    try:
        merchant_order = await client.get_merchant_order(merchant_order_id)
    except MercadoPagoError as e:
        logger.error(
            f"Could not fetch merchant_order {merchant_order_id}: "
            f"{e.status_code} {e.message}"
        )
        return {"received": True, "note": "merchant_order fetch failed"}

    order_id = merchant_order.external_reference
    if not order_id:
        logger.warning(f"merchant_order {merchant_order_id} has no external_reference")
        return {"received": True, "note": "merchant_order missing external_reference"}

    payment = merchant_order.first_payment or {}
    payment_id = str(payment["id"]) if payment.get("id") else None
    payment_status = payment.get("status") or "pending"

    order_status, result = await _apply(order_id, payment_id, payment_status)
    if result is None:
        return {"received": True, "error": "db update failed (merchant_order)"}
    if not result.get("updated"):
        return {"received": True, "note": "order not found", "orderId": order_id}

    logger.info(f"Order {order_id} updated via merchant_order to {order_status}")
    return {
        "success": True,
        "orderId": order_id,
        "status": order_status,
        "source": "merchant_order",
    }


async def _handle_test_payment(payment_id: str, order_id: Optional[str]) -> dict:
    logger.info(f"Manual payment test: payment_id={payment_id} order_id={order_id}")
    client = get_mercadopago_client()
    try:
        payment = await client.get_payment(payment_id)
    except MercadoPagoError as e:
        logger.error(f"Test payment fetch failed: {e.status_code} {e.message}")
        return {"received": True, "note": "mp fetch failed (test)"}

    order_id = order_id or payment.external_reference
    if not order_id:
        return {"received": True, "note": "no order reference (test)"}

    order_status, result = await _apply(order_id, payment_id, payment.status or "pending")
    if result is None or not result.get("updated"):
        return {"received": True, "error": "db update failed (test)"}

    return {"success": True, "orderId": order_id, "status": order_status, "test": True}
