"""Shipping quotes, shipment creation and the operator retry sweep."""

import uuid
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.common.service_client import get_order, list_orders_awaiting_shipment
from libs.db.session import get_async_db
from services.marketplace_service.mercadolibre_client import MercadoLibreError
from services.marketplace_service.models import MarketplaceCredential
from services.marketplace_service.schemas import (
    CreateShipmentRequest,
    ShippingQuoteRequest,
)
from services.marketplace_service.services.credentials import (
    get_credential,
    get_latest_credential,
)
from services.marketplace_service.services.shipping import (
    CALLING_SERVICE,
    create_shipment_for_order,
    needs_marketplace_shipment,
    normalize_package,
    quote_shipping,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["marketplace-shipping"])
logger = get_logger(__name__)


# ============================================================================
# QUOTES
# ============================================================================


@router.get("/api/ml-quote-shipping")
async def quote_status():
    return {"ok": True, "message": "ml-quote-shipping up"}


@router.post("/api/ml-quote-shipping")
async def quote_shipping_cost(
    payload: ShippingQuoteRequest, db: AsyncSession = Depends(get_async_db)
):
    """Quote shipping for the checkout before payment."""
    credential = await get_latest_credential(db)
    if credential is None:
        logger.error("Shipping quote requested but no marketplace token is stored")
        raise HTTPException(
            status_code=404,
            detail="MercadoLibre shipping not available. Please contact support.",
        )

    dims = payload.dimensions
    package = normalize_package(dims.width, dims.height, dims.length, dims.weight)
    return await quote_shipping(db, credential, payload.zip_code_to, package)


# ============================================================================
# SHIPMENTS
# ============================================================================


@router.post("/api/ml-create-shipment")
async def create_shipment(
    payload: CreateShipmentRequest, db: AsyncSession = Depends(get_async_db)
):
    """Create the marketplace shipment for a paid order."""
    if payload.user_id:
        credential = await get_credential(db, payload.user_id)
    else:
        credential = await get_latest_credential(db)
    if credential is None:
        raise HTTPException(status_code=404, detail="ML token not found")

    order = await get_order(str(payload.order_id), calling_service=CALLING_SERVICE)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    if order.get("payment_status") != "approved":
        raise HTTPException(status_code=400, detail="Order not approved")

    return await create_shipment_for_order(db, credential, order)


async def _retry_order(
    db: AsyncSession, credential: MarketplaceCredential, order: dict[str, Any]
) -> dict[str, Any]:
    order_id = str(order["id"])
    try:
        result = await create_shipment_for_order(db, credential, order)
    except MercadoLibreError as e:
        logger.error(f"Shipment retry failed for order {order_id}: {e.message}")
        return {
            "order_id": order_id,
            "success": False,
            "error": "Failed to create ML shipment",
            "details": e.response_data,
        }
    except httpx.HTTPError as e:
        logger.error(f"Shipment retry failed for order {order_id}: {e}")
        return {"order_id": order_id, "success": False, "error": str(e)}
    return {"order_id": order_id, **result}


@router.get("/api/ml-retry-shipments")
async def retry_shipments(
    order_id: Optional[uuid.UUID] = Query(None),
    db: AsyncSession = Depends(get_async_db),
    current_user: AuthUser = Depends(require_admin),
):
    """
    Re-run shipment creation for paid orders that have no shipment yet.

    With `order_id` only that order is checked and retried. Without it every
    awaiting order is processed one after another and each result is reported.
    """
    credential = await get_latest_credential(db)
    if credential is None:
        raise HTTPException(
            status_code=404,
            detail="No ML token found. Complete OAuth callback first.",
        )

    if order_id is not None:
        order = await get_order(str(order_id), calling_service=CALLING_SERVICE)
        if order is None:
            raise HTTPException(status_code=404, detail="Order not found")
        if order.get("payment_status") != "approved":
            raise HTTPException(status_code=400, detail="Order not approved")
        if order.get("ml_shipment_id") or order.get("tracking_number"):
            return {
                "message": "Order already has tracking",
                "order_id": str(order_id),
                "ml_shipment_id": order.get("ml_shipment_id"),
                "tracking_number": order.get("tracking_number"),
            }
        if not needs_marketplace_shipment(order.get("shipping_method")):
            return {
                "message": "Shipping method does not require ML",
                "order_id": str(order_id),
                "shipping_method": order.get("shipping_method"),
            }

        result = await _retry_order(db, credential, order)
        if result["success"]:
            return result
        return JSONResponse(status_code=502, content=result)

    orders = await list_orders_awaiting_shipment(calling_service=CALLING_SERVICE)
    if not orders:
        return {"message": "No orders found requiring ML shipment retry", "count": 0}

    results = []
    for order in orders:
        results.append(await _retry_order(db, credential, order))

    logger.info(f"Shipment retry sweep processed {len(results)} orders")
    return {"message": "Retry completed", "total": len(results), "results": results}
