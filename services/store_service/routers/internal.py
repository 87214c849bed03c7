"""Service-to-service internal endpoints for orders, stock and listings.

Auth: service-role JWT only (via ``require_service_role``). Payments and
marketplace services reach store data exclusively through these routes.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.dependencies import require_service_role
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.models import Order, Product, ShippingMethod
from services.store_service.schemas import (
    OrderPaymentUpdate,
    OrderResponse,
    OrderShipmentUpdate,
    ProductListingUpdate,
    ProductResponse,
    StockDecrementRequest,
    StockDecrementResponse,
)
from services.store_service.services.stock import decrement_stock
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(
    prefix="/internal/store",
    tags=["internal-store"],
    dependencies=[Depends(require_service_role)],
)
logger = get_logger(__name__)


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/orders/awaiting-shipment", response_model=list[OrderResponse])
async def orders_awaiting_shipment(db: AsyncSession = Depends(get_async_db)):
    """Paid orders that need a marketplace shipment and have none yet."""
    query = (
        select(Order)
        .where(
            Order.payment_status == "approved",
            Order.ml_shipment_id.is_(None),
            Order.shipping_method.in_(
                [m for m in ShippingMethod if m.needs_marketplace_shipment]
            ),
        )
        .order_by(Order.created_at)
    )
    result = await db.execute(query)
    return result.scalars().all()


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/orders/{order_id}/payment")
async def apply_payment(
    order_id: uuid.UUID,
    update_in: OrderPaymentUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Overwrite an order's status fields from a payment notification.

    Applying the same notification twice leaves the same final state.
    Unknown orders are a no-op.
    """
    order = await db.get(Order, order_id)
    if not order:
        logger.warning(f"Payment update for unknown order {order_id}")
        return {"updated": False, "order_id": str(order_id)}

    order.status = update_in.status
    order.payment_id = update_in.payment_id
    order.payment_status = update_in.payment_status
    await db.commit()

    logger.info(
        f"Order {order.order_number} -> {update_in.status.value} "
        f"(payment {update_in.payment_id}: {update_in.payment_status})"
    )
    return {
        "updated": True,
        "order_id": str(order.id),
        "status": order.status.value,
    }


@router.post("/orders/{order_id}/shipment", response_model=OrderResponse)
async def record_shipment(
    order_id: uuid.UUID,
    update_in: OrderShipmentUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    order.ml_shipment_id = update_in.ml_shipment_id
    order.tracking_number = update_in.tracking_number or update_in.ml_shipment_id
    await db.commit()
    await db.refresh(order)
    return order


# ============================================================================
# STOCK
# ============================================================================


@router.post("/stock/decrement", response_model=StockDecrementResponse)
async def stock_decrement(
    request: StockDecrementRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Decrement the product linked to a marketplace item, clamped at zero."""
    result = await decrement_stock(
        db,
        request.external_item_id,
        request.quantity,
        reference=request.reference,
    )
    return StockDecrementResponse(
        linked=result.linked,
        applied=result.applied,
        duplicate=result.duplicate,
        product_id=result.product_id,
        name=result.name,
        stock=result.stock,
    )


# ============================================================================
# PRODUCTS / LISTINGS
# ============================================================================


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_async_db)):
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("/products/{product_id}/listing", response_model=ProductResponse)
async def record_listing(
    product_id: int,
    update_in: ProductListingUpdate,
    db: AsyncSession = Depends(get_async_db),
):
    """Store the marketplace item linked to a product."""
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    product.ml_item_id = update_in.ml_item_id
    product.ml_status = update_in.ml_status
    product.last_ml_sync = utc_now()
    await db.commit()
    await db.refresh(product)
    return product
