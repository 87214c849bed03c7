"""Store orders router: checkout and order tracking."""

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.models import Order, OrderItem, OrderStatus, Product
from services.store_service.schemas import (
    CheckoutRequest,
    OrderResponse,
    OrderTrackingResponse,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])
logger = get_logger(__name__)


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post(
    "/checkout", response_model=OrderResponse, status_code=status.HTTP_201_CREATED
)
async def checkout(
    request: CheckoutRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Create a pending order from the browser cart.

    Prices and names come from the catalog, never from the client. The order
    stays `pending` until the payment webhook reports on it.
    """
    requested: dict[int, int] = {}
    for item in request.items:
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    product_ids = set(requested)
    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {p.id: p for p in result.scalars().all()}

    subtotal = Decimal("0")
    line_items = []
    for item in request.items:
        product = products.get(item.product_id)
        if not product or product.draft:
            raise HTTPException(
                status_code=400,
                detail=f"Product {item.product_id} is not available",
            )
        # Unit and wholesale lines of one product share its stock
        if product.stock is not None and requested[product.id] > product.stock:
            raise HTTPException(
                status_code=400,
                detail=f"Solo hay {product.stock} unidades disponibles de {product.name}",
            )
        subtotal += product.price * item.quantity
        line_items.append(
            OrderItem(
                product_id=product.id,
                name=product.name,
                sale_type=item.sale_type,
                quantity=item.quantity,
                price=product.price,
            )
        )

    # Pickup and arranged delivery are never charged; courier and post costs
    # come from the quote the buyer saw
    shipping_cost = (
        request.shipping_cost
        if request.shipping_method.needs_marketplace_shipment
        else Decimal("0")
    )

    order = Order(
        order_number=Order.generate_order_number(),
        customer_name=request.customer_name,
        customer_email=request.customer_email,
        customer_phone=request.customer_phone,
        customer_address=request.customer_address,
        customer_city=request.customer_city,
        customer_province=request.customer_province,
        customer_postal_code=request.customer_postal_code,
        street_name=request.street_name,
        street_number=request.street_number,
        shipping_method=request.shipping_method,
        shipping_cost=shipping_cost,
        subtotal=subtotal,
        total=subtotal + shipping_cost,
        status=OrderStatus.PENDING,
        notes=request.notes,
        items=line_items,
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)

    logger.info(f"Order {order.order_number} created, total {order.total}")
    return order


# ============================================================================
# ORDER TRACKING
# ============================================================================


@router.get("/orders/track/{order_number}", response_model=OrderTrackingResponse)
async def track_order(
    order_number: str,
    db: AsyncSession = Depends(get_async_db),
):
    """Public tracking view by order number."""
    result = await db.execute(
        select(Order).where(Order.order_number == order_number.strip().upper())
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_db),
):
    """Get an order by id (the id is what the payment redirect carries)."""
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
