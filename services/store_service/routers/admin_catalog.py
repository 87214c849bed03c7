"""Admin store router: product management and order status."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.models import Order, OrderStatus, Product
from services.store_service.schemas import (
    OrderResponse,
    OrderStatusUpdate,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)
from services.store_service.services.stock import record_adjustment
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])
logger = get_logger(__name__)


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def list_all_products(
    include_drafts: bool = True,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all products (including drafts)."""
    query = select(Product).order_by(Product.created_at.desc(), Product.id.desc())
    if not include_drafts:
        query = query.where(Product.draft.is_(False))
    result = await db.execute(query)
    return result.scalars().all()


@router.post(
    "/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED
)
async def create_product(
    product_in: ProductCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a new product."""
    product = Product(**product_in.model_dump())
    db.add(product)
    await db.commit()
    await db.refresh(product)
    logger.info(f"Product {product.id} created by {current_user.user_id}")
    return product


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Update a product."""
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    stock_before = product.stock
    update_data = product_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(product, field, value)

    if "stock" in update_data and product.stock != stock_before:
        record_adjustment(
            db, product, stock_before, reference=f"admin:{current_user.user_id}"[:100]
        )

    await db.commit()
    await db.refresh(product)
    return product


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a product. Past orders keep their line item snapshots."""
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    await db.delete(product)
    await db.commit()
    logger.info(f"Product {product_id} deleted by {current_user.user_id}")


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/orders", response_model=list[OrderResponse])
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List orders, newest first."""
    query = select(Order).order_by(Order.created_at.desc())
    if status_filter:
        query = query.where(Order.status == status_filter)
    result = await db.execute(query.offset(offset).limit(limit))
    return result.scalars().all()


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    update_in: OrderStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Move an order through fulfillment (shipped, delivered, completed...)."""
    order = await db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    order.status = update_in.status
    if update_in.tracking_number is not None:
        order.tracking_number = update_in.tracking_number

    await db.commit()
    await db.refresh(order)
    logger.info(
        f"Order {order.order_number} set to {order.status.value} by {current_user.user_id}"
    )
    return order
