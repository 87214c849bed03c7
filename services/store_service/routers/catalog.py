"""Store catalog router: public product listing."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from libs.db.session import get_async_db
from services.store_service.models import Product
from services.store_service.schemas import ProductResponse
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


# ============================================================================
# CATALOG - PRODUCTS
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    in_stock: bool = False,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_async_db),
):
    """List published products, newest first."""
    query = select(Product).where(Product.draft.is_(False))

    if category:
        query = query.where(Product.category == category)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
        )
    if in_stock:
        query = query.where(or_(Product.stock.is_(None), Product.stock > 0))

    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    result = await db.execute(query.offset(offset).limit(limit))
    return result.scalars().all()


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_async_db),
):
    """Get a published product."""
    product = await db.get(Product, product_id)
    if not product or product.draft:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
