"""Store cart router: reconcile the browser cart with the live catalog."""

from fastapi import APIRouter, Depends, HTTPException
from libs.db.session import get_async_db
from services.store_service.models import Product
from services.store_service.schemas import (
    CartAddRequest,
    CartQuantityRequest,
    CartReconcileRequest,
    CartReconcileResponse,
    CartResponse,
)
from services.store_service.services.cart_sync import (
    RECONCILE_NOTICE,
    SANITIZE_NOTICE,
    CartError,
    add_to_cart,
    cart_totals,
    reconcile_cart,
    sanitize_cart,
    update_quantity,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


# ============================================================================
# CART HELPERS
# ============================================================================


async def _stock_map(db: AsyncSession, product_ids: set[int]) -> dict:
    """Map existing, published product ids to their stock."""
    if not product_ids:
        return {}
    result = await db.execute(
        select(Product.id, Product.stock).where(
            Product.id.in_(product_ids), Product.draft.is_(False)
        )
    )
    return {row.id: row.stock for row in result}


def _cart_response(lines) -> CartResponse:
    total, item_count = cart_totals(lines)
    return CartResponse(items=lines, total=total, item_count=item_count)


# ============================================================================
# CART OPERATIONS
# ============================================================================


@router.post("/cart/reconcile", response_model=CartReconcileResponse)
async def reconcile(
    request: CartReconcileRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Sanitize a stored cart and reconcile it with current products and stock.

    `notice` is set when anything was dropped or clamped.
    """
    lines, sanitized = sanitize_cart(request.items)
    stock_by_id = await _stock_map(db, {line.id for line in lines})
    lines, reconciled = reconcile_cart(lines, stock_by_id)

    notice = None
    if sanitized:
        notice = SANITIZE_NOTICE
    if reconciled:
        notice = RECONCILE_NOTICE
    return CartReconcileResponse(
        items=lines, changed=sanitized or reconciled, notice=notice
    )


@router.post("/cart/add", response_model=CartResponse)
async def add_item(
    request: CartAddRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Add a product to the cart, refusing out-of-stock or over-stock amounts."""
    product = await db.get(Product, request.product_id)
    if not product or product.draft:
        raise HTTPException(status_code=404, detail="Product not found")

    try:
        lines = add_to_cart(
            request.items,
            product.id,
            product.stock,
            quantity=request.quantity,
            sale_type=request.sale_type,
            name=product.name,
            price=product.price,
        )
    except CartError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _cart_response(lines)


@router.post("/cart/quantity", response_model=CartResponse)
async def change_quantity(
    request: CartQuantityRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Change a line's quantity by a delta (minimum 1)."""
    product = await db.get(Product, request.product_id)
    stock = product.stock if product else None
    try:
        lines = update_quantity(request.items, request.product_id, request.delta, stock)
    except CartError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _cart_response(lines)
