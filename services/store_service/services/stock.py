"""
Stock changes for the store catalog.

Stock is decremented with a single conditional UPDATE that clamps at zero, so
concurrent sales of the same product cannot interleave a read and a write.
Each applied change is written to the `stock_movements` ledger in the same
transaction.
"""

from dataclasses import dataclass
from typing import Optional

from libs.common.logging import get_logger
from services.store_service.models import Product, StockMovement, StockMovementType
from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass
class StockDecrementResult:
    linked: bool
    applied: bool = False
    duplicate: bool = False
    product_id: Optional[int] = None
    name: Optional[str] = None
    stock: Optional[int] = None


async def _movement_exists(
    db: AsyncSession, reference: str, external_item_id: str
) -> bool:
    query = select(StockMovement.id).where(
        StockMovement.reference == reference,
        StockMovement.external_item_id == external_item_id,
    )
    return (await db.execute(query)).scalar_one_or_none() is not None


async def decrement_stock(
    db: AsyncSession,
    external_item_id: str,
    quantity: int,
    reference: Optional[str] = None,
) -> StockDecrementResult:
    """
    Decrement the product linked to a marketplace item by `quantity`.

    - No linked product: reported as unlinked, nothing changes.
    - `reference` already applied for this item: reported as duplicate.
    - Otherwise stock becomes max(0, stock - quantity); untracked stock (NULL)
      counts as zero, so it ends at 0.
    """
    result = await db.execute(
        select(Product)
        .where(Product.ml_item_id == external_item_id)
        .execution_options(populate_existing=True)
    )
    product = result.scalars().first()
    if product is None:
        logger.warning(f"No local product linked to marketplace item {external_item_id}")
        return StockDecrementResult(linked=False)

    if reference and await _movement_exists(db, reference, external_item_id):
        logger.info(
            f"Stock for {external_item_id} already applied for {reference}, skipping"
        )
        return StockDecrementResult(
            linked=True,
            duplicate=True,
            product_id=product.id,
            name=product.name,
            stock=product.stock,
        )

    product_id, name, stock_before = product.id, product.name, product.stock

    current = func.coalesce(Product.stock, 0)
    await db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=case((current >= quantity, current - quantity), else_=0))
        .execution_options(synchronize_session=False)
    )
    new_stock = (
        await db.execute(select(Product.stock).where(Product.id == product_id))
    ).scalar_one()

    applied_quantity = min(quantity, stock_before or 0)
    db.add(
        StockMovement(
            product_id=product_id,
            movement_type=StockMovementType.MARKETPLACE_SALE,
            requested_quantity=quantity,
            applied_quantity=applied_quantity,
            stock_after=new_stock,
            reference=reference,
            external_item_id=external_item_id,
        )
    )

    try:
        await db.commit()
    except IntegrityError:
        # A concurrent delivery of the same notification won the insert
        await db.rollback()
        logger.info(f"Concurrent stock change for {external_item_id}/{reference}")
        return StockDecrementResult(
            linked=True, duplicate=True, product_id=product_id, name=name
        )

    logger.info(
        f"Stock for product {product_id} ({name}): {stock_before} -> {new_stock}"
    )
    return StockDecrementResult(
        linked=True,
        applied=True,
        product_id=product_id,
        name=name,
        stock=new_stock,
    )


def record_adjustment(
    db: AsyncSession,
    product: Product,
    stock_before: Optional[int],
    reference: Optional[str] = None,
) -> StockMovement:
    """
    Add a ledger row for a manual stock edit; the caller commits it together
    with the product change. Quantities are positive when stock was removed
    and negative when it was added.
    """
    removed = (stock_before or 0) - (product.stock or 0)
    movement = StockMovement(
        product_id=product.id,
        movement_type=StockMovementType.ADJUSTMENT,
        requested_quantity=removed,
        applied_quantity=removed,
        stock_after=product.stock,
        reference=reference,
    )
    db.add(movement)
    return movement
