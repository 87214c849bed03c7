"""Unit tests for stock decrements.

Tests call the stock service directly with the db_session fixture.
"""

import pytest
from services.store_service.models import StockMovement, StockMovementType
from services.store_service.services.stock import decrement_stock, record_adjustment
from sqlalchemy import func, select
from tests.factories import ProductFactory, persist


async def _movements(db) -> int:
    return (await db.execute(select(func.count(StockMovement.id)))).scalar_one()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_decrement_linked_product(db_session):
    product = await persist(db_session, ProductFactory.create(stock=5, ml_item_id="MLA1"))

    result = await decrement_stock(db_session, "MLA1", 2, reference="ORD-1")

    assert result.linked is True
    assert result.applied is True
    assert result.stock == 3
    await db_session.refresh(product)
    assert product.stock == 3

    movement = (await db_session.execute(select(StockMovement))).scalar_one()
    assert movement.movement_type == StockMovementType.MARKETPLACE_SALE
    assert movement.requested_quantity == 2
    assert movement.applied_quantity == 2
    assert movement.stock_after == 3


@pytest.mark.asyncio
@pytest.mark.unit
async def test_decrement_clamps_at_zero(db_session):
    product = await persist(db_session, ProductFactory.create(stock=1, ml_item_id="MLA1"))

    result = await decrement_stock(db_session, "MLA1", 5, reference="ORD-1")

    assert result.stock == 0
    await db_session.refresh(product)
    assert product.stock == 0
    movement = (await db_session.execute(select(StockMovement))).scalar_one()
    assert movement.applied_quantity == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unlinked_item_changes_nothing(db_session):
    product = await persist(db_session, ProductFactory.create(stock=5, ml_item_id="MLA1"))

    result = await decrement_stock(db_session, "MLA404", 2, reference="ORD-1")

    assert result.linked is False
    assert result.applied is False
    await db_session.refresh(product)
    assert product.stock == 5
    assert await _movements(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_untracked_stock_counts_as_zero(db_session):
    product = await persist(
        db_session, ProductFactory.create(stock=None, ml_item_id="MLA1")
    )

    result = await decrement_stock(db_session, "MLA1", 3, reference="ORD-1")

    assert result.linked is True
    assert result.applied is True
    assert result.stock == 0
    await db_session.refresh(product)
    assert product.stock == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_same_reference_is_applied_once(db_session):
    product = await persist(db_session, ProductFactory.create(stock=5, ml_item_id="MLA1"))

    first = await decrement_stock(db_session, "MLA1", 2, reference="ORD-1")
    second = await decrement_stock(db_session, "MLA1", 2, reference="ORD-1")

    assert first.applied is True
    assert second.duplicate is True
    assert second.applied is False
    await db_session.refresh(product)
    assert product.stock == 3
    assert await _movements(db_session) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_different_orders_both_apply(db_session):
    product = await persist(db_session, ProductFactory.create(stock=5, ml_item_id="MLA1"))

    await decrement_stock(db_session, "MLA1", 2, reference="ORD-1")
    await decrement_stock(db_session, "MLA1", 2, reference="ORD-2")

    await db_session.refresh(product)
    assert product.stock == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_adjustment_records_restock(db_session):
    product = await persist(db_session, ProductFactory.create(stock=2))

    product.stock = 7
    record_adjustment(db_session, product, 2, reference="admin:ops")
    await db_session.commit()

    movement = (await db_session.execute(select(StockMovement))).scalar_one()
    assert movement.movement_type == StockMovementType.ADJUSTMENT
    assert movement.product_id == product.id
    assert movement.applied_quantity == -5
    assert movement.stock_after == 7
    assert movement.external_item_id is None
