"""Store inventory models: audit trail of stock changes."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import StockMovementType, enum_values
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

# ============================================================================
# INVENTORY MODELS
# ============================================================================


class StockMovement(Base):
    """One applied stock change.

    `reference` + `external_item_id` is unique, so a replayed marketplace
    notification for the same order line is recognised instead of decrementing
    twice.
    """

    __tablename__ = "stock_movements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)

    movement_type: Mapped[StockMovementType] = mapped_column(
        SAEnum(
            StockMovementType,
            values_callable=enum_values,
            name="stock_movement_type_enum",
        ),
        nullable=False,
    )
    requested_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # What was actually removed after clamping at zero
    applied_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_after: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    external_item_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    __table_args__ = (
        UniqueConstraint(
            "reference", "external_item_id", name="uq_stock_movements_reference_item"
        ),
    )

    def __repr__(self):
        return f"<StockMovement product={self.product_id} -{self.applied_quantity}>"
