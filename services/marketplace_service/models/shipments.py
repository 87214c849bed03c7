"""Marketplace shipments created for storefront orders."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Shipment(Base):
    """Shipment record kept alongside the order's tracking fields."""

    __tablename__ = "shipments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Orders live in the store service; no cross-service foreign key
    order_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)

    ml_shipment_id: Mapped[str] = mapped_column(String(50), nullable=False)
    tracking_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    carrier: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    estimated_delivery: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<Shipment {self.ml_shipment_id} order={self.order_id}>"
