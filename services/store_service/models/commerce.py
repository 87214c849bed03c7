"""Store commerce models: orders and their line items."""

import random
import string
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.store_service.models.enums import (
    OrderStatus,
    ShippingMethod,
    enum_values,
)
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# ORDER MODELS
# ============================================================================


class Order(Base):
    """Orders. Never deleted; status moves forward as payments and shipments land."""

    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_number: Mapped[str] = mapped_column(
        String(30), unique=True, nullable=False, index=True
    )

    # Customer
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Address as typed by the buyer
    customer_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    customer_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    customer_province: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    customer_postal_code: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True
    )
    # Structured parts, when checkout captured them
    street_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    street_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Pricing (ARS)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    shipping_cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=0, server_default="0"
    )
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="order_status_enum",
        ),
        default=OrderStatus.PENDING,
        server_default="pending",
    )

    # Payment processor
    payment_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payment_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Fulfillment
    shipping_method: Mapped[ShippingMethod] = mapped_column(
        SAEnum(
            ShippingMethod,
            values_callable=enum_values,
            name="shipping_method_enum",
        ),
        default=ShippingMethod.RETIRO,
        server_default="retiro",
    )
    tracking_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    ml_shipment_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (Index("ix_orders_payment_status", "payment_status"),)

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @staticmethod
    def generate_order_number() -> str:
        """Generate a unique order number like 3D2-20260104-A1B2C."""
        date_part = utc_now().strftime("%Y%m%d")
        random_part = "".join(
            random.choices(string.ascii_uppercase + string.digits, k=5)
        )
        return f"3D2-{date_part}-{random_part}"

    def __repr__(self):
        return f"<Order {self.order_number} status={self.status}>"


class OrderItem(Base):
    """Order line items (snapshot at order time)."""

    __tablename__ = "order_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    # No FK: products may be deleted, the snapshot stays
    product_id: Mapped[int] = mapped_column(Integer, nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sale_type: Mapped[str] = mapped_column(
        String(20), default="unidad", server_default="unidad"
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.name} qty={self.quantity}>"
