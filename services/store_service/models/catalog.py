"""Store catalog models."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Integer, Numeric
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

# ============================================================================
# CATALOG MODELS
# ============================================================================


class Product(Base):
    """Products sold on the storefront (and optionally listed on the marketplace)."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Basic info
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    stock: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Images: legacy single url plus a list of url strings or {"url", "color"}
    image: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    images: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    draft: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")

    # Marketplace linkage
    ml_item_id: Mapped[Optional[str]] = mapped_column(
        String(50), index=True, nullable=True
    )
    ml_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_ml_sync: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("stock IS NULL OR stock >= 0", name="products_stock_non_negative"),
    )

    @property
    def primary_image(self) -> Optional[str]:
        """First gallery image (string or {"url"}) falling back to `image`."""
        if self.images:
            first = self.images[0]
            if isinstance(first, dict):
                url = first.get("url")
                if url:
                    return url
            elif first:
                return first
        return self.image

    def __repr__(self):
        return f"<Product {self.id} {self.name}>"
