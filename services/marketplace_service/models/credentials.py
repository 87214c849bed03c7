"""Marketplace OAuth credentials."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class MarketplaceCredential(Base):
    """One row per marketplace account; a new grant overwrites the old one.

    The store operates a single seller account, so most callers just take the
    most recently updated row.
    """

    __tablename__ = "ml_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expires_in: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    scope: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    token_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, index=True
    )

    def __repr__(self):
        return f"<MarketplaceCredential user={self.user_id}>"
