"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def iso_now() -> str:
    """UTC now as an ISO-8601 string, the format the relay and providers expect."""
    return utc_now().isoformat()
