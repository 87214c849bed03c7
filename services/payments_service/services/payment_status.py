"""
Mapping from Mercado Pago payment status to local order status.

Pure functions with no database dependencies for easy testing. Order statuses
are the store service's values; they are spelled out here rather than imported
so the payments service does not depend on store models.
"""

from typing import Optional

ORDER_PENDING = "pending"
ORDER_PROCESSING = "processing"
ORDER_CANCELLED = "cancelled"

PAYMENT_STATUS_MAP = {
    "approved": ORDER_PROCESSING,
    "pending": ORDER_PENDING,
    "in_process": ORDER_PENDING,
    "rejected": ORDER_CANCELLED,
    "cancelled": ORDER_CANCELLED,
}


def map_payment_status(payment_status: Optional[str]) -> str:
    """Approved payments move the order to processing; unknown statuses stay pending."""
    return PAYMENT_STATUS_MAP.get(payment_status or "", ORDER_PENDING)
