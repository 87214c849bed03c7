"""Outbound notification relay (WhatsApp/Telegram/email routing happens downstream).

The relay is a single JSON webhook (NOTIFY_WEBHOOK_URL). Sends are
fire-and-forget: failures are logged and reported as False, never raised, so a
relay outage cannot fail the order flow that triggered it.
"""

from decimal import Decimal
from typing import Any, Optional, Union

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

Number = Union[int, float, Decimal, str, None]


class NotificationRelay:
    """Posts JSON payloads to the notification relay webhook."""

    def __init__(self, webhook_url: Optional[str] = None, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send(self, payload: dict[str, Any]) -> bool:
        """Post `payload` to the relay. Returns True when the relay accepted it."""
        event = payload.get("event", "message")
        if not self.enabled:
            logger.warning(f"Notification relay not configured - {event} not sent")
            return False

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Notification relay request failed for {event}: {e}")
            return False

        if response.status_code >= 400:
            logger.error(
                f"Notification relay rejected {event}: "
                f"{response.status_code} {response.text[:200]}"
            )
            return False

        logger.info(f"Sent {event} to notification relay")
        return True


_relay: Optional[NotificationRelay] = None


def get_notification_relay() -> NotificationRelay:
    """Get or create the relay singleton."""
    global _relay
    if _relay is None:
        _relay = NotificationRelay(get_settings().NOTIFY_WEBHOOK_URL)
    return _relay


def build_sale_message(
    order_id: Any, buyer_name: str, total: Number, items: list[str]
) -> str:
    """WhatsApp-formatted summary of a marketplace sale."""
    lines = "\n".join(items)
    return (
        "💰 *¡Nueva Venta ML!*\n"
        f"🆔 Orden: {order_id}\n"
        f"👤 Comprador: {buyer_name}\n"
        f"💵 Total: ${total}\n"
        "📦 *Productos:*\n"
        f"{lines}\n"
        "_Stock actualizado automáticamente_ ✅"
    )


def build_sale_payload(
    order_id: Any,
    buyer_name: str,
    total: Number,
    items: list[str],
    timestamp: str,
) -> dict[str, Any]:
    """Relay payload for the `ml_sale` event."""
    return {
        "event": "ml_sale",
        "order_id": order_id,
        "customer_name": buyer_name,
        "total": total,
        "items": ", ".join(items),
        "detailed_message": build_sale_message(order_id, buyer_name, total, items),
        "timestamp": timestamp,
    }
