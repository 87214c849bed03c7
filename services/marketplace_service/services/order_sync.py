"""Marketplace sale processing: stock sync and the sale notification."""

from typing import Any

from libs.common.datetime_utils import iso_now
from libs.common.logging import get_logger
from libs.common.notifications import build_sale_payload, get_notification_relay
from libs.common.service_client import decrement_stock_by_external_item
from services.marketplace_service.models import MarketplaceCredential
from services.marketplace_service.services.credentials import call_with_refresh
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

CALLING_SERVICE = "marketplace"
ORDER_TOPICS = ("orders", "orders_v2")

LINE_APPLIED = "applied"
LINE_DUPLICATE = "duplicate"
LINE_UNLINKED = "unlinked"
LINE_FAILED = "failed"


def buyer_display_name(order: dict[str, Any]) -> str:
    buyer = order.get("buyer") or {}
    return f"{buyer.get('first_name') or ''} {buyer.get('last_name') or ''}"


def describe_line(quantity: Any, name: str, linked: bool) -> str:
    if linked:
        return f"{quantity}x {name}"
    return f"{quantity}x {name} (No vinculado)"


def group_order_lines(lines: list[dict[str, Any]]) -> dict[str, list[dict[str, Any]]]:
    """Order lines keyed by marketplace item id, first appearance first.

    Variations of one listing arrive as separate lines sharing the item id.
    """
    grouped: dict[str, list[dict[str, Any]]] = {}
    for line in lines:
        item_id = str((line.get("item") or {}).get("id") or "")
        grouped.setdefault(item_id, []).append(line)
    return grouped


async def sync_order_item(
    order_id: str, item_id: str, lines: list[dict[str, Any]]
) -> tuple[list[str], str]:
    """
    Decrement local stock once for every line of one marketplace item.

    The decrement carries the summed quantity, so the (order, item) ledger key
    is written once per order. Returns (one summary per line, outcome) where
    outcome is one of LINE_APPLIED, LINE_DUPLICATE, LINE_UNLINKED or LINE_FAILED.
    """
    quantity = sum(line.get("quantity") or 0 for line in lines)

    def summaries(linked: bool, local_name: Any = None) -> list[str]:
        out = []
        for line in lines:
            title = (line.get("item") or {}).get("title") or item_id
            out.append(describe_line(line.get("quantity") or 0, local_name or title, linked))
        return out

    result = await decrement_stock_by_external_item(
        item_id,
        quantity,
        reference=order_id,
        calling_service=CALLING_SERVICE,
    )

    if result is None:
        logger.error(f"Stock sync failed for item {item_id} in order {order_id}")
        return summaries(linked=False), LINE_FAILED

    if not result.get("linked"):
        logger.info(f"Marketplace item {item_id} is not linked to a product")
        return summaries(linked=False), LINE_UNLINKED

    name = result.get("name")
    if result.get("duplicate"):
        logger.info(f"Order {order_id} item {item_id} already applied, skipping")
        return summaries(True, name), LINE_DUPLICATE

    logger.info(f"Stock updated for {name}: {result.get('stock')}")
    return summaries(True, name), LINE_APPLIED


async def process_order_notification(
    db: AsyncSession, credential: MarketplaceCredential, resource: str
) -> dict[str, Any]:
    """
    Fetch the order named by `resource`, sync every item and notify the relay.

    Items are processed independently: an unlinked or failing item does not
    stop the rest. A redelivered notification (some item already applied,
    none applied now) sends no second notification.
    """
    order = await call_with_refresh(db, credential, lambda c: c.get_resource(resource))

    order_id = str(order.get("id"))
    lines = order.get("order_items") or []

    items: list[str] = []
    outcomes: list[str] = []
    for item_id, item_lines in group_order_lines(lines).items():
        summaries, outcome = await sync_order_item(order_id, item_id, item_lines)
        items.extend(summaries)
        outcomes.append(outcome)

    replay = LINE_DUPLICATE in outcomes and LINE_APPLIED not in outcomes
    if replay:
        logger.info(f"Order {order_id} was already processed, notification skipped")
    else:
        await get_notification_relay().send(
            build_sale_payload(
                order.get("id"),
                buyer_display_name(order),
                order.get("total_amount"),
                items,
                iso_now(),
            )
        )

    return {"success": True, "order": order.get("id"), "items": items}
