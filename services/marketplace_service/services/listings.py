"""Publishing storefront products as marketplace listings."""

import math
from decimal import Decimal
from typing import Any, Optional

from libs.common.logging import get_logger
from libs.common.service_client import mark_product_listing
from services.marketplace_service.models import MarketplaceCredential
from services.marketplace_service.services.credentials import call_with_refresh
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

CALLING_SERVICE = "marketplace"

# Covers marketplace commissions
PRICE_MARKUP = Decimal("0.15")
MAX_TITLE_LENGTH = 60
MAX_DESCRIPTION_LENGTH = 4000
PLACEHOLDER_PICTURE = "https://via.placeholder.com/500"
LISTING_TYPE = "gold_special"

ITEM_ATTRIBUTES = [
    {"id": "BRAND", "value_name": "3D2Store"},
    {"id": "MODEL", "value_name": "Personalizado"},
    {"id": "ITEM_CONDITION", "value_name": "Nuevo"},
]


def marketplace_price(price: Any) -> int:
    return math.floor(Decimal(str(price)) * (1 + PRICE_MARKUP))


def listing_picture(product: dict[str, Any]) -> str:
    for entry in product.get("images") or []:
        if isinstance(entry, str) and entry:
            return entry
        if isinstance(entry, dict) and entry.get("url"):
            return entry["url"]
    return product.get("image") or PLACEHOLDER_PICTURE


def build_item_body(product: dict[str, Any], category_id: str) -> dict[str, Any]:
    """Full item payload for a new listing."""
    name = product["name"]
    description = product.get("description") or name
    return {
        "title": name[:MAX_TITLE_LENGTH],
        "category_id": category_id,
        "price": marketplace_price(product["price"]),
        "currency_id": "ARS",
        "available_quantity": product.get("stock") or 1,
        "buying_mode": "buy_it_now",
        "condition": "new",
        "listing_type_id": LISTING_TYPE,
        "description": {"plain_text": description[:MAX_DESCRIPTION_LENGTH]},
        "pictures": [{"source": listing_picture(product)}],
        "attributes": ITEM_ATTRIBUTES,
    }


def build_update_body(item_body: dict[str, Any]) -> dict[str, Any]:
    # Title and category are locked once an item has sales
    return {
        "price": item_body["price"],
        "available_quantity": item_body["available_quantity"],
        "pictures": item_body["pictures"],
    }


async def sync_product_listing(
    db: AsyncSession, credential: MarketplaceCredential, product: dict[str, Any]
) -> dict[str, Any]:
    """
    Create or update the listing for a product and record the linkage.

    Linked products (ml_item_id set) are updated in place; others are
    published as new items. Raises MercadoLibreError when the marketplace
    rejects the item.
    """
    linked_item_id: Optional[str] = product.get("ml_item_id")

    category_id = await call_with_refresh(
        db, credential, lambda c: c.predict_category(product["name"])
    )
    item_body = build_item_body(product, category_id)
    logger.info(
        f"Syncing product {product['id']}: base ${product['price']} -> "
        f"${item_body['price']} in {category_id}"
    )

    if linked_item_id:
        action = "updated"
        update_body = build_update_body(item_body)
        result = await call_with_refresh(
            db, credential, lambda c: c.update_item(linked_item_id, update_body)
        )
    else:
        action = "created"
        result = await call_with_refresh(
            db, credential, lambda c: c.create_item(item_body)
        )

    ml_id = str(result.get("id") or linked_item_id)
    recorded = await mark_product_listing(
        product["id"],
        ml_item_id=ml_id,
        ml_status=result.get("status"),
        calling_service=CALLING_SERVICE,
    )
    if recorded is None:
        logger.error(f"Listing {ml_id} {action} but product {product['id']} not updated")

    return {
        "success": True,
        "action": action,
        "ml_id": ml_id,
        "permalink": result.get("permalink"),
        "status": result.get("status"),
    }
