"""
Product feed export for ad catalogs (Meta/Google).

One header line plus one line per product, comma separated, text fields
double-quoted with embedded quotes doubled and newlines removed.
"""

from decimal import Decimal
from typing import Iterable, Optional

from services.store_service.models import Product

FEED_COLUMNS = [
    "id",
    "title",
    "description",
    "availability",
    "condition",
    "price",
    "link",
    "image_link",
    "brand",
    "google_product_category",
]

# Google product taxonomy ids
GOOGLE_CATEGORY_DECOR = "632"
GOOGLE_CATEGORY_TOYS = "1239"
GOOGLE_CATEGORY_CRAFTS = "500044"


def escape_csv(value: Optional[str]) -> str:
    """Quote a free-text field; empty values stay empty."""
    if not value:
        return ""
    clean = str(value).replace("\n", " ").replace("\r", "")
    return '"' + clean.replace('"', '""') + '"'


def _quote_if_needed(value: str) -> str:
    if any(ch in value for ch in ',"\n\r'):
        return escape_csv(value)
    return value


def google_category(category: Optional[str]) -> str:
    cat = (category or "").lower()
    result = GOOGLE_CATEGORY_DECOR
    if "juguete" in cat or "toy" in cat:
        result = GOOGLE_CATEGORY_TOYS
    # Checked last: a 3D-printed toy is listed as crafts
    if "3d" in cat:
        result = GOOGLE_CATEGORY_CRAFTS
    return result


def format_price(price: Optional[Decimal]) -> str:
    return f"{Decimal(price or 0):.2f} ARS"


def product_row(product: Product, base_url: str, brand: str) -> str:
    availability = "in stock" if product.stock and product.stock > 0 else "out of stock"
    return ",".join(
        [
            str(product.id),
            escape_csv(product.name),
            escape_csv(product.description),
            availability,
            "new",
            format_price(product.price),
            f"{base_url}/?product_id={product.id}",
            _quote_if_needed(product.primary_image or ""),
            _quote_if_needed(brand),
            google_category(product.category),
        ]
    )


def build_catalog_csv(products: Iterable[Product], base_url: str, brand: str) -> str:
    """Render the feed. N products always produce exactly N+1 lines."""
    base_url = base_url.rstrip("/")
    rows = [",".join(FEED_COLUMNS)]
    rows.extend(product_row(product, base_url, brand) for product in products)
    return "\n".join(rows)
