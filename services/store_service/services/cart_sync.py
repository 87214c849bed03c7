"""
Business logic for the browser cart.

Pure functions with no database dependencies for easy testing. The cart lives
in the customer's browser and is never authoritative; these helpers only keep
it consistent with the live catalog.
"""

from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError
from services.store_service.models import SaleType
from services.store_service.schemas import CartLine

SANITIZE_NOTICE = "Ajustamos tu carrito para corregir items inválidos o duplicados."
RECONCILE_NOTICE = "Actualizamos tu carrito según disponibilidad y catálogo."


class CartError(ValueError):
    """Raised when a cart change is refused (out of stock, over stock)."""


def _line_key(line: CartLine) -> tuple[int, str]:
    return line.id, line.sale_type or SaleType.UNIDAD.value


def sanitize_cart(raw_items: Iterable[Any]) -> tuple[list[CartLine], bool]:
    """
    Drop malformed entries from a cart loaded from browser storage.

    Rules:
    - Entries must be objects with an integer id and a positive numeric quantity.
    - Duplicate lines (same id and sale type) keep the first occurrence.
    Returns (clean_lines, changed_flag).
    """
    raw_items = list(raw_items or [])
    seen: set[tuple[int, str]] = set()
    clean: list[CartLine] = []

    for entry in raw_items:
        if not isinstance(entry, dict):
            continue
        product_id = entry.get("id")
        quantity = entry.get("quantity")
        # bool is an int subclass; a True id is not a product id
        if not isinstance(product_id, int) or isinstance(product_id, bool):
            continue
        if not isinstance(quantity, (int, float)) or isinstance(quantity, bool):
            continue
        if quantity <= 0:
            continue

        try:
            line = CartLine(
                id=product_id,
                quantity=max(1, int(quantity)),
                sale_type=entry.get("sale_type")
                or entry.get("saleType")
                or SaleType.UNIDAD.value,
                name=entry.get("name"),
                price=entry.get("price"),
            )
        except (ValidationError, ValueError, OverflowError):
            continue
        key = _line_key(line)
        if key in seen:
            continue
        seen.add(key)
        clean.append(line)

    return clean, len(clean) != len(raw_items)


def reconcile_cart(
    lines: list[CartLine], stock_by_id: Mapping[int, Optional[int]]
) -> tuple[list[CartLine], bool]:
    """
    Reconcile cart lines against the live catalog.

    `stock_by_id` maps every existing product id to its stock (None when the
    product does not track stock). Lines for products that no longer exist are
    dropped; quantities are clamped to max(1, stock) when stock is known.
    Returns (lines, changed_flag).
    """
    result: list[CartLine] = []
    changed = False

    for line in lines:
        if line.id not in stock_by_id:
            changed = True
            continue
        stock = stock_by_id[line.id]
        quantity = line.quantity
        if stock is not None:
            quantity = min(quantity, max(1, stock))
        if quantity != line.quantity:
            changed = True
        result.append(line.model_copy(update={"quantity": quantity}))

    return result, changed


def add_to_cart(
    lines: list[CartLine],
    product_id: int,
    stock: Optional[int],
    quantity: int = 1,
    sale_type: Optional[str] = None,
    name: Optional[str] = None,
    price: Optional[Decimal] = None,
) -> list[CartLine]:
    """Add a product to the cart; lines are kept separate per sale type."""
    if stock is not None and stock == 0:
        raise CartError("Este producto está agotado")

    target_sale_type = sale_type or SaleType.UNIDAD.value
    key = (product_id, target_sale_type)

    for index, line in enumerate(lines):
        if _line_key(line) == key:
            new_total = line.quantity + quantity
            if stock is not None and new_total > stock:
                raise CartError(
                    f"Solo hay {stock} unidades disponibles de este producto"
                )
            updated = list(lines)
            updated[index] = line.model_copy(update={"quantity": new_total})
            return updated

    if stock is not None and quantity > stock:
        raise CartError(f"Solo hay {stock} unidades disponibles de este producto")

    return [
        *lines,
        CartLine(
            id=product_id,
            quantity=quantity,
            sale_type=target_sale_type,
            name=name,
            price=price,
        ),
    ]


def update_quantity(
    lines: list[CartLine], product_id: int, delta: int, stock: Optional[int]
) -> list[CartLine]:
    """Change a line's quantity by `delta`, never below 1 nor above stock."""
    updated = []
    for line in lines:
        if line.id == product_id:
            new_quantity = line.quantity + delta
            if stock is not None and new_quantity > stock:
                raise CartError(f"Solo hay {stock} unidades disponibles")
            line = line.model_copy(update={"quantity": max(1, new_quantity)})
        updated.append(line)
    return updated


def cart_totals(lines: list[CartLine]) -> tuple[Decimal, int]:
    """Return (total, item_count) using the prices carried on the lines."""
    total = sum(
        ((line.price or Decimal("0")) * line.quantity for line in lines),
        Decimal("0"),
    )
    return total, sum(line.quantity for line in lines)
