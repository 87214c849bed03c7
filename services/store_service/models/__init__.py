"""Store Service models package."""

from services.store_service.models.catalog import Product
from services.store_service.models.commerce import Order, OrderItem
from services.store_service.models.enums import (
    OrderStatus,
    SaleType,
    ShippingMethod,
    StockMovementType,
)
from services.store_service.models.inventory import StockMovement

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "SaleType",
    "ShippingMethod",
    "StockMovement",
    "StockMovementType",
]
