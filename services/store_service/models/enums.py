"""Enum definitions for store service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ShippingMethod(str, enum.Enum):
    RETIRO = "retiro"  # store pickup
    TO_COORDINATE = "to_coordinate"
    MOTO = "moto"  # local courier
    CORREO = "correo"  # national post

    @property
    def needs_marketplace_shipment(self) -> bool:
        return self in (ShippingMethod.MOTO, ShippingMethod.CORREO)


class SaleType(str, enum.Enum):
    UNIDAD = "unidad"
    MAYORISTA = "mayorista"


class StockMovementType(str, enum.Enum):
    MARKETPLACE_SALE = "marketplace_sale"
    ADJUSTMENT = "adjustment"
