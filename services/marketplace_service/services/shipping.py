"""Shipping quotes and shipment creation through the marketplace carrier network."""

import uuid
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.service_client import record_order_shipment
from services.marketplace_service.mercadolibre_client import MercadoLibreError
from services.marketplace_service.models import MarketplaceCredential, Shipment
from services.marketplace_service.services.credentials import call_with_refresh
from services.store_service.models.enums import ShippingMethod
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

CALLING_SERVICE = "marketplace"

# Package bounds accepted by the carriers (cm / grams)
MAX_WIDTH_CM = 40
MAX_HEIGHT_CM = 30
MAX_LENGTH_CM = 50
MIN_WEIGHT_G = 100
MAX_WEIGHT_G = 30000
VOLUMETRIC_DIVISOR = 4000

# (max billed grams, ARS) used when the carrier returns no options
FALLBACK_TIERS = [(500, 4500), (1500, 6500), (3000, 9000), (7000, 11000)]
FALLBACK_MAX_COST = 14000

# Checkout does not capture parcel size yet
DEFAULT_SHIPMENT_DIMENSIONS = "15x15x15,500"


def needs_marketplace_shipment(shipping_method: Optional[str]) -> bool:
    """Whether an order with this shipping method (store API value) ships via the marketplace."""
    try:
        return ShippingMethod(shipping_method).needs_marketplace_shipment
    except ValueError:
        return False


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _js_round(value: float) -> int:
    # Half-up, so 2.5 -> 3 like the carrier calculator
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


@dataclass
class Package:
    width: int
    height: int
    length: int
    physical_grams: int
    volumetric_grams: int
    billed_grams: int

    @property
    def dimensions(self) -> str:
        return f"{self.width}x{self.height}x{self.length},{self.billed_grams}"


def normalize_package(
    width: float, height: float, length: float, weight: Optional[float]
) -> Package:
    """Clamp dimensions; billed weight is the larger of physical and volumetric."""
    w = int(_clamp(_js_round(width), 1, MAX_WIDTH_CM))
    h = int(_clamp(_js_round(height), 1, MAX_HEIGHT_CM))
    length_cm = int(_clamp(_js_round(length), 1, MAX_LENGTH_CM))

    volumetric = _js_round(w * h * length_cm / VOLUMETRIC_DIVISOR * 1000)
    physical = _js_round(weight or 0)
    billed = int(_clamp(max(physical, volumetric), MIN_WEIGHT_G, MAX_WEIGHT_G))

    return Package(
        width=w,
        height=h,
        length=length_cm,
        physical_grams=physical,
        volumetric_grams=volumetric,
        billed_grams=billed,
    )


def fallback_cost(billed_grams: int) -> int:
    for max_grams, cost in FALLBACK_TIERS:
        if billed_grams <= max_grams:
            return cost
    return FALLBACK_MAX_COST


def map_option(option: dict[str, Any]) -> dict[str, Any]:
    estimated = option.get("estimated_delivery_time")
    window = None
    if estimated:
        window = {
            "date": estimated.get("date"),
            "from": estimated.get("time_from"),
            "to": estimated.get("time_to"),
            "unit": estimated.get("unit"),
            "value": estimated.get("value"),
        }
    return {
        "id": option.get("id"),
        "name": option.get("name"),
        "cost": option.get("cost"),
        "currency": option.get("currency_id"),
        "estimatedDelivery": (estimated or {}).get("date"),
        "estimatedWindow": window,
        "shippingTime": option.get("shipping_time"),
        "carrier": option.get("shipping_method_id") or "standard",
    }


async def _fetch_shipping_options(
    db: AsyncSession,
    credential: MarketplaceCredential,
    zip_to: str,
    package: Package,
) -> list[dict[str, Any]]:
    settings = get_settings()
    data = await call_with_refresh(
        db,
        credential,
        lambda c: c.shipping_options(
            settings.ML_ZIP_CODE_FROM, zip_to, package.dimensions
        ),
    )
    return data.get("options") or []


async def quote_shipping_options(
    db: AsyncSession,
    credential: MarketplaceCredential,
    zip_to: str,
    package: Package,
) -> list[dict[str, Any]]:
    """Raw carrier options for a package; empty on any provider failure."""
    try:
        return await _fetch_shipping_options(db, credential, zip_to, package)
    except (MercadoLibreError, httpx.HTTPError) as e:
        logger.warning(f"Shipping options unavailable for {zip_to}: {e}")
        return []


async def quote_shipping(
    db: AsyncSession,
    credential: MarketplaceCredential,
    zip_to: str,
    package: Package,
) -> dict[str, Any]:
    """
    Quote shipping to `zip_to`.

    The cheapest option is the default cost. A 400/404 from the carrier or an
    empty option list falls back to a weight-tiered estimate; other provider
    errors propagate.
    """
    logger.info(
        f"Quoting {package.width}x{package.height}x{package.length} cm, "
        f"physical {package.physical_grams}g, volumetric {package.volumetric_grams}g, "
        f"billed {package.billed_grams}g to {zip_to}"
    )

    try:
        raw_options = await _fetch_shipping_options(db, credential, zip_to, package)
    except MercadoLibreError as e:
        if e.status_code not in (400, 404):
            raise
        return {
            "success": True,
            "options": [],
            "defaultCost": fallback_cost(package.billed_grams),
            "message": "Using dynamic estimated shipping cost due to no ML options.",
        }

    options = [map_option(opt) for opt in raw_options]
    if not options:
        return {
            "success": True,
            "options": [],
            "defaultCost": fallback_cost(package.billed_grams),
            "message": "No ML options; using dynamic estimated cost.",
        }

    cheapest = options[0]
    for opt in options[1:]:
        if opt["cost"] is not None and (
            cheapest["cost"] is None or opt["cost"] < cheapest["cost"]
        ):
            cheapest = opt

    return {
        "success": True,
        "options": options,
        "defaultCost": cheapest["cost"],
        "selectedOption": cheapest,
    }


# ============================================================================
# SHIPMENT CREATION
# ============================================================================


def split_address(address: Optional[str]) -> tuple[str, str]:
    """Naive (street name, number) split of a free-text address."""
    parts = (address or "").split(" ")
    street_name = parts[0] if parts and parts[0] else "Unknown"
    street_number = parts[1] if len(parts) > 1 and parts[1] else "0"
    return street_name, street_number


def build_shipment_body(order: dict[str, Any]) -> dict[str, Any]:
    if order.get("street_name"):
        street_name = order["street_name"]
        street_number = order.get("street_number") or "0"
    else:
        street_name, street_number = split_address(order.get("customer_address"))

    return {
        "mode": "custom",
        "site_id": get_settings().ML_SITE_ID,
        "dimensions": DEFAULT_SHIPMENT_DIMENSIONS,
        "receiver_address": {
            "street_name": street_name,
            "street_number": street_number,
            "zip_code": order.get("customer_postal_code") or "1000",
            "city_name": order.get("customer_city") or "Buenos Aires",
            "state_name": order.get("customer_province") or "Buenos Aires",
            "country_name": "Argentina",
        },
    }


async def _save_shipment(db: AsyncSession, order_id: str, shipment: dict) -> None:
    estimated = (shipment.get("shipping_option") or {}).get(
        "estimated_delivery_time"
    ) or {}
    db.add(
        Shipment(
            order_id=uuid.UUID(order_id),
            ml_shipment_id=str(shipment["id"]),
            tracking_number=shipment.get("tracking_number"),
            carrier=shipment.get("logistic_type") or "custom",
            status=shipment.get("status") or "pending",
            estimated_delivery=estimated.get("date"),
        )
    )
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to save shipment {shipment['id']} for order {order_id}: {e}")


async def create_shipment_for_order(
    db: AsyncSession, credential: MarketplaceCredential, order: dict[str, Any]
) -> dict[str, Any]:
    """
    Create a marketplace shipment for a store order (as returned by the store
    internal API) and write the shipment id and tracking number back to it.

    Raises MercadoLibreError when the carrier refuses the shipment. Failures to
    persist afterwards are logged only.
    """
    order_id = str(order["id"])
    if not needs_marketplace_shipment(order.get("shipping_method")):
        return {
            "success": True,
            "message": "Shipping method does not require ML shipment",
            "skipShipment": True,
        }

    body = build_shipment_body(order)
    shipment = await call_with_refresh(db, credential, lambda c: c.create_shipment(body))
    logger.info(f"Created shipment {shipment.get('id')} for order {order_id}")

    await _save_shipment(db, order_id, shipment)

    updated = await record_order_shipment(
        order_id,
        ml_shipment_id=str(shipment["id"]),
        tracking_number=shipment.get("tracking_number"),
        calling_service=CALLING_SERVICE,
    )
    if updated is None:
        logger.error(f"Could not write shipment {shipment['id']} to order {order_id}")

    return {
        "success": True,
        "shipment": {
            "id": shipment.get("id"),
            "tracking_number": shipment.get("tracking_number"),
            "status": shipment.get("status"),
        },
    }
