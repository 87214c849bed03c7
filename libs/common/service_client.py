"""Reusable async HTTP client for internal service-to-service communication.

Orders and products belong to the store service. The payments and marketplace
services never query those tables directly; they go through the helpers below.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from libs.auth.dependencies import _service_role_jwt
from libs.common.config import get_settings
from libs.common.logging import get_logger, get_request_id

logger = get_logger(__name__)

# Default timeout for internal calls (seconds).
_DEFAULT_TIMEOUT = 10.0


async def internal_request(
    *,
    service_url: str,
    method: str,
    path: str,
    calling_service: str,
    json: Any = None,
    params: Optional[dict] = None,
    timeout: float = _DEFAULT_TIMEOUT,
) -> httpx.Response:
    """Make an authenticated internal service-to-service HTTP call.

    Args:
        service_url: Base URL of the target service (e.g. settings.STORE_SERVICE_URL).
        method: HTTP method (GET, POST, ...).
        path: URL path on the target service (e.g. "/internal/store/orders/abc").
        calling_service: Name of the calling service for the JWT "sub" claim.
        json: Optional JSON body.
        params: Optional query parameters.
        timeout: Request timeout in seconds.

    Returns:
        The httpx.Response object.

    Raises:
        httpx.RequestError on connection failures.
    """
    url = f"{service_url}{path}"
    headers = {"Authorization": f"Bearer {_service_role_jwt(calling_service)}"}
    request_id = get_request_id()
    if request_id:
        headers["X-Request-ID"] = request_id
    headers["X-Caller-Service"] = calling_service

    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.request(
            method,
            url,
            headers=headers,
            json=json,
            params=params,
        )
    return response


async def internal_get(
    *,
    service_url: str,
    path: str,
    calling_service: str,
    params: Optional[dict] = None,
    timeout: float = _DEFAULT_TIMEOUT,
) -> httpx.Response:
    """Convenience wrapper for GET requests."""
    return await internal_request(
        service_url=service_url,
        method="GET",
        path=path,
        calling_service=calling_service,
        params=params,
        timeout=timeout,
    )


async def internal_post(
    *,
    service_url: str,
    path: str,
    calling_service: str,
    json: Any = None,
    timeout: float = _DEFAULT_TIMEOUT,
) -> httpx.Response:
    """Convenience wrapper for POST requests."""
    return await internal_request(
        service_url=service_url,
        method="POST",
        path=path,
        calling_service=calling_service,
        json=json,
        timeout=timeout,
    )


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _json_or_none(resp: httpx.Response, what: str) -> Optional[dict]:
    if resp.status_code == 404:
        return None
    if resp.status_code >= 400:
        logger.error(
            "Store service %s failed (http %d): %s", what, resp.status_code, resp.text
        )
        return None
    return resp.json()


async def get_order(order_id: str, *, calling_service: str) -> Optional[dict]:
    """Fetch an order (with items) from the store service, None if unknown."""
    settings = get_settings()
    resp = await internal_get(
        service_url=settings.STORE_SERVICE_URL,
        path=f"/internal/store/orders/{order_id}",
        calling_service=calling_service,
    )
    return _json_or_none(resp, f"order lookup {order_id}")


async def apply_order_payment(
    order_id: str,
    *,
    status: str,
    payment_id: Optional[str],
    payment_status: str,
    calling_service: str,
) -> Optional[dict]:
    """Overwrite an order's status fields after a payment notification.

    Returns the store's response body, or None when the update failed.
    """
    settings = get_settings()
    resp = await internal_post(
        service_url=settings.STORE_SERVICE_URL,
        path=f"/internal/store/orders/{order_id}/payment",
        calling_service=calling_service,
        json={
            "status": status,
            "payment_id": payment_id,
            "payment_status": payment_status,
        },
    )
    return _json_or_none(resp, f"payment update for {order_id}")


async def decrement_stock_by_external_item(
    external_item_id: str,
    quantity: int,
    *,
    reference: Optional[str] = None,
    calling_service: str,
) -> Optional[dict]:
    """Decrement the local product linked to a marketplace item.

    `reference` (the marketplace order id) makes a replayed notification a
    no-op. Returns {"linked", "applied", "duplicate", "product_id", "name",
    "stock"} or None on failure.
    """
    settings = get_settings()
    resp = await internal_post(
        service_url=settings.STORE_SERVICE_URL,
        path="/internal/store/stock/decrement",
        calling_service=calling_service,
        json={
            "external_item_id": external_item_id,
            "quantity": quantity,
            "reference": reference,
        },
    )
    return _json_or_none(resp, f"stock decrement for {external_item_id}")


async def record_order_shipment(
    order_id: str,
    *,
    ml_shipment_id: str,
    tracking_number: Optional[str],
    calling_service: str,
) -> Optional[dict]:
    settings = get_settings()
    resp = await internal_post(
        service_url=settings.STORE_SERVICE_URL,
        path=f"/internal/store/orders/{order_id}/shipment",
        calling_service=calling_service,
        json={"ml_shipment_id": ml_shipment_id, "tracking_number": tracking_number},
    )
    return _json_or_none(resp, f"shipment update for {order_id}")


async def list_orders_awaiting_shipment(*, calling_service: str) -> list[dict]:
    """Paid orders that still need a marketplace shipment."""
    settings = get_settings()
    resp = await internal_get(
        service_url=settings.STORE_SERVICE_URL,
        path="/internal/store/orders/awaiting-shipment",
        calling_service=calling_service,
    )
    return _json_or_none(resp, "awaiting-shipment listing") or []


async def get_product(product_id: int, *, calling_service: str) -> Optional[dict]:
    settings = get_settings()
    resp = await internal_get(
        service_url=settings.STORE_SERVICE_URL,
        path=f"/internal/store/products/{product_id}",
        calling_service=calling_service,
    )
    return _json_or_none(resp, f"product lookup {product_id}")


async def mark_product_listing(
    product_id: int,
    *,
    ml_item_id: str,
    ml_status: Optional[str],
    calling_service: str,
) -> Optional[dict]:
    settings = get_settings()
    resp = await internal_post(
        service_url=settings.STORE_SERVICE_URL,
        path=f"/internal/store/products/{product_id}/listing",
        calling_service=calling_service,
        json={"ml_item_id": ml_item_id, "ml_status": ml_status},
    )
    return _json_or_none(resp, f"listing update for product {product_id}")
