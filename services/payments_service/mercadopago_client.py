"""
Mercado Pago API client for payment notifications.

Provides async methods for:
- Fetching a payment by id
- Fetching a merchant order (and the payments attached to it)
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.errors import ConfigurationError, UpstreamError
from libs.common.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PaymentDetails:
    """A payment as reported by Mercado Pago."""

    id: str
    status: Optional[str]
    external_reference: Optional[str]
    status_detail: Optional[str] = None
    transaction_amount: Optional[float] = None


@dataclass
class MerchantOrder:
    """A merchant order groups the payments made against one preference."""

    id: str
    external_reference: Optional[str]
    payments: list[dict[str, Any]] = field(default_factory=list)

    @property
    def first_payment(self) -> Optional[dict[str, Any]]:
        return self.payments[0] if self.payments else None


class MercadoPagoError(UpstreamError):
    """Mercado Pago answered with a non-2xx status."""

    provider = "MercadoPago"


class MercadoPagoClient:
    """Async client for the Mercado Pago payments API."""

    def __init__(self, access_token: Optional[str] = None, base_url: Optional[str] = None):
        settings = get_settings()
        self.access_token = access_token or settings.MP_ACCESS_TOKEN
        if not self.access_token:
            raise ConfigurationError(["MP_ACCESS_TOKEN"])
        self.base_url = (base_url or settings.MP_API_URL).rstrip("/")
        self._headers = {"Authorization": f"Bearer {self.access_token}"}

    async def _request(self, method: str, endpoint: str, params: dict = None) -> dict:
        """Make an async request to the Mercado Pago API."""
        url = f"{self.base_url}{endpoint}"

        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.request(
                method=method,
                url=url,
                headers=self._headers,
                params=params,
            )

        if not response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = {"body": response.text}
            logger.error(f"MercadoPago API error: {response.status_code} - {data}")
            raise MercadoPagoError(
                message=data.get("message", "Unknown MercadoPago error")
                if isinstance(data, dict)
                else "Unknown MercadoPago error",
                status_code=response.status_code,
                response_data=data,
            )

        return response.json()

    # =========================================================================
    # Payments
    # =========================================================================

    async def get_payment(self, payment_id: str) -> PaymentDetails:
        data = await self._request("GET", f"/v1/payments/{payment_id}")
        return PaymentDetails(
            id=str(data.get("id", payment_id)),
            status=data.get("status"),
            external_reference=data.get("external_reference"),
            status_detail=data.get("status_detail"),
            transaction_amount=data.get("transaction_amount"),
        )

    async def get_merchant_order(self, merchant_order_id: str) -> MerchantOrder:
        data = await self._request("GET", f"/merchant_orders/{merchant_order_id}")
        return MerchantOrder(
            id=str(data.get("id", merchant_order_id)),
            external_reference=data.get("external_reference"),
            payments=data.get("payments") or [],
        )


def get_mercadopago_client() -> MercadoPagoClient:
    """Get a MercadoPagoClient instance."""
    return MercadoPagoClient()
