"""
MercadoLibre API client for the seller account.

Provides async methods for:
- OAuth code exchange and token refresh
- Fetching notification resources (orders)
- Shipping quotes and shipment creation
- Creating and updating item listings
- Category prediction and notification subscriptions
"""

from dataclasses import dataclass
from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.errors import UpstreamError, require_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

# "Other" category, used when prediction finds nothing
DEFAULT_CATEGORY_ID = "MLA3530"


@dataclass
class TokenGrant:
    """Token set returned by /oauth/token (both grant types)."""

    user_id: str
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None
    token_type: Optional[str] = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "TokenGrant":
        if not data.get("user_id") or not data.get("access_token"):
            raise MercadoLibreError(
                message="Faltan datos críticos de MercadoLibre",
                response_data=data,
            )
        return cls(
            user_id=str(data["user_id"]),
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            scope=data.get("scope"),
            token_type=data.get("token_type"),
        )


class MercadoLibreError(UpstreamError):
    """MercadoLibre answered with a non-2xx status."""

    provider = "MercadoLibre"


class MercadoLibreClient:
    """Async client for the MercadoLibre REST API."""

    def __init__(self, access_token: Optional[str] = None, base_url: Optional[str] = None):
        settings = get_settings()
        self.access_token = access_token
        self.base_url = (base_url or settings.ML_API_URL).rstrip("/")
        self.site_id = settings.ML_SITE_ID

    def _headers(self, authenticated: bool) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if authenticated and self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict = None,
        json_data: Any = None,
        form: dict = None,
        authenticated: bool = True,
    ) -> Any:
        """Make an async request to the MercadoLibre API."""
        url = f"{self.base_url}{endpoint}"

        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.request(
                method=method,
                url=url,
                headers=self._headers(authenticated),
                params=params,
                json=json_data,
                data=form,
            )

        if not response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = {"body": response.text}
            logger.error(f"MercadoLibre API error: {response.status_code} - {data}")
            message = "Unknown MercadoLibre error"
            if isinstance(data, dict):
                message = data.get("message") or data.get("error") or message
            raise MercadoLibreError(
                message=message,
                status_code=response.status_code,
                response_data=data,
            )

        return response.json()

    # =========================================================================
    # OAuth
    # =========================================================================

    async def exchange_code(self, code: str) -> TokenGrant:
        """Trade an authorization code from the OAuth callback for tokens."""
        settings = get_settings()
        require_settings(
            ML_APP_ID=settings.ML_APP_ID,
            ML_APP_SECRET=settings.ML_APP_SECRET,
            ML_REDIRECT_URI=settings.ML_REDIRECT_URI,
        )
        data = await self._request(
            "POST",
            "/oauth/token",
            form={
                "grant_type": "authorization_code",
                "client_id": str(settings.ML_APP_ID),
                "client_secret": str(settings.ML_APP_SECRET),
                "code": code,
                "redirect_uri": str(settings.ML_REDIRECT_URI),
            },
            authenticated=False,
        )
        return TokenGrant.from_response(data)

    async def refresh(self, refresh_token: str) -> TokenGrant:
        """Exchange a refresh token. MercadoLibre rotates the refresh token too."""
        settings = get_settings()
        require_settings(
            ML_APP_ID=settings.ML_APP_ID, ML_APP_SECRET=settings.ML_APP_SECRET
        )
        data = await self._request(
            "POST",
            "/oauth/token",
            form={
                "grant_type": "refresh_token",
                "client_id": str(settings.ML_APP_ID),
                "client_secret": str(settings.ML_APP_SECRET),
                "refresh_token": refresh_token,
            },
            authenticated=False,
        )
        return TokenGrant.from_response(data)

    # =========================================================================
    # Resources
    # =========================================================================

    async def get_resource(self, path: str) -> dict:
        """GET a resource path as sent in notifications, e.g. "/orders/123"."""
        if not path.startswith("/"):
            path = f"/{path}"
        return await self._request("GET", path)

    # =========================================================================
    # Shipping
    # =========================================================================

    async def shipping_options(self, zip_from: str, zip_to: str, dimensions: str) -> dict:
        """Quote shipping for a package; dimensions are "WxHxL,grams"."""
        return await self._request(
            "GET",
            "/shipments/options",
            params={
                "zip_code_from": zip_from,
                "zip_code_to": zip_to,
                "dimensions": dimensions,
            },
        )

    async def create_shipment(self, body: dict) -> dict:
        return await self._request("POST", "/shipments", json_data=body)

    # =========================================================================
    # Listings
    # =========================================================================

    async def create_item(self, body: dict) -> dict:
        return await self._request("POST", "/items", json_data=body)

    async def update_item(self, item_id: str, body: dict) -> dict:
        return await self._request("PUT", f"/items/{item_id}", json_data=body)

    async def predict_category(self, title: str) -> str:
        """Best category for a listing title, DEFAULT_CATEGORY_ID when unknown."""
        try:
            data = await self._request(
                "GET",
                f"/sites/{self.site_id}/domain_discovery/search",
                params={"limit": 1, "q": title},
                authenticated=False,
            )
        except (MercadoLibreError, httpx.HTTPError) as e:
            logger.warning(f"Category prediction failed for {title!r}: {e}")
            return DEFAULT_CATEGORY_ID

        if isinstance(data, list) and data and data[0].get("category_id"):
            return data[0]["category_id"]
        return DEFAULT_CATEGORY_ID

    # =========================================================================
    # Notifications
    # =========================================================================

    async def subscribe(self, app_id: str, user_id: str, url: str, topic: str) -> dict:
        """
        Subscribe `url` to `topic`.

        The application-level endpoint is tried first; some accounts only accept
        the per-user endpoint, so a failure falls back to that one.
        """
        body = {"url": url, "topic": topic}
        try:
            result = await self._request(
                "POST", f"/applications/{app_id}/notifications", json_data=body
            )
            return {"status": "SUSCRIPCIÓN EXITOSA (Método App)", "details": result}
        except MercadoLibreError as first:
            logger.warning(
                f"App-level subscription failed ({first.status_code}), trying user endpoint"
            )
            try:
                result = await self._request(
                    "POST",
                    f"/users/{user_id}/applications/{app_id}/notifications",
                    json_data=body,
                )
                status = "SUSCRIPCIÓN EXITOSA (Método Usuario)"
            except MercadoLibreError as second:
                result = second.response_data
                status = "FALLÓ TODO"
            return {
                "method1_error": first.response_data,
                "method2_result": result,
                "status": status,
            }


def get_mercadolibre_client(access_token: Optional[str] = None) -> MercadoLibreClient:
    """Get a MercadoLibreClient instance."""
    return MercadoLibreClient(access_token=access_token)
