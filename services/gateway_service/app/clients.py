"""HTTP clients for gateway to call the storefront services."""

from typing import Any, Optional

import httpx
from libs.common.config import get_settings

settings = get_settings()


class ServiceClient:
    """Forwards requests to one service and returns the raw response."""

    def __init__(self, base_url: str, timeout: float = 30.0):
        self.base_url = base_url
        self.timeout = timeout

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, f"{self.base_url}{path}", **kwargs)

    async def get(self, path: str, headers: Optional[dict] = None) -> httpx.Response:
        return await self._request("GET", path, headers=headers or {})

    async def post(
        self,
        path: str,
        content: Optional[bytes] = None,
        headers: Optional[dict] = None,
    ) -> httpx.Response:
        return await self._request("POST", path, content=content, headers=headers or {})

    async def put(
        self,
        path: str,
        content: Optional[bytes] = None,
        headers: Optional[dict] = None,
    ) -> httpx.Response:
        return await self._request("PUT", path, content=content, headers=headers or {})

    async def patch(
        self,
        path: str,
        content: Optional[bytes] = None,
        headers: Optional[dict] = None,
    ) -> httpx.Response:
        return await self._request("PATCH", path, content=content, headers=headers or {})

    async def delete(self, path: str, headers: Optional[dict] = None) -> httpx.Response:
        return await self._request("DELETE", path, headers=headers or {})


# Service client instances
store_client = ServiceClient(settings.STORE_SERVICE_URL)
payments_client = ServiceClient(settings.PAYMENTS_SERVICE_URL)
marketplace_client = ServiceClient(settings.MARKETPLACE_SERVICE_URL)
communications_client = ServiceClient(settings.COMMUNICATIONS_SERVICE_URL)
