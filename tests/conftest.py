"""Shared doubles for marketplace and notification tests."""

from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from services.marketplace_service.mercadolibre_client import (
    MercadoLibreError,
    TokenGrant,
)
from tests.factories import CredentialFactory


class FakeMercadoLibreClient:
    """
    In-memory MercadoLibre API.

    Installed in place of `get_mercadolibre_client`; every call records the
    access token it was made with. Tokens listed in `rejected_tokens` get a 401,
    like an expired token does.
    """

    def __init__(self):
        self.access_token: Optional[str] = None
        self.tokens_used: list[Optional[str]] = []
        self.rejected_tokens: set[str] = set()

        self.grant = TokenGrant(
            user_id="123456789",
            access_token="APP_USR-access-new",
            refresh_token="TG-refresh-new",
            expires_in=21600,
            scope="offline_access read write",
            token_type="Bearer",
        )
        self.codes: list[str] = []
        self.refreshed: list[str] = []

        self.resources: dict[str, Any] = {}
        self.shipping_result: Any = {"options": []}
        self.quotes: list[tuple[str, str, str]] = []
        self.shipment_result: Any = {
            "id": 4455667788,
            "tracking_number": "TRK-0001",
            "status": "ready_to_ship",
            "logistic_type": "custom",
            "shipping_option": {"estimated_delivery_time": {"date": "2026-10-25"}},
        }
        self.shipment_bodies: list[dict] = []

        self.category = "MLA1234"
        self.item_result: dict = {
            "id": "MLA900001",
            "permalink": "https://articulo.mercadolibre.com.ar/MLA-900001",
            "status": "active",
        }
        self.created_items: list[dict] = []
        self.updated_items: list[tuple[str, dict]] = []
        self.subscriptions: list[tuple[str, str, str, str]] = []

    def __call__(self, access_token: Optional[str] = None) -> "FakeMercadoLibreClient":
        self.access_token = access_token
        return self

    def _call(self) -> None:
        self.tokens_used.append(self.access_token)
        if self.access_token in self.rejected_tokens:
            raise MercadoLibreError(
                message="invalid access token",
                status_code=401,
                response_data={"message": "invalid access token"},
            )

    @staticmethod
    def _result(value: Any) -> Any:
        if isinstance(value, Exception):
            raise value
        return value

    async def exchange_code(self, code: str) -> TokenGrant:
        self.codes.append(code)
        return self._result(self.grant)

    async def refresh(self, refresh_token: str) -> TokenGrant:
        self.refreshed.append(refresh_token)
        return self._result(self.grant)

    async def get_resource(self, path: str) -> dict:
        self._call()
        return self._result(self.resources[path])

    async def shipping_options(self, zip_from: str, zip_to: str, dimensions: str) -> dict:
        self._call()
        self.quotes.append((zip_from, zip_to, dimensions))
        return self._result(self.shipping_result)

    async def create_shipment(self, body: dict) -> dict:
        self._call()
        self.shipment_bodies.append(body)
        return self._result(self.shipment_result)

    async def predict_category(self, title: str) -> str:
        return self.category

    async def create_item(self, body: dict) -> dict:
        self._call()
        self.created_items.append(body)
        return self._result(self.item_result)

    async def update_item(self, item_id: str, body: dict) -> dict:
        self._call()
        self.updated_items.append((item_id, body))
        return self._result({**self.item_result, "id": item_id})

    async def subscribe(self, app_id: str, user_id: str, url: str, topic: str) -> dict:
        self._call()
        self.subscriptions.append((app_id, user_id, url, topic))
        return {"status": "SUSCRIPCIÓN EXITOSA (Método App)", "details": {"topic": topic}}


@pytest.fixture
def fake_ml(monkeypatch) -> FakeMercadoLibreClient:
    fake = FakeMercadoLibreClient()
    for target in (
        "services.marketplace_service.services.credentials.get_mercadolibre_client",
        "services.marketplace_service.routers.oauth.get_mercadolibre_client",
        "services.marketplace_service.routers.listings.get_mercadolibre_client",
    ):
        monkeypatch.setattr(target, fake)
    return fake


@pytest_asyncio.fixture
async def credential(db_session):
    """A linked marketplace account."""
    cred = CredentialFactory.create()
    db_session.add(cred)
    await db_session.commit()
    await db_session.refresh(cred)
    return cred


@pytest.fixture
def relay(monkeypatch):
    """Captures sale notifications instead of posting them."""
    stub = AsyncMock()
    stub.send = AsyncMock(return_value=True)
    monkeypatch.setattr(
        "services.marketplace_service.services.order_sync.get_notification_relay",
        lambda: stub,
    )
    return stub
