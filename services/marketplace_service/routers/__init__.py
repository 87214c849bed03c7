"""Marketplace service routers package."""

from services.marketplace_service.routers.listings import router as listings_router
from services.marketplace_service.routers.oauth import router as oauth_router
from services.marketplace_service.routers.shipping import router as shipping_router
from services.marketplace_service.routers.webhooks import router as webhooks_router

__all__ = [
    "listings_router",
    "oauth_router",
    "shipping_router",
    "webhooks_router",
]
