"""FastAPI application for the Store Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import configure_logging
from libs.common.middleware import add_observability_middleware
from services.store_service.routers import (
    admin_catalog_router,
    cart_router,
    catalog_router,
    feed_router,
    internal_router,
    orders_router,
)


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    configure_logging()
    app = FastAPI(
        title="3D2 Store Service",
        version="0.1.0",
        description="Storefront catalog, checkout, orders, cart reconciliation and feeds.",
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    # Public store routes (catalog, cart, checkout, orders)
    app.include_router(catalog_router, prefix="/store")
    app.include_router(cart_router, prefix="/store")
    app.include_router(orders_router, prefix="/store")

    # Feeds consumed by ad platforms and automations
    app.include_router(feed_router, prefix="/api")

    # Admin routes (product management, order status)
    app.include_router(admin_catalog_router, prefix="/admin/store")

    # Service-to-service
    app.include_router(internal_router)

    return app


app = create_app()
