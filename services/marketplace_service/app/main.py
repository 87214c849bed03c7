"""FastAPI application for the Marketplace Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import configure_logging
from libs.common.middleware import add_observability_middleware
from services.marketplace_service.routers import (
    listings_router,
    oauth_router,
    shipping_router,
    webhooks_router,
)


def create_app() -> FastAPI:
    """Create and configure the Marketplace Service FastAPI app."""
    configure_logging()
    app = FastAPI(
        title="3D2 Marketplace Service",
        version="0.1.0",
        description="MercadoLibre account, sale notifications, shipping and listings.",
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "marketplace"}

    app.include_router(oauth_router)
    app.include_router(webhooks_router)
    app.include_router(shipping_router)
    app.include_router(listings_router)

    return app


app = create_app()
