"""FastAPI application for the Payments Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import configure_logging
from libs.common.middleware import add_observability_middleware
from services.payments_service.routers import webhooks_router


def create_app() -> FastAPI:
    """Create and configure the Payments Service FastAPI app."""
    configure_logging()
    app = FastAPI(
        title="3D2 Payments Service",
        version="0.1.0",
        description="Mercado Pago payment notifications for storefront orders.",
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "payments"}

    # Serves /api/webhook and the /payments/webhooks/mercadopago alias
    app.include_router(webhooks_router)

    return app


app = create_app()
