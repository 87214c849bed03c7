"""FastAPI application entrypoint for the storefront gateway.

The storefront and the providers only know the public URLs (/api/webhook,
/api/ml-webhook, /api/catalog, ...). The gateway keeps those URLs stable and
proxies each of them to the service that owns it.
"""

from __future__ import annotations

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import configure_logging, get_logger
from libs.common.middleware import add_observability_middleware
from services.gateway_service.app import clients

logger = get_logger(__name__)

METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    configure_logging()
    settings = get_settings()
    app = FastAPI(
        title="3D2 Storefront Gateway",
        version="0.1.0",
        description="Public entrypoint that routes storefront and webhook traffic.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
            settings.STORE_BASE_URL,
            "https://creart3d2.com",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"status": "ok"}

    @app.get("/api/test-env", tags=["system"])
    async def test_env() -> dict:
        """Which credentials are configured (booleans only, never values)."""
        current = get_settings()
        return {**current.env_presence(), "ENVIRONMENT": current.ENVIRONMENT}

    # ==================================================================
    # STORE SERVICE PROXY
    # ==================================================================
    @app.api_route("/store/{path:path}", methods=METHODS)
    async def proxy_store(path: str, request: Request):
        """Proxy storefront catalog, cart and order routes."""
        return await proxy_request(clients.store_client, f"/store/{path}", request)

    @app.api_route("/admin/store/{path:path}", methods=METHODS)
    async def proxy_admin_store(path: str, request: Request):
        """Proxy store admin routes."""
        return await proxy_request(
            clients.store_client, f"/admin/store/{path}", request
        )

    @app.api_route("/api/catalog", methods=["GET"])
    async def proxy_catalog(request: Request):
        """Proxy the CSV catalog feed."""
        return await proxy_request(clients.store_client, "/api/catalog", request)

    @app.api_route("/api/find-link", methods=["GET", "POST"])
    async def proxy_find_link(request: Request):
        """Proxy the caption-to-product link lookup."""
        return await proxy_request(clients.store_client, "/api/find-link", request)

    # ==================================================================
    # PAYMENTS SERVICE PROXY
    # ==================================================================
    @app.api_route("/api/webhook", methods=["GET", "POST"])
    async def proxy_payment_webhook(request: Request):
        """Proxy the Mercado Pago notification URL."""
        return await proxy_request(clients.payments_client, "/api/webhook", request)

    @app.api_route("/payments/{path:path}", methods=METHODS)
    async def proxy_payments(path: str, request: Request):
        """Proxy all /payments/* requests to payments service."""
        return await proxy_request(
            clients.payments_client, f"/payments/{path}", request
        )

    # ==================================================================
    # MARKETPLACE SERVICE PROXY
    # ==================================================================
    @app.api_route("/api/ml-{path:path}", methods=METHODS)
    async def proxy_marketplace(path: str, request: Request):
        """Proxy /api/ml-* (OAuth, webhook, shipping, listings)."""
        return await proxy_request(
            clients.marketplace_client, f"/api/ml-{path}", request
        )

    @app.api_route("/api/cron-refresh-ml", methods=["GET"])
    async def proxy_cron_refresh(request: Request):
        """Proxy the scheduled token refresh."""
        return await proxy_request(
            clients.marketplace_client, "/api/cron-refresh-ml", request
        )

    @app.api_route("/api/subscribe-hook", methods=["POST"])
    async def proxy_subscribe_hook(request: Request):
        """Proxy the notification subscription helper."""
        return await proxy_request(
            clients.marketplace_client, "/api/subscribe-hook", request
        )

    # ==================================================================
    # COMMUNICATIONS SERVICE PROXY
    # ==================================================================
    @app.api_route("/api/notify-whatsapp", methods=["POST"])
    async def proxy_notify(request: Request):
        """Proxy relay notifications."""
        return await proxy_request(
            clients.communications_client, "/api/notify-whatsapp", request
        )

    @app.api_route("/api/send-email", methods=["POST"])
    async def proxy_send_email(request: Request):
        """Proxy the custom-order email."""
        return await proxy_request(
            clients.communications_client, "/api/send-email", request
        )

    return app


def _filter_service_headers(headers: httpx.Headers) -> list[tuple[str, str]]:
    """Strip hop-by-hop headers that FastAPI/starlette manages."""
    hop_by_hop = {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "content-length",
        "content-encoding",
        "host",
        "content-type",
    }
    return [(k, v) for k, v in headers.items() if k.lower() not in hop_by_hop]


async def proxy_request(client: clients.ServiceClient, path: str, request: Request):
    """Generic proxy function to forward requests to a service."""
    try:
        # Bodies go through as raw bytes: provider notifications are forwarded
        # exactly as received.
        content_body = None
        if request.method in ["POST", "PATCH", "PUT"]:
            body_bytes = await request.body()
            if body_bytes:
                content_body = body_bytes

        headers = {
            k: v
            for k, v in request.headers.items()
            if k.lower() not in ["content-length", "host"]
        }

        # Include query parameters (notification topic/resource arrive here)
        query_params = request.url.query
        if query_params:
            path = f"{path}?{query_params}"

        if request.method == "GET":
            service_response = await client.get(path, headers=headers)
        elif request.method == "POST":
            service_response = await client.post(
                path, content=content_body, headers=headers
            )
        elif request.method == "PUT":
            service_response = await client.put(
                path, content=content_body, headers=headers
            )
        elif request.method == "PATCH":
            service_response = await client.patch(
                path, content=content_body, headers=headers
            )
        elif request.method == "DELETE":
            service_response = await client.delete(path, headers=headers)
        else:
            raise HTTPException(status_code=405, detail="Method not allowed")

        forward_headers = dict(_filter_service_headers(service_response.headers))

        if service_response.status_code == 204:
            return Response(status_code=204, headers=forward_headers)

        content_type = service_response.headers.get("content-type", "")

        if "application/json" in content_type:
            try:
                payload = service_response.json()
                return JSONResponse(
                    content=payload,
                    status_code=service_response.status_code,
                    headers=forward_headers,
                )
            except ValueError:
                # Fall back to raw bytes if the payload is not valid JSON.
                pass

        return Response(
            content=service_response.content,
            status_code=service_response.status_code,
            media_type=content_type or None,
            headers=forward_headers,
        )

    except httpx.HTTPStatusError as e:
        try:
            error_content = e.response.json()
        except ValueError:
            error_content = {"detail": e.response.text or str(e)}
        return JSONResponse(status_code=e.response.status_code, content=error_content)
    except httpx.RequestError as e:
        logger.error(f"Service unavailable for {path}: {e}")
        raise HTTPException(status_code=503, detail=f"Service unavailable: {str(e)}")


app = create_app()
