"""Request tracing for every service.

Each request gets an `X-Request-ID` (taken from the caller when present, so a
webhook that fans out to the store keeps one id across services). Internal
calls also carry `X-Caller-Service`, which is attached to the log context.

Query strings are logged with OAuth codes and tokens masked.
"""
import time
from typing import Callable
from urllib.parse import parse_qsl, urlencode

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

QUIET_PATHS = {"/health"}
SECRET_QUERY_KEYS = {"code", "access_token", "refresh_token", "token"}


def masked_query(query: str) -> str:
    """Query string with secret parameters replaced by ***."""
    if not query:
        return ""
    pairs = parse_qsl(query, keep_blank_values=True)
    return urlencode(
        [(k, "***" if k.lower() in SECRET_QUERY_KEYS else v) for k, v in pairs]
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request id, path, method and calling service; logs each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
            caller=request.headers.get("X-Caller-Service"),
        )
        quiet = request.url.path in QUIET_PATHS
        started = time.perf_counter()

        if not quiet:
            logger.info(
                "Request started",
                extra={"extra_fields": {"query": masked_query(request.url.query) or None}},
            )

        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - started) * 1000, 2)

            if not quiet:
                # Providers retry on 5xx, so those are the ones worth an error line
                if response.status_code >= 500:
                    log = logger.error
                elif response.status_code >= 400:
                    log = logger.warning
                else:
                    log = logger.info
                log(
                    f"Request completed {request.method} {request.url.path}",
                    extra={
                        "extra_fields": {
                            "status_code": response.status_code,
                            "duration_ms": duration_ms,
                        }
                    },
                )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as e:
            logger.exception(
                "Request failed with unhandled exception",
                extra={
                    "extra_fields": {
                        "error": str(e),
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    }
                },
            )
            raise

        finally:
            clear_request_context()


def add_observability_middleware(app: FastAPI) -> None:
    """Install request tracing on a service app."""
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
