"""Global exception handlers so every service answers errors the same way."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from libs.common.errors import ConfigurationError, UpstreamError
from libs.common.logging import get_logger

logger = get_logger(__name__)


async def configuration_error_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    logger.error(
        "Server misconfigured: %s",
        exc.message,
        extra={"extra_fields": {"missing": exc.missing}},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Server misconfigured",
            "message": exc.message,
            "missing": exc.missing,
        },
    )


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error(
        "%s API error %s: %s", exc.provider, exc.status_code, exc.response_data
    )
    status_code = exc.status_code if exc.status_code and exc.status_code >= 400 else 502
    return JSONResponse(
        status_code=status_code,
        content={
            "error": f"{exc.provider} API error",
            "message": exc.message,
            "details": exc.response_data,
        },
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register the shared handlers on an app."""
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(UpstreamError, upstream_error_handler)
