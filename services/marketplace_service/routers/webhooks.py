"""MercadoLibre sale notifications."""

import json
from typing import Any

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.mercadolibre_client import MercadoLibreError
from services.marketplace_service.services.credentials import get_latest_credential
from services.marketplace_service.services.order_sync import (
    ORDER_TOPICS,
    process_order_notification,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["marketplace"])
logger = get_logger(__name__)


def _parse_body(raw: bytes) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Marketplace webhook body is not valid JSON")
        return {}
    return payload if isinstance(payload, dict) else {}


@router.get("/api/ml-webhook", response_class=PlainTextResponse)
async def webhook_liveness():
    return "OK"


@router.post("/api/ml-webhook")
async def mercadolibre_webhook(
    request: Request, db: AsyncSession = Depends(get_async_db)
):
    """
    Notification endpoint registered with MercadoLibre.

    Order topics decrement local stock per line and send a sale notification.
    Other topics are acknowledged and ignored. If the order itself cannot be
    fetched the answer is 502 so MercadoLibre redelivers; lines applied by an
    earlier delivery are not decremented again.
    """
    query = request.query_params
    payload = _parse_body(await request.body())
    topic = query.get("topic") or payload.get("topic")
    resource = query.get("resource") or payload.get("resource")
    logger.info(f"Marketplace notification received: {topic} -> {resource}")

    if topic not in ORDER_TOPICS or not resource:
        return {"ignored": True, "topic": topic}

    credential = await get_latest_credential(db)
    if credential is None:
        logger.error("Marketplace notification received but no token is stored")
        return {"error": "No token"}

    try:
        return await process_order_notification(db, credential, resource)
    except (MercadoLibreError, httpx.HTTPError) as e:
        logger.error(f"Failed to process marketplace order {resource}: {e}")
        return JSONResponse(status_code=502, content={"error": "Failed to process order"})
