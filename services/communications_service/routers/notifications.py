"""Outbound notifications: relay messages and the custom-order email."""

from fastapi import APIRouter, HTTPException
from libs.common.config import get_settings
from libs.common.datetime_utils import iso_now
from libs.common.emails.store import send_custom_order_email
from libs.common.errors import require_settings
from libs.common.logging import get_logger
from libs.common.notifications import get_notification_relay
from services.communications_service.schemas import (
    CustomOrderEmailRequest,
    EmailSentResponse,
    NotifyRequest,
    NotifyResponse,
)

router = APIRouter(tags=["notifications"])
logger = get_logger(__name__)

RELAY_PROVIDER = "Make.com"


@router.post("/api/notify-whatsapp", response_model=NotifyResponse)
async def notify_whatsapp(payload: NotifyRequest):
    """Forward a message to the notification relay (WhatsApp routing happens there)."""
    if not payload.message:
        raise HTTPException(status_code=400, detail="Missing message")

    relay = get_notification_relay()
    require_settings(NOTIFY_WEBHOOK_URL=relay.webhook_url)

    sent = await relay.send(
        {"phone": payload.phone, "message": payload.message, "timestamp": iso_now()}
    )
    if not sent:
        raise HTTPException(status_code=502, detail="Notification relay unavailable")
    return NotifyResponse(success=True, provider=RELAY_PROVIDER)


@router.post("/api/send-email", response_model=EmailSentResponse)
async def send_custom_order_request(payload: CustomOrderEmailRequest):
    """Email a custom-order request to the store inbox, reply-to the customer."""
    settings = get_settings()
    require_settings(EMAIL_USER=settings.EMAIL_USER, EMAIL_PASS=settings.EMAIL_PASS)

    sent = await send_custom_order_email(
        customer_name=payload.customer_name,
        customer_email=payload.customer_email,
        customer_phone=payload.customer_phone,
        technology=payload.technology,
        description=payload.description,
    )
    if not sent:
        raise HTTPException(status_code=500, detail="Failed to send email")

    logger.info(f"Custom order request from {payload.customer_email} forwarded")
    return EmailSentResponse(success=True, message="Email sent successfully")
