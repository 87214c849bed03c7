"""Marketplace listing sync and notification subscription (admin)."""

from fastapi import APIRouter, Depends, HTTPException
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import require_settings
from libs.common.logging import get_logger
from libs.common.service_client import get_product
from libs.db.session import get_async_db
from services.marketplace_service.mercadolibre_client import get_mercadolibre_client
from services.marketplace_service.schemas import (
    SubscribeRequest,
    SyncProductRequest,
    SyncProductResponse,
)
from services.marketplace_service.services.credentials import get_latest_credential
from services.marketplace_service.services.listings import (
    CALLING_SERVICE,
    sync_product_listing,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["marketplace-listings"])
logger = get_logger(__name__)


@router.post("/api/ml-sync-product", response_model=SyncProductResponse)
async def sync_product(
    payload: SyncProductRequest,
    db: AsyncSession = Depends(get_async_db),
    current_user: AuthUser = Depends(require_admin),
):
    """Publish a product on MercadoLibre, or update its existing listing."""
    credential = await get_latest_credential(db)
    if credential is None:
        raise HTTPException(
            status_code=401,
            detail="No linked MercadoLibre account found.",
        )

    product = await get_product(payload.product_id, calling_service=CALLING_SERVICE)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    return await sync_product_listing(db, credential, product)


@router.post("/api/subscribe-hook")
async def subscribe_hook(
    payload: SubscribeRequest,
    db: AsyncSession = Depends(get_async_db),
    current_user: AuthUser = Depends(require_admin),
):
    """Register the webhook URL for a notification topic (orders_v2 by default)."""
    settings = get_settings()
    require_settings(ML_APP_ID=settings.ML_APP_ID)

    credential = await get_latest_credential(db)
    if credential is None:
        raise HTTPException(
            status_code=400, detail="No hay token de ML en base de datos"
        )

    client = get_mercadolibre_client(credential.access_token)
    result = await client.subscribe(
        settings.ML_APP_ID,
        credential.user_id,
        payload.url or settings.ML_WEBHOOK_URL,
        payload.topic,
    )
    logger.info(f"Subscription to {payload.topic}: {result['status']}")
    return result
