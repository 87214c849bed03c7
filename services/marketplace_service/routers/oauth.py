"""Marketplace account linking and token refresh."""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.datetime_utils import iso_now
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.marketplace_service.mercadolibre_client import get_mercadolibre_client
from services.marketplace_service.schemas import (
    OAuthCodeRequest,
    OAuthResponse,
    TokenRefreshResponse,
)
from services.marketplace_service.services.credentials import (
    refresh_latest_credential,
    upsert_credential,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["marketplace-auth"])
logger = get_logger(__name__)


@router.get("/api/ml-oauth")
async def oauth_status():
    return {"ok": True, "message": "ml-oauth endpoint alive"}


@router.post("/api/ml-oauth", response_model=OAuthResponse)
async def exchange_oauth_code(
    payload: Optional[OAuthCodeRequest] = None,
    db: AsyncSession = Depends(get_async_db),
):
    """
    OAuth callback: trade the authorization code for tokens and store them.

    The grant must carry both `user_id` and `access_token`; a grant for an
    account that is already linked overwrites the stored tokens.
    """
    if payload is None or not payload.code:
        raise HTTPException(status_code=400, detail="Missing code")

    grant = await get_mercadolibre_client().exchange_code(payload.code)
    await upsert_credential(db, grant)
    return OAuthResponse(ok=True, user_id=grant.user_id, saved=True)


@router.get("/api/ml-refresh-token", response_model=TokenRefreshResponse)
@router.post("/api/ml-refresh-token", response_model=TokenRefreshResponse)
async def refresh_token(
    db: AsyncSession = Depends(get_async_db),
    current_user: AuthUser = Depends(require_admin),
):
    """Refresh the newest stored credential on demand."""
    credential = await refresh_latest_credential(db)
    if credential is None:
        raise HTTPException(status_code=404, detail="No refresh token available.")
    return TokenRefreshResponse(
        success=True,
        user_id=credential.user_id,
        expires_in=credential.expires_in,
        updated_at=credential.updated_at.isoformat(),
    )


@router.get("/api/cron-refresh-ml")
async def cron_refresh_token(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_async_db),
):
    """Scheduled refresh. Tokens expire after six hours."""
    settings = get_settings()
    if settings.CRON_SECRET and authorization != f"Bearer {settings.CRON_SECRET}":
        raise HTTPException(status_code=401, detail="Invalid cron secret")

    credential = await refresh_latest_credential(db)
    if credential is None:
        return {"status": "No tokens found"}

    logger.info(
        f"Cron refreshed token for user {credential.user_id}, "
        f"expires in {credential.expires_in}s"
    )
    return {"success": True, "user_id": credential.user_id, "refreshed_at": iso_now()}
