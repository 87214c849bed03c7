"""Marketplace credential store.

Grants are keyed by the marketplace user id and overwritten in place; there is
no token history. Readers take the most recently updated row.
"""

from typing import Awaitable, Callable, Optional, TypeVar

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.marketplace_service.mercadolibre_client import (
    MercadoLibreClient,
    MercadoLibreError,
    TokenGrant,
    get_mercadolibre_client,
)
from services.marketplace_service.models import MarketplaceCredential
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

T = TypeVar("T")


async def get_latest_credential(db: AsyncSession) -> Optional[MarketplaceCredential]:
    result = await db.execute(
        select(MarketplaceCredential)
        .order_by(MarketplaceCredential.updated_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_credential(
    db: AsyncSession, user_id: str
) -> Optional[MarketplaceCredential]:
    result = await db.execute(
        select(MarketplaceCredential).where(MarketplaceCredential.user_id == user_id)
    )
    return result.scalar_one_or_none()


def _apply_grant(credential: MarketplaceCredential, grant: TokenGrant) -> None:
    credential.access_token = grant.access_token
    credential.refresh_token = grant.refresh_token
    credential.expires_in = grant.expires_in
    credential.scope = grant.scope
    credential.token_type = grant.token_type
    credential.updated_at = utc_now()


async def upsert_credential(db: AsyncSession, grant: TokenGrant) -> MarketplaceCredential:
    """Insert or overwrite the credential row for `grant.user_id`."""
    credential = await get_credential(db, grant.user_id)
    if credential is None:
        credential = MarketplaceCredential(user_id=grant.user_id)
        db.add(credential)
    _apply_grant(credential, grant)

    try:
        await db.commit()
    except IntegrityError:
        # Another writer inserted the same user between our select and commit
        await db.rollback()
        credential = await get_credential(db, grant.user_id)
        _apply_grant(credential, grant)
        await db.commit()

    await db.refresh(credential)
    logger.info(f"Stored marketplace credential for user {grant.user_id}")
    return credential


async def refresh_credential(
    db: AsyncSession, credential: MarketplaceCredential
) -> MarketplaceCredential:
    """Refresh one credential; raises MercadoLibreError when the provider refuses."""
    if not credential.refresh_token:
        raise MercadoLibreError(
            message="No refresh token available.",
            status_code=404,
        )
    grant = await get_mercadolibre_client().refresh(credential.refresh_token)
    refreshed = await upsert_credential(db, grant)
    logger.info(
        f"Refreshed marketplace token for user {refreshed.user_id}, "
        f"expires in {refreshed.expires_in}s"
    )
    return refreshed


async def refresh_latest_credential(
    db: AsyncSession,
) -> Optional[MarketplaceCredential]:
    """Refresh the newest credential. Returns None when no credential is stored."""
    credential = await get_latest_credential(db)
    if credential is None:
        return None
    return await refresh_credential(db, credential)


async def call_with_refresh(
    db: AsyncSession,
    credential: MarketplaceCredential,
    fn: Callable[[MercadoLibreClient], Awaitable[T]],
) -> T:
    """
    Run `fn` with a client for `credential`.

    A 401 triggers one refresh and one retry with the new token; any other
    error, or a second 401, propagates.
    """
    try:
        return await fn(get_mercadolibre_client(credential.access_token))
    except MercadoLibreError as e:
        if not e.unauthorized:
            raise
        logger.info(f"Marketplace token for user {credential.user_id} rejected, refreshing")

    credential = await refresh_credential(db, credential)
    return await fn(get_mercadolibre_client(credential.access_token))
