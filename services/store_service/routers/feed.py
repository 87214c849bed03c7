"""Public feeds: ad catalog CSV and caption-to-product link lookup."""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.models import Product
from services.store_service.schemas import FindLinkRequest, FindLinkResponse
from services.store_service.services.catalog_feed import build_catalog_csv
from services.store_service.services.product_links import (
    EXACT_NAME_BONUS,
    best_match,
    home_url,
    product_url,
)
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["feeds"])
logger = get_logger(__name__)


@router.get("/catalog")
async def catalog_feed(db: AsyncSession = Depends(get_async_db)):
    """CSV product feed for Meta/Google catalogs: published products, newest first."""
    settings = get_settings()
    result = await db.execute(
        select(Product)
        .where(Product.draft.is_(False))
        .order_by(Product.created_at.desc(), Product.id.desc())
    )
    products = result.scalars().all()

    content = build_catalog_csv(products, settings.STORE_BASE_URL, settings.STORE_BRAND)
    logger.info(f"Catalog feed generated with {len(products)} products")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="catalog.csv"'},
    )


async def _find_link(text: str, db: AsyncSession) -> FindLinkResponse:
    settings = get_settings()
    fallback = home_url(settings.STORE_BASE_URL)

    if not text:
        return FindLinkResponse(found=False, url=fallback, reason="no_text")

    try:
        result = await db.execute(select(Product.id, Product.name))
        candidates = [(row.id, row.name) for row in result]
    except SQLAlchemyError as exc:
        logger.error(f"find-link product lookup failed: {exc}")
        return FindLinkResponse(found=False, url=fallback, reason="db_error")

    match = best_match(text, candidates)
    if not match:
        return FindLinkResponse(found=False, url=fallback, reason="no_match_found")

    product_id, name, score = match
    return FindLinkResponse(
        found=True,
        url=product_url(settings.STORE_BASE_URL, product_id),
        product=name,
        product_id=product_id,
        match_type="exact_name_in_text" if score >= EXACT_NAME_BONUS else "keyword_match",
        score=score,
    )


@router.get("/find-link", response_model=FindLinkResponse, response_model_exclude_none=True)
async def find_link(
    q: Optional[str] = None,
    db: AsyncSession = Depends(get_async_db),
):
    """Best product page for a free-text caption, home page otherwise."""
    return await _find_link((q or "").strip(), db)


@router.post("/find-link", response_model=FindLinkResponse, response_model_exclude_none=True)
async def find_link_post(
    request: Optional[FindLinkRequest] = None,
    q: Optional[str] = None,
    db: AsyncSession = Depends(get_async_db),
):
    """Same lookup for automation tools that post the caption as `{"text": ...}`."""
    return await _find_link((q or (request.text if request else "") or "").strip(), db)
