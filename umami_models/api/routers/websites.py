"""
Websites router - read-only diagnostics over the Umami schema.

  GET /websites                      → list websites (optionally active only)
  GET /websites/{id}                 → one website
  GET /websites/{id}/summary         → session / event counts, owner presence
  GET /websites/{id}/top-pages       → most viewed url paths over N days

There are no write routes; POST/PUT/DELETE get 405 from the router.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from umami_models.api.deps import get_analytics_reader
from umami_models.core.logging import get_logger
from umami_models.models.website import Website
from umami_models.services import analytics_service
from umami_models.services.reader import AnalyticsReader

router = APIRouter()
logger = get_logger(__name__)


# ── Schemas ────────────────────────────────────────────────────────────────────
class WebsiteOut(BaseModel):
    website_id: str
    name: str
    domain: str | None
    share_id: str | None
    user_id: str | None
    team_id: str | None
    creator_id: str | None
    created_at: datetime | None
    deleted_at: datetime | None

    model_config = {"from_attributes": True}


class WebsiteSummaryOut(BaseModel):
    website_id: str
    name: str
    session_count: int
    event_count: int
    page_view_count: int
    has_owner: bool
    is_deleted: bool

    model_config = {"from_attributes": True}


class PageCountOut(BaseModel):
    url_path: str | None
    views: int

    model_config = {"from_attributes": True}


class TopPagesOut(BaseModel):
    website_id: str
    days: int
    pages: list[PageCountOut]


async def _get_website(reader: AnalyticsReader, website_id: str) -> Website:
    website = await reader.websites.get(website_id)
    if website is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Website not found")
    return website


# ── Endpoints ──────────────────────────────────────────────────────────────────
@router.get("", response_model=list[WebsiteOut], summary="List websites")
async def list_websites(
    active: bool = Query(default=False, description="Exclude soft-deleted websites"),
    shared: bool = Query(default=False, description="Only websites with a share id"),
    limit: int = Query(default=50, ge=1, le=500),
    reader: AnalyticsReader = Depends(get_analytics_reader),
):
    query = reader.websites.query().recent().limit(limit)
    if active:
        query = query.active()
    if shared:
        query = query.public_shares()

    websites = await reader.websites.all(query)
    logger.info("websites.listed", count=len(websites), active=active, shared=shared)
    return websites


@router.get("/{website_id}", response_model=WebsiteOut, summary="Get one website")
async def get_website(
    website_id: str,
    reader: AnalyticsReader = Depends(get_analytics_reader),
):
    return await _get_website(reader, website_id)


@router.get(
    "/{website_id}/summary",
    response_model=WebsiteSummaryOut,
    summary="Session and event counts for a website",
)
async def website_summary(
    website_id: str,
    reader: AnalyticsReader = Depends(get_analytics_reader),
):
    website = await _get_website(reader, website_id)
    return await analytics_service.website_summary(reader, website)


@router.get(
    "/{website_id}/top-pages",
    response_model=TopPagesOut,
    summary="Most viewed pages over the last N days",
)
async def top_pages(
    website_id: str,
    days: int = Query(default=30, ge=1, le=366),
    limit: int = Query(default=5, ge=1, le=100),
    reader: AnalyticsReader = Depends(get_analytics_reader),
):
    await _get_website(reader, website_id)
    pages = await analytics_service.top_pages(reader, website_id, days=days, limit=limit)
    return TopPagesOut(website_id=website_id, days=days, pages=pages)
