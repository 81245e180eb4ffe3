"""
Analytics service - canned read-only reports built from scopes.

These are the checks a host runs to confirm the reader is wired to a real
Umami database: per-website counts and the top pages over a recent window.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from umami_models.core.logging import get_logger
from umami_models.models.website import Website
from umami_models.services.reader import AnalyticsReader

logger = get_logger(__name__)


@dataclass(frozen=True)
class WebsiteSummary:
    website_id: str
    name: str
    session_count: int
    event_count: int
    page_view_count: int
    has_owner: bool
    is_deleted: bool


@dataclass(frozen=True)
class PageCount:
    url_path: str | None
    views: int


async def website_summary(reader: AnalyticsReader, website: Website) -> WebsiteSummary:
    events = reader.website_events.query().by_website(website.website_id)
    owner = await reader.relationships.one(website, "owner")

    summary = WebsiteSummary(
        website_id=website.website_id,
        name=website.name,
        session_count=await reader.relationships.many(website, "sessions").count(),
        event_count=await reader.website_events.count(events),
        page_view_count=await reader.website_events.count(events.page_views()),
        has_owner=owner is not None,
        is_deleted=website.is_deleted,
    )
    logger.info(
        "analytics.website_summary",
        website_id=website.website_id,
        sessions=summary.session_count,
        events=summary.event_count,
    )
    return summary


async def top_pages(
    reader: AnalyticsReader,
    website_id: str,
    *,
    days: int = 30,
    limit: int = 5,
    now: datetime | None = None,
) -> list[PageCount]:
    """Most viewed url paths for a website over the last `days` days."""
    end = now or datetime.now(timezone.utc)
    start = end - timedelta(days=days)
    query = (
        reader.website_events.query()
        .by_website(website_id)
        .page_views()
        .by_date_range(start, end)
        .limit(limit)
    )
    counts = await reader.website_events.group_count("url_path", query)

    logger.info(
        "analytics.top_pages",
        website_id=website_id,
        days=days,
        pages=len(counts),
    )
    return [PageCount(url_path=path, views=views) for path, views in counts.items()]
