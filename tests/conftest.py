"""
Shared fixtures.

Each test gets a fresh SQLite file. An *owner* engine, which plays the part of
the Umami service that owns the schema, creates the tables and seeds rows; the
reader under test connects to the same file through its own gated engine.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from umami_models import (
    AnalyticsReader,
    EventData,
    ReaderConfig,
    Report,
    Session,
    SessionData,
    Team,
    TeamUser,
    User,
    Website,
    WebsiteEvent,
)
from umami_models.models.tables import build_schema

NOW = datetime(2026, 10, 19, 12, 0, 0)


def days_ago(n: float) -> datetime:
    return NOW - timedelta(days=n)


SEED: dict[type, list[dict]] = {
    User: [
        {"user_id": "u-alice", "username": "alice", "role": "admin", "created_at": days_ago(300)},
        {"user_id": "u-bob", "username": "bob", "role": "user", "created_at": days_ago(200)},
        {
            "user_id": "u-carol",
            "username": "carol",
            "role": "user",
            "created_at": days_ago(100),
            "deleted_at": days_ago(20),
        },
    ],
    Team: [
        {"team_id": "t-core", "name": "Core", "access_code": "core-123", "created_at": days_ago(150)},
        {
            "team_id": "t-old",
            "name": "Old",
            "access_code": "old-456",
            "created_at": days_ago(400),
            "deleted_at": days_ago(30),
        },
    ],
    TeamUser: [
        {"team_user_id": "tu-1", "team_id": "t-core", "user_id": "u-alice", "role": "admin"},
        {"team_user_id": "tu-2", "team_id": "t-core", "user_id": "u-bob", "role": "member"},
        {"team_user_id": "tu-3", "team_id": "t-old", "user_id": "u-alice", "role": "member"},
        # duplicate membership row; traversals must still yield t-core once
        {"team_user_id": "tu-4", "team_id": "t-core", "user_id": "u-alice", "role": "member"},
    ],
    Website: [
        {
            "website_id": "7",
            "name": "Blog",
            "domain": "blog.example.com",
            "share_id": "share-7",
            "user_id": "u-alice",
            "creator_id": "u-bob",
            "created_at": days_ago(100),
        },
        {
            "website_id": "8",
            "name": "Shop",
            "domain": "shop.example.com",
            "user_id": "u-alice",
            "team_id": "t-core",
            "created_at": days_ago(50),
        },
        {
            "website_id": "9",
            "name": "Old site",
            "domain": "old.example.com",
            "user_id": "u-bob",
            "created_at": days_ago(200),
            "deleted_at": days_ago(10),
        },
    ],
    Session: [
        {
            "session_id": "s-1", "website_id": "7", "browser": "chrome", "os": "Mac OS",
            "device": "desktop", "country": "US", "created_at": days_ago(5),
        },
        {
            "session_id": "s-2", "website_id": "7", "browser": "firefox", "os": "Linux",
            "device": "desktop", "country": "DE", "created_at": days_ago(40),
        },
        {
            "session_id": "s-3", "website_id": "8", "browser": "safari", "os": "iOS",
            "device": "mobile", "country": "US", "created_at": days_ago(1),
        },
    ],
    WebsiteEvent: [
        {
            "event_id": "e-1", "website_id": "7", "session_id": "s-1", "event_type": 1,
            "url_path": "/", "hostname": "blog.example.com", "utm_source": "newsletter",
            "created_at": days_ago(5),
        },
        {
            "event_id": "e-2", "website_id": "7", "session_id": "s-1", "event_type": 1,
            "url_path": "/about", "hostname": "blog.example.com", "created_at": days_ago(4),
        },
        {
            "event_id": "e-3", "website_id": "7", "session_id": "s-1", "event_type": 1,
            "url_path": "/", "hostname": "blog.example.com", "created_at": days_ago(3),
        },
        {
            "event_id": "e-4", "website_id": "7", "session_id": "s-2", "event_type": 1,
            "url_path": "/pricing", "hostname": "blog.example.com", "created_at": days_ago(40),
        },
        {
            "event_id": "e-5", "website_id": "7", "session_id": "s-1", "event_type": 2,
            "event_name": "signup", "url_path": "/", "hostname": "blog.example.com",
            "created_at": days_ago(2),
        },
        {
            "event_id": "e-6", "website_id": "8", "session_id": "s-3", "event_type": 1,
            "url_path": "/", "hostname": "shop.example.com", "created_at": days_ago(1),
        },
    ],
    EventData: [
        {
            "event_data_id": "ed-1", "website_id": "7", "website_event_id": "e-5",
            "data_key": "plan", "data_type": 1, "string_value": "pro", "created_at": days_ago(2),
        },
        {
            "event_data_id": "ed-2", "website_id": "7", "website_event_id": "e-5",
            "data_key": "amount", "data_type": 2, "number_value": Decimal("49.5"),
            "created_at": days_ago(2),
        },
        {
            "event_data_id": "ed-3", "website_id": "7", "website_event_id": "e-5",
            "data_key": "trial_end", "data_type": 3, "date_value": NOW + timedelta(days=14),
            "created_at": days_ago(2),
        },
        {
            "event_data_id": "ed-4", "website_id": "7", "website_event_id": "e-5",
            "data_key": "mystery", "data_type": 7, "string_value": "ignored",
            "created_at": days_ago(2),
        },
    ],
    SessionData: [
        {
            "session_data_id": "sd-1", "website_id": "7", "session_id": "s-1",
            "data_key": "tier", "data_type": 1, "string_value": "gold", "distinct_id": "d-1",
            "created_at": days_ago(5),
        },
        {
            "session_data_id": "sd-2", "website_id": "7", "session_id": "s-1",
            "data_key": "visits", "data_type": 2, "number_value": Decimal("3"),
            "distinct_id": "d-1", "created_at": days_ago(5),
        },
    ],
    Report: [
        {
            "report_id": "r-1", "user_id": "u-alice", "website_id": "7", "type": "funnel",
            "name": "Signup funnel", "parameters": '{"steps": ["/", "/signup"], "window": 7}',
            "created_at": days_ago(3),
        },
        {
            "report_id": "r-2", "user_id": "u-alice", "website_id": "7", "type": "insights",
            "name": "Broken", "parameters": "{not json", "created_at": days_ago(1),
        },
    ],
}


async def seed_schema(engine: AsyncEngine, prefix: str = "") -> None:
    schema = build_schema(prefix)
    async with engine.begin() as conn:
        await conn.run_sync(schema.metadata.create_all)
        for entity, rows in SEED.items():
            table = schema.table(entity)
            # executemany takes its column list from the first row, so fill every key
            full_rows = [{key: row.get(key) for key in table.c.keys()} for row in rows]
            await conn.execute(insert(table), full_rows)


class UnreachableEngine:
    """Stands in for an engine whose driver fails while opening a connection."""

    def __init__(self, error: BaseException) -> None:
        self.error = error

    def connect(self):
        return self

    async def __aenter__(self):
        raise self.error

    async def __aexit__(self, *exc_info):
        return False


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'umami.db'}"


@pytest_asyncio.fixture
async def owner_engine(db_url):
    engine = create_async_engine(db_url)
    await seed_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def reader(db_url, owner_engine):
    reader = AnalyticsReader(ReaderConfig.build(db_url))
    yield reader
    await reader.close()
