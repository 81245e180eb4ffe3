"""
Tracking read models: sessions, website events, and the typed key/value rows
attached to events (EventData) and sessions (SessionData).

Typed data rows store their value in one of three columns; `data_type`
says which one is meaningful.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import IntEnum
from typing import Any

from sqlalchemy import DateTime, Integer, Numeric, String

from umami_models.models.base import Entity, column


class EventType(IntEnum):
    PAGE_VIEW = 1
    CUSTOM = 2


class DataType(IntEnum):
    STRING = 1
    NUMBER = 2
    DATE = 3


class TypedValueMixin:
    """Resolves `value` from the column selected by `data_type`."""

    data_type: int | None
    string_value: str | None
    number_value: Decimal | None
    date_value: datetime | None

    @property
    def value(self) -> Any:
        # Unknown type codes yield no value rather than a guess
        if self.data_type == DataType.STRING:
            return self.string_value
        if self.data_type == DataType.NUMBER:
            return self.number_value
        if self.data_type == DataType.DATE:
            return self.date_value
        return None


@dataclass(eq=False, repr=False)
class Session(Entity):
    __tablename__ = "session"
    __primary_key__ = "session_id"
    __repr_fields__ = ("website_id", "browser", "country")

    session_id: str = column(String(36), primary_key=True)
    website_id: str = column(String(36), nullable=False, foreign_key="website.website_id")
    browser: str | None = column(String(20))
    os: str | None = column(String(20))
    device: str | None = column(String(20))
    screen: str | None = column(String(11))
    language: str | None = column(String(35))
    country: str | None = column(String(2))
    region: str | None = column(String(20))
    city: str | None = column(String(50))
    distinct_id: str | None = column(String(50))
    created_at: datetime | None = column(DateTime(timezone=True))


@dataclass(eq=False, repr=False)
class WebsiteEvent(Entity):
    __tablename__ = "website_event"
    __primary_key__ = "event_id"
    __repr_fields__ = ("event_type", "url_path")

    event_id: str = column(String(36), primary_key=True)
    website_id: str = column(String(36), nullable=False, foreign_key="website.website_id")
    session_id: str = column(String(36), nullable=False, foreign_key="session.session_id")
    visit_id: str | None = column(String(36))
    event_type: int = column(Integer, nullable=False)
    event_name: str | None = column(String(50))
    url_path: str | None = column(String(500))
    url_query: str | None = column(String(500))
    referrer_domain: str | None = column(String(500))
    page_title: str | None = column(String(500))
    hostname: str | None = column(String(100))
    tag: str | None = column(String(50))
    utm_source: str | None = column(String(255))
    utm_medium: str | None = column(String(255))
    utm_campaign: str | None = column(String(255))
    created_at: datetime | None = column(DateTime(timezone=True))

    @property
    def is_page_view(self) -> bool:
        return self.event_type == EventType.PAGE_VIEW


@dataclass(eq=False, repr=False)
class EventData(TypedValueMixin, Entity):
    __tablename__ = "event_data"
    __primary_key__ = "event_data_id"
    __repr_fields__ = ("data_key", "data_type")

    event_data_id: str = column(String(36), primary_key=True)
    website_id: str = column(String(36), nullable=False, foreign_key="website.website_id")
    website_event_id: str = column(
        String(36), nullable=False, foreign_key="website_event.event_id"
    )
    data_key: str = column(String(500), nullable=False)
    data_type: int = column(Integer, nullable=False)
    string_value: str | None = column(String(500))
    number_value: Decimal | None = column(Numeric(19, 4))
    date_value: datetime | None = column(DateTime(timezone=True))
    created_at: datetime | None = column(DateTime(timezone=True))


@dataclass(eq=False, repr=False)
class SessionData(TypedValueMixin, Entity):
    __tablename__ = "session_data"
    __primary_key__ = "session_data_id"
    __repr_fields__ = ("data_key", "data_type")

    session_data_id: str = column(String(36), primary_key=True)
    website_id: str = column(String(36), nullable=False, foreign_key="website.website_id")
    session_id: str = column(String(36), nullable=False, foreign_key="session.session_id")
    data_key: str = column(String(500), nullable=False)
    data_type: int = column(Integer, nullable=False)
    string_value: str | None = column(String(500))
    number_value: Decimal | None = column(Numeric(19, 4))
    date_value: datetime | None = column(DateTime(timezone=True))
    distinct_id: str | None = column(String(50))
    created_at: datetime | None = column(DateTime(timezone=True))
