"""
Umami read models - typed, read-only access to an Umami analytics database.

    from umami_models import AnalyticsReader, ReaderConfig

    reader = AnalyticsReader(ReaderConfig.build(os.environ["DATABASE_URL"]))
    q = reader.website_events.query().by_website(website_id).page_views().recent()
    events = await reader.website_events.all(q.limit(20))
"""

from umami_models.core.config import DatabaseTarget, ReaderConfig, Settings, get_settings
from umami_models.core.exceptions import (
    ConfigurationError,
    ParseFailure,
    QueryExecutionError,
    ReadOnlyViolation,
    UmamiModelsError,
    UnknownRelationshipError,
)
from umami_models.models import (
    DataType,
    Entity,
    EventData,
    EventType,
    Report,
    Session,
    SessionData,
    Team,
    TeamRole,
    TeamUser,
    User,
    Website,
    WebsiteEvent,
)
from umami_models.services.reader import (
    AnalyticsReader,
    configure,
    get_reader,
    reconfigure,
    reset,
)
from umami_models.services.relationships import RelatedSequence
from umami_models.services.repository import ReadOnlyRepository

__version__ = "1.0.0"

__all__ = [
    "AnalyticsReader",
    "ConfigurationError",
    "DataType",
    "DatabaseTarget",
    "Entity",
    "EventData",
    "EventType",
    "ParseFailure",
    "QueryExecutionError",
    "ReadOnlyRepository",
    "ReadOnlyViolation",
    "ReaderConfig",
    "RelatedSequence",
    "Report",
    "Session",
    "SessionData",
    "Settings",
    "Team",
    "TeamRole",
    "TeamUser",
    "UmamiModelsError",
    "UnknownRelationshipError",
    "User",
    "Website",
    "WebsiteEvent",
    "configure",
    "get_reader",
    "get_settings",
    "reconfigure",
    "reset",
]
