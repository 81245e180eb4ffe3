from umami_models.models.analytics import (
    DataType,
    EventData,
    EventType,
    Session,
    SessionData,
    WebsiteEvent,
)
from umami_models.models.base import Entity
from umami_models.models.user import Team, TeamRole, TeamUser, User
from umami_models.models.website import Report, Website

__all__ = [
    "DataType",
    "Entity",
    "EventData",
    "EventType",
    "Report",
    "Session",
    "SessionData",
    "Team",
    "TeamRole",
    "TeamUser",
    "User",
    "Website",
    "WebsiteEvent",
]
