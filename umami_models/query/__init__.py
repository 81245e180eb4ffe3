from umami_models.query.builder import Ordering, Predicate, Query
from umami_models.query.scopes import (
    EventDataQuery,
    ReportQuery,
    SessionDataQuery,
    SessionQuery,
    TeamQuery,
    TeamUserQuery,
    UserQuery,
    WebsiteEventQuery,
    WebsiteQuery,
    query_for,
)

__all__ = [
    "EventDataQuery",
    "Ordering",
    "Predicate",
    "Query",
    "ReportQuery",
    "SessionDataQuery",
    "SessionQuery",
    "TeamQuery",
    "TeamUserQuery",
    "UserQuery",
    "WebsiteEventQuery",
    "WebsiteQuery",
    "query_for",
]
