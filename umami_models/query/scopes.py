"""
Scope catalogs - the named filters each entity supports.

Each entity has one Query subclass; shared scopes live in small mixins.
Every scope is a pure step returning a new query:

    reader.website_events.query().by_website(wid).page_views().by_date_range(start, end)
"""

from datetime import date, datetime
from typing import Any

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
from umami_models.query.builder import Query

Timestamp = date | datetime


# ── Shared scopes ──────────────────────────────────────────────────────────────
class SoftDeleteScopes(Query):
    def active(self):
        """Rows whose deleted_at is unset. Unscoped queries include deleted rows."""
        return self._is_null("deleted_at")


class CreatedAtScopes(Query):
    def by_date_range(self, start: Timestamp, end: Timestamp):
        """Inclusive on created_at. start > end matches nothing."""
        return self._between("created_at", start, end)

    def recent(self):
        return self._order("created_at", descending=True)


class WebsiteScopes(Query):
    def by_website(self, website_id: str):
        return self._eq("website_id", website_id)


class TypedDataScopes(Query):
    def by_key(self, key: str):
        return self._eq("data_key", key)

    def string_type(self):
        return self._eq("data_type", int(DataType.STRING))

    def number_type(self):
        return self._eq("data_type", int(DataType.NUMBER))

    def date_type(self):
        return self._eq("data_type", int(DataType.DATE))


# ── Per-entity catalogs ────────────────────────────────────────────────────────
class UserQuery(SoftDeleteScopes):
    entity = User

    def with_role(self, role: str):
        return self._eq("role", role)

    by_role = with_role


class TeamQuery(SoftDeleteScopes):
    entity = Team

    def by_access_code(self, code: str):
        return self._eq("access_code", code)


class TeamUserQuery(Query):
    entity = TeamUser

    def by_team(self, team_id: str):
        return self._eq("team_id", team_id)

    def by_user(self, user_id: str):
        return self._eq("user_id", user_id)

    def by_role(self, role: str | TeamRole):
        return self._eq("role", role.value if isinstance(role, TeamRole) else role)

    def admins(self):
        return self.by_role(TeamRole.ADMIN)

    def members(self):
        return self.by_role(TeamRole.MEMBER)


class WebsiteQuery(SoftDeleteScopes, CreatedAtScopes):
    entity = Website

    def by_website(self, website_id: str):
        return self._eq("website_id", website_id)

    def by_user(self, user_id: str | None):
        return self._eq("user_id", user_id)

    def by_team(self, team_id: str | None):
        return self._eq("team_id", team_id)

    def public_shares(self):
        return self._not_null("share_id")


class SessionQuery(WebsiteScopes, CreatedAtScopes):
    entity = Session

    def by_browser(self, browser: str):
        return self._eq("browser", browser)

    def by_os(self, os: str):
        return self._eq("os", os)

    def by_device(self, device: str):
        return self._eq("device", device)

    def by_country(self, country: str):
        return self._eq("country", country)


class WebsiteEventQuery(WebsiteScopes, CreatedAtScopes):
    entity = WebsiteEvent

    def by_session(self, session_id: str):
        return self._eq("session_id", session_id)

    def by_visit(self, visit_id: str):
        return self._eq("visit_id", visit_id)

    def page_views(self):
        return self._eq("event_type", int(EventType.PAGE_VIEW))

    def custom_events(self):
        return self._eq("event_type", int(EventType.CUSTOM))

    def by_event_name(self, name: str):
        return self._eq("event_name", name)

    def by_url_path(self, path: str):
        return self._eq("url_path", path)

    def by_hostname(self, hostname: str):
        return self._eq("hostname", hostname)

    def with_utm_source(self, source: str):
        return self._eq("utm_source", source)

    def with_utm_campaign(self, campaign: str):
        return self._eq("utm_campaign", campaign)


class EventDataQuery(WebsiteScopes, TypedDataScopes, CreatedAtScopes):
    entity = EventData

    def by_event(self, event_id: str):
        return self._eq("website_event_id", event_id)


class SessionDataQuery(WebsiteScopes, TypedDataScopes, CreatedAtScopes):
    entity = SessionData

    def by_session(self, session_id: str):
        return self._eq("session_id", session_id)

    def by_distinct_id(self, distinct_id: str):
        return self._eq("distinct_id", distinct_id)


class ReportQuery(WebsiteScopes):
    entity = Report

    def by_type(self, report_type: str):
        return self._eq("type", report_type)

    def by_name(self, name: str):
        return self._eq("name", name)

    def by_user(self, user_id: str):
        return self._eq("user_id", user_id)

    def recent(self):
        return self._order("created_at", descending=True)


QUERY_TYPES: dict[type[Entity], type[Query]] = {
    query_type.entity: query_type
    for query_type in (
        UserQuery,
        TeamQuery,
        TeamUserQuery,
        WebsiteQuery,
        SessionQuery,
        WebsiteEventQuery,
        EventDataQuery,
        SessionDataQuery,
        ReportQuery,
    )
}


def query_for(entity: type[Entity]) -> Any:
    """An empty query carrying the entity's scope catalog."""
    return QUERY_TYPES[entity]()
