"""
Relationship registry - declarative links between read models.

Relationships are data, not methods: the resolver in
`services.relationships` turns each definition into a filtered query on the
target table. Two links from Website to User are named by role (`owner`,
`creator`) rather than by target type.
"""

from dataclasses import dataclass

from umami_models.core.exceptions import UnknownRelationshipError
from umami_models.models.analytics import EventData, Session, SessionData, WebsiteEvent
from umami_models.models.base import Entity
from umami_models.models.user import Team, TeamUser, User
from umami_models.models.website import Report, Website


@dataclass(frozen=True)
class BelongsTo:
    """Many-to-one: the source row holds the foreign key."""

    target: type[Entity]
    foreign_key: str          # attribute on the source
    optional: bool = False


@dataclass(frozen=True)
class HasMany:
    """One-to-many: the target rows hold a foreign key to the source's primary key."""

    target: type[Entity]
    foreign_key: str          # attribute on the target


@dataclass(frozen=True)
class HasManyThrough:
    """Many-to-many via a join entity."""

    through: type[Entity]
    source_key: str           # join attribute pointing at the source
    target: type[Entity]
    target_key: str           # join attribute pointing at the target


Relationship = BelongsTo | HasMany | HasManyThrough


RELATIONSHIPS: dict[type[Entity], dict[str, Relationship]] = {
    User: {
        "owned_websites": HasMany(Website, "user_id"),
        "created_websites": HasMany(Website, "creator_id"),
        "team_users": HasMany(TeamUser, "user_id"),
        "teams": HasManyThrough(TeamUser, "user_id", Team, "team_id"),
        "reports": HasMany(Report, "user_id"),
    },
    Team: {
        "websites": HasMany(Website, "team_id"),
        "team_users": HasMany(TeamUser, "team_id"),
        "users": HasManyThrough(TeamUser, "team_id", User, "user_id"),
    },
    TeamUser: {
        "team": BelongsTo(Team, "team_id"),
        "user": BelongsTo(User, "user_id"),
    },
    Website: {
        "owner": BelongsTo(User, "user_id", optional=True),
        "creator": BelongsTo(User, "creator_id", optional=True),
        "team": BelongsTo(Team, "team_id", optional=True),
        "sessions": HasMany(Session, "website_id"),
        "website_events": HasMany(WebsiteEvent, "website_id"),
        "event_data": HasMany(EventData, "website_id"),
        "session_data": HasMany(SessionData, "website_id"),
        "reports": HasMany(Report, "website_id"),
    },
    Session: {
        "website": BelongsTo(Website, "website_id"),
        "website_events": HasMany(WebsiteEvent, "session_id"),
        "session_data": HasMany(SessionData, "session_id"),
    },
    WebsiteEvent: {
        "website": BelongsTo(Website, "website_id"),
        "session": BelongsTo(Session, "session_id"),
        "event_data": HasMany(EventData, "website_event_id"),
    },
    EventData: {
        "website": BelongsTo(Website, "website_id"),
        "website_event": BelongsTo(WebsiteEvent, "website_event_id"),
    },
    SessionData: {
        "website": BelongsTo(Website, "website_id"),
        "session": BelongsTo(Session, "session_id"),
    },
    Report: {
        "user": BelongsTo(User, "user_id"),
        "website": BelongsTo(Website, "website_id"),
    },
}


def relationship_for(entity: type[Entity], name: str) -> Relationship:
    try:
        return RELATIONSHIPS[entity][name]
    except KeyError:
        raise UnknownRelationshipError(entity.__name__, name) from None
