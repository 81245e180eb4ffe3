"""
User, Team and TeamUser read models.

Team membership is many-to-many: TeamUser is the join entity linking a user
to a team with a role.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String

from umami_models.models.base import Entity, column


class TeamRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


@dataclass(eq=False, repr=False)
class User(Entity):
    __tablename__ = "user"
    __primary_key__ = "user_id"
    __repr_fields__ = ("username", "role")

    user_id: str = column(String(36), primary_key=True)
    username: str = column(String(255), nullable=False)
    role: str = column(String(50), nullable=False)
    display_name: str | None = column(String(255))
    logo_url: str | None = column(String(2183))
    created_at: datetime | None = column(DateTime(timezone=True))
    updated_at: datetime | None = column(DateTime(timezone=True))
    deleted_at: datetime | None = column(DateTime(timezone=True))

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(eq=False, repr=False)
class Team(Entity):
    __tablename__ = "team"
    __primary_key__ = "team_id"
    __repr_fields__ = ("name",)

    team_id: str = column(String(36), primary_key=True)
    name: str = column(String(50), nullable=False)
    access_code: str | None = column(String(50))
    logo_url: str | None = column(String(2183))
    created_at: datetime | None = column(DateTime(timezone=True))
    updated_at: datetime | None = column(DateTime(timezone=True))
    deleted_at: datetime | None = column(DateTime(timezone=True))

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(eq=False, repr=False)
class TeamUser(Entity):
    __tablename__ = "team_user"
    __primary_key__ = "team_user_id"
    __repr_fields__ = ("team_id", "user_id", "role")

    team_user_id: str = column(String(36), primary_key=True)
    team_id: str = column(String(36), nullable=False, foreign_key="team.team_id")
    user_id: str = column(String(36), nullable=False, foreign_key="user.user_id")
    role: str = column(String(50), nullable=False)
    created_at: datetime | None = column(DateTime(timezone=True))
    updated_at: datetime | None = column(DateTime(timezone=True))

    @property
    def is_admin(self) -> bool:
        return self.role == TeamRole.ADMIN.value
