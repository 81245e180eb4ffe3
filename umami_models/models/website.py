"""
Website and Report read models.

A website may belong to a user (owner), record the user who created it, and
belong to a team. Each of these links is optional. Reports store their
parameters as serialized JSON.
"""

import copy
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, String, Text

from umami_models.core.exceptions import ParseFailure
from umami_models.core.logging import get_logger
from umami_models.models.base import Entity, column

logger = get_logger(__name__)


@dataclass(eq=False, repr=False)
class Website(Entity):
    __tablename__ = "website"
    __primary_key__ = "website_id"
    __repr_fields__ = ("name", "domain")

    website_id: str = column(String(36), primary_key=True)
    name: str = column(String(100), nullable=False)
    domain: str | None = column(String(500))
    share_id: str | None = column(String(50))
    reset_at: datetime | None = column(DateTime(timezone=True))
    user_id: str | None = column(String(36), foreign_key="user.user_id")
    team_id: str | None = column(String(36), foreign_key="team.team_id")
    creator_id: str | None = column(String(36), name="created_by", foreign_key="user.user_id")
    created_at: datetime | None = column(DateTime(timezone=True))
    updated_at: datetime | None = column(DateTime(timezone=True))
    deleted_at: datetime | None = column(DateTime(timezone=True))

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_shared(self) -> bool:
        return self.share_id is not None


def decode_parameters(raw: Any) -> Any:
    """Strict decoder for Report.parameters. Raises ParseFailure on bad input."""
    if isinstance(raw, (dict, list)):
        # jsonb columns may already arrive decoded; callers get their own copy
        return copy.deepcopy(raw)
    if raw is None:
        raise ParseFailure("Report parameters are empty")
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ParseFailure(
            "Report parameters are not valid JSON",
            cause=exc,
            context={"value_type": type(raw).__name__},
        ) from exc


@dataclass(eq=False, repr=False)
class Report(Entity):
    __tablename__ = "report"
    __primary_key__ = "report_id"
    __repr_fields__ = ("type", "name")

    report_id: str = column(String(36), primary_key=True)
    user_id: str = column(String(36), nullable=False, foreign_key="user.user_id")
    website_id: str = column(String(36), nullable=False, foreign_key="website.website_id")
    type: str = column(String(200), nullable=False)
    name: str = column(String(200), nullable=False)
    description: str | None = column(String(500))
    parameters: str | None = column(Text)
    created_at: datetime | None = column(DateTime(timezone=True))
    updated_at: datetime | None = column(DateTime(timezone=True))

    @property
    def parsed_parameters(self) -> Any:
        """Decoded parameters, or an empty dict when they cannot be parsed."""
        try:
            return decode_parameters(self.parameters)
        except ParseFailure as exc:
            logger.debug("report.parameters_unparseable", report_id=self.report_id, **exc.context)
            return {}
