"""
Entity base - immutable records hydrated from one storage row.

Entities are dataclasses whose fields are declared with `column()`, which
carries everything the schema builder needs (SQLAlchemy type, nullability,
foreign key, storage name). The physical Table objects are produced per table
prefix by `models.tables.build_schema`.

Once constructed an entity cannot be changed: attribute assignment or deletion
raises ReadOnlyViolation. Identity is (entity type, primary key).
"""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from sqlalchemy.types import TypeEngine

from umami_models.core.exceptions import ReadOnlyViolation


@dataclass(frozen=True)
class ColumnSpec:
    type_: TypeEngine | type[TypeEngine]
    name: str | None = None            # storage name when it differs from the attribute
    primary_key: bool = False
    nullable: bool = True
    foreign_key: str | None = None     # unprefixed "table.column"


def column(
    type_: TypeEngine | type[TypeEngine],
    *,
    name: str | None = None,
    primary_key: bool = False,
    nullable: bool | None = None,
    foreign_key: str | None = None,
) -> Any:
    spec = ColumnSpec(
        type_=type_,
        name=name,
        primary_key=primary_key,
        nullable=(not primary_key) if nullable is None else nullable,
        foreign_key=foreign_key,
    )
    return field(default=None, metadata={"column": spec})


class Entity:
    """Base for all read models. Subclasses are `@dataclass(eq=False, repr=False)`."""

    __tablename__: ClassVar[str]
    __primary_key__: ClassVar[str]
    __repr_fields__: ClassVar[tuple[str, ...]] = ()

    def __setattr__(self, name: str, value: Any) -> None:
        if self.__dict__.get("_materialized"):
            raise ReadOnlyViolation("update", type(self).__name__)
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        raise ReadOnlyViolation("update", type(self).__name__)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_materialized", True)

    # ── Identity ───────────────────────────────────────────────────────────────
    @property
    def pk(self) -> Any:
        return getattr(self, self.__primary_key__)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.pk == other.pk

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.pk))

    def __repr__(self) -> str:
        shown = (self.__primary_key__,) + self.__repr_fields__
        parts = " ".join(f"{name}={getattr(self, name)!r}" for name in shown)
        return f"<{type(self).__name__} {parts}>"

    # ── Column mapping ─────────────────────────────────────────────────────────
    @classmethod
    def columns(cls) -> dict[str, ColumnSpec]:
        """Attribute name → column spec, in declaration order."""
        return {
            f.name: f.metadata["column"]
            for f in dataclasses.fields(cls)  # type: ignore[arg-type]
            if "column" in f.metadata
        }

    @classmethod
    def column_name(cls, attribute: str) -> str:
        try:
            spec = cls.columns()[attribute]
        except KeyError:
            raise AttributeError(f"{cls.__name__} has no column attribute {attribute!r}") from None
        return spec.name or attribute

    @classmethod
    def from_values(cls, values: Mapping[str, Any]) -> "Entity":
        """Build from attribute-keyed values; unknown keys are ignored."""
        return cls(**{attr: values.get(attr) for attr in cls.columns()})
