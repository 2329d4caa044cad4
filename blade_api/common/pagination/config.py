import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

ModelType = TypeVar("ModelType")


class JoinType(str, enum.Enum):
    LEFT = "LEFT"
    INNER = "INNER"
    FULL = "FULL"


@dataclass(frozen=True)
class JoinConfig:
    table: str
    condition: str
    type: JoinType = JoinType.LEFT
    alias: str = ""


@dataclass(frozen=True)
class SelectField:
    field: str
    alias: str = ""


@dataclass(frozen=True)
class DateField:
    """Columns compared against the start and end bounds of a date range."""

    start: str
    end: str


@dataclass(frozen=True)
class PaginationConfig(Generic[ModelType]):
    """
    Trusted, per-resource description of what a list endpoint may query.

    Every string in here is written by developers, never taken from a request.
    ``filter_fields`` and ``sort_fields`` are the allow-lists that caller
    input is checked against; anything not listed is ignored.

    Example:
        USER_PAGINATION_CONFIG = PaginationConfig(
            model=UserEntity,
            base_condition={"is_deleted": False},
            search_fields=("name", "email", "username"),
            filter_fields={"role": "role"},
            date_fields={"created_at": DateField(start="created_at", end="created_at")},
            sort_fields=("name", "created_at"),
            default_sort="created_at",
            default_order="DESC",
        )
    """

    model: type[ModelType]
    base_condition: Mapping[str, Any] = field(default_factory=dict)
    search_fields: Sequence[str] = ()
    filter_fields: Mapping[str, str] = field(default_factory=dict)
    date_fields: Mapping[str, DateField] = field(default_factory=dict)
    sort_fields: Sequence[str] = ()
    default_sort: str = ""
    default_order: str = ""
    relations: Sequence[str] = ()
    joins: Sequence[JoinConfig] = ()
    select_fields: Sequence[SelectField] = ()
    group_by: Sequence[str] = ()
    having: Sequence[str] = ()
    distinct: bool = False
    table_alias: str = ""
