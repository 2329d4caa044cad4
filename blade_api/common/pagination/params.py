"""Query-string binding for paginated list endpoints.

The wire format follows the bracket convention used by the frontend::

    ?page=2&pageSize=20&search=ann&sortBy=name&sortDesc=false
    &filters[role]=admin
    &dates[created_at][start]=2024-01-01T00:00:00&dates[created_at][end]=2024-02-01T00:00:00

Binding is lenient about ranges (the paginator clamps them) but strict about
types: a non-integer ``page`` or a malformed timestamp is a 400.
"""
import re
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

_FILTER_KEY = re.compile(r"^filters\[([^\[\]]+)\]$")
_DATE_KEY = re.compile(r"^dates\[([^\[\]]+)\]\[(start|end)\]$")
_SCALAR_KEYS = frozenset({"page", "pageSize", "search", "sortBy", "sortDesc"})


class DateRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime | None = None
    end: datetime | None = None


class QueryParams(BaseModel):
    """Untrusted list parameters supplied by the caller."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    page: int = 1
    page_size: int = 10
    search: str = ""
    filters: dict[str, Any] = Field(default_factory=dict)
    sort_by: str = ""
    # None means "use the resource's default order"
    sort_desc: bool | None = None
    dates: dict[str, DateRange] = Field(default_factory=dict)


def parse_query_params(items: Iterable[tuple[str, str]]) -> QueryParams:
    """Builds QueryParams from raw (key, value) pairs; the first value of a repeated key wins."""
    raw: dict[str, Any] = {}
    filters: dict[str, str] = {}
    dates: dict[str, dict[str, str]] = {}

    for key, value in items:
        if match := _FILTER_KEY.match(key):
            filters.setdefault(match.group(1), value)
        elif not value:
            continue
        elif match := _DATE_KEY.match(key):
            dates.setdefault(match.group(1), {}).setdefault(match.group(2), value)
        elif key in _SCALAR_KEYS:
            raw.setdefault(key, value)

    raw["filters"] = filters
    raw["dates"] = dates
    return QueryParams.model_validate(raw)


def get_query_params(request: Request) -> QueryParams:
    """FastAPI dependency binding the request query string into QueryParams."""
    try:
        return parse_query_params(request.query_params.multi_items())
    except ValidationError as e:
        errors = [
            {**error, "loc": ("query", *error["loc"])} for error in e.errors(include_url=False, include_context=False)
        ]
        raise RequestValidationError(errors) from e
