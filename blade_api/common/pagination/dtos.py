from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class PaginatedResult(Generic[T]):
    """One page of rows as returned by the paginator, before serialization."""

    data: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int

    def map(self, fn: Callable[[T], R]) -> "PaginatedResult[R]":
        """Same page with every row converted by ``fn``."""
        return replace(self, data=[fn(row) for row in self.data])


class PaginatedResponse(BaseModel, Generic[T]):
    """Page envelope sent to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data: list[T] = Field(..., description="Rows of the current page")
    total: int = Field(..., description="Rows matching the query across all pages")
    page: int = Field(..., description="Effective page number")
    page_size: int = Field(..., description="Effective page size")
    total_pages: int = Field(..., description="ceil(total / pageSize)")

    @classmethod
    def from_result(cls, result: PaginatedResult[Any], converter: Callable[[Any], T]) -> "PaginatedResponse[T]":
        mapped = result.map(converter)
        return cls(
            data=mapped.data,
            total=mapped.total,
            page=mapped.page,
            page_size=mapped.page_size,
            total_pages=mapped.total_pages,
        )
