from .config import DateField, JoinConfig, JoinType, PaginationConfig, SelectField
from .dtos import PaginatedResponse, PaginatedResult
from .paginator import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    InvalidFilterValueError,
    PaginationError,
    Paginator,
)
from .params import DateRange, QueryParams, get_query_params, parse_query_params

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "DateField",
    "DateRange",
    "InvalidFilterValueError",
    "JoinConfig",
    "JoinType",
    "PaginatedResponse",
    "PaginatedResult",
    "PaginationConfig",
    "PaginationError",
    "Paginator",
    "QueryParams",
    "SelectField",
    "get_query_params",
    "parse_query_params",
]
