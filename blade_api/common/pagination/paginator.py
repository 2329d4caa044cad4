import logging
import math
from functools import lru_cache
from typing import Any, Generic

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import ColumnElement, and_, inspect, literal_column, or_, table, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, aliased, selectinload

from blade_api.common.pagination.config import JoinType, ModelType, PaginationConfig
from blade_api.common.pagination.dtos import PaginatedResult
from blade_api.common.pagination.params import QueryParams

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class PaginationError(Exception):
    """The count or fetch query failed in the store. Wraps the driver error."""


class InvalidFilterValueError(ValueError):
    def __init__(self, name: str, value: Any):
        super().__init__(f"Invalid value {value!r} for filter '{name}'")
        self.name = name
        self.value = value


@lru_cache(maxsize=32)
def _adapter(python_type: type) -> TypeAdapter:
    return TypeAdapter(python_type)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Paginator(Generic[ModelType]):
    """
    Builds and runs the count and page queries for a list endpoint.

    The paginator only borrows the request session. Both queries run on it one
    after the other, so they see the same filters and the same snapshot.
    """

    def __init__(self, session: Session):
        self.session = session

    def normalize(self, params: QueryParams, config: PaginationConfig[ModelType]) -> QueryParams:
        """Clamps paging values and resolves sorting against the config's allow-list."""
        page_size = params.page_size if params.page_size >= 1 else DEFAULT_PAGE_SIZE
        sort_by = params.sort_by if params.sort_by in config.sort_fields else config.default_sort
        sort_desc = params.sort_desc
        if sort_desc is None:
            sort_desc = (config.default_order or "DESC").upper() == "DESC"

        return params.model_copy(
            update={
                "page": max(params.page, 1),
                "page_size": min(page_size, MAX_PAGE_SIZE),
                "sort_by": sort_by,
                "sort_desc": sort_desc,
            }
        )

    def paginate(self, params: QueryParams, config: PaginationConfig[ModelType]) -> PaginatedResult[ModelType]:
        params = self.normalize(params, config)
        entity = self._entity(config)
        query = self.build_query(params, config, entity)

        try:
            total = query.order_by(None).count()
        except SQLAlchemyError as e:
            raise PaginationError("failed to get total count") from e

        query = self._apply_sort(query, entity, params, config)
        if config.relations:
            query = query.options(*[selectinload(getattr(entity, relation)) for relation in config.relations])

        offset = (params.page - 1) * params.page_size
        rows = []
        # Pages past the end are empty; the offset may not fit the store's integer type.
        if offset < total:
            try:
                rows = query.offset(offset).limit(params.page_size).all()
            except SQLAlchemyError as e:
                raise PaginationError("failed to fetch data") from e

        if config.select_fields:
            rows = [dict(row._mapping) for row in rows]

        logger.debug(
            "Paginated %s: page=%s page_size=%s total=%s",
            config.model.__name__,
            params.page,
            params.page_size,
            total,
        )
        return PaginatedResult(
            data=rows,
            total=total,
            page=params.page,
            page_size=params.page_size,
            total_pages=math.ceil(total / params.page_size),
        )

    def build_query(
        self, params: QueryParams, config: PaginationConfig[ModelType], entity: Any = None
    ) -> Query:
        """Filtered query shared by count and fetch: select, joins, conditions, grouping."""
        entity = entity if entity is not None else self._entity(config)
        query = self._build_select(entity, config)
        query = self._build_joins(query, config)
        query = self._build_where(query, entity, params, config)
        return self._build_group_by(query, entity, config)

    def _entity(self, config: PaginationConfig[ModelType]) -> Any:
        if config.table_alias:
            return aliased(config.model, name=config.table_alias)
        return config.model

    def _column(self, entity: Any, config: PaginationConfig[ModelType], name: str) -> ColumnElement:
        # Mapped attributes first; anything else is a trusted expression such as "roles.name".
        if name in inspect(config.model).columns:
            return getattr(entity, name)
        return literal_column(name)

    def _build_select(self, entity: Any, config: PaginationConfig[ModelType]) -> Query:
        if config.select_fields:
            columns = [
                literal_column(select_field.field).label(select_field.alias)
                if select_field.alias
                else literal_column(select_field.field)
                for select_field in config.select_fields
            ]
            query = self.session.query(*columns).select_from(entity)
        else:
            query = self.session.query(entity)

        if config.distinct:
            query = query.distinct()
        return query

    def _build_joins(self, query: Query, config: PaginationConfig[ModelType]) -> Query:
        for join in config.joins:
            target = table(join.table)
            if join.alias:
                target = target.alias(join.alias)
            query = query.join(
                target,
                text(join.condition),
                isouter=join.type is JoinType.LEFT,
                full=join.type is JoinType.FULL,
            )
        return query

    def _build_where(
        self, query: Query, entity: Any, params: QueryParams, config: PaginationConfig[ModelType]
    ) -> Query:
        for column_name, value in config.base_condition.items():
            query = query.filter(self._column(entity, config, column_name) == value)

        if params.search and config.search_fields:
            pattern = f"%{_escape_like(params.search)}%"
            query = query.filter(
                or_(
                    *[
                        self._column(entity, config, field).ilike(pattern, escape="\\")
                        for field in config.search_fields
                    ]
                )
            )

        for name, value in params.filters.items():
            column_name = config.filter_fields.get(name)
            if column_name is None or value is None:
                continue
            column = self._column(entity, config, column_name)
            query = query.filter(column == self._coerce(name, column, value))

        for name, date_range in params.dates.items():
            date_field = config.date_fields.get(name)
            if date_field is None:
                continue
            if date_range.start is not None:
                query = query.filter(self._column(entity, config, date_field.start) >= date_range.start)
            if date_range.end is not None:
                query = query.filter(self._column(entity, config, date_field.end) <= date_range.end)

        return query

    def _build_group_by(self, query: Query, entity: Any, config: PaginationConfig[ModelType]) -> Query:
        if config.group_by:
            query = query.group_by(*[self._column(entity, config, name) for name in config.group_by])
        if config.having:
            query = query.having(and_(*[text(clause) for clause in config.having]))
        return query

    def _apply_sort(
        self, query: Query, entity: Any, params: QueryParams, config: PaginationConfig[ModelType]
    ) -> Query:
        if params.sort_by:
            column = self._column(entity, config, params.sort_by)
            query = query.order_by(column.desc() if params.sort_desc else column.asc())

        # Primary key tie-breaker keeps pages disjoint when sort values repeat.
        if not (config.group_by or config.select_fields):
            mapper = inspect(config.model)
            query = query.order_by(
                *[getattr(entity, mapper.get_property_by_column(pk).key).asc() for pk in mapper.primary_key]
            )
        return query

    @staticmethod
    def _coerce(name: str, column: ColumnElement, value: Any) -> Any:
        """Converts a raw query-string value to the column's Python type when it is known."""
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return value
        try:
            return _adapter(python_type).validate_python(value)
        except ValidationError as e:
            raise InvalidFilterValueError(name, value) from e
