from datetime import timedelta

import pytest

from blade_api.common.pagination import (
    DateField,
    InvalidFilterValueError,
    JoinConfig,
    JoinType,
    PaginationConfig,
    PaginationError,
    Paginator,
    QueryParams,
    SelectField,
)
from blade_api.modules.auth.entities import UserEntity
from blade_api.modules.users.services.users_service import USER_PAGINATION_CONFIG
from tests.conftest import BASE_TIME


@pytest.fixture
def users(make_user):
    """25 users, created one minute apart; users 1, 5, 10 and 15 are admins."""
    admins = {1, 5, 10, 15}
    return [make_user(role="admin" if n in admins else "user") for n in range(1, 26)]


@pytest.fixture
def paginator(db_session):
    return Paginator(db_session)


def paginate(paginator, **params):
    return paginator.paginate(QueryParams(**params), USER_PAGINATION_CONFIG)


def test_first_and_last_page(users, paginator):
    first = paginate(paginator, page=1, page_size=10)
    assert len(first.data) == 10
    assert first.total == 25
    assert first.total_pages == 3

    last = paginate(paginator, page=3, page_size=10)
    assert len(last.data) == 5
    assert last.page == 3


def test_default_sort_is_newest_first(users, paginator):
    result = paginate(paginator)
    assert [user.username for user in result.data[:3]] == ["user25", "user24", "user23"]


def test_page_below_one_behaves_as_first_page(users, paginator):
    result = paginate(paginator, page=0)
    assert result.page == 1
    assert [u.id for u in result.data] == [u.id for u in paginate(paginator, page=1).data]


def test_page_size_is_clamped(users, paginator):
    assert paginate(paginator, page_size=500).page_size == 100
    assert paginate(paginator, page_size=0).page_size == 10
    assert paginate(paginator, page_size=-3).page_size == 10


def test_filter_by_role(users, paginator):
    result = paginate(paginator, filters={"role": "admin"})
    assert result.total == 4
    assert all(user.role == "admin" for user in result.data)


def test_unknown_filter_key_is_ignored(users, paginator):
    result = paginate(paginator, filters={"hashed_password": "x", "nonexistent": "y"})
    assert result.total == 25


def test_unknown_sort_field_falls_back_to_default(users, paginator):
    default = paginate(paginator)
    unknown = paginate(paginator, sort_by="nonexistent_field")
    assert [u.id for u in unknown.data] == [u.id for u in default.data]


def test_sort_ascending_by_name(users, paginator):
    result = paginate(paginator, sort_by="name", sort_desc=False, page_size=3)
    assert [user.name for user in result.data] == ["User 01", "User 02", "User 03"]


def test_empty_search_equals_no_search(users, paginator):
    assert paginate(paginator, search="").total == paginate(paginator).total == 25


def test_search_matches_any_search_field(users, paginator):
    result = paginate(paginator, search="USER0")
    assert result.total == 9


def test_search_wildcards_are_literal(users, paginator):
    assert paginate(paginator, search="%").total == 0
    assert paginate(paginator, search="user_1").total == 0


def test_date_range_with_only_start(users, paginator):
    start = BASE_TIME + timedelta(minutes=20)
    result = paginate(paginator, dates={"created_at": {"start": start}})
    assert result.total == 6
    assert all(user.created_at >= start for user in result.data)


def test_date_range_with_start_and_end(users, paginator):
    result = paginate(
        paginator,
        dates={"created_at": {"start": BASE_TIME + timedelta(minutes=3), "end": BASE_TIME + timedelta(minutes=7)}},
    )
    assert result.total == 5


def test_unknown_date_key_is_ignored(users, paginator):
    result = paginate(paginator, dates={"deleted_at": {"start": BASE_TIME + timedelta(days=1)}})
    assert result.total == 25


def test_paging_through_all_pages_yields_every_row_once(users, paginator):
    seen = []
    first = paginate(paginator, page_size=7)
    for page in range(1, first.total_pages + 1):
        seen.extend(user.id for user in paginate(paginator, page=page, page_size=7).data)
    assert len(seen) == first.total
    assert len(set(seen)) == first.total


def test_pages_stay_disjoint_when_sort_values_tie(make_user, paginator):
    for _ in range(12):
        make_user(minutes=0)
    seen = []
    for page in (1, 2, 3):
        seen.extend(user.id for user in paginate(paginator, page=page, page_size=5).data)
    assert len(set(seen)) == 12


def test_soft_deleted_rows_are_excluded(make_user, paginator):
    make_user()
    make_user(is_deleted=True)
    result = paginate(paginator)
    assert result.total == 1


def test_empty_result(db_session, paginator):
    result = paginate(paginator)
    assert result.data == []
    assert result.total == 0
    assert result.total_pages == 0


def test_page_far_past_the_end_is_empty(users, paginator):
    result = paginate(paginator, page=10**18, page_size=100)
    assert result.data == []
    assert result.total == 25
    assert result.total_pages == 1
    assert result.page == 10**18


def test_filter_value_is_coerced_to_column_type(users, paginator):
    result = paginate(paginator, filters={"created_at": (BASE_TIME + timedelta(minutes=2)).isoformat()})
    assert [user.username for user in result.data] == ["user02"]


def test_invalid_filter_value_raises(users, paginator):
    with pytest.raises(InvalidFilterValueError) as exc_info:
        paginate(paginator, filters={"created_at": "yesterday"})
    assert exc_info.value.name == "created_at"


def test_store_failure_is_wrapped(users, paginator):
    config = PaginationConfig(model=UserEntity, base_condition={"missing_column": 1})
    with pytest.raises(PaginationError, match="failed to get total count"):
        paginator.paginate(QueryParams(), config)


def test_fetch_failure_after_count_is_wrapped(users, paginator):
    config = PaginationConfig(model=UserEntity, sort_fields=("missing_column",), default_sort="missing_column")
    with pytest.raises(PaginationError, match="failed to fetch data"):
        paginator.paginate(QueryParams(), config)


def test_select_fields_return_mappings(users, paginator):
    config = PaginationConfig(
        model=UserEntity,
        select_fields=(SelectField(field="users.username", alias="login"),),
        sort_fields=("created_at",),
        default_sort="created_at",
        default_order="ASC",
    )
    result = paginator.paginate(QueryParams(page_size=2), config)
    assert result.data == [{"login": "user01"}, {"login": "user02"}]


def test_joins_and_grouping_are_compiled(db_session, paginator):
    config = PaginationConfig(
        model=UserEntity,
        joins=(JoinConfig(table="profiles", condition="profiles.user_id = users.id", alias="profiles"),
               JoinConfig(table="teams", condition="teams.id = profiles.team_id", type=JoinType.INNER)),
        select_fields=(SelectField(field="users.role"), SelectField(field="count(users.id)", alias="members")),
        group_by=("role",),
        having=("count(users.id) > 1",),
        distinct=True,
        date_fields={"created_at": DateField(start="created_at", end="created_at")},
    )
    sql = str(paginator.build_query(QueryParams(), config))
    assert "LEFT OUTER JOIN profiles" in sql
    assert "JOIN teams ON teams.id = profiles.team_id" in sql
    assert "GROUP BY users.role" in sql
    assert "HAVING count(users.id) > 1" in sql
    assert sql.startswith("SELECT DISTINCT")


def test_result_map_converts_rows_and_keeps_metadata(users, paginator):
    result = paginate(paginator, page=2, page_size=10).map(lambda user: user.username)
    assert result.data[0] == "user15"
    assert (result.total, result.page, result.page_size, result.total_pages) == (25, 2, 10, 3)
