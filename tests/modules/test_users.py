import pytest

from blade_api.modules.auth.entities import UserEntity
from tests.conftest import TEST_PASSWORD

NEW_USER = {
    "username": "asmith",
    "email": "asmith@example.com",
    "password": "password123",
    "name": "Alice Smith",
    "role": "admin",
}


@pytest.fixture
def many_users(make_user):
    """24 users on top of the admin; every sixth one is an admin."""
    return [make_user(role="admin" if n % 6 == 0 else "user") for n in range(1, 25)]


def test_list_requires_authentication(client):
    r = client.get("/api/users")
    assert r.status_code == 401


def test_list_users_first_page(auth_client, many_users):
    r = auth_client.get("/api/users", params={"page": 1, "pageSize": 10})
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Users fetched successfully"
    page = body["data"]
    assert len(page["data"]) == 10
    assert page["total"] == 25
    assert page["page"] == 1
    assert page["pageSize"] == 10
    assert page["totalPages"] == 3
    assert "hashed_password" not in page["data"][0]


def test_list_users_last_page(auth_client, many_users):
    page = auth_client.get("/api/users", params={"page": 3, "pageSize": 10}).json()["data"]
    assert len(page["data"]) == 5


def test_list_users_filter_by_role(auth_client, many_users):
    page = auth_client.get("/api/users", params={"filters[role]": "admin"}).json()["data"]
    assert page["total"] == 5
    assert {user["role"] for user in page["data"]} == {"admin"}


def test_list_users_page_far_past_the_end(auth_client, many_users):
    r = auth_client.get("/api/users", params={"page": "1000000000000000000", "pageSize": 100})
    assert r.status_code == 200
    page = r.json()["data"]
    assert page["data"] == []
    assert page["total"] == 25
    assert page["totalPages"] == 1


def test_list_users_unknown_sort_field_is_ignored(auth_client, many_users):
    default = auth_client.get("/api/users").json()["data"]["data"]
    r = auth_client.get("/api/users", params={"sortBy": "nonexistent_field"})
    assert r.status_code == 200
    assert r.json()["data"]["data"] == default


def test_list_users_search_and_date_range(auth_client, many_users):
    page = auth_client.get(
        "/api/users",
        params={"search": "user2", "dates[created_at][start]": "2024-01-01T12:21:00"},
    ).json()["data"]
    # the admin takes the first slot, so user20..user25 match the search
    # and user21..user25 were created after the start
    assert page["total"] == 5


def test_list_users_non_integer_page(auth_client):
    r = auth_client.get("/api/users", params={"page": "abc"})
    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["details"][0]["loc"] == ["query", "page"]


def test_list_users_bad_filter_value(auth_client):
    r = auth_client.get("/api/users", params={"filters[created_at]": "yesterday"})
    assert r.status_code == 400
    assert r.json()["details"] == {"field": "created_at"}


def test_get_user(auth_client, make_user):
    user = make_user(name="Bob")
    r = auth_client.get(f"/api/user/{user.id}")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["name"] == "Bob"
    assert data["is_deleted"] is False


def test_get_missing_user(auth_client):
    r = auth_client.get("/api/user/999")
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


def test_create_user(auth_client):
    r = auth_client.post("/api/user/create", json=NEW_USER)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["role"] == "admin"
    assert data["created_at"] is not None
    assert "password" not in data


def test_create_user_conflict(auth_client):
    r = auth_client.post("/api/user/create", json={**NEW_USER, "username": "admin"})
    assert r.status_code == 409
    assert r.json()["code"] == "USERNAME_EXISTS"


def test_create_user_invalid_role(auth_client):
    r = auth_client.post("/api/user/create", json={**NEW_USER, "role": "superuser"})
    assert r.status_code == 400


def test_update_user(auth_client, make_user):
    user = make_user(username="bob", email="bob@example.com", name="Bob")
    r = auth_client.put(
        f"/api/user/{user.id}",
        json={"username": "bob", "email": "bob@example.com", "name": "Robert", "role": "admin"},
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["name"] == "Robert"
    assert data["role"] == "admin"


def test_update_user_password(auth_client, client, make_user):
    user = make_user(username="bob")
    r = auth_client.put(
        f"/api/user/{user.id}",
        json={
            "username": "bob",
            "email": user.email,
            "name": user.name,
            "role": "user",
            "password": "new-password",
        },
    )
    assert r.status_code == 200
    assert client.post("/api/auth/login", json={"username": "bob", "password": TEST_PASSWORD}).status_code == 401
    assert client.post("/api/auth/login", json={"username": "bob", "password": "new-password"}).status_code == 200


def test_update_user_email_conflict(auth_client, make_user):
    user = make_user(username="bob")
    r = auth_client.put(
        f"/api/user/{user.id}",
        json={"username": "bob", "email": "admin@example.com", "name": "Bob", "role": "user"},
    )
    assert r.status_code == 409
    assert r.json()["details"] == {"field": "email", "reason": "already_taken"}


def test_update_missing_user(auth_client):
    r = auth_client.put(
        "/api/user/999",
        json={"username": "nobody", "email": "nobody@example.com", "name": "Nobody", "role": "user"},
    )
    assert r.status_code == 404


def test_soft_delete_user(auth_client, make_user, db_session):
    user = make_user()
    r = auth_client.put(f"/api/user/{user.id}/soft-delete")
    assert r.status_code == 200
    assert r.json()["data"]["is_deleted"] is True

    assert auth_client.get(f"/api/user/{user.id}").status_code == 404
    listed = auth_client.get("/api/users").json()["data"]["data"]
    assert user.id not in {u["id"] for u in listed}

    db_session.expire_all()
    row = db_session.get(UserEntity, user.id)
    assert row is not None
    assert row.is_deleted is True
    assert row.deleted_at is not None


def test_soft_delete_twice_is_not_found(auth_client, make_user):
    user = make_user(is_deleted=True)
    assert auth_client.put(f"/api/user/{user.id}/soft-delete").status_code == 404


def test_delete_user_removes_row(auth_client, make_user, db_session):
    user = make_user()
    r = auth_client.delete(f"/api/user/{user.id}")
    assert r.status_code == 200
    assert r.json()["message"] == "User deleted successfully"

    db_session.expire_all()
    assert db_session.get(UserEntity, user.id) is None


def test_delete_soft_deleted_user(auth_client, make_user, db_session):
    user = make_user(is_deleted=True)
    assert auth_client.delete(f"/api/user/{user.id}").status_code == 200
    db_session.expire_all()
    assert db_session.get(UserEntity, user.id) is None


def test_delete_missing_user(auth_client):
    assert auth_client.delete("/api/user/999").status_code == 404
