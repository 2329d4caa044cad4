import os
from collections.abc import Generator
from datetime import datetime, timedelta

import pytest

# Test settings must be in place before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-min-32-characters-long"
os.environ["USE_REDIS"] = "false"
os.environ["APP_ENV"] = "test"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from blade_api.common.redis_service import RedisService  # noqa: E402
from blade_api.common.repositories import Base, get_db  # noqa: E402
from blade_api.main import app  # noqa: E402
from blade_api.modules.auth.entities import UserEntity  # noqa: E402
from blade_api.modules.auth.guards.jwt import get_user_cache  # noqa: E402
from blade_api.modules.auth.services.auth_service import get_password_hash  # noqa: E402
from blade_api.modules.auth.services.user_cache import UserCache  # noqa: E402

TEST_PASSWORD = "password123"
BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture(scope="session")
def password_hash() -> str:
    # bcrypt is slow on purpose; hash once for the whole run
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db_session: Session, password_hash: str):
    """Factory inserting a user directly; ``minutes`` offsets created_at from a fixed base time."""
    counter = {"n": 0}

    def _make_user(
        username: str | None = None,
        email: str | None = None,
        name: str | None = None,
        role: str = "user",
        minutes: int | None = None,
        is_deleted: bool = False,
    ) -> UserEntity:
        counter["n"] += 1
        n = counter["n"]
        user = UserEntity(
            username=username or f"user{n:02d}",
            email=email or f"user{n:02d}@example.com",
            name=name or f"User {n:02d}",
            role=role,
            hashed_password=password_hash,
            created_at=BASE_TIME + timedelta(minutes=n if minutes is None else minutes),
            is_deleted=is_deleted,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_user_cache] = lambda: UserCache(RedisService(enabled=False))
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(make_user) -> UserEntity:
    return make_user(username="admin", email="admin@example.com", name="Admin", role="admin", minutes=0)


@pytest.fixture
def auth_client(client: TestClient, admin_user: UserEntity) -> TestClient:
    """Client carrying the admin's auth cookies."""
    response = client.post("/api/auth/login", json={"username": "admin", "password": TEST_PASSWORD})
    assert response.status_code == 200
    return client
