from sqlalchemy import or_

from blade_api.common.repositories import BaseRepository
from blade_api.common.resilience import db_circuit_breaker, retry_db_operation
from blade_api.modules.auth.entities import UserEntity


class UserRepository(BaseRepository[UserEntity]):
    model = UserEntity

    @retry_db_operation(max_attempts=3, initial_wait=0.5, max_wait=5.0)
    def find_by_login(self, login: str) -> UserEntity | None:
        """Active user whose username or email equals ``login``."""
        return (
            self._build_query()
            .filter(or_(UserEntity.username == login, UserEntity.email == login))
            .first()
        )

    @db_circuit_breaker()
    def get_active_by_id(self, user_id: int) -> UserEntity | None:
        # Runs on every authenticated request; fail fast while the database is down.
        return self._build_query().filter(UserEntity.id == user_id).first()

    @retry_db_operation(max_attempts=3, initial_wait=0.5, max_wait=5.0)
    def find_conflict(self, username: str, email: str, exclude_id: int | None = None) -> str | None:
        """Returns the name of the field already taken by another row, soft-deleted rows included."""
        query = self._build_query(include_deleted=True).filter(
            or_(UserEntity.username == username, UserEntity.email == email)
        )
        if exclude_id is not None:
            query = query.filter(UserEntity.id != exclude_id)

        existing = query.first()
        if existing is None:
            return None
        return "username" if existing.username == username else "email"
