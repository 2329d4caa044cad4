import logging

from sqlalchemy.orm import Session

from blade_api.common.pagination import DateField, PaginatedResponse, PaginationConfig, Paginator, QueryParams
from blade_api.modules.auth.dtos.auth import UserResponse
from blade_api.modules.auth.entities import UserEntity
from blade_api.modules.auth.services.auth_service import get_password_hash
from blade_api.modules.auth.services.user_cache import UserCache
from blade_api.modules.users.dtos.user import (
    CreateUserRequest,
    CreateUserResponse,
    UpdateUserRequest,
    UserDetailResponse,
)
from blade_api.modules.users.exceptions import UserAlreadyExistsError, UserNotFoundError
from blade_api.modules.users.repositories import UserRepository

logger = logging.getLogger(__name__)

USER_PAGINATION_CONFIG = PaginationConfig(
    model=UserEntity,
    base_condition={"is_deleted": False},
    search_fields=("name", "email", "username"),
    filter_fields={
        "role": "role",
        "name": "name",
        "email": "email",
        "username": "username",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
    date_fields={
        "created_at": DateField(start="created_at", end="created_at"),
        "updated_at": DateField(start="updated_at", end="updated_at"),
    },
    sort_fields=("name", "email", "role", "created_at", "updated_at"),
    default_sort="created_at",
    default_order="DESC",
)


class UsersService:
    def __init__(self, db: Session, user_cache: UserCache | None = None):
        self.db = db
        self.repository = UserRepository(db)
        self.paginator: Paginator[UserEntity] = Paginator(db)
        self.user_cache = user_cache or UserCache()

    def get_all_users(self, params: QueryParams) -> PaginatedResponse[UserResponse]:
        result = self.paginator.paginate(params, USER_PAGINATION_CONFIG)
        return PaginatedResponse[UserResponse].from_result(result, UserResponse.model_validate)

    def _get_active(self, user_id: int) -> UserEntity:
        user = self.repository.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def get_user(self, user_id: int) -> UserDetailResponse:
        return UserDetailResponse.model_validate(self._get_active(user_id))

    def create_user(self, user_data: CreateUserRequest) -> CreateUserResponse:
        conflict = self.repository.find_conflict(user_data.username, user_data.email)
        if conflict:
            raise UserAlreadyExistsError(conflict)

        user = UserEntity(
            username=user_data.username,
            email=user_data.email,
            hashed_password=get_password_hash(user_data.password),
            name=user_data.name,
            role=user_data.role.value,
        )
        self.repository.create(user)
        self.db.commit()

        logger.info(f"Created user id={user.id} username={user.username} role={user.role}")
        return CreateUserResponse.model_validate(user)

    def update_user(self, user_id: int, user_data: UpdateUserRequest) -> UserDetailResponse:
        """Replaces the user's profile fields; the password only changes when one is given."""
        user = self._get_active(user_id)

        conflict = self.repository.find_conflict(user_data.username, user_data.email, exclude_id=user_id)
        if conflict:
            raise UserAlreadyExistsError(conflict)

        data = {
            "username": user_data.username,
            "email": user_data.email,
            "name": user_data.name,
            "role": user_data.role.value,
        }
        if user_data.password:
            data["hashed_password"] = get_password_hash(user_data.password)

        self.repository.update(user, data)
        self.db.commit()
        self.user_cache.invalidate(user_id)

        logger.info(f"Updated user id={user_id}")
        return UserDetailResponse.model_validate(user)

    def delete_user(self, user_id: int) -> None:
        """Removes the row permanently, soft-deleted or not."""
        user = self.repository.get_by_id(user_id, include_deleted=True)
        if user is None:
            raise UserNotFoundError(user_id)

        self.repository.delete(user)
        self.db.commit()
        self.user_cache.invalidate(user_id)

        logger.info(f"Deleted user id={user_id}")

    def soft_delete_user(self, user_id: int) -> UserDetailResponse:
        user = self._get_active(user_id)

        self.repository.soft_delete(user)
        self.db.commit()
        self.user_cache.invalidate(user_id)

        logger.info(f"Soft deleted user id={user_id}")
        return UserDetailResponse.model_validate(user)
