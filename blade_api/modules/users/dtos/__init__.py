from blade_api.modules.users.dtos.user import (
    CreateUserRequest,
    CreateUserResponse,
    UpdateUserRequest,
    UserDetailResponse,
)

__all__ = [
    "CreateUserRequest",
    "CreateUserResponse",
    "UpdateUserRequest",
    "UserDetailResponse",
]
