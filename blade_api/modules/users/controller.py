from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from blade_api.common.pagination import PaginatedResponse, QueryParams, get_query_params
from blade_api.common.repositories import get_db
from blade_api.common.responses import CODE_NOT_FOUND, ApiException, ApiResponse, success
from blade_api.modules.auth.controller import conflict_exception
from blade_api.modules.auth.dtos.auth import UserResponse
from blade_api.modules.auth.guards.jwt import get_current_user, get_user_cache
from blade_api.modules.auth.services.user_cache import UserCache
from blade_api.modules.users.dtos.user import (
    CreateUserRequest,
    CreateUserResponse,
    UpdateUserRequest,
    UserDetailResponse,
)
from blade_api.modules.users.exceptions import UserAlreadyExistsError, UserNotFoundError
from blade_api.modules.users.services.users_service import UsersService

router = APIRouter(tags=["users"], dependencies=[Depends(get_current_user)])


def get_users_service(
    db: Session = Depends(get_db), user_cache: UserCache = Depends(get_user_cache)
) -> UsersService:
    return UsersService(db, user_cache)


def _not_found(error: UserNotFoundError) -> ApiException:
    return ApiException(status_code=status.HTTP_404_NOT_FOUND, message=str(error), code=CODE_NOT_FOUND)


@router.get(
    "/users",
    response_model=ApiResponse[PaginatedResponse[UserResponse]],
    summary="List users",
    description=(
        "Paginated list of active users. Supports `page`, `pageSize` (max 100), `search` "
        "(name, email, username), `sortBy`/`sortDesc`, `filters[role]` and friends, and "
        "`dates[created_at][start]`/`dates[created_at][end]`. Unknown filters and sort fields are ignored."
    ),
    responses={
        200: {
            "description": "Page of users",
            "content": {
                "application/json": {
                    "example": {
                        "status": "success",
                        "message": "Users fetched successfully",
                        "data": {
                            "data": [
                                {
                                    "id": 1,
                                    "username": "jdoe",
                                    "email": "jdoe@example.com",
                                    "name": "John Doe",
                                    "role": "user",
                                }
                            ],
                            "total": 25,
                            "page": 1,
                            "pageSize": 10,
                            "totalPages": 3,
                        },
                    }
                }
            },
        },
        400: {"description": "Malformed query parameter"},
        401: {"description": "Not authenticated"},
    },
)
def get_users(
    params: QueryParams = Depends(get_query_params),
    service: UsersService = Depends(get_users_service),
):
    return success("Users fetched successfully", service.get_all_users(params))


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[UserDetailResponse],
    summary="Get a user by ID",
    responses={404: {"description": "User not found"}, 401: {"description": "Not authenticated"}},
)
def get_user(user_id: int, service: UsersService = Depends(get_users_service)):
    try:
        user = service.get_user(user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    return success("User fetched successfully", user)


@router.post(
    "/user/create",
    response_model=ApiResponse[CreateUserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    description="Creates a user with an explicit role (`admin` or `user`).",
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Not authenticated"},
        409: {"description": "Username or email already exists"},
    },
)
def create_user(user_data: CreateUserRequest, service: UsersService = Depends(get_users_service)):
    """
    Creates a user.

    - **username**: 3-50 characters
    - **email**: valid email address
    - **password**: at least 6 characters
    - **name**: display name
    - **role**: `admin` or `user`
    """
    try:
        user = service.create_user(user_data)
    except UserAlreadyExistsError as e:
        raise conflict_exception(e) from e
    return success("User created successfully", user)


@router.put(
    "/user/{user_id}",
    response_model=ApiResponse[UserDetailResponse],
    summary="Update a user",
    description="Replaces username, email, name and role. The password is only changed when provided.",
    responses={
        400: {"description": "Validation error"},
        401: {"description": "Not authenticated"},
        404: {"description": "User not found"},
        409: {"description": "Username or email already exists"},
    },
)
def update_user(
    user_id: int, user_data: UpdateUserRequest, service: UsersService = Depends(get_users_service)
):
    try:
        user = service.update_user(user_id, user_data)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    except UserAlreadyExistsError as e:
        raise conflict_exception(e) from e
    return success("User updated successfully", user)


@router.delete(
    "/user/{user_id}",
    response_model=ApiResponse[None],
    summary="Delete a user permanently",
    responses={404: {"description": "User not found"}, 401: {"description": "Not authenticated"}},
)
def delete_user(user_id: int, service: UsersService = Depends(get_users_service)):
    try:
        service.delete_user(user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    return success("User deleted successfully")


@router.put(
    "/user/{user_id}/soft-delete",
    response_model=ApiResponse[UserDetailResponse],
    summary="Soft delete a user",
    description="Marks the user as deleted. The row is kept and no longer appears in lists or lookups.",
    responses={404: {"description": "User not found"}, 401: {"description": "Not authenticated"}},
)
def soft_delete_user(user_id: int, service: UsersService = Depends(get_users_service)):
    try:
        user = service.soft_delete_user(user_id)
    except UserNotFoundError as e:
        raise _not_found(e) from e
    return success("User soft deleted successfully", user)
