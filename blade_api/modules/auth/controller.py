import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from blade_api.common.repositories import get_db
from blade_api.common.responses import (
    CODE_EMAIL_EXISTS,
    CODE_UNAUTHORIZED,
    CODE_USERNAME_EXISTS,
    ApiException,
    ApiResponse,
    success,
)
from blade_api.configuration.config import settings
from blade_api.modules.auth.dtos.auth import LoginResponse, UserLogin, UserRegister, UserResponse
from blade_api.modules.auth.guards.jwt import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, get_current_user
from blade_api.modules.auth.services.auth_service import AuthService
from blade_api.modules.users.exceptions import UserAlreadyExistsError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
me_router = APIRouter(tags=["auth"])


def conflict_exception(error: UserAlreadyExistsError) -> ApiException:
    """409 for a username or email that is already taken."""
    if error.field == "username":
        message, code = "Username already exists", CODE_USERNAME_EXISTS
    else:
        message, code = "Email already exists", CODE_EMAIL_EXISTS
    return ApiException(
        status_code=status.HTTP_409_CONFLICT,
        message=message,
        code=code,
        details={"field": error.field, "reason": "already_taken"},
    )


def _set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    response.set_cookie(
        key=REFRESH_TOKEN_COOKIE,
        value=refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Creates a user account with the default `user` role.",
    responses={
        201: {"description": "User registered"},
        400: {"description": "Validation error"},
        409: {"description": "Username or email already exists"},
    },
)
def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """
    Registers a new user.

    - **username**: 3-50 characters
    - **email**: valid email address
    - **password**: at least 6 characters
    - **name**: display name, up to 100 characters
    """
    auth_service = AuthService(db)
    try:
        new_user = auth_service.register_user(user_data)
    except UserAlreadyExistsError as e:
        raise conflict_exception(e) from e
    return success("User registered successfully", UserResponse.model_validate(new_user))


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    status_code=status.HTTP_200_OK,
    summary="Log in",
    description="Authenticates with username or email and sets the `access_token` and `refresh_token` cookies.",
    responses={
        200: {"description": "Login successful"},
        400: {"description": "Validation error"},
        401: {"description": "Invalid credentials"},
    },
)
def login(login_data: UserLogin, response: Response, db: Session = Depends(get_db)):
    """
    Logs in with username/email and password.

    The returned access token can also be sent as `Authorization: Bearer <token>`.
    """
    logger.info(f"Login attempt for: {login_data.username}")

    auth_service = AuthService(db)
    user = auth_service.authenticate_user(login_data)
    if not user:
        raise ApiException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message="Invalid credentials",
            code=CODE_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = auth_service.issue_tokens(user)
    _set_auth_cookies(response, token.access_token, token.refresh_token)

    return success(
        "Login successful",
        LoginResponse(user=UserResponse.model_validate(user), token=token),
    )


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    summary="Log out",
    description="Clears the authentication cookies.",
    responses={401: {"description": "Not authenticated"}},
)
def logout(response: Response, current_user: UserResponse = Depends(get_current_user)):
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path="/")
    response.delete_cookie(REFRESH_TOKEN_COOKIE, path="/")
    logger.info(f"User {current_user.id} logged out")
    return success("Logout successful")


@me_router.get(
    "/me",
    response_model=ApiResponse[UserResponse],
    summary="Get current user",
    description="Returns the authenticated user.",
    responses={401: {"description": "Not authenticated"}},
)
def get_current_user_info(current_user: UserResponse = Depends(get_current_user)):
    return success("User fetched successfully", current_user)
