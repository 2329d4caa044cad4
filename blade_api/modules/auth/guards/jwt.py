import logging

import jwt
from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from blade_api.common.repositories import get_db
from blade_api.common.responses import CODE_UNAUTHORIZED, ApiException
from blade_api.modules.auth.dtos.auth import UserResponse
from blade_api.modules.auth.services.auth_service import ACCESS_TOKEN, AuthService, decode_token
from blade_api.modules.auth.services.user_cache import UserCache

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"

security = HTTPBearer(auto_error=False)


def _unauthorized(message: str) -> ApiException:
    return ApiException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        message=message,
        code=CODE_UNAUTHORIZED,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_user_cache() -> UserCache:
    return UserCache()


def _read_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str:
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token
    if credentials is not None:
        return credentials.credentials
    if request.cookies.get(REFRESH_TOKEN_COOKIE):
        # TODO: exchange the refresh token for a new access token instead of rejecting
        raise _unauthorized("Access token expired")
    raise _unauthorized("Authentication required")


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
    user_cache: UserCache = Depends(get_user_cache),
) -> UserResponse:
    token = _read_token(request, credentials)

    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError as e:
        raise _unauthorized("Token has expired") from e
    except jwt.InvalidSignatureError as e:
        raise _unauthorized("Invalid token signature") from e
    except jwt.InvalidTokenError as e:
        raise _unauthorized("Invalid token") from e

    if payload.get("type") != ACCESS_TOKEN:
        raise _unauthorized("Invalid token")

    user_id = payload["user_id"]
    cached = user_cache.get(user_id)
    if cached is not None:
        return cached

    user = AuthService(db).get_user_by_id(user_id)
    if user is None:
        logger.info(f"Auth guard: user not found for ID {user_id}")
        raise _unauthorized("User not found")

    user_cache.set(user)
    return UserResponse.model_validate(user)
