import logging
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt
from sqlalchemy.orm import Session

from blade_api.common.enums.user_role import UserRole
from blade_api.configuration.config import settings
from blade_api.modules.auth.dtos.auth import TokenResponse, UserLogin, UserRegister
from blade_api.modules.auth.entities import UserEntity
from blade_api.modules.users.exceptions import UserAlreadyExistsError
from blade_api.modules.users.repositories import UserRepository

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Checks a plain password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # malformed hash
        return False


def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def create_token(user: UserEntity, token_type: str, expires_delta: timedelta) -> tuple[str, datetime]:
    now = datetime.now(UTC)
    expire = now + expires_delta
    payload = {
        "user_id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "type": token_type,
        "iss": settings.JWT_ISSUER,
        "sub": user.username,
        "iat": now,
        "nbf": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=ALGORITHM), expire


def decode_token(token: str) -> dict:
    """Decodes and validates a token. Raises ``jwt.InvalidTokenError`` subclasses."""
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[ALGORITHM],
        issuer=settings.JWT_ISSUER,
        options={"require": ["exp", "user_id"]},
    )


class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = UserRepository(db)

    def register_user(self, user_data: UserRegister) -> UserEntity:
        """Creates a user with the default role."""
        conflict = self.repository.find_conflict(user_data.username, user_data.email)
        if conflict:
            raise UserAlreadyExistsError(conflict)

        new_user = UserEntity(
            username=user_data.username,
            email=user_data.email,
            hashed_password=get_password_hash(user_data.password),
            name=user_data.name,
            role=UserRole.USER.value,
        )
        self.repository.create(new_user)
        self.db.commit()

        logger.info(f"Registered user id={new_user.id} username={new_user.username}")
        return new_user

    def authenticate_user(self, login_data: UserLogin) -> UserEntity | None:
        """Looks the user up by username or email and checks the password."""
        user = self.repository.find_by_login(login_data.username)
        if not user:
            return None

        if not verify_password(login_data.password, user.hashed_password):
            return None

        return user

    def issue_tokens(self, user: UserEntity) -> TokenResponse:
        access_token, access_expire = create_token(
            user, ACCESS_TOKEN, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        refresh_token, _ = create_token(
            user, REFRESH_TOKEN, timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)
        )
        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="Bearer",
            expires_in=int((access_expire - datetime.now(UTC)).total_seconds()),
        )

    def get_user_by_id(self, user_id: int) -> UserEntity | None:
        """Active (not soft-deleted) user by ID."""
        return self.repository.get_active_by_id(user_id)
