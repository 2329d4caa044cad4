from blade_api.modules.auth.dtos.auth import (
    LoginResponse,
    TokenResponse,
    UserLogin,
    UserRegister,
    UserResponse,
)

__all__ = [
    "LoginResponse",
    "TokenResponse",
    "UserLogin",
    "UserRegister",
    "UserResponse",
]
