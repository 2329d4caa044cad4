from typing import ClassVar

from pydantic import BaseModel, EmailStr, Field


class UserRegister(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, description="Username")
    email: EmailStr = Field(..., max_length=255, description="Email address")
    password: str = Field(..., min_length=6, max_length=100, description="Password")
    name: str = Field(..., min_length=1, max_length=100, description="Display name")

    class Config:
        json_schema_extra: ClassVar[dict] = {
            "example": {
                "username": "jdoe",
                "email": "jdoe@example.com",
                "password": "password123",
                "name": "John Doe",
            }
        }


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1, description="Username or email")
    password: str = Field(..., min_length=1, description="Password")

    class Config:
        json_schema_extra: ClassVar[dict] = {"example": {"username": "jdoe", "password": "password123"}}


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    name: str
    role: str

    class Config:
        from_attributes = True
        json_schema_extra: ClassVar[dict] = {
            "example": {
                "id": 1,
                "username": "jdoe",
                "email": "jdoe@example.com",
                "name": "John Doe",
                "role": "user",
            }
        }


class TokenResponse(BaseModel):
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Seconds until the access token expires")


class LoginResponse(BaseModel):
    user: UserResponse
    token: TokenResponse

    class Config:
        json_schema_extra: ClassVar[dict] = {
            "example": {
                "user": {
                    "id": 1,
                    "username": "jdoe",
                    "email": "jdoe@example.com",
                    "name": "John Doe",
                    "role": "user",
                },
                "token": {
                    "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                    "refresh_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                    "token_type": "Bearer",
                    "expires_in": 86400,
                },
            }
        }
