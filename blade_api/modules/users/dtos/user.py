from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, EmailStr, Field

from blade_api.common.enums.user_role import UserRole


class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = Field(...)

    class Config:
        json_schema_extra: ClassVar[dict] = {
            "example": {
                "username": "asmith",
                "email": "asmith@example.com",
                "password": "password123",
                "name": "Alice Smith",
                "role": "admin",
            }
        }


class CreateUserResponse(BaseModel):
    id: int
    username: str
    email: str
    name: str
    role: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class UpdateUserRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr = Field(..., max_length=255)
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = Field(...)
    password: str | None = Field(None, min_length=6, max_length=100, description="Only changed when provided")

    class Config:
        json_schema_extra: ClassVar[dict] = {
            "example": {
                "username": "asmith",
                "email": "alice@example.com",
                "name": "Alice Smith",
                "role": "user",
            }
        }


class UserDetailResponse(BaseModel):
    id: int
    username: str
    email: str
    name: str
    role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    is_deleted: bool = False

    class Config:
        from_attributes = True
        json_schema_extra: ClassVar[dict] = {
            "example": {
                "id": 1,
                "username": "asmith",
                "email": "asmith@example.com",
                "name": "Alice Smith",
                "role": "admin",
                "created_at": "2024-01-15T10:30:00",
                "updated_at": None,
                "is_deleted": False,
            }
        }
