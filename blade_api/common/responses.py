"""Standard response envelopes and the API exception that produces error envelopes."""
from typing import Any, Generic, TypeVar

from fastapi import HTTPException
from pydantic import BaseModel

T = TypeVar("T")

CODE_INVALID_REQUEST = "INVALID_REQUEST"
CODE_VALIDATION_ERROR = "VALIDATION_ERROR"
CODE_USERNAME_EXISTS = "USERNAME_EXISTS"
CODE_EMAIL_EXISTS = "EMAIL_EXISTS"
CODE_INTERNAL_ERROR = "INTERNAL_ERROR"
CODE_UNAUTHORIZED = "UNAUTHORIZED"
CODE_NOT_FOUND = "NOT_FOUND"
CODE_SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class ApiResponse(BaseModel, Generic[T]):
    status: str = "success"
    message: str
    data: T | None = None


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str
    code: str | None = None
    details: Any = None


def success(message: str, data: Any = None) -> ApiResponse:
    return ApiResponse(message=message, data=data)


class ApiException(HTTPException):
    """HTTPException rendered as an ErrorResponse by the application's exception handler."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str,
        details: Any = None,
        headers: dict[str, str] | None = None,
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.code = code
        self.details = details

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(message=self.message, code=self.code, details=self.details)
