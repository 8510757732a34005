"""Pydantic request/response schemas."""

from app.schemas.health import HealthResponse
from app.schemas.users import (
    ApiResponse,
    ErrorResponse,
    LoginData,
    LoginRequest,
    UserPublic,
)

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "HealthResponse",
    "LoginData",
    "LoginRequest",
    "UserPublic",
]
