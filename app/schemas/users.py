"""Request/response schemas for user account endpoints."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.security import PASSWORD_MAX_LEN

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for payloads exchanged as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserPublic(CamelModel):
    """Sanitized account: never includes the password hash or refresh token."""

    id: int
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LoginRequest(CamelModel):
    """Credentials for login: username or email, plus password.

    Fields default to empty so emptiness is reported by the session service
    with its own messages.
    """

    username: str = Field(default="", max_length=255, description="Username")
    email: str = Field(default="", max_length=320, description="Email address")
    password: str = Field(default="", max_length=PASSWORD_MAX_LEN, description="Password")


class LoginData(CamelModel):
    """Tokens and sanitized user returned after a successful login."""

    user: UserPublic
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope for successful responses."""

    status: int = Field(..., description="HTTP status code")
    data: T | None = None
    message: str = Field(default="Success")


class ErrorResponse(BaseModel):
    """Envelope for error responses."""

    status: int
    message: str
