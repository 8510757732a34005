"""Request authentication: extract an access token and resolve its user."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

import jwt
from sqlalchemy.orm import Session

from app.core.errors import UnauthorizedError
from app.core.security import decode_access_token
from app.models.user import User
from app.services import user_store

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"
INVALID_TOKEN_MESSAGE = "Invalid access token"


def extract_token(cookies: Mapping[str, str], authorization: str | None) -> str:
    """Return the access token from the cookie, else from an 'Authorization: Bearer' header."""
    token = (cookies.get(ACCESS_TOKEN_COOKIE) or "").strip()
    if token:
        return token
    if authorization:
        scheme, _, credentials = authorization.strip().partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    raise UnauthorizedError("Unauthorized request")


def authenticate_token(db: Session, token: str, settings: Settings) -> User:
    """
    Verify the token and re-resolve its subject against the store.

    A correctly signed token for a user that no longer exists is rejected.
    """
    try:
        payload = decode_access_token(token, settings)
    except jwt.PyJWTError as e:
        logger.info("Access token rejected", extra={"reason": str(e)[:200]})
        raise UnauthorizedError(INVALID_TOKEN_MESSAGE, reason=str(e)) from e

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise UnauthorizedError(INVALID_TOKEN_MESSAGE, reason="invalid subject claim") from e

    user = user_store.find_by_id(db, user_id)
    if user is None:
        logger.info("Access token for missing user", extra={"user_id": user_id})
        raise UnauthorizedError(INVALID_TOKEN_MESSAGE, reason="user no longer exists")
    return user
