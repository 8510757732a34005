"""Password hashing and JWT creation/verification for access and refresh tokens."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import bcrypt
import jwt

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models.user import User

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Password bounds shared by registration and login.
PASSWORD_MAX_LEN = 128

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors.
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _encode(claims: dict[str, Any], secret: str, minutes: int, algorithm: str) -> str:
    now = datetime.now(UTC)
    payload = {**claims, "iat": now, "exp": now + timedelta(minutes=minutes)}
    return jwt.encode(payload, secret, algorithm=algorithm)


def _decode(token: str, secret: str, algorithm: str, token_type: str) -> dict[str, Any]:
    payload = jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        options={"require": ["exp", "sub"]},
    )
    if payload.get("type") != token_type:
        raise jwt.InvalidTokenError(f"Expected a {token_type} token")
    return payload


def create_access_token(user: User, settings: Settings) -> str:
    """Create a short-lived access token carrying the user's id and public identity."""
    claims = {
        "sub": str(user.id),
        "type": ACCESS_TOKEN_TYPE,
        "username": user.username,
        "email": user.email,
        "fullName": user.full_name,
    }
    return _encode(
        claims,
        settings.ACCESS_TOKEN_SECRET.get_secret_value(),
        settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        settings.JWT_ALGORITHM,
    )


def create_refresh_token(user: User, settings: Settings) -> str:
    """Create a long-lived refresh token carrying only the user id."""
    claims = {"sub": str(user.id), "type": REFRESH_TOKEN_TYPE}
    return _encode(
        claims,
        settings.REFRESH_TOKEN_SECRET.get_secret_value(),
        settings.REFRESH_TOKEN_EXPIRE_MINUTES,
        settings.JWT_ALGORITHM,
    )


def decode_access_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Decode and validate an access token; return its payload.
    Raises jwt.PyJWTError on invalid, expired or non-access tokens.
    """
    return _decode(
        token,
        settings.ACCESS_TOKEN_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
        ACCESS_TOKEN_TYPE,
    )


def decode_refresh_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Decode and validate a refresh token; return its payload.
    Raises jwt.PyJWTError on invalid, expired or non-refresh tokens.
    """
    return _decode(
        token,
        settings.REFRESH_TOKEN_SECRET.get_secret_value(),
        settings.JWT_ALGORITHM,
        REFRESH_TOKEN_TYPE,
    )
