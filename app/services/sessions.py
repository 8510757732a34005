"""Account sessions: registration, login (token issuance) and logout."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import jwt
from sqlalchemy.exc import SQLAlchemyError
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core.errors import (
    AccountNotFoundError,
    AuthenticationError,
    ConflictError,
    InternalError,
    UploadError,
    ValidationError,
)
from app.core.security import (
    PASSWORD_MAX_LEN,
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
)
from app.models.user import User
from app.schemas.users import UserPublic
from app.services import user_store

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.services.storage import CloudinaryStorage

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid user credentials"
TOKEN_ISSUE_FAILED_MESSAGE = "Something went wrong while generating access and refresh tokens"


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    user: UserPublic


def _validate_registration(
    full_name: str,
    email: str,
    username: str,
    password: str,
    avatar_path: str | Path | None,
) -> None:
    if any(not (field or "").strip() for field in (full_name, email, username, password)):
        raise ValidationError("All fields are required")
    if "@" not in email:
        raise ValidationError("Invalid email address")
    if len(password) > PASSWORD_MAX_LEN:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_LEN} characters")
    if not avatar_path:
        raise ValidationError("Avatar file is required")


async def register_user(
    db: Session,
    storage: CloudinaryStorage,
    full_name: str,
    email: str,
    username: str,
    password: str,
    avatar_path: str | Path | None,
    cover_image_path: str | Path | None = None,
) -> UserPublic:
    """
    Register a new account and return it sanitized.

    Checks run in order and the first failure wins: required fields, email
    shape, avatar presence, then duplicate username/email. Only then are the
    images uploaded; a user is never created without an avatar URL. An image
    uploaded before a failed insert is left in storage.
    """
    _validate_registration(full_name, email, username, password, avatar_path)
    email = email.strip()
    username = username.strip().lower()

    existing = await run_in_threadpool(
        user_store.find_by_username_or_email, db, username=username, email=email
    )
    if existing is not None:
        raise ConflictError("User with this username or email already exists")

    avatar = await storage.upload(avatar_path)
    if avatar is None or not avatar.url:
        raise UploadError("Avatar upload failed")
    cover_url = ""
    if cover_image_path:
        cover = await storage.upload(cover_image_path)
        if cover is None:
            logger.warning("Cover image upload failed; registering without it")
        else:
            cover_url = cover.url

    password_hash = await run_in_threadpool(hash_password, password)
    created = await run_in_threadpool(
        user_store.create_user,
        db,
        full_name=full_name.strip(),
        email=email,
        username=username,
        password_hash=password_hash,
        avatar=avatar.url,
        cover_image=cover_url,
    )

    stored = await run_in_threadpool(user_store.find_by_id, db, created.id)
    if stored is None:
        logger.error("Registered user not readable after insert", extra={"user_id": created.id})
        raise InternalError("Something went wrong while registering the user")

    logger.info("User registered", extra={"user_id": stored.id})
    return UserPublic.model_validate(stored)


def _issue_tokens(db: Session, user: User, settings: Settings) -> tuple[str, str]:
    """Mint both tokens and persist the refresh token; nothing is returned unless both succeed."""
    user_id = user.id
    try:
        access_token = create_access_token(user, settings)
        refresh_token = create_refresh_token(user, settings)
        matched = user_store.update_fields(db, user_id, refresh_token=refresh_token)
        if matched == 1:
            db.refresh(user)
    except (jwt.PyJWTError, SQLAlchemyError) as e:
        logger.error(
            "Token issuance failed",
            extra={"user_id": user_id, "reason": str(e)[:500]},
        )
        raise InternalError(TOKEN_ISSUE_FAILED_MESSAGE) from e
    if matched != 1:
        logger.error(
            "Token issuance failed",
            extra={"user_id": user_id, "reason": f"refresh token update matched {matched} rows"},
        )
        raise InternalError(TOKEN_ISSUE_FAILED_MESSAGE)
    return access_token, refresh_token


def login_user(
    db: Session,
    settings: Settings,
    password: str,
    username: str | None = None,
    email: str | None = None,
) -> LoginResult:
    """
    Verify credentials and start a session.

    A new login overwrites any previous refresh token (one session per user).
    Unknown accounts and wrong passwords produce the same status and message.
    """
    username = (username or "").strip()
    email = (email or "").strip()
    if not username and not email:
        raise ValidationError("Username or email is required")
    if not password:
        raise ValidationError("Password is required")

    user = user_store.find_by_username_or_email(db, username=username, email=email)
    if user is None:
        raise AccountNotFoundError(INVALID_CREDENTIALS_MESSAGE, reason="no matching account")
    if not verify_password(password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE, reason="password mismatch")

    access_token, refresh_token = _issue_tokens(db, user, settings)
    logger.info("User logged in", extra={"user_id": user.id})
    return LoginResult(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserPublic.model_validate(user),
    )


def logout_user(db: Session, user_id: int) -> None:
    """Clear the stored refresh token. Clearing an already-empty token is fine."""
    try:
        user_store.update_fields(db, user_id, refresh_token=None)
    except SQLAlchemyError as e:
        logger.error("Logout failed", extra={"user_id": user_id, "reason": str(e)[:500]})
        raise InternalError("Something went wrong while logging out") from e
    logger.info("User logged out", extra={"user_id": user_id})
