"""Credential store: persistence of user accounts."""

import logging
from typing import Any

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, InternalError
from app.models.user import User

logger = logging.getLogger(__name__)

# Columns callers may change through update_fields.
UPDATABLE_FIELDS = frozenset({"full_name", "email", "avatar", "cover_image", "refresh_token"})


def find_by_username_or_email(
    db: Session, username: str | None = None, email: str | None = None
) -> User | None:
    """Return the first user whose username or email matches; None if neither is given."""
    conditions = []
    if username:
        conditions.append(User.username == username.lower())
    if email:
        conditions.append(User.email == email)
    if not conditions:
        return None
    return db.query(User).filter(or_(*conditions)).first()


def find_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def create_user(db: Session, **fields: Any) -> User:
    """Insert a user and commit. Unique violations become ConflictError."""
    user = User(**fields)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError(
            "User with this username or email already exists",
            reason=str(e.orig)[:200],
        ) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("User insert failed", extra={"reason": str(e)[:500]})
        raise InternalError("Something went wrong while registering the user") from e
    db.refresh(user)
    return user


def update_fields(db: Session, user_id: int, **fields: Any) -> int:
    """
    Set the given columns on one user and commit, without loading the row.

    Returns the number of rows matched (0 when the user does not exist).
    Raises SQLAlchemyError from the driver after rolling back.
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    try:
        matched = (
            db.query(User)
            .filter(User.id == user_id)
            .update(fields, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return matched
