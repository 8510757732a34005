"""ORM model for registered user accounts."""

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from app.models.base import Base


class User(Base):
    """
    Registered account.

    username is stored lower-case. refresh_token holds the last issued refresh
    token (single session per user): overwritten on login, cleared on logout.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    avatar = Column(String(2048), nullable=False)
    cover_image = Column(String(2048), nullable=False, default="")
    refresh_token = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
