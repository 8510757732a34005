"""SQLAlchemy declarative Base shared by the account models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base; Base.metadata feeds Alembic and test schemas."""
