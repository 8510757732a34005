"""PostgreSQL connection and session management.

The engine lives on an explicitly constructed ``Database`` handle. The app
connects it at startup (lifespan), stores it on ``app.state.database`` and
disposes it on shutdown; request handlers receive sessions through ``get_db``.
"""

import logging
from collections.abc import Generator
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Database:
    """Owns the SQLAlchemy engine and session factory for one process."""

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not connected; call connect() first.")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> None:
        """Create the engine and session factory. Safe to call more than once."""
        if self._engine is not None:
            return
        kwargs: dict[str, Any] = {"echo": self.echo}
        if self.url.startswith("sqlite"):
            # In-memory SQLite must share one connection across threads.
            kwargs.update(
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            kwargs["pool_pre_ping"] = True
        self._engine = create_engine(self.url, **kwargs)
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=self._engine
        )
        logger.info("Database engine created", extra={"dialect": self._engine.dialect.name})

    def disconnect(self) -> None:
        """Dispose pooled connections. The handle can be connected again later."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database engine disposed")

    def session(self) -> Session:
        """Open a new ORM session; the caller closes it."""
        if self._session_factory is None:
            raise RuntimeError("Database is not connected; call connect() first.")
        return self._session_factory()


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that yields a DB session and closes it when done."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
