"""Database connection and session management."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from timekeeping_engine.models.base import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine (and its connection pool) for one process.

    Constructed at application start and disposed at shutdown. Sessions are
    checked out per request or per unit of work and always closed.
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_kwargs: Any):
        self.url = url
        self.engine: Engine = create_engine(url, echo=echo, **_engine_options(url), **engine_kwargs)
        self._session_factory = sessionmaker(
            self.engine,
            class_=Session,
            expire_on_commit=False,
            autoflush=False,
        )

    def create_all(self) -> None:
        """Create all tables (development and tests; production uses migrations)."""
        Base.metadata.create_all(self.engine)

    def drop_all(self) -> None:
        """Drop all tables."""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Check out a session, releasing its connection on every exit path."""
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    def dispose(self) -> None:
        """Close all pooled connections."""
        logger.info("Disposing database engine")
        self.engine.dispose()


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:") or ":memory:" in url:
            options["poolclass"] = StaticPool
        return options
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Run one unit of work: commit on success, roll back on any error.

    The rollback happens before the exception propagates so callers never see
    a half-applied batch in the session.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
