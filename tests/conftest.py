"""Pytest fixtures for timekeeping engine tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from sqlalchemy.orm import Session

from timekeeping_engine.config import Settings
from timekeeping_engine.database import Database
from timekeeping_engine.models import TimeEntry
from timekeeping_engine.services.directory import InMemoryJobDirectory, InMemoryUserDirectory

from factories import ALICE_ID, BOB_ID, JOB_ID, REVIEWER_ID, make_entry

# In-memory SQLite shared by every session of one Database (StaticPool)
TEST_DATABASE_URL = "sqlite://"

EntryFactory = Callable[..., TimeEntry]


@pytest.fixture
def settings() -> Settings:
    """Settings for tests: in-memory database and a small bulk limit."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="INFO",
        bulk_max_entries=20,
    )


@pytest.fixture
def database(settings: Settings) -> Iterator[Database]:
    """Fresh schema per test."""
    db = Database(settings.database_url)
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def session(database: Database) -> Iterator[Session]:
    with database.session() as session:
        yield session


@pytest.fixture
def users() -> InMemoryUserDirectory:
    directory = InMemoryUserDirectory()
    directory.add(ALICE_ID, "Alice Alvarez", "alice@example.com")
    directory.add(BOB_ID, "Bob Brown", "bob@example.com")
    directory.add(REVIEWER_ID, "Rita Reviewer", "rita@example.com")
    return directory


@pytest.fixture
def jobs() -> InMemoryJobDirectory:
    directory = InMemoryJobDirectory()
    directory.add(JOB_ID, "J-1001", "Panel upgrade")
    return directory


@pytest.fixture
def entry_factory(session: Session, settings: Settings) -> EntryFactory:
    def factory(**kwargs) -> TimeEntry:
        return make_entry(session, settings, **kwargs)

    return factory
