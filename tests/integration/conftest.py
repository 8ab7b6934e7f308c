"""Integration test fixtures: the FastAPI app over an in-memory database."""

from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from timekeeping_engine.api.app import create_app
from timekeeping_engine.models import TimeEntry

from factories import make_entry


@pytest.fixture
def client(settings, database, users, jobs) -> Iterator[TestClient]:
    """Test client with the lifespan running; the database stays test-owned."""
    app = create_app(settings, database, users, jobs)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seed(database, settings) -> Callable[..., TimeEntry]:
    """Store an entry through a short-lived session, outside the request cycle."""

    def factory(**kwargs) -> TimeEntry:
        with database.session() as session:
            return make_entry(session, settings, **kwargs)

    return factory
