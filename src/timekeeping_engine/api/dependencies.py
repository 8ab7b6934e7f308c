"""FastAPI dependencies for dependency injection."""

from collections.abc import Iterator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from timekeeping_engine.config import Settings
from timekeeping_engine.database import Database
from timekeeping_engine.services.directory import JobDirectory, UserDirectory


def get_database(request: Request) -> Database:
    """Database created by the application lifespan."""
    return request.app.state.database


def get_db_session(
    database: Annotated[Database, Depends(get_database)],
) -> Iterator[Session]:
    """One session per request, closed on every exit path."""
    with database.session() as session:
        yield session


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_directory(request: Request) -> UserDirectory:
    return request.app.state.user_directory


def get_job_directory(request: Request) -> JobDirectory:
    return request.app.state.job_directory


def get_actor_id(
    x_actor_id: Annotated[str | None, Header()] = None,
) -> UUID:
    """Extract the authenticated actor from the X-Actor-Id header."""
    if not x_actor_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Id header is required",
        )
    try:
        return UUID(x_actor_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Actor-Id format",
        )


# Type aliases for cleaner dependency injection
DbSession = Annotated[Session, Depends(get_db_session)]
ActorId = Annotated[UUID, Depends(get_actor_id)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Users = Annotated[UserDirectory, Depends(get_user_directory)]
Jobs = Annotated[JobDirectory, Depends(get_job_directory)]
