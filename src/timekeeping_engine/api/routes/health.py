"""Liveness, readiness and database health probes."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from timekeeping_engine.api.dependencies import DbSession
from timekeeping_engine.models import Base

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

REQUIRED_TABLES = frozenset(Base.metadata.tables)


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    database: str


class ReadinessResponse(BaseModel):
    status: str
    missing_tables: list[str] = []


@router.get("/health", response_model=HealthResponse)
def health_check(db: DbSession) -> HealthResponse:
    """Report whether the database answers; the API itself is up if this runs."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)
        db_status = "unhealthy"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=db_status,
    )


@router.get("/ready", response_model=ReadinessResponse)
def readiness_check(db: DbSession, response: Response) -> ReadinessResponse:
    """Ready once the timekeeping schema exists; 503 until then."""
    try:
        existing = set(inspect(db.connection()).get_table_names())
    except SQLAlchemyError:
        logger.warning("Readiness check could not reach the database", exc_info=True)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="unavailable")

    missing = sorted(REQUIRED_TABLES - existing)
    if missing:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="schema_missing", missing_tables=missing)
    return ReadinessResponse(status="ready")


@router.get("/live")
def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
