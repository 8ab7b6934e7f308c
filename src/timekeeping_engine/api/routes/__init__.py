"""API routes."""

from timekeeping_engine.api.routes.approvals import router as approvals_router
from timekeeping_engine.api.routes.audit import router as audit_router
from timekeeping_engine.api.routes.export import router as export_router
from timekeeping_engine.api.routes.health import router as health_router
from timekeeping_engine.api.routes.periods import router as periods_router
from timekeeping_engine.api.routes.time_entries import router as time_entries_router

__all__ = [
    "approvals_router",
    "audit_router",
    "export_router",
    "health_router",
    "periods_router",
    "time_entries_router",
]
