"""Cross-entry audit trail endpoint."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from timekeeping_engine.api.dependencies import DbSession
from timekeeping_engine.api.schemas import AuditLogListResponse, AuditLogResponse, ErrorResponse
from timekeeping_engine.services.audit_service import AuditService
from timekeeping_engine.services.state_machine import ApprovalAction

router = APIRouter(prefix="/audit-trail", tags=["audit-trail"])


@router.get(
    "",
    response_model=AuditLogListResponse,
    responses={400: {"model": ErrorResponse}},
)
def search_audit_trail(
    db: DbSession,
    entry_id: Annotated[UUID | None, Query(alias="entryId")] = None,
    user_id: Annotated[UUID | None, Query(alias="userId")] = None,
    performed_by: Annotated[UUID | None, Query(alias="performedBy")] = None,
    action: ApprovalAction | None = None,
    date_from: Annotated[date | None, Query(alias="dateFrom")] = None,
    date_to: Annotated[date | None, Query(alias="dateTo")] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
) -> AuditLogListResponse:
    """Transitions across all entries, newest first."""
    rows = AuditService(db).search(
        time_entry_id=entry_id,
        user_id=user_id,
        performed_by=performed_by,
        action=action,
        start_date=date_from,
        end_date=date_to,
        limit=limit,
    )
    return AuditLogListResponse(items=[AuditLogResponse.model_validate(r) for r in rows])
