"""Payroll export endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Response

from timekeeping_engine.api.dependencies import DbSession, Jobs, Users
from timekeeping_engine.api.schemas import (
    ErrorResponse,
    ExportGroupResponse,
    ExportMetadata,
    ExportRequest,
    ExportResponse,
    ExportSummaryResponse,
)
from timekeeping_engine.services.export_service import ExportFormat, PayrollExportService

router = APIRouter(prefix="/payroll/export", tags=["payroll-export"])


@router.post(
    "",
    response_model=ExportResponse,
    responses={
        200: {"content": {"text/csv": {}}},
        400: {"model": ErrorResponse},
    },
)
def export_payroll(
    db: DbSession,
    users: Users,
    jobs: Jobs,
    payload: ExportRequest,
) -> ExportResponse | Response:
    """Export APPROVED and PAID entries in the date range as JSON or CSV."""
    service = PayrollExportService(db, users, jobs)
    export = service.export(
        payload.start_date,
        payload.end_date,
        user_ids=payload.user_ids,
        group_by=payload.group_by,
    )

    if payload.format == ExportFormat.CSV:
        filename = f"payroll-export-{payload.start_date}-to-{payload.end_date}.csv"
        return Response(
            content=service.to_csv(export),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return ExportResponse(
        summary=ExportSummaryResponse.model_validate(export.summary),
        groups=[ExportGroupResponse.model_validate(group) for group in export.groups],
        export_metadata=ExportMetadata(
            generated_at=datetime.now(timezone.utc),
            start_date=payload.start_date,
            end_date=payload.end_date,
            format=payload.format,
            group_by=export.group_by,
            filtered_user_ids=payload.user_ids,
        ),
    )
