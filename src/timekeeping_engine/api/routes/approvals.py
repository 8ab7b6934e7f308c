"""Approval queue and approval action endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from timekeeping_engine.api.dependencies import ActorId, AppSettings, DbSession, Jobs, Users
from timekeeping_engine.api.schemas import (
    ApprovalRequest,
    ApprovalResponse,
    EmployeeReviewResponse,
    ErrorResponse,
    ReviewEntryResponse,
    ReviewFlagsResponse,
    ReviewQueueResponse,
    ReviewSummaryResponse,
)
from timekeeping_engine.services.bulk_approval import BulkApprovalService, BulkSelection
from timekeeping_engine.services.review_service import ReviewEntry, ReviewService
from timekeeping_engine.services.state_machine import ApprovalAction, TimeEntryStatus

router = APIRouter(prefix="/payroll/approvals", tags=["approvals"])


def _review_entry(item: ReviewEntry) -> ReviewEntryResponse:
    entry = item.entry
    return ReviewEntryResponse(
        time_entry_id=entry.time_entry_id,
        status=entry.status,
        work_date=entry.work_date,
        clock_in_time=entry.clock_in_time,
        clock_out_time=entry.clock_out_time,
        break_minutes=entry.break_minutes,
        work_description=entry.work_description,
        job_id=entry.job_id,
        job_number=item.job.job_number if item.job else None,
        job_title=item.job.title if item.job else None,
        total_hours=entry.total_hours,
        regular_hours=entry.regular_hours,
        overtime_hours=entry.overtime_hours,
        total_pay=entry.total_pay,
        submitted_at=entry.submitted_at,
        version=entry.version,
        flags=ReviewFlagsResponse.model_validate(item.flags),
    )


@router.get(
    "",
    response_model=ReviewQueueResponse,
    responses={400: {"model": ErrorResponse}},
)
def get_approval_queue(
    db: DbSession,
    settings: AppSettings,
    users: Users,
    jobs: Jobs,
    status_filter: Annotated[TimeEntryStatus, Query(alias="status")] = TimeEntryStatus.SUBMITTED,
    user_id: Annotated[UUID | None, Query(alias="userId")] = None,
    start_date: Annotated[date | None, Query(alias="startDate")] = None,
    end_date: Annotated[date | None, Query(alias="endDate")] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> ReviewQueueResponse:
    """Entries awaiting review, grouped by employee with reviewer flags."""
    queue = ReviewService(db, users, jobs, settings).pending(
        status=status_filter,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    )
    return ReviewQueueResponse(
        summary=ReviewSummaryResponse.model_validate(queue.summary),
        employees=[
            EmployeeReviewResponse(
                user_id=group.user_id,
                employee_name=group.employee_name,
                employee_email=group.employee_email,
                total_entries=group.total_entries,
                total_hours=group.total_hours,
                total_pay=group.total_pay,
                total_overtime_hours=group.total_overtime_hours,
                flagged_entries=group.flagged_entries,
                entries=[_review_entry(item) for item in group.entries],
            )
            for group in queue.employees
        ],
    )


@router.post(
    "",
    response_model=ApprovalResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
def apply_approval_action(
    db: DbSession,
    settings: AppSettings,
    actor_id: ActorId,
    payload: ApprovalRequest,
) -> ApprovalResponse:
    """Approve, reject or submit entries by id list or work-date range.

    The batch is all-or-nothing: one failing entry rolls back every entry.
    """
    if payload.start_date is not None:
        selection = BulkSelection.by_date_range(
            payload.start_date, payload.end_date, payload.user_ids
        )
    else:
        selection = BulkSelection.by_ids(payload.time_entry_ids or [])

    result = BulkApprovalService(db, settings).execute(
        selection,
        ApprovalAction(payload.action),
        performed_by=actor_id,
        approved_by=payload.approved_by or actor_id,
        notes=payload.notes,
    )
    return ApprovalResponse(
        processed_entries=result.processed_entries,
        action=result.action.value,
        message=result.message,
        time_entry_ids=result.time_entry_ids,
    )
