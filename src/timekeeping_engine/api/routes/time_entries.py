"""Time entry endpoints."""

from uuid import UUID

from fastapi import APIRouter, Response, status

from timekeeping_engine.api.dependencies import ActorId, AppSettings, DbSession
from timekeeping_engine.api.schemas import (
    AuditLogListResponse,
    AuditLogResponse,
    CategoryHoursSchema,
    ClassifyRequest,
    ClassifyResponse,
    ErrorResponse,
    TimeEntryCreate,
    TimeEntryResponse,
)
from timekeeping_engine.calculators import OvertimeSettings, classify, pay, split_daily_hours
from timekeeping_engine.calculators.categories import CategoryHours
from timekeeping_engine.services.audit_service import AuditService
from timekeeping_engine.services.state_machine import TimeEntryStatus
from timekeeping_engine.services.time_entry_service import TimeEntryService

router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@router.post(
    "",
    response_model=TimeEntryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def create_time_entry(
    db: DbSession,
    settings: AppSettings,
    actor_id: ActorId,
    payload: TimeEntryCreate,
) -> TimeEntryResponse:
    """Store a shift with its category breakdown and derived totals."""
    entry = TimeEntryService(db, settings).create(
        user_id=payload.user_id,
        job_id=payload.job_id,
        clock_in_time=payload.clock_in_time,
        clock_out_time=payload.clock_out_time,
        break_minutes=payload.break_minutes,
        work_description=payload.work_description,
        category_hours=CategoryHours(**payload.category_hours.model_dump()),
        total_hours=payload.total_hours,
        regular_rate=payload.regular_rate,
        travel_rate=payload.travel_rate,
        status=TimeEntryStatus(payload.status),
    )
    return TimeEntryResponse.model_validate(entry)


@router.post(
    "/classify",
    response_model=ClassifyResponse,
    responses={400: {"model": ErrorResponse}},
)
def classify_hours(settings: AppSettings, payload: ClassifyRequest) -> ClassifyResponse:
    """Suggest a category breakdown for one day's hours."""
    hours = split_daily_hours(
        payload.hours,
        OvertimeSettings.from_settings(settings),
        travel_hours=payload.travel_hours,
        is_seventh_day=payload.is_seventh_day,
    )
    totals = classify(hours, settings.max_shift_hours)
    estimated_pay = None
    if payload.regular_rate is not None:
        estimated_pay = pay(hours, payload.regular_rate, payload.travel_rate)
    return ClassifyResponse(
        category_hours=CategoryHoursSchema(**hours.to_dict(camel=False)),
        total_hours=totals.total_hours,
        regular_hours=totals.regular_hours,
        overtime_hours=totals.overtime_hours,
        double_time_hours=totals.double_time_hours,
        estimated_pay=estimated_pay,
    )


@router.get(
    "/{time_entry_id}",
    response_model=TimeEntryResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_time_entry(db: DbSession, settings: AppSettings, time_entry_id: UUID) -> TimeEntryResponse:
    entry = TimeEntryService(db, settings).get(time_entry_id)
    return TimeEntryResponse.model_validate(entry)


@router.delete(
    "/{time_entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def delete_time_entry(
    db: DbSession,
    settings: AppSettings,
    actor_id: ActorId,
    time_entry_id: UUID,
) -> Response:
    """Delete a DRAFT or COMPLETED entry."""
    TimeEntryService(db, settings).delete(time_entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{time_entry_id}/audit",
    response_model=AuditLogListResponse,
)
def get_audit_trail(db: DbSession, time_entry_id: UUID) -> AuditLogListResponse:
    """Status history of an entry, oldest first.

    History outlives the entry, so a deleted entry still returns its rows.
    """
    rows = AuditService(db).history(time_entry_id)
    return AuditLogListResponse(items=[AuditLogResponse.model_validate(r) for r in rows])
