"""Payroll period endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status

from timekeeping_engine.api.dependencies import ActorId, DbSession
from timekeeping_engine.api.schemas import (
    ErrorResponse,
    PeriodCreateRequest,
    PeriodGenerateResponse,
    PeriodListResponse,
    PeriodResponse,
    PeriodSummaryResponse,
)
from timekeeping_engine.models import PeriodType
from timekeeping_engine.services.period_service import PayrollPeriodService

router = APIRouter(prefix="/payroll/periods", tags=["payroll-periods"])


@router.get(
    "",
    response_model=PeriodListResponse,
)
def list_periods(
    db: DbSession,
    year: Annotated[int | None, Query(ge=1900, le=2999)] = None,
    period_type: Annotated[PeriodType | None, Query(alias="periodType")] = None,
    current: bool = False,
) -> PeriodListResponse:
    """Periods starting in ``year`` (default: this year) with payroll totals."""
    summaries = PayrollPeriodService(db).list_periods(
        year or date.today().year,
        period_type=period_type,
        current=current,
    )
    items = []
    for summary in summaries:
        base = PeriodResponse.model_validate(summary.period).model_dump()
        items.append(
            PeriodSummaryResponse(
                **base,
                time_entry_count=summary.time_entry_count,
                total_hours=summary.total_hours,
                total_pay=summary.total_pay,
                employee_count=summary.employee_count,
                is_current_period=summary.is_current_period,
            )
        )
    return PeriodListResponse(items=items)


@router.post(
    "",
    response_model=PeriodResponse | PeriodGenerateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_period(
    db: DbSession,
    actor_id: ActorId,
    payload: PeriodCreateRequest,
    response: Response,
) -> PeriodResponse | PeriodGenerateResponse:
    """Create one period, or regenerate a whole year with ``generateYear``.

    Regenerating replaces every period starting in that year.
    """
    service = PayrollPeriodService(db)
    if payload.generate_year is not None:
        periods = service.generate_year(payload.generate_year, payload.period_type)
        response.status_code = status.HTTP_200_OK
        return PeriodGenerateResponse(
            year=payload.generate_year,
            period_type=payload.period_type,
            periods_created=len(periods),
            message=f"Generated {len(periods)} {payload.period_type.value} periods "
            f"for {payload.generate_year}",
        )

    period = service.create(
        start_date=payload.start_date,
        end_date=payload.end_date,
        period_type=payload.period_type,
        description=payload.description,
        is_active=payload.is_active,
    )
    return PeriodResponse.model_validate(period)


@router.post(
    "/{payroll_period_id}/close",
    response_model=PeriodResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def close_period(db: DbSession, actor_id: ActorId, payroll_period_id: UUID) -> PeriodResponse:
    period = PayrollPeriodService(db).close(payroll_period_id)
    return PeriodResponse.model_validate(period)
