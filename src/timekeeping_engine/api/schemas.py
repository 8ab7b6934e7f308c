"""Pydantic schemas for API request/response models.

The wire format is camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from timekeeping_engine.models import PeriodType
from timekeeping_engine.services.export_service import ExportFormat, GroupBy
from timekeeping_engine.services.state_machine import TimeEntryStatus


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, populated by name or alias."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(CamelModel):
    """Error payload rendered by the exception handlers."""

    code: str
    detail: str
    field: str | None = None


# ============================================================================
# Time entry schemas
# ============================================================================


class CategoryHoursSchema(CamelModel):
    """The six hour categories; omitted categories are zero."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="forbid",
    )

    straight_time: Decimal = Decimal("0")
    straight_time_travel: Decimal = Decimal("0")
    overtime: Decimal = Decimal("0")
    overtime_travel: Decimal = Decimal("0")
    double_time: Decimal = Decimal("0")
    double_time_travel: Decimal = Decimal("0")


class TimeEntryCreate(CamelModel):
    """Schema for storing a completed (or draft) shift."""

    user_id: UUID
    job_id: UUID | None = None
    clock_in_time: datetime
    clock_out_time: datetime | None = None
    break_minutes: int = 0
    work_description: str | None = None
    category_hours: CategoryHoursSchema
    total_hours: Decimal
    regular_rate: Decimal
    travel_rate: Decimal | None = None
    status: Literal["DRAFT", "COMPLETED"] = "COMPLETED"


class TimeEntryResponse(CamelModel):
    """Schema for a stored time entry."""

    time_entry_id: UUID
    user_id: UUID
    job_id: UUID | None = None
    status: TimeEntryStatus
    work_date: date
    clock_in_time: datetime
    clock_out_time: datetime | None = None
    break_minutes: int
    work_description: str | None = None
    category_hours: CategoryHoursSchema
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    applied_regular_rate: Decimal | None = None
    applied_travel_rate: Decimal | None = None
    total_pay: Decimal
    submitted_at: datetime | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    notes: str | None = None
    version: int


class AuditLogResponse(CamelModel):
    """One audit trail row."""

    audit_log_id: int
    time_entry_id: UUID
    user_id: UUID
    action: str
    performed_by: UUID | None = None
    old_status: str | None = None
    new_status: str | None = None
    notes: str | None = None
    created_at: datetime


class AuditLogListResponse(CamelModel):
    items: list[AuditLogResponse]


class ClassifyRequest(CamelModel):
    """Hours worked on one day, to be split into categories."""

    hours: Decimal = Field(ge=0)
    travel_hours: Decimal = Field(default=Decimal("0"), ge=0)
    is_seventh_day: bool = False
    regular_rate: Decimal | None = Field(default=None, ge=0)
    travel_rate: Decimal | None = Field(default=None, ge=0)


class ClassifyResponse(CamelModel):
    """Suggested breakdown with roll-ups and, given a rate, the pay."""

    category_hours: CategoryHoursSchema
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    double_time_hours: Decimal
    estimated_pay: Decimal | None = None


# ============================================================================
# Approval schemas
# ============================================================================


class ApprovalRequest(CamelModel):
    """Individual (timeEntryIds) or date-range bulk approval request."""

    time_entry_ids: list[UUID] | None = None
    start_date: date | None = None
    end_date: date | None = None
    user_ids: list[UUID] | None = None
    action: Literal["APPROVE", "REJECT", "SUBMIT_FOR_APPROVAL"]
    notes: str | None = None
    approved_by: UUID | None = None

    @model_validator(mode="after")
    def _check_selection(self) -> ApprovalRequest:
        has_range = self.start_date is not None or self.end_date is not None
        if self.time_entry_ids and (has_range or self.user_ids):
            raise ValueError(
                "timeEntryIds cannot be combined with startDate, endDate or userIds"
            )
        if has_range:
            if self.start_date is None or self.end_date is None:
                raise ValueError("Both startDate and endDate are required for a date range")
            if self.start_date > self.end_date:
                raise ValueError("startDate must not be after endDate")
            return self
        if not self.time_entry_ids:
            raise ValueError("Either timeEntryIds or startDate and endDate are required")
        return self


class ApprovalResponse(CamelModel):
    processed_entries: int
    action: str
    message: str
    time_entry_ids: list[UUID]


class ReviewFlagsResponse(CamelModel):
    has_long_day: bool
    has_overtime: bool
    missing_breaks: bool


class ReviewEntryResponse(CamelModel):
    """A queued entry with job labels and reviewer flags."""

    time_entry_id: UUID
    status: TimeEntryStatus
    work_date: date
    clock_in_time: datetime
    clock_out_time: datetime | None = None
    break_minutes: int
    work_description: str | None = None
    job_id: UUID | None = None
    job_number: str | None = None
    job_title: str | None = None
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    total_pay: Decimal
    submitted_at: datetime | None = None
    version: int
    flags: ReviewFlagsResponse


class EmployeeReviewResponse(CamelModel):
    user_id: UUID
    employee_name: str
    employee_email: str | None = None
    total_entries: int
    total_hours: Decimal
    total_pay: Decimal
    total_overtime_hours: Decimal
    flagged_entries: int
    entries: list[ReviewEntryResponse]


class ReviewSummaryResponse(CamelModel):
    status: TimeEntryStatus
    total_employees: int
    total_entries: int
    total_hours: Decimal
    total_pay: Decimal
    total_overtime_hours: Decimal
    flagged_entries: int


class ReviewQueueResponse(CamelModel):
    summary: ReviewSummaryResponse
    employees: list[EmployeeReviewResponse]


# ============================================================================
# Payroll period schemas
# ============================================================================


class PeriodCreateRequest(CamelModel):
    """Either a single period or ``generateYear`` for a whole year."""

    start_date: date | None = None
    end_date: date | None = None
    period_type: PeriodType | None = None
    description: str | None = None
    is_active: bool = True
    generate_year: int | None = Field(default=None, ge=1900, le=2999)

    @model_validator(mode="after")
    def _check_mode(self) -> PeriodCreateRequest:
        if self.generate_year is not None:
            if self.period_type is None:
                self.period_type = PeriodType.BI_WEEKLY
            return self
        if self.start_date is None or self.end_date is None or self.period_type is None:
            raise ValueError("startDate, endDate and periodType are required")
        return self


class PeriodResponse(CamelModel):
    payroll_period_id: UUID
    start_date: date
    end_date: date
    period_type: PeriodType
    description: str | None = None
    status: str
    is_active: bool


class PeriodSummaryResponse(PeriodResponse):
    """Period with payroll aggregates over APPROVED and PAID entries."""

    time_entry_count: int
    total_hours: Decimal
    total_pay: Decimal
    employee_count: int
    is_current_period: bool


class PeriodListResponse(CamelModel):
    items: list[PeriodSummaryResponse]


class PeriodGenerateResponse(CamelModel):
    year: int
    period_type: PeriodType
    periods_created: int
    message: str


# ============================================================================
# Export schemas
# ============================================================================


class ExportRequest(CamelModel):
    start_date: date
    end_date: date
    user_ids: list[UUID] | None = None
    format: ExportFormat = ExportFormat.JSON
    group_by: GroupBy = GroupBy.EMPLOYEE

    @model_validator(mode="after")
    def _check_range(self) -> ExportRequest:
        if self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class ExportRowResponse(CamelModel):
    time_entry_id: UUID
    user_id: UUID
    employee_name: str
    employee_email: str | None = None
    job_id: UUID | None = None
    job_number: str | None = None
    job_title: str | None = None
    work_date: date
    clock_in_time: datetime
    clock_out_time: datetime | None = None
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    applied_regular_rate: Decimal | None = None
    overtime_rate: Decimal | None = None
    total_pay: Decimal
    break_minutes: int
    work_description: str | None = None
    status: str


class ExportGroupResponse(CamelModel):
    key: str
    user_id: UUID | None = None
    employee_name: str | None = None
    employee_email: str | None = None
    job_id: UUID | None = None
    job_number: str | None = None
    job_title: str | None = None
    work_date: date | None = None
    total_entries: int
    employee_count: int
    total_hours: Decimal
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    total_pay: Decimal
    total_break_minutes: int
    entries: list[ExportRowResponse]


class ExportSummaryResponse(CamelModel):
    period_start: date
    period_end: date
    total_employees: int
    total_entries: int
    total_hours: Decimal
    total_regular_hours: Decimal
    total_overtime_hours: Decimal
    total_pay: Decimal
    total_break_minutes: int
    average_hours_per_employee: Decimal


class ExportMetadata(CamelModel):
    generated_at: datetime
    start_date: date
    end_date: date
    format: ExportFormat
    group_by: GroupBy
    filtered_user_ids: list[UUID] | None = None


class ExportResponse(CamelModel):
    summary: ExportSummaryResponse
    groups: list[ExportGroupResponse]
    export_metadata: ExportMetadata
