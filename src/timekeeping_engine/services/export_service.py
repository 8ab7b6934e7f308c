"""Payroll export of approved time entries as grouped JSON or CSV."""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from timekeeping_engine.calculators.categories import CENTS, HourCategory
from timekeeping_engine.errors import ValidationError
from timekeeping_engine.models import TimeEntry
from timekeeping_engine.services.directory import (
    JobDirectory,
    UserDirectory,
    resolve_job,
    resolve_user,
)
from timekeeping_engine.services.state_machine import TimeEntryStateMachine

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
NO_JOB_KEY = "no-job"

SUMMARY_HEADER = [
    "Employee Name",
    "Employee Email",
    "Total Hours",
    "Regular Hours",
    "Overtime Hours",
    "Total Pay",
    "Break Minutes",
    "Entries",
]

DETAIL_HEADER = [
    "Employee Name",
    "Work Date",
    "Clock In",
    "Clock Out",
    "Job Number",
    "Total Hours",
    "Regular Hours",
    "Overtime Hours",
    "Total Pay",
    "Break Minutes",
    "Description",
]


class GroupBy(str, Enum):
    EMPLOYEE = "employee"
    JOB = "job"
    DATE = "date"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


@dataclass(frozen=True)
class ExportRow:
    """One exported entry with its display labels resolved."""

    time_entry_id: UUID
    user_id: UUID
    employee_name: str
    employee_email: str | None
    job_id: UUID | None
    job_number: str | None
    job_title: str | None
    work_date: date
    clock_in_time: datetime
    clock_out_time: datetime | None
    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    applied_regular_rate: Decimal | None
    overtime_rate: Decimal | None
    total_pay: Decimal
    break_minutes: int
    work_description: str | None
    status: str


@dataclass
class ExportGroup:
    """Totals for one employee, job or work date."""

    key: str
    user_id: UUID | None = None
    employee_name: str | None = None
    employee_email: str | None = None
    job_id: UUID | None = None
    job_number: str | None = None
    job_title: str | None = None
    work_date: date | None = None
    total_hours: Decimal = ZERO
    total_regular_hours: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    total_pay: Decimal = ZERO
    total_break_minutes: int = 0
    entries: list[ExportRow] = field(default_factory=list)

    @property
    def total_entries(self) -> int:
        return len(self.entries)

    @property
    def employee_count(self) -> int:
        return len({row.user_id for row in self.entries})

    def add(self, row: ExportRow) -> None:
        self.entries.append(row)
        self.total_hours += row.total_hours
        self.total_regular_hours += row.regular_hours
        self.total_overtime_hours += row.overtime_hours
        self.total_pay += row.total_pay
        self.total_break_minutes += row.break_minutes


@dataclass(frozen=True)
class ExportSummary:
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


@dataclass(frozen=True)
class PayrollExport:
    summary: ExportSummary
    group_by: GroupBy
    groups: list[ExportGroup]
    rows: list[ExportRow]


def group_rows(rows: Sequence[ExportRow], group_by: GroupBy) -> list[ExportGroup]:
    """Group rows, keeping the order in which each group first appears."""
    groups: dict[str, ExportGroup] = {}
    for row in rows:
        if group_by == GroupBy.EMPLOYEE:
            key = str(row.user_id)
            seed = {
                "user_id": row.user_id,
                "employee_name": row.employee_name,
                "employee_email": row.employee_email,
            }
        elif group_by == GroupBy.JOB:
            key = str(row.job_id) if row.job_id is not None else NO_JOB_KEY
            seed = {"job_id": row.job_id, "job_number": row.job_number, "job_title": row.job_title}
        else:
            key = row.work_date.isoformat()
            seed = {"work_date": row.work_date}

        group = groups.get(key)
        if group is None:
            group = groups[key] = ExportGroup(key=key, **seed)
        group.add(row)
    return list(groups.values())


class PayrollExportService:
    """Reads APPROVED and PAID entries for a date range and shapes them for payroll."""

    def __init__(self, session: Session, users: UserDirectory, jobs: JobDirectory):
        self.session = session
        self.users = users
        self.jobs = jobs

    def rows(
        self,
        start_date: date,
        end_date: date,
        user_ids: Sequence[UUID] | None = None,
    ) -> list[ExportRow]:
        """Payroll rows ordered by employee name, work date and clock-in."""
        if start_date > end_date:
            raise ValidationError("startDate is after endDate", field="startDate")

        stmt = select(TimeEntry).where(
            TimeEntry.status.in_([s.value for s in TimeEntryStateMachine.PAYROLL]),
            TimeEntry.work_date >= start_date,
            TimeEntry.work_date <= end_date,
        )
        if user_ids:
            stmt = stmt.where(TimeEntry.user_id.in_(list(user_ids)))

        rows = [self._row(entry) for entry in self.session.execute(stmt).scalars()]
        rows.sort(key=lambda r: (r.employee_name, str(r.user_id), r.work_date, r.clock_in_time))
        return rows

    def _row(self, entry: TimeEntry) -> ExportRow:
        user = resolve_user(self.users, entry.user_id)
        job = resolve_job(self.jobs, entry.job_id)
        overtime_rate = None
        if entry.applied_regular_rate is not None:
            overtime_rate = (
                entry.applied_regular_rate * HourCategory.OVERTIME.multiplier
            ).quantize(CENTS)
        return ExportRow(
            time_entry_id=entry.time_entry_id,
            user_id=entry.user_id,
            employee_name=user.name,
            employee_email=user.email,
            job_id=entry.job_id,
            job_number=job.job_number if job else None,
            job_title=job.title if job else None,
            work_date=entry.work_date,
            clock_in_time=entry.clock_in_time,
            clock_out_time=entry.clock_out_time,
            total_hours=entry.total_hours,
            regular_hours=entry.regular_hours,
            overtime_hours=entry.overtime_hours,
            applied_regular_rate=entry.applied_regular_rate,
            overtime_rate=overtime_rate,
            total_pay=entry.total_pay,
            break_minutes=entry.break_minutes,
            work_description=entry.work_description,
            status=entry.status.value,
        )

    def export(
        self,
        start_date: date,
        end_date: date,
        *,
        user_ids: Sequence[UUID] | None = None,
        group_by: GroupBy = GroupBy.EMPLOYEE,
    ) -> PayrollExport:
        group_by = GroupBy(group_by)
        rows = self.rows(start_date, end_date, user_ids)
        employees = len({row.user_id for row in rows})
        total_hours = sum((r.total_hours for r in rows), ZERO)

        summary = ExportSummary(
            period_start=start_date,
            period_end=end_date,
            total_employees=employees,
            total_entries=len(rows),
            total_hours=total_hours,
            total_regular_hours=sum((r.regular_hours for r in rows), ZERO),
            total_overtime_hours=sum((r.overtime_hours for r in rows), ZERO),
            total_pay=sum((r.total_pay for r in rows), ZERO),
            total_break_minutes=sum(r.break_minutes for r in rows),
            average_hours_per_employee=(
                (total_hours / employees).quantize(CENTS) if employees else ZERO
            ),
        )
        logger.info(
            "Exported %d payroll entries for %s - %s grouped by %s",
            len(rows),
            start_date,
            end_date,
            group_by.value,
        )
        return PayrollExport(
            summary=summary,
            group_by=group_by,
            groups=group_rows(rows, group_by),
            rows=rows,
        )

    @staticmethod
    def to_csv(export: PayrollExport) -> str:
        """Employee summary followed by the detailed entries section.

        The summary is always per employee, whatever grouping the export used.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        writer.writerow(SUMMARY_HEADER)
        for group in group_rows(export.rows, GroupBy.EMPLOYEE):
            writer.writerow(
                [
                    group.employee_name,
                    group.employee_email or "",
                    _fmt(group.total_hours),
                    _fmt(group.total_regular_hours),
                    _fmt(group.total_overtime_hours),
                    _fmt(group.total_pay),
                    group.total_break_minutes,
                    group.total_entries,
                ]
            )

        writer.writerow([])
        writer.writerow(["Detailed Time Entries"])
        writer.writerow(DETAIL_HEADER)
        for row in export.rows:
            writer.writerow(
                [
                    row.employee_name,
                    row.work_date.isoformat(),
                    row.clock_in_time.isoformat(),
                    row.clock_out_time.isoformat() if row.clock_out_time else "",
                    row.job_number or "",
                    _fmt(row.total_hours),
                    _fmt(row.regular_hours),
                    _fmt(row.overtime_hours),
                    _fmt(row.total_pay),
                    row.break_minutes,
                    row.work_description or "",
                ]
            )
        return buffer.getvalue()


def _fmt(value: Decimal) -> str:
    return f"{value.quantize(CENTS)}"
