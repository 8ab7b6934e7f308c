"""Approval queue: entries awaiting review, grouped by employee."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from timekeeping_engine.config import Settings, get_settings
from timekeeping_engine.models import TimeEntry
from timekeeping_engine.services.directory import (
    JobDirectory,
    JobInfo,
    UserDirectory,
    resolve_job,
    resolve_user,
)
from timekeeping_engine.services.state_machine import TimeEntryStatus
from timekeeping_engine.services.time_entry_service import TimeEntryService

ZERO = Decimal("0")


@dataclass(frozen=True)
class EntryFlags:
    """Things a reviewer should look at before approving."""

    has_long_day: bool
    has_overtime: bool
    missing_breaks: bool

    @property
    def any(self) -> bool:
        return self.has_long_day or self.has_overtime or self.missing_breaks


@dataclass(frozen=True)
class ReviewEntry:
    entry: TimeEntry
    job: JobInfo | None
    flags: EntryFlags


@dataclass
class EmployeeReview:
    """One employee's entries in the queue, with running totals."""

    user_id: UUID
    employee_name: str
    employee_email: str | None
    entries: list[ReviewEntry] = field(default_factory=list)
    total_hours: Decimal = ZERO
    total_pay: Decimal = ZERO
    total_overtime_hours: Decimal = ZERO
    flagged_entries: int = 0

    @property
    def total_entries(self) -> int:
        return len(self.entries)

    def add(self, item: ReviewEntry) -> None:
        self.entries.append(item)
        self.total_hours += item.entry.total_hours
        self.total_pay += item.entry.total_pay
        self.total_overtime_hours += item.entry.overtime_hours
        if item.flags.any:
            self.flagged_entries += 1


@dataclass(frozen=True)
class ReviewSummary:
    status: TimeEntryStatus
    total_employees: int
    total_entries: int
    total_hours: Decimal
    total_pay: Decimal
    total_overtime_hours: Decimal
    flagged_entries: int


@dataclass(frozen=True)
class ReviewQueue:
    summary: ReviewSummary
    employees: list[EmployeeReview]


class ReviewService:
    """Builds the approval queue shown to reviewers."""

    def __init__(
        self,
        session: Session,
        users: UserDirectory,
        jobs: JobDirectory,
        settings: Settings | None = None,
    ):
        self.session = session
        self.users = users
        self.jobs = jobs
        self.settings = settings or get_settings()

    def flags_for(self, entry: TimeEntry) -> EntryFlags:
        return EntryFlags(
            has_long_day=entry.total_hours > self.settings.long_day_hours,
            has_overtime=entry.overtime_hours > 0,
            missing_breaks=(
                entry.break_minutes == 0 and entry.total_hours > self.settings.missing_break_hours
            ),
        )

    def pending(
        self,
        *,
        status: TimeEntryStatus = TimeEntryStatus.SUBMITTED,
        user_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 100,
    ) -> ReviewQueue:
        """Entries in ``status`` grouped by employee, employees in name order."""
        status = TimeEntryStatus(status)
        entries = TimeEntryService(self.session, self.settings).list_entries(
            status=status,
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
        )

        groups: dict[UUID, EmployeeReview] = {}
        for entry in entries:
            group = groups.get(entry.user_id)
            if group is None:
                user = resolve_user(self.users, entry.user_id)
                group = groups[entry.user_id] = EmployeeReview(
                    user_id=entry.user_id,
                    employee_name=user.name,
                    employee_email=user.email,
                )
            group.add(
                ReviewEntry(
                    entry=entry,
                    job=resolve_job(self.jobs, entry.job_id),
                    flags=self.flags_for(entry),
                )
            )

        employees = sorted(groups.values(), key=lambda g: (g.employee_name, str(g.user_id)))
        summary = ReviewSummary(
            status=status,
            total_employees=len(employees),
            total_entries=len(entries),
            total_hours=sum((g.total_hours for g in employees), ZERO),
            total_pay=sum((g.total_pay for g in employees), ZERO),
            total_overtime_hours=sum((g.total_overtime_hours for g in employees), ZERO),
            flagged_entries=sum(g.flagged_entries for g in employees),
        )
        return ReviewQueue(summary=summary, employees=employees)
