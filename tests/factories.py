"""Shared test data: fixed ids and a time entry builder."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from timekeeping_engine.config import Settings
from timekeeping_engine.models import TimeEntry
from timekeeping_engine.services.approval_service import ApprovalService
from timekeeping_engine.services.state_machine import TimeEntryStatus
from timekeeping_engine.services.time_entry_service import TimeEntryService

ALICE_ID = UUID("00000000-0000-0000-0000-00000000a11c")
BOB_ID = UUID("00000000-0000-0000-0000-000000000b0b")
REVIEWER_ID = UUID("00000000-0000-0000-0000-0000000000ee")
JOB_ID = UUID("00000000-0000-0000-0000-0000000a0b01")

ACTOR_HEADERS = {"X-Actor-Id": str(REVIEWER_ID)}


def clock_in(work_day: date, hour: int = 7) -> datetime:
    return datetime.combine(work_day, time(hour, 0), tzinfo=timezone.utc)


def make_entry(
    session: Session,
    settings: Settings,
    *,
    user_id: UUID = ALICE_ID,
    work_day: date = date(2025, 3, 3),
    straight_time: Decimal = Decimal("8"),
    overtime: Decimal = Decimal("0"),
    break_minutes: int = 30,
    job_id: UUID | None = None,
    regular_rate: Decimal = Decimal("25.00"),
    status: TimeEntryStatus = TimeEntryStatus.COMPLETED,
) -> TimeEntry:
    """Store an entry and walk it through the workflow to ``status``."""
    total = straight_time + overtime
    start = clock_in(work_day)
    initial = TimeEntryStatus.DRAFT if status == TimeEntryStatus.DRAFT else TimeEntryStatus.COMPLETED
    entry = TimeEntryService(session, settings).create(
        user_id=user_id,
        job_id=job_id,
        clock_in_time=start,
        clock_out_time=start + timedelta(hours=float(total), minutes=break_minutes),
        break_minutes=break_minutes,
        category_hours={"straightTime": straight_time, "overtime": overtime},
        total_hours=total,
        regular_rate=regular_rate,
        status=initial,
    )

    approvals = ApprovalService(session)
    path = {
        TimeEntryStatus.SUBMITTED: [approvals.submit],
        TimeEntryStatus.APPROVED: [approvals.submit, approvals.approve],
        TimeEntryStatus.REJECTED: [approvals.submit, approvals.reject],
        TimeEntryStatus.PAID: [approvals.submit, approvals.approve, approvals.mark_paid],
    }.get(status, [])
    for step in path:
        entry = step(entry.time_entry_id, performed_by=REVIEWER_ID)
    return entry
