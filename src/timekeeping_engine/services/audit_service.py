"""Append-only audit trail for time entry status transitions."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from timekeeping_engine.errors import ValidationError
from timekeeping_engine.models import TimeEntry, TimeEntryAuditLog
from timekeeping_engine.services.state_machine import ApprovalAction, TimeEntryStatus


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class AuditService:
    """Writes and reads time entry audit rows.

    Rows are only ever inserted; the model rejects updates and deletes.
    Writes join the caller's transaction so a transition and its audit row
    commit or roll back together.
    """

    def __init__(self, session: Session):
        self.session = session

    def record(
        self,
        *,
        entry: TimeEntry,
        action: ApprovalAction,
        performed_by: UUID | None,
        old_status: TimeEntryStatus,
        new_status: TimeEntryStatus,
        at: datetime,
        notes: str | None = None,
    ) -> TimeEntryAuditLog:
        """Append one transition row and flush it with the entry update."""
        row = TimeEntryAuditLog(
            time_entry_id=entry.time_entry_id,
            user_id=entry.user_id,
            action=action.value,
            performed_by=performed_by,
            old_status=old_status.value,
            new_status=new_status.value,
            notes=notes,
            created_at=at,
        )
        self.session.add(row)
        self.session.flush()
        return row

    def history(self, time_entry_id: UUID) -> list[TimeEntryAuditLog]:
        """All rows for one entry, oldest first."""
        result = self.session.execute(
            select(TimeEntryAuditLog)
            .where(TimeEntryAuditLog.time_entry_id == time_entry_id)
            .order_by(TimeEntryAuditLog.created_at, TimeEntryAuditLog.audit_log_id)
        )
        return list(result.scalars())

    def search(
        self,
        *,
        time_entry_id: UUID | None = None,
        user_id: UUID | None = None,
        performed_by: UUID | None = None,
        action: ApprovalAction | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 50,
    ) -> list[TimeEntryAuditLog]:
        """Recent rows across entries, newest first.

        ``start_date`` and ``end_date`` bound the UTC day the row was written,
        both inclusive.
        """
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ValidationError("dateFrom is after dateTo", field="dateFrom")

        stmt = select(TimeEntryAuditLog)
        if time_entry_id is not None:
            stmt = stmt.where(TimeEntryAuditLog.time_entry_id == time_entry_id)
        if user_id is not None:
            stmt = stmt.where(TimeEntryAuditLog.user_id == user_id)
        if performed_by is not None:
            stmt = stmt.where(TimeEntryAuditLog.performed_by == performed_by)
        if action is not None:
            stmt = stmt.where(TimeEntryAuditLog.action == ApprovalAction(action).value)
        if start_date is not None:
            stmt = stmt.where(TimeEntryAuditLog.created_at >= _day_start(start_date))
        if end_date is not None:
            stmt = stmt.where(
                TimeEntryAuditLog.created_at < _day_start(end_date + timedelta(days=1))
            )
        stmt = stmt.order_by(
            TimeEntryAuditLog.created_at.desc(), TimeEntryAuditLog.audit_log_id.desc()
        ).limit(limit)
        return list(self.session.execute(stmt).scalars())
