"""Time entry and time entry audit log models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, validates

from timekeeping_engine.calculators.categories import CategoryHours, HourCategory
from timekeeping_engine.errors import AuditLogImmutableError, InvalidStateError
from timekeeping_engine.models.base import HOURS, MONEY, RATE, Base, TimestampMixin
from timekeeping_engine.services.state_machine import TimeEntryStatus

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in TimeEntryStatus)


class TimeEntry(Base, TimestampMixin):
    """One worked shift for one user, optionally linked to a job."""

    __tablename__ = "time_entry"

    time_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    # Unlinked "new job" entries are reconciled later
    job_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)

    clock_in_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    clock_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    work_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Category breakdown
    straight_time: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=Decimal("0"))
    straight_time_travel: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=Decimal("0"))
    overtime: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=Decimal("0"))
    overtime_travel: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=Decimal("0"))
    double_time: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=Decimal("0"))
    double_time_travel: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=Decimal("0"))

    # Roll-ups, kept consistent with the breakdown by the store
    total_hours: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=Decimal("0"))
    regular_hours: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=Decimal("0"))
    overtime_hours: Mapped[Decimal] = mapped_column(HOURS, nullable=False, default=Decimal("0"))

    # Rate snapshot taken at classification time
    applied_regular_rate: Mapped[Decimal | None] = mapped_column(RATE, nullable=True)
    applied_travel_rate: Mapped[Decimal | None] = mapped_column(RATE, nullable=True)
    total_pay: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))

    # Workflow
    _status: Mapped[str] = mapped_column(
        "status", String(16), nullable=False, default=TimeEntryStatus.COMPLETED.value
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[UUID | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="status_check"),
        CheckConstraint("break_minutes >= 0", name="break_minutes_check"),
        CheckConstraint(
            "straight_time >= 0 AND straight_time_travel >= 0 AND overtime >= 0 "
            "AND overtime_travel >= 0 AND double_time >= 0 AND double_time_travel >= 0",
            name="category_hours_check",
        ),
        CheckConstraint(
            "clock_out_time IS NULL OR clock_out_time >= clock_in_time",
            name="clock_check",
        ),
        Index("ix_time_entry_status_work_date", "status", "work_date"),
    )

    @hybrid_property
    def status(self) -> TimeEntryStatus:
        """Current status. Read-only: TimeEntryStateMachine is the only writer."""
        return TimeEntryStatus(self._status)

    @status.inplace.expression
    @classmethod
    def _status_expression(cls) -> Any:
        return cls._status

    @property
    def category_hours(self) -> CategoryHours:
        return CategoryHours(
            **{category.field_name: getattr(self, category.field_name) for category in HourCategory}
        )

    @validates("applied_regular_rate", "applied_travel_rate")
    def _validate_rate_snapshot(self, key: str, value: Decimal | None) -> Decimal | None:
        current = getattr(self, key)
        if current is not None and value != current:
            raise InvalidStateError(f"{key} is a snapshot and cannot be changed once set")
        return value

    def __repr__(self) -> str:
        return (
            f"<TimeEntry {self.time_entry_id} user={self.user_id} "
            f"status={self._status} total_hours={self.total_hours}>"
        )


class TimeEntryAuditLog(Base):
    """Append-only record of one time entry status transition.

    Deliberately has no foreign key to time_entry: history outlives the entry.
    """

    __tablename__ = "time_entry_audit_log"

    audit_log_id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    time_entry_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    performed_by: Mapped[UUID | None] = mapped_column(nullable=True)
    old_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    new_status: Mapped[str | None] = mapped_column(String(16), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return (
            f"<TimeEntryAuditLog {self.audit_log_id} entry={self.time_entry_id} "
            f"{self.old_status}->{self.new_status}>"
        )


@event.listens_for(TimeEntryAuditLog, "before_update")
def _reject_audit_update(mapper: Any, connection: Any, target: TimeEntryAuditLog) -> None:
    raise AuditLogImmutableError(f"Audit log row {target.audit_log_id} cannot be updated")


@event.listens_for(TimeEntryAuditLog, "before_delete")
def _reject_audit_delete(mapper: Any, connection: Any, target: TimeEntryAuditLog) -> None:
    raise AuditLogImmutableError(f"Audit log row {target.audit_log_id} cannot be deleted")
