"""Time entry store: classify, price and persist shifts."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from timekeeping_engine.calculators.categories import (
    CategoryHours,
    HourCategory,
    classify,
    pay,
    to_decimal,
    to_hours,
)
from timekeeping_engine.config import Settings, get_settings
from timekeeping_engine.database import transaction
from timekeeping_engine.errors import (
    ConcurrentModificationError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from timekeeping_engine.models import TimeEntry
from timekeeping_engine.services.state_machine import TimeEntryStateMachine, TimeEntryStatus

logger = logging.getLogger(__name__)


class TimeEntryService:
    """Creates, reads and deletes time entries.

    Every write derives total/regular/overtime hours and total pay from the
    category breakdown, so the stored roll-ups always agree with it. The rates
    used are snapshotted on the row.
    """

    def __init__(self, session: Session, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()

    def create(
        self,
        *,
        user_id: UUID,
        clock_in_time: datetime,
        category_hours: CategoryHours | Mapping[str, Any],
        total_hours: Any,
        regular_rate: Any,
        travel_rate: Any = None,
        clock_out_time: datetime | None = None,
        break_minutes: int = 0,
        job_id: UUID | None = None,
        work_description: str | None = None,
        status: TimeEntryStatus = TimeEntryStatus.COMPLETED,
    ) -> TimeEntry:
        """Validate and store a new entry.

        Raises ValidationError (nothing is written) when the breakdown is
        malformed, disagrees with ``total_hours`` or exceeds the shift ceiling.
        """
        status = TimeEntryStatus(status)
        if status not in TimeEntryStateMachine.INITIAL:
            raise ValidationError(
                f"Time entries cannot be created in status {status.value}", field="status"
            )

        hours = (
            category_hours
            if isinstance(category_hours, CategoryHours)
            else CategoryHours.from_mapping(category_hours)
        )
        totals = classify(hours, self.settings.max_shift_hours)

        supplied_total = to_hours(total_hours, "totalHours")
        if supplied_total != totals.total_hours:
            raise ValidationError(
                f"totalHours {supplied_total} does not match the category sum "
                f"{totals.total_hours}",
                field="totalHours",
            )

        if isinstance(break_minutes, bool) or not isinstance(break_minutes, int):
            raise ValidationError("breakMinutes must be an integer", field="breakMinutes")
        if break_minutes < 0:
            raise ValidationError("breakMinutes cannot be negative", field="breakMinutes")
        if clock_out_time is not None:
            if (clock_in_time.tzinfo is None) != (clock_out_time.tzinfo is None):
                raise ValidationError(
                    "clockInTime and clockOutTime must both carry a UTC offset or neither",
                    field="clockOutTime",
                )
            if clock_out_time < clock_in_time:
                raise ValidationError("clockOutTime is before clockInTime", field="clockOutTime")

        regular_rate = to_decimal(regular_rate, "regularRate")
        travel_rate = regular_rate if travel_rate is None else to_decimal(travel_rate, "travelRate")
        total_pay = pay(hours, regular_rate, travel_rate)

        entry = TimeEntry(
            user_id=user_id,
            job_id=job_id,
            clock_in_time=clock_in_time,
            clock_out_time=clock_out_time,
            break_minutes=break_minutes,
            work_date=clock_in_time.date(),
            work_description=work_description,
            **{category.field_name: hours.get(category) for category in HourCategory},
            total_hours=totals.total_hours,
            regular_hours=totals.regular_hours,
            overtime_hours=totals.overtime_hours,
            applied_regular_rate=regular_rate,
            applied_travel_rate=travel_rate,
            total_pay=total_pay,
            _status=status.value,
        )

        with transaction(self.session):
            self.session.add(entry)
            self.session.flush()

        logger.info(
            "Created time entry %s for user %s: %s hours, pay %s",
            entry.time_entry_id,
            user_id,
            totals.total_hours,
            total_pay,
        )
        return entry

    def get(self, time_entry_id: UUID) -> TimeEntry:
        """Load an entry or raise NotFoundError."""
        entry = self.session.get(TimeEntry, time_entry_id)
        if entry is None:
            raise NotFoundError("TimeEntry", time_entry_id)
        return entry

    def delete(self, time_entry_id: UUID) -> None:
        """Delete an entry that has not entered the approval flow.

        Audit rows are kept; they have no foreign key to the entry.
        """
        with transaction(self.session):
            entry = self.session.execute(
                select(TimeEntry)
                .where(TimeEntry.time_entry_id == time_entry_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if entry is None:
                raise NotFoundError("TimeEntry", time_entry_id)
            if not TimeEntryStateMachine.can_delete(entry.status):
                raise InvalidStateError(
                    f"Time entry {time_entry_id} is {entry.status.value} and cannot be deleted"
                )
            self.session.delete(entry)
            try:
                self.session.flush()
            except StaleDataError as exc:
                raise ConcurrentModificationError(time_entry_id) from exc

        logger.info("Deleted time entry %s", time_entry_id)

    def list_entries(
        self,
        *,
        status: TimeEntryStatus | None = None,
        user_id: UUID | None = None,
        job_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[TimeEntry]:
        """Filter entries, newest clock-in first."""
        stmt = select(TimeEntry)
        if status is not None:
            stmt = stmt.where(TimeEntry.status == TimeEntryStatus(status).value)
        if user_id is not None:
            stmt = stmt.where(TimeEntry.user_id == user_id)
        if job_id is not None:
            stmt = stmt.where(TimeEntry.job_id == job_id)
        if start_date is not None:
            stmt = stmt.where(TimeEntry.work_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(TimeEntry.work_date <= end_date)
        stmt = (
            stmt.order_by(TimeEntry.clock_in_time.desc(), TimeEntry.time_entry_id)
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.execute(stmt).scalars())
