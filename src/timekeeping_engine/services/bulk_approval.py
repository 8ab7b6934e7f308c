"""All-or-nothing bulk approval of time entries."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from timekeeping_engine.config import Settings, get_settings
from timekeeping_engine.database import transaction
from timekeeping_engine.errors import BulkApprovalError, TimekeepingError, ValidationError
from timekeeping_engine.models import TimeEntry
from timekeeping_engine.services.approval_service import ApprovalService
from timekeeping_engine.services.state_machine import ApprovalAction, TimeEntryStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BulkSelection:
    """Which entries a bulk action targets.

    Either an explicit id list or an inclusive work-date range. A date range
    only picks entries in bulk-eligible statuses (COMPLETED, SUBMITTED).
    """

    time_entry_ids: tuple[UUID, ...] = ()
    start_date: date | None = None
    end_date: date | None = None
    user_ids: tuple[UUID, ...] = ()

    @classmethod
    def by_ids(cls, time_entry_ids: Sequence[UUID]) -> BulkSelection:
        # dict.fromkeys dedupes and keeps request order
        return cls(time_entry_ids=tuple(dict.fromkeys(time_entry_ids)))

    @classmethod
    def by_date_range(
        cls,
        start_date: date,
        end_date: date,
        user_ids: Sequence[UUID] | None = None,
    ) -> BulkSelection:
        return cls(start_date=start_date, end_date=end_date, user_ids=tuple(user_ids or ()))

    @property
    def is_date_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    def validate(self) -> None:
        if self.time_entry_ids and (
            self.start_date is not None or self.end_date is not None or self.user_ids
        ):
            raise ValidationError(
                "timeEntryIds cannot be combined with a date range or userIds",
                field="timeEntryIds",
            )
        if self.is_date_range:
            if self.start_date > self.end_date:
                raise ValidationError("startDate is after endDate", field="startDate")
            return
        if self.start_date is not None or self.end_date is not None:
            raise ValidationError(
                "Both startDate and endDate are required for a date range", field="endDate"
            )
        if not self.time_entry_ids:
            raise ValidationError(
                "Either timeEntryIds or startDate and endDate are required",
                field="timeEntryIds",
            )


@dataclass(frozen=True)
class BulkResult:
    """Outcome of a committed batch."""

    action: ApprovalAction
    processed_entries: int
    time_entry_ids: list[UUID] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"{self.action.value} applied to {self.processed_entries} time entries"


class BulkApprovalService:
    """Applies one approval action to many entries in a single transaction.

    The first entry that cannot take the action (missing, illegal status,
    concurrently modified) rolls the whole batch back, audit rows included.
    """

    def __init__(self, session: Session, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.approvals = ApprovalService(session)

    def resolve(self, selection: BulkSelection) -> list[UUID]:
        """Entry ids the selection covers, in processing order."""
        if not selection.is_date_range:
            return list(selection.time_entry_ids)

        stmt = select(TimeEntry.time_entry_id).where(
            TimeEntry.status.in_([s.value for s in TimeEntryStateMachine.BULK_ELIGIBLE]),
            TimeEntry.work_date >= selection.start_date,
            TimeEntry.work_date <= selection.end_date,
        )
        if selection.user_ids:
            stmt = stmt.where(TimeEntry.user_id.in_(selection.user_ids))
        stmt = stmt.order_by(TimeEntry.clock_in_time, TimeEntry.time_entry_id)
        return list(self.session.execute(stmt).scalars())

    def execute(
        self,
        selection: BulkSelection,
        action: ApprovalAction,
        *,
        performed_by: UUID,
        approved_by: UUID | None = None,
        notes: str | None = None,
    ) -> BulkResult:
        """Apply ``action`` to every selected entry or to none.

        Raises:
            ValidationError: malformed selection or batch over the size limit
            BulkApprovalError: an entry failed; nothing was written
        """
        selection.validate()
        action = ApprovalAction(action)
        at = datetime.now(timezone.utc)

        with transaction(self.session):
            ids = self.resolve(selection)
            if len(ids) > self.settings.bulk_max_entries:
                raise ValidationError(
                    f"Batch of {len(ids)} entries exceeds the limit of "
                    f"{self.settings.bulk_max_entries}",
                    field="timeEntryIds",
                )

            for time_entry_id in ids:
                try:
                    self.approvals.apply(
                        time_entry_id,
                        action,
                        performed_by=performed_by,
                        approved_by=approved_by,
                        notes=notes,
                        at=at,
                    )
                except TimekeepingError as exc:
                    logger.warning(
                        "Bulk %s rolled back at time entry %s: %s",
                        action.value,
                        time_entry_id,
                        exc.message,
                    )
                    raise BulkApprovalError(action.value, time_entry_id, exc) from exc

        logger.info("Bulk %s committed for %d time entries", action.value, len(ids))
        return BulkResult(action=action, processed_entries=len(ids), time_entry_ids=ids)
