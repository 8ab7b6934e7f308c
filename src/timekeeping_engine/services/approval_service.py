"""Approval workflow for individual time entries."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from timekeeping_engine.database import transaction
from timekeeping_engine.errors import ConcurrentModificationError, NotFoundError
from timekeeping_engine.models import TimeEntry
from timekeeping_engine.services.audit_service import AuditService
from timekeeping_engine.services.state_machine import (
    ApprovalAction,
    TimeEntryStateMachine,
)

logger = logging.getLogger(__name__)


class ApprovalService:
    """Moves time entries through the approval state machine.

    Operations:
    - submit: COMPLETED or REJECTED -> SUBMITTED
    - approve: SUBMITTED -> APPROVED
    - reject: SUBMITTED -> REJECTED
    - mark_paid: APPROVED -> PAID

    Each call locks the entry row, applies the transition and appends one
    audit row in the same transaction. An illegal transition raises before
    anything is written.
    """

    def __init__(self, session: Session):
        self.session = session
        self.audit = AuditService(session)

    def submit(
        self,
        time_entry_id: UUID,
        *,
        performed_by: UUID,
        notes: str | None = None,
        expected_version: int | None = None,
    ) -> TimeEntry:
        return self.transition(
            time_entry_id,
            ApprovalAction.SUBMIT_FOR_APPROVAL,
            performed_by=performed_by,
            notes=notes,
            expected_version=expected_version,
        )

    def approve(
        self,
        time_entry_id: UUID,
        *,
        performed_by: UUID,
        approved_by: UUID | None = None,
        notes: str | None = None,
        expected_version: int | None = None,
    ) -> TimeEntry:
        return self.transition(
            time_entry_id,
            ApprovalAction.APPROVE,
            performed_by=performed_by,
            approved_by=approved_by,
            notes=notes,
            expected_version=expected_version,
        )

    def reject(
        self,
        time_entry_id: UUID,
        *,
        performed_by: UUID,
        approved_by: UUID | None = None,
        notes: str | None = None,
        expected_version: int | None = None,
    ) -> TimeEntry:
        """Reject a submitted entry; ``approved_by`` records the rejecting reviewer."""
        return self.transition(
            time_entry_id,
            ApprovalAction.REJECT,
            performed_by=performed_by,
            approved_by=approved_by,
            notes=notes,
            expected_version=expected_version,
        )

    def mark_paid(
        self,
        time_entry_id: UUID,
        *,
        performed_by: UUID,
        notes: str | None = None,
    ) -> TimeEntry:
        return self.transition(
            time_entry_id,
            ApprovalAction.MARK_PAID,
            performed_by=performed_by,
            notes=notes,
        )

    def transition(
        self,
        time_entry_id: UUID,
        action: ApprovalAction,
        *,
        performed_by: UUID,
        approved_by: UUID | None = None,
        notes: str | None = None,
        expected_version: int | None = None,
    ) -> TimeEntry:
        """Apply one action in its own transaction."""
        with transaction(self.session):
            entry = self.apply(
                time_entry_id,
                action,
                performed_by=performed_by,
                approved_by=approved_by,
                notes=notes,
                expected_version=expected_version,
            )
        return entry

    def apply(
        self,
        time_entry_id: UUID,
        action: ApprovalAction,
        *,
        performed_by: UUID,
        approved_by: UUID | None = None,
        notes: str | None = None,
        expected_version: int | None = None,
        at: datetime | None = None,
    ) -> TimeEntry:
        """Apply one action inside the caller's transaction (no commit).

        Raises:
            NotFoundError: entry does not exist
            IllegalTransitionError: action not legal from the current status
            ConcurrentModificationError: version mismatch with the caller or
                with a concurrent writer
        """
        at = at or datetime.now(timezone.utc)
        entry = self._load_for_update(time_entry_id)

        if expected_version is not None and entry.version != expected_version:
            raise ConcurrentModificationError(
                time_entry_id,
                f"Time entry {time_entry_id} is at version {entry.version}, "
                f"expected {expected_version}",
            )

        old_status, new_status = TimeEntryStateMachine.apply(
            entry,
            action.event,
            actor_id=approved_by or performed_by,
            at=at,
            notes=notes,
        )

        try:
            self.audit.record(
                entry=entry,
                action=action,
                performed_by=performed_by,
                old_status=old_status,
                new_status=new_status,
                at=at,
                notes=notes,
            )
        except StaleDataError as exc:
            raise ConcurrentModificationError(time_entry_id) from exc

        logger.info(
            "Time entry %s %s -> %s by %s",
            time_entry_id,
            old_status.value,
            new_status.value,
            performed_by,
        )
        return entry

    def _load_for_update(self, time_entry_id: UUID) -> TimeEntry:
        entry = self.session.execute(
            select(TimeEntry)
            .where(TimeEntry.time_entry_id == time_entry_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if entry is None:
            raise NotFoundError("TimeEntry", time_entry_id)
        return entry
