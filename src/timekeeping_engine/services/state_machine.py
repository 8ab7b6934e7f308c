"""Time entry approval state machine with transition validation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from timekeeping_engine.errors import IllegalTransitionError

if TYPE_CHECKING:
    from timekeeping_engine.models.time_entry import TimeEntry


class TimeEntryStatus(str, Enum):
    """Time entry status values."""

    DRAFT = "DRAFT"
    COMPLETED = "COMPLETED"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"


class ApprovalEvent(str, Enum):
    """Events that move a time entry between statuses."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    MARK_PAID = "mark_paid"


class ApprovalAction(str, Enum):
    """Actions accepted by the approval endpoints, as recorded in the audit log."""

    APPROVE = "APPROVE"
    REJECT = "REJECT"
    SUBMIT_FOR_APPROVAL = "SUBMIT_FOR_APPROVAL"
    MARK_PAID = "MARK_PAID"

    @property
    def event(self) -> ApprovalEvent:
        return _ACTION_EVENTS[self]


_ACTION_EVENTS = {
    ApprovalAction.APPROVE: ApprovalEvent.APPROVE,
    ApprovalAction.REJECT: ApprovalEvent.REJECT,
    ApprovalAction.SUBMIT_FOR_APPROVAL: ApprovalEvent.SUBMIT,
    ApprovalAction.MARK_PAID: ApprovalEvent.MARK_PAID,
}


def _value(member: str) -> str:
    return member.value if isinstance(member, Enum) else member


class TimeEntryStateMachine:
    """State machine for time entry status transitions.

    Allowed transitions:
    - COMPLETED -submit-> SUBMITTED
    - REJECTED -submit-> SUBMITTED (re-submission after correction)
    - SUBMITTED -approve-> APPROVED
    - SUBMITTED -reject-> REJECTED
    - APPROVED -mark_paid-> PAID (payroll export)

    This class is the only writer of TimeEntry status.
    """

    TRANSITIONS: dict[tuple[TimeEntryStatus, ApprovalEvent], TimeEntryStatus] = {
        (TimeEntryStatus.COMPLETED, ApprovalEvent.SUBMIT): TimeEntryStatus.SUBMITTED,
        (TimeEntryStatus.REJECTED, ApprovalEvent.SUBMIT): TimeEntryStatus.SUBMITTED,
        (TimeEntryStatus.SUBMITTED, ApprovalEvent.APPROVE): TimeEntryStatus.APPROVED,
        (TimeEntryStatus.SUBMITTED, ApprovalEvent.REJECT): TimeEntryStatus.REJECTED,
        (TimeEntryStatus.APPROVED, ApprovalEvent.MARK_PAID): TimeEntryStatus.PAID,
    }

    # Statuses the time capture collaborator may create entries in
    INITIAL = frozenset({TimeEntryStatus.DRAFT, TimeEntryStatus.COMPLETED})

    # Statuses where the entry may still be deleted
    DELETABLE = frozenset({TimeEntryStatus.DRAFT, TimeEntryStatus.COMPLETED})

    # Statuses eligible for date-range bulk selection
    BULK_ELIGIBLE = frozenset({TimeEntryStatus.COMPLETED, TimeEntryStatus.SUBMITTED})

    # Statuses that count towards payroll aggregates and exports
    PAYROLL = frozenset({TimeEntryStatus.APPROVED, TimeEntryStatus.PAID})

    @classmethod
    def can_transition(cls, from_status: str, event: str) -> bool:
        """Check if an event is legal from a status."""
        try:
            key = (TimeEntryStatus(from_status), ApprovalEvent(event))
        except ValueError:
            return False
        return key in cls.TRANSITIONS

    @classmethod
    def next_status(
        cls,
        from_status: str,
        event: str,
        time_entry_id: UUID | None = None,
    ) -> TimeEntryStatus:
        """Resolve the target status, raising IllegalTransitionError if illegal."""
        if not cls.can_transition(from_status, event):
            raise IllegalTransitionError(_value(event), _value(from_status), time_entry_id)
        return cls.TRANSITIONS[(TimeEntryStatus(from_status), ApprovalEvent(event))]

    @classmethod
    def get_events(cls, status: str) -> list[ApprovalEvent]:
        """Events legal from a status."""
        return [event for (source, event) in cls.TRANSITIONS if source == status]

    @classmethod
    def can_delete(cls, status: str) -> bool:
        return status in cls.DELETABLE

    @classmethod
    def apply(
        cls,
        entry: TimeEntry,
        event: ApprovalEvent,
        *,
        actor_id: UUID | None,
        at: datetime,
        notes: str | None = None,
    ) -> tuple[TimeEntryStatus, TimeEntryStatus]:
        """Move an entry to its next status and stamp the side-effect fields.

        Returns (old_status, new_status).
        """
        old_status = entry.status
        new_status = cls.next_status(old_status, event, entry.time_entry_id)

        if event == ApprovalEvent.SUBMIT:
            entry.submitted_at = at
            if old_status == TimeEntryStatus.REJECTED:
                # Rejection stamps do not carry over to the new review
                entry.approved_at = None
                entry.approved_by = None
        elif event in (ApprovalEvent.APPROVE, ApprovalEvent.REJECT):
            # approved_at/approved_by double as rejection timestamp and actor
            entry.approved_at = at
            entry.approved_by = actor_id

        if notes is not None:
            entry.notes = notes

        entry._status = new_status.value
        return old_status, new_status
