"""Domain errors raised by the timekeeping engine.

Every error carries a machine-readable ``code`` and the HTTP status the API
layer maps it to. Extra attributes localise the failure (field name, entry id).
"""

from __future__ import annotations

from typing import Any
from uuid import UUID


class TimekeepingError(Exception):
    """Base class for all domain errors."""

    code = "TIMEKEEPING_ERROR"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Structured payload for API error responses."""
        return {"code": self.code, "detail": self.message}


class ValidationError(TimekeepingError):
    """Malformed or inconsistent input, rejected before any write."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.field:
            payload["field"] = self.field
        return payload


class NotFoundError(TimekeepingError):
    """Referenced record does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: UUID | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class IllegalTransitionError(TimekeepingError):
    """Raised when a status transition is not in the transition table."""

    code = "ILLEGAL_TRANSITION"
    status_code = 409

    def __init__(
        self,
        event: str,
        current_status: str,
        time_entry_id: UUID | None = None,
    ):
        self.event = event
        self.current_status = current_status
        self.time_entry_id = time_entry_id
        msg = f"Cannot {event} a time entry in status '{current_status}'"
        if time_entry_id is not None:
            msg += f" (time entry {time_entry_id})"
        super().__init__(msg)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["event"] = self.event
        payload["currentStatus"] = self.current_status
        if self.time_entry_id is not None:
            payload["timeEntryId"] = str(self.time_entry_id)
        return payload


class InvalidStateError(TimekeepingError):
    """Operation is not permitted for the record's current status."""

    code = "INVALID_STATE"
    status_code = 409


class OverlapError(TimekeepingError):
    """Payroll period intersects an existing period."""

    code = "PERIOD_OVERLAP"
    status_code = 409

    def __init__(self, message: str, conflicting_ids: list[UUID] | None = None):
        self.conflicting_ids = conflicting_ids or []
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["conflictingPeriodIds"] = [str(i) for i in self.conflicting_ids]
        return payload


class ConcurrentModificationError(TimekeepingError):
    """Entry changed since the caller read it."""

    code = "CONCURRENT_MODIFICATION"
    status_code = 409

    def __init__(self, time_entry_id: UUID, message: str | None = None):
        self.time_entry_id = time_entry_id
        super().__init__(message or f"Time entry {time_entry_id} was modified concurrently")

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["timeEntryId"] = str(self.time_entry_id)
        return payload


class BulkApprovalError(TimekeepingError):
    """A batch was rolled back because one of its entries failed."""

    code = "BULK_REJECTED"

    def __init__(self, action: str, time_entry_id: UUID, cause: TimekeepingError):
        self.action = action
        self.time_entry_id = time_entry_id
        self.cause = cause
        self.status_code = cause.status_code
        super().__init__(
            f"{action} batch rolled back at time entry {time_entry_id}: {cause.message}"
        )

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["timeEntryId"] = str(self.time_entry_id)
        payload["cause"] = self.cause.to_dict()
        return payload


class AuditLogImmutableError(TimekeepingError):
    """Attempt to update or delete an audit log row."""

    code = "AUDIT_LOG_IMMUTABLE"
    status_code = 500
