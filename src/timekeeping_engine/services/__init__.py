"""Timekeeping engine services.

Only the state machine is re-exported here; the ORM models depend on it, so
importing the service classes from this package would be circular.
"""

from timekeeping_engine.services.state_machine import (
    ApprovalAction,
    ApprovalEvent,
    TimeEntryStateMachine,
    TimeEntryStatus,
)

__all__ = [
    "ApprovalAction",
    "ApprovalEvent",
    "TimeEntryStateMachine",
    "TimeEntryStatus",
]
