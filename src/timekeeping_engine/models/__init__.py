"""ORM models."""

from timekeeping_engine.models.base import Base, TimestampMixin
from timekeeping_engine.models.payroll_period import PayrollPeriod, PeriodStatus, PeriodType
from timekeeping_engine.models.time_entry import TimeEntry, TimeEntryAuditLog

__all__ = [
    "Base",
    "TimestampMixin",
    "PayrollPeriod",
    "PeriodStatus",
    "PeriodType",
    "TimeEntry",
    "TimeEntryAuditLog",
]
