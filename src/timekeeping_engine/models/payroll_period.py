"""Payroll period model."""

from __future__ import annotations

from datetime import date
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Date, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from timekeeping_engine.models.base import Base, TimestampMixin


class PeriodType(str, Enum):
    """Payroll period cadences."""

    WEEKLY = "WEEKLY"
    BI_WEEKLY = "BI_WEEKLY"
    SEMI_MONTHLY = "SEMI_MONTHLY"
    MONTHLY = "MONTHLY"


class PeriodStatus(str, Enum):
    """Payroll period status values."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class PayrollPeriod(Base, TimestampMixin):
    """Calendar window used to group time entries for payroll.

    Not referenced by time entries: entries fall into a period by work date.
    """

    __tablename__ = "payroll_period"

    payroll_period_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    period_type: Mapped[str] = mapped_column(String(16), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=PeriodStatus.OPEN.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="dates_check"),
        CheckConstraint(
            "period_type IN ('WEEKLY', 'BI_WEEKLY', 'SEMI_MONTHLY', 'MONTHLY')",
            name="type_check",
        ),
        CheckConstraint("status IN ('OPEN', 'CLOSED')", name="status_check"),
    )

    def overlaps(self, start_date: date, end_date: date) -> bool:
        """Inclusive range intersection."""
        return self.start_date <= end_date and start_date <= self.end_date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def __repr__(self) -> str:
        return f"<PayrollPeriod {self.period_type} {self.start_date}..{self.end_date}>"
