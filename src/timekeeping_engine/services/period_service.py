"""Payroll period generation, creation and reporting."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, delete, distinct, func, select
from sqlalchemy.orm import Session

from timekeeping_engine.calculators.categories import CENTS
from timekeeping_engine.database import transaction
from timekeeping_engine.errors import InvalidStateError, NotFoundError, OverlapError, ValidationError
from timekeeping_engine.models import PayrollPeriod, PeriodStatus, PeriodType, TimeEntry
from timekeeping_engine.services.state_machine import TimeEntryStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodWindow:
    """A candidate period before it is stored."""

    start_date: date
    end_date: date
    description: str


@dataclass(frozen=True)
class PeriodSummary:
    """A stored period with payroll aggregates over its approved entries."""

    period: PayrollPeriod
    time_entry_count: int
    total_hours: Decimal
    total_pay: Decimal
    employee_count: int
    is_current_period: bool


def _month_label(day: date) -> str:
    return f"{calendar.month_name[day.month]} {day.year}"


def build_windows(year: int, period_type: PeriodType) -> list[PeriodWindow]:
    """Derive the disjoint windows covering Jan 1 - Dec 31 of ``year``."""
    period_type = PeriodType(period_type)
    first_day = date(year, 1, 1)
    last_day = date(year, 12, 31)
    windows: list[PeriodWindow] = []

    if period_type == PeriodType.WEEKLY:
        # Sunday on or before Jan 1; weekday() is 0 for Monday, 6 for Sunday.
        # Labels keep the anchoring Sunday even when the window is clipped.
        start = first_day - timedelta(days=(first_day.weekday() + 1) % 7)
        while start <= last_day:
            window_start = max(start, first_day)
            window_end = min(start + timedelta(days=6), last_day)
            windows.append(
                PeriodWindow(window_start, window_end, f"Week of {start:%m/%d/%Y}")
            )
            start += timedelta(days=7)

    elif period_type == PeriodType.BI_WEEKLY:
        start = first_day
        while start <= last_day:
            window_end = min(start + timedelta(days=13), last_day)
            windows.append(
                PeriodWindow(
                    start,
                    window_end,
                    f"Bi-weekly {start:%m/%d/%Y} - {window_end:%m/%d/%Y}",
                )
            )
            start += timedelta(days=14)

    elif period_type == PeriodType.SEMI_MONTHLY:
        for month in range(1, 13):
            month_end = calendar.monthrange(year, month)[1]
            first = date(year, month, 1)
            label = _month_label(first)
            windows.append(PeriodWindow(first, date(year, month, 15), f"{label} 1st-15th"))
            windows.append(
                PeriodWindow(
                    date(year, month, 16),
                    date(year, month, month_end),
                    f"{label} 16th-{month_end}",
                )
            )

    else:
        for month in range(1, 13):
            first = date(year, month, 1)
            month_end = date(year, month, calendar.monthrange(year, month)[1])
            windows.append(PeriodWindow(first, month_end, _month_label(first)))

    return windows


class PayrollPeriodService:
    """Stores payroll periods and keeps them non-overlapping.

    Overlap is checked against every stored period, whatever its type.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, payroll_period_id: UUID) -> PayrollPeriod:
        period = self.session.get(PayrollPeriod, payroll_period_id)
        if period is None:
            raise NotFoundError("PayrollPeriod", payroll_period_id)
        return period

    def find_overlapping(self, start_date: date, end_date: date) -> list[PayrollPeriod]:
        """Stored periods intersecting [start_date, end_date] inclusive."""
        result = self.session.execute(
            select(PayrollPeriod)
            .where(PayrollPeriod.start_date <= end_date, PayrollPeriod.end_date >= start_date)
            .order_by(PayrollPeriod.start_date)
        )
        return list(result.scalars())

    def create(
        self,
        *,
        start_date: date,
        end_date: date,
        period_type: PeriodType,
        description: str | None = None,
        is_active: bool = True,
    ) -> PayrollPeriod:
        """Store one period.

        Raises:
            ValidationError: end_date before start_date
            OverlapError: intersects an existing period
        """
        if end_date < start_date:
            raise ValidationError("endDate is before startDate", field="endDate")
        try:
            period_type = PeriodType(period_type)
        except ValueError as exc:
            raise ValidationError(f"Unknown period type {period_type}", field="periodType") from exc

        with transaction(self.session):
            conflicts = self.find_overlapping(start_date, end_date)
            if conflicts:
                raise OverlapError(
                    f"Period {start_date} - {end_date} overlaps {len(conflicts)} existing period(s)",
                    [p.payroll_period_id for p in conflicts],
                )
            period = PayrollPeriod(
                start_date=start_date,
                end_date=end_date,
                period_type=period_type.value,
                description=description,
                is_active=is_active,
                status=PeriodStatus.OPEN.value,
            )
            self.session.add(period)
            self.session.flush()

        logger.info("Created %s payroll period %s - %s", period_type.value, start_date, end_date)
        return period

    def generate_year(self, year: int, period_type: PeriodType) -> list[PayrollPeriod]:
        """Replace every period starting in ``year`` with generated windows.

        Regeneration discards the replaced periods' descriptions and CLOSED
        status.
        """
        if not 1900 <= year <= 2999:
            raise ValidationError(f"Invalid year {year}", field="generateYear")
        period_type = PeriodType(period_type)
        windows = build_windows(year, period_type)
        first_day, last_day = date(year, 1, 1), date(year, 12, 31)

        with transaction(self.session):
            removed = self.session.execute(
                delete(PayrollPeriod).where(
                    PayrollPeriod.start_date >= first_day,
                    PayrollPeriod.start_date <= last_day,
                )
            ).rowcount

            conflicts = self.find_overlapping(first_day, last_day)
            if conflicts:
                raise OverlapError(
                    f"Periods from other years overlap {year}",
                    [p.payroll_period_id for p in conflicts],
                )

            periods = [
                PayrollPeriod(
                    start_date=window.start_date,
                    end_date=window.end_date,
                    period_type=period_type.value,
                    description=window.description,
                    status=PeriodStatus.OPEN.value,
                    is_active=True,
                )
                for window in windows
            ]
            self.session.add_all(periods)
            self.session.flush()

        if removed:
            logger.warning(
                "Regenerated %s periods for %d: discarded %d existing period(s) "
                "including their descriptions and status",
                period_type.value,
                year,
                removed,
            )
        logger.info("Generated %d %s periods for %d", len(periods), period_type.value, year)
        return periods

    def close(self, payroll_period_id: UUID) -> PayrollPeriod:
        """Move an OPEN period to CLOSED."""
        with transaction(self.session):
            period = self.get(payroll_period_id)
            if period.status == PeriodStatus.CLOSED.value:
                raise InvalidStateError(f"Payroll period {payroll_period_id} is already closed")
            period.status = PeriodStatus.CLOSED.value
            self.session.flush()

        logger.info("Closed payroll period %s", payroll_period_id)
        return period

    def list_periods(
        self,
        year: int,
        *,
        period_type: PeriodType | None = None,
        current: bool = False,
        today: date | None = None,
    ) -> list[PeriodSummary]:
        """Periods starting in ``year``, newest first, with payroll aggregates.

        Only APPROVED and PAID entries count towards the aggregates.
        """
        today = today or date.today()
        payroll_statuses = [s.value for s in TimeEntryStateMachine.PAYROLL]

        stmt = (
            select(
                PayrollPeriod,
                func.count(TimeEntry.time_entry_id),
                func.coalesce(func.sum(TimeEntry.total_hours), 0),
                func.coalesce(func.sum(TimeEntry.total_pay), 0),
                func.count(distinct(TimeEntry.user_id)),
            )
            .outerjoin(
                TimeEntry,
                and_(
                    TimeEntry.work_date >= PayrollPeriod.start_date,
                    TimeEntry.work_date <= PayrollPeriod.end_date,
                    TimeEntry.status.in_(payroll_statuses),
                ),
            )
            .where(
                PayrollPeriod.start_date >= date(year, 1, 1),
                PayrollPeriod.start_date <= date(year, 12, 31),
            )
            .group_by(PayrollPeriod.payroll_period_id)
            .order_by(PayrollPeriod.start_date.desc())
        )
        if period_type is not None:
            stmt = stmt.where(PayrollPeriod.period_type == PeriodType(period_type).value)
        if current:
            stmt = stmt.where(PayrollPeriod.start_date <= today, PayrollPeriod.end_date >= today)

        return [
            PeriodSummary(
                period=period,
                time_entry_count=int(count),
                total_hours=Decimal(str(hours)).quantize(CENTS),
                total_pay=Decimal(str(pay_total)).quantize(CENTS),
                employee_count=int(employees),
                is_current_period=period.contains(today),
            )
            for period, count, hours, pay_total, employees in self.session.execute(stmt)
        ]
