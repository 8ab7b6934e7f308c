"""Tests for payroll period generation and reporting."""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, strategies as st

from timekeeping_engine.errors import InvalidStateError, NotFoundError, OverlapError, ValidationError
from timekeeping_engine.models import PayrollPeriod, PeriodStatus, PeriodType
from timekeeping_engine.services.period_service import PayrollPeriodService, build_windows
from timekeeping_engine.services.state_machine import TimeEntryStatus

from factories import BOB_ID


@pytest.fixture
def periods(session):
    return PayrollPeriodService(session)


def _assert_tiles_year(windows, year):
    """Windows are contiguous, disjoint and cover exactly Jan 1 - Dec 31."""
    assert windows[0].start_date == date(year, 1, 1)
    assert windows[-1].end_date == date(year, 12, 31)
    for previous, current in zip(windows, windows[1:]):
        assert current.start_date == previous.end_date + timedelta(days=1)


class TestBuildWindows:
    """Test window derivation per cadence."""

    def test_monthly(self):
        windows = build_windows(2025, PeriodType.MONTHLY)

        assert len(windows) == 12
        _assert_tiles_year(windows, 2025)
        assert windows[1].end_date == date(2025, 2, 28)
        assert windows[0].description == "January 2025"

    def test_monthly_leap_year(self):
        windows = build_windows(2024, PeriodType.MONTHLY)
        assert windows[1].end_date == date(2024, 2, 29)

    def test_weekly_first_window_is_clipped(self):
        """Jan 1 2025 is a Wednesday: the first week runs Jan 1 - Jan 4."""
        windows = build_windows(2025, PeriodType.WEEKLY)

        assert windows[0].start_date == date(2025, 1, 1)
        assert windows[0].end_date == date(2025, 1, 4)
        assert windows[1].start_date == date(2025, 1, 5)
        assert windows[1].start_date.weekday() == 6
        assert windows[-1].start_date == date(2025, 12, 28)
        assert len(windows) == 53
        _assert_tiles_year(windows, 2025)
        assert windows[0].description == "Week of 12/29/2024"
        assert windows[1].description == "Week of 01/05/2025"

    def test_bi_weekly(self):
        windows = build_windows(2025, PeriodType.BI_WEEKLY)

        assert len(windows) == 27
        _assert_tiles_year(windows, 2025)
        assert windows[0].end_date == date(2025, 1, 14)
        assert (windows[-1].start_date, windows[-1].end_date) == (
            date(2025, 12, 31),
            date(2025, 12, 31),
        )

    def test_semi_monthly(self):
        windows = build_windows(2025, PeriodType.SEMI_MONTHLY)

        assert len(windows) == 24
        _assert_tiles_year(windows, 2025)
        assert windows[2].description == "February 2025 1st-15th"
        assert windows[3].description == "February 2025 16th-28"
        assert windows[3].end_date == date(2025, 2, 28)

    @given(
        year=st.integers(min_value=1900, max_value=2999),
        period_type=st.sampled_from(PeriodType),
    )
    def test_every_cadence_tiles_the_year(self, year, period_type):
        windows = build_windows(year, period_type)

        _assert_tiles_year(windows, year)
        assert all(w.start_date <= w.end_date for w in windows)


class TestPayrollPeriodService:
    """Test stored periods."""

    def test_create(self, periods):
        period = periods.create(
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 14),
            period_type=PeriodType.BI_WEEKLY,
            description="First run",
        )

        assert period.status == PeriodStatus.OPEN.value
        assert periods.get(period.payroll_period_id).description == "First run"

    def test_create_rejects_inverted_dates(self, periods):
        with pytest.raises(ValidationError) as exc_info:
            periods.create(
                start_date=date(2025, 1, 14),
                end_date=date(2025, 1, 1),
                period_type=PeriodType.BI_WEEKLY,
            )
        assert exc_info.value.field == "endDate"

    def test_overlap_rejected_without_insert(self, periods, session):
        existing = periods.create(
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 14),
            period_type=PeriodType.BI_WEEKLY,
        )

        with pytest.raises(OverlapError) as exc_info:
            periods.create(
                start_date=date(2025, 1, 14),
                end_date=date(2025, 1, 20),
                period_type=PeriodType.WEEKLY,
            )

        assert exc_info.value.conflicting_ids == [existing.payroll_period_id]
        assert session.query(PayrollPeriod).count() == 1

    def test_adjacent_periods_allowed(self, periods):
        periods.create(
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 14),
            period_type=PeriodType.BI_WEEKLY,
        )
        periods.create(
            start_date=date(2025, 1, 15),
            end_date=date(2025, 1, 28),
            period_type=PeriodType.BI_WEEKLY,
        )
        assert len(periods.find_overlapping(date(2025, 1, 1), date(2025, 1, 31))) == 2

    def test_generate_year(self, periods, session):
        created = periods.generate_year(2025, PeriodType.MONTHLY)

        assert len(created) == 12
        assert session.query(PayrollPeriod).count() == 12
        assert all(p.status == PeriodStatus.OPEN.value for p in created)

    def test_regeneration_replaces_periods(self, periods, session):
        """Regenerating discards prior periods of the year, closed ones included."""
        first = periods.generate_year(2025, PeriodType.MONTHLY)
        periods.close(first[0].payroll_period_id)

        regenerated = periods.generate_year(2025, PeriodType.SEMI_MONTHLY)

        assert len(regenerated) == 24
        stored = session.query(PayrollPeriod).all()
        assert len(stored) == 24
        assert {p.period_type for p in stored} == {PeriodType.SEMI_MONTHLY.value}
        assert {p.status for p in stored} == {PeriodStatus.OPEN.value}

    def test_regeneration_logs_warning(self, periods, caplog):
        periods.generate_year(2025, PeriodType.MONTHLY)
        with caplog.at_level("WARNING", logger="timekeeping_engine.services.period_service"):
            periods.generate_year(2025, PeriodType.MONTHLY)
        assert "discarded 12 existing period(s)" in caplog.text

    def test_cross_year_overlap_rejected(self, periods, session):
        periods.create(
            start_date=date(2024, 12, 20),
            end_date=date(2025, 1, 10),
            period_type=PeriodType.BI_WEEKLY,
        )

        with pytest.raises(OverlapError):
            periods.generate_year(2025, PeriodType.MONTHLY)

        assert session.query(PayrollPeriod).count() == 1

    def test_generate_rejects_out_of_range_year(self, periods):
        with pytest.raises(ValidationError):
            periods.generate_year(1899, PeriodType.MONTHLY)

    def test_close(self, periods):
        period = periods.create(
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 31),
            period_type=PeriodType.MONTHLY,
        )

        closed = periods.close(period.payroll_period_id)
        assert closed.status == PeriodStatus.CLOSED.value

        with pytest.raises(InvalidStateError):
            periods.close(period.payroll_period_id)

    def test_close_missing(self, periods):
        with pytest.raises(NotFoundError):
            periods.close(uuid4())


class TestListPeriods:
    """Test aggregates over approved entries."""

    def test_aggregates_count_payroll_statuses_only(self, periods, entry_factory):
        periods.generate_year(2025, PeriodType.MONTHLY)
        entry_factory(work_day=date(2025, 3, 3), status=TimeEntryStatus.APPROVED)
        entry_factory(
            user_id=BOB_ID,
            work_day=date(2025, 3, 4),
            straight_time=Decimal("8"),
            overtime=Decimal("2"),
            status=TimeEntryStatus.PAID,
        )
        entry_factory(work_day=date(2025, 3, 5), status=TimeEntryStatus.SUBMITTED)
        entry_factory(work_day=date(2025, 3, 6))

        summaries = periods.list_periods(2025, today=date(2025, 3, 15))

        assert len(summaries) == 12
        # Newest first
        assert summaries[0].period.start_date == date(2025, 12, 1)

        march = next(s for s in summaries if s.period.start_date == date(2025, 3, 1))
        assert march.time_entry_count == 2
        assert march.employee_count == 2
        assert march.total_hours == Decimal("18.00")
        # 8 * 25 + (8 * 25 + 2 * 25 * 1.5)
        assert march.total_pay == Decimal("475.00")
        assert march.is_current_period is True

        april = next(s for s in summaries if s.period.start_date == date(2025, 4, 1))
        assert april.time_entry_count == 0
        assert april.total_hours == Decimal("0.00")
        assert april.is_current_period is False

    def test_filters(self, periods):
        periods.generate_year(2025, PeriodType.MONTHLY)
        periods.generate_year(2026, PeriodType.WEEKLY)

        assert len(periods.list_periods(2026, period_type=PeriodType.WEEKLY)) == 53
        assert periods.list_periods(2026, period_type=PeriodType.MONTHLY) == []

        current = periods.list_periods(2025, current=True, today=date(2025, 7, 4))
        assert [s.period.start_date for s in current] == [date(2025, 7, 1)]
