"""Tests for the time entry store."""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from timekeeping_engine.errors import InvalidStateError, NotFoundError, ValidationError
from timekeeping_engine.models import TimeEntry
from timekeeping_engine.services.state_machine import TimeEntryStatus
from timekeeping_engine.services.time_entry_service import TimeEntryService

from factories import ALICE_ID, BOB_ID, JOB_ID, clock_in


@pytest.fixture
def service(session, settings):
    return TimeEntryService(session, settings)


class TestCreate:
    """Test classification and persistence on create."""

    def test_breakdown_round_trips(self, service, session):
        """Stored categories and roll-ups match the submitted breakdown."""
        entry = service.create(
            user_id=ALICE_ID,
            job_id=JOB_ID,
            clock_in_time=clock_in(date(2025, 3, 3)),
            category_hours={"straightTime": 8, "straightTimeTravel": "0.5", "overtime": 2},
            total_hours="10.5",
            regular_rate="25.00",
        )
        session.expire_all()
        stored = service.get(entry.time_entry_id)

        assert stored.straight_time == Decimal("8.00")
        assert stored.straight_time_travel == Decimal("0.50")
        assert stored.overtime == Decimal("2.00")
        assert stored.total_hours == Decimal("10.50")
        assert stored.regular_hours == Decimal("8.50")
        assert stored.overtime_hours == Decimal("2.00")
        assert stored.total_pay == Decimal("287.50")
        assert stored.status == TimeEntryStatus.COMPLETED
        assert stored.work_date == date(2025, 3, 3)
        assert stored.version == 1

    def test_total_mismatch_rejected(self, service, session):
        with pytest.raises(ValidationError) as exc_info:
            service.create(
                user_id=ALICE_ID,
                clock_in_time=clock_in(date(2025, 3, 3)),
                category_hours={"straightTime": 8},
                total_hours=9,
                regular_rate=25,
            )

        assert exc_info.value.field == "totalHours"
        assert service.list_entries() == []

    def test_over_ceiling_rejected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create(
                user_id=ALICE_ID,
                clock_in_time=clock_in(date(2025, 3, 3)),
                category_hours={"straightTime": 20, "doubleTime": 5},
                total_hours=25,
                regular_rate=25,
            )
        assert exc_info.value.field == "categoryHours"

    def test_clock_out_before_clock_in_rejected(self, service):
        start = clock_in(date(2025, 3, 3))
        with pytest.raises(ValidationError) as exc_info:
            service.create(
                user_id=ALICE_ID,
                clock_in_time=start,
                clock_out_time=start - timedelta(minutes=1),
                category_hours={"straightTime": 1},
                total_hours=1,
                regular_rate=25,
            )
        assert exc_info.value.field == "clockOutTime"

    def test_mixed_offset_awareness_rejected(self, service):
        """A naive clock-in against an offset-aware clock-out cannot be ordered."""
        start = clock_in(date(2025, 3, 3))
        with pytest.raises(ValidationError) as exc_info:
            service.create(
                user_id=ALICE_ID,
                clock_in_time=start.replace(tzinfo=None),
                clock_out_time=start + timedelta(hours=8),
                category_hours={"straightTime": 8},
                total_hours=8,
                regular_rate=25,
            )

        assert exc_info.value.field == "clockOutTime"
        assert service.list_entries() == []

    def test_naive_clock_times_accepted(self, service):
        start = clock_in(date(2025, 3, 3)).replace(tzinfo=None)
        entry = service.create(
            user_id=ALICE_ID,
            clock_in_time=start,
            clock_out_time=start + timedelta(hours=8),
            category_hours={"straightTime": 8},
            total_hours=8,
            regular_rate=25,
        )
        assert entry.work_date == date(2025, 3, 3)

    def test_negative_break_rejected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create(
                user_id=ALICE_ID,
                clock_in_time=clock_in(date(2025, 3, 3)),
                category_hours={"straightTime": 1},
                total_hours=1,
                regular_rate=25,
                break_minutes=-5,
            )
        assert exc_info.value.field == "breakMinutes"

    def test_negative_rate_rejected(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create(
                user_id=ALICE_ID,
                clock_in_time=clock_in(date(2025, 3, 3)),
                category_hours={"straightTime": 1},
                total_hours=1,
                regular_rate="-10",
            )
        assert exc_info.value.field == "regularRate"

    def test_cannot_create_in_approval_status(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create(
                user_id=ALICE_ID,
                clock_in_time=clock_in(date(2025, 3, 3)),
                category_hours={"straightTime": 1},
                total_hours=1,
                regular_rate=25,
                status=TimeEntryStatus.APPROVED,
            )
        assert exc_info.value.field == "status"

    def test_travel_rate_snapshot(self, service):
        entry = service.create(
            user_id=ALICE_ID,
            clock_in_time=clock_in(date(2025, 3, 3)),
            category_hours={"straightTime": 8, "straightTimeTravel": 1},
            total_hours=9,
            regular_rate=30,
            travel_rate=20,
        )

        assert entry.applied_regular_rate == Decimal("30.00")
        assert entry.applied_travel_rate == Decimal("20.00")
        assert entry.total_pay == Decimal("260.00")

    def test_travel_rate_defaults_to_regular(self, service):
        entry = service.create(
            user_id=ALICE_ID,
            clock_in_time=clock_in(date(2025, 3, 3)),
            category_hours={"straightTimeTravel": 2},
            total_hours=2,
            regular_rate=30,
        )
        assert entry.applied_travel_rate == entry.applied_regular_rate

    def test_rate_snapshot_cannot_change(self, entry_factory):
        entry = entry_factory()
        with pytest.raises(InvalidStateError):
            entry.applied_regular_rate = Decimal("99.00")


class TestGet:
    def test_missing_entry(self, service):
        with pytest.raises(NotFoundError) as exc_info:
            service.get(uuid4())
        assert exc_info.value.entity == "TimeEntry"


class TestDelete:
    """Only DRAFT and COMPLETED entries can be deleted."""

    @pytest.mark.parametrize("status", [TimeEntryStatus.DRAFT, TimeEntryStatus.COMPLETED])
    def test_delete_allowed(self, service, entry_factory, status):
        entry = entry_factory(status=status)
        service.delete(entry.time_entry_id)

        with pytest.raises(NotFoundError):
            service.get(entry.time_entry_id)

    @pytest.mark.parametrize(
        "status",
        [TimeEntryStatus.SUBMITTED, TimeEntryStatus.APPROVED, TimeEntryStatus.PAID],
    )
    def test_delete_blocked_in_approval_flow(self, service, entry_factory, status):
        entry = entry_factory(status=status)

        with pytest.raises(InvalidStateError):
            service.delete(entry.time_entry_id)

        assert service.get(entry.time_entry_id).status == status

    def test_delete_missing(self, service):
        with pytest.raises(NotFoundError):
            service.delete(uuid4())


class TestListEntries:
    def test_filters(self, service, entry_factory):
        entry_factory(work_day=date(2025, 3, 3))
        entry_factory(work_day=date(2025, 3, 4), status=TimeEntryStatus.SUBMITTED)
        entry_factory(user_id=BOB_ID, work_day=date(2025, 3, 4), job_id=JOB_ID)
        entry_factory(work_day=date(2025, 3, 10))

        assert len(service.list_entries()) == 4
        assert len(service.list_entries(user_id=BOB_ID)) == 1
        assert len(service.list_entries(job_id=JOB_ID)) == 1
        assert len(service.list_entries(status=TimeEntryStatus.SUBMITTED)) == 1
        in_week = service.list_entries(start_date=date(2025, 3, 3), end_date=date(2025, 3, 9))
        assert len(in_week) == 3

    def test_newest_first(self, service, entry_factory):
        entry_factory(work_day=date(2025, 3, 3))
        entry_factory(work_day=date(2025, 3, 5))

        entries = service.list_entries()
        assert [e.work_date for e in entries] == [date(2025, 3, 5), date(2025, 3, 3)]

    def test_limit_and_offset(self, service, entry_factory):
        for day in range(3, 8):
            entry_factory(work_day=date(2025, 3, day))

        page = service.list_entries(limit=2, offset=2)
        assert [e.work_date for e in page] == [date(2025, 3, 5), date(2025, 3, 4)]
        assert all(isinstance(e, TimeEntry) for e in page)
