"""Tests for the approval review queue."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from timekeeping_engine.services.review_service import ReviewService
from timekeeping_engine.services.state_machine import TimeEntryStatus

from factories import ALICE_ID, BOB_ID, JOB_ID


@pytest.fixture
def review(session, users, jobs, settings):
    return ReviewService(session, users, jobs, settings)


class TestReviewService:
    def test_groups_submitted_entries_by_employee(self, review, entry_factory):
        entry_factory(user_id=BOB_ID, status=TimeEntryStatus.SUBMITTED)
        entry_factory(work_day=date(2025, 3, 3), status=TimeEntryStatus.SUBMITTED)
        entry_factory(work_day=date(2025, 3, 4), status=TimeEntryStatus.SUBMITTED, job_id=JOB_ID)
        entry_factory(work_day=date(2025, 3, 5))

        queue = review.pending()

        assert [e.employee_name for e in queue.employees] == ["Alice Alvarez", "Bob Brown"]
        alice = queue.employees[0]
        assert alice.total_entries == 2
        assert alice.total_hours == Decimal("16.00")
        assert alice.total_pay == Decimal("400.00")
        assert alice.employee_email == "alice@example.com"

        jobs = {item.entry.work_date: item.job for item in alice.entries}
        assert jobs[date(2025, 3, 4)].job_number == "J-1001"
        assert jobs[date(2025, 3, 3)] is None

        assert queue.summary.total_employees == 2
        assert queue.summary.total_entries == 3
        assert queue.summary.status == TimeEntryStatus.SUBMITTED

    def test_unknown_user_is_labelled(self, review, entry_factory):
        entry_factory(user_id=uuid4(), status=TimeEntryStatus.SUBMITTED)

        queue = review.pending()
        assert queue.employees[0].employee_name == "Unknown employee"

    def test_other_statuses(self, review, entry_factory):
        entry_factory(status=TimeEntryStatus.REJECTED)
        entry_factory(status=TimeEntryStatus.SUBMITTED)

        queue = review.pending(status=TimeEntryStatus.REJECTED)
        assert queue.summary.total_entries == 1

    def test_filters(self, review, entry_factory):
        entry_factory(work_day=date(2025, 3, 3), status=TimeEntryStatus.SUBMITTED)
        entry_factory(user_id=BOB_ID, work_day=date(2025, 3, 10), status=TimeEntryStatus.SUBMITTED)

        assert review.pending(user_id=ALICE_ID).summary.total_entries == 1
        in_range = review.pending(start_date=date(2025, 3, 9), end_date=date(2025, 3, 15))
        assert [e.user_id for e in in_range.employees] == [BOB_ID]

    def test_empty_queue(self, review):
        queue = review.pending()
        assert queue.employees == []
        assert queue.summary.total_hours == Decimal("0")


class TestFlags:
    """Test reviewer flags."""

    def test_overtime_and_long_day(self, review, entry_factory):
        entry = entry_factory(
            straight_time=Decimal("8"),
            overtime=Decimal("5"),
            status=TimeEntryStatus.SUBMITTED,
        )

        flags = review.flags_for(entry)
        assert flags.has_overtime is True
        assert flags.has_long_day is True
        assert flags.missing_breaks is False
        assert flags.any is True

    def test_missing_break(self, review, entry_factory):
        entry = entry_factory(straight_time=Decimal("7"), break_minutes=0)

        flags = review.flags_for(entry)
        assert flags.missing_breaks is True
        assert flags.has_overtime is False

    def test_short_shift_without_break_is_fine(self, review, entry_factory):
        entry = entry_factory(straight_time=Decimal("6"), break_minutes=0)
        assert review.flags_for(entry).any is False

    def test_flagged_entries_counted(self, review, entry_factory):
        entry_factory(overtime=Decimal("2"), status=TimeEntryStatus.SUBMITTED)
        entry_factory(work_day=date(2025, 3, 4), status=TimeEntryStatus.SUBMITTED)

        queue = review.pending()
        assert queue.summary.flagged_entries == 1
        assert queue.summary.total_overtime_hours == Decimal("2.00")
