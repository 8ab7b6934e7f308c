"""Tests for the operational CLI."""

from datetime import date

import pytest

from timekeeping_engine.cli import TimekeepingCli
from timekeeping_engine.models import PayrollPeriod, TimeEntry
from timekeeping_engine.services.state_machine import TimeEntryStatus

from factories import BOB_ID, REVIEWER_ID


@pytest.fixture
def cli(database, settings):
    return TimekeepingCli(database=database, settings=settings)


class TestTimekeepingCli:
    def test_no_command_prints_help(self, cli, capsys):
        assert cli.run([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_init_db(self, cli, capsys):
        assert cli.run(["init-db"]) == 0
        assert "Database tables created." in capsys.readouterr().out

    def test_generate_periods(self, cli, session, capsys):
        assert cli.run(["generate-periods", "--year", "2025", "--period-type", "MONTHLY"]) == 0

        out = capsys.readouterr().out
        assert "Generated 12 MONTHLY periods for 2025" in out
        assert "March 2025" in out
        assert session.query(PayrollPeriod).count() == 12

    def test_generate_periods_defaults_to_bi_weekly(self, cli, capsys):
        assert cli.run(["generate-periods", "--year", "2025"]) == 0
        assert "Generated 27 BI_WEEKLY periods" in capsys.readouterr().out

    def test_domain_error_is_reported(self, cli, capsys):
        assert cli.run(["generate-periods", "--year", "1800"]) == 1
        assert "Invalid year 1800" in capsys.readouterr().err

    def test_audit(self, cli, entry_factory, capsys):
        entry = entry_factory(status=TimeEntryStatus.APPROVED)

        assert cli.run(["audit", "--time-entry-id", str(entry.time_entry_id)]) == 0

        out = capsys.readouterr().out
        assert "COMPLETED -> SUBMITTED" in out
        assert "SUBMITTED -> APPROVED" in out
        assert str(REVIEWER_ID) in out

    def test_mark_paid(self, cli, session, entry_factory, capsys):
        approved = entry_factory(work_day=date(2025, 3, 3), status=TimeEntryStatus.APPROVED)
        bobs = entry_factory(
            user_id=BOB_ID, work_day=date(2025, 3, 4), status=TimeEntryStatus.APPROVED
        )
        submitted = entry_factory(work_day=date(2025, 3, 5), status=TimeEntryStatus.SUBMITTED)

        code = cli.run(
            [
                "mark-paid",
                "--start-date", "2025-03-01",
                "--end-date", "2025-03-31",
                "--actor-id", str(REVIEWER_ID),
                "--user-id", str(approved.user_id),
            ]
        )

        assert code == 0
        assert "Marked 1 time entries as PAID" in capsys.readouterr().out
        session.expire_all()
        assert session.get(TimeEntry, approved.time_entry_id).status == TimeEntryStatus.PAID
        assert session.get(TimeEntry, bobs.time_entry_id).status == TimeEntryStatus.APPROVED
        assert session.get(TimeEntry, submitted.time_entry_id).status == TimeEntryStatus.SUBMITTED

    def test_mark_paid_nothing_to_do(self, cli, capsys):
        code = cli.run(
            [
                "mark-paid",
                "--start-date", "2025-03-01",
                "--end-date", "2025-03-31",
                "--actor-id", str(REVIEWER_ID),
            ]
        )
        assert code == 0
        assert "No APPROVED time entries in range" in capsys.readouterr().out
