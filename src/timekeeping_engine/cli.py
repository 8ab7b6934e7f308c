"""Timekeeping Command Line Interface.

Provides operational tools for:
- Schema creation
- Payroll period generation
- Audit trail inspection
- Marking exported entries as paid

Usage:
    python -m timekeeping_engine.cli init-db
    python -m timekeeping_engine.cli generate-periods --year 2025 --period-type MONTHLY
    python -m timekeeping_engine.cli audit --time-entry-id X
    python -m timekeeping_engine.cli mark-paid --start-date 2025-01-01 --end-date 2025-01-15 --actor-id Y
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from typing import Callable
from uuid import UUID

from sqlalchemy import select

from timekeeping_engine.config import Settings, configure_logging, get_settings
from timekeeping_engine.database import Database
from timekeeping_engine.errors import TimekeepingError
from timekeeping_engine.models import PeriodType, TimeEntry
from timekeeping_engine.services.audit_service import AuditService
from timekeeping_engine.services.bulk_approval import BulkApprovalService, BulkSelection
from timekeeping_engine.services.period_service import PayrollPeriodService
from timekeeping_engine.services.state_machine import ApprovalAction, TimeEntryStatus


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


class TimekeepingCli:
    """Timekeeping Command Line Interface."""

    def __init__(self, database: Database | None = None, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._database = database
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m timekeeping_engine.cli",
            description="Timekeeping operational tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser("init-db", help="Create database tables")

        generate = subparsers.add_parser(
            "generate-periods",
            help="Regenerate all payroll periods for a year",
        )
        generate.add_argument("--year", type=int, required=True, help="Calendar year")
        generate.add_argument(
            "--period-type",
            choices=[t.value for t in PeriodType],
            default=PeriodType.BI_WEEKLY.value,
            help="Period cadence (default: BI_WEEKLY)",
        )

        audit = subparsers.add_parser("audit", help="Show the audit trail of a time entry")
        audit.add_argument(
            "--time-entry-id",
            type=parse_uuid,
            required=True,
            help="Time entry to inspect",
        )

        mark_paid = subparsers.add_parser(
            "mark-paid",
            help="Mark APPROVED entries in a work-date range as PAID",
        )
        mark_paid.add_argument("--start-date", type=parse_date, required=True)
        mark_paid.add_argument("--end-date", type=parse_date, required=True)
        mark_paid.add_argument(
            "--actor-id",
            type=parse_uuid,
            required=True,
            help="Payroll operator recorded in the audit trail",
        )
        mark_paid.add_argument(
            "--user-id",
            type=parse_uuid,
            action="append",
            dest="user_ids",
            help="Restrict to an employee (repeatable)",
        )

        return parser

    @property
    def database(self) -> Database:
        if self._database is None:
            self._database = Database(self.settings.database_url)
        return self._database

    def close(self) -> None:
        """Dispose the engine if this CLI created one."""
        if self._database is not None:
            self._database.dispose()

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "init-db": self._cmd_init_db,
            "generate-periods": self._cmd_generate_periods,
            "audit": self._cmd_audit,
            "mark-paid": self._cmd_mark_paid,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return handler(parsed)
        except TimekeepingError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            return 1

    def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create all tables."""
        self.database.create_all()
        print("Database tables created.")
        return 0

    def _cmd_generate_periods(self, args: argparse.Namespace) -> int:
        """Regenerate a year of payroll periods."""
        with self.database.session() as session:
            periods = PayrollPeriodService(session).generate_year(
                args.year, PeriodType(args.period_type)
            )
            print(f"Generated {len(periods)} {args.period_type} periods for {args.year}:")
            for period in periods:
                print(f"  {period.start_date} - {period.end_date}  {period.description}")
        return 0

    def _cmd_audit(self, args: argparse.Namespace) -> int:
        """Print the audit trail of one entry."""
        with self.database.session() as session:
            rows = AuditService(session).history(args.time_entry_id)
            if not rows:
                print(f"No audit rows for time entry {args.time_entry_id}")
                return 0
            print(f"Audit trail for time entry {args.time_entry_id}:")
            for row in rows:
                line = (
                    f"  {row.created_at.isoformat()}  {row.action:<20} "
                    f"{row.old_status} -> {row.new_status}  by {row.performed_by}"
                )
                if row.notes:
                    line += f"  ({row.notes})"
                print(line)
        return 0

    def _cmd_mark_paid(self, args: argparse.Namespace) -> int:
        """Move APPROVED entries in the range to PAID in one batch."""
        with self.database.session() as session:
            stmt = select(TimeEntry.time_entry_id).where(
                TimeEntry.status == TimeEntryStatus.APPROVED.value,
                TimeEntry.work_date >= args.start_date,
                TimeEntry.work_date <= args.end_date,
            )
            if args.user_ids:
                stmt = stmt.where(TimeEntry.user_id.in_(args.user_ids))
            ids = list(session.execute(stmt.order_by(TimeEntry.clock_in_time)).scalars())
            if not ids:
                print("No APPROVED time entries in range")
                return 0

            result = BulkApprovalService(session, self.settings).execute(
                BulkSelection.by_ids(ids),
                ApprovalAction.MARK_PAID,
                performed_by=args.actor_id,
            )

        print(f"Marked {result.processed_entries} time entries as PAID")
        return 0


def main() -> int:
    """CLI entry point."""
    settings = get_settings()
    configure_logging(settings)
    cli = TimekeepingCli(settings=settings)
    try:
        return cli.run()
    finally:
        cli.close()


if __name__ == "__main__":
    sys.exit(main())
