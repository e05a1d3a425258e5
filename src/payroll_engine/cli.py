"""Payroll engine command line interface.

Provides operational tools for:
- Expiring stale run locks
- Inspecting the run lock of a company and pay period
- Listing the jurisdictions configured for a tax year

Usage:
    payroll-engine cleanup-locks
    payroll-engine lock-status --company-id X --start 2024-01-01 --end 2024-01-14
    payroll-engine jurisdictions --year 2024
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from typing import Any, Awaitable, Callable
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from payroll_engine.config import get_settings
from payroll_engine.database import dispose_db, init_db
from payroll_engine.errors import PayrollEngineError
from payroll_engine.logging_config import configure_logging
from payroll_engine.services.run_lock_service import LockStatus, RunLockService
from payroll_engine.tax import get_tax_engine


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


class PayrollCli:
    """Payroll engine Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="payroll-engine",
            description="Payroll engine operational tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # cleanup-locks command
        subparsers.add_parser(
            "cleanup-locks",
            help="Mark ACTIVE run locks past their expiry as EXPIRED",
        )

        # lock-status command
        lock_status = subparsers.add_parser(
            "lock-status",
            help="Show the run lock of a company and pay period",
        )
        lock_status.add_argument(
            "--company-id",
            type=parse_uuid,
            required=True,
            help="Company ID",
        )
        lock_status.add_argument(
            "--start",
            type=parse_date,
            required=True,
            help="Pay period start (YYYY-MM-DD)",
        )
        lock_status.add_argument(
            "--end",
            type=parse_date,
            required=True,
            help="Pay period end (YYYY-MM-DD)",
        )

        # jurisdictions command
        jurisdictions = subparsers.add_parser(
            "jurisdictions",
            help="List state and local jurisdictions configured for a tax year",
        )
        jurisdictions.add_argument(
            "--year",
            type=int,
            default=date.today().year,
            help="Tax year (default: current year)",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., int]] = {
            "cleanup-locks": self._cmd_cleanup_locks,
            "lock-status": self._cmd_lock_status,
            "jurisdictions": self._cmd_jurisdictions,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return handler(parsed)
        except PayrollEngineError as e:
            print(f"Error [{e.code}]: {e}", file=sys.stderr)
            return 2
        except SQLAlchemyError as e:
            print(f"Storage error: {e}", file=sys.stderr)
            return 3

    def _cmd_cleanup_locks(self, args: argparse.Namespace) -> int:
        """Expire stale run locks."""
        count = asyncio.run(self._with_locks(lambda service: service.cleanup_expired_locks()))
        print(f"Expired {count} stale run lock(s).")
        return 0

    def _cmd_lock_status(self, args: argparse.Namespace) -> int:
        """Show run lock status."""
        lock_status: LockStatus = asyncio.run(
            self._with_locks(lambda service: service.status(args.company_id, args.start, args.end))
        )
        print(f"Run lock for company {args.company_id}, {args.start} to {args.end}")
        print(f"  Locked:    {'yes' if lock_status.is_locked else 'no'}")
        print(f"  Processed: {'yes' if lock_status.is_processed else 'no'}")
        if lock_status.lock is not None:
            lock = lock_status.lock
            print(f"  Lock ID:   {lock.lock_id}")
            print(f"  Status:    {lock.status}")
            print(f"  Locked by: {lock.locked_by} at {lock.locked_at.isoformat()}")
            print(f"  Expires:   {lock.expires_at.isoformat()}")
        return 0

    def _cmd_jurisdictions(self, args: argparse.Namespace) -> int:
        """List configured jurisdictions."""
        engine = get_tax_engine()
        codes = engine.supported_jurisdictions(args.year)
        print(f"Jurisdictions configured for {args.year}: {len(codes)}")
        for code in codes:
            print(f"  {code}")
        localities = engine.supported_localities(args.year)
        if localities:
            print(f"Local taxes configured for {args.year}: {len(localities)}")
            for code in localities:
                print(f"  {code}")
        return 0

    async def _with_locks(self, action: Callable[[RunLockService], Awaitable[Any]]) -> Any:
        """Run an action against the run lock service, disposing the engine after."""
        _, factory = init_db()
        service = RunLockService(factory, get_settings().run_lock_config())
        try:
            return await action(service)
        finally:
            await dispose_db()


def main(args: list[str] | None = None) -> int:
    """CLI entry point."""
    configure_logging(get_settings().log_level)
    cli = PayrollCli()
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())
