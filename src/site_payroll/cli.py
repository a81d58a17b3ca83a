"""Site payroll command line interface.

Usage:
    site-payroll serve [--host H] [--port P] [--reload]
    site-payroll init-db
    site-payroll calculate --from 2024-05-01 --to 2024-05-31 [--site ID] [--worker ID]
                          [--override]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from typing import Callable
from uuid import UUID

from site_payroll.config import DataSource, Settings, get_settings

logger = logging.getLogger(__name__)


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO date: {s!r}") from None


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    try:
        return UUID(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a UUID: {s!r}") from None


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class PayrollCli:
    """Operational commands for the payroll engine."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="site-payroll",
            description="Construction site payroll engine",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # serve command
        serve = subparsers.add_parser("serve", help="Run the admin API")
        serve.add_argument("--host", type=str, help="Bind host (default: HOST)")
        serve.add_argument("--port", type=int, help="Bind port (default: PORT)")
        serve.add_argument(
            "--reload",
            action="store_true",
            help="Reload on code changes (default: DEBUG)",
        )

        # init-db command
        subparsers.add_parser("init-db", help="Create missing database tables")

        # calculate command
        calculate = subparsers.add_parser(
            "calculate",
            help="Calculate payroll for a date window",
        )
        calculate.add_argument(
            "--from",
            dest="date_from",
            type=parse_date,
            required=True,
            help="First work date (YYYY-MM-DD)",
        )
        calculate.add_argument(
            "--to",
            dest="date_to",
            type=parse_date,
            required=True,
            help="Last work date, inclusive (YYYY-MM-DD)",
        )
        calculate.add_argument(
            "--site",
            dest="site_id",
            type=parse_uuid,
            help="Only this site",
        )
        calculate.add_argument(
            "--worker",
            dest="worker_id",
            type=parse_uuid,
            help="Only this worker",
        )
        calculate.add_argument(
            "--override",
            action="store_true",
            help="Also overwrite approved and paid records",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        settings = get_settings()
        configure_logging(settings)

        handlers: dict[str, Callable[[argparse.Namespace, Settings], int]] = {
            "serve": self._cmd_serve,
            "init-db": self._cmd_init_db,
            "calculate": self._cmd_calculate,
        }
        return handlers[parsed.command](parsed, settings)

    def _cmd_serve(self, args: argparse.Namespace, settings: Settings) -> int:
        """Run the application."""
        import uvicorn

        uvicorn.run(
            "site_payroll.api.app:app",
            host=args.host or settings.host,
            port=args.port or settings.port,
            reload=args.reload or settings.debug,
            log_level=settings.log_level.lower(),
        )
        return 0

    def _cmd_init_db(self, args: argparse.Namespace, settings: Settings) -> int:
        """Create tables."""
        from site_payroll.database import create_schema, dispose_db, init_db

        async def _run() -> None:
            engine, _ = init_db()
            try:
                await create_schema(engine)
            finally:
                await dispose_db()

        asyncio.run(_run())
        print("Database schema is up to date.")
        return 0

    def _cmd_calculate(self, args: argparse.Namespace, settings: Settings) -> int:
        """Run one calculation and print the summary."""
        from site_payroll.database import dispose_db, get_session
        from site_payroll.services.calculation_service import CalculationService
        from site_payroll.services.validation import ValidationError
        from site_payroll.sources import (
            SourceUnavailableError,
            SqlAttendanceSource,
            SqlRuleRepository,
        )

        if settings.data_source is DataSource.FAKE:
            # Fake attendance lives in the API process; a CLI run would see none
            print(
                "ERROR: calculate needs DATA_SOURCE=database; "
                "with DATA_SOURCE=fake use POST /api/v1/payroll/calculate",
                file=sys.stderr,
            )
            return 1

        async def _run():
            try:
                async with get_session() as session:
                    attendance = SqlAttendanceSource(session)
                    rules = SqlRuleRepository(session)
                    service = CalculationService(session, attendance, rules, settings=settings)
                    return await service.calculate_salaries(
                        date_from=args.date_from,
                        date_to=args.date_to,
                        site_id=args.site_id,
                        override=args.override,
                        worker_id=args.worker_id,
                    )
            finally:
                await dispose_db()

        try:
            summary = asyncio.run(_run())
        except (ValidationError, SourceUnavailableError) as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1

        print(f"Calculated: {summary.calculated_count}")
        print(f"Skipped:    {summary.skipped_count}")
        print(f"Failed:     {summary.failed_count}")
        for issue in summary.issues:
            print(
                f"  - {issue.work_date} worker {issue.worker_id} site {issue.site_id}: "
                f"{issue.kind.value}: {issue.detail}"
            )
        return 0 if summary.failed_count == 0 else 2


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    cli = PayrollCli()
    return cli.run(argv)


if __name__ == "__main__":
    sys.exit(main())
