"""Split worked time into regular and overtime hours."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

from site_payroll.calculators.types import SplitHours

if TYPE_CHECKING:
    from site_payroll.models import AttendanceRecord

REGULAR_HOURS_LIMIT = Decimal("8")

_MICROSECONDS_PER_HOUR = Decimal(3_600_000_000)


class SkippedRecordWarning(Exception):
    """Raised when a time pair cannot be turned into worked hours.

    The record is excluded from the batch and reported; the run goes on.
    """

    def __init__(self, check_in: datetime, check_out: datetime, reason: str):
        self.check_in = check_in
        self.check_out = check_out
        self.reason = reason
        super().__init__(
            f"Skipped time pair {check_in.isoformat()} - {check_out.isoformat()}: {reason}"
        )


class TimeSplitter:
    """Converts check-in/check-out pairs into regular and overtime hours.

    Hours are exact Decimals. Nothing is rounded here; money is rounded once,
    at output, by the payroll calculator.
    """

    def __init__(self, regular_hours_limit: Decimal = REGULAR_HOURS_LIMIT):
        if regular_hours_limit <= 0:
            raise ValueError("regular_hours_limit must be positive")
        self.regular_hours_limit = regular_hours_limit

    @staticmethod
    def worked_hours(check_in: datetime, check_out: datetime) -> Decimal:
        """Exact hours between two instants.

        Raises:
            SkippedRecordWarning: If check_out is not after check_in
        """
        delta = check_out - check_in
        if delta <= timedelta(0):
            raise SkippedRecordWarning(check_in, check_out, "check-out is not after check-in")
        return Decimal(delta // timedelta(microseconds=1)) / _MICROSECONDS_PER_HOUR

    def split_total(self, total_hours: Decimal) -> SplitHours:
        """Split a day's total hours at the regular-hours limit."""
        if total_hours < 0:
            raise ValueError(f"total_hours cannot be negative: {total_hours}")
        regular = min(total_hours, self.regular_hours_limit)
        overtime = max(total_hours - self.regular_hours_limit, Decimal("0"))
        return SplitHours(regular_hours=regular, overtime_hours=overtime)

    def split(self, check_in: datetime, check_out: datetime) -> SplitHours:
        """Split one check-in/check-out pair."""
        return self.split_total(self.worked_hours(check_in, check_out))

    def split_record(self, record: AttendanceRecord) -> SplitHours:
        """Split an attendance record's times on its work date."""
        return self.split(record.check_in_at, record.check_out_at)
