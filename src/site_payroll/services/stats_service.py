"""Payroll statistics and monthly output summaries."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from site_payroll.models import PayrollRecord, PayrollStatus
from site_payroll.services.payroll_store import PayrollStore, RecordFilters
from site_payroll.services.validation import month_bounds

RATIO_PRECISION = Decimal("0.01")
_ZERO = Decimal("0")


def _round(value: Decimal) -> Decimal:
    return value.quantize(RATIO_PRECISION, rounding=ROUND_HALF_UP)


@dataclass
class Stats:
    """Summary statistics over a set of payroll records."""

    distinct_worker_count: int = 0
    pending_count: int = 0
    approved_count: int = 0
    total_payroll: Decimal = Decimal("0.00")
    average_daily_pay: Decimal = Decimal("0.00")
    overtime_percentage: Decimal = Decimal("0.00")


def summarize(records: Iterable[PayrollRecord]) -> Stats:
    """Aggregate records into Stats.

    - pending_count counts calculated records, approved_count approved ones
    - average_daily_pay = total_payroll / record count, 0 for no records
    - overtime_percentage = overtime / (regular + overtime) x 100, 0 when no
      hours were worked
    """
    workers: set[UUID] = set()
    record_count = 0
    pending = approved = 0
    total_payroll = _ZERO
    regular_hours = _ZERO
    overtime_hours = _ZERO

    for record in records:
        record_count += 1
        workers.add(record.worker_id)
        if record.status == PayrollStatus.CALCULATED:
            pending += 1
        elif record.status == PayrollStatus.APPROVED:
            approved += 1
        total_payroll += record.total_pay or _ZERO
        regular_hours += record.regular_hours or _ZERO
        overtime_hours += record.overtime_hours or _ZERO

    average = total_payroll / record_count if record_count else _ZERO
    total_hours = regular_hours + overtime_hours
    overtime_pct = overtime_hours / total_hours * 100 if total_hours > 0 else _ZERO

    return Stats(
        distinct_worker_count=len(workers),
        pending_count=pending,
        approved_count=approved,
        total_payroll=_round(total_payroll),
        average_daily_pay=_round(average),
        overtime_percentage=_round(overtime_pct),
    )


@dataclass
class OutputSummaryRow:
    """Totals for one worker at one site over a period."""

    worker_id: UUID
    site_id: UUID
    work_days_count: int = 0
    total_regular_hours: Decimal = _ZERO
    total_overtime_hours: Decimal = _ZERO
    base_pay: Decimal = _ZERO
    overtime_pay: Decimal = _ZERO
    bonus_pay: Decimal = _ZERO
    deductions: Decimal = _ZERO
    total_pay: Decimal = _ZERO
    work_dates: list[date] = field(default_factory=list)

    @property
    def total_hours(self) -> Decimal:
        return self.total_regular_hours + self.total_overtime_hours

    @property
    def first_work_date(self) -> date | None:
        return self.work_dates[0] if self.work_dates else None

    @property
    def last_work_date(self) -> date | None:
        return self.work_dates[-1] if self.work_dates else None


def output_summary(records: Iterable[PayrollRecord]) -> list[OutputSummaryRow]:
    """Group records by (worker_id, site_id).

    Rows are ordered by worker then site; work dates are sorted and unique.
    """
    rows: dict[tuple[UUID, UUID], OutputSummaryRow] = {}

    for record in records:
        key = (record.worker_id, record.site_id)
        row = rows.get(key)
        if row is None:
            row = rows[key] = OutputSummaryRow(worker_id=record.worker_id, site_id=record.site_id)

        row.total_regular_hours += record.regular_hours or _ZERO
        row.total_overtime_hours += record.overtime_hours or _ZERO
        row.base_pay += record.base_pay or _ZERO
        row.overtime_pay += record.overtime_pay or _ZERO
        row.bonus_pay += record.bonus_pay or _ZERO
        row.deductions += record.deductions or _ZERO
        row.total_pay += record.total_pay or _ZERO
        if record.work_date not in row.work_dates:
            row.work_dates.append(record.work_date)

    result = []
    for key in sorted(rows, key=lambda k: (str(k[0]), str(k[1]))):
        row = rows[key]
        row.work_dates.sort()
        row.work_days_count = len(row.work_dates)
        result.append(row)
    return result


class StatsService:
    """Loads filtered payroll records and aggregates them."""

    def __init__(self, session: AsyncSession):
        self.store = PayrollStore(session)

    async def get_stats(self, filters: RecordFilters | None = None) -> Stats:
        records = await self.store.list_all(filters)
        return summarize(records)

    async def monthly_summary(
        self,
        year: int,
        month: int,
        site_id: UUID | None = None,
    ) -> list[OutputSummaryRow]:
        """Per worker/site output for one calendar month."""
        date_from, date_to = month_bounds(year, month)
        records = await self.store.list_all(
            RecordFilters(site_id=site_id, date_from=date_from, date_to=date_to)
        )
        return output_summary(records)
