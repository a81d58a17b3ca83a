"""Tests for payroll statistics aggregation."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from site_payroll.models import PayrollRecord, PayrollStatus
from site_payroll.services.stats_service import output_summary, summarize

WORKER_A = uuid4()
WORKER_B = uuid4()
SITE = uuid4()


def record(
    worker_id=WORKER_A,
    site_id=SITE,
    work_date=date(2024, 5, 13),
    regular="8",
    overtime="0",
    base="120000.00",
    overtime_pay="0.00",
    bonus="0.00",
    deductions="0.00",
    status=PayrollStatus.CALCULATED,
) -> PayrollRecord:
    base_pay = Decimal(base)
    ot_pay = Decimal(overtime_pay)
    return PayrollRecord(
        id=uuid4(),
        worker_id=worker_id,
        site_id=site_id,
        work_date=work_date,
        regular_hours=Decimal(regular),
        overtime_hours=Decimal(overtime),
        base_pay=base_pay,
        overtime_pay=ot_pay,
        bonus_pay=Decimal(bonus),
        deductions=Decimal(deductions),
        total_pay=base_pay + ot_pay + Decimal(bonus) - Decimal(deductions),
        status=status,
    )


class TestSummarize:
    """Test Stats aggregation."""

    def test_empty_set_is_all_zero(self):
        stats = summarize([])

        assert stats.distinct_worker_count == 0
        assert stats.pending_count == 0
        assert stats.approved_count == 0
        assert stats.total_payroll == Decimal("0")
        assert stats.average_daily_pay == Decimal("0")
        assert stats.overtime_percentage == Decimal("0")

    def test_counts_and_totals(self):
        records = [
            record(worker_id=WORKER_A, overtime="3", overtime_pay="67500.00"),
            record(worker_id=WORKER_A, work_date=date(2024, 5, 14), status=PayrollStatus.APPROVED),
            record(worker_id=WORKER_B, status=PayrollStatus.PAID),
        ]

        stats = summarize(records)

        assert stats.distinct_worker_count == 2
        assert stats.pending_count == 1
        assert stats.approved_count == 1
        assert stats.total_payroll == Decimal("427500.00")
        assert stats.average_daily_pay == Decimal("142500.00")
        # 3 / 27 x 100
        assert stats.overtime_percentage == Decimal("11.11")

    def test_zero_hours_gives_zero_percentage(self):
        stats = summarize([record(regular="0", base="0.00")])

        assert stats.overtime_percentage == Decimal("0")
        assert stats.average_daily_pay == Decimal("0.00")

    def test_ratio_rounds_half_up(self):
        # 0.01 / 2 = 0.005
        stats = summarize(
            [
                record(base="0.01"),
                record(base="0.00", work_date=date(2024, 5, 14)),
            ]
        )

        assert stats.average_daily_pay == Decimal("0.01")


class TestOutputSummary:
    """Test per worker/site grouping."""

    def test_groups_by_worker_and_site(self):
        other_site = uuid4()
        records = [
            record(work_date=date(2024, 5, 15), overtime="2", overtime_pay="45000.00"),
            record(work_date=date(2024, 5, 13), bonus="5000.00"),
            record(site_id=other_site, work_date=date(2024, 5, 14)),
            record(worker_id=WORKER_B),
        ]

        rows = output_summary(records)

        assert len(rows) == 3
        row = next(r for r in rows if r.worker_id == WORKER_A and r.site_id == SITE)
        assert row.work_days_count == 2
        assert row.work_dates == [date(2024, 5, 13), date(2024, 5, 15)]
        assert row.first_work_date == date(2024, 5, 13)
        assert row.last_work_date == date(2024, 5, 15)
        assert row.total_regular_hours == Decimal("16")
        assert row.total_overtime_hours == Decimal("2")
        assert row.total_hours == Decimal("18")
        assert row.base_pay == Decimal("240000.00")
        assert row.overtime_pay == Decimal("45000.00")
        assert row.bonus_pay == Decimal("5000.00")
        assert row.total_pay == Decimal("290000.00")

    def test_empty(self):
        assert output_summary([]) == []

    @pytest.mark.parametrize("count", [1, 3])
    def test_rows_ordered_by_worker_then_site(self, count):
        workers = sorted((uuid4() for _ in range(count)), key=str, reverse=True)
        rows = output_summary([record(worker_id=w) for w in workers])

        assert [r.worker_id for r in rows] == sorted(workers, key=str)
