"""Attendance to payroll amount calculation."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from site_payroll.calculators.rule_resolver import MissingRuleError
from site_payroll.calculators.time_splitter import TimeSplitter
from site_payroll.calculators.types import PayrollDraft, SplitHours
from site_payroll.models import RuleType

if TYPE_CHECKING:
    from site_payroll.models import AttendanceRecord, CalculationRule


class PayrollCalculator:
    """Computes a payroll draft from attendance and resolved rules.

    Formulas:
    - base_pay = regular_hours x hourly rate
    - overtime_pay = overtime_hours x hourly rate x overtime multiplier
    - daily rate: base_pay = total_hours / regular_hours_limit x daily rate
    - total_pay = base_pay + overtime_pay + bonus_pay - deductions

    Rounding:
    - Hours and intermediate products stay unrounded
    - Each monetary output is rounded to 2 decimals, half-up, exactly once
    - total_pay is summed from the rounded parts so the identity holds
    """

    OUTPUT_PRECISION = Decimal("0.01")

    def __init__(self, splitter: TimeSplitter | None = None):
        self.splitter = splitter or TimeSplitter()

    @staticmethod
    def round_money(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places, half-up."""
        return amount.quantize(PayrollCalculator.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def total(
        base_pay: Decimal,
        overtime_pay: Decimal,
        bonus_pay: Decimal = Decimal("0"),
        deductions: Decimal = Decimal("0"),
    ) -> Decimal:
        """Total pay from already-rounded components."""
        return PayrollCalculator.round_money(base_pay + overtime_pay + bonus_pay - deductions)

    def calculate(
        self,
        attendance: AttendanceRecord,
        hourly_rule: CalculationRule,
        overtime_rule: CalculationRule | None = None,
    ) -> PayrollDraft:
        """Calculate a draft for one attendance record.

        Raises:
            SkippedRecordWarning: If the time pair is not a positive span
            MissingRuleError: If there is overtime but no overtime rule
        """
        hours = self.splitter.split_record(attendance)
        return self.calculate_hours(
            worker_id=attendance.worker_id,
            site_id=attendance.site_id,
            work_date=attendance.work_date,
            hours=hours,
            hourly_rule=hourly_rule,
            overtime_rule=overtime_rule,
        )

    def calculate_hours(
        self,
        worker_id: UUID,
        site_id: UUID,
        work_date: date,
        hours: SplitHours,
        hourly_rule: CalculationRule,
        overtime_rule: CalculationRule | None = None,
        notes: list[str] | None = None,
    ) -> PayrollDraft:
        """Calculate a draft from already split hours."""
        if RuleType(hourly_rule.rule_type) is not RuleType.HOURLY_RATE:
            raise ValueError(f"Expected an hourly_rate rule, got {hourly_rule.rule_type}")

        rate = Decimal(hourly_rule.base_amount)
        note_parts = list(notes or [])

        base_pay = self.round_money(hours.regular_hours * rate)

        overtime_pay = Decimal("0.00")
        if hours.has_overtime:
            if overtime_rule is None:
                raise MissingRuleError(RuleType.OVERTIME_MULTIPLIER, site_id, None)
            if overtime_rule.multiplier is None:
                raise ValueError(f"Overtime rule {overtime_rule.name!r} has no multiplier")
            multiplier = Decimal(overtime_rule.multiplier)
            overtime_pay = self.round_money(hours.overtime_hours * rate * multiplier)
            shown_hours = hours.overtime_hours.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
            note_parts.insert(0, f"Overtime {shown_hours}h x{multiplier.normalize():f}")

        return PayrollDraft(
            worker_id=worker_id,
            site_id=site_id,
            work_date=work_date,
            regular_hours=hours.regular_hours,
            overtime_hours=hours.overtime_hours,
            base_pay=base_pay,
            overtime_pay=overtime_pay,
            total_pay=self.total(base_pay, overtime_pay),
            notes="; ".join(note_parts) or None,
        )

    def calculate_daily(
        self,
        worker_id: UUID,
        site_id: UUID,
        work_date: date,
        hours: SplitHours,
        daily_rule: CalculationRule,
        notes: list[str] | None = None,
    ) -> PayrollDraft:
        """Calculate a draft paid by the day.

        One day is regular_hours_limit hours. The whole day, overtime
        included, is paid pro rata at the daily amount:
        base_pay = total_hours / limit x daily rate, overtime_pay = 0.
        """
        if RuleType(daily_rule.rule_type) is not RuleType.DAILY_RATE:
            raise ValueError(f"Expected a daily_rate rule, got {daily_rule.rule_type}")

        days = hours.total_hours / self.splitter.regular_hours_limit
        base_pay = self.round_money(days * Decimal(daily_rule.base_amount))
        overtime_pay = Decimal("0.00")

        shown_days = days.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        note_parts = [f"Daily rate {shown_days} day(s)", *(notes or [])]

        return PayrollDraft(
            worker_id=worker_id,
            site_id=site_id,
            work_date=work_date,
            regular_hours=hours.regular_hours,
            overtime_hours=hours.overtime_hours,
            base_pay=base_pay,
            overtime_pay=overtime_pay,
            total_pay=self.total(base_pay, overtime_pay),
            notes="; ".join(note_parts),
        )
