"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, NamedTuple
from uuid import UUID

from site_payroll.models.enums import PayrollStatus


class NaturalKey(NamedTuple):
    """(worker_id, site_id, work_date): one payroll record."""

    worker_id: UUID
    site_id: UUID
    work_date: date

    def __str__(self) -> str:
        return f"{self.worker_id}/{self.site_id}/{self.work_date.isoformat()}"


@dataclass(frozen=True)
class SplitHours:
    """Worked time split at the regular-hours limit (unrounded)."""

    regular_hours: Decimal
    overtime_hours: Decimal

    @property
    def total_hours(self) -> Decimal:
        return self.regular_hours + self.overtime_hours

    @property
    def has_overtime(self) -> bool:
        return self.overtime_hours > 0


@dataclass
class PayrollDraft:
    """A computed payroll record before persistence."""

    worker_id: UUID
    site_id: UUID
    work_date: date
    regular_hours: Decimal
    overtime_hours: Decimal
    base_pay: Decimal
    overtime_pay: Decimal
    total_pay: Decimal
    bonus_pay: Decimal = Decimal("0")
    deductions: Decimal = Decimal("0")
    status: PayrollStatus = PayrollStatus.CALCULATED
    notes: str | None = None

    @property
    def key(self) -> NaturalKey:
        return NaturalKey(self.worker_id, self.site_id, self.work_date)

    def to_values(self) -> dict[str, Any]:
        """Column values for an INSERT."""
        return {
            "worker_id": self.worker_id,
            "site_id": self.site_id,
            "work_date": self.work_date,
            "regular_hours": self.regular_hours,
            "overtime_hours": self.overtime_hours,
            "base_pay": self.base_pay,
            "overtime_pay": self.overtime_pay,
            "bonus_pay": self.bonus_pay,
            "deductions": self.deductions,
            "total_pay": self.total_pay,
            "status": self.status,
            "notes": self.notes,
        }
