"""Payroll record model."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    Enum as SAEnum,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from site_payroll.models.base import Base, TimestampMixin
from site_payroll.models.enums import PayrollStatus, enum_values

# Natural key columns, also the upsert conflict target
NATURAL_KEY_COLUMNS = ("worker_id", "site_id", "work_date")


class PayrollRecord(Base, TimestampMixin):
    """Computed pay for one worker at one site on one day."""

    __tablename__ = "payroll_record"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    worker_id: Mapped[UUID] = mapped_column(nullable=False)
    site_id: Mapped[UUID] = mapped_column(nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)

    regular_hours: Mapped[Decimal] = mapped_column(
        Numeric(10, 4), nullable=False, default=Decimal("0")
    )
    overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(10, 4), nullable=False, default=Decimal("0")
    )
    base_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    overtime_pay: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    bonus_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))
    deductions: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    total_pay: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0"))

    status: Mapped[PayrollStatus] = mapped_column(
        SAEnum(
            PayrollStatus,
            native_enum=False,
            length=16,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=PayrollStatus.CALCULATED,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # 1 on insert, incremented by every recalculation that overwrites the row
    calculation_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint(*NATURAL_KEY_COLUMNS, name="payroll_record_natural_key"),
        CheckConstraint("regular_hours >= 0", name="payroll_record_regular_hours_check"),
        CheckConstraint("overtime_hours >= 0", name="payroll_record_overtime_hours_check"),
        CheckConstraint("bonus_pay >= 0", name="payroll_record_bonus_check"),
        CheckConstraint("deductions >= 0", name="payroll_record_deductions_check"),
        Index("payroll_record_site_date_idx", "site_id", "work_date"),
        Index("payroll_record_status_idx", "status"),
    )

    @property
    def natural_key(self) -> tuple[UUID, UUID, date]:
        return (self.worker_id, self.site_id, self.work_date)

    @property
    def total_hours(self) -> Decimal:
        return self.regular_hours + self.overtime_hours
