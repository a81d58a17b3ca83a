"""Attendance input model.

Rows are written by the clock-in/out workflow elsewhere in the portal; the
payroll core only reads them.
"""

from __future__ import annotations

from datetime import date, datetime, time
from uuid import UUID, uuid4

from sqlalchemy import Date, Enum as SAEnum, Index, Time
from sqlalchemy.orm import Mapped, mapped_column

from site_payroll.models.base import Base, TimestampMixin
from site_payroll.models.enums import Role, enum_values


class AttendanceRecord(Base, TimestampMixin):
    """A worker's check-in/check-out at a site on a date."""

    __tablename__ = "attendance_record"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    worker_id: Mapped[UUID] = mapped_column(nullable=False)
    site_id: Mapped[UUID] = mapped_column(nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_in: Mapped[time] = mapped_column(Time, nullable=False)
    check_out: Mapped[time] = mapped_column(Time, nullable=False)
    # Denormalized from the worker profile for rule resolution
    worker_role: Mapped[Role] = mapped_column(
        SAEnum(
            Role,
            native_enum=False,
            length=32,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=Role.WORKER,
    )

    __table_args__ = (
        Index("attendance_record_site_date_idx", "site_id", "work_date"),
    )

    @property
    def check_in_at(self) -> datetime:
        return datetime.combine(self.work_date, self.check_in)

    @property
    def check_out_at(self) -> datetime:
        return datetime.combine(self.work_date, self.check_out)
