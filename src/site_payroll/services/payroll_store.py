"""Payroll record persistence: idempotent upsert, queries and adjustments."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable
from uuid import UUID, uuid4

from sqlalchemy import String, cast, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from site_payroll.calculators.pay_calculator import PayrollCalculator
from site_payroll.calculators.types import NaturalKey, PayrollDraft
from site_payroll.models import NATURAL_KEY_COLUMNS, PayrollRecord, PayrollStatus, utcnow
from site_payroll.services.state_machine import PayrollStatusMachine
from site_payroll.services.validation import Pagination, ValidationError, validate_date_range

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT ... RETURNING
_DIALECT_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class FinalizedRecordConflict(Exception):
    """Raised when a write targets an approved or paid record."""

    def __init__(self, key: NaturalKey | UUID, status: str | None = None):
        self.key = key
        self.status = status
        msg = f"Payroll record {key} is finalized"
        if status:
            msg += f" (status '{PayrollStatus(status).value}')"
        super().__init__(msg)


class StorageError(Exception):
    """Raised when persisting a single record fails."""

    def __init__(self, key: NaturalKey, cause: BaseException):
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to store payroll record {key}: {cause}")


class RecordNotFoundError(Exception):
    """Raised when a payroll record id does not exist."""

    def __init__(self, record_id: UUID):
        self.record_id = record_id
        super().__init__(f"Payroll record {record_id} not found")


class UpsertStatus(str, Enum):
    """Per-record result of an upsert."""

    INSERTED = "inserted"
    UPDATED = "updated"
    FINALIZED_CONFLICT = "finalized_conflict"
    STORAGE_ERROR = "storage_error"


@dataclass
class UpsertOutcome:
    """What happened to one draft."""

    key: NaturalKey
    status: UpsertStatus
    record_id: UUID | None = None
    error: Exception | None = None

    @property
    def written(self) -> bool:
        return self.status in (UpsertStatus.INSERTED, UpsertStatus.UPDATED)


@dataclass
class UpsertResult:
    """Outcomes of an upsert batch, in draft order."""

    outcomes: list[UpsertOutcome] = field(default_factory=list)

    def _count(self, status: UpsertStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def inserted_count(self) -> int:
        return self._count(UpsertStatus.INSERTED)

    @property
    def updated_count(self) -> int:
        return self._count(UpsertStatus.UPDATED)

    @property
    def conflict_count(self) -> int:
        return self._count(UpsertStatus.FINALIZED_CONFLICT)

    @property
    def error_count(self) -> int:
        return self._count(UpsertStatus.STORAGE_ERROR)

    @property
    def written_count(self) -> int:
        return self.inserted_count + self.updated_count

    @property
    def failures(self) -> list[UpsertOutcome]:
        return [o for o in self.outcomes if not o.written]


@dataclass
class RecordFilters:
    """Filters for payroll record queries. None means no restriction."""

    site_id: UUID | None = None
    worker_id: UUID | None = None
    status: PayrollStatus | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None

    def __post_init__(self) -> None:
        # Either bound may be open; reversed bounds are rejected
        if self.date_from is not None and self.date_to is not None:
            validate_date_range(self.date_from, self.date_to)


class PayrollStore:
    """Owns PayrollRecord rows.

    Writes go through a single INSERT ... ON CONFLICT DO UPDATE per record,
    guarded by status, so the natural key unique constraint serializes
    concurrent runs. A conflicting write never reads first.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        try:
            return _DIALECT_INSERTS[dialect]
        except KeyError:
            raise NotImplementedError(f"Upsert is not supported on dialect '{dialect}'") from None

    def _upsert_statement(self, draft: PayrollDraft, override: bool):
        now = utcnow()
        values = draft.to_values()
        values.update(
            id=uuid4(),
            status=PayrollStatus.CALCULATED,
            calculation_count=1,
            created_at=now,
            updated_at=now,
        )

        stmt = self._insert()(PayrollRecord).values(**values)
        excluded = stmt.excluded

        set_ = {
            "regular_hours": excluded.regular_hours,
            "overtime_hours": excluded.overtime_hours,
            "base_pay": excluded.base_pay,
            "overtime_pay": excluded.overtime_pay,
            # Manual bonus/deductions survive recalculation
            "total_pay": (
                excluded.base_pay
                + excluded.overtime_pay
                + PayrollRecord.bonus_pay
                - PayrollRecord.deductions
            ),
            "notes": excluded.notes,
            "status": PayrollStatus.CALCULATED,
            "calculation_count": PayrollRecord.calculation_count + 1,
            "updated_at": now,
        }

        where = None
        if not override:
            where = PayrollRecord.status == PayrollStatus.CALCULATED

        return stmt.on_conflict_do_update(
            index_elements=list(NATURAL_KEY_COLUMNS),
            set_=set_,
            where=where,
        ).returning(PayrollRecord.id, PayrollRecord.calculation_count)

    async def upsert_one(self, draft: PayrollDraft, override: bool = False) -> UpsertOutcome:
        """Insert or overwrite one draft inside its own savepoint."""
        key = draft.key
        try:
            async with self.session.begin_nested():
                result = await self.session.execute(self._upsert_statement(draft, override))
                row = result.first()
        except SQLAlchemyError as exc:
            logger.exception("Storing payroll record %s failed", key)
            return UpsertOutcome(
                key=key,
                status=UpsertStatus.STORAGE_ERROR,
                error=StorageError(key, exc),
            )

        if row is None:
            # Guard rejected the overwrite: the row is approved or paid
            return UpsertOutcome(
                key=key,
                status=UpsertStatus.FINALIZED_CONFLICT,
                error=FinalizedRecordConflict(key),
            )

        record_id, calculation_count = row
        status = UpsertStatus.INSERTED if calculation_count == 1 else UpsertStatus.UPDATED
        return UpsertOutcome(key=key, status=status, record_id=record_id)

    async def upsert(
        self,
        drafts: Iterable[PayrollDraft],
        override: bool = False,
    ) -> UpsertResult:
        """Persist drafts keyed by (worker_id, site_id, work_date).

        - no row: insert with status calculated
        - calculated row: overwrite hours, amounts and notes; keep bonus and
          deductions; last writer wins
        - approved/paid row: untouched, reported as a finalized conflict,
          unless override is set, which overwrites it and resets it to
          calculated
        - database failure: reported for that record only
        """
        result = UpsertResult()
        for draft in drafts:
            result.outcomes.append(await self.upsert_one(draft, override=override))

        logger.debug(
            "Upserted %d payroll records: %d inserted, %d updated, %d finalized, %d failed",
            len(result.outcomes),
            result.inserted_count,
            result.updated_count,
            result.conflict_count,
            result.error_count,
        )
        return result

    def _filtered(self, filters: RecordFilters):
        query = select(PayrollRecord)

        if filters.site_id:
            query = query.where(PayrollRecord.site_id == filters.site_id)
        if filters.worker_id:
            query = query.where(PayrollRecord.worker_id == filters.worker_id)
        if filters.status:
            query = query.where(PayrollRecord.status == filters.status)
        if filters.date_from:
            query = query.where(PayrollRecord.work_date >= filters.date_from)
        if filters.date_to:
            query = query.where(PayrollRecord.work_date <= filters.date_to)
        if filters.search and filters.search.strip():
            term = filters.search.strip().lower()
            # Compare worker ids without dashes; storage formats differ by dialect
            worker_text = func.replace(
                func.lower(cast(PayrollRecord.worker_id, String)), "-", "", type_=String
            )
            query = query.where(
                or_(
                    worker_text.contains(term.replace("-", ""), autoescape=True),
                    func.lower(PayrollRecord.notes).contains(term, autoescape=True),
                )
            )

        return query

    async def query(
        self,
        filters: RecordFilters | None = None,
        pagination: Pagination | None = None,
    ) -> tuple[list[PayrollRecord], int]:
        """One page of matching records and the total match count.

        Ordered by work_date descending, then id.
        """
        filters = filters or RecordFilters()
        pagination = pagination or Pagination()
        query = self._filtered(filters)

        # Get total count
        count_query = select(func.count()).select_from(query.subquery())
        total = await self.session.scalar(count_query) or 0

        # Apply pagination
        query = query.order_by(PayrollRecord.work_date.desc(), PayrollRecord.id)
        query = query.offset(pagination.offset).limit(pagination.limit)

        result = await self.session.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all()), total

    async def list_all(self, filters: RecordFilters | None = None) -> list[PayrollRecord]:
        """All matching records, for aggregation."""
        query = self._filtered(filters or RecordFilters()).order_by(
            PayrollRecord.work_date, PayrollRecord.id
        )
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return list(result.scalars().all())

    async def get(self, record_id: UUID) -> PayrollRecord:
        """Load one record.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        result = await self.session.execute(
            select(PayrollRecord)
            .where(PayrollRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise RecordNotFoundError(record_id)
        return record

    async def adjust(
        self,
        record_id: UUID,
        bonus_pay: Decimal | None = None,
        deductions: Decimal | None = None,
        notes: str | None = None,
    ) -> PayrollRecord:
        """Manually set bonus/deductions on a calculated record.

        total_pay is recomputed from the stored base and overtime pay.

        Raises:
            ValidationError: If an amount is negative
            RecordNotFoundError: If no record has this id
            FinalizedRecordConflict: If the record is approved or paid
        """
        values: dict[str, Any] = {"updated_at": utcnow()}
        bonus_expr: Any = PayrollRecord.bonus_pay
        deductions_expr: Any = PayrollRecord.deductions

        if bonus_pay is not None:
            if bonus_pay < 0:
                raise ValidationError("cannot be negative", field="bonus_pay")
            bonus_expr = PayrollCalculator.round_money(bonus_pay)
            values["bonus_pay"] = bonus_expr
        if deductions is not None:
            if deductions < 0:
                raise ValidationError("cannot be negative", field="deductions")
            deductions_expr = PayrollCalculator.round_money(deductions)
            values["deductions"] = deductions_expr
        if notes is not None:
            values["notes"] = notes or None

        values["total_pay"] = (
            PayrollRecord.base_pay + PayrollRecord.overtime_pay + bonus_expr - deductions_expr
        )

        # Conditional update so an approval racing this edit wins cleanly
        result = await self.session.execute(
            update(PayrollRecord)
            .where(
                PayrollRecord.id == record_id,
                PayrollRecord.status == PayrollStatus.CALCULATED,
            )
            .values(**values)
            .returning(PayrollRecord.id)
            .execution_options(synchronize_session=False)
        )
        updated_id = result.scalar_one_or_none()

        record = await self.get(record_id)
        if updated_id is None and not PayrollStatusMachine.can_adjust(record.status):
            raise FinalizedRecordConflict(record.id, record.status)
        logger.info("Adjusted payroll record %s", record_id)
        return record
