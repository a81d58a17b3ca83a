"""Database-backed attendance source and rule repository."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from site_payroll.models import AttendanceRecord, CalculationRule, RuleType
from site_payroll.services.validation import Pagination
from site_payroll.sources.base import RuleFilters, SourceUnavailableError

logger = logging.getLogger(__name__)


class SqlAttendanceSource:
    """Reads the attendance_record table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list(
        self,
        date_from: date,
        date_to: date,
        site_id: UUID | None = None,
        worker_id: UUID | None = None,
    ) -> list[AttendanceRecord]:
        query = select(AttendanceRecord).where(
            AttendanceRecord.work_date >= date_from,
            AttendanceRecord.work_date <= date_to,
        )
        if site_id:
            query = query.where(AttendanceRecord.site_id == site_id)
        if worker_id:
            query = query.where(AttendanceRecord.worker_id == worker_id)
        query = query.order_by(
            AttendanceRecord.work_date,
            AttendanceRecord.worker_id,
            AttendanceRecord.check_in,
        )

        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as exc:
            logger.exception("Reading attendance failed")
            raise SourceUnavailableError("attendance", exc) from exc
        return list(result.scalars().all())


class SqlRuleRepository:
    """Reads and writes the calculation_rule table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list(
        self,
        rule_type: RuleType | None = None,
        active: bool | None = True,
    ) -> list[CalculationRule]:
        query = select(CalculationRule)
        if rule_type is not None:
            query = query.where(CalculationRule.rule_type == rule_type)
        if active is not None:
            query = query.where(CalculationRule.is_active == active)

        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as exc:
            logger.exception("Reading calculation rules failed")
            raise SourceUnavailableError("rules", exc) from exc
        return list(result.scalars().all())

    async def get(self, rule_id: UUID) -> CalculationRule | None:
        return await self.session.get(CalculationRule, rule_id)

    async def save(self, rule: CalculationRule) -> CalculationRule:
        self.session.add(rule)
        await self.session.flush()
        await self.session.refresh(rule)
        return rule

    async def delete(self, rule_ids: Iterable[UUID]) -> int:
        ids = list(rule_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            delete(CalculationRule)
            .where(CalculationRule.id.in_(ids))
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0

    async def search(
        self,
        filters: RuleFilters,
        pagination: Pagination,
    ) -> tuple[list[CalculationRule], int]:
        query = select(CalculationRule)

        if filters.search and filters.search.strip():
            query = query.where(
                func.lower(CalculationRule.name).contains(
                    filters.search.strip().lower(), autoescape=True
                )
            )
        if filters.rule_type:
            query = query.where(CalculationRule.rule_type == filters.rule_type)
        if filters.site_id:
            query = query.where(
                or_(
                    CalculationRule.site_id == filters.site_id,
                    CalculationRule.site_id.is_(None),
                )
            )
        if filters.is_active is not None:
            query = query.where(CalculationRule.is_active == filters.is_active)

        # Get total count
        count_query = select(func.count()).select_from(query.subquery())
        total = await self.session.scalar(count_query) or 0

        # Apply pagination
        query = query.order_by(CalculationRule.created_at.desc(), CalculationRule.id)
        query = query.offset(pagination.offset).limit(pagination.limit)

        result = await self.session.execute(query)
        return list(result.scalars().all()), total
