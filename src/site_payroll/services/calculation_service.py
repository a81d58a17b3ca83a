"""Calculation run orchestration: attendance in, payroll records out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from site_payroll.calculators.pay_calculator import PayrollCalculator
from site_payroll.calculators.rule_resolver import MissingRuleError, RuleResolver
from site_payroll.calculators.time_splitter import SkippedRecordWarning, TimeSplitter
from site_payroll.calculators.types import NaturalKey, PayrollDraft
from site_payroll.config import Settings, get_settings
from site_payroll.models import AttendanceRecord, CalculationRule, Role, RuleType
from site_payroll.services.payroll_store import PayrollStore, UpsertStatus
from site_payroll.services.validation import validate_date_range
from site_payroll.sources.base import AttendanceSource, RuleRepository

logger = logging.getLogger(__name__)

FALLBACK_HOURLY_RATE = "FALLBACK_HOURLY_RATE"
FALLBACK_OVERTIME_MULTIPLIER = "FALLBACK_OVERTIME_MULTIPLIER"


class IssueKind(str, Enum):
    """Why a record was left out of a run."""

    SKIPPED = "skipped"
    MISSING_RULE = "missing_rule"
    FINALIZED_CONFLICT = "finalized_conflict"
    STORAGE_ERROR = "storage_error"


_UPSERT_ISSUES = {
    UpsertStatus.FINALIZED_CONFLICT: IssueKind.FINALIZED_CONFLICT,
    UpsertStatus.STORAGE_ERROR: IssueKind.STORAGE_ERROR,
}


@dataclass
class RecordIssue:
    """One record excluded from a calculation run."""

    worker_id: UUID
    site_id: UUID
    work_date: date
    kind: IssueKind
    detail: str

    @classmethod
    def for_key(cls, key: NaturalKey, kind: IssueKind, detail: str) -> RecordIssue:
        return cls(
            worker_id=key.worker_id,
            site_id=key.site_id,
            work_date=key.work_date,
            kind=kind,
            detail=detail,
        )


@dataclass
class CalculationSummary:
    """Structured outcome of a calculation run.

    calculated_count counts written records (inserted + updated),
    skipped_count invalid attendance rows, failed_count records that had
    a missing rule, a finalized conflict or a storage error.
    """

    calculated_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    inserted_count: int = 0
    updated_count: int = 0
    issues: list[RecordIssue] = field(default_factory=list)


@dataclass
class _WorkDay:
    """Hours a worker logged at one site on one date."""

    role: Role | None
    hours: Decimal = Decimal("0")


class CalculationService:
    """Runs the attendance to payroll pipeline for a date window.

    Steps:
    1. Validate the window
    2. Load attendance and active rules once
    3. Per natural key: total the valid shifts, split at the regular-hours
       limit, resolve rules and calculate a draft
    4. Upsert all drafts
    """

    def __init__(
        self,
        session: AsyncSession,
        attendance_source: AttendanceSource,
        rule_repository: RuleRepository,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.attendance_source = attendance_source
        self.rule_repository = rule_repository
        self.store = PayrollStore(session)
        self.splitter = TimeSplitter(self.settings.regular_hours_limit)
        self.calculator = PayrollCalculator(self.splitter)

    async def calculate_salaries(
        self,
        date_from: date | None,
        date_to: date | None,
        site_id: UUID | None = None,
        override: bool = False,
        worker_id: UUID | None = None,
    ) -> CalculationSummary:
        """Calculate and store payroll for [date_from, date_to].

        site_id and worker_id narrow the run to one site or one worker.

        Raises:
            ValidationError: If the window is invalid
            SourceUnavailableError: If attendance or rules cannot be read
        """
        date_from, date_to = validate_date_range(
            date_from, date_to, self.settings.max_calculation_days
        )
        logger.info(
            "Calculation run %s..%s site=%s worker=%s override=%s",
            date_from,
            date_to,
            site_id or "all",
            worker_id or "all",
            override,
        )

        attendance = await self.attendance_source.list(
            date_from, date_to, site_id=site_id, worker_id=worker_id
        )
        resolver = RuleResolver(await self.rule_repository.list(active=True))

        summary = CalculationSummary()
        days = self._collect_work_days(attendance, summary)

        drafts: list[PayrollDraft] = []
        for key, day in days.items():
            try:
                drafts.append(self._draft(resolver, key, day))
            except MissingRuleError as exc:
                logger.warning("No rule for %s: %s", key, exc)
                summary.failed_count += 1
                summary.issues.append(RecordIssue.for_key(key, IssueKind.MISSING_RULE, str(exc)))

        result = await self.store.upsert(drafts, override=override)
        summary.inserted_count = result.inserted_count
        summary.updated_count = result.updated_count
        summary.calculated_count = result.written_count
        for outcome in result.failures:
            summary.failed_count += 1
            summary.issues.append(
                RecordIssue.for_key(outcome.key, _UPSERT_ISSUES[outcome.status], str(outcome.error))
            )
            if outcome.status is UpsertStatus.FINALIZED_CONFLICT:
                logger.warning("Kept finalized record %s", outcome.key)

        logger.info(
            "Calculation run done: %d calculated (%d new, %d updated), %d skipped, %d failed",
            summary.calculated_count,
            summary.inserted_count,
            summary.updated_count,
            summary.skipped_count,
            summary.failed_count,
        )
        return summary

    def _collect_work_days(
        self,
        attendance: list[AttendanceRecord],
        summary: CalculationSummary,
    ) -> dict[NaturalKey, _WorkDay]:
        """Sum valid shift hours per natural key; report invalid rows."""
        days: dict[NaturalKey, _WorkDay] = {}
        for record in attendance:
            key = NaturalKey(record.worker_id, record.site_id, record.work_date)
            try:
                hours = self.splitter.worked_hours(record.check_in_at, record.check_out_at)
            except SkippedRecordWarning as warning:
                logger.warning("Skipping attendance %s for %s: %s", record.id, key, warning.reason)
                summary.skipped_count += 1
                summary.issues.append(RecordIssue.for_key(key, IssueKind.SKIPPED, str(warning)))
                continue

            day = days.get(key)
            if day is None:
                day = days[key] = _WorkDay(role=record.worker_role)
            day.hours += hours
        return days

    def _draft(self, resolver: RuleResolver, key: NaturalKey, day: _WorkDay) -> PayrollDraft:
        hours = self.splitter.split_total(day.hours)
        notes: list[str] = []

        # A matching daily rate wins over any hourly rate
        daily = resolver.resolve(RuleType.DAILY_RATE, key.site_id, day.role)
        if daily is not None:
            return self.calculator.calculate_daily(
                worker_id=key.worker_id,
                site_id=key.site_id,
                work_date=key.work_date,
                hours=hours,
                daily_rule=daily,
            )

        hourly = resolver.resolve(RuleType.HOURLY_RATE, key.site_id, day.role)
        if hourly is None:
            hourly = self._fallback_hourly(key, day.role)
            notes.append(f"{FALLBACK_HOURLY_RATE} applied")

        overtime = None
        if hours.has_overtime:
            overtime = resolver.resolve(RuleType.OVERTIME_MULTIPLIER, key.site_id, day.role)
            if overtime is not None and overtime.multiplier is None:
                overtime = None
            if overtime is None:
                overtime = self._fallback_overtime(key, day.role)
                notes.append(f"{FALLBACK_OVERTIME_MULTIPLIER} applied")

        return self.calculator.calculate_hours(
            worker_id=key.worker_id,
            site_id=key.site_id,
            work_date=key.work_date,
            hours=hours,
            hourly_rule=hourly,
            overtime_rule=overtime,
            notes=notes,
        )

    def _fallback_hourly(self, key: NaturalKey, role: Role | None) -> CalculationRule:
        rate = self.settings.fallback_hourly_rate
        if not self.settings.uses_fallback or rate is None:
            raise MissingRuleError(RuleType.HOURLY_RATE, key.site_id, role)
        return CalculationRule(
            name=FALLBACK_HOURLY_RATE,
            rule_type=RuleType.HOURLY_RATE,
            base_amount=rate,
            is_active=True,
        )

    def _fallback_overtime(self, key: NaturalKey, role: Role | None) -> CalculationRule:
        multiplier = self.settings.fallback_overtime_multiplier
        if not self.settings.uses_fallback or multiplier is None:
            raise MissingRuleError(RuleType.OVERTIME_MULTIPLIER, key.site_id, role)
        return CalculationRule(
            name=FALLBACK_OVERTIME_MULTIPLIER,
            rule_type=RuleType.OVERTIME_MULTIPLIER,
            base_amount=Decimal("0"),
            multiplier=multiplier,
            is_active=True,
        )
