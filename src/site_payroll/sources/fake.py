"""In-memory attendance source and rule repository.

Selected with DATA_SOURCE=fake for demos and local development. Nothing here
touches the database.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from site_payroll.models import AttendanceRecord, CalculationRule, Role, RuleType, utcnow
from site_payroll.services.validation import Pagination
from site_payroll.sources.base import RuleFilters


def default_fake_rules() -> list[CalculationRule]:
    """Seed rules for the fake repository.

    - a worker hourly rate of 15000
    - a site manager daily rate of 200000
    - a global overtime multiplier of 1.5
    """
    now = utcnow()
    seeds = [
        ("General worker hourly rate", RuleType.HOURLY_RATE, "15000", None, Role.WORKER),
        ("Site manager daily rate", RuleType.DAILY_RATE, "200000", None, Role.SITE_MANAGER),
        ("Overtime multiplier", RuleType.OVERTIME_MULTIPLIER, "0", "1.5", None),
    ]
    return [
        CalculationRule(
            id=uuid4(),
            name=name,
            rule_type=rule_type,
            base_amount=Decimal(base_amount),
            multiplier=Decimal(multiplier) if multiplier else None,
            site_id=None,
            role=role,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        for name, rule_type, base_amount, multiplier, role in seeds
    ]


class FakeAttendanceSource:
    """Attendance held in a list."""

    def __init__(self, records: Iterable[AttendanceRecord] | None = None):
        self._records: list[AttendanceRecord] = list(records or [])

    def add(self, record: AttendanceRecord) -> None:
        if record.id is None:
            record.id = uuid4()
        self._records.append(record)

    async def list(
        self,
        date_from: date,
        date_to: date,
        site_id: UUID | None = None,
        worker_id: UUID | None = None,
    ) -> list[AttendanceRecord]:
        matches = [
            r
            for r in self._records
            if date_from <= r.work_date <= date_to
            and (site_id is None or r.site_id == site_id)
            and (worker_id is None or r.worker_id == worker_id)
        ]
        return sorted(matches, key=lambda r: (r.work_date, str(r.worker_id), r.check_in))


class FakeRuleRepository:
    """Rules held in a dict keyed by id."""

    def __init__(self, rules: Iterable[CalculationRule] | None = None):
        seed = default_fake_rules() if rules is None else rules
        self._rules: dict[UUID, CalculationRule] = {rule.id: rule for rule in seed}

    async def list(
        self,
        rule_type: RuleType | None = None,
        active: bool | None = True,
    ) -> list[CalculationRule]:
        return [
            rule
            for rule in self._rules.values()
            if (rule_type is None or rule.rule_type == rule_type)
            and (active is None or rule.is_active == active)
        ]

    async def get(self, rule_id: UUID) -> CalculationRule | None:
        return self._rules.get(rule_id)

    async def save(self, rule: CalculationRule) -> CalculationRule:
        now = utcnow()
        if rule.id is None:
            rule.id = uuid4()
        if rule.created_at is None:
            rule.created_at = now
        if rule.is_active is None:
            rule.is_active = True
        rule.updated_at = now
        self._rules[rule.id] = rule
        return rule

    async def delete(self, rule_ids: Iterable[UUID]) -> int:
        deleted = 0
        for rule_id in set(rule_ids):
            if self._rules.pop(rule_id, None) is not None:
                deleted += 1
        return deleted

    async def search(
        self,
        filters: RuleFilters,
        pagination: Pagination,
    ) -> tuple[list[CalculationRule], int]:
        term = (filters.search or "").strip().lower()
        matches = [
            rule
            for rule in self._rules.values()
            if (not term or term in rule.name.lower())
            and (filters.rule_type is None or rule.rule_type == filters.rule_type)
            and (filters.site_id is None or rule.site_id in (None, filters.site_id))
            and (filters.is_active is None or rule.is_active == filters.is_active)
        ]
        matches.sort(key=lambda r: (r.created_at, str(r.id)), reverse=True)
        start = pagination.offset
        return matches[start : start + pagination.limit], len(matches)
