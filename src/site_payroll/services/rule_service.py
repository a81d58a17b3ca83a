"""Validated create, update, delete and listing of calculation rules."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from uuid import UUID

from site_payroll.models import CalculationRule, Role, RuleType, utcnow
from site_payroll.services.validation import Pagination, ValidationError
from site_payroll.sources.base import RuleFilters, RuleRepository

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200


class RuleNotFoundError(Exception):
    """Raised when updating a rule id that does not exist."""

    def __init__(self, rule_id: UUID):
        self.rule_id = rule_id
        super().__init__(f"Calculation rule {rule_id} not found")


@dataclass
class RuleInput:
    """Incoming rule data. No id means create."""

    name: str
    rule_type: RuleType | str
    base_amount: Decimal | int | str
    multiplier: Decimal | int | str | None = None
    site_id: UUID | None = None
    role: Role | str | None = None
    is_active: bool = True
    id: UUID | None = None


@dataclass
class RulePage:
    rules: list[CalculationRule] = field(default_factory=list)
    total: int = 0
    pages: int = 0


def _to_decimal(value: Decimal | int | str, field_name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"must be a number, got {value!r}", field=field_name) from None


@dataclass(frozen=True)
class _ValidRule:
    name: str
    rule_type: RuleType
    base_amount: Decimal
    multiplier: Decimal | None
    site_id: UUID | None
    role: Role | None
    is_active: bool


def validate_rule(data: RuleInput) -> _ValidRule:
    """Normalize rule input.

    Raises:
        ValidationError: On the first invalid field
    """
    name = (data.name or "").strip()
    if not name:
        raise ValidationError("is required", field="name")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"must be at most {MAX_NAME_LENGTH} characters", field="name")

    try:
        rule_type = RuleType(data.rule_type)
    except ValueError:
        raise ValidationError(f"unknown rule type {data.rule_type!r}", field="rule_type") from None

    base_amount = _to_decimal(data.base_amount, "base_amount")
    if not base_amount.is_finite() or base_amount < 0:
        raise ValidationError("must be zero or more", field="base_amount")

    multiplier = None
    if data.multiplier is not None and str(data.multiplier).strip() != "":
        multiplier = _to_decimal(data.multiplier, "multiplier")
        if not multiplier.is_finite() or multiplier <= 0:
            raise ValidationError("must be greater than zero", field="multiplier")
    if rule_type is RuleType.OVERTIME_MULTIPLIER and multiplier is None:
        raise ValidationError("is required for overtime rules", field="multiplier")

    # Empty scope values are wildcards
    role = None
    if data.role:
        try:
            role = Role(data.role)
        except ValueError:
            raise ValidationError(f"unknown role {data.role!r}", field="role") from None

    return _ValidRule(
        name=name,
        rule_type=rule_type,
        base_amount=base_amount,
        multiplier=multiplier,
        site_id=data.site_id or None,
        role=role,
        is_active=bool(data.is_active),
    )


class RuleService:
    """Admin operations over calculation rules."""

    def __init__(self, repository: RuleRepository):
        self.repository = repository

    async def upsert_rule(self, data: RuleInput) -> CalculationRule:
        """Create a rule, or update it when data.id is set.

        Raises:
            ValidationError: If the input is invalid
            RuleNotFoundError: If data.id does not exist
        """
        valid = validate_rule(data)

        if data.id is None:
            rule = CalculationRule()
        else:
            existing = await self.repository.get(data.id)
            if existing is None:
                raise RuleNotFoundError(data.id)
            rule = existing

        rule.name = valid.name
        rule.rule_type = valid.rule_type
        rule.base_amount = valid.base_amount
        rule.multiplier = valid.multiplier
        rule.site_id = valid.site_id
        rule.role = valid.role
        rule.is_active = valid.is_active
        if data.id is not None:
            rule.updated_at = utcnow()

        saved = await self.repository.save(rule)
        logger.info(
            "%s calculation rule %s (%s)",
            "Updated" if data.id else "Created",
            saved.id,
            valid.rule_type.value,
        )
        return saved

    async def delete_rules(self, rule_ids: Iterable[UUID]) -> int:
        """Delete rules by id, returning the number removed.

        Raises:
            ValidationError: If no ids are given
        """
        ids = list(dict.fromkeys(rule_ids))
        if not ids:
            raise ValidationError("at least one rule id is required", field="ids")
        deleted = await self.repository.delete(ids)
        logger.info("Deleted %d of %d calculation rules", deleted, len(ids))
        return deleted

    async def list_rules(
        self,
        filters: RuleFilters | None = None,
        pagination: Pagination | None = None,
    ) -> RulePage:
        """Rules newest first with total and page count."""
        pagination = pagination or Pagination()
        rules, total = await self.repository.search(filters or RuleFilters(), pagination)
        return RulePage(rules=rules, total=total, pages=pagination.page_count(total))
