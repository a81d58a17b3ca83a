"""Calculation rule resolution with scope specificity."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from uuid import UUID

from site_payroll.models import CalculationRule, Role, RuleType


class MissingRuleError(Exception):
    """Raised when no active rule matches the requested context."""

    def __init__(
        self,
        rule_type: RuleType,
        site_id: UUID | None,
        role: Role | str | None,
    ):
        self.rule_type = rule_type
        self.site_id = site_id
        self.role = role
        role_name = Role(role).value if role is not None else None
        super().__init__(
            f"No active {RuleType(rule_type).value} rule matches "
            f"site {site_id} and role {role_name}"
        )


def _updated_sort_key(rule: CalculationRule) -> float:
    """Comparable timestamp; naive values are taken as UTC."""
    updated = rule.updated_at
    if updated is None:
        return float("-inf")
    if updated.tzinfo is None:
        updated = updated.replace(tzinfo=timezone.utc)
    return updated.timestamp()


class RuleResolver:
    """Picks the single applicable rule for a (type, site, role) context.

    Rule selection:
    1. Only active rules of the requested type are candidates
    2. A scoped field must equal the query (site +2, role +1); an unset
       field is a wildcard and adds 0
    3. Highest score wins
    4. Ties go to the most recently updated rule, then the highest id

    Rules are loaded once per calculation run and passed in, so resolving
    never touches storage.
    """

    def __init__(self, rules: Iterable[CalculationRule]):
        self._by_type: dict[RuleType, list[CalculationRule]] = {t: [] for t in RuleType}
        for rule in rules:
            if rule.is_active:
                self._by_type[RuleType(rule.rule_type)].append(rule)

    def candidates(self, rule_type: RuleType) -> list[CalculationRule]:
        """Active rules of one type."""
        return list(self._by_type[rule_type])

    def resolve(
        self,
        rule_type: RuleType,
        site_id: UUID | None,
        role: Role | str | None,
    ) -> CalculationRule | None:
        """Resolve the most specific rule, or None when nothing matches."""
        best_rule: CalculationRule | None = None
        best_key: tuple[int, float, str] | None = None

        for rule in self._by_type[rule_type]:
            score = rule.matches_scope(site_id=site_id, role=role)
            if score < 0:
                # Explicit mismatch, skip
                continue

            key = (score, _updated_sort_key(rule), str(rule.id))
            if best_key is None or key > best_key:
                best_rule = rule
                best_key = key

        return best_rule

    def resolve_or_raise(
        self,
        rule_type: RuleType,
        site_id: UUID | None,
        role: Role | str | None,
    ) -> CalculationRule:
        """Resolve a rule.

        Raises:
            MissingRuleError: If no active rule matches
        """
        rule = self.resolve(rule_type, site_id, role)
        if rule is None:
            raise MissingRuleError(rule_type, site_id, role)
        return rule
