"""Closed value sets shared by models, calculators and services."""

from __future__ import annotations

from enum import Enum


class RuleType(str, Enum):
    """Calculation rule types."""

    HOURLY_RATE = "hourly_rate"
    DAILY_RATE = "daily_rate"
    OVERTIME_MULTIPLIER = "overtime_multiplier"
    BONUS_CALCULATION = "bonus_calculation"


class Role(str, Enum):
    """Worker roles a rule can be scoped to."""

    WORKER = "worker"
    SITE_MANAGER = "site_manager"
    CUSTOMER_MANAGER = "customer_manager"
    ADMIN = "admin"


class PayrollStatus(str, Enum):
    """Payroll record status values."""

    CALCULATED = "calculated"
    APPROVED = "approved"
    PAID = "paid"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Persist enum values rather than member names."""
    return [member.value for member in enum_cls]
