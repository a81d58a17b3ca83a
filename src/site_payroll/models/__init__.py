"""ORM models."""

from site_payroll.models.attendance import AttendanceRecord
from site_payroll.models.base import Base, TimestampMixin, utcnow
from site_payroll.models.enums import PayrollStatus, Role, RuleType
from site_payroll.models.payroll import NATURAL_KEY_COLUMNS, PayrollRecord
from site_payroll.models.rules import CalculationRule, RuleScope

__all__ = [
    "AttendanceRecord",
    "Base",
    "CalculationRule",
    "NATURAL_KEY_COLUMNS",
    "PayrollRecord",
    "PayrollStatus",
    "Role",
    "RuleScope",
    "RuleType",
    "TimestampMixin",
    "utcnow",
]
