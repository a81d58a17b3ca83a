"""Payroll calculation pipeline."""

from site_payroll.calculators.pay_calculator import PayrollCalculator
from site_payroll.calculators.rule_resolver import MissingRuleError, RuleResolver
from site_payroll.calculators.time_splitter import SkippedRecordWarning, TimeSplitter
from site_payroll.calculators.types import NaturalKey, PayrollDraft, SplitHours

__all__ = [
    "MissingRuleError",
    "NaturalKey",
    "PayrollCalculator",
    "PayrollDraft",
    "RuleResolver",
    "SkippedRecordWarning",
    "SplitHours",
    "TimeSplitter",
]
