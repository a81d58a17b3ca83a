"""Attendance and rule collaborators."""

from site_payroll.sources.base import (
    AttendanceSource,
    RuleFilters,
    RuleRepository,
    SourceUnavailableError,
)
from site_payroll.sources.fake import FakeAttendanceSource, FakeRuleRepository, default_fake_rules
from site_payroll.sources.sql import SqlAttendanceSource, SqlRuleRepository

__all__ = [
    "AttendanceSource",
    "FakeAttendanceSource",
    "FakeRuleRepository",
    "RuleFilters",
    "RuleRepository",
    "SourceUnavailableError",
    "SqlAttendanceSource",
    "SqlRuleRepository",
    "default_fake_rules",
]
