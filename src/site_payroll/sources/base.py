"""Protocols for the attendance and rule collaborators.

A calculation run reads attendance and rules through these protocols; the
implementation (database or in-memory fake) is chosen by configuration.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Protocol
from uuid import UUID

from site_payroll.models import AttendanceRecord, CalculationRule, RuleType
from site_payroll.services.validation import Pagination


class SourceUnavailableError(Exception):
    """Raised when attendance or rules cannot be read at all.

    This aborts a calculation run; nothing is written.
    """

    def __init__(self, source: str, cause: BaseException | None = None):
        self.source = source
        self.cause = cause
        msg = f"{source} source is unavailable"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


@dataclass(frozen=True)
class RuleFilters:
    """Filters for listing rules. None means no restriction."""

    search: str | None = None
    rule_type: RuleType | None = None
    # Also matches wildcard-site rules
    site_id: UUID | None = None
    is_active: bool | None = None


class AttendanceSource(Protocol):
    """Supplies immutable time records."""

    async def list(
        self,
        date_from: date,
        date_to: date,
        site_id: UUID | None = None,
        worker_id: UUID | None = None,
    ) -> list[AttendanceRecord]:
        """Attendance within [date_from, date_to], optionally for one site
        and/or one worker.

        Raises:
            SourceUnavailableError: If the records cannot be read
        """
        ...


class RuleRepository(Protocol):
    """Stores and queries calculation rules."""

    async def list(
        self,
        rule_type: RuleType | None = None,
        active: bool | None = True,
    ) -> list[CalculationRule]:
        """Rules of one type (or all), filtered by active flag.

        Raises:
            SourceUnavailableError: If the rules cannot be read
        """
        ...

    async def get(self, rule_id: UUID) -> CalculationRule | None:
        ...

    async def save(self, rule: CalculationRule) -> CalculationRule:
        """Create or update a rule and return the stored version."""
        ...

    async def delete(self, rule_ids: Iterable[UUID]) -> int:
        """Delete rules, returning how many existed."""
        ...

    async def search(
        self,
        filters: RuleFilters,
        pagination: Pagination,
    ) -> tuple[list[CalculationRule], int]:
        """One page of rules, newest first, and the total match count."""
        ...
