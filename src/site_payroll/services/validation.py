"""Input validation shared by services and the API."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date

MAX_PAGE_SIZE = 100


class ValidationError(Exception):
    """Raised when input is malformed. Nothing has been written."""

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(f"{field}: {message}" if field else message)


@dataclass(frozen=True)
class Pagination:
    """1-based page/limit pagination."""

    page: int = 1
    limit: int = 20

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError("must be at least 1", field="page")
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"must be between 1 and {MAX_PAGE_SIZE}", field="limit")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def page_count(self, total: int) -> int:
        """Number of pages needed for total rows."""
        return -(-total // self.limit)


def validate_date_range(
    date_from: date | None,
    date_to: date | None,
    max_days: int | None = None,
) -> tuple[date, date]:
    """Check an inclusive date window.

    Raises:
        ValidationError: If a bound is missing, the bounds are reversed, or
            the window is longer than max_days
    """
    if date_from is None:
        raise ValidationError("is required", field="date_from")
    if date_to is None:
        raise ValidationError("is required", field="date_to")
    if date_from > date_to:
        raise ValidationError(
            f"date_from {date_from.isoformat()} is after date_to {date_to.isoformat()}"
        )
    if max_days is not None:
        days = (date_to - date_from).days + 1
        if days > max_days:
            raise ValidationError(f"window of {days} days exceeds the {max_days} day limit")
    return date_from, date_to


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    if not 1 <= month <= 12:
        raise ValidationError("must be between 1 and 12", field="month")
    if not 2000 <= year <= 9999:
        raise ValidationError("is out of range", field="year")
    _, last_day = calendar.monthrange(year, month)
    return date(year, month, 1), date(year, month, last_day)
