"""Tests for shared input validation."""

from datetime import date

import pytest

from site_payroll.services.validation import (
    Pagination,
    ValidationError,
    month_bounds,
    validate_date_range,
)


class TestDateRange:
    def test_valid_window(self):
        assert validate_date_range(date(2024, 5, 1), date(2024, 5, 31), max_days=92) == (
            date(2024, 5, 1),
            date(2024, 5, 31),
        )

    def test_single_day(self):
        day = date(2024, 5, 1)
        assert validate_date_range(day, day, max_days=1) == (day, day)

    @pytest.mark.parametrize(
        ("date_from", "date_to", "field"),
        [(None, date(2024, 5, 1), "date_from"), (date(2024, 5, 1), None, "date_to")],
    )
    def test_missing_bound(self, date_from, date_to, field):
        with pytest.raises(ValidationError) as exc_info:
            validate_date_range(date_from, date_to)

        assert exc_info.value.field == field

    def test_reversed_bounds(self):
        with pytest.raises(ValidationError, match="after"):
            validate_date_range(date(2024, 5, 2), date(2024, 5, 1))

    def test_window_too_long(self):
        with pytest.raises(ValidationError, match="93 days"):
            validate_date_range(date(2024, 1, 1), date(2024, 4, 2), max_days=92)


class TestPagination:
    def test_offset(self):
        assert Pagination(page=3, limit=20).offset == 40

    def test_page_count(self):
        pagination = Pagination(page=1, limit=10)

        assert pagination.page_count(0) == 0
        assert pagination.page_count(10) == 1
        assert pagination.page_count(11) == 2

    @pytest.mark.parametrize(("page", "limit"), [(0, 10), (1, 0), (1, 101)])
    def test_bounds(self, page, limit):
        with pytest.raises(ValidationError):
            Pagination(page=page, limit=limit)


class TestMonthBounds:
    def test_leap_february(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_december(self):
        assert month_bounds(2023, 12) == (date(2023, 12, 1), date(2023, 12, 31))

    def test_last_supported_month(self):
        assert month_bounds(9999, 12) == (date(9999, 12, 1), date(9999, 12, 31))

    def test_invalid_month(self):
        with pytest.raises(ValidationError):
            month_bounds(2024, 13)
