"""
Unit tests for the working-day classifier.
"""

import datetime

import pytest

from escala.core.holidays import (
    holidays_in_month,
    is_holiday,
    is_non_working_day,
    is_working_day,
    month_dates,
    working_days,
)


class TestNonWorkingDays:
    """Weekends and the fixed holiday list."""

    @pytest.mark.parametrize(
        "date",
        [
            datetime.date(2025, 3, 15),  # Saturday
            datetime.date(2025, 3, 16),  # Sunday
            datetime.date(2025, 1, 24),  # Aniversário de Porto Velho (Friday)
            datetime.date(2025, 4, 21),  # Tiradentes (Monday)
            datetime.date(2025, 12, 25),  # Natal (Thursday)
        ],
    )
    def test_non_working(self, date):
        assert is_non_working_day(date)
        assert not is_working_day(date)

    def test_regular_weekday_is_working(self):
        """2025-03-10 is a Monday without holiday."""
        assert is_working_day(datetime.date(2025, 3, 10))

    @pytest.mark.parametrize("year", [1999, 2024, 2025, 2031])
    def test_holidays_do_not_depend_on_year(self, year):
        """Same MM-DD list every year."""
        assert is_holiday(datetime.date(year, 10, 2))
        assert is_holiday(datetime.date(year, 1, 4))
        assert not is_holiday(datetime.date(year, 10, 3))

    def test_holiday_on_weekend_counts_once(self):
        """2025-11-15 is a Saturday and a holiday: still just a non-working day."""
        date = datetime.date(2025, 11, 15)
        assert is_holiday(date)
        assert is_non_working_day(date)


class TestMonthHelpers:
    def test_month_dates_covers_whole_month(self):
        dates = month_dates(2024, 2)
        assert len(dates) == 29
        assert dates[0] == datetime.date(2024, 2, 1)
        assert dates[-1] == datetime.date(2024, 2, 29)

    def test_working_days_march_2025(self):
        """March 2025 has 10 weekend days and no holidays."""
        assert len(working_days(2025, 3)) == 21

    def test_working_days_april_2025_skip_tiradentes(self):
        days = working_days(2025, 4)
        assert datetime.date(2025, 4, 21) not in days
        assert len(days) == 21

    def test_holidays_in_month_as_day_month(self):
        assert holidays_in_month(1) == ["01/01", "04/01", "24/01"]
        assert holidays_in_month(3) == []
