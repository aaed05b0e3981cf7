from datetime import date

import pytest

from utils.date_helpers import (
    add_months_preserving_day, add_years, clamp_day_of_month, days_in_month,
    format_date, next_matching_weekday, parse_date,
)


@pytest.mark.parametrize("year, month, expected", [
    (2026, 1, 31), (2026, 2, 28), (2024, 2, 29), (2026, 4, 30),
    (1900, 2, 28), (2000, 2, 29), (2026, 12, 31),
])
def test_days_in_month(year, month, expected):
    assert days_in_month(year, month) == expected


def test_clamp_day_of_month():
    assert clamp_day_of_month(2026, 2, 31) == 28
    assert clamp_day_of_month(2024, 2, 30) == 29
    assert clamp_day_of_month(2026, 3, 15) == 15


def test_add_months_clamps_to_month_end():
    assert add_months_preserving_day(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert add_months_preserving_day(date(2024, 1, 31), 1) == date(2024, 2, 29)


def test_add_months_carries_into_next_year():
    assert add_months_preserving_day(date(2026, 11, 15), 3) == date(2027, 2, 15)
    assert add_months_preserving_day(date(2026, 12, 31), 1) == date(2027, 1, 31)


def test_add_months_negative():
    assert add_months_preserving_day(date(2026, 3, 31), -1) == date(2026, 2, 28)
    assert add_months_preserving_day(date(2026, 1, 10), -1) == date(2025, 12, 10)


def test_add_months_explicit_day_restores_after_short_month():
    assert add_months_preserving_day(date(2026, 2, 28), 1, 31) == date(2026, 3, 31)
    assert add_months_preserving_day(date(2026, 3, 31), 1, 31) == date(2026, 4, 30)


def test_add_months_last_day_sentinel():
    assert add_months_preserving_day(date(2026, 1, 1), 1, 32) == date(2026, 2, 28)
    assert add_months_preserving_day(date(2026, 2, 28), 1, 32) == date(2026, 3, 31)
    assert add_months_preserving_day(date(2024, 1, 31), 1, 32) == date(2024, 2, 29)


def test_add_years_leap_day():
    assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
    assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)
    assert add_years(date(2026, 7, 4), 1) == date(2027, 7, 4)


def test_next_matching_weekday_is_strictly_after():
    monday = date(2026, 1, 5)
    assert next_matching_weekday(monday, {1}) == date(2026, 1, 12)
    assert next_matching_weekday(monday, {1, 3}) == date(2026, 1, 7)
    # Sunday -> Monday crosses the week boundary
    assert next_matching_weekday(date(2026, 1, 11), {1}) == date(2026, 1, 12)


def test_next_matching_weekday_rejects_empty_set():
    with pytest.raises(ValueError):
        next_matching_weekday(date(2026, 1, 5), set())


def test_parse_and_format_date():
    assert parse_date("2026-03-09") == date(2026, 3, 9)
    assert parse_date("2026/03/09") == date(2026, 3, 9)
    assert parse_date("not a date") is None
    assert parse_date("") is None
    assert format_date(date(2026, 3, 9)) == "2026-03-09"
