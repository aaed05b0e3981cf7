import calendar
from datetime import date, datetime, timedelta
from typing import Iterable
from utils.constants import DATE_FORMAT, LAST_DAY_OF_MONTH


def today() -> date:
    return date.today()


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure."""
    if not date_str:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except (TypeError, ValueError):
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def days_in_month(year: int, month: int) -> int:
    """28/29/30/31 per the Gregorian calendar."""
    return calendar.monthrange(year, month)[1]


def clamp_day_of_month(year: int, month: int, desired_day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    return min(desired_day, days_in_month(year, month))


def add_months_preserving_day(
    d: date, months: int, day_of_month: int | None = None
) -> date:
    """Add months to d, landing on day_of_month (or d.day) clamped to month end.

    day_of_month == 32 always resolves to the last day of the target month.
    """
    month = d.month - 1 + months
    year = d.year + month // 12
    month = month % 12 + 1
    if day_of_month == LAST_DAY_OF_MONTH:
        day = days_in_month(year, month)
    elif day_of_month is not None:
        day = clamp_day_of_month(year, month, day_of_month)
    else:
        day = clamp_day_of_month(year, month, d.day)
    return date(year, month, day)


def add_years(d: date, years: int) -> date:
    """Add years to d; Feb 29 becomes Feb 28 in non-leap target years."""
    year = d.year + years
    return date(year, d.month, clamp_day_of_month(year, d.month, d.day))


def next_matching_weekday(d: date, allowed_weekdays: Iterable[int]) -> date:
    """First date after d whose ISO weekday (1=Mon..7=Sun) is allowed."""
    allowed = set(allowed_weekdays)
    if not allowed:
        raise ValueError("allowed_weekdays must not be empty")
    current = d
    for _ in range(7):
        current += timedelta(days=1)
        if current.isoweekday() in allowed:
            return current
    raise ValueError(f"No weekday in {sorted(allowed)} is an ISO weekday (1-7)")
