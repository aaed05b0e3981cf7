"""Due-date arithmetic for recurring rules.

Everything here is pure: the same rule and reference date always give the
same answer, and nothing consults the clock. Callers decide what "today" is.
"""
from datetime import date, timedelta

from models.recurring_rule import RecurringRule
from utils.constants import (
    CATEGORIES_BY_TYPE, DAYS_OF_WEEK, FREQUENCIES, LAST_DAY_OF_MONTH,
    MAX_CATCHUP_ITERATIONS, TRANSACTION_TYPES,
)
from utils.date_helpers import (
    add_months_preserving_day, add_years, clamp_day_of_month,
    days_in_month, next_matching_weekday,
)


class RecurrenceError(ValueError):
    """Base class for problems with a single recurring rule."""


class InvalidRuleError(RecurrenceError):
    """Rule data violates the recurrence invariants."""


class ScheduleIntegrityError(RecurrenceError):
    """A computed due date failed to move forward."""


def validate_classification(rule: RecurringRule) -> None:
    """Type and category checks for rules entered by the user.

    Not part of validate_rule: category never affects scheduling, so stored
    rules whose category has since been dropped keep generating.
    """
    if rule.type not in TRANSACTION_TYPES:
        raise InvalidRuleError(f"Type must be one of {', '.join(TRANSACTION_TYPES)}.")
    if rule.category not in CATEGORIES_BY_TYPE[rule.type]:
        raise InvalidRuleError(f"Unknown {rule.type} category: {rule.category!r}.")


def validate_rule(rule: RecurringRule) -> None:
    """Raise InvalidRuleError if the rule cannot be scheduled as stored."""
    if rule.amount is None or rule.amount <= 0:
        raise InvalidRuleError("Amount must be positive.")
    if rule.frequency not in FREQUENCIES:
        raise InvalidRuleError(f"Invalid frequency: {rule.frequency!r}.")
    if rule.start_date is None or rule.next_due_date is None:
        raise InvalidRuleError("Start date and next due date are required.")

    if rule.custom_interval_days is None or rule.custom_interval_days < 1:
        raise InvalidRuleError("Custom interval must be at least 1 day.")
    if rule.frequency != "custom" and rule.custom_interval_days != 1:
        raise InvalidRuleError("Custom interval only applies to custom frequency.")

    if rule.weekdays is not None:
        if rule.frequency != "weekly":
            raise InvalidRuleError("Weekdays only apply to weekly frequency.")
        if not rule.weekdays:
            raise InvalidRuleError("Weekly rule has an empty weekday set.")
        if any(not 1 <= d <= 7 for d in rule.weekdays):
            raise InvalidRuleError("Weekdays must be between 1 (Mon) and 7 (Sun).")

    if rule.day_of_month is not None:
        if rule.frequency != "monthly":
            raise InvalidRuleError("Day of month only applies to monthly frequency.")
        if not 1 <= rule.day_of_month <= LAST_DAY_OF_MONTH:
            raise InvalidRuleError("Day of month must be 1-31, or 32 for the last day.")

    if rule.end_date is not None and rule.end_date < rule.start_date:
        raise InvalidRuleError("End date is before start date.")
    if rule.next_due_date < rule.start_date:
        raise InvalidRuleError("Next due date is before start date.")


def _monthly_target_day(rule: RecurringRule) -> int:
    return rule.day_of_month if rule.day_of_month is not None else rule.start_date.day


def next_due_date(rule: RecurringRule, from_date: date) -> date:
    """Return the occurrence that follows from_date under the rule's frequency."""
    freq = rule.frequency
    if freq == "daily":
        return from_date + timedelta(days=1)
    if freq == "weekly":
        if rule.weekdays is not None:
            return next_matching_weekday(from_date, rule.weekdays)
        return from_date + timedelta(days=7)
    if freq == "monthly":
        return add_months_preserving_day(from_date, 1, _monthly_target_day(rule))
    if freq == "yearly":
        return add_years(from_date, 1)
    if freq == "custom":
        if rule.custom_interval_days < 1:
            raise InvalidRuleError("Custom interval must be at least 1 day.")
        return from_date + timedelta(days=rule.custom_interval_days)
    raise InvalidRuleError(f"Invalid frequency: {freq!r}.")


def first_due_date(rule: RecurringRule, on_or_after: date) -> date:
    """First date of the rule's schedule that is >= both on_or_after and start_date.

    Weekly rules without weekdays repeat on the start date's weekday, monthly
    rules without day_of_month on the start date's day, and yearly rules on
    the start date's month/day (clamped). Custom rules step from start_date.
    """
    start = rule.start_date
    frm = max(start, on_or_after)
    freq = rule.frequency

    if freq == "daily":
        return frm

    if freq == "weekly":
        allowed = rule.weekdays if rule.weekdays is not None else (start.isoweekday(),)
        return next_matching_weekday(frm - timedelta(days=1), allowed)

    if freq == "monthly":
        target = _monthly_target_day(rule)
        day = (days_in_month(frm.year, frm.month) if target == LAST_DAY_OF_MONTH
               else clamp_day_of_month(frm.year, frm.month, target))
        candidate = date(frm.year, frm.month, day)
        if candidate < frm:
            candidate = add_months_preserving_day(candidate, 1, target)
        return candidate

    if freq == "yearly":
        candidate = date(frm.year, start.month,
                         clamp_day_of_month(frm.year, start.month, start.day))
        if candidate < frm:
            y = frm.year + 1
            candidate = date(y, start.month, clamp_day_of_month(y, start.month, start.day))
        return candidate

    if freq == "custom":
        interval = rule.custom_interval_days
        if interval < 1:
            raise InvalidRuleError("Custom interval must be at least 1 day.")
        periods = -(-(frm - start).days // interval)  # ceil
        return start + timedelta(days=periods * interval)

    raise InvalidRuleError(f"Invalid frequency: {freq!r}.")


def occurrences_between(
    rule: RecurringRule,
    start: date,
    end: date,
    max_iterations: int = MAX_CATCHUP_ITERATIONS,
) -> list[date]:
    """Due dates in [start, end] from the rule's next_due_date onwards."""
    result: list[date] = []
    last = min(end, rule.end_date) if rule.end_date else end
    current = rule.next_due_date
    for _ in range(max_iterations):
        if current > last:
            return result
        if current >= start:
            result.append(current)
        following = next_due_date(rule, current)
        if following <= current:
            raise ScheduleIntegrityError(
                f"Due date {following} does not advance past {current}."
            )
        current = following
    raise ScheduleIntegrityError(
        f"More than {max_iterations} occurrences between {start} and {end}."
    )


def describe_frequency(rule: RecurringRule) -> str:
    """Human-readable recurrence pattern, e.g. 'Weekly on Mon, Fri'."""
    freq = rule.frequency
    if freq == "daily":
        return "Daily"
    if freq == "weekly":
        if rule.weekdays:
            names = ", ".join(
                DAYS_OF_WEEK[d - 1] if 1 <= d <= 7 else "?" for d in sorted(rule.weekdays)
            )
            return f"Weekly on {names}"
        return "Weekly"
    if freq == "monthly":
        if rule.day_of_month == LAST_DAY_OF_MONTH:
            return "Monthly (last day)"
        if rule.day_of_month is not None:
            return f"Monthly on day {rule.day_of_month}"
        return "Monthly"
    if freq == "yearly":
        return "Yearly"
    if freq == "custom":
        if rule.custom_interval_days == 1:
            return "Every day"
        return f"Every {rule.custom_interval_days} days"
    return freq.title()


def monthly_equivalent(rule: RecurringRule) -> float:
    """Approximate amount per month, for expected-income/expense summaries."""
    freq = rule.frequency
    if freq == "daily":
        return rule.amount * 30
    if freq == "weekly":
        per_week = len(rule.weekdays) if rule.weekdays else 1
        return rule.amount * per_week * 4.33
    if freq == "monthly":
        return rule.amount
    if freq == "yearly":
        return rule.amount / 12
    if freq == "custom":
        return rule.amount * 30 / max(rule.custom_interval_days, 1)
    return 0.0
