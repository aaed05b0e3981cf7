from datetime import date

import pytest

from services.schedule import (
    InvalidRuleError, ScheduleIntegrityError, describe_frequency,
    first_due_date, monthly_equivalent, next_due_date, occurrences_between,
    validate_classification, validate_rule,
)


# ── next_due_date ───────────────────────────────────────────────────────────

def test_daily_advances_one_day(make_rule):
    rule = make_rule(frequency="daily")
    assert next_due_date(rule, date(2026, 3, 10)) == date(2026, 3, 11)
    assert next_due_date(rule, date(2026, 12, 31)) == date(2027, 1, 1)


def test_weekly_without_weekdays_adds_seven_days(make_rule):
    rule = make_rule(frequency="weekly", start_date=date(2026, 1, 5))
    assert next_due_date(rule, date(2026, 1, 5)) == date(2026, 1, 12)


def test_weekly_weekdays_cycle(make_rule):
    rule = make_rule(frequency="weekly", start_date=date(2026, 1, 5), weekdays=(1, 3, 5))
    d = date(2026, 1, 5)  # Monday
    seen = []
    for _ in range(4):
        d = next_due_date(rule, d)
        seen.append(d)
    assert seen == [
        date(2026, 1, 7), date(2026, 1, 9), date(2026, 1, 12), date(2026, 1, 14),
    ]


def test_monthly_day_31_clamps_in_february(make_rule):
    rule = make_rule(frequency="monthly", start_date=date(2026, 1, 31), day_of_month=31)
    assert next_due_date(rule, date(2026, 1, 31)) == date(2026, 2, 28)
    assert next_due_date(rule, date(2026, 2, 28)) == date(2026, 3, 31)


def test_monthly_last_day_sentinel_sequence(make_rule):
    rule = make_rule(frequency="monthly", start_date=date(2026, 1, 31), day_of_month=32)
    d = date(2026, 1, 31)
    seen = []
    for _ in range(3):
        d = next_due_date(rule, d)
        seen.append(d)
    assert seen == [date(2026, 2, 28), date(2026, 3, 31), date(2026, 4, 30)]


def test_monthly_without_day_uses_start_day(make_rule):
    rule = make_rule(frequency="monthly", start_date=date(2026, 1, 31))
    assert next_due_date(rule, date(2026, 1, 31)) == date(2026, 2, 28)
    # does not drift to the 28th after February
    assert next_due_date(rule, date(2026, 2, 28)) == date(2026, 3, 31)


def test_yearly_leap_day(make_rule):
    rule = make_rule(frequency="yearly", start_date=date(2024, 2, 29))
    assert next_due_date(rule, date(2024, 2, 29)) == date(2025, 2, 28)
    assert next_due_date(rule, date(2025, 2, 28)) == date(2026, 2, 28)


def test_custom_interval(make_rule):
    rule = make_rule(frequency="custom", custom_interval_days=10)
    assert next_due_date(rule, date(2026, 1, 1)) == date(2026, 1, 11)


def test_custom_interval_below_one_is_rejected(make_rule):
    rule = make_rule(frequency="custom", custom_interval_days=0)
    with pytest.raises(InvalidRuleError):
        next_due_date(rule, date(2026, 1, 1))


def test_unknown_frequency_is_rejected(make_rule):
    with pytest.raises(InvalidRuleError):
        next_due_date(make_rule(frequency="hourly"), date(2026, 1, 1))


# ── first_due_date ──────────────────────────────────────────────────────────

def test_first_due_daily_is_later_of_start_and_reference(make_rule):
    rule = make_rule(frequency="daily", start_date=date(2026, 3, 1))
    assert first_due_date(rule, date(2026, 2, 1)) == date(2026, 3, 1)
    assert first_due_date(rule, date(2026, 3, 9)) == date(2026, 3, 9)


def test_first_due_weekly_is_inclusive(make_rule):
    rule = make_rule(frequency="weekly", start_date=date(2026, 1, 5))
    assert first_due_date(rule, date(2026, 1, 8)) == date(2026, 1, 12)
    assert first_due_date(rule, date(2026, 1, 12)) == date(2026, 1, 12)


def test_first_due_weekly_with_weekdays(make_rule):
    rule = make_rule(frequency="weekly", start_date=date(2026, 1, 5), weekdays=(3, 5))
    assert first_due_date(rule, date(2026, 1, 5)) == date(2026, 1, 7)
    assert first_due_date(rule, date(2026, 1, 10)) == date(2026, 1, 14)


def test_first_due_monthly(make_rule):
    rule = make_rule(frequency="monthly", start_date=date(2026, 1, 31))
    assert first_due_date(rule, date(2026, 3, 10)) == date(2026, 3, 31)
    assert first_due_date(rule, date(2026, 2, 10)) == date(2026, 2, 28)

    mid = make_rule(frequency="monthly", start_date=date(2026, 1, 15))
    assert first_due_date(mid, date(2026, 3, 16)) == date(2026, 4, 15)


def test_first_due_monthly_last_day(make_rule):
    rule = make_rule(frequency="monthly", start_date=date(2026, 1, 1), day_of_month=32)
    assert first_due_date(rule, date(2026, 2, 1)) == date(2026, 2, 28)


def test_first_due_yearly_clamps_leap_day(make_rule):
    rule = make_rule(frequency="yearly", start_date=date(2024, 2, 29))
    assert first_due_date(rule, date(2025, 1, 1)) == date(2025, 2, 28)
    assert first_due_date(rule, date(2025, 3, 1)) == date(2026, 2, 28)
    assert first_due_date(rule, date(2027, 6, 1)) == date(2028, 2, 29)


def test_first_due_custom_steps_from_start(make_rule):
    rule = make_rule(frequency="custom", start_date=date(2026, 1, 1), custom_interval_days=10)
    assert first_due_date(rule, date(2026, 1, 15)) == date(2026, 1, 21)
    assert first_due_date(rule, date(2026, 1, 21)) == date(2026, 1, 21)
    assert first_due_date(rule, date(2025, 12, 1)) == date(2026, 1, 1)


# ── validate_rule ───────────────────────────────────────────────────────────

@pytest.mark.parametrize("overrides", [
    dict(amount=0),
    dict(amount=-5.0),
    dict(frequency="hourly"),
    dict(frequency="custom", custom_interval_days=0),
    dict(frequency="daily", custom_interval_days=3),
    dict(frequency="weekly", weekdays=()),
    dict(frequency="weekly", weekdays=(0, 3)),
    dict(frequency="weekly", weekdays=(8,)),
    dict(frequency="daily", weekdays=(1,)),
    dict(frequency="monthly", day_of_month=0),
    dict(frequency="monthly", day_of_month=33),
    dict(frequency="weekly", day_of_month=5),
    dict(end_date=date(2025, 12, 31)),
    dict(next_due_date=date(2025, 12, 31)),
])
def test_validate_rule_rejects(make_rule, overrides):
    with pytest.raises(InvalidRuleError):
        validate_rule(make_rule(**overrides))


@pytest.mark.parametrize("overrides", [
    dict(),
    dict(frequency="monthly", day_of_month=32),
    dict(frequency="weekly", weekdays=(1, 3, 5)),
    dict(frequency="custom", custom_interval_days=14),
    dict(type="income", category="salary", end_date=date(2026, 1, 1)),
])
def test_validate_rule_accepts(make_rule, overrides):
    validate_rule(make_rule(**overrides))


def test_validate_rule_ignores_category(make_rule):
    validate_rule(make_rule(category="rent"))
    validate_rule(make_rule(type="income", category="groceries"))


@pytest.mark.parametrize("overrides", [
    dict(type="transfer"),
    dict(category="salary"),
    dict(category="rent"),
])
def test_validate_classification_rejects(make_rule, overrides):
    with pytest.raises(InvalidRuleError):
        validate_classification(make_rule(**overrides))


def test_validate_classification_accepts(make_rule):
    validate_classification(make_rule())
    validate_classification(make_rule(type="income", category="salary"))


def test_invalid_rule_error_is_a_value_error():
    assert issubclass(InvalidRuleError, ValueError)
    assert issubclass(ScheduleIntegrityError, ValueError)


# ── occurrences_between ─────────────────────────────────────────────────────

def test_occurrences_between_window(make_rule):
    rule = make_rule(frequency="weekly", start_date=date(2026, 1, 5))
    assert occurrences_between(rule, date(2026, 1, 10), date(2026, 1, 31)) == [
        date(2026, 1, 12), date(2026, 1, 19), date(2026, 1, 26),
    ]


def test_occurrences_between_respects_end_date(make_rule):
    rule = make_rule(frequency="daily", end_date=date(2026, 1, 3))
    assert occurrences_between(rule, date(2026, 1, 1), date(2026, 1, 31)) == [
        date(2026, 1, 1), date(2026, 1, 2), date(2026, 1, 3),
    ]


def test_occurrences_between_hits_cap(make_rule):
    rule = make_rule(frequency="daily")
    with pytest.raises(ScheduleIntegrityError):
        occurrences_between(rule, date(2026, 1, 1), date(2026, 12, 31), max_iterations=10)


# ── describe / monthly equivalent ───────────────────────────────────────────

@pytest.mark.parametrize("overrides, expected", [
    (dict(frequency="daily"), "Daily"),
    (dict(frequency="weekly"), "Weekly"),
    (dict(frequency="weekly", weekdays=(5, 1)), "Weekly on Mon, Fri"),
    (dict(frequency="monthly"), "Monthly"),
    (dict(frequency="monthly", day_of_month=15), "Monthly on day 15"),
    (dict(frequency="monthly", day_of_month=32), "Monthly (last day)"),
    (dict(frequency="yearly"), "Yearly"),
    (dict(frequency="custom", custom_interval_days=3), "Every 3 days"),
])
def test_describe_frequency(make_rule, overrides, expected):
    assert describe_frequency(make_rule(**overrides)) == expected


def test_monthly_equivalent(make_rule):
    assert monthly_equivalent(make_rule(frequency="daily", amount=2.0)) == 60.0
    assert monthly_equivalent(make_rule(frequency="monthly", amount=50.0)) == 50.0
    assert monthly_equivalent(make_rule(frequency="yearly", amount=120.0)) == 10.0
    assert monthly_equivalent(
        make_rule(frequency="custom", custom_interval_days=15, amount=10.0)
    ) == 20.0
    assert monthly_equivalent(
        make_rule(frequency="weekly", weekdays=(1, 3), amount=10.0)
    ) == pytest.approx(86.6)
