"""Catch-up generation of recurring transactions.

The engine is split in two layers:

- ``advance_rule`` / ``plan_generation`` are pure. Given rules and a date they
  compute, for every rule that is due, the occurrences to materialize and the
  rule's new ``last_generated_date`` / ``next_due_date``. Input rules are never
  mutated.
- ``generate_due`` applies a plan through caller-supplied sinks. Each rule's
  occurrences and schedule update are written as one unit; a rule whose unit
  fails is reported and left untouched so the next pass retries it in full.
"""
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable, ContextManager, Iterable, Optional

from models.recurring_rule import RecurringRule
from models.transaction import GeneratedOccurrence
from services.schedule import ScheduleIntegrityError, next_due_date, validate_rule
from utils.constants import MAX_CATCHUP_ITERATIONS
from utils.logging_setup import get_logger

logger = get_logger(__name__)

PersistOccurrence = Callable[[GeneratedOccurrence], object]
PersistRuleUpdate = Callable[[Optional[int], date, date], object]


@dataclass
class RuleFailure:
    rule_id: Optional[int]
    reason: str


@dataclass
class RuleAdvance:
    rule: RecurringRule                     # state after the catch-up
    occurrences: list[GeneratedOccurrence]  # ascending by date


@dataclass
class GenerationPlan:
    advances: list[RuleAdvance] = field(default_factory=list)
    errors: list[RuleFailure] = field(default_factory=list)


@dataclass
class GenerationResult:
    occurrences: list[GeneratedOccurrence] = field(default_factory=list)
    updated_rules: list[RecurringRule] = field(default_factory=list)
    errors: list[RuleFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def build_occurrence(rule: RecurringRule, due: date) -> GeneratedOccurrence:
    description = f"[{rule.name}] {rule.note}" if rule.note else rule.name
    return GeneratedOccurrence(
        rule_id=rule.id,
        type=rule.type,
        amount=rule.amount,
        category=rule.category,
        date=due,
        description=description,
    )


def advance_rule(
    rule: RecurringRule,
    today: date,
    max_iterations: int = MAX_CATCHUP_ITERATIONS,
) -> RuleAdvance | None:
    """Catch one rule up to today. Returns None when nothing is due."""
    if not rule.is_active:
        return None
    if rule.end_date is not None and rule.end_date < today:
        return None
    if rule.last_generated_date == today:
        return None

    validate_rule(rule)

    occurrences: list[GeneratedOccurrence] = []
    last = rule.last_generated_date
    due = rule.next_due_date
    while due <= today and (rule.end_date is None or due <= rule.end_date):
        if len(occurrences) >= max_iterations:
            raise ScheduleIntegrityError(
                f"Catch-up stopped after {max_iterations} occurrences (next due {due})."
            )
        occurrences.append(build_occurrence(rule, due))
        following = next_due_date(rule, due)
        if following <= due:
            raise ScheduleIntegrityError(
                f"Due date {following} does not advance past {due}."
            )
        last, due = due, following

    if not occurrences:
        return None
    return RuleAdvance(
        rule=replace(rule, last_generated_date=last, next_due_date=due),
        occurrences=occurrences,
    )


def plan_generation(
    rules: Iterable[RecurringRule],
    today: date,
    max_iterations: int = MAX_CATCHUP_ITERATIONS,
) -> GenerationPlan:
    plan = GenerationPlan()
    for rule in rules:
        try:
            advance = advance_rule(rule, today, max_iterations)
        except (ValueError, TypeError, OverflowError) as e:
            logger.warning("[recurring] rule=%s skipped: %s", rule.id, e)
            plan.errors.append(RuleFailure(rule.id, str(e)))
            continue
        if advance is not None:
            plan.advances.append(advance)
    return plan


def generate_due(
    rules: Iterable[RecurringRule],
    today: date,
    persist_occurrence: PersistOccurrence,
    persist_rule_update: PersistRuleUpdate,
    unit_of_work: Callable[[], ContextManager] | None = None,
    max_iterations: int = MAX_CATCHUP_ITERATIONS,
) -> GenerationResult:
    """Generate every due occurrence up to and including today.

    persist_occurrence receives each GeneratedOccurrence; persist_rule_update
    receives (rule_id, last_generated_date, next_due_date). When unit_of_work
    is given, each rule's writes happen inside one ``with unit_of_work():``
    block, which must roll back if the block raises.
    """
    plan = plan_generation(rules, today, max_iterations)
    result = GenerationResult(errors=list(plan.errors))

    for advance in plan.advances:
        rule = advance.rule
        try:
            with unit_of_work() if unit_of_work else nullcontext():
                for occurrence in advance.occurrences:
                    persist_occurrence(occurrence)
                persist_rule_update(rule.id, rule.last_generated_date, rule.next_due_date)
        except Exception as e:
            logger.exception("[recurring] rule=%s could not be saved", rule.id)
            result.errors.append(RuleFailure(rule.id, f"Persistence failed: {e}"))
            continue
        result.occurrences.extend(advance.occurrences)
        result.updated_rules.append(rule)
        logger.debug(
            "[recurring] rule=%s generated=%d next_due=%s",
            rule.id, len(advance.occurrences), rule.next_due_date,
        )

    return result
