import threading
from dataclasses import replace
from datetime import date, timedelta
from models.recurring_rule import RecurringRule
from models.transaction import GeneratedOccurrence, Transaction
from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from services.generation_engine import GenerationResult, generate_due
from services.schedule import (
    first_due_date, monthly_equivalent, next_due_date, occurrences_between,
    validate_classification, validate_rule,
)
from utils.constants import LAST_GENERATION_KEY, UPCOMING_REMINDER_DAYS
from utils.date_helpers import format_date, today
from utils.logging_setup import get_logger

logger = get_logger(__name__)


class RecurringService:
    def __init__(
        self,
        recurring_dao: RecurringDAO,
        tx_dao: TransactionDAO,
        db: DatabaseManager,
    ):
        self._dao = recurring_dao
        self._tx_dao = tx_dao
        self._db = db
        self._run_lock = threading.Lock()

    def get_all(self) -> list[RecurringRule]:
        return self._dao.get_all()

    def get_active(self) -> list[RecurringRule]:
        return self._dao.get_active()

    def get_by_id(self, rule_id: int) -> RecurringRule | None:
        return self._dao.get_by_id(rule_id)

    def create(
        self,
        name: str,
        type_: str,
        amount: float,
        category: str,
        frequency: str,
        start_date: date,
        custom_interval_days: int = 1,
        weekdays: tuple[int, ...] | None = None,
        day_of_month: int | None = None,
        end_date: date | None = None,
        note: str = "",
        reference_date: date | None = None,
    ) -> RecurringRule:
        """Store a new rule. Its first due date is on or after the reference date
        (default: today); periods before it are not backfilled."""
        if not name.strip():
            raise ValueError("Name cannot be empty.")
        rule = RecurringRule(
            id=None, name=name.strip(), type=type_, amount=amount,
            category=category, frequency=frequency, start_date=start_date,
            next_due_date=start_date, custom_interval_days=custom_interval_days,
            weekdays=tuple(weekdays) if weekdays is not None else None,
            day_of_month=day_of_month, end_date=end_date, note=note,
        )
        validate_classification(rule)
        validate_rule(rule)
        rule.next_due_date = first_due_date(rule, reference_date or today())
        return self._dao.create(rule)

    def update(
        self,
        rule_id: int,
        name: str,
        type_: str,
        amount: float,
        category: str,
        frequency: str,
        start_date: date,
        custom_interval_days: int = 1,
        weekdays: tuple[int, ...] | None = None,
        day_of_month: int | None = None,
        end_date: date | None = None,
        note: str = "",
        is_active: bool = True,
        reference_date: date | None = None,
    ) -> RecurringRule:
        """Edit a rule. Future due dates reflow from last_generated_date when
        the rule has produced anything, otherwise from the reference date."""
        existing = self._dao.get_by_id(rule_id)
        if existing is None:
            raise ValueError(f"Recurring rule {rule_id} not found.")
        if not name.strip():
            raise ValueError("Name cannot be empty.")
        rule = replace(
            existing, name=name.strip(), type=type_, amount=amount,
            category=category, frequency=frequency, start_date=start_date,
            next_due_date=start_date, custom_interval_days=custom_interval_days,
            weekdays=tuple(weekdays) if weekdays is not None else None,
            day_of_month=day_of_month, end_date=end_date, note=note,
            is_active=is_active,
        )
        validate_classification(rule)
        validate_rule(rule)
        rule.next_due_date = self._reanchor(rule, reference_date or today(), reflow=True)
        return self._dao.update(rule)

    def set_active(self, rule_id: int, is_active: bool, reference_date: date | None = None):
        """Pause or resume. Resuming skips the paused periods instead of backfilling."""
        rule = self._dao.get_by_id(rule_id)
        if rule is None:
            return
        if not is_active or rule.is_active:
            self._dao.set_active(rule_id, is_active)
            return
        resumed = self._reanchor(rule, reference_date or today(), reflow=False)
        self._dao.set_active(rule_id, True, next_due_date=resumed)

    def delete(self, rule_id: int):
        self._dao.delete(rule_id)

    def _reanchor(self, rule: RecurringRule, ref: date, reflow: bool) -> date:
        last = rule.last_generated_date
        if reflow and last is not None and last >= rule.start_date:
            return next_due_date(rule, last)
        on_or_after = ref
        if last is not None and last >= on_or_after:
            on_or_after = last + timedelta(days=1)
        return first_due_date(rule, on_or_after)

    # ── Queries ─────────────────────────────────────────────────────────────

    def get_upcoming(
        self,
        days: int = UPCOMING_REMINDER_DAYS,
        reference_date: date | None = None,
    ) -> list[RecurringRule]:
        """Active, not-ended rules due within `days` of the reference date."""
        ref = reference_date or today()
        horizon = ref + timedelta(days=days)
        upcoming = [
            r for r in self._dao.get_active()
            if r.next_due_date is not None
            and not (r.end_date and r.end_date < ref)
            and not (r.end_date and r.next_due_date > r.end_date)
            and r.next_due_date <= horizon
        ]
        return sorted(upcoming, key=lambda r: r.next_due_date)

    def upcoming_reminder(
        self,
        days: int = UPCOMING_REMINDER_DAYS,
        reference_date: date | None = None,
    ) -> str | None:
        """One-line notice of rules due soon, or None when nothing is due."""
        upcoming = self.get_upcoming(days, reference_date)
        if not upcoming:
            return None
        shown = ", ".join(f"{r.name} ({format_date(r.next_due_date)})" for r in upcoming[:3])
        if len(upcoming) > 3:
            shown += f" and {len(upcoming) - 3} more"
        noun = "item" if len(upcoming) == 1 else "items"
        return f"{len(upcoming)} recurring {noun} due in the next {days} days: {shown}"

    def project_for_period(self, start_date: date, end_date: date) -> list[dict]:
        """
        Return [{date, amount, type, rule_id}] for all active rules whose due
        dates fall within [start_date, end_date]. Malformed rules are logged
        and left out.
        """
        result = []
        for rule in self._dao.get_active():
            try:
                validate_rule(rule)
                dates = occurrences_between(rule, start_date, end_date)
            except (ValueError, TypeError, OverflowError) as e:
                logger.warning("[recurring] rule=%s left out of projection: %s", rule.id, e)
                continue
            for d in dates:
                result.append({
                    "date": d, "amount": rule.amount,
                    "type": rule.type, "rule_id": rule.id,
                })
        return sorted(result, key=lambda item: (item["date"], item["rule_id"]))

    def projected_totals(self, start_date: date, end_date: date) -> dict[str, float]:
        """Sum of projected amounts per type ('income' / 'expense') in the period."""
        totals = {"income": 0.0, "expense": 0.0}
        for item in self.project_for_period(start_date, end_date):
            totals[item["type"]] = totals.get(item["type"], 0.0) + item["amount"]
        return totals

    def expected_monthly_total(self, type_: str) -> float:
        return sum(
            monthly_equivalent(r) for r in self._dao.get_active() if r.type == type_
        )

    # ── Generation ──────────────────────────────────────────────────────────

    def apply_due_rules(self, reference_date: date | None = None) -> GenerationResult:
        """
        Generate all due recurring transactions up to reference_date (default: today).
        Only one pass may run at a time; a concurrent call returns an empty result.
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning("[recurring] Generation already running; skipped")
            return GenerationResult()
        try:
            ref = reference_date or today()
            rules = self._dao.get_all()
            logger.info("[recurring] Catch-up start (today=%s, rules=%d)", ref, len(rules))
            result = generate_due(
                rules, ref,
                persist_occurrence=self._persist_occurrence,
                persist_rule_update=self._dao.update_schedule,
                unit_of_work=self._db.transaction,
            )
            logger.info(
                "[recurring] Catch-up done: created=%d rules=%d errors=%d",
                len(result.occurrences), len(result.updated_rules), len(result.errors),
            )
            for failure in result.errors:
                logger.warning("[recurring]  - rule=%s: %s", failure.rule_id, failure.reason)
            return result
        finally:
            self._run_lock.release()

    def apply_due_rules_if_needed(self, reference_date: date | None = None) -> GenerationResult | None:
        """Run apply_due_rules at most once per day; None when already done today.

        The marker is only written after a pass without errors so failed rules
        are retried on the next start.
        """
        ref = reference_date or today()
        if self._db.get_setting(LAST_GENERATION_KEY) == format_date(ref):
            logger.debug("[recurring] Already generated for %s", ref)
            return None
        result = self.apply_due_rules(ref)
        if result.ok:
            self._db.set_setting(LAST_GENERATION_KEY, format_date(ref))
        return result

    def _persist_occurrence(self, occurrence: GeneratedOccurrence) -> Transaction:
        return self._tx_dao.create(
            type_=occurrence.type,
            amount=occurrence.amount,
            category=occurrence.category,
            date=occurrence.date,
            description=occurrence.description,
            origin=occurrence.origin,
            recurring_rule_id=occurrence.rule_id,
        )
