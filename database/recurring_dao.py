from datetime import date
from typing import Optional
from database.db_manager import DatabaseManager
from models.recurring_rule import RecurringRule
from utils.date_helpers import parse_date, format_date


def _weekdays_to_str(weekdays: tuple[int, ...] | None) -> str | None:
    if weekdays is None:
        return None
    return ",".join(str(d) for d in sorted(weekdays))


def _weekday_or_zero(part: str) -> int:
    try:
        return int(part)
    except ValueError:
        return 0


def _weekdays_from_str(value: str | None) -> tuple[int, ...] | None:
    # Bad rows must still load so validation reports them per rule:
    # '' becomes an empty set and unparseable tokens become 0.
    if value is None:
        return None
    return tuple(_weekday_or_zero(part) for part in str(value).split(",") if part.strip())


def _date_or_none(d: date | None) -> str | None:
    return format_date(d) if d else None


class RecurringDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> RecurringRule:
        return RecurringRule(
            id=row["id"],
            name=row["name"],
            type=row["type"],
            amount=row["amount"],
            category=row["category"],
            frequency=row["frequency"],
            start_date=parse_date(row["start_date"]),
            next_due_date=parse_date(row["next_due_date"]),
            is_active=bool(row["is_active"]),
            custom_interval_days=row["custom_interval_days"],
            weekdays=_weekdays_from_str(row["weekdays"]),
            day_of_month=row["day_of_month"],
            end_date=parse_date(row["end_date"]),
            last_generated_date=parse_date(row["last_generated_date"]),
            note=row["note"],
        )

    def get_all(self) -> list[RecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM recurring_rules ORDER BY name, id"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_active(self) -> list[RecurringRule]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM recurring_rules WHERE is_active = 1 ORDER BY name, id"
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, rule_id: int) -> Optional[RecurringRule]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM recurring_rules WHERE id = ?", (rule_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def create(self, rule: RecurringRule) -> RecurringRule:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO recurring_rules
               (name, type, amount, category, note, frequency,
                custom_interval_days, weekdays, day_of_month, start_date,
                end_date, last_generated_date, next_due_date, is_active)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                rule.name, rule.type, rule.amount, rule.category, rule.note,
                rule.frequency, rule.custom_interval_days,
                _weekdays_to_str(rule.weekdays), rule.day_of_month,
                format_date(rule.start_date), _date_or_none(rule.end_date),
                _date_or_none(rule.last_generated_date),
                format_date(rule.next_due_date), 1 if rule.is_active else 0,
            ),
        )
        self._db.commit()
        return self.get_by_id(cursor.lastrowid)

    def update(self, rule: RecurringRule) -> RecurringRule:
        conn = self._db.get_connection()
        conn.execute(
            """UPDATE recurring_rules SET
               name=?, type=?, amount=?, category=?, note=?, frequency=?,
               custom_interval_days=?, weekdays=?, day_of_month=?,
               start_date=?, end_date=?, last_generated_date=?,
               next_due_date=?, is_active=?
               WHERE id=?""",
            (
                rule.name, rule.type, rule.amount, rule.category, rule.note,
                rule.frequency, rule.custom_interval_days,
                _weekdays_to_str(rule.weekdays), rule.day_of_month,
                format_date(rule.start_date), _date_or_none(rule.end_date),
                _date_or_none(rule.last_generated_date),
                format_date(rule.next_due_date), 1 if rule.is_active else 0,
                rule.id,
            ),
        )
        self._db.commit()
        return self.get_by_id(rule.id)

    def set_active(self, rule_id: int, is_active: bool, next_due_date: date | None = None):
        conn = self._db.get_connection()
        if next_due_date is None:
            conn.execute(
                "UPDATE recurring_rules SET is_active = ? WHERE id = ?",
                (1 if is_active else 0, rule_id),
            )
        else:
            conn.execute(
                "UPDATE recurring_rules SET is_active = ?, next_due_date = ? WHERE id = ?",
                (1 if is_active else 0, format_date(next_due_date), rule_id),
            )
        self._db.commit()

    def update_schedule(self, rule_id: int, last_generated_date: date, next_due_date: date):
        conn = self._db.get_connection()
        cursor = conn.execute(
            """UPDATE recurring_rules
               SET last_generated_date = ?, next_due_date = ?
               WHERE id = ?""",
            (format_date(last_generated_date), format_date(next_due_date), rule_id),
        )
        if cursor.rowcount != 1:
            raise LookupError(f"Recurring rule {rule_id} no longer exists")
        self._db.commit()

    def delete(self, rule_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM recurring_rules WHERE id = ?", (rule_id,))
        self._db.commit()
