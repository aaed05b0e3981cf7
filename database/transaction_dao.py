from datetime import date
from typing import Optional
from database.db_manager import DatabaseManager
from models.transaction import Transaction
from utils.constants import ORIGIN_MANUAL
from utils.date_helpers import parse_date, format_date


class TransactionDAO:
    def __init__(self, db: DatabaseManager):
        self._db = db

    def _row_to_model(self, row) -> Transaction:
        return Transaction(
            id=row["id"],
            type=row["type"],
            amount=row["amount"],
            category=row["category"],
            description=row["description"],
            date=parse_date(row["date"]),
            origin=row["origin"],
            recurring_rule_id=row["recurring_rule_id"],
            created_at=row["created_at"],
        )

    def get_all(self, month: str | None = None) -> list[Transaction]:
        conn = self._db.get_connection()
        sql = "SELECT * FROM transactions"
        params: list = []
        if month:
            sql += " WHERE strftime('%Y-%m', date) = ?"
            params.append(month)
        sql += " ORDER BY date ASC, id ASC"
        rows = conn.execute(sql, params).fetchall()
        return [self._row_to_model(r) for r in rows]

    def get_by_id(self, tx_id: int) -> Optional[Transaction]:
        conn = self._db.get_connection()
        row = conn.execute(
            "SELECT * FROM transactions WHERE id = ?", (tx_id,)
        ).fetchone()
        return self._row_to_model(row) if row else None

    def get_by_rule(self, rule_id: int) -> list[Transaction]:
        conn = self._db.get_connection()
        rows = conn.execute(
            "SELECT * FROM transactions WHERE recurring_rule_id = ? ORDER BY date ASC, id ASC",
            (rule_id,),
        ).fetchall()
        return [self._row_to_model(r) for r in rows]

    def create(
        self,
        type_: str,
        amount: float,
        category: str,
        date: date,
        description: str = "",
        origin: str = ORIGIN_MANUAL,
        recurring_rule_id: int | None = None,
    ) -> Transaction:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """INSERT INTO transactions
               (type, amount, category, description, date, origin, recurring_rule_id)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                type_, amount, category, description, format_date(date),
                origin, recurring_rule_id,
            ),
        )
        self._db.commit()
        return self.get_by_id(cursor.lastrowid)

    def delete(self, tx_id: int):
        conn = self._db.get_connection()
        conn.execute("DELETE FROM transactions WHERE id = ?", (tx_id,))
        self._db.commit()
