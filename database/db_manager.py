import os
import sqlite3
from contextlib import contextmanager
from utils.constants import DB_FILE


class DatabaseManager:
    def __init__(self, db_path: str | None = None):
        self.db_path = db_path or DB_FILE
        self._conn: sqlite3.Connection | None = None
        self._tx_depth = 0

    def get_connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def initialize(self):
        """Create schema and seed defaults."""
        conn = self.get_connection()
        self._create_schema(conn)
        self._seed_defaults(conn)
        conn.commit()

    def _create_schema(self, conn: sqlite3.Connection):
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS recurring_rules (
                id                   INTEGER PRIMARY KEY AUTOINCREMENT,
                name                 TEXT NOT NULL,
                type                 TEXT NOT NULL CHECK(type IN ('income','expense')),
                amount               REAL NOT NULL,
                category             TEXT NOT NULL,
                note                 TEXT NOT NULL DEFAULT '',
                frequency            TEXT NOT NULL,
                custom_interval_days INTEGER NOT NULL DEFAULT 1,
                weekdays             TEXT,
                day_of_month         INTEGER,
                start_date           TEXT NOT NULL,
                end_date             TEXT,
                last_generated_date  TEXT,
                next_due_date        TEXT NOT NULL,
                is_active            INTEGER NOT NULL DEFAULT 1,
                created_at           TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE TABLE IF NOT EXISTS transactions (
                id                INTEGER PRIMARY KEY AUTOINCREMENT,
                type              TEXT NOT NULL CHECK(type IN ('income','expense')),
                amount            REAL NOT NULL CHECK(amount > 0),
                category          TEXT NOT NULL,
                description       TEXT NOT NULL DEFAULT '',
                date              TEXT NOT NULL,
                origin            TEXT NOT NULL DEFAULT 'manual'
                                  CHECK(origin IN ('manual','recurring')),
                recurring_rule_id INTEGER REFERENCES recurring_rules(id) ON DELETE SET NULL,
                created_at        TEXT NOT NULL DEFAULT (datetime('now'))
            );

            CREATE INDEX IF NOT EXISTS idx_transactions_date      ON transactions(date);
            CREATE INDEX IF NOT EXISTS idx_transactions_rule      ON transactions(recurring_rule_id);

            CREATE TABLE IF NOT EXISTS app_settings (
                key   TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
        """)

    def _seed_defaults(self, conn: sqlite3.Connection):
        defaults = [
            ("appearance_mode", "system"),
            ("currency_symbol", "$"),
        ]
        for key, value in defaults:
            conn.execute(
                "INSERT OR IGNORE INTO app_settings(key, value) VALUES (?, ?)",
                (key, value),
            )

    def commit(self):
        """Commit now, or defer to the enclosing transaction() block."""
        if self._tx_depth == 0:
            self.get_connection().commit()

    @contextmanager
    def transaction(self):
        """Group DAO writes into one atomic unit; rolls back if the block raises."""
        conn = self.get_connection()
        self._tx_depth += 1
        try:
            yield conn
        except BaseException:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                conn.rollback()
            raise
        else:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                conn.commit()

    def get_setting(self, key: str, default: str = "") -> str:
        conn = self.get_connection()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else default

    def set_setting(self, key: str, value: str):
        conn = self.get_connection()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings(key, value) VALUES (?, ?)",
            (key, value),
        )
        self.commit()

    @staticmethod
    def open_default(db_folder: str | None = None) -> "DatabaseManager":
        """Startup factory: opens (creating if needed) the app database.

        db_folder: if provided, the DB file is stored in that directory instead of CWD.
        """
        if db_folder:
            os.makedirs(db_folder, exist_ok=True)
            path = os.path.join(db_folder, DB_FILE)
        else:
            path = DB_FILE
        db = DatabaseManager(path)
        db.initialize()
        return db

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None
