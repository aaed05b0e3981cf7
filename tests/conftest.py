"""Shared fixtures.

Every test that touches storage gets its own SQLite file under ``tmp_path`` so
runs never share state, and config reads are redirected away from the real
home directory.
"""
from datetime import date

import pytest

import utils.app_config as app_config
from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO
from models.recurring_rule import RecurringRule
from services.recurring_service import RecurringService


@pytest.fixture(autouse=True)
def _isolate_config(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    monkeypatch.setattr(app_config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(app_config, "CONFIG_FILE", config_dir / "config.json")


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "test.db"))
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def recurring_dao(db):
    return RecurringDAO(db)


@pytest.fixture
def tx_dao(db):
    return TransactionDAO(db)


@pytest.fixture
def service(db, recurring_dao, tx_dao):
    return RecurringService(recurring_dao, tx_dao, db)


@pytest.fixture
def make_rule():
    """Build an in-memory RecurringRule; next_due_date defaults to start_date."""

    def _make(**overrides) -> RecurringRule:
        fields = dict(
            id=1,
            name="Rent",
            type="expense",
            amount=100.0,
            category="bills",
            frequency="daily",
            start_date=date(2026, 1, 1),
        )
        fields.update(overrides)
        fields.setdefault("next_due_date", fields["start_date"])
        return RecurringRule(**fields)

    return _make
