import argparse
import os
import sys
import customtkinter as ctk

# Ensure project root is on sys.path when run directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from database.db_manager import DatabaseManager
from database.recurring_dao import RecurringDAO
from database.transaction_dao import TransactionDAO

from services.generation_engine import GenerationResult
from services.recurring_service import RecurringService

from ui.app_window import AppWindow

from utils.app_config import get_db_folder, get_log_level
from utils.date_helpers import parse_date
from utils.logging_setup import configure_logging, get_logger

logger = get_logger("main")


def _cli_date(value: str):
    parsed = parse_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD")
    return parsed


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Pocket Budget")
    parser.add_argument(
        "--headless", action="store_true",
        help="generate due recurring transactions, print a summary and exit",
    )
    parser.add_argument(
        "--date", type=_cli_date, default=None,
        help="treat this YYYY-MM-DD date as today (headless runs)",
    )
    return parser.parse_args(argv)


def _summary(result: GenerationResult | None) -> str:
    if result is None:
        return "Recurring items already generated today."
    lines = [f"{len(result.occurrences)} recurring transaction(s) added."]
    if not result.ok:
        lines.append("Error setting up recurring items:")
        lines += [f"  rule {f.rule_id}: {f.reason}" for f in result.errors]
    return "\n".join(lines)


def main(argv=None) -> int:
    args = _parse_args(argv)

    # ── Bootstrap: config and logging before the DB ─────────────────────────
    configure_logging(get_log_level())

    # ── Database ─────────────────────────────────────────────────────────────
    db = DatabaseManager.open_default(db_folder=get_db_folder())

    # ── DAOs / services ──────────────────────────────────────────────────────
    recurring_svc = RecurringService(RecurringDAO(db), TransactionDAO(db), db)

    # ── Apply due recurring rules ────────────────────────────────────────────
    result = recurring_svc.apply_due_rules_if_needed(args.date)
    if result is None:
        logger.info("[recurring] Startup pass skipped; already ran today")

    if args.headless:
        print(_summary(result))
        reminder = recurring_svc.upcoming_reminder(reference_date=args.date)
        if reminder:
            print(reminder)
        db.close()
        return 0 if result is None or result.ok else 1

    ctk.set_appearance_mode(db.get_setting("appearance_mode", "system"))
    ctk.set_default_color_theme("blue")

    app = AppWindow(
        recurring_service=recurring_svc,
        startup_result=result,
        currency_symbol=db.get_setting("currency_symbol", "$"),
    )

    def on_close():
        db.close()
        app.destroy()

    app.protocol("WM_DELETE_WINDOW", on_close)
    app.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
