from datetime import date

import pytest

pytest.importorskip("customtkinter")

import main  # noqa: E402
import utils.app_config as app_config  # noqa: E402


def test_date_argument_is_parsed():
    assert main._parse_args(["--date", "2026-03-01"]).date == date(2026, 3, 1)
    assert main._parse_args([]).date is None


def test_invalid_date_argument_is_rejected(capsys):
    with pytest.raises(SystemExit):
        main._parse_args(["--date", "2026-13-40"])
    assert "invalid date" in capsys.readouterr().err


def test_headless_run(tmp_path, capsys):
    app_config.set_db_folder(str(tmp_path / "data"))
    assert main.main(["--headless", "--date", "2026-01-05"]) == 0
    assert "0 recurring transaction(s) added." in capsys.readouterr().out
    assert (tmp_path / "data" / "pocket_budget.db").exists()
