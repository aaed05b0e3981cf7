"""Logging configuration for Pocket Budget.

``configure_logging()`` attaches a single ``StreamHandler`` to the application
logger (``"pocket_budget"``) and is called once by ``main.py``. Modules only
call ``get_logger(__name__)`` and never attach handlers themselves.
"""
import logging
import os
import sys
from typing import IO

APP_LOGGER_NAME = "pocket_budget"
LOG_LEVEL_ENV = "POCKET_BUDGET_LOG_LEVEL"
_CONFIGURED = False


def _parse_level(level: int | str | None, use_env: bool = True) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = getattr(logging, name, None)
        if isinstance(numeric, int):
            return numeric
    env_val = os.getenv(LOG_LEVEL_ENV)
    if use_env and env_val:
        return _parse_level(env_val, use_env=False)
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the application logger exactly once.

    ``level`` may be an int or a level name. When it is None the
    POCKET_BUDGET_LOG_LEVEL environment variable is used, then INFO.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(APP_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    )
    logger.setLevel(_parse_level(level))
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a child of the application logger, silent until configured."""
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    if not _CONFIGURED and not app_logger.handlers:
        app_logger.addHandler(logging.NullHandler())
    return app_logger.getChild(name)
