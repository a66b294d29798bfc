from __future__ import annotations

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

LOGGER_NAME = "pdfwatch"
LOG_FORMAT = "%(asctime)s [%(levelname)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

APP_LOG_BACKUP_DAYS = 30
ERROR_LOG_BACKUP_DAYS = 60


def configure_logging(*, level: str, log_folder: Path) -> logging.Logger:
    """
    Console plus two daily-rotated files under `log_folder`.

    app.log receives INFO and above, error.log ERROR and above; the console
    follows `level`. Calling again replaces the previous handlers.
    """

    log_folder.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    app_handler = TimedRotatingFileHandler(
        log_folder / "app.log", when="midnight", backupCount=APP_LOG_BACKUP_DAYS, encoding="utf-8"
    )
    app_handler.setLevel(logging.INFO)

    error_handler = TimedRotatingFileHandler(
        log_folder / "error.log", when="midnight", backupCount=ERROR_LOG_BACKUP_DAYS, encoding="utf-8"
    )
    error_handler.setLevel(logging.ERROR)

    console = logging.StreamHandler(sys.stdout)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    for handler in (app_handler, error_handler, console):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False
    return logger
