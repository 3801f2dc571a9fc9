"""Logging setup: a quiet root logger and the application logger `src` with console and optional file output."""

import logging
import sys
from pathlib import Path
from typing import Optional

APP_LOGGER_NAME = "src"


def setup_logging(debug: bool = False, level: str = "INFO", log_dir: Optional[Path] = None) -> logging.Logger:
    """Configure the application logger. Every module logs through logging.getLogger(__name__) below 'src'."""

    # Keep dependencies quiet unless something goes wrong
    logging.getLogger().setLevel(logging.WARNING)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(logging.DEBUG if debug else level)

    # avoid stacking handlers if called more than once (tests, reloads)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    console_formatter = logging.Formatter("%(levelname)s [%(name)s] %(message)s")
    file_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(logging.DEBUG if debug else level)
    app_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / "amazons.log")
        file_handler.setFormatter(file_formatter)
        file_handler.setLevel(logging.DEBUG)
        app_logger.addHandler(file_handler)

    return app_logger
