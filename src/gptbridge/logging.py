"""Logging setup for gptbridge.

Library modules log through ``logging.getLogger(__name__)`` below the
``gptbridge`` namespace. Applications that want a log file call
``configure_logger`` once; repeated calls never duplicate handlers.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gptbridge.config import LogLevel
from gptbridge.paths import get_gptbridge_home

ROOT_LOGGER_NAME = "gptbridge"


def default_log_path(base_dir: Path | None = None) -> Path:
    directory = base_dir if base_dir is not None else get_gptbridge_home()
    return directory / "gptbridge.log"


def configure_logger(
    log_level: LogLevel | str = LogLevel.INFO,
    *,
    log_path: Path | None = None,
) -> logging.Logger:
    """Configure and return the package logger writing to ``log_path``.

    Subsequent calls only adjust the level and return the same logger.
    """

    logger = logging.getLogger(ROOT_LOGGER_NAME)

    level_value = _to_logging_level(log_level)
    logger.setLevel(level_value)
    logger.propagate = False

    if not logger.handlers:
        path = log_path if log_path is not None else default_log_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level_value)

    return logger


def reset_logger() -> None:
    """Detach and close every handler installed by ``configure_logger``."""

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


def _to_logging_level(value: LogLevel | str) -> int:
    mapping = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
    }
    if isinstance(value, LogLevel):
        return mapping[value]
    if isinstance(value, str):
        try:
            return mapping[LogLevel(value)]
        except ValueError:
            return logging.WARNING
    return logging.WARNING


__all__ = [
    "ROOT_LOGGER_NAME",
    "configure_logger",
    "default_log_path",
    "reset_logger",
]
