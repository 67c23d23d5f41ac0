from __future__ import annotations

import logging
from pathlib import Path

from cellbind_io.utils.log import configure_logger, resolve_log_dir

from .profiles import _work_dir

APP_LOGGER = "cellbind"
ENGINE_LOGGER = "cellbind_io"


def get_logger(log_dir: Path | None = None) -> logging.Logger:
    """Return the application logger writing to <work>/logs/app.log.

    ``CELLBIND_LOG_DIR`` takes precedence over the work directory.
    """
    base = resolve_log_dir(log_dir, fallback=_work_dir() / "logs")
    return configure_logger(APP_LOGGER, base / "app.log")


def set_level(level_name: str) -> int:
    """Apply ``level_name`` (DEBUG/INFO/...) to the application and engine loggers."""
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")
    get_logger().setLevel(level)
    logging.getLogger(ENGINE_LOGGER).setLevel(level)
    return level
