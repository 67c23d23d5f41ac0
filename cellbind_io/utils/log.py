"""Logging helpers shared by the engine and the application logger."""

# Module responsibilities:
# - Attach a rotating file handler and a stderr handler to a named logger exactly once.
# - Render ``extra=`` context as trailing key=value pairs so structured fields reach the log file.

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

DEFAULT_LOG_BASE = Path.home() / ".cellbind" / "logs"
LOG_DIR_ENV = "CELLBIND_LOG_DIR"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}
_CONFIGURED: set[str] = set()


class ContextFormatter(logging.Formatter):
    """Formatter appending ``extra=`` fields to the message."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED and not key.startswith("_")
        }
        if not context:
            return text
        return text + " | " + " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))


def resolve_log_dir(log_dir: Optional[Path] = None, fallback: Optional[Path] = None) -> Path:
    """Pick the log directory: explicit argument, then ``CELLBIND_LOG_DIR``, then ``fallback``."""

    env_dir = os.getenv(LOG_DIR_ENV)
    target = Path(log_dir) if log_dir else Path(env_dir) if env_dir else (fallback or DEFAULT_LOG_BASE)
    target.mkdir(parents=True, exist_ok=True)
    return target


def configure_logger(
    name: str,
    log_path: Path,
    *,
    level: int = logging.INFO,
    console_level: int = logging.WARNING,
) -> logging.Logger:
    """Configure ``name`` once with rotating file + console handlers; later calls are no-ops."""

    logger = logging.getLogger(name)
    if name in _CONFIGURED:
        return logger

    formatter = ContextFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(console_level)

    logger.setLevel(level)
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    logger.propagate = False

    _CONFIGURED.add(name)
    return logger


def get_logger(name: str, log_dir: Optional[Path] = None) -> logging.Logger:
    """Return a logger scoped under ``cellbind_io``.

    Args:
        name: Logger name suffix appended to the package logger namespace.
        log_dir: Optional override for the logging directory.
    """

    configure_logger("cellbind_io", resolve_log_dir(log_dir) / "cellbind_io.log")
    return logging.getLogger(f"cellbind_io.{name}")
