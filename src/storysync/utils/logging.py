"""Logging setup for the storysync command line."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Iterable

__all__ = ["setup_logging", "log_file_path", "DEFAULT_QUIET_LOGGERS"]

DEFAULT_QUIET_LOGGERS: tuple[str, ...] = ("asyncio", "watchdog")
LOG_FILE_NAME = "storysync.log"
_DEFAULT_LOG_DIR = Path.home() / ".storysync" / "logs"
_MAX_BYTES = 1_000_000
_BACKUP_COUNT = 3
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_active_log_path: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    quiet_loggers: Iterable[str] = DEFAULT_QUIET_LOGGERS,
    console: bool = True,
    force: bool = False,
) -> Path:
    """Send log records to a rotating ``storysync.log`` and, optionally, stderr.

    Loggers named in ``quiet_loggers`` are held at ``WARNING`` or above
    whatever ``level`` is; watchdog alone logs every inotify event at
    ``DEBUG``. A second call returns the active log file untouched unless
    ``force`` is set.
    """

    global _active_log_path
    if _active_log_path is not None and not force:
        return _active_log_path

    log_path = log_file_path(log_dir)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=_MAX_BYTES, backupCount=_BACKUP_COUNT, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)

    quiet_level = max(level, logging.WARNING)
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(quiet_level)

    _active_log_path = log_path
    return log_path


def log_file_path(log_dir: Path | str | None = None) -> Path:
    """Resolve the log file: explicit ``log_dir``, then ``STORYSYNC_LOG_DIR``."""

    directory = log_dir or os.environ.get("STORYSYNC_LOG_DIR") or _DEFAULT_LOG_DIR
    return Path(directory).expanduser() / LOG_FILE_NAME
