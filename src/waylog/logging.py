"""Logging configuration for waylog.

Uses Python's standard logging module with support for:
- A daily-rotated log file under the project's ``.waylog/logs`` directory
- File override via config or the WAYLOG_LOG environment variable
- Stderr output only when stderr is a real console, so a wrapped TUI
  keeps a clean screen
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from waylog.config.schema import LoggingConfig

# Module-level logger
logger = logging.getLogger("waylog")

LOG_FILENAME = "waylog.log"
LOG_BACKUP_COUNT = 7

_initialized = False

_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class _LowercaseLevelFormatter(logging.Formatter):
    """Formatter that emits lowercase level names."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def _resolve_level(config: LoggingConfig | None, verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    if config and config.level:
        return _LEVEL_MAP.get(config.level.upper(), logging.INFO)
    return logging.INFO


def setup_logging(
    config: LoggingConfig | None = None,
    log_dir: Path | None = None,
    verbose: bool = False,
) -> None:
    """Initialize logging for the process.

    Call this once at startup, after the project root is known. Subsequent
    calls are no-ops.

    Args:
        config: Optional LoggingConfig with level and file settings.
        log_dir: Directory for the default rotating log file. Ignored when
            the config names an explicit file.
        verbose: Log everything at debug level and mirror it to stderr.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    log_level = _resolve_level(config, verbose)
    logger.setLevel(log_level)

    # Format: HH:MM:SS level: message
    formatter = _LowercaseLevelFormatter(
        "%(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S"
    )

    log_path: Path | None = None
    if config and config.file:
        log_path = Path(os.path.expanduser(config.file))
    elif os.environ.get("WAYLOG_LOG"):
        log_path = Path(os.path.expanduser(os.environ["WAYLOG_LOG"]))
    elif log_dir is not None:
        log_path = log_dir / LOG_FILENAME

    if log_path is not None:
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.TimedRotatingFileHandler(
                log_path,
                when="midnight",
                backupCount=LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[waylog] Failed to open log file: {e}", file=sys.stderr)

    if sys.stderr.isatty():
        # Only warnings reach the terminal unless asked otherwise
        _add_stderr_handler(formatter, log_level if verbose else logging.WARNING)


def _add_stderr_handler(formatter: logging.Formatter, level: int = logging.DEBUG) -> None:
    """Add a stderr handler to the logger."""
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)


def reset_logging() -> None:
    """Detach all handlers so setup_logging() can run again (for tests)."""
    global _initialized
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    _initialized = False


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Optional name for a child logger (e.g., "sync", "watcher").
              If None, returns the root waylog logger.

    Returns:
        A configured logger instance.
    """
    if name:
        return logger.getChild(name)
    return logger
