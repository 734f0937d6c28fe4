"""System logger for operational events.

This module provides a singleton system logger for logging operational events
that are not request records (reporter failures surfaced by the registry's
error channel, reporter enable/disable transitions, log rotation problems).

Handlers:
- stderr: INFO and above, one readable line per event
- <log_dir>/system.jsonl: WARNING and above, one JSON object per line

The file handler is configured separately via configure_system_logger_file()
once the log directory from config is available.
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_console_logger",
    "get_system_logger",
]

import logging
import sys
from pathlib import Path

from bweb_log.constants import APP_NAME
from bweb_log.utils.logging.iso_formatter import ISO8601Formatter


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Dict messages print their "message" (or "event") field only.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Render as ``LEVEL [logger]: text``."""
        if isinstance(record.msg, dict):
            msg = record.msg.get("message") or record.msg.get("event", "")
        else:
            msg = record.getMessage()
        return f"{record.levelname} [{record.name}]: {msg}"


_system_logger: logging.Logger | None = None
# File behind the system logger's JSONL handler, once attached
_system_log_path: Path | None = None


def _stderr_handler(level: int = logging.NOTSET) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ConsoleFormatter())
    return handler


def get_system_logger() -> logging.Logger:
    """Return the process-wide ``bweb-log.system`` logger.

    Built on first use with a stderr handler; the JSONL file handler is
    attached by configure_system_logger_file().

    Example:
        >>> log = get_system_logger()
        >>> log.warning({"event": "reporter_failed", "reporter_id": "file"})
    """
    global _system_logger

    if _system_logger is None:
        logger = logging.getLogger(f"{APP_NAME}.system")
        logger.setLevel(logging.INFO)
        logger.propagate = False

        # Handlers left over from an earlier import (e.g. module reload)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

        logger.addHandler(_stderr_handler(logging.INFO))
        _system_logger = logger

    return _system_logger


def configure_system_logger_file(log_path: Path) -> None:
    """Also write WARNING and above to ``log_path`` as JSON lines.

    Only the first call attaches a handler; later calls are ignored.

    Args:
        log_path: System log file, usually ``<log_dir>/system.jsonl``.
    """
    global _system_log_path

    if _system_log_path is not None:
        return

    logger = get_system_logger()

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        logger.warning(
            {
                "event": "system_log_unavailable",
                "message": f"Cannot create log directory {log_path.parent}, using stderr only",
            }
        )
        return

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setLevel(logging.WARNING)
    handler.setFormatter(ISO8601Formatter())
    logger.addHandler(handler)

    _system_log_path = log_path


def get_console_logger(name: str) -> logging.Logger:
    """Get the stderr logger used by a console reporter.

    Args:
        name: Reporter logger name (e.g. ``node-http-console``).

    Returns:
        logging.Logger named ``bweb-log.<name>``, DEBUG level, stderr output.
    """
    logger = logging.getLogger(f"{APP_NAME}.{name}")
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        logger.addHandler(_stderr_handler())
    return logger
