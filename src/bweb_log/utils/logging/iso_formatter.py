"""Log formatting utilities for JSONL output.

Provides ISO 8601 timestamp formatting shared by the system logger's JSONL
file handler and by request log records.
"""

from __future__ import annotations

__all__ = ["ISO8601Formatter", "format_iso8601", "utc_now_ms"]

import json
import logging
import time
from datetime import datetime, timezone


def format_iso8601(epoch_seconds: float) -> str:
    """Format a UNIX timestamp as ISO 8601 UTC with milliseconds.

    Format: YYYY-MM-DDTHH:MM:SS.sssZ
    Example: 2025-12-04T10:48:37.123Z
    """
    return (
        datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def utc_now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class ISO8601Formatter(logging.Formatter):
    """Custom formatter with ISO 8601 timestamps (UTC) for JSONL output."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSONL with ISO 8601 timestamp.

        Args:
            record: The log record to format

        Returns:
            str: JSON-formatted log entry with timestamp
        """
        timestamp = format_iso8601(record.created)

        # Handle dict messages (structured logging)
        if isinstance(record.msg, dict):
            log_data = record.msg
        # Handle plain string/other messages (%-style args included)
        else:
            log_data = {"message": record.getMessage()}

        # Add timestamp and level as first fields
        log_entry = {"time": timestamp, "level": record.levelname, **log_data}
        return json.dumps(log_entry, default=str)
