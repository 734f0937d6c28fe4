"""System operational logging.

Provides the system logger for operational events that are not request
records (reporter failures, enable/disable transitions, store rotation).
"""

from bweb_log.telemetry.system.system_logger import (
    ConsoleFormatter,
    configure_system_logger_file,
    get_console_logger,
    get_system_logger,
)

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_console_logger",
    "get_system_logger",
]
