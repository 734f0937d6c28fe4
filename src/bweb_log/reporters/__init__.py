"""Built-in reporters.

BUILTIN_REPORTERS lists the reporter classes every RequestLogger can enable:
``console``, ``file`` and ``names``.
"""

from bweb_log.reporters.base import AbstractReporter, ReporterContext, ReporterOptions
from bweb_log.reporters.console import ConsoleOptions, ConsoleReporter
from bweb_log.reporters.file import FileOptions, FileReporter
from bweb_log.reporters.names import NameReporter, name_event_from_request

BUILTIN_REPORTERS: tuple[type[AbstractReporter], ...] = (ConsoleReporter, FileReporter, NameReporter)

__all__ = [
    "AbstractReporter",
    "BUILTIN_REPORTERS",
    "ConsoleOptions",
    "ConsoleReporter",
    "FileOptions",
    "FileReporter",
    "NameReporter",
    "ReporterContext",
    "ReporterOptions",
    "name_event_from_request",
]
