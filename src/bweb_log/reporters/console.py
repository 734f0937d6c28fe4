"""Console reporter: one line per finished request on stderr."""

from __future__ import annotations

__all__ = ["ConsoleOptions", "ConsoleReporter"]

import logging
from typing import Literal

from bweb_log.interceptor import RequestInfo, RequestMetadata, ResponseRecorder
from bweb_log.reporters.base import AbstractReporter, ReporterContext, ReporterOptions
from bweb_log.telemetry.system import get_console_logger


class ConsoleOptions(ReporterOptions):
    level: Literal["DEBUG", "INFO"] = "INFO"


class ConsoleReporter(AbstractReporter):
    """Logs ``<elapsed> - <status> - <METHOD> - <path>`` through ``bweb-log.<name>-console``."""

    id = "console"
    options_model = ConsoleOptions

    def __init__(self, context: ReporterContext, options: ConsoleOptions | None = None) -> None:
        super().__init__(context, options)
        self.logger = get_console_logger(f"{context.name}-console")

    async def on_finish(self, request: RequestInfo, response: ResponseRecorder, metadata: RequestMetadata) -> None:
        level = logging.getLevelName(self.options.level)
        self.logger.log(
            level,
            "%s - %s - %s - %s",
            metadata.elapsed_str,
            metadata.status_code,
            request.method,
            request.path,
        )
