"""bweb-log: request logging with live-configurable reporters for FastAPI servers."""

__version__ = "0.1.0"

from bweb_log.config import WeblogConfig, load_config
from bweb_log.logger import RequestLogger
from bweb_log.plugin import WeblogPlugin
from bweb_log.registry import ReporterDescriptor, ReporterErrorEvent, ReporterRegistry
from bweb_log.reporters import AbstractReporter, ReporterContext, ReporterOptions

__all__ = [
    "AbstractReporter",
    "ReporterContext",
    "ReporterDescriptor",
    "ReporterErrorEvent",
    "ReporterOptions",
    "ReporterRegistry",
    "RequestLogger",
    "WeblogConfig",
    "WeblogPlugin",
    "__version__",
    "load_config",
]
