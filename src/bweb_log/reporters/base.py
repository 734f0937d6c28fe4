"""Reporter capability contract.

A reporter consumes request lifecycle events from the registry. Subclasses
set ``id``, may declare runtime options as a ReporterOptions model, and
implement ``on_finish`` (``on_begin`` is optional).

Lifecycle (driven by the registry, never by the reporter itself):

    reporter = MyReporter.init(context, config)   # validate, construct
    await reporter.open()                         # acquire resources
    ... on_begin / on_finish ...                  # only after open succeeded
    await reporter.close()                        # safe after a failed open

Runtime options are a frozen model. set_configuration() validates a full
replacement and installs it with one reference swap, so concurrent fan-out
sees either the old or the new options, never a mix.
"""

from __future__ import annotations

__all__ = [
    "AbstractReporter",
    "ReporterContext",
    "ReporterOptions",
]

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, ValidationError

from bweb_log.config import WeblogConfig
from bweb_log.exceptions import ConfigError
from bweb_log.utils.validation import format_validation_errors, validation_errors_from_pydantic

if TYPE_CHECKING:
    from bweb_log.interceptor import RequestInfo, RequestMetadata, ResponseRecorder


class ReporterOptions(BaseModel):
    """Base for runtime-adjustable reporter options (none by default)."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)


@dataclass(frozen=True)
class ReporterContext:
    """What a reporter knows about the logger it reports for.

    Attributes:
        name: Logger name, e.g. ``node-http``. Used for file and logger names.
        config: Startup configuration.
        logger: System logger for operational events.
    """

    name: str
    config: WeblogConfig
    logger: logging.Logger

    @property
    def log_dir(self) -> Path:
        return self.config.log_path

    def location(self, file_name: str) -> Path:
        return self.config.location(file_name)


def _validate(model: type[ReporterOptions], data: Mapping[str, Any], reporter_id: str) -> ReporterOptions:
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(
            f"Invalid options for reporter {reporter_id}: {format_validation_errors(e)}",
            validation_errors=validation_errors_from_pydantic(e),
        ) from e


class AbstractReporter(ABC):
    """Base class for all reporters."""

    id: ClassVar[str]
    options_model: ClassVar[type[ReporterOptions]] = ReporterOptions

    def __init__(self, context: ReporterContext, options: ReporterOptions | None = None) -> None:
        self.context = context
        self._options = options if options is not None else self.options_model()

    @classmethod
    def default_config(cls) -> dict[str, Any]:
        """Enable-time configuration used when the caller passes none."""
        return {}

    @classmethod
    def init(cls, context: ReporterContext, config: Mapping[str, Any]) -> AbstractReporter:
        """Construct an unopened reporter from merged enable-time config.

        Raises:
            ConfigError: If ``config`` is not valid for this reporter.
        """
        return cls(context, cls.parse_options(config))

    @classmethod
    def parse_options(cls, data: Mapping[str, Any]) -> ReporterOptions:
        """Validate a complete options mapping.

        Raises:
            ConfigError: On unknown fields or wrong types.
        """
        return _validate(cls.options_model, data, cls.id)

    @property
    def options(self) -> ReporterOptions:
        return self._options

    async def open(self) -> None:
        """Acquire resources.

        Raises:
            ResourceError: If the backing resource is unavailable.
        """

    async def close(self) -> None:
        """Release resources; must not fail for resources never acquired."""

    async def on_begin(self, request: RequestInfo, metadata: RequestMetadata) -> None:
        """Called before the handler runs. Metadata is read-only here."""

    @abstractmethod
    async def on_finish(self, request: RequestInfo, response: ResponseRecorder, metadata: RequestMetadata) -> None:
        """Called after the handler completed or failed, with finished metadata."""

    def get_configuration(self) -> dict[str, Any]:
        return self._options.model_dump(mode="json")

    def set_configuration(self, partial: Mapping[str, Any]) -> dict[str, Any]:
        """Apply a partial options update (all or nothing).

        Args:
            partial: Option fields to change.

        Returns:
            The complete options after the update.

        Raises:
            ConfigError: On unknown fields or wrong types; options are unchanged.
        """
        if not isinstance(partial, Mapping):
            raise ConfigError(f"Options for reporter {self.id} must be an object")

        merged = {**self._options.model_dump(), **partial}
        self._options = self.parse_options(merged)
        return self.get_configuration()
