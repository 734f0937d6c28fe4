"""File reporter: begin/finish records appended to a rotating JSONL file.

Begin record::

    {"timestamp": 1700000000000, "date": "2023-11-14T22:13:20.000Z",
     "type": "begin",
     "request": {"method": "POST", "pathname": "/wallet/primary/send",
                 "params": {...}, "query": {...}, "body": {...},
                 "start": 8721993812}}

The finish record repeats the request fields (without ``start``) and adds
``response`` (timing, status, error, and the body when ``response`` is on).
``token`` and ``passphrase`` values are masked; ``params``, ``query`` and
``body`` are dropped when empty or when the ``params`` option is off.
"""

from __future__ import annotations

__all__ = ["FileOptions", "FileReporter", "StoreSettings", "split_store_settings"]

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bweb_log.exceptions import ConfigError, ResourceError, StoreWriteError
from bweb_log.interceptor import RequestInfo, RequestMetadata, ResponseRecorder
from bweb_log.reporters.base import AbstractReporter, ReporterContext, ReporterOptions
from bweb_log.store import RotatingLogStore
from bweb_log.telemetry.models import RequestBeginRecord, RequestFinishRecord, RequestSummary
from bweb_log.utils.redaction import filter_object
from bweb_log.utils.validation import format_validation_errors, validation_errors_from_pydantic


class StoreSettings(BaseModel):
    """Enable-time settings of a reporter's rotating store (not runtime options)."""

    file_name: str | None = Field(default=None, min_length=1)
    max_file_size: int = Field(gt=0)
    max_files: int = Field(ge=0)

    model_config = ConfigDict(extra="forbid")


def split_store_settings(
    context: ReporterContext,
    config: Mapping[str, Any],
    reporter_id: str,
) -> tuple[StoreSettings, dict[str, Any]]:
    """Separate store settings from runtime options in enable-time config.

    Store settings missing from ``config`` come from the startup config.

    Returns:
        ``(store_settings, remaining_options)``

    Raises:
        ConfigError: If a store setting is invalid.
    """
    remaining = dict(config)
    data = {
        "file_name": remaining.pop("file_name", None),
        "max_file_size": remaining.pop("max_file_size", context.config.max_file_size),
        "max_files": remaining.pop("max_files", context.config.max_files),
    }
    try:
        settings = StoreSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid store settings for reporter {reporter_id}: {format_validation_errors(e)}",
            validation_errors=validation_errors_from_pydantic(e),
        ) from e
    return settings, remaining


class FileOptions(ReporterOptions):
    params: bool = True
    response: bool = False


class FileReporter(AbstractReporter):
    id = "file"
    options_model = FileOptions

    def __init__(
        self,
        context: ReporterContext,
        options: FileOptions | None = None,
        settings: StoreSettings | None = None,
    ) -> None:
        super().__init__(context, options)
        if settings is None:
            settings, _ = split_store_settings(context, {}, self.id)
        self.path = context.location(settings.file_name or f"{context.name}.log")
        self.store = RotatingLogStore(self.path, settings.max_file_size, settings.max_files)

    @classmethod
    def init(cls, context: ReporterContext, config: Mapping[str, Any]) -> FileReporter:
        """Build from startup config overridden by ``config``.

        Accepts ``file_name``, ``max_file_size``, ``max_files`` and the
        runtime options ``params`` and ``response``.
        """
        config = {"file_name": context.config.file_name, **config}
        settings, remaining = split_store_settings(context, config, cls.id)
        remaining = {"params": context.config.file_params, "response": context.config.file_response, **remaining}
        return cls(context, cls.parse_options(remaining), settings)

    async def open(self) -> None:
        try:
            await self.store.open()
        except StoreWriteError as e:
            raise ResourceError(f"Cannot open request log {self.path}: {e}") from e

    async def close(self) -> None:
        await self.store.close()

    def _request_summary(self, request: RequestInfo, start: int | None = None) -> RequestSummary:
        log_params = self.options.params
        return RequestSummary(
            method=request.method,
            pathname=request.path,
            params=filter_object(request.path_params, log_params),
            query=filter_object(request.query, log_params),
            body=filter_object(request.body, log_params),
            start=start,
        )

    async def on_begin(self, request: RequestInfo, metadata: RequestMetadata) -> None:
        record = RequestBeginRecord(request=self._request_summary(request, metadata.start_ns))
        await self.store.write_record(record)

    async def on_finish(self, request: RequestInfo, response: ResponseRecorder, metadata: RequestMetadata) -> None:
        record = RequestFinishRecord(
            request=self._request_summary(request),
            response=metadata.response_summary(include_body=self.options.response),
        )
        await self.store.write_record(record)
