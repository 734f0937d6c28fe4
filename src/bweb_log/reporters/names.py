"""Name event reporter: wallet name operations as domain events.

Only ``POST /wallet/<id>/<op>`` requests with ``op`` in NAME_OPERATIONS are
considered. Fields are read from the merged request values (route params,
query, body) with lax typing, the way the wallet API itself accepts them.
A request without a usable ``name`` produces no event; optional extras that
fail validation are left out of the event.
"""

from __future__ import annotations

__all__ = ["NameReporter", "name_event_from_request"]

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bweb_log.constants import NAME_OPERATIONS, U64_MAX
from bweb_log.exceptions import ResourceError, StoreWriteError
from bweb_log.interceptor import RequestInfo, RequestMetadata, ResponseRecorder
from bweb_log.reporters.base import AbstractReporter, ReporterContext, ReporterOptions
from bweb_log.reporters.file import StoreSettings, split_store_settings
from bweb_log.store import RotatingLogStore
from bweb_log.telemetry.models import NameEvent, NameEventRecord, RequestSummary

U64 = Annotated[int, Field(ge=0, le=U64_MAX)]


class _NameFields(BaseModel):
    name: str = Field(min_length=1)
    broadcast: bool = True

    model_config = ConfigDict(extra="ignore")


class _BidExtra(BaseModel):
    bid: U64
    lockup: U64

    model_config = ConfigDict(extra="ignore")


class _TransferExtra(BaseModel):
    address: str = Field(min_length=1)

    model_config = ConfigDict(extra="ignore")


_EXTRAS: dict[str, type[BaseModel]] = {
    "bid": _BidExtra,
    "auction": _BidExtra,
    "transfer": _TransferExtra,
}


def name_event_from_request(request: RequestInfo) -> NameEvent | None:
    """Extract the name event of ``request``, or None if it is not one."""
    if request.method != "POST":
        return None
    if len(request.path_segments) != 3 or request.path_segments[0] != "wallet":
        return None

    wallet, operation = request.path_segments[1], request.path_segments[2]
    if operation not in NAME_OPERATIONS:
        return None

    values = request.values()
    try:
        fields = _NameFields.model_validate(values)
    except ValidationError:
        return None

    extra: dict[str, Any] | None = None
    extra_model = _EXTRAS.get(operation)
    if extra_model is not None:
        try:
            extra = extra_model.model_validate(values).model_dump()
        except ValidationError:
            extra = None

    return NameEvent(
        wallet=wallet,
        type=operation.upper(),
        name=fields.name,
        broadcast=fields.broadcast,
        extra=extra,
    )


def _tx_hash(body: Any) -> str | None:
    if isinstance(body, Mapping) and isinstance(body.get("hash"), str):
        return body["hash"]
    return None


class NameReporter(AbstractReporter):
    """Writes name events to ``<log_dir>/<name>-names.log``. Has no runtime options."""

    id = "names"

    def __init__(
        self,
        context: ReporterContext,
        options: ReporterOptions | None = None,
        settings: StoreSettings | None = None,
    ) -> None:
        super().__init__(context, options)
        if settings is None:
            settings, _ = split_store_settings(context, {}, self.id)
        self.path = context.location(settings.file_name or f"{context.name}-names.log")
        self.store = RotatingLogStore(self.path, settings.max_file_size, settings.max_files)

    @classmethod
    def init(cls, context: ReporterContext, config: Mapping[str, Any]) -> NameReporter:
        settings, remaining = split_store_settings(context, config, cls.id)
        return cls(context, cls.parse_options(remaining), settings)

    async def open(self) -> None:
        try:
            await self.store.open()
        except StoreWriteError as e:
            raise ResourceError(f"Cannot open name event log {self.path}: {e}") from e

    async def close(self) -> None:
        await self.store.close()

    async def on_begin(self, request: RequestInfo, metadata: RequestMetadata) -> None:
        event = name_event_from_request(request)
        if event is None:
            return
        record = NameEventRecord(
            type="begin",
            request=RequestSummary(start=metadata.start_ns),
            name_event=event,
        )
        await self.store.write_record(record)

    async def on_finish(self, request: RequestInfo, response: ResponseRecorder, metadata: RequestMetadata) -> None:
        event = name_event_from_request(request)
        if event is None:
            return
        tx_hash = _tx_hash(metadata.response_body)
        if tx_hash is not None:
            event = event.model_copy(update={"tx_hash": tx_hash})
        record = NameEventRecord(
            type="finish",
            response=metadata.response_summary(include_body=False),
            name_event=event,
        )
        await self.store.write_record(record)
