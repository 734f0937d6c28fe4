"""Pydantic models for request log records (one JSON object per line).

Every logical request produces a ``begin`` and a ``finish`` record per
reporter. Records are immutable once built and self-contained: a reader can
parse any single line without the rest of the file, and the two records of
one request may end up in different files after rotation.

Serialization drops fields that are None on the models themselves, while
values inside captured bodies (including nulls) are kept as they were sent.
"""

from __future__ import annotations

__all__ = [
    "NameEvent",
    "NameEventRecord",
    "RecordModel",
    "RequestBeginRecord",
    "RequestFinishRecord",
    "RequestSummary",
    "ResponseSummary",
]

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic_core import to_jsonable_python

from bweb_log.utils.logging.iso_formatter import format_iso8601, utc_now_ms


class RecordModel(BaseModel):
    """Base for all record parts: frozen, no unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_record(self) -> dict[str, Any]:
        """JSON-compatible dict without the model's own None fields."""
        out: dict[str, Any] = {}
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, RecordModel):
                out[name] = value.to_record()
            else:
                out[name] = to_jsonable_python(value)
        return out


# ============================================================================
# Record parts
# ============================================================================


class RequestSummary(RecordModel):
    """Request-derived fields (already redacted)."""

    method: str | None = None
    pathname: str | None = None
    params: dict[str, Any] | None = None
    query: dict[str, Any] | None = None
    body: Any = None
    start: int | None = None  # monotonic ns, correlates begin/finish


class ResponseSummary(RecordModel):
    """Outcome of a finished request.

    Timing values are monotonic nanoseconds; ``elapsed_str`` is the
    human-readable duration (e.g. ``"1.25ms"``).
    """

    start: int
    end: int
    elapsed: int
    elapsed_str: str
    status_code: int | None = None
    error: dict[str, Any] | None = None
    body: Any = None


class NameEvent(RecordModel):
    """Wallet name operation extracted from a request."""

    wallet: str
    type: str  # upper-case operation, e.g. "BID"
    name: str
    broadcast: bool = True
    tx_hash: str | None = None
    extra: dict[str, Any] | None = None


# ============================================================================
# Records (one per line)
# ============================================================================


class _LineRecord(RecordModel):
    timestamp: int  # epoch ms
    date: str  # ISO 8601 UTC

    @model_validator(mode="before")
    @classmethod
    def _stamp(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            timestamp = data.setdefault("timestamp", utc_now_ms())
            data.setdefault("date", format_iso8601(timestamp / 1000))
        return data


class RequestBeginRecord(_LineRecord):
    """Written when a request enters the handler."""

    type: Literal["begin"] = "begin"
    request: RequestSummary


class RequestFinishRecord(_LineRecord):
    """Written after the handler completed or failed."""

    type: Literal["finish"] = "finish"
    request: RequestSummary
    response: ResponseSummary


class NameEventRecord(_LineRecord):
    """Name event record; begin carries ``request``, finish carries ``response``."""

    type: Literal["begin", "finish"]
    request: RequestSummary | None = None
    response: ResponseSummary | None = None
    name_event: NameEvent
