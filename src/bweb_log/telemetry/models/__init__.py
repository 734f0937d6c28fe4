"""Pydantic models for request log records."""

from bweb_log.telemetry.models.records import (
    NameEvent,
    NameEventRecord,
    RecordModel,
    RequestBeginRecord,
    RequestFinishRecord,
    RequestSummary,
    ResponseSummary,
)

__all__ = [
    "NameEvent",
    "NameEventRecord",
    "RecordModel",
    "RequestBeginRecord",
    "RequestFinishRecord",
    "RequestSummary",
    "ResponseSummary",
]
