"""Per-request timing and outcome metadata.

One RequestMetadata is created for each intercepted request and owned by
that request's wrapper. It is written on entry and on completion (or error),
and only read afterwards.
"""

from __future__ import annotations

__all__ = ["RequestMetadata", "StructuredError"]

import time
from dataclasses import dataclass
from typing import Any

from bweb_log.telemetry.models import ResponseSummary
from bweb_log.utils.redaction import redact_fields
from bweb_log.utils.timefmt import format_time


@dataclass(frozen=True, slots=True)
class StructuredError:
    """Error attached to a failed request."""

    type: str
    message: str
    status_code: int = 500

    @classmethod
    def from_exception(cls, exc: BaseException, status_code: int | None = None) -> StructuredError:
        """Describe ``exc``.

        The status code is ``status_code`` when given, else the exception's own
        ``status_code`` attribute (HTTPException and friends), else 500.
        """
        if status_code is None:
            status_code = getattr(exc, "status_code", None)
        if not isinstance(status_code, int):
            status_code = 500
        return cls(type=type(exc).__name__, message=_error_message(exc), status_code=status_code)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "message": self.message, "status_code": self.status_code}


def _error_message(exc: BaseException) -> str:
    detail = getattr(exc, "detail", None)
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict) and isinstance(detail.get("message"), str):
        return detail["message"]
    return str(exc) or type(exc).__name__


@dataclass(slots=True)
class RequestMetadata:
    """Timing and outcome of one request.

    Timestamps are ``time.perf_counter_ns()`` values, so they are only
    meaningful relative to each other.

    Attributes:
        start_ns: Set by mark_started().
        end_ns: Set by mark_finished().
        status_code: Response status (or the error's status).
        error: Set when the handler failed.
        response_body: Parsed JSON response body, never set together with error.
    """

    start_ns: int | None = None
    end_ns: int | None = None
    status_code: int | None = None
    error: StructuredError | None = None
    response_body: Any = None

    @property
    def started(self) -> bool:
        return self.start_ns is not None

    @property
    def finished(self) -> bool:
        return self.end_ns is not None

    def mark_started(self) -> None:
        if self.start_ns is not None:
            raise RuntimeError("Request metadata already started")
        self.start_ns = time.perf_counter_ns()

    def set_response(self, status_code: int | None, body: Any = None) -> None:
        """Record the outcome of a normally completed handler."""
        if self.finished:
            raise RuntimeError("Request metadata already finished")
        if status_code is not None:
            self.status_code = status_code
        if self.error is None:
            self.response_body = body

    def record_error(self, error: StructuredError) -> None:
        """Attach ``error``; a captured response body is discarded."""
        if self.finished:
            raise RuntimeError("Cannot record an error on finished request metadata")
        self.error = error
        self.status_code = error.status_code
        self.response_body = None

    def mark_finished(self) -> None:
        if self.start_ns is None:
            raise RuntimeError("Request metadata was never started")
        if self.end_ns is not None:
            raise RuntimeError("Request metadata already finished")
        end_ns = time.perf_counter_ns()
        if end_ns < self.start_ns:
            raise RuntimeError("Monotonic clock went backwards")
        self.end_ns = end_ns

    @property
    def elapsed_ns(self) -> int:
        if self.start_ns is None or self.end_ns is None:
            raise RuntimeError("Elapsed time is only available once the request finished")
        return self.end_ns - self.start_ns

    @property
    def elapsed_str(self) -> str:
        """Elapsed time in milliseconds, e.g. ``"1.25ms"``."""
        return format_time(self.elapsed_ns, "ms")

    # ------------------------------------------------------------------
    # Record rendering
    # ------------------------------------------------------------------

    def request_json(self) -> dict[str, Any]:
        return {"start": self.start_ns}

    def response_summary(self, include_body: bool = False) -> ResponseSummary:
        """Finished-request summary for log records; the body is redacted.

        Raises:
            RuntimeError: If the request has not finished.
        """
        elapsed = self.elapsed_ns
        body = redact_fields(self.response_body) if include_body else None
        return ResponseSummary(
            start=self.start_ns,
            end=self.end_ns,
            elapsed=elapsed,
            elapsed_str=format_time(elapsed, "ms"),
            status_code=self.status_code,
            error=self.error.to_dict() if self.error is not None else None,
            body=body,
        )

    def response_json(self, include_body: bool = False) -> dict[str, Any]:
        return self.response_summary(include_body).to_record()
