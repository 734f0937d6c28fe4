"""Structured API error handling.

Every management route fails with an APIError carrying an ErrorCode.
Registry and reporter exceptions are translated by api_error_from(), and
RequestLogger.install() registers api_error_handler on the host app so the
body has the same shape whatever the host does with other HTTPExceptions.

Example:
    raise APIError(
        status_code=400,
        code=ErrorCode.REPORTER_NOT_ENABLED,
        message="Reporter file is not enabled.",
        details={"reporter_id": "file"},
    )

Body of the resulting response:
    {
        "detail": {
            "code": "REPORTER_NOT_ENABLED",
            "message": "Reporter file is not enabled.",
            "details": {"reporter_id": "file"}
        }
    }
"""

from __future__ import annotations

__all__ = [
    "APIError",
    "ErrorCode",
    "api_error_from",
    "api_error_handler",
]

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from bweb_log.exceptions import (
    AlreadyEnabledError,
    ConfigError,
    DuplicateIdError,
    NotEnabledError,
    RegistryError,
    ResourceError,
    UnknownReporterError,
    WeblogError,
)


class ErrorCode(str, Enum):
    """Machine-readable ``detail.code`` values of management API errors."""

    # Registry misuse (400)
    REPORTER_NOT_FOUND = "REPORTER_NOT_FOUND"
    REPORTER_NOT_ENABLED = "REPORTER_NOT_ENABLED"
    REPORTER_ALREADY_ENABLED = "REPORTER_ALREADY_ENABLED"
    REPORTER_EXISTS = "REPORTER_EXISTS"

    # Reporter options (400)
    REPORTER_CONFIG_INVALID = "REPORTER_CONFIG_INVALID"

    # Reporter resources (500)
    REPORTER_OPEN_FAILED = "REPORTER_OPEN_FAILED"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Internal errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class APIError(HTTPException):
    """HTTPException whose detail is ``{code, message, details?, validation_errors?}``.

    Attributes:
        code: ErrorCode of the failure.
        error_message: Message shown to CLI users.
        error_details: Context such as the reporter id.
        validation_errors: Field errors (loc, msg, type) for rejected input.
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
        validation_errors: list[dict[str, Any]] | None = None,
    ) -> None:
        self.code = code
        self.error_message = message
        self.error_details = details
        self.validation_errors = validation_errors

        detail: dict[str, Any] = {
            "code": code.value,
            "message": message,
        }
        if details:
            detail["details"] = details
        if validation_errors:
            detail["validation_errors"] = validation_errors

        super().__init__(status_code=status_code, detail=detail)


def api_error_from(exc: WeblogError) -> APIError:
    """Map a registry or reporter exception to its API error.

    Args:
        exc: Exception raised by the registry or a reporter.

    Returns:
        APIError with status 400 for client errors, 500 otherwise.
    """
    if isinstance(exc, RegistryError):
        details = {"reporter_id": exc.reporter_id}
        if isinstance(exc, UnknownReporterError):
            code = ErrorCode.REPORTER_NOT_FOUND
        elif isinstance(exc, NotEnabledError):
            code = ErrorCode.REPORTER_NOT_ENABLED
        elif isinstance(exc, AlreadyEnabledError):
            code = ErrorCode.REPORTER_ALREADY_ENABLED
        elif isinstance(exc, DuplicateIdError):
            code = ErrorCode.REPORTER_EXISTS
        else:
            code = ErrorCode.VALIDATION_ERROR
        return APIError(status_code=400, code=code, message=exc.message, details=details)

    if isinstance(exc, ConfigError):
        return APIError(
            status_code=400,
            code=ErrorCode.REPORTER_CONFIG_INVALID,
            message=exc.message,
            validation_errors=exc.validation_errors,
        )

    if isinstance(exc, ResourceError):
        return APIError(status_code=500, code=ErrorCode.REPORTER_OPEN_FAILED, message=str(exc))

    return APIError(status_code=500, code=ErrorCode.INTERNAL_ERROR, message=str(exc))


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render an APIError as ``{"detail": {...}}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )
