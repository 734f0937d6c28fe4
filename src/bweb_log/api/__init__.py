"""Management HTTP API for live reporter control."""

from bweb_log.api.errors import APIError, ErrorCode, api_error_from, api_error_handler
from bweb_log.api.routes import router

__all__ = [
    "APIError",
    "ErrorCode",
    "api_error_from",
    "api_error_handler",
    "router",
]
