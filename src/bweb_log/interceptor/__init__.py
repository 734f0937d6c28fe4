"""Request instrumentation for Starlette / FastAPI applications."""

from bweb_log.interceptor.metadata import RequestMetadata, StructuredError
from bweb_log.interceptor.request import RequestInfo, capture_request
from bweb_log.interceptor.response import ResponseRecorder
from bweb_log.interceptor.wrapper import RequestInterceptor

__all__ = [
    "RequestInfo",
    "RequestInterceptor",
    "RequestMetadata",
    "ResponseRecorder",
    "StructuredError",
    "capture_request",
]
