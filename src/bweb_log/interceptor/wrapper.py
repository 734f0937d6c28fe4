"""Request interceptor: wraps a host app's route handlers and error handlers.

Route handlers are ASGI callables (``Route.app``). Each wrapped invocation:

1. Creates RequestMetadata and marks the start time
2. Snapshots the request (replaying a buffered body to the handler)
3. Awaits the registry's begin fan-out
4. Calls the handler with a ResponseRecorder in place of ``send``
5. Marks the end time, awaits the finish fan-out
6. Returns, or re-raises the handler's exception unchanged

Exception handlers run inside the route handler (Starlette resolves them
per request from the ASGI scope, its own defaults included), so they are
wrapped too, on the app and in each request's scope. A wrapped handler
attaches the error to the request's metadata, found in the ASGI scope, and
the route wrapper performs the single finish fan-out.
"""

from __future__ import annotations

__all__ = ["RequestInterceptor"]

import functools
from typing import TYPE_CHECKING, Any, Callable

from starlette._utils import is_async_callable
from starlette.applications import Starlette
from starlette.requests import HTTPConnection
from starlette.routing import Mount, Route
from starlette.types import ASGIApp, Receive, Scope, Send

from bweb_log.constants import DEFAULT_MAX_CAPTURE_BYTES, METADATA_SCOPE_KEY
from bweb_log.interceptor.metadata import RequestMetadata, StructuredError
from bweb_log.interceptor.request import capture_request
from bweb_log.interceptor.response import ResponseRecorder

if TYPE_CHECKING:
    from bweb_log.registry import ReporterRegistry

_INSTRUMENTED = "__bweb_log_instrumented__"

# HandlerMaps that Starlette resolves errors from
_EXCEPTION_HANDLERS_SCOPE_KEY = "starlette.exception_handlers"

ExceptionHandler = Callable[[HTTPConnection, Exception], Any]
# (exception_handlers, status_handlers)
HandlerMaps = tuple[dict[Any, ExceptionHandler], dict[int, ExceptionHandler]]


def _is_instrumented(handler: Any) -> bool:
    return getattr(handler, _INSTRUMENTED, False)


class RequestInterceptor:
    """Produces instrumented versions of route and exception handlers.

    Args:
        registry: Registry whose enabled reporters receive the fan-outs.
        max_capture_bytes: Largest response body kept for reporters.
    """

    def __init__(self, registry: ReporterRegistry, max_capture_bytes: int = DEFAULT_MAX_CAPTURE_BYTES) -> None:
        self.registry = registry
        self.max_capture_bytes = max_capture_bytes

    # ------------------------------------------------------------------
    # Route handlers
    # ------------------------------------------------------------------

    def wrap_handler(self, handler: ASGIApp) -> ASGIApp:
        """Wrap one route's ASGI app (returns ``handler`` if already wrapped)."""
        if _is_instrumented(handler):
            return handler

        registry = self.registry
        max_capture_bytes = self.max_capture_bytes

        async def instrumented(scope: Scope, receive: Receive, send: Send) -> None:
            if scope["type"] != "http":
                await handler(scope, receive, send)
                return

            metadata = RequestMetadata()
            metadata.mark_started()

            request, receive = await capture_request(scope, receive)
            scope[METADATA_SCOPE_KEY] = metadata
            handlers = scope.get(_EXCEPTION_HANDLERS_SCOPE_KEY)
            if handlers is not None:
                scope[_EXCEPTION_HANDLERS_SCOPE_KEY] = self._wrap_handler_maps(handlers)

            await registry.fan_out_begin(request, metadata)

            recorder = ResponseRecorder(send, max_capture_bytes)
            try:
                await handler(scope, receive, recorder)
            except Exception as exc:
                if metadata.error is None:
                    status_code = recorder.status_code if recorder.started else None
                    metadata.record_error(StructuredError.from_exception(exc, status_code))
                metadata.mark_finished()
                await registry.fan_out_finish(request, recorder, metadata)
                raise

            metadata.set_response(recorder.status_code, recorder.json_body())
            metadata.mark_finished()
            await registry.fan_out_finish(request, recorder, metadata)

        setattr(instrumented, "__wrapped__", handler)
        setattr(instrumented, _INSTRUMENTED, True)
        return instrumented

    # ------------------------------------------------------------------
    # Exception handlers
    # ------------------------------------------------------------------

    def wrap_error_handler(self, handler: ExceptionHandler) -> ExceptionHandler:
        """Wrap a host exception handler so the handled error reaches reporters.

        The original handler runs unchanged; its response is returned as is.
        Sync handlers stay sync (Starlette runs them in a thread pool).
        """
        if _is_instrumented(handler):
            return handler

        if is_async_callable(handler):

            @functools.wraps(handler)
            async def instrumented(conn: HTTPConnection, exc: Exception) -> Any:
                response = await handler(conn, exc)
                _attach_error(conn, exc, response)
                return response

        else:

            @functools.wraps(handler)
            def instrumented(conn: HTTPConnection, exc: Exception) -> Any:
                response = handler(conn, exc)
                _attach_error(conn, exc, response)
                return response

        setattr(instrumented, _INSTRUMENTED, True)
        return instrumented

    def _wrap_handler_maps(self, handlers: HandlerMaps) -> HandlerMaps:
        exception_handlers, status_handlers = handlers
        return (
            {key: self.wrap_error_handler(handler) for key, handler in exception_handlers.items()},
            {key: self.wrap_error_handler(handler) for key, handler in status_handlers.items()},
        )

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def instrument(self, app: Starlette) -> int:
        """Wrap every route and exception handler registered on ``app``.

        Routes added after this call are not instrumented.

        Returns:
            Number of routes newly wrapped.
        """
        wrapped = self._instrument_routes(app.router.routes)

        for key, handler in list(app.exception_handlers.items()):
            app.exception_handlers[key] = self.wrap_error_handler(handler)

        # Force Starlette to rebuild its middleware stack from the new handlers
        app.middleware_stack = None
        return wrapped

    def _instrument_routes(self, routes: list[Any]) -> int:
        wrapped = 0
        for route in routes:
            if isinstance(route, Route):
                if not _is_instrumented(route.app):
                    route.app = self.wrap_handler(route.app)
                    wrapped += 1
            elif isinstance(route, Mount):
                wrapped += self._instrument_routes(route.routes)
        return wrapped


def _attach_error(conn: HTTPConnection, exc: Exception, response: Any) -> None:
    metadata = conn.scope.get(METADATA_SCOPE_KEY)
    if not isinstance(metadata, RequestMetadata) or metadata.finished or metadata.error is not None:
        return
    status_code = getattr(response, "status_code", None)
    metadata.record_error(StructuredError.from_exception(exc, status_code))
