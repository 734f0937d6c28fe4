"""Request logger: reporters, instrumentation and management API of one server.

A host process may serve several HTTP applications (e.g. the node API and
the wallet API). Each gets its own RequestLogger, with its own registry,
reporter files (named after the logger) and ``/bweb-log`` routes.

Example usage:
    logger = RequestLogger("node-http", config)
    logger.install(app, manage_lifespan=True)
    # reporters are registered and enabled when the app starts
"""

from __future__ import annotations

__all__ = ["RequestLogger"]

from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from bweb_log.api.deps import REGISTRY_STATE_ATTR
from bweb_log.api.errors import APIError, api_error_handler
from bweb_log.api.routes import router
from bweb_log.config import WeblogConfig
from bweb_log.interceptor import RequestInterceptor
from bweb_log.registry import ErrorListener, ReporterDescriptor, ReporterRegistry
from bweb_log.reporters import BUILTIN_REPORTERS, AbstractReporter, ConsoleReporter, FileReporter, NameReporter
from bweb_log.reporters.base import ReporterContext
from bweb_log.telemetry.system import get_system_logger

_system_logger = get_system_logger()


class RequestLogger:
    """Logs the requests of one application.

    Args:
        name: Logger name (``node-http``, ``wallet-http``); prefixes the
            reporter log files and console logger.
        config: Startup configuration.
    """

    def __init__(self, name: str, config: WeblogConfig | None = None) -> None:
        self.name = name
        self.config = config if config is not None else WeblogConfig()
        self.context = ReporterContext(name=name, config=self.config, logger=_system_logger)
        self.registry = ReporterRegistry(self.context, self.config.callback_timeout_seconds)
        self.interceptor = RequestInterceptor(self.registry)
        self.app: FastAPI | None = None

    # ------------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------------

    def install(self, app: FastAPI, manage_lifespan: bool = False) -> None:
        """Add the management routes to ``app`` and instrument its handlers.

        Args:
            app: Host application. Routes registered later are not logged.
            manage_lifespan: Open this logger on app startup and close it on
                shutdown.

        Raises:
            RuntimeError: If a request logger is already installed on ``app``.
        """
        if getattr(app.state, REGISTRY_STATE_ATTR, None) is not None:
            raise RuntimeError(f"A request logger is already installed on {app!r}")

        setattr(app.state, REGISTRY_STATE_ATTR, self.registry)
        app.include_router(router)
        app.add_exception_handler(APIError, api_error_handler)
        wrapped = self.interceptor.instrument(app)

        if manage_lifespan:
            app.router.lifespan_context = self._lifespan(app.router.lifespan_context)

        self.app = app
        _system_logger.info(
            {
                "event": "request_logger_installed",
                "message": f"Request logger {self.name} installed ({wrapped} routes)",
                "logger": self.name,
                "routes": wrapped,
            }
        )

    def _lifespan(self, original: Callable[[Any], Any]) -> Callable[[Any], Any]:
        @asynccontextmanager
        async def lifespan(app: Any) -> AsyncIterator[Any]:
            await self.open()
            try:
                async with original(app) as state:
                    yield state
            finally:
                await self.close()

        return lifespan

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def startup_reporters(self) -> list[str]:
        """Ids of the built-in reporters switched on in the config."""
        switches = {
            ConsoleReporter.id: self.config.reporter_console,
            FileReporter.id: self.config.reporter_file,
            NameReporter.id: self.config.reporter_names,
        }
        return [reporter_id for reporter_id, enabled in switches.items() if enabled]

    async def open(self) -> None:
        """Register the built-in reporters and enable those switched on in the config."""
        for reporter_cls in BUILTIN_REPORTERS:
            if not self.registry.has_reporter(reporter_cls.id):
                self.registry.register(reporter_cls)

        for reporter_id in self.startup_reporters():
            if not self.registry.is_enabled(reporter_id):
                await self.registry.enable(reporter_id)

    async def close(self) -> None:
        await self.registry.close()

    # ------------------------------------------------------------------
    # Reporters
    # ------------------------------------------------------------------

    async def register(
        self,
        reporter: ReporterDescriptor | type[AbstractReporter],
        enable: bool = False,
        extra_config: Mapping[str, Any] | None = None,
    ) -> None:
        descriptor = self.registry.register(reporter)
        if enable:
            await self.registry.enable(descriptor.id, extra_config)

    async def unregister(self, reporter_id: str) -> None:
        await self.registry.unregister(reporter_id)

    async def enable(self, reporter_id: str, extra_config: Mapping[str, Any] | None = None) -> AbstractReporter:
        return await self.registry.enable(reporter_id, extra_config)

    async def disable(self, reporter_id: str) -> None:
        await self.registry.disable(reporter_id)

    def list_statuses(self) -> dict[str, bool]:
        return self.registry.list_statuses()

    def add_error_listener(self, listener: ErrorListener) -> None:
        self.registry.add_error_listener(listener)

