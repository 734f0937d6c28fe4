"""Host plugin: request logging for a node and its wallet.

Example usage:
    plugin = WeblogPlugin(load_config(), node=node_app, wallet=wallet_app)
    plugin.init()            # routes + instrumentation, before serving
    await plugin.open()      # register and enable reporters
    ...
    await plugin.close()
"""

from __future__ import annotations

__all__ = ["WeblogPlugin"]

from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI

from bweb_log.config import WeblogConfig
from bweb_log.logger import RequestLogger
from bweb_log.registry import ErrorListener, ReporterDescriptor
from bweb_log.reporters import AbstractReporter
from bweb_log.telemetry.system import configure_system_logger_file, get_system_logger

_system_logger = get_system_logger()

SYSTEM_LOG_FILE = "system.jsonl"


class WeblogPlugin:
    """Creates one RequestLogger per served application.

    In memory mode (``config.memory``) the plugin does nothing: no routes,
    no instrumentation, no files.

    Args:
        config: Startup configuration (defaults when omitted).
        node: Node HTTP application.
        wallet: Wallet HTTP application.
    """

    id = "weblog"

    def __init__(
        self,
        config: WeblogConfig | None = None,
        *,
        node: FastAPI | None = None,
        wallet: FastAPI | None = None,
    ) -> None:
        self.config = config if config is not None else WeblogConfig()
        self.node = node
        self.wallet = wallet
        self.loaded = False
        self.opened = False

        self.node_logger: RequestLogger | None = None
        self.wallet_logger: RequestLogger | None = None
        self.loggers: list[RequestLogger] = []

    @property
    def memory(self) -> bool:
        return self.config.memory

    def init(self) -> None:
        """Install a RequestLogger on each configured application.

        Raises:
            RuntimeError: If called twice.
        """
        if self.loaded:
            raise RuntimeError("Plugin was already initialized.")
        self.loaded = True

        if self.memory:
            return

        if self.config.system_log:
            configure_system_logger_file(self.config.location(SYSTEM_LOG_FILE))

        if self.node is not None and self.config.log_node:
            self.node_logger = RequestLogger(self.config.node_logname, self.config)
            self.node_logger.install(self.node)
            self.loggers.append(self.node_logger)

        if self.wallet is not None and self.config.log_wallet:
            self.wallet_logger = RequestLogger(self.config.wallet_logname, self.config)
            self.wallet_logger.install(self.wallet)
            self.loggers.append(self.wallet_logger)

    async def open(self) -> None:
        """Register the built-in reporters and enable those switched on."""
        if self.memory:
            return

        if not self.loaded:
            self.init()

        for logger in self.loggers:
            await logger.open()

        self.opened = True
        names = [logger.name for logger in self.loggers]
        _system_logger.info(
            {
                "event": "plugin_opened",
                "message": f"Request logging enabled for {', '.join(names) or 'no servers'}",
                "loggers": names,
            }
        )

    async def close(self) -> None:
        """Disable (and close) every enabled reporter."""
        if self.memory:
            return

        for logger in self.loggers:
            await logger.close()
        self.opened = False

    # ------------------------------------------------------------------
    # Reporters across loggers
    # ------------------------------------------------------------------

    async def register(
        self,
        reporter: ReporterDescriptor | type[AbstractReporter],
        enable: bool = False,
        extra_config: Mapping[str, Any] | None = None,
    ) -> None:
        """Register (and optionally enable) a reporter on every logger."""
        for logger in self.loggers:
            await logger.register(reporter, enable, extra_config)

    async def unregister(self, reporter_id: str) -> None:
        for logger in self.loggers:
            await logger.unregister(reporter_id)

    def on_error(self, listener: ErrorListener) -> None:
        """Subscribe ``listener`` to reporter failures of every logger."""
        for logger in self.loggers:
            logger.add_error_listener(listener)
