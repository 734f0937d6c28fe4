"""Reporter registry: registration, live enable/disable, concurrent fan-out.

State per reporter id::

    Unregistered --register--> Available --enable--> Enabled
                                   ^                    |
                                   +------disable-------+

The enabled set is an immutable snapshot (MappingProxyType) replaced on
every change. Fan-out reads the snapshot once and marks each reporter it
will call as in-flight before yielding, so a concurrent ``disable`` removes
the reporter from later snapshots, waits for the calls already holding it,
and only then closes it.

Reporter failures never reach the request path: each one is tagged with the
reporter id and phase and delivered to the error channel (system logger
plus listeners added with add_error_listener()).
"""

from __future__ import annotations

__all__ = [
    "ErrorListener",
    "ReporterDescriptor",
    "ReporterErrorEvent",
    "ReporterRegistry",
]

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from bweb_log.constants import DEFAULT_CALLBACK_TIMEOUT_SECONDS, REQUEST_BEGIN, REQUEST_FINISH
from bweb_log.exceptions import (
    AlreadyEnabledError,
    DuplicateIdError,
    NotEnabledError,
    ReporterTimeoutError,
    ResourceError,
    UnknownReporterError,
)
from bweb_log.reporters.base import AbstractReporter, ReporterContext
from bweb_log.telemetry.system import get_system_logger

if TYPE_CHECKING:
    from bweb_log.interceptor import RequestInfo, RequestMetadata, ResponseRecorder

_system_logger = get_system_logger()

ReporterFactory = Callable[[ReporterContext, Mapping[str, Any]], AbstractReporter]


@dataclass(frozen=True)
class ReporterDescriptor:
    """How to build a reporter.

    Attributes:
        id: Unique reporter id.
        factory: Called with the logger context and merged enable-time config.
        default_config: Config merged under the ``extra_config`` of enable().
    """

    id: str
    factory: ReporterFactory
    default_config: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_class(cls, reporter_cls: type[AbstractReporter]) -> ReporterDescriptor:
        return cls(
            id=reporter_cls.id,
            factory=reporter_cls.init,
            default_config=MappingProxyType(reporter_cls.default_config()),
        )


@dataclass(frozen=True)
class ReporterErrorEvent:
    """A reporter failure, delivered out-of-band.

    Attributes:
        reporter_id: Failing reporter.
        phase: ``begin``, ``finish`` or ``close``.
        error: The exception raised (ReporterTimeoutError on timeout).
    """

    reporter_id: str
    phase: str
    error: BaseException

    def to_log(self) -> dict[str, Any]:
        return {
            "event": "reporter_failed",
            "message": f"Reporter {self.reporter_id} failed during {self.phase}: {self.error}",
            "reporter_id": self.reporter_id,
            "phase": self.phase,
            "error_type": type(self.error).__name__,
            "error_message": str(self.error),
        }


ErrorListener = Callable[[ReporterErrorEvent], None]


class _Slot:
    """An enabled reporter plus the count of callbacks currently using it."""

    __slots__ = ("reporter", "in_flight", "idle")

    def __init__(self, reporter: AbstractReporter) -> None:
        self.reporter = reporter
        self.in_flight = 0
        self.idle = asyncio.Event()
        self.idle.set()

    def acquire(self) -> None:
        self.in_flight += 1
        self.idle.clear()

    def release(self) -> None:
        self.in_flight -= 1
        if self.in_flight == 0:
            self.idle.set()


class ReporterRegistry:
    """Reporters of one RequestLogger.

    Args:
        context: Passed to every reporter factory.
        callback_timeout: Seconds one on_begin/on_finish call may take.
    """

    def __init__(
        self,
        context: ReporterContext,
        callback_timeout: float = DEFAULT_CALLBACK_TIMEOUT_SECONDS,
    ) -> None:
        self.context = context
        self.callback_timeout = callback_timeout
        self._descriptors: dict[str, ReporterDescriptor] = {}
        self._enabled: Mapping[str, _Slot] = MappingProxyType({})
        self._lock = asyncio.Lock()
        self._listeners: list[ErrorListener] = []

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, reporter: ReporterDescriptor | type[AbstractReporter]) -> ReporterDescriptor:
        """Make a reporter available.

        Raises:
            DuplicateIdError: If the id is already registered.
        """
        descriptor = reporter if isinstance(reporter, ReporterDescriptor) else ReporterDescriptor.from_class(reporter)
        if descriptor.id in self._descriptors:
            raise DuplicateIdError(descriptor.id)
        self._descriptors[descriptor.id] = descriptor
        return descriptor

    async def unregister(self, reporter_id: str) -> None:
        """Remove a reporter, disabling it first if needed.

        Raises:
            UnknownReporterError: If the id is not registered.
        """
        async with self._lock:
            if reporter_id not in self._descriptors:
                raise UnknownReporterError(reporter_id)
            if reporter_id in self._enabled:
                await self._disable_locked(reporter_id)
            del self._descriptors[reporter_id]

    # ------------------------------------------------------------------
    # Enable / disable
    # ------------------------------------------------------------------

    async def enable(self, reporter_id: str, extra_config: Mapping[str, Any] | None = None) -> AbstractReporter:
        """Construct, open and publish a reporter.

        Args:
            reporter_id: Registered reporter id.
            extra_config: Merged over the descriptor's default config.

        Returns:
            The opened reporter.

        Raises:
            UnknownReporterError: If the id is not registered.
            AlreadyEnabledError: If the reporter is enabled.
            ConfigError: If the merged config is invalid.
            ResourceError: If the reporter failed to open.
        """
        async with self._lock:
            descriptor = self._descriptors.get(reporter_id)
            if descriptor is None:
                raise UnknownReporterError(reporter_id)
            if reporter_id in self._enabled:
                raise AlreadyEnabledError(reporter_id)

            config = {**descriptor.default_config, **(extra_config or {})}
            reporter = descriptor.factory(self.context, config)

            try:
                await reporter.open()
            except Exception as e:
                await self._close_reporter(reporter_id, reporter)
                if isinstance(e, ResourceError):
                    raise
                raise ResourceError(f"Reporter {reporter_id} failed to open: {e}") from e

            self._enabled = MappingProxyType({**self._enabled, reporter_id: _Slot(reporter)})

        _system_logger.info(
            {
                "event": "reporter_enabled",
                "message": f"Reporter {reporter_id} enabled for {self.context.name}",
                "reporter_id": reporter_id,
                "logger": self.context.name,
            }
        )
        return reporter

    async def disable(self, reporter_id: str) -> None:
        """Unpublish a reporter, wait for its in-flight callbacks, close it.

        Raises:
            UnknownReporterError: If the id is not registered.
            NotEnabledError: If the reporter is not enabled.
        """
        async with self._lock:
            if reporter_id not in self._descriptors:
                raise UnknownReporterError(reporter_id)
            if reporter_id not in self._enabled:
                raise NotEnabledError(reporter_id)
            await self._disable_locked(reporter_id)

    async def _disable_locked(self, reporter_id: str) -> None:
        slot = self._enabled[reporter_id]
        self._enabled = MappingProxyType({k: v for k, v in self._enabled.items() if k != reporter_id})

        await slot.idle.wait()
        await self._close_reporter(reporter_id, slot.reporter)

        _system_logger.info(
            {
                "event": "reporter_disabled",
                "message": f"Reporter {reporter_id} disabled for {self.context.name}",
                "reporter_id": reporter_id,
                "logger": self.context.name,
            }
        )

    async def _close_reporter(self, reporter_id: str, reporter: AbstractReporter) -> None:
        try:
            await reporter.close()
        except Exception as e:
            self._report_error(reporter_id, "close", e)

    async def close(self) -> None:
        """Disable every enabled reporter (most recently enabled first)."""
        async with self._lock:
            for reporter_id in reversed(list(self._enabled)):
                await self._disable_locked(reporter_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_reporter(self, reporter_id: str) -> bool:
        return reporter_id in self._descriptors

    def is_enabled(self, reporter_id: str) -> bool:
        return reporter_id in self._enabled

    def enabled_ids(self) -> list[str]:
        return list(self._enabled)

    def list_statuses(self) -> dict[str, bool]:
        """Map of every registered reporter id to its enabled state."""
        enabled = self._enabled
        return {reporter_id: reporter_id in enabled for reporter_id in self._descriptors}

    def get_enabled(self, reporter_id: str) -> AbstractReporter:
        """Return the enabled instance of ``reporter_id``.

        Raises:
            UnknownReporterError: If the id is not registered.
            NotEnabledError: If the reporter is not enabled.
        """
        if reporter_id not in self._descriptors:
            raise UnknownReporterError(reporter_id)
        slot = self._enabled.get(reporter_id)
        if slot is None:
            raise NotEnabledError(reporter_id)
        return slot.reporter

    def get_configuration(self, reporter_id: str) -> dict[str, Any]:
        return self.get_enabled(reporter_id).get_configuration()

    def set_configuration(self, reporter_id: str, partial: Mapping[str, Any]) -> dict[str, Any]:
        """Update the runtime options of an enabled reporter.

        Raises:
            UnknownReporterError, NotEnabledError: As get_enabled().
            ConfigError: If the update is invalid (nothing is applied).
        """
        return self.get_enabled(reporter_id).set_configuration(partial)

    # ------------------------------------------------------------------
    # Error channel
    # ------------------------------------------------------------------

    def add_error_listener(self, listener: ErrorListener) -> None:
        self._listeners.append(listener)

    def remove_error_listener(self, listener: ErrorListener) -> None:
        self._listeners.remove(listener)

    def _report_error(self, reporter_id: str, phase: str, error: BaseException) -> None:
        event = ReporterErrorEvent(reporter_id=reporter_id, phase=phase, error=error)
        _system_logger.error(event.to_log())

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                _system_logger.error(
                    {
                        "event": "error_listener_failed",
                        "message": f"Error listener failed: {e}",
                        "reporter_id": reporter_id,
                        "error_type": type(e).__name__,
                    }
                )

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def fan_out_begin(self, request: RequestInfo, metadata: RequestMetadata) -> None:
        await self._fan_out(REQUEST_BEGIN, lambda reporter: reporter.on_begin(request, metadata))

    async def fan_out_finish(
        self,
        request: RequestInfo,
        response: ResponseRecorder,
        metadata: RequestMetadata,
    ) -> None:
        await self._fan_out(REQUEST_FINISH, lambda reporter: reporter.on_finish(request, response, metadata))

    async def _fan_out(self, phase: str, invoke: Callable[[AbstractReporter], Awaitable[None]]) -> None:
        snapshot = list(self._enabled.items())
        if not snapshot:
            return

        # Mark before the first suspension point so disable() cannot close them
        for _, slot in snapshot:
            slot.acquire()
        try:
            await asyncio.gather(*(self._dispatch(reporter_id, slot, phase, invoke) for reporter_id, slot in snapshot))
        finally:
            for _, slot in snapshot:
                slot.release()

    async def _dispatch(
        self,
        reporter_id: str,
        slot: _Slot,
        phase: str,
        invoke: Callable[[AbstractReporter], Awaitable[None]],
    ) -> None:
        try:
            await asyncio.wait_for(invoke(slot.reporter), self.callback_timeout)
        except TimeoutError:
            self._report_error(
                reporter_id,
                phase,
                ReporterTimeoutError(f"Reporter {reporter_id} {phase} exceeded {self.callback_timeout}s"),
            )
        except Exception as e:
            self._report_error(reporter_id, phase, e)
