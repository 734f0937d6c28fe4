"""Custom exceptions for bweb-log.

Exceptions are organized by where they surface:

Configuration (rejected, no state change):
    - ConfigError: Invalid runtime or startup configuration

Registry misuse (client-facing 400s on the management API):
    - DuplicateIdError, UnknownReporterError, AlreadyEnabledError, NotEnabledError

Reporter resources (enable fails, reporter stays available):
    - ResourceError

Out-of-band only (never thrown into the instrumented request path):
    - ReporterTimeoutError
    - StoreWriteError, StoreRotationError

Usage:
    from bweb_log.exceptions import ConfigError, NotEnabledError
"""

from __future__ import annotations

__all__ = [
    "AlreadyEnabledError",
    "ConfigError",
    "DuplicateIdError",
    "NotEnabledError",
    "RegistryError",
    "ReporterTimeoutError",
    "ResourceError",
    "StoreError",
    "StoreRotationError",
    "StoreWriteError",
    "UnknownReporterError",
    "WeblogError",
]

from typing import Any


class WeblogError(Exception):
    """Base class for all bweb-log errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(WeblogError, ValueError):
    """Raised when configuration is invalid.

    Attributes:
        validation_errors: Field-level errors (loc, msg, type) when the
            failure came from model validation.
    """

    def __init__(self, message: str, validation_errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.validation_errors = validation_errors or []


# =============================================================================
# Registry
# =============================================================================


class RegistryError(WeblogError):
    """Base class for reporter registry misuse."""

    def __init__(self, reporter_id: str, message: str) -> None:
        super().__init__(message)
        self.reporter_id = reporter_id
        self.message = message


class DuplicateIdError(RegistryError):
    """Raised when registering a reporter id that is already registered."""

    def __init__(self, reporter_id: str) -> None:
        super().__init__(reporter_id, f"Reporter {reporter_id} already exists.")


class UnknownReporterError(RegistryError):
    """Raised when a reporter id was never registered."""

    def __init__(self, reporter_id: str) -> None:
        super().__init__(reporter_id, f"Reporter {reporter_id} does not exist.")


class AlreadyEnabledError(RegistryError):
    """Raised when enabling a reporter that is already enabled."""

    def __init__(self, reporter_id: str) -> None:
        super().__init__(reporter_id, f"Reporter {reporter_id} is already enabled.")


class NotEnabledError(RegistryError):
    """Raised when a reporter is required to be enabled but is not."""

    def __init__(self, reporter_id: str) -> None:
        super().__init__(reporter_id, f"Reporter {reporter_id} is not enabled.")


# =============================================================================
# Reporter resources
# =============================================================================


class ResourceError(WeblogError):
    """Raised when a reporter cannot acquire its backing resource on open."""


class ReporterTimeoutError(WeblogError):
    """Raised (out-of-band) when a reporter callback exceeds its time limit."""


# =============================================================================
# Storage
# =============================================================================


class StoreError(WeblogError):
    """Base class for rotating log store failures.

    Attributes:
        path: File the failing operation targeted.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class StoreWriteError(StoreError):
    """Raised when a record cannot be appended (disk full, permissions, closed store)."""


class StoreRotationError(StoreError):
    """Raised when rotating files fails.

    The record that triggered the rotation has already been written
    when this is raised.
    """
