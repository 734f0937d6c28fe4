"""Application configuration for bweb-log.

Mirrors the host node's ``weblog-*`` options. Configuration can come from an
optional JSON file and from ``BWEB_LOG_<FIELD>`` environment variables
(environment wins).

Example usage:
    config = load_config(Path("weblog.json"))
    plugin = WeblogPlugin(config, node=node_app, wallet=wallet_app)
"""

from __future__ import annotations

__all__ = [
    "ENV_PREFIX",
    "WeblogConfig",
    "load_config",
]

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bweb_log.constants import (
    BYTES_PER_MB,
    DEFAULT_CALLBACK_TIMEOUT_SECONDS,
    DEFAULT_FILE_SIZE_MB,
    DEFAULT_LOG_DIR,
    DEFAULT_MAX_FILES,
    DEFAULT_NODE_LOGNAME,
    DEFAULT_WALLET_LOGNAME,
)
from bweb_log.exceptions import ConfigError
from bweb_log.utils.validation import format_validation_errors, validation_errors_from_pydantic

# Environment variables are BWEB_LOG_<FIELD NAME IN UPPER CASE>
ENV_PREFIX: str = "BWEB_LOG_"


class WeblogConfig(BaseModel):
    """Startup configuration for the request logging plugin.

    Attributes:
        log_dir: Directory holding request log files.
        memory: Host runs in-memory; the plugin does nothing when set.
        log_node: Instrument the node HTTP server.
        log_wallet: Instrument the wallet HTTP server.
        node_logname: Logger name (and log file stem) for the node server.
        wallet_logname: Logger name (and log file stem) for the wallet server.
        reporter_console: Enable the console reporter on open.
        reporter_file: Enable the file reporter on open.
        reporter_names: Enable the name event reporter on open.
        file_name: Override for the file reporter's file name
            (default ``<logname>.log``).
        file_size_mb: Rotate request log files above this size (MiB).
        max_files: Rotated files kept next to the current file.
        file_params: Log params/query/body in file records.
        file_response: Log response bodies in file records.
        callback_timeout_seconds: Time limit for one reporter callback.
        system_log: Also write WARNING+ operational events to
            ``<log_dir>/system.jsonl``.
    """

    log_dir: str = Field(default=DEFAULT_LOG_DIR, min_length=1)
    memory: bool = False

    log_node: bool = True
    log_wallet: bool = True
    node_logname: str = Field(default=DEFAULT_NODE_LOGNAME, min_length=1)
    wallet_logname: str = Field(default=DEFAULT_WALLET_LOGNAME, min_length=1)

    reporter_console: bool = True
    reporter_file: bool = True
    reporter_names: bool = False

    file_name: str | None = None
    file_size_mb: int = Field(default=DEFAULT_FILE_SIZE_MB, ge=1)
    max_files: int = Field(default=DEFAULT_MAX_FILES, ge=0)
    file_params: bool = True
    file_response: bool = False

    callback_timeout_seconds: float = Field(default=DEFAULT_CALLBACK_TIMEOUT_SECONDS, gt=0)
    system_log: bool = True

    model_config = ConfigDict(extra="forbid")

    @property
    def log_path(self) -> Path:
        """Expanded log directory."""
        return Path(self.log_dir).expanduser()

    @property
    def max_file_size(self) -> int:
        """Rotation threshold in bytes."""
        return self.file_size_mb * BYTES_PER_MB

    def location(self, file_name: str) -> Path:
        """Path of ``file_name`` inside the log directory."""
        return self.log_path / file_name


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``BWEB_LOG_*`` variables that name a config field."""
    overrides: dict[str, Any] = {}
    for name in WeblogConfig.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in environ:
            overrides[name] = environ[key]
    return overrides


def load_config(path: Path | None = None, environ: Mapping[str, str] | None = None) -> WeblogConfig:
    """Load configuration from an optional JSON file plus environment overrides.

    Args:
        path: JSON file with WeblogConfig fields. Missing file is an error
            only when a path is given explicitly.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Validated WeblogConfig.

    Raises:
        ConfigError: If the file cannot be read or any value is invalid.
    """
    data: dict[str, Any] = {}

    if path is not None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Could not read config file {path}: {e}") from e

        if not isinstance(loaded, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")
        data.update(loaded)

    data.update(_env_overrides(os.environ if environ is None else environ))

    try:
        return WeblogConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration: {format_validation_errors(e)}",
            validation_errors=validation_errors_from_pydantic(e),
        ) from e
