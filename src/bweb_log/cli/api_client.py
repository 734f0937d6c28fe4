"""HTTP client helper for CLI commands.

CLI commands talk to the ``/bweb-log`` management routes of a running
server. The management API has no authentication; point ``--url`` only at
servers you control.
"""

from __future__ import annotations

__all__ = [
    "ClientSettings",
    "ServerNotRunningError",
    "WeblogAPIError",
    "api_request",
]

import json
import time
from dataclasses import dataclass
from typing import Any

import click
import httpx

from bweb_log.constants import DEFAULT_API_URL, DEFAULT_HTTP_TIMEOUT_SECONDS


@dataclass(frozen=True)
class ClientSettings:
    """Connection settings shared by all commands (stored on the click context)."""

    url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS


class ServerNotRunningError(click.ClickException):
    """Raised when the server cannot be reached."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Cannot reach server at {url}.\nIs it running? Use --url or BWEB_LOG_URL to change it.")
        self.url = url


class WeblogAPIError(click.ClickException):
    """Raised when the management API returns an error status."""

    def __init__(self, message: str, status_code: int | None = None, code: str | None = None) -> None:
        if status_code:
            super().__init__(f"API error ({status_code}): {message}")
        else:
            super().__init__(f"API error: {message}")
        self.status_code = status_code
        self.code = code


def _error_from_response(response: httpx.Response) -> WeblogAPIError:
    try:
        detail = response.json().get("detail", response.text)
    except (json.JSONDecodeError, AttributeError):
        detail = response.text

    if isinstance(detail, dict):
        return WeblogAPIError(str(detail.get("message", detail)), response.status_code, detail.get("code"))
    return WeblogAPIError(str(detail), response.status_code)


def api_request(
    method: str,
    endpoint: str,
    *,
    settings: ClientSettings,
    json_data: dict[str, Any] | None = None,
    max_retries: int = 3,
    backoff_ms: int = 100,
) -> dict[str, Any]:
    """Make a request to the management API.

    Connection failures are retried with exponential backoff; error
    responses are not.

    Args:
        method: HTTP method (GET, PUT).
        endpoint: API path (e.g. "/bweb-log/file").
        settings: Server URL and timeout.
        json_data: Optional JSON body.
        max_retries: Maximum connection attempts.
        backoff_ms: Initial backoff in milliseconds (doubles each retry).

    Returns:
        Parsed JSON object.

    Raises:
        ServerNotRunningError: If the server cannot be reached.
        WeblogAPIError: If the request fails or returns an error status.
    """
    last_error: Exception | None = None

    for attempt in range(max_retries):
        try:
            with httpx.Client(base_url=settings.url, timeout=settings.timeout) as client:
                response = client.request(method, endpoint, json=json_data)
        except httpx.ConnectError as e:
            last_error = e
            if attempt < max_retries - 1:
                time.sleep(backoff_ms / 1000 * (2**attempt))
            continue
        except httpx.HTTPError as e:
            raise WeblogAPIError(str(e)) from e

        if response.is_error:
            raise _error_from_response(response)

        try:
            result = response.json()
        except json.JSONDecodeError as e:
            raise WeblogAPIError(f"Invalid JSON response: {e}", response.status_code) from e
        if isinstance(result, dict):
            return result
        return {"value": result}

    raise ServerNotRunningError(settings.url) from last_error
