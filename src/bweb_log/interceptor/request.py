"""Immutable request snapshot handed to reporters.

Reading a request body consumes the ASGI ``receive`` channel, so when the
body is captured it is buffered and replayed to the handler through a
substitute ``receive`` that yields the same bytes.
"""

from __future__ import annotations

__all__ = ["RequestInfo", "capture_request"]

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from starlette.datastructures import Headers, QueryParams
from starlette.types import Message, Receive, Scope

from bweb_log.constants import CAPTURED_BODY_CONTENT_TYPES

_BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


@dataclass(frozen=True, slots=True)
class RequestInfo:
    """What reporters see of a request.

    Attributes:
        method: Upper-case HTTP method.
        path: URL path without query string.
        path_segments: Non-empty path components.
        path_params: Route parameters matched by the router.
        query: Query parameters (last value wins for repeated keys).
        body: Parsed JSON or form body, None when not captured.
        content_type: Media type of the request body, without parameters.
    """

    method: str
    path: str
    path_segments: tuple[str, ...] = ()
    path_params: Mapping[str, Any] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    content_type: str | None = None

    @classmethod
    def from_scope(cls, scope: Scope, body: Any = None) -> RequestInfo:
        path = scope.get("path", "/")
        query = QueryParams(scope.get("query_string", b""))
        return cls(
            method=scope.get("method", "GET").upper(),
            path=path,
            path_segments=tuple(part for part in path.split("/") if part),
            path_params=dict(scope.get("path_params") or {}),
            query={key: value for key, value in query.multi_items()},
            body=body,
            content_type=_media_type(Headers(scope=scope)),
        )

    def values(self) -> dict[str, Any]:
        """Params, query and body merged (body wins, then query)."""
        merged: dict[str, Any] = dict(self.path_params)
        merged.update(self.query)
        if isinstance(self.body, Mapping):
            merged.update(self.body)
        return merged


def _media_type(headers: Headers) -> str | None:
    content_type = headers.get("content-type")
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower()


def _parse_body(media_type: str, raw: bytes) -> Any:
    if not raw:
        return None
    if media_type == "application/json":
        try:
            return json.loads(raw)
        except ValueError:
            return None
    # application/x-www-form-urlencoded has the query string grammar
    return {key: value for key, value in QueryParams(raw).multi_items()}


async def capture_request(scope: Scope, receive: Receive) -> tuple[RequestInfo, Receive]:
    """Snapshot the request, buffering the body when it is JSON or form data.

    Args:
        scope: ASGI HTTP scope.
        receive: The server's receive channel.

    Returns:
        ``(request_info, receive)`` where ``receive`` must be passed to the
        handler in place of the original one.
    """
    media_type = _media_type(Headers(scope=scope))
    method = scope.get("method", "GET").upper()
    if method in _BODYLESS_METHODS or media_type not in CAPTURED_BODY_CONTENT_TYPES:
        return RequestInfo.from_scope(scope), receive

    chunks: list[bytes] = []
    pending: list[Message] = []
    while True:
        message = await receive()
        if message["type"] != "http.request":
            # Client went away; let the handler see the disconnect
            pending.append(message)
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break

    raw = b"".join(chunks)
    pending.insert(0, {"type": "http.request", "body": raw, "more_body": False})

    async def replay() -> Message:
        if pending:
            return pending.pop(0)
        return await receive()

    return RequestInfo.from_scope(scope, body=_parse_body(media_type, raw)), replay
