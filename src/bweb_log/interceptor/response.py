"""Transparent recorder around the ASGI ``send`` channel.

The handler receives a ResponseRecorder in place of ``send``. Every message
is forwarded unchanged and recorded only after the real ``send`` accepted
it, so a message the server rejects (for instance a second
``http.response.start``) fails exactly as it would without the recorder and
leaves the recorded state untouched.
"""

from __future__ import annotations

__all__ = ["ResponseRecorder"]

import json
from typing import Any

from starlette.datastructures import Headers
from starlette.types import Message, Send

from bweb_log.constants import DEFAULT_MAX_CAPTURE_BYTES


class ResponseRecorder:
    """Decorator over an ASGI ``send`` callable.

    Attributes:
        status_code: Status from ``http.response.start`` (None until sent).
        headers: Response headers (empty until the start message was sent).
        started: A response start was accepted.
        sent: The final body message was accepted.
        truncated: The body exceeded ``max_capture_bytes`` and was not kept.
    """

    def __init__(self, send: Send, max_capture_bytes: int = DEFAULT_MAX_CAPTURE_BYTES) -> None:
        self._send = send
        self._max_capture_bytes = max_capture_bytes
        self._chunks: list[bytes] = []
        self._captured = 0

        self.status_code: int | None = None
        self.headers = Headers()
        self.started = False
        self.sent = False
        self.truncated = False

    async def __call__(self, message: Message) -> None:
        await self._send(message)
        self._record(message)

    def _record(self, message: Message) -> None:
        message_type = message.get("type")
        if message_type == "http.response.start":
            self.started = True
            self.status_code = message["status"]
            self.headers = Headers(raw=list(message.get("headers", [])))
        elif message_type == "http.response.body":
            chunk = message.get("body", b"")
            if not self.truncated and chunk:
                if self._captured + len(chunk) > self._max_capture_bytes:
                    self.truncated = True
                    self._chunks.clear()
                else:
                    self._chunks.append(chunk)
                    self._captured += len(chunk)
            if not message.get("more_body", False):
                self.sent = True

    @property
    def content_type(self) -> str | None:
        value = self.headers.get("content-type")
        if not value:
            return None
        return value.split(";", 1)[0].strip().lower()

    @property
    def body(self) -> bytes | None:
        """Captured body bytes, None if truncated."""
        if self.truncated:
            return None
        return b"".join(self._chunks)

    def json_body(self) -> Any:
        """Parsed body of a fully sent JSON response, else None."""
        if not self.sent or self.truncated or self.content_type != "application/json":
            return None
        raw = self.body
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return None
