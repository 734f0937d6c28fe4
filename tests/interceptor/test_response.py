"""Unit tests for ResponseRecorder.

Uses AAA pattern (Arrange-Act-Assert) for clarity.
"""

import pytest

from bweb_log.interceptor import ResponseRecorder


class FakeSend:
    """ASGI send that rejects a second response start, like a real server."""

    def __init__(self):
        self.messages = []

    async def __call__(self, message):
        if message["type"] == "http.response.start" and any(
            m["type"] == "http.response.start" for m in self.messages
        ):
            raise RuntimeError("Response already started")
        self.messages.append(message)


def _start(status=200, content_type=b"application/json"):
    return {"type": "http.response.start", "status": status, "headers": [(b"content-type", content_type)]}


class TestResponseRecorder:
    """Tests for forwarding and recording."""

    @pytest.mark.asyncio
    async def test_forwards_and_records(self):
        """Messages reach the real send unchanged and are recorded."""
        # Arrange
        send = FakeSend()
        recorder = ResponseRecorder(send)

        # Act
        await recorder(_start(201))
        await recorder({"type": "http.response.body", "body": b'{"id":', "more_body": True})
        await recorder({"type": "http.response.body", "body": b"1}"})

        # Assert
        assert len(send.messages) == 3
        assert recorder.started and recorder.sent
        assert recorder.status_code == 201
        assert recorder.content_type == "application/json"
        assert recorder.json_body() == {"id": 1}

    @pytest.mark.asyncio
    async def test_second_start_rejected_state_unchanged(self):
        """A start rejected by the server propagates and is not recorded."""
        # Arrange
        send = FakeSend()
        recorder = ResponseRecorder(send)
        await recorder(_start(200))

        # Act
        with pytest.raises(RuntimeError):
            await recorder(_start(500))

        # Assert
        assert recorder.status_code == 200
        assert len(send.messages) == 1

    @pytest.mark.asyncio
    async def test_incomplete_body_not_parsed(self):
        """json_body is None until the final chunk was sent."""
        recorder = ResponseRecorder(FakeSend())
        await recorder(_start())
        await recorder({"type": "http.response.body", "body": b"{}", "more_body": True})

        assert not recorder.sent
        assert recorder.json_body() is None

    @pytest.mark.asyncio
    async def test_non_json_not_parsed(self):
        """Only JSON responses produce a parsed body."""
        recorder = ResponseRecorder(FakeSend())
        await recorder(_start(content_type=b"text/plain; charset=utf-8"))
        await recorder({"type": "http.response.body", "body": b"hello"})

        assert recorder.body == b"hello"
        assert recorder.json_body() is None

    @pytest.mark.asyncio
    async def test_oversized_body_truncated(self):
        """Bodies above max_capture_bytes are forwarded but not kept."""
        # Arrange
        send = FakeSend()
        recorder = ResponseRecorder(send, max_capture_bytes=4)

        # Act
        await recorder(_start())
        await recorder({"type": "http.response.body", "body": b'{"a":1}'})

        # Assert
        assert send.messages[-1]["body"] == b'{"a":1}'
        assert recorder.truncated
        assert recorder.body is None
        assert recorder.json_body() is None
