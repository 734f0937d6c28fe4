"""Tests for the /bweb-log management routes.

Uses AAA pattern (Arrange-Act-Assert) for clarity.
"""

import asyncio

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from bweb_log.api import router
from bweb_log.logger import RequestLogger
from bweb_log.reporters import AbstractReporter

# =============================================================================
# Fixtures
# =============================================================================


class BrokenOpenReporter(AbstractReporter):
    id = "broken"

    async def open(self):
        raise OSError("disk unavailable")

    async def on_finish(self, request, response, metadata):
        pass


class SlowOpenReporter(AbstractReporter):
    id = "slow"

    async def open(self):
        await asyncio.sleep(0.05)

    async def on_finish(self, request, response, metadata):
        pass


@pytest.fixture
def request_logger(weblog_config) -> RequestLogger:
    return RequestLogger("test-http", weblog_config)


@pytest.fixture
def client(host_app: FastAPI, request_logger: RequestLogger):
    """Client for a host app whose logger opens with the app (console and file on)."""
    request_logger.install(host_app, manage_lifespan=True)
    with TestClient(host_app) as test_client:
        yield test_client


def _error(response) -> dict:
    return response.json()["detail"]


# =============================================================================
# GET/PUT /bweb-log
# =============================================================================


class TestStatus:
    """Tests for reporter status and toggling."""

    def test_lists_builtin_reporters(self, client):
        """All built-in reporters are listed with their enabled state."""
        response = client.get("/bweb-log")

        assert response.status_code == 200
        assert response.json() == {"reporters": {"console": True, "file": True, "names": False}}

    def test_enable_reporter(self, client):
        """PUT enables a reporter and returns the new statuses."""
        response = client.put("/bweb-log", json={"id": "names", "enabled": True})

        assert response.status_code == 200
        assert response.json()["reporters"]["names"] is True

    def test_disable_reporter(self, client):
        """PUT disables a reporter."""
        response = client.put("/bweb-log", json={"id": "file", "enabled": False})

        assert response.status_code == 200
        assert response.json()["reporters"]["file"] is False

    def test_toggle_to_current_state_is_noop(self, client):
        """Enabling an enabled reporter succeeds without change."""
        response = client.put("/bweb-log", json={"id": "console", "enabled": True})

        assert response.status_code == 200
        assert response.json()["reporters"]["console"] is True

    def test_unknown_reporter(self, client):
        """Unknown ids are rejected with REPORTER_NOT_FOUND."""
        response = client.put("/bweb-log", json={"id": "nope", "enabled": True})

        assert response.status_code == 400
        assert _error(response)["code"] == "REPORTER_NOT_FOUND"
        assert _error(response)["details"] == {"reporter_id": "nope"}

    @pytest.mark.parametrize(
        "body",
        [
            {"id": "file"},
            {"id": "file", "enabled": "yes"},
            {"id": "", "enabled": True},
            {"id": "file", "enabled": True, "extra": 1},
        ],
    )
    def test_invalid_toggle_body(self, client, body):
        """Malformed toggle requests are rejected with field errors."""
        response = client.put("/bweb-log", json=body)

        assert response.status_code == 400
        assert _error(response)["code"] == "VALIDATION_ERROR"
        assert _error(response)["validation_errors"]

    @pytest.mark.parametrize("content", [b"{not json", b"[1, 2]"])
    def test_body_must_be_json_object(self, client, content):
        """Bodies that are not JSON objects are rejected."""
        response = client.put("/bweb-log", content=content, headers={"content-type": "application/json"})

        assert response.status_code == 400
        assert _error(response)["code"] == "VALIDATION_ERROR"

    def test_open_failure_is_server_error(self, client, host_app):
        """A reporter that cannot open yields 500 and stays disabled."""
        # Arrange
        host_app.state.bweb_log_registry.register(BrokenOpenReporter)

        # Act
        response = client.put("/bweb-log", json={"id": "broken", "enabled": True})

        # Assert
        assert response.status_code == 500
        assert _error(response)["code"] == "REPORTER_OPEN_FAILED"
        assert client.get("/bweb-log").json()["reporters"]["broken"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("enabled", [True, False])
    async def test_concurrent_identical_toggles_succeed(self, request_logger, enabled):
        """Two simultaneous requests for the same state both answer 200."""
        # Arrange
        app = FastAPI()
        request_logger.install(app)
        request_logger.registry.register(SlowOpenReporter)
        if not enabled:
            await request_logger.registry.enable("slow")
        transport = httpx.ASGITransport(app=app)

        # Act
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            responses = await asyncio.gather(
                client.put("/bweb-log", json={"id": "slow", "enabled": enabled}),
                client.put("/bweb-log", json={"id": "slow", "enabled": enabled}),
            )
        await request_logger.close()

        # Assert
        assert [response.status_code for response in responses] == [200, 200]
        assert all(response.json()["reporters"]["slow"] is enabled for response in responses)


# =============================================================================
# GET/PUT /bweb-log/{reporter_id}
# =============================================================================


class TestOptions:
    """Tests for reporter options."""

    def test_get_options(self, client):
        """Options of an enabled reporter are returned."""
        response = client.get("/bweb-log/file")

        assert response.status_code == 200
        assert response.json() == {"options": {"params": True, "response": False}}

    def test_options_of_disabled_reporter(self, client):
        """Options of a disabled reporter are unavailable."""
        response = client.get("/bweb-log/names")

        assert response.status_code == 400
        assert _error(response)["code"] == "REPORTER_NOT_ENABLED"

    def test_options_of_unknown_reporter(self, client):
        """Unknown ids are rejected."""
        response = client.get("/bweb-log/nope")

        assert response.status_code == 400
        assert _error(response)["code"] == "REPORTER_NOT_FOUND"

    def test_set_options(self, client):
        """A valid partial update is applied and returned whole."""
        response = client.put("/bweb-log/console", json={"level": "DEBUG"})

        assert response.status_code == 200
        assert response.json() == {"options": {"level": "DEBUG"}}
        assert client.get("/bweb-log/console").json() == {"options": {"level": "DEBUG"}}

    def test_invalid_options_rejected_whole(self, client):
        """One invalid field rejects the update; nothing changes."""
        # Act
        response = client.put("/bweb-log/file", json={"response": True, "bogus": 1})

        # Assert
        assert response.status_code == 400
        error = _error(response)
        assert error["code"] == "REPORTER_CONFIG_INVALID"
        assert error["validation_errors"][0]["loc"] == ["bogus"]
        assert client.get("/bweb-log/file").json()["options"]["response"] is False

    def test_options_body_must_be_object(self, client):
        """Non-object option bodies are rejected."""
        response = client.put("/bweb-log/file", json=[True])

        assert response.status_code == 400
        assert _error(response)["code"] == "VALIDATION_ERROR"

    def test_response_option_changes_file_records(self, client, request_logger, records):
        """Switching on response bodies affects subsequent requests."""
        # Arrange
        client.put("/bweb-log/file", json={"response": True})

        # Act
        client.post("/echo", json={"a": 1, "passphrase": "secret"})

        # Assert
        log = records(request_logger.config.location("test-http.log"))
        finish = [r for r in log if r["type"] == "finish" and r["request"]["pathname"] == "/echo"]
        assert finish[0]["response"]["body"]["received"]["a"] == 1
        assert finish[0]["request"]["body"] == {"a": 1, "passphrase": "*****"}
        assert finish[0]["response"]["body"]["received"]["passphrase"] == "*****"


class TestRedactionOnDisk:
    """Sensitive values never reach the request log file."""

    def test_echoed_secrets_masked_in_response_body(self, client, request_logger):
        """Secrets echoed back by a handler are masked in the logged response."""
        # Arrange
        client.put("/bweb-log/file", json={"response": True})

        # Act
        response = client.post("/echo?token=abc123", json={"passphrase": "xyz"})

        # Assert
        assert response.status_code == 200
        text = request_logger.config.location("test-http.log").read_text(encoding="utf-8")
        assert "abc123" not in text
        assert "xyz" not in text

    def test_query_secrets_masked(self, client, request_logger, records):
        """token and passphrase in the query string are kept as keys with masked values."""
        # Act
        response = client.get("/items/1?token=abc123&passphrase=xyz")

        # Assert
        assert response.status_code == 200
        path = request_logger.config.location("test-http.log")
        text = path.read_text(encoding="utf-8")
        assert "abc123" not in text
        assert "xyz" not in text
        logged = [r for r in records(path) if r["request"].get("pathname") == "/items/1"]
        assert [r["type"] for r in logged] == ["begin", "finish"]
        for record in logged:
            assert record["request"]["query"] == {"token": "*****", "passphrase": "*****"}


class TestWithoutLogger:
    """Routes mounted on an app without a request logger."""

    def test_returns_503(self):
        """The registry dependency fails with 503 when nothing is installed."""
        app = FastAPI()
        app.include_router(router)

        with TestClient(app) as client:
            response = client.get("/bweb-log")

        assert response.status_code == 503
