"""Tests for RequestLogger installation and lifecycle.

Uses AAA pattern (Arrange-Act-Assert) for clarity.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from bweb_log.config import WeblogConfig
from bweb_log.logger import RequestLogger


class TestInstall:
    """Tests for install()."""

    def test_install_adds_routes_and_state(self, host_app, weblog_config):
        """Management routes and the registry are attached to the app."""
        logger = RequestLogger("test-http", weblog_config)

        logger.install(host_app)

        assert host_app.state.bweb_log_registry is logger.registry
        assert any(getattr(route, "path", "") == "/bweb-log" for route in host_app.routes)
        assert logger.app is host_app

    def test_install_twice_rejected(self, host_app, weblog_config):
        """Only one request logger per app."""
        RequestLogger("a", weblog_config).install(host_app)

        with pytest.raises(RuntimeError):
            RequestLogger("b", weblog_config).install(host_app)

    def test_lifespan_opens_and_closes_reporters(self, host_app, weblog_config):
        """With manage_lifespan the reporters follow the app lifecycle."""
        # Arrange
        logger = RequestLogger("test-http", weblog_config)
        logger.install(host_app, manage_lifespan=True)

        # Act
        with TestClient(host_app):
            during = logger.list_statuses()

        # Assert
        assert during == {"console": True, "file": True, "names": False}
        assert logger.list_statuses() == {"console": False, "file": False, "names": False}


class TestLifecycle:
    """Tests for open/close driven by the host."""

    def test_startup_reporters_follow_config(self, tmp_path):
        """Only reporters switched on in the config start enabled."""
        config = WeblogConfig(log_dir=str(tmp_path), reporter_console=False, reporter_names=True)

        assert RequestLogger("n", config).startup_reporters() == ["file", "names"]

    @pytest.mark.asyncio
    async def test_open_is_idempotent(self, weblog_config):
        """Opening twice neither re-registers nor re-enables."""
        logger = RequestLogger("test-http", weblog_config)

        await logger.open()
        await logger.open()

        assert logger.list_statuses() == {"console": True, "file": True, "names": False}
        await logger.close()

    @pytest.mark.asyncio
    async def test_requests_logged_to_file(self, host_app, weblog_config, records):
        """A request through an opened logger lands in the file reporter's log."""
        # Arrange
        logger = RequestLogger("test-http", weblog_config)
        logger.install(host_app)
        await logger.open()

        # Act
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=host_app), base_url="http://test") as client:
            await client.get("/items/42")
        await logger.close()

        # Assert
        log = records(weblog_config.location("test-http.log"))
        assert [(r["type"], r["request"]["pathname"]) for r in log] == [
            ("begin", "/items/42"),
            ("finish", "/items/42"),
        ]
        assert log[1]["response"]["status_code"] == 200

    @pytest.mark.asyncio
    async def test_register_and_enable_custom_reporter(self, weblog_config, recording_reporter):
        """Custom reporters can be registered and enabled in one call."""
        logger = RequestLogger("test-http", weblog_config)

        await logger.register(recording_reporter, enable=True)
        await logger.disable("recording")
        await logger.unregister("recording")

        assert logger.list_statuses() == {}
