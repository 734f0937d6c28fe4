"""Tests for FileReporter.

Uses AAA pattern (Arrange-Act-Assert) for clarity.
"""

from unittest.mock import MagicMock

import pytest

from bweb_log.constants import BYTES_PER_MB, REDACTED_MARKER
from bweb_log.exceptions import ConfigError, ResourceError
from bweb_log.interceptor import RequestInfo, RequestMetadata, StructuredError
from bweb_log.reporters import FileReporter, ReporterContext

SEND_REQUEST = RequestInfo(
    method="POST",
    path="/wallet/primary/send",
    path_segments=("wallet", "primary", "send"),
    path_params={"id": "primary"},
    query={},
    body={"passphrase": "hunter2", "outputs": [{"value": 1000, "token": "t"}], "memo": None},
    content_type="application/json",
)


def _finished(status_code=200, body=None, error=None) -> RequestMetadata:
    metadata = RequestMetadata()
    metadata.mark_started()
    if error is not None:
        metadata.record_error(error)
    metadata.set_response(status_code, body)
    metadata.mark_finished()
    return metadata


async def _log_request(reporter, request, metadata):
    await reporter.open()
    try:
        await reporter.on_begin(request, metadata)
        await reporter.on_finish(request, MagicMock(), metadata)
    finally:
        await reporter.close()


class TestRecords:
    """Tests for the begin/finish records written."""

    @pytest.mark.asyncio
    async def test_begin_and_finish_records(self, context, records):
        """A request produces a begin and a finish line with redacted fields."""
        # Arrange
        reporter = FileReporter.init(context, {})
        metadata = _finished(200, {"hash": "aa"})

        # Act
        await _log_request(reporter, SEND_REQUEST, metadata)

        # Assert
        begin, finish = records(reporter.path)
        assert reporter.path == context.location("test-http.log")

        assert begin["type"] == "begin"
        assert isinstance(begin["timestamp"], int)
        assert begin["date"].endswith("Z")
        assert begin["request"] == {
            "method": "POST",
            "pathname": "/wallet/primary/send",
            "params": {"id": "primary"},
            "body": {
                "passphrase": REDACTED_MARKER,
                "outputs": [{"value": 1000, "token": REDACTED_MARKER}],
                "memo": None,
            },
            "start": metadata.start_ns,
        }

        assert finish["type"] == "finish"
        assert "start" not in finish["request"]
        assert finish["request"]["pathname"] == "/wallet/primary/send"
        assert finish["response"]["status_code"] == 200
        assert finish["response"]["elapsed"] == metadata.elapsed_ns
        assert finish["response"]["elapsed_str"] == metadata.elapsed_str
        assert "body" not in finish["response"]
        assert "error" not in finish["response"]

    @pytest.mark.asyncio
    async def test_params_off_omits_request_values(self, context, records):
        """With params disabled, params, query and body are left out."""
        reporter = FileReporter.init(context, {"params": False})

        await _log_request(reporter, SEND_REQUEST, _finished())

        begin, finish = records(reporter.path)
        assert set(begin["request"]) == {"method", "pathname", "start"}
        assert set(finish["request"]) == {"method", "pathname"}

    @pytest.mark.asyncio
    async def test_response_body_logged_when_enabled(self, context, records):
        """The response body appears once the response option is switched on."""
        # Arrange
        reporter = FileReporter.init(context, {})
        reporter.set_configuration({"response": True})

        # Act
        await _log_request(reporter, SEND_REQUEST, _finished(200, {"hash": "aa", "fee": 0}))

        # Assert
        _, finish = records(reporter.path)
        assert finish["response"]["body"] == {"hash": "aa", "fee": 0}

    @pytest.mark.asyncio
    async def test_error_recorded_without_body(self, context, records):
        """A failed request logs its error and never a body."""
        reporter = FileReporter.init(context, {"response": True})
        error = StructuredError(type="HTTPException", message="Item not found", status_code=404)

        await _log_request(reporter, SEND_REQUEST, _finished(404, {"detail": "Item not found"}, error))

        _, finish = records(reporter.path)
        assert finish["response"]["error"] == {
            "type": "HTTPException",
            "message": "Item not found",
            "status_code": 404,
        }
        assert finish["response"]["status_code"] == 404
        assert "body" not in finish["response"]


class TestConfiguration:
    """Tests for enable-time configuration."""

    def test_store_settings_from_startup_config(self, context):
        """File size and count default to the startup config."""
        reporter = FileReporter.init(context, {})

        assert reporter.store.max_file_size == context.config.file_size_mb * BYTES_PER_MB
        assert reporter.store.max_files == context.config.max_files

    def test_store_settings_overridden(self, context):
        """Enable-time config overrides file name, size and count."""
        reporter = FileReporter.init(context, {"file_name": "custom.log", "max_file_size": 1024, "max_files": 2})

        assert reporter.path == context.location("custom.log")
        assert reporter.store.max_file_size == 1024
        assert reporter.store.max_files == 2
        assert reporter.get_configuration() == {"params": True, "response": False}

    def test_startup_file_name_used(self, context):
        """The startup file_name applies when enable passes none."""
        config = context.config.model_copy(update={"file_name": "requests.log"})
        ctx = ReporterContext(name=context.name, config=config, logger=context.logger)

        assert FileReporter.init(ctx, {}).path == ctx.location("requests.log")

    def test_invalid_store_settings(self, context):
        """Invalid store settings are rejected with field errors."""
        with pytest.raises(ConfigError) as exc_info:
            FileReporter.init(context, {"max_files": -1})

        assert exc_info.value.validation_errors[0]["loc"] == ["max_files"]

    def test_unknown_option_rejected(self, context):
        """Unknown keys fail validation."""
        with pytest.raises(ConfigError):
            FileReporter.init(context, {"colour": "red"})


class TestOpen:
    """Tests for open failures."""

    @pytest.mark.asyncio
    async def test_unusable_directory_raises_resource_error(self, context, tmp_path):
        """A log directory that cannot be created fails open with ResourceError."""
        # Arrange
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        config = context.config.model_copy(update={"log_dir": str(blocker)})
        reporter = FileReporter.init(ReporterContext(name="x", config=config, logger=context.logger), {})

        # Act / Assert
        with pytest.raises(ResourceError):
            await reporter.open()
        await reporter.close()
