"""Shared fixtures for bweb-log tests."""

import json
from pathlib import Path

import pytest
from fastapi import FastAPI, HTTPException, Request

from bweb_log.config import WeblogConfig
from bweb_log.registry import ReporterRegistry
from bweb_log.reporters import AbstractReporter, ReporterContext
from bweb_log.telemetry.system import get_system_logger


class RecordingReporter(AbstractReporter):
    """Reporter that keeps every callback it receives in memory."""

    id = "recording"

    def __init__(self, context, options=None):
        super().__init__(context, options)
        self.events = []
        self.opened = False
        self.closed = False

    async def open(self):
        self.opened = True

    async def close(self):
        self.closed = True

    async def on_begin(self, request, metadata):
        self.events.append(("begin", request, metadata))

    async def on_finish(self, request, response, metadata):
        self.events.append(("finish", request, metadata))

    def phases(self):
        return [event[0] for event in self.events]


def read_records(path: Path) -> list[dict]:
    """Parse a JSONL file line by line."""
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


@pytest.fixture
def recording_reporter() -> type[RecordingReporter]:
    """The RecordingReporter class."""
    return RecordingReporter


@pytest.fixture
def records():
    """The read_records helper."""
    return read_records


@pytest.fixture
def weblog_config(tmp_path: Path) -> WeblogConfig:
    """Config writing into a temporary log directory."""
    return WeblogConfig(log_dir=str(tmp_path / "logs"), system_log=False)


@pytest.fixture
def context(weblog_config: WeblogConfig) -> ReporterContext:
    """Reporter context for a logger named test-http."""
    return ReporterContext(name="test-http", config=weblog_config, logger=get_system_logger())


@pytest.fixture
def registry(context: ReporterContext) -> ReporterRegistry:
    """Fresh registry with a short callback timeout."""
    return ReporterRegistry(context, callback_timeout=1.0)


@pytest.fixture
def host_app() -> FastAPI:
    """Host application with a handful of representative routes."""
    app = FastAPI()

    @app.get("/items/{item_id}")
    async def get_item(item_id: str, verbose: bool = False) -> dict:
        return {"id": item_id, "verbose": verbose}

    @app.post("/echo")
    async def echo(request: Request) -> dict:
        return {"received": await request.json()}

    @app.get("/missing")
    async def missing() -> dict:
        raise HTTPException(status_code=404, detail="Item not found")

    @app.get("/boom")
    async def boom() -> dict:
        raise RuntimeError("boom")

    @app.post("/wallet/{wallet_id}/{operation}")
    async def wallet_operation(wallet_id: str, operation: str, request: Request) -> dict:
        await request.body()
        return {"hash": "ab" * 32, "wallet": wallet_id, "operation": operation}

    return app
