"""Tests for logging configuration, state rendering and the async main bootstrap."""

from __future__ import annotations

import io
import json
import logging

import pytest
import structlog

from offline_search import main as main_module
from offline_search.config import DebounceSettings
from offline_search.domain.models import ResultState, UserRecord
from offline_search.logging import configure_logging


def test_configure_logging_writes_json_to_stderr(capsys):
    stream = io.StringIO()
    try:
        configure_logging("info", environment="dev", stream=stream)
        structlog.get_logger().info("unit-test", foo="bar")
    finally:
        structlog.contextvars.clear_contextvars()
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    event = json.loads(stream.getvalue().splitlines()[-1])
    assert event["event"] == "unit-test"
    assert event["foo"] == "bar"
    assert event["level"] == "info"
    assert event["environment"] == "dev"
    assert capsys.readouterr().out == ""


def test_configure_logging_defaults_to_stderr(capsys):
    try:
        configure_logging(logging.WARNING)
        structlog.get_logger().warning("to-stderr")
        structlog.get_logger().info("filtered-out")
    finally:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    captured = capsys.readouterr()
    assert "to-stderr" in captured.err
    assert "filtered-out" not in captured.err
    assert captured.out == ""


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("chatty", stream=io.StringIO())


def test_render_state_variants():
    users = [UserRecord(id=1, login="octocat"), UserRecord(id=2, login="doe")]

    assert main_module.render_state(ResultState.idle()) == "Enter a query to begin"
    assert main_module.render_state(ResultState.loading()) == "Searching..."
    assert main_module.render_state(ResultState.empty()) == "No results found"
    assert main_module.render_state(ResultState.failed(RuntimeError("boom"))) == "Error: boom"
    assert main_module.render_state(ResultState.resolved(users)) == "  octocat (#1)\n  doe (#2)"
    assert main_module.render_state(ResultState.cached(users[:1])).endswith("Updating...")


class DummyConnectivity:
    instances: list["DummyConnectivity"] = []

    def __init__(self, http_client, settings) -> None:
        self.is_reachable = False
        self.started = False
        self.stopped = False
        DummyConnectivity.instances.append(self)

    def start(self) -> None:
        self.started = True

    async def aclose(self) -> None:
        self.stopped = True


@pytest.mark.asyncio
async def test_main_bootstrap_offline(monkeypatch, capsys, make_settings):
    settings = make_settings(debounce=DebounceSettings(quiet_period_seconds=0.01))
    DummyConnectivity.instances.clear()

    monkeypatch.setattr(main_module, "configure_logging", lambda level, **kwargs: None)
    monkeypatch.setattr(main_module, "get_settings", lambda: settings)
    monkeypatch.setattr(main_module, "ConnectivityMonitor", DummyConnectivity)

    async def edits():
        yield "octo"

    await main_module.main(edits())

    out = capsys.readouterr().out
    assert "Searching..." in out
    assert "No results found" in out
    monitor = DummyConnectivity.instances[0]
    assert monitor.started is True
    assert monitor.stopped is True
