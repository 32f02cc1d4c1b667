"""Tests for structured logging and the logging notify sink."""

from __future__ import annotations

import io
import json
import logging

import pytest

from retrykit.foundation.config import LoggingSettings
from retrykit.foundation.errors import RetryError
from retrykit.runtime.concurrency import Context
from retrykit.runtime.observability import (
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    NoOpRenderer,
    configure_from_settings,
    configure_logging,
    log_notify,
)
from retrykit.runtime.retry import Delays, retry_sync, with_notify


def test_console_renderer_format() -> None:
    out = io.StringIO()
    log = BoundLogger(context={"service": "api"}, _renderer=ConsoleRenderer(output=out, colors=False, show_timestamp=False))
    log.info("request received", path="/users")

    assert out.getvalue().strip() == '[info] request received path="/users" service="api"'


def test_json_renderer() -> None:
    out = io.StringIO()
    log = BoundLogger(_renderer=JsonRenderer(output=out)).bind(job="sync")
    log.warning("slow", attempt=3)

    record = json.loads(out.getvalue())
    assert record["level"] == "warning"
    assert record["event"] == "slow"
    assert record["job"] == "sync"
    assert record["attempt"] == 3


def test_level_filtering() -> None:
    out = io.StringIO()
    log = BoundLogger(_renderer=ConsoleRenderer(output=out, colors=False), _level=logging.WARNING)
    log.info("hidden")
    log.error("shown")
    assert "hidden" not in out.getvalue()
    assert "shown" in out.getvalue()


def test_bind_and_unbind_are_immutable() -> None:
    base = BoundLogger(context={"a": 1})
    bound = base.bind(b=2)
    assert base.context == {"a": 1}
    assert bound.unbind("a").context == {"b": 2}


def test_configure_logging_rejects_unknown_format() -> None:
    with pytest.raises(ValueError):
        configure_logging(format="xml")


def test_configure_from_settings_sets_stdlib_level() -> None:
    renderer = configure_from_settings(LoggingSettings(level="WARNING", format="none"))
    assert isinstance(renderer, NoOpRenderer)
    assert logging.getLogger("retrykit").level == logging.WARNING
    configure_logging(format="none", level="INFO")


def test_log_notify_emits_event_per_retry() -> None:
    out = io.StringIO()
    log = BoundLogger(context={"op": "fetch"}, _renderer=JsonRenderer(output=out))

    def op(ctx: Context) -> None:
        raise OSError("down")

    with pytest.raises(RetryError):
        retry_sync(Context.background(), Delays.of(0, 0.001), op, with_notify(log_notify(log)))

    records = [json.loads(line) for line in out.getvalue().splitlines()]
    assert [r["attempt"] for r in records] == [1, 2]
    assert [r["delay"] for r in records] == ["0s", "1ms"]
    assert all(r["event"] == "retrying" and r["error"] == "down" and r["op"] == "fetch" for r in records)
    assert records[0]["error_type"] == "OSError"


def test_driver_logs_give_up(caplog: pytest.LogCaptureFixture) -> None:
    def op(ctx: Context) -> None:
        raise OSError("down")

    with caplog.at_level(logging.DEBUG, logger="retrykit.retry"):
        with pytest.raises(RetryError):
            retry_sync(Context.background(), Delays.of(0), op)

    messages = [r.getMessage() for r in caplog.records if r.name == "retrykit.retry"]
    assert any(m.startswith("Attempt 1 failed, retrying in 0s") for m in messages)
    assert any(m.startswith("Giving up after 2 attempt(s)") for m in messages)
