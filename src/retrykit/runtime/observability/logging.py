"""Structured logging for retry sessions.

Provides a small structured logger and a ready-made notify callback:
- BoundLogger: immutable logger with bound key-value context
- Console (human) / JSON (machine, orjson) / no-op renderers
- log_notify(): notify callback that logs one event per retry

Quick Start:
    >>> from retrykit.runtime.observability import configure_logging, get_logger, log_notify
    >>>
    >>> configure_logging(format="console")  # or "json" for production
    >>> log = get_logger("billing", job="sync")
    >>>
    >>> await retry(ctx, exponential(0.1, 2.0), charge, with_notify(log_notify(log)))
    # => 10:30:45.123 [info] retrying attempt=1 delay="100ms" elapsed="2ms" error="..." job="sync"
"""

from __future__ import annotations

import logging
import sys
import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, TextIO, TypeAlias, runtime_checkable

import orjson

from retrykit.foundation.errors import format_duration

if TYPE_CHECKING:
    from retrykit.foundation.config import LoggingSettings
    from retrykit.runtime.retry.policy import Notify

JsonValue: TypeAlias = "str | int | float | bool | None | list[JsonValue] | dict[str, JsonValue]"
JsonDict: TypeAlias = "dict[str, JsonValue]"


# ─────────────────────────────────────────────────────────────────────────────
# Logger
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True)
class LogEntry:
    """Log entry with all context."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()

    @property
    def ts_human(self) -> str:
        """HH:MM:SS.mmm"""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


@dataclass(slots=True)
class BoundLogger:
    """Structured logger with bound context. bind() returns a new logger with merged context.

    Example:
        >>> log = BoundLogger(context={"service": "api"})
        >>> log.info("request received", path="/users")
        # => 10:30:45.123 [info] request received path="/users" service="api"
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int | None = None

    def bind(self, **kw: JsonValue) -> BoundLogger:
        return BoundLogger(context={**self.context, **kw}, _renderer=self._renderer, _level=self._level)

    def unbind(self, *keys: str) -> BoundLogger:
        return BoundLogger(context={k: v for k, v in self.context.items() if k not in keys},
                           _renderer=self._renderer, _level=self._level)

    def _log(self, level: int, event: str, **kw: JsonValue) -> None:
        if level < (self._level if self._level is not None else _default_level.get()):
            return
        (self._renderer or _get_renderer()).render(
            LogEntry(time.time(), logging.getLevelName(level).lower(), event, {**self.context, **kw})
        )

    def debug(self, event: str, **kw: JsonValue) -> None: self._log(logging.DEBUG, event, **kw)
    def info(self, event: str, **kw: JsonValue) -> None: self._log(logging.INFO, event, **kw)
    def warning(self, event: str, **kw: JsonValue) -> None: self._log(logging.WARNING, event, **kw)
    def error(self, event: str, **kw: JsonValue) -> None: self._log(logging.ERROR, event, **kw)


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    """Protocol for log output renderers."""

    def render(self, entry: LogEntry) -> None: ...


@dataclass(slots=True)
class ConsoleRenderer:
    """Human-readable output. Format: timestamp [level] event key=value ..."""

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = auto-detect
    show_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = getattr(self.output, "isatty", lambda: False)()

    def render(self, entry: LogEntry) -> None:
        c = _COLORS if self.colors else _NO_COLORS
        parts = [f"{c['dim']}{entry.ts_human}{c['reset']}"] if self.show_timestamp else []
        parts += [f"{_LEVEL_COLORS.get(entry.level, c['dim']) if self.colors else ''}[{entry.level}]{c['reset']}",
                  f"{c['bold']}{entry.event}{c['reset']}"]
        parts += [f"{c['cyan']}{k}{c['reset']}={_format_value(v, c)}" for k, v in sorted(entry.context.items())]
        print(" ".join(parts), file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output for log aggregation."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        data = {"timestamp": entry.ts_iso, "level": entry.level, "event": entry.event, **entry.context}
        print(orjson.dumps(data, default=str, option=orjson.OPT_NON_STR_KEYS).decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Silent renderer for testing."""

    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────


_renderer: ContextVar[LogRenderer | None] = ContextVar("log_renderer", default=None)
_default_level: ContextVar[int] = ContextVar("log_level", default=logging.INFO)


def configure_logging(
    format: str = "console",  # noqa: A002 - shadows builtin but matches stdlib
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Configure structured logging and the level of the stdlib "retrykit" logger.

    Args:
        format: "console" (human), "json" (machine) or "none"
        level: Minimum level - DEBUG, INFO, WARNING, ERROR
        output: Output stream (default: stderr for console, stdout for json)
        colors: Force colors on/off (None = auto-detect)
    """
    level_int = getattr(logging, level.upper(), logging.INFO)
    _default_level.set(level_int)
    logging.getLogger("retrykit").setLevel(level_int)

    renderer: LogRenderer
    if format == "console":
        renderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
    elif format == "json":
        renderer = JsonRenderer(output=output or sys.stdout)
    elif format == "none":
        renderer = NoOpRenderer()
    else:
        raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")

    _renderer.set(renderer)
    return renderer


def configure_from_settings(settings: LoggingSettings) -> LogRenderer:
    """configure_logging() driven by RETRYKIT_LOG_* settings."""
    return configure_logging(format=settings.format, level=settings.level)


def get_logger(name: str | None = None, **initial_context: JsonValue) -> BoundLogger:
    """Get a structured logger; name is bound as 'logger'."""
    ctx = dict(initial_context)
    if name:
        ctx["logger"] = name
    return BoundLogger(context=ctx)


def _get_renderer() -> LogRenderer:
    renderer = _renderer.get()
    if renderer is None:
        renderer = ConsoleRenderer()
        _renderer.set(renderer)
    return renderer


# ─────────────────────────────────────────────────────────────────────────────
# Notify Sink
# ─────────────────────────────────────────────────────────────────────────────


def log_notify(log: BoundLogger | None = None, *, level: str = "info", event: str = "retrying") -> Notify:
    """Build a notify callback that logs each retry as a structured event.

    Example:
        >>> await retry(ctx, ZERO, op, with_notify(log_notify(get_logger("sync"))))
    """
    _log = log or get_logger("retrykit.retry")
    emit = getattr(_log, level)

    def notify(err: BaseException, delay: float, attempt: int, elapsed: float) -> None:
        emit(event, attempt=attempt, delay=format_duration(delay), elapsed=format_duration(elapsed),
             error=str(err), error_type=type(err).__name__)

    return notify


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


_COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "cyan": "\033[36m",
    "white": "\033[37m",
}

_NO_COLORS = {k: "" for k in _COLORS}

_LEVEL_COLORS = {
    "debug": _COLORS["dim"],
    "info": _COLORS["green"],
    "warning": _COLORS["yellow"],
    "error": _COLORS["red"],
}


def _format_value(v: object, c: dict[str, str]) -> str:
    if isinstance(v, str):
        return f'{c["yellow"]}"{v}"{c["reset"]}'
    if isinstance(v, bool):
        return f'{c["blue"]}{str(v).lower()}{c["reset"]}'
    if isinstance(v, (int, float)):
        return f'{c["blue"]}{v}{c["reset"]}'
    return f'{c["white"]}{v!r}{c["reset"]}'
