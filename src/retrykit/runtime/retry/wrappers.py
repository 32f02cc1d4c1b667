"""Stop wrappers: strategies that add a termination condition to another strategy.

A wrapper is itself a Strategy. Its stream checks the predicate before each
pull; once tripped it yields STOP without touching the inner stream,
otherwise it forwards the inner delay verbatim (inner STOP included).
Wrappers stack, and each layer keeps its own counter or clock per stream.

Example:
    >>> strategy = MaxElapsedTime(30.0, MaxRetries(5, exponential(0.1, 2.0, 0.2)))
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Protocol, runtime_checkable

from retrykit.foundation.errors import MaxElapsedTimeExceeded, MaxRetriesExceeded

from .backoff import STOP, STOP_STRATEGY, Delay, DelayStream, Strategy, next_delay


@runtime_checkable
class Wrapper(Protocol):
    """A strategy decorator that can be re-targeted at another strategy."""

    def wrap(self, strategy: Strategy) -> Strategy: ...


@dataclass(frozen=True, slots=True)
class MaxRetries:
    """Allow at most max_retries delays (so max_retries + 1 attempts), then STOP.

    Counts pulls, not successful delays.
    """

    max_retries: int
    strategy: Strategy = field(default=STOP_STRATEGY)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {self.max_retries}")

    def wrap(self, strategy: Strategy) -> MaxRetries:
        return replace(self, strategy=strategy)

    def iterator(self) -> DelayStream:
        return self._stream(self.strategy.iterator())

    def _stream(self, inner: DelayStream) -> DelayStream:
        for _ in range(self.max_retries):
            yield next_delay(inner)
        while True:
            yield Delay(STOP, MaxRetriesExceeded(self.max_retries))


@dataclass(frozen=True, slots=True)
class MaxElapsedTime:
    """STOP once more than max_elapsed_time seconds have passed since the stream was created.

    The clock starts at iterator(), i.e. when a retry session begins, so a
    long-lived wrapper never expires before it is used. A long inner delay
    that overshoots is not cut short; the check fires on the next pull.
    """

    max_elapsed_time: float
    strategy: Strategy = field(default=STOP_STRATEGY)

    def __post_init__(self) -> None:
        if self.max_elapsed_time < 0:
            raise ValueError(f"max_elapsed_time must be non-negative, got {self.max_elapsed_time}")

    def wrap(self, strategy: Strategy) -> MaxElapsedTime:
        return replace(self, strategy=strategy)

    def iterator(self) -> DelayStream:
        return self._stream(time.monotonic(), self.strategy.iterator())

    def _stream(self, start: float, inner: DelayStream) -> DelayStream:
        while time.monotonic() - start <= self.max_elapsed_time:
            yield next_delay(inner)
        while True:
            yield Delay(STOP, MaxElapsedTimeExceeded(self.max_elapsed_time))
