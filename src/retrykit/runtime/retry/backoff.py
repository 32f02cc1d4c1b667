"""Delay strategies for the retry driver.

A strategy is a factory of delay streams. Each call to iterator() returns a
fresh, single-use generator of Delay values:
- Delays: explicit list, then STOP forever
- Constant: the same delay forever (ZERO retries immediately, STOP_STRATEGY never retries)
- ExponentialBackoff: geometric growth with jitter and an optional ceiling

Streams never raise StopIteration. Once a stream yields STOP it keeps
yielding STOP.
"""

from __future__ import annotations

import random
import time
from collections.abc import Iterator
from dataclasses import dataclass
from typing import NamedTuple, Protocol, runtime_checkable

from retrykit.foundation.errors import DelaysSpent, Stopped, StrategyStopped, StreamExhausted

# Sentinel delay meaning "no further retries"
STOP: float = -1.0

# Smallest distinguishable delay; the jitter range is widened by one unit of it
RESOLUTION: float = 1e-9

_UNITS_PER_SECOND = 1_000_000_000
_MAX_UNITS = 2**63 - 1


class Delay(NamedTuple):
    """One element of a delay stream.

    Attributes:
        seconds: Delay before the next attempt, or STOP
        cause: Why the stream stopped (only set alongside STOP)
    """

    seconds: float
    cause: StrategyStopped | None = None

    @property
    def stopped(self) -> bool:
        return self.seconds == STOP


DelayStream = Iterator[Delay]


def next_delay(stream: DelayStream) -> Delay:
    """Pull the next delay, reading an ended stream as STOP."""
    step = next(stream, None)
    return Delay(STOP, StreamExhausted()) if step is None else step


@runtime_checkable
class Strategy(Protocol):
    """Protocol for delay strategies.

    Implementations must return an independent stream on every call.
    """

    def iterator(self) -> DelayStream:
        """Create a fresh delay stream for one retry session."""
        ...


def _check_delay(value: float, name: str) -> None:
    if value < 0 and value != STOP:
        raise ValueError(f"{name} must be non-negative or STOP, got {value}")


@dataclass(frozen=True, slots=True)
class Delays:
    """Fixed sequence of delays, then STOP.

    Example:
        >>> Delays((0.1, 0.5, 2.0))  # three retries
    """

    delays: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "delays", tuple(float(d) for d in self.delays))
        for d in self.delays:
            _check_delay(d, "delay")

    @classmethod
    def of(cls, *delays: float) -> Delays:
        return cls(delays)

    def __len__(self) -> int:
        return len(self.delays)

    def iterator(self) -> DelayStream:
        return self._stream()

    def _stream(self) -> DelayStream:
        yield from (Delay(d) for d in self.delays)
        while True:
            yield Delay(STOP, DelaysSpent())


@dataclass(frozen=True, slots=True)
class Constant:
    """Same delay forever. Constant(STOP) stops immediately.

    Attributes:
        delay_seconds: Delay between attempts
    """

    delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        _check_delay(self.delay_seconds, "delay_seconds")

    def iterator(self) -> DelayStream:
        return self._stream()

    def _stream(self) -> DelayStream:
        if self.delay_seconds == STOP:
            while True:
                yield Delay(STOP, Stopped())
        while True:
            yield Delay(self.delay_seconds)


# Retry immediately, indefinitely
ZERO = Constant(0.0)

# Never retry
STOP_STRATEGY = Constant(STOP)


def zero() -> Constant:
    return ZERO


def stop() -> Constant:
    return STOP_STRATEGY


def jitter(delay: float, factor: float, u: float) -> float:
    """Perturb delay to a uniform draw in [delay*(1-factor), delay*(1+factor)].

    Works in whole RESOLUTION units and widens the range by one unit so that
    every unit bucket between the bounds is equally likely.

    Args:
        delay: Pre-jitter delay in seconds
        factor: Jitter factor in [0, 1]; 0 returns delay unchanged
        u: Uniform random value in [0, 1)
    """
    if factor == 0:
        return delay
    units = round(delay / RESOLUTION)
    low, high = units - factor * units, units + factor * units
    return int(low + u * (high - low + 1)) * RESOLUTION


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff with jitter and optional ceiling.

    Pre-jitter delays: x0 = start, x(i+1) = min(x(i) * factor, max_delay), with each
    step truncated to whole nanoseconds.
    Each emitted value is jittered independently. Every stream seeds its own
    RNG from the high-resolution clock.

    Attributes:
        start: First delay in seconds
        factor: Growth multiplier per attempt
        jitter: Randomization factor in [0, 1] (0 disables)
        max_delay: Ceiling for the pre-jitter delay (0 disables)
    """

    start: float = 1.0
    factor: float = 2.0
    jitter: float = 0.0
    max_delay: float = 0.0

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"start must be non-negative, got {self.start}")
        if self.factor < 0:
            raise ValueError(f"factor must be non-negative, got {self.factor}")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError(f"jitter must be within [0, 1], got {self.jitter}")
        if self.max_delay < 0:
            raise ValueError(f"max_delay must be non-negative, got {self.max_delay}")

    def iterator(self) -> DelayStream:
        return self._stream(random.Random(time.perf_counter_ns() ^ time.time_ns()))

    def _stream(self, rng: random.Random) -> DelayStream:
        # Pre-jitter delay in whole RESOLUTION units, truncated after every step
        units = round(self.start / RESOLUTION)
        ceiling = round(self.max_delay / RESOLUTION)
        while True:
            current = units
            scaled = units * self.factor
            units = _MAX_UNITS if scaled >= _MAX_UNITS else int(scaled)
            if ceiling > 0 and units >= ceiling:
                units = ceiling
            yield Delay(jitter(current / _UNITS_PER_SECOND, self.jitter, rng.random()))


def exponential(start: float, factor: float, jitter: float = 0.0) -> ExponentialBackoff:
    """Unbounded exponential backoff."""
    return ExponentialBackoff(start=start, factor=factor, jitter=jitter)


def truncated_exponential(start: float, factor: float, jitter: float, max_delay: float) -> ExponentialBackoff:
    """Exponential backoff whose pre-jitter delay is capped at max_delay."""
    return ExponentialBackoff(start=start, factor=factor, jitter=jitter, max_delay=max_delay)
