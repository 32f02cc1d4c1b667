"""Tests for stop wrappers."""

from __future__ import annotations

import time
from itertools import islice

import pytest

from retrykit.foundation.errors import DelaysSpent, MaxElapsedTimeExceeded, MaxRetriesExceeded, StreamExhausted
from retrykit.runtime.retry import ZERO, Constant, Delay, Delays, MaxElapsedTime, MaxRetries, Strategy, Wrapper


class CountingStrategy:
    """Strategy that records how many delays were pulled from its streams."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.pulls = 0

    def iterator(self):
        while True:
            self.pulls += 1
            yield Delay(self.delay)


# ═════════════════════════════════════════════════════════════════════════════
# MaxRetries
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize("n", [0, 1, 5])
def test_max_retries_yields_n_delays(n: int) -> None:
    steps = list(islice(MaxRetries(n, ZERO).iterator(), n + 3))

    assert [s.stopped for s in steps] == [False] * n + [True] * 3
    assert isinstance(steps[-1].cause, MaxRetriesExceeded)
    assert str(steps[-1].cause) == f"maximum retries elapsed: {n}"


def test_max_retries_does_not_pull_inner_after_trip() -> None:
    inner = CountingStrategy()
    stream = MaxRetries(2, inner).iterator()
    for _ in range(10):
        next(stream)
    assert inner.pulls == 2


def test_max_retries_forwards_inner_stop() -> None:
    steps = list(islice(MaxRetries(5, Delays.of(1.0)).iterator(), 3))
    assert steps[0] == Delay(1.0)
    assert steps[1].stopped and isinstance(steps[1].cause, DelaysSpent)


def test_max_retries_counter_is_per_stream() -> None:
    strategy = MaxRetries(1, ZERO)
    for _ in range(3):
        stream = strategy.iterator()
        assert not next(stream).stopped
        assert next(stream).stopped


class Finite:
    """Strategy whose streams simply end after the given delays."""

    def __init__(self, *delays: float) -> None:
        self.delays = delays

    def iterator(self):
        yield from (Delay(d) for d in self.delays)


@pytest.mark.parametrize("wrapper", [MaxRetries(5), MaxElapsedTime(60.0)])
def test_wrappers_read_ended_inner_stream_as_stop(wrapper: Wrapper) -> None:
    steps = list(islice(wrapper.wrap(Finite(0.5)).iterator(), 4))

    assert steps[0] == Delay(0.5)
    assert all(s.stopped for s in steps[1:])
    assert isinstance(steps[1].cause, StreamExhausted)
    assert str(steps[1].cause) == "delay stream exhausted"


def test_max_retries_rejects_negative() -> None:
    with pytest.raises(ValueError):
        MaxRetries(-1, ZERO)


# ═════════════════════════════════════════════════════════════════════════════
# MaxElapsedTime
# ═════════════════════════════════════════════════════════════════════════════


def test_max_elapsed_time_passes_through_before_deadline() -> None:
    stream = MaxElapsedTime(10.0, Constant(0.5)).iterator()
    assert [next(stream) for _ in range(3)] == [Delay(0.5)] * 3


def test_max_elapsed_time_stops_after_deadline() -> None:
    inner = CountingStrategy()
    stream = MaxElapsedTime(0.02, inner).iterator()
    assert not next(stream).stopped

    time.sleep(0.05)
    step = next(stream)
    assert step.stopped
    assert isinstance(step.cause, MaxElapsedTimeExceeded)
    assert str(step.cause) == "retrying time elapsed: 20ms"
    assert next(stream).stopped
    assert inner.pulls == 1


def test_max_elapsed_time_clock_starts_at_iterator() -> None:
    """A wrapper built long before use must not already be expired."""
    strategy = MaxElapsedTime(0.02, ZERO)
    time.sleep(0.05)
    assert not next(strategy.iterator()).stopped


# ═════════════════════════════════════════════════════════════════════════════
# Composition
# ═════════════════════════════════════════════════════════════════════════════


def test_wrappers_stack() -> None:
    strategy = MaxElapsedTime(10.0, MaxRetries(2, ZERO))
    steps = list(islice(strategy.iterator(), 4))
    assert [s.stopped for s in steps] == [False, False, True, True]
    assert isinstance(steps[2].cause, MaxRetriesExceeded)


def test_nested_max_retries_smallest_wins() -> None:
    steps = list(islice(MaxRetries(5, MaxRetries(1, ZERO)).iterator(), 3))
    assert [s.stopped for s in steps] == [False, True, True]
    assert str(steps[1].cause) == "maximum retries elapsed: 1"


def test_wrap_retargets_wrapper() -> None:
    wrapper = MaxRetries(1)
    assert isinstance(wrapper, Wrapper)

    wrapped = wrapper.wrap(Constant(0.25))
    assert isinstance(wrapped, Strategy)
    assert wrapped.max_retries == 1
    assert list(islice(wrapped.iterator(), 2))[0] == Delay(0.25)


def test_wrapper_default_inner_is_stop() -> None:
    assert next(MaxElapsedTime(10.0).iterator()).stopped
