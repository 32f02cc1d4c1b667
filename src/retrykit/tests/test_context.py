"""Tests for the cancellation / deadline Context."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from retrykit.foundation.errors import Canceled, DeadlineExceeded
from retrykit.runtime.concurrency import Context


def test_background_is_never_done() -> None:
    ctx = Context.background()
    assert ctx.error is None
    assert not ctx.done
    assert ctx.remaining() is None


def test_cancel_sets_error_once() -> None:
    ctx = Context.background()
    ctx.cancel()
    first = ctx.error
    ctx.cancel()

    assert isinstance(first, Canceled)
    assert ctx.error is first
    assert str(first) == "context canceled"


def test_deadline_expires_lazily() -> None:
    ctx = Context.background().with_timeout(0.01)
    assert not ctx.done
    time.sleep(0.03)
    assert isinstance(ctx.error, DeadlineExceeded)
    assert isinstance(ctx.error, TimeoutError)


def test_parent_cancel_propagates_to_children() -> None:
    parent = Context.background()
    child = parent.with_cancel()
    grandchild = child.with_timeout(60.0)

    parent.cancel()
    assert isinstance(child.error, Canceled)
    assert isinstance(grandchild.error, Canceled)


def test_child_cancel_does_not_touch_parent() -> None:
    parent = Context.background()
    with parent.with_cancel() as child:
        child.cancel()
    assert parent.error is None


def test_child_of_done_parent_starts_done() -> None:
    parent = Context.background()
    parent.cancel()
    assert parent.with_timeout(10.0).done


def test_child_inherits_earlier_deadline() -> None:
    parent = Context.background().with_timeout(0.5)
    child = parent.with_timeout(60.0)
    assert child.deadline == parent.deadline

    tighter = parent.with_timeout(0.1)
    assert tighter.deadline is not None and parent.deadline is not None
    assert tighter.deadline < parent.deadline


def test_release_detaches_from_parent() -> None:
    parent = Context.background()
    child = parent.with_cancel()
    child.release()

    assert child.done
    assert parent._callbacks == []


def test_wait_sync_full_timeout() -> None:
    ctx = Context.background()
    start = time.monotonic()
    assert ctx.wait_sync(0.02) is False
    assert time.monotonic() - start >= 0.02


def test_wait_sync_wakes_on_cancel_from_thread() -> None:
    ctx = Context.background()
    threading.Timer(0.02, ctx.cancel).start()

    start = time.monotonic()
    assert ctx.wait_sync(5.0) is True
    assert time.monotonic() - start < 1.0


def test_wait_sync_stops_at_deadline() -> None:
    ctx = Context.background().with_timeout(0.02)
    assert ctx.wait_sync(5.0) is True
    assert isinstance(ctx.error, DeadlineExceeded)


@pytest.mark.asyncio
async def test_wait_full_timeout() -> None:
    ctx = Context.background()
    assert await ctx.wait(0.01) is False


@pytest.mark.asyncio
async def test_wait_zero_yields_and_reports_state() -> None:
    ctx = Context.background()
    assert await ctx.wait(0) is False
    ctx.cancel()
    assert await ctx.wait(0) is True


@pytest.mark.asyncio
async def test_wait_wakes_on_cancel() -> None:
    ctx = Context.background()
    asyncio.get_running_loop().call_later(0.02, ctx.cancel)

    start = time.monotonic()
    assert await ctx.wait(5.0) is True
    assert time.monotonic() - start < 1.0
    assert ctx._callbacks == []


@pytest.mark.asyncio
async def test_wait_wakes_on_cancel_from_thread() -> None:
    ctx = Context.background()
    threading.Timer(0.02, ctx.cancel).start()
    assert await ctx.wait(5.0) is True


@pytest.mark.asyncio
async def test_wait_stops_at_deadline() -> None:
    ctx = Context.background().with_timeout(0.02)
    start = time.monotonic()
    assert await ctx.wait(5.0) is True
    assert time.monotonic() - start < 1.0
    assert isinstance(ctx.error, DeadlineExceeded)
