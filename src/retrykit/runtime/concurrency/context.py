"""Cancellation and deadline handle passed to retried operations.

A Context is a cancel scope that can be shared between threads and event
loops. Children derived with with_timeout()/with_cancel() are cancelled
when their parent is, and carry the earlier of the two deadlines.

Example:
    >>> ctx = Context.background()
    >>> with ctx.with_timeout(5.0) as child:
    ...     await child.wait(1.0)   # sleeps 1s unless cancelled first
    ...     child.error             # None, Canceled() or DeadlineExceeded()
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from retrykit.foundation.errors import Canceled, ContextError, DeadlineExceeded

if TYPE_CHECKING:
    from types import TracebackType


@dataclass(slots=True, eq=False)
class Context:
    """Cancellation scope with an optional monotonic deadline.

    Attributes:
        deadline: time.monotonic() instant after which the context is done
        parent: Context this one was derived from, if any
    """

    deadline: float | None = None
    parent: Context | None = field(default=None, repr=False)
    _error: ContextError | None = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _event: threading.Event = field(default_factory=threading.Event, repr=False)
    _callbacks: list[Callable[[], None]] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if self.parent is None:
            return
        if self.parent.deadline is not None:
            self.deadline = self.parent.deadline if self.deadline is None else min(self.deadline, self.parent.deadline)
        self.parent._subscribe(self._on_parent_done)

    @classmethod
    def background(cls) -> Context:
        """Root context: never done unless cancel() is called."""
        return cls()

    # ─────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────

    @property
    def error(self) -> ContextError | None:
        """Canceled or DeadlineExceeded once the context is done, else None."""
        if self._error is None and self.deadline is not None and time.monotonic() >= self.deadline:
            self._finish(DeadlineExceeded())
        return self._error

    @property
    def done(self) -> bool:
        return self.error is not None

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), None without one."""
        return None if self.deadline is None else max(0.0, self.deadline - time.monotonic())

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._finish(Canceled())

    def _finish(self, err: ContextError) -> None:
        with self._lock:
            if self._error is not None:
                return
            self._error = err
            callbacks, self._callbacks = self._callbacks, []
            self._event.set()
        for cb in callbacks:
            cb()

    def _on_parent_done(self) -> None:
        assert self.parent is not None
        self._finish(self.parent._error or Canceled())

    def _subscribe(self, cb: Callable[[], None]) -> None:
        with self._lock:
            if self._error is None:
                self._callbacks.append(cb)
                return
        cb()

    def _unsubscribe(self, cb: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(cb)
            except ValueError:
                pass  # already fired

    # ─────────────────────────────────────────────────────────────────────
    # Derivation
    # ─────────────────────────────────────────────────────────────────────

    def with_timeout(self, timeout: float) -> Context:
        """Child context that expires after timeout seconds (or earlier with the parent)."""
        return Context(deadline=time.monotonic() + timeout, parent=self)

    def with_cancel(self) -> Context:
        """Child context that can be cancelled independently of this one."""
        return Context(parent=self)

    def release(self) -> None:
        """Detach from the parent and cancel. Call on every exit path of a derived context."""
        if self.parent is not None:
            self.parent._unsubscribe(self._on_parent_done)
        self.cancel()

    def __enter__(self) -> Context:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()

    # ─────────────────────────────────────────────────────────────────────
    # Waiting
    # ─────────────────────────────────────────────────────────────────────

    def _bounded(self, end: float) -> float:
        """Seconds to wait toward end, clipped by the deadline."""
        now = time.monotonic()
        limit = end if self.deadline is None else min(end, self.deadline)
        return max(0.0, limit - now)

    async def wait(self, timeout: float) -> bool:
        """Sleep up to timeout seconds, waking early when the context is done.

        Returns:
            True if the context is done, False if the full timeout elapsed
        """
        if self.done:
            return True
        if timeout <= 0:
            await asyncio.sleep(0)  # still a cancellation point
            return self.done

        loop = asyncio.get_running_loop()
        woken: asyncio.Future[None] = loop.create_future()

        def _wake() -> None:
            loop.call_soon_threadsafe(lambda: woken.done() or woken.set_result(None))

        self._subscribe(_wake)
        end = time.monotonic() + timeout
        try:
            # Timer callbacks may fire a hair early, so re-check until end.
            while not self.done and (left := self._bounded(end)) > 0:
                await asyncio.wait({woken}, timeout=left)
        finally:
            self._unsubscribe(_wake)
            woken.cancel()
        return self.done

    def wait_sync(self, timeout: float) -> bool:
        """Blocking twin of wait() for synchronous callers."""
        end = time.monotonic() + max(0.0, timeout)
        while not self.done and (left := self._bounded(end)) > 0:
            self._event.wait(left)
        return self.done
