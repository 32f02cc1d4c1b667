"""Retry driver: re-invokes an operation until it succeeds, fails permanently,
the strategy stops, or the context is done.

Per iteration: check context -> call operation -> (on failure) pull delay ->
notify -> cancellable sleep. The operation receives the (possibly derived)
context so it can observe the same cancellation.

Outcomes:
- success: the operation's value is returned
- PermanentError: the wrapped error is raised as-is, no more attempts
- strategy stop / context done: RetryError is raised, chained to the cause

Example:
    >>> async def fetch(ctx: Context) -> bytes:
    ...     return await client.get(url)
    >>>
    >>> body = await retry(Context.background(), exponential(0.1, 2.0, 0.2), fetch, with_max_retries(5))
"""

from __future__ import annotations

import functools
import inspect
import logging
import time
from collections.abc import Awaitable
from typing import Callable, TypeVar

from retrykit.foundation.errors import PermanentError, RetryError, find_in_chain, format_duration
from retrykit.runtime.concurrency import Context

from .backoff import Strategy, next_delay
from .policy import Option, RetryOptions, with_max_elapsed_time, with_max_retries

logger = logging.getLogger("retrykit.retry")

T = TypeVar("T")

Operation = Callable[[Context], T | Awaitable[T]]
SyncOperation = Callable[[Context], T]


class _Session:
    """Mutable bookkeeping for one driver call, shared by the async and sync loops."""

    __slots__ = ("opts", "stream", "start", "attempt", "last_delay", "last_err")

    def __init__(self, opts: RetryOptions) -> None:
        self.opts = opts
        self.start = time.monotonic()
        self.stream = opts.strategy.iterator()
        self.attempt = 1
        self.last_delay = 0.0
        self.last_err: BaseException | None = None

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start

    def canceled(self, ctx: Context, delay: float | None = None) -> RetryError:
        err = RetryError.build(
            self.last_err, ctx.error, None, self.attempt,
            self.last_delay if delay is None else delay, self.elapsed,
        )
        assert err is not None
        logger.info(f"Retrying canceled after {self.attempt} attempt(s): {ctx.error}")
        return err

    def failed(self, err: Exception) -> BaseException | float:
        """Record a failed attempt. Returns the error to raise, or the delay to sleep."""
        self.last_err = err
        if (perm := find_in_chain(err, PermanentError)) is not None:
            logger.debug(f"Attempt {self.attempt} failed permanently: {perm.err!r}")
            return perm.err

        step = next_delay(self.stream)
        elapsed = self.elapsed
        if step.stopped:
            logger.info(f"Giving up after {self.attempt} attempt(s), {format_duration(elapsed)}: {step.cause}")
            stop = RetryError.build(err, None, step.cause, self.attempt, self.last_delay, elapsed)
            assert stop is not None
            return stop

        logger.debug(f"Attempt {self.attempt} failed, retrying in {format_duration(step.seconds)}: {err!r}")
        if self.opts.notify is not None:
            self.opts.notify(err, step.seconds, self.attempt, elapsed)
        return step.seconds

    def advance(self, delay: float) -> None:
        self.last_delay = delay
        self.attempt += 1


def _derive(ctx: Context, opts: RetryOptions) -> Context:
    return ctx.with_timeout(opts.timeout) if opts.timeout else ctx.with_cancel()


# ─────────────────────────────────────────────────────────────────────────────
# Async Driver
# ─────────────────────────────────────────────────────────────────────────────


async def retry(ctx: Context, strategy: Strategy, operation: Operation[T], *options: Option) -> T:
    """Retry operation until success, permanent failure, strategy stop or context done.

    Args:
        ctx: Cancellation/deadline handle; cancelling it ends retrying at the
            next operation return or sleep wake-up
        strategy: Delay strategy; iterator() is called once per call
        operation: Callable taking the context, returning a value or awaitable
        *options: with_timeout, with_max_retries, with_max_elapsed_time, with_notify

    Returns:
        The operation's value on success

    Raises:
        RetryError: Strategy stopped or context done
        Exception: The error wrapped by a PermanentError
    """
    opts = RetryOptions.build(strategy, *options)
    with _derive(ctx, opts) as run_ctx:
        session = _Session(opts)
        while True:
            if run_ctx.done:
                raise session.canceled(run_ctx)

            try:
                result = operation(run_ctx)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                outcome = session.failed(e)
            else:
                return result

            if isinstance(outcome, BaseException):
                raise outcome
            if await run_ctx.wait(outcome):
                raise session.canceled(run_ctx, outcome)
            session.advance(outcome)


async def retry_unit(ctx: Context, strategy: Strategy, operation: Operation[object], *options: Option) -> None:
    """retry() for operations whose return value is irrelevant."""
    await retry(ctx, strategy, operation, *options)


async def retry_n(ctx: Context, strategy: Strategy, operation: Operation[T], max_retries: int, *options: Option) -> T:
    """retry() capped at max_retries retries."""
    return await retry(ctx, strategy, operation, *options, with_max_retries(max_retries))


async def retry_e(ctx: Context, strategy: Strategy, operation: Operation[T], max_elapsed_time: float, *options: Option) -> T:
    """retry() capped at max_elapsed_time seconds."""
    return await retry(ctx, strategy, operation, *options, with_max_elapsed_time(max_elapsed_time))


async def retry_ne(
    ctx: Context, strategy: Strategy, operation: Operation[T],
    max_retries: int, max_elapsed_time: float, *options: Option,
) -> T:
    """retry() capped by both retries and elapsed time."""
    return await retry(
        ctx, strategy, operation, *options,
        with_max_retries(max_retries), with_max_elapsed_time(max_elapsed_time),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Sync Driver
# ─────────────────────────────────────────────────────────────────────────────


def retry_sync(ctx: Context, strategy: Strategy, operation: SyncOperation[T], *options: Option) -> T:
    """Synchronous version of retry() for blocking operations.

    Sleeps block the calling thread but wake as soon as ctx is cancelled,
    including from another thread.
    """
    opts = RetryOptions.build(strategy, *options)
    with _derive(ctx, opts) as run_ctx:
        session = _Session(opts)
        while True:
            if run_ctx.done:
                raise session.canceled(run_ctx)

            try:
                return operation(run_ctx)
            except Exception as e:
                outcome = session.failed(e)

            if isinstance(outcome, BaseException):
                raise outcome
            if run_ctx.wait_sync(outcome):
                raise session.canceled(run_ctx, outcome)
            session.advance(outcome)


def retry_unit_sync(ctx: Context, strategy: Strategy, operation: SyncOperation[object], *options: Option) -> None:
    """retry_sync() for operations whose return value is irrelevant."""
    retry_sync(ctx, strategy, operation, *options)


# ─────────────────────────────────────────────────────────────────────────────
# Decorator
# ─────────────────────────────────────────────────────────────────────────────


def retryable(strategy: Strategy, *options: Option) -> Callable[[Callable[..., object]], Callable[..., object]]:
    """Decorator form of retry()/retry_sync().

    The decorated function takes a Context first; the wrapper keeps that
    signature and retries each call. Coroutine functions get the async driver.

    Example:
        >>> @retryable(exponential(0.1, 2.0), with_max_retries(3))
        ... async def fetch(ctx: Context, url: str) -> bytes:
        ...     ...
        >>>
        >>> await fetch(Context.background(), "https://example.com")
    """
    def decorator(func: Callable[..., object]) -> Callable[..., object]:
        @functools.wraps(func)
        async def async_wrapper(ctx: Context, *args: object, **kwargs: object) -> object:
            return await retry(ctx, strategy, lambda c: func(c, *args, **kwargs), *options)

        @functools.wraps(func)
        def wrapper(ctx: Context, *args: object, **kwargs: object) -> object:
            return retry_sync(ctx, strategy, lambda c: func(c, *args, **kwargs), *options)

        return async_wrapper if inspect.iscoroutinefunction(func) else wrapper

    return decorator
