"""Error model for the retry driver.

Exceptions here describe why retrying ended:
- PermanentError: raised by an operation to demand no further retries
- StrategyStopped: informational cause emitted with the STOP delay
- ContextError: cancellation / deadline reported by a Context
- RetryError: envelope raised by the driver on every other abnormal exit
"""

from __future__ import annotations

from typing import TypeVar

E = TypeVar("E", bound=BaseException)


# ─────────────────────────────────────────────────────────────────────────────
# Duration Formatting
# ─────────────────────────────────────────────────────────────────────────────

_NANOS = 1_000_000_000


def _trim(value: float, places: int) -> str:
    return f"{value:.{places}f}".rstrip("0").rstrip(".")


def format_duration(seconds: float) -> str:
    """Render a duration compactly: 0s, 250ns, 1.5µs, 1.234567ms, 2.5s, 1m30s, 1h0m0s.

    Sub-second values keep every whole nanosecond.
    """
    if seconds == 0:
        return "0s"
    sign, seconds = ("-", -seconds) if seconds < 0 else ("", seconds)
    nanos = round(seconds * _NANOS)
    if nanos < _NANOS:
        if nanos < 1_000:
            return f"{sign}{nanos}ns"
        if nanos < 1_000_000:
            return f"{sign}{_trim(nanos / 1_000, 3)}µs"
        return f"{sign}{_trim(nanos / 1_000_000, 6)}ms"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    out = f"{_trim(secs, 9)}s"
    if hours:
        return f"{sign}{int(hours)}h{int(minutes)}m{out}"
    if minutes:
        return f"{sign}{int(minutes)}m{out}"
    return sign + out


# ─────────────────────────────────────────────────────────────────────────────
# Permanent
# ─────────────────────────────────────────────────────────────────────────────


class PermanentError(Exception):
    """Marks an operation error as not worth retrying.

    The driver stops at once and raises the wrapped error itself, not this
    envelope and not a RetryError.

    Example:
        >>> def fetch(ctx):
        ...     if resp.status == 404:
        ...         raise permanent(NotFound(url))
        ...     return resp.body
    """

    def __init__(self, err: BaseException) -> None:
        super().__init__(err)
        self.err = err
        self.__cause__ = err

    def __str__(self) -> str:
        return str(self.err)


def permanent(err: BaseException | None) -> PermanentError | None:
    """Wrap err as permanent. None stays None so success paths need no special case."""
    return None if err is None else PermanentError(err)


# ─────────────────────────────────────────────────────────────────────────────
# Stop Causes
# ─────────────────────────────────────────────────────────────────────────────


class StrategyStopped(Exception):
    """Why a delay stream stopped. Informational, never raised by the driver."""


class DelaysSpent(StrategyStopped):
    def __init__(self) -> None:
        super().__init__("all delays spent")


class Stopped(StrategyStopped):
    def __init__(self) -> None:
        super().__init__("stopped")


class StreamExhausted(StrategyStopped):
    """A delay stream ended instead of yielding STOP."""

    def __init__(self) -> None:
        super().__init__("delay stream exhausted")


class MaxRetriesExceeded(StrategyStopped):
    def __init__(self, max_retries: int) -> None:
        super().__init__(f"maximum retries elapsed: {max_retries}")
        self.max_retries = max_retries


class MaxElapsedTimeExceeded(StrategyStopped):
    def __init__(self, max_elapsed_time: float) -> None:
        super().__init__(f"retrying time elapsed: {format_duration(max_elapsed_time)}")
        self.max_elapsed_time = max_elapsed_time


# ─────────────────────────────────────────────────────────────────────────────
# Context Errors
# ─────────────────────────────────────────────────────────────────────────────


class ContextError(Exception):
    """Base for cancellation and deadline errors reported by a Context."""


class Canceled(ContextError):
    def __init__(self) -> None:
        super().__init__("context canceled")


class DeadlineExceeded(ContextError, TimeoutError):
    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


# ─────────────────────────────────────────────────────────────────────────────
# Retry Error
# ─────────────────────────────────────────────────────────────────────────────


class RetryError(Exception):
    """Raised when retrying ends without success.

    Attributes:
        msg: Human-readable summary (without the cause)
        cause: Last operation error, or the context error if none occurred
        retries: Attempts made, starting at 1
        elapsed: Seconds since the driver started
        last_delay: Last delay emitted by the strategy, 0.0 if none
    """

    def __init__(
        self,
        msg: str,
        cause: BaseException | None = None,
        *,
        retries: int = 0,
        elapsed: float = 0.0,
        last_delay: float = 0.0,
    ) -> None:
        super().__init__(msg)
        self.msg = msg
        self.cause = cause
        self.retries = retries
        self.elapsed = elapsed
        self.last_delay = last_delay
        self.__cause__ = cause

    def __str__(self) -> str:
        return self.msg if self.cause is None else f"{self.msg}: {self.cause}"

    def __repr__(self) -> str:
        return (
            f"RetryError(retries={self.retries}, elapsed={self.elapsed:.3f}, "
            f"last_delay={self.last_delay}, msg={self.msg!r}, cause={self.cause!r})"
        )

    @classmethod
    def build(
        cls,
        err: BaseException | None,
        ctx_err: BaseException | None,
        stop_cause: BaseException | str | None,
        retries: int,
        last_delay: float,
        elapsed: float,
    ) -> RetryError | None:
        """Compose a RetryError from the driver's exit state.

        Message by case:
            canceled, no operation error -> cause is the context error
            canceled with an operation error -> context error folded into msg
            stopped with an operation error -> strategy exhausted
        A non-empty stop_cause prefixes the message. Returns None when
        neither error is present.
        """
        e, d = format_duration(elapsed), format_duration(last_delay)
        if ctx_err is not None and err is None:
            msg, cause = f"retrying {retries} canceled, time elapsed: {e}, last delay: {d}", ctx_err
        elif ctx_err is not None:
            msg, cause = f"retrying {retries} canceled: {ctx_err}, time elapsed: {e}, last delay: {d}", err
        elif err is not None:
            msg, cause = f"retrying {retries} stopped, time elapsed: {e}, last delay: {d}", err
        else:
            return None
        if stop_cause is not None and str(stop_cause):
            msg = f"{stop_cause}: {msg}"
        return cls(msg, cause, retries=retries, elapsed=elapsed, last_delay=last_delay)


# ─────────────────────────────────────────────────────────────────────────────
# Inspection
# ─────────────────────────────────────────────────────────────────────────────


def _chain(err: BaseException | None):
    """Walk explicit __cause__ links, guarding against cycles.

    Implicit __context__ is not followed: an error raised while handling
    another does not wrap it.
    """
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = err.__cause__


def find_in_chain(err: BaseException | None, kind: type[E]) -> E | None:
    """First exception of the given type along err's chain, or None."""
    return next((e for e in _chain(err) if isinstance(e, kind)), None)


def as_retry_error(err: BaseException | None) -> RetryError | None:
    """Extract the RetryError from err's chain if present."""
    return find_in_chain(err, RetryError)


def unwrap(err: BaseException | None) -> BaseException | None:
    """Strip the RetryError envelope, returning the original operation error."""
    return e.cause if (e := as_retry_error(err)) is not None else err


def is_in_chain(err: BaseException | None, target: BaseException) -> bool:
    """Identity check against a sentinel error anywhere along the chain."""
    return any(e is target for e in _chain(err))
