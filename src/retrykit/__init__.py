"""retrykit - a small, composable retry driver.

Re-invokes a fallible operation until it succeeds, fails permanently, its
delay strategy stops, or its context is cancelled.

Quick Start:
    >>> from retrykit import Context, retry, exponential, with_max_retries, permanent
    >>>
    >>> async def fetch(ctx: Context) -> bytes:
    ...     resp = await client.get(url)
    ...     if resp.status_code == 404:
    ...         raise permanent(LookupError(url))   # don't retry
    ...     resp.raise_for_status()                 # retried
    ...     return resp.content
    >>>
    >>> body = await retry(Context.background(), exponential(0.1, 2.0, 0.2), fetch, with_max_retries(5))

Blocking code:
    >>> body = retry_sync(Context.background(), Delays.of(0.5, 1.0, 2.0), fetch_blocking)

Failures:
    >>> try:
    ...     await retry(ctx, ZERO, op, with_max_retries(3))
    ... except RetryError as e:
    ...     e.retries, e.elapsed, e.last_delay, e.cause
"""

from retrykit.foundation.config import LoggingSettings, RetrykitSettings, RetrySettings, get_settings
from retrykit.foundation.errors import (
    Canceled,
    ContextError,
    DeadlineExceeded,
    DelaysSpent,
    MaxElapsedTimeExceeded,
    MaxRetriesExceeded,
    PermanentError,
    RetryError,
    Stopped,
    StrategyStopped,
    StreamExhausted,
    as_retry_error,
    format_duration,
    is_in_chain,
    permanent,
    unwrap,
)
from retrykit.runtime.concurrency import Context
from retrykit.runtime.observability import configure_logging, get_logger, log_notify
from retrykit.runtime.retry import (
    STOP,
    STOP_STRATEGY,
    ZERO,
    Constant,
    Delay,
    Delays,
    ExponentialBackoff,
    MaxElapsedTime,
    MaxRetries,
    Notify,
    Option,
    RetryOptions,
    Strategy,
    exponential,
    retry,
    retry_e,
    retry_n,
    retry_ne,
    retry_sync,
    retry_unit,
    retry_unit_sync,
    retryable,
    stop,
    truncated_exponential,
    with_max_elapsed_time,
    with_max_retries,
    with_notify,
    with_timeout,
    zero,
)

__version__ = "0.1.0"

__all__ = [
    # Context
    "Context",
    # Strategies
    "Strategy", "Delay", "STOP", "Delays", "Constant", "ZERO", "STOP_STRATEGY", "zero", "stop",
    "ExponentialBackoff", "exponential", "truncated_exponential",
    "MaxRetries", "MaxElapsedTime",
    # Options
    "RetryOptions", "Option", "Notify",
    "with_timeout", "with_max_retries", "with_max_elapsed_time", "with_notify",
    # Driver
    "retry", "retry_unit", "retry_n", "retry_e", "retry_ne", "retry_sync", "retry_unit_sync", "retryable",
    # Errors
    "PermanentError", "permanent", "RetryError", "as_retry_error", "unwrap", "is_in_chain",
    "StrategyStopped", "DelaysSpent", "Stopped", "StreamExhausted", "MaxRetriesExceeded",
    "MaxElapsedTimeExceeded",
    "ContextError", "Canceled", "DeadlineExceeded", "format_duration",
    # Observability
    "configure_logging", "get_logger", "log_notify",
    # Settings
    "RetrykitSettings", "RetrySettings", "LoggingSettings", "get_settings",
]
