"""Retry driver with pluggable delay strategies.

Strategies produce delay streams; stop wrappers add termination; the
driver ties them to cancellation, timeouts, notification and error
reporting.

Example:
    >>> from retrykit.runtime.retry import retry, exponential, with_max_retries
    >>> from retrykit.runtime.concurrency import Context
    >>>
    >>> async def fetch(ctx: Context) -> dict:
    ...     return await api.get("/status")
    >>>
    >>> status = await retry(
    ...     Context.background(),
    ...     exponential(0.1, 2.0, 0.2),
    ...     fetch,
    ...     with_max_retries(5),
    ...     with_timeout(30.0),
    ... )
"""

from .backoff import (
    RESOLUTION,
    STOP,
    STOP_STRATEGY,
    ZERO,
    Constant,
    Delay,
    Delays,
    DelayStream,
    ExponentialBackoff,
    Strategy,
    exponential,
    jitter,
    next_delay,
    stop,
    truncated_exponential,
    zero,
)
from .driver import (
    retry,
    retry_e,
    retry_n,
    retry_ne,
    retry_sync,
    retry_unit,
    retry_unit_sync,
    retryable,
)
from .policy import (
    Notify,
    Option,
    RetryOptions,
    with_max_elapsed_time,
    with_max_retries,
    with_notify,
    with_timeout,
)
from .wrappers import MaxElapsedTime, MaxRetries, Wrapper

__all__ = [
    # Strategies
    "Strategy", "Delay", "DelayStream", "STOP", "RESOLUTION",
    "Delays", "Constant", "ZERO", "STOP_STRATEGY", "zero", "stop",
    "ExponentialBackoff", "exponential", "truncated_exponential", "jitter", "next_delay",
    # Stop wrappers
    "Wrapper", "MaxRetries", "MaxElapsedTime",
    # Options
    "RetryOptions", "Option", "Notify",
    "with_timeout", "with_max_retries", "with_max_elapsed_time", "with_notify",
    # Execution
    "retry", "retry_unit", "retry_n", "retry_e", "retry_ne",
    "retry_sync", "retry_unit_sync", "retryable",
]
