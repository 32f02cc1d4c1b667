"""Retry options consumed by the driver.

Options are small functions that transform a frozen RetryOptions. The
max-retries and max-elapsed-time options are sugar: they wrap the active
strategy in the matching stop wrapper, so their order relative to each
other only changes which stop cause is reported first.

Example:
    >>> opts = RetryOptions.build(
    ...     exponential(0.1, 2.0, 0.2),
    ...     with_max_retries(5),
    ...     with_timeout(30.0),
    ...     with_notify(log_notify()),
    ... )
"""

from __future__ import annotations

from typing import Callable, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt, validate_call

from .backoff import Strategy
from .wrappers import MaxElapsedTime, MaxRetries

# (last_error, next_delay, attempt, elapsed)
Notify: TypeAlias = Callable[[BaseException, float, int, float], None]


class RetryOptions(BaseModel):
    """Resolved options for one driver call.

    Attributes:
        strategy: Delay strategy, possibly wrapped by stop wrappers
        timeout: Seconds before the derived context expires (None or 0 = no timeout)
        notify: Called after each failed attempt that will be retried.
            Runs on the driver's own task; a slow callback delays retries.
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For Strategy protocol
        extra="forbid",
        revalidate_instances="never",
    )

    strategy: Strategy = Field(repr=False)
    timeout: NonNegativeFloat | None = None
    notify: Notify | None = Field(default=None, exclude=True, repr=False)

    @classmethod
    def build(cls, strategy: Strategy, *options: Option) -> RetryOptions:
        opts = cls(strategy=strategy)
        for option in options:
            opts = option(opts)
        return opts


Option: TypeAlias = Callable[[RetryOptions], RetryOptions]


@validate_call
def with_timeout(timeout: NonNegativeFloat) -> Option:
    """Derive a child context that expires after timeout seconds. Additive to any existing deadline."""
    return lambda opts: opts.model_copy(update={"timeout": timeout})


@validate_call
def with_max_retries(max_retries: NonNegativeInt) -> Option:
    """Stop after max_retries retries (max_retries + 1 attempts in total)."""
    return lambda opts: opts.model_copy(update={"strategy": MaxRetries(max_retries, opts.strategy)})


@validate_call
def with_max_elapsed_time(max_elapsed_time: NonNegativeFloat) -> Option:
    """Stop retrying once max_elapsed_time seconds have passed since the call began."""
    return lambda opts: opts.model_copy(update={"strategy": MaxElapsedTime(max_elapsed_time, opts.strategy)})


def with_notify(notify: Notify) -> Option:
    """Observe each failed attempt that will be retried. Not called when the strategy stops."""
    return lambda opts: opts.model_copy(update={"notify": notify})


RetryOptions.model_rebuild()
