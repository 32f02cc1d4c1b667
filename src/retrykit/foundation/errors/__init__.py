"""Error model for retrykit.

- PermanentError/permanent: opt an error out of retrying
- RetryError: structured failure raised by the driver
- StrategyStopped family: why a delay stream stopped
- ContextError family: cancellation and deadlines
- as_retry_error/unwrap/is_in_chain: chain inspection helpers
"""

from .errors import (
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
    find_in_chain,
    format_duration,
    is_in_chain,
    permanent,
    unwrap,
)

__all__ = [
    # Permanent
    "PermanentError", "permanent",
    # Retry failure
    "RetryError", "as_retry_error", "unwrap", "find_in_chain", "is_in_chain",
    # Stop causes
    "StrategyStopped", "DelaysSpent", "Stopped", "StreamExhausted", "MaxRetriesExceeded",
    "MaxElapsedTimeExceeded",
    # Context
    "ContextError", "Canceled", "DeadlineExceeded",
    # Formatting
    "format_duration",
]
