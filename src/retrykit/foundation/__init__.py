"""Foundation layer: error model and configuration."""

from .config import LoggingSettings, RetrykitSettings, RetrySettings, clear_settings_cache, get_settings
from .errors import (
    Canceled,
    ContextError,
    DeadlineExceeded,
    PermanentError,
    RetryError,
    StrategyStopped,
    as_retry_error,
    permanent,
    unwrap,
)

__all__ = [
    "LoggingSettings", "RetrySettings", "RetrykitSettings", "clear_settings_cache", "get_settings",
    "Canceled", "ContextError", "DeadlineExceeded", "PermanentError", "RetryError", "StrategyStopped",
    "as_retry_error", "permanent", "unwrap",
]
