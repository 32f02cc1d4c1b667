"""Environment-based configuration using pydantic-settings.

Provides validated defaults for retry sessions and logging, loaded from
RETRYKIT_* environment variables or a .env file.

Example:
    >>> from retrykit.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.retry.base_delay
    0.1
    >>> await retry(ctx, settings.retry.strategy(), op, *settings.retry.options())

    # Or with environment variables:
    # RETRYKIT_RETRY_MAX_RETRIES=5
    # RETRYKIT_RETRY_JITTER=0.2
    # RETRYKIT_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import Field, NonNegativeFloat, NonNegativeInt, PositiveFloat, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from retrykit.runtime.retry import Option, Strategy


class RetrySettings(BaseSettings):
    """Default retry configuration: truncated exponential backoff plus stop limits."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYKIT_RETRY_",
        extra="ignore",
    )

    base_delay: PositiveFloat = Field(default=0.1, description="First delay in seconds")
    multiplier: float = Field(default=2.0, ge=1.0, description="Exponential growth factor")
    jitter: Annotated[float, Field(ge=0.0, le=1.0)] = 0.2
    max_delay: NonNegativeFloat = Field(default=30.0, description="Delay ceiling in seconds (0 = none)")
    max_retries: NonNegativeInt | None = Field(default=5, description="Retries after the first attempt")
    max_elapsed_time: PositiveFloat | None = Field(default=None, description="Stop retrying after this many seconds")
    timeout: PositiveFloat | None = Field(default=None, description="Overall deadline for one call")

    @model_validator(mode="after")
    def _check_ceiling(self) -> RetrySettings:
        if self.max_delay and self.max_delay < self.base_delay:
            raise ValueError("max_delay must be 0 or at least base_delay")
        return self

    def strategy(self) -> Strategy:
        """Build the configured strategy, wrapped by the configured stop limits."""
        from retrykit.runtime.retry import MaxElapsedTime, MaxRetries, truncated_exponential

        strategy: Strategy = truncated_exponential(self.base_delay, self.multiplier, self.jitter, self.max_delay)
        if self.max_retries is not None:
            strategy = MaxRetries(self.max_retries, strategy)
        if self.max_elapsed_time is not None:
            strategy = MaxElapsedTime(self.max_elapsed_time, strategy)
        return strategy

    def options(self) -> list[Option]:
        """Driver options that are not part of the strategy."""
        from retrykit.runtime.retry import with_timeout

        return [with_timeout(self.timeout)] if self.timeout else []


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYKIT_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class RetrykitSettings(BaseSettings):
    """Root settings.

    Example environment variables:
        RETRYKIT_RETRY_BASE_DELAY=0.5
        RETRYKIT_RETRY_MAX_RETRIES=3
        RETRYKIT_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="RETRYKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    retry: RetrySettings = Field(default_factory=RetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> RetrykitSettings:
    """Get the global settings instance (cached)."""
    return RetrykitSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
