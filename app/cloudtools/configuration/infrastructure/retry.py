"""Retry infrastructure settings."""

from pydantic import Field

from cloudtools.configuration.base import InfrastructureSettings


class RetrySettings(InfrastructureSettings):
    """Default retry budget and backoff schedule for backend calls.

    A tool constructed with an explicit `retry_max` overrides `max_attempts`
    for that instance only.

    Environment Variables:
        RETRY_MAX_ATTEMPTS: Total attempts per backend call (default: 5)
        RETRY_BASE_INTERVAL_MS: Base wait between attempts (default: 200ms)
        RETRY_EXPONENTIAL: Double the wait after each attempt (default: True)

    Exponential Backoff:
        Delay calculation: base_interval_ms * (2 ^ attempt_index)

        Example with defaults (base=200ms):
            Retry 1: 200ms
            Retry 2: 400ms
            Retry 3: 800ms
    """

    max_attempts: int = Field(
        default=5,
        alias="RETRY_MAX_ATTEMPTS",
        ge=1,
        description="Total attempts per backend call, first attempt included",
    )
    base_interval_ms: int = Field(
        default=200,
        alias="RETRY_BASE_INTERVAL_MS",
        ge=0,
        description="Base wait between attempts (milliseconds)",
    )
    exponential: bool = Field(
        default=True,
        alias="RETRY_EXPONENTIAL",
        description="Use exponential backoff instead of a flat interval",
    )
