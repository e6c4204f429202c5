"""Retry policy.

Defines the per-call retry budget and backoff schedule applied to backend
calls.
"""

from dataclasses import dataclass
from typing import Optional

from cloudtools.configuration.infrastructure.retry import RetrySettings


def compute_delay(
    attempt_index: int, base_interval_ms: int, exponential: bool = True
) -> float:
    """Seconds to wait after the failed attempt at `attempt_index` (0-based).

    Exponential mode waits base * 2^attempt_index, linear mode a flat base.
    """
    base = base_interval_ms / 1000
    if exponential:
        return base * (2**attempt_index)
    return base


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff schedule for one backend call.

    Attributes:
        max_attempts: Total attempts, first attempt included
        base_interval_ms: Base wait between attempts in milliseconds
        exponential: Double the wait after each failed attempt

    Example:
        # Defaults: 5 attempts, 200ms, 400ms, 800ms... between them
        policy = RetryPolicy()

        # Per-client override of the budget only
        policy = RetryPolicy.from_settings(settings.retry, max_attempts=3)
    """

    max_attempts: int = 5
    base_interval_ms: int = 200
    exponential: bool = True

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_interval_ms < 0:
            raise ValueError("base_interval_ms must be >= 0")

    @classmethod
    def from_settings(
        cls, retry_settings: RetrySettings, max_attempts: Optional[int] = None
    ) -> "RetryPolicy":
        """Build a policy from settings, optionally overriding the budget."""
        return cls(
            max_attempts=(
                max_attempts
                if max_attempts is not None
                else retry_settings.max_attempts
            ),
            base_interval_ms=retry_settings.base_interval_ms,
            exponential=retry_settings.exponential,
        )

    def delay_for(self, attempt_index: int) -> float:
        """Seconds to wait after the failed attempt at `attempt_index`."""
        return compute_delay(attempt_index, self.base_interval_ms, self.exponential)
