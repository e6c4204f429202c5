"""Infrastructure settings."""

from cloudtools.configuration.infrastructure.retry import RetrySettings

__all__ = ["RetrySettings"]
