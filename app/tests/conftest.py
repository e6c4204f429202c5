"""Shared test fixtures.

Settings are built explicitly (no .env lookup surprises) with a zero
backoff interval so retry tests never sleep.
"""

import pytest

from cloudtools.configuration import AwsSettings, RetrySettings, Settings, get_settings
from cloudtools.resilience import RetryPolicy


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Reset the settings singleton around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_settings():
    """Factory fixture building Settings with test-friendly defaults.

    Usage:
        def test_something(make_settings):
            settings = make_settings(max_attempts=3)
    """

    def _factory(
        max_attempts: int = 5,
        base_interval_ms: int = 0,
        exponential: bool = True,
        **aws_overrides,
    ) -> Settings:
        aws_values = {"AWS_REGION": "us-east-1"}
        aws_values.update(aws_overrides)
        return Settings(
            PREFIX="test-",
            aws=AwsSettings(**aws_values),
            retry=RetrySettings(
                RETRY_MAX_ATTEMPTS=max_attempts,
                RETRY_BASE_INTERVAL_MS=base_interval_ms,
                RETRY_EXPONENTIAL=exponential,
            ),
        )

    return _factory


@pytest.fixture
def test_settings(make_settings):
    """Settings with a 5-attempt budget and no backoff delay."""
    return make_settings()


@pytest.fixture
def no_delay_policy():
    """Retry policy with the default budget and no backoff delay."""
    return RetryPolicy(max_attempts=5, base_interval_ms=0)
