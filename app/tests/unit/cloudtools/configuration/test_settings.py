"""Unit tests for cloudtools configuration."""

import pytest

from cloudtools.configuration import AwsSettings, RetrySettings, Settings, get_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "AWS_REGION",
        "AWS_ENDPOINT_URL",
        "DYNAMODB_ENDPOINT_URL",
        "RETRY_MAX_ATTEMPTS",
        "RETRY_BASE_INTERVAL_MS",
        "RETRY_EXPONENTIAL",
        "PREFIX",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.unit
class TestRetrySettings:
    def test_defaults(self, clean_env):
        settings = RetrySettings(_env_file=None)

        assert settings.max_attempts == 5
        assert settings.base_interval_ms == 200
        assert settings.exponential is True

    def test_from_environment(self, clean_env):
        clean_env.setenv("RETRY_MAX_ATTEMPTS", "3")
        clean_env.setenv("RETRY_BASE_INTERVAL_MS", "50")
        clean_env.setenv("RETRY_EXPONENTIAL", "false")

        settings = RetrySettings(_env_file=None)

        assert settings.max_attempts == 3
        assert settings.base_interval_ms == 50
        assert settings.exponential is False

    def test_rejects_empty_budget(self, clean_env):
        clean_env.setenv("RETRY_MAX_ATTEMPTS", "0")

        with pytest.raises(ValueError):
            RetrySettings(_env_file=None)


@pytest.mark.unit
class TestAwsSettings:
    def test_defaults(self, clean_env):
        settings = AwsSettings(_env_file=None)

        assert settings.AWS_REGION == "ca-central-1"
        assert settings.ENDPOINT_URL is None
        assert settings.DYNAMODB_ENDPOINT_URL is None
        assert "ProvisionedThroughputExceededException" in settings.RETRYABLE_ERRS
        assert "NoSuchKey" in settings.RESOURCE_NOT_FOUND_ERRS

    def test_endpoints_from_environment(self, clean_env):
        clean_env.setenv("AWS_ENDPOINT_URL", "http://localstack:4566")
        clean_env.setenv("DYNAMODB_ENDPOINT_URL", "http://dynamodb:8000")

        settings = AwsSettings(_env_file=None)

        assert settings.ENDPOINT_URL == "http://localstack:4566"
        assert settings.DYNAMODB_ENDPOINT_URL == "http://dynamodb:8000"


@pytest.mark.unit
class TestSettings:
    def test_builds_subsettings(self, clean_env):
        settings = Settings()

        assert isinstance(settings.aws, AwsSettings)
        assert isinstance(settings.retry, RetrySettings)
        assert settings.LOG_LEVEL == "INFO"

    def test_is_production(self, clean_env):
        assert Settings(PREFIX="").is_production is True
        assert Settings(PREFIX="dev-").is_production is False

    def test_get_settings_is_cached(self, clean_env):
        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, clean_env):
        first = get_settings()
        get_settings.cache_clear()

        assert get_settings() is not first
