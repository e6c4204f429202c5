"""Common pydantic-settings configuration for every settings section."""

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    case_sensitive=True,
    extra="ignore",
)


class IntegrationSettings(BaseSettings):
    """Settings for a backend service (region, endpoints, error codes)."""

    model_config = _ENV_CONFIG


class InfrastructureSettings(BaseSettings):
    """Settings for cross-cutting behavior such as the retry budget."""

    model_config = _ENV_CONFIG
