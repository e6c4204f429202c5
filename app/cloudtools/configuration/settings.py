"""Top-level cloudtools settings."""

from functools import lru_cache
from typing import ClassVar, Dict, Type

from pydantic_settings import BaseSettings, SettingsConfigDict

from cloudtools.configuration.infrastructure import RetrySettings
from cloudtools.configuration.integrations import AwsSettings


class Settings(BaseSettings):
    """All cloudtools settings in one object.

    Sections (`aws`, `retry`) read their own environment variables; any
    section not passed explicitly is loaded from the environment.

    Environment Variables:
        PREFIX: Deployment prefix; empty in production
        LOG_LEVEL: Minimum level for configure_logging (default INFO)
    """

    SECTIONS: ClassVar[Dict[str, Type[BaseSettings]]] = {
        "aws": AwsSettings,
        "retry": RetrySettings,
    }

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    aws: AwsSettings
    retry: RetrySettings

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    def __init__(self, **kwargs):
        for name, section in self.SECTIONS.items():
            if name not in kwargs:
                kwargs[name] = section()
        super().__init__(**kwargs)

    @property
    def is_production(self) -> bool:
        return self.PREFIX == ""


@lru_cache
def get_settings() -> Settings:
    """Process-wide Settings, loaded once.

    Call `get_settings.cache_clear()` after changing the environment.
    """
    return Settings()
