"""Configuration module - public API.

Centralized configuration management using Pydantic BaseSettings with
domain-based organization.

Exports:
    get_settings: Cached Settings singleton
    Settings: Main settings class (for testing/overrides)
    AwsSettings: AWS integration settings class
    RetrySettings: Retry settings class

Example:
    ```python
    from cloudtools.configuration import get_settings

    settings = get_settings()

    aws_region = settings.aws.AWS_REGION
    max_attempts = settings.retry.max_attempts
    ```
"""

from cloudtools.configuration.infrastructure import RetrySettings
from cloudtools.configuration.integrations import AwsSettings
from cloudtools.configuration.settings import Settings, get_settings

__all__ = ["Settings", "AwsSettings", "RetrySettings", "get_settings"]
