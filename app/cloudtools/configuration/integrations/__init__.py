"""External integration settings."""

from cloudtools.configuration.integrations.aws import AwsSettings

__all__ = ["AwsSettings"]
