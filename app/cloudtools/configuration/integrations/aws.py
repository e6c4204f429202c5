"""AWS integration settings."""

from typing import Optional

from pydantic import Field

from cloudtools.configuration.base import IntegrationSettings


class AwsSettings(IntegrationSettings):
    """AWS configuration settings.

    Environment Variables:
        AWS_REGION: AWS region for services (default: ca-central-1)
        AWS_ENDPOINT_URL: Custom endpoint for every service (LocalStack, tests)
        DYNAMODB_ENDPOINT_URL: Direct DynamoDB endpoint used by the fallback
            client when the primary document client is a caching proxy
        AWS_SERVICE_ROLE_MAP: JSON map of service name to role ARN to assume

    Example:
        ```python
        from cloudtools.configuration import get_settings

        settings = get_settings()

        region = settings.aws.AWS_REGION
        ```
    """

    AWS_REGION: str = Field(default="ca-central-1", alias="AWS_REGION")
    ENDPOINT_URL: Optional[str] = Field(default=None, alias="AWS_ENDPOINT_URL")
    DYNAMODB_ENDPOINT_URL: Optional[str] = Field(
        default=None, alias="DYNAMODB_ENDPOINT_URL"
    )
    SERVICE_ROLE_MAP: dict[str, str] = Field(
        default_factory=dict, alias="AWS_SERVICE_ROLE_MAP"
    )

    RETRYABLE_ERRS: list[str] = [
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "ProvisionedThroughputExceededException",
        "TransactionConflictException",
        "InternalServerError",
        "InternalFailure",
        "ServiceUnavailable",
        "SlowDown",
    ]
    RESOURCE_NOT_FOUND_ERRS: list[str] = [
        "ResourceNotFoundException",
        "NoSuchKey",
        "NoSuchBucket",
    ]
