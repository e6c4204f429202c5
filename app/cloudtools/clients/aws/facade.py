"""AWS Clients facade for the resilient tools.

Composes `DynamoTools`, `S3Tools` and `SecretManagerTools` over boto3
backends built from one shared `SessionProvider`.
"""

from typing import Any, Optional

import structlog

from cloudtools.clients.aws.backends import (
    DynamoDBBackend,
    S3Backend,
    SecretsManagerBackend,
)
from cloudtools.clients.aws.dynamodb import DynamoTools
from cloudtools.clients.aws.s3 import S3Tools
from cloudtools.clients.aws.secrets_manager import SecretManagerTools
from cloudtools.clients.aws.session_provider import SessionProvider
from cloudtools.configuration import AwsSettings, RetrySettings, Settings, get_settings

logger = structlog.get_logger()


class AWSClients:
    """Facade for the resilient AWS tools.

    Args:
        aws_settings: AWS configuration (defaults to `get_settings().aws`)
        retry_settings: Retry configuration (defaults to `get_settings().retry`)
        document_backend: Optional primary document backend, e.g. a DAX
            client wrapped in `DynamoDBBackend(..., kind=BackendKind.CACHE_PROXY)`.
            A direct DynamoDB backend is built when omitted.

    Usage:
        aws = AWSClients()
        user = await aws.dynamodb.get_item("users", {"id": "42"})
        config = await aws.s3.get_object("config-bucket", "app.json")
        secret = await aws.secrets.get_secret_json("app/db")
    """

    def __init__(
        self,
        aws_settings: Optional[AwsSettings] = None,
        retry_settings: Optional[RetrySettings] = None,
        document_backend: Optional[Any] = None,
    ) -> None:
        defaults = get_settings()
        self._settings = Settings(
            PREFIX=defaults.PREFIX,
            LOG_LEVEL=defaults.LOG_LEVEL,
            aws=aws_settings or defaults.aws,
            retry=retry_settings or defaults.retry,
        )
        aws = self._settings.aws

        self._session_provider = SessionProvider(
            region=aws.AWS_REGION,
            endpoint_url=aws.ENDPOINT_URL,
            service_role_map=aws.SERVICE_ROLE_MAP,
        )

        if document_backend is None:
            document_backend = DynamoDBBackend.from_session(
                self._session_provider,
                retryable_error_codes=aws.RETRYABLE_ERRS,
            )

        self.dynamodb: DynamoTools = DynamoTools(
            document_backend, settings=self._settings
        )
        self.s3: S3Tools = S3Tools(
            S3Backend.from_session(
                self._session_provider, retryable_error_codes=aws.RETRYABLE_ERRS
            ),
            settings=self._settings,
        )
        self.secrets: SecretManagerTools = SecretManagerTools(
            SecretsManagerBackend.from_session(
                self._session_provider, retryable_error_codes=aws.RETRYABLE_ERRS
            ),
            settings=self._settings,
        )
        self._logger = logger.bind(component="aws_clients")
        self._logger.debug(
            "aws_clients_initialized",
            region=aws.AWS_REGION,
            document_backend_kind=self.dynamodb.primary_kind.value,
        )

    @property
    def session_provider(self) -> SessionProvider:
        return self._session_provider
