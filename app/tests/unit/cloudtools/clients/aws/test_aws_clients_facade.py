"""Unit tests for the AWSClients facade."""

from unittest.mock import MagicMock

import pytest

from cloudtools.clients.aws import facade as facade_module
from cloudtools.clients.aws.dynamodb import DynamoTools
from cloudtools.clients.aws.facade import AWSClients
from cloudtools.clients.aws.s3 import S3Tools
from cloudtools.clients.aws.secrets_manager import SecretManagerTools
from cloudtools.configuration import AwsSettings, RetrySettings
from cloudtools.resilience import BackendKind


@pytest.fixture
def fake_session_provider(monkeypatch):
    """Route every boto3 client the facade builds to MagicMocks."""
    provider = MagicMock()
    provider_cls = MagicMock(return_value=provider)
    monkeypatch.setattr(facade_module, "SessionProvider", provider_cls)
    return provider_cls


@pytest.mark.unit
class TestAWSClients:
    def test_composes_tools(self, fake_session_provider):
        aws = AWSClients(
            aws_settings=AwsSettings(
                AWS_REGION="us-east-1",
                AWS_SERVICE_ROLE_MAP={"s3": "arn:role"},
            ),
            retry_settings=RetrySettings(RETRY_MAX_ATTEMPTS=3),
        )

        assert isinstance(aws.dynamodb, DynamoTools)
        assert isinstance(aws.s3, S3Tools)
        assert isinstance(aws.secrets, SecretManagerTools)
        assert aws.dynamodb.retry_max == 3
        assert aws.s3.retry_max == 3
        assert aws.dynamodb.primary_kind == BackendKind.DIRECT
        fake_session_provider.assert_called_once_with(
            region="us-east-1",
            endpoint_url=None,
            service_role_map={"s3": "arn:role"},
        )
        provider = fake_session_provider.return_value
        provider.get_document_client.assert_called_once()
        provider.get_client.assert_any_call("s3")
        provider.get_client.assert_any_call("secretsmanager")

    def test_uses_injected_document_backend(self, fake_session_provider):
        fallback = MagicMock(kind=BackendKind.DIRECT)
        proxy = MagicMock(kind=BackendKind.CACHE_PROXY)

        with pytest.MonkeyPatch.context() as mp:
            mp.setattr(
                "cloudtools.clients.aws.dynamodb.DynamoDBBackend.from_session",
                MagicMock(return_value=fallback),
            )
            aws = AWSClients(
                aws_settings=AwsSettings(AWS_REGION="us-east-1"),
                document_backend=proxy,
            )

        assert aws.dynamodb.client is proxy
        assert aws.dynamodb.primary_kind == BackendKind.CACHE_PROXY
        assert aws.dynamodb.fallback_client is fallback
        fake_session_provider.return_value.get_document_client.assert_not_called()
