"""Resilient AWS tools public API.

The main facade is AWSClients, which composes the per-service tools
(DynamoTools, S3Tools, SecretManagerTools) over boto3 backends:

    from cloudtools.clients.aws import AWSClients

    aws = AWSClients()
    result = await aws.dynamodb.query_hash_key("users", "team_id", "sre")
    for item in result:
        ...

Tools can also be built directly over any backend implementing the
protocols in `cloudtools.clients.aws.protocols`.
"""

from cloudtools.clients.aws.backends import (
    Boto3Backend,
    DynamoDBBackend,
    S3Backend,
    SecretsManagerBackend,
)
from cloudtools.clients.aws.cursors import decode_cursor, encode_cursor
from cloudtools.clients.aws.dynamodb import DynamoTools
from cloudtools.clients.aws.facade import AWSClients
from cloudtools.clients.aws.protocols import (
    DocumentBackend,
    ObjectBackend,
    SecretBackend,
)
from cloudtools.clients.aws.s3 import S3Tools, format_get_object_response
from cloudtools.clients.aws.secrets_manager import SecretManagerTools
from cloudtools.clients.aws.session_provider import SessionProvider

__all__ = [
    "AWSClients",
    "SessionProvider",
    # Tools
    "DynamoTools",
    "S3Tools",
    "SecretManagerTools",
    "format_get_object_response",
    # Backends
    "Boto3Backend",
    "DynamoDBBackend",
    "S3Backend",
    "SecretsManagerBackend",
    "DocumentBackend",
    "ObjectBackend",
    "SecretBackend",
    # Cursors
    "encode_cursor",
    "decode_cursor",
]
