"""cloudtools: resilient async access to DynamoDB, S3 and Secrets Manager.

Backend calls are retried with exponential backoff when the backend flags
the failure as transient, paged reads are accumulated into one result, and
a DynamoDB caching proxy falls back to a direct client when it keeps
failing.
"""

from cloudtools.clients.aws import (
    AWSClients,
    DynamoDBBackend,
    DynamoTools,
    S3Backend,
    S3Tools,
    SecretManagerTools,
    SecretsManagerBackend,
)
from cloudtools.errors import (
    BackendCallError,
    BackendError,
    CloudToolsError,
    ErrorContext,
    FallbackExhaustedError,
    ObjectNotFoundError,
    ParameterError,
    ResponseFormatError,
)
from cloudtools.operations import OperationResult, OperationStatus, run_operation
from cloudtools.resilience import AccumulatedResult, BackendKind, RetryPolicy

__version__ = "1.0.0"

__all__ = [
    "AWSClients",
    "DynamoTools",
    "S3Tools",
    "SecretManagerTools",
    "DynamoDBBackend",
    "S3Backend",
    "SecretsManagerBackend",
    "AccumulatedResult",
    "BackendKind",
    "RetryPolicy",
    "OperationResult",
    "OperationStatus",
    "run_operation",
    "BackendCallError",
    "BackendError",
    "CloudToolsError",
    "ErrorContext",
    "FallbackExhaustedError",
    "ObjectNotFoundError",
    "ParameterError",
    "ResponseFormatError",
]
