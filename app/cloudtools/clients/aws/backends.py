"""boto3-backed implementations of the backend client contract.

boto3 is blocking, so every call runs in a worker thread via
`asyncio.to_thread`; awaiting it suspends only the calling task.

botocore failures are translated into `BackendError`. The `retryable` flag
is set for the error codes listed in `AwsSettings.RETRYABLE_ERRS`, for HTTP
5xx responses, and for connection-level failures.
"""

import asyncio
from typing import Any, ClassVar, Dict, Iterable, Mapping, Optional

import structlog
from botocore.exceptions import (  # type: ignore
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
)

from cloudtools.clients.aws.session_provider import SessionProvider
from cloudtools.configuration import get_settings
from cloudtools.errors import BackendError
from cloudtools.resilience.fallback import BackendKind

logger = structlog.get_logger()

_TRANSIENT_BOTOCORE_ERRORS = (BotoConnectionError, HTTPClientError)


class Boto3Backend:
    """Base class wrapping a boto3 client.

    Args:
        client: boto3 client (or any object with the same methods)
        kind: Declared variant of the client
        retryable_error_codes: Error codes flagged retryable; defaults to
            `AwsSettings.RETRYABLE_ERRS`
    """

    service_name: ClassVar[str] = ""

    def __init__(
        self,
        client: Any,
        kind: BackendKind = BackendKind.DIRECT,
        retryable_error_codes: Optional[Iterable[str]] = None,
    ) -> None:
        self._client = client
        self.kind = BackendKind(kind)
        if retryable_error_codes is None:
            retryable_error_codes = get_settings().aws.RETRYABLE_ERRS
        self._retryable_error_codes = frozenset(retryable_error_codes)
        self._logger = logger.bind(
            component=f"{self.service_name}_backend", kind=self.kind.value
        )

    @property
    def client(self) -> Any:
        return self._client

    async def _invoke(self, method: str, request: Mapping[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self._call_sync, method, dict(request))

    def _call_sync(self, method: str, request: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = getattr(self._client, method)(**request)
        except ClientError as e:
            raise self._translate_client_error(e, method) from e
        except BotoCoreError as e:
            error = BackendError(
                str(e),
                code=type(e).__name__,
                retryable=isinstance(e, _TRANSIENT_BOTOCORE_ERRORS),
            )
            self._logger.debug(
                "backend_call_failed",
                method=method,
                error=str(e),
                retryable=error.retryable,
            )
            raise error from e
        return self._postprocess(method, response)

    def _postprocess(self, method: str, response: Any) -> Dict[str, Any]:
        return response if isinstance(response, dict) else {}

    def _translate_client_error(self, e: ClientError, method: str) -> BackendError:
        error = e.response.get("Error", {})
        code = error.get("Code")
        message = error.get("Message") or str(e)
        status_code = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")

        retryable = code in self._retryable_error_codes or (
            isinstance(status_code, int) and status_code >= 500
        )
        self._logger.debug(
            "backend_call_failed",
            method=method,
            code=code,
            status_code=status_code,
            retryable=retryable,
        )
        return BackendError(message, code=code, retryable=retryable)


class DynamoDBBackend(Boto3Backend):
    """Document database backend over a DynamoDB document client.

    Use `SessionProvider.get_document_client()` (or a DAX client, tagged
    `BackendKind.CACHE_PROXY`) so items are plain Python values.
    """

    service_name = "dynamodb"

    @classmethod
    def from_session(
        cls,
        session_provider: SessionProvider,
        kind: BackendKind = BackendKind.DIRECT,
        endpoint_url: Optional[str] = None,
        retryable_error_codes: Optional[Iterable[str]] = None,
    ) -> "DynamoDBBackend":
        client = session_provider.get_document_client(endpoint_url=endpoint_url)
        return cls(client, kind=kind, retryable_error_codes=retryable_error_codes)

    async def query(self, request):
        return await self._invoke("query", request)

    async def scan(self, request):
        return await self._invoke("scan", request)

    async def get(self, request):
        return await self._invoke("get_item", request)

    async def put(self, request):
        return await self._invoke("put_item", request)

    async def update(self, request):
        return await self._invoke("update_item", request)

    async def delete(self, request):
        return await self._invoke("delete_item", request)

    async def batch_get(self, request):
        return await self._invoke("batch_get_item", request)

    async def batch_write(self, request):
        return await self._invoke("batch_write_item", request)

    async def transact_get(self, request):
        return await self._invoke("transact_get_items", request)

    async def transact_write(self, request):
        return await self._invoke("transact_write_items", request)


class S3Backend(Boto3Backend):
    """Object store backend over a boto3 S3 client.

    The streaming body of `get_object` is read inside the worker thread, so
    callers receive `Body` as bytes.
    """

    service_name = "s3"

    @classmethod
    def from_session(
        cls,
        session_provider: SessionProvider,
        retryable_error_codes: Optional[Iterable[str]] = None,
    ) -> "S3Backend":
        return cls(
            session_provider.get_client("s3"),
            retryable_error_codes=retryable_error_codes,
        )

    def _postprocess(self, method: str, response: Any) -> Dict[str, Any]:
        response = super()._postprocess(method, response)
        body = response.get("Body")
        if method == "get_object" and hasattr(body, "read"):
            response = {**response, "Body": body.read()}
        return response

    async def get_object(self, request):
        return await self._invoke("get_object", request)

    async def put_object(self, request):
        return await self._invoke("put_object", request)


class SecretsManagerBackend(Boto3Backend):
    """Secret store backend over a boto3 Secrets Manager client."""

    service_name = "secretsmanager"

    @classmethod
    def from_session(
        cls,
        session_provider: SessionProvider,
        retryable_error_codes: Optional[Iterable[str]] = None,
    ) -> "SecretsManagerBackend":
        return cls(
            session_provider.get_client("secretsmanager"),
            retryable_error_codes=retryable_error_codes,
        )

    async def get_secret_value(self, request):
        return await self._invoke("get_secret_value", request)
