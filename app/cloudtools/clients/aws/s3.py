"""S3 operation adapters.

`S3Tools` reads and writes blobs with the same retry policy as the other
tools. A read without a body, or for a missing key, fails with
`ObjectNotFoundError` (code FILE_NOT_FOUND); the body can be returned raw,
as text or as parsed JSON, optionally gunzipped first.
"""

import gzip as gzip_lib
import json
import zlib
from typing import Any, Dict, Optional

import structlog

from cloudtools.configuration import Settings, get_settings
from cloudtools.errors import (
    BackendCallError,
    CloudToolsError,
    ErrorContext,
    ObjectNotFoundError,
    ParameterError,
    ResponseFormatError,
)
from cloudtools.resilience import RetryPolicy, call_with_retry

logger = structlog.get_logger()

COMPONENT = "S3Tools"
BAD_PARAM = "S3_TOOLS_BAD_PARAM"
FILE_NOT_FOUND = "FILE_NOT_FOUND"
GET_OBJECT_RETURN_TYPES = ("string", "buffer", "object", "all")


def format_get_object_response(
    response: Dict[str, Any],
    return_type: str = "object",
    gzip: bool = False,
    context: Optional[ErrorContext] = None,
) -> Any:
    """Shape a GetObject response.

    Args:
        response: GetObject response with `Body` as bytes
        return_type: "buffer" (bytes), "string" (UTF-8 text), "object"
            (parsed JSON) or "all" (the response itself, body untouched)
        gzip: Decompress the body first (ignored for "all")
        context: Attached to a ResponseFormatError

    Raises:
        ResponseFormatError: The body could not be decompressed or decoded
    """
    if return_type == "all":
        return response

    body = response["Body"]
    try:
        if gzip:
            body = gzip_lib.decompress(body)
        if return_type == "buffer":
            return body
        text = body.decode("utf-8")
        if return_type == "string":
            return text
        return json.loads(text)
    except (OSError, EOFError, zlib.error, UnicodeDecodeError, ValueError) as e:
        raise ResponseFormatError(
            f"could not format object body as {return_type}: {e}", context=context
        ) from e


class S3Tools:
    """Resilient S3 blob operations.

    Args:
        client: Object store backend (externally owned)
        retry_max: Retry budget per call; overrides
            `RetrySettings.max_attempts`
        settings: Settings instance (defaults to `get_settings()`)
    """

    def __init__(
        self,
        client: Any,
        *,
        retry_max: Optional[int] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self.client = client
        self.policy = RetryPolicy.from_settings(
            self._settings.retry, max_attempts=retry_max
        )
        self._not_found_codes = frozenset(self._settings.aws.RESOURCE_NOT_FOUND_ERRS)
        self._logger = logger.bind(component="s3_tools")

    @property
    def retry_max(self) -> int:
        return self.policy.max_attempts

    async def _call(self, context: ErrorContext, method: str, request: Dict[str, Any]):
        try:
            return await call_with_retry(
                getattr(self.client, method), request, policy=self.policy
            )
        except CloudToolsError:
            raise
        except Exception as e:
            if getattr(e, "code", None) in self._not_found_codes:
                raise ObjectNotFoundError(
                    getattr(e, "message", None) or str(e),
                    code=FILE_NOT_FOUND,
                    context=context,
                ) from e
            raise BackendCallError.from_error(e, context) from e

    async def get_object(
        self,
        bucket: str,
        key: str,
        return_type: str = "object",
        gzip: bool = False,
    ) -> Any:
        """Read an object.

        Args:
            bucket: Bucket name
            key: Object key
            return_type: "object" (parsed JSON), "string", "buffer" or "all"
            gzip: The body is gzip-compressed

        Raises:
            ParameterError: Invalid arguments (code S3_TOOLS_BAD_PARAM_GetObject)
            ObjectNotFoundError: The object has no body or does not exist
            ResponseFormatError: The body could not be decoded
            BackendCallError: The read failed
        """
        context = ErrorContext(
            COMPONENT,
            "getObject",
            {"bucket": bucket, "key": key, "return_type": return_type, "gzip": gzip},
        )
        if (
            not isinstance(bucket, str)
            or not isinstance(key, str)
            or return_type not in GET_OBJECT_RETURN_TYPES
            or not isinstance(gzip, bool)
        ):
            raise ParameterError(code=f"{BAD_PARAM}_GetObject", context=context)

        response = await self._call(
            context, "get_object", {"Bucket": bucket, "Key": key}
        )
        body = response.get("Body") if isinstance(response, dict) else None
        if not isinstance(body, (bytes, bytearray)):
            self._logger.debug("object_without_body", bucket=bucket, key=key)
            raise ObjectNotFoundError(code=FILE_NOT_FOUND, context=context)

        return format_get_object_response(response, return_type, gzip, context)

    async def put_json_object(
        self, bucket: str, key: str, payload: Any, gzip: bool = False
    ) -> Dict[str, Any]:
        """Write `payload` as a JSON object, optionally gzip-compressed.

        Raises:
            ParameterError: Invalid arguments (code S3_TOOLS_BAD_PARAM_PutObject)
            BackendCallError: The write failed
        """
        context = ErrorContext(
            COMPONENT, "putJsonObject", {"bucket": bucket, "key": key, "gzip": gzip}
        )
        if not isinstance(bucket, str) or not isinstance(key, str):
            raise ParameterError(code=f"{BAD_PARAM}_PutObject", context=context)
        try:
            body = json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise ParameterError(
                f"payload is not JSON serializable: {e}",
                code=f"{BAD_PARAM}_PutObject",
                context=context,
            ) from e

        request = {
            "Bucket": bucket,
            "Key": key,
            "Body": gzip_lib.compress(body) if gzip else body,
            "ContentType": "application/json",
        }
        if gzip:
            request["ContentEncoding"] = "gzip"
        return await self._call(context, "put_object", request)

    async def put_object(
        self,
        bucket: str,
        key: str,
        body: bytes,
        content_type: str = "application/octet-stream",
    ) -> Dict[str, Any]:
        """Write raw bytes (or text, sent as UTF-8)."""
        context = ErrorContext(
            COMPONENT,
            "putObject",
            {"bucket": bucket, "key": key, "content_type": content_type},
        )
        if (
            not isinstance(bucket, str)
            or not isinstance(key, str)
            or not isinstance(body, (bytes, bytearray, str))
        ):
            raise ParameterError(code=f"{BAD_PARAM}_PutObject", context=context)
        if isinstance(body, str):
            body = body.encode("utf-8")
        return await self._call(
            context,
            "put_object",
            {"Bucket": bucket, "Key": key, "Body": bytes(body), "ContentType": content_type},
        )
