"""Error types for cloudtools operations.

Every failure surfaced to a caller is a `CloudToolsError` carrying a stable
machine code and an `ErrorContext` describing where it happened. The context
is diagnostic only: callers branch on `code` (or the exception type), never
on the context.

Backend clients signal failures with `BackendError`, whose `retryable` flag
is the only input the retry machinery looks at.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ErrorContext:
    """Where an error happened.

    Attributes:
        component: Name of the tool class that raised (e.g. "DynamoTools")
        operation: Name of the caller-facing operation (e.g. "queryHashKey")
        params: Snapshot of the input parameters of the failing call
    """

    component: str
    operation: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.component,
            "function_name": self.operation,
            "params": dict(self.params),
        }


class BackendError(Exception):
    """Error raised by a backend client.

    Args:
        message: Backend error message
        code: Backend error code (e.g. "ProvisionedThroughputExceededException")
        retryable: True when the backend marks the failure as transient
        retries_exhausted: True once a retry run spent its whole budget on
            this call; set by `call_with_retry`
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        retryable: bool = False,
        retries_exhausted: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable
        self.retries_exhausted = retries_exhausted

    def __repr__(self) -> str:
        return (
            f"BackendError({self.message!r}, code={self.code!r}, "
            f"retryable={self.retryable!r})"
        )


class CloudToolsError(Exception):
    """Base error for all operations surfaced by cloudtools."""

    default_code: str = "CLOUDTOOLS_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ) -> None:
        self.code = code or self.default_code
        self.message = message or self.code
        self.context = context
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.code!r})"


class ParameterError(CloudToolsError):
    """Invalid arguments, raised before any backend call."""

    default_code = "BAD_PARAM"


class ObjectNotFoundError(CloudToolsError):
    """A blob read returned no body."""

    default_code = "FILE_NOT_FOUND"


class ResponseFormatError(CloudToolsError):
    """A backend payload could not be decompressed or decoded."""

    default_code = "BAD_RESPONSE_FORMAT"


class BackendCallError(CloudToolsError):
    """A backend call failed after the retry budget (if any) was spent.

    The message and code are copied from the backend error so callers can
    branch on them; the original error is chained as `__cause__`.
    """

    default_code = "BACKEND_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message, code, context)
        self.retryable = retryable

    @classmethod
    def from_error(
        cls, error: BaseException, context: Optional[ErrorContext] = None, **kwargs
    ) -> "BackendCallError":
        """Build a surfaced error mirroring a backend failure."""
        return cls(
            message=getattr(error, "message", None) or str(error),
            code=getattr(error, "code", None),
            context=context,
            retryable=getattr(error, "retryable", False) is True,
            **kwargs,
        )


class FallbackExhaustedError(BackendCallError):
    """Both the primary and the fallback backend failed.

    The message and code describe the fallback's failure; the primary's
    failure is kept in `primary_error`.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        retryable: bool = False,
        primary_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, code, context, retryable)
        self.primary_error = primary_error
