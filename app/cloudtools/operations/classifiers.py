"""Error classifiers.

`is_retryable` is the retryability policy used by every backend call: an
error is transient if and only if the backend set its `retryable` flag to
True. Status codes, messages and exception types are not inspected.

`retries_exhausted` tells whether an error ended a retry run that used its
whole budget; the fallback strategy keys on it.

`classify_error` maps a surfaced error onto an `OperationResult` for the
result-envelope API.
"""

from cloudtools.errors import (
    CloudToolsError,
    ObjectNotFoundError,
    ParameterError,
)
from cloudtools.operations.result import OperationResult
from cloudtools.operations.status import OperationStatus


def is_retryable(error: BaseException) -> bool:
    """Return True if the backend flagged `error` as transient.

    Args:
        error: Exception raised by a backend call

    Returns:
        True only when the error carries `retryable=True`
    """
    return getattr(error, "retryable", False) is True


def retries_exhausted(error: BaseException) -> bool:
    """Return True if a retry run spent its whole budget before `error`."""
    return getattr(error, "retries_exhausted", False) is True


def classify_error(exc: BaseException) -> OperationResult:
    """Classify an exception into an error OperationResult.

    Mapping:
    - ParameterError → INVALID_PARAMETER
    - ObjectNotFoundError → NOT_FOUND
    - retryable flag set → TRANSIENT_ERROR
    - anything else → PERMANENT_ERROR

    Args:
        exc: Exception raised by an operation adapter

    Returns:
        OperationResult with the matching status, message, code and context
    """
    context = None
    error_code = getattr(exc, "code", None)
    if isinstance(exc, CloudToolsError) and exc.context is not None:
        context = exc.context.to_dict()

    if isinstance(exc, ParameterError):
        status = OperationStatus.INVALID_PARAMETER
    elif isinstance(exc, ObjectNotFoundError):
        status = OperationStatus.NOT_FOUND
    elif is_retryable(exc):
        status = OperationStatus.TRANSIENT_ERROR
    else:
        status = OperationStatus.PERMANENT_ERROR

    return OperationResult.error(
        status,
        getattr(exc, "message", None) or str(exc),
        error_code=error_code,
        context=context,
    )
