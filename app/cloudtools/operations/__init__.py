"""Operation result types, status enum and error classifiers."""

from cloudtools.operations.classifiers import (
    classify_error,
    is_retryable,
    retries_exhausted,
)
from cloudtools.operations.result import OperationResult
from cloudtools.operations.runner import run_operation
from cloudtools.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "classify_error",
    "is_retryable",
    "retries_exhausted",
    "run_operation",
]
