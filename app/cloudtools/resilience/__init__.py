"""Retry, pagination and backend substitution.

Architecture:
- RetryPolicy: retry budget and backoff schedule
- retry / call_with_retry: exponential-backoff retry loop
- PagedOperation / accumulate: page-by-page accumulation with a ceiling
- FallbackStrategy / BackendKind: primary → fallback backend substitution

Usage:
    from cloudtools.resilience import PagedOperation, RetryPolicy, accumulate

    operation = PagedOperation(method="scan", request={"TableName": "users"})
    result = await accumulate(backend, operation, ceiling=100, policy=RetryPolicy())
"""

from cloudtools.resilience.fallback import BackendKind, FallbackStrategy, backend_kind
from cloudtools.resilience.pagination import (
    AccumulatedResult,
    AccumulationState,
    PagedOperation,
    PageOffset,
    PaginationInterrupted,
    accumulate,
    fold_pages,
    to_result,
)
from cloudtools.resilience.policy import RetryPolicy, compute_delay
from cloudtools.resilience.retrier import call_with_retry, retry

__all__ = [
    # Retry
    "RetryPolicy",
    "compute_delay",
    "retry",
    "call_with_retry",
    # Pagination
    "AccumulatedResult",
    "AccumulationState",
    "PagedOperation",
    "PageOffset",
    "PaginationInterrupted",
    "accumulate",
    "fold_pages",
    "to_result",
    # Fallback
    "BackendKind",
    "FallbackStrategy",
    "backend_kind",
]
