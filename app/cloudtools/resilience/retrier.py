"""Backoff retrier.

`retry` is a pure retry loop: it re-invokes an operation with identical
arguments until it succeeds or the attempts run out, then re-raises the last
error unchanged. It does not decide what is retryable.

`call_with_retry` is the entry point used by every backend call: it makes the
first attempt, consults the retryability classifier on failure and only then
hands the remaining budget to `retry`. An error that ends such a retry run
is re-raised with `retries_exhausted = True`.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from cloudtools.operations.classifiers import is_retryable
from cloudtools.resilience.policy import RetryPolicy, compute_delay

logger = structlog.get_logger()

T = TypeVar("T")

__all__ = ["call_with_retry", "compute_delay", "retry"]


async def retry(
    operation: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 5,
    base_interval_ms: int = 200,
    exponential: bool = True,
) -> T:
    """Retry `operation(*args)` up to `max_attempts` times.

    The first attempt runs immediately. After each failed attempt except the
    last, waits `base_interval_ms * 2^attempt_index` (exponential) or a flat
    `base_interval_ms` before trying again. Waiting suspends only the calling
    task.

    Args:
        operation: Coroutine function to invoke
        *args: Arguments passed unchanged to every attempt
        max_attempts: Total attempts made by this loop
        base_interval_ms: Base wait between attempts in milliseconds
        exponential: Use exponential instead of linear backoff

    Returns:
        The first successful result

    Raises:
        The error of the final attempt, unchanged
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 0
    while True:
        try:
            result = await operation(*args)
        except Exception as e:
            attempt += 1
            if attempt >= max_attempts:
                logger.warning(
                    "retry_exhausted",
                    attempts=attempt,
                    error=str(e),
                )
                raise

            delay = compute_delay(attempt - 1, base_interval_ms, exponential)
            logger.debug(
                "retry_attempt_failed",
                attempt=attempt,
                max_attempts=max_attempts,
                delay=delay,
                error=str(e),
            )
            await asyncio.sleep(delay)
            continue

        if attempt > 0:
            logger.info("retry_succeeded", attempt=attempt + 1)
        return result


async def call_with_retry(
    operation: Callable[..., Awaitable[T]],
    *args: Any,
    policy: Optional[RetryPolicy] = None,
    classifier: Callable[[BaseException], bool] = is_retryable,
) -> T:
    """Invoke a backend operation, retrying when its failure is retryable.

    A failure the classifier rejects propagates after exactly one attempt.
    A retryable failure hands the call to `retry` with the rest of the
    budget, so the total number of attempts never exceeds
    `policy.max_attempts`. When that budget runs out, the last error is
    re-raised with `retries_exhausted` set, whatever its own `retryable`
    flag says.

    Args:
        operation: Coroutine function to invoke
        *args: Arguments passed unchanged to every attempt
        policy: Retry budget and backoff schedule (defaults to RetryPolicy())
        classifier: Decides whether the first failure is retryable

    Returns:
        The operation's result

    Raises:
        The error of the final attempt
    """
    policy = policy or RetryPolicy()
    try:
        return await operation(*args)
    except Exception as e:
        if not classifier(e):
            raise
        if policy.max_attempts <= 1:
            e.retries_exhausted = True
            raise
        logger.debug(
            "retryable_error",
            error=str(e),
            remaining_attempts=policy.max_attempts - 1,
        )

    try:
        return await retry(
            operation,
            *args,
            max_attempts=policy.max_attempts - 1,
            base_interval_ms=policy.base_interval_ms,
            exponential=policy.exponential,
        )
    except Exception as e:
        e.retries_exhausted = True
        raise
