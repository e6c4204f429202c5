"""Result-envelope runner for operation coroutines."""

from typing import Any, Awaitable

import structlog

from cloudtools.errors import CloudToolsError
from cloudtools.operations.classifiers import classify_error
from cloudtools.operations.result import OperationResult

logger = structlog.get_logger()


async def run_operation(
    awaitable: Awaitable[Any], message: str = "ok"
) -> OperationResult:
    """Await an operation and wrap its outcome in an OperationResult.

    Only `CloudToolsError` is converted; any other exception is a bug in the
    caller or in cloudtools and propagates.

    Example:
        result = await run_operation(dynamo.get_item("users", {"id": "42"}))
        if result.is_success:
            user = result.data
    """
    try:
        data = await awaitable
    except CloudToolsError as exc:
        result = classify_error(exc)
        logger.debug(
            "operation_failed",
            status=result.status.value,
            error_code=result.error_code,
            error=result.message,
        )
        return result
    return OperationResult.success(data=data, message=message)
