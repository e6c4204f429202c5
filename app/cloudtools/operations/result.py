"""Status envelope for operation outcomes.

Built by `cloudtools.operations.runner.run_operation` for callers that
branch on a status instead of catching `CloudToolsError`.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from cloudtools.operations.status import OperationStatus


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one adapter call.

    `data` holds the adapter's return value on success (an item, a list of
    items, or a paged result with its cursor). On failure `error_code` and
    `context` mirror the raised error so the envelope can be logged as is.
    """

    status: OperationStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None
    context: Optional[Dict[str, Any]] = None

    @property
    def is_success(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    @property
    def is_transient(self) -> bool:
        """True when a later retry of the same call may succeed."""
        return self.status is OperationStatus.TRANSIENT_ERROR

    @classmethod
    def success(cls, data: Any = None, message: str = "ok") -> "OperationResult":
        return cls(OperationStatus.SUCCESS, message, data=data)

    @classmethod
    def error(
        cls,
        status: OperationStatus,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> "OperationResult":
        if status is OperationStatus.SUCCESS:
            raise ValueError("error results cannot carry SUCCESS status")
        return cls(status, message, error_code=error_code, context=context)
