"""Operation status enumeration."""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Failure the backend flagged as retryable
        PERMANENT_ERROR: Non-retryable backend failure
        NOT_FOUND: Requested object has no body
        INVALID_PARAMETER: Arguments rejected before any backend call
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    NOT_FOUND = "not_found"
    INVALID_PARAMETER = "invalid_parameter"
