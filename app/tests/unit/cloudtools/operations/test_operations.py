"""Unit tests for operation results, classifiers and the envelope runner."""

import pytest

from cloudtools.errors import (
    BackendCallError,
    BackendError,
    ErrorContext,
    ObjectNotFoundError,
    ParameterError,
)
from cloudtools.operations import (
    OperationResult,
    OperationStatus,
    classify_error,
    is_retryable,
    run_operation,
)


@pytest.mark.unit
class TestIsRetryable:
    def test_flag_true(self):
        assert is_retryable(BackendError("x", retryable=True)) is True

    def test_flag_false(self):
        assert is_retryable(BackendError("x", retryable=False)) is False

    def test_flag_absent(self):
        assert is_retryable(TimeoutError("socket timeout")) is False

    def test_truthy_non_bool_flag_is_not_retryable(self):
        error = RuntimeError("x")
        error.retryable = "yes"

        assert is_retryable(error) is False

    def test_status_code_and_message_are_ignored(self):
        error = BackendError("Service Unavailable", code="ServiceUnavailable")
        error.status_code = 503

        assert is_retryable(error) is False


@pytest.mark.unit
class TestOperationResult:
    def test_success(self):
        result = OperationResult.success(data=[1])

        assert result.is_success
        assert result.status == OperationStatus.SUCCESS
        assert result.data == [1]
        assert result.message == "ok"

    def test_error(self):
        result = OperationResult.error(
            OperationStatus.NOT_FOUND, "missing", error_code="FILE_NOT_FOUND"
        )

        assert not result.is_success
        assert not result.is_transient
        assert result.error_code == "FILE_NOT_FOUND"
        assert result.data is None

    def test_transient(self):
        result = OperationResult.error(OperationStatus.TRANSIENT_ERROR, "throttled")

        assert result.is_transient

    def test_error_rejects_success_status(self):
        with pytest.raises(ValueError):
            OperationResult.error(OperationStatus.SUCCESS, "nope")


@pytest.mark.unit
class TestClassifyError:
    def test_parameter_error(self):
        context = ErrorContext("DynamoTools", "putItem", {"dynamo_table": None})
        result = classify_error(ParameterError(context=context))

        assert result.status == OperationStatus.INVALID_PARAMETER
        assert result.error_code == "BAD_PARAM"
        assert result.context == {
            "from": "DynamoTools",
            "function_name": "putItem",
            "params": {"dynamo_table": None},
        }

    def test_not_found(self):
        result = classify_error(ObjectNotFoundError())

        assert result.status == OperationStatus.NOT_FOUND
        assert result.message == "FILE_NOT_FOUND"

    def test_transient_backend_error(self):
        error = BackendCallError("throttled", code="ThrottlingException", retryable=True)

        assert classify_error(error).status == OperationStatus.TRANSIENT_ERROR

    def test_permanent_backend_error(self):
        error = BackendCallError("denied", code="AccessDeniedException")

        result = classify_error(error)

        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "AccessDeniedException"


@pytest.mark.unit
class TestRunOperation:
    @pytest.mark.asyncio
    async def test_wraps_success(self):
        async def operation():
            return {"id": "1"}

        result = await run_operation(operation())

        assert result.is_success
        assert result.data == {"id": "1"}

    @pytest.mark.asyncio
    async def test_wraps_cloudtools_error(self):
        async def operation():
            raise ParameterError(code="BAD_PARAMS")

        result = await run_operation(operation())

        assert result.status == OperationStatus.INVALID_PARAMETER
        assert result.error_code == "BAD_PARAMS"

    @pytest.mark.asyncio
    async def test_other_exceptions_propagate(self):
        async def operation():
            raise KeyError("bug")

        with pytest.raises(KeyError):
            await run_operation(operation())
