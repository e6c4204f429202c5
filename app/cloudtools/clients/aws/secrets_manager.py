"""Secrets Manager operation adapters."""

import json
from typing import Any, Dict, Optional

import structlog

from cloudtools.configuration import Settings, get_settings
from cloudtools.errors import (
    BackendCallError,
    CloudToolsError,
    ErrorContext,
    ParameterError,
    ResponseFormatError,
)
from cloudtools.resilience import RetryPolicy, call_with_retry

logger = structlog.get_logger()

COMPONENT = "SecretManagerTools"
BAD_PARAMS = "BAD_PARAMS"


class SecretManagerTools:
    """Resilient secret retrieval.

    Args:
        client: Secret store backend (externally owned)
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

    @property
    def retry_max(self) -> int:
        return self.policy.max_attempts

    async def get_secret_value(
        self, secret_name: str, version_stage: Optional[str] = None
    ) -> Dict[str, Any]:
        """Fetch a secret.

        Args:
            secret_name: Secret name or ARN
            version_stage: Optional staging label (e.g. "AWSPREVIOUS")

        Returns:
            The raw GetSecretValue response (SecretString or SecretBinary)

        Raises:
            ParameterError: Invalid arguments (code BAD_PARAMS)
            BackendCallError: The call failed
        """
        context = ErrorContext(
            COMPONENT,
            "getSecretValue",
            {"secret_name": secret_name, "version_stage": version_stage},
        )
        if not isinstance(secret_name, str) or not secret_name:
            raise ParameterError("Bad params", code=BAD_PARAMS, context=context)
        if version_stage is not None and not isinstance(version_stage, str):
            raise ParameterError("Bad params", code=BAD_PARAMS, context=context)

        request = {"SecretId": secret_name}
        if version_stage:
            request["VersionStage"] = version_stage

        try:
            return await call_with_retry(
                self.client.get_secret_value, request, policy=self.policy
            )
        except CloudToolsError:
            raise
        except Exception as e:
            logger.warning(
                "secret_retrieval_failed",
                secret_name=secret_name,
                error=str(e),
            )
            raise BackendCallError.from_error(e, context) from e

    async def get_secret_json(self, secret_name: str) -> Any:
        """Fetch a secret and parse its SecretString as JSON.

        Raises:
            ResponseFormatError: The secret has no SecretString or it is not
                valid JSON
        """
        response = await self.get_secret_value(secret_name)
        secret_string = response.get("SecretString") if response else None
        try:
            return json.loads(secret_string)
        except (TypeError, ValueError) as e:
            raise ResponseFormatError(
                f"secret is not a JSON string: {e}",
                context=ErrorContext(
                    COMPONENT, "getSecretJson", {"secret_name": secret_name}
                ),
            ) from e
