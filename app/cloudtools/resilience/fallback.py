"""Backend substitution strategy.

Runs an operation against a primary backend client and, when that client
is a caching-proxy front-end whose retry budget was exhausted, re-runs the
operation against a direct fallback client.

The variant of a client is an explicit `BackendKind` tag declared by the
client when it is constructed; the strategy never inspects the client's
type.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from cloudtools.errors import ErrorContext, FallbackExhaustedError
from cloudtools.operations.classifiers import retries_exhausted
from cloudtools.resilience.pagination import AccumulationState, PaginationInterrupted

logger = structlog.get_logger()

T = TypeVar("T")

# call(backend, resume_state) -> result; resume_state is None on the primary
# run and for single-shot operations.
BackendCall = Callable[[Any, Optional[AccumulationState]], Awaitable[T]]


class BackendKind(str, Enum):
    """Variant of a backend client.

    Values:
        DIRECT: Talks to the service itself
        CACHE_PROXY: Caching front-end (e.g. DAX) that may need a direct
            fallback when it keeps failing
    """

    DIRECT = "direct"
    CACHE_PROXY = "cache_proxy"


def backend_kind(client: Any) -> BackendKind:
    """Declared variant of `client`; clients without a tag are DIRECT."""
    kind = getattr(client, "kind", BackendKind.DIRECT)
    try:
        return BackendKind(kind)
    except ValueError:
        return BackendKind.DIRECT


class FallbackStrategy:
    """Primary/fallback backend substitution.

    Args:
        primary: Primary backend client (externally owned)
        fallback: Direct backend client used when the primary is a caching
            proxy; ignored otherwise
        logger: Optional structlog-style logger receiving the fallback-path
            events; the module logger is used when omitted
    """

    def __init__(
        self,
        primary: Any,
        fallback: Optional[Any] = None,
        logger: Optional[Any] = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self._logger = logger if logger is not None else _module_logger()

    @property
    def primary_kind(self) -> BackendKind:
        return backend_kind(self.primary)

    def should_fallback(self, error: BaseException) -> bool:
        """True when `error` ends a spent retry budget on a caching proxy.

        Only the exhaustion mark set by `call_with_retry` counts; the final
        error's own `retryable` flag does not.
        """
        return (
            self.primary_kind == BackendKind.CACHE_PROXY
            and self.fallback is not None
            and retries_exhausted(error)
        )

    async def run(
        self,
        call: BackendCall,
        context: Optional[ErrorContext] = None,
    ) -> T:
        """Run `call` on the primary, then on the fallback if warranted.

        Args:
            call: Coroutine function taking (backend, resume_state)
            context: Diagnostic context attached to a fallback failure

        Returns:
            The result of the first backend that succeeded

        Raises:
            The primary's error when no substitution applies, or
            FallbackExhaustedError when the fallback failed too
        """
        try:
            return await call(self.primary, None)
        except PaginationInterrupted as interrupted:
            primary_error: BaseException = interrupted.error
            resume: Optional[AccumulationState] = interrupted.state
        except Exception as e:
            primary_error = e
            resume = None

        if not self.should_fallback(primary_error):
            raise primary_error

        operation = context.operation if context else None
        self._logger.warning(
            "fallback_started",
            operation=operation,
            error=str(primary_error),
            resumed_items=len(resume.items) if resume else 0,
        )

        try:
            result = await call(self.fallback, resume)
        except PaginationInterrupted as interrupted:
            fallback_error: BaseException = interrupted.error
        except Exception as e:
            fallback_error = e
        else:
            self._logger.info("fallback_succeeded", operation=operation)
            return result

        self._logger.error(
            "fallback_failed",
            operation=operation,
            error=str(fallback_error),
            primary_error=str(primary_error),
        )
        raise FallbackExhaustedError.from_error(
            fallback_error, context, primary_error=primary_error
        ) from fallback_error


def _module_logger():
    return logger.bind(component="fallback_strategy")
