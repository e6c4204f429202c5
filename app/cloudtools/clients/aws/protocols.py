"""Backend client contract.

Backend clients are injected into the tools and owned by the caller. Each
exposes one coroutine per supported operation taking a backend-native
request dict and returning the backend's response dict, or raising an error
that may carry a `retryable` flag.

`kind` declares the client's variant (see `BackendKind`); clients without
it are treated as direct.
"""

from typing import Any, Dict, Protocol, runtime_checkable

from cloudtools.resilience.fallback import BackendKind

Request = Dict[str, Any]
Response = Dict[str, Any]


@runtime_checkable
class DocumentBackend(Protocol):
    """DynamoDB-style document database client."""

    kind: BackendKind

    async def query(self, request: Request) -> Response:  # pragma: no cover
        ...

    async def scan(self, request: Request) -> Response:  # pragma: no cover
        ...

    async def get(self, request: Request) -> Response:  # pragma: no cover
        ...

    async def put(self, request: Request) -> Response:  # pragma: no cover
        ...

    async def update(self, request: Request) -> Response:  # pragma: no cover
        ...

    async def delete(self, request: Request) -> Response:  # pragma: no cover
        ...

    async def batch_get(self, request: Request) -> Response:  # pragma: no cover
        ...

    async def batch_write(self, request: Request) -> Response:  # pragma: no cover
        ...

    async def transact_get(self, request: Request) -> Response:  # pragma: no cover
        ...

    async def transact_write(self, request: Request) -> Response:  # pragma: no cover
        ...


@runtime_checkable
class ObjectBackend(Protocol):
    """S3-style object store client.

    `get_object` returns the body already read into bytes (or no body).
    """

    async def get_object(self, request: Request) -> Response:  # pragma: no cover
        ...

    async def put_object(self, request: Request) -> Response:  # pragma: no cover
        ...


@runtime_checkable
class SecretBackend(Protocol):
    """Secrets Manager-style secret store client."""

    async def get_secret_value(self, request: Request) -> Response:  # pragma: no cover
        ...
