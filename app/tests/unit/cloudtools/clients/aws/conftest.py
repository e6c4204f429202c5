"""Fixtures for AWS tool tests.

Provides factory-as-fixture fakes for the three backend contracts. A fake
backend serves scripted responses per method: each script entry is either a
response dict, an exception to raise, or a callable receiving the request.
Every request is recorded in `calls` as (method, request).
"""

from typing import Any, Dict, List, Optional

import pytest

from cloudtools.errors import BackendError
from cloudtools.resilience import BackendKind


class FakeBackend:
    """Scripted backend client."""

    methods: tuple = ()

    def __init__(
        self,
        scripts: Optional[Dict[str, List[Any]]] = None,
        kind: BackendKind = BackendKind.DIRECT,
        default: Any = None,
    ):
        self.kind = kind
        self._scripts = {name: list(entries) for name, entries in (scripts or {}).items()}
        self._default = default if default is not None else {}
        self.calls: List[tuple] = []

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def requests(self, method: str) -> List[Dict[str, Any]]:
        return [request for name, request in self.calls if name == method]

    async def _serve(self, method: str, request: Dict[str, Any]):
        self.calls.append((method, dict(request)))
        script = self._scripts.get(method)
        entry = script.pop(0) if script else self._default
        if isinstance(entry, BaseException):
            raise entry
        if callable(entry):
            return entry(request)
        return entry

    def __getattr__(self, name: str):
        if name in self.methods:

            async def _method(request):
                return await self._serve(name, request)

            return _method
        raise AttributeError(name)


class FakeDocumentBackend(FakeBackend):
    methods = (
        "query",
        "scan",
        "get",
        "put",
        "update",
        "delete",
        "batch_get",
        "batch_write",
        "transact_get",
        "transact_write",
    )


class FakeObjectBackend(FakeBackend):
    methods = ("get_object", "put_object")


class FakeSecretBackend(FakeBackend):
    methods = ("get_secret_value",)


class ExplodingBackend:
    """Backend failing the test if any method is invoked."""

    kind = BackendKind.DIRECT

    def __getattr__(self, name: str):
        raise AssertionError(f"backend method {name!r} must not be called")


@pytest.fixture
def make_document_backend():
    """Factory fixture creating FakeDocumentBackend instances.

    Usage:
        def test_something(make_document_backend):
            backend = make_document_backend({"query": [{"Items": [...]}]})
    """

    def _factory(scripts=None, kind=BackendKind.DIRECT, default=None):
        return FakeDocumentBackend(scripts, kind=kind, default=default)

    return _factory


@pytest.fixture
def make_object_backend():
    """Factory fixture creating FakeObjectBackend instances."""

    def _factory(scripts=None, default=None):
        return FakeObjectBackend(scripts, default=default)

    return _factory


@pytest.fixture
def make_secret_backend():
    """Factory fixture creating FakeSecretBackend instances."""

    def _factory(scripts=None, default=None):
        return FakeSecretBackend(scripts, default=default)

    return _factory


@pytest.fixture
def exploding_backend():
    return ExplodingBackend()


@pytest.fixture
def transient_error():
    """Factory fixture for errors the backend flags as retryable."""

    def _factory(message="Rate of requests exceeds the allowed throughput"):
        return BackendError(message, code="ThrottlingException", retryable=True)

    return _factory


@pytest.fixture
def permanent_error():
    """Factory fixture for errors without the retryable flag."""

    def _factory(message="One or more parameter values were invalid", code="ValidationException"):
        return BackendError(message, code=code)

    return _factory
