"""Fixtures for resilience tests.

Level: Component-level fixtures for the retry, pagination and fallback
modules.
"""

from typing import Any, Dict, List, Optional

import pytest

from cloudtools.resilience import BackendKind


class FlakyOperation:
    """Coroutine callable failing with scripted errors before succeeding.

    Records the arguments of every attempt in `calls`.
    """

    def __init__(self, errors: Optional[List[Exception]] = None, result: Any = "ok"):
        self._errors = list(errors or [])
        self._result = result
        self.calls: List[Any] = []

    async def __call__(self, *args):
        self.calls.append(args)
        if self._errors:
            raise self._errors.pop(0)
        return self._result


class PagedBackend:
    """Fake paged backend serving responses keyed by start cursor.

    `pages` maps a start cursor (None for the first page) to the response
    for that page; `failures` maps a start cursor to errors raised on
    successive calls before the response is served.
    """

    def __init__(
        self,
        pages: Dict[Any, Any],
        kind: BackendKind = BackendKind.DIRECT,
        failures: Optional[Dict[Any, List[Exception]]] = None,
    ):
        self.kind = kind
        self._pages = pages
        self._failures = {k: list(v) for k, v in (failures or {}).items()}
        self.requests: List[Dict[str, Any]] = []

    async def scan(self, request):
        self.requests.append(dict(request))
        cursor = request.get("ExclusiveStartKey")
        pending = self._failures.get(cursor)
        if pending:
            raise pending.pop(0)
        return self._pages[cursor]


@pytest.fixture
def make_flaky_operation():
    """Factory fixture creating FlakyOperation instances.

    Usage:
        def test_something(make_flaky_operation):
            op = make_flaky_operation(errors=[error], result={"Items": []})
    """

    def _factory(errors=None, result: Any = "ok") -> FlakyOperation:
        return FlakyOperation(errors=errors, result=result)

    return _factory


@pytest.fixture
def make_paged_backend():
    """Factory fixture creating PagedBackend instances."""

    def _factory(pages, kind=BackendKind.DIRECT, failures=None) -> PagedBackend:
        return PagedBackend(pages, kind=kind, failures=failures)

    return _factory
