"""Page accumulator.

Drives a paged backend operation page by page, folding each page into an
immutable `AccumulationState` until the backend stops returning a next-page
cursor or the caller's ceiling is reached.

Every page request goes through `call_with_retry`, so a retryable failure on
page N is retried with page N's cursor and accumulation resumes from there.
When a page finally fails, `fold_pages` raises `PaginationInterrupted`
carrying the state reached so far (used by the fallback strategy to resume
on another backend); `accumulate` discards that state and re-raises the
backend error itself.
"""

from dataclasses import dataclass, field, replace
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

import structlog

from cloudtools.resilience.policy import RetryPolicy
from cloudtools.resilience.retrier import call_with_retry

logger = structlog.get_logger()


@dataclass(frozen=True)
class PagedOperation:
    """Description of one paged backend call.

    Attributes:
        method: Name of the backend client method (e.g. "query")
        request: Base request; only the cursor and limit fields vary per page
        cursor_field: Request field receiving the start cursor
        items_field: Response field holding the page items
        next_cursor_field: Response field holding the next-page cursor
        limit_field: Request field receiving the remaining ceiling, if any
        key_attributes: Item attributes forming a continuation key when a page
            has to be cut at the ceiling
    """

    method: str
    request: Mapping[str, Any]
    cursor_field: str = "ExclusiveStartKey"
    items_field: str = "Items"
    next_cursor_field: str = "LastEvaluatedKey"
    limit_field: Optional[str] = "Limit"
    key_attributes: Optional[Sequence[str]] = None

    def build_request(
        self, cursor: Optional[Any], remaining: Optional[int]
    ) -> Dict[str, Any]:
        """Request for the page starting at `cursor`.

        A `PageOffset` cursor re-reads its page from the start; the limit is
        raised by the number of items that will be skipped.
        """
        request = dict(self.request)
        skip = 0
        if isinstance(cursor, PageOffset):
            cursor, skip = cursor.start, cursor.skip
        if cursor is not None:
            request[self.cursor_field] = cursor
        if remaining is not None and self.limit_field:
            request[self.limit_field] = remaining + skip
        return request

    def continuation_key(
        self, item: Any, page_cursor: Optional[Any] = None
    ) -> Optional[Dict[str, Any]]:
        """Key that resumes right after `item`.

        Built from `key_attributes`, or from the attribute names of the
        page's own next-page key. None when neither is available.
        """
        if self.key_attributes:
            names: Sequence[str] = self.key_attributes
        elif isinstance(page_cursor, Mapping) and page_cursor:
            names = list(page_cursor)
        else:
            return None
        if not isinstance(item, Mapping) or not all(name in item for name in names):
            return None
        return {name: item[name] for name in names}


@dataclass(frozen=True)
class PageOffset:
    """Resume point inside a page.

    Used when a page is cut at the ceiling and no continuation key can be
    built from the last kept item: the page starting at `start` is fetched
    again and its first `skip` items are dropped.
    """

    start: Optional[Any]
    skip: int


@dataclass(frozen=True)
class AccumulationState:
    """Immutable fold value threaded through the pages.

    Attributes:
        items: Items gathered so far, in page arrival order
        cursor: Start cursor of the next page (None before the first page
            means "from the beginning")
        pages: Number of pages fetched
        done: True once the natural end or the ceiling was reached
    """

    items: Tuple[Any, ...] = ()
    cursor: Optional[Any] = None
    pages: int = 0
    done: bool = False

    def remaining(self, ceiling: Optional[int]) -> Optional[int]:
        if ceiling is None:
            return None
        return max(ceiling - len(self.items), 0)

    def add_page(
        self,
        page_items: Sequence[Any],
        next_cursor: Optional[Any],
        ceiling: Optional[int] = None,
        operation: Optional[PagedOperation] = None,
    ) -> "AccumulationState":
        """Fold one page into a new state.

        When the page overshoots the ceiling, the extra items are dropped and
        the cursor points right after the last kept item, so resuming never
        skips an item.
        """
        start, skip = self.cursor, 0
        if isinstance(start, PageOffset):
            start, skip = start.start, start.skip
        page = tuple(page_items)[skip:]
        items = self.items + page
        cursor = next_cursor

        if ceiling is not None and len(items) > ceiling:
            kept = ceiling - len(self.items)
            items = items[:ceiling]
            key = (
                operation.continuation_key(items[-1], next_cursor)
                if operation is not None and kept > 0
                else None
            )
            cursor = key if key is not None else PageOffset(start, skip + kept)

        reached_ceiling = ceiling is not None and len(items) >= ceiling
        return replace(
            self,
            items=items,
            cursor=cursor,
            pages=self.pages + 1,
            done=cursor is None or reached_ceiling,
        )


@dataclass(frozen=True)
class AccumulatedResult:
    """Merged result of a paged operation.

    Attributes:
        items: All items, in backend order
        last_evaluated_key: Raw cursor of the final executed page (None at
            natural end unless the backend still reported one), or a
            `PageOffset` when a page was cut without a buildable key
        cursor: Opaque token for `last_evaluated_key`, suitable for resuming
            the pagination in a later call
    """

    items: List[Any] = field(default_factory=list)
    last_evaluated_key: Optional[Any] = None
    cursor: Optional[Any] = None

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    def __getitem__(self, index):
        return self.items[index]

    @property
    def has_more(self) -> bool:
        return self.last_evaluated_key is not None


class PaginationInterrupted(Exception):
    """A page failed after its retry budget; carries the state reached."""

    def __init__(self, error: BaseException, state: AccumulationState) -> None:
        super().__init__(str(error))
        self.error = error
        self.state = state


def _page_items(response: Any, items_field: str) -> List[Any]:
    if not isinstance(response, Mapping):
        return []
    items = response.get(items_field)
    if not items:
        return []
    return list(items)


def _next_cursor(response: Any, next_cursor_field: str) -> Optional[Any]:
    if not isinstance(response, Mapping):
        return None
    return response.get(next_cursor_field)


async def fold_pages(
    backend: Any,
    operation: PagedOperation,
    state: AccumulationState,
    ceiling: Optional[int] = None,
    policy: Optional[RetryPolicy] = None,
) -> AccumulationState:
    """Fetch pages from `backend` starting at `state` until done.

    Pages are fetched strictly one after another. A response without the
    items field counts as an empty page.

    Raises:
        PaginationInterrupted: A page failed; `.error` is the backend error
            and `.state` the state before that page
    """
    call = getattr(backend, operation.method)

    while not state.done and state.remaining(ceiling) != 0:
        request = operation.build_request(state.cursor, state.remaining(ceiling))
        try:
            response = await call_with_retry(call, request, policy=policy)
        except Exception as e:
            raise PaginationInterrupted(e, state) from e

        page_items = _page_items(response, operation.items_field)
        next_cursor = _next_cursor(response, operation.next_cursor_field)
        state = state.add_page(page_items, next_cursor, ceiling, operation)

        logger.debug(
            "page_fetched",
            method=operation.method,
            page=state.pages,
            page_items=len(page_items),
            total_items=len(state.items),
            has_more=next_cursor is not None,
        )

    if ceiling is not None and len(state.items) >= ceiling:
        logger.debug(
            "pagination_ceiling_reached",
            method=operation.method,
            ceiling=ceiling,
            pages=state.pages,
        )
    return state


def to_result(
    state: AccumulationState,
    encode_cursor: Optional[Callable[[Any], Any]] = None,
) -> AccumulatedResult:
    """Convert a finished state into an AccumulatedResult."""
    last_key = state.cursor
    if last_key is None:
        token = None
    elif encode_cursor is not None:
        token = encode_cursor(last_key)
    else:
        token = last_key
    return AccumulatedResult(
        items=list(state.items), last_evaluated_key=last_key, cursor=token
    )


async def accumulate(
    backend: Any,
    operation: PagedOperation,
    start_cursor: Optional[Any] = None,
    ceiling: Optional[int] = None,
    policy: Optional[RetryPolicy] = None,
    encode_cursor: Optional[Callable[[Any], Any]] = None,
) -> AccumulatedResult:
    """Run a paged operation to completion and merge its pages.

    Args:
        backend: Backend client exposing `operation.method`
        operation: The paged operation to drive
        start_cursor: Cursor of the first page (None = from the beginning)
        ceiling: Optional maximum number of items to return
        policy: Retry policy applied to every page request
        encode_cursor: Optional encoder producing `AccumulatedResult.cursor`

    Returns:
        AccumulatedResult with the merged items and the last cursor

    Raises:
        The backend error of the failing page; items gathered from earlier
        pages are discarded
    """
    initial = AccumulationState(cursor=start_cursor)
    try:
        state = await fold_pages(backend, operation, initial, ceiling, policy)
    except PaginationInterrupted as interrupted:
        raise interrupted.error
    return to_result(state, encode_cursor)
