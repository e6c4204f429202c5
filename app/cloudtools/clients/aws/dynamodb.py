"""DynamoDB operation adapters.

`DynamoTools` validates arguments, builds DynamoDB requests and runs them
through the resilience layer:

- paged operations (query, scan) are folded page by page with
  `fold_pages`, each page retried with `call_with_retry`
- point, batch and transaction operations are single `call_with_retry`
  calls
- everything runs inside a `FallbackStrategy`, so a caching-proxy primary
  (e.g. DAX) that keeps failing is replaced by a direct DynamoDB client

Items, keys and cursors are plain Python values (document client
semantics). Every surfaced failure is a `CloudToolsError` carrying an
`ErrorContext` with the operation name and its input parameters.
"""

import asyncio
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

import structlog

from cloudtools.clients.aws.backends import DynamoDBBackend
from cloudtools.clients.aws.cursors import (
    InvalidCursorError,
    decode_cursor,
    encode_cursor,
)
from cloudtools.clients.aws.expressions import (
    Expression,
    build_key_condition,
    build_update_expression,
)
from cloudtools.clients.aws.session_provider import SessionProvider
from cloudtools.configuration import Settings, get_settings
from cloudtools.errors import (
    BackendCallError,
    BackendError,
    CloudToolsError,
    ErrorContext,
    ParameterError,
)
from cloudtools.resilience import (
    AccumulatedResult,
    AccumulationState,
    BackendKind,
    FallbackStrategy,
    PagedOperation,
    PageOffset,
    RetryPolicy,
    backend_kind,
    call_with_retry,
    fold_pages,
    to_result,
)

logger = structlog.get_logger()

COMPONENT = "DynamoTools"
BATCH_WRITE_CHUNK_SIZE = 25
BATCH_GET_CHUNK_SIZE = 100
TRANSACTION_MAX_ITEMS = 100
RETURN_VALUES = frozenset({"NONE", "ALL_OLD", "UPDATED_OLD", "ALL_NEW", "UPDATED_NEW"})

StartKey = Optional[Union[str, Mapping[str, Any], PageOffset]]


def _is_name(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _is_map(value: Any) -> bool:
    return isinstance(value, Mapping) and bool(value)


def _chunks(values: Sequence[Any], size: int) -> List[List[Any]]:
    return [list(values[i : i + size]) for i in range(0, len(values), size)]


class DynamoTools:
    """Resilient DynamoDB operations.

    Args:
        client: Primary document backend (externally owned). Its `kind` tag
            decides whether a fallback applies.
        retry_max: Retry budget per backend call; overrides
            `RetrySettings.max_attempts`
        fallback_client: Direct backend used when the primary is a caching
            proxy. Built from `AwsSettings` when omitted and needed.
        logger: Optional structlog-style logger for fallback-path events
        settings: Settings instance (defaults to `get_settings()`)

    Example:
        dax = DynamoDBBackend(dax_client, kind=BackendKind.CACHE_PROXY)
        dynamo = DynamoTools(dax, retry_max=3)
        result = await dynamo.query_hash_key("users", "team_id", "sre")
        for item in result:
            ...
    """

    def __init__(
        self,
        client: Any,
        *,
        retry_max: Optional[int] = None,
        fallback_client: Optional[Any] = None,
        logger: Optional[Any] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self.client = client
        self.policy = RetryPolicy.from_settings(
            self._settings.retry, max_attempts=retry_max
        )
        if fallback_client is None and backend_kind(client) == BackendKind.CACHE_PROXY:
            fallback_client = self._build_fallback_client()
        self.fallback_client = fallback_client
        self._strategy = FallbackStrategy(client, fallback_client, logger=logger)

    @property
    def retry_max(self) -> int:
        return self.policy.max_attempts

    @property
    def primary_kind(self) -> BackendKind:
        return self._strategy.primary_kind

    def _build_fallback_client(self) -> DynamoDBBackend:
        aws = self._settings.aws
        provider = SessionProvider(
            region=aws.AWS_REGION,
            endpoint_url=aws.ENDPOINT_URL,
            service_role_map=aws.SERVICE_ROLE_MAP,
        )
        logger.info(
            "fallback_client_created",
            region=aws.AWS_REGION,
            endpoint_url=aws.DYNAMODB_ENDPOINT_URL or aws.ENDPOINT_URL,
        )
        return DynamoDBBackend.from_session(
            provider,
            kind=BackendKind.DIRECT,
            endpoint_url=aws.DYNAMODB_ENDPOINT_URL,
            retryable_error_codes=aws.RETRYABLE_ERRS,
        )

    # Execution

    async def _execute(
        self,
        context: ErrorContext,
        call: Callable[[Any, Optional[AccumulationState]], Any],
    ) -> Any:
        try:
            return await self._strategy.run(call, context)
        except CloudToolsError:
            raise
        except Exception as e:
            raise BackendCallError.from_error(e, context) from e

    async def _paged(
        self,
        context: ErrorContext,
        operation: PagedOperation,
        start_key: Optional[Union[Dict[str, Any], PageOffset]],
        limit: Optional[int],
    ) -> AccumulatedResult:
        async def call(backend, state):
            initial = state or AccumulationState(cursor=start_key)
            final = await fold_pages(backend, operation, initial, limit, self.policy)
            return to_result(final, encode_cursor)

        return await self._execute(context, call)

    async def _single(
        self, context: ErrorContext, method: str, request: Dict[str, Any]
    ) -> Dict[str, Any]:
        async def call(backend, _state):
            return await call_with_retry(
                getattr(backend, method), request, policy=self.policy
            )

        return await self._execute(context, call)

    async def _drain_unprocessed(
        self,
        backend: Any,
        method: str,
        request: Dict[str, Any],
        request_field: str,
        unprocessed_field: str,
        on_response: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> None:
        """Send `request` and resubmit what the backend left unprocessed.

        Resubmissions share the retry budget and backoff schedule.

        Raises:
            BackendError: Unprocessed entries remain after the budget
        """
        call = getattr(backend, method)
        for attempt in range(self.policy.max_attempts):
            response = await call_with_retry(call, request, policy=self.policy)
            if on_response is not None:
                on_response(response)
            unprocessed = (
                response.get(unprocessed_field)
                if isinstance(response, Mapping)
                else None
            )
            if not unprocessed:
                return
            request = {**request, request_field: unprocessed}
            if attempt + 1 < self.policy.max_attempts:
                await asyncio.sleep(self.policy.delay_for(attempt))

        code = "UNPROCESSED_ITEMS" if method == "batch_write" else "UNPROCESSED_KEYS"
        raise BackendError(
            f"{method} left unprocessed entries after {self.policy.max_attempts} attempts",
            code=code,
            retryable=True,
            retries_exhausted=True,
        )

    # Validation helpers

    def _context(self, operation: str, **params: Any) -> ErrorContext:
        return ErrorContext(COMPONENT, operation, params)

    def _bad_param(self, context: ErrorContext, reason: str) -> ParameterError:
        logger.debug(
            "invalid_parameters", operation=context.operation, reason=reason
        )
        return ParameterError(f"BAD_PARAM: {reason}", code="BAD_PARAM", context=context)

    def _start_key(
        self, context: ErrorContext, exclusive_start_key: StartKey
    ) -> Optional[Union[Dict[str, Any], PageOffset]]:
        if exclusive_start_key is None or isinstance(exclusive_start_key, PageOffset):
            return exclusive_start_key
        if isinstance(exclusive_start_key, str):
            try:
                return decode_cursor(exclusive_start_key)
            except InvalidCursorError as e:
                raise self._bad_param(context, "invalid exclusive_start_key token") from e
        if isinstance(exclusive_start_key, Mapping):
            return dict(exclusive_start_key)
        raise self._bad_param(context, "exclusive_start_key must be a dict or a token")

    def _check_limit(self, context: ErrorContext, limit: Optional[int]) -> None:
        if limit is None:
            return
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise self._bad_param(context, "limit must be a positive integer")

    def _check_key_attributes(
        self, context: ErrorContext, key_attributes: Optional[Sequence[str]]
    ) -> None:
        if key_attributes is None:
            return
        if isinstance(key_attributes, str) or not all(
            _is_name(name) for name in key_attributes
        ):
            raise self._bad_param(context, "key_attributes must be attribute names")

    def _build(
        self, context: ErrorContext, builder: Callable[..., Expression], *args: Any
    ) -> Expression:
        try:
            return builder(*args)
        except ValueError as e:
            raise self._bad_param(context, str(e)) from e

    # Paged operations

    async def query_hash_key(
        self,
        table: str,
        hash_key_name: str,
        hash_key_value: Any,
        exclusive_start_key: StartKey = None,
        limit: Optional[int] = None,
        key_attributes: Optional[Sequence[str]] = None,
    ) -> AccumulatedResult:
        """Query every item sharing a hash key value.

        Args:
            table: Table name
            hash_key_name: Name of the hash key attribute
            hash_key_value: Hash key value to match
            exclusive_start_key: Key map or cursor token to resume from
            limit: Maximum number of items to return
            key_attributes: Attributes forming the table key, used to report
                an exact cursor when a page is cut at `limit`

        Returns:
            AccumulatedResult with the items, in table order, and the cursor
            of the last page

        Raises:
            ParameterError: Invalid arguments (no backend call is made)
            BackendCallError: The query failed
        """
        context = self._context(
            "queryHashKey",
            dynamo_table=table,
            hash_key_name=hash_key_name,
            hash_key_value=hash_key_value,
            exclusive_start_key=exclusive_start_key,
            limit=limit,
        )
        if not _is_name(table) or not _is_name(hash_key_name):
            raise self._bad_param(context, "table and hash_key_name are required")
        if hash_key_value is None:
            raise self._bad_param(context, "hash_key_value is required")
        self._check_limit(context, limit)
        self._check_key_attributes(context, key_attributes)
        start_key = self._start_key(context, exclusive_start_key)

        operation = PagedOperation(
            method="query",
            request={
                "TableName": table,
                "KeyConditionExpression": "#hashKey = :hkey",
                "ExpressionAttributeNames": {"#hashKey": hash_key_name},
                "ExpressionAttributeValues": {":hkey": hash_key_value},
            },
            key_attributes=tuple(key_attributes) if key_attributes else None,
        )
        return await self._paged(context, operation, start_key, limit)

    async def query(
        self,
        table: str,
        conditions: Sequence[Mapping[str, Any]],
        index_name: Optional[str] = None,
        exclusive_start_key: StartKey = None,
        limit: Optional[int] = None,
        key_attributes: Optional[Sequence[str]] = None,
        scan_index_forward: bool = True,
        filter_conditions: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> AccumulatedResult:
        """Query with a conjunctive key condition.

        Args:
            table: Table name
            conditions: Ordered {key, operator, value} key conditions; a
                two-element value is a BETWEEN range
            index_name: Optional secondary index to query
            exclusive_start_key: Key map or cursor token to resume from
            limit: Maximum number of items to return
            key_attributes: Attributes forming the table (and index) key,
                used to report an exact cursor when a page is cut at `limit`
            scan_index_forward: Ascending sort key order when True
            filter_conditions: Optional {key, operator, value} filters on
                non-key attributes

        Raises:
            ParameterError: Invalid arguments (no backend call is made)
            BackendCallError: The query failed
        """
        context = self._context(
            "query",
            dynamo_table=table,
            conditions=list(conditions) if isinstance(conditions, (list, tuple)) else conditions,
            index_name=index_name,
            exclusive_start_key=exclusive_start_key,
            limit=limit,
        )
        if not _is_name(table):
            raise self._bad_param(context, "table is required")
        if not isinstance(conditions, (list, tuple)) or not conditions:
            raise self._bad_param(context, "conditions must be a non-empty list")
        if index_name is not None and not _is_name(index_name):
            raise self._bad_param(context, "index_name must be a non-empty string")
        self._check_limit(context, limit)
        self._check_key_attributes(context, key_attributes)
        start_key = self._start_key(context, exclusive_start_key)

        key_condition = self._build(context, build_key_condition, conditions)
        request = key_condition.to_request("KeyConditionExpression")
        request["TableName"] = table
        request["ScanIndexForward"] = bool(scan_index_forward)
        if index_name:
            request["IndexName"] = index_name
        if filter_conditions:
            filters = self._build(context, build_key_condition, filter_conditions, "f")
            request["FilterExpression"] = filters.expression
            request["ExpressionAttributeNames"].update(filters.names)
            request["ExpressionAttributeValues"].update(filters.values)

        operation = PagedOperation(
            method="query",
            request=request,
            key_attributes=tuple(key_attributes) if key_attributes else None,
        )
        return await self._paged(context, operation, start_key, limit)

    async def scan(
        self,
        table: str,
        hash_key_name: Optional[str] = None,
        hash_key_value: Any = None,
        exclusive_start_key: StartKey = None,
        limit: Optional[int] = None,
        key_attributes: Optional[Sequence[str]] = None,
    ) -> AccumulatedResult:
        """Scan a table, optionally keeping only one hash key value.

        Raises:
            ParameterError: Invalid arguments (no backend call is made)
            BackendCallError: The scan failed
        """
        context = self._context(
            "scan",
            dynamo_table=table,
            hash_key_name=hash_key_name,
            hash_key_value=hash_key_value,
            exclusive_start_key=exclusive_start_key,
            limit=limit,
        )
        if not _is_name(table):
            raise self._bad_param(context, "table is required")
        if hash_key_name is not None and (
            not _is_name(hash_key_name) or hash_key_value is None
        ):
            raise self._bad_param(context, "hash_key_name requires hash_key_value")
        self._check_limit(context, limit)
        self._check_key_attributes(context, key_attributes)
        start_key = self._start_key(context, exclusive_start_key)

        request: Dict[str, Any] = {"TableName": table}
        if hash_key_name:
            request.update(
                {
                    "FilterExpression": "#hashKey = :hkey",
                    "ExpressionAttributeNames": {"#hashKey": hash_key_name},
                    "ExpressionAttributeValues": {":hkey": hash_key_value},
                }
            )
        operation = PagedOperation(
            method="scan",
            request=request,
            key_attributes=tuple(key_attributes) if key_attributes else None,
        )
        return await self._paged(context, operation, start_key, limit)

    # Point operations

    async def get_item(
        self, table: str, key: Mapping[str, Any], consistent_read: bool = False
    ) -> Optional[Dict[str, Any]]:
        """Fetch one item by primary key; None when it does not exist."""
        context = self._context("getItem", dynamo_table=table, key=key)
        if not _is_name(table) or not _is_map(key):
            raise self._bad_param(context, "table and key are required")

        request = {"TableName": table, "Key": dict(key)}
        if consistent_read:
            request["ConsistentRead"] = True
        response = await self._single(context, "get", request)
        return (response or {}).get("Item")

    async def put_item(
        self,
        table: str,
        item: Mapping[str, Any],
        condition_expression: Optional[str] = None,
    ) -> None:
        """Write one item, replacing any item with the same key.

        `condition_expression` must not use value placeholders, e.g.
        "attribute_not_exists(id)".
        """
        context = self._context("putItem", dynamo_table=table, item=item)
        if not _is_name(table) or not isinstance(item, Mapping):
            raise self._bad_param(context, "table and item are required")

        request: Dict[str, Any] = {"TableName": table, "Item": dict(item)}
        if condition_expression:
            request["ConditionExpression"] = condition_expression
        await self._single(context, "put", request)

    async def update_item(
        self,
        table: str,
        key: Mapping[str, Any],
        set_fields: Optional[Mapping[str, Any]] = None,
        increment_fields: Optional[Mapping[str, Union[int, float]]] = None,
        condition_expression: Optional[str] = None,
        return_values: str = "ALL_NEW",
    ) -> Optional[Dict[str, Any]]:
        """Set and/or increment attributes of one item.

        Returns:
            The attributes selected by `return_values`
        """
        context = self._context(
            "updateItem",
            dynamo_table=table,
            key=key,
            set_fields=set_fields,
            increment_fields=increment_fields,
        )
        if not _is_name(table) or not _is_map(key):
            raise self._bad_param(context, "table and key are required")
        if return_values not in RETURN_VALUES:
            raise self._bad_param(context, f"unsupported return_values {return_values!r}")

        update = self._build(
            context, build_update_expression, set_fields, increment_fields
        )
        request = update.to_request("UpdateExpression")
        request.update(
            {"TableName": table, "Key": dict(key), "ReturnValues": return_values}
        )
        if condition_expression:
            request["ConditionExpression"] = condition_expression

        response = await self._single(context, "update", request)
        return (response or {}).get("Attributes")

    async def delete_item(self, table: str, key: Mapping[str, Any]) -> None:
        """Delete one item by primary key."""
        context = self._context("deleteItem", dynamo_table=table, key=key)
        if not _is_name(table) or not _is_map(key):
            raise self._bad_param(context, "table and key are required")
        await self._single(context, "delete", {"TableName": table, "Key": dict(key)})

    # Batch operations

    def _check_writes(
        self,
        context: ErrorContext,
        items_to_put: Optional[Sequence[Mapping[str, Any]]],
        keys_to_delete: Optional[Sequence[Mapping[str, Any]]],
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        items_to_put = items_to_put or []
        keys_to_delete = keys_to_delete or []
        if not items_to_put and not keys_to_delete:
            raise self._bad_param(context, "items_to_put or keys_to_delete is required")
        if not all(isinstance(item, Mapping) for item in items_to_put):
            raise self._bad_param(context, "items_to_put must contain dicts")
        if not all(_is_map(key) for key in keys_to_delete):
            raise self._bad_param(context, "keys_to_delete must contain key dicts")
        return [dict(i) for i in items_to_put], [dict(k) for k in keys_to_delete]

    async def batch_get(
        self, table: str, keys: Sequence[Mapping[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Fetch many items of one table by primary key.

        Keys are sent in chunks of 100; unprocessed keys are resubmitted.

        Returns:
            Flat list of the items found (order not guaranteed)
        """
        context = self._context("batchGet", dynamo_table=table, keys=keys)
        if not _is_name(table) or not isinstance(keys, (list, tuple)) or not keys:
            raise self._bad_param(context, "table and a non-empty keys list are required")
        if not all(_is_map(key) for key in keys):
            raise self._bad_param(context, "keys must contain key dicts")

        async def call(backend, _state):
            items: List[Dict[str, Any]] = []

            def collect(response):
                items.extend(_table_items(response, table))

            for chunk in _chunks(keys, BATCH_GET_CHUNK_SIZE):
                request = {"RequestItems": {table: {"Keys": [dict(k) for k in chunk]}}}
                await self._drain_unprocessed(
                    backend,
                    "batch_get",
                    request,
                    "RequestItems",
                    "UnprocessedKeys",
                    on_response=collect,
                )
            return items

        return await self._execute(context, call)

    async def batch_write(
        self,
        table: str,
        items_to_put: Optional[Sequence[Mapping[str, Any]]] = None,
        keys_to_delete: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> None:
        """Put and delete many items of one table.

        Requests are sent in chunks of 25; unprocessed items are resubmitted
        within the retry budget.

        Raises:
            ParameterError: Invalid arguments (no backend call is made)
            BackendCallError: A call failed, or items stayed unprocessed
                (code UNPROCESSED_ITEMS)
        """
        context = self._context(
            "batchWrite",
            dynamo_table=table,
            items_to_put=items_to_put,
            keys_to_delete=keys_to_delete,
        )
        if not _is_name(table):
            raise self._bad_param(context, "table is required")
        puts, deletes = self._check_writes(context, items_to_put, keys_to_delete)
        writes = [{"PutRequest": {"Item": item}} for item in puts] + [
            {"DeleteRequest": {"Key": key}} for key in deletes
        ]

        async def call(backend, _state):
            for chunk in _chunks(writes, BATCH_WRITE_CHUNK_SIZE):
                await self._drain_unprocessed(
                    backend,
                    "batch_write",
                    {"RequestItems": {table: chunk}},
                    "RequestItems",
                    "UnprocessedItems",
                )

        await self._execute(context, call)

    # Transactions

    async def transact_get(
        self, table: str, keys: Sequence[Mapping[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Read up to 100 items of one table atomically.

        Returns:
            Flat list of the items found, in key order
        """
        context = self._context("transactGet", dynamo_table=table, keys=keys)
        if not _is_name(table) or not isinstance(keys, (list, tuple)) or not keys:
            raise self._bad_param(context, "table and a non-empty keys list are required")
        if len(keys) > TRANSACTION_MAX_ITEMS or not all(_is_map(k) for k in keys):
            raise self._bad_param(
                context, f"keys must be at most {TRANSACTION_MAX_ITEMS} key dicts"
            )

        request = {
            "TransactItems": [
                {"Get": {"TableName": table, "Key": dict(key)}} for key in keys
            ]
        }
        response = await self._single(context, "transact_get", request)
        return _transaction_items(response)

    async def transact_write(
        self,
        table: str,
        items_to_put: Optional[Sequence[Mapping[str, Any]]] = None,
        keys_to_delete: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> None:
        """Put and delete up to 100 items of one table atomically."""
        context = self._context(
            "transactWrite",
            dynamo_table=table,
            items_to_put=items_to_put,
            keys_to_delete=keys_to_delete,
        )
        if not _is_name(table):
            raise self._bad_param(context, "table is required")
        puts, deletes = self._check_writes(context, items_to_put, keys_to_delete)
        if len(puts) + len(deletes) > TRANSACTION_MAX_ITEMS:
            raise self._bad_param(
                context, f"at most {TRANSACTION_MAX_ITEMS} writes per transaction"
            )

        transact_items = [
            {"Put": {"TableName": table, "Item": item}} for item in puts
        ] + [{"Delete": {"TableName": table, "Key": key}} for key in deletes]
        await self._single(
            context, "transact_write", {"TransactItems": transact_items}
        )


def _table_items(response: Any, table: str) -> List[Dict[str, Any]]:
    """Items of `table` in a BatchGetItem response; [] on any other shape."""
    if not isinstance(response, Mapping):
        return []
    responses = response.get("Responses")
    if not isinstance(responses, Mapping):
        return []
    items = responses.get(table)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def _transaction_items(response: Any) -> List[Dict[str, Any]]:
    """Items of a TransactGetItems response; [] on any other shape."""
    if not isinstance(response, Mapping):
        return []
    responses = response.get("Responses")
    if not isinstance(responses, list):
        return []
    return [
        entry["Item"]
        for entry in responses
        if isinstance(entry, Mapping) and isinstance(entry.get("Item"), Mapping)
    ]
