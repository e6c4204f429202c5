"""Opaque cursor tokens for DynamoDB pagination.

A cursor token is the URL-safe base64 encoding of a small JSON object holding
a `LastEvaluatedKey`, plus a skip count when the cursor points inside a page
(see `PageOffset`). Key attributes are stored as DynamoDB attribute values
(via boto3's TypeSerializer) so numbers, binaries and strings survive the
round trip with their types.
"""

import base64
import binascii
import json
from typing import Any, Dict, Mapping, Union

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer  # type: ignore

from cloudtools.resilience.pagination import PageOffset

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


class InvalidCursorError(ValueError):
    """A cursor token could not be decoded."""


def _to_json_safe(value: Dict[str, Any]) -> Dict[str, Any]:
    if "B" in value:
        raw = value["B"]
        if isinstance(raw, Binary):
            raw = raw.value
        return {"B": base64.b64encode(raw).decode("ascii")}
    if "BS" in value:
        return {
            "BS": [
                base64.b64encode(v.value if isinstance(v, Binary) else v).decode(
                    "ascii"
                )
                for v in value["BS"]
            ]
        }
    return value


def _from_json_safe(value: Dict[str, Any]) -> Dict[str, Any]:
    if "B" in value:
        return {"B": base64.b64decode(value["B"])}
    if "BS" in value:
        return {"BS": [base64.b64decode(v) for v in value["BS"]]}
    return value


def _encode_key(key: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        name: _to_json_safe(_serializer.serialize(value)) for name, value in key.items()
    }


def _decode_key(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidCursorError("cursor key must be an object")
    return {
        name: _deserializer.deserialize(_from_json_safe(value))
        for name, value in payload.items()
    }


def encode_cursor(last_evaluated_key: Union[Mapping[str, Any], PageOffset]) -> str:
    """Encode a LastEvaluatedKey (or an in-page offset) into an opaque token."""
    if isinstance(last_evaluated_key, PageOffset):
        start = last_evaluated_key.start
        payload: Dict[str, Any] = {
            "key": _encode_key(start) if start is not None else None,
            "skip": last_evaluated_key.skip,
        }
    else:
        payload = {"key": _encode_key(last_evaluated_key)}
    text = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")


def decode_cursor(token: str) -> Union[Dict[str, Any], PageOffset]:
    """Decode a token produced by `encode_cursor`.

    Returns:
        The key map, or a PageOffset for a token pointing inside a page

    Raises:
        InvalidCursorError: The token is not a valid cursor
    """
    try:
        payload = json.loads(base64.urlsafe_b64decode(token.encode("ascii")))
        if not isinstance(payload, dict) or "key" not in payload:
            raise InvalidCursorError("cursor must encode an object with a key")
        if "skip" not in payload:
            return _decode_key(payload["key"])
        skip = payload["skip"]
        if isinstance(skip, bool) or not isinstance(skip, int) or skip < 0:
            raise InvalidCursorError("cursor skip must be a non-negative integer")
        start = payload["key"]
        return PageOffset(None if start is None else _decode_key(start), skip)
    except InvalidCursorError:
        raise
    except (binascii.Error, UnicodeError, ValueError, TypeError, AttributeError) as e:
        raise InvalidCursorError(f"invalid cursor token: {e}") from e
