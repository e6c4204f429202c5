"""DynamoDB expression builders.

Single-pass translations from high-level arguments into expression strings
with placeholder maps:

- `build_key_condition`: ordered list of {key, operator, value} conditions
  → conjunctive key condition expression
- `build_update_expression`: fields to set and numeric fields to increment
  → update expression

Placeholders are generated positionally (`#i_0`, `:i_0`, ...) so several
conditions on the same attribute never collide.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

COMPARISON_OPERATORS = frozenset({"=", "<", "<=", ">", ">="})
BETWEEN = "BETWEEN"
BEGINS_WITH = "begins_with"
SUPPORTED_OPERATORS = COMPARISON_OPERATORS | {BETWEEN, BEGINS_WITH}


@dataclass(frozen=True)
class Condition:
    """One key condition.

    A two-element list or tuple `value` denotes a range (BETWEEN) condition.
    """

    key: str
    value: Any
    operator: str = "="

    @property
    def is_range(self) -> bool:
        return isinstance(self.value, (list, tuple)) and len(self.value) == 2

    @classmethod
    def parse(cls, raw: Union["Condition", Mapping[str, Any]]) -> "Condition":
        """Build a Condition from a mapping with key/operator/value entries.

        Raises:
            ValueError: The condition is malformed
        """
        if isinstance(raw, Condition):
            condition = raw
        elif isinstance(raw, Mapping):
            if "key" not in raw or "value" not in raw:
                raise ValueError("condition requires 'key' and 'value'")
            condition = cls(
                key=raw["key"],
                value=raw["value"],
                operator=raw.get("operator") or "=",
            )
        else:
            raise ValueError("condition must be a mapping or a Condition")

        if not isinstance(condition.key, str) or not condition.key:
            raise ValueError("condition key must be a non-empty string")
        if condition.is_range:
            if condition.operator not in ("=", BETWEEN):
                raise ValueError("a range value requires the BETWEEN operator")
        elif condition.operator not in SUPPORTED_OPERATORS - {BETWEEN}:
            raise ValueError(f"unsupported operator: {condition.operator!r}")
        return condition


@dataclass
class Expression:
    """An expression string and its placeholder maps."""

    expression: str
    names: Dict[str, str] = field(default_factory=dict)
    values: Dict[str, Any] = field(default_factory=dict)

    def to_request(self, expression_field: str) -> Dict[str, Any]:
        """Request fragment for the given expression field."""
        request: Dict[str, Any] = {expression_field: self.expression}
        if self.names:
            request["ExpressionAttributeNames"] = dict(self.names)
        if self.values:
            request["ExpressionAttributeValues"] = dict(self.values)
        return request


def build_key_condition(
    conditions: Sequence[Union[Condition, Mapping[str, Any]]],
    prefix: str = "i",
) -> Expression:
    """Build a conjunctive key condition expression.

    Example:
        build_key_condition([
            {"key": "user_id", "value": "42"},
            {"key": "created_at", "value": [10, 20]},
        ])
        # "#i_0 = :i_0 AND #i_1 BETWEEN :i_1 AND :i_2"

    Raises:
        ValueError: No conditions, or a malformed one
    """
    if not conditions:
        raise ValueError("at least one condition is required")

    clauses: List[str] = []
    names: Dict[str, str] = {}
    values: Dict[str, Any] = {}
    index = 0

    for raw in conditions:
        condition = Condition.parse(raw)
        name = f"#{prefix}_{index}"
        names[name] = condition.key

        if condition.is_range:
            low, high = f":{prefix}_{index}", f":{prefix}_{index + 1}"
            values[low], values[high] = condition.value[0], condition.value[1]
            clauses.append(f"{name} {BETWEEN} {low} AND {high}")
            index += 2
            continue

        placeholder = f":{prefix}_{index}"
        values[placeholder] = condition.value
        if condition.operator == BEGINS_WITH:
            clauses.append(f"{BEGINS_WITH}({name}, {placeholder})")
        else:
            clauses.append(f"{name} {condition.operator} {placeholder}")
        index += 1

    return Expression(" AND ".join(clauses), names, values)


def _placeholders(
    fields: Mapping[str, Any], prefix: str
) -> List[Tuple[str, str, str, Any]]:
    return [
        (f"#{prefix}_{i}", f":{prefix}_{i}", name, value)
        for i, (name, value) in enumerate(fields.items())
    ]


def build_update_expression(
    set_fields: Optional[Mapping[str, Any]] = None,
    increment_fields: Optional[Mapping[str, Union[int, float]]] = None,
) -> Expression:
    """Build an update expression from fields to set and to increment.

    Example:
        build_update_expression({"status": "done"}, {"runs": 1})
        # "SET #s_0 = :s_0 ADD #a_0 :a_0"

    Raises:
        ValueError: Both maps are empty, or an increment is not numeric
    """
    if not set_fields and not increment_fields:
        raise ValueError("set_fields or increment_fields is required")

    clauses: List[str] = []
    names: Dict[str, str] = {}
    values: Dict[str, Any] = {}

    if set_fields:
        assignments = []
        for name_ph, value_ph, name, value in _placeholders(set_fields, "s"):
            names[name_ph] = name
            values[value_ph] = value
            assignments.append(f"{name_ph} = {value_ph}")
        clauses.append("SET " + ", ".join(assignments))

    if increment_fields:
        additions = []
        for name_ph, value_ph, name, value in _placeholders(increment_fields, "a"):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"increment for {name!r} must be numeric")
            names[name_ph] = name
            values[value_ph] = value
            additions.append(f"{name_ph} {value_ph}")
        clauses.append("ADD " + ", ".join(additions))

    return Expression(" ".join(clauses), names, values)
