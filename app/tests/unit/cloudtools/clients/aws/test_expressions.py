"""Unit tests for DynamoDB expression builders."""

import pytest

from cloudtools.clients.aws.expressions import (
    Condition,
    build_key_condition,
    build_update_expression,
)


@pytest.mark.unit
class TestBuildKeyCondition:
    def test_single_equality(self):
        expression = build_key_condition([{"key": "user_id", "value": "42"}])

        assert expression.expression == "#i_0 = :i_0"
        assert expression.names == {"#i_0": "user_id"}
        assert expression.values == {":i_0": "42"}

    def test_range_consumes_two_placeholders(self):
        expression = build_key_condition(
            [
                {"key": "user_id", "value": "42"},
                {"key": "created_at", "value": [10, 20]},
                {"key": "kind", "operator": "begins_with", "value": "log#"},
            ]
        )

        assert expression.expression == (
            "#i_0 = :i_0 AND #i_1 BETWEEN :i_1 AND :i_2 AND begins_with(#i_3, :i_3)"
        )
        assert expression.names == {
            "#i_0": "user_id",
            "#i_1": "created_at",
            "#i_3": "kind",
        }
        assert expression.values == {":i_0": "42", ":i_1": 10, ":i_2": 20, ":i_3": "log#"}

    def test_same_attribute_twice_does_not_collide(self):
        expression = build_key_condition(
            [
                {"key": "score", "operator": ">=", "value": 1},
                {"key": "score", "operator": "<", "value": 9},
            ]
        )

        assert expression.expression == "#i_0 >= :i_0 AND #i_1 < :i_1"
        assert expression.values == {":i_0": 1, ":i_1": 9}

    def test_explicit_between_operator(self):
        expression = build_key_condition(
            [Condition(key="ts", value=(1, 2), operator="BETWEEN")]
        )

        assert expression.expression == "#i_0 BETWEEN :i_0 AND :i_1"

    def test_prefix(self):
        expression = build_key_condition([{"key": "status", "value": "ok"}], prefix="f")

        assert expression.expression == "#f_0 = :f_0"

    @pytest.mark.parametrize(
        "conditions",
        [
            [],
            [{"value": 1}],
            [{"key": "", "value": 1}],
            [{"key": "a", "operator": "!=", "value": 1}],
            [{"key": "a", "operator": ">", "value": [1, 2]}],
            ["a = 1"],
        ],
    )
    def test_malformed_conditions(self, conditions):
        with pytest.raises(ValueError):
            build_key_condition(conditions)

    def test_to_request(self):
        request = build_key_condition([{"key": "id", "value": 1}]).to_request(
            "KeyConditionExpression"
        )

        assert request == {
            "KeyConditionExpression": "#i_0 = :i_0",
            "ExpressionAttributeNames": {"#i_0": "id"},
            "ExpressionAttributeValues": {":i_0": 1},
        }


@pytest.mark.unit
class TestBuildUpdateExpression:
    def test_set_only(self):
        expression = build_update_expression({"status": "done", "owner": "sre"})

        assert expression.expression == "SET #s_0 = :s_0, #s_1 = :s_1"
        assert expression.names == {"#s_0": "status", "#s_1": "owner"}

    def test_increment_only(self):
        expression = build_update_expression(increment_fields={"runs": 1})

        assert expression.expression == "ADD #a_0 :a_0"
        assert expression.values == {":a_0": 1}

    def test_set_and_increment(self):
        expression = build_update_expression({"status": "done"}, {"runs": 2})

        assert expression.expression == "SET #s_0 = :s_0 ADD #a_0 :a_0"
        assert expression.values == {":s_0": "done", ":a_0": 2}

    def test_requires_a_field(self):
        with pytest.raises(ValueError):
            build_update_expression({}, None)

    @pytest.mark.parametrize("value", ["1", True, None])
    def test_increment_must_be_numeric(self, value):
        with pytest.raises(ValueError):
            build_update_expression(increment_fields={"runs": value})
