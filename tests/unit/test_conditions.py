"""Unit tests for leaf condition evaluation."""

import math

import pytest

from flowline.actions.conditions import (
    evaluate_condition,
    get_nested_value,
    to_display_string,
    to_number,
)


class TestGetNestedValue:
    def test_resolves_dot_path(self):
        data = {"payload": {"newValues": {"status": "approved"}}}
        assert get_nested_value(data, "payload.newValues.status") == "approved"

    def test_list_index(self):
        data = {"payload": {"lines": [{"qty": 1}, {"qty": 7}]}}
        assert get_nested_value(data, "payload.lines.1.qty") == 7

    @pytest.mark.parametrize(
        "path",
        ["payload.missing", "payload.lines.5", "payload.name.first", "nothing"],
    )
    def test_missing_resolves_to_none(self, path):
        data = {"payload": {"lines": [1], "name": "x"}}
        assert get_nested_value(data, path) is None


class TestCoercion:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, "null"), (True, "true"), (5.0, "5"), (2.5, "2.5"), ([1, None, "a"], "1,,a")],
    )
    def test_display_string(self, value, expected):
        assert to_display_string(value) == expected

    def test_number_from_strings(self):
        assert to_number("12.5") == 12.5
        assert to_number("  ") == 0.0
        assert math.isnan(to_number("abc"))

    def test_missing_is_nan(self):
        assert math.isnan(to_number(None))
        assert math.isnan(to_number({"a": 1}))


class TestEvaluateCondition:
    def test_eq_loose(self):
        assert evaluate_condition(5, "eq", "5")
        assert evaluate_condition("approved", "eq", "approved")
        assert not evaluate_condition("draft", "eq", "approved")

    def test_eq_missing_matches_null(self):
        assert evaluate_condition(None, "eq", None)

    def test_ne(self):
        assert evaluate_condition("draft", "ne", "approved")
        assert not evaluate_condition(5, "ne", "5")

    @pytest.mark.parametrize(
        ("actual", "op", "expected", "result"),
        [
            ("10", "gt", 5, True),
            (5, "gt", 5, False),
            (5, "gte", "5", True),
            (3, "lt", 4.5, True),
            (4.5, "lte", 4.5, True),
            ("abc", "gt", 1, False),
            (None, "lt", 100, False),
        ],
    )
    def test_ordering(self, actual, op, expected, result):
        assert evaluate_condition(actual, op, expected) is result

    def test_in_requires_list(self):
        assert evaluate_condition("mrrv", "in", ["mrrv", "mirv"])
        assert not evaluate_condition("mrrv", "in", "mrrv,mirv")

    def test_contains_is_case_insensitive(self):
        assert evaluate_condition("Damaged on arrival", "contains", "DAMAGED")
        assert not evaluate_condition(["damaged"], "contains", "damaged")

    def test_unknown_operator_is_false(self):
        assert not evaluate_condition(1, "between", [0, 2])
