"""Leaf condition evaluation for conditional_branch.

Values come from JSON-authored rule config and JSON-shaped events, so
comparisons follow loose JSON semantics: ``eq`` also matches on string
form (``5`` equals ``"5"``) and ordering operators coerce to numbers.
"""

import math
from collections.abc import Callable
from typing import Any

_MISSING = object()


def get_nested_value(data: Any, path: str) -> Any:
    """Resolve a dot path like ``payload.newValues.status``.

    Missing keys, non-container intermediates and out-of-range indexes
    all resolve to None.
    """
    current = data
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part, _MISSING)
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else _MISSING
        else:
            return None
        if current is _MISSING:
            return None
    return current


def to_display_string(value: Any) -> str:
    """String form used for loose equality."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, list | tuple):
        return ",".join("" if v is None else to_display_string(v) for v in value)
    return str(value)


def to_number(value: Any) -> float:
    """Numeric coercion; anything unparseable (including missing) is NaN."""
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def _eq(actual: Any, expected: Any) -> bool:
    return actual == expected or to_display_string(actual) == to_display_string(expected)


def _ne(actual: Any, expected: Any) -> bool:
    return actual != expected and to_display_string(actual) != to_display_string(expected)


def _in(actual: Any, expected: Any) -> bool:
    return isinstance(expected, list) and actual in expected


def _contains(actual: Any, expected: Any) -> bool:
    return (
        isinstance(actual, str)
        and isinstance(expected, str)
        and expected.lower() in actual.lower()
    )


# NaN compares False against everything, so unparseable operands never match.
OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": _eq,
    "ne": _ne,
    "gt": lambda a, b: to_number(a) > to_number(b),
    "gte": lambda a, b: to_number(a) >= to_number(b),
    "lt": lambda a, b: to_number(a) < to_number(b),
    "lte": lambda a, b: to_number(a) <= to_number(b),
    "in": _in,
    "contains": _contains,
}


def evaluate_condition(actual: Any, op: str, expected: Any) -> bool:
    """Apply operator ``op``. Unknown operators evaluate to False."""
    operator = OPERATORS.get(op)
    if operator is None:
        return False
    return operator(actual, expected)
