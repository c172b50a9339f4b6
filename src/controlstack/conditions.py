"""Default engine for nested `conditions` trees.

A tree looks like::

    {
        "relation": "or",
        "terms": [
            {"name": "layout", "operator": "in", "value": ["grid", "masonry"]},
            {
                "relation": "and",
                "terms": [
                    {"name": "image[url]", "operator": "!==", "value": ""},
                    {"name": "show_caption", "value": "yes"},
                ],
            },
        ],
    }

`relation` defaults to "and"; `operator` defaults to strict equality.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from controlstack.visibility import parse_condition_key

_MISSING = object()


def _strict_equals(left: Any, right: Any) -> bool:
    return type(left) is type(right) and left == right


def _contains(haystack: Any, needle: Any) -> bool:
    if isinstance(haystack, str):
        return isinstance(needle, str) and needle in haystack
    if isinstance(haystack, Mapping):
        return needle in haystack.values()
    if isinstance(haystack, (list, tuple, set, frozenset)):
        return needle in haystack
    return False


def _order(op):
    def compare(left: Any, right: Any) -> bool:
        try:
            return op(left, right)
        except TypeError:
            return False

    return compare


class Conditions:
    """Evaluates AND/OR condition trees against current values."""

    OPERATORS = {
        "==": lambda left, right: left == right,
        "!=": lambda left, right: left != right,
        "===": _strict_equals,
        "!==": lambda left, right: not _strict_equals(left, right),
        "in": lambda left, right: _contains(right, left),
        "!in": lambda left, right: not _contains(right, left),
        "contains": _contains,
        "!contains": lambda left, right: not _contains(left, right),
        "<": _order(lambda left, right: left < right),
        "<=": _order(lambda left, right: left <= right),
        ">": _order(lambda left, right: left > right),
        ">=": _order(lambda left, right: left >= right),
    }

    def compare(self, left: Any, right: Any, operator: str | None = None) -> bool:
        op = self.OPERATORS.get(operator or "===")
        if op is None:
            raise ValueError(f"Unknown condition operator: {operator}")
        return op(left, right)

    def check(self, conditions: dict[str, Any], values: Mapping[str, Any]) -> bool:
        is_or = conditions.get("relation", "and") == "or"

        for term in conditions.get("terms", []):
            if "terms" in term:
                result = self.check(term, values)
            else:
                result = self._check_term(term, values)

            if is_or and result:
                return True
            if not is_or and not result:
                return False

        return not is_or

    def _check_term(self, term: dict[str, Any], values: Mapping[str, Any]) -> bool:
        key, sub_key, _ = parse_condition_key(term["name"])

        value = values.get(key, _MISSING)
        if value is _MISSING:
            return False

        if sub_key:
            if not isinstance(value, Mapping) or sub_key not in value:
                return False
            value = value[sub_key]

        return self.compare(value, term.get("value"), term.get("operator"))
