"""Visibility evaluation for controls.

A control is visible when its `conditions` tree passes the conditions engine
or, for the flat `condition` mapping, when every key/value pair matches the
current values.

Condition keys:
    "color"             -> values["color"] must match
    "color!"            -> values["color"] must NOT match
    "border[width]"     -> values["border"]["width"] must match
    "border[width]!"    -> negated sub-key match

A missing (or None) value always hides the control, negated or not.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, NamedTuple, Protocol

from controlstack.models import ControlDefinition

_CONDITION_KEY_PATTERN = re.compile(r"([a-z_0-9]+)(?:\[([a-z_]+)\])?(!?)$", re.IGNORECASE)


class ConditionsEngine(Protocol):
    """Evaluates nested `conditions` trees."""

    def check(self, conditions: dict[str, Any], values: Mapping[str, Any]) -> bool: ...


class ConditionKey(NamedTuple):
    key: str
    sub_key: str | None
    negated: bool


def parse_condition_key(condition_key: str) -> ConditionKey:
    """Split a condition key into (pure key, sub key, negated).

    Examples:
        >>> parse_condition_key("hide_border!")
        ConditionKey(key='hide_border', sub_key=None, negated=True)
        >>> parse_condition_key("image[url]")
        ConditionKey(key='image', sub_key='url', negated=False)
    """
    match = _CONDITION_KEY_PATTERN.search(condition_key)
    if match is None:
        raise ValueError(f"Invalid condition key: {condition_key!r}")
    key, sub_key, bang = match.groups()
    return ConditionKey(key=key, sub_key=sub_key or None, negated=bool(bang))


def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset, Mapping)) and len(value) > 0


def _members(collection: Any) -> list[Any]:
    if isinstance(collection, Mapping):
        return list(collection.values())
    return list(collection)


def value_contains(instance_value: Any, condition_value: Any) -> bool:
    """Containment rule between a current value and a condition value.

    A non-empty condition collection is a membership test for the current
    value; a non-empty current collection is a membership test for the
    condition value; anything else needs equal value and equal type.
    """
    if _is_collection(condition_value):
        return instance_value in _members(condition_value)
    if _is_collection(instance_value):
        return condition_value in _members(instance_value)
    return type(instance_value) is type(condition_value) and instance_value == condition_value


def is_control_visible(
    control: ControlDefinition,
    values: Mapping[str, Any],
    conditions_engine: ConditionsEngine | None = None,
) -> bool:
    """Decide whether `control` is visible for the given values."""
    if control.conditions:
        if conditions_engine is None:
            from controlstack.conditions import Conditions

            conditions_engine = Conditions()
        return conditions_engine.check(control.conditions, values)

    if not control.condition:
        return True

    for condition_key, condition_value in control.condition.items():
        key, sub_key, negated = parse_condition_key(condition_key)

        if values.get(key) is None:
            return False

        instance_value = values[key]

        if sub_key:
            if not isinstance(instance_value, Mapping) or instance_value.get(sub_key) is None:
                return False
            instance_value = instance_value[sub_key]

        contains = value_contains(instance_value, condition_value)

        if (negated and contains) or (not negated and not contains):
            return False

    return True
