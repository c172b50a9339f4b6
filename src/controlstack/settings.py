"""Settings Resolver

Derives display-ready settings from raw stored values:

1. resolve_parsed_settings: fill every data control from stored values or
   its default.
2. get_active_controls: keep only the controls visible for the settings.
3. parse_dynamic_settings: hand values flagged as dynamic to the tag engine.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Protocol

from controlstack.config import EngineConfig
from controlstack.models import ControlDefinition
from controlstack.registry import ControlTypeRegistry, RepeaterControlType
from controlstack.visibility import ConditionsEngine, is_control_visible

log = logging.getLogger(__name__)

Controls = Mapping[str, ControlDefinition] | Iterable[ControlDefinition]


class DynamicTagEngine(Protocol):
    """Resolves dynamic tag expressions stored as control values."""

    def parse_tags(self, value: Any, dynamic: dict[str, Any]) -> Any: ...


def _iter_controls(controls: Controls) -> list[ControlDefinition]:
    if isinstance(controls, Mapping):
        return list(controls.values())
    return list(controls)


class SettingsResolver:
    """Settings derivation on top of a control list."""

    def __init__(
        self,
        control_types: ControlTypeRegistry,
        config: EngineConfig | None = None,
        conditions: ConditionsEngine | None = None,
        tag_engine: DynamicTagEngine | None = None,
    ):
        self.control_types = control_types
        self.config = config or EngineConfig()
        self.conditions = conditions
        self.tag_engine = tag_engine

    def _dynamic_key(self, name: str) -> str:
        return f"{self.config.dynamic_prefix}{name}"

    def resolve_parsed_settings(
        self, raw_settings: Mapping[str, Any], controls: Controls
    ) -> dict[str, Any]:
        """Merge stored values with control defaults, in declaration order.

        Values of controls whose dynamic value controller is "mentions" are
        kept verbatim while their `dynamic_<name>` sibling is set.
        """
        settings = dict(raw_settings)

        for control in _iter_controls(controls):
            control_type = self.control_types.get_control_class(control.type)
            if not control_type.is_data_control:
                continue

            control = control_type.merge_settings(control)
            dynamic = control.dynamic or {}

            if (
                settings.get(control.name) is not None
                and dynamic.get("valueController") == "mentions"
                and settings.get(self._dynamic_key(control.name))
            ):
                continue

            settings[control.name] = control_type.compute_value(control, settings)

        return settings

    def is_visible(self, control: ControlDefinition, values: Mapping[str, Any]) -> bool:
        return is_control_visible(control, values, self.conditions)

    def get_active_controls(
        self, controls: Controls, settings: Mapping[str, Any]
    ) -> dict[str, ControlDefinition]:
        """Controls visible for `settings`, in declaration order."""
        return {
            control.name: control
            for control in _iter_controls(controls)
            if self.is_visible(control, settings)
        }

    def parse_dynamic_settings(
        self,
        settings: Mapping[str, Any],
        controls: Controls,
        all_settings: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Replace dynamic values with their tag engine output.

        Args:
            settings: Values to parse.
            controls: Schema describing `settings`.
            all_settings: Snapshot holding the `dynamic_<name>` flags. Repeater
                rows are their own snapshot.
        """
        result = dict(settings)

        for control in _iter_controls(controls):
            value = result.get(control.name)
            if value is None:
                continue

            control_type = self.control_types.get_control_class(control.type)
            if not control_type.is_data_control:
                continue

            if isinstance(control_type, RepeaterControlType):
                if isinstance(value, list):
                    result[control.name] = [
                        self.parse_dynamic_settings(row, control.fields or [], row)
                        if isinstance(row, Mapping)
                        else row
                        for row in value
                    ]
                continue

            control = control_type.merge_settings(control)

            if control.dynamic and all_settings.get(self._dynamic_key(control.name)):
                result[control.name] = self._parse_tags(control, value)

        return result

    def _parse_tags(self, control: ControlDefinition, value: Any) -> Any:
        if self.tag_engine is None:
            return value
        try:
            return self.tag_engine.parse_tags(value, control.dynamic or {})
        except Exception as e:
            log.warning("Dynamic value of %s could not be resolved: %s", control.name, e)
            return value

    def filter_controls_settings(
        self,
        callback: Callable[[Any, ControlDefinition], Any],
        settings: Mapping[str, Any],
        controls: Mapping[str, ControlDefinition],
    ) -> dict[str, Any]:
        """Map `callback(value, control)` over settings that have a control.

        None results are dropped.
        """
        filtered: dict[str, Any] = {}
        for key, value in settings.items():
            if key not in controls:
                continue
            result = callback(value, controls[key])
            if result is not None:
                filtered[key] = result
        return filtered

    def get_style_controls(self, controls: Controls) -> dict[str, ControlDefinition]:
        """Data controls that carry selectors, dynamic config or styled rows."""
        style_controls: dict[str, ControlDefinition] = {}

        for control in _iter_controls(controls):
            control_type = self.control_types.get_control_class(control.type)
            if not control_type.is_data_control:
                continue

            control = control_type.merge_settings(control)
            style_fields: dict[str, ControlDefinition] = {}

            if isinstance(control_type, RepeaterControlType):
                style_fields = self.get_style_controls(control.fields or [])
                if style_fields:
                    control = ControlDefinition.model_validate(
                        {**control.as_args(), "style_fields": style_fields}
                    )

            if control.selectors or control.dynamic or style_fields:
                style_controls[control.name] = control

        return style_controls
