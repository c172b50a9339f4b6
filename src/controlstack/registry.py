"""Control type and group control registries.

Control types are descriptor values looked up by name. They tell the engine
whether a control carries data (participates in settings resolution) and how
its value is computed from stored settings.

Both registries are plain objects injected into the engine, so tests can
swap in their own.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from controlstack.config import (
    TYPE_REPEATER,
    TYPE_SECTION,
    TYPE_TAB,
    TYPE_TABS,
    TYPE_WP_WIDGET,
)
from controlstack.exceptions import UnknownControlTypeError, UnknownGroupControlError
from controlstack.models import ControlDefinition

if TYPE_CHECKING:
    from controlstack.stack import ControlsStack

log = logging.getLogger(__name__)


class ControlType(ABC):
    """Base class for control type descriptors."""

    is_data_control: bool = False

    def __init__(self, name: str, default_settings: dict[str, Any] | None = None):
        self.name = name
        self._default_settings = dict(default_settings or {})

    def get_default_settings(self) -> dict[str, Any]:
        """Args every control of this type implicitly carries."""
        return copy.deepcopy(self._default_settings)

    def merge_settings(self, control: ControlDefinition) -> ControlDefinition:
        """Overlay the control's own args on this type's default settings."""
        defaults = self.get_default_settings()
        if not defaults:
            return control
        return ControlDefinition.model_validate({**defaults, **control.as_args()})

    @abstractmethod
    def compute_value(self, control: ControlDefinition, settings: dict[str, Any]) -> Any:
        """Compute the settings value of `control` from raw stored settings."""
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class UIControlType(ControlType):
    """A non-data control (sections, tabs, headings, dividers...)."""

    is_data_control = False

    def compute_value(self, control: ControlDefinition, settings: dict[str, Any]) -> Any:
        return None


class DataControlType(ControlType):
    """A control holding a single stored value."""

    is_data_control = True

    def __init__(
        self,
        name: str,
        default_value: Any = "",
        default_settings: dict[str, Any] | None = None,
    ):
        super().__init__(name, default_settings)
        self._default_value = default_value

    def get_default_value(self) -> Any:
        return copy.deepcopy(self._default_value)

    def resolve_default(self, control: ControlDefinition) -> Any:
        """The default a newly added control is stored with."""
        if control.has_default:
            return control.default
        return self.get_default_value()

    def compute_value(self, control: ControlDefinition, settings: dict[str, Any]) -> Any:
        if settings.get(control.name) is not None:
            return settings[control.name]
        return copy.deepcopy(control.default)


class MultipleControlType(DataControlType):
    """A control whose value is a mapping (url, media, slider, dimensions...).

    Stored values are merged over the control default so partially stored
    mappings still expose every key.
    """

    def __init__(
        self,
        name: str,
        default_value: dict[str, Any] | None = None,
        default_settings: dict[str, Any] | None = None,
    ):
        super().__init__(name, dict(default_value or {}), default_settings)

    def resolve_default(self, control: ControlDefinition) -> Any:
        default = self.get_default_value()
        if control.has_default and isinstance(control.default, dict):
            default.update(control.default)
        return default

    def compute_value(self, control: ControlDefinition, settings: dict[str, Any]) -> Any:
        value = super().compute_value(control, settings)
        default = control.default if isinstance(control.default, dict) else {}
        if isinstance(value, dict):
            return {**default, **value}
        return value


class RepeaterControlType(DataControlType):
    """A list of rows, each row described by the control's `fields`."""

    def __init__(self, name: str = TYPE_REPEATER, registry: ControlTypeRegistry | None = None):
        super().__init__(name, default_value=[])
        self._registry = registry

    def bind(self, registry: ControlTypeRegistry) -> None:
        self._registry = registry

    def compute_value(self, control: ControlDefinition, settings: dict[str, Any]) -> Any:
        rows = super().compute_value(control, settings)
        if not isinstance(rows, list) or self._registry is None:
            return rows

        result = []
        for row in rows:
            if not isinstance(row, dict):
                result.append(row)
                continue
            filled = dict(row)
            for field in control.fields or []:
                field_type = self._registry.get_control_class(field.type)
                if not isinstance(field_type, DataControlType):
                    continue
                field = field.model_copy(update={"default": field_type.resolve_default(field)})
                field_value = field_type.compute_value(field, row)
                if field_value is not None:
                    filled[field.name] = field_value
            result.append(filled)
        return result


class ControlTypeRegistry:
    """Lookup of control type descriptors by type name."""

    def __init__(self) -> None:
        self._types: dict[str, ControlType] = {}

    def register(self, control_type: ControlType) -> ControlType:
        if isinstance(control_type, RepeaterControlType):
            control_type.bind(self)
        self._types[control_type.name] = control_type
        return control_type

    def get(self, name: str) -> ControlType | None:
        return self._types.get(name)

    def get_control_class(self, name: str) -> ControlType:
        """Get a control type by name.

        Raises:
            UnknownControlTypeError: If the type is not registered.
        """
        control_type = self._types.get(name)
        if control_type is None:
            raise UnknownControlTypeError(name)
        return control_type

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def names(self) -> list[str]:
        return list(self._types.keys())

    @classmethod
    def with_builtins(cls) -> "ControlTypeRegistry":
        """Create a registry holding the stock control types."""
        registry = cls()

        for name in (TYPE_SECTION, TYPE_TABS, TYPE_TAB, "heading", "raw_html", "divider", "button"):
            registry.register(UIControlType(name))

        # Text-like controls accept dynamic tags unless a control opts out.
        for name in ("text", "textarea"):
            registry.register(
                DataControlType(name, "", default_settings={"dynamic": {"categories": ["text"]}})
            )
        for name in ("wysiwyg", "code"):
            registry.register(DataControlType(name, "", default_settings={"label_block": True}))
        for name in ("number", "select", "choose", "color", "switcher", "hidden", "font", "animation", "icon", "date_time"):
            registry.register(DataControlType(name, ""))
        registry.register(DataControlType("select2", []))
        registry.register(DataControlType("gallery", []))
        registry.register(DataControlType(TYPE_WP_WIDGET, []))

        registry.register(MultipleControlType("url", {"url": "", "is_external": "", "nofollow": ""}))
        registry.register(MultipleControlType("media", {"url": "", "id": ""}))
        registry.register(MultipleControlType("slider", {"unit": "px", "size": ""}))
        registry.register(
            MultipleControlType(
                "dimensions",
                {"unit": "px", "top": "", "right": "", "bottom": "", "left": "", "isLinked": True},
            )
        )
        registry.register(MultipleControlType("image_dimensions", {"width": "", "height": ""}))
        registry.register(MultipleControlType("box_shadow", {}))
        registry.register(MultipleControlType("text_shadow", {}))

        registry.register(RepeaterControlType())

        return registry


# --- Group controls ---


class GroupControl(ABC):
    """A named bundle that expands into several primitive controls."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Group name (e.g., 'typography')."""
        ...

    @abstractmethod
    def add_controls(
        self, stack: ControlsStack, args: dict[str, Any], options: dict[str, Any]
    ) -> None:
        """Declare this group's controls on `stack` through `add_control`."""
        ...


class FieldsGroupControl(GroupControl):
    """A group declared as a list of field definitions.

    Each field becomes a control named ``<args.name>_<field id>``; args other
    than ``name``, ``fields_options`` and ``exclude`` are passed to every field,
    and ``fields_options[<field id>]`` overrides a single field.
    """

    def __init__(self, name: str, fields: dict[str, dict[str, Any]]):
        self._name = name
        self._fields = fields

    @property
    def name(self) -> str:
        return self._name

    def add_controls(
        self, stack: ControlsStack, args: dict[str, Any], options: dict[str, Any]
    ) -> None:
        prefix = args.get("name") or self._name
        shared = {
            k: v for k, v in args.items() if k not in ("name", "fields_options", "exclude")
        }
        fields_options = args.get("fields_options") or {}
        exclude = set(args.get("exclude") or [])

        options = dict(options)
        position = options.pop("position", None)
        if position is not None:
            stack.start_injection(position)

        try:
            for field_id, field_args in self._fields.items():
                if field_id in exclude:
                    continue
                control_args = {**field_args, **shared, **fields_options.get(field_id, {})}
                stack.add_control(f"{prefix}_{field_id}", control_args, dict(options))
        finally:
            if position is not None:
                stack.end_injection()


class GroupControlRegistry:
    """Lookup of group controls by name.

    Populated during setup; the engine only reads from it.
    """

    def __init__(self, groups: list[GroupControl] | None = None) -> None:
        self._groups: dict[str, GroupControl] = {}
        for group in groups or []:
            self.register(group)

    def register(self, group: GroupControl) -> GroupControl:
        self._groups[group.name] = group
        log.debug("Registered group control %s", group.name)
        return group

    def get_group(self, name: str) -> GroupControl | None:
        return self._groups.get(name)

    def require(self, name: str) -> GroupControl:
        group = self.get_group(name)
        if group is None:
            raise UnknownGroupControlError(name)
        return group
