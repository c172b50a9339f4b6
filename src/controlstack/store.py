"""Control Store

Ordered, per-entity mapping of control key -> ControlDefinition. Insertion
order is the rendering and evaluation order, so positional inserts rebuild
the mapping rather than appending.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from pydantic import ValidationError

from controlstack.config import TYPE_SECTION, EngineConfig
from controlstack.exceptions import ControlAlreadyExistsError, InvalidControlError
from controlstack.models import ControlDefinition, ControlOptions, SectionContext
from controlstack.registry import ControlTypeRegistry, DataControlType
from controlstack.utils import deep_merge

log = logging.getLogger(__name__)


def _validate(key: str, data: dict[str, Any]) -> ControlDefinition:
    try:
        return ControlDefinition.model_validate(data)
    except ValidationError as e:
        raise InvalidControlError(key, str(e)) from e


class ControlStore:
    """Ordered control storage for one stack.

    Every mutation bumps `version`, which readers use to invalidate views
    derived from the controls (active controls, config).
    """

    def __init__(
        self,
        name: str,
        control_types: ControlTypeRegistry,
        config: EngineConfig | None = None,
    ):
        self.name = name
        self.control_types = control_types
        self.config = config or EngineConfig()
        self._controls: dict[str, ControlDefinition] = {}
        self.tabs: dict[str, str] = {}
        self.version = 0

    # --- Reads ---

    def __len__(self) -> int:
        return len(self._controls)

    def __contains__(self, key: object) -> bool:
        return key in self._controls

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._controls))

    def keys(self) -> list[str]:
        return list(self._controls)

    def get(self, key: str | None = None) -> Any:
        """Get one control by key (None if missing), or all controls in order."""
        if key:
            return self._controls.get(key)
        return dict(self._controls)

    def index_of(self, key: str) -> int | None:
        """Position of `key` in the stack, or None if it is not registered."""
        for index, existing in enumerate(self._controls):
            if existing == key:
                return index
        return None

    def key_at(self, index: int) -> str | None:
        if 0 <= index < len(self._controls):
            return list(self._controls)[index]
        return None

    def get_by_index(self, index: int) -> ControlDefinition | None:
        key = self.key_at(index)
        return None if key is None else self._controls[key]

    def is_section(self, key: str) -> bool:
        control = self._controls.get(key)
        return control is not None and control.type == TYPE_SECTION

    def section_controls(self, section_id: str) -> dict[str, ControlDefinition]:
        """Controls following `section_id` up to the next section (exclusive)."""
        index = self.index_of(section_id)
        if index is None:
            return {}

        result: dict[str, ControlDefinition] = {}
        for key in self.keys()[index + 1 :]:
            if self.is_section(key):
                break
            result[key] = self._controls[key]
        return result

    def section_args(self, section_id: str) -> SectionContext:
        """The context a section hands down to its controls."""
        section = self._controls[section_id]
        return SectionContext(
            section=section_id,
            tab=section.tab if "tab" in section.model_fields_set else None,
            condition=dict(section.condition) if section.condition else None,
        )

    # --- Writes ---

    def add(
        self,
        key: str,
        args: dict[str, Any],
        options: ControlOptions | dict[str, Any] | None = None,
    ) -> ControlDefinition:
        """Register a new control.

        With `overwrite` an existing control is updated instead.

        Raises:
            ControlAlreadyExistsError: If `key` exists and `overwrite` is off.
            UnknownControlTypeError: If the control type is not registered.
            InvalidControlError: If the args do not validate as a control.
        """
        options = ControlOptions.coerce(options)

        if key in self._controls:
            if not options.overwrite:
                raise ControlAlreadyExistsError(key)
            self.update(key, args, options)
            return self._controls[key]

        data = {
            "type": self.config.default_control_type,
            "tab": self.config.default_tab,
            **args,
            "name": key,
        }
        control_type = self.control_types.get_control_class(data["type"])
        control = _validate(key, data)

        if isinstance(control_type, DataControlType):
            data["default"] = control_type.resolve_default(control)
            control = _validate(key, data)

        if control.tab in self.config.tabs and control.tab not in self.tabs:
            self.tabs[control.tab] = self.config.tabs[control.tab]

        items = list(self._controls.items())
        if options.index is None or options.index >= len(items):
            items.append((key, control))
        else:
            items.insert(max(options.index, 0), (key, control))
        self._controls = dict(items)
        self.version += 1

        log.debug("%s: added control %s (%s) at %d", self.name, key, control.type, self.index_of(key))
        return control

    def update(
        self,
        key: str,
        patch: dict[str, Any],
        options: ControlOptions | dict[str, Any] | None = None,
    ) -> bool:
        """Patch an existing control in place.

        A section update hands its `tab`/`condition` down to every control
        of the section unless `recursive` is explicitly False.

        Returns:
            False if `key` is not registered.
        """
        options = ControlOptions.coerce(options)

        control = self._controls.get(key)
        if control is None:
            return False

        current = control.as_args()
        if options.recursive:
            merged = deep_merge(current, patch)
        else:
            merged = {**current, **patch}
        merged["name"] = key

        updated = _validate(key, merged)
        self._controls[key] = updated
        self.version += 1
        log.debug("%s: updated control %s", self.name, key)

        if updated.type == TYPE_SECTION and options.recursive is not False:
            section_args = self.section_args(key).as_args()
            for child_key in self.section_controls(key):
                self.update(child_key, section_args)

        return True

    def remove(self, key: str) -> bool:
        """Delete a control; the others keep their relative order."""
        if key not in self._controls:
            return False
        del self._controls[key]
        self.version += 1
        log.debug("%s: removed control %s", self.name, key)
        return True
