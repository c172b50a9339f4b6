"""Controls Stack

Base class of every entity that owns controls. A subclass names itself and
declares its controls in `register_controls`:

    class Heading(ControlsStack):
        def get_name(self) -> str:
            return "heading"

        def register_controls(self) -> None:
            self.start_controls_section("section_title", {"label": "Title"})
            self.add_control("title", {"type": "text", "default": "Hello"})
            self.add_responsive_control("align", {"type": "choose"})
            self.end_controls_section()

    heading = Heading({"id": "3f2a", "settings": {"title": "Hi"}}, manager=manager)
    heading.get_settings_for_display()

Controls are registered lazily, on first access, and cached by the manager
under the entity's unique name.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from controlstack import hooks
from controlstack.builder import BuilderState
from controlstack.config import TYPE_SECTION, TYPE_TAB, TYPE_TABS
from controlstack.exceptions import (
    ControlNotFoundError,
    InjectionAlreadyOpenError,
    InvalidPositionError,
    NoOpenSectionError,
    SectionArgsConflictError,
)
from controlstack.manager import ControlsManager
from controlstack.models import (
    ControlDefinition,
    ControlOptions,
    EntityData,
    InjectionPoint,
    Position,
    SectionContext,
    TabsContext,
)
from controlstack.position import PositionResolver
from controlstack.responsive import device_keys, expand_responsive
from controlstack.store import ControlStore
from controlstack.utils import deep_merge

log = logging.getLogger(__name__)


class ControlsStack(ABC):
    """An entity instance with a control stack and resolved settings."""

    def __init__(
        self,
        data: dict[str, Any] | None = None,
        manager: ControlsManager | None = None,
    ):
        self.manager = manager or ControlsManager()
        self.state = BuilderState()
        self._data = EntityData()
        self._settings: dict[str, Any] = {}
        self._config: tuple[int, dict[str, Any]] | None = None
        self._active_controls: tuple[int, dict[str, ControlDefinition]] | None = None

        if data:
            self._init(data)

    # --- Identity ---

    @abstractmethod
    def get_name(self) -> str:
        """Entity name (e.g., 'heading')."""
        ...

    def get_unique_name(self) -> str:
        """Key of this entity's stack in the manager cache."""
        return self.get_name()

    def get_type(self) -> str:
        return "stack"

    def get_id(self) -> str | int:
        return self._data.id

    # --- Lifecycle ---

    def register_controls(self) -> None:
        """Declare this entity's controls. Override in subclasses."""
        pass

    def _init(self, data: dict[str, Any]) -> None:
        self._data = EntityData.from_dict(data)
        self._settings = self._get_parsed_settings()
        self._active_controls = None

    def _get_parsed_settings(self) -> dict[str, Any]:
        return self.manager.settings_resolver.resolve_parsed_settings(
            self._data.settings, self.get_controls()
        )

    def init_controls(self) -> ControlStore:
        store = self.manager.open_stack(self.get_unique_name())
        self.register_controls()
        return store

    @property
    def store(self) -> ControlStore:
        """This entity's control store, registering the controls on first use."""
        store = self.manager.get_element_stack(self.get_unique_name())
        if store is None:
            store = self.init_controls()
        return store

    # --- Control access ---

    def get_controls(self, control_id: str | None = None) -> Any:
        """All controls in order, or one control (None if missing)."""
        return self.store.get(control_id)

    def get_control_index(self, control_key: str) -> int | None:
        return self.store.index_of(control_key)

    def get_control_key(self, control_index: int) -> str | None:
        return self.store.key_at(control_index)

    def get_section_controls(self, section_id: str) -> dict[str, ControlDefinition]:
        return self.store.section_controls(section_id)

    def get_section_args(self, section_id: str) -> SectionContext:
        return self.store.section_args(section_id)

    def get_pointer_index(self) -> int:
        """Where the next control lands."""
        if self.state.injection is not None:
            return self.state.injection.index
        return len(self.store)

    def get_current_section(self) -> SectionContext | None:
        return self.state.section

    def get_current_tab(self) -> TabsContext | None:
        return self.state.tabs

    def get_tabs_controls(self) -> dict[str, str]:
        return dict(self.store.tabs)

    def get_config(self) -> dict[str, Any]:
        """Controls and settings tabs, cached until the stack changes."""
        store = self.store
        if self._config is None or self._config[0] != store.version:
            self._config = (
                store.version,
                {"controls": store.get(), "tabs_controls": dict(store.tabs)},
            )
        return self._config[1]

    # --- Declaring controls ---

    def add_control(
        self,
        control_id: str,
        args: dict[str, Any],
        options: ControlOptions | dict[str, Any] | None = None,
    ) -> ControlDefinition:
        """Add a control to the open section (or the active injection point).

        Raises:
            NoOpenSectionError: If no section context applies.
            SectionArgsConflictError: If `section`/`tab` args are passed while
                a section context applies.
            ControlAlreadyExistsError: If the id exists and `overwrite` is off.
        """
        options = ControlOptions.coerce(options)
        position = options.position

        if position is not None:
            self.start_injection(position)

        try:
            return self._add_control(control_id, dict(args), options)
        finally:
            if position is not None:
                self.end_injection()

    def _add_control(
        self, control_id: str, args: dict[str, Any], options: ControlOptions
    ) -> ControlDefinition:
        store = self.store
        index = self.state.next_injection_index()

        control_type = args.get("type")
        if not control_type or control_type not in self.manager.config.special_types:
            section, tabs = self.state.target_context()

            if section is not None:
                if args.get("section") or args.get("tab"):
                    raise SectionArgsConflictError(control_id)

                args = deep_merge(section.as_args(), args)

                if tabs is not None:
                    args.update(tabs.as_args())
            elif not args.get("section") and not (options.overwrite and control_id in store):
                raise NoOpenSectionError(control_id)

        popover_start = self.state.popover_pending()
        if popover_start:
            args["popover"] = {"start": True}

        control = store.add(
            control_id,
            args,
            ControlOptions(
                overwrite=options.overwrite,
                index=index if index is not None else options.index,
                recursive=options.recursive,
            ),
        )

        if popover_start:
            self.state.claim_popover_start()
        return control

    def update_control(
        self,
        control_id: str,
        args: dict[str, Any],
        options: ControlOptions | dict[str, Any] | None = None,
    ) -> bool:
        """Patch an existing control. Returns False if it does not exist."""
        return self.store.update(control_id, args, options)

    def remove_control(self, control_id: str) -> bool:
        return self.store.remove(control_id)

    def add_group_control(
        self,
        group_name: str,
        args: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> None:
        """Expand a registered group control into this stack.

        Raises:
            UnknownGroupControlError: If no group is registered under that name.
        """
        group = self.manager.groups.require(group_name)
        group.add_controls(self, dict(args or {}), dict(options or {}))

    # --- Responsive controls ---

    def add_responsive_control(
        self,
        control_id: str,
        args: dict[str, Any],
        options: ControlOptions | dict[str, Any] | None = None,
    ) -> None:
        """Add (or, with `overwrite`, update) one control per device."""
        options = ControlOptions.coerce(options)

        for key, control_args in expand_responsive(control_id, args, self.manager.config.devices):
            if options.overwrite:
                self.update_control(key, control_args, ControlOptions(recursive=bool(options.recursive)))
            else:
                self.add_control(key, control_args, options)

    def update_responsive_control(
        self,
        control_id: str,
        args: dict[str, Any],
        options: ControlOptions | dict[str, Any] | None = None,
    ) -> None:
        options = ControlOptions.coerce(options)
        self.add_responsive_control(
            control_id,
            args,
            ControlOptions(overwrite=True, recursive=bool(options.recursive)),
        )

    def remove_responsive_control(self, control_id: str) -> None:
        for key in device_keys(control_id, self.manager.config.devices):
            self.remove_control(key)

    # --- Sections and tabs ---

    def start_controls_section(self, section_id: str, args: dict[str, Any] | None = None) -> None:
        """Open a section; following controls belong to it until it ends.

        Raises:
            SectionAlreadyOpenError: If a section is already open.
        """
        args = dict(args or {})
        name = self.get_name()

        self.state.check_can_open_section()

        self._do_section_action(hooks.BEFORE_SECTION_START, section_id, args)

        args["type"] = TYPE_SECTION
        self.add_control(section_id, args)
        self.state.open_section(self.get_section_args(section_id))

        self._do_section_action(hooks.AFTER_SECTION_START, section_id, args)
        log.debug("%s: started section %s", name, section_id)

    def end_controls_section(self) -> None:
        """Close the open section.

        Raises:
            NoOpenSectionError: If no section is open.
        """
        current = self.state.section
        if current is None:
            raise NoOpenSectionError()

        args = {"tab": current.tab}
        self._do_section_action(hooks.BEFORE_SECTION_END, current.section, args)
        self.state.close_section()
        self._do_section_action(hooks.AFTER_SECTION_END, current.section, args)

    def _do_section_action(self, event: str, section_id: str, args: dict[str, Any]) -> None:
        registry = self.manager.hooks
        registry.do_action(event, self, section_id, args)
        registry.do_action(hooks.section_event(self.get_name(), section_id, event), self, args)

    def start_controls_tabs(self, tabs_id: str) -> None:
        """Open a tabs group inside the current section."""
        self.state.check_can_open_tabs()
        self.add_control(tabs_id, {"type": TYPE_TABS})
        self.state.open_tabs(tabs_id)

    def end_controls_tabs(self) -> None:
        self.state.close_tabs()

    def start_controls_tab(self, tab_id: str, args: dict[str, Any] | None = None) -> None:
        """Open one tab of the current tabs group."""
        tabs = self.state.check_can_open_tab(tab_id)
        args = dict(args or {})
        args["type"] = TYPE_TAB
        args["tabs_wrapper"] = tabs.tabs_wrapper
        self.add_control(tab_id, args)
        self.state.open_tab(tab_id)

    def end_controls_tab(self) -> None:
        self.state.close_tab()

    # --- Popovers ---

    def start_popover(self) -> None:
        self.state.open_popover()

    def end_popover(self) -> None:
        """Mark the most recently added control as the popover's end.

        Raises:
            PopoverError: If no popover is open or nothing was added to it.
        """
        self.state.close_popover()

        last_key = self.get_control_key(self.get_pointer_index() - 1)
        if last_key is None:
            raise ControlNotFoundError(str(self.get_pointer_index() - 1))

        self.update_control(last_key, {"popover": {"end": True}}, ControlOptions(recursive=True))

    # --- Injection ---

    def get_position_info(self, position: Position | dict[str, Any]) -> InjectionPoint | None:
        """Resolve a position; None when it is invalid or its target is missing."""
        return PositionResolver(self.store).resolve(position)

    def start_injection(self, position: Position | dict[str, Any]) -> None:
        """Route following controls to `position` until `end_injection`.

        Raises:
            InjectionAlreadyOpenError: If an injection is already open.
            InvalidPositionError: If the position cannot be resolved.
        """
        if self.state.injection is not None:
            raise InjectionAlreadyOpenError()

        point = self.get_position_info(position)
        if point is None:
            raise InvalidPositionError(
                position.model_dump() if isinstance(position, Position) else dict(position)
            )
        self.state.open_injection(point)

    def end_injection(self) -> None:
        self.state.close_injection()

    def get_injection_point(self) -> InjectionPoint | None:
        return self.state.injection

    # --- Settings ---

    def get_data(self, item: str | None = None) -> Any:
        if item:
            return getattr(self._data, item, None)
        return {"id": self._data.id, "settings": dict(self._data.settings)}

    def get_settings(self, setting: str | None = None) -> Any:
        if setting:
            return self._settings.get(setting)
        return self._settings

    def set_settings(self, key: str | dict[str, Any], value: Any = None) -> None:
        """Set one setting, or replace all settings when given a mapping."""
        if isinstance(key, dict):
            self._settings = dict(key)
        else:
            self._settings[key] = value
        self._active_controls = None

    def reset_settings(self) -> None:
        """Recompute settings from the raw entity data."""
        self._settings = self._get_parsed_settings()
        self._active_controls = None

    def get_controls_settings(self) -> dict[str, Any]:
        """Settings restricted to keys that have a control."""
        controls = self.get_controls()
        return {key: value for key, value in self._settings.items() if key in controls}

    def is_control_visible(
        self, control: ControlDefinition, values: dict[str, Any] | None = None
    ) -> bool:
        if values is None:
            values = self.get_settings()
        return self.manager.settings_resolver.is_visible(control, values)

    def get_active_controls(self) -> dict[str, ControlDefinition]:
        """Controls visible for the current settings, in declaration order."""
        store = self.store
        if self._active_controls is None or self._active_controls[0] != store.version:
            active = self.manager.settings_resolver.get_active_controls(
                store.get(), self.get_controls_settings()
            )
            self._active_controls = (store.version, active)
        return dict(self._active_controls[1])

    def get_active_settings(self) -> dict[str, Any]:
        """Every setting key, None unless its control is active."""
        active = self.get_active_controls()
        return {
            key: (value if key in active else None) for key, value in self._settings.items()
        }

    def parse_dynamic_settings(
        self,
        settings: dict[str, Any],
        all_settings: dict[str, Any],
        controls: dict[str, ControlDefinition] | None = None,
    ) -> dict[str, Any]:
        if controls is None:
            controls = self.get_controls()
        return self.manager.settings_resolver.parse_dynamic_settings(settings, controls, all_settings)

    def get_settings_for_display(self, setting_key: str | None = None) -> Any:
        """Active settings with dynamic values resolved."""
        if setting_key:
            settings = {setting_key: self.get_settings(setting_key)}
        else:
            settings = self.get_active_settings()

        parsed = self.parse_dynamic_settings(settings, copy.deepcopy(self.get_settings()))

        if setting_key:
            return parsed[setting_key]
        return parsed

    def get_frontend_settings_keys(self) -> list[str]:
        return [
            control.name for control in self.get_controls().values() if control.frontend_available
        ]

    def get_frontend_settings(self) -> dict[str, Any]:
        """Active settings exposed to the frontend, empty values dropped."""
        keys = set(self.get_frontend_settings_keys())
        return {
            key: value
            for key, value in self.get_active_settings().items()
            if key in keys and value is not None and value != ""
        }

    def filter_controls_settings(
        self,
        callback: Callable[[Any, ControlDefinition], Any],
        settings: dict[str, Any] | None = None,
        controls: dict[str, ControlDefinition] | None = None,
    ) -> dict[str, Any]:
        return self.manager.settings_resolver.filter_controls_settings(
            callback,
            settings or self.get_settings(),
            controls or self.get_controls(),
        )

    def get_style_controls(
        self, controls: dict[str, ControlDefinition] | None = None
    ) -> dict[str, ControlDefinition]:
        if controls is None:
            controls = self.get_active_controls()
        return self.manager.settings_resolver.get_style_controls(controls)

    def get_class_controls(self) -> dict[str, ControlDefinition]:
        return {
            key: control
            for key, control in self.get_active_controls().items()
            if control.prefix_class is not None
        }
