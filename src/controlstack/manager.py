"""Controls Manager

Process-local home of every control stack, keyed by the entity's unique
name, together with the registries and collaborators the stacks share.
"""

from __future__ import annotations

import logging

from controlstack.config import EngineConfig
from controlstack.hooks import HookRegistry
from controlstack.registry import ControlTypeRegistry, GroupControlRegistry
from controlstack.settings import DynamicTagEngine, SettingsResolver
from controlstack.store import ControlStore
from controlstack.visibility import ConditionsEngine

log = logging.getLogger(__name__)


class ControlsManager:
    """Stack cache plus injected registries."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        control_types: ControlTypeRegistry | None = None,
        groups: GroupControlRegistry | None = None,
        hooks: HookRegistry | None = None,
        conditions: ConditionsEngine | None = None,
        tag_engine: DynamicTagEngine | None = None,
    ):
        self.config = config or EngineConfig()
        self.control_types = control_types or ControlTypeRegistry.with_builtins()
        self.groups = groups or GroupControlRegistry()
        self.hooks = hooks or HookRegistry()
        self.settings_resolver = SettingsResolver(
            self.control_types,
            config=self.config,
            conditions=conditions,
            tag_engine=tag_engine,
        )
        self._stacks: dict[str, ControlStore] = {}

    def get_element_stack(self, name: str) -> ControlStore | None:
        """The stack registered under `name`, or None if not opened yet."""
        return self._stacks.get(name)

    def open_stack(self, name: str) -> ControlStore:
        """Create an empty stack for `name`, replacing any previous one."""
        store = ControlStore(name, self.control_types, self.config)
        self._stacks[name] = store
        log.debug("Opened stack %s", name)
        return store

    def delete_stack(self, name: str) -> bool:
        return self._stacks.pop(name, None) is not None

    def stack_names(self) -> list[str]:
        return list(self._stacks)
