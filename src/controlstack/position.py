"""Position Resolver

Turns a symbolic position ({type, at, of}) into a concrete insertion index
plus the section/tab context controls inserted there should inherit.

Valid combinations:
    type="control": at in {"before", "after"} (default "after")
    type="section": at in {"start", "end"}    (default "end")

Resolution never raises for a bad position; it returns None and leaves the
store untouched.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from controlstack.models import InjectionPoint, Position, TabsContext
from controlstack.store import ControlStore

log = logging.getLogger(__name__)

VALID_AT = {
    "control": ("before", "after"),
    "section": ("start", "end"),
}


class PositionResolver:
    """Resolves positions against one control store."""

    def __init__(self, store: ControlStore):
        self.store = store

    def resolve(self, position: Position | dict[str, Any]) -> InjectionPoint | None:
        """Compute the injection point for `position`, or None if it is invalid."""
        if not isinstance(position, Position):
            try:
                position = Position.model_validate(position)
            except ValidationError:
                log.warning("Invalid position arguments: %s", position)
                return None

        at = position.resolved_at()
        if at not in VALID_AT[position.type]:
            log.warning(
                "Invalid position arguments. Use `before` / `after` for control "
                "or `start` / `end` for section (got %s/%s)",
                position.type,
                at,
            )
            return None

        keys = self.store.keys()

        target_index = self.store.index_of(position.of)
        if target_index is None:
            log.warning("Position target `%s` not found in %s", position.of, self.store.name)
            return None

        section_index = target_index
        while section_index >= 0 and not self.store.is_section(keys[section_index]):
            section_index -= 1
        if section_index < 0:
            log.warning("Position target `%s` is not inside a section", position.of)
            return None

        if position.type == "section":
            target_index += 1
            if at == "end":
                while target_index < len(keys) and not self.store.is_section(keys[target_index]):
                    target_index += 1

        target_control = self.store.get_by_index(target_index)

        if at == "after":
            target_index += 1

        injection = InjectionPoint(
            index=target_index,
            section=self.store.section_args(keys[section_index]),
        )

        if target_control is not None and target_control.tabs_wrapper:
            injection.tab = TabsContext(
                tabs_wrapper=target_control.tabs_wrapper,
                inner_tab=target_control.inner_tab,
            )

        return injection
