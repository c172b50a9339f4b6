"""Section lifecycle hooks.

External code subscribes to section events to extend a stack it does not
own, typically by injecting controls:

    def add_badge(stack, section_id, args):
        stack.start_injection({"of": "title"})
        stack.add_control("badge", {"type": "text"})
        stack.end_injection()

    hooks.add_action("heading/section_title/after_section_end", add_badge)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

log = logging.getLogger(__name__)

BEFORE_SECTION_START = "before_section_start"
AFTER_SECTION_START = "after_section_start"
BEFORE_SECTION_END = "before_section_end"
AFTER_SECTION_END = "after_section_end"

SECTION_EVENTS = (
    BEFORE_SECTION_START,
    AFTER_SECTION_START,
    BEFORE_SECTION_END,
    AFTER_SECTION_END,
)


def section_event(stack_name: str, section_id: str, event: str) -> str:
    """Event name scoped to one section of one stack."""
    return f"{stack_name}/{section_id}/{event}"


class HookRegistry:
    """Ordered action callbacks keyed by event name."""

    def __init__(self) -> None:
        self._actions: dict[str, list[Callable[..., Any]]] = defaultdict(list)

    def add_action(self, event: str, callback: Callable[..., Any]) -> None:
        self._actions[event].append(callback)

    def remove_action(self, event: str, callback: Callable[..., Any]) -> bool:
        callbacks = self._actions.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)
            return True
        return False

    def has_action(self, event: str) -> bool:
        return bool(self._actions.get(event))

    def do_action(self, event: str, *args: Any) -> None:
        for callback in list(self._actions.get(event, [])):
            log.debug("Running %s action %r", event, callback)
            callback(*args)
