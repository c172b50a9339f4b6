"""Shared fixtures for controlstack tests."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from controlstack import (
    ControlsManager,
    ControlsStack,
    ControlStore,
    ControlTypeRegistry,
    FieldsGroupControl,
    GroupControlRegistry,
)


class FakeTagEngine:
    """Tag engine double: wraps values so tests can spot parsed ones."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, dict]] = []

    def parse_tags(self, value: Any, dynamic: dict) -> Any:
        self.calls.append((value, dynamic))
        return f"parsed:{value}"


class Widget(ControlsStack):
    """A stack whose controls come from a plain callback."""

    def __init__(
        self,
        register: Callable[[ControlsStack], None] | None = None,
        data: dict[str, Any] | None = None,
        manager: ControlsManager | None = None,
        name: str = "widget",
    ):
        self._register = register
        self._name = name
        self.register_calls = 0
        super().__init__(data, manager=manager)

    def get_name(self) -> str:
        return self._name

    def register_controls(self) -> None:
        self.register_calls += 1
        if self._register is not None:
            self._register(self)


def register_basic(widget: ControlsStack) -> None:
    """[section_a, heading, title, subtitle, section_b, body]"""
    widget.start_controls_section("section_a", {"label": "A"})
    widget.add_control("heading", {"type": "heading", "label": "Heading"})
    widget.add_control("title", {"type": "text", "default": "Hello"})
    widget.add_control("subtitle", {"type": "text"})
    widget.end_controls_section()

    widget.start_controls_section("section_b", {"label": "B", "tab": "style"})
    widget.add_control("body", {"type": "textarea"})
    widget.end_controls_section()


@pytest.fixture
def tag_engine() -> FakeTagEngine:
    return FakeTagEngine()


@pytest.fixture
def groups() -> GroupControlRegistry:
    return GroupControlRegistry(
        [
            FieldsGroupControl(
                "border",
                {
                    "type": {"type": "select", "default": "solid"},
                    "width": {"type": "dimensions"},
                    "color": {"type": "color"},
                },
            )
        ]
    )


@pytest.fixture
def manager(tag_engine: FakeTagEngine, groups: GroupControlRegistry) -> ControlsManager:
    return ControlsManager(groups=groups, tag_engine=tag_engine)


@pytest.fixture
def make_widget(manager: ControlsManager):
    """Factory: make_widget(register, data=None, name="widget")."""

    def _make(
        register: Callable[[ControlsStack], None] | None = None,
        data: dict[str, Any] | None = None,
        name: str = "widget",
    ) -> Widget:
        return Widget(register, data=data, manager=manager, name=name)

    return _make


@pytest.fixture
def basic_widget(make_widget) -> Widget:
    return make_widget(register_basic)


@pytest.fixture
def store() -> ControlStore:
    return ControlStore("test", ControlTypeRegistry.with_builtins())
