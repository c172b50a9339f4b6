"""Declarative stack schemas.

A stack can be declared in YAML instead of code:

    name: heading
    sections:
      - id: section_title
        label: Title
        controls:
          - id: title
            type: text
            default: Hello
          - id: align
            type: choose
            responsive: true
          - group: typography
            name: title_typography
          - tabs: title_tabs
            items:
              - id: tab_normal
                label: Normal
                controls:
                  - {id: color, type: color}
          - popover:
              - {id: shadow_x, type: number}
              - {id: shadow_y, type: number}

Every entry is replayed through the builder API, so schemas obey the same
nesting rules as code-declared stacks. Keys that are not part of the schema
structure (label, type, default, ...) are passed through as control args.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from controlstack.exceptions import SchemaError
from controlstack.manager import ControlsManager
from controlstack.stack import ControlsStack


class ControlEntry(BaseModel):
    """One entry of a section: a control, a group, a tabs block or a popover."""

    model_config = ConfigDict(extra="allow")

    id: str | None = Field(default=None, description="Control id")
    responsive: bool = Field(default=False, description="Expand into per-device variants")
    position: dict[str, Any] | None = Field(default=None, description="Injection position")
    group: str | None = Field(default=None, description="Group control name")
    tabs: str | None = Field(default=None, description="Tabs group id")
    items: list[TabEntry] = Field(default_factory=list, description="Tabs of a tabs group")
    popover: list[ControlEntry] | None = Field(default=None, description="Popover controls")

    @model_validator(mode="after")
    def check_kind(self) -> "ControlEntry":
        """Validate that the entry is exactly one kind of declaration."""
        kinds = [
            self.id is not None,
            self.group is not None,
            self.tabs is not None,
            self.popover is not None,
        ]
        if sum(kinds) != 1:
            raise ValueError("Entry must have exactly one of 'id', 'group', 'tabs' or 'popover'")
        if self.items and self.tabs is None:
            raise ValueError("Only a 'tabs' entry can have 'items'")
        return self

    @property
    def args(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def declare(self, stack: ControlsStack) -> None:
        options = {"position": self.position} if self.position else {}

        if self.group is not None:
            stack.add_group_control(self.group, self.args, options)
        elif self.tabs is not None:
            stack.start_controls_tabs(self.tabs)
            for item in self.items:
                item.declare(stack)
            stack.end_controls_tabs()
        elif self.popover is not None:
            stack.start_popover()
            for entry in self.popover:
                entry.declare(stack)
            stack.end_popover()
        elif self.responsive:
            stack.add_responsive_control(self.id, self.args, options)
        else:
            stack.add_control(self.id, self.args, options)


class TabEntry(BaseModel):
    """A single tab of a tabs group."""

    model_config = ConfigDict(extra="allow")

    id: str
    controls: list[ControlEntry] = Field(default_factory=list)

    def declare(self, stack: ControlsStack) -> None:
        stack.start_controls_tab(self.id, dict(self.model_extra or {}))
        for entry in self.controls:
            entry.declare(stack)
        stack.end_controls_tab()


class SectionEntry(BaseModel):
    """A section and the controls it contains."""

    model_config = ConfigDict(extra="allow")

    id: str
    controls: list[ControlEntry] = Field(default_factory=list)

    def declare(self, stack: ControlsStack) -> None:
        stack.start_controls_section(self.id, dict(self.model_extra or {}))
        for entry in self.controls:
            entry.declare(stack)
        stack.end_controls_section()


ControlEntry.model_rebuild()
TabEntry.model_rebuild()
SectionEntry.model_rebuild()


class StackSchema(BaseModel):
    """A whole stack: its name and its sections, in order."""

    name: str
    sections: list[SectionEntry] = Field(default_factory=list)

    def build(self, stack: ControlsStack) -> None:
        """Declare every section of this schema on `stack`."""
        for section in self.sections:
            section.declare(stack)


class SchemaStack(ControlsStack):
    """An entity whose controls come from a StackSchema."""

    def __init__(
        self,
        schema: StackSchema,
        data: dict[str, Any] | None = None,
        manager: ControlsManager | None = None,
    ):
        self.schema = schema
        super().__init__(data, manager=manager)

    def get_name(self) -> str:
        return self.schema.name

    def register_controls(self) -> None:
        self.schema.build(self)


def load_stack_schema_from_string(content: str) -> StackSchema:
    """Load a stack schema from a YAML string.

    Raises:
        SchemaError: If the YAML is malformed or does not describe a stack.
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise SchemaError("Stack schema must be a mapping")

    try:
        return StackSchema.model_validate(data)
    except ValidationError as e:
        raise SchemaError(f"Invalid stack schema: {e}") from e


def load_stack_schema(path: str | Path) -> StackSchema:
    """Load a stack schema from a YAML file."""
    with open(path) as f:
        return load_stack_schema_from_string(f.read())
