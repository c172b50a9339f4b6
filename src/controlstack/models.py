"""Data model for control stacks.

A control is a named, typed settings field. Controls are pydantic models that
allow extra keys, so arbitrary presentation args (label, selectors, options...)
travel with the control untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ControlDefinition(BaseModel):
    """A single control in a stack."""

    model_config = ConfigDict(extra="allow")

    name: str
    type: str
    default: Any = None
    section: str | None = None
    tab: str | None = None
    condition: dict[str, Any] | None = None
    conditions: dict[str, Any] | None = None
    responsive: dict[str, Any] | None = None
    tabs_wrapper: str | None = None
    inner_tab: str | None = None
    popover: dict[str, Any] | None = None
    selectors: dict[str, Any] | None = None
    dynamic: dict[str, Any] | None = None
    frontend_available: bool = False
    prefix_class: str | None = None
    fields: list[ControlDefinition] | None = Field(
        default=None, description="Row schema of a repeater control"
    )

    @property
    def has_default(self) -> bool:
        return "default" in self.model_fields_set

    def as_args(self) -> dict[str, Any]:
        """The explicitly set args of this control, extras included."""
        return self.model_dump(exclude_unset=True)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a declared field or an extra arg by name."""
        if key in type(self).model_fields:
            return getattr(self, key)
        return (self.model_extra or {}).get(key, default)


ControlDefinition.model_rebuild()


class Position(BaseModel):
    """Symbolic insertion point: before/after a control, start/end of a section."""

    type: Literal["control", "section"] = "control"
    at: str | None = None
    of: str

    def resolved_at(self) -> str:
        if self.at is not None:
            return self.at
        return "end" if self.type == "section" else "after"


@dataclass
class SectionContext:
    """The currently open section and the args its controls inherit."""

    section: str
    tab: str | None = None
    condition: dict[str, Any] | None = None

    def as_args(self) -> dict[str, Any]:
        args: dict[str, Any] = {"section": self.section}
        if self.tab is not None:
            args["tab"] = self.tab
        if self.condition is not None:
            args["condition"] = dict(self.condition)
        return args


@dataclass
class TabsContext:
    """The currently open tabs group and, inside it, the open inner tab."""

    tabs_wrapper: str
    inner_tab: str | None = None

    def as_args(self) -> dict[str, Any]:
        args: dict[str, Any] = {"tabs_wrapper": self.tabs_wrapper}
        if self.inner_tab is not None:
            args["inner_tab"] = self.inner_tab
        return args


@dataclass
class PopoverContext:
    """Open popover; `initialized` once its start boundary has been marked."""

    initialized: bool = False


@dataclass
class InjectionPoint:
    """Where injected controls land and which context they inherit."""

    index: int
    section: SectionContext
    tab: TabsContext | None = None


@dataclass
class ControlOptions:
    """Options accepted by `add_control` / `update_control`.

    recursive: deep-merge patches instead of a shallow merge. An explicit
    ``False`` also stops a section update from propagating to its controls.
    """

    overwrite: bool = False
    position: Position | dict[str, Any] | None = None
    index: int | None = None
    recursive: bool | None = None

    @classmethod
    def coerce(cls, options: "ControlOptions | dict[str, Any] | None") -> "ControlOptions":
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        return cls(**dict(options))


@dataclass
class EntityData:
    """Raw entity data supplied by the caller: id plus stored settings."""

    id: str | int = 0
    settings: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "EntityData":
        data = data or {}
        settings = data.get("settings") or {}
        if not isinstance(settings, dict):
            raise TypeError("Entity 'settings' must be a mapping")
        return cls(id=data.get("id", 0), settings=dict(settings))
