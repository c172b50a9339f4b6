"""Engine configuration.

Loaded from an optional YAML file; every field has a default so a missing
file yields a fully usable configuration.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

RESPONSIVE_DESKTOP = "desktop"
RESPONSIVE_TABLET = "tablet"
RESPONSIVE_MOBILE = "mobile"

TYPE_SECTION = "section"
TYPE_TABS = "tabs"
TYPE_TAB = "tab"
TYPE_REPEATER = "repeater"
TYPE_WP_WIDGET = "wp_widget"


class EngineConfig(BaseModel):
    """Configuration for control stacks."""

    devices: list[str] = Field(
        default_factory=lambda: [RESPONSIVE_DESKTOP, RESPONSIVE_TABLET, RESPONSIVE_MOBILE],
        description="Responsive devices in canonical order, desktop first",
    )
    special_types: list[str] = Field(
        default_factory=lambda: [TYPE_SECTION, TYPE_WP_WIDGET],
        description="Control types that may be added outside of a section",
    )
    default_control_type: str = "text"
    default_tab: str = "content"
    tabs: dict[str, str] = Field(
        default_factory=lambda: {
            "content": "Content",
            "style": "Style",
            "advanced": "Advanced",
            "responsive": "Responsive",
            "layout": "Layout",
            "settings": "Settings",
        },
        description="Registered settings tabs (id -> label)",
    )
    dynamic_prefix: str = "dynamic_"

    @field_validator("devices")
    @classmethod
    def _devices_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("At least one responsive device is required")
        if len(set(value)) != len(value):
            raise ValueError("Responsive devices must be unique")
        return value

    @property
    def desktop_device(self) -> str:
        """The base device: its variant keeps the unsuffixed control id."""
        return self.devices[0]

    @classmethod
    def load(cls, path: Path | str) -> "EngineConfig":
        """Load config from a yaml file"""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.model_validate(data)
