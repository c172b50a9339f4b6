"""controlstack - Control stack engine

Declares, orders, groups and resolves the typed settings fields (controls)
of UI element instances, and derives display-ready settings from stored
values.
"""

from controlstack.conditions import Conditions
from controlstack.config import EngineConfig
from controlstack.exceptions import ControlStackError, SchemaError, UsageError
from controlstack.hooks import HookRegistry
from controlstack.manager import ControlsManager
from controlstack.models import (
    ControlDefinition,
    ControlOptions,
    InjectionPoint,
    Position,
    SectionContext,
    TabsContext,
)
from controlstack.registry import (
    ControlType,
    ControlTypeRegistry,
    DataControlType,
    FieldsGroupControl,
    GroupControl,
    GroupControlRegistry,
    MultipleControlType,
    RepeaterControlType,
    UIControlType,
)
from controlstack.schema import SchemaStack, StackSchema, load_stack_schema, load_stack_schema_from_string
from controlstack.settings import SettingsResolver
from controlstack.stack import ControlsStack
from controlstack.store import ControlStore
from controlstack.visibility import is_control_visible

__all__ = [
    # Entities
    "ControlsStack",
    "SchemaStack",
    # Engine parts
    "ControlsManager",
    "ControlStore",
    "SettingsResolver",
    "Conditions",
    "HookRegistry",
    "EngineConfig",
    "is_control_visible",
    # Models
    "ControlDefinition",
    "ControlOptions",
    "InjectionPoint",
    "Position",
    "SectionContext",
    "TabsContext",
    # Registries
    "ControlType",
    "ControlTypeRegistry",
    "DataControlType",
    "MultipleControlType",
    "RepeaterControlType",
    "UIControlType",
    "GroupControl",
    "FieldsGroupControl",
    "GroupControlRegistry",
    # Schemas
    "StackSchema",
    "load_stack_schema",
    "load_stack_schema_from_string",
    # Errors
    "ControlStackError",
    "UsageError",
    "SchemaError",
]
