"""Controlstack Exceptions

Usage errors are raised when the builder API is misused while controls are
being declared. They are fatal for the current registration pass.
"""

from __future__ import annotations


class ControlStackError(Exception):
    """Base exception for all controlstack errors."""

    pass


class UsageError(ControlStackError):
    """Raised when the builder API is used incorrectly."""

    pass


class SectionAlreadyOpenError(UsageError):
    """Raised when a section is started before the previous one ended."""

    def __init__(self, section_id: str):
        self.section_id = section_id
        super().__init__(
            f"You can't start a section before the end of the previous section: `{section_id}`"
        )


class NoOpenSectionError(UsageError):
    """Raised when a control is added (or a section ended) outside of a section."""

    def __init__(self, control_id: str | None = None):
        self.control_id = control_id
        if control_id is None:
            message = "There is no open section to end"
        else:
            message = (
                f"Cannot add control `{control_id}` outside of a section "
                "(use `start_controls_section`)"
            )
        super().__init__(message)


class TabsAlreadyOpenError(UsageError):
    """Raised when a tabs group is started while another one is open."""

    def __init__(self, tabs_id: str):
        self.tabs_id = tabs_id
        super().__init__(
            f"You can't start tabs before the end of the previous tabs: `{tabs_id}`"
        )


class NoOpenTabsError(UsageError):
    """Raised when a tab is started or ended without an open tabs group."""

    def __init__(self, tab_id: str | None = None):
        self.tab_id = tab_id
        super().__init__(
            f"There is no open tabs group for tab `{tab_id}`"
            if tab_id
            else "There is no open tab to end"
        )


class TabAlreadyOpenError(UsageError):
    """Raised when an inner tab is started while another one is open."""

    def __init__(self, tab_id: str):
        self.tab_id = tab_id
        super().__init__(
            f"You can't start a tab before the end of the previous tab: `{tab_id}`"
        )


class InjectionAlreadyOpenError(UsageError):
    """Raised when an injection is started while another one is open."""

    def __init__(self) -> None:
        super().__init__(
            "A controls injection is already opened. Please close current "
            "injection before starting a new one (use `end_injection`)"
        )


class InvalidPositionError(UsageError):
    """Raised when a position descriptor cannot be resolved."""

    def __init__(self, position: dict):
        self.position = position
        super().__init__(f"Cannot resolve position: {position}")


class PopoverError(UsageError):
    """Raised when a popover boundary cannot be applied."""

    pass


class ControlAlreadyExistsError(UsageError):
    """Raised when a control key is added twice without `overwrite`."""

    def __init__(self, control_id: str):
        self.control_id = control_id
        super().__init__(f"Cannot redeclare control with same name: `{control_id}`")


class ControlNotFoundError(UsageError):
    """Raised when a control key does not exist in the stack."""

    def __init__(self, control_id: str):
        self.control_id = control_id
        super().__init__(f"Control not found: `{control_id}`")


class UnknownControlTypeError(UsageError):
    """Raised when a control declares a type that is not registered."""

    def __init__(self, control_type: str):
        self.control_type = control_type
        super().__init__(f"Control type `{control_type}` not found")


class UnknownGroupControlError(UsageError):
    """Raised when a group control name is not registered."""

    def __init__(self, group_name: str):
        self.group_name = group_name
        super().__init__(f"Group `{group_name}` not found")


class InvalidControlError(UsageError):
    """Raised when control args do not describe a valid control."""

    def __init__(self, control_id: str, reason: str):
        self.control_id = control_id
        self.reason = reason
        super().__init__(f"Invalid control `{control_id}`: {reason}")


class SectionArgsConflictError(UsageError):
    """Raised when `section`/`tab` args are passed inside an open section."""

    def __init__(self, control_id: str):
        self.control_id = control_id
        super().__init__(
            f"Cannot redeclare control with `tab` or `section` args inside section: `{control_id}`"
        )


class SchemaError(ControlStackError):
    """Raised when a declarative stack schema is invalid."""

    pass
