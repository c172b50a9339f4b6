"""Builder state for declaring controls.

Tracks the open section, tabs group, popover and injection point while a
stack registers its controls. Every nesting rule is checked here, on plain
data, so the rules can be exercised without building a whole entity.

    Idle -> InSection -> InTabsGroup -> InInnerTab
    (each optionally InPopover; an injection point overlays all of them)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from controlstack.exceptions import (
    InjectionAlreadyOpenError,
    NoOpenSectionError,
    NoOpenTabsError,
    PopoverError,
    SectionAlreadyOpenError,
    TabAlreadyOpenError,
    TabsAlreadyOpenError,
)
from controlstack.models import (
    InjectionPoint,
    PopoverContext,
    SectionContext,
    TabsContext,
)

log = logging.getLogger(__name__)


@dataclass
class BuilderState:
    """Mutable declaration context of one stack."""

    section: SectionContext | None = None
    tabs: TabsContext | None = None
    popover: PopoverContext | None = None
    injection: InjectionPoint | None = None

    # --- Sections ---

    def check_can_open_section(self) -> None:
        if self.section is not None:
            raise SectionAlreadyOpenError(self.section.section)

    def open_section(self, context: SectionContext) -> None:
        self.check_can_open_section()
        self.section = context
        if self.injection is not None:
            self.injection.section = context
        log.debug("Opened section %s", context.section)

    def close_section(self) -> SectionContext:
        if self.section is None:
            raise NoOpenSectionError()
        closed, self.section = self.section, None
        log.debug("Closed section %s", closed.section)
        return closed

    # --- Tabs ---

    def check_can_open_tabs(self) -> None:
        if self.tabs is not None:
            raise TabsAlreadyOpenError(self.tabs.tabs_wrapper)

    def open_tabs(self, tabs_id: str) -> None:
        self.check_can_open_tabs()
        self.tabs = TabsContext(tabs_wrapper=tabs_id)
        if self.injection is not None:
            self.injection.tab = TabsContext(tabs_wrapper=tabs_id)

    def close_tabs(self) -> None:
        self.tabs = None

    def check_can_open_tab(self, tab_id: str) -> TabsContext:
        if self.tabs is None:
            raise NoOpenTabsError(tab_id)
        if self.tabs.inner_tab:
            raise TabAlreadyOpenError(self.tabs.inner_tab)
        return self.tabs

    def open_tab(self, tab_id: str) -> None:
        tabs = self.check_can_open_tab(tab_id)
        tabs.inner_tab = tab_id
        if self.injection is not None and self.injection.tab is not None:
            self.injection.tab.inner_tab = tab_id

    def close_tab(self) -> None:
        if self.tabs is None or not self.tabs.inner_tab:
            raise NoOpenTabsError()
        self.tabs.inner_tab = None

    # --- Popover ---

    def open_popover(self) -> None:
        self.popover = PopoverContext()

    def popover_pending(self) -> bool:
        """True while an open popover has no control yet."""
        return self.popover is not None and not self.popover.initialized

    def claim_popover_start(self) -> bool:
        """Mark the popover start as taken; True only for the first claim."""
        if not self.popover_pending():
            return False
        self.popover.initialized = True
        return True

    def close_popover(self) -> None:
        if self.popover is None:
            raise PopoverError("There is no open popover to end (use `start_popover`)")
        if not self.popover.initialized:
            raise PopoverError("Cannot end a popover before adding a control to it")
        self.popover = None

    # --- Injection ---

    def open_injection(self, point: InjectionPoint) -> None:
        if self.injection is not None:
            raise InjectionAlreadyOpenError()
        self.injection = point
        log.debug("Opened injection at index %d in section %s", point.index, point.section.section)

    def close_injection(self) -> None:
        self.injection = None

    def next_injection_index(self) -> int | None:
        """Claim the next injection slot; None when no injection is open."""
        if self.injection is None:
            return None
        index = self.injection.index
        self.injection.index += 1
        return index

    def target_context(self) -> tuple[SectionContext | None, TabsContext | None]:
        """The section/tab context a new control inherits."""
        section, tabs = self.section, self.tabs
        if self.injection is not None:
            section = self.injection.section
            if self.injection.tab is not None:
                tabs = self.injection.tab
        return section, tabs
