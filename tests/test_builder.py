"""Tests for the builder state machine and section/tab/popover declarations."""

import pytest

from controlstack.builder import BuilderState
from controlstack.exceptions import (
    ControlAlreadyExistsError,
    InjectionAlreadyOpenError,
    NoOpenSectionError,
    NoOpenTabsError,
    PopoverError,
    SectionAlreadyOpenError,
    SectionArgsConflictError,
    TabAlreadyOpenError,
    TabsAlreadyOpenError,
    UnknownGroupControlError,
    UsageError,
)
from controlstack.models import InjectionPoint, SectionContext


# =============================================================================
# BuilderState
# =============================================================================


class TestBuilderState:
    def test_section_nesting(self):
        """A second section cannot open until the first one closes."""
        state = BuilderState()
        state.open_section(SectionContext(section="a"))
        with pytest.raises(SectionAlreadyOpenError, match="`a`"):
            state.open_section(SectionContext(section="b"))
        assert state.close_section().section == "a"
        with pytest.raises(NoOpenSectionError):
            state.close_section()

    def test_tabs_nesting(self):
        """Tabs groups and inner tabs follow their own nesting rules."""
        state = BuilderState()
        with pytest.raises(NoOpenTabsError):
            state.open_tab("normal")

        state.open_tabs("tabs")
        with pytest.raises(TabsAlreadyOpenError):
            state.open_tabs("other")

        state.open_tab("normal")
        with pytest.raises(TabAlreadyOpenError):
            state.open_tab("hover")

        state.close_tab()
        assert state.tabs.tabs_wrapper == "tabs"
        assert state.tabs.inner_tab is None

        with pytest.raises(NoOpenTabsError):
            state.close_tab()

        state.close_tabs()
        assert state.tabs is None

    def test_popover_start_is_claimed_once(self):
        """Only the first control of a popover gets the start marker."""
        state = BuilderState()
        assert state.claim_popover_start() is False
        state.open_popover()
        assert state.popover_pending() is True
        assert state.claim_popover_start() is True
        assert state.popover_pending() is False
        assert state.claim_popover_start() is False
        state.close_popover()
        assert state.popover is None

    def test_popover_end_needs_a_control(self):
        """Ending a popover needs an open popover with at least one control."""
        state = BuilderState()
        with pytest.raises(PopoverError):
            state.close_popover()
        state.open_popover()
        with pytest.raises(PopoverError):
            state.close_popover()

    def test_injection(self):
        """Injection slots advance and override the live section context."""
        state = BuilderState(section=SectionContext(section="live"))
        assert state.next_injection_index() is None

        state.open_injection(InjectionPoint(index=4, section=SectionContext(section="target")))
        with pytest.raises(InjectionAlreadyOpenError):
            state.open_injection(InjectionPoint(index=0, section=SectionContext(section="x")))

        assert state.next_injection_index() == 4
        assert state.next_injection_index() == 5
        assert state.target_context()[0].section == "target"

        state.close_injection()
        assert state.target_context()[0].section == "live"

    def test_usage_errors_share_a_base(self):
        """Builder errors can be caught as UsageError."""
        assert issubclass(SectionAlreadyOpenError, UsageError)
        assert issubclass(PopoverError, UsageError)


# =============================================================================
# Sections
# =============================================================================


class TestSections:
    def test_controls_inherit_section_context(self, basic_widget):
        """Controls pick up the section id and tab of their section."""
        title = basic_widget.get_controls("title")
        body = basic_widget.get_controls("body")

        assert title.section == "section_a"
        assert title.tab == "content"
        assert body.section == "section_b"
        assert body.tab == "style"

    def test_second_section_without_end_fails(self, make_widget, manager):
        """The store keeps only what was added before the nesting error."""
        def register(widget):
            widget.start_controls_section("first", {})
            widget.add_control("a", {"type": "text"})
            widget.start_controls_section("second", {})

        widget = make_widget(register)
        with pytest.raises(SectionAlreadyOpenError):
            widget.get_controls()

        store = manager.get_element_stack("widget")
        assert store.keys() == ["first", "a"]

    def test_end_section_without_start(self, make_widget):
        """Ending a section that was never started fails."""
        widget = make_widget()
        with pytest.raises(NoOpenSectionError):
            widget.end_controls_section()

    def test_control_outside_section(self, make_widget):
        """Regular controls need an open section."""
        widget = make_widget(lambda w: w.add_control("orphan", {"type": "text"}))
        with pytest.raises(NoOpenSectionError, match="orphan"):
            widget.get_controls()

    def test_explicit_section_outside_section_is_allowed(self, make_widget):
        """An explicit section arg stands in for an open section."""
        widget = make_widget(lambda w: w.add_control("loose", {"type": "text", "section": "external"}))
        assert widget.get_controls("loose").section == "external"

    def test_section_args_inside_section_conflict(self, make_widget):
        """Section args cannot be overridden inside an open section."""
        def register(widget):
            widget.start_controls_section("s", {})
            widget.add_control("a", {"type": "text", "tab": "style"})

        with pytest.raises(SectionArgsConflictError):
            make_widget(register).get_controls()

    def test_section_condition_merges_with_control_condition(self, make_widget):
        """Section and control conditions are merged."""
        def register(widget):
            widget.start_controls_section("s", {"condition": {"skin": "pro"}})
            widget.add_control("a", {"type": "text", "condition": {"show": "yes"}})
            widget.end_controls_section()

        widget = make_widget(register)
        assert widget.get_controls("a").condition == {"skin": "pro", "show": "yes"}

    def test_overwrite_outside_section(self, basic_widget):
        """Overwriting an existing control works after registration."""
        basic_widget.add_control("title", {"label": "Renamed"}, {"overwrite": True})
        assert basic_widget.get_controls("title").get("label") == "Renamed"

    def test_overwrite_of_unknown_control_still_needs_section(self, basic_widget):
        """Overwrite does not bypass the section rule for new controls."""
        with pytest.raises(NoOpenSectionError):
            basic_widget.add_control("unknown", {"type": "text"}, {"overwrite": True})

    def test_duplicate_control(self, basic_widget):
        """Adding a control id twice fails."""
        basic_widget.start_injection({"of": "title"})
        with pytest.raises(ControlAlreadyExistsError):
            basic_widget.add_control("title", {"type": "text"})

    def test_update_section_propagates(self, basic_widget):
        """Section updates reach the controls of that section only."""
        basic_widget.update_control("section_a", {"condition": {"mode": "pro"}})
        assert basic_widget.get_controls("subtitle").condition == {"mode": "pro"}
        assert basic_widget.get_controls("body").condition is None

    def test_section_hooks(self, basic_widget, manager):
        """Section hooks fire globally and per section, and can inject controls."""
        events = []

        manager.hooks.add_action(
            "before_section_start", lambda stack, section_id, args: events.append(("start", section_id))
        )
        manager.hooks.add_action(
            "after_section_end", lambda stack, section_id, args: events.append(("end", section_id))
        )

        def inject(stack, args):
            stack.start_injection({"type": "section", "at": "end", "of": "section_a"})
            stack.add_control("injected", {"type": "text"})
            stack.end_injection()

        manager.hooks.add_action("widget/section_a/after_section_end", inject)

        keys = basic_widget.store.keys()

        assert events == [
            ("start", "section_a"),
            ("end", "section_a"),
            ("start", "section_b"),
            ("end", "section_b"),
        ]
        assert keys.index("injected") == keys.index("subtitle") + 1
        assert basic_widget.get_controls("injected").section == "section_a"


# =============================================================================
# Tabs and popovers
# =============================================================================


class TestTabs:
    def test_tab_context(self, make_widget):
        """Controls inside an inner tab carry the tabs wrapper and tab id."""
        def register(widget):
            widget.start_controls_section("s", {"tab": "style"})
            widget.start_controls_tabs("tabs")
            widget.start_controls_tab("normal", {"label": "Normal"})
            widget.add_control("color", {"type": "color"})
            widget.end_controls_tab()
            widget.start_controls_tab("hover", {"label": "Hover"})
            widget.add_control("hover_color", {"type": "color"})
            widget.end_controls_tab()
            widget.end_controls_tabs()
            widget.add_control("after_tabs", {"type": "number"})
            widget.end_controls_section()

        widget = make_widget(register)

        assert widget.get_controls("tabs").type == "tabs"
        assert widget.get_controls("normal").type == "tab"
        assert widget.get_controls("normal").tabs_wrapper == "tabs"
        assert widget.get_controls("color").inner_tab == "normal"
        assert widget.get_controls("hover_color").inner_tab == "hover"
        assert widget.get_controls("after_tabs").tabs_wrapper is None

    def test_nested_tabs_rejected(self, make_widget):
        """A tabs group cannot open inside another one."""
        def register(widget):
            widget.start_controls_section("s", {})
            widget.start_controls_tabs("outer")
            widget.start_controls_tabs("inner")

        with pytest.raises(TabsAlreadyOpenError):
            make_widget(register).get_controls()

    def test_tab_without_end_rejected(self, make_widget):
        """An inner tab cannot open before the previous one ends."""
        def register(widget):
            widget.start_controls_section("s", {})
            widget.start_controls_tabs("tabs")
            widget.start_controls_tab("one", {})
            widget.start_controls_tab("two", {})

        with pytest.raises(TabAlreadyOpenError, match="`one`"):
            make_widget(register).get_controls()


class TestPopover:
    def test_boundaries(self, make_widget):
        """The first and last popover controls carry the start and end markers."""
        def register(widget):
            widget.start_controls_section("s", {})
            widget.add_control("toggle", {"type": "switcher"})
            widget.start_popover()
            widget.add_control("x", {"type": "number"})
            widget.add_control("y", {"type": "number"})
            widget.end_popover()
            widget.add_control("after", {"type": "number"})
            widget.end_controls_section()

        widget = make_widget(register)

        assert widget.get_controls("toggle").popover is None
        assert widget.get_controls("x").popover == {"start": True}
        assert widget.get_controls("y").popover == {"end": True}
        assert widget.get_controls("after").popover is None

    def test_single_control_popover(self, make_widget):
        """A single-control popover carries both markers."""
        def register(widget):
            widget.start_controls_section("s", {})
            widget.start_popover()
            widget.add_control("only", {"type": "number"})
            widget.end_popover()
            widget.end_controls_section()

        assert make_widget(register).get_controls("only").popover == {"start": True, "end": True}

    def test_failed_add_does_not_take_the_start_marker(self, make_widget):
        """A rejected add inside a popover leaves the start for the next control."""

        def register(widget):
            widget.start_controls_section("s", {})
            widget.add_control("title", {"type": "text"})
            widget.start_popover()
            with pytest.raises(ControlAlreadyExistsError):
                widget.add_control("title", {"type": "text"})
            widget.add_control("x", {"type": "number"})
            widget.end_popover()
            widget.end_controls_section()

        widget = make_widget(register)

        assert widget.get_controls("title").popover is None
        assert widget.get_controls("x").popover == {"start": True, "end": True}

    def test_empty_popover_rejected(self, make_widget):
        """Ending an empty popover fails."""
        def register(widget):
            widget.start_controls_section("s", {})
            widget.start_popover()
            widget.end_popover()

        with pytest.raises(PopoverError):
            make_widget(register).get_controls()


class TestGroups:
    def test_group_expands_into_controls(self, make_widget):
        """Group fields become prefixed controls, honoring exclude and fields_options."""
        def register(widget):
            widget.start_controls_section("s", {"tab": "style"})
            widget.add_group_control(
                "border",
                {"name": "box_border", "exclude": ["color"], "fields_options": {"type": {"default": "dashed"}}},
            )
            widget.end_controls_section()

        widget = make_widget(register)

        assert widget.store.keys() == ["s", "box_border_type", "box_border_width"]
        assert widget.get_controls("box_border_type").default == "dashed"
        assert widget.get_controls("box_border_width").section == "s"

    def test_positioned_group_keeps_field_order(self, basic_widget):
        """A positioned group lands as one block, fields in declaration order."""
        basic_widget.add_group_control("border", {"name": "b"}, {"position": {"of": "title"}})

        assert basic_widget.store.keys() == [
            "section_a",
            "heading",
            "title",
            "b_type",
            "b_width",
            "b_color",
            "subtitle",
            "section_b",
            "body",
        ]
        assert basic_widget.get_controls("b_color").section == "section_a"
        assert basic_widget.get_injection_point() is None

    def test_unknown_group(self, basic_widget):
        """Unknown group names are rejected."""
        with pytest.raises(UnknownGroupControlError, match="typography"):
            basic_widget.add_group_control("typography", {})
