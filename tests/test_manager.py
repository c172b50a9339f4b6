"""Tests for the controls manager and stack caching."""

from controlstack import ControlsManager, ControlsStack, HookRegistry


def section(section_id):
    def register(widget):
        widget.start_controls_section(section_id, {})
        widget.end_controls_section()

    return register


class Counter(ControlsStack):
    registrations = 0

    def get_name(self) -> str:
        return "counter"

    def register_controls(self) -> None:
        type(self).registrations += 1
        self.start_controls_section("s", {})
        self.add_control("value", {"type": "number", "default": 0})
        self.end_controls_section()


class TestControlsManager:
    def test_stack_is_registered_once_per_name(self, make_widget, manager):
        """Instances of one entity share a single registration."""
        first = make_widget(section("s"))
        second = make_widget(section("s"))

        assert first.store is second.store
        assert first.register_calls == 1
        assert second.register_calls == 0
        assert manager.stack_names() == ["widget"]

    def test_instances_keep_their_own_settings(self):
        """Shared controls, separate settings."""
        manager = ControlsManager()
        Counter.registrations = 0

        a = Counter({"settings": {"value": 1}}, manager=manager)
        b = Counter({"settings": {"value": 2}}, manager=manager)

        assert a.get_settings("value") == 1
        assert b.get_settings("value") == 2
        assert Counter.registrations == 1

    def test_names_are_isolated(self, make_widget):
        """Different names get different stacks."""
        one = make_widget(section("one"), name="one")
        two = make_widget(section("two"), name="two")

        assert one.store.keys() == ["one"]
        assert two.store.keys() == ["two"]

    def test_delete_stack_forces_registration(self, make_widget, manager):
        """Deleting a stack makes the next access register again."""
        widget = make_widget(section("s"))
        widget.store

        assert manager.delete_stack("widget") is True
        assert manager.delete_stack("widget") is False
        assert manager.get_element_stack("widget") is None

        widget.store
        assert widget.register_calls == 2

    def test_default_collaborators(self):
        """A bare manager builds its own registries."""
        manager = ControlsManager()

        assert "repeater" in manager.control_types
        assert isinstance(manager.hooks, HookRegistry)
        assert manager.settings_resolver.tag_engine is None


class TestHookRegistry:
    def test_actions_run_in_order(self):
        """Actions run in the order they were added."""
        hooks = HookRegistry()
        calls = []
        hooks.add_action("event", lambda value: calls.append(("first", value)))
        hooks.add_action("event", lambda value: calls.append(("second", value)))

        hooks.do_action("event", 1)

        assert calls == [("first", 1), ("second", 1)]

    def test_remove_action(self):
        """Removed actions no longer run."""
        hooks = HookRegistry()

        def callback():
            pass

        hooks.add_action("event", callback)
        assert hooks.has_action("event")
        assert hooks.remove_action("event", callback) is True
        assert hooks.remove_action("event", callback) is False
        assert not hooks.has_action("event")

    def test_unknown_event_is_a_no_op(self):
        """Events without actions do nothing."""
        HookRegistry().do_action("nothing")
