"""Tests for responsive control expansion."""

import pytest

from controlstack import ControlsManager, ControlsStack, EngineConfig
from controlstack.responsive import device_keys, expand_responsive

DEVICES = ["desktop", "tablet", "mobile"]


class Laptop(ControlsStack):
    def get_name(self) -> str:
        return "laptop"

    def register_controls(self) -> None:
        self.start_controls_section("s", {})
        self.add_responsive_control("x", {"type": "number"})
        self.end_controls_section()


class TestExpandResponsive:
    def test_per_device_defaults(self):
        """Each device takes its own default."""
        variants = dict(
            expand_responsive("x", {"type": "number", "default": 5, "mobile_default": 2}, DEVICES)
        )

        assert list(variants) == ["x", "x_tablet", "x_mobile"]
        assert variants["x"] == {"type": "number", "default": 5, "responsive": {"max": "desktop"}}
        assert variants["x_tablet"] == {"type": "number", "responsive": {"max": "tablet"}}
        assert variants["x_mobile"] == {"type": "number", "default": 2, "responsive": {"max": "mobile"}}

    def test_devices_subset_keeps_canonical_order(self):
        """Only requested devices are expanded, in canonical order."""
        variants = expand_responsive("x", {"default": 5, "devices": ["mobile", "desktop"]}, DEVICES)

        assert [key for key, _ in variants] == ["x", "x_mobile"]
        for _, args in variants:
            assert args["responsive"]["devices"] == ["desktop", "mobile"]
            assert "devices" not in args
        assert variants[0][1]["default"] == 5
        assert "default" not in variants[1][1]

    def test_device_args_override_only_their_device(self):
        """device_args apply to their device only."""
        variants = dict(
            expand_responsive(
                "gap",
                {"label": "Gap", "device_args": {"tablet": {"label": "Tablet gap"}}},
                DEVICES,
            )
        )

        assert variants["gap"]["label"] == "Gap"
        assert variants["gap_tablet"]["label"] == "Tablet gap"
        assert variants["gap_mobile"]["label"] == "Gap"
        assert all("device_args" not in args for args in variants.values())

    def test_min_affected_device(self):
        """min_affected_device sets responsive.min per device."""
        variants = dict(
            expand_responsive("x", {"min_affected_device": {"desktop": "tablet"}}, DEVICES)
        )

        assert variants["x"]["responsive"] == {"max": "desktop", "min": "tablet"}
        assert variants["x_tablet"]["responsive"] == {"max": "tablet"}
        assert "min_affected_device" not in variants["x_mobile"]

    @pytest.mark.parametrize(
        "key, expected",
        [("align", "align-"), ("align_tablet", "align-tablet-"), ("align_mobile", "align-mobile-")],
    )
    def test_prefix_class(self, key, expected):
        """The prefix class placeholder takes the device suffix."""
        variants = dict(expand_responsive("align", {"prefix_class": "align%s-"}, DEVICES))
        assert variants[key]["prefix_class"] == expected

    def test_prefix_class_without_placeholder_is_kept(self):
        """A prefix class without placeholder is copied as is."""
        variants = dict(expand_responsive("align", {"prefix_class": "align-"}, DEVICES))
        assert {args["prefix_class"] for args in variants.values()} == {"align-"}

    def test_args_are_not_mutated(self):
        """Expansion leaves the caller's args untouched."""
        args = {"default": 1, "device_args": {"mobile": {"label": "M"}}}
        expand_responsive("x", args, DEVICES)
        assert args == {"default": 1, "device_args": {"mobile": {"label": "M"}}}

    def test_device_keys(self):
        """Desktop keeps the bare id, other devices get a suffix."""
        assert device_keys("x", DEVICES) == ["x", "x_tablet", "x_mobile"]


class TestResponsiveStack:
    def test_add_responsive_control(self, make_widget):
        """Responsive variants are stored and resolved like any control."""
        def register(widget):
            widget.start_controls_section("s", {})
            widget.add_responsive_control("x", {"type": "number", "default": 5, "tablet_default": 3})
            widget.end_controls_section()

        widget = make_widget(register, data={"settings": {}})

        assert widget.store.keys() == ["s", "x", "x_tablet", "x_mobile"]
        assert widget.get_controls("x_tablet").responsive == {"max": "tablet"}
        assert widget.get_controls("x_mobile").section == "s"
        assert widget.get_settings("x") == 5
        assert widget.get_settings("x_tablet") == 3
        assert widget.get_settings("x_mobile") == ""

    def test_update_responsive_control(self, make_widget):
        """Updates reach every device variant."""
        def register(widget):
            widget.start_controls_section("s", {})
            widget.add_responsive_control("x", {"type": "number", "label": "X"})
            widget.end_controls_section()

        widget = make_widget(register)
        widget.update_responsive_control("x", {"label": "Size"})

        for key in ("x", "x_tablet", "x_mobile"):
            control = widget.get_controls(key)
            assert control.get("label") == "Size"
            assert control.section == "s"

    def test_remove_responsive_control(self, make_widget):
        """Removal drops every device variant."""
        def register(widget):
            widget.start_controls_section("s", {})
            widget.add_responsive_control("x", {"type": "number"})
            widget.add_control("y", {"type": "number"})
            widget.end_controls_section()

        widget = make_widget(register)
        widget.remove_responsive_control("x")

        assert widget.store.keys() == ["s", "y"]

    def test_configured_devices(self):
        """Configured devices drive the variant keys."""
        manager = ControlsManager(config=EngineConfig(devices=["desktop", "laptop", "mobile"]))

        widget = Laptop(manager=manager)
        assert widget.store.keys() == ["s", "x", "x_laptop", "x_mobile"]
