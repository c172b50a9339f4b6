"""Responsive Expander

Fans one responsive control declaration into per-device variants:

    add_responsive_control("align", {"default": "left", "tablet_default": "center"})

    -> align         responsive.max=desktop  default=left
    -> align_tablet  responsive.max=tablet   default=center
    -> align_mobile  responsive.max=mobile   (no default)
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import Any


def device_suffix(device: str, desktop: str) -> str:
    return "" if device == desktop else f"_{device}"


def device_keys(control_id: str, devices: Sequence[str]) -> list[str]:
    """Stored keys of every variant of `control_id`."""
    desktop = devices[0]
    return [control_id + device_suffix(device, desktop) for device in devices]


def expand_responsive(
    control_id: str,
    args: dict[str, Any],
    devices: Sequence[str],
) -> list[tuple[str, dict[str, Any]]]:
    """Build the (key, args) pair of each device variant, in canonical order.

    Args:
        control_id: Base control id; the desktop variant keeps it unchanged.
        args: The responsive declaration. Recognized scratch keys are
            `devices`, `default`, `<device>_default`, `device_args` and
            `min_affected_device`.
        devices: Canonical device order, desktop first.
    """
    desktop = devices[0]
    base = copy.deepcopy(args)
    base["responsive"] = {}
    active_devices = list(devices)

    if "devices" in base:
        requested = base.pop("devices") or []
        active_devices = [device for device in devices if device in requested]
        base["responsive"]["devices"] = list(active_devices)

    if "default" in base:
        base[f"{desktop}_default"] = base.pop("default")

    default_keys = [f"{device}_default" for device in devices]
    variants = []

    for device in active_devices:
        control_args = copy.deepcopy(base)

        if "device_args" in control_args:
            device_args = control_args.pop("device_args") or {}
            if device_args.get(device):
                control_args.update(copy.deepcopy(device_args[device]))

        template = base.get("prefix_class")
        if template and "%s" in template:
            replacement = "" if device == desktop else f"-{device}"
            control_args["prefix_class"] = template % replacement

        control_args["responsive"]["max"] = device

        if "min_affected_device" in control_args:
            min_affected = control_args.pop("min_affected_device") or {}
            if min_affected.get(device):
                control_args["responsive"]["min"] = min_affected[device]

        if f"{device}_default" in control_args:
            control_args["default"] = control_args[f"{device}_default"]

        for key in default_keys:
            control_args.pop(key, None)

        variants.append((control_id + device_suffix(device, desktop), control_args))

    return variants
