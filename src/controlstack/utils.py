"""Shared helpers: logging setup and mapping merges."""

from __future__ import annotations

import copy
import logging
import os
from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure logging for controlstack.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose: INFO level
    - Debug (CONTROLSTACK_DEBUG=1): DEBUG level - shows every stack mutation
    """
    debug = bool(os.environ.get("CONTROLSTACK_DEBUG"))

    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("controlstack")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False
    return logger


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``.

    Nested mappings are merged key by key; any other value in ``override``
    replaces the one in ``base``.
    """
    result = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result