"""Common script utilities

These helpers cover filesystem and naming conveniences shared by the
command-line entry point and the plotting helpers.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Mapping


def slugify(text: str) -> str:
    """Return a filesystem-friendly representation of text."""

    sanitized = re.sub(r"[^A-Za-z0-9._-]+", "_", text)
    return sanitized.strip("_") or "unnamed"


def ensure_dir(path: str | Path) -> None:
    """Create a directory (and parents) if it does not exist.

    Parameters:
        path: Directory path to create if missing.

    Returns:
        None.
    """

    os.makedirs(path, exist_ok=True)


def non_default_arguments(
    values: Mapping[str, object], defaults: Mapping[str, object]
) -> dict[str, object]:
    """Return the entries of ``values`` that differ from ``defaults``.

    Used to record which command-line options a run actually changed.
    """

    changed: dict[str, object] = {}
    for key, value in values.items():
        if key not in defaults or defaults[key] != value:
            changed[key] = value
    return changed
