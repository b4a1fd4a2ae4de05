"""Configuration for cosinor batch runs.

The configuration carries the cycle length, the assumed cycle-start offsets,
an optional item filter, the plausible window used by the mislocation
summary, and the segment boundaries used by the segment summary. Values can
be loaded from a JSON object and overridden field by field from the command
line.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

LOGGER = logging.getLogger(__name__)

DEFAULT_CYCLE_LENGTH = 24.0
DEFAULT_START_OFFSETS: Tuple[float, ...] = (0.0, 6.0, 10.0, 12.0)
DEFAULT_PLAUSIBLE_WINDOW: Tuple[float, float] = (6.0, 18.0)
DEFAULT_SEGMENT_BOUNDARIES: Tuple[float, ...] = (0.0, 6.0, 8.0, 22.0, 24.0)

CONFIG_KEYS = (
    "cycle_length",
    "start_offsets",
    "items",
    "plausible_window",
    "segment_boundaries",
)


@dataclass(frozen=True)
class CosinorConfig:
    """Validated settings for a cosinor batch run.

    Parameters
    ----------
    cycle_length:
        Period of the rhythm in hours. Must be positive.
    start_offsets:
        Assumed cycle-start offsets in ``[0, cycle_length)``. Duplicates are
        removed and the offsets are stored in ascending order.
    items:
        Optional subset of items to analyse. ``None`` selects every item
        present in the observation table.
    plausible_window:
        Inclusive ``(low, high)`` bounds used by the mislocation summary.
    segment_boundaries:
        Strictly increasing boundaries starting at 0 and ending at
        ``cycle_length``; consecutive pairs define half-open segments.
    """

    cycle_length: float = DEFAULT_CYCLE_LENGTH
    start_offsets: Tuple[float, ...] = DEFAULT_START_OFFSETS
    items: Optional[Tuple[str, ...]] = None
    plausible_window: Tuple[float, float] = DEFAULT_PLAUSIBLE_WINDOW
    segment_boundaries: Tuple[float, ...] = field(
        default=DEFAULT_SEGMENT_BOUNDARIES
    )

    def __post_init__(self) -> None:
        cycle_length = float(self.cycle_length)
        if not math.isfinite(cycle_length) or cycle_length <= 0:
            raise ValueError(
                f"cycle_length must be positive, got {self.cycle_length!r}"
            )
        object.__setattr__(self, "cycle_length", cycle_length)

        offsets = tuple(sorted({float(value) for value in self.start_offsets}))
        if not offsets:
            raise ValueError("start_offsets must contain at least one offset")
        for offset in offsets:
            if not 0.0 <= offset < cycle_length:
                raise ValueError(
                    f"start offset {offset!r} is outside [0, {cycle_length!r})"
                )
        object.__setattr__(self, "start_offsets", offsets)

        if self.items is not None:
            items = tuple(str(item) for item in self.items)
            object.__setattr__(self, "items", items or None)

        window = tuple(float(value) for value in self.plausible_window)
        if len(window) != 2 or window[0] > window[1]:
            raise ValueError(
                "plausible_window must be a (low, high) pair with low <= high, "
                f"got {self.plausible_window!r}"
            )
        object.__setattr__(self, "plausible_window", window)

        boundaries = tuple(float(value) for value in self.segment_boundaries)
        validate_segment_boundaries(boundaries, cycle_length)
        object.__setattr__(self, "segment_boundaries", boundaries)

    def with_overrides(self, **overrides: Any) -> "CosinorConfig":
        """Return a copy with every non-``None`` override applied."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        return replace(self, **changes)


def validate_segment_boundaries(
    boundaries: Tuple[float, ...], cycle_length: float
) -> None:
    """Raise ``ValueError`` unless ``boundaries`` tile ``[0, cycle_length]``.

    Parameters
    ----------
    boundaries:
        Candidate segment boundaries.
    cycle_length:
        Period the boundaries must cover.
    """

    if len(boundaries) < 2:
        raise ValueError("segment_boundaries needs at least two values")
    if boundaries[0] != 0.0 or not math.isclose(boundaries[-1], cycle_length):
        raise ValueError(
            f"segment_boundaries must start at 0 and end at {cycle_length!r}, "
            f"got {boundaries!r}"
        )
    for low, high in zip(boundaries, boundaries[1:]):
        if high <= low:
            raise ValueError(
                f"segment_boundaries must be strictly increasing, got {boundaries!r}"
            )


def config_from_mapping(raw: Mapping[str, Any]) -> CosinorConfig:
    """Build a :class:`CosinorConfig` from a plain mapping.

    Unknown keys are ignored with a warning so that configuration files can
    carry unrelated metadata.
    """

    values: dict[str, Any] = {}
    for key, value in raw.items():
        if key not in CONFIG_KEYS:
            LOGGER.warning("Ignoring unknown configuration key %r", key)
            continue
        if value is None:
            continue
        if key == "cycle_length":
            values[key] = float(value)
        elif key == "items":
            if isinstance(value, str):
                value = [value]
            values[key] = tuple(str(item) for item in value)
        else:
            values[key] = tuple(float(item) for item in value)
    return CosinorConfig(**values)


def load_config_json(json_path: Optional[str | Path]) -> CosinorConfig:
    """Return a configuration loaded from ``json_path`` or the defaults.

    Parameters
    ----------
    json_path:
        Path to a JSON object whose keys are a subset of
        ``CONFIG_KEYS``. When empty, the default configuration is returned.

    Raises
    ------
    ValueError
        If the file cannot be read, is not a JSON object, or holds invalid
        values.
    """

    if not json_path:
        return CosinorConfig()

    config_path = Path(str(json_path)).expanduser()
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ValueError(f"Failed to read config file {config_path}: {err}") from err
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as err:
        raise ValueError(
            f"Failed to parse config file {config_path} as JSON: {err}"
        ) from err
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")

    try:
        return config_from_mapping(raw)
    except (TypeError, ValueError) as err:
        raise ValueError(f"Invalid configuration in {config_path}: {err}") from err


__all__ = [
    "CONFIG_KEYS",
    "CosinorConfig",
    "DEFAULT_CYCLE_LENGTH",
    "DEFAULT_PLAUSIBLE_WINDOW",
    "DEFAULT_SEGMENT_BOUNDARIES",
    "DEFAULT_START_OFFSETS",
    "config_from_mapping",
    "load_config_json",
    "validate_segment_boundaries",
]
