"""
Tests for configuration defaults, validation and JSON loading.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from cosinor.config import (
    CosinorConfig,
    config_from_mapping,
    load_config_json,
)


def test_defaults_match_documented_values() -> None:
    """The default configuration mirrors the documented options."""

    config = CosinorConfig()

    assert config.cycle_length == 24.0
    assert config.start_offsets == (0.0, 6.0, 10.0, 12.0)
    assert config.items is None
    assert config.plausible_window == (6.0, 18.0)
    assert config.segment_boundaries == (0.0, 6.0, 8.0, 22.0, 24.0)


def test_offsets_are_deduplicated_and_sorted() -> None:
    """Offsets are normalised to sorted unique floats."""

    config = CosinorConfig(start_offsets=(12, 0, 12.0, 6))

    assert config.start_offsets == (0.0, 6.0, 12.0)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"cycle_length": 0.0},
        {"start_offsets": ()},
        {"start_offsets": (24.0,)},
        {"start_offsets": (-1.0,)},
        {"plausible_window": (18.0, 6.0)},
        {"segment_boundaries": (0.0, 6.0, 6.0, 24.0)},
        {"segment_boundaries": (1.0, 24.0)},
    ],
)
def test_invalid_values_raise(kwargs: dict) -> None:
    """Invalid settings are rejected when the configuration is built."""

    with pytest.raises(ValueError):
        CosinorConfig(**kwargs)


def test_with_overrides_skips_none_and_revalidates() -> None:
    """Overrides replace only supplied fields and are validated again."""

    config = CosinorConfig()

    updated = config.with_overrides(start_offsets=(3.0,), items=None)

    assert updated.start_offsets == (3.0,)
    assert updated.plausible_window == config.plausible_window
    assert config.with_overrides() is config
    with pytest.raises(ValueError):
        config.with_overrides(cycle_length=12.0)


def test_load_config_json_round_trip(tmp_path: Path, caplog) -> None:
    """A JSON config is parsed, and unknown keys are ignored with a warning."""

    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "cycle_length": 12,
                "start_offsets": [0, 3],
                "items": "melatonin",
                "plausible_window": [3, 9],
                "segment_boundaries": [0, 6, 12],
                "notes": "pilot cohort",
            }
        ),
        encoding="utf-8",
    )

    with caplog.at_level(logging.WARNING, logger="cosinor.config"):
        config = load_config_json(path)

    assert config.cycle_length == 12.0
    assert config.start_offsets == (0.0, 3.0)
    assert config.items == ("melatonin",)
    assert config.segment_boundaries == (0.0, 6.0, 12.0)
    assert "notes" in caplog.text


def test_load_config_json_errors(tmp_path: Path) -> None:
    """Missing, malformed and invalid files raise ValueError."""

    with pytest.raises(ValueError):
        load_config_json(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config_json(broken)

    listing = tmp_path / "list.json"
    listing.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config_json(listing)

    assert load_config_json(None) == CosinorConfig()
    with pytest.raises(ValueError):
        config_from_mapping({"start_offsets": [30]})
