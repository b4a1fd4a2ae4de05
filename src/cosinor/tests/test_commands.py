"""
Tests for the cosinor_phases command-line entry point.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pandas as pd
import pytest

from cosinor.commands import LOGGED_PACKAGES, main, parse_args
from cosinor.synthetic import make_observations


@pytest.fixture(autouse=True)
def _reset_package_loggers():
    """Remove handlers installed by main() so tests stay independent."""

    yield
    for name in LOGGED_PACKAGES:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)


def _write_observations(path: Path) -> Path:
    frame = make_observations(
        ["a", "b", "c", "d"], "alertness", mesor=50.0, amplitude=10.0, phase=14.0
    )
    frame = frame.rename(columns={"subject_id": "participant", "time_value": "hour"})
    frame.to_csv(path, index=False)
    return path


def test_main_writes_tables(tmp_path: Path) -> None:
    """main() fits the CSV and writes estimate and summary tables."""

    input_csv = _write_observations(tmp_path / "obs.csv")
    out_dir = tmp_path / "out"

    code = main(
        [
            "-i",
            str(input_csv),
            "-o",
            str(out_dir),
            "--subject-column",
            "participant",
            "--time-column",
            "hour",
            "--start-offset",
            "0",
            "--start-offset",
            "12",
            "--log-file",
            "run.log",
        ]
    )

    assert code == 0
    for name in (
        "estimates.csv",
        "omissions.csv",
        "mislocation_summary.csv",
        "segment_summary.csv",
        "method_comparison.csv",
        "run.json",
        "run.log",
    ):
        assert (out_dir / name).exists(), name

    estimates = pd.read_csv(out_dir / "estimates.csv")
    assert len(estimates) == 16
    summary = pd.read_csv(out_dir / "mislocation_summary.csv")
    assert summary["mislocation_percentage"].tolist() == [100.0, 0.0]

    meta = json.loads((out_dir / "run.json").read_text(encoding="utf-8"))
    assert meta["config"]["start_offsets"] == [0.0, 12.0]
    assert meta["n_estimates"] == 16


def test_main_returns_error_code_for_missing_input(tmp_path: Path) -> None:
    """A missing input file is logged and reported with exit status 1."""

    code = main(["-i", str(tmp_path / "nope.csv"), "-o", str(tmp_path / "out")])

    assert code == 1


def test_main_rejects_invalid_config_override(tmp_path: Path) -> None:
    """An offset outside the cycle is a configuration error."""

    input_csv = _write_observations(tmp_path / "obs.csv")

    code = main(
        [
            "-i",
            str(input_csv),
            "-o",
            str(tmp_path / "out"),
            "--subject-column",
            "participant",
            "--time-column",
            "hour",
            "--start-offset",
            "30",
        ]
    )

    assert code == 1


def test_demo_run_with_plots(tmp_path: Path) -> None:
    """The synthetic demo runs end to end and renders figures."""

    out_dir = tmp_path / "demo"

    code = main(["--demo", "-o", str(out_dir), "--start-offset", "0", "--plots"])

    assert code == 0
    assert (out_dir / "figures" / "phase_histograms.png").exists()
    assert (out_dir / "figures" / "segment_bars.png").exists()
    assert any((out_dir / "figures" / "subjects").glob("*.png"))


def test_parse_args_requires_input_or_demo() -> None:
    """Omitting both --input and --demo is a usage error."""

    with pytest.raises(SystemExit):
        parse_args([])
