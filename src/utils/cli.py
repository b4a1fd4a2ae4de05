"""CLI helper utilities for shared argparse patterns.

This module centralizes common command-line argument definitions so that
the cosinor entry point and ad hoc analysis scripts spell options such as
the cycle length, the start offsets and the logging flags the same way.
"""

from __future__ import annotations

import argparse
from pathlib import Path


def add_observations_input_argument(parser: argparse.ArgumentParser) -> None:
    """Add the ``--input/-i`` observation CSV argument and column renames.

    Parameters
    ----------
    parser:
        Target argument parser.
    """

    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        help="Long-format observation CSV (one row per observation).",
    )
    group = parser.add_argument_group("input columns")
    for canonical in ("subject", "time", "item", "value"):
        group.add_argument(
            f"--{canonical}-column",
            dest=f"{canonical}_column",
            default=None,
            help=(
                f"Column holding the {canonical} field when it is not named "
                "after the canonical observation column."
            ),
        )


def add_output_dir_argument(
    parser: argparse.ArgumentParser,
    *,
    default_output_dir: Path | str,
) -> None:
    """Add a shared ``--output/-o`` directory argument.

    Parameters
    ----------
    parser:
        Target argument parser.
    default_output_dir:
        Directory used when the flag is omitted.
    """

    parser.add_argument(
        "--output",
        "-o",
        dest="output_dir",
        type=Path,
        default=Path(default_output_dir),
        help=(
            "Directory for result tables and figures "
            f"(default: {default_output_dir})."
        ),
    )


def add_cycle_arguments(parser: argparse.ArgumentParser) -> None:
    """Add cycle, offset, item, window and segment options.

    Every option defaults to ``None`` so that values from a ``--config``
    file are only overridden when a flag is given explicitly.
    """

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional JSON configuration file.",
    )
    parser.add_argument(
        "--cycle-length",
        type=float,
        default=None,
        help="Cycle length in hours (default: 24).",
    )
    parser.add_argument(
        "--start-offset",
        action="append",
        type=float,
        dest="start_offsets",
        help=(
            "Assumed cycle-start offset in hours (repeatable). "
            "Defaults to 0, 6, 10 and 12."
        ),
    )
    parser.add_argument(
        "--item",
        action="append",
        dest="items",
        help="Restrict the analysis to these items (repeatable).",
    )
    parser.add_argument(
        "--window",
        nargs=2,
        type=float,
        metavar=("LOW", "HIGH"),
        dest="plausible_window",
        default=None,
        help="Inclusive plausible window in hours (default: 6 18).",
    )
    parser.add_argument(
        "--segment-boundaries",
        nargs="+",
        type=float,
        default=None,
        help="Segment boundaries in hours (default: 0 6 8 22 24).",
    )


def add_execution_arguments(parser: argparse.ArgumentParser) -> None:
    """Add ``--jobs``, ``--progress``, ``--verbose`` and ``--log-file``."""

    parser.add_argument(
        "--jobs",
        "-j",
        type=int,
        default=1,
        help="Worker processes for fitting (0 or 1 runs serially).",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar while fitting.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log per-triple omissions and file writes.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional log file name, written inside the output directory.",
    )


def column_map_from_args(args: argparse.Namespace) -> dict[str, str]:
    """Return the canonical-to-source column mapping given on the command line."""

    mapping: dict[str, str] = {}
    pairs = (
        ("subject_id", "subject_column"),
        ("time_value", "time_column"),
        ("item", "item_column"),
        ("value", "value_column"),
    )
    for canonical, attribute in pairs:
        source = getattr(args, attribute, None)
        if source:
            mapping[canonical] = source
    return mapping

