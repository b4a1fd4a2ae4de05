"""Command-line entry point for cosinor phase recovery.

Reads a long-format observation CSV (or generates a synthetic demo table),
fits every ``(subject, item, start_offset)`` triple with both phase recovery
methods, and writes the estimate, omission and summary tables to an output
directory. Figures are rendered on request.

Example::

    cosinor_phases -i observations.csv -o results --start-offset 0 \\
        --start-offset 12 --plots
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from analysis_utils.io import load_observations_csv, write_table_csv
from analysis_utils.plots import (
    render_phase_histograms,
    render_segment_bars,
    render_subject_curves,
)
from cosinor.batch import BatchResult, run_batch
from cosinor.config import CosinorConfig, load_config_json
from cosinor.summaries import count_subjects_per_item, summarize_batch
from cosinor.synthetic import make_demo_observations
from utils.cli import (
    add_cycle_arguments,
    add_execution_arguments,
    add_observations_input_argument,
    add_output_dir_argument,
    column_map_from_args,
)
from utils.utils import ensure_dir, non_default_arguments

LOGGER = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = Path("cosinor_results")
LOGGED_PACKAGES = ("cosinor", "analysis_utils")


def _build_parser() -> argparse.ArgumentParser:
    """Return the CLI argument parser.

    Returns
    -------
    argparse.ArgumentParser
        Configured parser instance.
    """

    parser = argparse.ArgumentParser(
        description=(
            "Fit single-component cosinor models per subject, item and assumed "
            "cycle start, and compare naive and two-argument arctangent phases."
        )
    )
    add_observations_input_argument(parser)
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Use a synthetic demo table instead of --input.",
    )
    add_output_dir_argument(parser, default_output_dir=DEFAULT_OUTPUT_DIR)
    add_cycle_arguments(parser)
    add_execution_arguments(parser)
    parser.add_argument(
        "--plots",
        action="store_true",
        help="Render phase histograms, segment bars and per-subject curves.",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv:
        Optional sequence of command-line arguments. When omitted, ``sys.argv``
        semantics are used.

    Returns
    -------
    argparse.Namespace
        Parsed arguments populated with defaults.
    """

    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.demo and args.input is None:
        parser.error("one of --input or --demo is required")
    return args


def _configure_logging(args: argparse.Namespace, out_root: Path) -> None:
    handlers: list[logging.Handler] = []
    stream = logging.StreamHandler()
    stream.setLevel(logging.INFO if args.verbose else logging.WARNING)
    stream.setFormatter(logging.Formatter("%(message)s"))
    handlers.append(stream)
    if args.log_file:
        log_path = out_root / args.log_file
        ensure_dir(log_path.parent)
        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(message)s")
        )
        handlers.append(file_handler)

    for name in LOGGED_PACKAGES:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.setLevel(logging.INFO)
        for handler in handlers:
            logger.addHandler(handler)


def resolve_config(args: argparse.Namespace) -> CosinorConfig:
    """Return the file configuration with command-line overrides applied."""

    base = load_config_json(args.config)
    return base.with_overrides(
        cycle_length=args.cycle_length,
        start_offsets=tuple(args.start_offsets) if args.start_offsets else None,
        items=tuple(args.items) if args.items else None,
        plausible_window=(
            tuple(args.plausible_window) if args.plausible_window else None
        ),
        segment_boundaries=(
            tuple(args.segment_boundaries) if args.segment_boundaries else None
        ),
    )


def write_outputs(
    result: BatchResult,
    summaries: dict[str, pd.DataFrame],
    out_root: Path,
) -> dict[str, Path]:
    """Write the estimate, omission and summary tables as CSV files."""

    written = {
        "estimates": write_table_csv(
            result.with_omissions(), out_root / "estimates.csv"
        ),
        "omissions": write_table_csv(result.omissions, out_root / "omissions.csv"),
    }
    for name, frame in summaries.items():
        written[name] = write_table_csv(frame, out_root / f"{name}.csv")
    return written


def _write_run_metadata(
    args: argparse.Namespace,
    config: CosinorConfig,
    result: BatchResult,
    out_root: Path,
) -> Path:
    defaults = vars(_build_parser().parse_args(["--demo"]))
    defaults["demo"] = False
    changed = non_default_arguments(vars(args), defaults)
    meta = {
        "created_at": datetime.now(timezone.utc).isoformat(),
        "arguments": {key: str(value) for key, value in changed.items()},
        "config": {
            "cycle_length": config.cycle_length,
            "start_offsets": list(config.start_offsets),
            "items": list(config.items) if config.items else None,
            "plausible_window": list(config.plausible_window),
            "segment_boundaries": list(config.segment_boundaries),
        },
        "n_estimates": int(len(result.estimates)),
        "n_omissions": int(len(result.omissions)),
    }
    meta_path = out_root / "run.json"
    meta_path.write_text(json.dumps(meta, indent=2), encoding="utf-8")
    return meta_path


def _render_plots(
    observations: pd.DataFrame,
    result: BatchResult,
    summaries: dict[str, pd.DataFrame],
    out_root: Path,
) -> None:
    config = result.config
    figures = out_root / "figures"
    render_phase_histograms(
        result.estimates,
        figures / "phase_histograms.png",
        cycle_length=config.cycle_length,
        window=config.plausible_window,
    )
    render_segment_bars(summaries["segment_summary"], figures / "segment_bars.png")
    render_subject_curves(
        observations,
        result.estimates,
        figures / "subjects",
        start_offset=config.start_offsets[0],
        cycle_length=config.cycle_length,
    )


def run(args: argparse.Namespace) -> int:
    """Execute one analysis run for parsed arguments and return an exit code."""

    out_root = Path(args.output_dir).expanduser().resolve()
    ensure_dir(out_root)
    _configure_logging(args, out_root)

    try:
        config = resolve_config(args)
        if args.demo:
            observations = make_demo_observations()
            LOGGER.info("Using synthetic demo observations")
        else:
            observations = load_observations_csv(
                args.input, column_map=column_map_from_args(args)
            )
        result = run_batch(
            observations,
            config,
            jobs=args.jobs,
            show_progress=args.progress,
        )
    except (FileNotFoundError, ValueError) as err:
        LOGGER.error("Error: %s", err)
        return 1

    subject_totals = count_subjects_per_item(result.estimates)
    summaries = summarize_batch(
        result.estimates,
        window=config.plausible_window,
        boundaries=config.segment_boundaries,
        cycle_length=config.cycle_length,
        subject_totals=subject_totals,
    )
    write_outputs(result, summaries, out_root)
    _write_run_metadata(args, config, result, out_root)
    if args.plots:
        _render_plots(observations, result, summaries, out_root)

    mislocation = summaries["mislocation_summary"]
    for row in mislocation.itertuples(index=False):
        LOGGER.info(
            "%s @ %s: %.1f%% of %d subject(s) in window",
            row.item,
            row.start_offset,
            row.mislocation_percentage,
            row.n_subjects,
        )
    print(
        f"Wrote {len(result.estimates)} estimate(s) and "
        f"{len(result.omissions)} omission(s) to {out_root}"
    )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console-script entry point."""

    args = parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
