"""
Matplotlib-based chart rendering for cosinor estimates and summaries.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import List, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib import colormaps

from analysis_utils.formatting import format_clock_time, format_percentage
from analysis_utils.io import observation_times
from analysis_utils.style import (
    COLOR_BOUNDARY,
    COLOR_OBSERVED,
    COLOR_TEXT_MUTED,
    COLOR_WINDOW,
    METHOD_LABELS,
    color_for_method,
)
from cosinor.config import DEFAULT_CYCLE_LENGTH, DEFAULT_PLAUSIBLE_WINDOW
from cosinor.harmonic_fit import CosinorCoefficients, fitted_curve, reanchor_times
from cosinor.schema import (
    ALL_METHODS,
    BETA_COS_KEY,
    BETA_SIN_KEY,
    DEFINED_PHASE_STATUSES,
    ITEM_KEY,
    MESOR_KEY,
    METHOD_KEY,
    N_OBSERVATIONS_KEY,
    OFFSET_KEY,
    PHASE_KEY,
    STATUS_KEY,
    SUBJECT_KEY,
)
from utils.utils import slugify

LOGGER = logging.getLogger(__name__)


def save_figure(output_path: Path, fig: plt.Figure) -> Path:
    """Expand, create parent directories, and save a Matplotlib figure."""

    resolved = output_path.expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(resolved)
    plt.close(fig)
    LOGGER.info("Wrote figure to %s", resolved)
    return resolved


def _format_offset(offset: float) -> str:
    return format_clock_time(offset)


def render_phase_histograms(
    estimates: pd.DataFrame,
    output_path: Path,
    *,
    cycle_length: float = DEFAULT_CYCLE_LENGTH,
    window: Sequence[float] = DEFAULT_PLAUSIBLE_WINDOW,
    methods: Sequence[str] = ALL_METHODS,
) -> Optional[Path]:
    """Render per-item, per-offset histograms of recovered phases.

    Rows of the figure are items and columns are start offsets. Each panel
    overlays the phase distribution of every method and shades the
    plausible window.

    Parameters
    ----------
    estimates:
        Estimate table produced by :func:`cosinor.batch.run_batch`.
    output_path:
        Destination image path.
    cycle_length:
        Period of the rhythm in hours; sets the x-axis range and bin count.
    window:
        Inclusive plausible window to shade.
    methods:
        Methods to overlay.

    Returns
    -------
    Optional[Path]
        Resolved path of the written figure, or ``None`` when there were no
        defined phases to plot.
    """

    defined = estimates[estimates[STATUS_KEY].isin(DEFINED_PHASE_STATUSES)]
    if defined.empty:
        LOGGER.warning("No defined phases to plot; skipping phase histograms.")
        return None

    plt.switch_backend("Agg")
    items = sorted(defined[ITEM_KEY].astype(str).unique())
    offsets = sorted(float(value) for value in defined[OFFSET_KEY].unique())
    bins = np.linspace(0.0, cycle_length, int(math.ceil(cycle_length)) + 1)

    fig, axes = plt.subplots(
        len(items),
        len(offsets),
        figsize=(3.2 * len(offsets) + 1.0, 2.6 * len(items) + 0.8),
        sharex=True,
        squeeze=False,
    )
    for row, item in enumerate(items):
        for column, offset in enumerate(offsets):
            ax = axes[row][column]
            ax.axvspan(window[0], window[1], color=COLOR_WINDOW, alpha=0.5, lw=0)
            panel = defined[
                (defined[ITEM_KEY].astype(str) == item)
                & (defined[OFFSET_KEY] == offset)
            ]
            for method in methods:
                phases = panel.loc[panel[METHOD_KEY] == method, PHASE_KEY]
                if phases.empty:
                    continue
                ax.hist(
                    phases.to_numpy(dtype=float),
                    bins=bins,
                    alpha=0.6,
                    color=color_for_method(method),
                    label=METHOD_LABELS.get(method, method),
                )
            ax.set_xlim(0.0, cycle_length)
            if row == 0:
                ax.set_title(f"start {_format_offset(offset)}")
            if column == 0:
                ax.set_ylabel(f"{item}\nsubjects")
            if row == len(items) - 1:
                ax.set_xlabel("Phase (h since cycle start)")

    handles, labels = axes[0][0].get_legend_handles_labels()
    if handles:
        fig.legend(handles, labels, loc="upper right", frameon=False)
    fig.tight_layout()
    return save_figure(output_path, fig)


def render_segment_bars(
    segment_summary: pd.DataFrame,
    output_path: Path,
    *,
    start_offset: Optional[float] = None,
) -> Optional[Path]:
    """Render grouped bars of the share of subjects per cycle segment.

    Parameters
    ----------
    segment_summary:
        Table produced by :func:`cosinor.summaries.compute_segment_summary`.
    output_path:
        Destination image path.
    start_offset:
        Offset to plot. Defaults to the smallest offset present.
    """

    if segment_summary.empty:
        LOGGER.warning("Segment summary is empty; skipping segment chart.")
        return None

    if start_offset is None:
        start_offset = float(segment_summary[OFFSET_KEY].min())
    subset = segment_summary[segment_summary[OFFSET_KEY] == start_offset]
    if subset.empty:
        LOGGER.warning("No segment rows for offset %s; skipping chart.", start_offset)
        return None

    plt.switch_backend("Agg")
    items = sorted(subset[ITEM_KEY].astype(str).unique())
    segments = list(dict.fromkeys(subset["segment"]))
    width = 0.8 / max(1, len(segments))
    positions = np.arange(len(items), dtype=float)

    fig, ax = plt.subplots(figsize=(max(5.0, 1.6 * len(items)), 4.2))
    palette = colormaps["viridis"]
    for index, segment in enumerate(segments):
        heights = []
        for item in items:
            match = subset[
                (subset[ITEM_KEY].astype(str) == item) & (subset["segment"] == segment)
            ]
            heights.append(
                float(match["percentage"].iloc[0]) if not match.empty else 0.0
            )
        bars = ax.bar(
            positions + (index - (len(segments) - 1) / 2.0) * width,
            heights,
            width=width,
            color=palette(index / max(1, len(segments) - 1)),
            label=segment,
        )
        for bar, height in zip(bars, heights):
            if height > 0:
                ax.annotate(
                    format_percentage(height),
                    (bar.get_x() + bar.get_width() / 2.0, height),
                    ha="center",
                    va="bottom",
                    fontsize=7,
                    color=COLOR_TEXT_MUTED,
                )

    ax.set_xticks(positions)
    ax.set_xticklabels(items, rotation=30, ha="right")
    ax.set_ylabel("Subjects (%)")
    ax.set_ylim(0, 110)
    ax.set_title(f"Phase by cycle segment (start {_format_offset(start_offset)})")
    ax.legend(title="Segment (h)", frameon=False, fontsize=8)
    fig.tight_layout()
    return save_figure(output_path, fig)


def render_subject_curve(
    observations: pd.DataFrame,
    estimates: pd.DataFrame,
    subject_id: str,
    item: str,
    output_path: Path,
    *,
    start_offset: float = 0.0,
    cycle_length: float = DEFAULT_CYCLE_LENGTH,
) -> Optional[Path]:
    """Render observations, the fitted curve and both recovered peaks.

    Observations are drawn on cycle-start-relative time for ``start_offset``
    so they line up with the fitted curve and the phase markers.
    """

    rows = estimates[
        (estimates[SUBJECT_KEY].astype(str) == str(subject_id))
        & (estimates[ITEM_KEY].astype(str) == str(item))
        & (estimates[OFFSET_KEY] == float(start_offset))
    ]
    if rows.empty:
        LOGGER.warning(
            "No estimates for subject=%s item=%s offset=%s; skipping curve.",
            subject_id,
            item,
            start_offset,
        )
        return None

    times, values = observation_times(observations, subject_id, item)
    anchored = reanchor_times(times, start_offset, cycle_length)
    first = rows.iloc[0]
    coefficients = CosinorCoefficients(
        mesor=float(first[MESOR_KEY]),
        beta_cos=float(first[BETA_COS_KEY]),
        beta_sin=float(first[BETA_SIN_KEY]),
        n_observations=int(first[N_OBSERVATIONS_KEY]),
    )
    grid = np.linspace(0.0, cycle_length, 241)

    plt.switch_backend("Agg")
    fig, ax = plt.subplots(figsize=(6.0, 3.6))
    ax.scatter(anchored, values, s=16, color=COLOR_OBSERVED, label="observed")
    ax.plot(grid, fitted_curve(coefficients, grid, cycle_length), color=COLOR_BOUNDARY)
    ax.axhline(coefficients.mesor, color=COLOR_BOUNDARY, lw=0.8, ls=":")
    for _, row in rows.iterrows():
        if row[STATUS_KEY] not in DEFINED_PHASE_STATUSES:
            continue
        method = str(row[METHOD_KEY])
        ax.axvline(
            float(row[PHASE_KEY]),
            color=color_for_method(method),
            ls="--",
            label=f"{METHOD_LABELS.get(method, method)} "
            f"{format_clock_time(float(row[PHASE_KEY]))}",
        )
    ax.set_xlim(0.0, cycle_length)
    ax.set_xlabel(f"Hours since {_format_offset(start_offset)}")
    ax.set_ylabel(item)
    ax.set_title(f"{subject_id}: {item}")
    ax.legend(frameon=False, fontsize=8)
    fig.tight_layout()
    return save_figure(output_path, fig)


def render_subject_curves(
    observations: pd.DataFrame,
    estimates: pd.DataFrame,
    output_dir: Path,
    *,
    start_offset: float = 0.0,
    cycle_length: float = DEFAULT_CYCLE_LENGTH,
) -> List[Path]:
    """Render one curve figure per fitted subject and item at ``start_offset``."""

    rows = estimates[estimates[OFFSET_KEY] == float(start_offset)]
    pairs = rows[[SUBJECT_KEY, ITEM_KEY]].drop_duplicates()
    written: List[Path] = []
    for subject_id, item in pairs.itertuples(index=False, name=None):
        name = slugify(f"{subject_id}_{item}") + ".png"
        path = render_subject_curve(
            observations,
            estimates,
            str(subject_id),
            str(item),
            output_dir / name,
            start_offset=start_offset,
            cycle_length=cycle_length,
        )
        if path is not None:
            written.append(path)
    return written


__all__ = [
    "render_phase_histograms",
    "render_segment_bars",
    "render_subject_curve",
    "render_subject_curves",
    "save_figure",
]
