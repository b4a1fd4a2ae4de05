"""Summaries of recovered phases across subjects.

All percentages share a per-item base: the number of distinct subjects with
at least one successfully fitted estimate for that item, at any offset. The
base is computed once with :func:`count_subjects_per_item` and passed to the
summary functions so that every ``(item, start_offset)`` group is reported
against the same denominator. Estimates with an undefined phase are never
counted in a numerator.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from cosinor.config import (
    DEFAULT_CYCLE_LENGTH,
    DEFAULT_PLAUSIBLE_WINDOW,
    DEFAULT_SEGMENT_BOUNDARIES,
    validate_segment_boundaries,
)
from cosinor.phase_transform import circular_difference
from cosinor.schema import (
    DEFINED_PHASE_STATUSES,
    ITEM_KEY,
    METHOD_KEY,
    METHOD_NAIVE,
    METHOD_TWO_ARGUMENT,
    OFFSET_KEY,
    PHASE_KEY,
    STATUS_KEY,
    SUBJECT_KEY,
)

LOGGER = logging.getLogger(__name__)

MISLOCATION_COLUMNS = [
    ITEM_KEY,
    OFFSET_KEY,
    "n_in_window",
    "n_subjects",
    "mislocation_percentage",
]
SEGMENT_COLUMNS = [
    ITEM_KEY,
    OFFSET_KEY,
    "segment",
    "segment_start",
    "segment_end",
    "n_in_segment",
    "n_subjects",
    "percentage",
]
METHOD_COMPARISON_COLUMNS = [
    ITEM_KEY,
    OFFSET_KEY,
    "n_compared",
    "n_disagree",
    "disagreement_percentage",
]


def _safe_percentage(numerator: int, denominator: int) -> float:
    """Return ``100 * numerator / denominator`` with a zero-safe denominator."""

    if denominator <= 0:
        return 0.0
    return 100.0 * float(numerator) / float(denominator)


def _method_rows(estimates: pd.DataFrame, method: str) -> pd.DataFrame:
    if estimates.empty:
        return estimates
    return estimates[estimates[METHOD_KEY] == method]


def _defined_rows(estimates: pd.DataFrame) -> pd.DataFrame:
    if estimates.empty:
        return estimates
    return estimates[estimates[STATUS_KEY].isin(DEFINED_PHASE_STATUSES)]


def count_subjects_per_item(
    estimates: pd.DataFrame,
    method: str = METHOD_TWO_ARGUMENT,
) -> Dict[str, int]:
    """Return the number of fitted subjects per item.

    Parameters
    ----------
    estimates:
        Estimate table produced by :func:`cosinor.batch.run_batch`.
    method:
        Method whose rows define a successful fit.

    Returns
    -------
    Dict[str, int]
        Mapping from item to the count of distinct subjects with any fitted
        estimate for that item, across all offsets.
    """

    rows = _method_rows(estimates, method)
    if rows.empty:
        return {}
    counts = rows.groupby(ITEM_KEY)[SUBJECT_KEY].nunique()
    return {str(item): int(count) for item, count in counts.items()}


def _group_keys(rows: pd.DataFrame) -> List[Tuple[str, float]]:
    keys = rows[[ITEM_KEY, OFFSET_KEY]].drop_duplicates()
    return sorted(
        (str(item), float(offset))
        for item, offset in keys.itertuples(index=False, name=None)
    )


def _base_for_item(subject_totals: Mapping[str, int], item: str) -> int:
    if item not in subject_totals:
        LOGGER.warning("No subject total for item %r; reporting 0%%", item)
        return 0
    return int(subject_totals[item])


def compute_mislocation_summary(
    estimates: pd.DataFrame,
    subject_totals: Mapping[str, int],
    window: Sequence[float] = DEFAULT_PLAUSIBLE_WINDOW,
    *,
    method: str = METHOD_TWO_ARGUMENT,
) -> pd.DataFrame:
    """Return the share of subjects whose phase falls inside ``window``.

    Parameters
    ----------
    estimates:
        Estimate table produced by :func:`cosinor.batch.run_batch`.
    subject_totals:
        Per-item percentage base from :func:`count_subjects_per_item`.
    window:
        Inclusive ``(low, high)`` bounds in hours.
    method:
        Method whose phases are counted. Defaults to the two-argument
        arctangent.

    Returns
    -------
    pandas.DataFrame
        One row per ``(item, start_offset)`` with ``n_in_window``,
        ``n_subjects`` and ``mislocation_percentage``.
    """

    low, high = (float(value) for value in window)
    if low > high:
        raise ValueError(f"window must satisfy low <= high, got {tuple(window)!r}")

    rows = _method_rows(estimates, method)
    if rows.empty:
        return pd.DataFrame(columns=MISLOCATION_COLUMNS)

    defined = _defined_rows(rows)
    summary: List[dict] = []
    for item, offset in _group_keys(rows):
        group = defined[(defined[ITEM_KEY] == item) & (defined[OFFSET_KEY] == offset)]
        phases = group[PHASE_KEY].to_numpy(dtype=float)
        in_window = (phases >= low) & (phases <= high)
        n_in_window = int(group.loc[in_window, SUBJECT_KEY].nunique())
        n_subjects = _base_for_item(subject_totals, item)
        summary.append(
            {
                ITEM_KEY: item,
                OFFSET_KEY: offset,
                "n_in_window": n_in_window,
                "n_subjects": n_subjects,
                "mislocation_percentage": _safe_percentage(n_in_window, n_subjects),
            }
        )
    return pd.DataFrame(summary, columns=MISLOCATION_COLUMNS)


def segment_labels(boundaries: Sequence[float]) -> List[str]:
    """Return ``"HH-HH"`` labels for consecutive boundary pairs."""

    def _fmt(value: float) -> str:
        if float(value).is_integer():
            return f"{int(value):02d}"
        return f"{value:g}"

    pairs = zip(boundaries, boundaries[1:])
    return [f"{_fmt(low)}-{_fmt(high)}" for low, high in pairs]


def assign_segments(
    phases: Sequence[float], boundaries: Sequence[float]
) -> np.ndarray:
    """Return the half-open segment index of each phase, or -1 when outside.

    Segments are ``[boundaries[i], boundaries[i + 1])``. ``NaN`` phases map
    to -1.
    """

    values = np.asarray(phases, dtype=float)
    edges = np.asarray(boundaries, dtype=float)
    indices = np.searchsorted(edges, values, side="right") - 1
    outside = ~np.isfinite(values) | (values < edges[0]) | (values >= edges[-1])
    indices[outside] = -1
    return indices


def compute_segment_summary(
    estimates: pd.DataFrame,
    subject_totals: Mapping[str, int],
    boundaries: Sequence[float] = DEFAULT_SEGMENT_BOUNDARIES,
    *,
    cycle_length: float = DEFAULT_CYCLE_LENGTH,
    method: str = METHOD_TWO_ARGUMENT,
) -> pd.DataFrame:
    """Return the share of subjects per cycle segment.

    Parameters
    ----------
    estimates:
        Estimate table produced by :func:`cosinor.batch.run_batch`.
    subject_totals:
        Per-item percentage base from :func:`count_subjects_per_item`.
    boundaries:
        Strictly increasing boundaries from 0 to ``cycle_length``.
    cycle_length:
        Period the boundaries must cover.
    method:
        Method whose phases are bucketed.

    Returns
    -------
    pandas.DataFrame
        One row per ``(item, start_offset, segment)`` in segment order.
    """

    edges = tuple(float(value) for value in boundaries)
    validate_segment_boundaries(edges, float(cycle_length))
    labels = segment_labels(edges)

    rows = _method_rows(estimates, method)
    if rows.empty:
        return pd.DataFrame(columns=SEGMENT_COLUMNS)

    defined = _defined_rows(rows)
    summary: List[dict] = []
    for item, offset in _group_keys(rows):
        group = defined[(defined[ITEM_KEY] == item) & (defined[OFFSET_KEY] == offset)]
        indices = assign_segments(group[PHASE_KEY].to_numpy(dtype=float), edges)
        n_subjects = _base_for_item(subject_totals, item)
        for index, label in enumerate(labels):
            n_in_segment = int(group.loc[indices == index, SUBJECT_KEY].nunique())
            summary.append(
                {
                    ITEM_KEY: item,
                    OFFSET_KEY: offset,
                    "segment": label,
                    "segment_start": edges[index],
                    "segment_end": edges[index + 1],
                    "n_in_segment": n_in_segment,
                    "n_subjects": n_subjects,
                    "percentage": _safe_percentage(n_in_segment, n_subjects),
                }
            )
    return pd.DataFrame(summary, columns=SEGMENT_COLUMNS)


def compare_methods(
    estimates: pd.DataFrame,
    cycle_length: float = DEFAULT_CYCLE_LENGTH,
    *,
    atol: float = 1e-6,
) -> pd.DataFrame:
    """Return how often the naive phase disagrees with the two-argument phase.

    Only subjects with a defined phase under both methods are compared.

    Returns
    -------
    pandas.DataFrame
        One row per ``(item, start_offset)`` with ``n_compared``,
        ``n_disagree`` and ``disagreement_percentage``.
    """

    if estimates.empty:
        return pd.DataFrame(columns=METHOD_COMPARISON_COLUMNS)

    keys = [SUBJECT_KEY, ITEM_KEY, OFFSET_KEY]
    naive = _defined_rows(_method_rows(estimates, METHOD_NAIVE))[keys + [PHASE_KEY]]
    correct = _defined_rows(_method_rows(estimates, METHOD_TWO_ARGUMENT))[
        keys + [PHASE_KEY]
    ]
    paired = naive.merge(correct, on=keys, suffixes=("_naive", "_correct"))

    summary: List[dict] = []
    for (item, offset), group in paired.groupby([ITEM_KEY, OFFSET_KEY], sort=True):
        differences = [
            circular_difference(first, second, cycle_length)
            for first, second in zip(
                group[f"{PHASE_KEY}_naive"], group[f"{PHASE_KEY}_correct"]
            )
        ]
        n_compared = int(len(differences))
        n_disagree = int(sum(1 for delta in differences if delta > atol))
        summary.append(
            {
                ITEM_KEY: str(item),
                OFFSET_KEY: float(offset),
                "n_compared": n_compared,
                "n_disagree": n_disagree,
                "disagreement_percentage": _safe_percentage(n_disagree, n_compared),
            }
        )
    return pd.DataFrame(summary, columns=METHOD_COMPARISON_COLUMNS)


def summarize_batch(
    estimates: pd.DataFrame,
    *,
    window: Sequence[float] = DEFAULT_PLAUSIBLE_WINDOW,
    boundaries: Sequence[float] = DEFAULT_SEGMENT_BOUNDARIES,
    cycle_length: float = DEFAULT_CYCLE_LENGTH,
    subject_totals: Optional[Mapping[str, int]] = None,
) -> Dict[str, pd.DataFrame]:
    """Return every summary table for one estimate table.

    The per-item subject totals are computed once here unless supplied.
    """

    totals = (
        dict(subject_totals)
        if subject_totals is not None
        else count_subjects_per_item(estimates)
    )
    return {
        "mislocation_summary": compute_mislocation_summary(estimates, totals, window),
        "segment_summary": compute_segment_summary(
            estimates, totals, boundaries, cycle_length=cycle_length
        ),
        "method_comparison": compare_methods(estimates, cycle_length),
    }


__all__ = [
    "METHOD_COMPARISON_COLUMNS",
    "MISLOCATION_COLUMNS",
    "SEGMENT_COLUMNS",
    "assign_segments",
    "compare_methods",
    "compute_mislocation_summary",
    "compute_segment_summary",
    "count_subjects_per_item",
    "segment_labels",
    "summarize_batch",
]
