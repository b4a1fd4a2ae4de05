"""
Tests for window, segment and method-comparison summaries.
"""

from __future__ import annotations

import math

import pandas as pd
import pytest

from cosinor.batch import run_batch
from cosinor.config import CosinorConfig
from cosinor.schema import (
    ESTIMATE_COLUMNS,
    METHOD_NAIVE,
    METHOD_TWO_ARGUMENT,
    STATUS_OK,
    STATUS_UNDEFINED_PHASE,
)
from cosinor.summaries import (
    assign_segments,
    compare_methods,
    compute_mislocation_summary,
    compute_segment_summary,
    count_subjects_per_item,
    segment_labels,
    summarize_batch,
)
from cosinor.synthetic import make_observations


def _estimate_row(
    subject: str,
    phase: float,
    *,
    item: str = "alertness",
    offset: float = 0.0,
    method: str = METHOD_TWO_ARGUMENT,
    status: str = STATUS_OK,
) -> dict:
    return {
        "subject_id": subject,
        "item": item,
        "start_offset": offset,
        "method": method,
        "mesor": 50.0,
        "beta_cos": 1.0,
        "beta_sin": 1.0,
        "amplitude": 0.0 if status == STATUS_UNDEFINED_PHASE else 1.0,
        "phase": phase,
        "status": status,
        "n_observations": 12,
    }


def _frame(rows: list[dict]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=list(ESTIMATE_COLUMNS))


@pytest.fixture(name="noon_batch")
def fixture_noon_batch() -> pd.DataFrame:
    """Return estimates for four subjects peaking at 14:00, offsets 0 and 12."""

    observations = make_observations(
        ["s1", "s2", "s3", "s4"], "alertness", mesor=50.0, amplitude=10.0, phase=14.0
    )
    return run_batch(observations, CosinorConfig(start_offsets=(0.0, 12.0))).estimates


def test_mislocation_uses_two_argument_phases(noon_batch: pd.DataFrame) -> None:
    """A 14:00 peak is inside [6, 18] at offset 0 and outside at offset 12."""

    totals = count_subjects_per_item(noon_batch)

    summary = compute_mislocation_summary(noon_batch, totals, (6.0, 18.0))

    assert totals == {"alertness": 4}
    assert summary["start_offset"].tolist() == [0.0, 12.0]
    assert summary["mislocation_percentage"].tolist() == [100.0, 0.0]
    assert summary["n_subjects"].tolist() == [4, 4]

    naive = compute_mislocation_summary(
        noon_batch, totals, (6.0, 18.0), method=METHOD_NAIVE
    )
    assert naive["mislocation_percentage"].tolist() == [0.0, 0.0]


def test_window_bounds_are_inclusive() -> None:
    """Phases exactly on the window bounds count as inside."""

    estimates = _frame(
        [_estimate_row("a", 6.0), _estimate_row("b", 18.0), _estimate_row("c", 18.5)]
    )

    summary = compute_mislocation_summary(estimates, {"alertness": 3}, (6.0, 18.0))

    assert summary["n_in_window"].tolist() == [2]
    assert summary["mislocation_percentage"].iloc[0] == pytest.approx(200.0 / 3.0)


def test_denominator_is_fixed_across_offsets() -> None:
    """The per-item base does not shrink when an offset group has fewer rows."""

    estimates = _frame(
        [
            _estimate_row("a", 10.0, offset=0.0),
            _estimate_row("b", 12.0, offset=0.0),
            _estimate_row("c", 2.0, offset=0.0),
            _estimate_row("d", 11.0, offset=0.0),
            _estimate_row("a", 10.0, offset=6.0),
        ]
    )
    totals = count_subjects_per_item(estimates)

    summary = compute_mislocation_summary(estimates, totals)

    assert totals == {"alertness": 4}
    assert summary["n_subjects"].tolist() == [4, 4]
    assert summary["mislocation_percentage"].tolist() == [75.0, 25.0]


def test_undefined_phases_are_excluded_from_numerators() -> None:
    """Undefined phases stay in the base but never count as in-window."""

    estimates = _frame(
        [
            _estimate_row("a", 12.0),
            _estimate_row("b", math.nan, status=STATUS_UNDEFINED_PHASE),
        ]
    )
    totals = count_subjects_per_item(estimates)

    summary = compute_mislocation_summary(estimates, totals)
    segments = compute_segment_summary(estimates, totals)

    assert totals == {"alertness": 2}
    assert summary["mislocation_percentage"].tolist() == [50.0]
    assert segments["n_in_segment"].sum() == 1


def test_segment_summary_buckets_half_open_segments(noon_batch: pd.DataFrame) -> None:
    """Default segments report 100% in 08-22 for a 14:00 peak at offset 0."""

    totals = count_subjects_per_item(noon_batch)

    summary = compute_segment_summary(noon_batch, totals)
    at_zero = summary[summary["start_offset"] == 0.0]

    assert at_zero["segment"].tolist() == ["00-06", "06-08", "08-22", "22-24"]
    assert at_zero["percentage"].tolist() == [0.0, 0.0, 100.0, 0.0]
    at_noon = summary[summary["start_offset"] == 12.0]
    assert at_noon["percentage"].tolist() == [100.0, 0.0, 0.0, 0.0]


def test_assign_segments_edges() -> None:
    """Boundaries belong to the segment they open; NaN is unassigned."""

    indices = assign_segments(
        [0.0, 5.99, 6.0, 8.0, 21.9, 22.0, math.nan], (0, 6, 8, 22, 24)
    )

    assert indices.tolist() == [0, 0, 1, 2, 2, 3, -1]
    assert segment_labels((0.0, 6.0, 8.0, 22.0, 24.0)) == [
        "00-06",
        "06-08",
        "08-22",
        "22-24",
    ]


def test_segment_summary_validates_boundaries() -> None:
    """Boundaries must tile the whole cycle."""

    estimates = _frame([_estimate_row("a", 3.0)])

    with pytest.raises(ValueError):
        compute_segment_summary(estimates, {"alertness": 1}, (0.0, 6.0, 20.0))
    with pytest.raises(ValueError):
        compute_segment_summary(estimates, {"alertness": 1}, (0.0, 8.0, 6.0, 24.0))


def test_compare_methods_flags_naive_half_cycle_errors(
    noon_batch: pd.DataFrame,
) -> None:
    """Naive phases disagree at offset 0 (beta_cos < 0) but not at offset 12."""

    comparison = compare_methods(noon_batch, 24.0)

    assert comparison["start_offset"].tolist() == [0.0, 12.0]
    assert comparison["n_compared"].tolist() == [4, 4]
    assert comparison["disagreement_percentage"].tolist() == [100.0, 0.0]


def test_summarize_batch_returns_all_tables(noon_batch: pd.DataFrame) -> None:
    """summarize_batch bundles the three summary tables."""

    tables = summarize_batch(noon_batch)

    assert set(tables) == {
        "mislocation_summary",
        "segment_summary",
        "method_comparison",
    }
    assert not tables["segment_summary"].empty


def test_empty_estimates_give_empty_summaries() -> None:
    """Summaries of an empty estimate table are empty with stable columns."""

    empty = _frame([])

    assert count_subjects_per_item(empty) == {}
    assert compute_mislocation_summary(empty, {}).empty
    assert compute_segment_summary(empty, {}).empty
    assert compare_methods(empty).empty
