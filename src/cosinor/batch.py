"""Batch cosinor fitting across subjects, items and cycle-start offsets.

The observation table is partitioned into ``(subject, item)`` groups. For
each assumed cycle-start offset every group is re-anchored to
cycle-start-relative time, fitted once, and transformed once per phase
recovery method. Groups that cannot be fitted are recorded as omissions
rather than aborting the batch.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from tqdm import tqdm

from cosinor.config import CosinorConfig
from cosinor.errors import InsufficientDataError
from cosinor.harmonic_fit import fit_cosinor, reanchor_times
from cosinor.phase_transform import transform_coefficients
from cosinor.schema import (
    ALL_METHODS,
    AMPLITUDE_KEY,
    BETA_COS_KEY,
    BETA_SIN_KEY,
    ESTIMATE_COLUMNS,
    ESTIMATE_SORT_KEYS,
    ITEM_KEY,
    MESOR_KEY,
    METHOD_KEY,
    N_OBSERVATIONS_KEY,
    OBSERVATION_COLUMNS,
    OFFSET_KEY,
    OMISSION_COLUMNS,
    OMISSION_SORT_KEYS,
    PHASE_KEY,
    REASON_KEY,
    STATUS_INSUFFICIENT_DATA,
    STATUS_KEY,
    SUBJECT_KEY,
    TIME_KEY,
    VALUE_KEY,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CosinorEstimate:
    """Fitted cosinor parameters for one subject, item, offset and method."""

    subject_id: Hashable
    item: str
    start_offset: float
    method: str
    mesor: float
    beta_cos: float
    beta_sin: float
    amplitude: float
    phase: float
    status: str
    n_observations: int

    def as_row(self) -> Dict[str, Any]:
        """Return the estimate as a table row keyed by schema column names."""

        return {
            SUBJECT_KEY: self.subject_id,
            ITEM_KEY: self.item,
            OFFSET_KEY: self.start_offset,
            METHOD_KEY: self.method,
            MESOR_KEY: self.mesor,
            BETA_COS_KEY: self.beta_cos,
            BETA_SIN_KEY: self.beta_sin,
            AMPLITUDE_KEY: self.amplitude,
            PHASE_KEY: self.phase,
            STATUS_KEY: self.status,
            N_OBSERVATIONS_KEY: self.n_observations,
        }


@dataclass(frozen=True)
class FitOmission:
    """A triple skipped because the fitter reported insufficient data."""

    subject_id: Hashable
    item: str
    start_offset: float
    reason: str
    n_observations: int

    def as_row(self) -> Dict[str, Any]:
        """Return the omission as a table row keyed by schema column names."""

        return {
            SUBJECT_KEY: self.subject_id,
            ITEM_KEY: self.item,
            OFFSET_KEY: self.start_offset,
            REASON_KEY: self.reason,
            N_OBSERVATIONS_KEY: self.n_observations,
        }


@dataclass(frozen=True)
class FitTask:
    """Inputs for one ``(subject, item, start_offset)`` fit.

    Times are clock times; re-anchoring happens inside :func:`fit_triple`.
    """

    subject_id: Hashable
    item: str
    start_offset: float
    times: Tuple[float, ...]
    values: Tuple[float, ...]
    cycle_length: float
    methods: Tuple[str, ...]


@dataclass
class BatchResult:
    """Estimate and omission tables produced by :func:`run_batch`.

    Parameters
    ----------
    estimates:
        One row per ``(subject, item, start_offset, method)`` that was fitted,
        sorted by those keys.
    omissions:
        One row per ``(subject, item, start_offset)`` that was skipped, with
        the reason reported by the fitter.
    config:
        Configuration used for the run.
    """

    estimates: pd.DataFrame
    omissions: pd.DataFrame
    config: CosinorConfig

    def with_omissions(self) -> pd.DataFrame:
        """Return estimates plus one ``insufficient_data`` row per omission.

        The omitted rows carry ``NaN`` numerics and an empty method so the
        combined table shows which triples are missing and why.
        """

        if self.omissions.empty:
            combined = self.estimates.copy()
            combined[REASON_KEY] = ""
            return combined

        missing = self.omissions.copy()
        missing[METHOD_KEY] = ""
        missing[STATUS_KEY] = STATUS_INSUFFICIENT_DATA
        for column in (MESOR_KEY, BETA_COS_KEY, BETA_SIN_KEY, AMPLITUDE_KEY, PHASE_KEY):
            missing[column] = np.nan

        fitted = self.estimates.copy()
        fitted[REASON_KEY] = ""
        frames = [frame for frame in (fitted, missing) if not frame.empty]
        combined = pd.concat(frames, ignore_index=True)
        combined = combined[list(ESTIMATE_COLUMNS) + [REASON_KEY]]
        return combined.sort_values(ESTIMATE_SORT_KEYS, kind="mergesort").reset_index(
            drop=True
        )


def fit_triple(
    task: FitTask,
) -> Tuple[List[CosinorEstimate], Optional[FitOmission]]:
    """Fit one triple and transform it with every requested method.

    Returns
    -------
    Tuple[List[CosinorEstimate], Optional[FitOmission]]
        The per-method estimates and ``None`` on success, or an empty list
        and the omission when the fitter raised
        :class:`InsufficientDataError`.
    """

    anchored = reanchor_times(task.times, task.start_offset, task.cycle_length)
    try:
        coefficients = fit_cosinor(anchored, task.values, task.cycle_length)
    except InsufficientDataError as err:
        omission = FitOmission(
            subject_id=task.subject_id,
            item=task.item,
            start_offset=task.start_offset,
            reason=err.reason,
            n_observations=err.n_observations,
        )
        return [], omission

    estimates: List[CosinorEstimate] = []
    for method in task.methods:
        phase_estimate = transform_coefficients(
            coefficients.beta_cos,
            coefficients.beta_sin,
            method,
            task.cycle_length,
        )
        estimates.append(
            CosinorEstimate(
                subject_id=task.subject_id,
                item=task.item,
                start_offset=task.start_offset,
                method=method,
                mesor=coefficients.mesor,
                beta_cos=coefficients.beta_cos,
                beta_sin=coefficients.beta_sin,
                amplitude=phase_estimate.amplitude,
                phase=phase_estimate.phase,
                status=phase_estimate.status,
                n_observations=coefficients.n_observations,
            )
        )
    return estimates, None


def prepare_observations(
    observations: pd.DataFrame,
    items: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Validate and clean a long-format observation table.

    Parameters
    ----------
    observations:
        Table with ``subject_id``, ``time_value``, ``item`` and ``value``
        columns.
    items:
        Optional subset of items to keep.

    Returns
    -------
    pandas.DataFrame
        Copy restricted to the observation columns and requested items, with
        numeric time and value columns and rows holding non-finite
        time or value removed.

    Raises
    ------
    ValueError
        If any required column is missing.
    """

    missing = [column for column in OBSERVATION_COLUMNS if column not in observations]
    if missing:
        raise ValueError(f"Observation table is missing columns: {missing}")

    frame = observations.loc[:, list(OBSERVATION_COLUMNS)].copy()
    missing_item = frame[ITEM_KEY].isna()
    if missing_item.any():
        LOGGER.warning(
            "Dropping %d observation(s) with a missing item", int(missing_item.sum())
        )
        frame = frame[~missing_item]
    frame[ITEM_KEY] = frame[ITEM_KEY].astype(str)
    frame[TIME_KEY] = pd.to_numeric(frame[TIME_KEY], errors="coerce")
    frame[VALUE_KEY] = pd.to_numeric(frame[VALUE_KEY], errors="coerce")

    if items:
        requested = [str(item) for item in items]
        present = set(frame[ITEM_KEY].unique())
        absent = [item for item in requested if item not in present]
        if absent:
            LOGGER.warning("Requested items not present in observations: %s", absent)
        frame = frame[frame[ITEM_KEY].isin(requested)]

    finite = np.isfinite(frame[TIME_KEY].to_numpy(dtype=float)) & np.isfinite(
        frame[VALUE_KEY].to_numpy(dtype=float)
    )
    dropped = int((~finite).sum())
    if dropped:
        LOGGER.warning(
            "Dropping %d observation(s) with non-finite time or value", dropped
        )
    frame = frame[finite]
    if frame[SUBJECT_KEY].isna().any():
        LOGGER.warning("Dropping observation(s) with a missing subject_id")
        frame = frame[frame[SUBJECT_KEY].notna()]
    return frame.reset_index(drop=True)


def build_fit_tasks(
    observations: pd.DataFrame,
    config: CosinorConfig,
    methods: Sequence[str] = ALL_METHODS,
) -> List[FitTask]:
    """Return one task per ``(subject, item, start_offset)`` triple present."""

    tasks: List[FitTask] = []
    grouped = observations.groupby([SUBJECT_KEY, ITEM_KEY], sort=True)
    for (subject_id, item), group in grouped:
        times = tuple(float(value) for value in group[TIME_KEY])
        values = tuple(float(value) for value in group[VALUE_KEY])
        for start_offset in config.start_offsets:
            tasks.append(
                FitTask(
                    subject_id=subject_id,
                    item=str(item),
                    start_offset=float(start_offset),
                    times=times,
                    values=values,
                    cycle_length=config.cycle_length,
                    methods=tuple(methods),
                )
            )
    return tasks


def _iter_results(
    tasks: Sequence[FitTask],
    *,
    jobs: int,
    show_progress: bool,
) -> Iterable[Tuple[List[CosinorEstimate], Optional[FitOmission]]]:
    if jobs in (0, 1) or len(tasks) <= 1:
        iterator = tqdm(tasks, desc="Fits", unit="fit") if show_progress else tasks
        for task in iterator:
            yield fit_triple(task)
        return

    with ProcessPoolExecutor(max_workers=jobs) as pool:
        futures = [pool.submit(fit_triple, task) for task in tasks]
        completed = as_completed(futures)
        if show_progress:
            completed = tqdm(completed, total=len(futures), desc="Fits", unit="fit")
        for future in completed:
            yield future.result()


def _estimates_frame(estimates: Sequence[CosinorEstimate]) -> pd.DataFrame:
    if not estimates:
        return pd.DataFrame(columns=list(ESTIMATE_COLUMNS))
    frame = pd.DataFrame([estimate.as_row() for estimate in estimates])
    frame = frame[list(ESTIMATE_COLUMNS)]
    return frame.sort_values(ESTIMATE_SORT_KEYS, kind="mergesort").reset_index(
        drop=True
    )


def _omissions_frame(omissions: Sequence[FitOmission]) -> pd.DataFrame:
    if not omissions:
        return pd.DataFrame(columns=list(OMISSION_COLUMNS))
    frame = pd.DataFrame([omission.as_row() for omission in omissions])
    frame = frame[list(OMISSION_COLUMNS)]
    return frame.sort_values(OMISSION_SORT_KEYS, kind="mergesort").reset_index(
        drop=True
    )


def run_batch(
    observations: pd.DataFrame,
    config: Optional[CosinorConfig] = None,
    *,
    methods: Sequence[str] = ALL_METHODS,
    jobs: int = 1,
    show_progress: bool = False,
) -> BatchResult:
    """Fit every ``(subject, item, start_offset)`` triple in ``observations``.

    Parameters
    ----------
    observations:
        Long-format observation table.
    config:
        Run configuration; defaults to :class:`CosinorConfig` defaults.
    methods:
        Phase recovery methods applied to each successful fit.
    jobs:
        Number of worker processes. ``0`` or ``1`` runs serially.
    show_progress:
        When true, display a ``tqdm`` progress bar.

    Returns
    -------
    BatchResult
        Sorted estimate and omission tables. Ordering does not depend on
        ``jobs``.
    """

    config = config or CosinorConfig()
    unknown = [method for method in methods if method not in ALL_METHODS]
    if unknown:
        raise ValueError(
            f"Unknown phase methods {unknown}; expected {list(ALL_METHODS)}"
        )
    if jobs < 0:
        raise ValueError(f"jobs must be non-negative, got {jobs}")

    prepared = prepare_observations(observations, config.items)
    tasks = build_fit_tasks(prepared, config, methods)
    LOGGER.info(
        "Fitting %d triple(s) across %d offset(s) with %d method(s)",
        len(tasks),
        len(config.start_offsets),
        len(methods),
    )

    estimates: List[CosinorEstimate] = []
    omissions: List[FitOmission] = []
    for triple_estimates, omission in _iter_results(
        tasks, jobs=jobs, show_progress=show_progress
    ):
        estimates.extend(triple_estimates)
        if omission is not None:
            LOGGER.info(
                "Skipping subject=%s item=%s offset=%s: %s",
                omission.subject_id,
                omission.item,
                omission.start_offset,
                omission.reason,
            )
            omissions.append(omission)

    if omissions:
        LOGGER.warning("%d triple(s) omitted for insufficient data", len(omissions))

    return BatchResult(
        estimates=_estimates_frame(estimates),
        omissions=_omissions_frame(omissions),
        config=config,
    )


__all__ = [
    "BatchResult",
    "CosinorEstimate",
    "FitOmission",
    "FitTask",
    "build_fit_tasks",
    "fit_triple",
    "prepare_observations",
    "run_batch",
]
