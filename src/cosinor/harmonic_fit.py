"""Single-component cosinor fitting by ordinary least squares.

The cosinor model

    value = mesor + beta_cos * cos(omega * t) + beta_sin * sin(omega * t) + error,

with ``omega = 2 * pi / cycle_length``, is linear in its three coefficients.
This module builds the design matrix for cycle-start-relative times and fits
it with :class:`statsmodels.api.OLS`. Degenerate groups (too few distinct
time points, rank-deficient designs) raise :class:`InsufficientDataError`
instead of returning arbitrary coefficients.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import statsmodels.api as sm

from cosinor.errors import InsufficientDataError

N_PARAMETERS = 3


@dataclass(frozen=True)
class CosinorCoefficients:
    """Linear coefficients of a fitted cosinor model.

    Parameters
    ----------
    mesor:
        Regression intercept (rhythm-adjusted mean).
    beta_cos:
        Coefficient on the cosine predictor.
    beta_sin:
        Coefficient on the sine predictor.
    n_observations:
        Number of observations used in the fit.
    """

    mesor: float
    beta_cos: float
    beta_sin: float
    n_observations: int


def angular_frequency(cycle_length: float) -> float:
    """Return ``2 * pi / cycle_length`` for a positive cycle length."""

    if not cycle_length > 0:
        raise ValueError(f"cycle_length must be positive, got {cycle_length!r}")
    return 2.0 * math.pi / float(cycle_length)


def reanchor_times(
    times: Sequence[float], start_offset: float, cycle_length: float
) -> np.ndarray:
    """Return times measured from the assumed cycle start.

    Parameters
    ----------
    times:
        Clock times in hours.
    start_offset:
        Assumed cycle-start time in hours.
    cycle_length:
        Period of the rhythm in hours.

    Returns
    -------
    numpy.ndarray
        ``(times - start_offset) mod cycle_length``, each value in
        ``[0, cycle_length)``.
    """

    if not cycle_length > 0:
        raise ValueError(f"cycle_length must be positive, got {cycle_length!r}")
    shifted = np.asarray(times, dtype=float) - float(start_offset)
    anchored = np.mod(shifted, float(cycle_length))
    # np.mod can return cycle_length itself for tiny negative inputs.
    return np.where(anchored >= cycle_length, 0.0, anchored)


def build_design_matrix(times: Sequence[float], cycle_length: float) -> np.ndarray:
    """Return the ``(n, 3)`` cosinor design matrix ``[1, cos, sin]``."""

    omega = angular_frequency(cycle_length)
    cyclic = np.mod(np.asarray(times, dtype=float), float(cycle_length))
    return np.column_stack(
        [
            np.ones(cyclic.size, dtype=float),
            np.cos(omega * cyclic),
            np.sin(omega * cyclic),
        ]
    )


def count_distinct_times(times: Sequence[float], cycle_length: float) -> int:
    """Return the number of distinct time points on the cycle."""

    cyclic = np.mod(np.asarray(times, dtype=float), float(cycle_length))
    # Points just below cycle_length coincide with 0 on the circle.
    cyclic = np.where(np.isclose(cyclic, cycle_length), 0.0, cyclic)
    return int(np.unique(np.round(cyclic, 9)).size)


def fit_cosinor(
    times: Sequence[float],
    values: Sequence[float],
    cycle_length: float,
) -> CosinorCoefficients:
    """Fit a single-component cosinor model by ordinary least squares.

    Parameters
    ----------
    times:
        Cycle-start-relative times in hours. Values outside
        ``[0, cycle_length)`` are wrapped onto the cycle.
    values:
        Observed values aligned with ``times``.
    cycle_length:
        Period of the rhythm in hours.

    Returns
    -------
    CosinorCoefficients
        The unique least-squares solution ``(mesor, beta_cos, beta_sin)``.

    Raises
    ------
    InsufficientDataError
        If the inputs are mismatched or non-finite, there are fewer than three
        observations or distinct time points, or the design matrix does not
        have full column rank.
    """

    time_array = np.asarray(times, dtype=float)
    response = np.asarray(values, dtype=float)
    n_observations = int(response.size)

    if time_array.size != response.size:
        raise InsufficientDataError(
            f"times and values differ in length ({time_array.size} vs {response.size})",
            n_observations,
        )
    if not (np.all(np.isfinite(time_array)) and np.all(np.isfinite(response))):
        raise InsufficientDataError("non-finite time or value", n_observations)
    if n_observations < N_PARAMETERS:
        raise InsufficientDataError(
            f"need at least {N_PARAMETERS} observations, got {n_observations}",
            n_observations,
        )

    distinct_times = count_distinct_times(time_array, cycle_length)
    if distinct_times < N_PARAMETERS:
        raise InsufficientDataError(
            f"need at least {N_PARAMETERS} distinct time points, got {distinct_times}",
            n_observations,
        )

    design = build_design_matrix(time_array, cycle_length)
    rank = int(np.linalg.matrix_rank(design))
    if rank < N_PARAMETERS:
        raise InsufficientDataError(
            f"rank-deficient design matrix (rank {rank})", n_observations
        )

    try:
        result = sm.OLS(response, design).fit()
    except (ValueError, np.linalg.LinAlgError) as err:
        raise InsufficientDataError(f"OLS fit failed: {err}", n_observations) from err

    params = np.asarray(result.params, dtype=float)
    if params.size != N_PARAMETERS or not np.all(np.isfinite(params)):
        raise InsufficientDataError(
            "OLS returned unusable coefficients", n_observations
        )

    return CosinorCoefficients(
        mesor=float(params[0]),
        beta_cos=float(params[1]),
        beta_sin=float(params[2]),
        n_observations=n_observations,
    )


def fitted_curve(
    coefficients: CosinorCoefficients,
    times: Sequence[float],
    cycle_length: float,
) -> np.ndarray:
    """Return model predictions at ``times`` for plotting and residual checks."""

    design = build_design_matrix(times, cycle_length)
    params = np.array(
        [coefficients.mesor, coefficients.beta_cos, coefficients.beta_sin],
        dtype=float,
    )
    return design @ params


__all__ = [
    "CosinorCoefficients",
    "N_PARAMETERS",
    "angular_frequency",
    "build_design_matrix",
    "count_distinct_times",
    "fit_cosinor",
    "fitted_curve",
    "reanchor_times",
]
