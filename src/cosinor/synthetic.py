"""Synthetic observation tables with known rhythm parameters.

Used by the tests and by ``cosinor_phases --demo`` to exercise the batch
runner on data whose true mesor, amplitude and phase are known.
"""

from __future__ import annotations

import math
from typing import Hashable, Optional, Sequence

import numpy as np
import pandas as pd

from cosinor.harmonic_fit import angular_frequency
from cosinor.schema import ITEM_KEY, SUBJECT_KEY, TIME_KEY, VALUE_KEY


def cosinor_values(
    times: Sequence[float],
    *,
    mesor: float,
    amplitude: float,
    phase: float,
    cycle_length: float = 24.0,
) -> np.ndarray:
    """Return ``mesor + amplitude * cos(omega * (t - phase))``.

    ``phase`` is the time of the peak in hours.
    """

    omega = angular_frequency(cycle_length)
    time_array = np.asarray(times, dtype=float)
    return mesor + amplitude * np.cos(omega * (time_array - phase))


def coefficients_for(
    amplitude: float, phase: float, cycle_length: float = 24.0
) -> tuple[float, float]:
    """Return ``(beta_cos, beta_sin)`` of a rhythm peaking at ``phase``."""

    omega = angular_frequency(cycle_length)
    return (
        amplitude * math.cos(omega * phase),
        amplitude * math.sin(omega * phase),
    )


def make_observations(
    subjects: Sequence[Hashable],
    item: str,
    *,
    mesor: float,
    amplitude: float,
    phase: float,
    times: Optional[Sequence[float]] = None,
    cycle_length: float = 24.0,
    noise_sd: float = 0.0,
    seed: Optional[int] = None,
) -> pd.DataFrame:
    """Return a long-format observation table for one item.

    Parameters
    ----------
    subjects:
        Subject identifiers; every subject shares the same rhythm.
    item:
        Item label for every row.
    mesor, amplitude, phase:
        True rhythm parameters; ``phase`` is the peak time in hours.
    times:
        Clock times sampled per subject. Defaults to every two hours across
        one cycle.
    cycle_length:
        Period of the rhythm in hours.
    noise_sd:
        Standard deviation of additive Gaussian noise.
    seed:
        Seed for the local random generator.
    """

    if times is None:
        times = np.arange(0.0, cycle_length, cycle_length / 12.0)
    rng = np.random.default_rng(seed)
    frames = []
    for subject in subjects:
        values = cosinor_values(
            times,
            mesor=mesor,
            amplitude=amplitude,
            phase=phase,
            cycle_length=cycle_length,
        )
        if noise_sd > 0:
            values = values + rng.normal(0.0, noise_sd, size=values.size)
        frames.append(
            pd.DataFrame(
                {
                    SUBJECT_KEY: subject,
                    TIME_KEY: np.asarray(times, dtype=float),
                    ITEM_KEY: item,
                    VALUE_KEY: values,
                }
            )
        )
    return pd.concat(frames, ignore_index=True)


def make_demo_observations(seed: int = 0) -> pd.DataFrame:
    """Return a small multi-item table with peaks in every quadrant.

    Each of eight subjects gets a different peak time per item so that the
    naive method misplaces roughly half of them.
    """

    rng = np.random.default_rng(seed)
    frames = []
    items = {"alertness": 14.0, "temperature": 17.0, "melatonin": 3.0}
    for item, centre in items.items():
        for index in range(8):
            subject = f"s{index + 1:02d}"
            peak = (centre + rng.normal(0.0, 3.0)) % 24.0
            times = np.sort(rng.uniform(0.0, 24.0, size=10))
            frames.append(
                make_observations(
                    [subject],
                    item,
                    mesor=50.0,
                    amplitude=10.0,
                    phase=peak,
                    times=times,
                    noise_sd=1.0,
                    seed=int(rng.integers(0, 2**31 - 1)),
                )
            )
    return pd.concat(frames, ignore_index=True)


__all__ = [
    "coefficients_for",
    "cosinor_values",
    "make_demo_observations",
    "make_observations",
]
