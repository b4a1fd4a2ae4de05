"""Amplitude and phase recovery from cosinor coefficients.

Two recovery methods are supported:

* ``naive_arctan`` uses the one-argument arctangent of
  ``beta_sin / beta_cos``. Its principal range covers only half the circle,
  so whenever ``beta_cos < 0`` the recovered peak lands half a cycle away
  from the true peak.
* ``two_argument_arctan`` uses ``atan2(beta_sin, beta_cos)``, which resolves
  the quadrant from the signs of both coefficients.

Both phases are reported in hours modulo the cycle length. When
``beta_cos`` is exactly zero the naive quotient is undefined; that case is
classified as a quarter-cycle boundary and pinned to ``cycle_length / 4``
(``beta_sin > 0``) or ``3 * cycle_length / 4`` (``beta_sin < 0``), which is
the limit of the one-argument arctangent. When both coefficients are zero
no peak exists and :class:`UndefinedPhaseError` is raised by the low-level
helpers; :func:`transform_coefficients` turns that into an
``undefined_phase`` record instead.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from cosinor.errors import UndefinedPhaseError
from cosinor.harmonic_fit import angular_frequency
from cosinor.schema import (
    ALL_METHODS,
    METHOD_NAIVE,
    METHOD_TWO_ARGUMENT,
    STATUS_OK,
    STATUS_QUARTER_CYCLE,
    STATUS_UNDEFINED_PHASE,
)


@dataclass(frozen=True)
class PhaseEstimate:
    """Amplitude and phase recovered with one method.

    Parameters
    ----------
    amplitude:
        Non-negative rhythm amplitude.
    phase:
        Peak time in ``[0, cycle_length)`` hours, or ``nan`` when undefined.
    method:
        Recovery method tag.
    status:
        ``ok``, ``quarter_cycle_boundary`` or ``undefined_phase``.
    """

    amplitude: float
    phase: float
    method: str
    status: str

    @property
    def phase_defined(self) -> bool:
        """Return True when ``phase`` is a usable number."""

        return self.status != STATUS_UNDEFINED_PHASE


def compute_amplitude(beta_cos: float, beta_sin: float) -> float:
    """Return ``sqrt(beta_cos**2 + beta_sin**2)``."""

    return float(math.hypot(beta_cos, beta_sin))


def wrap_phase(phase: float, cycle_length: float) -> float:
    """Map ``phase`` into ``[0, cycle_length)``."""

    wrapped = math.fmod(phase, cycle_length)
    if wrapped < 0:
        wrapped += cycle_length
    # Adding cycle_length to a tiny negative value can round up to it.
    if wrapped >= cycle_length:
        wrapped = 0.0
    return wrapped


def _ensure_defined(beta_cos: float, beta_sin: float) -> None:
    if beta_cos == 0 and beta_sin == 0:
        raise UndefinedPhaseError(
            "phase is undefined when beta_cos and beta_sin are both zero"
        )


def naive_arctan_phase(beta_cos: float, beta_sin: float, cycle_length: float) -> float:
    """Return the one-argument arctangent phase in hours.

    ``beta_cos == 0`` yields ``cycle_length / 4`` for positive ``beta_sin``
    and ``3 * cycle_length / 4`` for negative ``beta_sin``.

    Raises
    ------
    UndefinedPhaseError
        If both coefficients are zero.
    """

    _ensure_defined(beta_cos, beta_sin)
    omega = angular_frequency(cycle_length)
    if beta_cos == 0:
        angle = math.copysign(math.pi / 2.0, beta_sin)
    else:
        angle = math.atan(beta_sin / beta_cos)
    return wrap_phase(angle / omega, cycle_length)


def two_argument_arctan_phase(
    beta_cos: float, beta_sin: float, cycle_length: float
) -> float:
    """Return the quadrant-aware two-argument arctangent phase in hours.

    Raises
    ------
    UndefinedPhaseError
        If both coefficients are zero.
    """

    _ensure_defined(beta_cos, beta_sin)
    omega = angular_frequency(cycle_length)
    return wrap_phase(math.atan2(beta_sin, beta_cos) / omega, cycle_length)


_PHASE_FUNCTIONS = {
    METHOD_NAIVE: naive_arctan_phase,
    METHOD_TWO_ARGUMENT: two_argument_arctan_phase,
}


def transform_coefficients(
    beta_cos: float,
    beta_sin: float,
    method: str,
    cycle_length: float,
) -> PhaseEstimate:
    """Convert cosinor coefficients into amplitude and phase.

    Parameters
    ----------
    beta_cos, beta_sin:
        Cosine and sine coefficients from :func:`cosinor.harmonic_fit.fit_cosinor`.
    method:
        ``naive_arctan`` or ``two_argument_arctan``.
    cycle_length:
        Period of the rhythm in hours.

    Returns
    -------
    PhaseEstimate
        Amplitude, phase and status. Zero coefficients give amplitude 0 with
        ``phase = nan`` and status ``undefined_phase``.

    Raises
    ------
    ValueError
        If ``method`` is not a known recovery method.
    """

    if method not in _PHASE_FUNCTIONS:
        raise ValueError(
            f"Unknown phase method {method!r}; expected one of {list(ALL_METHODS)}"
        )

    amplitude = compute_amplitude(beta_cos, beta_sin)
    try:
        phase = _PHASE_FUNCTIONS[method](beta_cos, beta_sin, cycle_length)
    except UndefinedPhaseError:
        return PhaseEstimate(
            amplitude=0.0,
            phase=math.nan,
            method=method,
            status=STATUS_UNDEFINED_PHASE,
        )

    status = STATUS_OK
    if method == METHOD_NAIVE and beta_cos == 0:
        status = STATUS_QUARTER_CYCLE
    return PhaseEstimate(amplitude=amplitude, phase=phase, method=method, status=status)


def circular_difference(first: float, second: float, cycle_length: float) -> float:
    """Return the shortest distance between two phases on the cycle."""

    delta = abs(wrap_phase(first - second, cycle_length))
    return min(delta, cycle_length - delta)


__all__ = [
    "PhaseEstimate",
    "circular_difference",
    "compute_amplitude",
    "naive_arctan_phase",
    "transform_coefficients",
    "two_argument_arctan_phase",
    "wrap_phase",
]
