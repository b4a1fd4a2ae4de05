"""
Tests for amplitude and phase recovery with both arctangent methods.
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from cosinor.errors import UndefinedPhaseError
from cosinor.harmonic_fit import fit_cosinor
from cosinor.phase_transform import (
    circular_difference,
    compute_amplitude,
    naive_arctan_phase,
    transform_coefficients,
    two_argument_arctan_phase,
    wrap_phase,
)
from cosinor.schema import (
    ALL_METHODS,
    METHOD_NAIVE,
    METHOD_TWO_ARGUMENT,
    STATUS_OK,
    STATUS_QUARTER_CYCLE,
    STATUS_UNDEFINED_PHASE,
)
from cosinor.synthetic import cosinor_values

TIMES = np.arange(0.0, 24.0, 2.0)


def _fitted_coefficients(phase: float, amplitude: float = 10.0) -> tuple[float, float]:
    values = cosinor_values(TIMES, mesor=50.0, amplitude=amplitude, phase=phase)
    fit = fit_cosinor(TIMES, values, 24.0)
    return fit.beta_cos, fit.beta_sin


@pytest.mark.parametrize("true_phase", [1.0, 3.0, 7.5, 9.0, 13.0, 15.0, 19.0, 21.0])
def test_both_methods_recover_amplitude_and_atan2_recovers_phase(
    true_phase: float,
) -> None:
    """Noiseless data in every quadrant: exact amplitude, exact atan2 phase."""

    beta_cos, beta_sin = _fitted_coefficients(true_phase)

    for method in ALL_METHODS:
        estimate = transform_coefficients(beta_cos, beta_sin, method, 24.0)
        assert estimate.amplitude == pytest.approx(10.0, abs=1e-8)
        assert estimate.method == method

    correct = transform_coefficients(beta_cos, beta_sin, METHOD_TWO_ARGUMENT, 24.0)
    assert correct.status == STATUS_OK
    assert circular_difference(correct.phase, true_phase, 24.0) < 1e-6


@pytest.mark.parametrize("true_phase", [6.5, 9.0, 11.0, 12.0, 14.0, 17.5])
def test_naive_method_is_off_by_half_cycle_when_beta_cos_negative(
    true_phase: float,
) -> None:
    """For peaks in (6, 18) the naive phase lands exactly 12 h away."""

    beta_cos, beta_sin = _fitted_coefficients(true_phase)
    assert beta_cos < 0

    naive = transform_coefficients(beta_cos, beta_sin, METHOD_NAIVE, 24.0)
    correct = transform_coefficients(beta_cos, beta_sin, METHOD_TWO_ARGUMENT, 24.0)

    assert circular_difference(naive.phase, true_phase, 24.0) == pytest.approx(
        12.0, abs=1e-6
    )
    assert circular_difference(correct.phase, true_phase, 24.0) < 1e-6


@pytest.mark.parametrize("true_phase", [0.5, 3.0, 20.0, 23.0])
def test_naive_method_agrees_when_beta_cos_positive(true_phase: float) -> None:
    """For peaks outside [6, 18] both methods agree."""

    beta_cos, beta_sin = _fitted_coefficients(true_phase)

    naive = naive_arctan_phase(beta_cos, beta_sin, 24.0)

    assert circular_difference(naive, true_phase, 24.0) < 1e-6


def test_naive_phase_at_zero_beta_cos_is_quarter_cycle() -> None:
    """beta_cos == 0 maps to +/- a quarter cycle depending on beta_sin."""

    positive = transform_coefficients(0.0, 3.0, METHOD_NAIVE, 24.0)
    negative = transform_coefficients(0.0, -3.0, METHOD_NAIVE, 24.0)

    assert positive.phase == pytest.approx(6.0)
    assert positive.status == STATUS_QUARTER_CYCLE
    assert negative.phase == pytest.approx(18.0)
    assert negative.status == STATUS_QUARTER_CYCLE
    assert positive.amplitude == pytest.approx(3.0)

    correct = transform_coefficients(0.0, -3.0, METHOD_TWO_ARGUMENT, 24.0)
    assert correct.phase == pytest.approx(18.0)
    assert correct.status == STATUS_OK


def test_near_zero_beta_cos_goes_through_atan() -> None:
    """Only an exact zero is a quarter-cycle boundary; round-off is not."""

    positive = transform_coefficients(2.3e-16, 10.0, METHOD_NAIVE, 24.0)
    negative = transform_coefficients(-2.3e-16, 10.0, METHOD_NAIVE, 24.0)

    assert positive.status == STATUS_OK
    assert positive.phase == pytest.approx(6.0)
    assert negative.status == STATUS_OK
    assert negative.phase == pytest.approx(18.0)

    beta_cos, beta_sin = _fitted_coefficients(6.0)
    naive = transform_coefficients(beta_cos, beta_sin, METHOD_NAIVE, 24.0)
    expected = STATUS_QUARTER_CYCLE if beta_cos == 0 else STATUS_OK
    assert naive.status == expected
    correct = transform_coefficients(beta_cos, beta_sin, METHOD_TWO_ARGUMENT, 24.0)
    assert circular_difference(correct.phase, 6.0, 24.0) < 1e-6


def test_zero_coefficients_give_undefined_phase_for_both_methods() -> None:
    """Both coefficients zero: amplitude 0 and an undefined phase marker."""

    for method in ALL_METHODS:
        estimate = transform_coefficients(0.0, 0.0, method, 24.0)
        assert estimate.amplitude == 0.0
        assert math.isnan(estimate.phase)
        assert estimate.status == STATUS_UNDEFINED_PHASE
        assert not estimate.phase_defined


def test_low_level_helpers_raise_for_undefined_phase() -> None:
    """The per-method helpers raise UndefinedPhaseError for a zero vector."""

    with pytest.raises(UndefinedPhaseError):
        naive_arctan_phase(0.0, 0.0, 24.0)
    with pytest.raises(UndefinedPhaseError):
        two_argument_arctan_phase(0.0, 0.0, 24.0)


def test_unknown_method_is_rejected() -> None:
    """transform_coefficients only accepts the two known methods."""

    with pytest.raises(ValueError):
        transform_coefficients(1.0, 1.0, "atan3", 24.0)


def test_phase_respects_cycle_length() -> None:
    """Phases scale with the cycle length and stay in [0, cycle_length)."""

    phase = two_argument_arctan_phase(-1.0, -1e-12, 12.0)

    assert 0.0 <= phase < 12.0
    assert phase == pytest.approx(6.0, abs=1e-9)


def test_wrap_phase_and_amplitude_helpers() -> None:
    """wrap_phase folds into the cycle and amplitude is the vector norm."""

    assert wrap_phase(-3.0, 24.0) == pytest.approx(21.0)
    assert wrap_phase(27.0, 24.0) == pytest.approx(3.0)
    assert wrap_phase(-1e-18, 24.0) == 0.0
    assert compute_amplitude(3.0, -4.0) == pytest.approx(5.0)
    assert circular_difference(23.0, 1.0, 24.0) == pytest.approx(2.0)
