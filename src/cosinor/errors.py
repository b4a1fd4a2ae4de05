"""Exception types raised while fitting cosinor models."""

from __future__ import annotations


class CosinorError(Exception):
    """Base class for cosinor fitting and phase-recovery failures."""


class InsufficientDataError(CosinorError):
    """Raised when a group cannot support a three-parameter cosinor fit.

    Parameters
    ----------
    reason:
        Short human-readable explanation stored in the omissions table.
    n_observations:
        Number of usable observations supplied to the fitter.
    """

    def __init__(self, reason: str, n_observations: int = 0) -> None:
        super().__init__(reason)
        self.reason = reason
        self.n_observations = n_observations

    def __reduce__(self):
        return (self.__class__, (self.reason, self.n_observations))


class UndefinedPhaseError(CosinorError):
    """Raised when both cosinor coefficients are zero and no peak exists."""
