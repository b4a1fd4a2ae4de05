"""Cosinor fitting and phase-recovery helpers.

Submodules
----------
schema
    Shared column names, method tags and status tags.
errors
    Exception types raised by the fitter and transformer.
config
    Analysis configuration dataclass and JSON loading.
harmonic_fit
    Re-anchoring and ordinary-least-squares cosinor fitting.
phase_transform
    Amplitude and phase recovery from cosinor coefficients.
batch
    Per-subject, per-item, per-offset batch runner.
summaries
    Window, segment and method-comparison summaries.
synthetic
    Synthetic observation tables with known rhythm parameters.
commands
    Command-line entry point.
"""

from __future__ import annotations

__all__ = [
    "batch",
    "commands",
    "config",
    "errors",
    "harmonic_fit",
    "phase_transform",
    "schema",
    "summaries",
    "synthetic",
]
