"""Shared visual styling constants for cosinor figures."""

from __future__ import annotations

from cosinor.schema import METHOD_NAIVE, METHOD_TWO_ARGUMENT

# Primary series colors.
COLOR_NAIVE = "#ef4444"
COLOR_TWO_ARGUMENT = "#2563eb"

# Neutral guideline and annotation colors.
COLOR_BOUNDARY = "#9ca3af"
COLOR_TEXT_MUTED = "#6b7280"
COLOR_WINDOW = "#fde68a"
COLOR_OBSERVED = "#111827"

METHOD_COLORS = {
    METHOD_NAIVE: COLOR_NAIVE,
    METHOD_TWO_ARGUMENT: COLOR_TWO_ARGUMENT,
}

METHOD_LABELS = {
    METHOD_NAIVE: "atan (naive)",
    METHOD_TWO_ARGUMENT: "atan2",
}


def color_for_method(method: str) -> str:
    """Return the plot color for a phase method, grey when unknown."""

    return METHOD_COLORS.get(method, COLOR_BOUNDARY)


__all__ = [
    "COLOR_BOUNDARY",
    "COLOR_NAIVE",
    "COLOR_OBSERVED",
    "COLOR_TEXT_MUTED",
    "COLOR_TWO_ARGUMENT",
    "COLOR_WINDOW",
    "METHOD_COLORS",
    "METHOD_LABELS",
    "color_for_method",
]
