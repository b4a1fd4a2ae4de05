"""Shared numeric formatting helpers for analysis outputs.

This module centralises small utilities for rounding and formatting numeric
values so that CSV tables and figure labels use consistent conventions.
"""

from __future__ import annotations

import math
from typing import Optional

import pandas as pd


def round_numeric_columns(frame: pd.DataFrame, digits: int) -> pd.DataFrame:
    """Return a copy of ``frame`` with float columns rounded to ``digits``."""

    rounded = frame.copy()
    float_columns = rounded.select_dtypes(include="float").columns
    if len(float_columns):
        rounded[float_columns] = rounded[float_columns].round(digits)
    return rounded


def format_clock_time(hours: Optional[float]) -> str:
    """Return ``HH:MM`` for a time of day given in hours, or empty when missing.

    Parameters
    ----------
    hours:
        Time in hours. Values outside ``[0, 24)`` are wrapped onto the
        24-hour clock.

    Returns
    -------
    str
        Clock string such as ``"14:30"``; an empty string for ``None`` or
        ``NaN``.
    """

    if hours is None or not math.isfinite(float(hours)):
        return ""
    total_minutes = int(round(float(hours) * 60.0)) % (24 * 60)
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def format_percentage(value: Optional[float]) -> str:
    """Return a one-decimal percentage string or empty when missing."""

    if value is None or not math.isfinite(float(value)):
        return ""
    return f"{float(value):.1f}%"


__all__ = ["format_clock_time", "format_percentage", "round_numeric_columns"]
