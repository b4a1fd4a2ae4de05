"""
Helpers for loading observation tables and writing cosinor result tables.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

import pandas as pd

from analysis_utils.formatting import round_numeric_columns
from cosinor.schema import (
    ITEM_KEY,
    OBSERVATION_COLUMNS,
    SUBJECT_KEY,
    TIME_KEY,
    VALUE_KEY,
)

LOGGER = logging.getLogger(__name__)


def load_observations_csv(
    csv_path: Path | str,
    *,
    column_map: Optional[Mapping[str, str]] = None,
) -> pd.DataFrame:
    """Return a long-format observation table read from a CSV file.

    Parameters
    ----------
    csv_path:
        Path to a CSV file with one observation per row.
    column_map:
        Optional mapping from canonical column names (``subject_id``,
        ``time_value``, ``item``, ``value``) to the names used in the file.
        Columns missing from the mapping are expected under their canonical
        names.

    Returns
    -------
    pandas.DataFrame
        Table restricted to the canonical observation columns. ``subject_id``
        and ``item`` are read as strings.

    Raises
    ------
    FileNotFoundError
        If ``csv_path`` does not exist.
    ValueError
        If a required column is absent from the file.
    """

    resolved = Path(csv_path).expanduser().resolve()
    if not resolved.exists():
        raise FileNotFoundError(f"Observation CSV not found at {resolved}")

    source_names = {column: column for column in OBSERVATION_COLUMNS}
    for canonical, source in (column_map or {}).items():
        if canonical not in source_names:
            raise ValueError(
                f"Unknown observation column {canonical!r}; "
                f"expected one of {list(OBSERVATION_COLUMNS)}"
            )
        if source:
            source_names[canonical] = source

    header = pd.read_csv(resolved, nrows=0).columns
    missing = [source for source in source_names.values() if source not in header]
    if missing:
        raise ValueError(f"{resolved} is missing required columns: {missing}")

    frame = pd.read_csv(
        resolved,
        dtype={source_names[SUBJECT_KEY]: str, source_names[ITEM_KEY]: str},
    )

    sources = [source_names[column] for column in OBSERVATION_COLUMNS]
    observations = frame.loc[:, sources].set_axis(list(OBSERVATION_COLUMNS), axis=1)
    LOGGER.info(
        "Loaded %d observation(s) for %d subject(s) and %d item(s) from %s",
        len(observations),
        observations[SUBJECT_KEY].nunique(),
        observations[ITEM_KEY].nunique(),
        resolved,
    )
    return observations


def load_estimates_csv(csv_path: Path | str) -> pd.DataFrame:
    """Return an estimate table previously written by :func:`write_table_csv`."""

    resolved = Path(csv_path).expanduser().resolve()
    if not resolved.exists():
        raise FileNotFoundError(f"Estimates CSV not found at {resolved}")
    header = pd.read_csv(resolved, nrows=0).columns
    dtypes = {column: str for column in (SUBJECT_KEY, ITEM_KEY) if column in header}
    return pd.read_csv(resolved, dtype=dtypes)


def write_table_csv(
    frame: pd.DataFrame, output_path: Path, *, digits: Optional[int] = 6
) -> Path:
    """Write ``frame`` to ``output_path`` and return the resolved path.

    Numeric columns are rounded to ``digits`` places unless ``digits`` is
    ``None``. Parent directories are created as needed.
    """

    resolved = output_path.expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    table = round_numeric_columns(frame, digits) if digits is not None else frame
    table.to_csv(resolved, index=False)
    LOGGER.info("Wrote %d row(s) to %s", len(table), resolved)
    return resolved


def observation_times(observations: pd.DataFrame, subject_id: str, item: str):
    """Return ``(times, values)`` arrays for one subject and item, sorted by time."""

    mask = (observations[SUBJECT_KEY].astype(str) == str(subject_id)) & (
        observations[ITEM_KEY].astype(str) == str(item)
    )
    subset = observations.loc[mask].sort_values(TIME_KEY)
    return (
        subset[TIME_KEY].to_numpy(dtype=float),
        subset[VALUE_KEY].to_numpy(dtype=float),
    )


__all__ = [
    "load_estimates_csv",
    "load_observations_csv",
    "observation_times",
    "write_table_csv",
]
