"""Shared keys for observation and estimate tables.

Centralising the column names here keeps the batch runner, the summaries,
the CSV writers and the plotting helpers in agreement about table layout.
"""

from __future__ import annotations

from typing import Tuple

# Observation table columns.
SUBJECT_KEY = "subject_id"
TIME_KEY = "time_value"
ITEM_KEY = "item"
VALUE_KEY = "value"

OBSERVATION_COLUMNS: Tuple[str, ...] = (SUBJECT_KEY, TIME_KEY, ITEM_KEY, VALUE_KEY)

# Estimate table columns.
OFFSET_KEY = "start_offset"
METHOD_KEY = "method"
MESOR_KEY = "mesor"
BETA_COS_KEY = "beta_cos"
BETA_SIN_KEY = "beta_sin"
AMPLITUDE_KEY = "amplitude"
PHASE_KEY = "phase"
STATUS_KEY = "status"
N_OBSERVATIONS_KEY = "n_observations"
REASON_KEY = "reason"

ESTIMATE_COLUMNS: Tuple[str, ...] = (
    SUBJECT_KEY,
    ITEM_KEY,
    OFFSET_KEY,
    METHOD_KEY,
    MESOR_KEY,
    BETA_COS_KEY,
    BETA_SIN_KEY,
    AMPLITUDE_KEY,
    PHASE_KEY,
    STATUS_KEY,
    N_OBSERVATIONS_KEY,
)

OMISSION_COLUMNS: Tuple[str, ...] = (
    SUBJECT_KEY,
    ITEM_KEY,
    OFFSET_KEY,
    REASON_KEY,
    N_OBSERVATIONS_KEY,
)

# Phase recovery methods.
METHOD_NAIVE = "naive_arctan"
METHOD_TWO_ARGUMENT = "two_argument_arctan"
ALL_METHODS: Tuple[str, ...] = (METHOD_NAIVE, METHOD_TWO_ARGUMENT)

# Estimate status tags.
STATUS_OK = "ok"
STATUS_QUARTER_CYCLE = "quarter_cycle_boundary"
STATUS_UNDEFINED_PHASE = "undefined_phase"
STATUS_INSUFFICIENT_DATA = "insufficient_data"

# Statuses whose phase is a usable number.
DEFINED_PHASE_STATUSES: Tuple[str, ...] = (STATUS_OK, STATUS_QUARTER_CYCLE)

ESTIMATE_SORT_KEYS = [SUBJECT_KEY, ITEM_KEY, OFFSET_KEY, METHOD_KEY]
OMISSION_SORT_KEYS = [SUBJECT_KEY, ITEM_KEY, OFFSET_KEY]
