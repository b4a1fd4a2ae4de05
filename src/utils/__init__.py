"""Utility helper package for shared script helpers.

Submodules
----------
cli
    Shared argparse configuration helpers for CLI scripts.
utils
    Filesystem and naming helpers.
"""

from __future__ import annotations

__all__ = [
    "cli",
    "utils",
]
