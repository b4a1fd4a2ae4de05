"""Analysis helpers for loading, exporting and plotting cosinor results.

This package contains reusable utilities shared between the ``cosinor``
command-line entry point and ad hoc analysis scripts. It is installed via
the editable ``src/`` package layout.
"""
