"""
gridsim/errors.py
=================
Exception types raised by the simulation core.
"""


class GridError(Exception):
    """Base class for simulation-core errors."""


class GridIndexError(GridError, ValueError):
    """A lane or intersection index lies outside the configured grid."""
