"""
Exception types raised by neatmaps.

All errors derive from ``NeatmapsError`` and from ``ValueError`` so callers
that already guard estimator calls with ``except ValueError`` keep working.
"""


class NeatmapsError(Exception):
    """Base class for all neatmaps errors."""


class InvalidInput(NeatmapsError, ValueError):
    """The input matrix is not a usable numeric matrix."""


class InvalidParameter(NeatmapsError, ValueError):
    """A configuration value or a derived subsample size is out of range."""


class DegenerateResample(NeatmapsError, ValueError):
    """A resample produced undefined dissimilarities and cannot be clustered."""
