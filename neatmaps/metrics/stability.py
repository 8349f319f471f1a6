"""
Stability statistics derived from consensus matrices.

The distribution of consensus values summarizes how reproducible a
clustering is: a perfectly stable partition only produces values 0 and 1,
an unstable one spreads values across the unit interval. All areas are
computed exactly on the union of step breakpoints over [0, 1].
"""

import numpy as np
from typing import Union

__all__ = [
    'ConsensusECDF',
    'upper_triangle_values',
    'ecdf',
    'delta',
    'cdf_area',
    'relative_area_change',
    'pac_score'
]


class ConsensusECDF:
    """
    Empirical cumulative distribution of consensus values.

    Right-continuous step function F(x) = fraction of values <= x. An ECDF
    built from zero values is empty and evaluates to NaN everywhere.
    """

    def __init__(self, values: np.ndarray):
        """
        Initialize the ConsensusECDF.

        Parameters
        ----------
        values : np.ndarray
            Observed consensus values in [0, 1]. NaN must be removed beforehand.
        """
        self.values = np.sort(np.asarray(values, dtype=np.float64).ravel())
        self.values.setflags(write=False)

    @property
    def n(self) -> int:
        return self.values.size

    @property
    def is_empty(self) -> bool:
        return self.values.size == 0

    @property
    def breakpoints(self) -> np.ndarray:
        """Distinct values where the function jumps."""
        return np.unique(self.values)

    @property
    def heights(self) -> np.ndarray:
        """Function value at each breakpoint."""
        return self(self.breakpoints)

    def __call__(self, x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        x = np.asarray(x, dtype=np.float64)
        if self.is_empty:
            out = np.full(x.shape, np.nan)
        else:
            out = np.searchsorted(self.values, x, side='right') / self.n
        return float(out) if out.ndim == 0 else out

    def __len__(self) -> int:
        return self.n

    def __repr__(self) -> str:
        return f"ConsensusECDF(n={self.n})"


def upper_triangle_values(consensus_matrix: np.ndarray) -> np.ndarray:
    """Defined (non-NaN) entries strictly above the diagonal."""
    M = np.asarray(consensus_matrix, dtype=np.float64)
    values = M[np.triu_indices(M.shape[0], k=1)]
    return values[~np.isnan(values)]


def ecdf(consensus_matrix: np.ndarray) -> ConsensusECDF:
    """
    ECDF of the defined upper-triangular entries of a consensus matrix.

    Parameters
    ----------
    consensus_matrix : np.ndarray
        Square consensus matrix, NaN where a pair was never sampled together.

    Returns
    -------
    ConsensusECDF
    """
    return ConsensusECDF(upper_triangle_values(consensus_matrix))


def _grid(*ecdfs: ConsensusECDF) -> np.ndarray:
    return np.unique(np.concatenate([[0.0, 1.0]] + [e.breakpoints for e in ecdfs]))


def delta(ecdf_k: ConsensusECDF, ecdf_k1: ConsensusECDF) -> float:
    """
    Area between two ECDFs over the unit interval.

    Both step functions are compared on the union of their breakpoints, so
    ECDFs built from different sets of pairs are handled. Since consensus
    values live in [0, 1], the result is in [0, 1] as well.

    Parameters
    ----------
    ecdf_k : ConsensusECDF
        Stability statistic at k.
    ecdf_k1 : ConsensusECDF
        Stability statistic at k + 1.

    Returns
    -------
    float
        Integral of |F_k - F_k1| over [0, 1]; NaN if either ECDF is empty.
    """
    if ecdf_k.is_empty or ecdf_k1.is_empty:
        return np.nan
    grid = _grid(ecdf_k, ecdf_k1)
    left, widths = grid[:-1], np.diff(grid)
    return float(np.sum(np.abs(ecdf_k(left) - ecdf_k1(left)) * widths))


def cdf_area(ecdf_k: ConsensusECDF) -> float:
    """
    Area under the consensus CDF over [0, 1].

    Equal to one minus the mean consensus value. NaN for an empty ECDF.
    """
    if ecdf_k.is_empty:
        return np.nan
    grid = _grid(ecdf_k)
    left, widths = grid[:-1], np.diff(grid)
    return float(np.sum(ecdf_k(left) * widths))


def relative_area_change(ecdf_prev: ConsensusECDF, ecdf_curr: ConsensusECDF) -> float:
    """
    Proportional increase in CDF area from one k to the next.

    Computed as (A(k) - A(k-1)) / A(k-1); NaN when either area is undefined
    or the previous area is zero.
    """
    a_prev = cdf_area(ecdf_prev)
    a_curr = cdf_area(ecdf_curr)
    if np.isnan(a_prev) or np.isnan(a_curr) or a_prev == 0:
        return np.nan
    return (a_curr - a_prev) / a_prev


def pac_score(consensus_matrix: np.ndarray, lower: float = 0.1, upper: float = 0.9) -> float:
    """
    Proportion of ambiguous clustering.

    Parameters
    ----------
    consensus_matrix : np.ndarray
        Square consensus matrix.
    lower : float, default=0.1
        Values above this are no longer considered "never together".
    upper : float, default=0.9
        Values below this are no longer considered "always together".

    Returns
    -------
    float
        Fraction of defined upper-triangular values strictly inside
        (lower, upper); NaN if no value is defined.
    """
    if not (0 <= lower < upper <= 1):
        raise ValueError(f"Need 0 <= lower < upper <= 1, got lower={lower}, upper={upper}")
    values = upper_triangle_values(consensus_matrix)
    if values.size == 0:
        return np.nan
    return float(np.count_nonzero((values > lower) & (values < upper)) / values.size)
