"""
Result containers returned by the consensus engine.
"""

import numpy as np
import pandas as pd
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from ..metrics.stability import ConsensusECDF

__all__ = ['ConsensusKResult', 'ConsensusResult']


@dataclass(frozen=True)
class ConsensusKResult:
    """
    Everything the engine reports for one number of clusters.

    Attributes
    ----------
    k : int
        Number of clusters.
    labels : np.ndarray
        Full-data hierarchical clustering cut at k, labels in [1, k].
    consensus_matrix : np.ndarray
        Read-only (n_rows, n_rows) consensus matrix, NaN for pairs never
        sampled together.
    ecdf : ConsensusECDF
        Distribution of the defined upper-triangular consensus values.
    cdf_area : float
        Area under ``ecdf`` over [0, 1].
    pac : float
        Proportion of ambiguously clustered pairs.
    consensus_labels : np.ndarray
        Hierarchical clustering of 1 - consensus cut at k.
    n_trials : int
        Repetitions that were clustered and accumulated.
    n_skipped : int
        Repetitions skipped because they could not be clustered.
    delta : float, optional
        Area between the ECDFs of k - 1 and k. None for the smallest k.
    relative_area_change : float, optional
        (A(k) - A(k-1)) / A(k-1). None for the smallest k.
    """
    k: int
    labels: np.ndarray
    consensus_matrix: np.ndarray
    ecdf: ConsensusECDF
    cdf_area: float
    pac: float
    consensus_labels: np.ndarray
    n_trials: int
    n_skipped: int
    delta: Optional[float] = None
    relative_area_change: Optional[float] = None


class ConsensusResult(Mapping):
    """
    Read-only mapping from k to ``ConsensusKResult``.

    Also carries the row labels of the input so per-k assignments can be
    flattened into one table.
    """

    def __init__(self, records: List[ConsensusKResult], row_index: pd.Index):
        self._records: Dict[int, ConsensusKResult] = {r.k: r for r in records}
        self.row_index = row_index

    def __getitem__(self, k: int) -> ConsensusKResult:
        return self._records[k]

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._records))

    def __len__(self) -> int:
        return len(self._records)

    @property
    def k_values(self) -> List[int]:
        return list(self)

    def to_frame(self) -> pd.DataFrame:
        """
        Cluster assignments as a table.

        Returns
        -------
        pd.DataFrame
            One row per input row (indexed like the input) and one column
            ``k=<k>`` per number of clusters.
        """
        return pd.DataFrame(
            {f"k={k}": self[k].labels for k in self},
            index=self.row_index
        )

    def summary(self) -> pd.DataFrame:
        """
        Stability scalars per k.

        Returns
        -------
        pd.DataFrame
            Indexed by k with columns cdf_area, delta, relative_area_change,
            pac, n_trials and n_skipped. Delta columns are NaN for the
            smallest k.
        """
        rows = []
        for k in self:
            r = self[k]
            rows.append({
                'k': k,
                'cdf_area': r.cdf_area,
                'delta': np.nan if r.delta is None else r.delta,
                'relative_area_change': np.nan if r.relative_area_change is None else r.relative_area_change,
                'pac': r.pac,
                'n_trials': r.n_trials,
                'n_skipped': r.n_skipped,
            })
        return pd.DataFrame(rows).set_index('k')

    def ecdfs(self) -> Dict[int, ConsensusECDF]:
        return {k: self[k].ecdf for k in self}

    def deltas(self) -> Dict[int, float]:
        """Delta per k, for every k that has a predecessor."""
        return {k: self[k].delta for k in self if self[k].delta is not None}

    def __repr__(self) -> str:
        return f"ConsensusResult(k={self.k_values}, n_rows={len(self.row_index)})"
