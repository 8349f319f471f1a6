"""
Co-occurrence and co-cluster counting for one candidate number of clusters.
"""

import numpy as np
from typing import Union, List

__all__ = ['ConsensusAccumulator']


class ConsensusAccumulator:
    """
    Pairwise co-clustering counts for a single k.

    Two symmetric count matrices are kept over the full row index space:
    how often each pair of rows was sampled together (co-occurrence) and how
    often a jointly sampled pair landed in the same cluster (co-cluster).
    Their ratio is the consensus matrix. Counts only ever grow.

    Features:
    - One accumulator per k, owned by a single engine run
    - Skipped repetitions are counted but never touch the matrices
    - Partial accumulators can be merged for sharded accumulation
    """

    def __init__(self, n_rows: int, k: int):
        """
        Initialize the ConsensusAccumulator.

        Parameters:
        -----------
        n_rows : int
            Number of rows in the full input matrix.
        k : int
            Number of clusters the counted trials were cut into.
        """
        self.n_rows = int(n_rows)
        self.k = int(k)

        self.co_occurrence_ = np.zeros((self.n_rows, self.n_rows), dtype=np.int64)
        self.co_cluster_ = np.zeros((self.n_rows, self.n_rows), dtype=np.int64)
        self.n_trials_ = 0
        self.n_skipped_ = 0

    def accumulate(
        self,
        row_subset: Union[np.ndarray, List[int]],
        labels: Union[np.ndarray, List[int]]
    ) -> 'ConsensusAccumulator':
        """
        Add one clustered resample to the counts.

        Parameters:
        -----------
        row_subset : Union[np.ndarray, List[int]]
            Unique indices of the sampled rows in the full matrix.
        labels : Union[np.ndarray, List[int]]
            Cluster label of each sampled row, aligned with ``row_subset``.

        Returns:
        --------
        self : ConsensusAccumulator
        """
        rows = np.asarray(row_subset, dtype=np.intp)
        labels = np.asarray(labels)
        if rows.shape != labels.shape:
            raise ValueError(
                f"row_subset and labels must have the same length, got {rows.shape[0]} and {labels.shape[0]}"
            )

        self.co_occurrence_[np.ix_(rows, rows)] += 1
        for lab in np.unique(labels):
            members = rows[labels == lab]
            self.co_cluster_[np.ix_(members, members)] += 1

        self.n_trials_ += 1
        return self

    def record_skip(self) -> 'ConsensusAccumulator':
        """Count a repetition that was skipped and contributed nothing."""
        self.n_skipped_ += 1
        return self

    def merge(self, other: 'ConsensusAccumulator') -> 'ConsensusAccumulator':
        """
        Add the counts of another accumulator for the same rows and k.

        Parameters:
        -----------
        other : ConsensusAccumulator
            Partial accumulator, e.g. from a separate worker.

        Returns:
        --------
        self : ConsensusAccumulator
        """
        if other.n_rows != self.n_rows or other.k != self.k:
            raise ValueError(
                f"Cannot merge accumulator (n_rows={other.n_rows}, k={other.k}) "
                f"into (n_rows={self.n_rows}, k={self.k})"
            )
        self.co_occurrence_ += other.co_occurrence_
        self.co_cluster_ += other.co_cluster_
        self.n_trials_ += other.n_trials_
        self.n_skipped_ += other.n_skipped_
        return self

    def finalize(self) -> np.ndarray:
        """
        Compute the consensus matrix from the current counts.

        Only meaningful once every repetition for this k has been accumulated
        or skipped. Calling it does not change the counts.

        Returns:
        --------
        consensus : np.ndarray
            Float matrix of shape (n_rows, n_rows) with values in [0, 1], NaN
            where a pair was never sampled together, and 1 on the diagonal.
        """
        consensus = np.full((self.n_rows, self.n_rows), np.nan)
        np.divide(
            self.co_cluster_, self.co_occurrence_,
            out=consensus, where=self.co_occurrence_ > 0
        )
        np.fill_diagonal(consensus, 1.0)
        return consensus

    def n_defined_pairs(self) -> int:
        """Number of unordered pairs (i < j) sampled together at least once."""
        upper = np.triu_indices(self.n_rows, k=1)
        return int(np.count_nonzero(self.co_occurrence_[upper]))

    def __repr__(self) -> str:
        return (f"ConsensusAccumulator(n_rows={self.n_rows}, k={self.k}, "
                f"n_trials={self.n_trials_}, n_skipped={self.n_skipped_})")
