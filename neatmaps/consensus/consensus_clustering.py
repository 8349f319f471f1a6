"""
Consensus clustering over a range of cluster counts.

This module provides the ConsensusClustering estimator. For every k from 2 to
max_k it clusters many random subsamples of the data, accumulates how often
pairs of rows end up together, and derives stability statistics from the
resulting consensus matrices.
"""

import numbers
import numpy as np
import pandas as pd
import warnings
from typing import Any, Dict, List, Optional, Union
from joblib import Parallel, delayed
from sklearn.base import BaseEstimator
from tqdm import tqdm

from ..clustering.hierarchical import (
    DistanceMethod,
    LinkageMethod,
    cluster,
    cluster_precomputed,
    pairwise_dissimilarity
)
from ..exceptions import DegenerateResample, InvalidParameter
from ..metrics.stability import cdf_area, delta, ecdf, pac_score, relative_area_change
from ..pipelines.resampling import ResampleDescriptor, Resampler
from ..utils import check_matrix
from .accumulator import ConsensusAccumulator
from .results import ConsensusKResult, ConsensusResult

__all__ = ['ConsensusClustering', 'consensus_cluster']


def _is_integer(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _run_trial(
    X: np.ndarray,
    rows: np.ndarray,
    cols: np.ndarray,
    k: int,
    dist_method: DistanceMethod,
    link_method: LinkageMethod
) -> Optional[np.ndarray]:
    """Cluster one resample; None when the resample cannot be cut into k groups."""
    try:
        return cluster(X[np.ix_(rows, cols)], k, dist_method, link_method)
    except (InvalidParameter, DegenerateResample):
        return None


class ConsensusClustering(BaseEstimator):
    """
    Consensus clustering with subsampling of rows and columns.

    For each candidate number of clusters k = 2..max_k, ``reps`` random
    subsamples are clustered hierarchically and cut at k. A per-k accumulator
    counts how often each pair of rows was sampled together and how often it
    was clustered together; their ratio is the consensus matrix.

    Features:
    - Deterministic for a fixed random_state, whatever n_jobs is
    - Repetitions that cannot be clustered are skipped and counted
    - Full-data partition, ECDF, delta, CDF area and PAC per k
    - Parallel repetitions through joblib with ordered reduction
    """

    def __init__(
        self,
        max_k: int = 10,
        reps: int = 1000,
        p_var: float = 1.0,
        p_net: float = 0.8,
        link_method: Union[str, LinkageMethod] = 'average',
        dist_method: Union[str, DistanceMethod] = 'euclidean',
        random_state: Optional[int] = 100,
        n_jobs: Optional[int] = 1,
        verbose: bool = False
    ):
        """
        Initialize the ConsensusClustering estimator.

        Parameters:
        -----------
        max_k : int, default=10
            Largest number of clusters considered. Results are produced for
            k = 2, 3, ..., max_k.

        reps : int, default=1000
            Number of subsamples clustered for each k.

        p_var : float, default=1.0
            Proportion of columns (variables) drawn in each subsample.

        p_net : float, default=0.8
            Proportion of rows (entities) drawn in each subsample.

        link_method : str or LinkageMethod, default='average'
            Agglomeration rule. Options: 'average', 'single', 'complete',
            'mcquitty', 'median', 'centroid', 'ward.D', 'ward.D2'.

        dist_method : str or DistanceMethod, default='euclidean'
            Dissimilarity between rows. Options: 'euclidean', 'maximum',
            'manhattan', 'canberra', 'binary', 'pearson', 'spearman'.

        random_state : int, optional, default=100
            Seed for the subsampling sequence.

        n_jobs : int, optional, default=1
            Number of joblib workers for the repetitions of one k.
            1 or None runs sequentially.

        verbose : bool, default=False
            Whether to show a progress bar per k.
        """
        self.max_k = max_k
        self.reps = reps
        self.p_var = p_var
        self.p_net = p_net
        self.link_method = link_method
        self.dist_method = dist_method
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.verbose = verbose

        self._check_params()

        self.results_ = None
        self.accumulators_ = None
        self.n_skipped_ = None
        self.is_fitted_ = False

    def _check_params(self):
        """Check every parameter; raise InvalidParameter on the first bad one."""
        if not _is_integer(self.max_k) or self.max_k < 2:
            raise InvalidParameter(f"max_k must be an integer >= 2, got {self.max_k}")
        if not _is_integer(self.reps) or self.reps < 1:
            raise InvalidParameter(f"reps must be an integer >= 1, got {self.reps}")
        if self.n_jobs == 0:
            raise InvalidParameter("n_jobs == 0 has no meaning; use 1 for sequential execution")

        self._resampler = Resampler(
            p_net=self.p_net,
            p_var=self.p_var,
            random_state=self.random_state
        )
        self._dist_method = DistanceMethod.coerce(self.dist_method)
        self._link_method = LinkageMethod.coerce(self.link_method)

    def fit(self, X: Union[np.ndarray, pd.DataFrame], y=None) -> 'ConsensusClustering':
        """
        Run consensus clustering for k = 2..max_k.

        Parameters:
        -----------
        X : np.ndarray or pd.DataFrame
            Numeric matrix of shape (n_rows, n_cols); rows are the entities
            being clustered.
        y : Ignored

        Returns:
        --------
        self : ConsensusClustering
            Returns self for method chaining.

        Raises:
        -------
        InvalidInput
            If X is not a finite numeric matrix with at least 2 rows and 1 column.
        InvalidParameter
            If a parameter is out of range, max_k exceeds the number of rows,
            or subsamples would be too small to cluster.
        DegenerateResample
            If dissimilarities on the full data are undefined.
        """
        self.results_ = None
        self.accumulators_ = None
        self.n_skipped_ = None
        self.is_fitted_ = False

        values, row_index, _ = check_matrix(X)
        self._check_params()

        n_rows, n_cols = values.shape
        if self.max_k > n_rows:
            raise InvalidParameter(f"max_k={self.max_k} exceeds the number of rows ({n_rows})")
        self._resampler.check_shape(n_rows, n_cols)

        # Full-data dissimilarities first: a degenerate full matrix has no reportable labels.
        full_dissimilarity = pairwise_dissimilarity(values, self._dist_method)

        k_values = list(range(2, int(self.max_k) + 1))
        reps = int(self.reps)

        accumulators = {}
        for k, batch in self._resampler.iter_batches(n_rows, n_cols, k_values, reps):
            accumulators[k] = self._accumulate_k(values, batch, k)

        self.accumulators_ = accumulators
        self.n_skipped_ = {k: acc.n_skipped_ for k, acc in accumulators.items()}
        self.results_ = self._assemble(accumulators, full_dissimilarity, row_index)
        self.is_fitted_ = True

        return self

    def _run_trials(self, X: np.ndarray, batch: List[ResampleDescriptor], k: int) -> List[Optional[np.ndarray]]:
        """Cluster every descriptor of one k; results come back in batch order."""
        iterator = tqdm(batch, desc=f"k={k}", disable=not self.verbose)

        if self.n_jobs not in (None, 1):
            return Parallel(n_jobs=self.n_jobs)(
                delayed(_run_trial)(X, d.rows, d.cols, k, self._dist_method, self._link_method)
                for d in iterator
            )
        return [
            _run_trial(X, d.rows, d.cols, k, self._dist_method, self._link_method)
            for d in iterator
        ]

    def _accumulate_k(self, X: np.ndarray, batch: List[ResampleDescriptor], k: int) -> ConsensusAccumulator:
        accumulator = ConsensusAccumulator(X.shape[0], k)

        for descriptor, labels in zip(batch, self._run_trials(X, batch, k)):
            if labels is None:
                accumulator.record_skip()
            else:
                accumulator.accumulate(descriptor.rows, labels)

        n_skipped = accumulator.n_skipped_
        if n_skipped == len(batch):
            warnings.warn(
                f"All {n_skipped} repetitions for k={k} were skipped; "
                f"its consensus matrix is undefined off the diagonal.",
                UserWarning
            )
        elif n_skipped > 0:
            warnings.warn(
                f"{n_skipped} of {len(batch)} repetitions for k={k} were skipped "
                f"because the subsample could not be clustered.",
                UserWarning
            )
        return accumulator

    def _assemble(
        self,
        accumulators: Dict[int, ConsensusAccumulator],
        full_dissimilarity: np.ndarray,
        row_index: pd.Index
    ) -> ConsensusResult:
        """Build one record per k from the finished accumulators."""
        records = []
        prev_ecdf = None

        for k in sorted(accumulators):
            accumulator = accumulators[k]
            consensus = accumulator.finalize()
            consensus.setflags(write=False)
            ecdf_k = ecdf(consensus)

            # Pairs never sampled together count as never clustered together.
            consensus_distance = 1.0 - np.nan_to_num(consensus, nan=0.0)

            records.append(ConsensusKResult(
                k=k,
                labels=cluster_precomputed(full_dissimilarity, k, self._link_method),
                consensus_matrix=consensus,
                ecdf=ecdf_k,
                cdf_area=cdf_area(ecdf_k),
                pac=pac_score(consensus),
                consensus_labels=cluster_precomputed(consensus_distance, k, self._link_method),
                n_trials=accumulator.n_trials_,
                n_skipped=accumulator.n_skipped_,
                delta=None if prev_ecdf is None else delta(prev_ecdf, ecdf_k),
                relative_area_change=None if prev_ecdf is None else relative_area_change(prev_ecdf, ecdf_k)
            ))
            prev_ecdf = ecdf_k

        return ConsensusResult(records, row_index)

    def fit_transform(self, X: Union[np.ndarray, pd.DataFrame], y=None) -> ConsensusResult:
        """
        Fit and return the per-k results.

        Parameters:
        -----------
        X : np.ndarray or pd.DataFrame
            Numeric matrix of shape (n_rows, n_cols).

        Returns:
        --------
        results : ConsensusResult
            Mapping from k to ConsensusKResult.
        """
        return self.fit(X).results_

    def get_result(self, k: int) -> ConsensusKResult:
        """
        Get the record for one number of clusters.

        Raises:
        -------
        ValueError
            If the estimator has not been fitted yet.
        KeyError
            If k was not part of the run.
        """
        if not self.is_fitted_:
            raise ValueError("ConsensusClustering has not been fitted yet. Call fit() first.")
        return self.results_[k]


def consensus_cluster(X: Union[np.ndarray, pd.DataFrame], **params: Any) -> ConsensusResult:
    """
    Run consensus clustering with default settings overridden by ``params``.

    Parameters
    ----------
    X : np.ndarray or pd.DataFrame
        Numeric matrix of shape (n_rows, n_cols).
    **params
        Any ConsensusClustering constructor argument.

    Returns
    -------
    results : ConsensusResult

    Examples
    --------
    >>> results = consensus_cluster(X, max_k=4, reps=100, random_state=1)
    >>> results.summary()
    >>> results.to_frame()
    """
    return ConsensusClustering(**params).fit_transform(X)
