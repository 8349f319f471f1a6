"""
Agglomerative hierarchical clustering cut into a fixed number of groups.

Distance measures and linkage rules are closed enumerations. Each member maps
to a pure function in a dispatch table.
"""

import numpy as np
from enum import Enum
from typing import Callable, Dict, Union
from scipy.cluster.hierarchy import linkage
from scipy.spatial.distance import pdist, squareform
from scipy.stats import rankdata
from sklearn.base import BaseEstimator, ClusterMixin

from ..exceptions import DegenerateResample, InvalidParameter
from ..utils import renumber_labels

__all__ = [
    'DistanceMethod',
    'LinkageMethod',
    'HierarchicalClustering',
    'pairwise_dissimilarity',
    'cluster',
    'cluster_precomputed'
]


class DistanceMethod(Enum):
    """Dissimilarity measures between rows."""

    EUCLIDEAN = "euclidean"
    MAXIMUM = "maximum"  # Chebyshev
    MANHATTAN = "manhattan"
    CANBERRA = "canberra"
    BINARY = "binary"  # Jaccard on non-zero pattern
    PEARSON = "pearson"  # 1 - Pearson correlation
    SPEARMAN = "spearman"  # 1 - Spearman correlation

    @classmethod
    def coerce(cls, value: Union[str, 'DistanceMethod']) -> 'DistanceMethod':
        try:
            return cls(value)
        except ValueError:
            raise InvalidParameter(
                f"Unknown dist_method: {value!r}. "
                f"Available options: {[m.value for m in cls]}"
            ) from None


class LinkageMethod(Enum):
    """Agglomeration rules for hierarchical clustering."""

    AVERAGE = "average"
    SINGLE = "single"
    COMPLETE = "complete"
    MCQUITTY = "mcquitty"
    MEDIAN = "median"
    CENTROID = "centroid"
    WARD_D = "ward.D"
    WARD_D2 = "ward.D2"

    @classmethod
    def coerce(cls, value: Union[str, 'LinkageMethod']) -> 'LinkageMethod':
        try:
            return cls(value)
        except ValueError:
            raise InvalidParameter(
                f"Unknown link_method: {value!r}. "
                f"Available options: {[m.value for m in cls]}"
            ) from None


def _correlation_distance(X: np.ndarray) -> np.ndarray:
    return pdist(X, metric='correlation')


def _spearman_distance(X: np.ndarray) -> np.ndarray:
    return pdist(rankdata(X, axis=1), metric='correlation')


_DISTANCES: Dict[DistanceMethod, Callable[[np.ndarray], np.ndarray]] = {
    DistanceMethod.EUCLIDEAN: lambda X: pdist(X, metric='euclidean'),
    DistanceMethod.MAXIMUM: lambda X: pdist(X, metric='chebyshev'),
    DistanceMethod.MANHATTAN: lambda X: pdist(X, metric='cityblock'),
    DistanceMethod.CANBERRA: lambda X: pdist(X, metric='canberra'),
    DistanceMethod.BINARY: lambda X: pdist(X != 0, metric='jaccard'),
    DistanceMethod.PEARSON: _correlation_distance,
    DistanceMethod.SPEARMAN: _spearman_distance,
}


def _ward_d(d: np.ndarray) -> np.ndarray:
    # Ward's update applied to the dissimilarities themselves rather than
    # their squares: run scipy's ward on sqrt(d) and square the heights back.
    Z = linkage(np.sqrt(d), method='ward')
    Z[:, 2] = Z[:, 2] ** 2
    return Z


_LINKAGES: Dict[LinkageMethod, Callable[[np.ndarray], np.ndarray]] = {
    LinkageMethod.AVERAGE: lambda d: linkage(d, method='average'),
    LinkageMethod.SINGLE: lambda d: linkage(d, method='single'),
    LinkageMethod.COMPLETE: lambda d: linkage(d, method='complete'),
    LinkageMethod.MCQUITTY: lambda d: linkage(d, method='weighted'),
    LinkageMethod.MEDIAN: lambda d: linkage(d, method='median'),
    LinkageMethod.CENTROID: lambda d: linkage(d, method='centroid'),
    LinkageMethod.WARD_D: _ward_d,
    LinkageMethod.WARD_D2: lambda d: linkage(d, method='ward'),
}


def pairwise_dissimilarity(
    X: np.ndarray,
    dist_method: Union[str, DistanceMethod] = DistanceMethod.EUCLIDEAN
) -> np.ndarray:
    """
    Compute the condensed dissimilarity vector between the rows of X.

    Parameters
    ----------
    X : np.ndarray
        Matrix of shape (n_samples, n_features).
    dist_method : str or DistanceMethod, default='euclidean'
        Dissimilarity measure.

    Returns
    -------
    np.ndarray
        Condensed vector of length n_samples * (n_samples - 1) / 2.

    Raises
    ------
    DegenerateResample
        If any dissimilarity is undefined, e.g. a correlation distance on a
        constant row.
    """
    method = DistanceMethod.coerce(dist_method)
    with np.errstate(invalid='ignore', divide='ignore'):
        d = _DISTANCES[method](np.asarray(X, dtype=np.float64))

    if not np.all(np.isfinite(d)):
        n_bad = int(np.sum(~np.isfinite(d)))
        raise DegenerateResample(
            f"{n_bad} undefined '{method.value}' dissimilarities between rows"
        )
    return d


def _cut_tree(Z: np.ndarray, n_samples: int, n_clusters: int) -> np.ndarray:
    """Undo the last n_clusters - 1 merges; always yields exactly n_clusters groups."""
    owner = np.arange(n_samples)
    for i in range(n_samples - n_clusters):
        a, b = int(Z[i, 0]), int(Z[i, 1])
        owner[(owner == a) | (owner == b)] = n_samples + i
    return renumber_labels(owner)


def _check_n_clusters(n_clusters: int, n_samples: int):
    if n_clusters < 1:
        raise InvalidParameter(f"Number of clusters must be >= 1, got {n_clusters}")
    if n_clusters > n_samples:
        raise InvalidParameter(
            f"Cannot cut {n_samples} rows into {n_clusters} clusters"
        )


def cluster_precomputed(
    dissimilarity: np.ndarray,
    k: int,
    link_method: Union[str, LinkageMethod] = LinkageMethod.AVERAGE
) -> np.ndarray:
    """
    Cluster from a precomputed dissimilarity and cut into exactly k groups.

    Parameters
    ----------
    dissimilarity : np.ndarray
        Condensed vector or square symmetric matrix.
    k : int
        Number of groups.
    link_method : str or LinkageMethod, default='average'
        Agglomeration rule.

    Returns
    -------
    np.ndarray
        Labels in [1, k], numbered in order of first appearance.
    """
    method = LinkageMethod.coerce(link_method)
    d = np.asarray(dissimilarity, dtype=np.float64)
    if d.ndim == 2:
        d = squareform(d, checks=False)
    n_samples = int(round((1 + np.sqrt(1 + 8 * d.size)) / 2))

    _check_n_clusters(k, n_samples)
    if k == n_samples:
        return np.arange(1, n_samples + 1)

    Z = _LINKAGES[method](d)
    return _cut_tree(Z, n_samples, k)


def cluster(
    submatrix: np.ndarray,
    k: int,
    dist_method: Union[str, DistanceMethod] = DistanceMethod.EUCLIDEAN,
    link_method: Union[str, LinkageMethod] = LinkageMethod.AVERAGE
) -> np.ndarray:
    """
    Hierarchically cluster the rows of a matrix into exactly k groups.

    Parameters
    ----------
    submatrix : np.ndarray
        Matrix of shape (n_samples, n_features).
    k : int
        Number of groups.
    dist_method : str or DistanceMethod, default='euclidean'
        Dissimilarity measure between rows.
    link_method : str or LinkageMethod, default='average'
        Agglomeration rule.

    Returns
    -------
    np.ndarray
        Labels in [1, k], one per row.

    Raises
    ------
    InvalidParameter
        If k is larger than the number of rows or smaller than 1.
    DegenerateResample
        If the dissimilarities are undefined.
    """
    X = np.asarray(submatrix, dtype=np.float64)
    _check_n_clusters(k, X.shape[0])
    if k == X.shape[0]:
        return np.arange(1, k + 1)

    d = pairwise_dissimilarity(X, dist_method)
    return cluster_precomputed(d, k, link_method)


class HierarchicalClustering(BaseEstimator, ClusterMixin):
    """
    Agglomerative clustering with a fixed number of clusters.

    Sklearn-style wrapper around ``pairwise_dissimilarity`` and the linkage
    dispatch table. Labels start at 1 and follow the order in which clusters
    first appear among the rows.
    """

    def __init__(
        self,
        n_clusters: int = 2,
        dist_method: Union[str, DistanceMethod] = 'euclidean',
        link_method: Union[str, LinkageMethod] = 'average'
    ):
        """
        Initialize the HierarchicalClustering estimator.

        Parameters
        ----------
        n_clusters : int, default=2
            Number of clusters to cut the dendrogram into.
        dist_method : str or DistanceMethod, default='euclidean'
            Dissimilarity measure between rows.
        link_method : str or LinkageMethod, default='average'
            Agglomeration rule.
        """
        self.n_clusters = n_clusters
        self.dist_method = dist_method
        self.link_method = link_method

    def fit(self, X: np.ndarray, y=None) -> 'HierarchicalClustering':
        """
        Build the dendrogram and cut it.

        Parameters
        ----------
        X : np.ndarray
            Matrix of shape (n_samples, n_features).
        y : Ignored

        Returns
        -------
        self : HierarchicalClustering
        """
        X = np.asarray(X, dtype=np.float64)
        n_samples = X.shape[0]
        _check_n_clusters(self.n_clusters, n_samples)

        if n_samples < 2:
            self.linkage_matrix_ = np.empty((0, 4))
            self.labels_ = np.ones(n_samples, dtype=int)
            return self

        d = pairwise_dissimilarity(X, self.dist_method)
        self.linkage_matrix_ = _LINKAGES[LinkageMethod.coerce(self.link_method)](d)
        self.labels_ = _cut_tree(self.linkage_matrix_, n_samples, self.n_clusters)
        return self
