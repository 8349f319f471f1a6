"""
Clustering module for neatmaps.

This module provides the base hierarchical clusterer used for every
resampled trial and for the final full-data partitions.
"""

from .hierarchical import (
    DistanceMethod,
    LinkageMethod,
    HierarchicalClustering,
    pairwise_dissimilarity,
    cluster,
    cluster_precomputed
)

__all__ = [
    'DistanceMethod',
    'LinkageMethod',
    'HierarchicalClustering',
    'pairwise_dissimilarity',
    'cluster',
    'cluster_precomputed'
]
