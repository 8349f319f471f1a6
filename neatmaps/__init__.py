"""
neatmaps: consensus clustering stability for multivariate data.

neatmaps repeatedly subsamples a numeric matrix, clusters each subsample
hierarchically for k = 2..max_k and summarizes how stable the clusters are,
to help decide how many clusters describe the data.

Individual modules can be imported directly:
    from neatmaps.consensus import ConsensusClustering, consensus_cluster
    from neatmaps.clustering import HierarchicalClustering, cluster
    from neatmaps.metrics import ecdf, delta, pac_score
    from neatmaps.pipelines import Resampler, draw
    from neatmaps.preprocessing import scale_columns
"""

__version__ = "0.1.0"

from .exceptions import NeatmapsError, InvalidInput, InvalidParameter, DegenerateResample
from .consensus import ConsensusClustering, ConsensusResult, ConsensusKResult, consensus_cluster
from .preprocessing import scale_columns

__all__ = [
    'NeatmapsError',
    'InvalidInput',
    'InvalidParameter',
    'DegenerateResample',
    'ConsensusClustering',
    'ConsensusResult',
    'ConsensusKResult',
    'consensus_cluster',
    'scale_columns'
]
