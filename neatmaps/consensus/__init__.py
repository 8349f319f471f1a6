"""
Consensus module for neatmaps.

This module provides the consensus clustering engine, its per-k count
accumulator and the result containers it returns.
"""

from .accumulator import ConsensusAccumulator
from .results import ConsensusKResult, ConsensusResult
from .consensus_clustering import ConsensusClustering, consensus_cluster

__all__ = [
    'ConsensusAccumulator',
    'ConsensusKResult',
    'ConsensusResult',
    'ConsensusClustering',
    'consensus_cluster'
]
