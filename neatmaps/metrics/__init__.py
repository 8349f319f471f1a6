"""
Metrics module for neatmaps.

This module provides the stability statistics computed from consensus
matrices.
"""

from .stability import (
    ConsensusECDF,
    upper_triangle_values,
    ecdf,
    delta,
    cdf_area,
    relative_area_change,
    pac_score
)

__all__ = [
    'ConsensusECDF',
    'upper_triangle_values',
    'ecdf',
    'delta',
    'cdf_area',
    'relative_area_change',
    'pac_score'
]
