"""
Pipelines module for neatmaps.

This module provides the resampling step that feeds the consensus engine.
"""

from .resampling import (
    ResampleDescriptor,
    Resampler,
    draw,
    subsample_size
)

__all__ = [
    'ResampleDescriptor',
    'Resampler',
    'draw',
    'subsample_size'
]
