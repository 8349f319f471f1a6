"""
Preprocessing module for neatmaps.

This module provides optional column rescaling applied to the input matrix
before consensus clustering.
"""

from .scaling import scale_columns, VALID_METHODS

__all__ = [
    'scale_columns',
    'VALID_METHODS'
]
