"""
Row and column subsampling for consensus clustering.

This module provides the resampling step of the consensus engine: each
repetition draws a subset of rows (entities) and a subset of columns
(variables) without replacement. Draws are taken from one seeded
``numpy.random.Generator`` so a fixed seed reproduces the whole sequence.
"""

import numbers
import numpy as np
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from ..exceptions import InvalidParameter

__all__ = [
    'ResampleDescriptor',
    'Resampler',
    'draw',
    'subsample_size'
]


@dataclass(frozen=True)
class ResampleDescriptor:
    """
    Rows and columns selected for one repetition.

    Attributes
    ----------
    rows : np.ndarray
        Sorted, unique row indices into the full matrix.
    cols : np.ndarray
        Sorted, unique column indices into the full matrix.
    k : int, optional
        Number of clusters the repetition is drawn for.
    rep : int, optional
        Repetition number within ``k``.
    """
    rows: np.ndarray
    cols: np.ndarray
    k: Optional[int] = None
    rep: Optional[int] = None


def _check_proportion(name: str, value: float) -> float:
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        raise InvalidParameter(f"{name} must be a number in (0, 1], got {value!r}")
    value = float(value)
    if not (0 < value <= 1.0):
        raise InvalidParameter(f"{name} must be in (0, 1], got {value}")
    return value


def subsample_size(n: int, proportion: float) -> int:
    """Number of items kept when subsampling ``n`` items at ``proportion`` (rounded half up)."""
    return int(np.floor(n * proportion + 0.5))


def _check_sizes(n_rows: int, n_cols: int, p_net: float, p_var: float) -> Tuple[int, int]:
    n_sub_rows = subsample_size(n_rows, p_net)
    n_sub_cols = subsample_size(n_cols, p_var)
    if n_sub_rows < 2:
        raise InvalidParameter(
            f"p_net={p_net} keeps {n_sub_rows} of {n_rows} rows; clustering needs at least 2"
        )
    if n_sub_cols < 1:
        raise InvalidParameter(
            f"p_var={p_var} keeps {n_sub_cols} of {n_cols} columns; at least 1 is required"
        )
    return n_sub_rows, n_sub_cols


def draw(
    n_rows: int,
    n_cols: int,
    p_net: float,
    p_var: float,
    rng: np.random.Generator
) -> ResampleDescriptor:
    """
    Draw one random subset of rows and one random subset of columns.

    Parameters
    ----------
    n_rows : int
        Number of rows in the full matrix.
    n_cols : int
        Number of columns in the full matrix.
    p_net : float
        Proportion of rows to keep, in (0, 1].
    p_var : float
        Proportion of columns to keep, in (0, 1].
    rng : np.random.Generator
        Generator advanced by the draw.

    Returns
    -------
    descriptor : ResampleDescriptor
        Selected row and column indices.

    Raises
    ------
    InvalidParameter
        If a proportion is outside (0, 1], or the subsample would hold fewer
        than 2 rows or fewer than 1 column.
    """
    p_net = _check_proportion('p_net', p_net)
    p_var = _check_proportion('p_var', p_var)
    n_sub_rows, n_sub_cols = _check_sizes(n_rows, n_cols, p_net, p_var)

    rows = np.sort(rng.choice(n_rows, size=n_sub_rows, replace=False))
    cols = np.sort(rng.choice(n_cols, size=n_sub_cols, replace=False))
    return ResampleDescriptor(rows=rows, cols=cols)


class Resampler:
    """
    Deterministic generator of resample descriptors.

    The resampler owns a single generator seeded from ``random_state`` and
    draws descriptors with the number of clusters as the outer loop and the
    repetitions as the inner loop. Each batch is fully drawn before any of its
    repetitions run, so the sequence does not depend on how repetitions are
    executed. Batches are produced one k at a time.

    Features:
    - Proportions validated at construction
    - Independent row and column draws, without replacement
    - Identical sequences for identical seeds
    """

    def __init__(
        self,
        p_net: float = 0.8,
        p_var: float = 1.0,
        random_state: Optional[int] = None
    ):
        """
        Initialize the Resampler.

        Parameters
        ----------
        p_net : float, default=0.8
            Proportion of rows drawn in each repetition.
        p_var : float, default=1.0
            Proportion of columns drawn in each repetition.
        random_state : int, optional
            Seed for the underlying generator.
        """
        self.p_net = _check_proportion('p_net', p_net)
        self.p_var = _check_proportion('p_var', p_var)
        self.random_state = random_state

    def check_shape(self, n_rows: int, n_cols: int):
        """Raise ``InvalidParameter`` if subsamples of an ``n_rows`` x ``n_cols`` matrix are too small."""
        _check_sizes(n_rows, n_cols, self.p_net, self.p_var)

    def iter_batches(
        self,
        n_rows: int,
        n_cols: int,
        k_values: Iterable[int],
        reps: int
    ) -> Iterator[Tuple[int, List[ResampleDescriptor]]]:
        """
        Lazily draw the descriptors of a run, one batch per cluster count.

        Only the batch currently being processed is held in memory. The
        generator is seeded when iteration starts, so the batches are the same
        as the corresponding slices of ``split``.

        Parameters
        ----------
        n_rows : int
            Number of rows in the full matrix.
        n_cols : int
            Number of columns in the full matrix.
        k_values : Iterable[int]
            Cluster counts in the order they are processed.
        reps : int
            Repetitions per cluster count.

        Yields
        ------
        (k, batch) : Tuple[int, List[ResampleDescriptor]]
            Cluster count and its ``reps`` descriptors in repetition order.
        """
        self.check_shape(n_rows, n_cols)
        rng = np.random.default_rng(self.random_state)

        for k in k_values:
            batch = []
            for rep in range(reps):
                d = draw(n_rows, n_cols, self.p_net, self.p_var, rng)
                batch.append(ResampleDescriptor(rows=d.rows, cols=d.cols, k=k, rep=rep))
            yield k, batch

    def split(
        self,
        n_rows: int,
        n_cols: int,
        k_values: Iterable[int],
        reps: int
    ) -> List[ResampleDescriptor]:
        """
        Generate the full sequence of descriptors for a run.

        Returns
        -------
        descriptors : List[ResampleDescriptor]
            ``len(k_values) * reps`` descriptors, grouped by k.
        """
        return [d for _, batch in self.iter_batches(n_rows, n_cols, k_values, reps) for d in batch]

    def __repr__(self) -> str:
        return (f"Resampler(p_net={self.p_net}, p_var={self.p_var}, "
                f"random_state={self.random_state})")
