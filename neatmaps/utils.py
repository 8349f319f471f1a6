import numpy as np
import pandas as pd
from typing import Tuple, Union

from .exceptions import InvalidInput

def check_matrix(X: Union[np.ndarray, pd.DataFrame]) -> Tuple[np.ndarray, pd.Index, pd.Index]:
    """
    Validate an input matrix and return it as a float array with its labels.

    Parameters:
    ----------
    X : Union[np.ndarray, pd.DataFrame]
        Matrix with entities as rows and numeric variables as columns.

    Returns:
    -------
    Tuple[np.ndarray, pd.Index, pd.Index]
        Float64 copy of the values, row labels and column labels. Arrays get
        positional labels.

    Raises:
    -------
    InvalidInput
        If the matrix is not 2-D, has non-numeric or boolean columns, contains
        missing or infinite values, has fewer than 2 rows or no columns.
    """

    if isinstance(X, pd.DataFrame):
        bad = [c for c in X.columns
               if not pd.api.types.is_numeric_dtype(X[c]) or pd.api.types.is_bool_dtype(X[c])]
        if bad:
            raise InvalidInput(f"Input must contain exclusively numeric columns, got non-numeric columns: {bad}")
        values = X.to_numpy(dtype=np.float64)
        rows, cols = X.index, X.columns
    else:
        arr = np.asarray(X)
        if arr.dtype.kind not in "iuf":
            raise InvalidInput(f"Input must contain exclusively numeric values, got dtype {arr.dtype}")
        values = arr.astype(np.float64)
        if values.ndim != 2:
            raise InvalidInput(f"Input must be a 2-D matrix, got {values.ndim} dimension(s)")
        rows = pd.RangeIndex(values.shape[0])
        cols = pd.RangeIndex(values.shape[1])

    n_rows, n_cols = values.shape
    if n_rows < 2:
        raise InvalidInput(f"Input must have at least 2 rows, got {n_rows}")
    if n_cols < 1:
        raise InvalidInput("Input must have at least 1 column")
    if not np.all(np.isfinite(values)):
        raise InvalidInput("Input contains missing or infinite values")

    return values, rows, cols

def renumber_labels(labels: np.ndarray) -> np.ndarray:
    """
    Renumber cluster labels to 1..k in order of first appearance.

    Parameters:
    ----------
    labels : np.ndarray
        Arbitrary integer labels.

    Returns:
    -------
    np.ndarray
        Labels in [1, k] where the first row always belongs to cluster 1.
    """

    _, first, inverse = np.unique(labels, return_index=True, return_inverse=True)
    order = np.argsort(np.argsort(first))
    return order[inverse.ravel()] + 1
