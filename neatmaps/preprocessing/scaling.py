import numpy as np
import pandas as pd
from typing import Union
from scipy.stats import rankdata
from sklearn.preprocessing import StandardScaler

from ..exceptions import InvalidParameter
from ..utils import check_matrix

VALID_METHODS = ['none', 'ecdf', 'normalize', 'percentize']

def _ecdf_columns(values: np.ndarray) -> np.ndarray:
    # fraction of the column at or below each value
    return rankdata(values, method='max', axis=0) / values.shape[0]

def _percentize_columns(values: np.ndarray) -> np.ndarray:
    # tied values share their average percentile rank
    return (rankdata(values, method='average', axis=0) - 1) / (values.shape[0] - 1)

def _normalize_columns(values: np.ndarray) -> np.ndarray:
    # StandardScaler divides by the population sd; rescale to the sample sd (ddof=1)
    n = values.shape[0]
    return StandardScaler().fit_transform(values) * np.sqrt((n - 1) / n)

def scale_columns(
    X: Union[np.ndarray, pd.DataFrame],
    method: str = 'none'
) -> Union[np.ndarray, pd.DataFrame]:
    """
    Rescale each column of a matrix independently.

    Parameters:
    ----------
    X : Union[np.ndarray, pd.DataFrame]
        Numeric matrix with entities as rows and variables as columns.
    method : str, default='none'
        - 'none': values are returned unchanged (as floats).
        - 'ecdf': each value becomes the fraction of its column at or below it.
        - 'normalize': columns are centered to mean 0 and scaled to unit
          sample standard deviation (n - 1 denominator). Constant columns
          become 0.
        - 'percentize': each value becomes its percentile rank in [0, 1],
          ties sharing the average rank.

    Returns:
    -------
    Union[np.ndarray, pd.DataFrame]
        Scaled matrix of the same type, shape and labels as X.
    """

    if method not in VALID_METHODS:
        raise InvalidParameter(f"Unknown scaling method: {method}. Available options: {VALID_METHODS}")

    values, rows, cols = check_matrix(X)

    if method == 'ecdf':
        values = _ecdf_columns(values)
    elif method == 'normalize':
        values = _normalize_columns(values)
    elif method == 'percentize':
        values = _percentize_columns(values)

    if isinstance(X, pd.DataFrame):
        return pd.DataFrame(values, index=rows, columns=cols)
    return values
