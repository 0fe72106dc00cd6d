"""
Unregularized association matrices: zero-order and partial correlations.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
from scipy.stats import rankdata

VALID_CORRELATIONS = {"pearson", "spearman"}


def _check_method(method: str) -> str:
    method = method.lower()
    if method not in VALID_CORRELATIONS:
        raise ValueError(f"Unknown correlation method '{method}'. Use 'pearson' or 'spearman'.")
    return method


def rank_transform(data: np.ndarray) -> np.ndarray:
    """Convert columns to ranked (Spearman) scores with zero mean and unit variance."""
    ranked = np.apply_along_axis(rankdata, 0, data).astype(float)
    col_mean = ranked.mean(axis=0)
    col_std = ranked.std(axis=0, ddof=1)
    col_std[col_std == 0] = 1.0
    return (ranked - col_mean) / col_std


def correlation_matrix(df: pd.DataFrame, method: str = "pearson") -> pd.DataFrame:
    """
    Zero-order correlation matrix with the diagonal set to zero.

    Columns without variance produce NaN correlations; those are reported as 0
    so the node stays in the network without edges.
    """
    method = _check_method(method)
    corr = df.astype(float).corr(method=method).fillna(0.0)
    values = corr.values.copy()
    np.fill_diagonal(values, 0.0)
    return pd.DataFrame(values, index=df.columns, columns=df.columns)


def precision_to_partial(precision: np.ndarray) -> np.ndarray:
    """Partial correlations from a precision matrix; diagonal set to zero."""
    diag = np.sqrt(np.abs(np.diag(precision)))
    with np.errstate(divide="ignore", invalid="ignore"):
        denom = np.outer(diag, diag)
        partial = -precision / denom
    partial = np.nan_to_num(partial, nan=0.0, posinf=0.0, neginf=0.0)
    np.fill_diagonal(partial, 0.0)
    # Averaging removes floating-point asymmetry from the inverse
    return (partial + partial.T) / 2.0


def partial_correlation_matrix(df: pd.DataFrame, method: str = "pearson") -> pd.DataFrame:
    """
    Partial correlation matrix from the inverse of the correlation matrix.

    Uses the pseudo-inverse when the correlation matrix is singular. Zero
    variance columns are left out of the inversion and come back as
    all-zero rows and columns.
    """
    method = _check_method(method)
    data = df.astype(float)
    varying = [col for col in data.columns if data[col].nunique() > 1]

    result = pd.DataFrame(0.0, index=df.columns, columns=df.columns)
    if len(varying) < 2:
        return result

    corr = data[varying].corr(method=method).values
    try:
        precision = np.linalg.inv(corr)
    except np.linalg.LinAlgError:
        precision = np.linalg.pinv(corr)

    partial = precision_to_partial(precision)
    result.loc[varying, varying] = partial
    return result
