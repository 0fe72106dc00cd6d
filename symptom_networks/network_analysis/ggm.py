"""
EBIC-selected Gaussian Graphical Model
======================================

Fits the graphical lasso over a log-spaced penalty path on the correlation
matrix and keeps the penalty with the lowest extended BIC:

    L    = n/2 * (log det K - tr(S K))
    EBIC = -2 L + E log(n) + 4 E gamma log(p)

where K is the estimated precision matrix, S the sample correlation matrix
and E the number of nonzero partial correlations.
"""

from __future__ import annotations

import warnings
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.covariance import graphical_lasso
from sklearn.exceptions import ConvergenceWarning

from symptom_networks.preprocessing.standardization import zero_variance_columns
from ._config import GGM_DEFAULTS, EstimationConfig, NonConvergenceWarning, penalty_path
from .correlation import _check_method, precision_to_partial, rank_transform


def count_edges(precision: np.ndarray, atol: float = 1e-10) -> int:
    """Number of nonzero off-diagonal pairs in a precision matrix."""
    upper = np.triu_indices_from(precision, k=1)
    return int(np.sum(np.abs(precision[upper]) > atol))


def gaussian_ebic(S: np.ndarray, precision: np.ndarray, n: int, gamma: float) -> float:
    """Extended BIC of a precision matrix given the sample correlation matrix."""
    p = S.shape[0]
    sign, logdet = np.linalg.slogdet(precision)
    if sign <= 0:
        return np.inf
    loglik = n / 2.0 * (logdet - np.trace(S @ precision))
    n_edges = count_edges(precision)
    return float(-2.0 * loglik + n_edges * np.log(n) + 4.0 * n_edges * gamma * np.log(p))


def _fit_at(S: np.ndarray, alpha: float, config: EstimationConfig) -> Optional[np.ndarray]:
    """Return the precision matrix at one penalty, or None if the solver failed."""
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", ConvergenceWarning)
            _, precision, n_iter = graphical_lasso(
                S,
                alpha=alpha,
                tol=config.tol,
                max_iter=config.max_iter,
                return_n_iter=True,
            )
    except FloatingPointError:
        return None
    if n_iter >= config.max_iter or not np.all(np.isfinite(precision)):
        return None
    return precision


def ebic_glasso(
    matrix: pd.DataFrame,
    config: EstimationConfig = GGM_DEFAULTS,
    correlation: str = "pearson",
) -> Dict:
    """
    Estimate a sparse partial-correlation network selected by EBIC.

    Zero-variance columns cannot enter the correlation matrix; they are
    reported with a NonConvergenceWarning and returned as isolated nodes.
    Penalties at which the solver fails are skipped and selection runs over
    the converged ones. When nothing converges the result is an empty
    network.

    Returns
    -------
    dict
        partial_corr (DataFrame), precision (ndarray over fitted columns),
        lambda, ebic, path (DataFrame), failed_lambdas, constant_columns.
    """
    config.validate()
    method = _check_method(correlation)
    columns: List[str] = list(matrix.columns)
    n_samples = len(matrix)
    if n_samples < 10:
        raise ValueError(f"Need at least 10 rows to estimate network, got {n_samples}.")

    constant = zero_variance_columns(matrix, columns)
    if constant:
        warnings.warn(
            f"Zero-variance columns cannot be estimated and are left unconnected: {constant}",
            NonConvergenceWarning,
        )
    fitted = [col for col in columns if col not in constant]

    partial_df = pd.DataFrame(0.0, index=columns, columns=columns)
    result = {
        "partial_corr": partial_df,
        "precision": np.eye(len(fitted)),
        "lambda": np.nan,
        "ebic": np.nan,
        "path": pd.DataFrame(columns=["lambda", "ebic", "n_edges", "converged"]),
        "failed_lambdas": [],
        "constant_columns": constant,
        "fitted_columns": fitted,
        "gamma": config.gamma,
        "n": n_samples,
    }
    if len(fitted) < 2:
        return result

    data = matrix[fitted].values.astype(float)
    if method == "spearman":
        data = rank_transform(data)
    S = np.corrcoef(data, rowvar=False)

    off_diag = S[~np.eye(len(fitted), dtype=bool)]
    lambdas = penalty_path(float(np.max(np.abs(off_diag))), config)
    if len(lambdas) == 0:
        # Uncorrelated columns: the empty graph is the only candidate
        return result

    records = []
    best_precision = None
    best_ebic = np.inf
    best_lambda = np.nan
    for lam in lambdas:
        precision = _fit_at(S, lam, config)
        if precision is None:
            records.append({"lambda": lam, "ebic": np.nan, "n_edges": np.nan, "converged": False})
            continue
        ebic = gaussian_ebic(S, precision, n_samples, config.gamma)
        records.append({
            "lambda": lam,
            "ebic": ebic,
            "n_edges": count_edges(precision),
            "converged": True,
        })
        # Strict comparison keeps the sparser model on ties
        if ebic < best_ebic:
            best_ebic, best_lambda, best_precision = ebic, lam, precision

    path = pd.DataFrame(records, columns=["lambda", "ebic", "n_edges", "converged"])
    failed = path.loc[~path["converged"].astype(bool), "lambda"].tolist()
    result["path"] = path
    result["failed_lambdas"] = failed

    if best_precision is None:
        warnings.warn(
            f"Graphical lasso failed at all {len(lambdas)} penalty values for {fitted}; "
            "returning an empty network.",
            NonConvergenceWarning,
        )
        return result
    if failed:
        # Near-constant columns are the usual cause of an ill-conditioned S
        variances = matrix[fitted].var().sort_values().head(3).round(4).to_dict()
        warnings.warn(
            f"Graphical lasso did not converge at {len(failed)}/{len(lambdas)} penalty values "
            f"(smallest failing lambda={min(failed):.4g}; least variable columns {variances}); "
            "selected among converged fits.",
            NonConvergenceWarning,
        )

    partial_df.loc[fitted, fitted] = precision_to_partial(best_precision)
    result.update({
        "partial_corr": partial_df,
        "precision": best_precision,
        "lambda": float(best_lambda),
        "ebic": float(best_ebic),
    })
    return result
