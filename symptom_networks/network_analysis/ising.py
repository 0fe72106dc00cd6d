"""
EBIC-selected Ising Model
=========================

Estimates an Ising network for binary (0/1) symptoms with node-wise
L1-penalised logistic regressions:

1. For every node j, regress x_j on all other nodes along a log-spaced
   penalty path (intercept unpenalised, warm-started from the largest
   penalty down).
2. Per node, keep the penalty minimising

       EBIC = -2 loglik + J log(n) + 2 gamma J log(p - 1)

   with J the number of nonzero slopes.
3. Reconcile the two directed coefficients of each pair with the AND rule
   (edge iff both nonzero) or OR rule (edge iff either nonzero). The edge
   weight is the arithmetic mean of the two directed coefficients.

A node whose regression cannot be fitted at any penalty (e.g. a symptom
nobody, or everybody, endorses) stays in the network without edges and is
reported with a NonConvergenceWarning.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression

from symptom_networks.preprocessing.standardization import check_binary, prevalence, zero_variance_columns
from ._config import ISING_DEFAULTS, EstimationConfig, NonConvergenceWarning, penalty_path

_PROB_EPS = 1e-12


@dataclass
class NodeFit:
    """Selected logistic regression for one node."""

    node: str
    coefficients: np.ndarray
    intercept: float
    lambda_: float
    ebic: float
    n_converged: int
    n_failed: int

    @property
    def fitted(self) -> bool:
        return self.n_converged > 0


@dataclass
class IsingResult:
    """Output of :func:`ising_fit`."""

    weights: pd.DataFrame
    thresholds: pd.Series
    coefficients: pd.DataFrame
    lambdas: pd.Series
    ebic: pd.Series
    rule: str
    gamma: float
    n: int
    failed_nodes: List[str] = field(default_factory=list)
    partially_converged: Dict[str, int] = field(default_factory=dict)

    @property
    def n_edges(self) -> int:
        values = self.weights.values
        return int(np.count_nonzero(np.triu(values, k=1)))


def bernoulli_loglik(y: np.ndarray, prob: np.ndarray) -> float:
    prob = np.clip(prob, _PROB_EPS, 1 - _PROB_EPS)
    return float(np.sum(y * np.log(prob) + (1 - y) * np.log(1 - prob)))


def logistic_lambda_max(X: np.ndarray, y: np.ndarray) -> float:
    """Smallest penalty at which every slope is zero."""
    if X.shape[1] == 0:
        return 0.0
    return float(np.max(np.abs(X.T @ (y - y.mean()))) / len(y))


def _null_fit(node: str, y: np.ndarray, n_predictors: int, n_failed: int = 0) -> NodeFit:
    """Intercept-only model; used when no slope can or may enter."""
    ybar = float(np.clip(y.mean(), _PROB_EPS, 1 - _PROB_EPS)) if len(y) else 0.5
    intercept = float(np.log(ybar / (1 - ybar)))
    ebic = -2.0 * bernoulli_loglik(y, np.full(len(y), ybar))
    return NodeFit(
        node=node,
        coefficients=np.zeros(n_predictors),
        intercept=intercept,
        lambda_=np.nan,
        ebic=ebic,
        n_converged=0,
        n_failed=n_failed,
    )


def fit_node(
    node: str,
    X: np.ndarray,
    y: np.ndarray,
    config: EstimationConfig,
    n_nodes: int,
) -> NodeFit:
    """
    Run the penalty path for one node and return the EBIC-selected fit.

    ``X`` holds the other nodes in their original order. Constant predictor
    columns are dropped from the design and get zero coefficients.
    """
    n, n_predictors = X.shape

    if np.unique(y).size < 2:
        return _null_fit(node, y, n_predictors, n_failed=config.n_lambdas)

    varying = np.array([np.unique(X[:, k]).size > 1 for k in range(n_predictors)], dtype=bool)
    X_fit = X[:, varying]
    lambdas = penalty_path(logistic_lambda_max(X_fit, y), config)
    if len(lambdas) == 0:
        null = _null_fit(node, y, n_predictors)
        null.n_converged = 1
        return null

    log_n = np.log(n)
    log_p = np.log(max(n_nodes - 1, 1))
    # l1_ratio=1 is the pure lasso penalty
    model = LogisticRegression(
        l1_ratio=1.0,
        solver="saga",
        tol=config.tol,
        max_iter=config.max_iter,
        warm_start=True,
        random_state=0,
    )

    best: Optional[NodeFit] = None
    n_converged = 0
    n_failed = 0
    for lam in lambdas:
        # sklearn minimises ||w||_1 + C * sum(logloss); lambda is per-observation
        model.set_params(C=1.0 / (n * lam))
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", ConvergenceWarning)
            model.fit(X_fit, y)
        if int(np.max(model.n_iter_)) >= config.max_iter:
            n_failed += 1
            continue

        n_converged += 1
        slopes = model.coef_.ravel()
        prob = model.predict_proba(X_fit)[:, 1]
        n_nonzero = int(np.count_nonzero(slopes))
        ebic = -2.0 * bernoulli_loglik(y, prob) + n_nonzero * log_n + 2.0 * config.gamma * n_nonzero * log_p

        if best is None or ebic < best.ebic:
            coefficients = np.zeros(n_predictors)
            coefficients[varying] = slopes
            best = NodeFit(
                node=node,
                coefficients=coefficients,
                intercept=float(model.intercept_[0]),
                lambda_=float(lam),
                ebic=float(ebic),
                n_converged=0,
                n_failed=0,
            )

    if best is None:
        return _null_fit(node, y, n_predictors, n_failed=n_failed)
    best.n_converged = n_converged
    best.n_failed = n_failed
    return best


def combine_directed(coefficients: np.ndarray, rule: str = "AND") -> np.ndarray:
    """
    Reconcile an asymmetric coefficient matrix into symmetric edge weights.

    Row i holds the coefficients of the regression predicting node i.
    AND keeps a pair when both directed coefficients are nonzero; OR keeps it
    when at least one is. Kept pairs get the mean of the two coefficients.
    """
    B = np.asarray(coefficients, dtype=float)
    if B.ndim != 2 or B.shape[0] != B.shape[1]:
        raise ValueError(f"Coefficient matrix must be square, got shape {B.shape}.")
    rule = rule.upper()
    nonzero = B != 0
    if rule == "AND":
        keep = nonzero & nonzero.T
    elif rule == "OR":
        keep = nonzero | nonzero.T
    else:
        raise ValueError(f"Unknown combination rule '{rule}'. Use 'AND' or 'OR'.")

    weights = (B + B.T) / 2.0
    weights[~keep] = 0.0
    np.fill_diagonal(weights, 0.0)
    return weights


def ising_fit(
    matrix: pd.DataFrame,
    config: EstimationConfig = ISING_DEFAULTS,
    verbose: bool = False,
) -> IsingResult:
    """
    Estimate an Ising network from complete binary data.

    Raises
    ------
    ValueError
        If the frame holds missing or non-binary values, or too few rows.
    """
    config.validate()
    columns = list(matrix.columns)
    p = len(columns)
    if p < 2:
        raise ValueError(f"Need at least 2 nodes to estimate a network, got {p}.")
    if matrix.isna().any().any():
        raise ValueError("Ising estimation requires complete data; apply listwise deletion first.")
    check_binary(matrix, columns)

    data = matrix.values.astype(float)
    n = data.shape[0]
    if n < 10:
        raise ValueError(f"Need at least 10 rows to estimate network, got {n}.")

    constant = zero_variance_columns(matrix, columns)
    coefs = np.zeros((p, p))
    thresholds = np.zeros(p)
    lambdas = np.full(p, np.nan)
    ebics = np.full(p, np.nan)
    failed: List[str] = []
    partial: Dict[str, int] = {}

    for j, node in enumerate(columns):
        others = [k for k in range(p) if k != j]
        fit = fit_node(node, data[:, others], data[:, j], config, n_nodes=p)
        coefs[j, others] = fit.coefficients
        thresholds[j] = fit.intercept
        lambdas[j] = fit.lambda_
        ebics[j] = fit.ebic
        if not fit.fitted:
            failed.append(node)
        elif fit.n_failed:
            partial[node] = fit.n_failed
        if verbose:
            status = "no converged fit" if not fit.fitted else f"lambda={fit.lambda_:.4g}"
            print(f"  [{j + 1}/{p}] {node}: {status}")

    if failed:
        reason = " (zero variance)" if set(failed) <= set(constant) else ""
        warnings.warn(
            f"Logistic regression did not converge at any penalty for {failed}{reason}; "
            "these nodes are kept without outgoing estimates.",
            NonConvergenceWarning,
        )
    if partial:
        rates = prevalence(matrix, sorted(partial)).round(3).to_dict()
        warnings.warn(
            "Logistic regression failed to converge at part of the penalty path for "
            f"{sorted(partial)} (endorsement rates {rates}); selected among converged fits.",
            NonConvergenceWarning,
        )

    weights = combine_directed(coefs, config.rule)
    return IsingResult(
        weights=pd.DataFrame(weights, index=columns, columns=columns),
        thresholds=pd.Series(thresholds, index=columns, name="threshold"),
        coefficients=pd.DataFrame(coefs, index=columns, columns=columns),
        lambdas=pd.Series(lambdas, index=columns, name="lambda"),
        ebic=pd.Series(ebics, index=columns, name="ebic"),
        rule=config.rule.upper(),
        gamma=config.gamma,
        n=n,
        failed_nodes=failed,
        partially_converged=partial,
    )
