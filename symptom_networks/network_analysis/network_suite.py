"""
Symptom Network Analysis Suite
==============================

Estimates symptom networks from a respondent table:
- Zero-order correlation network ("cor")
- Partial correlation network ("pcor")
- EBIC-selected Gaussian graphical model ("ggm")
- EBIC-selected Ising model with AND/OR rule ("ising")

For each network the suite derives centrality indices, the all-pairs
shortest-path matrix, cross-group shortest-path summaries, an optional
bootstrap of edge stability and figures.

Usage:
    python -m symptom_networks.network_analysis --data symptoms.csv --method ising

Programmatic:
    from symptom_networks.network_analysis import run
    run(data_path="symptoms.csv", methods=["ising"])
"""

from __future__ import annotations

import json
import sys
if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8")

import warnings
from dataclasses import dataclass
from itertools import combinations
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from symptom_networks.preprocessing import (
    DEFAULT_SYMPTOM_CSV,
    listwise_delete,
    load_symptom_table,
)
from ._config import (
    BASE_OUTPUT,
    DEFAULT_CONFIGS,
    EstimationConfig,
    NonConvergenceWarning,
    SYMPTOM_SETS,
    SymptomSet,
)
from .centrality import build_graph, compute_centrality, group_shortest_paths, shortest_path_matrix
from .correlation import correlation_matrix, partial_correlation_matrix
from .ggm import ebic_glasso
from .ising import ising_fit
from .plotting import plot_network, plot_weight_heatmap


# =============================================================================
# HELPER DATA STRUCTURES
# =============================================================================

AVAILABLE_METHODS = {
    "cor": "Zero-order correlation network",
    "pcor": "Partial correlation network (unregularized)",
    "ggm": "EBIC-selected graphical lasso (partial correlations)",
    "ising": "EBIC-selected Ising model (node-wise L1 logistic regression)",
}


@dataclass
class NetworkResults:
    """Convenience structure for returning method-level outputs."""

    weights: pd.DataFrame
    edges: pd.DataFrame
    centrality: pd.DataFrame
    shortest_paths: pd.DataFrame
    group_paths: pd.DataFrame
    metadata: Dict
    bootstrap: pd.DataFrame


# =============================================================================
# CORE UTILITIES
# =============================================================================

def prepare_network_frame(
    data_path: Path | str = DEFAULT_SYMPTOM_CSV,
    symptom_set: str | SymptomSet = "dep_gad",
    verbose: bool = True,
) -> Tuple[pd.DataFrame, List[str], SymptomSet, int]:
    """
    Load the symptom table and apply listwise deletion over all kept columns.

    Returns the complete-case frame, node columns, symptom set and the
    number of dropped rows.
    """
    if isinstance(symptom_set, SymptomSet):
        config = symptom_set
    elif symptom_set in SYMPTOM_SETS:
        config = SYMPTOM_SETS[symptom_set]
    else:
        raise ValueError(f"Unknown symptom set '{symptom_set}'. Options: {list(SYMPTOM_SETS.keys())}")

    raw = load_symptom_table(data_path, config.columns, count_column=config.count_column)
    columns = config.available_columns(raw.columns)
    frame, n_dropped = listwise_delete(raw)

    if verbose:
        print(f"  Loaded {len(raw)} rows from {data_path}; listwise deletion dropped {n_dropped} -> N={len(frame)}")
    return frame, columns, config, n_dropped


def estimate_network(
    matrix: pd.DataFrame,
    method: str = "ising",
    config: Optional[EstimationConfig] = None,
    correlation: str = "pearson",
    verbose: bool = False,
) -> Dict:
    """
    Dispatch to one estimator and return a symmetric weight matrix plus metadata.
    """
    if method not in AVAILABLE_METHODS:
        raise ValueError(f"Unknown method '{method}'. Options: {list(AVAILABLE_METHODS.keys())}")

    if method == "cor":
        return {"weights": correlation_matrix(matrix, correlation), "metadata": {"correlation": correlation}}
    if method == "pcor":
        return {"weights": partial_correlation_matrix(matrix, correlation), "metadata": {"correlation": correlation}}

    config = config or DEFAULT_CONFIGS[method]
    if method == "ggm":
        result = ebic_glasso(matrix, config=config, correlation=correlation)
        return {
            "weights": result["partial_corr"],
            "metadata": {
                "correlation": correlation,
                "lambda": result["lambda"],
                "ebic": result["ebic"],
                "gamma": result["gamma"],
                "n_failed_lambdas": len(result["failed_lambdas"]),
                "constant_columns": result["constant_columns"],
            },
            "path": result["path"],
        }

    result = ising_fit(matrix, config=config, verbose=verbose)
    return {
        "weights": result.weights,
        "metadata": {
            "rule": result.rule,
            "gamma": result.gamma,
            "lambdas": result.lambdas.to_dict(),
            "thresholds": result.thresholds.to_dict(),
            "failed_nodes": result.failed_nodes,
            "partially_converged": result.partially_converged,
        },
        "ising": result,
    }


def weights_to_edge_df(weights: pd.DataFrame, config: SymptomSet) -> pd.DataFrame:
    """Convert a symmetric weight matrix to an edge list (nonzero pairs only)."""
    records: List[Dict[str, object]] = []
    columns = list(weights.columns)
    values = weights.values
    for i in range(len(columns)):
        for j in range(i + 1, len(columns)):
            weight = values[i, j]
            if np.isclose(weight, 0.0, atol=1e-10):
                continue
            node_i = columns[i]
            node_j = columns[j]
            records.append({
                "node_i": node_i,
                "node_j": node_j,
                "node_i_label": config.get_label(node_i),
                "node_j_label": config.get_label(node_j),
                "community_i": config.get_community(node_i),
                "community_j": config.get_community(node_j),
                "weight": float(weight),
                "abs_weight": float(abs(weight)),
                "sign": "positive" if weight > 0 else "negative",
            })
    return pd.DataFrame(
        records,
        columns=[
            "node_i", "node_j", "node_i_label", "node_j_label",
            "community_i", "community_j", "weight", "abs_weight", "sign",
        ],
    )


def group_path_summary(sp: pd.DataFrame, config: SymptomSet) -> pd.DataFrame:
    """Mean and sd of shortest paths for every pair of named node groups."""
    rows = []
    groups = {
        name: [node for node in nodes if node in sp.index]
        for name, nodes in config.groups.items()
    }
    for (name_a, nodes_a), (name_b, nodes_b) in combinations(groups.items(), 2):
        if not nodes_a or not nodes_b or set(nodes_a) & set(nodes_b):
            continue
        rows.append({
            "group_a": name_a,
            "group_b": name_b,
            "n_pairs": len(nodes_a) * len(nodes_b),
            "mean_path": group_shortest_paths(sp, nodes_a, nodes_b, "mean"),
            "sd_path": group_shortest_paths(sp, nodes_a, nodes_b, "std"),
        })
    return pd.DataFrame(rows, columns=["group_a", "group_b", "n_pairs", "mean_path", "sd_path"])


def bootstrap_edge_stability(
    matrix: pd.DataFrame,
    config: SymptomSet,
    method: str,
    est_config: Optional[EstimationConfig] = None,
    correlation: str = "pearson",
    n_iter: int = 100,
    sample_fraction: float = 1.0,
    random_state: int = 42,
) -> pd.DataFrame:
    """Non-parametric bootstrap resampling of network edges."""
    if n_iter <= 0:
        return pd.DataFrame()

    rng = np.random.default_rng(random_state)
    records: List[Dict[str, object]] = []
    valid_iters = 0
    fail_count = 0

    for _ in range(n_iter):
        sample = matrix.sample(
            frac=sample_fraction,
            replace=True,
            random_state=int(rng.integers(0, 1_000_000)),
        )
        try:
            with warnings.catch_warnings():
                # Sparse replicates routinely lose a rare symptom
                warnings.simplefilter("ignore", NonConvergenceWarning)
                result = estimate_network(sample, method=method, config=est_config, correlation=correlation)
        except (ValueError, FloatingPointError, np.linalg.LinAlgError):
            fail_count += 1
            continue
        valid_iters += 1
        edges = weights_to_edge_df(result["weights"], config)
        for _, edge in edges.iterrows():
            records.append({
                "node_i": edge["node_i"],
                "node_j": edge["node_j"],
                "weight": edge["weight"],
                "abs_weight": edge["abs_weight"],
                "sign": 1 if edge["weight"] > 0 else -1,
            })

    if fail_count > n_iter * 0.1:
        warnings.warn(f"High bootstrap failure rate: {fail_count}/{n_iter} ({100 * fail_count / n_iter:.1f}%)")

    if not records or valid_iters == 0:
        return pd.DataFrame()

    df = pd.DataFrame(records)
    summary = (
        df.groupby(["node_i", "node_j"])
        .agg(
            n_present=("weight", "count"),
            mean_weight=("weight", "mean"),
            mean_abs_weight=("abs_weight", "mean"),
            sign_consistency=("sign", lambda x: abs(x.mean())),
        )
        .reset_index()
    )
    summary["presence_rate"] = summary["n_present"] / valid_iters
    summary["n_bootstrap"] = valid_iters
    summary["node_i_label"] = summary["node_i"].map(config.get_label)
    summary["node_j_label"] = summary["node_j"].map(config.get_label)
    return summary


def _json_ready(value):
    if isinstance(value, dict):
        return {str(k): _json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_ready(v) for v in value]
    if isinstance(value, (np.integer,)):
        return int(value)
    if isinstance(value, (np.floating, float)):
        return None if not np.isfinite(value) else float(value)
    return value


# =============================================================================
# METHOD RUNNER
# =============================================================================

def run_network(
    frame: pd.DataFrame,
    columns: List[str],
    config: SymptomSet,
    method: str,
    output_dir: Optional[Path] = None,
    est_config: Optional[EstimationConfig] = None,
    correlation: str = "pearson",
    bootstrap_iter: int = 0,
    bootstrap_fraction: float = 1.0,
    make_figures: bool = True,
    verbose: bool = True,
) -> Optional[NetworkResults]:
    """Estimate one network and persist its outputs under ``output_dir``."""
    matrix = frame[columns]
    n = len(matrix)
    if n < config.min_n:
        print(f"[WARN] {method}: insufficient rows (n={n} < min_n={config.min_n}). Skipping.")
        return None

    if verbose:
        print(f"\n[{method}] {AVAILABLE_METHODS[method]} (N={n}, p={len(columns)})")

    estimate = estimate_network(matrix, method=method, config=est_config, correlation=correlation, verbose=verbose)
    weights = estimate["weights"]
    edges = weights_to_edge_df(weights, config)
    graph = build_graph(weights, config)
    centrality = compute_centrality(graph, config, columns)
    shortest_paths = shortest_path_matrix(graph, columns)
    group_paths = group_path_summary(shortest_paths, config)

    metadata = {
        "method": method,
        "n": n,
        "n_nodes": len(columns),
        "n_edges": len(edges),
        "density": len(edges) / (len(columns) * (len(columns) - 1) / 2) if len(columns) > 1 else 0.0,
        "variables": columns,
        "labels": {col: config.get_label(col) for col in columns},
        "communities": {col: config.get_community(col) for col in columns},
        **estimate["metadata"],
    }

    if verbose:
        print(f"  Edges: {len(edges)} | density={metadata['density']:.3f}")
        for _, row in group_paths.iterrows():
            print(f"  Mean shortest path {row['group_a']} <-> {row['group_b']}: {row['mean_path']:.3f}")

    bootstrap_df = pd.DataFrame()
    if bootstrap_iter > 0:
        bootstrap_df = bootstrap_edge_stability(
            matrix,
            config,
            method=method,
            est_config=est_config,
            correlation=correlation,
            n_iter=bootstrap_iter,
            sample_fraction=bootstrap_fraction,
        )

    if output_dir is not None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        weights.to_csv(output_dir / "weights.csv", encoding="utf-8-sig")
        edges.to_csv(output_dir / "edges.csv", index=False, encoding="utf-8-sig")
        centrality.to_csv(output_dir / "centrality.csv", index=False, encoding="utf-8-sig")
        shortest_paths.to_csv(output_dir / "shortest_paths.csv", encoding="utf-8-sig")
        group_paths.to_csv(output_dir / "group_paths.csv", index=False, encoding="utf-8-sig")
        if "path" in estimate:
            estimate["path"].to_csv(output_dir / "ebic_path.csv", index=False, encoding="utf-8-sig")
        if not bootstrap_df.empty:
            bootstrap_df.to_csv(output_dir / "bootstrap_edge_stability.csv", index=False, encoding="utf-8-sig")
        (output_dir / "metadata.json").write_text(json.dumps(_json_ready(metadata), indent=2), encoding="utf-8")

        if make_figures:
            title = f"{AVAILABLE_METHODS[method]} (N={n})"
            plot_network(graph, output_dir / "network.png", config, title=title)
            plot_weight_heatmap(weights, output_dir / "weights_heatmap.png", config, title=title)

    return NetworkResults(
        weights=weights,
        edges=edges,
        centrality=centrality,
        shortest_paths=shortest_paths,
        group_paths=group_paths,
        metadata=metadata,
        bootstrap=bootstrap_df,
    )


# =============================================================================
# PUBLIC API
# =============================================================================

def run(
    data_path: Path | str = DEFAULT_SYMPTOM_CSV,
    methods: Sequence[str] = ("ising",),
    symptom_set: str | SymptomSet = "dep_gad",
    config_overrides: Optional[Dict[str, object]] = None,
    correlation: str = "pearson",
    bootstrap_iter: int = 0,
    bootstrap_fraction: float = 1.0,
    output_root: Optional[Path] = None,
    make_figures: bool = True,
    verbose: bool = True,
) -> Dict[str, NetworkResults]:
    """
    Entry point for symptom network analyses.

    ``config_overrides`` (e.g. {"gamma": 0.5, "rule": "OR"}) are applied on
    top of each regularized method's default EstimationConfig.
    """
    unknown = [m for m in methods if m not in AVAILABLE_METHODS]
    if unknown:
        raise ValueError(f"Unknown methods {unknown}. Options: {list(AVAILABLE_METHODS.keys())}")

    if verbose:
        print("=" * 70)
        print("SYMPTOM NETWORK ANALYSIS SUITE")
        print("=" * 70)
        print(f"Methods: {', '.join(methods)} | Data: {data_path}")

    frame, columns, config, _ = prepare_network_frame(data_path, symptom_set, verbose=verbose)
    root = Path(output_root) if output_root is not None else BASE_OUTPUT
    root = root / config.name

    results: Dict[str, NetworkResults] = {}
    for method in methods:
        est_config = None
        if method in DEFAULT_CONFIGS:
            est_config = DEFAULT_CONFIGS[method].with_overrides(**(config_overrides or {}))
        outcome = run_network(
            frame,
            columns,
            config,
            method=method,
            output_dir=root / method,
            est_config=est_config,
            correlation=correlation,
            bootstrap_iter=bootstrap_iter,
            bootstrap_fraction=bootstrap_fraction,
            make_figures=make_figures,
            verbose=verbose,
        )
        if outcome is not None:
            results[method] = outcome

    if verbose:
        print("\nCompleted. Outputs saved to:", root)

    return results


def list_methods() -> None:
    """Print available estimation methods."""
    print("\nAvailable network methods:")
    for key, desc in AVAILABLE_METHODS.items():
        print(f"  {key:<8} - {desc}")
