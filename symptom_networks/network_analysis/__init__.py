"""
Symptom Network Analysis Package
================================

High-level API for estimating correlation, partial-correlation, Gaussian
graphical and Ising networks over binary symptom indicators, with
centrality and shortest-path summaries.

Usage:
    python -m symptom_networks.network_analysis --data symptoms.csv --method ising ggm

Programmatic:
    from symptom_networks.network_analysis import run
    run(data_path="symptoms.csv", methods=["ising"])
"""

from ._config import (
    BASE_OUTPUT,
    DEFAULT_CONFIGS,
    EstimationConfig,
    NonConvergenceWarning,
    SYMPTOM_SETS,
    SymptomSet,
)
from .centrality import build_graph, compute_centrality, group_shortest_paths, shortest_path_matrix
from .ggm import ebic_glasso
from .ising import IsingResult, combine_directed, ising_fit
from .network_suite import AVAILABLE_METHODS, NetworkResults, estimate_network, list_methods, run

__all__ = [
    "BASE_OUTPUT",
    "DEFAULT_CONFIGS",
    "EstimationConfig",
    "NonConvergenceWarning",
    "SYMPTOM_SETS",
    "SymptomSet",
    "build_graph",
    "compute_centrality",
    "group_shortest_paths",
    "shortest_path_matrix",
    "ebic_glasso",
    "IsingResult",
    "combine_directed",
    "ising_fit",
    "AVAILABLE_METHODS",
    "NetworkResults",
    "estimate_network",
    "list_methods",
    "run",
]
