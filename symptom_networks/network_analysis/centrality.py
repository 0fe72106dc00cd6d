"""
Centrality and shortest-path statistics for weighted symptom networks.

Edge length for path-based indices is the reciprocal of the absolute edge
weight, so strongly connected symptoms are "close".
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import networkx as nx
import numpy as np
import pandas as pd

from ._config import SymptomSet

VALID_PATH_STATISTICS = {"mean", "std"}
ZERO_WEIGHT_ATOL = 1e-10


def build_graph(weights: pd.DataFrame, config: SymptomSet) -> nx.Graph:
    """
    Undirected graph with every node of ``weights`` and one edge per nonzero
    upper-triangle entry. Isolated symptoms remain as nodes.
    """
    columns = list(weights.columns)
    values = weights.values
    G = nx.Graph()
    for node in columns:
        G.add_node(
            node,
            label=config.get_label(node),
            community=config.get_community(node),
        )

    for i in range(len(columns)):
        for j in range(i + 1, len(columns)):
            weight = float(values[i, j])
            if not np.isfinite(weight) or np.isclose(weight, 0.0, atol=ZERO_WEIGHT_ATOL):
                continue
            G.add_edge(
                columns[i],
                columns[j],
                weight=weight,
                abs_weight=abs(weight),
                distance=1.0 / abs(weight),
            )
    return G


def compute_centrality(
    graph: nx.Graph,
    config: SymptomSet,
    columns: Optional[List[str]] = None,
) -> pd.DataFrame:
    """
    Compute degree, strength, path-based and bridge centrality per node.

    Rows follow ``columns`` when given, otherwise the graph's node order.
    """
    if graph.number_of_nodes() == 0:
        return pd.DataFrame()
    columns = list(graph.nodes()) if columns is None else list(columns)

    strength = {}
    expected_influence = {}
    bridge_strength = {}
    for node in graph.nodes():
        node_comm = config.get_community(node)
        total = 0.0
        signed = 0.0
        cross = 0.0
        for neighbor, attrs in graph[node].items():
            w = attrs.get("weight", 0.0)
            total += abs(w)
            signed += w
            if config.get_community(neighbor) != node_comm:
                cross += abs(w)
        strength[node] = total
        expected_influence[node] = signed
        bridge_strength[node] = cross

    closeness = nx.closeness_centrality(graph, distance="distance")
    betweenness = nx.betweenness_centrality(graph, weight="distance", normalized=True)

    rows = []
    for node in columns:
        rows.append({
            "node": node,
            "label": config.get_label(node),
            "community": config.get_community(node),
            "degree": graph.degree(node),
            "strength": strength.get(node, 0.0),
            "strength_z": np.nan,
            "expected_influence": expected_influence.get(node, 0.0),
            "betweenness": betweenness.get(node, 0.0),
            "closeness": closeness.get(node, 0.0),
            "bridge_strength": bridge_strength.get(node, 0.0),
        })

    centrality_df = pd.DataFrame(rows)
    std = centrality_df["strength"].std(ddof=1)
    if std and np.isfinite(std):
        centrality_df["strength_z"] = (centrality_df["strength"] - centrality_df["strength"].mean()) / std
    else:
        centrality_df["strength_z"] = 0.0
    return centrality_df


def shortest_path_matrix(graph: nx.Graph, nodes: Iterable[str] | None = None) -> pd.DataFrame:
    """
    All-pairs shortest path lengths (Dijkstra on ``distance``).

    Unreachable pairs are ``inf``; the diagonal is 0.
    """
    order = list(graph.nodes()) if nodes is None else list(nodes)
    sp = pd.DataFrame(np.inf, index=order, columns=order)
    for source, lengths in nx.all_pairs_dijkstra_path_length(graph, weight="distance"):
        if source not in sp.index:
            continue
        for target, length in lengths.items():
            if target in sp.columns:
                sp.at[source, target] = float(length)
    for node in order:
        sp.at[node, node] = 0.0
    return sp


def group_shortest_paths(
    sp: pd.DataFrame,
    group_a: Iterable[str],
    group_b: Iterable[str],
    statistic: str = "mean",
) -> float:
    """
    Summarise shortest-path lengths over all cross-group node pairs.

    Returns ``inf`` when any cross pair is unreachable.

    Raises
    ------
    ValueError
        For empty, overlapping or unknown groups, or an unknown statistic.
    """
    group_a = list(group_a)
    group_b = list(group_b)
    if statistic not in VALID_PATH_STATISTICS:
        raise ValueError(f"Unknown statistic '{statistic}'. Use 'mean' or 'std'.")
    if not group_a or not group_b:
        raise ValueError("Both node groups must be non-empty.")
    overlap = set(group_a) & set(group_b)
    if overlap:
        raise ValueError(f"Node groups must be disjoint; shared nodes: {sorted(overlap)}")
    unknown = [node for node in group_a + group_b if node not in sp.index]
    if unknown:
        raise ValueError(f"Unknown nodes: {unknown}")

    lengths = sp.loc[group_a, group_b].values.ravel()
    if not np.all(np.isfinite(lengths)):
        return np.inf
    if statistic == "mean":
        return float(lengths.mean())
    return float(lengths.std(ddof=1)) if lengths.size > 1 else 0.0
