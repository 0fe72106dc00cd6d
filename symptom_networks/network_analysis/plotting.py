"""
Network and weight-matrix figures.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import matplotlib
matplotlib.use("Agg")  # Headless backend

import matplotlib.pyplot as plt
import networkx as nx
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.patches import Patch

from ._config import SymptomSet

COMMUNITY_PALETTE = ["#E63946", "#457B9D", "#2A9D8F", "#F4A261", "#8D99AE", "#6D597A"]
POSITIVE_EDGE = "#1D3557"
NEGATIVE_EDGE = "#D62828"


def layout_network(graph: nx.Graph, seed: int = 42, iterations: int = 200) -> Dict[str, np.ndarray]:
    """
    Force-directed (Fruchterman-Reingold) positions.

    Attraction scales with absolute edge weight; all node pairs repel.
    """
    if graph.number_of_nodes() == 0:
        return {}
    k = 2.0 / np.sqrt(graph.number_of_nodes())
    return nx.spring_layout(graph, weight="abs_weight", k=k, iterations=iterations, seed=seed)


def community_colors(graph: nx.Graph, config: SymptomSet) -> Dict[str, str]:
    communities = sorted({config.get_community(node) for node in graph.nodes()})
    return {
        comm: COMMUNITY_PALETTE[i % len(COMMUNITY_PALETTE)]
        for i, comm in enumerate(communities)
    }


def plot_network(
    graph: nx.Graph,
    output_path: Path | str,
    config: SymptomSet,
    title: str = "",
    pos: Optional[Dict[str, np.ndarray]] = None,
    width_scale: float = 6.0,
    seed: int = 42,
) -> Path:
    """Draw the network with edge width proportional to |weight| and save it."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if pos is None:
        pos = layout_network(graph, seed=seed)

    fig, ax = plt.subplots(figsize=(10, 9))

    palette = community_colors(graph, config)
    node_colors = [palette[config.get_community(node)] for node in graph.nodes()]

    edges = [(u, v) for u, v, d in graph.edges(data=True) if d.get("weight", 0.0) != 0.0]
    weights = [graph[u][v]["weight"] for u, v in edges]
    max_abs = max((abs(w) for w in weights), default=1.0) or 1.0
    edge_widths = [width_scale * abs(w) / max_abs for w in weights]
    edge_colors = [POSITIVE_EDGE if w > 0 else NEGATIVE_EDGE for w in weights]

    nx.draw_networkx_nodes(graph, pos, node_color=node_colors, node_size=900,
                           alpha=0.9, edgecolors="black", linewidths=1.5, ax=ax)
    nx.draw_networkx_labels(graph, pos, labels={n: config.get_label(n) for n in graph.nodes()},
                            font_size=8, ax=ax)
    if edges:
        nx.draw_networkx_edges(graph, pos, edgelist=edges, width=edge_widths,
                               edge_color=edge_colors, alpha=0.7, ax=ax)

    ax.set_title(title, fontsize=14, fontweight="bold", pad=16)
    ax.axis("off")
    legend_elements = [Patch(facecolor=color, label=comm) for comm, color in palette.items()]
    ax.legend(handles=legend_elements, loc="upper left", fontsize=9)

    plt.tight_layout()
    plt.savefig(output_path, dpi=200, bbox_inches="tight")
    plt.close(fig)
    return output_path


def plot_weight_heatmap(
    weights: pd.DataFrame,
    output_path: Path | str,
    config: SymptomSet,
    title: str = "",
) -> Path:
    """Lower-triangle heatmap of the weight matrix."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    labeled = weights.rename(index=config.get_label, columns=config.get_label)
    mask = np.triu(np.ones_like(labeled.values, dtype=bool))
    bound = float(np.max(np.abs(labeled.values))) or 1.0

    fig, ax = plt.subplots(figsize=(10, 8))
    sns.heatmap(
        labeled,
        mask=mask,
        annot=len(labeled) <= 15,
        fmt=".2f",
        cmap="RdBu_r",
        center=0,
        vmin=-bound,
        vmax=bound,
        square=True,
        linewidths=0.5,
        cbar_kws={"shrink": 0.8, "label": "Edge weight"},
        ax=ax,
    )
    ax.set_title(title, fontsize=14, fontweight="bold", pad=16)
    plt.tight_layout()
    plt.savefig(output_path, dpi=200, bbox_inches="tight")
    plt.close(fig)
    return output_path
