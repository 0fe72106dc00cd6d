import itertools

import numpy as np
import pandas as pd
import pytest

from symptom_networks.network_analysis import (
    SymptomSet,
    build_graph,
    compute_centrality,
    group_shortest_paths,
    shortest_path_matrix,
)


@pytest.fixture
def toy_set():
    return SymptomSet.from_columns(
        ["dep_a", "dep_b", "gad_c", "gad_d"],
        name="toy",
    )


@pytest.fixture
def toy_weights():
    nodes = ["dep_a", "dep_b", "gad_c", "gad_d"]
    w = pd.DataFrame(0.0, index=nodes, columns=nodes)
    w.loc["dep_a", "dep_b"] = w.loc["dep_b", "dep_a"] = 0.5
    w.loc["dep_b", "gad_c"] = w.loc["gad_c", "dep_b"] = -0.25
    return w


def test_build_graph_keeps_isolated_nodes(toy_weights, toy_set):
    graph = build_graph(toy_weights, toy_set)
    assert set(graph.nodes()) == set(toy_weights.columns)
    assert graph.number_of_edges() == 2
    assert graph.degree("gad_d") == 0
    assert graph["dep_b"]["gad_c"]["distance"] == pytest.approx(4.0)


def test_shortest_path_matrix_values(toy_weights, toy_set):
    sp = shortest_path_matrix(build_graph(toy_weights, toy_set), toy_weights.columns)
    assert sp.loc["dep_a", "dep_b"] == pytest.approx(2.0)
    assert sp.loc["dep_a", "gad_c"] == pytest.approx(6.0)
    assert sp.loc["dep_a", "gad_d"] == np.inf
    assert (np.diag(sp.values) == 0).all()


def test_shortest_path_matrix_symmetric_and_metric(random_binary_frame):
    weights = random_binary_frame.corr().to_numpy(copy=True)
    np.fill_diagonal(weights, 0.0)
    cols = list(random_binary_frame.columns)
    frame = pd.DataFrame(weights, index=cols, columns=cols)
    sp = shortest_path_matrix(build_graph(frame, SymptomSet.from_columns(cols)), cols).values

    np.testing.assert_allclose(sp, sp.T)
    for i, j, k in itertools.product(range(len(cols)), repeat=3):
        assert sp[i, j] <= sp[i, k] + sp[k, j] + 1e-9


def test_group_shortest_paths(toy_weights, toy_set):
    sp = shortest_path_matrix(build_graph(toy_weights, toy_set), toy_weights.columns)
    assert group_shortest_paths(sp, ["dep_a"], ["gad_c"]) == pytest.approx(6.0)
    assert group_shortest_paths(sp, ["dep_a", "dep_b"], ["gad_c"]) == pytest.approx(5.0)
    assert group_shortest_paths(sp, ["dep_a", "dep_b"], ["gad_c"], "std") == pytest.approx(np.std([6.0, 4.0], ddof=1))
    assert group_shortest_paths(sp, ["dep_a", "dep_b"], ["gad_c", "gad_d"]) == np.inf


@pytest.mark.parametrize(
    "group_a, group_b, statistic",
    [
        (["dep_a"], ["dep_a", "gad_c"], "mean"),
        ([], ["gad_c"], "mean"),
        (["dep_a"], ["nope"], "mean"),
        (["dep_a"], ["gad_c"], "median"),
    ],
)
def test_group_shortest_paths_rejects_bad_groups(toy_weights, toy_set, group_a, group_b, statistic):
    sp = shortest_path_matrix(build_graph(toy_weights, toy_set), toy_weights.columns)
    with pytest.raises(ValueError):
        group_shortest_paths(sp, group_a, group_b, statistic)


def test_compute_centrality(toy_weights, toy_set):
    graph = build_graph(toy_weights, toy_set)
    cent = compute_centrality(graph, toy_set, list(toy_weights.columns)).set_index("node")

    assert cent.loc["dep_b", "strength"] == pytest.approx(0.75)
    assert cent.loc["dep_b", "expected_influence"] == pytest.approx(0.25)
    assert cent.loc["dep_b", "degree"] == 2
    assert cent.loc["dep_b", "bridge_strength"] == pytest.approx(0.25)
    assert cent.loc["dep_b", "betweenness"] > 0
    assert cent.loc["dep_a", "betweenness"] == 0
    assert cent.loc["gad_d", "strength"] == 0
    assert cent.loc["gad_d", "closeness"] == 0
    assert cent["community"].tolist() == ["dep", "dep", "gad", "gad"]


def test_compute_centrality_defaults_to_graph_nodes(toy_weights, toy_set):
    graph = build_graph(toy_weights, toy_set)
    cent = compute_centrality(graph, toy_set)
    assert cent["node"].tolist() == list(graph.nodes())
    assert cent.set_index("node").loc["dep_a", "strength"] == pytest.approx(0.5)
