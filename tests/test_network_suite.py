import json

import numpy as np
import pandas as pd
import pytest

from symptom_networks.network_analysis import AVAILABLE_METHODS, estimate_network, run
from symptom_networks.network_analysis.__main__ import main
from symptom_networks.network_analysis._config import COMORBIDITY_SET
from symptom_networks.network_analysis.network_suite import (
    bootstrap_edge_stability,
    group_path_summary,
    weights_to_edge_df,
)


@pytest.fixture
def symptom_csv(tmp_path, cooccurrence_frame):
    frame = cooccurrence_frame.copy()
    frame.insert(0, "id", range(1, len(frame) + 1))
    frame["n_episodes"] = np.arange(len(frame)) % 4
    incomplete = frame.head(3).copy().astype(float)
    incomplete["noise_2"] = np.nan
    incomplete["id"] = [901, 902, 903]
    frame = pd.concat([frame, incomplete], ignore_index=True)
    path = tmp_path / "symptoms.csv"
    frame.to_csv(path, index=False)
    return path


def test_run_writes_outputs(symptom_csv, cooccurrence_set, tmp_path):
    out = tmp_path / "out"
    results = run(
        data_path=symptom_csv,
        methods=["cor", "pcor", "ggm", "ising"],
        symptom_set=cooccurrence_set,
        config_overrides={"n_lambdas": 20},
        bootstrap_iter=3,
        output_root=out,
        verbose=False,
    )
    assert set(results) == {"cor", "pcor", "ggm", "ising"}

    ising = results["ising"]
    assert ising.metadata["n"] == 100
    assert ising.metadata["rule"] == "AND"
    assert len(ising.edges) == 1
    assert ising.group_paths.loc[0, "mean_path"] == np.inf

    method_dir = out / "toy" / "ising"
    for name in ["weights.csv", "edges.csv", "centrality.csv", "shortest_paths.csv",
                 "group_paths.csv", "metadata.json", "network.png", "weights_heatmap.png"]:
        assert (method_dir / name).exists(), name
    metadata = json.loads((method_dir / "metadata.json").read_text(encoding="utf-8"))
    assert metadata["n_edges"] == 1
    assert (out / "toy" / "ggm" / "ebic_path.csv").exists()


def test_run_rejects_unknown_method(symptom_csv, cooccurrence_set):
    with pytest.raises(ValueError):
        run(data_path=symptom_csv, methods=["bayes"], symptom_set=cooccurrence_set, verbose=False)


def test_estimate_network_is_symmetric_for_every_method(random_binary_frame):
    for method in AVAILABLE_METHODS:
        weights = estimate_network(random_binary_frame, method=method)["weights"].values
        assert np.allclose(weights, weights.T), method
        assert np.all(np.diag(weights) == 0.0), method


def test_weights_to_edge_df_skips_zero(cooccurrence_set):
    cols = cooccurrence_set.columns
    weights = pd.DataFrame(0.0, index=cols, columns=cols)
    weights.loc["sym_a", "noise_1"] = weights.loc["noise_1", "sym_a"] = -0.3
    edges = weights_to_edge_df(weights, cooccurrence_set)
    assert len(edges) == 1
    assert edges.loc[0, "sign"] == "negative"
    assert edges.loc[0, "abs_weight"] == pytest.approx(0.3)


def test_group_path_summary_uses_named_groups(cooccurrence_set):
    cols = cooccurrence_set.columns
    sp = pd.DataFrame(1.0, index=cols, columns=cols)
    summary = group_path_summary(sp, cooccurrence_set)
    assert summary[["group_a", "group_b"]].values.tolist() == [["pair", "noise"]]
    assert summary.loc[0, "n_pairs"] == 6
    assert summary.loc[0, "mean_path"] == pytest.approx(1.0)


def test_bootstrap_edge_stability(random_binary_frame):
    from symptom_networks.network_analysis import SymptomSet

    config = SymptomSet.from_columns(list(random_binary_frame.columns))
    summary = bootstrap_edge_stability(random_binary_frame, config, method="pcor", n_iter=5)
    assert not summary.empty
    assert summary["presence_rate"].between(0, 1).all()
    assert (summary["n_bootstrap"] == 5).all()


def test_cli_list_exits_cleanly(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--list"])
    assert excinfo.value.code == 0
    assert "ising" in capsys.readouterr().out


def test_cli_runs_default_symptom_set(tmp_path):
    rng = np.random.default_rng(5)
    n = 150
    latent = rng.normal(size=(n, 1))
    scores = latent + rng.normal(size=(n, len(COMORBIDITY_SET.columns)))
    frame = pd.DataFrame((scores > 0.3).astype(int), columns=COMORBIDITY_SET.columns)
    frame.insert(0, "respondent_id", range(n))
    frame["n_episodes"] = rng.poisson(1.5, size=n)
    data = tmp_path / "symptoms.csv"
    frame.to_csv(data, index=False)

    main(["--data", str(data), "--method", "ising", "--n-lambdas", "10",
          "--output", str(tmp_path / "out"), "--no-figures"])
    assert (tmp_path / "out" / "dep_gad" / "ising" / "centrality.csv").exists()
