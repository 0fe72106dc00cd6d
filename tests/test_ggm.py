import numpy as np
import pytest

from symptom_networks.network_analysis import EstimationConfig, NonConvergenceWarning, ebic_glasso
from symptom_networks.network_analysis import ggm
from symptom_networks.network_analysis.ggm import count_edges, gaussian_ebic

FAST = EstimationConfig(n_lambdas=30, gamma=0.5)


def test_ebic_glasso_recovers_chain(chain_frame):
    result = ebic_glasso(chain_frame, config=FAST)
    pcor = result["partial_corr"]
    assert np.array_equal(pcor.values, pcor.values.T)
    assert np.all(np.diag(pcor.values) == 0.0)
    assert pcor.loc["x1", "x2"] > 0.2
    assert pcor.loc["x2", "x3"] > 0.2
    assert result["lambda"] > 0
    assert np.isfinite(result["ebic"])


def test_ebic_glasso_path_is_decreasing(chain_frame):
    result = ebic_glasso(chain_frame, config=FAST)
    path = result["path"]
    assert len(path) == FAST.n_lambdas
    assert np.all(np.diff(path["lambda"].values) < 0)
    assert path["lambda"].iloc[-1] == pytest.approx(path["lambda"].iloc[0] * FAST.lambda_min_ratio)
    selected = path.loc[path["converged"].astype(bool), "ebic"].min()
    assert result["ebic"] == pytest.approx(selected)


def test_ebic_glasso_keeps_constant_column(chain_frame):
    frame = chain_frame.assign(flat=2.0)
    with pytest.warns(NonConvergenceWarning, match="flat"):
        result = ebic_glasso(frame, config=FAST)
    pcor = result["partial_corr"]
    assert pcor.shape == (5, 5)
    assert (pcor.loc["flat"] == 0).all()
    assert result["constant_columns"] == ["flat"]


def test_ebic_glasso_spearman(chain_frame):
    result = ebic_glasso(chain_frame, config=FAST, correlation="spearman")
    assert result["partial_corr"].loc["x1", "x2"] > 0.2


def test_ebic_glasso_requires_rows(chain_frame):
    with pytest.raises(ValueError):
        ebic_glasso(chain_frame.head(5), config=FAST)


def test_gaussian_ebic_penalises_edges():
    S = np.array([[1.0, 0.3], [0.3, 1.0]])
    dense = np.linalg.inv(S)
    sparse = np.eye(2)
    assert count_edges(dense) == 1
    assert count_edges(sparse) == 0
    # With a huge gamma the sparse model must win
    assert gaussian_ebic(S, sparse, 50, 100.0) < gaussian_ebic(S, dense, 50, 100.0)


def test_partial_failure_selects_among_converged(chain_frame, monkeypatch):
    real_glasso = ggm.graphical_lasso
    calls = {"n": 0}

    def flaky_glasso(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] % 2 == 0:
            raise FloatingPointError("non SPD result")
        return real_glasso(*args, **kwargs)

    monkeypatch.setattr(ggm, "graphical_lasso", flaky_glasso)
    config = EstimationConfig(n_lambdas=10, gamma=0.5)
    least_variable = chain_frame.var().idxmin()

    with pytest.warns(NonConvergenceWarning, match=least_variable):
        result = ebic_glasso(chain_frame, config=config)

    path = result["path"]
    converged = path["converged"].astype(bool)
    assert converged.tolist() == [True, False] * 5
    assert result["failed_lambdas"] == pytest.approx(path.loc[~converged, "lambda"].tolist())
    assert result["ebic"] == pytest.approx(path.loc[converged, "ebic"].min())
    assert np.isclose(path.loc[converged, "lambda"], result["lambda"]).any()

    pcor = result["partial_corr"]
    assert pcor.shape == (4, 4)
    assert np.allclose(pcor.values, pcor.values.T)
    assert pcor.loc["x1", "x2"] > 0.2


def test_no_converged_penalty_returns_empty_network(chain_frame):
    config = EstimationConfig(n_lambdas=10, max_iter=1)
    with pytest.warns(NonConvergenceWarning, match="failed at all 10 penalty values"):
        result = ebic_glasso(chain_frame, config=config)

    pcor = result["partial_corr"]
    assert pcor.shape == (4, 4)
    assert (pcor.values == 0).all()
    assert np.isnan(result["lambda"])
    assert len(result["failed_lambdas"]) == 10
