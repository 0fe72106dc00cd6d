"""Shared synthetic symptom data."""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from symptom_networks.network_analysis import SymptomSet

# Pairwise-independent, balanced block: each column half ones, every pair
# of columns takes all four combinations once.
_BALANCED_BLOCK = np.array([
    [0, 0, 0],
    [0, 1, 1],
    [1, 0, 1],
    [1, 1, 0],
])


def make_cooccurrence_frame(seed: int = 7) -> pd.DataFrame:
    """
    100 respondents, two strongly co-occurring symptoms (a, b; 92% match)
    and three noise symptoms balanced within every (a, b) cell, so the noise
    is uncorrelated with everything in the sample.
    """
    cells = {(1, 1): 48, (0, 0): 44, (1, 0): 4, (0, 1): 4}
    rows = []
    for (a, b), size in cells.items():
        noise = np.tile(_BALANCED_BLOCK, (size // 4, 1))
        for n1, n2, n3 in noise:
            rows.append((a, b, n1, n2, n3))
    data = np.array(rows)
    rng = np.random.default_rng(seed)
    data = data[rng.permutation(len(data))]
    return pd.DataFrame(data, columns=["sym_a", "sym_b", "noise_1", "noise_2", "noise_3"])


@pytest.fixture
def cooccurrence_frame() -> pd.DataFrame:
    return make_cooccurrence_frame()


@pytest.fixture
def cooccurrence_set() -> SymptomSet:
    return SymptomSet.from_columns(
        ["sym_a", "sym_b", "noise_1", "noise_2", "noise_3"],
        name="toy",
        groups={"pair": ["sym_a", "sym_b"], "noise": ["noise_1", "noise_2", "noise_3"]},
        count_column="n_episodes",
        min_n=50,
    )


@pytest.fixture
def random_binary_frame() -> pd.DataFrame:
    rng = np.random.default_rng(11)
    latent = rng.normal(size=(300, 1))
    loadings = np.array([1.2, 1.0, 0.8, 0.0, 0.0, 0.6])
    scores = latent * loadings + rng.normal(size=(300, 6))
    return pd.DataFrame((scores > 0).astype(int), columns=[f"v{i}" for i in range(6)])


@pytest.fixture
def chain_frame() -> pd.DataFrame:
    """Gaussian chain x1 -> x2 -> x3 plus an independent x4."""
    rng = np.random.default_rng(3)
    n = 500
    x1 = rng.normal(size=n)
    x2 = 0.7 * x1 + rng.normal(scale=0.7, size=n)
    x3 = 0.7 * x2 + rng.normal(scale=0.7, size=n)
    x4 = rng.normal(size=n)
    return pd.DataFrame({"x1": x1, "x2": x2, "x3": x3, "x4": x4})
