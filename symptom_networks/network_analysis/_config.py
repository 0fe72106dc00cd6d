"""
Network Analysis Configuration
==============================

Defines reusable symptom sets, estimation settings and output paths.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

import numpy as np

from symptom_networks.preprocessing.constants import ANALYSIS_OUTPUT_DIR, DEFAULT_COUNT_COLUMN


# =============================================================================
# OUTPUT PATH
# =============================================================================

BASE_OUTPUT = ANALYSIS_OUTPUT_DIR / "network_analysis"


# =============================================================================
# ESTIMATION SETTINGS
# =============================================================================

VALID_RULES = {"AND", "OR"}


@dataclass(frozen=True)
class EstimationConfig:
    """
    Settings for EBIC-selected regularized estimation.

    Attributes
    ----------
    n_lambdas : int
        Number of penalty values on the regularization path.
    lambda_min_ratio : float
        Smallest penalty as a fraction of the largest one.
    gamma : float
        EBIC hyperparameter (0 gives ordinary BIC).
    rule : str
        "AND" or "OR", how two directed logistic coefficients become one edge.
    tol : float
        Solver convergence tolerance.
    max_iter : int
        Solver iteration cap per penalty value.
    """

    n_lambdas: int = 100
    lambda_min_ratio: float = 0.01
    gamma: float = 0.25
    rule: str = "AND"
    tol: float = 1e-4
    max_iter: int = 10000

    def validate(self) -> "EstimationConfig":
        if self.n_lambdas < 1:
            raise ValueError(f"n_lambdas must be >= 1, got {self.n_lambdas}.")
        if not 0 < self.lambda_min_ratio < 1:
            raise ValueError(f"lambda_min_ratio must lie in (0, 1), got {self.lambda_min_ratio}.")
        if self.gamma < 0:
            raise ValueError(f"gamma must be non-negative, got {self.gamma}.")
        if self.rule.upper() not in VALID_RULES:
            raise ValueError(f"Unknown combination rule '{self.rule}'. Use 'AND' or 'OR'.")
        if self.tol <= 0 or self.max_iter < 1:
            raise ValueError("tol must be positive and max_iter >= 1.")
        return self

    def with_overrides(self, **changes) -> "EstimationConfig":
        """Return a copy with non-None overrides applied."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes).validate()


ISING_DEFAULTS = EstimationConfig(gamma=0.25, rule="AND")
GGM_DEFAULTS = EstimationConfig(gamma=0.5)

DEFAULT_CONFIGS: Dict[str, EstimationConfig] = {
    "ising": ISING_DEFAULTS,
    "ggm": GGM_DEFAULTS,
}


def penalty_path(lambda_max: float, config: EstimationConfig) -> np.ndarray:
    """Log-spaced penalties from lambda_max down to lambda_max * lambda_min_ratio."""
    if lambda_max <= 0 or not np.isfinite(lambda_max):
        return np.array([], dtype=float)
    if config.n_lambdas == 1:
        return np.array([lambda_max], dtype=float)
    return np.logspace(
        np.log10(lambda_max),
        np.log10(lambda_max * config.lambda_min_ratio),
        config.n_lambdas,
    )


# =============================================================================
# WARNINGS
# =============================================================================

class NonConvergenceWarning(UserWarning):
    """A regularized fit did not converge at one or more penalty values."""


# =============================================================================
# SYMPTOM SET DEFINITIONS
# =============================================================================

@dataclass
class SymptomSet:
    """
    Container describing which symptoms enter a network model.

    Attributes
    ----------
    name : str
        Identifier used for folder names and CLI arguments.
    columns : list of str
        Binary symptom indicators, ordered by category.
    description : str
        Short human-readable summary.
    labels : dict
        Mapping from column name to display label.
    communities : dict
        Mapping from column name to diagnostic category.
    groups : dict
        Named node subsets used for cross-group shortest-path summaries.
    count_column : str, optional
        Integer covariate carried alongside the symptoms.
    min_n : int
        Minimum number of complete rows required to estimate the network.
    """

    name: str
    columns: List[str]
    description: str
    labels: Dict[str, str]
    communities: Dict[str, str]
    groups: Dict[str, List[str]] = field(default_factory=dict)
    count_column: Optional[str] = DEFAULT_COUNT_COLUMN
    min_n: int = 50

    def available_columns(self, df_columns: Iterable[str]) -> List[str]:
        """Return columns present in the supplied dataframe."""
        df_columns = set(df_columns)
        return [col for col in self.columns if col in df_columns]

    def get_label(self, column: str) -> str:
        """Return a human-readable label for a column."""
        return self.labels.get(column, column)

    def get_community(self, column: str) -> str:
        """Return a community label for a column."""
        return self.communities.get(column, "unspecified")

    @classmethod
    def from_columns(cls, columns: List[str], name: str = "custom", **kwargs) -> "SymptomSet":
        """Build an ad-hoc set; communities default to the column prefix before '_'."""
        communities = kwargs.pop("communities", None) or {
            col: col.split("_", 1)[0] if "_" in col else "unspecified" for col in columns
        }
        return cls(
            name=name,
            columns=list(columns),
            description=kwargs.pop("description", "Ad-hoc symptom set"),
            labels=kwargs.pop("labels", {}),
            communities=communities,
            **kwargs,
        )


DEPRESSION_COLUMNS = [
    "dep_mood",
    "dep_interest",
    "dep_weight",
    "dep_psychomotor",
    "dep_worthless",
    "dep_suicide",
]
SHARED_COLUMNS = [
    "shared_sleep",
    "shared_fatigue",
    "shared_concentration",
]
ANXIETY_COLUMNS = [
    "gad_worry",
    "gad_control",
    "gad_restless",
    "gad_irritable",
    "gad_tension",
]

COMORBIDITY_SET = SymptomSet(
    name="dep_gad",
    description=(
        "Major depression and generalized anxiety symptoms; sleep, fatigue "
        "and concentration problems belong to both diagnoses."
    ),
    columns=DEPRESSION_COLUMNS + SHARED_COLUMNS + ANXIETY_COLUMNS,
    labels={
        "dep_mood": "Depressed mood",
        "dep_interest": "Loss of interest",
        "dep_weight": "Weight/appetite change",
        "dep_psychomotor": "Psychomotor disturbance",
        "dep_worthless": "Self-blame",
        "dep_suicide": "Suicidal thoughts",
        "shared_sleep": "Sleep problems",
        "shared_fatigue": "Fatigue",
        "shared_concentration": "Concentration problems",
        "gad_worry": "Chronic worrying",
        "gad_control": "Difficulty controlling worry",
        "gad_restless": "Restlessness",
        "gad_irritable": "Irritability",
        "gad_tension": "Muscle tension",
    },
    communities={
        **{col: "Depression" for col in DEPRESSION_COLUMNS},
        **{col: "Shared" for col in SHARED_COLUMNS},
        **{col: "Anxiety" for col in ANXIETY_COLUMNS},
    },
    groups={
        "depression": DEPRESSION_COLUMNS,
        "anxiety": ANXIETY_COLUMNS,
    },
    count_column=DEFAULT_COUNT_COLUMN,
    min_n=100,
)


SYMPTOM_SETS: Dict[str, SymptomSet] = {
    COMORBIDITY_SET.name: COMORBIDITY_SET,
}


__all__ = [
    "BASE_OUTPUT",
    "DEFAULT_CONFIGS",
    "EstimationConfig",
    "GGM_DEFAULTS",
    "ISING_DEFAULTS",
    "NonConvergenceWarning",
    "SymptomSet",
    "SYMPTOM_SETS",
    "penalty_path",
]
