"""
Standardization Utilities
=========================

Column-level helpers shared by the network estimators.

Key features:
- Zero variance: constant columns are detected before estimation
- Binary checks: Ising estimation requires strictly 0/1 coded symptoms
"""

from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from .constants import BINARY_VALUES


def zero_variance_columns(df: pd.DataFrame, columns: Iterable[str] | None = None) -> List[str]:
    """Return columns whose non-missing values are all identical."""
    cols = list(df.columns) if columns is None else list(columns)
    return [col for col in cols if df[col].dropna().nunique() <= 1]


def check_binary(df: pd.DataFrame, columns: Iterable[str] | None = None) -> None:
    """Raise ValueError if any column holds values other than 0/1."""
    cols = list(df.columns) if columns is None else list(columns)
    offending = {}
    for col in cols:
        values = set(pd.unique(df[col].dropna()))
        extra = values - BINARY_VALUES
        if extra:
            offending[col] = sorted(extra)[:5]
    if offending:
        raise ValueError(f"Non-binary values found (expected 0/1): {offending}")


def prevalence(df: pd.DataFrame, columns: Iterable[str] | None = None) -> pd.Series:
    """Share of respondents endorsing each binary symptom."""
    cols = list(df.columns) if columns is None else list(columns)
    return df[cols].mean(axis=0)
