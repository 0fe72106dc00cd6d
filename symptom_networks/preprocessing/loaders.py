"""
Symptom table loading utilities.

Reads the delimited respondent table, normalises the identifier column and
applies complete-case (listwise) filtering before any network is estimated.
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pandas as pd

from .constants import (
    DEFAULT_COUNT_COLUMN,
    ID_ALIASES,
    ID_COLUMN,
    LISTWISE_WARN_SHARE,
)


def ensure_respondent_id(df: pd.DataFrame) -> pd.DataFrame:
    """
    Ensure there is exactly one 'respondent_id' column.
    Prefers an existing respondent_id column, otherwise renames common aliases.

    Parameters
    ----------
    df : pd.DataFrame
        Input dataframe

    Returns
    -------
    pd.DataFrame
        DataFrame with normalized respondent_id column
    """
    # Strip a UTF-8 BOM that survives some spreadsheet exports
    if len(df.columns) and str(df.columns[0]).startswith("\ufeff"):
        df = df.rename(columns={df.columns[0]: str(df.columns[0]).replace("\ufeff", "")})

    if ID_COLUMN not in df.columns:
        for col in df.columns:
            if col in ID_ALIASES and col != ID_COLUMN:
                df = df.rename(columns={col: ID_COLUMN})
                break
    if ID_COLUMN not in df.columns:
        raise KeyError("No respondent id column found in dataframe.")

    aliases = [col for col in df.columns if col in ID_ALIASES and col != ID_COLUMN]
    if aliases:
        df = df.drop(columns=aliases)
    return df


def load_symptom_table(
    path: Path | str,
    symptom_columns: Iterable[str],
    count_column: Optional[str] = DEFAULT_COUNT_COLUMN,
    sep: str = ",",
) -> pd.DataFrame:
    """
    Load the respondent table and keep id, symptom and covariate columns.

    Raises
    ------
    FileNotFoundError
        If the file does not exist (propagated from pandas).
    KeyError
        If any requested symptom column is absent.
    """
    df = pd.read_csv(path, sep=sep, encoding="utf-8")
    df = ensure_respondent_id(df)

    symptom_columns = list(symptom_columns)
    missing = [col for col in symptom_columns if col not in df.columns]
    if missing:
        raise KeyError(f"Symptom columns missing from {path}: {missing}")

    keep = [ID_COLUMN] + symptom_columns
    if count_column is not None:
        if count_column in df.columns:
            keep.append(count_column)
        else:
            warnings.warn(f"Count covariate '{count_column}' not found in {path}; continuing without it.")
    return df[keep].copy()


def listwise_delete(
    df: pd.DataFrame,
    columns: Optional[List[str]] = None,
    warn_share: float = LISTWISE_WARN_SHARE,
) -> Tuple[pd.DataFrame, int]:
    """
    Drop every row that has a missing value in ``columns`` (default: all).

    Returns the filtered frame (index reset) and the number of dropped rows.
    """
    subset = list(df.columns) if columns is None else list(columns)
    before = len(df)
    clean = df.dropna(subset=subset).reset_index(drop=True)
    dropped = before - len(clean)

    if before and dropped / before > warn_share:
        warnings.warn(
            f"Listwise deletion removed {dropped}/{before} rows ({100 * dropped / before:.1f}%).",
            UserWarning,
        )
    return clean, dropped
