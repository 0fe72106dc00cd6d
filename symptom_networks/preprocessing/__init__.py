"""
Symptom Table Preprocessing
===========================

Loading, complete-case filtering and column checks for symptom tables.

    from symptom_networks.preprocessing import load_symptom_table, listwise_delete
    df = load_symptom_table("symptoms.csv", ["dep_mood", "gad_worry"])
    df, n_dropped = listwise_delete(df)
"""

from .constants import (
    ANALYSIS_OUTPUT_DIR,
    DATA_DIR,
    DEFAULT_COUNT_COLUMN,
    DEFAULT_SYMPTOM_CSV,
    ID_ALIASES,
    ID_COLUMN,
    RAW_DIR,
)
from .loaders import (
    ensure_respondent_id,
    listwise_delete,
    load_symptom_table,
)
from .standardization import (
    check_binary,
    prevalence,
    zero_variance_columns,
)

__all__ = [
    # Constants
    'ANALYSIS_OUTPUT_DIR',
    'DATA_DIR',
    'DEFAULT_COUNT_COLUMN',
    'DEFAULT_SYMPTOM_CSV',
    'ID_ALIASES',
    'ID_COLUMN',
    'RAW_DIR',
    # Loaders
    'ensure_respondent_id',
    'listwise_delete',
    'load_symptom_table',
    # Column checks
    'check_binary',
    'prevalence',
    'zero_variance_columns',
]
