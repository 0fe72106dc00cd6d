"""
Shared constants for symptom-table preprocessing.
"""

from pathlib import Path

# Directory paths
BASE_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = BASE_DIR / "data"
RAW_DIR = DATA_DIR / "raw"
ANALYSIS_OUTPUT_DIR = DATA_DIR / "outputs"

# Default input table
DEFAULT_SYMPTOM_CSV = RAW_DIR / "symptoms.csv"

# Identifier column and its accepted spellings
ID_COLUMN = "respondent_id"
ID_ALIASES = {"respondent_id", "respondentId", "respondentid", "id", "ID", "case_id"}

# Count covariate (number of lifetime episodes)
DEFAULT_COUNT_COLUMN = "n_episodes"

# Binary coding
BINARY_VALUES = {0, 1}

# Warn when listwise deletion removes more than this share of rows
LISTWISE_WARN_SHARE = 0.10
