"""
data_loader.py
CSV loaders with schema checks for the store sales inputs.
- Ensures required columns exist (from utils.schema).
- Enforces dtypes:
    * Date -> datetime64
    * Store, Dept -> int64
    * Weekly_Sales, feature measures -> float64 (measures allow NA)
    * IsHoliday -> bool (accepts TRUE/FALSE/1/0 spellings)
- Drops invalid rows; raises DataLoaderError with a concise summary if any were dropped.
- Returns a deduplicated, typed DataFrame.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from utils.constants import (
    DATE_COL, ID_COLS, STORE_COL, TARGET_COL, HOLIDAY_COL,
    TRUE_STRINGS, FALSE_STRINGS,
)
from utils.schema import (
    TRAIN_COLS, TEST_COLS, STORES_COLS, FEATURES_COLS, FEATURES_MEASURE_COLS,
)
from utils.io_utils import resolve_data_path

logger = logging.getLogger(__name__)

_NA_VALUES = ["", "NA", "N/A", "na", "n/a", "NULL", "null", "-", "--"]


class DataLoaderError(Exception):
    """Raised when rows are dropped due to validation errors."""


@dataclass
class ForecastInputs:
    train: pd.DataFrame
    test: pd.DataFrame
    stores: Optional[pd.DataFrame] = None
    features: Optional[pd.DataFrame] = None


def _ensure_required_columns(df: pd.DataFrame, required: List[str], name: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise KeyError(f"Missing required columns in {name}: {missing}")


def _read_raw(path: str) -> pd.DataFrame:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Input file not found: {path}")
    # .csv.zip is decompressed by pandas from the extension
    return pd.read_csv(
        path,
        dtype="string",
        keep_default_na=True,
        na_values=_NA_VALUES,
    )


def _to_bool(s: pd.Series) -> pd.Series:
    """Map boolean spellings to True/False; anything else becomes NA."""
    lowered = s.astype("string").str.strip().str.lower()
    out = pd.Series(pd.NA, index=s.index, dtype="boolean")
    out[lowered.isin(TRUE_STRINGS)] = True
    out[lowered.isin(FALSE_STRINGS)] = False
    return out


def _validate(
    df: pd.DataFrame,
    name: str,
    int_cols: List[str],
    float_cols: List[str],
    optional_float_cols: List[str],
    bool_cols: List[str],
    date_col: Optional[str] = DATE_COL,
) -> pd.DataFrame:
    original_len = len(df)
    invalid_mask = pd.Series(False, index=df.index)

    if date_col is not None:
        df[date_col] = pd.to_datetime(df[date_col], errors="coerce")
        invalid_mask |= df[date_col].isna()

    # ints: required and non-null
    for c in int_cols:
        df[c] = pd.to_numeric(df[c], errors="coerce")
        invalid_mask |= df[c].isna()

    # floats: required and non-null
    for c in float_cols:
        df[c] = pd.to_numeric(df[c], errors="coerce")
        invalid_mask |= df[c].isna()

    # optional floats: allow NA; just coerce
    for c in optional_float_cols:
        if c in df.columns:
            df[c] = pd.to_numeric(df[c], errors="coerce")

    for c in bool_cols:
        df[c] = _to_bool(df[c])
        invalid_mask |= df[c].isna()

    bad_rows = df[invalid_mask]
    if invalid_mask.any():
        df = df[~invalid_mask].copy()

    # ---------- Final tidy types ----------
    for c in int_cols:
        df[c] = df[c].astype("int64")
    for c in float_cols + [c for c in optional_float_cols if c in df.columns]:
        df[c] = df[c].astype("float64")
    for c in bool_cols:
        df[c] = df[c].astype(bool)

    # Deduplicate
    df = df.drop_duplicates(ignore_index=True)

    dropped = int(invalid_mask.sum())
    if dropped > 0:
        example_idx = list(bad_rows.index[:5])
        raise DataLoaderError(
            f"Validation failed for {dropped} row(s) in {name}. "
            f"Dropped rows indices (first 5): {example_idx}. "
            f"Returned DataFrame contains {len(df)} valid row(s)."
        )

    logger.info("Loaded %s: %d rows (%d duplicates removed)", name, len(df), original_len - len(df))
    return df


def _ensure_unique_keys(df: pd.DataFrame, name: str) -> None:
    dup = df.duplicated(subset=ID_COLS + [DATE_COL], keep=False)
    if dup.any():
        sample = df.loc[dup, ID_COLS + [DATE_COL]].head(5).to_dict("records")
        raise DataLoaderError(
            f"{name} has {int(dup.sum())} row(s) sharing a (Store, Dept, Date) key "
            f"with different values, e.g. {sample}"
        )


def load_train(path: str) -> pd.DataFrame:
    """Read the training observations: Store, Dept, Date, Weekly_Sales, IsHoliday."""
    df = _read_raw(path)
    _ensure_required_columns(df, TRAIN_COLS, "train")
    df = _validate(
        df[TRAIN_COLS].copy(), "train",
        int_cols=ID_COLS, float_cols=[TARGET_COL], optional_float_cols=[],
        bool_cols=[HOLIDAY_COL],
    )
    _ensure_unique_keys(df, "train")
    return df.sort_values(ID_COLS + [DATE_COL], ignore_index=True)


def load_test(path: str) -> pd.DataFrame:
    """Read the forecast requests. Row order is kept: it is the submission order."""
    df = _read_raw(path)
    _ensure_required_columns(df, TEST_COLS, "test")
    df = _validate(
        df[TEST_COLS].copy(), "test",
        int_cols=ID_COLS, float_cols=[], optional_float_cols=[],
        bool_cols=[HOLIDAY_COL],
    )
    _ensure_unique_keys(df, "test")
    return df


def load_stores(path: str) -> pd.DataFrame:
    df = _read_raw(path)
    _ensure_required_columns(df, STORES_COLS, "stores")
    df = _validate(
        df[STORES_COLS].copy(), "stores",
        int_cols=[STORE_COL], float_cols=["Size"], optional_float_cols=[],
        bool_cols=[], date_col=None,
    )
    df["Type"] = df["Type"].astype("category")
    return df


def load_features(path: str) -> pd.DataFrame:
    df = _read_raw(path)
    _ensure_required_columns(df, FEATURES_COLS, "features")
    keep = FEATURES_COLS + [c for c in FEATURES_MEASURE_COLS if c in df.columns]
    return _validate(
        df[keep].copy(), "features",
        int_cols=[STORE_COL], float_cols=[], optional_float_cols=FEATURES_MEASURE_COLS,
        bool_cols=[HOLIDAY_COL],
    )


def load_inputs(cfg: dict, data_dir: str | None = None) -> ForecastInputs:
    """
    Resolve the four input paths from the `data` config section and load them.
    Train and test are mandatory; stores/features are skipped when their file is null.
    """
    data_cfg = cfg.get("data", {})
    data_dir = data_dir or data_cfg.get("dir", "data")

    train = load_train(resolve_data_path(data_cfg.get("train_file", "train.csv.zip"), data_dir))
    test = load_test(resolve_data_path(data_cfg.get("test_file", "test.csv.zip"), data_dir))

    stores_path = resolve_data_path(data_cfg.get("stores_file"), data_dir)
    features_path = resolve_data_path(data_cfg.get("features_file"), data_dir)
    stores = load_stores(stores_path) if stores_path else None
    features = load_features(features_path) if features_path else None

    return ForecastInputs(train=train, test=test, stores=stores, features=features)


def missing_value_report(df: pd.DataFrame) -> pd.Series:
    """Percentage of missing values per column, rounded to 2 decimals."""
    if df.empty:
        return pd.Series(np.zeros(len(df.columns)), index=df.columns)
    return (df.isna().mean() * 100.0).round(2)
