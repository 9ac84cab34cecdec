# series.py
"""
Identifier construction, train/test alignment and weekly regularization.

A "panel" is a wide DataFrame: index = canonical weekly calendar,
one column per storeDept key, NaN where a week was not observed.
"""

import logging
from typing import List, Tuple

import pandas as pd

from utils.constants import (
    DATE_COL, STORE_COL, DEPT_COL, KEY_COL, TARGET_COL, HOLIDAY_COL, WEEK_DAYS,
)

logger = logging.getLogger(__name__)


def add_store_dept_key(df: pd.DataFrame) -> pd.DataFrame:
    """Insert storeDept = "{Store}_{Dept}" as the first column."""
    missing = [c for c in (STORE_COL, DEPT_COL) if c not in df.columns]
    if missing:
        raise KeyError(f"Missing required columns: {missing}")
    out = df.drop(columns=[KEY_COL], errors="ignore").copy()
    key = out[STORE_COL].astype(str) + "_" + out[DEPT_COL].astype(str)
    out.insert(0, KEY_COL, key)
    return out


def align_to_test(train: pd.DataFrame, test: pd.DataFrame) -> Tuple[pd.DataFrame, List[str]]:
    """
    Keep only training rows whose key is requested in test.
    Returns (filtered train, sorted test keys with no history at all).
    """
    test_keys = set(test[KEY_COL].unique())
    aligned = train[train[KEY_COL].isin(test_keys)].reset_index(drop=True)
    no_history = sorted(test_keys - set(aligned[KEY_COL].unique()))

    logger.info(
        "Aligned train to %d test keys (%d dropped from train, %d without history)",
        len(test_keys), train[KEY_COL].nunique() - aligned[KEY_COL].nunique(), len(no_history),
    )
    return aligned, no_history


def observations_per_key(train: pd.DataFrame) -> pd.Series:
    """Number of observed weeks per key, ascending."""
    return train.groupby(KEY_COL)[DATE_COL].nunique().sort_values(kind="stable").rename("numObs")


def canonical_calendar(start, end, freq_days: int = WEEK_DAYS) -> pd.DatetimeIndex:
    """Contiguous, evenly spaced weekly dates from start to end (both inclusive)."""
    start = pd.Timestamp(start)
    end = pd.Timestamp(end)
    if end < start:
        raise ValueError(f"Calendar end {end.date()} is before start {start.date()}")
    return pd.date_range(start, end, freq=pd.Timedelta(days=int(freq_days)), name=DATE_COL)


def calendar_from_dates(dates, freq_days: int = WEEK_DAYS) -> pd.DatetimeIndex:
    dates = pd.to_datetime(pd.Series(dates))
    if dates.empty:
        raise ValueError("Cannot build a calendar from an empty set of dates.")
    return canonical_calendar(dates.min(), dates.max(), freq_days)


def regularize_series(observations: pd.DataFrame, calendar: pd.DatetimeIndex) -> pd.Series:
    """
    Reindex one key's observations onto the calendar.
    Unobserved weeks become NaN, never zero.
    """
    values = observations.set_index(DATE_COL)[TARGET_COL].astype(float)
    off_calendar = values.index.difference(calendar)
    if len(off_calendar) > 0:
        raise ValueError(
            f"{len(off_calendar)} observation date(s) are not on the weekly calendar, "
            f"e.g. {off_calendar[0].date()}"
        )
    return values.reindex(calendar)


def regularize(train: pd.DataFrame, calendar: pd.DatetimeIndex) -> pd.DataFrame:
    """Build the panel for every key, columns ordered by (Store, Dept)."""
    order = (
        train[[KEY_COL, STORE_COL, DEPT_COL]]
        .drop_duplicates(KEY_COL)
        .sort_values([STORE_COL, DEPT_COL])[KEY_COL]
        .tolist()
    )
    panel = pd.DataFrame(
        {key: regularize_series(obs, calendar) for key, obs in train.groupby(KEY_COL, sort=False)},
        index=calendar,
    )
    panel = panel.reindex(columns=order)
    panel.columns.name = KEY_COL

    n_missing = int(panel.isna().sum().sum())
    logger.info(
        "Regularized %d keys onto %d weeks (%d missing points)",
        panel.shape[1], panel.shape[0], n_missing,
    )
    return panel


def holiday_weeks(train: pd.DataFrame, freq_days: int = WEEK_DAYS) -> Tuple[pd.DatetimeIndex, pd.DatetimeIndex]:
    """Unique holiday dates and the week before each of them."""
    holidays = pd.DatetimeIndex(sorted(train.loc[train[HOLIDAY_COL], DATE_COL].unique()))
    return holidays, holidays - pd.Timedelta(days=int(freq_days))
