# submission.py
"""
Assemble the flat Id, Weekly_Sales submission from wide forecasts.
Requested (storeDept, Date) rows without a forecast default to 0.
"""

import logging
import os

import pandas as pd

from utils.constants import DATE_COL, KEY_COL, TARGET_COL, SUBMISSION_ID_COL
from utils.schema import SUBMISSION_COLS

logger = logging.getLogger(__name__)


def forecasts_to_long(forecast: pd.DataFrame) -> pd.DataFrame:
    """h x keys frame -> rows of (storeDept, Date, Weekly_Sales)."""
    wide = forecast.copy()
    wide.index = pd.DatetimeIndex(wide.index, name=DATE_COL)
    wide.columns = pd.Index(wide.columns.astype(str), name=None)
    long = wide.reset_index().melt(id_vars=DATE_COL, var_name=KEY_COL, value_name=TARGET_COL)
    return long[[KEY_COL, DATE_COL, TARGET_COL]]


def assemble_submission(test: pd.DataFrame, forecast: pd.DataFrame) -> pd.DataFrame:
    """One row per requested (key, date), in request order."""
    if KEY_COL not in test.columns or DATE_COL not in test.columns:
        raise KeyError(f"test must include {[KEY_COL, DATE_COL]}")

    requests = test[[KEY_COL, DATE_COL]].copy()
    requests[DATE_COL] = pd.to_datetime(requests[DATE_COL])

    out = requests.merge(forecasts_to_long(forecast), on=[KEY_COL, DATE_COL], how="left", validate="one_to_one")
    unmatched = int(out[TARGET_COL].isna().sum())
    if unmatched:
        logger.info("%d requested row(s) have no forecast; defaulting to 0", unmatched)
    out[TARGET_COL] = out[TARGET_COL].fillna(0.0).astype(float)

    out[SUBMISSION_ID_COL] = out[KEY_COL] + "_" + out[DATE_COL].dt.strftime("%Y-%m-%d")
    return out[SUBMISSION_COLS].reset_index(drop=True)


def write_submission(submission: pd.DataFrame, path: str) -> str:
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    submission.to_csv(path, index=False)
    return path
