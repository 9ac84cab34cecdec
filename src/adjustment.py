# adjustment.py
"""
Christmas-week shift for final forecasts.

Christmas falls on a fixed date, so the number of pre-Christmas shopping days
inside the holiday week changes from year to year and the holiday flag does
not capture it. When the week before Christmas is forecast at more than
`ratio` times the Christmas week, `shift_days / week_days` of its sales are
moved into the Christmas week. The sum over the two weeks is unchanged.
"""

import logging

import numpy as np
import pandas as pd

from utils.constants import (
    PRE_WEEK_INDEX, HOLIDAY_WEEK_INDEX, SHIFT_RATIO, SHIFT_DAYS, WEEK_DAYS,
)

logger = logging.getLogger(__name__)


def adjust_holiday_shift(
    forecast: pd.DataFrame,
    pre_week_index: int = PRE_WEEK_INDEX,
    holiday_week_index: int = HOLIDAY_WEEK_INDEX,
    ratio: float = SHIFT_RATIO,
    shift_days: float = SHIFT_DAYS,
    week_days: float = WEEK_DAYS,
) -> pd.DataFrame:
    """Apply the shift to every key (column) of an h x keys forecast frame."""
    if not 0.0 <= shift_days <= week_days:
        raise ValueError(f"shift_days must be in [0, {week_days}], got {shift_days}")
    if pre_week_index < 0 or holiday_week_index < 0:
        raise ValueError("Week positions must be non-negative.")

    out = forecast.copy()
    if max(pre_week_index, holiday_week_index) >= len(out):
        logger.info(
            "Horizon of %d weeks does not reach position %d; no holiday shift applied",
            len(out), max(pre_week_index, holiday_week_index),
        )
        return out

    values = out.to_numpy(dtype=float, copy=True)
    pre = values[pre_week_index]
    holiday = values[holiday_week_index]

    shift_mask = ratio * holiday < pre
    moved = np.where(shift_mask, pre * (shift_days / week_days), 0.0)
    values[pre_week_index] = pre - moved
    values[holiday_week_index] = holiday + moved

    logger.debug("Holiday shift applied to %d of %d keys", int(shift_mask.sum()), len(shift_mask))
    return pd.DataFrame(values, index=out.index, columns=out.columns)
