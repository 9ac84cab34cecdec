# imputation.py
"""
Gap filling for regularized weekly series.

The strategy depends on how many points of the series were observed:
    >= 3  seasonal decomposition + interpolation
    == 2  linear interpolation
    == 1  last observation carried forward
    == 0  zeros
Observed values are never altered.
"""

import logging

import pandas as pd
from statsmodels.tsa.seasonal import seasonal_decompose

from utils.constants import SEASONAL_PERIOD

logger = logging.getLogger(__name__)


def na_interpolation(series: pd.Series) -> pd.Series:
    """Linear interpolation; leading/trailing gaps take the nearest observed value."""
    filled = series.interpolate(method="linear", limit_direction="both")
    return filled


def na_locf(series: pd.Series) -> pd.Series:
    """Last observation carried forward, remaining leading gaps filled backwards."""
    return series.ffill().bfill()


def na_seadec(series: pd.Series, period: int = SEASONAL_PERIOD) -> pd.Series:
    """
    Remove the additive seasonal component, interpolate the deseasonalized
    series and add the seasonal component back.
    """
    if len(series) < 2 * period:
        logger.debug("Series shorter than two seasonal cycles; using plain interpolation")
        return na_interpolation(series)

    working = na_interpolation(series)
    seasonal = seasonal_decompose(
        working.to_numpy(dtype=float), model="additive", period=period
    ).seasonal
    seasonal = pd.Series(seasonal, index=series.index)

    deseasonalized = na_interpolation(series - seasonal)
    filled = deseasonalized + seasonal
    observed = series.notna()
    filled[observed] = series[observed]
    return filled


def impute_series(series: pd.Series, period: int = SEASONAL_PERIOD) -> pd.Series:
    n_obs = int(series.notna().sum())
    if n_obs == len(series):
        return series.astype(float)
    if n_obs >= 3:
        return na_seadec(series.astype(float), period=period)
    if n_obs == 2:
        return na_interpolation(series.astype(float))
    if n_obs == 1:
        return na_locf(series.astype(float))

    logger.warning("Series %r has no observations; filling with zeros", series.name)
    return pd.Series(0.0, index=series.index, name=series.name)


def impute_panel(panel: pd.DataFrame, period: int = SEASONAL_PERIOD) -> pd.DataFrame:
    """Impute every column of a panel; the result has no missing values."""
    dense = panel.apply(lambda s: impute_series(s, period=period))
    remaining = int(dense.isna().sum().sum())
    if remaining:
        raise RuntimeError(f"Imputation left {remaining} missing value(s)")
    n_filled = int(panel.isna().sum().sum())
    logger.info("Imputed %d missing points across %d keys", n_filled, panel.shape[1])
    return dense
