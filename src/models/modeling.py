# modeling.py
"""
Model bank orchestration for the weekly store sales panel.
- Applies one forecasting method to every storeDept column of a dense panel.
- Keys are independent: n_jobs > 1 maps them over a multiprocessing.Pool
  and the results are put back in column order.
- A per-key fit error is logged and replaced by the fallback method's forecast.
"""

import logging
from functools import partial
from multiprocessing import Pool, cpu_count
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from models.forecasters import FORECASTERS, check_params, get_forecaster
from utils.constants import SEASONAL_PERIOD, KEY_COL, DATE_COL

logger = logging.getLogger(__name__)

FIT_ERRORS = (ValueError, np.linalg.LinAlgError)


# ------------------ Input checks ------------------
def _check_panel(panel: pd.DataFrame) -> None:
    if not isinstance(panel, pd.DataFrame):
        raise TypeError("panel must be a pandas DataFrame.")
    if panel.isnull().any().any():
        raise ValueError("panel contains NaN values. Impute before forecasting.")


def _horizon_index(panel: pd.DataFrame, h: int, index: Optional[pd.Index]) -> pd.Index:
    if index is not None:
        if len(index) != h:
            raise ValueError(f"Forecast index has {len(index)} entries for horizon {h}.")
        return index
    if isinstance(panel.index, pd.DatetimeIndex) and len(panel.index) >= 2:
        step = panel.index[1] - panel.index[0]
        return pd.date_range(panel.index[-1] + step, periods=h, freq=step, name=DATE_COL)
    return pd.RangeIndex(len(panel.index), len(panel.index) + h)


def _n_workers(n_jobs: Optional[int]) -> int:
    if n_jobs is None or n_jobs < 1:
        return max(1, cpu_count() - 1)
    return int(n_jobs)


# ------------------ Per-key worker ------------------
def _forecast_key(
    item: Tuple[str, np.ndarray],
    method: str,
    h: int,
    period: int,
    fallback: Optional[str],
    params: dict,
) -> Tuple[str, np.ndarray, bool]:
    key, values = item
    try:
        fc = get_forecaster(method)(values, h, period=period, **params)
        return key, np.asarray(fc, dtype=float), False
    except FIT_ERRORS as exc:
        if fallback is None or fallback == method:
            raise
        logger.warning("%s failed for %s (%s); using %s", method, key, exc, fallback)
        fc = get_forecaster(fallback)(values, h, period=period)
        return key, np.asarray(fc, dtype=float), True


# ------------------ Panel forecasting ------------------
def forecast_panel(
    panel: pd.DataFrame,
    h: int,
    method: str,
    period: int = SEASONAL_PERIOD,
    n_jobs: int = 1,
    fallback: Optional[str] = "snaive",
    index: Optional[pd.Index] = None,
    **params,
) -> pd.DataFrame:
    """
    Forecast h steps for every column of a dense panel with one method.
    Returns an h x keys frame indexed by `index` (or the weeks after the panel).
    """
    check_params(method, period, **params)
    if fallback is not None:
        get_forecaster(fallback)
    _check_panel(panel)
    if int(h) <= 0:
        raise ValueError(f"Horizon must be positive, got {h}.")

    out_index = _horizon_index(panel, int(h), index)
    items = [(key, panel[key].to_numpy(dtype=float)) for key in panel.columns]
    worker_fn = partial(
        _forecast_key, method=method, h=int(h), period=period, fallback=fallback, params=params,
    )

    n_workers = min(_n_workers(n_jobs), max(1, len(items)))
    if n_workers == 1:
        results = [worker_fn(item) for item in items]
    else:
        with Pool(processes=n_workers) as pool:
            results = pool.map(worker_fn, items)

    n_fallback = sum(1 for _, _, used_fallback in results if used_fallback)
    logger.info(
        "%s: forecast %d keys x %d weeks (%d fallback)", method, len(results), int(h), n_fallback,
    )

    fc = pd.DataFrame({key: values for key, values, _ in results}, index=out_index)
    fc = fc.reindex(columns=panel.columns)
    fc.columns.name = KEY_COL
    return fc


def run_model_bank(
    panel: pd.DataFrame,
    h: int,
    methods: Iterable[str] = tuple(FORECASTERS),
    period: int = SEASONAL_PERIOD,
    n_jobs: int = 1,
    fallback: Optional[str] = "snaive",
    index: Optional[pd.Index] = None,
    method_params: Optional[Dict[str, dict]] = None,
) -> Dict[str, pd.DataFrame]:
    """Forecast the panel with each method; returns {method name: forecast frame}."""
    method_params = method_params or {}
    forecasts: Dict[str, pd.DataFrame] = {}
    for name in methods:
        forecasts[name] = forecast_panel(
            panel, h, name,
            period=period, n_jobs=n_jobs, fallback=fallback, index=index,
            **method_params.get(name, {}),
        )
    return forecasts


def ensemble_average(forecasts: Dict[str, pd.DataFrame], names: Optional[List[str]] = None) -> pd.DataFrame:
    """Unweighted element-wise mean of the selected forecasts."""
    names = list(names) if names is not None else list(forecasts)
    if not names:
        raise ValueError("Need at least one forecast to average.")
    missing = [n for n in names if n not in forecasts]
    if missing:
        raise KeyError(f"Forecasts not available for: {missing}")

    total = forecasts[names[0]].copy()
    for name in names[1:]:
        other = forecasts[name]
        if not (other.index.equals(total.index) and other.columns.equals(total.columns)):
            raise ValueError(f"Forecast '{name}' is not aligned with '{names[0]}'.")
        total = total + other
    return total / len(names)
