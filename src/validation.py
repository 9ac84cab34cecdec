# validation.py
"""
Hold-out validation of the model bank.
- The most recent ~25% of weeks are held out for every key.
- Errors are scored with a single holiday-weighted MAE across all keys.
- Individual methods are ranked together with the all-model and the
  weak-model averages.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from models.modeling import ensemble_average, forecast_panel, run_model_bank
from utils.constants import (
    DATE_COL, HOLIDAY_COL, HOLIDAY_WEIGHT, MODEL_NAMES, SEASONAL_PERIOD,
    TRAIN_RATIO, WEAK_MODELS, FOURIER_K,
)
from utils.math_utils import holiday_weight_vector, wmae as _wmae
from utils.schema import AVERAGE_ALL_LABEL, AVERAGE_WEAK_LABEL, MODEL_LABELS

logger = logging.getLogger(__name__)


def holiday_weights(train: pd.DataFrame, calendar: pd.DatetimeIndex, weight: float = HOLIDAY_WEIGHT) -> pd.Series:
    """Per calendar week: `weight` if any observation that week is a holiday, else 1."""
    flags = train.groupby(DATE_COL)[HOLIDAY_COL].any().reindex(calendar, fill_value=False)
    return pd.Series(holiday_weight_vector(flags.to_numpy(), weight), index=calendar, name="weight")


def split_panel(panel: pd.DataFrame, train_ratio: float = TRAIN_RATIO) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Leading round(ratio * weeks) rows for training, the rest for testing."""
    if not 0.0 < train_ratio < 1.0:
        raise ValueError(f"train_ratio must be in (0, 1), got {train_ratio}")
    total = len(panel)
    train_size = int(round(train_ratio * total))
    if train_size < 1 or train_size >= total:
        raise ValueError(f"Split of {total} weeks at ratio {train_ratio} leaves an empty side.")
    return panel.iloc[:train_size], panel.iloc[train_size:]


def wmae(actual: pd.DataFrame, forecast: pd.DataFrame, weights) -> float:
    """
    Weighted MAE over all keys at once. `weights` has one entry per week and
    is repeated for every key.
    """
    if actual.shape != forecast.shape:
        raise ValueError(f"Shape mismatch: actual {actual.shape} vs forecast {forecast.shape}")
    weights = np.asarray(weights, dtype=float).ravel()
    if len(weights) != actual.shape[0]:
        raise ValueError(f"Expected {actual.shape[0]} weights, got {len(weights)}")
    # column-major flattening: one block of weeks per key
    y_true = actual.to_numpy(dtype=float).ravel(order="F")
    y_pred = forecast.reindex(columns=actual.columns).to_numpy(dtype=float).ravel(order="F")
    return _wmae(y_true, y_pred, np.tile(weights, actual.shape[1]))


def validate_model_bank(
    panel: pd.DataFrame,
    weights: pd.Series,
    methods: Iterable[str] = MODEL_NAMES,
    weak_models: Iterable[str] = WEAK_MODELS,
    train_ratio: float = TRAIN_RATIO,
    period: int = SEASONAL_PERIOD,
    fourier_k: int = FOURIER_K,
    n_jobs: int = 1,
    fallback: Optional[str] = "snaive",
) -> Tuple[pd.DataFrame, Dict[str, pd.DataFrame]]:
    """
    Fit every method on the train prefix, forecast the held-out suffix and
    score it. Returns (summary sorted by WMAE, {method: forecast}).
    """
    methods = list(methods)
    train, test = split_panel(panel, train_ratio)
    test_weights = np.asarray(weights, dtype=float)[len(train):]
    logger.info("Validation split: %d train weeks, %d test weeks", len(train), len(test))

    forecasts = run_model_bank(
        train, len(test), methods,
        period=period, n_jobs=n_jobs, fallback=fallback, index=test.index,
        method_params={"arima_fourier": {"k": fourier_k}},
    )

    rows: List[dict] = [
        {"Model": MODEL_LABELS.get(name, name), "WMAE": wmae(test, fc, test_weights)}
        for name, fc in forecasts.items()
    ]
    rows.append({"Model": AVERAGE_ALL_LABEL, "WMAE": wmae(test, ensemble_average(forecasts), test_weights)})

    weak = [m for m in weak_models if m in forecasts]
    if weak:
        rows.append({
            "Model": AVERAGE_WEAK_LABEL,
            "WMAE": wmae(test, ensemble_average(forecasts, weak), test_weights),
        })

    summary = pd.DataFrame(rows).sort_values("WMAE", kind="stable", ignore_index=True)
    return summary, forecasts


def scan_fourier_order(
    panel: pd.DataFrame,
    weights: pd.Series,
    ks: Iterable[int],
    train_ratio: float = TRAIN_RATIO,
    period: int = SEASONAL_PERIOD,
    n_jobs: int = 1,
    fallback: Optional[str] = "snaive",
) -> pd.DataFrame:
    """Hold-out WMAE of the ARIMA-Fourier method for each harmonic order K."""
    train, test = split_panel(panel, train_ratio)
    test_weights = np.asarray(weights, dtype=float)[len(train):]
    rows = []
    for k in ks:
        fc = forecast_panel(
            train, len(test), "arima_fourier",
            period=period, n_jobs=n_jobs, fallback=fallback, index=test.index, k=int(k),
        )
        score = wmae(test, fc, test_weights)
        logger.info("Fourier K=%d: WMAE %.4f", int(k), score)
        rows.append({"K": int(k), "WMAE": score})
    return pd.DataFrame(rows, columns=["K", "WMAE"])
