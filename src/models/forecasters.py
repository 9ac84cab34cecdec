# forecasters.py
"""
Univariate weekly forecasting methods.

Every method has the signature
    f(series, h, period=52, **hyperparameters) -> np.ndarray of length h
and is self-contained: no state is shared between calls.

- snaive         last seasonal cycle repeated
- tslm           linear trend + seasonal dummies (least squares)
- sarima         seasonal ARIMA, orders picked by pmdarima.auto_arima
- arima_fourier  non-seasonal auto ARIMA with K Fourier harmonic pairs as regressors
- stl_arima      STL, auto ARIMA on the seasonally adjusted series
- stl_ets        STL, exponential smoothing on the seasonally adjusted series
"""

import warnings
from typing import Callable, Dict

import numpy as np
import pandas as pd
import pmdarima as pm
from sklearn.linear_model import LinearRegression
from statsmodels.tsa.deterministic import DeterministicProcess
from statsmodels.tsa.holtwinters import ExponentialSmoothing
from statsmodels.tsa.seasonal import STL

from utils.constants import SEASONAL_PERIOD, FOURIER_K, SEED
from utils.math_utils import seasonal_repeat


# ------------------ Input checks ------------------
def _check_inputs(series, h: int) -> np.ndarray:
    y = np.asarray(series, dtype=float).ravel()
    if len(y) == 0:
        raise ValueError("Cannot forecast an empty series.")
    if np.isnan(y).any():
        raise ValueError("Series contains NaN values. Impute before forecasting.")
    if int(h) <= 0:
        raise ValueError(f"Horizon must be positive, got {h}.")
    return y


def _check_two_cycles(y: np.ndarray, period: int) -> None:
    if len(y) < 2 * period:
        raise ValueError(
            f"STL needs at least two full seasonal cycles ({2 * period} points), got {len(y)}."
        )


def _auto_arima(y: np.ndarray, seasonal: bool, period: int = 1, X=None):
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        return pm.auto_arima(
            y,
            X=X,
            seasonal=seasonal,
            m=period if seasonal else 1,
            stepwise=True,
            error_action="ignore",
            suppress_warnings=True,
            trace=False,
            random_state=SEED,
        )


def fourier_terms(n: int, period: int, k: int, h: int = 0) -> np.ndarray:
    """
    Sine/cosine pairs of orders 1..k on positions 0..n-1 (h=0) or on the
    h positions following the sample (h>0).
    """
    if k < 1 or 2 * k > period:
        raise ValueError(f"Fourier order K must satisfy 1 <= K <= period/2, got K={k}, period={period}.")
    dp = DeterministicProcess(pd.RangeIndex(n), constant=False, order=0, period=period, fourier=k)
    in_sample = dp.in_sample()
    # sin of order period/2 is identically zero
    keep = [c for c in in_sample.columns if not (c.startswith("sin") and 2 * k == period and f"({k}," in c)]
    terms = dp.out_of_sample(h)[keep] if h > 0 else in_sample[keep]
    return terms.to_numpy(dtype=float)


# ------------------ Methods ------------------
def snaive(series, h: int, period: int = SEASONAL_PERIOD) -> np.ndarray:
    y = _check_inputs(series, h)
    return seasonal_repeat(y, h, period)


def tslm(series, h: int, period: int = SEASONAL_PERIOD) -> np.ndarray:
    """Regression on a constant, a linear trend and seasonal dummies."""
    y = _check_inputs(series, h)
    # a full set of seasonal dummies already spans the constant
    use_season = len(y) >= period
    dp = DeterministicProcess(
        pd.RangeIndex(len(y)),
        constant=not use_season,
        order=1,
        seasonal=use_season,
        period=period,
    )
    X = dp.in_sample()
    model = LinearRegression(fit_intercept=False)
    model.fit(X, y)
    X_future = dp.out_of_sample(h)
    return np.asarray(model.predict(X_future), dtype=float).ravel()


def sarima(series, h: int, period: int = SEASONAL_PERIOD) -> np.ndarray:
    y = _check_inputs(series, h)
    model = _auto_arima(y, seasonal=len(y) >= 2 * period, period=period)
    return np.asarray(model.predict(n_periods=h), dtype=float).ravel()


def arima_fourier(series, h: int, period: int = SEASONAL_PERIOD, k: int = FOURIER_K) -> np.ndarray:
    """Dynamic harmonic regression: Fourier terms as xreg, ARIMA errors."""
    y = _check_inputs(series, h)
    X = fourier_terms(len(y), period, k)
    X_future = fourier_terms(len(y), period, k, h=h)
    model = _auto_arima(y, seasonal=False, X=X)
    return np.asarray(model.predict(n_periods=h, X=X_future), dtype=float).ravel()


def _stl_decompose(y: np.ndarray, period: int):
    _check_two_cycles(y, period)
    res = STL(y, period=period).fit()
    seasonal = np.asarray(res.seasonal, dtype=float)
    return y - seasonal, seasonal


def _fit_ets(y: np.ndarray):
    """Smallest-AIC exponential smoothing among level, trend and damped trend."""
    specs = [
        dict(trend=None, damped_trend=False),
        dict(trend="add", damped_trend=False),
        dict(trend="add", damped_trend=True),
    ]
    best, best_aic = None, np.inf
    last_error = None
    for spec in specs:
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("ignore")
                fit = ExponentialSmoothing(
                    y, seasonal=None, initialization_method="estimated", **spec
                ).fit(optimized=True)
        except (ValueError, np.linalg.LinAlgError) as exc:
            last_error = exc
            continue
        if np.isfinite(fit.aic) and fit.aic < best_aic:
            best, best_aic = fit, fit.aic
    if best is None:
        raise ValueError(f"No exponential smoothing model could be fitted: {last_error}")
    return best


def stl_arima(series, h: int, period: int = SEASONAL_PERIOD) -> np.ndarray:
    y = _check_inputs(series, h)
    adjusted, seasonal = _stl_decompose(y, period)
    model = _auto_arima(adjusted, seasonal=False)
    fc = np.asarray(model.predict(n_periods=h), dtype=float).ravel()
    return fc + seasonal_repeat(seasonal, h, period)


def stl_ets(series, h: int, period: int = SEASONAL_PERIOD) -> np.ndarray:
    y = _check_inputs(series, h)
    adjusted, seasonal = _stl_decompose(y, period)
    fit = _fit_ets(adjusted)
    fc = np.asarray(fit.forecast(h), dtype=float).ravel()
    return fc + seasonal_repeat(seasonal, h, period)


FORECASTERS: Dict[str, Callable[..., np.ndarray]] = {
    "snaive": snaive,
    "tslm": tslm,
    "sarima": sarima,
    "arima_fourier": arima_fourier,
    "stl_arima": stl_arima,
    "stl_ets": stl_ets,
}


def check_params(method: str, period: int = SEASONAL_PERIOD, **params) -> None:
    """Reject hyperparameters that would fail identically for every key."""
    get_forecaster(method)
    if method == "arima_fourier":
        k = int(params.get("k", FOURIER_K))
        if k < 1 or 2 * k > period:
            raise ValueError(f"Fourier order K must satisfy 1 <= K <= period/2, got K={k}, period={period}.")


def get_forecaster(name: str) -> Callable[..., np.ndarray]:
    try:
        return FORECASTERS[name]
    except KeyError:
        raise ValueError(f"Unknown forecasting method '{name}'. Available: {sorted(FORECASTERS)}") from None
