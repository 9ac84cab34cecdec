import numpy as np
from sklearn.metrics import mean_absolute_error


def wmae(y_true, y_pred, weights) -> float:
    """Weighted Mean Absolute Error."""
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()
    weights = np.asarray(weights, dtype=float).ravel()
    if not (len(y_true) == len(y_pred) == len(weights)):
        raise ValueError(
            f"Length mismatch: y_true={len(y_true)}, y_pred={len(y_pred)}, weights={len(weights)}"
        )
    if len(y_true) == 0:
        return np.nan
    return float(mean_absolute_error(y_true, y_pred, sample_weight=weights))


def holiday_weight_vector(flags, weight: float = 5.0) -> np.ndarray:
    flags = np.asarray(flags, dtype=bool).ravel()
    return np.where(flags, float(weight), 1.0)


def seasonal_repeat(values, h: int, period: int) -> np.ndarray:
    """Repeat the last `period` values forward for `h` steps."""
    values = np.asarray(values, dtype=float).ravel()
    if len(values) == 0:
        raise ValueError("Cannot repeat an empty series.")
    if len(values) < period:
        return np.full(h, values[-1], dtype=float)
    last_cycle = values[-period:]
    return last_cycle[np.arange(h) % period]
