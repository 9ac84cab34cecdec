import numpy as np
import pandas as pd
import pytest

from series import add_store_dept_key, calendar_from_dates
from validation import holiday_weights, scan_fourier_order, split_panel, validate_model_bank, wmae

PERIOD = 4


def _panel(n: int = 24) -> pd.DataFrame:
    idx = pd.date_range("2010-02-05", periods=n, freq="7D", name="Date")
    t = np.arange(n)
    season = np.array([0.0, 30.0, 60.0, 10.0])[t % PERIOD]
    return pd.DataFrame({"1_1": 100.0 + 2.0 * t + season, "1_2": 300.0 + season}, index=idx)


def test_holiday_weights(train_df):
    train = add_store_dept_key(train_df)
    cal = calendar_from_dates(train["Date"])
    w = holiday_weights(train, cal, weight=5)
    assert len(w) == len(cal)
    assert w.iloc[1] == 5 and w.iloc[13] == 5
    assert (w.drop(w.index[[1, 13]]) == 1).all()


def test_split_panel_sizes():
    panel = pd.DataFrame({"k": np.arange(143.0)})
    train, test = split_panel(panel, 0.75)
    assert len(train) == 107 and len(test) == 36
    with pytest.raises(ValueError):
        split_panel(panel, 1.0)


def test_wmae_weights_holiday_errors():
    idx = pd.RangeIndex(2)
    actual = pd.DataFrame({"a": [10.0, 10.0], "b": [0.0, 0.0]}, index=idx)
    forecast = pd.DataFrame({"a": [12.0, 10.0], "b": [0.0, 1.0]}, index=idx)
    # errors: a=[2, 0], b=[0, 1]; weights per week [5, 1] for every key
    expected = (5 * 2 + 1 * 0 + 5 * 0 + 1 * 1) / (5 + 1 + 5 + 1)
    assert wmae(actual, forecast, [5, 1]) == pytest.approx(expected)


def test_wmae_shape_mismatch():
    a = pd.DataFrame({"a": [1.0, 2.0]})
    with pytest.raises(ValueError):
        wmae(a, a.iloc[:1], [1, 1])
    with pytest.raises(ValueError):
        wmae(a, a, [1])


def test_validate_model_bank_ranks_methods_and_ensembles():
    panel = _panel()
    weights = pd.Series(1.0, index=panel.index)
    summary, forecasts = validate_model_bank(
        panel, weights, methods=["snaive", "tslm"], weak_models=["snaive", "tslm"], period=PERIOD,
    )
    assert list(summary.columns) == ["Model", "WMAE"]
    assert set(summary["Model"]) == {
        "SNaive (Baseline)", "TSLM", "Average of all Models", "Weak Models Average",
    }
    assert summary["WMAE"].is_monotonic_increasing
    # noiseless trend + season is fitted exactly by the regression
    assert summary.iloc[0]["WMAE"] == pytest.approx(0.0, abs=1e-6)
    assert forecasts["tslm"].shape == (6, 2)


def test_scan_fourier_order():
    panel = _panel()
    weights = pd.Series(1.0, index=panel.index)
    scan = scan_fourier_order(panel, weights, [1, 2], period=PERIOD)
    assert scan["K"].tolist() == [1, 2]
    assert np.isfinite(scan["WMAE"]).all()
