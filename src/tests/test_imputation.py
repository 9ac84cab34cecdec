import numpy as np
import pandas as pd

from imputation import impute_panel, impute_series, na_locf, na_seadec


def _weekly(values):
    return pd.Series(values, index=pd.date_range("2010-02-05", periods=len(values), freq="7D"), dtype=float)


def test_two_anchors_interpolate_between_endpoints():
    values = np.full(143, np.nan)
    values[0], values[-1] = 100.0, 200.0
    out = impute_series(_weekly(values))

    assert len(out) == 143
    assert out.notna().all()
    assert out.iloc[0] == 100.0
    assert out.iloc[-1] == 200.0
    assert (np.diff(out.to_numpy()) >= 0).all()


def test_single_observation_carries_both_ways():
    values = [np.nan, np.nan, 7.0, np.nan]
    out = impute_series(_weekly(values))
    assert out.tolist() == [7.0, 7.0, 7.0, 7.0]
    assert na_locf(_weekly([1.0, np.nan, 3.0, np.nan])).tolist() == [1.0, 1.0, 3.0, 3.0]


def test_no_observations_become_zero():
    out = impute_series(_weekly([np.nan] * 5))
    assert out.tolist() == [0.0] * 5


def test_seasonal_imputation_keeps_observed_values():
    t = np.arange(32)
    full = 100.0 + 2.0 * t + np.tile([0.0, 30.0, 60.0, 10.0], 8)
    values = full.copy()
    values[14] = np.nan
    series = _weekly(values)

    out = na_seadec(series, period=4)
    observed = series.notna()
    assert out.notna().all()
    assert (out[observed] == series[observed]).all()
    # the seasonal peak is recovered better than by plain interpolation
    linear = (full[13] + full[15]) / 2.0
    assert abs(out.iloc[14] - full[14]) < abs(linear - full[14])


def test_short_series_falls_back_to_interpolation():
    series = _weekly([1.0, np.nan, 3.0, np.nan, 5.0])
    out = impute_series(series, period=52)
    assert out.tolist() == [1.0, 2.0, 3.0, 4.0, 5.0]


def test_impute_panel_is_dense():
    panel = pd.DataFrame({
        "1_1": [1.0, np.nan, 3.0, 4.0, np.nan, 6.0, 7.0, 8.0],
        "1_2": [np.nan, 5.0, np.nan, np.nan, np.nan, np.nan, 9.0, np.nan],
        "2_1": [np.nan] * 8,
    }, index=pd.date_range("2010-02-05", periods=8, freq="7D"))
    dense = impute_panel(panel, period=4)
    assert dense.shape == panel.shape
    assert dense.notna().all().all()
    assert (dense["2_1"] == 0.0).all()
