# src/tests/conftest.py
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import yaml

# Add the parent directory of this tests folder (i.e., src/) to sys.path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

TRAIN_START = "2010-02-05"
N_TRAIN_WEEKS = 24
N_TEST_WEEKS = 10
PERIOD = 4


def _make_train(n_weeks: int = N_TRAIN_WEEKS) -> pd.DataFrame:
    """
    Two stores x two depts of weekly sales with trend + period-4 seasonality.
    Key 2_2 is irregular: only its first and last weeks are observed.
    """
    dates = pd.date_range(TRAIN_START, periods=n_weeks, freq="7D")
    season = np.array([0.0, 50.0, 100.0, 25.0])
    holiday = np.zeros(n_weeks, dtype=bool)
    holiday[[1, 13]] = True

    rows = []
    for store in (1, 2):
        for dept in (1, 2):
            base = 1000.0 * store + 100.0 * dept
            for i, d in enumerate(dates):
                if (store, dept) == (2, 2) and i not in (0, n_weeks - 1):
                    continue
                rows.append({
                    "Store": store,
                    "Dept": dept,
                    "Date": d,
                    "Weekly_Sales": base + 5.0 * i + season[i % PERIOD],
                    "IsHoliday": bool(holiday[i]),
                })
    return pd.DataFrame(rows)


def _make_test(n_train_weeks: int = N_TRAIN_WEEKS, n_weeks: int = N_TEST_WEEKS) -> pd.DataFrame:
    """Requests for the weeks after training; key 3_1 has no history."""
    start = pd.Timestamp(TRAIN_START) + pd.Timedelta(weeks=n_train_weeks)
    dates = pd.date_range(start, periods=n_weeks, freq="7D")
    rows = []
    for store, dept in ((1, 1), (1, 2), (2, 1), (2, 2), (3, 1)):
        for d in dates:
            rows.append({"Store": store, "Dept": dept, "Date": d, "IsHoliday": False})
    return pd.DataFrame(rows)


@pytest.fixture
def train_df() -> pd.DataFrame:
    return _make_train()


@pytest.fixture
def requests_df() -> pd.DataFrame:
    return _make_test()


@pytest.fixture
def data_dir(tmp_path, train_df, requests_df) -> Path:
    """Competition-style input files, written the way they are distributed."""
    d = tmp_path / "data"
    d.mkdir()
    out = train_df.copy()
    out["IsHoliday"] = out["IsHoliday"].map({True: "TRUE", False: "FALSE"})
    out.to_csv(d / "train.csv", index=False)
    requests_df.to_csv(d / "test.csv", index=False)
    pd.DataFrame({"Store": [1, 2, 3], "Type": ["A", "B", "A"], "Size": [151315, 202307, 37392]}).to_csv(
        d / "stores.csv", index=False
    )
    pd.DataFrame({
        "Store": [1, 1, 2],
        "Date": ["2010-02-05", "2010-02-12", "2010-02-05"],
        "Temperature": [42.31, 38.51, 40.19],
        "MarkDown1": ["NA", "NA", "10382.9"],
        "IsHoliday": [False, True, False],
    }).to_csv(d / "features.csv", index=False)
    return d


@pytest.fixture
def config(data_dir) -> dict:
    """Small, fast configuration matching the synthetic period-4 data."""
    return {
        "data": {
            "dir": str(data_dir),
            "train_file": "train.csv",
            "test_file": "test.csv",
            "stores_file": "stores.csv",
            "features_file": "features.csv",
        },
        "output": {"submission_file": str(data_dir.parent / "submission.csv")},
        "calendar": {"freq_days": 7, "seasonal_period": PERIOD},
        "validation": {"train_ratio": 0.75, "holiday_weight": 5, "weak_models": ["snaive", "tslm"]},
        "models": {
            "enabled": ["snaive", "tslm", "stl_ets"],
            "fourier_k": 1,
            "fourier_scan": [1, 2],
            "fallback": "snaive",
            "n_jobs": 1,
        },
        "adjustment": {
            "enabled": True,
            "pre_week_index": 7,
            "holiday_week_index": 8,
            "ratio": 2.0,
            "shift_days": 2.5,
            "week_days": 7,
        },
    }


@pytest.fixture
def config_path(tmp_path, config) -> Path:
    p = tmp_path / "forecast.yaml"
    with open(p, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f)
    return p
