# tests/test_pipeline.py
import pandas as pd
import pytest

import pipeline
from data_loader import load_inputs
from pipeline import cmd_forecast, cmd_inspect, cmd_validate, forecast_index, prepare


def test_prepare_builds_dense_panel(config):
    data = prepare(load_inputs(config), config)
    assert data.panel.shape == (24, 4)
    assert data.panel.notna().all().all()
    assert data.no_history == ["3_1"]
    assert len(data.weights) == 24


def test_forecast_index_follows_training(config):
    data = prepare(load_inputs(config), config)
    idx = forecast_index(data.panel, data.test)
    assert len(idx) == 10
    assert idx[0] == data.panel.index[-1] + pd.Timedelta(days=7)


def test_cmd_inspect_report(config):
    report = cmd_inspect(config)
    assert report["keys_without_history"] == ["3_1"]
    assert report["train_weeks"] == 24
    assert report["test_weeks"] == 10
    assert report["irregular_keys"] == 1
    assert len(report["holiday_weeks"]) == 2


def test_cmd_validate_summary(config):
    summary = cmd_validate(config)
    assert "Average of all Models" in set(summary["Model"])
    assert summary["WMAE"].notna().all()


def test_cmd_forecast_writes_complete_submission(config, tmp_path):
    out = tmp_path / "my_forecasts.csv"
    sub = cmd_forecast(config, out_csv=str(out))
    written = pd.read_csv(out)

    assert len(written) == len(sub) == 5 * 10
    assert written["Id"].is_unique
    assert written["Weekly_Sales"].notna().all()
    assert (written.loc[written["Id"].str.startswith("3_1_"), "Weekly_Sales"] == 0).all()
    assert (written.loc[~written["Id"].str.startswith("3_1_"), "Weekly_Sales"] > 0).all()


def test_main_cli_forecast(config_path, tmp_path):
    out = tmp_path / "cli.csv"
    pipeline.main(["--config", str(config_path), "--log-level", "WARNING", "forecast", "--out", str(out)])
    assert out.exists()
    assert len(pd.read_csv(out)) == 50


def test_main_requires_command(config_path):
    with pytest.raises(SystemExit):
        pipeline.main(["--config", str(config_path)])
