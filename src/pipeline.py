# pipeline.py
"""
Weekly store sales forecasting pipeline.

CLI:
- Inspect the inputs (NA report, key coverage, irregular series, holiday weeks):
  python pipeline.py inspect --data-dir data

- Hold-out validation of the model bank (optionally scan the Fourier order):
  python pipeline.py validate --data-dir data --scan-fourier

- Fit on the full history and write the submission:
  python pipeline.py forecast --data-dir data --out my_forecasts.csv
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from adjustment import adjust_holiday_shift
from data_loader import ForecastInputs, load_inputs, missing_value_report
from imputation import impute_panel
from models.modeling import ensemble_average, run_model_bank
from series import (
    add_store_dept_key, align_to_test, calendar_from_dates, canonical_calendar,
    holiday_weeks, observations_per_key, regularize,
)
from submission import assemble_submission, write_submission
from utils.constants import (
    DATE_COL, KEY_COL, MODEL_NAMES, WEAK_MODELS, SEASONAL_PERIOD, WEEK_DAYS,
    TRAIN_RATIO, HOLIDAY_WEIGHT, FOURIER_K, PRE_WEEK_INDEX, HOLIDAY_WEEK_INDEX,
    SHIFT_RATIO, SHIFT_DAYS,
)
from utils.io_utils import load_config
from validation import holiday_weights, scan_fourier_order, validate_model_bank

logger = logging.getLogger(__name__)


@dataclass
class PreparedData:
    test: pd.DataFrame
    panel: pd.DataFrame
    weights: pd.Series
    no_history: List[str]


# ---------- Helpers ----------
def prepare(inputs: ForecastInputs, cfg: dict) -> PreparedData:
    """Keys, alignment, regularization and imputation shared by every command."""
    cal_cfg = cfg.get("calendar", {})
    freq_days = int(cal_cfg.get("freq_days", WEEK_DAYS))
    period = int(cal_cfg.get("seasonal_period", SEASONAL_PERIOD))

    train = add_store_dept_key(inputs.train)
    test = add_store_dept_key(inputs.test)
    train, no_history = align_to_test(train, test)
    if train.empty:
        raise ValueError("No training history for any requested key.")

    calendar = canonical_calendar(train[DATE_COL].min(), train[DATE_COL].max(), freq_days)
    panel = impute_panel(regularize(train, calendar), period=period)
    weights = holiday_weights(
        train, calendar, weight=float(cfg.get("validation", {}).get("holiday_weight", HOLIDAY_WEIGHT)),
    )
    return PreparedData(test=test, panel=panel, weights=weights, no_history=no_history)


def forecast_index(panel: pd.DataFrame, test: pd.DataFrame, freq_days: int = WEEK_DAYS) -> pd.DatetimeIndex:
    """Weeks from the end of the training calendar through the last requested date."""
    start = panel.index[-1] + pd.Timedelta(days=freq_days)
    end = test[DATE_COL].max()
    if test[DATE_COL].min() < start:
        raise ValueError(
            f"Requested dates start at {test[DATE_COL].min().date()}, inside the training period."
        )
    return canonical_calendar(start, end, freq_days)


def _models_cfg(cfg: dict, n_jobs: Optional[int]) -> dict:
    m = cfg.get("models", {})
    return {
        "methods": list(m.get("enabled", MODEL_NAMES)),
        "fourier_k": int(m.get("fourier_k", FOURIER_K)),
        "fallback": m.get("fallback", "snaive"),
        "n_jobs": int(n_jobs if n_jobs is not None else m.get("n_jobs", 1)),
    }


# ---------- Commands ----------
def cmd_inspect(cfg: dict, data_dir: Optional[str] = None) -> dict:
    inputs = load_inputs(cfg, data_dir)
    freq_days = int(cfg.get("calendar", {}).get("freq_days", WEEK_DAYS))

    for name in ("train", "test", "stores", "features"):
        df = getattr(inputs, name)
        if df is None:
            continue
        print(f"{name}: {len(df)} rows")
        print(missing_value_report(df).map(lambda v: f"{v}%").to_string())

    train = add_store_dept_key(inputs.train)
    test = add_store_dept_key(inputs.test)
    aligned, no_history = align_to_test(train, test)

    train_weeks = len(calendar_from_dates(inputs.train[DATE_COL], freq_days))
    test_weeks = len(calendar_from_dates(inputs.test[DATE_COL], freq_days))
    obs = observations_per_key(aligned)
    holidays, before = holiday_weeks(inputs.train, freq_days)

    report = {
        "train_keys": int(train[KEY_COL].nunique()),
        "test_keys": int(test[KEY_COL].nunique()),
        "keys_without_history": no_history,
        "train_weeks": train_weeks,
        "test_weeks": test_weeks,
        "regular_keys": int((obs == train_weeks).sum()),
        "irregular_keys": int((obs < train_weeks).sum()),
        "holiday_weeks": [d.date().isoformat() for d in holidays],
        "weeks_before_holidays": [d.date().isoformat() for d in before],
    }
    print(f"Keys: {report['train_keys']} in train, {report['test_keys']} in test")
    print(f"Keys without history ({len(no_history)}): {no_history}")
    print(f"Calendar: {train_weeks} training weeks, {test_weeks} forecast weeks")
    print(f"Series: {report['regular_keys']} regular, {report['irregular_keys']} with gaps")
    if not obs.empty:
        print(obs.value_counts().sort_index().rename("keys").to_string())
    print(f"Holiday weeks: {report['holiday_weeks']}")
    return report


def cmd_validate(
    cfg: dict,
    data_dir: Optional[str] = None,
    fourier_k: Optional[int] = None,
    scan_fourier: bool = False,
    n_jobs: Optional[int] = None,
) -> pd.DataFrame:
    inputs = load_inputs(cfg, data_dir)
    data = prepare(inputs, cfg)
    m = _models_cfg(cfg, n_jobs)
    v = cfg.get("validation", {})
    period = int(cfg.get("calendar", {}).get("seasonal_period", SEASONAL_PERIOD))
    train_ratio = float(v.get("train_ratio", TRAIN_RATIO))

    summary, _ = validate_model_bank(
        data.panel, data.weights,
        methods=m["methods"],
        weak_models=v.get("weak_models", WEAK_MODELS),
        train_ratio=train_ratio,
        period=period,
        fourier_k=int(fourier_k) if fourier_k is not None else m["fourier_k"],
        n_jobs=m["n_jobs"],
        fallback=m["fallback"],
    )
    print("✅ Validation WMAE:")
    print(summary.to_string(index=False))

    if scan_fourier:
        ks = cfg.get("models", {}).get("fourier_scan", [8, 10, 12, 14, 16, 18])
        scan = scan_fourier_order(
            data.panel, data.weights, ks,
            train_ratio=train_ratio, period=period, n_jobs=m["n_jobs"], fallback=m["fallback"],
        )
        print("✅ Fourier order scan:")
        print(scan.to_string(index=False))
    return summary


def cmd_forecast(
    cfg: dict,
    data_dir: Optional[str] = None,
    out_csv: Optional[str] = None,
    n_jobs: Optional[int] = None,
    adjust: Optional[bool] = None,
) -> pd.DataFrame:
    inputs = load_inputs(cfg, data_dir)
    data = prepare(inputs, cfg)
    m = _models_cfg(cfg, n_jobs)
    a = cfg.get("adjustment", {})
    cal = cfg.get("calendar", {})
    period = int(cal.get("seasonal_period", SEASONAL_PERIOD))

    index = forecast_index(data.panel, data.test, int(cal.get("freq_days", WEEK_DAYS)))
    forecasts = run_model_bank(
        data.panel, len(index), m["methods"],
        period=period, n_jobs=m["n_jobs"], fallback=m["fallback"], index=index,
        method_params={"arima_fourier": {"k": m["fourier_k"]}},
    )

    do_adjust = bool(a.get("enabled", True)) if adjust is None else adjust
    if do_adjust:
        forecasts = {
            name: adjust_holiday_shift(
                fc,
                pre_week_index=int(a.get("pre_week_index", PRE_WEEK_INDEX)),
                holiday_week_index=int(a.get("holiday_week_index", HOLIDAY_WEEK_INDEX)),
                ratio=float(a.get("ratio", SHIFT_RATIO)),
                shift_days=float(a.get("shift_days", SHIFT_DAYS)),
                week_days=float(a.get("week_days", WEEK_DAYS)),
            )
            for name, fc in forecasts.items()
        }

    final_fc = ensemble_average(forecasts)
    submission = assemble_submission(data.test, final_fc)

    out_path = out_csv or cfg.get("output", {}).get("submission_file", "my_forecasts.csv")
    write_submission(submission, out_path)
    print(f"✅ Submission with {len(submission)} rows saved to: {out_path}")
    return submission


# ---------- CLI ----------
def main(argv: Optional[List[str]] = None):
    import argparse
    parser = argparse.ArgumentParser(description="Weekly store sales forecasting pipeline")
    parser.add_argument("--config", default=None, help="Path to forecast.yaml")
    parser.add_argument("--data-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("inspect", help="Summarize the input files")

    p_val = sub.add_parser("validate", help="Hold-out validation of the model bank")
    p_val.add_argument("--fourier-k", type=int, default=None)
    p_val.add_argument("--scan-fourier", action="store_true")
    p_val.add_argument("--n-jobs", type=int, default=None)

    p_fc = sub.add_parser("forecast", help="Fit on full history and write the submission")
    p_fc.add_argument("--out", default=None)
    p_fc.add_argument("--n-jobs", type=int, default=None)
    p_fc.add_argument("--no-adjust", action="store_true", help="Skip the Christmas-week shift")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    cfg = load_config(args.config)

    if args.cmd == "inspect":
        cmd_inspect(cfg, args.data_dir)
    elif args.cmd == "validate":
        cmd_validate(cfg, args.data_dir, args.fourier_k, args.scan_fourier, args.n_jobs)
    elif args.cmd == "forecast":
        cmd_forecast(cfg, args.data_dir, args.out, args.n_jobs, adjust=False if args.no_adjust else None)
    else:
        parser.print_help()


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
