# utils/constants.py

SEED = 42

DEFAULT_CONFIG = "forecast.yaml"

# Schema constants used by data_loader and others
DATE_COL = "Date"
STORE_COL = "Store"
DEPT_COL = "Dept"
ID_COLS = ["Store", "Dept"]
KEY_COL = "storeDept"
TARGET_COL = "Weekly_Sales"
HOLIDAY_COL = "IsHoliday"
SUBMISSION_ID_COL = "Id"

TRUE_STRINGS = {"true", "t", "1", "yes"}
FALSE_STRINGS = {"false", "f", "0", "no"}

# Calendar / seasonality
WEEK_DAYS = 7
SEASONAL_PERIOD = 52  # weeks per year

# Validation
TRAIN_RATIO = 0.75
HOLIDAY_WEIGHT = 5

# Model bank
MODEL_NAMES = ["snaive", "tslm", "sarima", "arima_fourier", "stl_arima", "stl_ets"]
WEAK_MODELS = ["snaive", "tslm", "sarima"]
FOURIER_K = 12

# Christmas shift (0-based horizon positions)
PRE_WEEK_INDEX = 7
HOLIDAY_WEEK_INDEX = 8
SHIFT_RATIO = 2.0
SHIFT_DAYS = 2.5
