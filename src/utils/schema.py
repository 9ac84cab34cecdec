# schema.py
"""
Schema definition for the competition input files and the submission.
"""

TRAIN_COLS = ["Store", "Dept", "Date", "Weekly_Sales", "IsHoliday"]

TEST_COLS = ["Store", "Dept", "Date", "IsHoliday"]

STORES_COLS = ["Store", "Type", "Size"]

FEATURES_COLS = ["Store", "Date", "IsHoliday"]
FEATURES_MEASURE_COLS = [
    "Temperature", "Fuel_Price",
    "MarkDown1", "MarkDown2", "MarkDown3", "MarkDown4", "MarkDown5",
    "CPI", "Unemployment",
]

SUBMISSION_COLS = ["Id", "Weekly_Sales"]

MODEL_LABELS = {
    "snaive": "SNaive (Baseline)",
    "tslm": "TSLM",
    "sarima": "SARIMA",
    "arima_fourier": "ARIMA-Fourier",
    "stl_arima": "STL-ARIMA",
    "stl_ets": "STL-ETS",
}
AVERAGE_ALL_LABEL = "Average of all Models"
AVERAGE_WEAK_LABEL = "Weak Models Average"
