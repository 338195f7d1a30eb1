# pqmonitor/config.py
import os
from pathlib import Path

DB_PATH = Path(os.getenv("PQ_DB_PATH", Path(__file__).resolve().parent.parent / "pq_events.duckdb"))

VOLTAGE_DIP = "voltage_dip"

# Stat card windows
RECENT_WINDOW_HOURS = 24
SARFI_DECIMALS = 4

# Absent sarfi_70 contributes this much
SARFI_MISSING_VALUE = 0.0

# SARFI-70 monitor
SARFI_HISTORY_YEARS = 3
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
AGGREGATION_KEYS = ("oc", "location")
NOT_AVAILABLE = "N/A"
