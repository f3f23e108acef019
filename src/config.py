"""
UsageHQ - Configuration
Fixed parameters for the bill extraction, weather enrichment and dashboard stages.
"""

from datetime import date
from pathlib import Path

__version__ = "0.4.0"

# Project layout
PROJECT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_DIR / "data"
BILLS_DIR = DATA_DIR / "bills"

# Output files
BILLS_JSON = "bills_data.json"
BILLS_CSV = "bills_data.csv"
WEATHER_JSON = "bills_weather_data.json"
DASHBOARD_HTML = "usage_dashboard.html"
DASHBOARD_JS = "dashboard_charts.js"

# Zip 11101 (Long Island City)
LATITUDE = 40.7536
LONGITUDE = -73.9432
TIMEZONE = "America/New_York"

# Extraction
BILL_CUTOFF_DATE = date(2017, 6, 1)      # nothing before June 2017
PLAUSIBLE_MIN_DATE = date(2017, 1, 1)    # older parsed dates fall back to the filename
BAD_SENTINEL_DATE = date(2014, 3, 1)     # printed on some templates instead of the period end
RECONCILE_TOLERANCE = 1.00               # $ difference allowed between cost and supply + delivery

# Weather enrichment
DEGREE_DAY_BASE = 65.0
FETCH_LOOKBACK_DAYS = 35
DEFAULT_PERIOD_DAYS = 30
MIN_BILLING_GAP_DAYS = 20
MAX_BILLING_GAP_DAYS = 45
REQUEST_TIMEOUT = 30

# Dashboard
ROLLING_WINDOW = 12
APEXCHARTS_CDN = "https://cdn.jsdelivr.net/npm/apexcharts"
