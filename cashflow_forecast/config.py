"""Configuration defaults for the forecast engine.

Every value can be overridden through an environment variable so the host
application can tune the pipeline without code changes.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in cashflow_forecast/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Merge strategy used by ``engine.default_compute``
MERGE_METHOD = os.getenv("CASHFLOW_MERGE_METHOD", "sum")

# Thread pool size for ``MergeCalculator``; 1 runs calculators sequentially
MAX_WORKERS = int(os.getenv("CASHFLOW_MAX_WORKERS", "1"))

LOG_LEVEL = os.getenv("CASHFLOW_FORECAST_LOG_LEVEL")

# Record files consumed by scripts/run_forecast.py
DATA_DIR = Path(os.getenv("CASHFLOW_DATA_DIR", _PROJECT_ROOT / "data"))
RECORDS_PATH = DATA_DIR / "obligations.json"


def get_records_path() -> str:
    """Get the default obligation records path as a string."""
    return str(RECORDS_PATH)
