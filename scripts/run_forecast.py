#!/usr/bin/env python3
"""Print the balance forecast for a JSON file of obligation records.

Usage: run_forecast.py [records.json] [start] [end] [today]

Dates are ISO formatted.  The records file defaults to
``CASHFLOW_DATA_DIR/obligations.json``; the range defaults to today through
ninety days ahead.
"""

from __future__ import annotations

import sys
from datetime import date, timedelta
from pathlib import Path
from typing import List

from cashflow_forecast import config
from cashflow_forecast.engine import run_forecast, series_by_account
from cashflow_forecast.errors import ForecastError
from cashflow_forecast.logging_setup import configure_logging
from cashflow_forecast.records import (
    checkpoints_from_records,
    generators_from_records,
    load_records,
    settlements_from_records,
)


def main(argv: List[str]) -> int:
    configure_logging()
    path = Path(argv[0]) if argv else config.RECORDS_PATH
    if not path.exists():
        print(f"Records file not found: {path}")
        return 1

    today = date.fromisoformat(argv[3]) if len(argv) > 3 else date.today()
    start = date.fromisoformat(argv[1]) if len(argv) > 1 else today
    end = date.fromisoformat(argv[2]) if len(argv) > 2 else start + timedelta(days=90)

    try:
        data = load_records(path)
        generators = generators_from_records(data['obligations'])
        settlements = settlements_from_records(data['settlements'])
        checkpoints = checkpoints_from_records(data['checkpoints'])
        series = run_forecast(
            generators, start, end,
            today=today,
            opening_balances=data['opening_balances'],
            checkpoints=checkpoints,
            settlements=settlements,
        )
    except ForecastError as exc:
        print(f"Forecast failed: {exc}")
        return 1

    for account, points in series_by_account(series).items():
        print(f"{account}:")
        for when, balance in points:
            print(f"  {when.isoformat()}  {balance}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
