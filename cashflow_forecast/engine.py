"""Preconfigured forecast pipeline and helpers for the reporting layer."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from . import config
from .balance import BalanceCalculator, Checkpoint
from .generators import OccurrenceKey
from .logging_setup import get_logger
from .merge import MergeCalculator
from .transactions import TransactionGenerator, to_date
from .unpaid import SettlementRecord, UnpaidRecurringCalculator

logger = get_logger(__name__)


def default_compute(
    today: Optional[date] = None,
    opening_balances: Optional[Mapping[Hashable, Any]] = None,
    checkpoints: Optional[Iterable[Checkpoint]] = None,
    settlements: Iterable[SettlementRecord | OccurrenceKey] = (),
    method: Any = None,
) -> MergeCalculator:
    """Return the pipeline used for most forecasts.

    The baseline balance (history plus recurring projection after ``today``)
    is summed with the adjustment for recurring items that are due but
    unsettled as of ``today``.  ``today`` defaults to the current date and
    ``method`` to ``CASHFLOW_MERGE_METHOD``.
    """
    today = to_date(today) if today is not None else date.today()
    balance = BalanceCalculator(opening_balances, checkpoints, as_of=today)
    unpaid = UnpaidRecurringCalculator(today, settlements)
    return MergeCalculator([balance, unpaid], method if method is not None else config.MERGE_METHOD)


def run_forecast(
    generators: Sequence[TransactionGenerator],
    start: date,
    end: date,
    today: Optional[date] = None,
    opening_balances: Optional[Mapping[Hashable, Any]] = None,
    checkpoints: Optional[Iterable[Checkpoint]] = None,
    settlements: Iterable[SettlementRecord | OccurrenceKey] = (),
) -> pd.DataFrame:
    start = to_date(start)
    end = to_date(end)
    logger.info("Forecasting %d obligations from %s to %s", len(generators), start, end)
    compute = default_compute(today, opening_balances, checkpoints, settlements)
    return compute.compute(generators, start, end)


def series_by_account(series: pd.DataFrame) -> Dict[Hashable, List[Tuple[date, Any]]]:
    """Convert a balance series into ``{account: [(date, balance), ...]}``."""
    result: Dict[Hashable, List[Tuple[date, Any]]] = {}
    for account, when, balance in zip(series['account'], series['date'], series['balance']):
        result.setdefault(account, []).append((pd.Timestamp(when).date(), balance))
    return result
