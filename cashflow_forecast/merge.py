"""Combine balance series from several calculators into one forecast."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple

import pandas as pd

from . import config
from .calculator import AccountStateCalculator, build_series, empty_series
from .errors import ConfigurationError
from .logging_setup import get_logger
from .transactions import TransactionGenerator, validate_range

logger = get_logger(__name__)


class MergeMethod(Enum):
    """How values from several series are combined at a shared date.

    ``SUM`` adds the forward-filled balances of every series.  ``OVERRIDE``
    lets the last-listed series that defines a value at a date win;
    ``FIRST_WINS`` lets the first-listed one win.
    """

    SUM = 'sum'
    OVERRIDE = 'override'
    FIRST_WINS = 'first_wins'

    @classmethod
    def parse(cls, value: Any) -> 'MergeMethod':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace('-', '_')
            for member in cls:
                if member.value == key:
                    return member
        raise ConfigurationError(f"Unknown merge method '{value}'")


def merge(method: Any, series_list: Sequence[pd.DataFrame]) -> pd.DataFrame:
    """Merge balance series per account onto the union of their dates.

    Merging a single series returns it unchanged for every method.
    """
    method = MergeMethod.parse(method)
    frames = list(series_list)
    if not frames:
        return empty_series()
    if len(frames) == 1:
        return frames[0].reset_index(drop=True).copy()

    accounts: List[Hashable] = []
    columns: List[Dict[Hashable, Dict[pd.Timestamp, Any]]] = []
    for frame in frames:
        by_account: Dict[Hashable, Dict[pd.Timestamp, Any]] = {}
        for account, when, balance in zip(frame['account'], frame['date'], frame['balance']):
            if account not in accounts:
                accounts.append(account)
            by_account.setdefault(account, {})[pd.Timestamp(when)] = balance
        columns.append(by_account)

    points = []
    for account in accounts:
        account_columns = [by_account.get(account, {}) for by_account in columns]
        for when, balance in _merge_account(method, account_columns):
            points.append((account, when, balance))

    merged = build_series(points)
    logger.debug("Merged %d series with %s into %d points", len(frames), method.value, len(merged))
    return merged


def _merge_account(
    method: MergeMethod,
    columns: List[Dict[pd.Timestamp, Any]],
) -> List[Tuple[pd.Timestamp, Any]]:
    union = sorted(set().union(*columns))
    merged: List[Tuple[pd.Timestamp, Any]] = []

    if method is MergeMethod.SUM:
        # Before its first point a series contributes nothing.
        last = [Decimal(0)] * len(columns)
        for when in union:
            for i, column in enumerate(columns):
                if when in column:
                    last[i] = column[when]
            merged.append((when, sum(last, Decimal(0))))
        return merged

    precedence = columns if method is MergeMethod.OVERRIDE else list(reversed(columns))
    current = None
    for when in union:
        for column in precedence:
            if when in column:
                current = column[when]
        merged.append((when, current))
    return merged


class MergeCalculator(AccountStateCalculator):
    """Runs several calculators over the same inputs and merges their series.

    Calculators share no mutable state, so with ``max_workers`` above one
    they run on a thread pool; results are always merged in calculator order.
    """

    def __init__(
        self,
        calculators: Sequence[AccountStateCalculator],
        method: Any = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.calculators = list(calculators)
        self.method = MergeMethod.parse(method if method is not None else config.MERGE_METHOD)
        self.max_workers = max_workers if max_workers is not None else config.MAX_WORKERS
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be positive, got {self.max_workers}")

    def compute(self, generators: Sequence[TransactionGenerator], start: date, end: date) -> pd.DataFrame:
        validate_range(start, end)
        logger.debug(
            "Running %d calculators from %s to %s with %d workers",
            len(self.calculators), start, end, self.max_workers,
        )
        if self.max_workers > 1 and len(self.calculators) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(lambda calculator: calculator.compute(generators, start, end), self.calculators))
        else:
            results = [calculator.compute(generators, start, end) for calculator in self.calculators]
        return merge(self.method, results)
