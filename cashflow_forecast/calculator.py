"""Shared shape of every balance calculator and of the series they return.

A balance series is a DataFrame with columns ``account``, ``date`` and
``balance``: accounts in first-seen order, dates ascending within an account,
balances as ``Decimal``.  Every calculator anchors each account it knows
about at the query start date so that series from different calculators
line up when merged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Hashable, List, Sequence, Tuple

import pandas as pd

from .transactions import TransactionGenerator

SERIES_COLUMNS = ['account', 'date', 'balance']


def empty_series() -> pd.DataFrame:
    return pd.DataFrame({
        'account': pd.Series([], dtype=object),
        'date': pd.Series([], dtype='datetime64[ns]'),
        'balance': pd.Series([], dtype=object),
    })


def build_series(points: Sequence[Tuple[Hashable, pd.Timestamp, object]]) -> pd.DataFrame:
    """Assemble ``(account, date, balance)`` tuples into a balance series."""
    if not points:
        return empty_series()
    accounts, dates, balances = zip(*points)
    return pd.DataFrame({
        'account': pd.Series(list(accounts), dtype=object),
        'date': pd.to_datetime(list(dates)),
        'balance': pd.Series(list(balances), dtype=object),
    })


def collapse_points(dates: List[pd.Timestamp], balances: List[object]) -> List[Tuple[pd.Timestamp, object]]:
    """Keep the end-of-day balance per date, then drop points that do not move it.

    The first point is always kept: it is the account's anchor.
    """
    end_of_day = {}
    for when, balance in zip(dates, balances):
        end_of_day[when] = balance
    collapsed: List[Tuple[pd.Timestamp, object]] = []
    for when in sorted(end_of_day):
        balance = end_of_day[when]
        if collapsed and collapsed[-1][1] == balance:
            continue
        collapsed.append((when, balance))
    return collapsed


class AccountStateCalculator(ABC):
    """Turns a set of generators into a balance series over a date range."""

    @abstractmethod
    def compute(self, generators: Sequence[TransactionGenerator], start: date, end: date) -> pd.DataFrame:
        raise NotImplementedError
