"""Per-account summary figures over a balance series."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .errors import ConfigurationError
from .transactions import to_date

STATS_COLUMNS = ['account', 'min_balance', 'max_balance', 'end_balance', 'lowest_balance_date']


def account_stats(series: pd.DataFrame, table: Optional[pd.DataFrame] = None) -> pd.DataFrame:
    """Summarize each account's series.

    When the activity ``table`` is supplied, ``total_income`` (sum of credits)
    and ``total_expense`` (sum of debits, negative) are added.
    """
    columns = list(STATS_COLUMNS)
    if table is not None:
        columns += ['total_income', 'total_expense']
    if series is None or series.empty:
        return pd.DataFrame(columns=columns)

    rows: List[Dict[str, Any]] = []
    for account, group in series.groupby('account', sort=False):
        balances = list(group['balance'])
        dates = list(group['date'])
        lowest = min(range(len(balances)), key=balances.__getitem__)
        row = {
            'account': account,
            'min_balance': balances[lowest],
            'max_balance': max(balances),
            'end_balance': balances[-1],
            'lowest_balance_date': dates[lowest],
        }
        if table is not None:
            amounts = list(table.loc[table['account'] == account, 'amount'])
            row['total_income'] = sum((a for a in amounts if a > 0), Decimal(0))
            row['total_expense'] = sum((a for a in amounts if a < 0), Decimal(0))
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


PERIOD_FREQS = {'year': 'Y', 'month': 'M'}
PERIOD_STATS_COLUMNS = ['account', 'period', 'min_balance', 'max_balance', 'end_balance']


def period_stats(
    series: pd.DataFrame,
    table: Optional[pd.DataFrame] = None,
    period: str = 'month',
    as_of: Optional[date] = None,
    end: Optional[date] = None,
) -> pd.DataFrame:
    """Per-account figures for every calendar year or month the series covers.

    Parameters
    ----------
    series : pandas.DataFrame
        Balance series as returned by the calculators.
    table : pandas.DataFrame, optional
        Activity table.  Adds ``average_income`` and ``average_expense``
        (mean credit and mean debit in the period, ``None`` when there are
        none) and, together with ``as_of``, ``upcoming_expenses``: the debits
        dated after ``as_of`` up to the end of the period.
    period : {'year', 'month'}
        Bucket size.
    as_of : datetime.date, optional
        Reference date for ``upcoming_expenses``.
    end : datetime.date, optional
        Extends the buckets up to this date; the balance carries forward
        through periods without points.

    Returns
    -------
    pandas.DataFrame
        One row per account and ``pandas.Period``.  ``min_balance`` and
        ``max_balance`` include the balance carried into the period;
        ``end_balance`` is the state on the last day of the period.
    """
    freq = PERIOD_FREQS.get(period)
    if freq is None:
        raise ConfigurationError(f"Unknown statistics period '{period}'")

    columns = list(PERIOD_STATS_COLUMNS)
    if table is not None:
        columns += ['average_income', 'average_expense']
        if as_of is not None:
            columns.append('upcoming_expenses')
    if series is None or series.empty:
        return pd.DataFrame(columns=columns)

    as_of_ts = pd.Timestamp(to_date(as_of)) if as_of is not None else None
    rows: List[Dict[str, Any]] = []
    for account, group in series.groupby('account', sort=False):
        buckets: Dict[pd.Period, List[Tuple[pd.Timestamp, Any]]] = {}
        for when, balance in zip(group['date'], group['balance']):
            buckets.setdefault(when.to_period(freq), []).append((when, balance))

        activity = None
        last = group['date'].max()
        if table is not None:
            activity = table[table['account'] == account]
            if not activity.empty:
                last = max(last, activity['date'].max())
        if end is not None:
            last = max(last, pd.Timestamp(to_date(end)))

        carried = None
        for bucket in pd.period_range(group['date'].min().to_period(freq), last.to_period(freq), freq=freq):
            points = buckets.get(bucket, [])
            candidates = [balance for _, balance in points]
            # The carried-in balance counts unless the period opens with its own point.
            if carried is not None and (not points or points[0][0] > bucket.start_time):
                candidates.insert(0, carried)
            carried = candidates[-1]
            row = {
                'account': account,
                'period': bucket,
                'min_balance': min(candidates),
                'max_balance': max(candidates),
                'end_balance': carried,
            }
            if activity is not None:
                in_bucket = activity[activity['date'].dt.to_period(freq) == bucket]
                amounts = list(in_bucket['amount'])
                row['average_income'] = _mean([a for a in amounts if a > 0])
                row['average_expense'] = _mean([a for a in amounts if a < 0])
                if as_of_ts is not None:
                    upcoming = in_bucket.loc[in_bucket['date'] > as_of_ts, 'amount']
                    row['upcoming_expenses'] = sum((a for a in upcoming if a < 0), Decimal(0))
            rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def _mean(values: List[Decimal]) -> Optional[Decimal]:
    if not values:
        return None
    return sum(values, Decimal(0)) / len(values)
