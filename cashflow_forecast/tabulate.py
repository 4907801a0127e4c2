"""Flatten generator output into the columnar transaction table."""

from __future__ import annotations

from datetime import date
from itertools import chain
from typing import Iterable, List, Sequence

import pandas as pd

from .logging_setup import get_logger
from .transactions import Transaction, TransactionGenerator, validate_range

logger = get_logger(__name__)

TABLE_COLUMNS = ['date', 'amount', 'account']


def empty_table() -> pd.DataFrame:
    return pd.DataFrame({
        'date': pd.Series([], dtype='datetime64[ns]'),
        'amount': pd.Series([], dtype=object),
        'account': pd.Series([], dtype=object),
    })


def tabulate_transactions(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Build the table from any iterable of transactions in a single pass.

    Rows are sorted by date; rows sharing a date keep their input order.
    """
    dates: List[date] = []
    amounts: List[object] = []
    accounts: List[object] = []
    for transaction in transactions:
        dates.append(transaction.date)
        amounts.append(transaction.amount)
        accounts.append(transaction.account)

    if not dates:
        return empty_table()

    table = pd.DataFrame({
        'date': pd.to_datetime(dates),
        'amount': pd.Series(amounts, dtype=object),
        'account': pd.Series(accounts, dtype=object),
    })
    return sort_table(table)


def sort_table(table: pd.DataFrame) -> pd.DataFrame:
    return table.sort_values('date', kind='stable').reset_index(drop=True)


def tabulate(generators: Sequence[TransactionGenerator], start: date, end: date) -> pd.DataFrame:
    """Expand every generator over ``[start, end]`` into one table.

    Each generator is asked for its transactions exactly once, in list order.
    Nothing is cached: overlapping ranges are recomputed on every call.
    """
    validate_range(start, end)
    table = tabulate_transactions(
        chain.from_iterable(generator.generate_transactions(start, end) for generator in generators)
    )
    logger.debug("Tabulated %d rows from %d generators over %s..%s", len(table), len(generators), start, end)
    return table

