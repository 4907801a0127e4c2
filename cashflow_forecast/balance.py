"""Per-account running balances from the transaction table."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from itertools import chain
from typing import Dict, Hashable, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .calculator import AccountStateCalculator, build_series, collapse_points
from .generators import UnpaidRecurringTransaction
from .logging_setup import get_logger
from .tabulate import tabulate, tabulate_transactions
from .transactions import Transaction, TransactionGenerator, to_date, to_decimal, validate_range

logger = get_logger(__name__)

Checkpoint = Tuple[Hashable, date, Decimal]


class BalanceCalculator(AccountStateCalculator):
    """Cumulative balance per account, starting from an opening balance at ``start``.

    ``checkpoints`` are manually recorded balances ``(account, date, balance)``;
    one inside the query range replaces that day's activity and the running
    sum continues from it.  When ``as_of`` is given, unpaid recurring
    obligations only contribute occurrences after it: anything due up to
    ``as_of`` is the :class:`~cashflow_forecast.unpaid.UnpaidRecurringCalculator`'s
    business.
    """

    def __init__(
        self,
        opening_balances: Optional[Mapping[Hashable, object]] = None,
        checkpoints: Optional[Iterable[Checkpoint]] = None,
        as_of: Optional[date] = None,
    ) -> None:
        self.opening_balances: Dict[Hashable, Decimal] = {
            account: to_decimal(amount) for account, amount in (opening_balances or {}).items()
        }
        self.checkpoints: Dict[Hashable, Dict[pd.Timestamp, Decimal]] = {}
        for account, when, balance in checkpoints or ():
            self.checkpoints.setdefault(account, {})[pd.Timestamp(to_date(when))] = to_decimal(balance)
        self.as_of = to_date(as_of) if as_of is not None else None

    def compute(self, generators: Sequence[TransactionGenerator], start: date, end: date) -> pd.DataFrame:
        validate_range(start, end)
        if self.as_of is None:
            table = tabulate(generators, start, end)
        else:
            forecast_start = max(start, self.as_of + timedelta(days=1))
            table = tabulate_transactions(
                chain.from_iterable(self._expand(generator, start, forecast_start, end) for generator in generators)
            )
            logger.debug("Tabulated %d rows split at %s", len(table), self.as_of)
        return self.compute_from_table(table, start, end)

    @staticmethod
    def _expand(
        generator: TransactionGenerator,
        start: date,
        forecast_start: date,
        end: date,
    ) -> Iterator[Transaction]:
        # Unpaid occurrences up to as_of are adjustments, not baseline activity.
        if isinstance(generator, UnpaidRecurringTransaction):
            if forecast_start > end:
                return iter(())
            return generator.generate_transactions(forecast_start, end)
        return generator.generate_transactions(start, end)

    def compute_from_table(self, table: pd.DataFrame, start: date, end: date) -> pd.DataFrame:
        validate_range(start, end)
        start_ts = pd.Timestamp(start)
        end_ts = pd.Timestamp(end)
        in_range = table[(table['date'] >= start_ts) & (table['date'] <= end_ts)]
        in_range = in_range.sort_values('date', kind='stable')
        if len(in_range) < len(table):
            logger.debug("Ignoring %d rows outside %s..%s", len(table) - len(in_range), start, end)

        accounts: List[Hashable] = list(self.opening_balances)
        for account in list(in_range['account']) + list(self.checkpoints):
            if account not in accounts:
                accounts.append(account)

        grouped = {account: rows for account, rows in in_range.groupby('account', sort=False)}
        points = []
        for account in accounts:
            rows = grouped.get(account, in_range.iloc[0:0])
            checkpoints = {
                when: value
                for when, value in self.checkpoints.get(account, {}).items()
                if start_ts <= when <= end_ts
            }
            for when, balance in self._account_points(account, rows, checkpoints, start_ts):
                points.append((account, when, balance))

        series = build_series(points)
        logger.info("Computed %d balance points for %d accounts from %s to %s", len(series), len(accounts), start, end)
        return series

    def _account_points(
        self,
        account: Hashable,
        rows: pd.DataFrame,
        checkpoints: Mapping[pd.Timestamp, Decimal],
        start_ts: pd.Timestamp,
    ) -> List[Tuple[pd.Timestamp, Decimal]]:
        opening = self.opening_balances.get(account, Decimal(0))
        dates: List[pd.Timestamp] = [start_ts]
        balances: List[Decimal] = [opening]

        base = opening
        lower: Optional[pd.Timestamp] = None
        for upper in sorted(checkpoints) + [None]:
            mask = pd.Series(True, index=rows.index)
            if lower is not None:
                mask &= rows['date'] > lower
            if upper is not None:
                mask &= rows['date'] < upper
            segment = rows[mask]
            if not segment.empty:
                running = segment['amount'].cumsum() + base
                dates.extend(segment['date'])
                balances.extend(running)
            if upper is None:
                break
            base = checkpoints[upper]
            dates.append(upper)
            balances.append(base)
            lower = upper

        return collapse_points(dates, balances)


def label_forecast(series: pd.DataFrame, as_of: date) -> pd.DataFrame:
    """Add a boolean ``forecast`` column: True for points dated after ``as_of``."""
    labelled = series.copy()
    labelled['forecast'] = labelled['date'] > pd.Timestamp(to_date(as_of))
    return labelled
