"""Adjustments for recurring obligations that are due but not yet settled.

A rent payment due on the 1st should depress the balance even before the
bank record confirming it arrives.  Once reconciliation marks the occurrence
settled the adjustment disappears, so the payment is never counted twice.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, FrozenSet, Hashable, Iterable, Iterator, List, Sequence, Union

import pandas as pd

from .calculator import AccountStateCalculator, build_series, collapse_points
from .generators import OccurrenceKey, UnpaidRecurringTransaction
from .logging_setup import get_logger
from .transactions import Transaction, TransactionGenerator, to_date, validate_range

logger = get_logger(__name__)


@dataclass(frozen=True)
class SettlementRecord:
    """One reconciliation outcome for an occurrence; later records supersede earlier ones."""

    key: OccurrenceKey
    settled: bool = True


def resolve_settlements(
    records: Iterable[Union[SettlementRecord, OccurrenceKey]],
) -> FrozenSet[OccurrenceKey]:
    """Fold reconciliation records in order and return the keys that end up settled.

    A bare :class:`OccurrenceKey` counts as a settled record.
    """
    state: Dict[OccurrenceKey, bool] = {}
    for record in records:
        if isinstance(record, SettlementRecord):
            key = OccurrenceKey(record.key[0], to_date(record.key[1]))
            state[key] = record.settled
        else:
            state[OccurrenceKey(record[0], to_date(record[1]))] = True
    return frozenset(key for key, settled in state.items() if settled)


class UnpaidRecurringCalculator(AccountStateCalculator):
    """Balance adjustment for outstanding occurrences of unpaid recurring obligations.

    Only occurrences due on or before ``as_of`` are outstanding; later ones
    are plain forecast and belong to the ordinary recurring projection.
    """

    def __init__(
        self,
        as_of: date,
        settlements: Iterable[Union[SettlementRecord, OccurrenceKey]] = (),
    ) -> None:
        self.as_of = to_date(as_of)
        self.settled_keys = resolve_settlements(settlements)

    def outstanding_transactions(self, generators: Sequence[TransactionGenerator]) -> List[Transaction]:
        adjustments: List[Transaction] = []
        for generator in generators:
            if isinstance(generator, UnpaidRecurringTransaction):
                adjustments.extend(generator.outstanding_transactions(self.as_of, self.settled_keys))
        logger.debug("Found %d outstanding adjustments as of %s", len(adjustments), self.as_of)
        return adjustments

    def compute(self, generators: Sequence[TransactionGenerator], start: date, end: date) -> pd.DataFrame:
        validate_range(start, end)
        start_ts = pd.Timestamp(start)
        end_ts = pd.Timestamp(end)

        accounts: List[Hashable] = []
        for generator in generators:
            if isinstance(generator, UnpaidRecurringTransaction):
                for account in generator.accounts:
                    if account not in accounts:
                        accounts.append(account)

        per_account: Dict[Hashable, List[Transaction]] = {account: [] for account in accounts}
        for adjustment in sorted(self.outstanding_transactions(generators), key=_by_date):
            per_account.setdefault(adjustment.account, []).append(adjustment)

        points = []
        for account, adjustments in per_account.items():
            for when, balance in _adjustment_points(adjustments, start_ts, end_ts):
                points.append((account, when, balance))

        series = build_series(points)
        logger.info(
            "Computed %d unpaid adjustment points for %d accounts as of %s",
            len(series), len(per_account), self.as_of,
        )
        return series


def _by_date(transaction: Transaction) -> date:
    return transaction.date


def _adjustment_points(
    adjustments: Iterable[Transaction],
    start_ts: pd.Timestamp,
    end_ts: pd.Timestamp,
) -> Iterator:
    # Adjustments before the range fold into the anchor at start.
    dates = [start_ts]
    balances = [Decimal(0)]
    running = Decimal(0)
    for adjustment in adjustments:
        when = pd.Timestamp(adjustment.date)
        if when > end_ts:
            break
        running += adjustment.amount
        dates.append(max(when, start_ts))
        balances.append(running)
    return iter(collapse_points(dates, balances))
