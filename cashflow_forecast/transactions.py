"""Dated cash-flow events and the capability that produces them.

A :class:`Transaction` is an ephemeral projection: obligations (one-off
entries, recurring rules, bank imports) own the durable state and expand it
into transactions for whatever range a caller asks about.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Hashable, Iterator, Optional

import pandas as pd

from .errors import RangeError


def to_date(value: Any) -> date:
    """Coerce ISO strings, datetimes and timestamps to a plain ``date``."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise TypeError(f"Cannot interpret {value!r} as a date")


def to_decimal(value: Any) -> Decimal:
    """Coerce a monetary value to ``Decimal`` without binary-float rounding."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def validate_range(start: date, end: date) -> None:
    if start > end:
        raise RangeError(start, end)


@dataclass(frozen=True)
class Transaction:
    """A signed movement against one account; positive credits, negative debits."""

    date: date
    amount: Decimal
    account: Hashable

    def __post_init__(self) -> None:
        object.__setattr__(self, 'date', to_date(self.date))
        object.__setattr__(self, 'amount', to_decimal(self.amount))


def double_entry(
    when: date,
    amount: Decimal,
    target: Hashable,
    source: Optional[Hashable] = None,
) -> Iterator[Transaction]:
    """Yield the target leg and, when a source exists, its mirrored debit."""
    yield Transaction(when, amount, target)
    if source is not None:
        yield Transaction(when, -amount, source)


class TransactionGenerator(ABC):
    """Anything that can expand itself into transactions for a date range.

    ``generate_transactions`` must be deterministic and side-effect free and
    must return a fresh iterator on every call.  Generators never raise on
    data: a rule that cannot fire simply yields nothing.
    """

    identity: Hashable = None

    def has_any_transaction(self, start: date, end: date) -> bool:
        return next(iter(self.generate_transactions(start, end)), None) is not None

    @abstractmethod
    def generate_transactions(self, start: date, end: date) -> Iterator[Transaction]:
        raise NotImplementedError
