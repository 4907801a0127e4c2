"""Obligation variants that expand into transactions.

Each variant implements :class:`~cashflow_forecast.transactions.TransactionGenerator`.
When an obligation names both a source and a target account every occurrence
produces two mirrored legs, so the pair always nets to zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import (
    AbstractSet,
    Any,
    Dict,
    Hashable,
    Iterable,
    Iterator,
    NamedTuple,
    Optional,
)

from .recurrence import RecurrenceRule
from .transactions import (
    Transaction,
    TransactionGenerator,
    double_entry,
    to_date,
    to_decimal,
)


class OccurrenceKey(NamedTuple):
    """Identifies one occurrence of a recurring obligation."""

    identity: Hashable
    due_date: date


class InstanceStatus(Enum):
    PAID = 'paid'
    PENDING = 'pending'
    SKIPPED = 'skipped'


@dataclass(frozen=True)
class RecurringInstance:
    """What actually happened to one occurrence of a recurring rule."""

    due_date: date
    status: InstanceStatus
    expected_amount: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'due_date', to_date(self.due_date))
        object.__setattr__(self, 'status', InstanceStatus(self.status))
        if self.expected_amount is not None:
            object.__setattr__(self, 'expected_amount', to_decimal(self.expected_amount))
        if self.paid_amount is not None:
            object.__setattr__(self, 'paid_amount', to_decimal(self.paid_amount))


class OneOffTransaction(TransactionGenerator):
    def __init__(
        self,
        identity: Hashable,
        when: Any,
        amount: Any,
        target: Hashable,
        source: Optional[Hashable] = None,
    ) -> None:
        self.identity = identity
        self.date = to_date(when)
        self.amount = to_decimal(amount)
        self.target = target
        self.source = source

    def has_any_transaction(self, start: date, end: date) -> bool:
        return start <= self.date <= end

    def generate_transactions(self, start: date, end: date) -> Iterator[Transaction]:
        if self.has_any_transaction(start, end):
            yield from double_entry(self.date, self.amount, self.target, self.source)

    def __repr__(self) -> str:
        return f"OneOffTransaction({self.identity!r}, {self.date}, {self.amount})"


class ImportedTransaction(TransactionGenerator):
    """A bank record that already carries its own date and signed amount.

    Records reconciled against a one-off or recurring obligation are already
    represented by that obligation and produce nothing here.
    """

    def __init__(
        self,
        identity: Hashable,
        when: Any,
        amount: Any,
        account: Hashable,
        reconciled: bool = False,
    ) -> None:
        self.identity = identity
        self.date = to_date(when)
        self.amount = to_decimal(amount)
        self.account = account
        self.reconciled = reconciled

    def has_any_transaction(self, start: date, end: date) -> bool:
        return not self.reconciled and start <= self.date <= end

    def generate_transactions(self, start: date, end: date) -> Iterator[Transaction]:
        if self.has_any_transaction(start, end):
            yield Transaction(self.date, self.amount, self.account)

    def __repr__(self) -> str:
        return f"ImportedTransaction({self.identity!r}, {self.date}, {self.amount})"


class RecurringTransaction(TransactionGenerator):
    """A rule-driven obligation such as rent, a salary or a subscription.

    ``instances`` maps due dates to recorded outcomes: skipped occurrences
    disappear, paid ones use the paid amount, pending ones the expected
    amount.
    """

    def __init__(
        self,
        identity: Hashable,
        rule: RecurrenceRule,
        amount: Any,
        target: Hashable,
        source: Optional[Hashable] = None,
        instances: Optional[Iterable[RecurringInstance]] = None,
    ) -> None:
        self.identity = identity
        self.rule = rule
        self.amount = to_decimal(amount)
        self.target = target
        self.source = source
        self.instances: Dict[date, RecurringInstance] = {
            instance.due_date: instance for instance in (instances or ())
        }

    @property
    def accounts(self) -> tuple:
        return (self.target,) if self.source is None else (self.target, self.source)

    def key(self, due_date: date) -> OccurrenceKey:
        return OccurrenceKey(self.identity, due_date)

    def occurrence_dates(self, start: date, end: date) -> Iterator[date]:
        for due in self.rule.occurrences(start, end):
            instance = self.instances.get(due)
            if instance is not None and instance.status is InstanceStatus.SKIPPED:
                continue
            yield due

    def amount_for(self, due_date: date) -> Decimal:
        instance = self.instances.get(due_date)
        if instance is None:
            return self.amount
        if instance.status is InstanceStatus.PAID and instance.paid_amount is not None:
            return instance.paid_amount
        if instance.expected_amount is not None:
            return instance.expected_amount
        return self.amount

    def is_paid(self, due_date: date) -> bool:
        instance = self.instances.get(due_date)
        return instance is not None and instance.status is InstanceStatus.PAID

    def legs(self, due_date: date) -> Iterator[Transaction]:
        return double_entry(due_date, self.amount_for(due_date), self.target, self.source)

    def has_any_transaction(self, start: date, end: date) -> bool:
        return next(self.occurrence_dates(start, end), None) is not None

    def generate_transactions(self, start: date, end: date) -> Iterator[Transaction]:
        for due in self.occurrence_dates(start, end):
            yield from self.legs(due)

    def __repr__(self) -> str:
        return f"RecurringTransaction({self.identity!r}, {self.rule.period.value}, {self.amount})"


class UnpaidRecurringTransaction(TransactionGenerator):
    """A recurring obligation whose settlement status gates how it counts.

    Occurrences on or before ``settled_through`` are settled history (their
    bank records carry them) and are never produced.  Later occurrences come
    out of ``generate_transactions`` as ordinary events, and
    :meth:`outstanding_occurrences` lists those that are due but unsettled.
    """

    def __init__(self, recurring: RecurringTransaction, settled_through: Any = None) -> None:
        self.recurring = recurring
        self.settled_through = to_date(settled_through) if settled_through is not None else None

    @property
    def identity(self) -> Hashable:
        return self.recurring.identity

    @property
    def accounts(self) -> tuple:
        return self.recurring.accounts

    def _open_start(self, start: date) -> date:
        if self.settled_through is None:
            return start
        return max(start, self.settled_through + timedelta(days=1))

    def has_any_transaction(self, start: date, end: date) -> bool:
        start = self._open_start(start)
        return start <= end and self.recurring.has_any_transaction(start, end)

    def generate_transactions(self, start: date, end: date) -> Iterator[Transaction]:
        start = self._open_start(start)
        if start <= end:
            yield from self.recurring.generate_transactions(start, end)

    def outstanding_occurrences(
        self,
        as_of: date,
        settled_keys: AbstractSet[OccurrenceKey] = frozenset(),
    ) -> Iterator[date]:
        """Due dates up to ``as_of`` that are neither settled nor paid."""
        start = self._open_start(self.recurring.rule.anchor)
        if start > as_of:
            return
        for due in self.recurring.occurrence_dates(start, as_of):
            if self.recurring.is_paid(due) or self.recurring.key(due) in settled_keys:
                continue
            yield due

    def outstanding_transactions(
        self,
        as_of: date,
        settled_keys: AbstractSet[OccurrenceKey] = frozenset(),
    ) -> Iterator[Transaction]:
        for due in self.outstanding_occurrences(as_of, settled_keys):
            yield from self.recurring.legs(due)

    def __repr__(self) -> str:
        return f"UnpaidRecurringTransaction({self.recurring!r}, settled_through={self.settled_through})"
