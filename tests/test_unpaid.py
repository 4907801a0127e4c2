from datetime import date
from decimal import Decimal

from cashflow_forecast.engine import series_by_account
from cashflow_forecast.generators import (
    OccurrenceKey,
    OneOffTransaction,
    RecurringInstance,
    RecurringTransaction,
    UnpaidRecurringTransaction,
)
from cashflow_forecast.recurrence import RecurrenceRule
from cashflow_forecast.transactions import Transaction
from cashflow_forecast.unpaid import SettlementRecord, UnpaidRecurringCalculator, resolve_settlements

JAN_1 = date(2024, 1, 1)


def _unpaid_rent(amount='-50', settled_through=None, instances=None, source=None):
    rule = RecurrenceRule(JAN_1, 'monthly')
    recurring = RecurringTransaction('rent', rule, amount, 'checking', source, instances)
    return UnpaidRecurringTransaction(recurring, settled_through)


def test_due_unsettled_occurrence_becomes_an_adjustment():
    calculator = UnpaidRecurringCalculator(date(2024, 1, 10))
    assert calculator.outstanding_transactions([_unpaid_rent()]) == [
        Transaction(JAN_1, Decimal('-50'), 'checking'),
    ]


def test_settled_occurrence_is_not_adjusted():
    calculator = UnpaidRecurringCalculator(date(2024, 1, 10), [OccurrenceKey('rent', JAN_1)])
    assert calculator.outstanding_transactions([_unpaid_rent()]) == []


def test_future_occurrences_are_never_outstanding():
    calculator = UnpaidRecurringCalculator(date(2024, 1, 31))
    dates = [t.date for t in calculator.outstanding_transactions([_unpaid_rent()])]
    assert dates == [JAN_1]


def test_settled_through_and_paid_instances_are_skipped():
    paid = RecurringInstance(date(2024, 3, 1), 'paid', paid_amount='-50')
    generator = _unpaid_rent(settled_through=date(2024, 1, 31), instances=[paid])
    calculator = UnpaidRecurringCalculator(date(2024, 4, 15))
    dates = [t.date for t in calculator.outstanding_transactions([generator])]
    assert dates == [date(2024, 2, 1), date(2024, 4, 1)]


def test_last_settlement_record_wins():
    key = OccurrenceKey('rent', JAN_1)
    unsettled_again = [SettlementRecord(key, True), SettlementRecord(key, False)]
    settled_again = [SettlementRecord(key, False), SettlementRecord(key, True)]

    assert resolve_settlements(unsettled_again) == frozenset()
    assert resolve_settlements(settled_again) == frozenset({key})

    calculator = UnpaidRecurringCalculator(date(2024, 1, 10), unsettled_again)
    assert len(calculator.outstanding_transactions([_unpaid_rent()])) == 1


def test_settlement_keys_accept_iso_dates():
    assert resolve_settlements([('rent', '2024-01-01')]) == frozenset({OccurrenceKey('rent', JAN_1)})


def test_adjustment_series_accumulates_from_zero():
    calculator = UnpaidRecurringCalculator(date(2024, 2, 10))
    series = calculator.compute([_unpaid_rent()], JAN_1, date(2024, 3, 31))
    assert series_by_account(series) == {
        'checking': [(JAN_1, Decimal('-50')), (date(2024, 2, 1), Decimal('-100'))],
    }


def test_adjustments_before_start_fold_into_anchor():
    calculator = UnpaidRecurringCalculator(date(2024, 2, 10))
    series = calculator.compute([_unpaid_rent()], date(2024, 2, 15), date(2024, 3, 31))
    assert series_by_account(series) == {'checking': [(date(2024, 2, 15), Decimal('-100'))]}


def test_fully_settled_account_stays_anchored_at_zero():
    calculator = UnpaidRecurringCalculator(date(2024, 1, 10), [OccurrenceKey('rent', JAN_1)])
    series = calculator.compute([_unpaid_rent()], JAN_1, date(2024, 3, 31))
    assert series_by_account(series) == {'checking': [(JAN_1, Decimal(0))]}


def test_double_entry_adjustment_touches_both_accounts():
    rule = RecurrenceRule(JAN_1, 'monthly')
    recurring = RecurringTransaction('rent', rule, '500', 'landlord', 'checking')
    calculator = UnpaidRecurringCalculator(date(2024, 1, 10))
    series = calculator.compute([UnpaidRecurringTransaction(recurring)], JAN_1, date(2024, 1, 31))
    assert series_by_account(series) == {
        'landlord': [(JAN_1, Decimal('500'))],
        'checking': [(JAN_1, Decimal('-500'))],
    }


def test_ordinary_generators_are_ignored():
    calculator = UnpaidRecurringCalculator(date(2024, 1, 10))
    generators = [OneOffTransaction('gift', JAN_1, '10', 'wallet')]
    assert calculator.compute(generators, JAN_1, date(2024, 1, 31)).empty
