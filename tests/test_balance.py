from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from cashflow_forecast.balance import BalanceCalculator, label_forecast
from cashflow_forecast.engine import series_by_account
from cashflow_forecast.errors import RangeError
from cashflow_forecast.generators import (
    ImportedTransaction,
    OneOffTransaction,
    RecurringTransaction,
    UnpaidRecurringTransaction,
)
from cashflow_forecast.recurrence import RecurrenceRule

JAN_1 = date(2024, 1, 1)
MAR_31 = date(2024, 3, 31)


def _points(series):
    return series_by_account(series)


def test_opening_balance_followed_by_debit():
    calculator = BalanceCalculator({'checking': '1000'})
    generators = [ImportedTransaction('t1', date(2024, 1, 15), '-200', 'checking')]
    series = calculator.compute(generators, JAN_1, date(2024, 1, 31))
    assert _points(series) == {
        'checking': [(JAN_1, Decimal('1000')), (date(2024, 1, 15), Decimal('800'))],
    }


def test_account_without_activity_is_a_single_flat_point():
    series = BalanceCalculator({'savings': 250}).compute([], JAN_1, MAR_31)
    assert _points(series) == {'savings': [(JAN_1, Decimal(250))]}


def test_same_day_activity_collapses_to_end_of_day_balance():
    generators = [
        ImportedTransaction('t1', date(2024, 1, 5), '-30', 'checking'),
        ImportedTransaction('t2', date(2024, 1, 5), '20', 'checking'),
        ImportedTransaction('t3', date(2024, 1, 6), '-5', 'checking'),
        ImportedTransaction('t4', date(2024, 1, 6), '5', 'checking'),
    ]
    series = BalanceCalculator({'checking': 100}).compute(generators, JAN_1, MAR_31)
    assert _points(series) == {
        'checking': [(JAN_1, Decimal(100)), (date(2024, 1, 5), Decimal(90))],
    }


def test_activity_on_start_date_folds_into_anchor():
    generators = [ImportedTransaction('t1', JAN_1, '5', 'checking')]
    series = BalanceCalculator({'checking': 100}).compute(generators, JAN_1, MAR_31)
    assert _points(series) == {'checking': [(JAN_1, Decimal(105))]}


def test_credits_only_never_decrease_balance():
    rule = RecurrenceRule(JAN_1, 'weekly')
    generators = [RecurringTransaction('salary', rule, '100', 'checking')]
    series = BalanceCalculator().compute(generators, JAN_1, MAR_31)
    balances = list(series['balance'])
    assert balances == sorted(balances)
    assert balances[0] == Decimal(100)
    assert len(balances) == 13


def test_transfer_moves_money_between_accounts():
    generators = [OneOffTransaction('move', date(2024, 1, 5), '100', 'savings', 'checking')]
    series = BalanceCalculator({'checking': 500}).compute(generators, JAN_1, MAR_31)
    assert _points(series) == {
        'checking': [(JAN_1, Decimal(500)), (date(2024, 1, 5), Decimal(400))],
        'savings': [(JAN_1, Decimal(0)), (date(2024, 1, 5), Decimal(100))],
    }


def test_checkpoint_replaces_that_days_activity_and_rebases():
    generators = [
        ImportedTransaction('t1', date(2024, 1, 5), '50', 'checking'),
        ImportedTransaction('t2', date(2024, 1, 10), '10', 'checking'),
        ImportedTransaction('t3', date(2024, 1, 12), '-20', 'checking'),
    ]
    checkpoints = [('checking', date(2024, 1, 10), '500')]
    series = BalanceCalculator({'checking': 100}, checkpoints).compute(generators, JAN_1, MAR_31)
    assert _points(series) == {
        'checking': [
            (JAN_1, Decimal(100)),
            (date(2024, 1, 5), Decimal(150)),
            (date(2024, 1, 10), Decimal(500)),
            (date(2024, 1, 12), Decimal(480)),
        ],
    }


def test_checkpoint_outside_range_is_ignored():
    checkpoints = [('checking', date(2023, 12, 1), '999')]
    series = BalanceCalculator({'checking': 10}, checkpoints).compute([], JAN_1, MAR_31)
    assert _points(series) == {'checking': [(JAN_1, Decimal(10))]}


def test_as_of_leaves_due_unpaid_occurrences_out_of_baseline():
    rule = RecurrenceRule(JAN_1, 'monthly')
    unpaid = UnpaidRecurringTransaction(RecurringTransaction('rent', rule, '-50', 'checking'))
    series = BalanceCalculator({'checking': 0}, as_of=date(2024, 1, 10)).compute([unpaid], JAN_1, MAR_31)
    assert _points(series) == {
        'checking': [
            (JAN_1, Decimal(0)),
            (date(2024, 2, 1), Decimal(-50)),
            (date(2024, 3, 1), Decimal(-100)),
        ],
    }


def test_without_as_of_unpaid_occurrences_count_in_full():
    rule = RecurrenceRule(JAN_1, 'monthly')
    unpaid = UnpaidRecurringTransaction(RecurringTransaction('rent', rule, '-50', 'checking'))
    series = BalanceCalculator({'checking': 0}).compute([unpaid], JAN_1, MAR_31)
    assert list(series['balance']) == [Decimal(-50), Decimal(-100), Decimal(-150)]


def test_inverted_range_raises():
    with pytest.raises(RangeError):
        BalanceCalculator().compute([], MAR_31, JAN_1)


def test_label_forecast_flags_points_after_as_of():
    generators = [
        ImportedTransaction('t1', date(2024, 1, 5), '1', 'checking'),
        OneOffTransaction('t2', date(2024, 2, 5), '1', 'checking'),
    ]
    series = BalanceCalculator().compute(generators, JAN_1, MAR_31)
    labelled = label_forecast(series, date(2024, 1, 31))
    assert list(labelled['forecast']) == [False, False, True]
    assert 'forecast' not in series.columns
    assert isinstance(labelled['date'].iloc[0], pd.Timestamp)


def test_unsorted_table_is_summed_in_date_order():
    table = pd.DataFrame({
        'date': pd.to_datetime(['2024-01-09', '2024-01-03']),
        'amount': pd.Series([Decimal(1), Decimal(2)], dtype=object),
        'account': pd.Series(['a', 'a'], dtype=object),
    })
    series = BalanceCalculator().compute_from_table(table, JAN_1, MAR_31)
    assert _points(series) == {
        'a': [(JAN_1, Decimal(0)), (date(2024, 1, 3), Decimal(2)), (date(2024, 1, 9), Decimal(3))],
    }


def test_as_of_split_keeps_generator_order_on_shared_dates(monkeypatch):
    rule = RecurrenceRule(date(2024, 2, 1), 'monthly')
    generators = [
        UnpaidRecurringTransaction(RecurringTransaction('rent', rule, '-50', 'checking')),
        OneOffTransaction('refund', date(2024, 2, 1), '20', 'checking'),
    ]
    captured = []

    def _capture(self, table, start, end):
        captured.append(table)
        return table

    monkeypatch.setattr(BalanceCalculator, 'compute_from_table', _capture)
    BalanceCalculator(as_of=date(2024, 1, 10)).compute(generators, JAN_1, MAR_31)

    assert list(captured[0]['amount']) == [Decimal('-50'), Decimal('20'), Decimal('-50')]
