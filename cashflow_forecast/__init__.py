"""Top-level package for the cash-flow forecast engine.

Obligations (one-off entries, recurring rules, bank imports, unpaid
recurring items) expand into dated transactions, which are tabulated,
folded into per-account running balances and merged across calculation
strategies into one forecast.  The primary modules are:

* ``generators`` - the obligation variants and their transaction expansion
* ``tabulate`` - flattening generator output into a columnar table
* ``balance`` / ``unpaid`` / ``merge`` - the calculators
* ``engine`` - the preconfigured pipeline used by the host application
"""

from .balance import BalanceCalculator, label_forecast
from .engine import default_compute, run_forecast, series_by_account
from .errors import ConfigurationError, ForecastError, RangeError
from .generators import (
    ImportedTransaction,
    InstanceStatus,
    OccurrenceKey,
    OneOffTransaction,
    RecurringInstance,
    RecurringTransaction,
    UnpaidRecurringTransaction,
)
from .merge import MergeCalculator, MergeMethod, merge
from .recurrence import RecurrencePeriod, RecurrenceRule
from .tabulate import tabulate, tabulate_transactions
from .transactions import Transaction, TransactionGenerator
from .unpaid import SettlementRecord, UnpaidRecurringCalculator, resolve_settlements

__all__ = [
    "BalanceCalculator",
    "ConfigurationError",
    "ForecastError",
    "ImportedTransaction",
    "InstanceStatus",
    "MergeCalculator",
    "MergeMethod",
    "OccurrenceKey",
    "OneOffTransaction",
    "RangeError",
    "RecurrencePeriod",
    "RecurrenceRule",
    "RecurringInstance",
    "RecurringTransaction",
    "SettlementRecord",
    "Transaction",
    "TransactionGenerator",
    "UnpaidRecurringCalculator",
    "UnpaidRecurringTransaction",
    "default_compute",
    "label_forecast",
    "merge",
    "resolve_settlements",
    "run_forecast",
    "series_by_account",
    "tabulate",
    "tabulate_transactions",
]
