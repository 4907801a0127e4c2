"""Build generators from deserialized obligation records.

The persistence layer hands over plain mappings, one per obligation, with a
``kind`` key selecting the variant::

    {"kind": "recurring", "id": 7, "start_date": "2024-01-01",
     "period": "monthly", "amount": "1500.00", "target": "landlord",
     "source": "checking"}

Dates are ISO strings or ``date`` objects; amounts are strings, ints or
``Decimal``.
"""

from __future__ import annotations

import json
from decimal import InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from .balance import Checkpoint
from .errors import ConfigurationError
from .generators import (
    ImportedTransaction,
    OccurrenceKey,
    OneOffTransaction,
    RecurringInstance,
    RecurringTransaction,
    UnpaidRecurringTransaction,
)
from .recurrence import RecurrenceRule
from .transactions import TransactionGenerator, to_date, to_decimal
from .unpaid import SettlementRecord


_TRUE_STRINGS = {'true', 'yes', '1'}
_FALSE_STRINGS = {'false', 'no', '0'}


def _parse_flag(value: Any, field: str) -> bool:
    """Accept JSON booleans and their common string spellings; reject anything else."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ConfigurationError(f"Field '{field}' must be a boolean, got {value!r}")

def _one_off(record: Mapping[str, Any]) -> TransactionGenerator:
    return OneOffTransaction(
        record['id'], record['date'], record['amount'], record['target'], record.get('source'),
    )


def _imported(record: Mapping[str, Any]) -> TransactionGenerator:
    return ImportedTransaction(
        record['id'], record['date'], record['amount'], record['account'],
        reconciled=_parse_flag(record.get('reconciled', False), 'reconciled'),
    )


def _recurring(record: Mapping[str, Any]) -> RecurringTransaction:
    rule = RecurrenceRule(
        anchor=record['start_date'],
        period=record['period'],
        interval=record.get('interval', 1),
        end_date=record.get('end_date'),
    )
    instances = [
        RecurringInstance(
            due_date=item['due_date'],
            status=item['status'],
            expected_amount=item.get('expected_amount'),
            paid_amount=item.get('paid_amount'),
        )
        for item in record.get('instances') or []
    ]
    return RecurringTransaction(
        record['id'], rule, record['amount'], record['target'], record.get('source'), instances,
    )


def _unpaid_recurring(record: Mapping[str, Any]) -> TransactionGenerator:
    return UnpaidRecurringTransaction(_recurring(record), record.get('settled_through'))


_BUILDERS = {
    'one_off': _one_off,
    'imported': _imported,
    'recurring': _recurring,
    'unpaid_recurring': _unpaid_recurring,
}


def generator_from_record(record: Mapping[str, Any]) -> TransactionGenerator:
    kind = record.get('kind')
    builder = _BUILDERS.get(kind)
    if builder is None:
        raise ConfigurationError(f"Unknown obligation kind '{kind}'")
    try:
        return builder(record)
    except KeyError as exc:
        raise ConfigurationError(f"Obligation record {record.get('id')!r} is missing field {exc}") from exc
    except (ValueError, TypeError, InvalidOperation) as exc:
        if isinstance(exc, ConfigurationError):
            raise
        raise ConfigurationError(f"Obligation record {record.get('id')!r} is malformed: {exc}") from exc


def generators_from_records(records: Iterable[Mapping[str, Any]]) -> List[TransactionGenerator]:
    return [generator_from_record(record) for record in records]


def load_records(path: Path) -> Dict[str, Any]:
    """Read a JSON document with ``obligations`` and optional ``opening_balances``."""
    with Path(path).open('r', encoding='utf-8') as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return {
        'obligations': data.get('obligations') or [],
        'opening_balances': data.get('opening_balances') or {},
        'checkpoints': data.get('checkpoints') or [],
        'settlements': data.get('settlements') or [],
    }


def settlements_from_records(records: Iterable[Mapping[str, Any]]) -> List[SettlementRecord]:
    """``{"id": ..., "due_date": ..., "settled": true}`` entries, in recorded order."""
    try:
        return [
            SettlementRecord(
                OccurrenceKey(item['id'], to_date(item['due_date'])),
                _parse_flag(item.get('settled', True), 'settled'),
            )
            for item in records
        ]
    except (KeyError, ValueError, TypeError) as exc:
        raise ConfigurationError(f"Malformed settlement record: {exc}") from exc


def checkpoints_from_records(records: Iterable[Mapping[str, Any]]) -> List[Checkpoint]:
    try:
        return [(item['account'], to_date(item['date']), to_decimal(item['balance'])) for item in records]
    except (KeyError, ValueError, TypeError, InvalidOperation) as exc:
        raise ConfigurationError(f"Malformed checkpoint record: {exc}") from exc
