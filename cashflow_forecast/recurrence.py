"""Recurrence rules and their expansion into occurrence dates.

Expansion never walks forward from the anchor: the first occurrence on or
after the requested start is computed directly, so a rule anchored decades
ago costs the same as one anchored yesterday.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Iterator, Optional

import numpy as np

from .errors import ConfigurationError
from .transactions import to_date


class RecurrencePeriod(Enum):
    DAILY = 'daily'
    WEEKLY = 'weekly'
    WORKDAY = 'workday'
    MONTHLY = 'monthly'
    QUARTERLY = 'quarterly'
    HALF_YEARLY = 'half_yearly'
    YEARLY = 'yearly'

    @classmethod
    def parse(cls, value: Any) -> 'RecurrencePeriod':
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace('-', '_')
            for member in cls:
                if member.value == key:
                    return member
        raise ConfigurationError(f"Unknown recurrence period '{value}'")


DAY_STEPS = {
    RecurrencePeriod.DAILY: 1,
    RecurrencePeriod.WEEKLY: 7,
}
MONTH_STEPS = {
    RecurrencePeriod.MONTHLY: 1,
    RecurrencePeriod.QUARTERLY: 3,
    RecurrencePeriod.HALF_YEARLY: 6,
    RecurrencePeriod.YEARLY: 12,
}


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    return date(year, month, min(d.day, days_in_month(year, month)))


@dataclass(frozen=True)
class RecurrenceRule:
    """Every ``interval`` periods starting at ``anchor``, up to ``end_date`` inclusive."""

    anchor: date
    period: RecurrencePeriod
    interval: int = 1
    end_date: Optional[date] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'anchor', to_date(self.anchor))
        object.__setattr__(self, 'period', RecurrencePeriod.parse(self.period))
        if self.end_date is not None:
            object.__setattr__(self, 'end_date', to_date(self.end_date))
        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise ConfigurationError(f"Recurrence interval must be an integer, got {self.interval!r}")
        if self.interval < 1:
            raise ConfigurationError(f"Recurrence interval must be positive, got {self.interval}")
        if self.end_date is not None and self.end_date < self.anchor:
            raise ConfigurationError(
                f"Recurrence end date {self.end_date} precedes its anchor {self.anchor}"
            )

    def occurrences(self, start: date, end: date) -> Iterator[date]:
        """Yield occurrence dates inside ``[start, end]`` in ascending order."""
        first = max(start, self.anchor)
        last = end if self.end_date is None else min(end, self.end_date)
        if first > last:
            return
        if self.period in DAY_STEPS:
            yield from self._day_occurrences(first, last, DAY_STEPS[self.period] * self.interval)
        elif self.period in MONTH_STEPS:
            yield from self._month_occurrences(first, last, MONTH_STEPS[self.period] * self.interval)
        else:
            yield from self._workday_occurrences(first, last)

    def has_occurrence(self, start: date, end: date) -> bool:
        return next(self.occurrences(start, end), None) is not None

    def _day_occurrences(self, first: date, last: date, step: int) -> Iterator[date]:
        k = -(-(first - self.anchor).days // step)
        current = self.anchor + timedelta(days=k * step)
        delta = timedelta(days=step)
        while current <= last:
            yield current
            current += delta

    def _month_occurrences(self, first: date, last: date, step: int) -> Iterator[date]:
        # Always offset from the anchor so clamped days (31st -> 28th) do not drift.
        months_between = (first.year - self.anchor.year) * 12 + first.month - self.anchor.month
        k = max(0, months_between // step)
        current = add_months(self.anchor, k * step)
        while current < first:
            k += 1
            current = add_months(self.anchor, k * step)
        while current <= last:
            yield current
            k += 1
            current = add_months(self.anchor, k * step)

    def _workday_occurrences(self, first: date, last: date) -> Iterator[date]:
        anchor = np.busday_offset(np.datetime64(self.anchor, 'D'), 0, roll='forward')
        offset = int(np.busday_count(anchor, np.datetime64(first, 'D')))
        k = max(0, -(-offset // self.interval))
        current = np.busday_offset(anchor, k * self.interval, roll='forward')
        stop = np.datetime64(last, 'D')
        while current <= stop:
            yield current.item()
            current = np.busday_offset(current, self.interval, roll='forward')
