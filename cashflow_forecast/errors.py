"""Exception types raised by the forecast engine.

Only malformed configuration and invalid ranges are errors.  A generator or
account without applicable events is not: it degrades to an empty or flat
series.
"""

from __future__ import annotations


class ForecastError(Exception):
    """Base class for every error raised by :mod:`cashflow_forecast`."""


class ConfigurationError(ForecastError, ValueError):
    """Unknown merge method, degenerate recurrence rule or unknown record kind."""


class RangeError(ForecastError, ValueError):
    """A query range whose start lies after its end."""

    def __init__(self, start, end):
        super().__init__(f"Invalid range: start {start} is after end {end}")
        self.start = start
        self.end = end
