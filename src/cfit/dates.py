# Requires Python 3.10+
# Uses native type hints: list[x], tuple[x, y], X | None (PEP 585, PEP 604)
from __future__ import annotations

import calendar
import datetime as dt

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

from .errors import InvalidInput

__version__ = "0.1.0"

DATE_FMT = "%Y-%m-%d"
COMPACT_FMT = "%Y%m%d"


# =============================================================================
# Date Conversion
# =============================================================================

def to_date(value: object) -> dt.date:
    """
    Normalise a date-like value to ``datetime.date``.

    Accepts ``date``, ``datetime``, ``pandas.Timestamp``, ``numpy.datetime64``
    and strings in ``YYYY-MM-DD`` or ``YYYYMMDD`` format. Missing values
    (None, NaN, NaT) are rejected.
    """
    if value is None or (pd.api.types.is_scalar(value) and pd.isna(value)):
        raise InvalidInput(f"Missing date: {value!r}")
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, np.datetime64):
        return pd.Timestamp(value).date()
    if isinstance(value, str):
        for fmt in (DATE_FMT, COMPACT_FMT):
            try:
                return dt.datetime.strptime(value.strip(), fmt).date()
            except ValueError:
                continue
        raise InvalidInput(f"Unsupported date string format: {value!r}")
    raise InvalidInput(f"Unsupported type for date: {type(value).__name__}")


def add_months(start: dt.date, months: int) -> dt.date:
    """Add calendar months, clamping the day to the end of shorter months."""
    return to_date(start) + relativedelta(months=months)


def monthly_schedule(start: dt.date, periods: int) -> list[dt.date]:
    """Payment dates ``start + 1 .. start + periods`` months."""
    start = to_date(start)
    return [start + relativedelta(months=k) for k in range(1, periods + 1)]


# =============================================================================
# Actual/Actual Day Count
# =============================================================================

def _days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


def year_fraction(start: dt.date, end: dt.date) -> float:
    """
    Actual/actual (ISDA) year fraction between two dates.

    The span is split at calendar-year boundaries; the days falling in each
    year are divided by that year's length (365 or 366) and summed:

        yf = sum_y  days_in_span_within(y) / days_in_year(y)

    Returns a negative fraction when ``end`` precedes ``start``.
    """
    start = to_date(start)
    end = to_date(end)
    if end < start:
        return -year_fraction(end, start)
    if start.year == end.year:
        return (end - start).days / _days_in_year(start.year)

    # first partial year, whole years in between, last partial year
    fraction = (dt.date(start.year + 1, 1, 1) - start).days / _days_in_year(start.year)
    fraction += end.year - start.year - 1
    fraction += (end - dt.date(end.year, 1, 1)).days / _days_in_year(end.year)
    return fraction


def year_fractions(start: dt.date, dates: list[dt.date]) -> np.ndarray:
    """Vectorised ``year_fraction`` from ``start`` to each of ``dates``."""
    start = to_date(start)
    return np.array([year_fraction(start, d) for d in dates], dtype=float)
