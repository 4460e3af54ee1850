"""Billing cadence arithmetic.

Due dates are always derived from the anchor (the k-th period), never by
stepping from a previously clamped date. A schedule anchored on Jan 31 is
therefore due Jan 31, Feb 28 (or 29), Mar 31, Apr 30 and so on.
"""

import calendar
from datetime import date, timedelta
from enum import Enum


class Cadence(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


_DAY_STEPS = {Cadence.WEEKLY: 7, Cadence.BIWEEKLY: 14}
_MONTH_STEPS = {Cadence.MONTHLY: 1, Cadence.QUARTERLY: 3, Cadence.YEARLY: 12}


def add_months(anchor: date, months: int) -> date:
    """Shift ``anchor`` by whole months, clamping the day to the target month's length."""
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def nth_due_date(cadence: Cadence, anchor: date, n: int) -> date:
    """The n-th due date of a schedule (n=0 is the anchor itself)."""
    cadence = Cadence(cadence)
    if cadence in _DAY_STEPS:
        return anchor + timedelta(days=_DAY_STEPS[cadence] * n)
    return add_months(anchor, _MONTH_STEPS[cadence] * n)


def _first_index_on_or_after(cadence: Cadence, anchor: date, start: date) -> int:
    if start <= anchor:
        return 0
    if cadence in _DAY_STEPS:
        n = (start - anchor).days // _DAY_STEPS[cadence]
    else:
        months = (start.year - anchor.year) * 12 + (start.month - anchor.month)
        n = max(months // _MONTH_STEPS[cadence] - 1, 0)
    while nth_due_date(cadence, anchor, n) < start:
        n += 1
    return n


def due_dates(
    cadence: Cadence,
    anchor: date,
    window_start: date,
    window_end: date,
    until: date | None = None,
) -> list[date]:
    """Strictly increasing due dates in ``[window_start, window_end]``.

    Dates after ``until`` (a schedule's end date) are excluded.
    """
    cadence = Cadence(cadence)
    last = window_end if until is None else min(window_end, until)
    if last < window_start:
        return []

    result = []
    n = _first_index_on_or_after(cadence, anchor, window_start)
    current = nth_due_date(cadence, anchor, n)
    while current <= last:
        result.append(current)
        n += 1
        current = nth_due_date(cadence, anchor, n)
    return result


def next_due_after(cadence: Cadence, anchor: date, after: date) -> date:
    """First due date strictly later than ``after``."""
    cadence = Cadence(cadence)
    n = _first_index_on_or_after(cadence, anchor, after)
    current = nth_due_date(cadence, anchor, n)
    while current <= after:
        n += 1
        current = nth_due_date(cadence, anchor, n)
    return current
