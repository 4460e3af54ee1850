"""Capacity and slot-overlap rules."""

from collections import Counter
from collections.abc import Hashable, Iterable
from typing import Any, TypeVar

from educrm.exceptions import ValidationException

T = TypeVar("T")


def schedule_overlaps(a_start: Any, a_end: Any, b_start: Any, b_end: Any) -> bool:
    """Check whether half-open intervals ``[a_start, a_end)`` and ``[b_start, b_end)`` overlap.

    Intervals that only touch (one ends exactly where the other starts) do not
    overlap. Works for any mutually comparable values (times, datetimes).
    """
    return a_start < b_end and b_start < a_end


def find_overlap(start: Any, end: Any, existing: Iterable[tuple[T, Any, Any]]) -> T | None:
    """Return the key of the first ``(key, start, end)`` slot overlapping ``[start, end)``."""
    for key, other_start, other_end in existing:
        if schedule_overlaps(start, end, other_start, other_end):
            return key
    return None


def validate_interval(start: Any, end: Any, field: str = "end") -> None:
    """Reject empty or inverted intervals."""
    if not start < end:
        raise ValidationException([{"field": field, "message": "must be later than the start"}])


def capacity_ok(enrollment_count: int, capacity: int, delta: int = 1) -> bool:
    """Check that adding ``delta`` seats keeps a group within capacity."""
    return delta >= 0 and enrollment_count + delta <= capacity


def find_duplicates(values: Iterable[Hashable]) -> list[Hashable]:
    """Return values that occur more than once, in first-seen order."""
    return [value for value, count in Counter(values).items() if count > 1]
