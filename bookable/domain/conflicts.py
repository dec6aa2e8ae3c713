"""
Interval conflict checks.

All intervals are half-open: ``[start, end)``. Two intervals that only touch
(one ends exactly when the other starts) do not conflict.
"""

from typing import TYPE_CHECKING, Iterable

from pendulum import DateTime

if TYPE_CHECKING:
    from .models import TimeRange


def overlaps(
    candidate_start: DateTime,
    candidate_end: DateTime,
    busy_start: DateTime,
    busy_end: DateTime,
) -> bool:
    """Return True if the candidate interval overlaps the busy interval."""
    return candidate_start < busy_end and candidate_end > busy_start


def has_any_conflict(candidate: "TimeRange", busy_ranges: Iterable["TimeRange"]) -> bool:
    """Return True if the candidate overlaps any of the busy ranges."""
    for busy in busy_ranges:
        if overlaps(candidate.start, candidate.end, busy.start, busy.end):
            return True
    return False
