"""
Booking horizon and lead-time arithmetic.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

import pendulum
from pendulum import Date, DateTime


@dataclass(frozen=True)
class BookingWindow:
    """
    The inclusive range of dates that may be booked: today through
    ``today + max_days_in_advance`` in the tenant timezone.
    """
    first_date: Date
    last_date: Date

    @classmethod
    def from_now(cls, now: DateTime, timezone: str, max_days_in_advance: int) -> "BookingWindow":
        today = now.in_timezone(timezone).date()
        return cls(first_date=today, last_date=today.add(days=max_days_in_advance))

    def contains(self, day: date) -> bool:
        return self.first_date <= day <= self.last_date

    def clip(self, start: date, end: date) -> Optional[Tuple[Date, Date]]:
        """
        Clip an inclusive date range to the window.
        Returns None if nothing of the range is bookable.
        """
        clipped_start = max(pendulum.date(start.year, start.month, start.day), self.first_date)
        clipped_end = min(pendulum.date(end.year, end.month, end.day), self.last_date)

        if clipped_start > clipped_end:
            return None

        return clipped_start, clipped_end


def earliest_start(now: DateTime, lead_time_hours: int) -> DateTime:
    """The first instant a slot may start given the tenant's minimum notice."""
    return now.add(hours=lead_time_hours)


def earliest_start_on(
    day: date,
    now: DateTime,
    lead_time_hours: int,
    timezone: str,
) -> DateTime:
    """
    Lower bound for slot starts on a specific date: the later of
    ``now + lead time`` and the start of that date.
    """
    minimum = earliest_start(now, lead_time_hours)
    day_start = pendulum.datetime(day.year, day.month, day.day, tz=timezone)

    if minimum > day_start:
        return minimum

    return day_start


def coerce_date(value: "date | str") -> Date:
    """Accept a date object or a ``YYYY-MM-DD`` string."""
    if isinstance(value, str):
        try:
            return pendulum.from_format(value, "YYYY-MM-DD").date()
        except ValueError as exc:
            raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc
    return pendulum.date(value.year, value.month, value.day)
