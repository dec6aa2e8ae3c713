"""
Business-wide working hours acting as a ceiling over staff hours.

The ceiling only applies when the tenant has configured business hours at all
(at least one business-wide row, active or not). Without any such row staff
hours are used unconstrained.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from pendulum import DateTime

from .models import WorkingHours, day_of_week


@dataclass(frozen=True)
class BusinessHoursCeiling:
    """Active business-wide hours keyed by weekday (0=Sunday)."""
    configured: bool
    by_day: Dict[int, WorkingHours] = field(default_factory=dict)

    @classmethod
    def from_rows(cls, configured: bool, rows: Iterable[WorkingHours]) -> "BusinessHoursCeiling":
        """Build the ceiling from active business-wide rows. First row per weekday wins."""
        if not configured:
            return cls(configured=False)

        by_day: Dict[int, WorkingHours] = {}
        for row in rows:
            if not row.is_business_wide or not row.is_active:
                continue
            by_day.setdefault(row.day_of_week, row)

        return cls(configured=True, by_day=by_day)

    @classmethod
    def unconstrained(cls) -> "BusinessHoursCeiling":
        return cls(configured=False)

    def for_day(self, weekday: int) -> Optional[WorkingHours]:
        return self.by_day.get(weekday)

    def allows_day(self, weekday: int) -> bool:
        """A weekday is open unless business hours are configured and absent for it."""
        if not self.configured:
            return True
        return weekday in self.by_day

    def constrain(
        self,
        staff_hours: Optional[WorkingHours],
        weekday: int,
    ) -> Optional[WorkingHours]:
        """
        Intersect staff hours with the business window for the weekday.

        Returns:
            The (possibly narrowed) staff hours, or None when the staff member
            has no bookable window that day
        """
        if staff_hours is None:
            return None

        if not self.configured:
            return staff_hours

        business_hours = self.for_day(weekday)
        if business_hours is None:
            return None

        start_time = max(staff_hours.start_time, business_hours.start_time)
        end_time = min(staff_hours.end_time, business_hours.end_time)

        if start_time >= end_time:
            return None

        return staff_hours.with_bounds(start_time, end_time)

    def contains_interval(self, starts_at: DateTime, ends_at: DateTime) -> bool:
        """
        Check whether an interval lies within business hours on its start date.

        Both instants are expected in the tenant timezone. Only the wall-clock
        times are compared against the start weekday's hours. Used to validate
        a requested booking against opening hours.
        """
        if not self.configured:
            return True

        business_hours = self.for_day(day_of_week(starts_at.date()))
        if business_hours is None:
            return False

        return (
            starts_at.time().replace(second=0, microsecond=0) >= business_hours.start_time
            and ends_at.time().replace(second=0, microsecond=0) <= business_hours.end_time
        )
