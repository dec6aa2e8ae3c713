"""
Domain models for booking availability.

Records are read-only snapshots handed over by the data-access layer. Nothing
in the availability engine creates or mutates them.
"""

from dataclasses import dataclass, field, replace
from datetime import date, time
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

import pendulum
from pendulum import DateTime

from .conflicts import overlaps


def day_of_week(day: date) -> int:
    """Return the stored weekday number of a date (0=Sunday, 6=Saturday)."""
    return day.isoweekday() % 7


def anchor(day: date, wall_clock: time, timezone: str) -> DateTime:
    """Pin a wall-clock time to a calendar date in the given timezone."""
    return pendulum.datetime(
        day.year,
        day.month,
        day.day,
        wall_clock.hour,
        wall_clock.minute,
        tz=timezone,
    )


@dataclass(frozen=True)
class TimeRange:
    """A half-open interval between two tz-aware instants. Start precedes end."""
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return overlaps(self.start, self.end, other.start, other.end)


@dataclass(frozen=True)
class WorkingHours:
    """
    A recurring weekly open window.

    ``staff_id`` is None for business-wide hours, which act as a ceiling over
    individual staff hours.
    """
    tenant_id: int
    day_of_week: int  # 0=Sunday, 6=Saturday
    start_time: time
    end_time: time
    staff_id: Optional[int] = None
    is_active: bool = True

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")

    @property
    def is_business_wide(self) -> bool:
        return self.staff_id is None

    def with_bounds(self, start_time: time, end_time: time) -> "WorkingHours":
        """Return a copy of this record with different opening bounds."""
        return replace(self, start_time=start_time, end_time=end_time)

    def window_for(self, day: date, timezone: str) -> TimeRange | None:
        """
        Anchor the weekly window to a concrete date.
        Returns None if the stored bounds do not form a valid window.
        """
        if self.start_time >= self.end_time:
            return None
        return TimeRange(
            start=anchor(day, self.start_time, timezone),
            end=anchor(day, self.end_time, timezone),
        )


@dataclass(frozen=True)
class TimeOff:
    """
    An exception blocking part or all of a specific date.

    ``staff_id`` None means the time off applies to every staff member.
    Both times None means the whole day is blocked.
    """
    tenant_id: int
    date: date
    staff_id: Optional[int] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @property
    def is_all_day(self) -> bool:
        return self.start_time is None and self.end_time is None

    def applies_to(self, staff_id: int) -> bool:
        """Check whether this time off blocks the given staff member."""
        if self.staff_id is None:
            return True
        return self.staff_id == staff_id

    def time_range(self, timezone: str) -> TimeRange | None:
        """Anchor a partial time off to its date. None for all-day or empty entries."""
        if self.start_time is None or self.end_time is None:
            return None
        if self.start_time >= self.end_time:
            return None
        return TimeRange(
            start=anchor(self.date, self.start_time, timezone),
            end=anchor(self.date, self.end_time, timezone),
        )


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def blocks_time(self) -> bool:
        """Cancelled and no-show appointments free their time again."""
        return self not in (AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW)


@dataclass(frozen=True)
class Appointment:
    """An existing booking for one staff member."""
    tenant_id: int
    staff_id: int
    starts_at: DateTime
    ends_at: DateTime
    status: AppointmentStatus = AppointmentStatus.CONFIRMED

    def time_range(self) -> TimeRange:
        return TimeRange(start=self.starts_at, end=self.ends_at)


@dataclass(frozen=True)
class Service:
    """A bookable service offered by a tenant."""
    id: int
    tenant_id: int
    duration_minutes: int
    name: str = ""
    is_bookable_online: bool = True

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValueError(
                f"Service duration must be greater than zero, got {self.duration_minutes}"
            )


@dataclass(frozen=True)
class StaffMember:
    """A staff profile and the services it is linked to."""
    id: int
    tenant_id: int
    display_name: str = ""
    is_bookable: bool = True
    sort_order: int = 0
    service_ids: FrozenSet[int] = field(default_factory=frozenset)

    def can_perform(self, service_id: int) -> bool:
        """Bookable and linked to the service."""
        return self.is_bookable and service_id in self.service_ids


@dataclass(frozen=True)
class Slot:
    """
    A candidate appointment start time.

    ``staff_id`` is only set by the any-staff aggregation.
    """
    time: str  # HH:MM, 24-hour, zero-padded
    available: bool
    staff_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"time": self.time, "available": self.available}
        if self.staff_id is not None:
            data["staff_id"] = self.staff_id
        return data
