"""
Discrete slot generation for a single staff member on a single day.

Pure domain logic: callers fetch working hours, bookings and time off up front
and pass them in together with the earliest bookable instant.
"""

from typing import List, Sequence

from pendulum import DateTime

from .conflicts import has_any_conflict
from .models import Slot, TimeRange

DEFAULT_SLOT_INTERVAL_MINUTES = 30


class SlotGenerator:
    """
    Produces the ordered candidate start times inside a working window.

    Algorithm:
    1. Start at the window's start time
    2. Stop as soon as ``current + duration`` would pass the window end
    3. Mark the slot unavailable if it starts before ``not_before`` or
       overlaps an appointment or a time-off period
    4. Advance by the slot interval
    """

    def __init__(self, slot_interval_minutes: int = DEFAULT_SLOT_INTERVAL_MINUTES):
        if slot_interval_minutes <= 0:
            raise ValueError(
                f"slot_interval_minutes must be greater than zero, got {slot_interval_minutes}"
            )
        self.slot_interval_minutes = slot_interval_minutes

    def generate(
        self,
        window: TimeRange,
        duration_minutes: int,
        appointments: Sequence[TimeRange],
        time_off: Sequence[TimeRange],
        not_before: DateTime,
    ) -> List[Slot]:
        """
        Generate every slot of the window with its availability flag.

        Args:
            window: Working-hours window anchored to the target date
            duration_minutes: Length of the service being booked
            appointments: Busy appointment intervals for the staff member
            time_off: Partial time-off intervals anchored to the same date
            not_before: Earliest instant a slot may start (now plus lead time)

        Returns:
            Slots in chronological order; empty if the service does not fit
        """
        if duration_minutes <= 0:
            raise ValueError(f"duration_minutes must be greater than zero, got {duration_minutes}")

        slots: List[Slot] = []
        current = window.start

        while True:
            slot_end = current.add(minutes=duration_minutes)
            if slot_end > window.end:
                break

            candidate = TimeRange(start=current, end=slot_end)
            slots.append(
                Slot(
                    time=current.format("HH:mm"),
                    available=self.is_slot_available(
                        candidate, appointments, time_off, not_before
                    ),
                )
            )

            current = current.add(minutes=self.slot_interval_minutes)

        return slots

    @staticmethod
    def is_slot_available(
        candidate: TimeRange,
        appointments: Sequence[TimeRange],
        time_off: Sequence[TimeRange],
        not_before: DateTime,
    ) -> bool:
        """Check a single candidate against the lower bound and busy intervals."""
        if candidate.start < not_before:
            return False

        if has_any_conflict(candidate, appointments):
            return False

        if has_any_conflict(candidate, time_off):
            return False

        return True
