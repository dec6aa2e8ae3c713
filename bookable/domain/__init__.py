"""
Domain layer - Pure business logic without external dependencies.
"""

from .booking_window import BookingWindow
from .business_hours import BusinessHoursCeiling
from .conflicts import has_any_conflict, overlaps
from .exceptions import BookableError, DataSourceError, NotFoundError
from .models import (
    Appointment,
    AppointmentStatus,
    Service,
    Slot,
    StaffMember,
    TimeOff,
    TimeRange,
    WorkingHours,
)
from .slot_generator import SlotGenerator

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "BookableError",
    "BookingWindow",
    "BusinessHoursCeiling",
    "DataSourceError",
    "NotFoundError",
    "Service",
    "Slot",
    "SlotGenerator",
    "StaffMember",
    "TimeOff",
    "TimeRange",
    "WorkingHours",
    "has_any_conflict",
    "overlaps",
]
