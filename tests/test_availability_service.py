"""
Tests for the AvailabilityService orchestration layer.
"""

import asyncio
from datetime import time

import pendulum
import pytest

from bookable.adapters.memory_repository import InMemoryBookingRepository
from bookable.config import TenantPolicy
from bookable.domain.exceptions import NotFoundError
from bookable.domain.models import (
    Appointment,
    AppointmentStatus,
    Service,
    StaffMember,
    TimeOff,
    WorkingHours,
)
from bookable.services.availability import AvailabilityService

TZ = "Europe/Berlin"
MONDAY = 1
TARGET = "2024-11-25"  # a Monday


def _at(hhmm: str, day: str = TARGET):
    return pendulum.parse(f"{day} {hhmm}", tz=TZ)


def _hours(staff_id, start, end, day=MONDAY, active=True) -> WorkingHours:
    return WorkingHours(
        tenant_id=1,
        staff_id=staff_id,
        day_of_week=day,
        start_time=start,
        end_time=end,
        is_active=active,
    )


def _build_service(
    *,
    working_hours=None,
    time_off=(),
    appointments=(),
    staff=None,
    lead_time_hours=0,
    now="07:00",
) -> AvailabilityService:
    repository = InMemoryBookingRepository(
        policies=[
            TenantPolicy(
                tenant_id=1,
                timezone=TZ,
                lead_time_hours=lead_time_hours,
                max_days_in_advance=30,
                slot_interval_minutes=30,
            )
        ],
        services=[
            Service(id=10, tenant_id=1, duration_minutes=60, name="Haircut"),
            Service(id=20, tenant_id=1, duration_minutes=30, name="Beard trim"),
        ],
        staff=staff if staff is not None else [
            StaffMember(id=1, tenant_id=1, display_name="Ana", sort_order=5, service_ids=frozenset({10, 20})),
            StaffMember(id=2, tenant_id=1, display_name="Ben", sort_order=0, service_ids=frozenset({10, 20})),
        ],
        working_hours=working_hours if working_hours is not None else [
            _hours(1, time(9, 0), time(12, 0)),
            _hours(2, time(9, 0), time(12, 0)),
        ],
        time_off=time_off,
        appointments=appointments,
    )
    fixed_now = _at(now)
    return AvailabilityService(repository, clock=lambda: fixed_now)


def _pairs(slots):
    return [(slot.time, slot.available) for slot in slots]


class TestSingleStaff:
    """Slot grids for an explicitly requested staff member."""

    def test_free_day(self):
        service = _build_service()

        slots = asyncio.run(service.compute_day_slots(1, 10, 1, TARGET))

        assert _pairs(slots) == [
            ("09:00", True),
            ("09:30", True),
            ("10:00", True),
            ("10:30", True),
            ("11:00", True),
        ]
        assert all(slot.staff_id is None for slot in slots)

    def test_existing_appointment(self):
        service = _build_service(
            appointments=[Appointment(tenant_id=1, staff_id=1, starts_at=_at("10:00"), ends_at=_at("11:00"))]
        )

        slots = asyncio.run(service.compute_day_slots(1, 10, 1, TARGET))

        assert _pairs(slots) == [
            ("09:00", True),
            ("09:30", False),
            ("10:00", False),
            ("10:30", False),
            ("11:00", True),
        ]

    @pytest.mark.parametrize("status", [AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW])
    def test_released_appointments_do_not_block(self, status):
        service = _build_service(
            appointments=[
                Appointment(tenant_id=1, staff_id=1, starts_at=_at("10:00"), ends_at=_at("11:00"), status=status)
            ]
        )

        slots = asyncio.run(service.compute_day_slots(1, 10, 1, TARGET))

        assert all(slot.available for slot in slots)

    def test_other_staff_appointment_does_not_block(self):
        service = _build_service(
            appointments=[Appointment(tenant_id=1, staff_id=2, starts_at=_at("10:00"), ends_at=_at("11:00"))]
        )

        slots = asyncio.run(service.compute_day_slots(1, 10, 1, TARGET))

        assert all(slot.available for slot in slots)

    def test_all_day_time_off(self):
        """An all-day time off wins over working hours and bookings."""
        service = _build_service(
            time_off=[TimeOff(tenant_id=1, date=pendulum.date(2024, 11, 25), staff_id=1)]
        )

        assert asyncio.run(service.compute_day_slots(1, 10, 1, TARGET)) == []
        assert asyncio.run(service.compute_day_slots(1, 10, 2, TARGET)) != []

    def test_business_wide_all_day_time_off(self):
        service = _build_service(time_off=[TimeOff(tenant_id=1, date=pendulum.date(2024, 11, 25))])

        assert asyncio.run(service.compute_day_slots(1, 10, 1, TARGET)) == []
        assert asyncio.run(service.compute_day_slots(1, 10, 2, TARGET)) == []

    def test_partial_time_off(self):
        service = _build_service(
            time_off=[
                TimeOff(
                    tenant_id=1,
                    date=pendulum.date(2024, 11, 25),
                    start_time=time(11, 0),
                    end_time=time(12, 0),
                )
            ]
        )

        slots = asyncio.run(service.compute_day_slots(1, 10, 1, TARGET))

        assert [slot.time for slot in slots if not slot.available] == ["10:30", "11:00"]

    def test_lead_time(self):
        """now 08:30 plus two hours notice leaves 10:30 as first bookable slot."""
        service = _build_service(lead_time_hours=2, now="08:30")

        slots = asyncio.run(service.compute_day_slots(1, 10, 1, TARGET))

        assert [slot.time for slot in slots if slot.available] == ["10:30", "11:00"]

    def test_no_working_hours(self):
        service = _build_service()

        # 2024-11-26 is a Tuesday without rows
        assert asyncio.run(service.compute_day_slots(1, 10, 1, "2024-11-26")) == []

    def test_inactive_working_hours(self):
        service = _build_service(working_hours=[_hours(1, time(9, 0), time(12, 0), active=False)])

        assert asyncio.run(service.compute_day_slots(1, 10, 1, TARGET)) == []

    def test_business_hours_narrow_staff_window(self):
        service = _build_service(
            working_hours=[
                _hours(1, time(8, 0), time(17, 0)),
                _hours(None, time(10, 0), time(11, 0)),
            ]
        )

        slots = asyncio.run(service.compute_day_slots(1, 10, 1, TARGET))

        assert _pairs(slots) == [("10:00", True)]

    def test_business_hours_closed_weekday(self):
        service = _build_service(
            working_hours=[
                _hours(1, time(9, 0), time(12, 0)),
                _hours(None, time(9, 0), time(12, 0), day=2),
            ]
        )

        assert asyncio.run(service.compute_day_slots(1, 10, 1, TARGET)) == []

    def test_dates_outside_booking_window(self):
        service = _build_service()

        assert asyncio.run(service.compute_day_slots(1, 10, 1, "2024-11-18")) == []
        # today + 30 days is 2024-12-25; the following Monday is out of reach
        assert asyncio.run(service.compute_day_slots(1, 10, 1, "2024-12-30")) == []
        assert asyncio.run(service.compute_day_slots(1, 10, 1, "2024-12-23")) != []


class TestAnyStaff:
    """Aggregation across every eligible staff member."""

    def test_first_staff_by_id_wins(self):
        """Ana (id 1) is listed after Ben but still claims the shared 09:00."""
        service = _build_service(
            working_hours=[
                _hours(1, time(9, 0), time(10, 0)),
                _hours(2, time(9, 0), time(10, 0)),
            ],
            appointments=[Appointment(tenant_id=1, staff_id=1, starts_at=_at("09:30"), ends_at=_at("10:00"))],
        )

        slots = asyncio.run(service.compute_day_slots(1, 20, None, TARGET))

        assert [slot.to_dict() for slot in slots] == [
            {"time": "09:00", "available": True, "staff_id": 1},
            {"time": "09:30", "available": True, "staff_id": 2},
        ]

    def test_unavailable_times_are_dropped(self):
        service = _build_service(
            appointments=[
                Appointment(tenant_id=1, staff_id=1, starts_at=_at("09:00"), ends_at=_at("12:00")),
                Appointment(tenant_id=1, staff_id=2, starts_at=_at("10:00"), ends_at=_at("12:00")),
            ]
        )

        slots = asyncio.run(service.compute_day_slots(1, 10, None, TARGET))

        assert _pairs(slots) == [("09:00", True)]
        assert slots[0].staff_id == 2

    def test_union_is_subset_without_duplicates(self):
        service = _build_service(
            working_hours=[
                _hours(1, time(9, 0), time(11, 0)),
                _hours(2, time(10, 0), time(12, 0)),
            ]
        )

        combined = asyncio.run(service.compute_day_slots(1, 10, None, TARGET))
        per_staff = {
            staff_id: {slot.time for slot in asyncio.run(service.compute_day_slots(1, 10, staff_id, TARGET)) if slot.available}
            for staff_id in (1, 2)
        }

        times = [slot.time for slot in combined]
        assert times == sorted(set(times))
        assert set(times) == per_staff[1] | per_staff[2]
        for slot in combined:
            assert slot.time in per_staff[slot.staff_id]

    def test_no_eligible_staff(self):
        service = _build_service(
            staff=[StaffMember(id=1, tenant_id=1, is_bookable=False, service_ids=frozenset({10}))]
        )

        assert asyncio.run(service.compute_day_slots(1, 10, None, TARGET)) == []


class TestNotFound:
    """Unknown inputs are errors, not empty results."""

    def test_unknown_tenant(self):
        service = _build_service()

        with pytest.raises(NotFoundError, match="Tenant"):
            asyncio.run(service.compute_day_slots(99, 10, None, TARGET))

    def test_unknown_service(self):
        service = _build_service()

        with pytest.raises(NotFoundError, match="Service"):
            asyncio.run(service.compute_day_slots(1, 99, None, TARGET))

    def test_unknown_staff(self):
        service = _build_service()

        with pytest.raises(NotFoundError, match="Staff"):
            asyncio.run(service.compute_day_slots(1, 10, 99, TARGET))
