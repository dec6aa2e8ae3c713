"""
Tests for the month-wide available-dates scan.
"""

import asyncio
from datetime import time

import pendulum
import pytest

from bookable.adapters.memory_repository import InMemoryBookingRepository
from bookable.config import TenantPolicy
from bookable.domain.exceptions import NotFoundError
from bookable.domain.models import Service, StaffMember, TimeOff, TimeRange, WorkingHours
from bookable.services.availability import AvailabilityService
from bookable.services.available_dates import AvailableDatesScanner, has_bookable_start

TZ = "Europe/Berlin"
SUNDAY, MONDAY, WEDNESDAY, FRIDAY = 0, 1, 3, 5


def _hours(staff_id, day, start=time(9, 0), end=time(12, 0), active=True) -> WorkingHours:
    return WorkingHours(
        tenant_id=1,
        staff_id=staff_id,
        day_of_week=day,
        start_time=start,
        end_time=end,
        is_active=active,
    )


DEFAULT_HOURS = [
    _hours(1, MONDAY),
    _hours(1, WEDNESDAY),
    _hours(2, FRIDAY),
]


def _build_repository(*, working_hours=None, time_off=(), lead_time_hours=0, max_days_in_advance=30):
    return InMemoryBookingRepository(
        policies=[
            TenantPolicy(
                tenant_id=1,
                timezone=TZ,
                lead_time_hours=lead_time_hours,
                max_days_in_advance=max_days_in_advance,
                slot_interval_minutes=30,
            )
        ],
        services=[
            Service(id=10, tenant_id=1, duration_minutes=60),
            Service(id=30, tenant_id=1, duration_minutes=90),
        ],
        staff=[
            StaffMember(id=1, tenant_id=1, service_ids=frozenset({10, 30})),
            StaffMember(id=2, tenant_id=1, service_ids=frozenset({10, 30})),
        ],
        working_hours=DEFAULT_HOURS if working_hours is None else working_hours,
        time_off=time_off,
    )


def _clock(iso: str = "2024-11-25 07:00"):
    fixed = pendulum.parse(iso, tz=TZ)
    return lambda: fixed


def _scan(repository, *, staff_id=None, service_id=10, month=11, year=2024, now="2024-11-25 07:00"):
    scanner = AvailableDatesScanner(repository, clock=_clock(now))
    return asyncio.run(scanner.compute_available_dates(1, service_id, staff_id, month, year))


class TestAvailableDates:
    """Tests for AvailableDatesScanner."""

    def test_any_staff(self):
        assert _scan(_build_repository()) == ["2024-11-25", "2024-11-27", "2024-11-29"]

    def test_explicit_staff(self):
        repository = _build_repository()

        assert _scan(repository, staff_id=1) == ["2024-11-25", "2024-11-27"]
        assert _scan(repository, staff_id=2) == ["2024-11-29"]

    def test_never_returns_dates_outside_horizon(self):
        repository = _build_repository(max_days_in_advance=3)

        assert _scan(repository) == ["2024-11-25", "2024-11-27"]
        assert _scan(repository, month=12) == []

    def test_past_month(self):
        assert _scan(_build_repository(), month=10) == []

    def test_all_day_time_off(self):
        staff_off = _build_repository(
            time_off=[TimeOff(tenant_id=1, staff_id=1, date=pendulum.date(2024, 11, 27))]
        )
        business_off = _build_repository(
            time_off=[TimeOff(tenant_id=1, date=pendulum.date(2024, 11, 29))]
        )

        assert _scan(staff_off) == ["2024-11-25", "2024-11-29"]
        assert _scan(business_off) == ["2024-11-25", "2024-11-27"]

    def test_partial_time_off_does_not_remove_date(self):
        repository = _build_repository(
            time_off=[
                TimeOff(
                    tenant_id=1,
                    staff_id=1,
                    date=pendulum.date(2024, 11, 27),
                    start_time=time(9, 0),
                    end_time=time(10, 0),
                )
            ]
        )

        assert "2024-11-27" in _scan(repository)

    def test_lead_time_excludes_today_after_last_start(self):
        """At 11:30 the last start of the day (11:00) has passed."""
        assert _scan(_build_repository(), now="2024-11-25 11:30") == ["2024-11-27", "2024-11-29"]

    def test_lead_time_spanning_days(self):
        repository = _build_repository(lead_time_hours=48)

        assert _scan(repository) == ["2024-11-27", "2024-11-29"]

    def test_business_hours_ceiling(self):
        """Business hours 09:00-10:00 leave no room for a 90 minute service."""
        repository = _build_repository(
            working_hours=[
                _hours(None, SUNDAY, time(9, 0), time(10, 0)),
                _hours(1, SUNDAY, time(8, 0), time(17, 0)),
                _hours(1, MONDAY, time(8, 0), time(17, 0)),
            ]
        )

        assert _scan(repository, service_id=30, month=12) == []
        # Mondays stay closed: the business has no Monday hours
        assert _scan(repository, service_id=10, month=12) == [
            "2024-12-01",
            "2024-12-08",
            "2024-12-15",
            "2024-12-22",
        ]

    def test_only_inactive_business_hours_close_every_day(self):
        repository = _build_repository(
            working_hours=DEFAULT_HOURS + [_hours(None, MONDAY, active=False)]
        )

        assert _scan(repository) == []

    def test_matches_day_slots(self):
        """A date is listed exactly when the day view offers a bookable slot."""
        repository = _build_repository(
            time_off=[TimeOff(tenant_id=1, staff_id=1, date=pendulum.date(2024, 11, 27))]
        )
        listed = set(_scan(repository, now="2024-11-25 10:15"))

        availability = AvailabilityService(repository, clock=_clock("2024-11-25 10:15"))
        day = pendulum.date(2024, 11, 25)
        while day <= pendulum.date(2024, 11, 30):
            slots = asyncio.run(availability.compute_day_slots(1, 10, None, day))
            assert (day.to_date_string() in listed) == any(slot.available for slot in slots)
            day = day.add(days=1)

    def test_invalid_month(self):
        scanner = AvailableDatesScanner(_build_repository(), clock=_clock())

        with pytest.raises(ValueError, match="Month"):
            asyncio.run(scanner.compute_available_dates(1, 10, None, 13, 2024))

    def test_unknown_service_and_staff(self):
        repository = _build_repository()

        with pytest.raises(NotFoundError):
            _scan(repository, service_id=99)

        with pytest.raises(NotFoundError):
            _scan(repository, staff_id=99)


class TestHasBookableStart:
    """Tests for the short-circuit slot check."""

    def test_first_start_after_lower_bound(self):
        window = TimeRange(
            start=pendulum.datetime(2024, 11, 25, 9, 0, tz=TZ),
            end=pendulum.datetime(2024, 11, 25, 12, 0, tz=TZ),
        )

        assert has_bookable_start(window, 60, 30, pendulum.datetime(2024, 11, 25, 11, 0, tz=TZ))
        assert not has_bookable_start(window, 60, 30, pendulum.datetime(2024, 11, 25, 11, 1, tz=TZ))
        assert not has_bookable_start(window, 240, 30, pendulum.datetime(2024, 11, 25, 8, 0, tz=TZ))
