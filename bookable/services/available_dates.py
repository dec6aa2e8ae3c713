"""
Month-wide scan for dates with at least one bookable slot.

Unlike ``AvailabilityService`` this never builds slot lists: all data is
loaded once per scan and each date stops at the first staff member with a
slot start at or after ``now + lead time``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import pendulum
from pendulum import DateTime

from ..domain.booking_window import BookingWindow, earliest_start
from ..domain.business_hours import BusinessHoursCeiling
from ..domain.models import TimeOff, TimeRange, WorkingHours, day_of_week
from .availability import Clock, load_business_hours, resolve_eligible_staff_ids
from .repository import BookingRepositoryProtocol

logger = logging.getLogger(__name__)


def has_bookable_start(
    window: TimeRange,
    duration_minutes: int,
    slot_interval_minutes: int,
    not_before: DateTime,
) -> bool:
    """
    Check whether any slot start, stepped from the window start, fits the
    service and lies at or after ``not_before``.
    """
    current = window.start

    while current.add(minutes=duration_minutes) <= window.end:
        if current >= not_before:
            return True
        current = current.add(minutes=slot_interval_minutes)

    return False


class AvailableDatesScanner:
    """Finds the dates of a month on which a service can be booked."""

    def __init__(
        self,
        repository: BookingRepositoryProtocol,
        clock: Clock = pendulum.now,
    ) -> None:
        self._repository = repository
        self._clock = clock

    async def compute_available_dates(
        self,
        tenant_id: int,
        service_id: int,
        staff_id: Optional[int],
        month: int,
        year: int,
    ) -> List[str]:
        """
        Return ``YYYY-MM-DD`` strings of bookable dates in the month, ascending.

        Raises:
            ValueError: If month is not between 1 and 12
            NotFoundError: If the tenant, service or explicit staff member is unknown
        """
        if not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}")

        policy = await self._repository.get_tenant_policy(tenant_id)
        service = await self._repository.get_service(tenant_id, service_id)

        if staff_id is not None:
            await self._repository.get_staff(tenant_id, staff_id)
            staff_ids = [staff_id]
        else:
            staff_ids = await resolve_eligible_staff_ids(self._repository, tenant_id, service.id)

        if not staff_ids:
            return []

        now = self._clock().in_timezone(policy.timezone)
        month_start = pendulum.date(year, month, 1)
        month_end = month_start.end_of("month")

        scan_range = BookingWindow.from_now(
            now, policy.timezone, policy.max_days_in_advance
        ).clip(month_start, month_end)
        if scan_range is None:
            logger.debug("Month %s-%02d lies outside the booking window", year, month)
            return []

        first_date, last_date = scan_range

        hours_by_staff = await self._repository.get_working_hours_for_staff_set(
            tenant_id, staff_ids
        )
        time_off = await self._repository.get_time_off_between(
            tenant_id, staff_ids, first_date, last_date
        )
        scan = _MonthScan(
            staff_ids=staff_ids,
            hours=_index_by_weekday(hours_by_staff),
            all_day_off=_index_all_day_off(time_off),
            ceiling=await load_business_hours(self._repository, tenant_id),
            timezone=policy.timezone,
            duration_minutes=service.duration_minutes,
            slot_interval_minutes=policy.slot_interval_minutes,
            not_before=earliest_start(now, policy.lead_time_hours),
        )

        available: List[str] = []
        current = first_date
        while current <= last_date:
            if scan.has_availability(current):
                available.append(current.to_date_string())
            current = current.add(days=1)

        return available


def _index_by_weekday(
    hours_by_staff: Dict[int, List[WorkingHours]],
) -> Dict[Tuple[int, int], WorkingHours]:
    """Key active staff rows by (staff id, weekday); first row wins."""
    index: Dict[Tuple[int, int], WorkingHours] = {}
    for staff_id, rows in hours_by_staff.items():
        for row in rows:
            if row.is_active:
                index.setdefault((staff_id, row.day_of_week), row)
    return index


def _index_all_day_off(time_off: Sequence[TimeOff]) -> Dict[date, List[TimeOff]]:
    by_date: Dict[date, List[TimeOff]] = defaultdict(list)
    for entry in time_off:
        if entry.is_all_day:
            by_date[entry.date].append(entry)
    return by_date


class _MonthScan:
    """Data loaded once per scan plus the per-date short-circuit check."""

    def __init__(
        self,
        *,
        staff_ids: Sequence[int],
        hours: Dict[Tuple[int, int], WorkingHours],
        all_day_off: Dict[date, List[TimeOff]],
        ceiling: BusinessHoursCeiling,
        timezone: str,
        duration_minutes: int,
        slot_interval_minutes: int,
        not_before: DateTime,
    ) -> None:
        self.staff_ids = staff_ids
        self.hours = hours
        self.all_day_off = all_day_off
        self.ceiling = ceiling
        self.timezone = timezone
        self.duration_minutes = duration_minutes
        self.slot_interval_minutes = slot_interval_minutes
        self.not_before = not_before

    def has_availability(self, day: date) -> bool:
        weekday = day_of_week(day)

        if not self.ceiling.allows_day(weekday):
            return False

        day_off = self.all_day_off.get(day, [])

        for staff_id in self.staff_ids:
            if any(entry.applies_to(staff_id) for entry in day_off):
                continue

            hours = self.ceiling.constrain(self.hours.get((staff_id, weekday)), weekday)
            if hours is None:
                continue

            window = hours.window_for(day, self.timezone)
            if window is None:
                continue

            if has_bookable_start(
                window,
                self.duration_minutes,
                self.slot_interval_minutes,
                self.not_before,
            ):
                logger.debug("Date %s bookable with staff %s", day, staff_id)
                return True

        return False
