"""
Per-day slot availability for one staff member or for any eligible staff.

The service fetches everything it needs from the repository up front and
delegates the slot walk to the domain-level ``SlotGenerator``. Per-staff reads
of the any-staff path run concurrently; results are merged in ascending
staff-id order so attribution is reproducible.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, List, Optional

import pendulum
from pendulum import Date, DateTime

from ..config import TenantPolicy
from ..domain.booking_window import BookingWindow, coerce_date, earliest_start_on
from ..domain.business_hours import BusinessHoursCeiling
from ..domain.models import Service, Slot, day_of_week
from ..domain.slot_generator import SlotGenerator
from .repository import BookingRepositoryProtocol

logger = logging.getLogger(__name__)

Clock = Callable[[], DateTime]


async def load_business_hours(
    repository: BookingRepositoryProtocol,
    tenant_id: int,
) -> BusinessHoursCeiling:
    """Load the tenant's business-hours ceiling (unconstrained if none configured)."""
    if not await repository.has_business_hours(tenant_id):
        return BusinessHoursCeiling.unconstrained()

    rows = await repository.get_active_business_hours(tenant_id)
    return BusinessHoursCeiling.from_rows(configured=True, rows=rows)


async def resolve_eligible_staff_ids(
    repository: BookingRepositoryProtocol,
    tenant_id: int,
    service_id: int,
) -> List[int]:
    """Bookable staff linked to the service, ordered by ascending id."""
    staff_ids = await repository.get_eligible_staff_ids(tenant_id, service_id)
    return sorted(set(staff_ids))


@dataclass(frozen=True)
class _DayContext:
    policy: TenantPolicy
    service: Service
    day: Date
    ceiling: BusinessHoursCeiling
    not_before: DateTime
    generator: SlotGenerator


class AvailabilityService:
    """
    Computes bookable slots for a service on a given day.

    With an explicit staff id the full slot grid of that staff member is
    returned (available and unavailable slots). Without one, only times at
    which at least one eligible staff member is free are returned, each
    attributed to the first such staff member by ascending id.
    """

    def __init__(
        self,
        repository: BookingRepositoryProtocol,
        clock: Clock = pendulum.now,
    ) -> None:
        self._repository = repository
        self._clock = clock

    async def compute_day_slots(
        self,
        tenant_id: int,
        service_id: int,
        staff_id: Optional[int],
        day: date | str,
    ) -> List[Slot]:
        """
        Compute the slots of one day.

        Raises:
            NotFoundError: If the tenant, service or explicit staff member is unknown
        """
        policy = await self._repository.get_tenant_policy(tenant_id)
        service = await self._repository.get_service(tenant_id, service_id)
        if staff_id is not None:
            await self._repository.get_staff(tenant_id, staff_id)

        target_day = coerce_date(day)
        now = self._clock().in_timezone(policy.timezone)

        booking_window = BookingWindow.from_now(now, policy.timezone, policy.max_days_in_advance)
        if not booking_window.contains(target_day):
            logger.debug(
                "Date %s outside booking window %s..%s for tenant %s",
                target_day,
                booking_window.first_date,
                booking_window.last_date,
                tenant_id,
            )
            return []

        context = _DayContext(
            policy=policy,
            service=service,
            day=target_day,
            ceiling=await load_business_hours(self._repository, tenant_id),
            not_before=earliest_start_on(
                target_day, now, policy.lead_time_hours, policy.timezone
            ),
            generator=SlotGenerator(slot_interval_minutes=policy.slot_interval_minutes),
        )

        if staff_id is not None:
            return await self._staff_slots(context, staff_id)

        return await self._any_staff_slots(context)

    async def _staff_slots(self, context: _DayContext, staff_id: int) -> List[Slot]:
        """Full slot grid for a single staff member."""
        tenant_id = context.policy.tenant_id
        timezone = context.policy.timezone

        time_off = [
            entry
            for entry in await self._repository.get_time_off(tenant_id, staff_id, context.day)
            if entry.applies_to(staff_id)
        ]
        if any(entry.is_all_day for entry in time_off):
            logger.debug("Staff %s has all-day time off on %s", staff_id, context.day)
            return []

        weekday = day_of_week(context.day)
        staff_hours = await self._repository.get_active_working_hours(tenant_id, staff_id, weekday)
        hours = context.ceiling.constrain(staff_hours, weekday)
        if hours is None:
            logger.debug("Staff %s has no working window on %s", staff_id, context.day)
            return []

        window = hours.window_for(context.day, timezone)
        if window is None:
            return []

        appointments = await self._repository.get_busy_appointments(
            tenant_id, staff_id, context.day
        )
        partial_time_off = [
            time_range
            for time_range in (entry.time_range(timezone) for entry in time_off)
            if time_range is not None
        ]

        return context.generator.generate(
            window=window,
            duration_minutes=context.service.duration_minutes,
            appointments=appointments,
            time_off=partial_time_off,
            not_before=context.not_before,
        )

    async def _any_staff_slots(self, context: _DayContext) -> List[Slot]:
        """Union of available times across eligible staff, first staff wins."""
        staff_ids = await resolve_eligible_staff_ids(
            self._repository, context.policy.tenant_id, context.service.id
        )
        if not staff_ids:
            return []

        per_staff = await asyncio.gather(
            *(self._staff_slots(context, staff_id) for staff_id in staff_ids)
        )

        merged: Dict[str, Slot] = {}
        for staff_id, staff_slots in zip(staff_ids, per_staff):
            for slot in staff_slots:
                if not slot.available or slot.time in merged:
                    continue
                merged[slot.time] = Slot(time=slot.time, available=True, staff_id=staff_id)

        return [merged[time_key] for time_key in sorted(merged)]
