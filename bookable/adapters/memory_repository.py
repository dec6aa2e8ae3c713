"""
In-memory booking repository.

Implements ``BookingRepositoryProtocol`` over plain record lists. Records can
be passed in directly or loaded from a YAML fixture file, which makes it
possible to run the availability engine without a database.
"""

import logging
from collections import defaultdict
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import yaml
from pydantic import ValidationError

from ..config import ReservationDefaults, TenantPolicy
from ..domain.exceptions import DataSourceError, NotFoundError
from ..domain.models import (
    Appointment,
    Service,
    StaffMember,
    TimeOff,
    TimeRange,
    WorkingHours,
)
from .fixtures import FixtureFile

logger = logging.getLogger(__name__)


class InMemoryBookingRepository:
    """
    Repository backed by in-memory records.

    Appointments are matched to a date by their start in the tenant timezone.
    Eligible staff are listed by sort order, then display name.
    """

    def __init__(
        self,
        *,
        policies: Iterable[TenantPolicy] = (),
        services: Iterable[Service] = (),
        staff: Iterable[StaffMember] = (),
        working_hours: Iterable[WorkingHours] = (),
        time_off: Iterable[TimeOff] = (),
        appointments: Iterable[Appointment] = (),
    ):
        self._policies: Dict[int, TenantPolicy] = {policy.tenant_id: policy for policy in policies}
        self._services: Dict[tuple, Service] = {
            (service.tenant_id, service.id): service for service in services
        }
        self._staff: Dict[tuple, StaffMember] = {
            (member.tenant_id, member.id): member for member in staff
        }
        self._working_hours: List[WorkingHours] = list(working_hours)
        self._time_off: List[TimeOff] = list(time_off)
        self._appointments: List[Appointment] = list(appointments)

    @classmethod
    def from_yaml(
        cls,
        fixture_path: Path,
        defaults: Optional[ReservationDefaults] = None,
    ) -> "InMemoryBookingRepository":
        """
        Load records from a YAML fixture file.

        Args:
            fixture_path: Path to the fixture file
            defaults: Reservation defaults for tenants without overrides

        Raises:
            FileNotFoundError: If the fixture file doesn't exist
            DataSourceError: If the file is not valid YAML or fails validation
        """
        if not fixture_path.exists():
            raise FileNotFoundError(f"Fixture file not found: {fixture_path}")

        try:
            with open(fixture_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise DataSourceError(f"Invalid YAML in {fixture_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise DataSourceError("Fixture file must contain a mapping at the root level.")

        try:
            fixture = FixtureFile(**data)
            repository = cls.from_fixture(fixture, defaults)
        except (ValidationError, ValueError) as exc:
            raise DataSourceError(f"Invalid fixture {fixture_path}: {exc}") from exc

        logger.info(
            "Loaded fixture %s: %d tenant(s), %d staff, %d appointment(s)",
            fixture_path,
            len(fixture.tenants),
            len(fixture.staff),
            len(fixture.appointments),
        )
        return repository

    @classmethod
    def from_fixture(
        cls,
        fixture: FixtureFile,
        defaults: Optional[ReservationDefaults] = None,
    ) -> "InMemoryBookingRepository":
        """Convert validated fixture records into domain records."""
        policies = [
            TenantPolicy.from_overrides(
                tenant.id,
                defaults,
                timezone=tenant.timezone,
                lead_time_hours=tenant.lead_time_hours,
                max_days_in_advance=tenant.max_days_in_advance,
                slot_interval_minutes=tenant.slot_interval_minutes,
            )
            for tenant in fixture.tenants
        ]
        timezones = {policy.tenant_id: policy.timezone for policy in policies}

        appointments = []
        for record in fixture.appointments:
            timezone = timezones.get(record.tenant_id, "UTC")
            starts_at, ends_at = record.localized(timezone)
            appointments.append(
                Appointment(
                    tenant_id=record.tenant_id,
                    staff_id=record.staff_id,
                    starts_at=starts_at,
                    ends_at=ends_at,
                    status=record.status,
                )
            )

        return cls(
            policies=policies,
            services=[Service(**record.model_dump()) for record in fixture.services],
            staff=[
                StaffMember(
                    id=record.id,
                    tenant_id=record.tenant_id,
                    display_name=record.display_name,
                    is_bookable=record.is_bookable,
                    sort_order=record.sort_order,
                    service_ids=frozenset(record.service_ids),
                )
                for record in fixture.staff
            ],
            working_hours=[WorkingHours(**record.model_dump()) for record in fixture.working_hours],
            time_off=[TimeOff(**record.model_dump()) for record in fixture.time_off],
            appointments=appointments,
        )

    async def get_tenant_policy(self, tenant_id: int) -> TenantPolicy:
        policy = self._policies.get(tenant_id)
        if policy is None:
            raise NotFoundError("Tenant", tenant_id)
        return policy

    async def get_service(self, tenant_id: int, service_id: int) -> Service:
        service = self._services.get((tenant_id, service_id))
        if service is None:
            raise NotFoundError("Service", service_id)
        return service

    async def get_staff(self, tenant_id: int, staff_id: int) -> StaffMember:
        member = self._staff.get((tenant_id, staff_id))
        if member is None:
            raise NotFoundError("Staff", staff_id)
        return member

    async def get_eligible_staff_ids(self, tenant_id: int, service_id: int) -> List[int]:
        eligible = [
            member
            for (member_tenant, _), member in self._staff.items()
            if member_tenant == tenant_id and member.can_perform(service_id)
        ]
        eligible.sort(key=lambda member: (member.sort_order, member.display_name))
        return [member.id for member in eligible]

    async def get_active_working_hours(
        self,
        tenant_id: int,
        staff_id: Optional[int],
        day_of_week: int,
    ) -> Optional[WorkingHours]:
        for row in self._working_hours:
            if (
                row.tenant_id == tenant_id
                and row.staff_id == staff_id
                and row.day_of_week == day_of_week
                and row.is_active
            ):
                return row
        return None

    async def get_working_hours_for_staff_set(
        self,
        tenant_id: int,
        staff_ids: Sequence[int],
        day_of_week: Optional[int] = None,
    ) -> Dict[int, List[WorkingHours]]:
        wanted = set(staff_ids)
        grouped: Dict[int, List[WorkingHours]] = defaultdict(list)

        for row in self._working_hours:
            if row.tenant_id != tenant_id or not row.is_active:
                continue
            if row.staff_id is None or row.staff_id not in wanted:
                continue
            if day_of_week is not None and row.day_of_week != day_of_week:
                continue
            grouped[row.staff_id].append(row)

        return dict(grouped)

    async def has_business_hours(self, tenant_id: int) -> bool:
        return any(
            row.tenant_id == tenant_id and row.is_business_wide
            for row in self._working_hours
        )

    async def get_active_business_hours(self, tenant_id: int) -> List[WorkingHours]:
        return [
            row
            for row in self._working_hours
            if row.tenant_id == tenant_id and row.is_business_wide and row.is_active
        ]

    async def get_busy_appointments(
        self,
        tenant_id: int,
        staff_id: int,
        day: date,
    ) -> List[TimeRange]:
        timezone = (await self.get_tenant_policy(tenant_id)).timezone
        return [
            appointment.time_range()
            for appointment in self._appointments
            if appointment.tenant_id == tenant_id
            and appointment.staff_id == staff_id
            and appointment.status.blocks_time
            and appointment.starts_at.in_timezone(timezone).date() == day
        ]

    async def get_time_off(
        self,
        tenant_id: int,
        staff_id: Optional[int],
        day: date,
    ) -> List[TimeOff]:
        return [
            entry
            for entry in self._time_off
            if entry.tenant_id == tenant_id
            and entry.date == day
            and (entry.staff_id is None or entry.staff_id == staff_id)
        ]

    async def get_time_off_between(
        self,
        tenant_id: int,
        staff_ids: Sequence[int],
        start: date,
        end: date,
    ) -> List[TimeOff]:
        wanted = set(staff_ids)
        return [
            entry
            for entry in self._time_off
            if entry.tenant_id == tenant_id
            and start <= entry.date <= end
            and (entry.staff_id is None or entry.staff_id in wanted)
        ]
