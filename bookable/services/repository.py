"""
Read-only data-access contract consumed by the availability services.
"""

from datetime import date
from typing import Dict, List, Optional, Protocol, Sequence

from ..config import TenantPolicy
from ..domain.models import Service, StaffMember, TimeOff, TimeRange, WorkingHours


class BookingRepositoryProtocol(Protocol):
    """
    Protocol describing the persistence reads needed by the services.

    Lookups of unknown tenants, services or staff raise ``NotFoundError``;
    every other query returns an empty result when nothing matches.
    """

    async def get_tenant_policy(self, tenant_id: int) -> TenantPolicy:
        """Return the booking policy of a tenant."""

    async def get_service(self, tenant_id: int, service_id: int) -> Service:
        """Return a service owned by the tenant."""

    async def get_staff(self, tenant_id: int, staff_id: int) -> StaffMember:
        """Return a staff member of the tenant."""

    async def get_eligible_staff_ids(self, tenant_id: int, service_id: int) -> List[int]:
        """Return ids of bookable staff linked to the service, in listing order."""

    async def get_active_working_hours(
        self,
        tenant_id: int,
        staff_id: Optional[int],
        day_of_week: int,
    ) -> Optional[WorkingHours]:
        """Return the active row for a staff member (or business-wide if None) and weekday."""

    async def get_working_hours_for_staff_set(
        self,
        tenant_id: int,
        staff_ids: Sequence[int],
        day_of_week: Optional[int] = None,
    ) -> Dict[int, List[WorkingHours]]:
        """Return active staff rows grouped by staff id, optionally for one weekday."""

    async def has_business_hours(self, tenant_id: int) -> bool:
        """Return True if any business-wide row exists, active or not."""

    async def get_active_business_hours(self, tenant_id: int) -> List[WorkingHours]:
        """Return active business-wide rows."""

    async def get_busy_appointments(
        self,
        tenant_id: int,
        staff_id: int,
        day: date,
    ) -> List[TimeRange]:
        """Return intervals of appointments that still block time on the date."""

    async def get_time_off(
        self,
        tenant_id: int,
        staff_id: Optional[int],
        day: date,
    ) -> List[TimeOff]:
        """Return time off on the date scoped to the staff member or business-wide."""

    async def get_time_off_between(
        self,
        tenant_id: int,
        staff_ids: Sequence[int],
        start: date,
        end: date,
    ) -> List[TimeOff]:
        """Return time off in an inclusive date range for the staff set or business-wide."""
