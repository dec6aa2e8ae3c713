"""
Pydantic schema for YAML booking fixtures.

A fixture file describes tenants, services, staff, working hours, time off
and appointments. It backs the in-memory repository used by the CLI and tests.
"""

from datetime import date, datetime, time
from typing import List, Optional, Union

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, Field, field_validator

from ..domain.models import AppointmentStatus


def _coerce_wall_clock(value):
    """
    YAML 1.1 reads unquoted ``10:30`` as the base-60 integer 630; turn it
    back into a wall-clock time.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        hours, minutes = divmod(value, 60)
        return time(hour=hours, minute=minutes)
    return value


class TenantRecord(BaseModel):
    id: int
    timezone: Optional[str] = None
    lead_time_hours: Optional[int] = None
    max_days_in_advance: Optional[int] = None
    slot_interval_minutes: Optional[int] = None


class ServiceRecord(BaseModel):
    id: int
    tenant_id: int
    duration_minutes: int
    name: str = ""
    is_bookable_online: bool = True


class StaffRecord(BaseModel):
    id: int
    tenant_id: int
    display_name: str = ""
    is_bookable: bool = True
    sort_order: int = 0
    service_ids: List[int] = Field(default_factory=list)


class WorkingHoursRecord(BaseModel):
    tenant_id: int
    day_of_week: int  # 0=Sunday
    start_time: time
    end_time: time
    staff_id: Optional[int] = None
    is_active: bool = True

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_wall_clock(cls, value):
        return _coerce_wall_clock(value)

    @field_validator("day_of_week")
    @classmethod
    def validate_day_of_week(cls, value: int) -> int:
        if value not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {value}")
        return value


class TimeOffRecord(BaseModel):
    tenant_id: int
    date: date
    staff_id: Optional[int] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_wall_clock(cls, value):
        return _coerce_wall_clock(value)


class AppointmentRecord(BaseModel):
    tenant_id: int
    staff_id: int
    starts_at: Union[datetime, str]
    ends_at: Union[datetime, str]
    status: AppointmentStatus = AppointmentStatus.CONFIRMED

    def localized(self, timezone: str) -> tuple:
        """Return (starts_at, ends_at) as DateTimes; naive values use the tenant timezone."""
        return _to_datetime(self.starts_at, timezone), _to_datetime(self.ends_at, timezone)


def _to_datetime(value: Union[datetime, str], timezone: str) -> DateTime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return pendulum.instance(value, tz=timezone)
        return pendulum.instance(value)

    parsed = pendulum.parse(value, tz=timezone)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse datetime: {value}")
    return parsed


class FixtureFile(BaseModel):
    """Root of a fixture file."""
    tenants: List[TenantRecord] = Field(default_factory=list)
    services: List[ServiceRecord] = Field(default_factory=list)
    staff: List[StaffRecord] = Field(default_factory=list)
    working_hours: List[WorkingHoursRecord] = Field(default_factory=list)
    time_off: List[TimeOffRecord] = Field(default_factory=list)
    appointments: List[AppointmentRecord] = Field(default_factory=list)
