# salon_booking/tenant_config.py
"""
Tenant (salon) configuration schema for the multi-tenant booking engine.

Supports:
- Working hours per weekday
- Service catalogue with durations and prices
- Capacity settings (slot granularity, number of stylists)
- Blocked dates, cancellation notice, advance-booking window
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

WEEKDAYS = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"
)


def _check_hhmm(value: str) -> str:
    try:
        datetime.strptime(value, "%H:%M")
    except ValueError:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    return value


class SalonInfo(BaseModel):
    """Display details for a salon."""
    name: str = Field(..., min_length=1, max_length=200, description="Salon name")
    name_en: Optional[str] = Field(None, description="English name")
    phone: Optional[str] = Field(None, description="Contact phone")
    address: Optional[str] = Field(None, description="Street address")
    country: str = Field(default="KW", min_length=2, max_length=2, description="ISO country code")


class WorkingHours(BaseModel):
    """Opening window for one weekday."""
    start: str = Field(default="00:00", description="Opening time (HH:MM)")
    end: str = Field(default="00:00", description="Closing time (HH:MM)")
    enabled: bool = Field(default=False, description="Whether the salon opens this day")

    @field_validator("start", "end")
    @classmethod
    def validate_hhmm(cls, v):
        return _check_hhmm(v)

    @model_validator(mode="after")
    def check_window(self):
        """An enabled day must close after it opens."""
        if self.enabled and self.end <= self.start:
            raise ValueError(f"Closing time {self.end} must be after opening time {self.start}")
        return self


CLOSED_DAY = WorkingHours(start="00:00", end="00:00", enabled=False)


class ServiceConfig(BaseModel):
    """Service offered by a salon."""
    id: str = Field(..., min_length=1, description="Unique service ID (e.g., SRV-001)")
    name: str = Field(..., min_length=1, max_length=100, description="Service name")
    name_en: Optional[str] = Field(None, description="English service name")
    duration_minutes: int = Field(..., gt=0, le=480, description="Duration in minutes (1-480)")
    price: float = Field(..., ge=0, description="Price (0 or positive)")
    active: bool = Field(default=True, description="Whether service is bookable")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "SRV-001",
                "name": "Haircut",
                "duration_minutes": 30,
                "price": 10.0,
                "active": True
            }
        }
    )


class ScheduleSettings(BaseModel):
    """Capacity and policy knobs."""
    slot_duration_minutes: int = Field(default=30, gt=0, le=240)
    number_of_stylists: int = Field(default=5, ge=1)
    max_concurrent_bookings: Optional[int] = Field(
        default=None,
        ge=1,
        description="Overrides number_of_stylists when set"
    )
    advance_booking_days: int = Field(default=30, ge=0)
    cancellation_hours_notice: float = Field(default=24, ge=0)

    @property
    def capacity(self) -> int:
        """Maximum simultaneous appointments in any overlapping window."""
        if self.max_concurrent_bookings is not None:
            return self.max_concurrent_bookings
        return self.number_of_stylists


class TenantConfig(BaseModel):
    """Complete salon configuration, read-only at runtime."""
    model_config = ConfigDict(frozen=True)

    tenant_id: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    salon_info: SalonInfo
    working_hours: Dict[str, WorkingHours]
    services: List[ServiceConfig] = Field(..., min_length=1)
    settings: ScheduleSettings
    blocked_dates: List[str] = Field(default_factory=list)

    @field_validator("working_hours")
    @classmethod
    def validate_weekdays(cls, v):
        """Keys must be lowercase English weekday names."""
        unknown = [day for day in v if day not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s) in working_hours: {', '.join(unknown)}")
        return v

    @field_validator("blocked_dates")
    @classmethod
    def validate_blocked_dates(cls, v):
        for day in v:
            try:
                datetime.strptime(day, "%Y-%m-%d")
            except ValueError:
                raise ValueError(f"Invalid blocked date '{day}', expected YYYY-MM-DD")
        return v

    def get_working_hours(self, day_name: str) -> WorkingHours:
        """Working hours for a weekday; missing days are closed."""
        return self.working_hours.get(day_name, CLOSED_DAY)

    def get_service(self, service_id: str) -> Optional[ServiceConfig]:
        """Active service by ID, or None."""
        return next(
            (s for s in self.services if s.id == service_id and s.active),
            None
        )

    def get_active_services(self) -> List[ServiceConfig]:
        """Get only active services."""
        return [s for s in self.services if s.active]

    def is_blocked_date(self, day: str) -> bool:
        return day in self.blocked_dates
