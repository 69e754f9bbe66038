"""Availability engine: candidate slots, overlap counting, capacity.

Overlap test for half-open intervals [a1, a2) and [b1, b2):
    a1 < b2 and b1 < a2
Back-to-back appointments (10:00-10:30 then 10:30-11:00) do not conflict.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from salon_booking.clock import TIME_FORMAT, combine, parse_date, weekday_name
from salon_booking.config_manager import TenantConfigProvider
from salon_booking.errors import ValidationFailed
from salon_booking.settings import ACTIVE_STATUSES
from salon_booking.store import AppointmentStore

CAPACITY_EXCEEDED = "No stylist is available at this time"


@dataclass(frozen=True)
class Slot:
    """Bookable start time with remaining capacity."""
    time: str
    available_slots: int

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "available_slots": self.available_slots}


@dataclass(frozen=True)
class SlotCheck:
    """Result of checking one requested start time."""
    available: bool
    remaining_capacity: int
    reason: Optional[str] = None


def intervals_overlap(a_start: datetime, a_end: datetime,
                      b_start: datetime, b_end: datetime) -> bool:
    """Strict half-open interval intersection."""
    return a_start < b_end and b_start < a_end


def count_overlapping(start: datetime, end: datetime,
                      appointments: Iterable[Dict[str, Any]]) -> int:
    """
    Count appointments whose [time, end_time) intersects [start, end).

    Appointment times are read as wall-clock times on start's date.
    """
    day = start.strftime("%Y-%m-%d")
    count = 0
    for apt in appointments:
        apt_start = combine(day, apt["time"])
        apt_end = combine(day, apt["end_time"])
        if intervals_overlap(start, end, apt_start, apt_end):
            count += 1
    return count


class AvailabilityEngine:
    """Computes free capacity per slot for a tenant/date/service duration."""

    def __init__(self, config_provider: TenantConfigProvider, store: AppointmentStore):
        self.config_provider = config_provider
        self.store = store

    def compute_available_slots(
        self,
        tenant_id: str,
        date: str,
        service_duration_minutes: int
    ) -> List[Slot]:
        """
        Bookable slots for a date, ascending by time.

        Existing appointments are read once and reused for every candidate.
        Slots with no remaining capacity are left out.

        Args:
            tenant_id: Salon identifier
            date: YYYY-MM-DD
            service_duration_minutes: Length of the requested service

        Returns:
            List of Slot (empty when the salon is closed that day)
        """
        if service_duration_minutes <= 0:
            raise ValueError("service_duration_minutes must be positive")

        day = parse_date(date)
        if day is None:
            raise ValidationFailed(f"Invalid date: {date}")

        policy = self.config_provider.get_policy(tenant_id)
        hours = policy.get_working_hours(weekday_name(day))
        if not hours.enabled:
            return []

        capacity = policy.settings.capacity
        step = timedelta(minutes=policy.settings.slot_duration_minutes)
        duration = timedelta(minutes=service_duration_minutes)

        opening = combine(date, hours.start)
        closing = combine(date, hours.end)

        existing = self.store.find_by_date_status(tenant_id, date, ACTIVE_STATUSES)

        slots = []
        start = opening
        while start + duration <= closing:
            overlap = count_overlapping(start, start + duration, existing)
            remaining = capacity - overlap
            if remaining > 0:
                slots.append(Slot(start.strftime(TIME_FORMAT), remaining))
            start += step

        return slots

    def check_slot_availability(
        self,
        tenant_id: str,
        date: str,
        time: str,
        service_duration_minutes: int,
        exclude_booking_id: Optional[str] = None
    ) -> SlotCheck:
        """
        Capacity check for one requested start time.

        Args:
            exclude_booking_id: Appointment being updated; never counted
                against itself

        Returns:
            SlotCheck; unavailable when overlap count reaches capacity
        """
        if service_duration_minutes <= 0:
            raise ValueError("service_duration_minutes must be positive")

        capacity = self.config_provider.get_policy(tenant_id).settings.capacity

        existing = self.store.find_by_date_status(
            tenant_id, date, ACTIVE_STATUSES, exclude_booking_id=exclude_booking_id
        )

        start = combine(date, time)
        end = start + timedelta(minutes=service_duration_minutes)
        overlap = count_overlapping(start, end, existing)

        if overlap >= capacity:
            return SlotCheck(False, 0, CAPACITY_EXCEEDED)
        return SlotCheck(True, capacity - overlap)
