"""Booking identifier generation.

Format: BK-{tenant_id}-{YYYYMMDD}-{seq}
- seq starts at 1 per tenant+date
- zero-padded to 3 digits, widened (never truncated) past 999
"""
import re
from typing import Optional

from salon_booking.clock import compact_date
from salon_booking.store import AppointmentStore

BOOKING_ID_PATTERN = re.compile(r"^BK-[a-z0-9-]+-\d{8}-\d{3,}$")


def booking_id_prefix(tenant_id: str, date: str) -> str:
    return f"BK-{tenant_id}-{compact_date(date)}-"


def format_booking_id(tenant_id: str, date: str, sequence: int) -> str:
    """
    Example:
        >>> format_booking_id("salon-farah", "2025-10-10", 7)
        'BK-salon-farah-20251010-007'
        >>> format_booking_id("salon-farah", "2025-10-10", 1000)
        'BK-salon-farah-20251010-1000'
    """
    if sequence < 1:
        raise ValueError("sequence must be >= 1")
    return f"{booking_id_prefix(tenant_id, date)}{sequence:03d}"


def parse_sequence(booking_id: str) -> Optional[int]:
    """Numeric suffix of a booking ID, or None if it has none."""
    suffix = booking_id.rsplit("-", 1)[-1]
    return int(suffix) if suffix.isdigit() else None


def is_valid_booking_id(booking_id: str) -> bool:
    return bool(booking_id) and BOOKING_ID_PATTERN.match(booking_id) is not None


class BookingIdGenerator:
    """Mints the next sequential booking ID for a tenant+date."""

    def __init__(self, store: AppointmentStore):
        self.store = store

    def next_booking_id(self, tenant_id: str, date: str) -> str:
        """
        Highest existing sequence for the prefix plus one.

        Sequences are compared numerically, so -1000 ranks above -999.
        Read-then-write: callers must hold the tenant+date lock or retry
        on DuplicateBookingIdError.
        """
        prefix = booking_id_prefix(tenant_id, date)
        existing = self.store.find_booking_ids_with_prefix(tenant_id, prefix)

        highest = 0
        for booking_id in existing:
            suffix = booking_id[len(prefix):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))

        return format_booking_id(tenant_id, date, highest + 1)
