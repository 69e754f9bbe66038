"""Time and calendar helpers anchored to the salon timezone.

All scheduling math uses naive wall-clock times on a single date, so the
helpers here convert between "YYYY-MM-DD"/"HH:MM" strings and datetime
objects and report "now" in the configured zone.
"""
from datetime import date, datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from salon_booking.settings import DEFAULT_TIMEZONE

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


class Clock:
    """
    Timezone-aware clock.

    Inject a FixedClock in tests for deterministic "now".
    """

    def __init__(self, tz_name: str = DEFAULT_TIMEZONE):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        """Current instant in the salon timezone."""
        return datetime.now(self.tz)

    def today(self) -> date:
        """Current calendar day in the salon timezone."""
        return self.now().date()

    def timestamp(self) -> str:
        """ISO 8601 timestamp for created_at/updated_at fields."""
        return self.now().isoformat()

    def localize(self, value: datetime) -> datetime:
        """Attach the salon timezone to a naive wall-clock datetime."""
        return value.replace(tzinfo=self.tz)


class FixedClock(Clock):
    """Clock frozen at a given instant."""

    def __init__(self, frozen: datetime, tz_name: str = DEFAULT_TIMEZONE):
        super().__init__(tz_name)
        if frozen.tzinfo is None:
            frozen = frozen.replace(tzinfo=self.tz)
        self.frozen = frozen.astimezone(self.tz)

    def now(self) -> datetime:
        return self.frozen

    def advance(self, **kwargs) -> None:
        """Move the frozen instant forward (timedelta kwargs)."""
        self.frozen = self.frozen + timedelta(**kwargs)


def parse_date(value: str) -> Optional[date]:
    """Strict YYYY-MM-DD parse. Returns None if malformed or not a real day."""
    if not isinstance(value, str) or len(value) != 10:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        return None


def parse_time(value: str) -> Optional[time]:
    """Strict 24-hour HH:MM parse. Returns None if malformed."""
    if not isinstance(value, str) or len(value) != 5 or value[2] != ":":
        return None
    try:
        return datetime.strptime(value, TIME_FORMAT).time()
    except ValueError:
        return None


def combine(day: str, hhmm: str) -> datetime:
    """Naive datetime for a YYYY-MM-DD day and HH:MM time."""
    return datetime.strptime(f"{day} {hhmm}", f"{DATE_FORMAT} {TIME_FORMAT}")


def add_minutes(hhmm: str, minutes: int) -> str:
    """
    Add minutes to an HH:MM time.

    Example:
        >>> add_minutes("14:30", 45)
        '15:15'
    """
    start = datetime.strptime(hhmm, TIME_FORMAT)
    return (start + timedelta(minutes=minutes)).strftime(TIME_FORMAT)


def weekday_name(day: date) -> str:
    """Lowercase English weekday, e.g. 'sunday'."""
    return day.strftime("%A").lower()


def compact_date(day: str) -> str:
    """'2025-10-10' -> '20251010'."""
    return day.replace("-", "")


def format_display_date(day: str) -> str:
    """'2025-10-10' -> '10/10/2025' (DD/MM/YYYY)."""
    return datetime.strptime(day, DATE_FORMAT).strftime("%d/%m/%Y")
