"""Runtime settings for the booking engine.

Values come from environment variables (optionally a .env file).
Business rules live in tenant JSON files, not here.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent

DEFAULT_TIMEZONE = "Asia/Kuwait"
DEFAULT_DATABASE_URL = "sqlite:///bookings.db"
DEFAULT_TENANTS_DIR = str(PROJECT_ROOT / "data" / "tenants")

# Appointment statuses that occupy a stylist
ACTIVE_STATUSES = ("confirmed", "pending")
APPOINTMENT_STATUSES = ("confirmed", "pending", "cancelled", "completed", "no-show")

# Phone lookups return appointments from this many days back onward
PHONE_LOOKUP_DAYS_BACK = 7

SERVICE_NAME = "salon-booking-engine"
VERSION = "1.0.0"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, built once at startup."""
    database_url: str = DEFAULT_DATABASE_URL
    tenants_dir: str = DEFAULT_TENANTS_DIR
    timezone: str = DEFAULT_TIMEZONE
    log_level: str = "INFO"
    log_format: str = "json"
    booking_id_max_retries: int = 3
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    api_base_url: str = "http://localhost:4032"
    port: int = 4032


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional .env path (defaults to python-dotenv's lookup)

    Returns:
        Settings instance
    """
    load_dotenv(env_file)

    origins = os.getenv("ALLOWED_ORIGINS", "*")

    return Settings(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        tenants_dir=os.getenv("TENANTS_DIR", DEFAULT_TENANTS_DIR),
        timezone=os.getenv("SALON_TIMEZONE", DEFAULT_TIMEZONE),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "json"),
        booking_id_max_retries=int(os.getenv("BOOKING_ID_MAX_RETRIES", "3")),
        allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
        api_base_url=os.getenv("API_BASE_URL", "http://localhost:4032"),
        port=int(os.getenv("PORT", "4032")),
    )
