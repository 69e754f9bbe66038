"""Shared test fixtures."""
import copy
import json
from datetime import datetime

import pytest

from salon_booking.booking_service import BookingService
from salon_booking.clock import FixedClock
from salon_booking.config_manager import TenantConfigProvider
from salon_booking.settings import Settings
from salon_booking.store import AppointmentStore

# Wednesday 2025-10-08 10:00 in Asia/Kuwait
FROZEN_NOW = datetime(2025, 10, 8, 10, 0)

SALON_FARAH = {
    "tenant_id": "salon-farah",
    "salon_info": {
        "name": "Salon Farah",
        "phone": "+96522334455",
        "country": "KW",
    },
    "working_hours": {
        "saturday": {"start": "09:00", "end": "21:00", "enabled": True},
        "sunday": {"start": "09:00", "end": "21:00", "enabled": True},
        "monday": {"start": "00:00", "end": "00:00", "enabled": False},
        "tuesday": {"start": "09:00", "end": "21:00", "enabled": True},
        "wednesday": {"start": "09:00", "end": "21:00", "enabled": True},
        "thursday": {"start": "09:00", "end": "21:00", "enabled": True},
        "friday": {"start": "14:00", "end": "22:00", "enabled": True},
    },
    "services": [
        {"id": "SRV-001", "name": "Haircut", "duration_minutes": 30, "price": 8.0, "active": True},
        {"id": "SRV-002", "name": "Hair coloring", "duration_minutes": 90, "price": 25.0, "active": True},
        {"id": "SRV-003", "name": "Blow dry", "duration_minutes": 45, "price": 6.0, "active": True},
        {"id": "SRV-004", "name": "Keratin", "duration_minutes": 60, "price": 40.0, "active": False},
    ],
    "settings": {
        "slot_duration_minutes": 30,
        "number_of_stylists": 5,
        "advance_booking_days": 30,
        "cancellation_hours_notice": 24,
    },
    "blocked_dates": ["2025-10-15"],
}

SALON_NOOR = {
    "tenant_id": "salon-noor",
    "salon_info": {"name": "Salon Noor", "country": "KW"},
    "working_hours": {
        "wednesday": {"start": "10:00", "end": "12:00", "enabled": True},
        "thursday": {"start": "10:00", "end": "12:00", "enabled": True},
    },
    "services": [
        {"id": "SRV-001", "name": "Facial", "duration_minutes": 60, "price": 15.0, "active": True},
    ],
    "settings": {
        "slot_duration_minutes": 60,
        "number_of_stylists": 3,
        "max_concurrent_bookings": 1,
        "advance_booking_days": 14,
        "cancellation_hours_notice": 12,
    },
}


def write_tenant(directory, data):
    path = directory / f"{data['tenant_id']}.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def farah_config():
    """Editable copy of the salon-farah tenant file contents."""
    return copy.deepcopy(SALON_FARAH)


@pytest.fixture
def tenants_dir(tmp_path, farah_config):
    directory = tmp_path / "tenants"
    directory.mkdir()
    write_tenant(directory, farah_config)
    write_tenant(directory, SALON_NOOR)
    return directory


@pytest.fixture
def config_provider(tenants_dir):
    return TenantConfigProvider(str(tenants_dir))


@pytest.fixture
def store():
    """In-memory appointment store."""
    store = AppointmentStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def clock():
    return FixedClock(FROZEN_NOW)


@pytest.fixture
def settings(tenants_dir):
    return Settings(database_url="sqlite:///:memory:", tenants_dir=str(tenants_dir))


@pytest.fixture
def booking_service(config_provider, store, clock, settings):
    return BookingService(config_provider, store, clock=clock, settings=settings)


@pytest.fixture
def make_appointment(store):
    """
    Insert an appointment record directly, bypassing the rules.

    Seeded IDs do not use the BK- prefix, so they never shift the
    generated booking sequence.
    """
    counter = {"n": 0}

    def _create(date="2025-10-10", time="14:00", end_time="14:30", **overrides):
        counter["n"] += 1
        record = {
            "booking_id": f"SEED-{counter['n']:03d}",
            "tenant_id": "salon-farah",
            "customer_name": "Existing Customer",
            "phone_number": "+96599887766",
            "service_id": "SRV-001",
            "service_name": "Haircut",
            "service_duration": 30,
            "date": date,
            "time": time,
            "end_time": end_time,
            "status": "confirmed",
            "notes": "",
            "created_at": "2025-10-01T09:00:00+03:00",
            "updated_at": "2025-10-01T09:00:00+03:00",
            "cancelled_at": None,
            "cancellation_reason": None,
        }
        record.update(overrides)
        return store.insert(record)

    return _create
