"""FastAPI dependency injection functions."""
from fastapi import Request

from salon_booking.booking_service import BookingService
from salon_booking.config_manager import TenantConfigProvider
from salon_booking.settings import Settings
from salon_booking.store import AppointmentStore
from salon_booking.tools import ToolDispatcher


def build_booking_service(settings: Settings) -> BookingService:
    """
    Wire provider, store and clock from settings.

    Pattern: build once at startup, share across requests.
    """
    return BookingService(
        config_provider=TenantConfigProvider(settings.tenants_dir),
        store=AppointmentStore(settings.database_url),
        settings=settings,
    )


def get_booking_service(request: Request) -> BookingService:
    """Booking service attached to the running app."""
    return request.app.state.booking_service


def get_tool_dispatcher(request: Request) -> ToolDispatcher:
    return request.app.state.tool_dispatcher
