"""Tests for response formatting."""
from salon_booking.availability import Slot
from salon_booking.formatting import (
    format_available_slots,
    format_booking_success,
    format_error,
    format_find_response,
)
from salon_booking.tenant_config import TenantConfig

APPOINTMENT = {
    "booking_id": "BK-salon-farah-20251010-001",
    "customer_name": "Farah Ali",
    "phone_number": "+96599887766",
    "service_id": "SRV-002",
    "service_name": "Hair coloring",
    "service_duration": 90,
    "date": "2025-10-10",
    "time": "14:00",
    "end_time": "15:30",
    "status": "confirmed",
    "notes": None,
}


def test_format_error_single():
    assert format_error("Booking not found", "NOT_FOUND") == {
        "success": False,
        "errors": ["Booking not found"],
        "message": "Booking not found",
        "code": "NOT_FOUND",
    }


def test_format_error_list_keeps_order():
    response = format_error(["first", "second"])

    assert response["errors"] == ["first", "second"]
    assert response["message"] == "first"
    assert "code" not in response


def test_booking_success(farah_config):
    config = TenantConfig(**farah_config)

    response = format_booking_success(APPOINTMENT, config)

    assert response["success"] is True
    assert response["message"] == "Your appointment at Salon Farah is booked"
    details = response["details"]
    assert details["day"] == "Friday"
    assert details["display_date"] == "10/10/2025"
    assert details["duration"] == "90 minutes"
    assert details["status_label"] == "Confirmed"
    assert details["notes"] == ""
    assert details["salon_phone"] == "+96522334455"


def test_available_slots(farah_config):
    service = TenantConfig(**farah_config).get_service("SRV-001")

    response = format_available_slots([Slot("14:00", 5), Slot("14:30", 2)], "2025-10-10", service)

    assert response["total_available"] == 2
    assert response["available_slots"][1] == {"time": "14:30", "available_slots": 2}
    assert response["message"] == "2 time slot(s) available"


def test_no_slots_message(farah_config):
    service = TenantConfig(**farah_config).get_service("SRV-001")

    response = format_available_slots([], "2025-10-13", service)

    assert response["total_available"] == 0
    assert response["message"] == "No available slots on this date"


def test_find_response(farah_config):
    response = format_find_response([APPOINTMENT], TenantConfig(**farah_config))

    assert response["total"] == 1
    assert response["appointments"][0]["booking_id"] == APPOINTMENT["booking_id"]
