"""Response formatting for transports (HTTP and tool calls).

All responses carry `success`. Failures carry every reason in `errors`
and the first one as `message`.
"""
from typing import Any, Dict, Iterable, List, Optional, Union

from salon_booking.availability import Slot
from salon_booking.clock import format_display_date, parse_date
from salon_booking.tenant_config import ServiceConfig, TenantConfig

STATUS_LABELS = {
    "confirmed": "Confirmed",
    "pending": "Pending",
    "cancelled": "Cancelled",
    "completed": "Completed",
    "no-show": "No-show",
}


def _day_label(day: str) -> str:
    return parse_date(day).strftime("%A")


def format_error(
    errors: Union[str, Iterable[str]],
    code: Optional[str] = None
) -> Dict[str, Any]:
    """
    Format error response.

    Args:
        errors: One reason or a list of reasons
        code: Error kind (VALIDATION_ERROR, NOT_FOUND, ...)
    """
    error_list = [errors] if isinstance(errors, str) else list(errors)
    response = {
        "success": False,
        "errors": error_list,
        "message": error_list[0] if error_list else "",
    }
    if code:
        response["code"] = code
    return response


def format_appointment_details(appointment: Dict[str, Any], config: TenantConfig) -> Dict[str, Any]:
    return {
        "booking_id": appointment["booking_id"],
        "customer_name": appointment["customer_name"],
        "phone_number": appointment["phone_number"],
        "service_id": appointment["service_id"],
        "service": appointment["service_name"],
        "date": appointment["date"],
        "display_date": format_display_date(appointment["date"]),
        "day": _day_label(appointment["date"]),
        "time": appointment["time"],
        "end_time": appointment["end_time"],
        "duration": f"{appointment['service_duration']} minutes",
        "status": appointment["status"],
        "status_label": STATUS_LABELS.get(appointment["status"], appointment["status"]),
        "notes": appointment.get("notes") or "",
        "salon_name": config.salon_info.name,
        "salon_phone": config.salon_info.phone,
    }


def format_booking_success(appointment: Dict[str, Any], config: TenantConfig) -> Dict[str, Any]:
    return {
        "success": True,
        "booking_id": appointment["booking_id"],
        "message": f"Your appointment at {config.salon_info.name} is booked",
        "details": format_appointment_details(appointment, config),
    }


def format_available_slots(
    slots: List[Slot],
    date: str,
    service: ServiceConfig
) -> Dict[str, Any]:
    if slots:
        message = f"{len(slots)} time slot(s) available"
    else:
        message = "No available slots on this date"

    return {
        "success": True,
        "date": date,
        "display_date": format_display_date(date),
        "day": _day_label(date),
        "service": f"{service.name} ({service.duration_minutes} minutes)",
        "service_id": service.id,
        "available_slots": [slot.to_dict() for slot in slots],
        "total_available": len(slots),
        "message": message,
    }


def format_find_response(appointments: List[Dict[str, Any]], config: TenantConfig) -> Dict[str, Any]:
    return {
        "success": True,
        "total": len(appointments),
        "appointments": [format_appointment_details(apt, config) for apt in appointments],
    }


def format_cancellation_response(appointment: Dict[str, Any], config: TenantConfig) -> Dict[str, Any]:
    return {
        "success": True,
        "message": "The appointment has been cancelled",
        "booking_id": appointment["booking_id"],
        "details": {
            "customer_name": appointment["customer_name"],
            "service": appointment["service_name"],
            "date": appointment["date"],
            "time": appointment["time"],
            "status": appointment["status"],
            "salon_name": config.salon_info.name,
            "cancelled_at": appointment["cancelled_at"],
            "cancellation_reason": appointment["cancellation_reason"],
        },
    }


def format_update_response(appointment: Dict[str, Any], config: TenantConfig) -> Dict[str, Any]:
    return {
        "success": True,
        "message": "The appointment has been updated",
        "booking_id": appointment["booking_id"],
        "details": format_appointment_details(appointment, config),
    }
