"""Booking tools exposed to assistants over JSON-RPC (tools/list, tools/call).

Each tool has a name, a description and a JSON schema for its arguments.
Descriptions are read by the calling model, so keep them precise.
Tool calls never raise for booking failures: they return a formatted
response with success=False and every reason.
"""
from typing import Any, Callable, Dict, List

from salon_booking.booking_service import BookingService
from salon_booking.errors import BookingError, ConfigurationError, TenantNotFoundError, ValidationFailed
from salon_booking.formatting import (
    format_available_slots,
    format_booking_success,
    format_cancellation_response,
    format_error,
    format_find_response,
    format_update_response,
)
from salon_booking.logging_config import get_logger

logger = get_logger(__name__)

_TENANT = {"type": "string", "description": "Salon identifier (e.g., 'salon-farah')"}
_BOOKING_ID = {"type": "string", "description": "Booking ID (BK-{tenant}-{YYYYMMDD}-{seq})"}

TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": "book_appointment",
        "description": "Book a new appointment for a customer at a salon",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tenant_id": _TENANT,
                "customer_name": {"type": "string", "description": "Customer's full name"},
                "phone_number": {"type": "string", "description": "Customer phone, e.g. +965XXXXXXXX"},
                "service_id": {"type": "string", "description": "Service ID from the salon config (e.g., 'SRV-002')"},
                "date": {"type": "string", "description": "Appointment date (YYYY-MM-DD)"},
                "time": {"type": "string", "description": "Appointment time (HH:MM, 24h)"},
                "notes": {"type": "string", "description": "Optional notes from the customer"},
            },
            "required": ["tenant_id", "customer_name", "phone_number", "service_id", "date", "time"],
        },
    },
    {
        "name": "get_available_slots",
        "description": "Get available time slots for a specific date and service",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tenant_id": _TENANT,
                "date": {"type": "string", "description": "Date to check (YYYY-MM-DD)"},
                "service_id": {"type": "string", "description": "Service ID (sets the slot length)"},
            },
            "required": ["tenant_id", "date", "service_id"],
        },
    },
    {
        "name": "find_appointment",
        "description": "Find appointment by booking ID or phone number",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tenant_id": _TENANT,
                "booking_id": {**_BOOKING_ID, "description": "Booking ID (optional)"},
                "phone_number": {"type": "string", "description": "Customer phone number (optional)"},
            },
            "required": ["tenant_id"],
        },
    },
    {
        "name": "update_appointment",
        "description": "Change the date, time, service or notes of an existing appointment",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tenant_id": _TENANT,
                "booking_id": _BOOKING_ID,
                "new_date": {"type": "string", "description": "New date (YYYY-MM-DD, optional)"},
                "new_time": {"type": "string", "description": "New time (HH:MM, optional)"},
                "new_service_id": {"type": "string", "description": "New service ID (optional)"},
                "new_notes": {"type": "string", "description": "New notes (optional)"},
            },
            "required": ["tenant_id", "booking_id"],
        },
    },
    {
        "name": "cancel_appointment",
        "description": "Cancel an appointment (subject to the salon's notice policy)",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tenant_id": _TENANT,
                "booking_id": _BOOKING_ID,
                "cancellation_reason": {"type": "string", "description": "Reason (optional)"},
            },
            "required": ["tenant_id", "booking_id"],
        },
    },
]

_SCHEMAS = {tool["name"]: tool["inputSchema"] for tool in TOOL_DEFINITIONS}


class UnknownToolError(LookupError):
    """Raised for a tools/call naming no registered tool."""


class ToolDispatcher:
    """Routes tool calls to BookingService and formats the outcome."""

    def __init__(self, service: BookingService):
        self.service = service
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            "book_appointment": self._book,
            "get_available_slots": self._slots,
            "find_appointment": self._find,
            "update_appointment": self._update,
            "cancel_appointment": self._cancel,
        }

    @staticmethod
    def list_tools() -> List[Dict[str, Any]]:
        return TOOL_DEFINITIONS

    def call(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run a tool.

        Raises:
            UnknownToolError: name is not a registered tool
        """
        handler = self._handlers.get(name) if isinstance(name, str) else None
        if handler is None:
            raise UnknownToolError(f"Unknown tool: {name}")

        arguments = arguments or {}
        try:
            self._check_arguments(name, arguments)
            return handler(arguments)
        except TenantNotFoundError as e:
            return format_error(e.errors, e.code)
        except ConfigurationError as e:
            logger.error("tool_configuration_error", tool=name, error=e.message)
            return format_error(e.errors, e.code)
        except BookingError as e:
            return format_error(e.errors, e.code)

    @staticmethod
    def _check_arguments(name: str, arguments: Dict[str, Any]) -> None:
        if not isinstance(arguments, dict):
            raise ValidationFailed("Tool arguments must be an object")

        schema = _SCHEMAS[name]
        missing = [key for key in schema["required"] if not arguments.get(key)]
        reasons = [f"Missing required field: {key}" for key in missing]
        # Every declared argument is a string
        reasons += [
            f"Field must be a string: {key}"
            for key in schema["properties"]
            if key not in missing and arguments.get(key) is not None and not isinstance(arguments[key], str)
        ]
        if reasons:
            raise ValidationFailed(reasons)

    def _policy(self, tenant_id: str):
        return self.service.config_provider.get_policy(tenant_id)

    def _book(self, args: Dict[str, Any]) -> Dict[str, Any]:
        appointment = self.service.book_appointment(
            tenant_id=args["tenant_id"],
            customer_name=args["customer_name"],
            phone_number=args["phone_number"],
            service_id=args["service_id"],
            date=args["date"],
            time=args["time"],
            notes=args.get("notes", ""),
        )
        return format_booking_success(appointment, self._policy(args["tenant_id"]))

    def _slots(self, args: Dict[str, Any]) -> Dict[str, Any]:
        result = self.service.get_available_slots(
            args["tenant_id"], args["date"], args["service_id"]
        )
        return format_available_slots(result["slots"], result["date"], result["service"])

    def _find(self, args: Dict[str, Any]) -> Dict[str, Any]:
        appointments = self.service.find_appointment(
            args["tenant_id"],
            booking_id=args.get("booking_id"),
            phone_number=args.get("phone_number"),
        )
        return format_find_response(appointments, self._policy(args["tenant_id"]))

    def _update(self, args: Dict[str, Any]) -> Dict[str, Any]:
        appointment = self.service.update_appointment(
            args["tenant_id"],
            args["booking_id"],
            new_date=args.get("new_date"),
            new_time=args.get("new_time"),
            new_service_id=args.get("new_service_id"),
            new_notes=args.get("new_notes"),
        )
        return format_update_response(appointment, self._policy(args["tenant_id"]))

    def _cancel(self, args: Dict[str, Any]) -> Dict[str, Any]:
        appointment = self.service.cancel_appointment(
            args["tenant_id"],
            args["booking_id"],
            cancellation_reason=args.get("cancellation_reason", ""),
        )
        return format_cancellation_response(appointment, self._policy(args["tenant_id"]))
