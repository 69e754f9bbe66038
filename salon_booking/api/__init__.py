"""API package initialization."""
from salon_booking.api.models import BookAppointmentRequest, ErrorResponse, JsonRpcRequest

__all__ = ["BookAppointmentRequest", "ErrorResponse", "JsonRpcRequest"]
