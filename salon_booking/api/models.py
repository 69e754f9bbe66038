"""Pydantic models for API request/response validation.

Models check shape only. Date, time, phone and name rules are applied by
the booking rules engine so every reason can be reported together.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class BookAppointmentRequest(BaseModel):
    """Request schema for POST /api/v1/tenants/{tenant_id}/appointments."""
    customer_name: str = Field(..., max_length=200, description="Customer's full name")
    phone_number: str = Field(..., max_length=30, description="Customer phone number")
    service_id: str = Field(..., max_length=50, description="Service ID")
    date: str = Field(..., max_length=10, description="Appointment date (YYYY-MM-DD)")
    time: str = Field(..., max_length=5, description="Appointment time (HH:MM, 24h)")
    notes: str = Field(default="", max_length=1000, description="Optional notes")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "customer_name": "Farah Ali",
                "phone_number": "+96599888777",
                "service_id": "SRV-002",
                "date": "2025-10-11",
                "time": "14:00",
                "notes": ""
            }
        }
    )


class UpdateAppointmentRequest(BaseModel):
    """Request schema for PATCH .../appointments/{booking_id}."""
    new_date: Optional[str] = Field(None, max_length=10, description="New date (YYYY-MM-DD)")
    new_time: Optional[str] = Field(None, max_length=5, description="New time (HH:MM)")
    new_service_id: Optional[str] = Field(None, max_length=50, description="New service ID")
    new_notes: Optional[str] = Field(None, max_length=1000, description="New notes")


class CancelAppointmentRequest(BaseModel):
    """Request schema for POST .../appointments/{booking_id}/cancel."""
    cancellation_reason: str = Field(default="", max_length=500, description="Reason (optional)")


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request envelope for /mcp."""
    jsonrpc: str = Field(..., pattern=r"^2\.0$")
    method: str = Field(..., min_length=1)
    params: Dict[str, Any] = Field(default_factory=dict)
    id: Optional[Union[int, str]] = None


class ErrorResponse(BaseModel):
    """Error response schema."""
    success: bool = False
    errors: List[str] = Field(..., description="Every reason, in order")
    message: str = Field(..., description="First reason")
    code: Optional[str] = Field(None, description="Error code")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "errors": ["Cannot book a date in the past", "Invalid phone number"],
                "message": "Cannot book a date in the past",
                "code": "VALIDATION_ERROR"
            }
        }
    )
