"""Error types for the booking engine.

Every failure path raises one of these. Transports map them to responses:
- ValidationFailed / BusinessRuleViolation -> 400 with every reason
- NotFoundError -> 404
- ConflictError -> 409
- ConfigurationError -> 500 (operational problem, logged)
"""
from typing import Iterable, List, Union


class BookingError(Exception):
    """Base class carrying one or more human-readable reasons."""

    code = "BOOKING_ERROR"

    def __init__(self, errors: Union[str, Iterable[str]]):
        if isinstance(errors, str):
            errors = [errors]
        self.errors: List[str] = list(errors)
        super().__init__(self.errors[0] if self.errors else self.code)

    @property
    def message(self) -> str:
        """First reason, used as the headline message."""
        return self.errors[0] if self.errors else ""


class ValidationFailed(BookingError):
    """Bad input shape (malformed date/time, name too short, bad phone)."""
    code = "VALIDATION_ERROR"


class BusinessRuleViolation(BookingError):
    """Input is well-formed but breaks a tenant rule."""
    code = "BUSINESS_RULE"


class CapacityExceededError(BusinessRuleViolation):
    """No stylist is free for the requested window."""
    code = "CAPACITY_EXCEEDED"


class CancellationNotAllowed(BusinessRuleViolation):
    """Appointment already past or notice window too short."""
    code = "CANCELLATION_NOT_ALLOWED"


class NotFoundError(BookingError):
    """Unknown booking identifier or service."""
    code = "NOT_FOUND"


class ConflictError(BookingError):
    """Identifier collision that survived every retry, or a record changed mid-update."""
    code = "CONFLICT"


class DuplicateBookingIdError(ConflictError):
    """Raised by the store when a booking_id already exists."""

    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Booking ID already exists: {booking_id}")


class ConfigurationError(BookingError):
    """Tenant policy missing or malformed. Not retried."""
    code = "CONFIGURATION_ERROR"


class TenantNotFoundError(ConfigurationError):
    """No configuration file for the requested tenant."""
    code = "TENANT_NOT_FOUND"

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(f"Tenant configuration not found: {tenant_id}")
