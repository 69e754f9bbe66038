"""Booking rules: input validation and time-based business rules.

Each check is independent and reports a human-readable reason.
validate_booking_input() runs every applicable check and returns all
reasons together. Time validity needs the weekday from date validity,
so it is skipped when the date is invalid.
"""
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional

from salon_booking.booking_ids import is_valid_booking_id
from salon_booking.clock import Clock, combine, parse_date, parse_time, weekday_name
from salon_booking.config_manager import TenantConfigProvider
from salon_booking.errors import BusinessRuleViolation, CancellationNotAllowed, ValidationFailed
from salon_booking.phone import PhoneNormalizer
from salon_booking.tenant_config import ServiceConfig

MIN_NAME_LENGTH = 2


@dataclass
class CheckResult:
    """Outcome of one rule. `business` marks tenant-state rules."""
    valid: bool
    error: Optional[str] = None
    business: bool = False
    day_name: Optional[str] = None
    service: Optional[ServiceConfig] = None
    formatted: Optional[str] = None


@dataclass
class ValidationResult:
    """Accumulated outcome of a validation pipeline."""
    errors: List[str] = field(default_factory=list)
    business_errors: List[str] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add(self, check: CheckResult) -> bool:
        """Record a failed check; return check.valid."""
        if not check.valid:
            self.errors.append(check.error)
            if check.business:
                self.business_errors.append(check.error)
        return check.valid

    def raise_for_errors(self) -> None:
        """
        Raise with every accumulated reason.

        BusinessRuleViolation when all failures are tenant-rule failures,
        ValidationFailed otherwise.
        """
        if self.valid:
            return
        if len(self.business_errors) == len(self.errors):
            raise BusinessRuleViolation(self.errors)
        raise ValidationFailed(self.errors)


class BookingValidator:
    """State-free rule checks against tenant policy and the clock."""

    def __init__(
        self,
        config_provider: TenantConfigProvider,
        clock: Clock,
        phone_normalizer: Optional[PhoneNormalizer] = None
    ):
        self.config_provider = config_provider
        self.clock = clock
        self.phone_normalizer = phone_normalizer or PhoneNormalizer()

    def validate_date(self, tenant_id: str, date: str) -> CheckResult:
        """
        Real calendar date, not past, within the advance window, not blocked.

        Returns:
            CheckResult with day_name (e.g. 'sunday') on success
        """
        day = parse_date(date)
        if day is None:
            return CheckResult(False, f"Invalid date: {date}. Use YYYY-MM-DD")

        today = self.clock.today()
        if day < today:
            return CheckResult(False, "Cannot book a date in the past", business=True)

        policy = self.config_provider.get_policy(tenant_id)
        max_days = policy.settings.advance_booking_days
        if day > today + timedelta(days=max_days):
            return CheckResult(
                False,
                f"Cannot book more than {max_days} days in advance",
                business=True
            )

        if policy.is_blocked_date(date):
            return CheckResult(False, "This date is not available for booking", business=True)

        return CheckResult(True, day_name=weekday_name(day))

    def validate_time(self, tenant_id: str, time: str, day_name: str) -> CheckResult:
        """
        HH:MM inside [opening, closing) of an enabled weekday.

        A time equal to closing is rejected; whether the service fits before
        closing is left to the availability engine.
        """
        if parse_time(time) is None:
            return CheckResult(False, f"Invalid time: {time}. Use HH:MM (24-hour)")

        hours = self.config_provider.get_working_hours(tenant_id, day_name)
        if not hours.enabled:
            return CheckResult(False, "The salon is closed on this day", business=True)

        if time < hours.start or time >= hours.end:
            return CheckResult(
                False,
                f"Please choose a time within working hours ({hours.start} - {hours.end})",
                business=True
            )

        return CheckResult(True)

    def validate_service(self, tenant_id: str, service_id: str) -> CheckResult:
        service = self.config_provider.get_service(tenant_id, service_id)
        if service is None:
            return CheckResult(False, f"Service not available: {service_id}", business=True)
        return CheckResult(True, service=service)

    @staticmethod
    def validate_customer_name(customer_name: Optional[str]) -> CheckResult:
        if not customer_name or len(customer_name.strip()) < MIN_NAME_LENGTH:
            return CheckResult(False, "Please enter the customer's name (at least 2 characters)")
        return CheckResult(True)

    def validate_phone(self, tenant_id: str, phone_number: Optional[str]) -> CheckResult:
        """Delegate to the phone normalizer using the tenant's country."""
        country = self.config_provider.get_policy(tenant_id).salon_info.country
        result = self.phone_normalizer.normalize(phone_number or "", country)
        if not result.valid:
            return CheckResult(False, result.error)
        return CheckResult(True, formatted=result.formatted)

    @staticmethod
    def validate_booking_id(booking_id: Optional[str]) -> CheckResult:
        if not booking_id or not is_valid_booking_id(booking_id):
            return CheckResult(False, f"Invalid booking ID: {booking_id}")
        return CheckResult(True)

    def validate_booking_input(
        self,
        tenant_id: str,
        customer_name: Optional[str],
        phone_number: Optional[str],
        service_id: Optional[str],
        date: Optional[str],
        time: Optional[str]
    ) -> ValidationResult:
        """
        Run every booking check and accumulate reasons.

        Returns:
            ValidationResult; on success data holds phone_number (E.164),
            day_name and service
        """
        result = ValidationResult()

        phone = self.validate_phone(tenant_id, phone_number)
        if result.add(phone):
            result.data["phone_number"] = phone.formatted

        date_check = self.validate_date(tenant_id, date)
        if result.add(date_check):
            result.data["day_name"] = date_check.day_name
            result.add(self.validate_time(tenant_id, time, date_check.day_name))

        service = self.validate_service(tenant_id, service_id)
        if result.add(service):
            result.data["service"] = service.service

        result.add(self.validate_customer_name(customer_name))

        return result

    def check_cancellation_notice(self, tenant_id: str, appointment: Dict[str, Any]) -> None:
        """
        Enforce the tenant's cancellation notice against the start time.

        Raises:
            CancellationNotAllowed: Appointment already started/past, or
                fewer hours remain than the tenant requires
        """
        notice_hours = self.config_provider.get_policy(tenant_id).settings.cancellation_hours_notice

        start = self.clock.localize(combine(appointment["date"], appointment["time"]))
        hours_until = (start - self.clock.now()).total_seconds() / 3600

        if hours_until < 0:
            raise CancellationNotAllowed("Cannot cancel an appointment that has already passed")

        if hours_until < notice_hours:
            raise CancellationNotAllowed(
                f"Appointments must be cancelled at least {notice_hours:g} hours in advance"
            )
