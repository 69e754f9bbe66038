"""Tests for booking rules."""
from datetime import datetime

import pytest

from salon_booking.clock import FixedClock
from salon_booking.errors import BusinessRuleViolation, CancellationNotAllowed, ValidationFailed
from salon_booking.validator import BookingValidator, CheckResult, ValidationResult


@pytest.fixture
def validator(config_provider, clock):
    return BookingValidator(config_provider, clock)


def appointment_at(date, time):
    return {"booking_id": "BK-salon-farah-20251009-001", "date": date, "time": time}


class TestValidateDate:

    def test_valid_date_returns_weekday(self, validator):
        check = validator.validate_date("salon-farah", "2025-10-10")

        assert check.valid is True
        assert check.day_name == "friday"

    def test_today_is_allowed(self, validator):
        assert validator.validate_date("salon-farah", "2025-10-08").valid is True

    @pytest.mark.parametrize("value", ["2025/10/10", "2025-02-30", "tomorrow", ""])
    def test_malformed(self, validator, value):
        check = validator.validate_date("salon-farah", value)

        assert check.valid is False
        assert check.error == f"Invalid date: {value}. Use YYYY-MM-DD"
        assert check.business is False

    def test_past_date(self, validator):
        check = validator.validate_date("salon-farah", "2025-10-07")

        assert check.valid is False
        assert check.error == "Cannot book a date in the past"

    def test_advance_window_edge(self, validator):
        assert validator.validate_date("salon-farah", "2025-11-07").valid is True

        check = validator.validate_date("salon-farah", "2025-11-08")
        assert check.valid is False
        assert check.error == "Cannot book more than 30 days in advance"

    def test_blocked_date(self, validator):
        check = validator.validate_date("salon-farah", "2025-10-15")

        assert check.valid is False
        assert check.error == "This date is not available for booking"

    def test_today_follows_salon_timezone(self, config_provider):
        # 22:00 UTC on the 7th is already the 8th in Kuwait
        clock = FixedClock(datetime.fromisoformat("2025-10-07T22:00:00+00:00"))
        validator = BookingValidator(config_provider, clock)

        assert validator.validate_date("salon-farah", "2025-10-07").valid is False
        assert validator.validate_date("salon-farah", "2025-10-08").valid is True


class TestValidateTime:

    def test_inside_hours(self, validator):
        assert validator.validate_time("salon-farah", "14:00", "friday").valid is True
        assert validator.validate_time("salon-farah", "21:59", "friday").valid is True

    def test_opening_is_inclusive_closing_exclusive(self, validator):
        assert validator.validate_time("salon-farah", "09:00", "sunday").valid is True

        check = validator.validate_time("salon-farah", "21:00", "sunday")
        assert check.valid is False
        assert check.error == "Please choose a time within working hours (09:00 - 21:00)"

    def test_before_opening(self, validator):
        assert validator.validate_time("salon-farah", "13:30", "friday").valid is False

    def test_closed_day(self, validator):
        check = validator.validate_time("salon-farah", "10:00", "monday")

        assert check.valid is False
        assert check.error == "The salon is closed on this day"

    @pytest.mark.parametrize("value", ["2pm", "9:00", "25:00", "14:60", ""])
    def test_malformed(self, validator, value):
        check = validator.validate_time("salon-farah", value, "friday")

        assert check.valid is False
        assert check.error == f"Invalid time: {value}. Use HH:MM (24-hour)"


class TestSimpleChecks:

    def test_service(self, validator):
        check = validator.validate_service("salon-farah", "SRV-002")

        assert check.valid is True
        assert check.service.duration_minutes == 90

    def test_inactive_service(self, validator):
        check = validator.validate_service("salon-farah", "SRV-004")

        assert check.valid is False
        assert check.error == "Service not available: SRV-004"

    @pytest.mark.parametrize("name,valid", [
        ("Farah", True),
        ("Al", True),
        ("  A  ", False),
        ("", False),
        (None, False),
    ])
    def test_customer_name(self, name, valid):
        assert BookingValidator.validate_customer_name(name).valid is valid

    def test_phone_uses_tenant_country(self, validator):
        check = validator.validate_phone("salon-farah", "9988 7766")

        assert check.valid is True
        assert check.formatted == "+96599887766"

    def test_phone_from_another_country(self, validator):
        check = validator.validate_phone("salon-farah", "+966512345678")

        assert check.valid is False
        assert "KW" in check.error

    def test_booking_id(self):
        assert BookingValidator.validate_booking_id("BK-salon-farah-20251010-001").valid is True
        check = BookingValidator.validate_booking_id("APPT-1")
        assert check.valid is False
        assert check.error == "Invalid booking ID: APPT-1"


class TestValidateBookingInput:

    def test_valid_input(self, validator):
        result = validator.validate_booking_input(
            "salon-farah", "Farah Ali", "99887766", "SRV-001", "2025-10-10", "14:00"
        )

        assert result.valid is True
        assert result.errors == []
        assert result.data["phone_number"] == "+96599887766"
        assert result.data["day_name"] == "friday"
        assert result.data["service"].id == "SRV-001"

    def test_accumulates_every_reason(self, validator):
        result = validator.validate_booking_input(
            "salon-farah", "A", "123", "SRV-999", "2025-10-07", "14:00"
        )

        assert result.valid is False
        assert result.errors == [
            "Invalid phone number",
            "Cannot book a date in the past",
            "Service not available: SRV-999",
            "Please enter the customer's name (at least 2 characters)",
        ]

    def test_time_skipped_when_date_invalid(self, validator):
        result = validator.validate_booking_input(
            "salon-farah", "Farah Ali", "99887766", "SRV-001", "not-a-date", "99:99"
        )

        assert result.errors == ["Invalid date: not-a-date. Use YYYY-MM-DD"]

    def test_time_checked_when_date_valid(self, validator):
        result = validator.validate_booking_input(
            "salon-farah", "Farah Ali", "99887766", "SRV-001", "2025-10-10", "10:00"
        )

        assert result.errors == ["Please choose a time within working hours (14:00 - 22:00)"]


class TestValidationResult:

    def test_business_only_failures_raise_business_rule(self):
        result = ValidationResult()
        result.add(CheckResult(False, "Cannot book a date in the past", business=True))

        with pytest.raises(BusinessRuleViolation):
            result.raise_for_errors()

    def test_mixed_failures_raise_validation(self):
        result = ValidationResult()
        result.add(CheckResult(False, "Invalid phone number"))
        result.add(CheckResult(False, "Service not available: X", business=True))

        with pytest.raises(ValidationFailed) as exc_info:
            result.raise_for_errors()

        assert exc_info.value.errors == ["Invalid phone number", "Service not available: X"]

    def test_valid_result_does_not_raise(self):
        result = ValidationResult()
        assert result.add(CheckResult(True)) is True
        result.raise_for_errors()


class TestCancellationNotice:
    """Clock is 2025-10-08 10:00, notice is 24 hours."""

    def test_enough_notice(self, validator):
        # 30 hours ahead
        validator.check_cancellation_notice("salon-farah", appointment_at("2025-10-09", "16:00"))

    def test_exactly_at_notice_boundary(self, validator):
        validator.check_cancellation_notice("salon-farah", appointment_at("2025-10-09", "10:00"))

    def test_insufficient_notice(self, validator):
        # 10 hours ahead
        with pytest.raises(CancellationNotAllowed) as exc_info:
            validator.check_cancellation_notice("salon-farah", appointment_at("2025-10-08", "20:00"))

        assert exc_info.value.message == "Appointments must be cancelled at least 24 hours in advance"
        assert exc_info.value.code == "CANCELLATION_NOT_ALLOWED"

    def test_already_passed(self, validator):
        with pytest.raises(CancellationNotAllowed, match="already passed"):
            validator.check_cancellation_notice("salon-farah", appointment_at("2025-10-08", "09:00"))

    def test_uses_start_time_only(self, validator):
        """A long appointment still running past the notice window does not help."""
        appointment = appointment_at("2025-10-09", "09:00")
        appointment["end_time"] = "12:00"

        with pytest.raises(CancellationNotAllowed):
            validator.check_cancellation_notice("salon-farah", appointment)
