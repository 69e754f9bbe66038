"""Tests for booking identifier generation."""
import pytest

from salon_booking.booking_ids import (
    BookingIdGenerator,
    booking_id_prefix,
    format_booking_id,
    is_valid_booking_id,
    parse_sequence,
)


@pytest.fixture
def generator(store):
    return BookingIdGenerator(store)


def test_prefix():
    assert booking_id_prefix("salon-farah", "2025-10-10") == "BK-salon-farah-20251010-"


def test_format_pads_to_three_digits():
    assert format_booking_id("salon-farah", "2025-10-10", 1) == "BK-salon-farah-20251010-001"
    assert format_booking_id("salon-farah", "2025-10-10", 42) == "BK-salon-farah-20251010-042"


def test_format_widens_past_999():
    assert format_booking_id("salon-farah", "2025-10-10", 1000) == "BK-salon-farah-20251010-1000"


def test_format_rejects_zero():
    with pytest.raises(ValueError):
        format_booking_id("salon-farah", "2025-10-10", 0)


def test_parse_sequence():
    assert parse_sequence("BK-salon-farah-20251010-007") == 7
    assert parse_sequence("BK-salon-farah-20251010-1000") == 1000
    assert parse_sequence("BK-salon-farah-20251010-abc") is None


@pytest.mark.parametrize("booking_id,expected", [
    ("BK-salon-farah-20251010-001", True),
    ("BK-salon-farah-20251010-1000", True),
    ("BK-salon-farah-20251010-01", False),
    ("BK-Salon-Farah-20251010-001", False),
    ("bk-salon-farah-20251010-001", False),
    ("BK-salon-farah-2025101-001", False),
    ("", False),
    (None, False),
])
def test_is_valid_booking_id(booking_id, expected):
    assert is_valid_booking_id(booking_id) is expected


class TestBookingIdGenerator:

    def test_first_three_ids(self, generator, make_appointment):
        """Sequential IDs for one tenant and date: -001, -002, -003."""
        issued = []
        for _ in range(3):
            booking_id = generator.next_booking_id("salon-farah", "2025-10-10")
            make_appointment(booking_id=booking_id)
            issued.append(booking_id)

        assert issued == [
            "BK-salon-farah-20251010-001",
            "BK-salon-farah-20251010-002",
            "BK-salon-farah-20251010-003",
        ]

    def test_sequence_is_per_date(self, generator, make_appointment):
        make_appointment(booking_id="BK-salon-farah-20251010-001")

        assert generator.next_booking_id("salon-farah", "2025-10-11") == "BK-salon-farah-20251011-001"

    def test_sequence_is_per_tenant(self, generator, make_appointment):
        make_appointment(booking_id="BK-salon-farah-20251010-001")

        assert generator.next_booking_id("salon-noor", "2025-10-10") == "BK-salon-noor-20251010-001"

    def test_uses_numeric_maximum(self, generator, make_appointment):
        """-1000 ranks above -999 even though it sorts lower as text."""
        make_appointment(booking_id="BK-salon-farah-20251010-999")
        make_appointment(booking_id="BK-salon-farah-20251010-1000")

        assert generator.next_booking_id("salon-farah", "2025-10-10") == "BK-salon-farah-20251010-1001"

    def test_widens_after_999(self, generator, make_appointment):
        make_appointment(booking_id="BK-salon-farah-20251010-999")

        assert generator.next_booking_id("salon-farah", "2025-10-10") == "BK-salon-farah-20251010-1000"

    def test_gaps_are_not_reused(self, generator, make_appointment):
        make_appointment(booking_id="BK-salon-farah-20251010-001")
        make_appointment(booking_id="BK-salon-farah-20251010-005")

        assert generator.next_booking_id("salon-farah", "2025-10-10") == "BK-salon-farah-20251010-006"

    def test_cancelled_bookings_keep_their_sequence(self, generator, make_appointment):
        make_appointment(booking_id="BK-salon-farah-20251010-001", status="cancelled")

        assert generator.next_booking_id("salon-farah", "2025-10-10") == "BK-salon-farah-20251010-002"
