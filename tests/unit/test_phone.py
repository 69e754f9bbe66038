"""Tests for phone number normalization."""
import pytest

from salon_booking.phone import INVALID_PHONE, PhoneNormalizer


@pytest.fixture
def normalizer():
    return PhoneNormalizer()


class TestKuwaitNumbers:
    """Kuwait is the default country."""

    @pytest.mark.parametrize("raw", [
        "+96599887766",
        "0096599887766",
        "99887766",
        "9988 7766",
        "+965 9988-7766",
        "(+965) 9988.7766",
        "96599887766",
    ])
    def test_formats_to_e164(self, normalizer, raw):
        result = normalizer.normalize(raw)

        assert result.valid is True
        assert result.formatted == "+96599887766"
        assert result.error is None

    def test_landline_accepted(self, normalizer):
        assert normalizer.normalize("22334455").formatted == "+96522334455"

    def test_wrong_length_rejected(self, normalizer):
        result = normalizer.normalize("9988776")

        assert result.valid is False
        assert result.error == INVALID_PHONE

    def test_bad_leading_digit_rejected(self, normalizer):
        assert normalizer.normalize("19988776").valid is False

    def test_letters_rejected(self, normalizer):
        assert normalizer.normalize("9988abcd").valid is False

    @pytest.mark.parametrize("raw", ["", None, "   "])
    def test_empty_rejected(self, normalizer, raw):
        assert normalizer.normalize(raw).error == INVALID_PHONE


class TestCountryMatching:

    def test_other_gulf_country_rejected_for_kuwait(self, normalizer):
        result = normalizer.normalize("+966512345678", "KW")

        assert result.valid is False
        assert result.error == "Phone number must be a KW number (+965)"

    def test_unknown_calling_code_rejected(self, normalizer):
        assert normalizer.normalize("+15551234567").error == INVALID_PHONE

    def test_saudi_number_for_saudi_tenant(self, normalizer):
        assert normalizer.normalize("512345678", "SA").formatted == "+966512345678"
        assert normalizer.normalize("+966 51 234 5678", "sa").formatted == "+966512345678"

    def test_unsupported_country(self, normalizer):
        result = normalizer.normalize("99887766", "FR")

        assert result.valid is False
        assert "Unsupported phone country" in result.error
