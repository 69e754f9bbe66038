"""Phone number normalization to E.164.

Counts digits only and ignores formatting characters (spaces, hyphens,
parentheses, dots). Each supported country declares its calling code,
national number length and allowed leading digits.
"""
import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

INVALID_PHONE = "Invalid phone number"


@dataclass(frozen=True)
class CountryRule:
    """Numbering plan for one country."""
    calling_code: str
    national_length: int
    leading_digits: Tuple[str, ...]


COUNTRY_RULES: Dict[str, CountryRule] = {
    # Kuwait: 8-digit numbers, mobiles 5/6/9, landlines 2
    "KW": CountryRule("965", 8, ("2", "5", "6", "9")),
    "SA": CountryRule("966", 9, ("1", "5")),
    "AE": CountryRule("971", 9, ("2", "3", "4", "5", "6", "7", "9")),
    "BH": CountryRule("973", 8, ("1", "3", "6")),
    "QA": CountryRule("974", 8, ("3", "4", "5", "6", "7")),
    "OM": CountryRule("968", 8, ("2", "7", "9")),
}

_CALLING_CODES = {rule.calling_code: country for country, rule in COUNTRY_RULES.items()}
_FORMATTING = re.compile(r"[\s\-().]")


@dataclass(frozen=True)
class PhoneResult:
    valid: bool
    formatted: Optional[str] = None
    error: Optional[str] = None


class PhoneNormalizer:
    """Parse raw input into a canonical +<code><national> string."""

    def normalize(self, raw: str, country: str = "KW") -> PhoneResult:
        """
        Validate and canonicalize a phone number.

        Args:
            raw: User-supplied number (local or international form)
            country: ISO alpha-2 country the number must belong to

        Returns:
            PhoneResult with E.164 `formatted` on success

        Example:
            >>> PhoneNormalizer().normalize("9999 1234").formatted
            '+96599991234'
        """
        rule = COUNTRY_RULES.get(country.upper())
        if rule is None:
            return PhoneResult(False, error=f"Unsupported phone country: {country}")

        if not raw or not isinstance(raw, str):
            return PhoneResult(False, error=INVALID_PHONE)

        cleaned = _FORMATTING.sub("", raw.strip())
        if cleaned.startswith("00"):
            cleaned = "+" + cleaned[2:]

        if cleaned.startswith("+"):
            digits = cleaned[1:]
            if not digits.isdigit():
                return PhoneResult(False, error=INVALID_PHONE)
            owner = self._country_for(digits)
            if owner is None:
                return PhoneResult(False, error=INVALID_PHONE)
            if owner != country.upper():
                return PhoneResult(
                    False,
                    error=f"Phone number must be a {country.upper()} number (+{rule.calling_code})"
                )
            national = digits[len(rule.calling_code):]
        else:
            if not cleaned.isdigit():
                return PhoneResult(False, error=INVALID_PHONE)
            national = cleaned
            # Local input that still carries the calling code without "+"
            if (len(national) == len(rule.calling_code) + rule.national_length
                    and national.startswith(rule.calling_code)):
                national = national[len(rule.calling_code):]

        if len(national) != rule.national_length:
            return PhoneResult(False, error=INVALID_PHONE)
        if not national.startswith(rule.leading_digits):
            return PhoneResult(False, error=INVALID_PHONE)

        return PhoneResult(True, formatted=f"+{rule.calling_code}{national}")

    @staticmethod
    def _country_for(digits: str) -> Optional[str]:
        for length in (1, 2, 3):
            country = _CALLING_CODES.get(digits[:length])
            if country:
                return country
        return None
