from __future__ import annotations

import re

import phonenumbers
from phonenumbers import NumberParseException

_NON_DIGITS = re.compile(r"\D+", re.ASCII)

# Landline (10) or mobile with the extra leading 9 (11), area code included.
VALID_LENGTHS = (10, 11)


# ── Normalisation ──────────────────────────────────────────────────────────────

def normalize_number(value: object) -> str:
    """Return only the digits of *value*; non-strings normalise to ''."""
    if not isinstance(value, str):
        return ""
    return _NON_DIGITS.sub("", value)


def is_valid_number(value: object) -> bool:
    return len(normalize_number(value)) in VALID_LENGTHS


def unique_numbers(numbers: list[str]) -> list[str]:
    """Drop numbers whose normalised form was already seen, keeping first spelling."""
    seen: set[str] = set()
    out: list[str] = []
    for n in numbers:
        key = normalize_number(n)
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(n)
    return out


# ── Display formatting ─────────────────────────────────────────────────────────

def format_number(value: str, region: str = "BR") -> str:
    """Format as pretty international, e.g. +55 11 98765-4321.

    Numbers that cannot be parsed or validated are returned unchanged.
    """
    try:
        parsed = phonenumbers.parse(value, region)
    except NumberParseException:
        return value
    if not (phonenumbers.is_possible_number(parsed) and phonenumbers.is_valid_number(parsed)):
        return value
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.INTERNATIONAL)

