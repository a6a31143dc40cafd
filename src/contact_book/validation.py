from __future__ import annotations

from typing import Any

from .errors import ValidationError
from .model import ContactInput
from .phones import is_valid_number, unique_numbers

MAX_TEXT = 200
MAX_NAME = 100
MAX_PHONE = 20
MIN_AGE, MAX_AGE = 1, 150


def sanitize(value: Any) -> Any:
    """Trim and truncate strings; everything else passes through."""
    if not isinstance(value, str):
        return value
    return value.strip()[:MAX_TEXT]


def _age_absent(age: Any) -> bool:
    return age is None or (isinstance(age, str) and not age.strip())


def parse_age(age: Any) -> int | None:
    """Return the age as an int, None when absent. Raises ValueError if not in range."""
    if _age_absent(age):
        return None
    if isinstance(age, bool):
        raise ValueError(age)
    if isinstance(age, float):
        if not age.is_integer():
            raise ValueError(age)
        age = int(age)
    n = int(str(age).strip()) if not isinstance(age, int) else age
    if n < MIN_AGE or n > MAX_AGE:
        raise ValueError(age)
    return n


def validate_contact(name: Any, age: Any) -> list[tuple[str, str]]:
    """Return (field, message) pairs; empty when the contact fields are valid."""
    errors: list[tuple[str, str]] = []
    if not isinstance(name, str) or not name.strip():
        errors.append(("name", "Name is required"))
    elif len(name.strip()) > MAX_NAME:
        errors.append(("name", f"Name must be at most {MAX_NAME} characters"))

    try:
        parse_age(age)
    except (TypeError, ValueError):
        errors.append(("age", f"Age must be between {MIN_AGE} and {MAX_AGE}"))
    return errors


def parse_contact_payload(body: dict) -> ContactInput:
    """Validate a create/update body and return the sanitised input.

    Phones with the wrong digit count are dropped; the request only fails
    when none are left.
    """
    if not isinstance(body, dict):
        raise ValidationError("body", "Request body must be a JSON object")

    name = body.get("name")
    age = body.get("age")
    errors = validate_contact(name, age)
    if errors:
        field = errors[0][0]
        raise ValidationError(field, ", ".join(msg for _, msg in errors))

    phones = body.get("phones")
    if not isinstance(phones, list) or not phones:
        raise ValidationError("phones", "At least one phone is required")

    valid = [
        p for p in phones
        if isinstance(p, str) and len(p.strip()) <= MAX_PHONE and is_valid_number(p)
    ]
    if not valid:
        raise ValidationError(
            "phones", "No valid phone provided (10 or 11 digits required)"
        )

    return ContactInput(
        name=sanitize(name),
        age=parse_age(age),
        phones=unique_numbers([sanitize(p) for p in valid]),
    )
