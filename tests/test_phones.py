from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from contact_book.phones import (
    format_number,
    is_valid_number,
    normalize_number,
    unique_numbers,
)


# ── Normalisation ──────────────────────────────────────────────────────────────

def test_normalize_strips_formatting():
    assert normalize_number("(11) 98765-4321") == "11987654321"
    assert normalize_number("+55 11 3456.7890") == "551134567890"


def test_normalize_non_string_is_empty():
    assert normalize_number(None) == ""
    assert normalize_number(11987654321) == ""


def test_normalize_ascii_digits_only():
    # Arabic-Indic digits are not phone digits here
    assert normalize_number("١٢٣ 45") == "45"


@given(st.text())
def test_normalize_idempotent(s):
    once = normalize_number(s)
    assert normalize_number(once) == once
    assert all(ch in "0123456789" for ch in once)


def test_formatting_variants_match():
    assert normalize_number("(11) 98765-4321") == normalize_number("11987654321")


# ── Validity ───────────────────────────────────────────────────────────────────

def test_valid_lengths():
    assert is_valid_number("(11) 3456-7890")      # 10 digits, landline
    assert is_valid_number("(11) 98765-4321")     # 11 digits, mobile


def test_invalid_lengths():
    assert not is_valid_number("123")
    assert not is_valid_number("987654321")       # 9
    assert not is_valid_number("+55 (11) 98765-4321")  # 13
    assert not is_valid_number("")
    assert not is_valid_number(None)


def test_unique_numbers_keeps_first_spelling():
    out = unique_numbers(["(11) 98765-4321", "11987654321", "1134567890", "--"])
    assert out == ["(11) 98765-4321", "1134567890"]


# ── Display formatting ─────────────────────────────────────────────────────────

def test_format_number_brazil_mobile():
    formatted = format_number("(11) 98765-4321", "BR")
    assert formatted.startswith("+55")
    assert normalize_number(formatted) == "5511987654321"


def test_format_number_unparseable_left_unchanged():
    assert format_number("not-a-number", "BR") == "not-a-number"
    assert format_number("123", "BR") == "123"
