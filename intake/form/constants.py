"""Shared constants and helpers for the intake form.

This module provides:
- Sentinel values and well-known driver codes
- The free-text name fields that are auto-uppercased
- Helper predicates for checking driver values
"""

from __future__ import annotations

from typing import Any

# Sentinels
NOT_AVAILABLE = "NA"
NOT_APPLICABLE = "NO_APLICA"
ZERO_AMOUNT = "0"
CLEARED = ""

# Yes/no codes used by every SI/NO driver
AFFIRMATIVE = "SI"
NEGATIVE = "NO"

# Driver codes with special meaning
HOME_COUNTRY = "ECUADOR"
INDIGENOUS = "INDIGENA"
STUDY_ONLY = "SOLO_ESTUDIA"
NO_SCHOLARSHIP = NOT_APPLICABLE

# Document types understood by the national id validator
CEDULA = "CEDULA"
PASSPORT = "PASAPORTE"

# Free-text name fields rewritten to uppercase as the user types
NAME_FIELDS: tuple[str, ...] = (
    "first_surname",
    "second_surname",
    "first_name",
    "second_name",
)

# Fallback for numeric output fields that must be a positive count
NUMERIC_FALLBACK = 1


def normalize_code(value: Any) -> str:
    """Return a driver value as a trimmed code string ("" for empty)."""
    if value is None:
        return ""
    return str(value).strip()


def is_empty(value: Any) -> bool:
    """Check if a driver value has not been chosen yet."""
    return normalize_code(value) == ""


def is_affirmative(value: Any) -> bool:
    """Check if a SI/NO driver is set to SI."""
    return normalize_code(value).upper() == AFFIRMATIVE


def is_negative(value: Any) -> bool:
    """Check if a SI/NO driver is set to NO."""
    return normalize_code(value).upper() == NEGATIVE


def is_home_country(value: Any) -> bool:
    """Check if a country driver points at the home country."""
    return normalize_code(value).upper() == HOME_COUNTRY


def is_indigenous(value: Any) -> bool:
    """Check if the ethnicity driver selects the indigenous option."""
    return normalize_code(value).upper() == INDIGENOUS


def is_study_only(value: Any) -> bool:
    """Check if the occupation driver says the student only studies."""
    return normalize_code(value).upper() == STUDY_ONLY


def has_no_scholarship(value: Any) -> bool:
    """Check if the scholarship type driver is "not applicable"."""
    return normalize_code(value).upper() == NO_SCHOLARSHIP
