"""Validator library for form fields.

Every validator is a pure, total function ``value -> ValidationOutcome``. The
only validator that looks at another field is ``national_id``, which receives
the document type as an explicit ``sibling_value`` argument.

Empty values (``None`` or blank strings) are valid for every validator except
``required``: presence is a separate concern, so an optional field left blank
never reports a format error.

Validators compare equal by ``(name, params)``. Rules build fresh validator
objects on every evaluation, and equality lets the engine detect that the
active validator list did not change.

The module also keeps ``ValidationIssue`` and ``format_validation_report`` for
whole-form reports (normalizer warnings, CLI output).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

__all__ = [
    "ReasonCode",
    "ValidationOutcome",
    "VALID",
    "Validator",
    "DIGIT_RANGES",
    "is_blank",
    "required",
    "integer_range",
    "integer_digits",
    "fixed_length",
    "max_length",
    "national_id",
    "date_format",
    "uppercase",
    "one_of",
    "sentinel_or",
    "email_format",
    "numeric_text",
    "server_error",
    "ValidationSeverity",
    "ValidationIssue",
    "format_validation_report",
]


class ReasonCode(str, Enum):
    """Why a value failed validation."""

    REQUIRED = "required"
    NOT_INTEGER = "not_integer"
    OUT_OF_RANGE = "out_of_range"
    LENGTH_MISMATCH = "length_mismatch"
    TOO_LONG = "too_long"
    NOT_IN_OPTIONS = "not_in_options"
    DATE_FORMAT = "date_format"
    DATE_INVALID = "date_invalid"
    NOT_UPPERCASE = "not_uppercase"
    CEDULA_FORMAT = "cedula_format"
    PASSPORT_FORMAT = "passport_format"
    EMAIL_FORMAT = "email_format"
    NOT_NUMERIC = "not_numeric"
    SERVER = "server"


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of running one validator.

    ``reason`` is None for a valid value. ``details`` carries what a message
    needs (expected length, range bounds, ...).
    """

    reason: Optional[ReasonCode] = None
    details: Tuple[Tuple[str, Any], ...] = ()

    @property
    def valid(self) -> bool:
        return self.reason is None

    @property
    def detail(self) -> Dict[str, Any]:
        return dict(self.details)

    @classmethod
    def invalid(cls, reason: ReasonCode, **details: Any) -> "ValidationOutcome":
        return cls(reason, tuple(sorted(details.items())))

    def __bool__(self) -> bool:
        return self.valid

    def __str__(self) -> str:
        if self.valid:
            return "valid"
        if not self.details:
            return self.reason.value
        args = ", ".join(f"{k}={v!r}" for k, v in self.details)
        return f"{self.reason.value}({args})"


VALID = ValidationOutcome()

# Inclusive bounds for "integer of n digits" fields
DIGIT_RANGES: Dict[int, Tuple[int, int]] = {
    1: (1, 9),
    2: (1, 99),
    3: (0, 999),
    4: (0, 9999),
    5: (0, 99999),
}

INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
CEDULA_PATTERN = re.compile(r"^[0-9]{10}$")
PASSPORT_PATTERN = re.compile(r"^[A-Z0-9]{9}$")
DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Document type codes understood by national_id
CEDULA = "CEDULA"
PASSPORT = "PASAPORTE"


@dataclass(frozen=True)
class Validator:
    """A named, parameterised predicate.

    Attributes:
        name: Validator kind (e.g. "integer_range")
        params: Parameters that identify this instance (e.g. (1, 9))
        check: The predicate itself; excluded from equality
        sibling: Id of the field whose value is passed as ``sibling_value``
    """

    name: str
    params: Tuple[Any, ...] = ()
    check: Callable[..., ValidationOutcome] = field(
        default=lambda value: VALID, compare=False, repr=False
    )
    sibling: Optional[str] = None

    def __call__(self, value: Any, sibling_value: Any = None) -> ValidationOutcome:
        if self.sibling is not None:
            return self.check(value, sibling_value)
        return self.check(value)

    def __str__(self) -> str:
        if not self.params:
            return self.name
        return f"{self.name}{self.params!r}"


def is_blank(value: Any) -> bool:
    """True for None and for strings that are empty after trimming."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _text(value: Any) -> str:
    return str(value).strip()


def required() -> Validator:
    """Value must be present."""

    def check(value: Any) -> ValidationOutcome:
        if is_blank(value):
            return ValidationOutcome.invalid(ReasonCode.REQUIRED)
        return VALID

    return Validator("required", (), check)


def integer_range(min_value: int, max_value: int) -> Validator:
    """Value must parse as a base-10 integer within [min_value, max_value]."""

    def check(value: Any) -> ValidationOutcome:
        if is_blank(value):
            return VALID
        if isinstance(value, bool):
            return ValidationOutcome.invalid(ReasonCode.NOT_INTEGER, value=value)
        if isinstance(value, int):
            number = value
        elif isinstance(value, float):
            if not value.is_integer():
                return ValidationOutcome.invalid(ReasonCode.NOT_INTEGER, value=value)
            number = int(value)
        else:
            text = _text(value)
            if not INTEGER_PATTERN.fullmatch(text):
                return ValidationOutcome.invalid(ReasonCode.NOT_INTEGER, value=value)
            number = int(text, 10)
        if number < min_value or number > max_value:
            return ValidationOutcome.invalid(
                ReasonCode.OUT_OF_RANGE, min=min_value, max=max_value, value=number
            )
        return VALID

    return Validator("integer_range", (min_value, max_value), check)


def integer_digits(digits: int) -> Validator:
    """Integer-range validator for an "integer of n digits" field."""
    try:
        min_value, max_value = DIGIT_RANGES[digits]
    except KeyError:
        raise ValueError(f"No integer range defined for {digits} digit(s)") from None
    return integer_range(min_value, max_value)


def fixed_length(length: int) -> Validator:
    """Value must have exactly ``length`` characters."""

    def check(value: Any) -> ValidationOutcome:
        if is_blank(value):
            return VALID
        actual = len(_text(value))
        if actual != length:
            return ValidationOutcome.invalid(
                ReasonCode.LENGTH_MISMATCH, expected=length, actual=actual
            )
        return VALID

    return Validator("fixed_length", (length,), check)


def max_length(length: int) -> Validator:
    """Value must not exceed ``length`` characters."""

    def check(value: Any) -> ValidationOutcome:
        if is_blank(value):
            return VALID
        actual = len(_text(value))
        if actual > length:
            return ValidationOutcome.invalid(ReasonCode.TOO_LONG, max=length, actual=actual)
        return VALID

    return Validator("max_length", (length,), check)


def national_id(sibling: str = "document_type") -> Validator:
    """Identification number whose format depends on the document type.

    CEDULA requires 10 digits, PASAPORTE 9 alphanumeric characters. Until the
    document type has a value the check is deferred and the value is valid.
    """

    def check(value: Any, document_type: Any) -> ValidationOutcome:
        if is_blank(value) or is_blank(document_type):
            return VALID
        text = _text(value)
        kind = _text(document_type).upper()
        if kind == CEDULA and not CEDULA_PATTERN.match(text):
            return ValidationOutcome.invalid(ReasonCode.CEDULA_FORMAT, expected=10, actual=len(text))
        if kind == PASSPORT and not PASSPORT_PATTERN.match(text.upper()):
            return ValidationOutcome.invalid(ReasonCode.PASSPORT_FORMAT, expected=9, actual=len(text))
        return VALID

    return Validator("national_id", (sibling,), check, sibling=sibling)


def date_format() -> Validator:
    """Value must be YYYY-MM-DD and a real calendar date."""

    def check(value: Any) -> ValidationOutcome:
        if is_blank(value):
            return VALID
        text = _text(value)
        if not DATE_PATTERN.match(text):
            return ValidationOutcome.invalid(ReasonCode.DATE_FORMAT, value=text)
        try:
            datetime.strptime(text, "%Y-%m-%d")
        except ValueError:
            return ValidationOutcome.invalid(ReasonCode.DATE_INVALID, value=text)
        return VALID

    return Validator("date_format", (), check)


def uppercase() -> Validator:
    """Value must equal its own uppercase form. Checks, never coerces."""

    def check(value: Any) -> ValidationOutcome:
        if is_blank(value):
            return VALID
        text = str(value)
        if text != text.upper():
            return ValidationOutcome.invalid(ReasonCode.NOT_UPPERCASE, value=text)
        return VALID

    return Validator("uppercase", (), check)


def one_of(options: Iterable[str], category: str = "") -> Validator:
    """Value must be one of the enumerated option codes."""
    allowed = tuple(options)
    allowed_set = frozenset(allowed)

    def check(value: Any) -> ValidationOutcome:
        if is_blank(value):
            return VALID
        if _text(value) not in allowed_set:
            return ValidationOutcome.invalid(
                ReasonCode.NOT_IN_OPTIONS, category=category, value=_text(value)
            )
        return VALID

    return Validator("one_of", (category, allowed), check)


def sentinel_or(inner: Validator, sentinels: Iterable[str]) -> Validator:
    """Short-circuit to valid on a sentinel value, otherwise delegate."""
    accepted = tuple(sentinels)

    def check(value: Any, sibling_value: Any = None) -> ValidationOutcome:
        if isinstance(value, str) and value.strip() in accepted:
            return VALID
        return inner(value, sibling_value)

    return Validator("sentinel_or", (inner, accepted), check, sibling=inner.sibling)


def email_format() -> Validator:
    """Value must look like an e-mail address."""

    def check(value: Any) -> ValidationOutcome:
        if is_blank(value):
            return VALID
        if not EMAIL_PATTERN.match(_text(value)):
            return ValidationOutcome.invalid(ReasonCode.EMAIL_FORMAT, value=_text(value))
        return VALID

    return Validator("email_format", (), check)


def numeric_text(length: int) -> Validator:
    """Value must be exactly ``length`` digits (phone numbers and the like)."""

    def check(value: Any) -> ValidationOutcome:
        if is_blank(value):
            return VALID
        text = _text(value)
        if len(text) != length:
            return ValidationOutcome.invalid(
                ReasonCode.LENGTH_MISMATCH, expected=length, actual=len(text)
            )
        if not text.isascii() or not text.isdigit():
            return ValidationOutcome.invalid(ReasonCode.NOT_NUMERIC, value=text)
        return VALID

    return Validator("numeric_text", (length,), check)


def server_error(message: str) -> ValidationOutcome:
    """Outcome for a message reported by the backend for one field."""
    return ValidationOutcome.invalid(ReasonCode.SERVER, message=message)


class ValidationSeverity(Enum):
    """Severity of whole-form validation issues."""

    ERROR = "error"  # Blocks submission
    WARNING = "warning"  # Reported, submission proceeds


@dataclass
class ValidationIssue:
    """A whole-form validation issue, keyed by field."""

    severity: ValidationSeverity
    message: str
    field: str
    suggestion: Optional[str] = None

    @classmethod
    def error(cls, field: str, message: str, suggestion: Optional[str] = None) -> "ValidationIssue":
        """Create an ERROR severity issue."""
        return cls(ValidationSeverity.ERROR, message, field, suggestion)

    @classmethod
    def warning(cls, field: str, message: str, suggestion: Optional[str] = None) -> "ValidationIssue":
        """Create a WARNING severity issue."""
        return cls(ValidationSeverity.WARNING, message, field, suggestion)

    def __str__(self) -> str:
        prefix = "ERROR" if self.severity == ValidationSeverity.ERROR else "WARNING"
        result = f"[{prefix}] {self.field}: {self.message}"
        if self.suggestion:
            result += f"\n  Fix: {self.suggestion}"
        return result


def format_validation_report(issues: List[ValidationIssue]) -> str:
    """Format validation issues as a readable report."""
    if not issues:
        return "Form is valid."

    errors = [i for i in issues if i.severity == ValidationSeverity.ERROR]
    warning_issues = [i for i in issues if i.severity == ValidationSeverity.WARNING]

    lines = []

    if errors:
        lines.append(f"Found {len(errors)} error(s):")
        lines.append("-" * 40)
        for error in errors:
            lines.append(str(error))
            lines.append("")

    if warning_issues:
        lines.append(f"Found {len(warning_issues)} warning(s):")
        lines.append("-" * 40)
        for warning_issue in warning_issues:
            lines.append(str(warning_issue))
            lines.append("")

    return "\n".join(lines)


def run_validators(
    validators: Iterable[Validator],
    value: Any,
    siblings: Mapping[str, Any],
) -> List[ValidationOutcome]:
    """Run validators in order and return the failing outcomes."""
    failures: List[ValidationOutcome] = []
    for validator in validators:
        sibling_value = siblings.get(validator.sibling) if validator.sibling else None
        outcome = validator(value, sibling_value)
        if not outcome.valid:
            failures.append(outcome)
    return failures
