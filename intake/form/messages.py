"""User-facing text for validation outcomes."""

from __future__ import annotations

from intake.lib.validators import DIGIT_RANGES, ReasonCode, ValidationOutcome

FALLBACK_MESSAGE = "Campo inválido"

_FIXED_MESSAGES: dict[ReasonCode, str] = {
    ReasonCode.REQUIRED: "Este campo es obligatorio",
    ReasonCode.NOT_INTEGER: "Debe ser un número entero válido",
    ReasonCode.DATE_FORMAT: "Formato de fecha inválido (yyyy-mm-dd)",
    ReasonCode.DATE_INVALID: "La fecha no existe en el calendario (yyyy-mm-dd)",
    ReasonCode.NOT_UPPERCASE: "Debe estar en MAYÚSCULAS",
    ReasonCode.CEDULA_FORMAT: "La cédula debe tener 10 dígitos numéricos",
    ReasonCode.PASSPORT_FORMAT: "El pasaporte debe tener 9 caracteres alfanuméricos",
    ReasonCode.EMAIL_FORMAT: "Formato de correo electrónico inválido",
    ReasonCode.NOT_NUMERIC: "Debe contener solo números",
}

# Categories with a more specific membership message
_CATEGORY_MESSAGES = {
    "TipoSangre": "Tipo de sangre inválido (ej: A+, B-, O+, etc.)",
}


def _range_message(low: int, high: int) -> str:
    for digits, bounds in DIGIT_RANGES.items():
        if bounds == (low, high) and digits > 1:
            return f"Debe ser un número entero de {digits} dígitos ({low}-{high})"
    return f"Debe ser un número entero entre {low} y {high}"


def describe(outcome: ValidationOutcome) -> str:
    """Render a failed outcome as a message; "" for a valid outcome."""
    if outcome.valid:
        return ""

    reason = outcome.reason
    detail = outcome.detail

    if reason in _FIXED_MESSAGES:
        return _FIXED_MESSAGES[reason]
    if reason == ReasonCode.OUT_OF_RANGE:
        return _range_message(detail["min"], detail["max"])
    if reason == ReasonCode.LENGTH_MISMATCH:
        return f"Debe tener exactamente {detail['expected']} caracteres"
    if reason == ReasonCode.TOO_LONG:
        return f"Máximo {detail['max']} caracteres"
    if reason == ReasonCode.NOT_IN_OPTIONS:
        return _CATEGORY_MESSAGES.get(detail.get("category", ""), "Seleccione una opción válida")
    if reason == ReasonCode.SERVER:
        return str(detail.get("message") or FALLBACK_MESSAGE)
    return FALLBACK_MESSAGE
