"""Structured exception hierarchy for the intake form.

Provides specific exception types for the failure modes of a form session,
with enough context to render a message and to log structured details.

Field-level validation problems are not exceptions: they are returned as
``ValidationOutcome`` values by the validator library.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

__all__ = [
    "IntakeError",
    "ConfigurationError",
    "UnknownFieldError",
    "FieldDisabledError",
    "SchemaUnavailableError",
    "LocalValidationError",
    "SubmissionError",
    "SubmissionRejectedError",
    "ServerFaultError",
    "SubmissionInProgressError",
]


class IntakeError(Exception):
    """Base exception for all intake form errors.

    Provides structured error information for debugging.
    """

    # Seconds a UI should keep the message on screen
    display_seconds: float = 5.0

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.field = field
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if field:
            parts.insert(0, f"[{field}]")

        if details:
            detail_lines = [f"  {k}: {v}" for k, v in details.items()]
            parts.append("\nDetails:")
            parts.extend(detail_lines)

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else message)
        self.message = message

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the person filling the form."""
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "field": self.field,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class ConfigurationError(IntakeError):
    """Error in the static form configuration.

    Raised when the field schema, the dependency rule set or the settings
    file are inconsistent.
    """

    def __init__(
        self,
        message: str,
        *,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        self.value = value

        details = kwargs.pop("details", {})
        if value is not None:
            details["value"] = str(value)

        super().__init__(message, details=details, **kwargs)


class UnknownFieldError(IntakeError, KeyError):
    """A field id that is not part of the schema was used."""

    def __init__(self, field_id: str) -> None:
        super().__init__(
            f"Unknown field '{field_id}'",
            field=field_id,
            suggestion="Use one of the ids declared in intake.form.models.FIELD_SCHEMA",
        )

    def __str__(self) -> str:
        return self.message


class FieldDisabledError(IntakeError):
    """A user edit targeted a field that a rule currently keeps disabled."""

    def __init__(self, field_id: str) -> None:
        super().__init__(
            f"Field '{field_id}' is disabled and cannot be edited",
            field=field_id,
        )


class SchemaUnavailableError(IntakeError):
    """The enumerated option lists could not be fetched.

    The form stays blocked (option-derived fields disabled) until the user
    retries manually.
    """

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        cause: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        self.url = url
        self.cause = cause

        details = kwargs.pop("details", {})
        if url:
            details["url"] = url
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = "Check that the API is reachable, then reload the option lists."

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)

    @property
    def user_message(self) -> str:
        return (
            "No se pudieron cargar los catálogos del formulario. "
            "Verifique su conexión y vuelva a intentarlo."
        )


class LocalValidationError(IntakeError):
    """The form did not pass local validation, so nothing was sent."""

    def __init__(
        self,
        message: str,
        *,
        issues: Optional[List[Any]] = None,
        **kwargs: Any,
    ) -> None:
        self.issues = list(issues or [])

        details = kwargs.pop("details", {})
        if self.issues:
            details["issue_count"] = len(self.issues)

        if self.issues:
            issue_lines = "\n".join(f"  - {issue}" for issue in self.issues)
            message = f"{message}\n\nIssues found:\n{issue_lines}"

        super().__init__(message, details=details, **kwargs)


class SubmissionError(IntakeError):
    """Generic submission failure reported by the transport."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        messages: Optional[List[str]] = None,
        cause: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        self.status_code = status_code
        self.messages = list(messages or [])
        self.cause = cause

        details = kwargs.pop("details", {})
        if status_code is not None:
            details["status_code"] = status_code
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(message, details=details, **kwargs)

    @property
    def user_message(self) -> str:
        return "No se pudo registrar el estudiante. Intente nuevamente."


class SubmissionRejectedError(SubmissionError):
    """The backend rejected the record with field-level validation messages."""

    def __init__(
        self,
        message: str,
        *,
        field_messages: Optional[Dict[str, List[str]]] = None,
        **kwargs: Any,
    ) -> None:
        self.field_messages = dict(field_messages or {})
        super().__init__(message, **kwargs)

    @property
    def user_message(self) -> str:
        if not self.messages:
            return "El servidor rechazó los datos enviados."
        return "Errores de validación:\n" + "\n".join(f"- {m}" for m in self.messages)


class ServerFaultError(SubmissionError):
    """Backend-side failure; shown longer and with the raw detail."""

    display_seconds = 10.0

    @property
    def user_message(self) -> str:
        text = (
            "Lo sentimos, ocurrió un error en el servidor al registrar "
            "el estudiante."
        )
        if self.messages:
            text += " Detalle: " + "; ".join(self.messages)
        return text


class SubmissionInProgressError(IntakeError):
    """A submission is already outstanding; the new attempt was rejected."""

    def __init__(self, message: str = "A submission is already in progress", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
