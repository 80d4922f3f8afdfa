"""Tests for the intake exception hierarchy."""

import pytest

from intake.lib.errors import (
    ConfigurationError,
    FieldDisabledError,
    IntakeError,
    LocalValidationError,
    SchemaUnavailableError,
    ServerFaultError,
    SubmissionError,
    SubmissionInProgressError,
    SubmissionRejectedError,
    UnknownFieldError,
)
from intake.lib.validators import ValidationIssue


class TestIntakeError:
    """Tests for the base exception."""

    def test_basic_message(self):
        """Should keep the plain message."""
        error = IntakeError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.user_message == "Something went wrong"

    def test_with_field_details_and_suggestion(self):
        """Should include context in the string form."""
        error = IntakeError(
            "Bad value",
            field="mobile",
            details={"value": "abc"},
            suggestion="Use digits only",
        )
        text = str(error)

        assert text.startswith("[mobile]")
        assert "value: abc" in text
        assert "Suggestion: Use digits only" in text
        assert error.message == "Bad value"

    def test_to_dict(self):
        """Should serialize for structured logging."""
        data = FieldDisabledError("disability_type").to_dict()

        assert data["error_type"] == "FieldDisabledError"
        assert data["field"] == "disability_type"
        assert "disabled" in data["message"]

    def test_default_display_time(self):
        assert IntakeError("x").display_seconds == 5.0
        assert ServerFaultError("x").display_seconds == 10.0


class TestSubclasses:
    """Tests for specific failure modes."""

    def test_hierarchy(self):
        for cls in (ConfigurationError, SchemaUnavailableError, LocalValidationError, SubmissionError):
            assert issubclass(cls, IntakeError)
        assert issubclass(SubmissionRejectedError, SubmissionError)
        assert issubclass(ServerFaultError, SubmissionError)

    def test_configuration_error_value(self):
        error = ConfigurationError("Invalid value", value=42)

        assert error.value == 42
        assert error.details["value"] == "42"

    def test_unknown_field_is_key_error(self):
        with pytest.raises(KeyError):
            raise UnknownFieldError("ghost")
        assert str(UnknownFieldError("ghost")) == "Unknown field 'ghost'"

    def test_schema_unavailable_context(self):
        cause = ConnectionError("refused")
        error = SchemaUnavailableError("Could not fetch", url="http://api/enums", cause=cause)

        assert error.details["url"] == "http://api/enums"
        assert error.details["cause_type"] == "ConnectionError"
        assert "reload" in error.suggestion
        assert error.user_message.startswith("No se pudieron cargar")

    def test_local_validation_lists_issues(self):
        issues = [ValidationIssue.error("Número celular", "Este campo es obligatorio")]
        error = LocalValidationError("The form has invalid fields", issues=issues)

        assert error.issues == issues
        assert error.details["issue_count"] == 1
        assert "Número celular" in str(error)

    def test_rejected_user_message(self):
        error = SubmissionRejectedError(
            "Rejected",
            status_code=400,
            messages=["numeroCelular inválido", "correoElectronico inválido"],
            field_messages={"numeroCelular": ["numeroCelular inválido"]},
        )

        assert error.status_code == 400
        assert error.user_message == (
            "Errores de validación:\n- numeroCelular inválido\n- correoElectronico inválido"
        )
        assert error.field_messages == {"numeroCelular": ["numeroCelular inválido"]}

    def test_rejected_without_messages(self):
        assert SubmissionRejectedError("Rejected").user_message == "El servidor rechazó los datos enviados."

    def test_server_fault_includes_detail(self):
        error = ServerFaultError("Boom", status_code=500, messages=["db down"])

        assert error.user_message.endswith("Detalle: db down")

    def test_submission_error_cause(self):
        cause = TimeoutError("slow")
        error = SubmissionError("Unreachable", cause=cause)

        assert error.cause is cause
        assert error.details["cause_type"] == "TimeoutError"
        assert error.user_message == "No se pudo registrar el estudiante. Intente nuevamente."

    def test_in_progress_default_message(self):
        assert SubmissionInProgressError().message == "A submission is already in progress"
