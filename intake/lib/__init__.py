"""Shared infrastructure for the intake form.

Errors, logging, environment handling, validators, the backend API client,
draft persistence and spreadsheet export.
"""

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
from intake.lib.env import expand_env_vars, expand_settings, load_env_file
from intake.lib.logging import FormLogger, get_form_logger, setup_logging
from intake.lib.validators import (
    ReasonCode,
    ValidationIssue,
    ValidationOutcome,
    ValidationSeverity,
    Validator,
    format_validation_report,
)

__all__ = [
    # Errors
    "ConfigurationError",
    "FieldDisabledError",
    "IntakeError",
    "LocalValidationError",
    "SchemaUnavailableError",
    "ServerFaultError",
    "SubmissionError",
    "SubmissionInProgressError",
    "SubmissionRejectedError",
    "UnknownFieldError",
    # Environment
    "expand_env_vars",
    "expand_settings",
    "load_env_file",
    # Logging
    "FormLogger",
    "get_form_logger",
    "setup_logging",
    # Validation
    "ReasonCode",
    "ValidationIssue",
    "ValidationOutcome",
    "ValidationSeverity",
    "Validator",
    "format_validation_report",
]
