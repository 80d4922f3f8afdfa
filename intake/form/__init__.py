"""Registration form engine.

The field schema, dependency rules and runtime state are UI-agnostic; a
rendering layer reads snapshots and calls setters on ``FormSession``.

Usage:
    from intake.form import FormSession
    from intake.lib.api import StudentApiClient

    with StudentApiClient("http://localhost:3000") as client:
        with FormSession(client, client) as session:
            session.set_value("document_type", "CEDULA")
"""

from __future__ import annotations

__all__ = [
    "DependencyEngine",
    "FormSession",
    "StepController",
    "SubmissionNormalizer",
]


def __getattr__(name: str):
    """Lazy import of form components."""
    if name == "DependencyEngine":
        from intake.form.engine import DependencyEngine
        return DependencyEngine
    if name == "FormSession":
        from intake.form.session import FormSession
        return FormSession
    if name == "StepController":
        from intake.form.steps import StepController
        return StepController
    if name == "SubmissionNormalizer":
        from intake.form.normalizer import SubmissionNormalizer
        return SubmissionNormalizer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
