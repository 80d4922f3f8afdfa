"""UI-agnostic state for the registration form.

This module provides the static field schema and the runtime state store.
Nothing here depends on a rendering layer: a UI reads snapshots and calls the
store's setters, and tests drive the same API directly.
"""

from intake.form.models.field_value import FieldSnapshot, FieldSource, FieldState
from intake.form.models.field_metadata import (
    FIELD_SCHEMA,
    FieldDefinition,
    FieldKind,
    FieldSchema,
    get_field,
)
from intake.form.models.form_state import (
    UNSET,
    ChangeEvent,
    FieldChange,
    FormStateStore,
)

__all__ = [
    "FIELD_SCHEMA",
    "ChangeEvent",
    "FieldChange",
    "FieldDefinition",
    "FieldKind",
    "FieldSchema",
    "FieldSnapshot",
    "FieldSource",
    "FieldState",
    "FormStateStore",
    "UNSET",
    "get_field",
]
