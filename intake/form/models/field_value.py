"""Field runtime state with provenance tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from intake.lib.validators import Validator


class FieldSource(str, Enum):
    """Source of a field's value."""

    DEFAULT = "default"  # Schema default (empty)
    DRAFT = "draft"  # Restored from a saved draft
    LOCAL = "local"  # Entered by the user
    RULE = "rule"  # Forced by a dependency rule


@dataclass
class FieldState:
    """Mutable runtime state of one field.

    Only ``FormStateStore`` creates and mutates these; everything else reads
    immutable ``FieldSnapshot`` copies.

    Attributes:
        name: Field id
        value: Current value ("" when empty)
        enabled: Whether the field accepts input and is validated
        validators: Active validators, defaults first
        touched: The user visited the field or a step validation surfaced it
        dirty: The user changed the value at least once
        source: Where the current value came from
        server_errors: Messages reported by the backend for this field
    """

    name: str
    value: Any = ""
    enabled: bool = True
    validators: tuple[Validator, ...] = ()
    touched: bool = False
    dirty: bool = False
    source: FieldSource = FieldSource.DEFAULT
    server_errors: tuple[str, ...] = field(default=(), repr=False)

    def snapshot(self) -> "FieldSnapshot":
        return FieldSnapshot(
            name=self.name,
            value=self.value,
            enabled=self.enabled,
            validators=self.validators,
            touched=self.touched,
            dirty=self.dirty,
            source=self.source,
            server_errors=self.server_errors,
        )

    def __str__(self) -> str:
        marker = "" if self.enabled else " (disabled)"
        return f"{self.name}={self.value!r}{marker}"


@dataclass(frozen=True)
class FieldSnapshot:
    """Read-only copy of a field's runtime state."""

    name: str
    value: Any
    enabled: bool
    validators: tuple[Validator, ...]
    touched: bool
    dirty: bool
    source: FieldSource
    server_errors: tuple[str, ...] = ()

    def same_state(self, other: "FieldSnapshot") -> bool:
        """Compare value, enabled flag and active validators."""
        return (
            self.value == other.value
            and self.enabled == other.enabled
            and self.validators == other.validators
        )
