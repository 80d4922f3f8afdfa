"""Form state store: the single writer of field runtime state.

The UI, the dependency engine and the uppercase listener never touch
``FieldState`` objects directly. They call the store:

- ``set_value`` is the user-input path. It marks the field dirty and notifies
  every listener.
- ``apply_batch`` is the programmatic path used by rules, draft restore and
  auto-normalization. All changes are applied before any listener runs, and
  silent batches only reach listeners that asked for silent events, so a
  cascade cannot re-enter the dependency engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from intake.form.messages import describe
from intake.form.models.field_metadata import FIELD_SCHEMA, FieldSchema
from intake.form.models.field_value import FieldSnapshot, FieldSource, FieldState
from intake.lib.errors import FieldDisabledError, UnknownFieldError
from intake.lib.validators import (
    ValidationOutcome,
    Validator,
    run_validators,
    server_error,
)

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class FieldChange:
    """One programmatic change to a field.

    Attributes left at their default (``UNSET`` / ``None``) are not touched.
    """

    field_id: str
    value: Any = UNSET
    enabled: bool | None = None
    validators: tuple[Validator, ...] | None = None
    source: FieldSource = FieldSource.RULE


@dataclass(frozen=True)
class ChangeEvent:
    """Notification sent to store listeners after a change was applied."""

    field_id: str
    old_value: Any
    new_value: Any
    silent: bool
    source: FieldSource

    @property
    def value_changed(self) -> bool:
        return self.old_value != self.new_value


Listener = Callable[[ChangeEvent], None]


class FormStateStore:
    """Runtime container for every field of one form session."""

    def __init__(self, schema: FieldSchema = FIELD_SCHEMA):
        self.schema = schema
        self._states: dict[str, FieldState] = self._initial_states()
        self._listeners: list[tuple[Listener, bool]] = []

    def _initial_states(self) -> dict[str, FieldState]:
        return {
            definition.id: FieldState(definition.id, validators=definition.default_validators)
            for definition in self.schema
        }

    def _state(self, field_id: str) -> FieldState:
        try:
            return self._states[field_id]
        except KeyError:
            raise UnknownFieldError(field_id) from None

    # Reads

    def get_value(self, field_id: str) -> Any:
        return self._state(field_id).value

    def get_state(self, field_id: str) -> FieldSnapshot:
        return self._state(field_id).snapshot()

    def is_enabled(self, field_id: str) -> bool:
        return self._state(field_id).enabled

    def values(self) -> dict[str, Any]:
        """Current value of every field, in schema order."""
        return {field_id: state.value for field_id, state in self._states.items()}

    def snapshot(self) -> dict[str, FieldSnapshot]:
        """Read-only copy of every field state, in schema order."""
        return {field_id: state.snapshot() for field_id, state in self._states.items()}

    def touched_fields(self) -> list[str]:
        return [field_id for field_id, state in self._states.items() if state.touched]

    # Subscriptions

    def subscribe(self, listener: Listener, *, include_silent: bool = False) -> Callable[[], None]:
        """Register a change listener.

        Args:
            listener: Called with a ``ChangeEvent`` for every applied change
            include_silent: Also receive events from silent batches

        Returns:
            A callable that removes the listener again
        """
        entry = (listener, include_silent)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _notify(self, events: list[ChangeEvent]) -> None:
        for event in events:
            for listener, include_silent in list(self._listeners):
                if event.silent and not include_silent:
                    continue
                listener(event)

    # Writes

    def set_value(self, field_id: str, value: Any) -> None:
        """Set a value on behalf of the user and notify every listener."""
        state = self._state(field_id)
        if not state.enabled:
            raise FieldDisabledError(field_id)

        old_value = state.value
        state.value = value
        state.dirty = True
        state.source = FieldSource.LOCAL
        state.server_errors = ()

        self._notify([ChangeEvent(field_id, old_value, value, False, FieldSource.LOCAL)])

    def apply_batch(self, changes: Iterable[FieldChange], *, silent: bool = True) -> list[ChangeEvent]:
        """Apply several changes as one unit.

        Every field id is checked before anything is written, and listeners
        only run once the whole batch is in place.

        Returns:
            The events produced, one per field whose state changed
        """
        changes = list(changes)
        for change in changes:
            self._state(change.field_id)

        events: list[ChangeEvent] = []
        for change in changes:
            state = self._states[change.field_id]
            old_value = state.value
            changed = False

            if change.value is not UNSET:
                # Provenance follows the latest writer even when the value is equal
                state.source = change.source
                if change.value != state.value:
                    state.value = change.value
                    state.server_errors = ()
                    changed = True
            if change.enabled is not None and change.enabled != state.enabled:
                state.enabled = change.enabled
                changed = True
            if change.validators is not None and change.validators != state.validators:
                state.validators = tuple(change.validators)
                changed = True

            if changed:
                events.append(ChangeEvent(change.field_id, old_value, state.value, silent, change.source))

        if events:
            logger.debug("Applied batch of %d change(s)", len(events))
        self._notify(events)
        return events

    def touch(self, field_id: str) -> None:
        self._state(field_id).touched = True

    def mark_touched(self, field_ids: Iterable[str]) -> None:
        """Mark fields touched and dirty so their errors become visible."""
        for field_id in field_ids:
            state = self._state(field_id)
            state.touched = True
            state.dirty = True

    def set_server_errors(self, messages: Mapping[str, Iterable[str]]) -> list[str]:
        """Replace backend-reported errors.

        Messages for ids outside the schema are ignored and logged.

        Returns:
            The field ids that received at least one message
        """
        for state in self._states.values():
            state.server_errors = ()

        applied: list[str] = []
        for field_id, field_messages in messages.items():
            state = self._states.get(field_id)
            if state is None:
                logger.warning("Ignoring server errors for unknown field '%s'", field_id)
                continue
            state.server_errors = tuple(field_messages)
            state.touched = True
            if state.server_errors:
                applied.append(field_id)
        return applied

    def restore(
        self,
        values: Mapping[str, Any],
        *,
        touched: Iterable[str] = (),
        source: FieldSource = FieldSource.DRAFT,
    ) -> list[ChangeEvent]:
        """Load saved values through one silent batch.

        Ids that are not part of the schema are skipped; drafts written by an
        older form may still carry them.
        """
        changes = []
        for field_id, value in values.items():
            if field_id not in self._states:
                logger.warning("Skipping unknown field '%s' in saved values", field_id)
                continue
            changes.append(FieldChange(field_id, value=value, source=source))

        events = self.apply_batch(changes, silent=True)
        self.mark_touched(field_id for field_id in touched if field_id in self._states)
        return events

    def reset(self) -> list[ChangeEvent]:
        """Return every field to its initial state."""
        old_values = self.values()
        self._states = self._initial_states()
        events = [
            ChangeEvent(field_id, old_value, "", True, FieldSource.DEFAULT)
            for field_id, old_value in old_values.items()
            if old_value != ""
        ]
        self._notify(events)
        return events

    # Validation

    def errors_for(self, field_id: str) -> list[ValidationOutcome]:
        """Failing outcomes for a field; disabled fields never fail."""
        state = self._state(field_id)
        if not state.enabled:
            return []

        failures = run_validators(state.validators, state.value, self.values())
        failures.extend(server_error(message) for message in state.server_errors)
        return failures

    def is_valid(self, field_id: str) -> bool:
        return not self.errors_for(field_id)

    def error_message(self, field_id: str) -> str:
        """First error message for a touched field, "" otherwise."""
        if not self._state(field_id).touched:
            return ""
        errors = self.errors_for(field_id)
        return describe(errors[0]) if errors else ""

    def invalid_fields(self) -> list[str]:
        return [field_id for field_id in self._states if not self.is_valid(field_id)]
