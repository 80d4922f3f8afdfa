"""Dependency engine.

The engine is the only component that turns rules into field state. For any
field it computes a ``FieldDirective`` (enabled flag, active validators and
an optional forced value) as a pure function of the current values, and it
writes directives to the store through one silent ``apply_batch`` call per
driver change.

Enabling has a single predicate, ``should_be_disabled``. The same predicate
covers rule-driven disabling and the lock placed on option-derived fields
while the option lists are loading or unavailable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from intake.form.constants import NAME_FIELDS
from intake.form.models.field_metadata import FieldDefinition
from intake.form.models.field_value import FieldSource
from intake.form.models.form_state import UNSET, ChangeEvent, FieldChange, FormStateStore
from intake.form.rules import DEFAULT_RULES, RuleSet
from intake.lib.validators import Validator, one_of, sentinel_or

logger = logging.getLogger(__name__)


class SchemaStatus(str, Enum):
    """Availability of the enumerated option lists."""

    IDLE = "idle"  # No option provider involved; no lock, no membership checks
    PENDING = "pending"  # Request outstanding; option fields locked
    READY = "ready"  # Options loaded; membership checks active
    UNAVAILABLE = "unavailable"  # Request failed; option fields stay locked


@dataclass(frozen=True)
class FieldDirective:
    """Computed target state for one field."""

    enabled: bool
    validators: tuple[Validator, ...]
    forced_value: str | None = None
    release_sentinel: bool = False


class DependencyEngine:
    """Applies the rule set to a form state store.

    Example:
        store = FormStateStore()
        engine = DependencyEngine(store)
        engine.attach()
        store.set_value("disability", "NO")
        store.get_value("disability_percentage")  # "NA"
    """

    def __init__(
        self,
        store: FormStateStore,
        rules: RuleSet = DEFAULT_RULES,
        options: Mapping[str, Iterable[str]] | None = None,
    ):
        self.store = store
        self.rules = rules
        self.schema = store.schema
        self.status = SchemaStatus.IDLE
        self._options: dict[str, tuple[str, ...]] = {}
        self._unsubscribe: Callable[[], None] | None = None

        if options is not None:
            self._options = {k: tuple(v) for k, v in options.items()}
            self.status = SchemaStatus.READY

    # Lifecycle

    def attach(self) -> Callable[[], None]:
        """Subscribe to the store and bring every field in line with the rules.

        Returns:
            A callable that detaches the engine again
        """
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_change)
            self.refresh()
        return self.detach

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def _on_change(self, event: ChangeEvent) -> None:
        if self.rules.is_driver(event.field_id):
            self.apply_driver(event.field_id)

    # Option lists

    @property
    def options(self) -> dict[str, tuple[str, ...]]:
        return dict(self._options)

    def set_options(self, options: Mapping[str, Iterable[str]]) -> None:
        """Install fetched option lists and unlock option-derived fields."""
        self._options = {k: tuple(v) for k, v in options.items()}
        self.set_schema_status(SchemaStatus.READY)

    def set_schema_status(self, status: SchemaStatus) -> None:
        if status != self.status:
            logger.debug("Schema status %s -> %s", self.status.value, status.value)
        self.status = status
        self.refresh()

    def is_schema_locked(self, definition: FieldDefinition) -> bool:
        return definition.options_category is not None and self.status in (
            SchemaStatus.PENDING,
            SchemaStatus.UNAVAILABLE,
        )

    def _membership_validator(self, definition: FieldDefinition) -> Validator | None:
        category = definition.options_category
        if not category or self.status != SchemaStatus.READY or category not in self._options:
            return None
        check = one_of(self._options[category], category)
        accepted = tuple(s for s in definition.sentinels if s)
        return sentinel_or(check, accepted) if accepted else check

    # Directives

    def directive_for(self, field_id: str, values: Mapping[str, Any]) -> FieldDirective:
        """Target state of a field for the given values. Pure."""
        definition = self.schema[field_id]
        validators = list(definition.default_validators)
        membership = self._membership_validator(definition)
        if membership is not None:
            validators.append(membership)

        enabled = True
        forced_value: str | None = None
        release = False
        cleared = False

        for rule in self.rules.governing(field_id):
            effect = rule.effect_for(field_id, values.get(rule.driver, ""))
            if effect is None:
                continue
            if rule.primary:
                if effect.enable is not None:
                    enabled = effect.enable
                forced_value = effect.set_value
                release = effect.release_sentinel
                cleared = effect.clear_validators
                validators.extend(effect.validators)
            elif not cleared:
                validators.extend(effect.validators)

        if self.is_schema_locked(definition):
            enabled = False

        return FieldDirective(enabled, tuple(validators), forced_value, release)

    def should_be_disabled(self, field_id: str, values: Mapping[str, Any] | None = None) -> bool:
        """Single enable predicate for every field."""
        if values is None:
            values = self.store.values()
        return not self.directive_for(field_id, values).enabled

    def _changes_for(self, field_ids: Iterable[str], values: Mapping[str, Any]) -> list[FieldChange]:
        changes = []
        for field_id in field_ids:
            directive = self.directive_for(field_id, values)
            definition = self.schema[field_id]
            state = self.store.get_state(field_id)

            value: Any = UNSET
            if directive.forced_value is not None:
                value = directive.forced_value
            elif (
                directive.release_sentinel
                and state.source == FieldSource.RULE
                and definition.is_sentinel(state.value)
            ):
                value = ""

            changes.append(
                FieldChange(
                    field_id,
                    value=value,
                    enabled=directive.enabled,
                    validators=directive.validators,
                    source=FieldSource.RULE,
                )
            )
        return changes

    def apply_driver(self, driver: str) -> list[ChangeEvent]:
        """Apply every rule of a driver in one silent batch."""
        values = self.store.values()
        dependents = self.rules.dependents_of(driver)
        events = self.store.apply_batch(self._changes_for(dependents, values), silent=True)
        logger.debug(
            "Driver '%s'=%r updated %d of %d dependent(s)",
            driver,
            values.get(driver),
            len(events),
            len(dependents),
        )
        return events

    def refresh(self) -> list[ChangeEvent]:
        """Recompute every field once, in one silent batch."""
        values = self.store.values()
        return self.store.apply_batch(self._changes_for(self.schema.ids, values), silent=True)


class UppercaseListener:
    """Rewrites the free-text name fields to uppercase as they change.

    Writes go through the store's silent batch channel, so the listener never
    sees its own rewrite.
    """

    def __init__(self, store: FormStateStore, fields: Iterable[str] = NAME_FIELDS):
        self.store = store
        self.fields = tuple(fields)
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self) -> Callable[[], None]:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_change)
        return self.detach

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, event: ChangeEvent) -> None:
        if event.field_id in self.fields:
            self.normalize([event.field_id])

    def normalize(self, field_ids: Iterable[str] | None = None) -> list[ChangeEvent]:
        """Uppercase the given (default: all watched) fields where needed."""
        changes = []
        for field_id in field_ids if field_ids is not None else self.fields:
            value = self.store.get_value(field_id)
            if isinstance(value, str) and value != value.upper():
                changes.append(FieldChange(field_id, value=value.upper(), source=FieldSource.LOCAL))
        if not changes:
            return []
        return self.store.apply_batch(changes, silent=True)
