"""Submission normalizer: form snapshot -> canonical output record.

The normalizer is a pure function of its input. Rule state is re-derived
from the driver values in the snapshot, so a stale value left in a field
whose feature is inactive never reaches the backend, whatever the store
currently says about that field.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from intake.form.constants import NUMERIC_FALLBACK
from intake.form.models.field_metadata import FIELD_SCHEMA, FieldDefinition, FieldSchema
from intake.form.models.field_value import FieldSnapshot
from intake.form.rules import DEFAULT_RULES, RuleSet
from intake.lib.validators import INTEGER_PATTERN, ValidationIssue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizationResult:
    """Canonical record plus diagnostics collected while building it."""

    record: dict[str, Any]
    warnings: tuple[ValidationIssue, ...] = ()

    @property
    def empty_required(self) -> list[str]:
        """Backend names of required keys that were emitted empty."""
        return [w.field for w in self.warnings if w.message == EMPTY_REQUIRED_MESSAGE]


EMPTY_REQUIRED_MESSAGE = "Required field is empty"
FALLBACK_MESSAGE = "Numeric value replaced by fallback"


def _raw_value(item: Any) -> Any:
    return item.value if isinstance(item, FieldSnapshot) else item


class SubmissionNormalizer:
    """Builds canonical output records.

    Rules, in order:
    1. A value forced by the field's primary rule replaces whatever is stored.
    2. A field its rule disables emits its sentinel when the backend requires
       the key, and is left out otherwise.
    3. Text is trimmed. Empty optional fields are left out; empty required
       fields keep their key and produce a warning.
    4. Numeric fields become ints; empty required, sentinel and unparsable
       values fall back to ``NUMERIC_FALLBACK``.
    """

    def __init__(self, schema: FieldSchema = FIELD_SCHEMA, rules: RuleSet = DEFAULT_RULES):
        self.schema = schema
        self.rules = rules

    def normalize(self, snapshot: Mapping[str, Any]) -> NormalizationResult:
        """Normalize a store snapshot or a plain ``{field_id: value}`` mapping."""
        values = {field_id: _raw_value(item) for field_id, item in snapshot.items()}
        record: dict[str, Any] = {}
        warnings: list[ValidationIssue] = []

        for definition in self.schema:
            if self._excluded(definition, values):
                continue
            value = self._resolved_value(definition, values)
            if isinstance(value, str):
                value = value.strip()
            if value is None:
                value = ""

            if value == "":
                if not definition.backend_required:
                    continue
                warnings.append(
                    ValidationIssue.warning(
                        definition.backend_name,
                        EMPTY_REQUIRED_MESSAGE,
                        suggestion=f"Fill in '{definition.label}' before submitting",
                    )
                )
                if not definition.numeric:
                    record[definition.backend_name] = ""
                    continue

            if definition.numeric:
                value = self._coerce_number(definition, value, warnings)

            record[definition.backend_name] = value

        if warnings:
            logger.debug("Normalization produced %d warning(s)", len(warnings))
        return NormalizationResult(record, tuple(warnings))

    def _excluded(self, definition: FieldDefinition, values: Mapping[str, Any]) -> bool:
        """Optional fields are only sent while their rule enables them."""
        if definition.backend_required:
            return False
        rule = self.rules.primary_for(definition.id)
        if rule is None:
            return False
        effect = rule.effect_for(definition.id, values.get(rule.driver, ""))
        return effect is not None and effect.enable is False

    def _resolved_value(self, definition: FieldDefinition, values: Mapping[str, Any]) -> Any:
        value = values.get(definition.id, "")
        rule = self.rules.primary_for(definition.id)
        if rule is None:
            return value

        effect = rule.effect_for(definition.id, values.get(rule.driver, ""))
        if effect is None:
            return value
        if effect.set_value is not None:
            return effect.set_value
        if effect.enable is False:
            return definition.disabled_value
        return value

    def _coerce_number(self, definition: FieldDefinition, value: Any, warnings: list[ValidationIssue]) -> int:
        number: int | None = None
        if isinstance(value, int) and not isinstance(value, bool):
            number = value
        elif isinstance(value, float) and value.is_integer():
            number = int(value)
        elif isinstance(value, str) and INTEGER_PATTERN.fullmatch(value):
            number = int(value, 10)

        if number is None or number < NUMERIC_FALLBACK:
            warnings.append(
                ValidationIssue.warning(
                    definition.backend_name,
                    FALLBACK_MESSAGE,
                    suggestion=f"Got {value!r}, sent {NUMERIC_FALLBACK}",
                )
            )
            return NUMERIC_FALLBACK
        return number
