"""Steps of the registration form and the controller that gates navigation.

Step validity is computed on demand from the store, so it always reflects
cascades that already ran inside the store notification.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from intake.form.messages import describe
from intake.form.models.field_metadata import FIELD_SCHEMA, FieldSchema
from intake.form.models.form_state import FormStateStore
from intake.lib.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Step ids in navigation order, with their titles
STEP_TITLES: dict[str, str] = {
    "identification": "Identificación",
    "personal_data": "Datos personales",
    "disability": "Discapacidad",
    "nationality": "Nacionalidad y residencia",
    "academic": "Información académica",
    "economic": "Información económica",
    "internship": "Prácticas preprofesionales",
    "scholarship_aid": "Becas y ayudas",
    "community_outreach": "Vinculación con la sociedad",
    "contact": "Contacto",
    "household": "Datos del hogar",
}


@dataclass(frozen=True)
class Step:
    """An ordered group of fields validated as one unit."""

    id: str
    ordinal: int
    title: str
    field_ids: tuple[str, ...]


def build_steps(schema: FieldSchema = FIELD_SCHEMA) -> tuple[Step, ...]:
    """Partition the schema into steps.

    Raises:
        ConfigurationError: A field names an unknown step or a step is empty
    """
    unknown = [d.id for d in schema if d.step not in STEP_TITLES]
    if unknown:
        raise ConfigurationError("Fields assigned to unknown steps", value=unknown)

    steps = []
    for ordinal, (step_id, title) in enumerate(STEP_TITLES.items()):
        field_ids = tuple(d.id for d in schema.for_step(step_id))
        if not field_ids:
            raise ConfigurationError(f"Step '{step_id}' has no fields")
        steps.append(Step(step_id, ordinal, title, field_ids))
    return tuple(steps)


STEPS = build_steps()


@dataclass(frozen=True)
class StepError:
    """One field error, ready for display."""

    field_id: str
    label: str
    message: str

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"


@dataclass(frozen=True)
class StepValidation:
    """Outcome of validating one step."""

    step_index: int
    valid: bool
    errors: tuple[StepError, ...] = ()

    def __bool__(self) -> bool:
        return self.valid

    def messages(self) -> list[tuple[str, str]]:
        """Ordered ``(label, message)`` pairs."""
        return [(error.label, error.message) for error in self.errors]


class StepController:
    """Tracks the current step and guards forward navigation.

    States are step indexes ``0 .. total_steps - 1``. ``advance`` and
    ``jump_to`` are guarded by step validity; ``retreat`` never is.
    """

    def __init__(self, store: FormStateStore, steps: tuple[Step, ...] | None = None):
        self.store = store
        self.steps = steps if steps is not None else build_steps(store.schema)
        self._current = 0

    @property
    def current_step(self) -> int:
        return self._current

    @property
    def current(self) -> Step:
        return self.steps[self._current]

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def is_last_step(self) -> bool:
        return self._current == self.total_steps - 1

    def _check_index(self, index: int) -> Step:
        if not 0 <= index < self.total_steps:
            raise IndexError(f"Step index {index} out of range (0-{self.total_steps - 1})")
        return self.steps[index]

    def index_of(self, step_id: str) -> int:
        for step in self.steps:
            if step.id == step_id:
                return step.ordinal
        raise KeyError(step_id)

    def is_step_valid(self, index: int) -> bool:
        """True iff no enabled field of the step has an error."""
        step = self._check_index(index)
        return all(self.store.is_valid(field_id) for field_id in step.field_ids)

    def step_errors(self, index: int) -> list[StepError]:
        """First error of every failing field, in step order."""
        step = self._check_index(index)
        errors = []
        for field_id in step.field_ids:
            failures = self.store.errors_for(field_id)
            if failures:
                label = self.store.schema[field_id].label
                errors.append(StepError(field_id, label, describe(failures[0])))
        return errors

    def validate_current_step(self) -> StepValidation:
        """Surface every error of the current step and report validity."""
        self.store.mark_touched(self.current.field_ids)
        errors = tuple(self.step_errors(self._current))
        return StepValidation(self._current, not errors, errors)

    def advance(self) -> StepValidation:
        """Move forward one step if the current step is valid."""
        result = self.validate_current_step()
        if result.valid and not self.is_last_step:
            self._current += 1
            logger.debug("Advanced to step %d (%s)", self._current, self.current.id)
        elif not result.valid:
            logger.debug(
                "Step %d (%s) blocked by %d error(s)",
                self._current,
                self.current.id,
                len(result.errors),
            )
        return result

    def retreat(self) -> bool:
        """Move back one step. Returns False on the first step."""
        if self._current == 0:
            return False
        self._current -= 1
        return True

    def jump_to(self, index: int) -> bool:
        """Jump to a step.

        Backward jumps are always allowed; forward jumps only when every step
        before the target is valid.
        """
        self._check_index(index)
        if index <= self._current:
            self._current = index
            return True
        if all(self.is_step_valid(i) for i in range(index)):
            self._current = index
            return True
        return False

    def reset(self) -> None:
        self._current = 0

    def first_invalid_step(self) -> int | None:
        for step in self.steps:
            if not self.is_step_valid(step.ordinal):
                return step.ordinal
        return None

    def progress(self) -> int:
        """Number of steps that currently pass validation."""
        return sum(1 for step in self.steps if self.is_step_valid(step.ordinal))
