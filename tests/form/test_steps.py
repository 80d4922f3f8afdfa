"""Tests for the step controller."""

from __future__ import annotations

import pytest

from intake.form.engine import DependencyEngine, UppercaseListener
from intake.form.models import FormStateStore
from intake.form.steps import STEPS, StepController, build_steps
from intake.lib.errors import ConfigurationError

from tests.conftest import VALID_VALUES, fill

IDENTIFICATION = {
    "document_type": "CEDULA",
    "id_number": "1712345678",
    "first_surname": "PEREZ",
}


@pytest.fixture
def controller(store: FormStateStore, engine: DependencyEngine) -> StepController:
    UppercaseListener(store).attach()
    return StepController(store)


class TestStepLayout:
    """Static partition of the schema into steps."""

    def test_eleven_steps_cover_every_field(self) -> None:
        assert len(STEPS) == 11
        field_ids = [f for step in STEPS for f in step.field_ids]
        assert len(field_ids) == 63
        assert len(set(field_ids)) == 63

    def test_ordinals_follow_navigation_order(self) -> None:
        assert [s.ordinal for s in STEPS] == list(range(11))
        assert STEPS[0].id == "identification"
        assert STEPS[-1].id == "household"

    def test_index_of(self, controller: StepController) -> None:
        assert controller.index_of("disability") == 2
        with pytest.raises(KeyError):
            controller.index_of("nope")

    def test_empty_step_rejected(self) -> None:
        from intake.form.models import FIELD_SCHEMA, FieldSchema

        without_contact = FieldSchema([d for d in FIELD_SCHEMA if d.step != "contact"])
        with pytest.raises(ConfigurationError, match="has no fields"):
            build_steps(without_contact)


class TestAdvance:
    """Forward navigation is gated by step validity."""

    def test_blocked_by_empty_required_field(self, store: FormStateStore, controller: StepController) -> None:
        fill(store, IDENTIFICATION)

        result = controller.advance()

        assert controller.current_step == 0
        assert result.valid is False
        assert result.messages() == [("Primer nombre", "Este campo es obligatorio")]

    def test_errors_listed_in_field_order(self, controller: StepController) -> None:
        result = controller.advance()

        labels = [error.label for error in result.errors]
        assert labels == ["Tipo de documento", "Número de identificación", "Primer apellido", "Primer nombre"]

    def test_advance_marks_step_touched(self, store: FormStateStore, controller: StepController) -> None:
        controller.advance()

        assert store.error_message("first_name") == "Este campo es obligatorio"
        assert store.error_message("sex") == ""

    def test_valid_step_moves_forward(self, store: FormStateStore, controller: StepController) -> None:
        fill(store, {**IDENTIFICATION, "first_name": "ana"})

        result = controller.advance()

        assert result.valid
        assert controller.current_step == 1

    def test_disabled_fields_do_not_block(self, store: FormStateStore, controller: StepController) -> None:
        store.set_value("disability", "NO")

        assert controller.is_step_valid(controller.index_of("disability"))
        assert controller.step_errors(controller.index_of("disability")) == []

    def test_last_step_stays_put(self, store: FormStateStore, controller: StepController) -> None:
        fill(store, VALID_VALUES)
        assert controller.jump_to(10)

        result = controller.advance()

        assert result.valid
        assert controller.current_step == 10
        assert controller.is_last_step


class TestNavigation:
    """Backward moves, jumps and progress."""

    def test_retreat(self, store: FormStateStore, controller: StepController) -> None:
        assert controller.retreat() is False

        fill(store, {**IDENTIFICATION, "first_name": "ana"})
        controller.advance()

        assert controller.retreat() is True
        assert controller.current_step == 0

    def test_forward_jump_requires_valid_prefix(self, store: FormStateStore, controller: StepController) -> None:
        assert controller.jump_to(3) is False
        assert controller.current_step == 0

        fill(store, VALID_VALUES)

        assert controller.jump_to(3) is True
        assert controller.current.id == "nationality"

    def test_backward_jump_always_allowed(self, store: FormStateStore, controller: StepController) -> None:
        fill(store, VALID_VALUES)
        controller.jump_to(5)
        store.set_value("first_name", "")

        assert controller.jump_to(1) is True

    @pytest.mark.parametrize("index", [-1, 11])
    def test_out_of_range(self, controller: StepController, index: int) -> None:
        with pytest.raises(IndexError):
            controller.jump_to(index)
        with pytest.raises(IndexError):
            controller.is_step_valid(index)

    def test_progress_and_first_invalid_step(self, store: FormStateStore, controller: StepController) -> None:
        assert controller.first_invalid_step() == 0

        fill(store, VALID_VALUES)

        assert controller.first_invalid_step() is None
        assert controller.progress() == controller.total_steps

    def test_validity_follows_cascades(self, store: FormStateStore, controller: StepController) -> None:
        """A driver change in one step is reflected in another step at once."""
        fill(store, VALID_VALUES)
        nationality = controller.index_of("nationality")

        store.set_value("residence_country", "PERU")
        store.set_value("residence_country", "ECUADOR")

        assert controller.is_step_valid(nationality) is False
        assert controller.first_invalid_step() == nationality

    def test_reset(self, store: FormStateStore, controller: StepController) -> None:
        fill(store, VALID_VALUES)
        controller.jump_to(4)

        controller.reset()

        assert controller.current_step == 0
