"""Form session: one registration form from start to accepted submission.

The session wires the store, dependency engine, uppercase listener, step
controller and normalizer together with the external collaborators (option
provider, submission transport, draft store). Every subscription and the
autosave debouncer it creates is registered on one ``ExitStack``, so
``close()`` (or leaving a ``with`` block) tears all of them down.
"""

from __future__ import annotations

import time
import uuid
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Protocol

from intake.form.engine import DependencyEngine, SchemaStatus, UppercaseListener
from intake.form.messages import describe
from intake.form.models.field_metadata import FIELD_SCHEMA, FieldSchema
from intake.form.models.form_state import ChangeEvent, FormStateStore
from intake.form.normalizer import NormalizationResult, SubmissionNormalizer
from intake.form.rules import DEFAULT_RULES, RuleSet
from intake.form.settings import IntakeSettings, get_settings
from intake.form.steps import StepController
from intake.lib.drafts import Debouncer, DraftStore
from intake.lib.errors import (
    IntakeError,
    LocalValidationError,
    SchemaUnavailableError,
    SubmissionError,
    SubmissionInProgressError,
    SubmissionRejectedError,
)
from intake.lib.logging import get_form_logger
from intake.lib.validators import ValidationIssue


class OptionProvider(Protocol):
    def get_enumerated_options(self) -> Mapping[str, Iterable[str]]: ...


class SubmissionTransport(Protocol):
    def submit(self, record: dict[str, Any]) -> Any: ...


class FormSession:
    """Owns every component of one form session.

    Example:
        with FormSession(client, client, draft_store=DraftStore(".drafts")) as session:
            session.set_value("document_type", "CEDULA")
            session.steps.advance()
            ack = session.submit()
    """

    def __init__(
        self,
        option_provider: OptionProvider,
        transport: SubmissionTransport,
        *,
        draft_store: DraftStore | None = None,
        settings: IntakeSettings | None = None,
        schema: FieldSchema = FIELD_SCHEMA,
        rules: RuleSet = DEFAULT_RULES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.clock = clock
        self.option_provider = option_provider
        self.transport = transport
        self.draft_store = draft_store

        self.store = FormStateStore(schema)
        self.engine = DependencyEngine(self.store, rules)
        self.uppercase = UppercaseListener(self.store)
        self.steps = StepController(self.store)
        self.normalizer = SubmissionNormalizer(schema, rules)

        self.schema_error: SchemaUnavailableError | None = None
        self.last_error: IntakeError | None = None
        self._submitting = False
        self._resources: ExitStack | None = None
        self._debouncer: Debouncer | None = None

        self.session_id = uuid.uuid4().hex[:8]
        self.logger = get_form_logger(__name__, session_id=self.session_id)

    # Lifecycle

    @property
    def started(self) -> bool:
        return self._resources is not None

    def start(self) -> "FormSession":
        """Attach listeners, restore the draft, then load the option lists."""
        if self._resources is not None:
            return self

        stack = ExitStack()
        stack.callback(self.engine.attach())
        stack.callback(self.uppercase.attach())
        self._resources = stack

        self.restore_draft()

        if self.draft_store is not None:
            self._debouncer = Debouncer(self.settings.autosave_delay_seconds, self.save_draft, clock=self.clock)
            stack.callback(self._debouncer.cancel)
            stack.callback(self.store.subscribe(self._schedule_autosave, include_silent=True))

        self.load_options()
        self.logger.info("Form session started")
        return self

    def close(self) -> None:
        """Tear down every subscription and pending timer of this session."""
        if self._resources is None:
            return
        self._resources.close()
        self._resources = None
        self._debouncer = None
        self.logger.info("Form session closed")

    def __enter__(self) -> "FormSession":
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Option lists

    @property
    def schema_status(self) -> SchemaStatus:
        return self.engine.status

    def load_options(self) -> bool:
        """Fetch option lists, locking option-derived fields meanwhile.

        Returns:
            True when the options were loaded. On failure the fields stay
            locked and ``schema_error`` holds the blocking error.
        """
        self.engine.set_schema_status(SchemaStatus.PENDING)
        try:
            options = self.option_provider.get_enumerated_options()
        except SchemaUnavailableError as exc:
            self.schema_error = exc
            self.engine.set_schema_status(SchemaStatus.UNAVAILABLE)
            self.logger.error("Option lists unavailable: %s", exc.message)
            return False

        self.schema_error = None
        missing = [c for c in self.store.schema.option_categories() if c not in options]
        if missing:
            self.logger.warning("Option lists missing categories: %s", ", ".join(missing))
        self.engine.set_options(options)
        return True

    def retry_options(self) -> bool:
        """Manual retry after a schema-load failure."""
        self.logger.info("Retrying option lists")
        return self.load_options()

    # Field access

    def set_value(self, field_id: str, value: Any) -> None:
        self.store.set_value(field_id, value)

    def error_message(self, field_id: str) -> str:
        return self.store.error_message(field_id)

    # Drafts

    def draft_snapshot(self) -> dict[str, Any]:
        return {
            "step": self.steps.current_step,
            "values": self.store.values(),
            "touched": self.store.touched_fields(),
        }

    def save_draft(self) -> Path | None:
        if self.draft_store is None:
            return None
        return self.draft_store.save(self.draft_snapshot())

    def poll_autosave(self) -> bool:
        """Write the draft if the autosave quiet period is over.

        Hosts call this from their event loop; nothing is saved in the
        background.
        """
        return self._debouncer is not None and self._debouncer.poll()

    def _schedule_autosave(self, event: ChangeEvent) -> None:
        if self._debouncer is not None and event.value_changed:
            self._debouncer.poll()
            self._debouncer.trigger()

    def restore_draft(self) -> bool:
        """Apply a saved draft once: silent restore, then one engine refresh."""
        if self.draft_store is None:
            return False
        snapshot = self.draft_store.load()
        if snapshot is None:
            return False

        self.store.restore(snapshot.get("values", {}), touched=snapshot.get("touched", []))
        self.uppercase.normalize()
        self.engine.refresh()

        step = snapshot.get("step", 0)
        if isinstance(step, int) and 0 <= step < self.steps.total_steps:
            if not self.steps.jump_to(step):
                self.steps.jump_to(self.steps.first_invalid_step() or 0)

        self.logger.info("Restored draft", extra={"step": self.steps.current_step})
        return True

    # Submission

    @property
    def submitting(self) -> bool:
        return self._submitting

    def validation_issues(self) -> list[ValidationIssue]:
        """Every current field error as an issue, in schema order."""
        issues = []
        for definition in self.store.schema:
            errors = self.store.errors_for(definition.id)
            if errors:
                issues.append(ValidationIssue.error(definition.label, describe(errors[0])))
        return issues

    def preview(self) -> NormalizationResult:
        """Canonical record for the current state, without submitting."""
        return self.normalizer.normalize(self.store.snapshot())

    def submit(self) -> Any:
        """Validate locally, normalize and hand the record to the transport.

        Raises:
            SubmissionInProgressError: Another submission is outstanding
            SchemaUnavailableError: Option lists are not loaded
            LocalValidationError: Local validation failed; nothing was sent
            SubmissionError: The transport failed (see subclasses)
        """
        if self._submitting:
            raise SubmissionInProgressError()

        self._submitting = True
        try:
            if self.engine.status in (SchemaStatus.PENDING, SchemaStatus.UNAVAILABLE):
                raise self.schema_error or SchemaUnavailableError(
                    "Option lists are still loading"
                )

            self.store.mark_touched(self.store.schema.ids)
            issues = self.validation_issues()
            if issues:
                first_invalid = self.steps.first_invalid_step()
                if first_invalid is not None:
                    self.steps.jump_to(first_invalid)
                raise LocalValidationError("The form has invalid fields", issues=issues)

            result = self.preview()
            try:
                ack = self.transport.submit(result.record)
            except SubmissionRejectedError as exc:
                self.last_error = exc
                self._merge_server_errors(exc)
                raise
            except SubmissionError as exc:
                self.last_error = exc
                self.logger.error("Submission failed: %s", exc.message)
                raise

            self._on_accepted()
            return ack
        finally:
            self._submitting = False

    def _merge_server_errors(self, exc: SubmissionRejectedError) -> None:
        by_backend = self.store.schema.by_backend_name()
        messages = {
            by_backend[name].id: field_messages
            for name, field_messages in exc.field_messages.items()
            if name in by_backend
        }
        applied = self.store.set_server_errors(messages)
        first_invalid = self.steps.first_invalid_step()
        if first_invalid is not None:
            self.steps.jump_to(first_invalid)
        self.logger.warning(
            "Submission rejected with %d field error(s)", len(applied), extra={"step": self.steps.current_step}
        )

    def _on_accepted(self) -> None:
        self.store.reset()
        self.uppercase.normalize()
        self.engine.refresh()
        self.steps.reset()
        self.last_error = None
        # The reset itself re-arms autosave; drop that write with the draft
        if self._debouncer is not None:
            self._debouncer.cancel()
        if self.draft_store is not None:
            self.draft_store.clear()
        self.logger.info("Submission accepted; form reset")
