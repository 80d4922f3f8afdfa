"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from intake.form.catalog import option_lists  # noqa: E402
from intake.form.engine import DependencyEngine  # noqa: E402
from intake.form.models.form_state import FormStateStore  # noqa: E402
from intake.form.settings import IntakeSettings  # noqa: E402


# A complete, valid registration. Drivers come before their dependents so the
# values can be entered one by one through set_value.
VALID_VALUES: dict[str, Any] = {
    "document_type": "CEDULA",
    "id_number": "1712345678",
    "first_surname": "perez",
    "first_name": "ana",
    "sex": "MUJER",
    "gender": "FEMENINO",
    "marital_status": "SOLTERO",
    "ethnicity": "MESTIZO",
    "blood_type": "O+",
    "birth_date": "2000-05-17",
    "disability": "NO",
    "nationality_country": "ECUADOR",
    "birth_province": "PICHINCHA",
    "birth_canton": "QUITO",
    "residence_country": "ECUADOR",
    "residence_province": "PICHINCHA",
    "residence_canton": "QUITO",
    "academic_period_length": "6",
    "occupation": "SOLO_ESTUDIA",
    "did_internship": "NO",
    "scholarship_type": "NO_APLICA",
    "community_project": "NO",
    "email": "ana@uce.edu.ec",
    "mobile": "0991234567",
    "household_members": "4",
}


# Driver value that switches each rule's dependents off
INACTIVE_VALUES = {
    "disability": "NO",
    "ethnicity": "MESTIZO",
    "nationality_country": "COLOMBIA",
    "residence_country": "PERU",
    "occupation": "SOLO_ESTUDIA",
    "scholarship_type": "NO_APLICA",
    "community_project": "NO",
}


class FakeOptionProvider:
    """Option-list provider backed by the reference catalog."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = 0

    def get_enumerated_options(self) -> dict[str, list[str]]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return option_lists()


class RecordingTransport:
    """Submission transport that records records and returns an ack."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.records: list[dict[str, Any]] = []

    def submit(self, record: dict[str, Any]) -> dict[str, Any]:
        self.records.append(record)
        if self.error is not None:
            raise self.error
        return {"id": len(self.records)}


def fill(store_or_session: Any, values: dict[str, Any]) -> None:
    """Enter values one by one, as a user would."""
    for field_id, value in values.items():
        store_or_session.set_value(field_id, value)


@pytest.fixture
def options() -> dict[str, list[str]]:
    return option_lists()


@pytest.fixture
def store() -> FormStateStore:
    return FormStateStore()


@pytest.fixture
def engine(store: FormStateStore, options: dict[str, list[str]]) -> DependencyEngine:
    """Engine with option lists loaded, attached to the store."""
    engine = DependencyEngine(store, options=options)
    engine.attach()
    yield engine
    engine.detach()


@pytest.fixture
def settings(tmp_path: Path) -> IntakeSettings:
    return IntakeSettings(draft_dir=str(tmp_path / "drafts"), autosave_delay_seconds=60.0)


@pytest.fixture(autouse=True)
def isolate_intake_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep INTAKE_* variables from the developer shell out of the tests."""
    import os

    for name in list(os.environ):
        if name.startswith("INTAKE_"):
            monkeypatch.delenv(name, raising=False)
