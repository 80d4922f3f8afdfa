"""Tests for draft persistence and the autosave debouncer."""

import json
import threading

import pytest

from intake.form.settings import IntakeSettings
from intake.lib.drafts import DRAFT_VERSION, Debouncer, DraftStore


@pytest.fixture
def draft_store(tmp_path):
    return DraftStore(tmp_path / "drafts")


class TestDraftStore:
    """Tests for DraftStore."""

    def test_save_and_load(self, draft_store):
        path = draft_store.save({"step": 2, "values": {"first_name": "ANA"}, "touched": ["first_name"]})

        assert path == draft_store.path
        assert path.name == "student-form-draft.json"
        draft = draft_store.load()
        assert draft["version"] == DRAFT_VERSION
        assert draft["step"] == 2
        assert draft["values"] == {"first_name": "ANA"}
        assert "saved_at" in draft

    def test_save_replaces_without_temp_leftovers(self, draft_store):
        draft_store.save({"values": {"a": "1"}})
        draft_store.save({"values": {"a": "2"}})

        assert draft_store.load()["values"] == {"a": "2"}
        assert [p.name for p in draft_store.directory.iterdir()] == ["student-form-draft.json"]

    def test_load_missing(self, draft_store):
        assert draft_store.load() is None

    def test_corrupt_draft_ignored(self, draft_store):
        draft_store.directory.mkdir(parents=True)
        draft_store.path.write_text("{not json", encoding="utf-8")

        assert draft_store.load() is None

    @pytest.mark.parametrize(
        "document",
        [
            {"version": 99, "values": {}},
            ["not", "a", "mapping"],
            {"version": DRAFT_VERSION, "values": ["x"]},
        ],
    )
    def test_incompatible_draft_ignored(self, draft_store, document):
        draft_store.directory.mkdir(parents=True)
        draft_store.path.write_text(json.dumps(document), encoding="utf-8")

        assert draft_store.load() is None

    def test_clear(self, draft_store):
        draft_store.save({"values": {}})

        assert draft_store.clear() is True
        assert draft_store.clear() is False
        assert draft_store.load() is None

    def test_custom_key(self, tmp_path):
        store = DraftStore(tmp_path, key="other")

        assert store.save({"values": {}}).name == "other.json"

    def test_from_settings(self, tmp_path):
        settings = IntakeSettings(draft_dir="borradores", draft_key="registro")

        store = DraftStore.from_settings(settings, tmp_path)

        assert store.path == (tmp_path / "borradores").resolve() / "registro.json"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestDebouncer:
    """Tests for the autosave debouncer."""

    def test_burst_produces_one_call(self):
        clock = FakeClock()
        calls = []
        debouncer = Debouncer(1.0, lambda: calls.append(1), clock=clock)

        for _ in range(5):
            debouncer.trigger()
            clock.now += 0.5
            assert debouncer.poll() is False

        clock.now += 0.5
        assert debouncer.poll() is True
        assert calls == [1]
        assert not debouncer.pending
        assert debouncer.poll() is False

    def test_call_runs_on_polling_thread(self):
        clock = FakeClock()
        threads = []
        debouncer = Debouncer(1.0, lambda: threads.append(threading.get_ident()), clock=clock)
        debouncer.trigger()

        clock.now += 1.0
        debouncer.poll()

        assert threads == [threading.get_ident()]

    def test_cancel_drops_pending_call(self):
        clock = FakeClock()
        calls = []
        debouncer = Debouncer(60.0, lambda: calls.append(1), clock=clock)
        debouncer.trigger()

        debouncer.cancel()
        clock.now += 120.0

        assert not debouncer.pending
        assert debouncer.poll() is False
        assert debouncer.flush() is False
        assert calls == []

    def test_flush_runs_now(self):
        calls = []
        debouncer = Debouncer(60.0, lambda: calls.append(1), clock=FakeClock())
        debouncer.trigger()

        assert debouncer.flush() is True
        assert calls == [1]
        assert debouncer.flush() is False
