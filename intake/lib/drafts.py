"""Draft persistence for in-progress forms.

Drafts are JSON files keyed by a fixed storage key inside a draft directory.
``Debouncer`` batches autosave writes: a burst of edits produces one write
once the user has been quiet for ``delay`` seconds. It is polled by its
owner, so saves happen on the thread that edits the form.
"""

from __future__ import annotations

import json
import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

logger = logging.getLogger(__name__)

__all__ = ["DRAFT_VERSION", "DraftStore", "Debouncer"]

DRAFT_VERSION = 1


class DraftStore:
    """Saves and loads one draft under a fixed key.

    Example:
        store = DraftStore(".drafts")
        store.save({"step": 2, "values": {...}, "touched": [...]})
        store.load()  # -> the snapshot, or None
    """

    def __init__(self, directory: Union[str, Path], key: str = "student-form-draft"):
        self.directory = Path(directory)
        self.key = key

    @classmethod
    def from_settings(cls, settings: Any, project_root: Optional[Path] = None) -> "DraftStore":
        """Create a store from ``IntakeSettings``."""
        return cls(settings.get_draft_dir(project_root), settings.draft_key)

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def save(self, snapshot: Dict[str, Any]) -> Path:
        """Write the snapshot atomically (temp file + rename)."""
        self.directory.mkdir(parents=True, exist_ok=True)
        document = {
            "version": DRAFT_VERSION,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            **snapshot,
        }
        tmp_path = self.path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self.path)
        logger.debug("Saved draft to %s", self.path)
        return self.path

    def load(self) -> Optional[Dict[str, Any]]:
        """Return the saved snapshot, or None if there is no usable draft.

        A corrupt or incompatible draft is logged and ignored rather than
        blocking the form.
        """
        if not self.path.exists():
            return None
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable draft %s: %s", self.path, exc)
            return None

        if not isinstance(document, dict) or document.get("version") != DRAFT_VERSION:
            logger.warning("Ignoring draft %s with unsupported format", self.path)
            return None
        if not isinstance(document.get("values", {}), dict):
            logger.warning("Ignoring draft %s without a values mapping", self.path)
            return None
        return document

    def clear(self) -> bool:
        """Delete the draft. Returns True if one existed."""
        if self.path.exists():
            self.path.unlink()
            return True
        return False


class Debouncer:
    """Calls ``fn`` once ``delay`` seconds after the last trigger.

    Nothing runs in the background. The owner's event loop calls ``poll()``
    and the call happens on that thread once the quiet period is over.
    """

    def __init__(self, delay: float, fn: Callable[[], Any], clock: Callable[[], float] = time.monotonic):
        self.delay = delay
        self.fn = fn
        self.clock = clock
        self._deadline: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def trigger(self) -> None:
        """(Re)start the quiet period."""
        self._deadline = self.clock() + self.delay

    def poll(self) -> bool:
        """Run the pending call if its quiet period is over. Returns True if it ran."""
        if self._deadline is None or self.clock() < self._deadline:
            return False
        self._deadline = None
        self.fn()
        return True

    def cancel(self) -> None:
        """Drop a pending call without running it."""
        self._deadline = None

    def flush(self) -> bool:
        """Run a pending call now. Returns True if there was one."""
        if self._deadline is None:
            return False
        self._deadline = None
        self.fn()
        return True
