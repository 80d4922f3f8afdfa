"""Project settings loader.

Reads intake configuration from .student-intake.yaml in the project root.
Values may reference environment variables with ``${VAR}`` syntax, and every
setting can be overridden with an ``INTAKE_<NAME>`` environment variable.

Example .student-intake.yaml:
    intake:
      api_base_url: ${STUDENTS_API_URL}
      timeout: 15
      max_retries: 3
      draft_dir: ./.drafts
      autosave_delay_seconds: 1.5
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from intake.lib.env import env_override, expand_settings
from intake.lib.errors import ConfigurationError

logger = logging.getLogger(__name__)

SETTINGS_FILE = ".student-intake.yaml"


@dataclass
class IntakeSettings:
    """Intake form configuration settings."""

    # Backend API
    api_base_url: str = "http://localhost:3000"
    enums_endpoint: str = "/estudiantes/enums"
    records_endpoint: str = "/estudiantes"
    timeout: float = 10.0
    max_retries: int = 3

    # Draft persistence
    draft_dir: str = "./.drafts"
    draft_key: str = "student-form-draft"
    autosave_delay_seconds: float = 1.0

    @classmethod
    def load(cls, project_root: Path | None = None) -> "IntakeSettings":
        """Load settings from .student-intake.yaml in project root.

        A missing or unreadable file falls back to defaults; values of the
        wrong type raise ``ConfigurationError``.

        Args:
            project_root: Project root directory. Defaults to cwd.
        """
        root = project_root or Path.cwd()
        config_path = root / SETTINGS_FILE

        file_values: dict[str, Any] = {}
        if config_path.exists():
            try:
                with open(config_path, encoding="utf-8") as f:
                    config = yaml.safe_load(f) or {}
                file_values = expand_settings(config.get("intake", {}) or {})
            except (OSError, yaml.YAMLError, AttributeError) as exc:
                logger.warning("Ignoring malformed settings file %s: %s", config_path, exc)

        return cls.from_dict(file_values)

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> "IntakeSettings":
        """Build settings from a mapping, then apply INTAKE_* overrides."""
        defaults = cls()
        kwargs: dict[str, Any] = {}
        for setting in fields(cls):
            default = getattr(defaults, setting.name)
            raw = values.get(setting.name, default)
            try:
                value = type(default)(raw)
                kwargs[setting.name] = env_override(setting.name, value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(
                    f"Invalid value for setting '{setting.name}'",
                    value=raw,
                    suggestion=f"Expected a {type(default).__name__}",
                ) from exc

        unknown = sorted(set(values) - {setting.name for setting in fields(cls)})
        if unknown:
            logger.warning("Unknown settings ignored: %s", ", ".join(unknown))
        return cls(**kwargs)

    def get_draft_dir(self, project_root: Path | None = None) -> Path:
        """Get absolute path to the draft directory."""
        root = project_root or Path.cwd()
        return (root / self.draft_dir).resolve()


# Global settings instance (loaded on first access)
_settings: IntakeSettings | None = None


def get_settings(reload: bool = False) -> IntakeSettings:
    """Get the global intake settings.

    Args:
        reload: Force reload from config file.
    """
    global _settings
    if _settings is None or reload:
        _settings = IntakeSettings.load()
    return _settings
