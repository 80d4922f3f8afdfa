"""Tests for intake environment helpers."""

import pytest

from intake.lib.env import env_override, expand_env_vars, expand_settings, load_env_file


def test_expand_env_vars_simple(monkeypatch):
    monkeypatch.setenv("STUDENTS_API_URL", "http://api:3000")
    assert expand_env_vars("${STUDENTS_API_URL}/estudiantes") == "http://api:3000/estudiantes"


def test_expand_env_vars_bare_syntax(monkeypatch):
    monkeypatch.setenv("HOST", "localhost")
    assert expand_env_vars("http://$HOST:3000") == "http://localhost:3000"


def test_expand_env_vars_no_match(monkeypatch):
    monkeypatch.delenv("MISSING", raising=False)
    assert expand_env_vars("${MISSING}") == "${MISSING}"


def test_expand_env_vars_strict_missing(monkeypatch):
    monkeypatch.delenv("MISSING", raising=False)
    with pytest.raises(KeyError):
        expand_env_vars("${MISSING}", strict=True)


def test_expand_settings_recurses(monkeypatch):
    monkeypatch.setenv("KEY", "value")
    cfg = {"path": "${KEY}", "nested": {"key": "${KEY}"}, "list": ["${KEY}", 1], "timeout": 5}
    expanded = expand_settings(cfg)
    assert expanded["path"] == "value"
    assert expanded["nested"]["key"] == "value"
    assert expanded["list"] == ["value", 1]
    assert expanded["timeout"] == 5


@pytest.mark.parametrize(
    "raw,default,expected",
    [
        ("7", 3, 7),
        ("2.5", 1.0, 2.5),
        ("yes", False, True),
        ("off", True, False),
        ("http://x", "http://y", "http://x"),
    ],
)
def test_env_override_converts_to_default_type(monkeypatch, raw, default, expected):
    monkeypatch.setenv("INTAKE_SETTING", raw)
    assert env_override("setting", default) == expected


def test_env_override_missing_returns_default():
    assert env_override("not_set", 3) == 3


def test_load_env_file_with_override(monkeypatch, tmp_path):
    monkeypatch.setenv("INTAKE_TIMEOUT", "5")
    env_file = tmp_path / ".env"
    env_file.write_text("INTAKE_TIMEOUT=25\n")

    assert load_env_file(env_file, override=True) is True
    assert env_override("timeout", 10.0) == 25.0


def test_load_env_file_does_not_override(monkeypatch, tmp_path):
    monkeypatch.setenv("INTAKE_TIMEOUT", "5")
    env_file = tmp_path / ".env"
    env_file.write_text("INTAKE_TIMEOUT=25\n")

    load_env_file(env_file)

    assert env_override("timeout", 10.0) == 5.0
