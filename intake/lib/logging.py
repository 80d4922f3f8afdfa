"""Logging for form sessions.

Session code logs through ``FormLogger``, which stamps every record with the
session context (``session_id`` and, once known, the current ``step``). The
two formatters installed by ``setup_logging`` surface that context: the
console format appends it in brackets and the JSON format lifts it into
top-level keys so an aggregator can filter one session.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping, Optional

__all__ = [
    "CONTEXT_KEYS",
    "ContextFormatter",
    "FormLogger",
    "JSONFormatter",
    "get_form_logger",
    "setup_logging",
]

CONTEXT_KEYS = ("session_id", "step")

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3")


def _session_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {key: getattr(record, key) for key in CONTEXT_KEYS if getattr(record, key, None) is not None}


class ContextFormatter(logging.Formatter):
    """Plain-text formatter that appends the session context.

    Example output:
        2025-01-15 10:30:00 [INFO] intake.form.session: Restored draft [session_id=3f2a step=4]
    """

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _session_context(record)
        if not context:
            return line
        suffix = " ".join(f"{key}={value}" for key, value in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{suffix}]{sep}{tail}"


class JSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per record.

    Session context becomes top-level keys; any other ``extra`` attributes
    are grouped under ``"extra"``.

    Example output:
        {"timestamp": "2025-01-15T10:30:00.123Z", "level": "INFO",
         "logger": "intake.form.session", "message": "Submission accepted",
         "session_id": "3f2a"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(_session_context(record))

        if record.levelno >= logging.WARNING:
            log_data["source"] = {"function": record.funcName, "line": record.lineno}

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_attrs = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and key not in CONTEXT_KEYS
        }
        if extra_attrs:
            log_data["extra"] = extra_attrs

        return json.dumps(log_data, default=str, ensure_ascii=False)


class FormLogger(logging.LoggerAdapter):
    """Logger adapter that carries form-session context.

    Per-call ``extra`` values win over the stored context.

    Example:
        logger = FormLogger("intake.form.session")
        logger.set_context(session_id="3f2a")
        logger.info("Restored draft", extra={"step": 4})
    """

    def __init__(self, name: str):
        self._context: Dict[str, Any] = {}
        super().__init__(logging.getLogger(name), self._context)

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def set_context(self, **kwargs: Any) -> None:
        self._context.update(kwargs)

    def clear_context(self) -> None:
        self._context.clear()

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self._context, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_form_logger(name: str, **context: Any) -> FormLogger:
    """Get a form logger, optionally pre-loaded with context."""
    logger = FormLogger(name)
    logger.set_context(**context)
    return logger


def setup_logging(
    verbose: bool = False,
    json_format: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Configure the root logger for the CLI and embedding applications.

    Args:
        verbose: Enable debug-level logging
        json_format: Use ``JSONFormatter`` instead of ``ContextFormatter``
        log_file: Optional file path to write logs to
    """
    level = logging.DEBUG if verbose else logging.INFO
    formatter: logging.Formatter = JSONFormatter() if json_format else ContextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
