"""HTTP client for the student registration backend.

Implements the two collaborators the form engine consumes:

- option-list provider: ``get_enumerated_options()`` (GET, retried)
- submission transport: ``submit(record)`` (POST, never retried)

plus the record lookups the registration screens use. Built on httpx with
tenacity retries for idempotent requests.

Example:
    with StudentApiClient("http://localhost:3000") as client:
        options = client.get_enumerated_options()
        ack = client.submit(record)
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import requests_toolbelt
import tenacity
from requests_toolbelt.utils.user_agent import user_agent
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from intake.lib.errors import (
    SchemaUnavailableError,
    ServerFaultError,
    SubmissionError,
    SubmissionRejectedError,
)

logger = logging.getLogger(__name__)

__all__ = ["StudentApiClient", "SubmissionAck", "RETRYABLE_STATUS_CODES"]

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
VALIDATION_STATUS_CODES = {400, 422}

_USER_AGENT = user_agent(
    "student-intake",
    "dev",
    extras=[
        ("httpx", getattr(httpx, "__version__", "unknown")),
        ("tenacity", getattr(tenacity, "__version__", "unknown")),
        ("requests-toolbelt", getattr(requests_toolbelt, "__version__", "unknown")),
    ],
)

# Validation messages usually start with the offending property name
_LEADING_PROPERTY = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\b")
_CODE_KEYS = ("code", "codigo", "value", "id")


@dataclass(frozen=True)
class SubmissionAck:
    """Acknowledgement of an accepted submission."""

    status_code: int
    record_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


class StudentApiClient:
    """Client for the ``/estudiantes`` API.

    Args:
        base_url: API root, e.g. ``http://localhost:3000``
        enums_endpoint: Path of the option-list endpoint
        records_endpoint: Path of the student records collection
        timeout: Request timeout in seconds
        max_retries: Attempts for idempotent requests
        backoff_factor: Multiplier for exponential backoff between attempts
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
    """

    def __init__(
        self,
        base_url: str,
        *,
        enums_endpoint: str = "/estudiantes/enums",
        records_endpoint: str = "/estudiantes",
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.enums_endpoint = enums_endpoint
        self.records_endpoint = records_endpoint.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "StudentApiClient":
        """Create a client from ``IntakeSettings``."""
        return cls(
            settings.api_base_url,
            enums_endpoint=settings.enums_endpoint,
            records_endpoint=settings.records_endpoint,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            **kwargs,
        )

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"User-Agent": _USER_AGENT, "Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "StudentApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Option lists

    def get_enumerated_options(self) -> Dict[str, List[str]]:
        """Fetch ``{category: [codes]}`` from the option-list endpoint.

        Raises:
            SchemaUnavailableError: The endpoint stayed unreachable after
                retries, or answered with something that is not an option map.
        """
        url = f"{self.base_url}{self.enums_endpoint}"
        try:
            response = self._get_with_retry(self.enums_endpoint)
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SchemaUnavailableError(
                "Could not fetch the enumerated option lists", url=url, cause=exc
            ) from exc

        if not isinstance(payload, dict):
            raise SchemaUnavailableError(
                "Option-list response is not an object",
                url=url,
                details={"type": type(payload).__name__},
            )

        options = {}
        for category, entries in payload.items():
            if not isinstance(entries, list):
                raise SchemaUnavailableError(
                    f"Option list '{category}' is not a list", url=url
                )
            options[category] = [self._option_code(entry) for entry in entries]

        logger.info("Loaded %d option list(s) from %s", len(options), url)
        return options

    @staticmethod
    def _option_code(entry: Any) -> str:
        if isinstance(entry, dict):
            for key in _CODE_KEYS:
                if key in entry:
                    return str(entry[key])
            raise SchemaUnavailableError(
                "Option entry has no code", details={"entry": entry}
            )
        return str(entry)

    # Records

    def submit(self, record: Dict[str, Any]) -> SubmissionAck:
        """POST a canonical record. Never retried.

        Raises:
            SubmissionRejectedError: 400/422 with validation messages
            ServerFaultError: 5xx responses
            SubmissionError: Transport failures and any other status
        """
        try:
            response = self.client.post(self.records_endpoint, json=record)
        except httpx.RequestError as exc:
            raise SubmissionError(
                "Could not reach the submission endpoint", cause=exc
            ) from exc

        if response.is_success:
            payload = self._json_or_empty(response)
            record_id = payload.get("id") if isinstance(payload, dict) else None
            logger.info("Submission accepted (status %d)", response.status_code)
            return SubmissionAck(
                status_code=response.status_code,
                record_id=str(record_id) if record_id is not None else None,
                payload=payload if isinstance(payload, dict) else {},
            )

        raise self._submission_error(response)

    def update_record(self, record_id: str, record: Dict[str, Any]) -> SubmissionAck:
        """PUT a canonical record over an existing one. Never retried."""
        try:
            response = self.client.put(f"{self.records_endpoint}/{record_id}", json=record)
        except httpx.RequestError as exc:
            raise SubmissionError("Could not reach the update endpoint", cause=exc) from exc

        if response.is_success:
            payload = self._json_or_empty(response)
            return SubmissionAck(
                status_code=response.status_code,
                record_id=record_id,
                payload=payload if isinstance(payload, dict) else {},
            )

        raise self._submission_error(response)

    def list_records(self) -> List[Dict[str, Any]]:
        """Fetch every submitted record."""
        response = self._get_with_retry(self.records_endpoint)
        payload = response.json()
        if isinstance(payload, dict):
            payload = payload.get("data", [])
        return list(payload)

    def find_record(self, document_type: str, id_number: str) -> Optional[Dict[str, Any]]:
        """Look a student up by document type and number; None if absent."""
        try:
            response = self._get_with_retry(
                f"{self.records_endpoint}/buscar",
                params={"tipoDocumento": document_type, "numeroIdentificacion": id_number},
            )
        except httpx.HTTPStatusError as exc:
            if exc.response is not None and exc.response.status_code == 404:
                return None
            raise
        payload = self._json_or_empty(response)
        return payload or None

    # Internals

    def _get_with_retry(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        @retry(
            stop=stop_after_attempt(max(self.max_retries, 1)),
            wait=wait_exponential(multiplier=self.backoff_factor, max=30),
            retry=retry_if_exception(self._should_retry),
            reraise=True,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        def do_request() -> httpx.Response:
            logger.debug("GET %s params=%s", endpoint, params)
            response = self.client.get(endpoint, params=params)
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                if exc.response is not None and exc.response.status_code == 429:
                    self._respect_retry_after(exc.response)
                raise
            return response

        return do_request()

    def _should_retry(self, exc: BaseException) -> bool:
        if isinstance(exc, httpx.HTTPStatusError):
            status_code = exc.response.status_code if exc.response is not None else None
            return status_code in RETRYABLE_STATUS_CODES
        return isinstance(exc, httpx.RequestError)

    def _respect_retry_after(self, response: httpx.Response) -> None:
        retry_after = response.headers.get("Retry-After")
        if not retry_after:
            return
        try:
            wait_seconds = float(retry_after)
        except (TypeError, ValueError):
            return
        if wait_seconds > 0:
            logger.warning(
                "Rate limited by API; sleeping %.1f seconds before retrying",
                wait_seconds,
            )
            time.sleep(wait_seconds)

    @staticmethod
    def _json_or_empty(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    def _submission_error(self, response: httpx.Response) -> SubmissionError:
        status = response.status_code
        payload = self._json_or_empty(response)
        messages = extract_messages(payload) or [response.reason_phrase or f"HTTP {status}"]

        logger.warning("Submission failed with status %d: %s", status, "; ".join(messages))

        if status in VALIDATION_STATUS_CODES:
            return SubmissionRejectedError(
                "The backend rejected the record",
                status_code=status,
                messages=messages,
                field_messages=group_field_messages(payload, messages),
            )
        if status >= 500:
            return ServerFaultError(
                "The backend failed while storing the record",
                status_code=status,
                messages=messages,
            )
        return SubmissionError(
            f"Submission failed with status {status}",
            status_code=status,
            messages=messages,
        )


def extract_messages(payload: Any) -> List[str]:
    """Collect human-readable messages from an error response body.

    Accepts ``{"message": "..."}``, ``{"message": [...]}`` and lists of
    ``{"property": ..., "constraints": {...}}`` entries.
    """
    if isinstance(payload, str):
        return [payload] if payload else []
    if isinstance(payload, list):
        messages: List[str] = []
        for item in payload:
            messages.extend(extract_messages(item))
        return messages
    if isinstance(payload, dict):
        if "constraints" in payload and isinstance(payload["constraints"], dict):
            return [str(m) for m in payload["constraints"].values()]
        for key in ("message", "messages", "errors", "detail"):
            if key in payload:
                return extract_messages(payload[key])
    return []


def group_field_messages(payload: Any, messages: List[str]) -> Dict[str, List[str]]:
    """Group validation messages by backend field name.

    Structured entries carry their property explicitly; plain messages are
    attributed to the property name they start with.
    """
    grouped: Dict[str, List[str]] = {}

    entries = payload.get("message") if isinstance(payload, dict) else payload
    if isinstance(entries, list) and any(isinstance(e, dict) for e in entries):
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            name = entry.get("property") or entry.get("field")
            if name:
                grouped.setdefault(str(name), []).extend(extract_messages(entry))
        return grouped

    for message in messages:
        match = _LEADING_PROPERTY.match(message)
        if match:
            grouped.setdefault(match.group(1), []).append(message)
    return grouped
