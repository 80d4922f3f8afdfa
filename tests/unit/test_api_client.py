import json

import httpx
import pytest

from intake.form.settings import IntakeSettings
from intake.lib.api import StudentApiClient, SubmissionAck, extract_messages, group_field_messages
from intake.lib.errors import (
    SchemaUnavailableError,
    ServerFaultError,
    SubmissionError,
    SubmissionRejectedError,
)

BASE_URL = "https://api.example.com"


class Recorder:
    """MockTransport handler that replays canned responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def _client(handler, **overrides):
    options = {"max_retries": 3, "backoff_factor": 0, "transport": httpx.MockTransport(handler)}
    options.update(overrides)
    return StudentApiClient(BASE_URL, **options)


def test_get_enumerated_options_normalizes_entries():
    handler = Recorder(
        httpx.Response(200, json={"Sexo": ["HOMBRE", "MUJER"], "Pais": [{"code": "ECUADOR"}, {"id": 170}]})
    )

    with _client(handler) as client:
        options = client.get_enumerated_options()

    assert options == {"Sexo": ["HOMBRE", "MUJER"], "Pais": ["ECUADOR", "170"]}
    request = handler.requests[0]
    assert request.url.path == "/estudiantes/enums"
    assert request.headers["User-Agent"].startswith("student-intake/")


def test_get_enumerated_options_retries_transient_failures():
    handler = Recorder(httpx.Response(503), httpx.Response(200, json={"Sexo": ["HOMBRE"]}))

    assert _client(handler).get_enumerated_options() == {"Sexo": ["HOMBRE"]}
    assert len(handler.requests) == 2


def test_get_enumerated_options_gives_up_after_retries():
    handler = Recorder(httpx.Response(503))

    with pytest.raises(SchemaUnavailableError) as exc_info:
        _client(handler, max_retries=2).get_enumerated_options()

    assert len(handler.requests) == 2
    assert exc_info.value.url == f"{BASE_URL}/estudiantes/enums"
    assert isinstance(exc_info.value.cause, httpx.HTTPStatusError)


def test_get_enumerated_options_connection_error():
    request = httpx.Request("GET", f"{BASE_URL}/estudiantes/enums")
    handler = Recorder(httpx.ConnectError("refused", request=request))

    with pytest.raises(SchemaUnavailableError):
        _client(handler, max_retries=2).get_enumerated_options()
    assert len(handler.requests) == 2


@pytest.mark.parametrize(
    "payload",
    ([["Sexo"]], {"Sexo": "HOMBRE"}, {"Sexo": [{"label": "Hombre"}]}),
)
def test_get_enumerated_options_rejects_malformed_payload(payload):
    handler = Recorder(httpx.Response(200, json=payload))

    with pytest.raises(SchemaUnavailableError):
        _client(handler).get_enumerated_options()


def test_submit_accepted():
    handler = Recorder(httpx.Response(201, json={"id": 7, "primerNombre": "ANA"}))

    ack = _client(handler).submit({"primerNombre": "ANA", "cantidadMiembrosHogar": 4})

    assert ack == SubmissionAck(status_code=201, record_id="7", payload={"id": 7, "primerNombre": "ANA"})
    request = handler.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/estudiantes"
    assert json.loads(request.content) == {"primerNombre": "ANA", "cantidadMiembrosHogar": 4}


def test_submit_accepted_without_body():
    ack = _client(Recorder(httpx.Response(204))).submit({})

    assert ack.record_id is None
    assert ack.payload == {}


def test_submit_validation_messages_grouped_by_field():
    body = {"message": ["numeroCelular must be 10 digits", "correoElectronico must be an email"]}
    handler = Recorder(httpx.Response(400, json=body))

    with pytest.raises(SubmissionRejectedError) as exc_info:
        _client(handler).submit({})

    error = exc_info.value
    assert error.status_code == 400
    assert error.messages == body["message"]
    assert error.field_messages == {
        "numeroCelular": ["numeroCelular must be 10 digits"],
        "correoElectronico": ["correoElectronico must be an email"],
    }


def test_submit_structured_validation_entries():
    body = {"message": [{"property": "montoBeca", "constraints": {"max": "montoBeca must not exceed 99999"}}]}
    handler = Recorder(httpx.Response(422, json=body))

    with pytest.raises(SubmissionRejectedError) as exc_info:
        _client(handler).submit({})

    assert exc_info.value.field_messages == {"montoBeca": ["montoBeca must not exceed 99999"]}


def test_submit_server_fault_not_retried():
    handler = Recorder(httpx.Response(500, json={"message": "database unavailable"}))

    with pytest.raises(ServerFaultError) as exc_info:
        _client(handler).submit({})

    assert len(handler.requests) == 1
    assert exc_info.value.messages == ["database unavailable"]


def test_submit_other_status():
    handler = Recorder(httpx.Response(409))

    with pytest.raises(SubmissionError) as exc_info:
        _client(handler).submit({})

    assert type(exc_info.value) is SubmissionError
    assert exc_info.value.messages == ["Conflict"]


def test_submit_connection_error():
    request = httpx.Request("POST", f"{BASE_URL}/estudiantes")
    handler = Recorder(httpx.ConnectError("refused", request=request))

    with pytest.raises(SubmissionError) as exc_info:
        _client(handler).submit({})

    assert isinstance(exc_info.value.cause, httpx.ConnectError)
    assert len(handler.requests) == 1


def test_update_record():
    handler = Recorder(httpx.Response(200, json={"id": 7}))

    ack = _client(handler).update_record("7", {"primerNombre": "ANA"})

    assert ack.record_id == "7"
    assert handler.requests[0].method == "PUT"
    assert handler.requests[0].url.path == "/estudiantes/7"


@pytest.mark.parametrize("payload", ({"data": [{"id": 1}]}, [{"id": 1}]))
def test_list_records(payload):
    assert _client(Recorder(httpx.Response(200, json=payload))).list_records() == [{"id": 1}]


def test_find_record():
    handler = Recorder(httpx.Response(200, json={"id": 3}))

    assert _client(handler).find_record("CEDULA", "1712345678") == {"id": 3}
    params = handler.requests[0].url.params
    assert params["tipoDocumento"] == "CEDULA"
    assert params["numeroIdentificacion"] == "1712345678"


def test_find_record_not_found():
    handler = Recorder(httpx.Response(404))

    assert _client(handler).find_record("CEDULA", "1712345678") is None
    assert len(handler.requests) == 1


@pytest.mark.parametrize(
    "status_code,expected",
    ((500, True), (429, True), (404, False), (418, False)),
)
def test_should_retry_http_status_error(status_code, expected):
    client = StudentApiClient(BASE_URL)
    request = httpx.Request("GET", f"{BASE_URL}/estudiantes")
    response = httpx.Response(status_code, request=request)
    exc = httpx.HTTPStatusError("boom", request=request, response=response)

    assert client._should_retry(exc) is expected


def test_respect_retry_after_sleeps(monkeypatch):
    client = StudentApiClient(BASE_URL)
    request = httpx.Request("GET", f"{BASE_URL}/estudiantes")
    response = httpx.Response(429, headers={"Retry-After": "0.01"}, request=request)

    sleep_calls: list[float] = []
    monkeypatch.setattr("intake.lib.api.time.sleep", lambda secs: sleep_calls.append(secs))

    client._respect_retry_after(response)

    assert sleep_calls == [0.01]


def test_from_settings():
    settings = IntakeSettings(api_base_url="http://api:3000/", timeout=4.0, max_retries=1)

    client = StudentApiClient.from_settings(settings)

    assert client.base_url == "http://api:3000"
    assert client.timeout == 4.0
    assert client.max_retries == 1


def test_extract_messages_shapes():
    assert extract_messages("boom") == ["boom"]
    assert extract_messages({"errors": ["a", "b"]}) == ["a", "b"]
    assert extract_messages({"detail": {"message": "nested"}}) == ["nested"]
    assert extract_messages(None) == []


def test_group_field_messages_skips_unattributed():
    grouped = group_field_messages({}, ["numeroCelular is invalid", "- general failure"])

    assert grouped == {"numeroCelular": ["numeroCelular is invalid"]}
