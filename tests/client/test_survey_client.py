import json

import httpx
import pytest
from tenacity import wait_none

from config.settings import SurveySettings
from src.client.survey_client import ClientStorage, SurveyClient, SurveyClientError
from src.schemas.survey import SESSION_MISSING_HEADER

TOKEN = "cafe_20240301093015123456"


def _view(page, token=TOKEN):
    return {"client_state": {"session_token": token, "current_page": page}, "status": "active"}


@pytest.fixture
def storage(tmp_path):
    return ClientStorage(str(tmp_path / "client" / "state.json"))


def _client(storage, handler, **kwargs):
    http = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://survey.test")
    return SurveyClient(storage, http_client=http, wait=wait_none(), **kwargs)


# --- Storage ---

def test_storage_round_trip(storage):
    assert storage.load() == {}
    storage.save({"session_token": TOKEN, "current_page": 4, "extra": "dropped"})
    assert storage.load() == {"session_token": TOKEN, "current_page": 4}
    storage.clear()
    assert storage.load() == {}


def test_storage_ignores_corrupt_file(storage):
    storage.path.parent.mkdir(parents=True)
    storage.path.write_text("{not json")
    assert storage.load() == {}


# --- Mirroring ---

def test_connect_sends_stored_identifiers_and_mirrors_response(storage):
    storage.save({"session_token": TOKEN, "current_page": 6})
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=_view(6))

    _client(storage, handler).connect()
    assert seen == [{"session_token": TOKEN, "current_page": 6}]
    assert storage.load() == {"session_token": TOKEN, "current_page": 6}


def test_every_transition_updates_stored_page(storage):
    storage.save({"session_token": TOKEN, "current_page": 3})

    def handler(request):
        assert request.url.path == f"/api/v1/survey/sessions/{TOKEN}/next"
        return httpx.Response(200, json=_view(4))

    _client(storage, handler).next()
    assert storage.load()["current_page"] == 4


def test_refused_transition_raises_with_messages(storage):
    storage.save({"session_token": TOKEN, "current_page": 3})

    def handler(request):
        return httpx.Response(422, json={"detail": {"messages": ["Please answer 2nd question."]}})

    with pytest.raises(SurveyClientError) as excinfo:
        _client(storage, handler).next()
    assert excinfo.value.status_code == 422
    assert excinfo.value.messages == ["Please answer 2nd question."]
    assert storage.load()["current_page"] == 3


def test_session_call_without_stored_token(storage):
    with pytest.raises(SurveyClientError):
        _client(storage, lambda request: httpx.Response(200, json={})).next()


def test_restart_clears_storage(storage):
    storage.save({"session_token": TOKEN, "current_page": 9})

    def handler(request):
        return httpx.Response(200, json={"session_token": None, "current_page": None})

    _client(storage, handler).restart()
    assert storage.load() == {}


def test_restart_clears_storage_even_when_session_is_gone(storage):
    storage.save({"session_token": TOKEN, "current_page": 9})
    with pytest.raises(SurveyClientError):
        _client(storage, lambda request: httpx.Response(500, json={"detail": "Internal Server Error"})).restart()
    assert storage.load() == {}


# --- Reconnection ---

def test_transport_errors_are_retried(storage):
    attempts = []

    def handler(request):
        attempts.append(1)
        if len(attempts) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json=_view(0))

    _client(storage, handler, max_attempts=5).connect()
    assert len(attempts) == 3
    assert storage.load()["session_token"] == TOKEN


def test_transport_errors_give_up_after_max_attempts(storage):
    attempts = []

    def handler(request):
        attempts.append(1)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(httpx.ConnectError):
        _client(storage, handler, max_attempts=4).connect()
    assert len(attempts) == 4


def test_lost_session_is_reconnected_and_retried_once(storage):
    storage.save({"session_token": TOKEN, "current_page": 5})
    calls = []
    live = {"resumed": False}

    def handler(request):
        calls.append((request.method, request.url.path))
        if request.url.path == "/api/v1/survey/sessions":
            live["resumed"] = True
            return httpx.Response(200, json=_view(5))
        if not live["resumed"]:
            return httpx.Response(404, json={"detail": "No live session"}, headers={SESSION_MISSING_HEADER: "1"})
        return httpx.Response(200, json=_view(6))

    body = _client(storage, handler).next()
    assert body["client_state"]["current_page"] == 6
    assert calls == [
        ("POST", f"/api/v1/survey/sessions/{TOKEN}/next"),
        ("POST", "/api/v1/survey/sessions"),
        ("POST", f"/api/v1/survey/sessions/{TOKEN}/next"),
    ]
    assert storage.load()["current_page"] == 6


def test_plain_404_is_not_reconnected(storage):
    storage.save({"session_token": TOKEN, "current_page": 2})
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(404, json={"detail": "No postal code has been entered yet"})

    with pytest.raises(SurveyClientError):
        _client(storage, handler).report()
    assert len(calls) == 1


# --- Keep-alive ---

def test_client_settings_come_from_survey_settings(storage):
    settings = SurveySettings(reconnect_max_attempts=3, reconnect_max_delay_seconds=4.0, keepalive_interval_seconds=15)
    client = SurveyClient.from_settings(storage, "http://survey.test", settings)
    assert client.max_attempts == 3
    assert client.wait.max == 4.0
    assert client.keepalive_interval == 15


def test_keepalive_only_after_a_quiet_interval(storage):
    storage.save({"session_token": TOKEN, "current_page": 3})
    now = [100.0]
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(200, json={"session_token": TOKEN, "current_page": 3})

    client = _client(storage, handler, keepalive_interval=60, clock=lambda: now[0])
    assert client.keepalive_if_due() is True
    now[0] += 30
    assert client.keepalive_if_due() is False
    now[0] += 31
    assert client.keepalive_if_due() is True
    assert paths == [f"/api/v1/survey/sessions/{TOKEN}/keepalive"] * 2


# --- Against the service ---

def test_client_drives_the_service(app_client, storage, complete_answers):
    client = SurveyClient(storage, http_client=app_client, wait=wait_none())
    client.connect()
    client.next()
    client.answer(complete_answers[1])
    assert client.next()["client_state"]["current_page"] == 2
    assert storage.load()["current_page"] == 2

    client.restart()
    assert storage.load() == {}
    view = client.connect()
    assert view["client_state"]["current_page"] == 0
    assert client.towns("2580")["towns"] == ["Goulburn", "Bungonia", "Tarago"]
