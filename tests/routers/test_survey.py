import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from src.routers.survey import router as survey_router, get_continuity, get_reference, get_wizard
from src.schemas.survey import SESSION_MISSING_HEADER
from services.connectivity_engine.models import (
    IncompleteAssessmentError,
    InvalidSubmissionError,
    InvalidTransitionError,
)
from services.connectivity_engine.wizard import SurveyContext, SurveyWizard
from src.db.store import StoreError
from src.location.reference import ReferenceDataset, ReferenceLookupError
from src.services.continuity import SessionContinuityManager, SessionNotFoundError

# Router-only app for error mapping with mocked collaborators
app = FastAPI()
app.include_router(survey_router, prefix="/api/v1")

client = TestClient(app)

API = "/api/v1/survey"


def _mock_view(ctx):
    return {
        "client_state": ctx.client_state(),
        "status": "active",
        "faq_open": False,
        "page": None,
        "answers": {},
        "validation": None,
        "live_score": None,
    }


@pytest.fixture
def mocked():
    """Continuity manager and wizard mocks wired into the router-only app."""
    ctx = SurveyContext("tok_1", "tok", created_at=None)
    continuity = MagicMock(spec=SessionContinuityManager)
    continuity.get.return_value = ctx
    wizard = MagicMock(spec=SurveyWizard)
    wizard.preview.return_value = _mock_view(ctx)
    app.dependency_overrides[get_continuity] = lambda: continuity
    app.dependency_overrides[get_wizard] = lambda: wizard
    yield ctx, continuity, wizard
    app.dependency_overrides.clear()


# --- Error mapping ---

def test_incomplete_page_maps_to_422_with_messages(mocked):
    _, _, wizard = mocked
    wizard.next.side_effect = IncompleteAssessmentError(["Please answer 2nd question."], 3)
    response = client.post(f"{API}/sessions/tok_1/next")
    assert response.status_code == 422
    assert response.json()["detail"] == {"messages": ["Please answer 2nd question."]}


def test_invalid_submission_maps_to_400(mocked):
    _, _, wizard = mocked
    wizard.update_answers.side_effect = InvalidSubmissionError("Unknown answer key 'x'")
    response = client.put(f"{API}/sessions/tok_1/answers", json={"answers": {"x": "y"}})
    assert response.status_code == 400
    assert "Unknown answer key" in response.json()["detail"]
    wizard.update_answers.assert_called_once()


def test_invalid_transition_maps_to_409(mocked):
    _, _, wizard = mocked
    wizard.back.side_effect = InvalidTransitionError("Cannot go back from page 0")
    response = client.post(f"{API}/sessions/tok_1/back")
    assert response.status_code == 409


def test_missing_session_maps_to_404_with_header(mocked):
    _, continuity, wizard = mocked
    continuity.get.side_effect = SessionNotFoundError("No live session for token tok_1")
    response = client.post(f"{API}/sessions/tok_1/next")
    assert response.status_code == 404
    assert response.headers[SESSION_MISSING_HEADER] == "1"
    wizard.next.assert_not_called()


def test_store_failure_maps_to_503(mocked):
    _, _, wizard = mocked
    wizard.next.side_effect = StoreError("down")
    response = client.post(f"{API}/sessions/tok_1/next")
    assert response.status_code == 503
    assert "temporarily unavailable" in response.json()["detail"]


def test_unexpected_error_maps_to_500(mocked):
    _, _, wizard = mocked
    wizard.report.side_effect = RuntimeError("boom")
    response = client.get(f"{API}/sessions/tok_1/report")
    assert response.status_code == 500
    assert response.json() == {"detail": "Internal Server Error"}


def test_map_center_without_postcode_maps_to_404(mocked):
    _, _, wizard = mocked
    wizard.map_center.side_effect = ReferenceLookupError("No postal code has been entered yet")
    response = client.get(f"{API}/sessions/tok_1/map-center")
    assert response.status_code == 404
    assert SESSION_MISSING_HEADER not in response.headers


def test_unknown_postcode_maps_to_404():
    reference = MagicMock(spec=ReferenceDataset)
    reference.lookup.side_effect = ReferenceLookupError("Postal code '9999' was not found")
    app.dependency_overrides[get_reference] = lambda: reference
    response = client.get(f"{API}/postcodes/9999/towns")
    app.dependency_overrides.clear()
    assert response.status_code == 404
    reference.lookup.assert_called_once_with("9999")


def test_malformed_request_body_is_rejected_before_the_wizard(mocked):
    _, _, wizard = mocked
    response = client.put(f"{API}/sessions/tok_1/answers", json={"not_answers": {}})
    assert response.status_code == 422
    wizard.update_answers.assert_not_called()


# --- Full service ---

def _answer_and_advance(app_client, token, answers):
    if answers is not None:
        response = app_client.put(f"{API}/sessions/{token}/answers", json={"answers": answers})
        assert response.status_code == 200, response.json()
    response = app_client.post(f"{API}/sessions/{token}/next")
    assert response.status_code == 200, response.json()
    return response.json()


def test_complete_survey_end_to_end(app_client, complete_answers, expected_totals):
    view = app_client.post(f"{API}/sessions", json={}).json()
    token = view["client_state"]["session_token"]
    assert view["client_state"]["current_page"] == 0
    assert view["page"]["id"] == "intro"

    view = _answer_and_advance(app_client, token, None)
    while view["client_state"]["current_page"] != 14:
        page = view["client_state"]["current_page"]
        view = _answer_and_advance(app_client, token, complete_answers[page])

    report = app_client.get(f"{API}/sessions/{token}/report").json()
    assert report["session_token"] == token
    assert report["band_id"] == "connected"
    assert report["connectivity_index"] == pytest.approx(62.625)
    assert report["category_totals"] == expected_totals
    assert report["focus_areas"] == ["working synergistically with soil biodiversity"]

    ended = app_client.post(f"{API}/sessions/{token}/end").json()
    assert ended["message"]
    assert app_client.post(f"{API}/sessions/{token}/next").status_code == 409


def test_incomplete_page_lists_messages(app_client, complete_answers):
    token = app_client.post(f"{API}/sessions", json={}).json()["client_state"]["session_token"]
    _answer_and_advance(app_client, token, None)
    _answer_and_advance(app_client, token, complete_answers[1])
    _answer_and_advance(app_client, token, None)

    app_client.put(f"{API}/sessions/{token}/answers", json={"answers": {"e_k": ["familiar"], "e_ac": "cover-priority"}})
    response = app_client.post(f"{API}/sessions/{token}/next")
    assert response.status_code == 422
    assert response.json()["detail"]["messages"] == ["Please answer 3rd question.", "Please answer 4th question."]
    assert app_client.get(f"{API}/sessions/{token}").json()["client_state"]["current_page"] == 3


def test_live_preview_reports_score_and_validation(app_client, complete_answers):
    token = app_client.post(f"{API}/sessions", json={}).json()["client_state"]["session_token"]
    _answer_and_advance(app_client, token, None)
    _answer_and_advance(app_client, token, complete_answers[1])
    _answer_and_advance(app_client, token, None)
    view = app_client.put(f"{API}/sessions/{token}/answers", json={"answers": complete_answers[3]}).json()
    assert view["live_score"]["total"] == 70
    assert view["validation"]["passed"] is True


def test_reconnect_after_restart_resumes_at_stored_page(app_client, complete_answers):
    token = app_client.post(f"{API}/sessions", json={}).json()["client_state"]["session_token"]
    _answer_and_advance(app_client, token, None)
    _answer_and_advance(app_client, token, complete_answers[1])

    cleared = app_client.post(f"{API}/sessions/{token}/restart").json()
    assert cleared == {"session_token": None, "current_page": None}
    response = app_client.post(f"{API}/sessions/{token}/next")
    assert response.status_code == 404
    assert response.headers[SESSION_MISSING_HEADER] == "1"

    view = app_client.post(f"{API}/sessions", json={"session_token": token, "current_page": 2}).json()
    assert view["client_state"] == {"session_token": token, "current_page": 2}
    back = app_client.post(f"{API}/sessions/{token}/back").json()
    assert back["answers"]["town"] == "Goulburn"


def test_decline_from_intro(app_client):
    token = app_client.post(f"{API}/sessions", json={}).json()["client_state"]["session_token"]
    response = app_client.post(f"{API}/sessions/{token}/decline")
    assert response.status_code == 200
    assert response.json()["redirect_url"]
    assert app_client.post(f"{API}/sessions/{token}/next").status_code == 409


def test_faq_and_keepalive(app_client):
    token = app_client.post(f"{API}/sessions", json={}).json()["client_state"]["session_token"]
    assert app_client.post(f"{API}/sessions/{token}/faq/open").json()["faq_open"] is True
    assert app_client.post(f"{API}/sessions/{token}/faq/close").json()["faq_open"] is False
    assert app_client.post(f"{API}/sessions/{token}/keepalive").json() == {"session_token": token, "current_page": 0}


def test_postcode_towns_and_map_center(app_client, complete_answers):
    towns = app_client.get(f"{API}/postcodes/800/towns").json()
    assert towns["postal_code"] == "0800"
    assert towns["towns"] == ["Darwin City"]

    token = app_client.post(f"{API}/sessions", json={}).json()["client_state"]["session_token"]
    _answer_and_advance(app_client, token, None)
    _answer_and_advance(app_client, token, complete_answers[1])
    center = app_client.get(f"{API}/sessions/{token}/map-center").json()
    assert center == {"lat": pytest.approx(-34.7547), "lon": pytest.approx(149.7186)}


def test_health_endpoints(app_client):
    assert app_client.get("/").json()["status"] == "ok"
    assert app_client.get("/health/db").json() == {"status": "ok", "db_check": 1}
