from fastapi import APIRouter, HTTPException, Depends, Request
from typing import Any, Callable
import logging

from src.schemas.survey import (
    AnswerUpdateRequest,
    ClientState,
    ConnectRequest,
    DeclineResponse,
    EndResponse,
    SessionView,
    SESSION_MISSING_HEADER,
)
from services.connectivity_engine.models import (
    IncompleteAssessmentError,
    InvalidSubmissionError,
    InvalidTransitionError,
)
from services.connectivity_engine.results_generator import ConnectivityReport
from services.connectivity_engine.wizard import SurveyContext, SurveyWizard
from src.db.store import StoreError
from src.location.reference import MapCenter, ReferenceDataset, ReferenceLookupError, TownList
from src.services.continuity import SessionContinuityManager, SessionNotFoundError

router = APIRouter()
logger = logging.getLogger(__name__)


# --- Dependencies (built once in main.create_app and held on app.state) ---

def get_continuity(request: Request) -> SessionContinuityManager:
    return request.app.state.continuity


def get_wizard(request: Request) -> SurveyWizard:
    return request.app.state.wizard


def get_reference(request: Request) -> ReferenceDataset:
    return request.app.state.reference


def _call(description: str, action: Callable[[], Any]) -> Any:
    """Runs an engine call and maps its errors to HTTP responses."""
    try:
        return action()
    except IncompleteAssessmentError as e:
        logger.info(f"Incomplete page during {description}: {e.messages}")
        raise HTTPException(status_code=422, detail={"messages": e.messages})
    except InvalidSubmissionError as e:
        logger.error(f"Invalid submission during {description}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except InvalidTransitionError as e:
        logger.error(f"Invalid transition during {description}: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    except SessionNotFoundError as e:
        logger.warning(f"No live session during {description}: {e}")
        raise HTTPException(status_code=404, detail=str(e), headers={SESSION_MISSING_HEADER: "1"})
    except ReferenceLookupError as e:
        logger.warning(f"Not found during {description}: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        logger.error(f"Store unavailable during {description}: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail="The response store is temporarily unavailable. Please try again.")
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error during {description}: {e}")
        raise HTTPException(status_code=500, detail="Internal Server Error")


def _session(continuity: SessionContinuityManager, session_token: str) -> SurveyContext:
    return _call("session lookup", lambda: continuity.get(session_token))


# --- Session lifecycle ---

@router.post("/survey/sessions", response_model=SessionView)
def connect_session(
    request: ConnectRequest,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    """
    Opens a survey session. A stored token and page resume an earlier session at that page.
    """
    ctx = _call("connect", lambda: continuity.connect(request.session_token, request.current_page))
    return _call("preview", lambda: wizard.preview(ctx))


@router.get("/survey/sessions/{session_token}", response_model=SessionView)
def get_session(
    session_token: str,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    ctx = _session(continuity, session_token)
    return _call("preview", lambda: wizard.preview(ctx))


@router.post("/survey/sessions/{session_token}/keepalive", response_model=ClientState)
def keepalive(session_token: str, continuity: SessionContinuityManager = Depends(get_continuity)):
    ctx = _call("keepalive", lambda: continuity.keepalive(session_token))
    return ctx.client_state()


@router.post("/survey/sessions/{session_token}/restart", response_model=ClientState)
def restart_session(session_token: str, continuity: SessionContinuityManager = Depends(get_continuity)):
    """Start over: the client clears its stored identifiers; stored rows are kept."""
    _call("restart", lambda: continuity.restart(session_token))
    return ClientState()


# --- Answers and navigation ---

@router.put("/survey/sessions/{session_token}/answers", response_model=SessionView)
def update_answers(
    session_token: str,
    request: AnswerUpdateRequest,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    ctx = _session(continuity, session_token)
    return _call("answer update", lambda: wizard.update_answers(ctx, request.answers))


@router.post("/survey/sessions/{session_token}/next", response_model=SessionView)
def next_page(
    session_token: str,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    """
    Commits the current page and moves forward. Refused with 422 and the list of
    unanswered questions while the page is incomplete.
    """
    ctx = _session(continuity, session_token)
    return _call("next", lambda: wizard.next(ctx))


@router.post("/survey/sessions/{session_token}/back", response_model=SessionView)
def previous_page(
    session_token: str,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    ctx = _session(continuity, session_token)
    return _call("back", lambda: wizard.back(ctx))


@router.post("/survey/sessions/{session_token}/decline", response_model=DeclineResponse)
def decline(
    session_token: str,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    ctx = _session(continuity, session_token)
    outcome = _call("decline", lambda: wizard.decline(ctx))
    return DeclineResponse(client_state=ctx.client_state(), **outcome.model_dump())


@router.post("/survey/sessions/{session_token}/faq/open", response_model=SessionView)
def open_faq(
    session_token: str,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    ctx = _session(continuity, session_token)
    return _call("faq open", lambda: wizard.open_faq(ctx))


@router.post("/survey/sessions/{session_token}/faq/close", response_model=SessionView)
def close_faq(
    session_token: str,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    ctx = _session(continuity, session_token)
    return _call("faq close", lambda: wizard.close_faq(ctx))


# --- Results ---

@router.get("/survey/sessions/{session_token}/report", response_model=ConnectivityReport)
def get_report(
    session_token: str,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    ctx = _session(continuity, session_token)
    return _call("report", lambda: wizard.report(ctx))


@router.post("/survey/sessions/{session_token}/end", response_model=EndResponse)
def end_session(
    session_token: str,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    ctx = _session(continuity, session_token)
    message = _call("end", lambda: wizard.end(ctx))
    return EndResponse(client_state=ctx.client_state(), message=message)


# --- Location ---

@router.get("/survey/sessions/{session_token}/map-center", response_model=MapCenter)
def map_center(
    session_token: str,
    continuity: SessionContinuityManager = Depends(get_continuity),
    wizard: SurveyWizard = Depends(get_wizard),
):
    ctx = _session(continuity, session_token)
    return _call("map center", lambda: wizard.map_center(ctx))


@router.get("/survey/postcodes/{postal_code}/towns", response_model=TownList)
def postcode_towns(postal_code: str, reference: ReferenceDataset = Depends(get_reference)):
    """Towns listed for a postal code; three-digit codes are zero-padded before lookup."""
    return _call("postcode lookup", lambda: reference.lookup(postal_code))
