from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from services.connectivity_engine.models import CategoryScore, SurveyPage, ValidationResult


class ClientState(BaseModel):
    session_token: Optional[str] = None
    current_page: Optional[int] = None


class ConnectRequest(BaseModel):
    session_token: Optional[str] = None  # Stored token sent back on reconnect
    current_page: Optional[int] = None


class AnswerUpdateRequest(BaseModel):
    answers: Dict[str, Any]  # answer key → option ID(s), number or text


class SessionView(BaseModel):
    client_state: ClientState
    status: str
    faq_open: bool = False
    page: Optional[SurveyPage] = None
    answers: Dict[str, Any] = Field(default_factory=dict)
    validation: Optional[ValidationResult] = None
    live_score: Optional[CategoryScore] = None


class DeclineResponse(BaseModel):
    client_state: ClientState
    redirect_url: Optional[str] = None
    message: str


class EndResponse(BaseModel):
    client_state: ClientState
    message: str


# Set on 404 responses caused by a missing live session, so clients know to reconnect
SESSION_MISSING_HEADER = "X-Session-Missing"
