import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from config.settings import SurveySettings
from src.schemas.survey import SESSION_MISSING_HEADER

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/survey"


class SurveyClientError(Exception):
    """Raised for error responses the client cannot recover from."""

    def __init__(self, status_code: int, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Survey service returned {status_code}: {detail}")

    @property
    def messages(self) -> List[str]:
        """Validation messages carried by a refused forward transition."""
        if isinstance(self.detail, dict):
            return list(self.detail.get("messages", []))
        return []


class ClientStorage:
    """
    Client-side mirror of the session token and current page, kept in a small JSON file.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable client storage at {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, state: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"session_token": state.get("session_token"), "current_page": state.get("current_page")}, f)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class SurveyClient:
    """
    Thin client for the survey API.

    Every response's client_state is mirrored to storage. Transport failures are retried
    with capped exponential backoff; a lost live session is reconnected with the stored
    token and page and the call is retried once.
    """

    def __init__(self, storage: ClientStorage, base_url: Optional[str] = None,
                 http_client: Optional[httpx.Client] = None, max_attempts: int = 8,
                 max_delay: float = 32.0, wait=None, keepalive_interval: float = 60.0,
                 clock=time.monotonic):
        if http_client is None and base_url is None:
            raise ValueError("Either base_url or http_client is required")
        self.http = http_client or httpx.Client(base_url=base_url, timeout=10.0)
        self.storage = storage
        self.max_attempts = max_attempts
        self.wait = wait or wait_exponential(multiplier=1, min=1, max=max_delay)
        self.keepalive_interval = keepalive_interval
        self.clock = clock
        self._last_contact: Optional[float] = None

    @classmethod
    def from_settings(cls, storage: ClientStorage, base_url: str, settings: SurveySettings) -> "SurveyClient":
        return cls(
            storage,
            base_url=base_url,
            max_attempts=settings.reconnect_max_attempts,
            max_delay=settings.reconnect_max_delay_seconds,
            keepalive_interval=settings.keepalive_interval_seconds,
        )

    # --- Transport ---

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        response = retrying(self.http.request, method, path, **kwargs)
        self._last_contact = self.clock()
        return response

    def _mirror(self, body: Any) -> None:
        state = body.get("client_state") if isinstance(body, dict) else None
        if state is None:
            return
        if state.get("session_token") is None:
            self.storage.clear()
        else:
            self.storage.save(state)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.is_error:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = response.text
            raise SurveyClientError(response.status_code, detail)
        return response.json()

    def _token(self) -> str:
        token = self.storage.load().get("session_token")
        if not token:
            raise SurveyClientError(404, "No stored session; call connect() first")
        return token

    def _session_call(self, method: str, action: str = "", **kwargs) -> Any:
        path = f"{API_PREFIX}/sessions/{self._token()}" + (f"/{action}" if action else "")
        response = self._send(method, path, **kwargs)
        if response.status_code == 404 and response.headers.get(SESSION_MISSING_HEADER):
            logger.warning("Live session lost, reconnecting with the stored token and page")
            self.connect()
            path = f"{API_PREFIX}/sessions/{self._token()}" + (f"/{action}" if action else "")
            response = self._send(method, path, **kwargs)
        body = self._decode(response)
        self._mirror(body)
        return body

    # --- Survey operations ---

    def connect(self) -> Dict[str, Any]:
        """Opens a session, resuming the stored token and page when there is one."""
        stored = self.storage.load()
        response = self._send("POST", f"{API_PREFIX}/sessions", json={
            "session_token": stored.get("session_token"),
            "current_page": stored.get("current_page"),
        })
        body = self._decode(response)
        self._mirror(body)
        return body

    def state(self) -> Dict[str, Any]:
        return self._session_call("GET")

    def answer(self, answers: Dict[str, Any]) -> Dict[str, Any]:
        return self._session_call("PUT", "answers", json={"answers": answers})

    def next(self) -> Dict[str, Any]:
        return self._session_call("POST", "next")

    def back(self) -> Dict[str, Any]:
        return self._session_call("POST", "back")

    def decline(self) -> Dict[str, Any]:
        return self._session_call("POST", "decline")

    def keepalive(self) -> Dict[str, Any]:
        return self._session_call("POST", "keepalive")

    def keepalive_if_due(self) -> bool:
        """Sends a keep-alive when nothing has reached the service for a full interval."""
        if self._last_contact is not None and self.clock() - self._last_contact < self.keepalive_interval:
            return False
        self.keepalive()
        return True

    def report(self) -> Dict[str, Any]:
        return self._session_call("GET", "report")

    def end(self) -> Dict[str, Any]:
        return self._session_call("POST", "end")

    def restart(self) -> None:
        """Start over: clears only the stored identifiers."""
        try:
            self._session_call("POST", "restart")
        finally:
            self.storage.clear()

    def towns(self, postal_code: str) -> Dict[str, Any]:
        return self._decode(self._send("GET", f"{API_PREFIX}/postcodes/{postal_code}/towns"))
