import logging
import threading
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

from services.connectivity_engine.models import InvalidSubmissionError
from services.connectivity_engine.wizard import SurveyContext, SurveyWizard, utcnow
from src.core.logging_config import session_extra
from src.db.models import TOKEN_LENGTH

logger = logging.getLogger(__name__)

TOKEN_TIME_FORMAT = "%Y%m%d%H%M%S%f"


class SessionNotFoundError(ValueError):
    """Raised when no live context exists for a token; the client should reconnect."""
    pass


class SessionContinuityManager:
    """
    Registry of live survey contexts keyed by session token.

    Tokens are minted per connection; a reconnecting client sends its stored token and
    page back and the context is rebuilt from the store at that page.
    """

    def __init__(self, wizard: SurveyWizard, session_timeout_seconds: int = 3600,
                 clock: Callable[[], datetime] = utcnow):
        self.wizard = wizard
        self.session_timeout_seconds = session_timeout_seconds
        self.clock = clock
        self._contexts: Dict[str, SurveyContext] = {}
        self._lock = threading.Lock()

    def mint(self, connection_id: str) -> str:
        """Token = connection id + UTC timestamp of the connection."""
        return f"{connection_id}_{self.clock().strftime(TOKEN_TIME_FORMAT)}"

    def __len__(self) -> int:
        return len(self._contexts)

    def connect(self, session_token: Optional[str] = None, current_page: Optional[int] = None) -> SurveyContext:
        """
        Returns the live context for a connection.

        Without a token a fresh session is minted at the intro page. With a token the
        existing live context is reused, or a new one is resumed from the store at
        current_page without re-validating earlier pages.
        """
        self.expire_idle()
        now = self.clock()
        if session_token is None:
            connection_id = uuid.uuid4().hex
            ctx = SurveyContext(self.mint(connection_id), connection_id, created_at=now)
            with self._lock:
                self._contexts[ctx.token] = ctx
            logger.info(f"Session {ctx.token} minted", extra=session_extra(ctx.token, ctx.page))
            return ctx

        session_token = session_token.strip()
        if not session_token or len(session_token) > TOKEN_LENGTH:
            raise InvalidSubmissionError("Session token is empty or too long")

        with self._lock:
            ctx = self._contexts.get(session_token)
        if ctx is not None:
            ctx.touch(now)
            return ctx

        connection_id = session_token.split("_", 1)[0]
        ctx = self.wizard.resume(SurveyContext(session_token, connection_id, created_at=now), current_page)
        with self._lock:
            # Another request may have resumed the same token meanwhile
            ctx = self._contexts.setdefault(session_token, ctx)
        return ctx

    def get(self, session_token: str) -> SurveyContext:
        self.expire_idle()
        with self._lock:
            ctx = self._contexts.get(session_token)
        if ctx is None:
            raise SessionNotFoundError(f"No live session for token {session_token}")
        ctx.touch(self.clock())
        return ctx

    def keepalive(self, session_token: str) -> SurveyContext:
        """No-op signal that only refreshes the idle timer."""
        return self.get(session_token)

    def expire_idle(self) -> List[str]:
        """Drops contexts idle past the timeout. Stored rows are untouched."""
        now = self.clock()
        with self._lock:
            expired = [
                token for token, ctx in self._contexts.items()
                if (now - ctx.last_seen).total_seconds() > self.session_timeout_seconds
            ]
            for token in expired:
                del self._contexts[token]
        for token in expired:
            logger.info(f"Session {token} expired after {self.session_timeout_seconds}s idle", extra=session_extra(token))
        return expired

    def restart(self, session_token: str) -> None:
        """Start over: forgets the live context only; prior rows stay in the store."""
        with self._lock:
            removed = self._contexts.pop(session_token, None)
        if removed is None:
            raise SessionNotFoundError(f"No live session for token {session_token}")
        logger.info(f"Session {session_token} cleared for start over", extra=session_extra(session_token))
