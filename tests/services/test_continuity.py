import re
from datetime import datetime, timedelta, timezone

import pytest

from services.connectivity_engine.models import InvalidSubmissionError
from src.services.continuity import SessionContinuityManager, SessionNotFoundError

TOKEN_PATTERN = re.compile(r"^[0-9a-f]{32}_\d{20}$")


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 3, 1, 9, 30, 15, 123456, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def continuity(wizard, clock):
    return SessionContinuityManager(wizard, session_timeout_seconds=60, clock=clock)


def test_new_connection_mints_token(continuity):
    ctx = continuity.connect()
    assert TOKEN_PATTERN.match(ctx.token)
    assert ctx.token.endswith("_20240301093015123456")
    assert ctx.token.startswith(ctx.connection_id)
    assert ctx.page == 0
    assert len(continuity) == 1


def test_distinct_connections_get_distinct_tokens(continuity):
    assert continuity.connect().token != continuity.connect().token


def test_reconnect_reuses_live_context(continuity):
    ctx = continuity.connect()
    assert continuity.connect(ctx.token, 7) is ctx
    assert ctx.page == 0


def test_resume_reproduces_page_and_answers(continuity, wizard, complete_answers):
    ctx = continuity.connect()
    wizard.next(ctx)
    wizard.update_answers(ctx, complete_answers[1])
    wizard.next(ctx)
    continuity.restart(ctx.token)

    resumed = continuity.connect(ctx.token, 2)
    assert resumed is not ctx
    assert resumed.token == ctx.token
    assert resumed.page == 2
    assert resumed.answers["role"] == "land-manager"
    assert resumed.answers["farm_enterprises"] == ["grain"]
    assert resumed.start_time == ctx.start_time


def test_resume_unknown_token_starts_without_rows(continuity):
    ctx = continuity.connect("deadbeef_20240101000000000000", 5)
    assert ctx.page == 5
    assert ctx.answers == {}
    assert continuity.wizard.store.fetch("answers", ctx.token) is None


@pytest.mark.parametrize("token", ["   ", "x" * 256])
def test_malformed_token_rejected(continuity, token):
    with pytest.raises(InvalidSubmissionError):
        continuity.connect(token)


def test_get_unknown_token(continuity):
    with pytest.raises(SessionNotFoundError):
        continuity.get("nobody")


def test_idle_sessions_expire(continuity, clock):
    ctx = continuity.connect()
    clock.advance(61)
    assert continuity.expire_idle() == [ctx.token]
    with pytest.raises(SessionNotFoundError):
        continuity.get(ctx.token)


def test_keepalive_refreshes_idle_timer(continuity, clock):
    ctx = continuity.connect()
    clock.advance(45)
    continuity.keepalive(ctx.token)
    clock.advance(45)
    assert continuity.get(ctx.token) is ctx


def test_expiry_leaves_stored_rows(continuity, clock):
    ctx = continuity.connect()
    continuity.wizard.next(ctx)
    clock.advance(120)
    continuity.expire_idle()
    assert continuity.wizard.store.fetch("answers", ctx.token) is not None


def test_restart_forgets_context(continuity):
    ctx = continuity.connect()
    continuity.restart(ctx.token)
    assert len(continuity) == 0
    with pytest.raises(SessionNotFoundError):
        continuity.restart(ctx.token)
