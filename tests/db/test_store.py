from unittest.mock import MagicMock

import pytest
from sqlalchemy import delete
from sqlalchemy.exc import OperationalError, ProgrammingError
from tenacity import wait_none

from src.db.models import answers_table, scores_table
from src.db.store import (
    DataStoreAdapter,
    RecordNotFoundError,
    RowPresence,
    StoreError,
    neutralize_text,
)

TOKEN = "f00d_20240301093015123456"


def _flaky_engine(real_engine, failures, error=None):
    """Engine whose connect() raises `failures` times before delegating to the real engine."""
    error = error or OperationalError("SELECT", {}, Exception("database is locked"))
    calls = []

    def connect():
        calls.append(1)
        if len(calls) <= failures:
            raise error
        return real_engine.connect()

    engine = MagicMock()
    engine.connect.side_effect = connect
    return engine, calls


# --- Text neutralisation ---

@pytest.mark.parametrize("raw, expected", [
    ("  Mole ploughing ", "Mole ploughing"),
    ("a; DROP TABLE survey_answers", "a, DROP TABLE survey_answers"),
    ("line\x00break\x1b", "linebreak"),
    ("tabs\tand\nnewlines", "tabs\tand\nnewlines"),
])
def test_neutralize_text(raw, expected):
    assert neutralize_text(raw) == expected


def test_neutralize_text_truncates():
    assert neutralize_text("x" * 20, max_length=5) == "xxxxx"


# --- Create ---

def test_create_inserts_both_rows(store):
    store.create(TOKEN, {"start_time": "2024-03-01T09:30:15+00:00"})
    assert store.check_consistency(TOKEN) == RowPresence(answers=True, scores=True)
    assert store.fetch("answers", TOKEN)["start_time"] == "2024-03-01T09:30:15+00:00"
    assert store.fetch("scores", TOKEN)["e_total"] is None


def test_create_is_idempotent(store):
    store.create(TOKEN, {"start_time": "first"})
    store.update("answers", TOKEN, {"role": "landowner"})
    store.create(TOKEN, {"start_time": "second"})
    row = store.fetch("answers", TOKEN)
    assert row["start_time"] == "first"
    assert row["role"] == "landowner"


def test_create_ignores_fields_a_table_does_not_have(store):
    store.create(TOKEN, {"start_time": "t", "role": "landowner"})
    assert store.fetch("answers", TOKEN)["role"] == "landowner"
    assert "role" not in store.fetch("scores", TOKEN)


# --- Update ---

def test_update_writes_only_given_columns(store):
    store.create(TOKEN)
    store.update("scores", TOKEN, {"e_knowledge": 6, "e_action": 3, "e_attitude": 3, "e_total": 70})
    store.update("scores", TOKEN, {"a_total": 75})
    row = store.fetch("scores", TOKEN)
    assert (row["e_total"], row["a_total"], row["sd_total"]) == (70, 75, None)


def test_update_missing_row_raises(store):
    with pytest.raises(RecordNotFoundError) as excinfo:
        store.update("answers", TOKEN, {"role": "landowner"})
    assert excinfo.value.table == "answers"
    assert excinfo.value.token == TOKEN


def test_update_only_touches_the_token_row(store):
    store.create(TOKEN)
    store.create("other_1")
    store.update("answers", TOKEN, {"role": "landowner"})
    assert store.fetch("answers", "other_1")["role"] is None


def test_update_joins_multi_select_and_neutralizes_items(store):
    store.create(TOKEN)
    store.update("answers", TOKEN, {"sd_val": ["gypsum", "other"], "other_sd_val": "Mole; ripping\x07"})
    row = store.fetch("answers", TOKEN)
    assert row["sd_val"] == "gypsum;other"
    assert row["other_sd_val"] == "Mole, ripping"


def test_update_empty_list_stores_null(store):
    store.create(TOKEN)
    store.update("answers", TOKEN, {"sd_val": []})
    assert store.fetch("answers", TOKEN)["sd_val"] is None


def test_update_truncates_to_column_length(store):
    store.create(TOKEN)
    length = answers_table.c.town.type.length
    store.update("answers", TOKEN, {"town": "y" * (length + 50), "other_role": "z" * 1500})
    row = store.fetch("answers", TOKEN)
    assert len(row["town"]) == length
    assert len(row["other_role"]) == 1000


def test_unknown_table_and_column_rejected(store):
    with pytest.raises(ValueError):
        store.fetch("sessions", TOKEN)
    store.create(TOKEN)
    with pytest.raises(ValueError, match="Unknown columns"):
        store.update("answers", TOKEN, {"not_a_column": 1})


def test_fetch_unknown_token_is_none(store):
    assert store.fetch("answers", "nobody") is None


# --- Consistency ---

def test_reconcile_recreates_missing_row_from_its_sibling(store):
    store.create(TOKEN, {"start_time": "2024-03-01T09:30:15+00:00"})
    with store.engine.begin() as conn:
        conn.execute(delete(scores_table).where(scores_table.c.session_token == TOKEN))
    assert store.check_consistency(TOKEN).partial

    presence = store.reconcile(TOKEN)
    assert presence == RowPresence(answers=True, scores=True)
    assert store.fetch("scores", TOKEN)["start_time"] == "2024-03-01T09:30:15+00:00"


def test_reconcile_leaves_complete_pair_alone(store):
    store.create(TOKEN, {"start_time": "kept"})
    assert store.reconcile(TOKEN, {"start_time": "ignored"}) == RowPresence(True, True)
    assert store.fetch("answers", TOKEN)["start_time"] == "kept"


def test_reconcile_does_not_create_rows_for_unknown_token(store):
    assert store.reconcile("nobody") == RowPresence(False, False)
    assert store.fetch("answers", "nobody") is None


def test_reconcile_recreates_missing_answers_row(store):
    store.create(TOKEN, {"start_time": "s"})
    with store.engine.begin() as conn:
        conn.execute(delete(answers_table).where(answers_table.c.session_token == TOKEN))
    store.reconcile(TOKEN)
    assert store.fetch("answers", TOKEN)["start_time"] == "s"


# --- Retries ---

def test_operational_error_is_retried(store):
    engine, calls = _flaky_engine(store.engine, failures=1)
    adapter = DataStoreAdapter(engine, retry_attempts=2, retry_wait=wait_none())
    assert adapter.fetch("answers", TOKEN) is None
    assert len(calls) == 2


def test_retries_exhausted_raise_store_error(store):
    engine, calls = _flaky_engine(store.engine, failures=5)
    adapter = DataStoreAdapter(engine, retry_attempts=3, retry_wait=wait_none())
    with pytest.raises(StoreError) as excinfo:
        adapter.fetch("answers", TOKEN)
    assert isinstance(excinfo.value.__cause__, OperationalError)
    assert len(calls) == 3


def test_other_database_errors_are_not_retried(store):
    error = ProgrammingError("SELECT", {}, Exception("syntax error"))
    engine, calls = _flaky_engine(store.engine, failures=5, error=error)
    adapter = DataStoreAdapter(engine, retry_attempts=3, retry_wait=wait_none())
    with pytest.raises(StoreError):
        adapter.fetch("answers", TOKEN)
    assert len(calls) == 1
