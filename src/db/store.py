import logging
import re
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from src.db.models import TABLES, metadata

logger = logging.getLogger(__name__)

# Control characters and statement separators never reach the store
_UNSAFE_TEXT = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_STATEMENT_SEPARATOR = ";"
MAX_TEXT_LENGTH = 1000
# Multi-select values are stored as one column, items joined by this separator
MULTI_SEPARATOR = ";"


class StoreError(Exception):
    """Raised when a store operation fails after retries."""
    pass


class RecordNotFoundError(StoreError):
    """Raised when an update targets a token with no row."""

    def __init__(self, table: str, token: str):
        self.table = table
        self.token = token
        super().__init__(f"No {table} row for session {token}")


class RowPresence(NamedTuple):
    answers: bool
    scores: bool

    @property
    def partial(self) -> bool:
        return self.answers != self.scores


def neutralize_text(value: str, max_length: Optional[int] = MAX_TEXT_LENGTH) -> str:
    """Strips characters that could alter the targeted row or chain statements."""
    cleaned = _UNSAFE_TEXT.sub("", value).replace(_STATEMENT_SEPARATOR, ",").strip()
    if max_length is not None:
        cleaned = cleaned[:max_length]
    return cleaned


class DataStoreAdapter:
    """
    Token-scoped access to the answers and scores tables.

    Every call opens its own connection and transaction; the two tables are written by
    independent operations, so callers can observe (and repair) one row without the other.
    """

    def __init__(self, engine: Engine, retry_attempts: int = 3, retry_wait: Optional[Callable] = None):
        self.engine = engine
        self.retry_attempts = retry_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=0.5, min=0.5, max=5)

    def init_schema(self) -> None:
        """Creates both tables if they do not exist yet."""
        metadata.create_all(self.engine)
        logger.info("Survey tables ensured")

    def _run(self, description: str, operation: Callable[[], Any]) -> Any:
        retrying = Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type(OperationalError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return retrying(operation)
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Store operation '{description}' failed: {e}", exc_info=True)
            raise StoreError(f"Store operation '{description}' failed") from e

    @staticmethod
    def _table(name: str):
        try:
            return TABLES[name]
        except KeyError:
            raise ValueError(f"Unknown table '{name}'. Expected one of {sorted(TABLES)}")

    @staticmethod
    def _clean(table, values: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = [key for key in values if key not in table.c]
        if unknown:
            raise ValueError(f"Unknown columns for {table.name}: {unknown}")
        cleaned = {}
        for key, value in values.items():
            length = getattr(table.c[key].type, "length", None) or MAX_TEXT_LENGTH
            if isinstance(value, (list, tuple)):
                value = MULTI_SEPARATOR.join(neutralize_text(str(item)) for item in value)[:length] or None
            elif isinstance(value, str):
                value = neutralize_text(value, length)
            cleaned[key] = value
        return cleaned

    def _create_row(self, table, token: str, initial_fields: Mapping[str, Any]) -> bool:
        fields = self._clean(table, {key: value for key, value in initial_fields.items() if key in table.c})

        def operation() -> bool:
            with self.engine.begin() as conn:
                exists = conn.execute(
                    select(table.c.session_token).where(table.c.session_token == token)
                ).first()
                if exists is not None:
                    return False
                conn.execute(insert(table).values(session_token=token, **fields))
                return True

        try:
            return self._run(f"create {table.name}", operation)
        except StoreError as e:
            if isinstance(e.__cause__, IntegrityError):
                # Concurrent create for the same token won the race
                return False
            raise

    def create(self, token: str, initial_fields: Optional[Mapping[str, Any]] = None) -> None:
        """Inserts one row per table for the token if absent; repeated calls have no further effect."""
        initial_fields = initial_fields or {}
        for name, table in TABLES.items():
            if self._create_row(table, token, initial_fields):
                logger.info(f"Created {name} row for session {token}")

    def update(self, table_name: str, token: str, values: Mapping[str, Any]) -> None:
        """
        Partial column update on the token's existing row.

        Raises:
            RecordNotFoundError: if the table has no row for the token.
            StoreError: if the store keeps failing.
        """
        table = self._table(table_name)
        fields = self._clean(table, values)
        if not fields:
            return

        def operation() -> None:
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(table).where(table.c.session_token == token).values(**fields)
                )
                if result.rowcount == 0:
                    raise RecordNotFoundError(table_name, token)

        self._run(f"update {table.name}", operation)
        logger.debug(f"Updated {len(fields)} {table_name} column(s) for session {token}")

    def fetch(self, table_name: str, token: str) -> Optional[Dict[str, Any]]:
        table = self._table(table_name)

        def operation():
            with self.engine.connect() as conn:
                return conn.execute(select(table).where(table.c.session_token == token)).first()

        row = self._run(f"fetch {table.name}", operation)
        return dict(row._mapping) if row is not None else None

    def check_consistency(self, token: str) -> RowPresence:
        """Row presence in both tables; a partial result means one create did not land."""
        presence = {}
        for name, table in TABLES.items():
            def operation(table=table):
                with self.engine.connect() as conn:
                    return conn.execute(
                        select(table.c.session_token).where(table.c.session_token == token)
                    ).first() is not None

            presence[name] = self._run(f"check {table.name}", operation)
        return RowPresence(**presence)

    def reconcile(self, token: str, initial_fields: Optional[Mapping[str, Any]] = None) -> RowPresence:
        """Recreates a missing row when only one of the pair exists. Never touches a complete pair."""
        presence = self.check_consistency(token)
        if presence.partial:
            logger.warning(f"Session {token} has a partial row pair {presence._asdict()}, recreating the missing row")
            if initial_fields is None and presence.answers:
                stored = self.fetch("answers", token) or {}
                initial_fields = {"start_time": stored.get("start_time")}
            elif initial_fields is None:
                stored = self.fetch("scores", token) or {}
                initial_fields = {"start_time": stored.get("start_time")}
            self.create(token, initial_fields)
            presence = self.check_consistency(token)
        return presence
