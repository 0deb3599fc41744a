# services/connectivity_engine/wizard.py
# Page-progression state machine for one survey session.

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel

from src.core.logging_config import session_extra
from src.db.store import DataStoreAdapter, RecordNotFoundError
from src.location.reference import MapCenter, ReferenceDataset, ReferenceLookupError

from .answers import coerce_answers, from_row, to_row
from .definitions import BACK_TARGETS, INTRO_PAGE, LAST_QUESTION_PAGE, RESULTS_PAGE
from .models import (
    IncompleteAssessmentError,
    InvalidSubmissionError,
    InvalidTransitionError,
    ReportConfig,
    SurveyCatalog,
)
from .results_generator import ConnectivityReport, generate_report, missing_totals
from .scorer import score_page
from .validation import validate_page

logger = logging.getLogger(__name__)

ACTIVE, DECLINED, ENDED = "active", "declined", "ended"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SurveyContext:
    """
    Everything the server holds for one live session: the token, the current page,
    the answers given so far and the FAQ overlay flag.

    Transitions on a context are serialised by its lock; distinct contexts never share one.
    """

    def __init__(self, token: str, connection_id: str, created_at: datetime, page: int = INTRO_PAGE,
                 answers: Optional[Dict[str, Any]] = None):
        self.token = token
        self.connection_id = connection_id
        self.page = page
        self.answers: Dict[str, Any] = dict(answers or {})
        self.faq_open = False
        self.status = ACTIVE
        self.start_time: Optional[str] = None
        self.created_at = created_at
        self.last_seen = created_at
        self.lock = threading.RLock()

    def client_state(self) -> Dict[str, Any]:
        """Identifiers the client mirrors to its own storage after every transition."""
        return {"session_token": self.token, "current_page": self.page}

    def touch(self, now: datetime) -> None:
        self.last_seen = now


class DeclineOutcome(BaseModel):
    redirect_url: Optional[str] = None
    message: str


class SurveyWizard:
    """
    Drives a SurveyContext through pages 0 to 14.

    Forward moves are gated by the page's validation and commit the page's answers
    (and its category score) before the index advances. Backward moves never validate
    or write anything.
    """

    def __init__(self, catalog: SurveyCatalog, store: DataStoreAdapter, reference: Optional[ReferenceDataset],
                 report_config: ReportConfig, decline_redirect_url: Optional[str] = None,
                 more_info_url: Optional[str] = None, clock: Callable[[], datetime] = utcnow):
        self.catalog = catalog
        self.store = store
        self.reference = reference
        self.report_config = report_config
        self.decline_redirect_url = decline_redirect_url
        self.more_info_url = more_info_url
        self.clock = clock
        self._postcode_question = next(
            (question for question in catalog.questions() if question.kind == "postcode"), None
        )
        self._category_pages = {page.category: page for page in catalog.pages if page.category}

    # --- Views ---

    def _question_page(self, ctx: SurveyContext):
        if ctx.page == INTRO_PAGE or ctx.page == RESULTS_PAGE or not self.catalog.has_page(ctx.page):
            return None
        return self.catalog.page(ctx.page)

    def preview(self, ctx: SurveyContext) -> Dict[str, Any]:
        """
        Current page with its answers, the live validation state and the live category score.

        Nothing here is persisted; scores are only written when the page commits.
        """
        page = self.catalog.page(ctx.page) if self.catalog.has_page(ctx.page) else None
        question_page = self._question_page(ctx)
        view: Dict[str, Any] = {
            "client_state": ctx.client_state(),
            "status": ctx.status,
            "faq_open": ctx.faq_open,
            "page": page,
            "answers": {},
            "validation": None,
            "live_score": None,
        }
        if question_page is not None:
            view["answers"] = {key: ctx.answers.get(key) for key in question_page.answer_keys()}
            view["validation"] = validate_page(question_page, ctx.answers, self.reference)
            view["live_score"] = score_page(question_page, ctx.answers)
        return view

    # --- Guards ---

    @staticmethod
    def _require_active(ctx: SurveyContext) -> None:
        if ctx.status != ACTIVE:
            raise InvalidTransitionError(f"Session {ctx.token} is {ctx.status}")

    def _timestamp(self) -> str:
        return self.clock().isoformat()

    # --- Answering ---

    def update_answers(self, ctx: SurveyContext, updates: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Replaces answers on the current page and returns the refreshed preview.

        Raises:
            InvalidSubmissionError: for keys outside the current page or malformed values.
            InvalidTransitionError: if the session is no longer active.
        """
        with ctx.lock:
            self._require_active(ctx)
            page = self._question_page(ctx)
            if page is None:
                raise InvalidSubmissionError(f"Page {ctx.page} takes no answers")
            coerced = coerce_answers(page, updates)
            question = self._postcode_question
            if question is not None and question.key in coerced and question.town_key not in coerced:
                if coerced[question.key] != ctx.answers.get(question.key):
                    # A new postal code invalidates the previously chosen town
                    coerced[question.town_key] = None
            ctx.answers.update(coerced)
            return self.preview(ctx)

    # --- Navigation ---

    def next(self, ctx: SurveyContext) -> Dict[str, Any]:
        """
        Commits the current page and advances.

        Raises:
            IncompleteAssessmentError: if the page's validation gate refuses.
            InvalidTransitionError: on the results page or an inactive session.
            StoreError: if a write fails; the context keeps its page and answers.
        """
        with ctx.lock:
            self._require_active(ctx)
            if ctx.page == RESULTS_PAGE:
                raise InvalidTransitionError("The results page has no next page")

            if ctx.page == INTRO_PAGE:
                ctx.start_time = self._timestamp()
                self.store.create(ctx.token, {"start_time": ctx.start_time})
                target = INTRO_PAGE + 1
            else:
                page = self.catalog.page(ctx.page)
                result = validate_page(page, ctx.answers, self.reference)
                if not result.passed:
                    logger.debug(f"Session {ctx.token} refused to leave page {page.index}: {result.messages}", extra=session_extra(ctx.token, ctx.page))
                    raise IncompleteAssessmentError(result.messages, page.index)
                self._commit(ctx, page)
                target = RESULTS_PAGE if page.index == LAST_QUESTION_PAGE else page.index + 1

            logger.info(f"Session {ctx.token} advanced from page {ctx.page} to {target}", extra=session_extra(ctx.token, ctx.page))
            ctx.page = target
            ctx.faq_open = False
            return self.preview(ctx)

    def back(self, ctx: SurveyContext) -> Dict[str, Any]:
        with ctx.lock:
            self._require_active(ctx)
            if ctx.page in (INTRO_PAGE, RESULTS_PAGE):
                raise InvalidTransitionError(f"Cannot go back from page {ctx.page}")
            ctx.page = BACK_TARGETS.get(ctx.page, ctx.page - 1)
            ctx.faq_open = False
            return self.preview(ctx)

    def decline(self, ctx: SurveyContext) -> DeclineOutcome:
        """Ineligible respondents leave from the intro page; nothing is stored for them."""
        with ctx.lock:
            self._require_active(ctx)
            if ctx.page != INTRO_PAGE:
                raise InvalidTransitionError("Only the intro page can be declined")
            ctx.status = DECLINED
            logger.info(f"Session {ctx.token} declined eligibility", extra=session_extra(ctx.token, ctx.page))
            return DeclineOutcome(redirect_url=self.decline_redirect_url, message=self.report_config.decline_message)

    def open_faq(self, ctx: SurveyContext) -> Dict[str, Any]:
        with ctx.lock:
            self._require_active(ctx)
            ctx.faq_open = True
            return self.preview(ctx)

    def close_faq(self, ctx: SurveyContext) -> Dict[str, Any]:
        with ctx.lock:
            ctx.faq_open = False
            return self.preview(ctx)

    def resume(self, ctx: SurveyContext, page: Optional[int]) -> SurveyContext:
        """
        Restores a context from the store at a client-supplied page.

        Earlier pages are not re-validated and no rows are created. Pages outside
        0-12 and 14 restart the context at the intro page.
        """
        with ctx.lock:
            stored = self.store.fetch("answers", ctx.token)
            ctx.answers = from_row(self.catalog, stored)
            if stored:
                ctx.start_time = stored.get("start_time")
            valid = page is not None and (INTRO_PAGE <= page <= LAST_QUESTION_PAGE or page == RESULTS_PAGE)
            ctx.page = page if valid else INTRO_PAGE
            logger.info(f"Session {ctx.token} resumed at page {ctx.page} with {len(ctx.answers)} stored answer(s)", extra=session_extra(ctx.token, ctx.page))
            return ctx

    def end(self, ctx: SurveyContext) -> str:
        with ctx.lock:
            self._require_active(ctx)
            if ctx.page != RESULTS_PAGE:
                raise InvalidTransitionError("A session can only be ended from the results page")
            ctx.status = ENDED
            logger.info(f"Session {ctx.token} ended", extra=session_extra(ctx.token, ctx.page))
            return self.report_config.closing_message

    # --- Persistence ---

    def _write(self, ctx: SurveyContext, table: str, values: Mapping[str, Any]) -> None:
        try:
            self.store.update(table, ctx.token, values)
        except RecordNotFoundError:
            presence = self.store.reconcile(ctx.token, {"start_time": ctx.start_time} if ctx.start_time else None)
            logger.warning(f"Retrying {table} write for session {ctx.token} after reconcile {presence._asdict()}", extra=session_extra(ctx.token, ctx.page))
            self.store.update(table, ctx.token, values)

    def _commit(self, ctx: SurveyContext, page) -> None:
        # Scores settle before either write is issued
        score = score_page(page, ctx.answers)
        values = to_row(page, ctx.answers)
        if page.stamp:
            values[page.stamp] = self._timestamp()
        self._write(ctx, "answers", values)
        if score is not None:
            self._write(ctx, "scores", score.as_columns())
        logger.info(f"Session {ctx.token} committed page {page.index}", extra=session_extra(ctx.token, ctx.page))

    # --- Results ---

    def _repair_scores(self, ctx: SurveyContext, missing: List[str]) -> List[str]:
        """Recomputes missing category scores from stored answers; returns the codes still missing."""
        answers = from_row(self.catalog, self.store.fetch("answers", ctx.token))
        unrecoverable = []
        for code in missing:
            page = self._category_pages.get(code)
            if page is None or not validate_page(page, answers, self.reference).passed:
                unrecoverable.append(code)
                continue
            score = score_page(page, answers)
            logger.warning(f"Repairing missing {code} score for session {ctx.token} from stored answers", extra=session_extra(ctx.token, ctx.page))
            self._write(ctx, "scores", score.as_columns())
        return unrecoverable

    def report(self, ctx: SurveyContext) -> ConnectivityReport:
        """
        Report built from the stored scores row, so a resumed token reproduces it exactly.

        Raises:
            InvalidTransitionError: when the session is not on the results page.
            IncompleteAssessmentError: when category scores are missing and cannot be rebuilt.
        """
        with ctx.lock:
            if ctx.page != RESULTS_PAGE or ctx.status == DECLINED:
                raise InvalidTransitionError("The report is only available on the results page")
            row = self.store.fetch("scores", ctx.token)
            missing = missing_totals(row)
            if missing:
                unrecoverable = self._repair_scores(ctx, missing)
                if unrecoverable:
                    names = [self.report_config.focus_labels.get(code, code) for code in unrecoverable]
                    raise IncompleteAssessmentError(
                        [f"Scores are missing for: {', '.join(names)}."], RESULTS_PAGE
                    )
                row = self.store.fetch("scores", ctx.token)
            return generate_report(ctx.token, row, self.report_config, self.more_info_url)

    def map_center(self, ctx: SurveyContext) -> MapCenter:
        """
        Centre for the location map, from the postal code in memory or, after a resume, in the store.

        Raises:
            ReferenceLookupError: when no postal code is known or it has no coordinates.
        """
        question = self._postcode_question
        code = ctx.answers.get(question.key) if question else None
        if code is None and question is not None:
            stored = self.store.fetch("answers", ctx.token) or {}
            code = stored.get(question.key)
        if code is None or self.reference is None:
            raise ReferenceLookupError("No postal code has been entered yet")
        center = self.reference.map_center(code)
        if center is None:
            raise ReferenceLookupError(f"No coordinates are known for postal code '{code}'")
        return center
