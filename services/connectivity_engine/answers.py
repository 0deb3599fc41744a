# services/connectivity_engine/answers.py
# Coercion of client-supplied answers and their row representation in the answers table.

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.db.store import MULTI_SEPARATOR
from src.location.reference import ReferenceLookupError, pad_postal_code

from .models import InvalidSubmissionError, Question, SurveyCatalog, SurveyPage

logger = logging.getLogger(__name__)

# Roles an answer key can play for its question
VALUE, OTHER_TEXT, TOWN = "value", "other", "town"


def answer_fields(page: SurveyPage) -> Dict[str, Tuple[Question, str]]:
    """Maps every answer key on a page to its question and role."""
    fields = {}
    for question in page.questions:
        fields[question.key] = (question, VALUE)
        if question.other_key:
            fields[question.other_key] = (question, OTHER_TEXT)
        if question.town_key:
            fields[question.town_key] = (question, TOWN)
    return fields


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip()) or (isinstance(value, (list, tuple)) and not value)


def _coerce_text(key: str, value: Any, max_length: Optional[int]) -> str:
    if not isinstance(value, str):
        raise InvalidSubmissionError(f"Answer for '{key}' must be text")
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise InvalidSubmissionError(f"Answer for '{key}' exceeds {max_length} characters")
    return value


def _coerce_number(question: Question, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidSubmissionError(f"Answer for '{question.key}' must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidSubmissionError(f"Answer for '{question.key}' must be a number")
    if not math.isfinite(number):
        raise InvalidSubmissionError(f"Answer for '{question.key}' must be a finite number")
    if question.minimum is not None and number < question.minimum:
        raise InvalidSubmissionError(f"Answer for '{question.key}' must be at least {question.minimum:g}")
    if question.maximum is not None and number > question.maximum:
        raise InvalidSubmissionError(f"Answer for '{question.key}' must be at most {question.maximum:g}")
    return number


def _coerce_choices(question: Question, value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise InvalidSubmissionError(f"Answer for '{question.key}' must be a list of option IDs")
    options = question.option_ids()
    chosen = list(dict.fromkeys(value))
    unknown = [item for item in chosen if item not in options]
    if unknown:
        raise InvalidSubmissionError(f"Invalid option(s) {unknown} for question '{question.key}'")
    exclusive = [item for item in chosen if item in question.exclusive]
    if exclusive and len(chosen) > 1:
        raise InvalidSubmissionError(f"Option '{exclusive[0]}' cannot be combined with other options for question '{question.key}'")
    # Keep the catalogue order so identical selections serialise identically
    return [option for option in options if option in chosen]


def coerce_answer(question: Question, role: str, key: str, value: Any) -> Any:
    """Validates the shape of one answer and returns its canonical form; blank answers become None."""
    if _is_blank(value):
        return None
    if role == OTHER_TEXT:
        return _coerce_text(key, value, question.other_max_length)
    if role == TOWN:
        return _coerce_text(key, value, 255)
    if question.kind == "single":
        if not isinstance(value, str) or value not in question.option_ids():
            raise InvalidSubmissionError(f"Invalid answer '{value}' for question '{question.key}'")
        return value
    if question.kind == "multi":
        return _coerce_choices(question, value)
    if question.kind == "number":
        return _coerce_number(question, value)
    if question.kind == "postcode":
        try:
            return pad_postal_code(value)
        except ReferenceLookupError:
            # Kept as typed so the validation gate can ask for re-entry
            return str(value).strip()
    return _coerce_text(key, value, question.max_length)


def coerce_answers(page: SurveyPage, updates: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validates a batch of answer updates for one page.

    Raises:
        InvalidSubmissionError: for keys that do not belong to the page or malformed values.
    """
    fields = answer_fields(page)
    coerced = {}
    for key, value in updates.items():
        if key not in fields:
            raise InvalidSubmissionError(f"Unknown question key '{key}' for page {page.index}")
        question, role = fields[key]
        coerced[key] = coerce_answer(question, role, key, value)
    return coerced


def to_row(page: SurveyPage, answers: Mapping[str, Any]) -> Dict[str, Any]:
    """Column values for the answers table; the store joins multi-selects, unanswered stays NULL."""
    return {key: answers.get(key) for key in page.answer_keys()}


def from_row(catalog: SurveyCatalog, row: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Rebuilds an answer set from a stored answers row (the inverse of to_row)."""
    answers: Dict[str, Any] = {}
    if not row:
        return answers
    for page in catalog.pages:
        for key, (question, role) in answer_fields(page).items():
            value = row.get(key)
            if value is None:
                continue
            if role == VALUE and question.kind == "multi":
                value = [item for item in str(value).split(MULTI_SEPARATOR) if item]
            elif role == VALUE and question.kind == "number":
                value = float(value)
            answers[key] = value
    return answers
