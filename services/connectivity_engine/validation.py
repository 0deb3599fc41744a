# services/connectivity_engine/validation.py
# Per-page validation gate. Gates forward navigation only.

import logging
from typing import Any, Mapping, Optional

from src.location.reference import ReferenceDataset, ReferenceLookupError

from .models import Question, SurveyPage, ValidationResult
from .rules import selected

logger = logging.getLogger(__name__)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _other_text_missing(question: Question, answers: Mapping[str, Any]) -> bool:
    if not question.other_key:
        return False
    return "other" in selected(answers, question.key) and _blank(answers.get(question.other_key))


def postcode_passes(question: Question, answers: Mapping[str, Any], reference: Optional[ReferenceDataset]) -> bool:
    """The code must match a reference entry and the chosen town must belong to that code."""
    code = answers.get(question.key)
    town = answers.get(question.town_key) if question.town_key else None
    if _blank(code) or reference is None:
        return False
    try:
        towns = reference.towns(code)
    except ReferenceLookupError:
        return False
    if question.town_key is None:
        return True
    return not _blank(town) and town in towns


def question_passes(question: Question, answers: Mapping[str, Any], reference: Optional[ReferenceDataset] = None) -> bool:
    value = answers.get(question.key)
    if question.kind == "postcode":
        return not question.required or postcode_passes(question, answers, reference)
    if question.kind == "multi":
        if question.required and not selected(answers, question.key):
            return False
    elif question.required and _blank(value):
        return False
    return not _other_text_missing(question, answers)


def validate_page(page: SurveyPage, answers: Mapping[str, Any], reference: Optional[ReferenceDataset] = None) -> ValidationResult:
    """
    Checks every gated question on a page, in question order.

    Returns a ValidationResult whose messages hold one entry per failing question.
    """
    messages = [
        question.message
        for question in page.questions
        if not question_passes(question, answers, reference)
    ]
    if messages:
        logger.debug(f"Page {page.index} validation failed on {len(messages)} question(s)")
    return ValidationResult(page=page.index, passed=not messages, messages=messages)
