# services/connectivity_engine/scorer.py
# Pure scoring functions for the eight soil threat categories.

import logging
from functools import lru_cache
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from .models import CategoryScore, InvalidSubmissionError, SurveyPage
from .rules import CATEGORY_RULES, selected

logger = logging.getLogger(__name__)

KNOWLEDGE_MAX = 10
KNOWLEDGE_FACTOR = 2
ACTION_FACTOR = 5
ATTITUDE_FACTOR = 5
# 2 * 10 + 5 * 4 + 5 * 4
MAX_WEIGHTED_SUM = 60


def knowledge_score(weights: Mapping[str, int], chosen: Iterable[str]) -> int:
    """
    Knowledge = 10 minus the weights of the concepts the respondent marked as new.
    Nothing selected and "already familiar" both leave the maximum of 10.
    """
    try:
        return KNOWLEDGE_MAX - sum(weights[option] for option in chosen)
    except KeyError as e:
        raise InvalidSubmissionError(f"Unknown knowledge option {e}")


def total_score(knowledge: int, action: int, attitude: int) -> int:
    weighted = KNOWLEDGE_FACTOR * knowledge + ACTION_FACTOR * action + ATTITUDE_FACTOR * attitude
    return round(100 * weighted / MAX_WEIGHTED_SUM)


def freeze_answers(answers: Mapping[str, Any], keys: Iterable[str]) -> Tuple[Tuple[str, Any], ...]:
    """Hashable snapshot of the answers a category depends on."""
    frozen = []
    for key in keys:
        value = answers.get(key)
        if isinstance(value, (list, tuple, set, frozenset)):
            value = tuple(sorted(value))
        frozen.append((key, value))
    return tuple(frozen)


@lru_cache(maxsize=4096)
def _score_frozen(category: str, frozen: Tuple[Tuple[str, Any], ...]) -> CategoryScore:
    rules = CATEGORY_RULES[category]
    answers: Dict[str, Any] = dict(frozen)
    knowledge = knowledge_score(rules.knowledge_weights, selected(answers, rules.knowledge_key))
    try:
        action = rules.action.score(answers)
        attitude = rules.attitude.score(answers)
    except KeyError as e:
        raise InvalidSubmissionError(f"Unknown option {e} for category '{category}'")
    return CategoryScore(
        category=category,
        knowledge=knowledge,
        action=action,
        attitude=attitude,
        total=total_score(knowledge, action, attitude),
    )


def score_category(category: str, answers: Mapping[str, Any]) -> CategoryScore:
    """
    Computes (Knowledge, Action, Attitude, Total) for one category from its page's answers.
    Results are memoized on the tuple of inputs the category actually reads.
    """
    if category not in CATEGORY_RULES:
        raise InvalidSubmissionError(f"Unknown category '{category}'")
    rules = CATEGORY_RULES[category]
    return _score_frozen(category, freeze_answers(answers, rules.input_keys()))


def score_page(page: SurveyPage, answers: Mapping[str, Any]) -> Optional[CategoryScore]:
    """Score for a category page, None for pages that carry no category."""
    if page.category is None:
        return None
    return score_category(page.category, answers)
