# services/connectivity_engine/results_generator.py
# Builds the connectivity report from the persisted category totals.

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from .definitions import CATEGORIES
from .models import ReportBand, ReportConfig, StageDefinitions, SupportNote

logger = logging.getLogger(__name__)

CATEGORY_CODES = [category["code"] for category in CATEGORIES]
FOCUS_SEPARATOR = ", "


class ConnectivityReport(BaseModel):
    session_token: str
    connectivity_index: float = Field(..., description="Mean of the eight category totals")
    band_id: str
    headline: str
    narrative: str
    focus_areas: List[str] = Field(default_factory=list)
    stages: StageDefinitions
    support: SupportNote
    category_totals: Dict[str, float]
    more_info_url: Optional[str] = None


def total_column(code: str) -> str:
    return f"{code.lower()}_total"


def missing_totals(score_row: Optional[Mapping[str, Any]], codes: Sequence[str] = CATEGORY_CODES) -> List[str]:
    """Category codes whose total is absent from a scores row."""
    if not score_row:
        return list(codes)
    return [code for code in codes if score_row.get(total_column(code)) is None]


def category_totals(score_row: Mapping[str, Any], codes: Sequence[str] = CATEGORY_CODES) -> Dict[str, float]:
    return {code: float(score_row[total_column(code)]) for code in codes}


def connectivity_index(totals: Mapping[str, float]) -> float:
    """Arithmetic mean of the category totals."""
    if not totals:
        raise ValueError("Cannot compute a connectivity index without category totals")
    return sum(totals.values()) / len(totals)


def select_band(index: float, bands: Sequence[ReportBand]) -> ReportBand:
    """
    First band whose upper bound exceeds the index.

    Bounds are exclusive, so an index equal to a breakpoint falls in the next band up.
    """
    for band in bands:
        if band.upper_bound is None or index < band.upper_bound:
            return band
    return bands[-1]


def focus_threshold(bands: Sequence[ReportBand]) -> float:
    # Categories below the second breakpoint need attention
    return bands[1].upper_bound


def focus_areas(totals: Mapping[str, float], labels: Mapping[str, str], threshold: float) -> List[str]:
    """
    Labels of categories scoring below the threshold, lowest first.

    Ties keep category order. When nothing is below the threshold the single
    lowest-scoring category is named.
    """
    ordered = sorted(totals.items(), key=lambda item: item[1])
    below = [code for code, total in ordered if total < threshold]
    if not below and ordered:
        below = [ordered[0][0]]
    return [labels[code] for code in below]


def generate_report(session_token: str, score_row: Mapping[str, Any], config: ReportConfig,
                    more_info_url: Optional[str] = None) -> ConnectivityReport:
    """
    Maps a complete scores row to its narrative band.

    Args:
        session_token: Token the scores belong to.
        score_row: The persisted scores row; every category total must be present.
        config: Validated report band configuration.
        more_info_url: Link shown beneath the report.

    Raises:
        ValueError: if any category total is missing from the row.
    """
    missing = missing_totals(score_row)
    if missing:
        raise ValueError(f"Scores row for session {session_token} is missing totals for {missing}")

    totals = category_totals(score_row)
    index = connectivity_index(totals)
    band = select_band(index, config.bands)

    areas: List[str] = []
    narrative = band.narrative
    if band.lists_focus_areas:
        areas = focus_areas(totals, config.focus_labels, focus_threshold(config.bands))
        narrative = narrative.format(focus_areas=FOCUS_SEPARATOR.join(areas))

    logger.info(f"Report generated for session {session_token}: index {index:.2f}, band '{band.id}'")
    return ConnectivityReport(
        session_token=session_token,
        connectivity_index=index,
        band_id=band.id,
        headline=band.headline,
        narrative=narrative,
        focus_areas=areas,
        stages=band.stages,
        support=band.support,
        category_totals=totals,
        more_info_url=more_info_url,
    )
