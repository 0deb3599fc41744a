import yaml
from pydantic import ValidationError
from typing import Dict, Any, List, Optional

from services.connectivity_engine.definitions import CATEGORIES, SURVEY_PAGES
from services.connectivity_engine.models import ReportConfig, SurveyCatalog


class SpecValidationError(ValueError):
    """Custom exception for catalogue/report validation errors not covered by Pydantic."""
    pass


def load_catalog(pages: Optional[List[Dict[str, Any]]] = None, categories: Optional[List[Dict[str, Any]]] = None) -> SurveyCatalog:
    """
    Validates the static page/question definitions and returns a SurveyCatalog.
    """
    catalog = SurveyCatalog.model_validate({
        "categories": CATEGORIES if categories is None else categories,
        "pages": SURVEY_PAGES if pages is None else pages,
    })

    indices = [page.index for page in catalog.pages]
    if indices != list(range(len(indices))):
        raise SpecValidationError(f"Pages must be indexed consecutively from 0, got {indices}")

    answer_keys = set()
    for page in catalog.pages:
        for question in page.questions:
            option_ids = question.option_ids()
            if len(option_ids) != len(set(option_ids)):
                raise SpecValidationError(f"Duplicate option ID in question '{question.key}' (page {page.index})")
            for key in question.answer_keys():
                if key in answer_keys:
                    raise SpecValidationError(f"Duplicate answer key found: {key}")
                answer_keys.add(key)

    pages_by_index = {page.index: page for page in catalog.pages}
    codes = set()
    for category in catalog.categories:
        if category.code in codes:
            raise SpecValidationError(f"Duplicate category code found: {category.code}")
        codes.add(category.code)
        page = pages_by_index.get(category.page)
        if page is None or page.category != category.code:
            raise SpecValidationError(f"Category '{category.code}' does not match page {category.page}")

    return catalog


def load_report_config_data(data: Dict[str, Any], category_codes: Optional[List[str]] = None) -> ReportConfig:
    """
    Validates the raw dictionary data against the ReportConfig model
    and performs additional band checks.
    """
    config = ReportConfig.model_validate(data)

    if not config.bands:
        raise SpecValidationError("Report configuration defines no bands")

    band_ids = set()
    previous_bound = None
    for position, band in enumerate(config.bands):
        if band.id in band_ids:
            raise SpecValidationError(f"Duplicate band ID found: {band.id}")
        band_ids.add(band.id)

        is_last = position == len(config.bands) - 1
        if band.upper_bound is None and not is_last:
            raise SpecValidationError(f"Only the last band may be open-ended, '{band.id}' has no upper_bound")
        if is_last and band.upper_bound is not None:
            raise SpecValidationError(f"The last band '{band.id}' must be open-ended")
        if band.upper_bound is not None:
            if previous_bound is not None and band.upper_bound <= previous_bound:
                raise SpecValidationError(f"Band '{band.id}' upper_bound must be greater than {previous_bound}")
            previous_bound = band.upper_bound
        if band.lists_focus_areas and "{focus_areas}" not in band.narrative:
            raise SpecValidationError(f"Band '{band.id}' lists focus areas but its narrative has no {{focus_areas}} placeholder")

    if len(config.bands) < 2:
        raise SpecValidationError("At least two bands are needed to derive the focus threshold")

    codes = category_codes if category_codes is not None else [category["code"] for category in CATEGORIES]
    missing = [code for code in codes if code not in config.focus_labels]
    if missing:
        raise SpecValidationError(f"Missing focus labels for categories: {missing}")

    return config


def load_report_config_from_file(file_path: str) -> ReportConfig:
    """
    Loads the report band configuration from a YAML file, validates it,
    and returns a ReportConfig object.
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise SpecValidationError(f"File not found: {file_path}")
    except yaml.YAMLError as e:
        raise SpecValidationError(f"Error parsing YAML file {file_path}: {e}")

    if data is None:
        raise SpecValidationError(f"YAML file is empty or invalid: {file_path}")

    try:
        return load_report_config_data(data)
    except ValidationError as e:
        raise SpecValidationError(f"Error validating report configuration {file_path}: {e}")
