from datetime import datetime, timezone

import pandas as pd
import pytest
from fastapi.testclient import TestClient
from tenacity import wait_none

from config.settings import ASSETS_DIR, StoreSettings, SurveySettings
from src.db.database import create_store_engine
from src.db.store import DataStoreAdapter
from src.location.reference import ReferenceDataset
from services.connectivity_engine.loader import load_catalog, load_report_config_from_file
from services.connectivity_engine.wizard import SurveyWizard

FIXED_NOW = datetime(2024, 3, 1, 9, 30, 15, 123456, tzinfo=timezone.utc)

REFERENCE_ROWS = [
    {"POA_CODE21": "0800", "SAL_NAME21": "Darwin City", "lat": -12.4634, "lon": 130.8456},
    {"POA_CODE21": "0810", "SAL_NAME21": "Alawa", "lat": None, "lon": None},
    {"POA_CODE21": "0810", "SAL_NAME21": "Brinkin", "lat": -12.3700, "lon": 130.8680},
    {"POA_CODE21": "2580", "SAL_NAME21": "Goulburn", "lat": -34.7547, "lon": 149.7186},
    {"POA_CODE21": "2580", "SAL_NAME21": "Bungonia", "lat": -34.8500, "lon": 149.9500},
    {"POA_CODE21": "2580", "SAL_NAME21": "Tarago", "lat": -35.0700, "lon": 149.6500},
]

# One complete, deterministic respondent. Category totals:
# E 70, A 75, SD 60, S 50, HL 33, NM 83, SW 80, DC 50 -> index 62.625, band "connected".
COMPLETE_ANSWERS = {
    1: {
        "role": "land-manager",
        "farm_enterprises": ["grain"],
        "number_soil_types": "1",
        "main_soil_type": "Red brown earth",
        "postal_code": "2580",
        "town": "Goulburn",
    },
    2: {"lat": -34.75, "lon": 149.72},
    3: {"e_k": ["soil-cover"], "e_ac": "cover-priority", "e_at": "minimise", "legislated_erosion": "No"},
    4: {"a_k": ["familiar"], "a_ac": "regular-monitoring", "a_at": "if-cost-effective", "a_ph": "acidic"},
    5: {"sd_k": ["pore-space", "sodicity"], "sd_ac": "minimise-compaction", "sd_at": "long-term", "sd_val": ["rotational-grazing"]},
    6: {"s_k": ["familiar"], "s_ac": "unaware", "s_at": "not-limiter", "s_val": "none"},
    7: {
        "hl_k": ["soil-functions", "acidic-fungi", "mixed-inputs", "mycorrhiza"],
        "hl_ac": "need-information",
        "hl_at": "productivity-focus",
        "hl_val": ["no-practices"],
        "hl_val2": ["cover-crops"],
    },
    8: {"nm_k": ["familiar"], "nm_ac": "seasonal-rates", "nm_at": "biology-and-moisture", "nm_val": ["organic"], "nm_val2": "low-input"},
    9: {"sw_k": ["climate-models"], "sw_ac": "moisture-sensors", "sw_at": "confident", "sw_val": "too-dry", "sw_val2": "rainfed"},
    10: {"dc_k": ["familiar"], "dc_ac": "high-priority", "dc_at": "too-expensive", "dc_val": ["none"], "dc_val2": "unclear"},
    11: {f"threat_{code}": "moderate" for code in ("e", "a", "sd", "dc", "s", "hl")},
    12: {"age": "45-54", "education_level": "bachelor", "land_type": ["freehold"], "land_area": 1200},
}

EXPECTED_TOTALS = {"E": 70, "A": 75, "SD": 60, "S": 50, "HL": 33, "NM": 83, "SW": 80, "DC": 50}


@pytest.fixture
def complete_answers():
    return {page: dict(answers) for page, answers in COMPLETE_ANSWERS.items()}


@pytest.fixture
def expected_totals():
    return dict(EXPECTED_TOTALS)


@pytest.fixture
def reference_csv(tmp_path):
    path = tmp_path / "postcodes.csv"
    pd.DataFrame(REFERENCE_ROWS).to_csv(path, index=False)
    return path


@pytest.fixture
def reference(reference_csv):
    return ReferenceDataset.from_csv(str(reference_csv))


@pytest.fixture
def store_settings(tmp_path):
    return StoreSettings(mode="offline", sqlite_path=str(tmp_path / "survey.sqlite"), retry_attempts=2)


@pytest.fixture
def store(store_settings):
    """DataStoreAdapter on a fresh SQLite file, retrying without waits."""
    engine = create_store_engine(store_settings)
    adapter = DataStoreAdapter(engine, retry_attempts=store_settings.retry_attempts, retry_wait=wait_none())
    adapter.init_schema()
    yield adapter
    engine.dispose()


@pytest.fixture(scope="session")
def catalog():
    return load_catalog()


@pytest.fixture(scope="session")
def report_config():
    return load_report_config_from_file(str(ASSETS_DIR / "report_bands.yml"))


@pytest.fixture
def wizard(catalog, store, reference, report_config):
    return SurveyWizard(
        catalog,
        store,
        reference,
        report_config,
        decline_redirect_url="https://example.org/soil-resources",
        more_info_url="https://example.org/more-info",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def app_client(store_settings, reference_csv):
    """TestClient on a fully wired app backed by a temporary store."""
    from main import create_app

    survey_settings = SurveySettings(reference_path=str(reference_csv), log_level="WARNING")
    app = create_app(store_settings=store_settings, survey_settings=survey_settings)
    with TestClient(app) as client:
        yield client
