import pandas as pd
import pytest

from config.settings import ASSETS_DIR
from src.location.reference import (
    ReferenceDataset,
    ReferenceLookupError,
    pad_postal_code,
)


@pytest.mark.parametrize("raw, expected", [
    ("800", "0800"),
    (800, "0800"),
    (800.0, "0800"),
    (" 2580 ", "2580"),
    ("0810", "0810"),
])
def test_pad_postal_code(raw, expected):
    assert pad_postal_code(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "28O0", "12345", 800.5, True])
def test_pad_postal_code_rejects(raw):
    with pytest.raises(ReferenceLookupError):
        pad_postal_code(raw)


def test_towns_in_file_order(reference):
    assert reference.towns("2580") == ["Goulburn", "Bungonia", "Tarago"]


def test_three_digit_code_finds_padded_entries(reference):
    assert reference.towns("800") == ["Darwin City"]
    assert reference.contains(800)


def test_unknown_code(reference):
    assert not reference.contains("9999")
    assert not reference.contains("abc")
    with pytest.raises(ReferenceLookupError, match="not found"):
        reference.towns("9999")


def test_map_center_skips_entries_without_coordinates(reference):
    center = reference.map_center("0810")
    assert (center.lat, center.lon) == (pytest.approx(-12.37), pytest.approx(130.868))


def test_map_center_unknown_code_is_none(reference):
    assert reference.map_center("9999") is None


def test_lookup_combines_towns_and_center(reference):
    result = reference.lookup("2580")
    assert result.postal_code == "2580"
    assert result.towns == ["Goulburn", "Bungonia", "Tarago"]
    assert result.center.lat == pytest.approx(-34.7547)


def test_numeric_codes_in_file_are_padded(tmp_path):
    """Spreadsheets often drop leading zeros; the dataset pads them back."""
    path = tmp_path / "numeric.csv"
    pd.DataFrame([{"POA_CODE21": 800, "SAL_NAME21": "Darwin City", "lat": -12.46, "lon": 130.84}]).to_csv(path, index=False)
    dataset = ReferenceDataset.from_csv(str(path))
    assert dataset.towns("0800") == ["Darwin City"]


def test_missing_columns_rejected():
    with pytest.raises(ValueError, match="missing columns"):
        ReferenceDataset(pd.DataFrame([{"postal_code": "0800", "town": "Darwin City"}]))


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ReferenceDataset.from_csv(str(tmp_path / "missing.csv"))


def test_bundled_reference_loads():
    dataset = ReferenceDataset.from_csv(str(ASSETS_DIR / "postcode_reference.csv"))
    assert len(dataset) > 0
    assert dataset.contains("0800")
