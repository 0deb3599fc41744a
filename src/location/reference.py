import logging
from typing import Any, List, Optional

import pandas as pd
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

POSTAL_CODE_WIDTH = 4

# Column names of the ABS strata extract the reference file is built from
SOURCE_COLUMNS = {
    "POA_CODE21": "postal_code",
    "SAL_NAME21": "town",
    "lat": "lat",
    "lon": "lon",
}


class ReferenceLookupError(ValueError):
    """Raised when a postal code is malformed or not present in the reference dataset."""
    pass


class MapCenter(BaseModel):
    """Point used to centre the location map for a postal code."""
    lat: float = Field(..., description="Latitude in decimal degrees")
    lon: float = Field(..., description="Longitude in decimal degrees")


class TownList(BaseModel):
    postal_code: str
    towns: List[str]
    center: Optional[MapCenter] = None


def pad_postal_code(value: Any) -> str:
    """
    Normalises a postal code to its four-character, left-zero-padded form.

    Accepts ints (800), floats from numeric inputs (800.0) and strings ("800", " 0800 ").

    Raises:
        ReferenceLookupError: if the value is empty, not numeric or longer than four digits.
    """
    if value is None or isinstance(value, bool):
        raise ReferenceLookupError("Postal code is required")
    if isinstance(value, float):
        if not value.is_integer():
            raise ReferenceLookupError(f"Postal code must be a whole number, got {value}")
        value = int(value)
    code = str(value).strip()
    if not code.isdigit():
        raise ReferenceLookupError(f"Postal code must contain only digits, got '{code}'")
    if len(code) > POSTAL_CODE_WIDTH:
        raise ReferenceLookupError(f"Postal code must have at most {POSTAL_CODE_WIDTH} digits, got '{code}'")
    return code.zfill(POSTAL_CODE_WIDTH)


class ReferenceDataset:
    """
    Read-only postcode to town/coordinate table, loaded once and queried by exact code match.
    """

    def __init__(self, frame: pd.DataFrame):
        missing = [column for column in SOURCE_COLUMNS.values() if column not in frame.columns]
        if missing:
            raise ValueError(f"Reference data is missing columns: {missing}")
        frame = frame[list(SOURCE_COLUMNS.values())].copy()
        frame["postal_code"] = frame["postal_code"].astype(str).str.strip().str.zfill(POSTAL_CODE_WIDTH)
        frame["town"] = frame["town"].astype(str).str.strip()
        frame["lat"] = pd.to_numeric(frame["lat"], errors="coerce")
        frame["lon"] = pd.to_numeric(frame["lon"], errors="coerce")
        self._frame = frame.reset_index(drop=True)
        self._codes = frozenset(self._frame["postal_code"])
        logger.info(f"Reference dataset loaded with {len(self._frame)} entries across {len(self._codes)} postal codes")

    @classmethod
    def from_csv(cls, path: str) -> "ReferenceDataset":
        try:
            frame = pd.read_csv(path, dtype={"POA_CODE21": str, "SAL_NAME21": str})
        except FileNotFoundError:
            logger.error(f"Reference dataset not found at {path}")
            raise
        return cls(frame.rename(columns=SOURCE_COLUMNS))

    def __len__(self) -> int:
        return len(self._frame)

    def _entries(self, postal_code: Any) -> pd.DataFrame:
        code = pad_postal_code(postal_code)
        return self._frame[self._frame["postal_code"] == code]

    def contains(self, postal_code: Any) -> bool:
        try:
            return pad_postal_code(postal_code) in self._codes
        except ReferenceLookupError:
            return False

    def towns(self, postal_code: Any) -> List[str]:
        """
        Towns listed for a postal code, in file order.

        Raises:
            ReferenceLookupError: if the code is malformed or unknown.
        """
        entries = self._entries(postal_code)
        if entries.empty:
            raise ReferenceLookupError(f"Postal code '{pad_postal_code(postal_code)}' was not found")
        return entries["town"].tolist()

    def map_center(self, postal_code: Any) -> Optional[MapCenter]:
        """First entry for the code with valid coordinates, or None."""
        entries = self._entries(postal_code).dropna(subset=["lat", "lon"])
        if entries.empty:
            return None
        first = entries.iloc[0]
        return MapCenter(lat=float(first["lat"]), lon=float(first["lon"]))

    def lookup(self, postal_code: Any) -> TownList:
        code = pad_postal_code(postal_code)
        return TownList(postal_code=code, towns=self.towns(code), center=self.map_center(code))
