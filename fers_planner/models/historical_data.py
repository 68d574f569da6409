"""
Historical market data for TSP funds, inflation and Social Security COLA.

Series are loaded once from annual CSV files (``year,value``) or built from an
in-memory DataFrame, then queried read-only by the projection and Monte Carlo
engines.
"""

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel, Field

from .errors import HistoricalDataUnavailableError

logger = logging.getLogger(__name__)

FUND_SERIES = ("C", "S", "I", "F", "G")
INFLATION_SERIES = "inflation"
COLA_SERIES = "cola"

SERIES_FILES = {
    "C": "tsp-returns/c-fund-annual.csv",
    "S": "tsp-returns/s-fund-annual.csv",
    "I": "tsp-returns/i-fund-annual.csv",
    "F": "tsp-returns/f-fund-annual.csv",
    "G": "tsp-returns/g-fund-annual.csv",
    INFLATION_SERIES: "inflation/cpi-annual.csv",
    COLA_SERIES: "cola/ss-cola-annual.csv",
}

EXTREME_POSITIVE_RETURN = 1.0
EXTREME_NEGATIVE_RETURN = -0.5


class SeriesStatistics(BaseModel):
    """Summary statistics for one historical series."""

    mean: float = Field(..., description="Arithmetic mean of the annual values")
    standard_deviation: float = Field(..., description="Population standard deviation")
    minimum: float = Field(..., description="Smallest annual value")
    maximum: float = Field(..., description="Largest annual value")
    count: int = Field(..., ge=0, description="Number of observations")
    missing_years: List[int] = Field(default_factory=list, description="Gaps in the year range")


def normalize_fund_name(fund: str) -> Optional[str]:
    """Map "C", "c" or "c_fund" style names to the canonical series key."""
    key = fund.strip().upper()
    if key.endswith("_FUND"):
        key = key[: -len("_FUND")]
    return key if key in FUND_SERIES else None


def read_series_csv(path: Union[str, Path]) -> Dict[int, float]:
    """Read an annual ``year,value`` CSV, skipping malformed rows.

    Raises:
        ValueError: If the file holds no valid rows
    """
    frame = pd.read_csv(path, usecols=[0, 1], header=0, names=["year", "value"], dtype=str)
    frame["year"] = pd.to_numeric(frame["year"].str.strip(), errors="coerce")
    frame["value"] = pd.to_numeric(frame["value"].str.strip(), errors="coerce")
    frame = frame.dropna()
    if frame.empty:
        raise ValueError(f"no valid data points found in {path}")
    return {int(year): float(value) for year, value in zip(frame["year"], frame["value"])}


class HistoricalDataManager:
    """Read-only store of annual historical series keyed by calendar year."""

    def __init__(self, series: Optional[Mapping[str, Mapping[int, float]]] = None):
        """Initialize the manager.

        Args:
            series: Mapping of series key (C, S, I, F, G, inflation, cola) to
                ``{year: value}``
        """
        self._series: Dict[str, Dict[int, float]] = {}
        for name, values in (series or {}).items():
            key = normalize_fund_name(name) or name.lower()
            if values:
                self._series[key] = {int(year): float(value) for year, value in values.items()}

    @classmethod
    def from_dataframe(cls, frame: pd.DataFrame) -> "HistoricalDataManager":
        """Build from a DataFrame with a ``year`` column and one column per series."""
        if "year" not in frame.columns:
            raise ValueError("historical data frame must have a 'year' column")
        series: Dict[str, Dict[int, float]] = {}
        for column in frame.columns:
            if column == "year":
                continue
            values = frame[["year", column]].dropna()
            series[column] = {
                int(year): float(value) for year, value in zip(values["year"], values[column])
            }
        return cls(series)

    @classmethod
    def load_directory(cls, data_path: Union[str, Path]) -> "HistoricalDataManager":
        """Load every series from the standard directory layout.

        Raises:
            HistoricalDataUnavailableError: If any series file is missing or empty
        """
        base = Path(data_path)
        series: Dict[str, Dict[int, float]] = {}
        for name, relative in SERIES_FILES.items():
            path = base / relative
            try:
                series[name] = read_series_csv(path)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load historical series {name} from {path}: {e}")
                raise HistoricalDataUnavailableError(f"failed to load {name}: {e}") from e
        logger.info(f"Loaded {len(series)} historical series from {base}")
        return cls(series)

    @property
    def is_loaded(self) -> bool:
        return bool(self._series.get("C"))

    def series_names(self) -> List[str]:
        return sorted(self._series)

    def _lookup(self, name: str, year: int) -> Optional[float]:
        return self._series.get(name, {}).get(year)

    def get_tsp_return(self, fund: str, year: int) -> Optional[float]:
        """Historical annual return for a TSP fund, or None when not available."""
        key = normalize_fund_name(fund)
        if key is None:
            return None
        return self._lookup(key, year)

    def get_inflation_rate(self, year: int) -> Optional[float]:
        return self._lookup(INFLATION_SERIES, year)

    def get_cola_rate(self, year: int) -> Optional[float]:
        return self._lookup(COLA_SERIES, year)

    def available_years(self) -> Tuple[int, int]:
        """Year range of the C Fund series, used as the reference range.

        Raises:
            HistoricalDataUnavailableError: If no data is loaded
        """
        if not self.is_loaded:
            raise HistoricalDataUnavailableError("historical data not loaded")
        years = self._series["C"].keys()
        return min(years), max(years)

    def statistics(self, name: str) -> SeriesStatistics:
        """Mean, population standard deviation, extremes and gaps for a series."""
        key = normalize_fund_name(name) or name.lower()
        values = self._series.get(key)
        if not values:
            raise HistoricalDataUnavailableError(f"series {name} not loaded")

        data = np.array(list(values.values()), dtype=float)
        years = sorted(values)
        missing = [year for year in range(years[0], years[-1] + 1) if year not in values]
        return SeriesStatistics(
            mean=float(np.mean(data)),
            standard_deviation=float(np.std(data)),
            minimum=float(np.min(data)),
            maximum=float(np.max(data)),
            count=len(data),
            missing_years=missing,
        )

    def validate_data_quality(self) -> List[str]:
        """Report gaps, extreme C Fund returns and fund length mismatches.

        Raises:
            HistoricalDataUnavailableError: If no data is loaded
        """
        min_year, max_year = self.available_years()
        issues: List[str] = []

        missing = self.statistics("C").missing_years
        if missing:
            issues.append(f"Missing years in C Fund data: {missing}")

        for year, value in sorted(self._series["C"].items()):
            if value > EXTREME_POSITIVE_RETURN:
                issues.append(f"Extreme positive return in C Fund for year {year}: {value}")
            if value < EXTREME_NEGATIVE_RETURN:
                issues.append(f"Extreme negative return in C Fund for year {year}: {value}")

        expected = max_year - min_year + 1
        for fund in FUND_SERIES:
            values = self._series.get(fund)
            if values is not None and len(values) != expected:
                issues.append(f"{fund} Fund has {len(values)} data points, expected {expected}")

        return issues
