"""
TSP fund allocations and allocation-weighted returns.

Lifecycle (L) funds follow a published glide path: the allocation across the
G, F, C, S and I funds changes over time. Glide paths are loaded from CSV
tables whose rows are dated ``"Month YYYY"``; the allocation for any date is
the row closest to it.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .employee import Employee, TSPAllocation
from .errors import AllocationNotFoundError
from .historical_data import FUND_SERIES
from .simulation.protocols import AllocationProvider, MarketDataProvider

logger = logging.getLogger(__name__)

# Long-run mean annual returns used when neither an override nor history exists.
FALLBACK_FUND_RETURNS = {
    "C": 0.1125,
    "S": 0.1117,
    "I": 0.0634,
    "F": 0.0532,
    "G": 0.0493,
}
DEFAULT_FUND_RETURN = 0.08

GLIDE_PATH_COLUMNS = ["date", "G", "F", "C", "S", "I"]
GLIDE_PATH_DAY = 15


def parse_glide_path_date(value: str) -> date:
    """Parse ``"July 2005"`` style dates, using the 15th of the month."""
    parsed = pd.to_datetime(value.strip().strip('"'), format="%B %Y")
    return date(parsed.year, parsed.month, GLIDE_PATH_DAY)


def parse_percentage(value: Union[str, float]) -> float:
    """Parse ``"45.5%"`` or ``45.5`` into a 0-1 weight."""
    text = str(value).strip().strip('"').rstrip("%")
    return float(text) / 100


class LifecycleFundProvider:
    """In-memory glide paths for TSP Lifecycle funds."""

    def __init__(self, glide_paths: Optional[Mapping[str, Sequence[Tuple[date, TSPAllocation]]]] = None):
        self._glide_paths: Dict[str, List[Tuple[date, TSPAllocation]]] = {
            name: sorted(points, key=lambda point: point[0])
            for name, points in (glide_paths or {}).items()
        }

    @classmethod
    def from_dataframe(cls, fund_name: str, frame: pd.DataFrame) -> "LifecycleFundProvider":
        provider = cls()
        provider.add_fund(fund_name, frame)
        return provider

    def add_fund(self, fund_name: str, frame: pd.DataFrame) -> None:
        """Add a glide path from a frame with date, G, F, C, S and I columns.

        Rows with an unparseable date or percentage are skipped.
        """
        frame = frame.copy()
        frame.columns = [str(column).strip().strip('"') for column in frame.columns]
        missing = [column for column in GLIDE_PATH_COLUMNS if column not in frame.columns]
        if missing:
            raise ValueError(f"glide path for {fund_name} is missing columns {missing}")

        points: List[Tuple[date, TSPAllocation]] = []
        for row in frame.itertuples(index=False):
            record = row._asdict()
            try:
                when = parse_glide_path_date(str(record["date"]))
                allocation = TSPAllocation(
                    g_fund=parse_percentage(record["G"]),
                    f_fund=parse_percentage(record["F"]),
                    c_fund=parse_percentage(record["C"]),
                    s_fund=parse_percentage(record["S"]),
                    i_fund=parse_percentage(record["I"]),
                )
            except ValueError as e:
                logger.warning(f"Skipping glide path row for {fund_name}: {e}")
                continue
            points.append((when, allocation))

        if not points:
            raise ValueError(f"insufficient data in glide path for {fund_name}")
        self._glide_paths[fund_name] = sorted(points, key=lambda point: point[0])

    def load_csv(self, path: Union[str, Path], fund_name: Optional[str] = None) -> str:
        """Load one ``<fund>_allocation.csv`` file and return the fund name."""
        path = Path(path)
        name = fund_name or path.stem.replace("_allocation", "").upper()
        self.add_fund(name, pd.read_csv(path, dtype=str))
        logger.info(f"Loaded lifecycle fund {name} from {path}")
        return name

    def load_directory(self, data_path: Union[str, Path]) -> List[str]:
        return [self.load_csv(path) for path in sorted(Path(data_path).glob("*_allocation.csv"))]

    def available_funds(self) -> List[str]:
        return sorted(self._glide_paths)

    def allocation_at(self, fund_name: str, at: date) -> TSPAllocation:
        """Allocation of ``fund_name`` at the glide path date closest to ``at``.

        Raises:
            AllocationNotFoundError: If the fund has no glide path loaded
        """
        points = self._glide_paths.get(fund_name)
        if not points:
            raise AllocationNotFoundError(f"lifecycle fund {fund_name} not found")
        _, allocation = min(points, key=lambda point: abs((point[0] - at).days))
        return allocation


class FundReturnResolver:
    """Resolves per-fund and allocation-weighted TSP returns.

    Per-fund precedence: injected override, then the historical value for the
    calendar year, then the long-run fallback mean.
    """

    def __init__(
        self,
        historical_data: Optional[MarketDataProvider] = None,
        lifecycle_funds: Optional[AllocationProvider] = None,
        overrides: Optional[Mapping[str, float]] = None,
    ):
        self.historical_data = historical_data
        self.lifecycle_funds = lifecycle_funds
        self.overrides = dict(overrides or {})

    def fund_return(self, fund: str, year: int) -> float:
        if fund in self.overrides:
            return self.overrides[fund]
        if self.historical_data is not None and self.historical_data.is_loaded:
            value = self.historical_data.get_tsp_return(fund, year)
            if value is not None:
                return value
        return FALLBACK_FUND_RETURNS.get(fund, DEFAULT_FUND_RETURN)

    def weighted_return(self, allocation: TSPAllocation, year: int) -> float:
        weights = allocation.as_dict()
        return sum(weights[fund] * self.fund_return(fund, year) for fund in FUND_SERIES)

    def allocation_for(self, employee: Employee, at: date) -> TSPAllocation:
        """Allocation in effect for an employee: lifecycle, then fixed, then default."""
        if employee.tsp_lifecycle_fund is not None and self.lifecycle_funds is not None:
            try:
                return self.lifecycle_funds.allocation_at(employee.tsp_lifecycle_fund.fund_name, at)
            except AllocationNotFoundError as e:
                logger.warning(f"Falling back from lifecycle allocation for {employee.name}: {e}")
        if employee.tsp_allocation is not None:
            return employee.tsp_allocation
        return TSPAllocation.default()

    def return_for(self, employee: Employee, at: date) -> float:
        return self.weighted_return(self.allocation_for(employee, at), at.year)
