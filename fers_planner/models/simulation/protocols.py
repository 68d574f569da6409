"""
Protocol interfaces for Monte Carlo providers.

The Monte Carlo engine depends on these interfaces rather than on concrete
classes so tests can substitute small in-memory providers, fixed seeds and a
frozen clock.
"""

from datetime import date, datetime
from typing import Callable, Optional, Protocol, Tuple

from fers_planner.models.employee import TSPAllocation


class MarketDataProvider(Protocol):
    """
    Provides historical market series keyed by calendar year.

    Implemented by HistoricalDataManager. Getters return None when the year
    or series is not available.
    """

    @property
    def is_loaded(self) -> bool:
        """Whether the reference (C Fund) series is present."""
        ...

    def get_tsp_return(self, fund: str, year: int) -> Optional[float]:
        """
        Get the annual return of a TSP fund.

        Args:
            fund: Fund letter (C, S, I, F, G)
            year: Calendar year

        Returns:
            Annual return as a decimal, or None when not available
        """
        ...

    def get_inflation_rate(self, year: int) -> Optional[float]:
        """Get the annual inflation rate for a year."""
        ...

    def get_cola_rate(self, year: int) -> Optional[float]:
        """Get the Social Security COLA for a year."""
        ...

    def available_years(self) -> Tuple[int, int]:
        """
        Get the inclusive year range of the reference series.

        Raises:
            HistoricalDataUnavailableError: If no data is loaded
        """
        ...


class AllocationProvider(Protocol):
    """Provides dated fund allocations for TSP Lifecycle funds."""

    def allocation_at(self, fund_name: str, at: date) -> TSPAllocation:
        """
        Get the allocation of a lifecycle fund in effect at a date.

        Raises:
            AllocationNotFoundError: If the fund is unknown
        """
        ...


# Zero-argument callable returning an integer seed, e.g. ``time.time_ns``.
SeedSource = Callable[[], int]

# Zero-argument callable returning the current time, e.g. ``datetime.now``.
Clock = Callable[[], datetime]
