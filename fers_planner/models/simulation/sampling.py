"""
Random market condition sampling for Monte Carlo runs.

Every run draws from its own ``numpy.random.Generator`` spawned from a base
seed with ``SeedSequence.spawn``, so a run's draws do not depend on which
worker executes it or in which order runs finish.

Normal deviates use the Box-Muller transform. Historical sampling perturbs
each drawn value by a normal variability clamped to three standard
deviations; statistical sampling draws directly from per-series normal
models.
"""

import logging
import math
import time
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from fers_planner.models.assumptions import TSPStatisticalModels
from fers_planner.models.errors import HistoricalDataUnavailableError
from fers_planner.models.historical_data import FUND_SERIES

from .protocols import MarketDataProvider, SeedSource
from .result import MarketCondition

logger = logging.getLogger(__name__)

# (mean, standard deviation) of annual returns
STATISTICAL_FUND_MODELS: Dict[str, Tuple[float, float]] = {
    "C": (0.1125, 0.1744),
    "S": (0.1117, 0.1933),
    "I": (0.0634, 0.1863),
    "F": (0.0532, 0.0565),
    "G": (0.0493, 0.0165),
}
DEFAULT_FUND_MODEL = (0.08, 0.15)

INFLATION_MODEL = (0.0259, 0.0137)
INFLATION_BOUNDS = (0.0, 0.20)
COLA_MODEL = (0.0255, 0.0182)
COLA_BOUNDS = (0.0, 0.15)
FEHB_MODEL = (0.045, 0.025)

STATISTICAL_YEAR_START = 2025
STATISTICAL_YEAR_SPAN = 30

VARIABILITY_CLAMP_SIGMAS = 3.0

_seed_source: SeedSource = time.time_ns


def set_seed_source(source: SeedSource) -> None:
    """Replace the process-wide source used when no seed is given."""
    global _seed_source
    _seed_source = source


def reset_seed_source() -> None:
    global _seed_source
    _seed_source = time.time_ns


def resolve_seed(seed: Optional[int], seed_source: Optional[SeedSource] = None) -> int:
    """Return ``seed`` when set (non-zero), otherwise draw one from the seed source."""
    if seed:
        return int(seed)
    source = seed_source or _seed_source
    return abs(int(source()))


def spawn_generators(seed: int, count: int) -> List[np.random.Generator]:
    """Independent generators for ``count`` runs derived from one seed."""
    children = np.random.SeedSequence(seed).spawn(count)
    return [np.random.default_rng(child) for child in children]


def box_muller(rng: np.random.Generator) -> float:
    """Standard normal deviate from two uniforms."""
    # random() is in [0, 1); 1 - u keeps log() away from zero
    u1 = 1.0 - rng.random()
    u2 = rng.random()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


def clamped_variability(rng: np.random.Generator, sigma: float) -> float:
    """Normal perturbation with standard deviation ``sigma`` clamped to +/-3 sigma."""
    if sigma == 0:
        return 0.0
    limit = VARIABILITY_CLAMP_SIGMAS * sigma
    return min(limit, max(-limit, box_muller(rng) * sigma))


def normal_draw(rng: np.random.Generator, mean: float, sigma: float) -> float:
    return mean + box_muller(rng) * sigma


class MarketConditionSampler:
    """Samples MarketConditions from historical data or statistical models."""

    def __init__(
        self,
        historical_data: Optional[MarketDataProvider] = None,
        statistical_models: Optional[TSPStatisticalModels] = None,
        variabilities: Optional[Mapping[str, float]] = None,
    ):
        """Initialize the sampler.

        Args:
            historical_data: Source of historical series; required for
                historical sampling
            statistical_models: Configured per-fund models overriding the
                built-in ones when both mean and deviation are non-zero
            variabilities: Perturbation sigmas keyed ``tsp_return``,
                ``inflation``, ``cola`` and ``fehb``
        """
        self.historical_data = historical_data
        self.statistical_models = statistical_models or TSPStatisticalModels()
        self.variabilities = dict(variabilities or {})

    def sample(self, rng: np.random.Generator, use_historical: bool) -> MarketCondition:
        if use_historical:
            return self.sample_historical(rng)
        return self.sample_statistical(rng)

    def _year_range(self) -> Optional[Tuple[int, int]]:
        if self.historical_data is None:
            return None
        try:
            return self.historical_data.available_years()
        except HistoricalDataUnavailableError:
            return None

    def sample_historical(self, rng: np.random.Generator) -> MarketCondition:
        """Draw independent historical years for returns, inflation, COLA and FEHB.

        Each value is perturbed by its clamped variability. Missing values fall
        back to the statistical draw. Inflation history stands in for FEHB
        premium growth.
        """
        year_range = self._year_range()
        if year_range is None:
            logger.warning("Historical data unavailable, sampling statistically")
            return self.sample_statistical(rng)

        min_year, max_year = year_range
        tsp_year = int(rng.integers(min_year, max_year + 1))
        inflation_year = int(rng.integers(min_year, max_year + 1))
        cola_year = int(rng.integers(min_year, max_year + 1))
        fehb_year = int(rng.integers(min_year, max_year + 1))

        tsp_sigma = self.variabilities.get("tsp_return", 0.0)
        returns: Dict[str, float] = {}
        for fund in FUND_SERIES:
            value = self.historical_data.get_tsp_return(fund, tsp_year)
            if value is None:
                returns[fund] = self.statistical_return(rng, fund)
            else:
                returns[fund] = value * (1 + clamped_variability(rng, tsp_sigma))

        inflation = self.historical_data.get_inflation_rate(inflation_year)
        if inflation is None:
            inflation = self.statistical_inflation(rng)
        else:
            inflation *= 1 + clamped_variability(rng, self.variabilities.get("inflation", 0.0))

        cola = self.historical_data.get_cola_rate(cola_year)
        if cola is None:
            cola = self.statistical_cola(rng)
        else:
            cola *= 1 + clamped_variability(rng, self.variabilities.get("cola", 0.0))

        fehb = self.historical_data.get_inflation_rate(fehb_year)
        if fehb is None:
            fehb = self.statistical_fehb(rng)
        else:
            fehb *= 1 + clamped_variability(rng, self.variabilities.get("fehb", 0.0))

        return MarketCondition(
            year=tsp_year,
            tsp_returns=returns,
            inflation_rate=inflation,
            cola_rate=cola,
            fehb_increase=fehb,
        )

    def sample_historical_year(self, rng: np.random.Generator) -> MarketCondition:
        """Replay one historical year unperturbed, falling back per series."""
        year_range = self._year_range()
        if year_range is None:
            return self.sample_statistical(rng)

        year = int(rng.integers(year_range[0], year_range[1] + 1))
        returns = {}
        for fund in FUND_SERIES:
            value = self.historical_data.get_tsp_return(fund, year)
            returns[fund] = self.statistical_return(rng, fund) if value is None else value

        inflation = self.historical_data.get_inflation_rate(year)
        cola = self.historical_data.get_cola_rate(year)
        return MarketCondition(
            year=year,
            tsp_returns=returns,
            inflation_rate=self.statistical_inflation(rng) if inflation is None else inflation,
            cola_rate=self.statistical_cola(rng) if cola is None else cola,
            fehb_increase=self.statistical_fehb(rng),
        )

    def sample_statistical(self, rng: np.random.Generator) -> MarketCondition:
        year = STATISTICAL_YEAR_START + int(rng.integers(0, STATISTICAL_YEAR_SPAN))
        returns = {fund: self.statistical_return(rng, fund) for fund in FUND_SERIES}
        return MarketCondition(
            year=year,
            tsp_returns=returns,
            inflation_rate=self.statistical_inflation(rng),
            cola_rate=self.statistical_cola(rng),
            fehb_increase=self.statistical_fehb(rng),
        )

    def fund_model(self, fund: str) -> Tuple[float, float]:
        """Mean and deviation for a fund: configured model if set, else built-in."""
        configured = self.statistical_models.for_fund(fund)
        if configured is not None and configured.is_set():
            return configured.mean, configured.standard_deviation
        return STATISTICAL_FUND_MODELS.get(fund, DEFAULT_FUND_MODEL)

    def statistical_return(self, rng: np.random.Generator, fund: str) -> float:
        mean, sigma = self.fund_model(fund)
        return normal_draw(rng, mean, sigma)

    def statistical_inflation(self, rng: np.random.Generator) -> float:
        low, high = INFLATION_BOUNDS
        return min(high, max(low, normal_draw(rng, *INFLATION_MODEL)))

    def statistical_cola(self, rng: np.random.Generator) -> float:
        low, high = COLA_BOUNDS
        return min(high, max(low, normal_draw(rng, *COLA_MODEL)))

    def statistical_fehb(self, rng: np.random.Generator) -> float:
        return normal_draw(rng, *FEHB_MODEL)
