"""
Single-portfolio drawdown simulator.

A simplified Monte Carlo model of one portfolio: each year the balance grows
by the allocation-weighted sampled return, then a withdrawal is taken
according to the chosen strategy. A run ends early once the balance is
exhausted.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import numpy as np

from fers_planner.models.errors import HistoricalDataUnavailableError

from .config import PortfolioMonteCarloConfig
from .protocols import MarketDataProvider, SeedSource
from .result import (
    MarketCondition,
    PortfolioMonteCarloResult,
    PortfolioSimulationOutcome,
    PortfolioYearOutcome,
)
from .sampling import MarketConditionSampler, resolve_seed, spawn_generators
from .statistics import percentile_ranges, rank_median, rate

logger = logging.getLogger(__name__)

GUARDRAIL_THRESHOLD = 0.06
GUARDRAIL_CUT = 0.9
GUARDRAIL_FLOOR = 0.8


def portfolio_return(allocation: dict, market: MarketCondition) -> float:
    """Weighted return over the funds present in both the allocation and the sample."""
    return sum(
        market.tsp_returns[fund] * weight
        for fund, weight in allocation.items()
        if fund in market.tsp_returns
    )


def guardrails_withdrawal(
    config: PortfolioMonteCarloConfig, year: int, market: MarketCondition
) -> float:
    """Inflation-adjusted withdrawal cut by 10% above a 6% initial withdrawal rate.

    Never below 80% of the base withdrawal.
    """
    withdrawal = config.annual_withdrawal
    if year > 1:
        withdrawal = config.annual_withdrawal * (1 + market.inflation_rate) ** (year - 1)

    if withdrawal / config.initial_balance > GUARDRAIL_THRESHOLD:
        withdrawal *= GUARDRAIL_CUT

    return max(withdrawal, config.annual_withdrawal * GUARDRAIL_FLOOR)


def planned_withdrawal(
    config: PortfolioMonteCarloConfig, balance: float, year: int, market: MarketCondition
) -> float:
    """Withdrawal for a year before clamping to the balance.

    ``fixed_percentage`` treats ``annual_withdrawal`` as a rate of the
    post-growth balance; the other strategies treat it as dollars.
    """
    strategy = config.withdrawal_strategy
    if strategy == "fixed_percentage":
        return balance * config.annual_withdrawal
    if strategy == "inflation_adjusted":
        return config.annual_withdrawal * (1 + market.inflation_rate) ** (year - 1)
    if strategy == "guardrails":
        return guardrails_withdrawal(config, year, market)
    return config.annual_withdrawal


class PortfolioMonteCarloSimulator:
    """Monte Carlo drawdown of a single portfolio."""

    def __init__(
        self,
        historical_data: Optional[MarketDataProvider] = None,
        seed_source: Optional[SeedSource] = None,
    ):
        self.historical_data = historical_data
        self.seed_source = seed_source
        self.sampler = MarketConditionSampler(historical_data=historical_data)
        self.logger = logging.getLogger(__name__)

    def run(self, config: PortfolioMonteCarloConfig) -> PortfolioMonteCarloResult:
        """Run the drawdown simulation.

        Raises:
            HistoricalDataUnavailableError: If historical sampling is requested
                without loaded data
        """
        if config.use_historical and (
            self.historical_data is None or not self.historical_data.is_loaded
        ):
            raise HistoricalDataUnavailableError("historical data not loaded")

        seed = resolve_seed(config.seed, self.seed_source)
        generators = spawn_generators(seed, config.num_simulations)
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            futures = [executor.submit(self.run_single, config, rng) for rng in generators]
            outcomes: List[PortfolioSimulationOutcome] = [future.result() for future in futures]

        ending_balances = [outcome.ending_balance for outcome in outcomes]
        return PortfolioMonteCarloResult(
            simulations=outcomes,
            success_rate=rate(sum(1 for o in outcomes if o.success), len(outcomes)),
            median_ending_balance=rank_median(ending_balances),
            percentile_ranges=percentile_ranges(ending_balances),
            num_simulations=config.num_simulations,
            projection_years=config.projection_years,
            seed=seed,
            asset_allocation=config.asset_allocation,
            withdrawal_strategy=config.withdrawal_strategy,
            initial_balance=config.initial_balance,
            annual_withdrawal=config.annual_withdrawal,
        )

    def run_single(
        self, config: PortfolioMonteCarloConfig, rng: np.random.Generator
    ) -> PortfolioSimulationOutcome:
        balance = config.initial_balance
        peak = balance
        worst_drawdown = 0.0
        total_withdrawn = 0.0
        years: List[PortfolioYearOutcome] = []

        for year in range(1, config.projection_years + 1):
            if config.use_historical:
                market = self.sampler.sample_historical_year(rng)
            else:
                market = self.sampler.sample_statistical(rng)

            growth_rate = portfolio_return(config.asset_allocation, market)
            balance += balance * growth_rate

            withdrawal = min(planned_withdrawal(config, balance, year, market), max(balance, 0.0))
            balance -= withdrawal
            total_withdrawn += withdrawal

            peak = max(peak, balance)
            if peak > 0:
                worst_drawdown = max(worst_drawdown, (peak - balance) / peak)

            years.append(
                PortfolioYearOutcome(
                    year=year,
                    balance=balance,
                    withdrawal=withdrawal,
                    portfolio_return=growth_rate,
                    inflation=market.inflation_rate,
                    cola=market.cola_rate,
                )
            )

            if balance <= 0:
                break

        return PortfolioSimulationOutcome(
            year_outcomes=years,
            portfolio_lasted=len(years),
            ending_balance=balance,
            success=balance > 0,
            max_drawdown=worst_drawdown,
            total_withdrawn=total_withdrawn,
        )
