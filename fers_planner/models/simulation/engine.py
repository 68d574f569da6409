"""
Household Monte Carlo engine.

Re-runs every scenario of a configuration under sampled economic conditions
and aggregates the outcomes into success rates, percentiles and medians.

Each run:
1. Samples a MarketCondition with its own random generator
2. Applies the sampled rates to a private deep copy of the configuration
3. Projects and summarizes every scenario through ScenarioService
4. Reduces the first scenario to net income and TSP metrics

Runs execute on a bounded thread pool. Results are collected in submission
order after every run has finished, so aggregation never sees a partial set.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional

import numpy as np

from fers_planner.models.configuration import Configuration
from fers_planner.models.employee import TSPAllocation
from fers_planner.models.errors import HistoricalDataUnavailableError
from fers_planner.models.fund_allocation import LifecycleFundProvider
from fers_planner.models.projection import ProjectionEngine
from fers_planner.services.scenario_service import ScenarioService

from .config import FERSMonteCarloConfig
from .protocols import Clock, MarketDataProvider, SeedSource
from .result import (
    FERSMonteCarloResult,
    FERSSimulationOutcome,
    MarketCondition,
    NetIncomeMetrics,
    TSPMetrics,
)
from .sampling import MarketConditionSampler, resolve_seed, spawn_generators
from .statistics import max_drawdown, percentile_ranges, population_std, rank_median, rate

logger = logging.getLogger(__name__)


def blended_return(allocation: TSPAllocation, market: MarketCondition) -> float:
    """Allocation-weighted return of the sampled fund returns."""
    weights = allocation.as_dict()
    if not any(weights.values()):
        weights = TSPAllocation.default().as_dict()
    return sum(market.tsp_returns.get(fund, 0.0) * weight for fund, weight in weights.items())


def net_income_metrics(summary, max_reasonable_income: float) -> NetIncomeMetrics:
    """Net income metrics with each year clamped to [0, max_reasonable_income]."""
    if summary.projection:
        incomes = [
            min(max_reasonable_income, max(0.0, year.net_income)) for year in summary.projection
        ]
    else:
        incomes = [summary.first_year_net_income]

    return NetIncomeMetrics(
        first_year_net_income=summary.first_year_net_income,
        year_5_net_income=summary.year_5_net_income,
        year_10_net_income=summary.year_10_net_income,
        min_net_income=min(incomes),
        max_net_income=max(incomes),
        average_net_income=sum(incomes) / len(incomes),
    )


def tsp_metrics(summary) -> TSPMetrics:
    return TSPMetrics(
        initial_balance=summary.initial_tsp_balance,
        final_balance=summary.final_tsp_balance,
        longevity=summary.tsp_longevity,
        depleted=summary.tsp_longevity < len(summary.projection),
        max_drawdown=max_drawdown([year.total_tsp_balance() for year in summary.projection]),
    )


class FERSMonteCarloEngine:
    """Monte Carlo analysis of a household configuration."""

    def __init__(
        self,
        configuration: Configuration,
        historical_data: Optional[MarketDataProvider] = None,
        seed_source: Optional[SeedSource] = None,
        clock: Optional[Clock] = None,
        lifecycle_funds: Optional[LifecycleFundProvider] = None,
    ):
        """Initialize the engine.

        Args:
            configuration: Household, assumptions and scenarios to analyze
            historical_data: Historical series; required for historical sampling
            seed_source: Seed used when a run config has no seed; defaults to
                the process-wide source
            clock: Time source for ``started_at``; defaults to ``datetime.now``
            lifecycle_funds: Optional lifecycle glide paths for projections
        """
        self.configuration = configuration
        self.historical_data = historical_data
        self.seed_source = seed_source
        self.clock = clock or datetime.now
        self.lifecycle_funds = lifecycle_funds
        self.logger = logging.getLogger(__name__)

    def run(self, config: FERSMonteCarloConfig) -> FERSMonteCarloResult:
        """Run the analysis.

        Args:
            config: Run count, sampling mode, seed and pool settings

        Returns:
            FERSMonteCarloResult with aggregates and per-run outcomes

        Raises:
            HistoricalDataUnavailableError: If historical sampling is requested
                without loaded data
        """
        if config.use_historical and (
            self.historical_data is None or not self.historical_data.is_loaded
        ):
            raise HistoricalDataUnavailableError("historical data not loaded")

        started_at = self.clock()
        seed = resolve_seed(config.seed, self.seed_source)
        assumptions = self.configuration.global_assumptions
        settings = assumptions.monte_carlo_settings
        allocation = settings.resolved_allocation()
        sampler = MarketConditionSampler(
            historical_data=self.historical_data,
            statistical_models=assumptions.tsp_statistical_models,
            variabilities=config.resolved_variabilities(settings),
        )

        self.logger.info(
            f"Starting {config.num_simulations} Monte Carlo runs "
            f"(seed={seed}, historical={config.use_historical})"
        )

        generators = spawn_generators(seed, config.num_simulations)
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            futures = [
                executor.submit(
                    self._run_single, index, rng, sampler, config.use_historical, allocation
                )
                for index, rng in enumerate(generators)
            ]
            outcomes: List[FERSSimulationOutcome] = []
            for index, future in enumerate(futures):
                try:
                    outcomes.append(future.result())
                except Exception as e:
                    self.logger.error(f"Monte Carlo run {index} failed: {str(e)}")
                    outcomes.append(
                        FERSSimulationOutcome(simulation_id=index, failed=True, error=str(e))
                    )

        result = self._aggregate(outcomes, config, seed, allocation, started_at)
        self.logger.info(
            f"Monte Carlo finished: success rate {result.success_rate:.1%}, "
            f"{result.num_failed_runs} failed runs"
        )
        return result

    def _run_single(
        self,
        index: int,
        rng: np.random.Generator,
        sampler: MarketConditionSampler,
        use_historical: bool,
        allocation: TSPAllocation,
    ) -> FERSSimulationOutcome:
        market = sampler.sample(rng, use_historical)

        configuration = self.configuration.model_copy(deep=True)
        weighted = blended_return(allocation, market)
        assumptions = configuration.global_assumptions.model_copy(
            update={
                "inflation_rate": market.inflation_rate,
                "cola_general_rate": market.cola_rate,
                "fehb_premium_inflation": market.fehb_increase,
                "tsp_return_pre_retirement": weighted,
                "tsp_return_post_retirement": weighted,
            }
        )
        configuration = configuration.model_copy(update={"global_assumptions": assumptions})

        service = ScenarioService(ProjectionEngine(self.historical_data, self.lifecycle_funds))
        summaries = [
            service.run_scenario(configuration, scenario, fund_return_overrides=market.tsp_returns)
            for scenario in configuration.scenarios
        ]

        first = summaries[0]
        return FERSSimulationOutcome(
            simulation_id=index,
            market_condition=market,
            scenarios=summaries,
            net_income_metrics=net_income_metrics(
                first, assumptions.monte_carlo_settings.max_reasonable_income
            ),
            tsp_metrics=tsp_metrics(first),
            success=all(
                summary.tsp_longevity == len(summary.projection) for summary in summaries
            ),
        )

    def _aggregate(
        self,
        outcomes: List[FERSSimulationOutcome],
        config: FERSMonteCarloConfig,
        seed: int,
        allocation: TSPAllocation,
        started_at: datetime,
    ) -> FERSMonteCarloResult:
        num_failed = sum(1 for outcome in outcomes if outcome.failed)
        if config.failed_run_policy == "exclude":
            counted = [outcome for outcome in outcomes if not outcome.failed]
        else:
            counted = outcomes

        average_incomes = [outcome.net_income_metrics.average_net_income for outcome in counted]
        longevities = [outcome.tsp_metrics.longevity for outcome in counted]
        final_balances = [outcome.tsp_metrics.final_balance for outcome in counted]

        return FERSMonteCarloResult(
            num_simulations=config.num_simulations,
            num_failed_runs=num_failed,
            seed=seed,
            use_historical=config.use_historical,
            failed_run_policy=config.failed_run_policy,
            success_rate=rate(sum(1 for outcome in counted if outcome.success), len(counted)),
            median_net_income=rank_median(average_incomes),
            net_income_percentiles=percentile_ranges(average_incomes),
            tsp_longevity_percentiles=percentile_ranges(longevities),
            probability_of_tsp_depletion=rate(
                sum(1 for outcome in counted if outcome.tsp_metrics.depleted), len(counted)
            ),
            median_tsp_balance=rank_median(final_balances),
            income_volatility=population_std(average_incomes),
            worst_case_net_income=min(average_incomes) if average_incomes else 0.0,
            best_case_net_income=max(average_incomes) if average_incomes else 0.0,
            asset_allocation=allocation.as_dict(),
            market_conditions=[
                outcome.market_condition for outcome in outcomes if outcome.market_condition
            ],
            simulations=outcomes,
            started_at=started_at,
            execution_time_seconds=(self.clock() - started_at).total_seconds(),
        )
