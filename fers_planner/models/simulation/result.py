"""
Monte Carlo result models.

Per-run outcomes and the aggregate statistics computed over them. The
household engine produces FERSMonteCarloResult; the single-portfolio
simulator produces PortfolioMonteCarloResult. Both serialize with
``model_dump(mode="json")``.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from fers_planner.models.cash_flow import ScenarioSummary


class MarketCondition(BaseModel):
    """One sampled set of economic conditions."""

    year: int = Field(..., description="Source year label (historical or synthetic)")
    tsp_returns: Dict[str, float] = Field(
        default_factory=dict, description="Annual return by fund letter"
    )
    inflation_rate: float = 0.0
    cola_rate: float = 0.0
    fehb_increase: float = 0.0


class PercentileRanges(BaseModel):
    """Rank-based percentiles of a set of values."""

    p10: float = 0.0
    p25: float = 0.0
    p50: float = 0.0
    p75: float = 0.0
    p90: float = 0.0


class NetIncomeMetrics(BaseModel):
    """Net income figures of one run's first scenario."""

    first_year_net_income: float = 0.0
    year_5_net_income: float = 0.0
    year_10_net_income: float = 0.0
    min_net_income: float = 0.0
    max_net_income: float = 0.0
    average_net_income: float = 0.0


class TSPMetrics(BaseModel):
    """TSP balance figures of one run's first scenario."""

    initial_balance: float = 0.0
    final_balance: float = 0.0
    longevity: int = Field(default=0, ge=0, description="Years until depletion or the horizon")
    depleted: bool = False
    max_drawdown: float = Field(default=0.0, ge=0, le=1)


class FERSSimulationOutcome(BaseModel):
    """Outcome of one household Monte Carlo run."""

    simulation_id: int = Field(..., ge=0)
    market_condition: Optional[MarketCondition] = None
    scenarios: List[ScenarioSummary] = Field(default_factory=list)
    net_income_metrics: NetIncomeMetrics = Field(default_factory=NetIncomeMetrics)
    tsp_metrics: TSPMetrics = Field(default_factory=TSPMetrics)
    success: bool = False
    failed: bool = Field(default=False, description="The run raised instead of completing")
    error: Optional[str] = None


class FERSMonteCarloResult(BaseModel):
    """Aggregate outcome of a household Monte Carlo analysis."""

    num_simulations: int = Field(..., gt=0, description="Runs requested")
    num_failed_runs: int = Field(default=0, ge=0)
    seed: int = Field(..., description="Seed the runs were derived from")
    use_historical: bool = True
    failed_run_policy: str = "count_as_failure"

    success_rate: float = Field(default=0.0, ge=0, le=1)
    median_net_income: float = 0.0
    net_income_percentiles: PercentileRanges = Field(default_factory=PercentileRanges)
    tsp_longevity_percentiles: PercentileRanges = Field(default_factory=PercentileRanges)
    probability_of_tsp_depletion: float = Field(default=0.0, ge=0, le=1)
    median_tsp_balance: float = 0.0
    income_volatility: float = Field(default=0.0, ge=0)
    worst_case_net_income: float = 0.0
    best_case_net_income: float = 0.0

    asset_allocation: Dict[str, float] = Field(default_factory=dict)
    market_conditions: List[MarketCondition] = Field(default_factory=list)
    simulations: List[FERSSimulationOutcome] = Field(default_factory=list)

    started_at: datetime = Field(..., description="When the analysis started")
    execution_time_seconds: Optional[float] = None


class PortfolioYearOutcome(BaseModel):
    year: int = Field(..., ge=1)
    balance: float
    withdrawal: float
    portfolio_return: float
    inflation: float
    cola: float


class PortfolioSimulationOutcome(BaseModel):
    """Outcome of one single-portfolio drawdown run."""

    year_outcomes: List[PortfolioYearOutcome] = Field(default_factory=list)
    portfolio_lasted: int = Field(default=0, ge=0)
    ending_balance: float = 0.0
    success: bool = False
    max_drawdown: float = 0.0
    total_withdrawn: float = 0.0


class PortfolioMonteCarloResult(BaseModel):
    """Aggregate outcome of the single-portfolio drawdown simulator."""

    simulations: List[PortfolioSimulationOutcome] = Field(default_factory=list)
    success_rate: float = Field(default=0.0, ge=0, le=1)
    median_ending_balance: float = 0.0
    percentile_ranges: PercentileRanges = Field(default_factory=PercentileRanges)
    num_simulations: int = Field(..., gt=0)
    projection_years: int = Field(..., gt=0)
    seed: int
    asset_allocation: Dict[str, float] = Field(default_factory=dict)
    withdrawal_strategy: str
    initial_balance: float
    annual_withdrawal: float
