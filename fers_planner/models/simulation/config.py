"""
Monte Carlo configuration models.

FERSMonteCarloConfig controls the household Monte Carlo engine: how many
runs, where market conditions come from, the seed and the variability of
each sampled quantity. PortfolioMonteCarloConfig controls the simplified
single-portfolio drawdown simulator.
"""

from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fers_planner.models.assumptions import MonteCarloSettings

# Used when neither the run config nor the configuration's settings give a value.
DEFAULT_TSP_RETURN_VARIABILITY = 0.15
DEFAULT_INFLATION_VARIABILITY = 0.02
DEFAULT_COLA_VARIABILITY = 0.02
DEFAULT_FEHB_VARIABILITY = 0.05

FailedRunPolicy = Literal["count_as_failure", "exclude"]
WithdrawalStrategyName = Literal[
    "fixed_amount", "fixed_percentage", "inflation_adjusted", "guardrails"
]


def _first_positive(*values: float) -> float:
    for value in values:
        if value > 0:
            return value
    return 0.0


class FERSMonteCarloConfig(BaseModel):
    """
    Configuration for a household Monte Carlo analysis.

    Example:
        ```python
        config = FERSMonteCarloConfig(num_simulations=500, seed=42, use_historical=False)
        result = FERSMonteCarloEngine(configuration, historical_data).run(config)
        ```
    """

    num_simulations: int = Field(
        default=1000, gt=0, le=100000, description="Number of Monte Carlo runs"
    )

    use_historical: bool = Field(
        default=True,
        description="Sample years from historical data instead of statistical distributions",
    )

    seed: Optional[int] = Field(
        default=None,
        ge=0,
        description="Base seed for reproducible results; 0 or None self-seeds",
    )

    # Variabilities; zero defers to the configuration's MonteCarloSettings
    tsp_return_variability: float = Field(default=0.0, ge=0, le=1)
    inflation_variability: float = Field(default=0.0, ge=0, le=1)
    cola_variability: float = Field(default=0.0, ge=0, le=1)
    fehb_variability: float = Field(default=0.0, ge=0, le=1)

    max_workers: int = Field(
        default=10, gt=0, le=64, description="Maximum number of concurrent runs"
    )

    failed_run_policy: FailedRunPolicy = Field(
        default="count_as_failure",
        description="Whether a failed run counts as a failure or is excluded",
    )

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    def resolved_variabilities(self, settings: Optional[MonteCarloSettings] = None) -> Dict[str, float]:
        """Resolve each variability: this config, then the settings, then the default."""
        settings = settings or MonteCarloSettings()
        return {
            "tsp_return": _first_positive(
                self.tsp_return_variability,
                settings.tsp_return_variability,
                DEFAULT_TSP_RETURN_VARIABILITY,
            ),
            "inflation": _first_positive(
                self.inflation_variability,
                settings.inflation_variability,
                DEFAULT_INFLATION_VARIABILITY,
            ),
            "cola": _first_positive(
                self.cola_variability, settings.cola_variability, DEFAULT_COLA_VARIABILITY
            ),
            "fehb": _first_positive(
                self.fehb_variability, settings.fehb_variability, DEFAULT_FEHB_VARIABILITY
            ),
        }


class PortfolioMonteCarloConfig(BaseModel):
    """Configuration for the single-portfolio drawdown simulator."""

    num_simulations: int = Field(default=1000, gt=0, le=100000)
    projection_years: int = Field(default=30, gt=0, le=100)
    seed: Optional[int] = Field(default=None, ge=0)
    use_historical: bool = Field(default=True)
    asset_allocation: Dict[str, float] = Field(
        ..., description="Fund weights by fund letter (must sum to 1.0)"
    )
    withdrawal_strategy: WithdrawalStrategyName = Field(default="fixed_amount")
    initial_balance: float = Field(..., gt=0, description="Starting portfolio balance")
    annual_withdrawal: float = Field(
        ...,
        ge=0,
        description="Dollar amount, or the rate for the fixed_percentage strategy",
    )
    max_workers: int = Field(default=10, gt=0, le=64)

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @field_validator("asset_allocation")
    @classmethod
    def validate_asset_allocation(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Validate that allocation weights are valid and sum to 1.0."""
        if not v:
            raise ValueError("asset_allocation cannot be empty")

        for fund, weight in v.items():
            if weight < 0 or weight > 1:
                raise ValueError(f"Weight for {fund} must be between 0 and 1: {weight}")

        total_weight = sum(v.values())
        if not (0.99 <= total_weight <= 1.01):
            raise ValueError(f"Asset weights must sum to 1.0, got {total_weight:.6f}")

        return {fund.upper(): weight for fund, weight in v.items()}
