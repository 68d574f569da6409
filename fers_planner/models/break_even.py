"""Break-even analysis result models."""

from typing import List

from pydantic import BaseModel, Field


class BreakEvenResult(BaseModel):
    """TSP withdrawal rate at which a scenario matches the target net income."""

    scenario_name: str
    break_even_withdrawal_rate: float = Field(..., ge=0, le=1)
    projected_net_income: float
    projected_year: int = Field(..., description="Calendar year of the evaluated projection year")
    tsp_withdrawal_amount: float
    total_tsp_balance: float
    current_vs_break_even_diff: float


class BreakEvenAnalysis(BaseModel):
    target_net_income: float
    results: List[BreakEvenResult] = Field(default_factory=list)


class CumulativeBreakEvenResult(BaseModel):
    """Point where the cumulative net income of two projections is equal."""

    year_index: int = Field(..., description="1-based projection year of the crossover")
    calendar_year: float = Field(..., description="Fractional calendar year, e.g. 2030.75")
    fraction_of_year: float = Field(..., ge=0, le=1)
    cumulative_amount: float
    prev_year: int
    next_year: int
    break_even_month: int = Field(..., ge=1, le=12)
    break_even_year: int
