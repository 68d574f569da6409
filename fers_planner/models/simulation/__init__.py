"""
Monte Carlo simulation module.

This module re-runs household projections under sampled market conditions
and aggregates the outcomes into risk statistics.

Key Components:
- protocols: Protocol interfaces for market data, allocations, seeds and clocks
- config: Pydantic configuration models for Monte Carlo runs
- result: Per-run outcomes and aggregate result models
- sampling: Seeded market condition sampling
- statistics: Rank-based percentiles, medians and volatility
- engine: Household Monte Carlo engine built on the scenario service
- portfolio: Simplified single-portfolio drawdown simulator
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    # Import protocols for type checking
    from .protocols import AllocationProvider, Clock, MarketDataProvider, SeedSource

__all__ = [
    "MarketDataProvider",
    "AllocationProvider",
    "SeedSource",
    "Clock",
]
