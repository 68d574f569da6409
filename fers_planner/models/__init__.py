"""Data models and calculations for FERS retirement planning."""

from .assumptions import (
    FederalRules,
    FundStatistics,
    GlobalAssumptions,
    MonteCarloSettings,
    TSPStatisticalModels,
)
from .cash_flow import (
    AnnualCashFlow,
    ImpactAnalysis,
    IncomeChange,
    LongTermAnalysis,
    ScenarioComparison,
    ScenarioSummary,
)
from .configuration import Configuration, load_configuration
from .employee import (
    Employee,
    Mortality,
    MortalityAssumptions,
    MortalitySpec,
    RetirementScenario,
    Scenario,
    TSPAllocation,
    TSPLifecycleFund,
)
from .errors import (
    AllocationNotFoundError,
    HistoricalDataUnavailableError,
    HorizonExceededError,
    PreconditionError,
    ProjectionError,
)
from .fund_allocation import FundReturnResolver, LifecycleFundProvider
from .historical_data import HistoricalDataManager
from .projection import ProjectionEngine

__all__ = [
    "FederalRules",
    "FundStatistics",
    "GlobalAssumptions",
    "MonteCarloSettings",
    "TSPStatisticalModels",
    "AnnualCashFlow",
    "ImpactAnalysis",
    "IncomeChange",
    "LongTermAnalysis",
    "ScenarioComparison",
    "ScenarioSummary",
    "Configuration",
    "load_configuration",
    "Employee",
    "Mortality",
    "MortalityAssumptions",
    "MortalitySpec",
    "RetirementScenario",
    "Scenario",
    "TSPAllocation",
    "TSPLifecycleFund",
    "AllocationNotFoundError",
    "HistoricalDataUnavailableError",
    "HorizonExceededError",
    "PreconditionError",
    "ProjectionError",
    "FundReturnResolver",
    "LifecycleFundProvider",
    "HistoricalDataManager",
    "ProjectionEngine",
]
