"""
Break-even analyses over scenario projections.

Two questions are answered here: what TSP withdrawal rate would let a
retired household match its current take-home pay, and when the cumulative
net income of one scenario catches up with another's.
"""

import logging
from typing import List, Optional

from fers_planner.models.break_even import (
    BreakEvenAnalysis,
    BreakEvenResult,
    CumulativeBreakEvenResult,
)
from fers_planner.models.cash_flow import AnnualCashFlow
from fers_planner.models.configuration import Configuration
from fers_planner.models.employee import Scenario
from fers_planner.models.errors import HorizonExceededError, ProjectionError
from fers_planner.services.scenario_service import ScenarioService

logger = logging.getLogger(__name__)

MIN_WITHDRAWAL_RATE = 0.001
MAX_WITHDRAWAL_RATE = 0.15
NET_INCOME_TOLERANCE = 1000.0
MAX_ITERATIONS = 50
MIN_RATE_SPAN = 0.0001

CUMULATIVE_TOLERANCE = 0.01


def with_withdrawal_rate(scenario: Scenario, rate: float) -> Scenario:
    """Copy of a scenario with both people on variable-percentage withdrawals."""
    update = {"tsp_withdrawal_strategy": "variable_percentage", "tsp_withdrawal_rate": rate}
    return scenario.model_copy(
        update={
            "person_a": scenario.person_a.model_copy(update=update),
            "person_b": scenario.person_b.model_copy(update=update),
        }
    )


def first_full_retirement_index(scenario: Scenario, base_year: int) -> int:
    """Index of the first projection year in which both people are retired all year."""
    return (
        max(
            scenario.person_a.retirement_date.year - base_year,
            scenario.person_b.retirement_date.year - base_year,
        )
        + 1
    )


def _month_from_fraction(fraction: float) -> int:
    return min(12, max(1, int(fraction * 12)))


def cumulative_break_even(
    projection_a: List[AnnualCashFlow], projection_b: List[AnnualCashFlow]
) -> Optional[CumulativeBreakEvenResult]:
    """Find the first crossover of cumulative net income between two projections.

    Projections are aligned by index and compared over their common length.
    A crossover is either the cumulative difference reaching zero (within one
    cent) after the first year, or a sign change inside a year, located by
    linear interpolation.

    Args:
        projection_a: First projection
        projection_b: Second projection, starting in the same year

    Returns:
        The crossover, or None when the cumulative totals never cross

    Raises:
        ProjectionError: If either projection is empty
    """
    if not projection_a or not projection_b:
        raise ProjectionError("one or both projections are empty")

    cumulative_a = 0.0
    cumulative_b = 0.0
    for index in range(min(len(projection_a), len(projection_b))):
        year_a = projection_a[index]
        prev_diff = cumulative_a - cumulative_b
        cumulative_a += year_a.net_income
        cumulative_b += projection_b[index].net_income
        curr_diff = cumulative_a - cumulative_b

        # Equal totals before anything has accumulated are not a crossover
        if abs(curr_diff) < CUMULATIVE_TOLERANCE and index > 0:
            calendar_year = year_a.date.year
            return CumulativeBreakEvenResult(
                year_index=year_a.year,
                calendar_year=float(calendar_year),
                fraction_of_year=1.0,
                cumulative_amount=cumulative_a,
                prev_year=calendar_year - 1,
                next_year=calendar_year,
                break_even_month=12,
                break_even_year=calendar_year,
            )

        if index > 0 and prev_diff * curr_diff < 0:
            fraction = min(1.0, max(0.0, -prev_diff / (curr_diff - prev_diff)))
            prev_year = projection_a[index - 1].date.year
            return CumulativeBreakEvenResult(
                year_index=year_a.year,
                calendar_year=prev_year + fraction,
                fraction_of_year=fraction,
                cumulative_amount=cumulative_a - year_a.net_income * (1 - fraction),
                prev_year=prev_year,
                next_year=year_a.date.year,
                break_even_month=_month_from_fraction(fraction),
                break_even_year=prev_year,
            )

    return None


class AnalysisService:
    """Service for break-even analyses built on the scenario service."""

    def __init__(self, scenario_service: Optional[ScenarioService] = None) -> None:
        self.scenario_service = scenario_service or ScenarioService()
        self.logger = logging.getLogger(__name__)

    def find_break_even_withdrawal_rate(
        self, configuration: Configuration, scenario: Scenario, target_net_income: float
    ) -> BreakEvenResult:
        """Bisect for the withdrawal rate whose net income matches a target.

        Both people are switched to variable-percentage withdrawals and the
        rate is searched in [0.1%, 15%] until the first full retirement year's
        net income is within $1,000 of the target.

        Args:
            configuration: Household and assumptions
            scenario: Scenario whose retirement dates are kept
            target_net_income: Net income to match, usually current take-home pay

        Returns:
            BreakEvenResult for the best rate found

        Raises:
            HorizonExceededError: If the first full retirement year is beyond
                the projection horizon
            PreconditionError: If the scenario fails validation
        """
        base_year = configuration.global_assumptions.projection_base_year
        index = first_full_retirement_index(scenario, base_year)
        horizon = configuration.global_assumptions.projection_years
        if index >= horizon:
            raise HorizonExceededError(
                f"first full retirement year ({index}) exceeds projection length ({horizon})"
            )

        low, high = MIN_WITHDRAWAL_RATE, MAX_WITHDRAWAL_RATE
        for _ in range(MAX_ITERATIONS):
            rate = (low + high) / 2
            year = self._evaluate(configuration, scenario, rate, index)
            difference = year.net_income - target_net_income
            if abs(difference) < NET_INCOME_TOLERANCE:
                return self._result(scenario.name, rate, year, target_net_income, base_year)

            if difference < 0:
                low = rate
            else:
                high = rate

            if high - low < MIN_RATE_SPAN:
                break

        rate = (low + high) / 2
        year = self._evaluate(configuration, scenario, rate, index)
        return self._result(scenario.name, rate, year, target_net_income, base_year)

    def break_even_analysis(self, configuration: Configuration) -> BreakEvenAnalysis:
        """Break-even withdrawal rates of every scenario against current net income."""
        target = self.scenario_service.current_net_income(
            configuration.person_a, configuration.person_b, configuration.global_assumptions
        )
        results = []
        for scenario in configuration.scenarios:
            try:
                results.append(self.find_break_even_withdrawal_rate(configuration, scenario, target))
            except ProjectionError as e:
                self.logger.error(
                    f"Failed to calculate break-even rate for scenario {scenario.name}: {str(e)}"
                )
                raise
        return BreakEvenAnalysis(target_net_income=target, results=results)

    def _evaluate(
        self, configuration: Configuration, scenario: Scenario, rate: float, index: int
    ) -> AnnualCashFlow:
        projection = self.scenario_service.project(
            configuration, with_withdrawal_rate(scenario, rate)
        )
        if index >= len(projection):
            raise HorizonExceededError(
                f"first full retirement year ({index}) exceeds projection length ({len(projection)})"
            )
        return projection[index]

    @staticmethod
    def _result(
        name: str, rate: float, year: AnnualCashFlow, target: float, base_year: int
    ) -> BreakEvenResult:
        return BreakEvenResult(
            scenario_name=name,
            break_even_withdrawal_rate=rate,
            projected_net_income=year.net_income,
            projected_year=year.year + base_year - 1,
            tsp_withdrawal_amount=year.tsp_withdrawal_person_a + year.tsp_withdrawal_person_b,
            total_tsp_balance=year.total_tsp_balance(),
            current_vs_break_even_diff=year.net_income - target,
        )
