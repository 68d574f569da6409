"""
Scenario service for projecting and comparing retirement scenarios.

This service validates a configuration, runs each scenario through the
projection engine and condenses the results into summaries and a comparison
against the household's current take-home pay.
"""

import logging
from datetime import date
from typing import List, Mapping, Optional

from fers_planner.models.assumptions import GlobalAssumptions
from fers_planner.models.cash_flow import (
    COMPARISON_YEARS,
    AnnualCashFlow,
    ImpactAnalysis,
    IncomeChange,
    LongTermAnalysis,
    ScenarioComparison,
    ScenarioSummary,
)
from fers_planner.models.configuration import Configuration
from fers_planner.models.employee import Employee, Scenario
from fers_planner.models.errors import PreconditionError
from fers_planner.models.projection import ProjectionEngine
from fers_planner.models.taxes import TaxableIncome, TaxCalculator

logger = logging.getLogger(__name__)

DISCOUNT_RATE = 0.03
MIN_INFLATION_RATE = -0.10
MAX_INFLATION_RATE = 0.20

KEY_CONSIDERATIONS = [
    "Consider healthcare costs",
    "Evaluate TSP withdrawal strategy",
    "Review Social Security timing",
]
RISK_ASSESSMENT = "Consider market volatility and inflation risks"
RECOMMENDATIONS = [
    "Diversify TSP allocations",
    "Monitor withdrawal rates",
    "Plan for healthcare costs",
]


def present_value(projection: List[AnnualCashFlow], discount_rate: float = DISCOUNT_RATE) -> float:
    """Net income of every year discounted back to the first projection year."""
    return sum(
        year.net_income / (1 + discount_rate) ** index for index, year in enumerate(projection)
    )


def tsp_longevity(projection: List[AnnualCashFlow]) -> int:
    """1-based year in which the TSP is first depleted, or the full horizon."""
    for index, year in enumerate(projection):
        if year.is_tsp_depleted():
            return index + 1
    return len(projection)


def deterministic_success_rate(projection: List[AnnualCashFlow], longevity: int) -> float:
    """Heuristic success percentage for a single deterministic projection.

    100 when the TSP lasts and ends at or above where it started, 95 when it
    lasts but declines, otherwise the share of the horizon it lasted with a
    floor of 10 for anything surviving past the first year.
    """
    if not projection:
        return 0.0

    length = len(projection)
    if longevity >= length:
        first = projection[0].total_tsp_balance()
        last = projection[-1].total_tsp_balance()
        return 100.0 if last >= first else 95.0

    rate = longevity / length * 100.0
    if rate < 10.0 and longevity > 1:
        return 10.0
    return rate


def net_income_for_year(projection: List[AnnualCashFlow], calendar_year: int) -> float:
    for year in projection:
        if year.date.year == calendar_year:
            return year.net_income
    return 0.0


def project_pre_retirement_net_income(
    current_net: float, calendar_year: int, cola_rate: float, base_year: int
) -> float:
    """Current take-home pay grown by the general COLA to ``calendar_year``."""
    years = calendar_year - base_year
    if years <= 0:
        return current_net
    return current_net * (1 + cola_rate) ** years


def income_change(scenario_name: str, baseline: float, new_income: float) -> IncomeChange:
    change = new_income - baseline
    return IncomeChange(
        scenario_name=scenario_name,
        net_income_change=change,
        percentage_change=change / baseline * 100 if baseline else 0.0,
        monthly_change=change / 12,
    )


def generate_impact_analysis(
    baseline_net_income: float, scenarios: List[ScenarioSummary]
) -> ImpactAnalysis:
    """Compare each scenario's first retirement year against current take-home pay."""
    best_name = ""
    best_income = 0.0
    for summary in scenarios:
        if summary.first_year_net_income > best_income:
            best_income = summary.first_year_net_income
            best_name = summary.name

    return ImpactAnalysis(
        current_to_first_year=income_change(best_name, baseline_net_income, best_income),
        per_scenario=[
            income_change(summary.name, baseline_net_income, summary.first_year_net_income)
            for summary in scenarios
        ],
        recommended_scenario=best_name,
        key_considerations=list(KEY_CONSIDERATIONS),
    )


def generate_long_term_analysis(scenarios: List[ScenarioSummary]) -> LongTermAnalysis:
    """Best scenarios by lifetime income, TSP longevity and first-year income."""
    if not scenarios:
        return LongTermAnalysis(risk_assessment=RISK_ASSESSMENT, recommendations=list(RECOMMENDATIONS))

    # max() keeps the first scenario on ties
    by_income = max(scenarios, key=lambda s: s.total_lifetime_income)
    by_longevity = max(scenarios, key=lambda s: s.tsp_longevity)
    by_first_year = max(scenarios, key=lambda s: s.first_year_net_income)
    return LongTermAnalysis(
        best_scenario_for_income=by_income.name,
        best_scenario_for_longevity=by_longevity.name,
        best_scenario_for_first_year_income=by_first_year.name,
        risk_assessment=RISK_ASSESSMENT,
        recommendations=list(RECOMMENDATIONS),
    )


class ScenarioService:
    """Service for running retirement scenarios through the projection engine."""

    def __init__(self, projection_engine: Optional[ProjectionEngine] = None) -> None:
        """Initialize the scenario service.

        Args:
            projection_engine: Engine used for projections; a default engine
                without historical data is created when omitted
        """
        self.projection_engine = projection_engine or ProjectionEngine()
        self.logger = logging.getLogger(__name__)

    def validate(self, configuration: Configuration, scenario: Scenario) -> None:
        """Check scenario preconditions before projecting.

        Raises:
            PreconditionError: If a retirement date precedes the hire date or
                the inflation assumption is out of range
        """
        for person, retirement in (
            (configuration.person_a, scenario.person_a),
            (configuration.person_b, scenario.person_b),
        ):
            if retirement.retirement_date < person.hire_date:
                raise PreconditionError(
                    f"{person.name}'s retirement date ({retirement.retirement_date.isoformat()}) "
                    f"cannot be before hire date ({person.hire_date.isoformat()})"
                )

        inflation = configuration.global_assumptions.inflation_rate
        if not (MIN_INFLATION_RATE <= inflation <= MAX_INFLATION_RATE):
            raise PreconditionError(
                f"inflation rate must be between -10% and 20%, got {inflation * 100:.2f}%"
            )

    def project(
        self,
        configuration: Configuration,
        scenario: Scenario,
        fund_return_overrides: Optional[Mapping[str, float]] = None,
    ) -> List[AnnualCashFlow]:
        """Validate and project one scenario.

        Raises:
            PreconditionError: If the scenario fails validation
        """
        self.validate(configuration, scenario)
        assumptions = configuration.global_assumptions
        return self.projection_engine.project(
            configuration.person_a,
            configuration.person_b,
            scenario,
            assumptions,
            federal_rules=assumptions.federal_rules,
            fund_return_overrides=fund_return_overrides,
        )

    def run_scenario(
        self,
        configuration: Configuration,
        scenario: Scenario,
        fund_return_overrides: Optional[Mapping[str, float]] = None,
    ) -> ScenarioSummary:
        """Project a scenario and summarize it.

        Args:
            configuration: Household and assumptions
            scenario: Scenario to run
            fund_return_overrides: Optional per-fund returns for the projection

        Returns:
            ScenarioSummary including the full projection

        Raises:
            PreconditionError: If the scenario fails validation
        """
        projection = self.project(configuration, scenario, fund_return_overrides)
        try:
            current_net = self.current_net_income(
                configuration.person_a, configuration.person_b, configuration.global_assumptions
            )
            return self.build_summary(
                scenario.name, projection, current_net, configuration.global_assumptions
            )
        except Exception as e:
            self.logger.error(f"Failed to summarize scenario {scenario.name}: {str(e)}")
            raise

    def run_scenarios(
        self,
        configuration: Configuration,
        fund_return_overrides: Optional[Mapping[str, float]] = None,
    ) -> ScenarioComparison:
        """Run every scenario of a configuration and compare them."""
        self.logger.info(f"Running {len(configuration.scenarios)} scenarios")
        summaries = [
            self.run_scenario(configuration, scenario, fund_return_overrides)
            for scenario in configuration.scenarios
        ]
        baseline = self.current_net_income(
            configuration.person_a, configuration.person_b, configuration.global_assumptions
        )
        return ScenarioComparison(
            baseline_net_income=baseline,
            scenarios=summaries,
            immediate_impact=generate_impact_analysis(baseline, summaries),
            long_term_projection=generate_long_term_analysis(summaries),
        )

    def current_net_income(
        self, person_a: Employee, person_b: Employee, assumptions: GlobalAssumptions
    ) -> float:
        """Household take-home pay while both people are still working.

        Salaries less federal, state, local and FICA taxes, person A's FEHB
        premium and both people's TSP contributions.
        """
        rules = assumptions.federal_rules
        calculator = TaxCalculator(rules)
        base_date = date(assumptions.projection_base_year, 1, 1)

        salaries = person_a.current_salary + person_b.current_salary
        seniors = sum(1 for person in (person_a, person_b) if person.age(base_date) >= 65)
        income = TaxableIncome(salary=salaries, wage_income=salaries)

        federal = calculator.federal_tax(income, "mfj", seniors)
        state = calculator.state_tax(income, is_retired=False)
        local = calculator.local_tax(salaries, is_retired=False)
        # The wage base applies per person, so each earner is taxed on their own wages.
        fica = sum(
            calculator.fica_tax(person.current_salary, person.current_salary)
            for person in (person_a, person_b)
        )
        fehb = person_a.fehb_premium_per_pay_period * rules.fehb.pay_periods_per_year
        contributions = (
            person_a.total_annual_tsp_contribution() + person_b.total_annual_tsp_contribution()
        )
        return salaries - federal - state - local - fica - fehb - contributions

    @staticmethod
    def build_summary(
        name: str,
        projection: List[AnnualCashFlow],
        current_net_income: float,
        assumptions: GlobalAssumptions,
    ) -> ScenarioSummary:
        """Condense a projection into a ScenarioSummary."""
        longevity = tsp_longevity(projection)
        return ScenarioSummary(
            name=name,
            first_year_net_income=projection[0].net_income if projection else 0.0,
            year_5_net_income=projection[4].net_income if len(projection) > 4 else 0.0,
            year_10_net_income=projection[9].net_income if len(projection) > 9 else 0.0,
            net_income_by_year={
                year: net_income_for_year(projection, year) for year in COMPARISON_YEARS
            },
            pre_retirement_net_by_year={
                year: project_pre_retirement_net_income(
                    current_net_income,
                    year,
                    assumptions.cola_general_rate,
                    assumptions.projection_base_year,
                )
                for year in COMPARISON_YEARS
            },
            total_lifetime_income=present_value(projection),
            tsp_longevity=longevity,
            initial_tsp_balance=projection[0].total_tsp_balance() if projection else 0.0,
            final_tsp_balance=projection[-1].total_tsp_balance() if projection else 0.0,
            success_rate=deterministic_success_rate(projection, longevity),
            projection=projection,
        )
