"""
Tests for the scenario service.

This module tests scenario validation, summary construction and the
comparison of scenarios against the household's current take-home pay.
"""

from datetime import date

import pytest

from fers_planner.models.assumptions import GlobalAssumptions
from fers_planner.models.cash_flow import AnnualCashFlow, ScenarioSummary
from fers_planner.models.configuration import Configuration
from fers_planner.models.employee import RetirementScenario, Scenario
from fers_planner.models.errors import PreconditionError
from fers_planner.services.scenario_service import (
    ScenarioService,
    deterministic_success_rate,
    generate_impact_analysis,
    generate_long_term_analysis,
    income_change,
    net_income_for_year,
    present_value,
    project_pre_retirement_net_income,
    tsp_longevity,
)


def make_flows(net_incomes, balances=None):
    balances = balances or [100.0] * len(net_incomes)
    return [
        AnnualCashFlow(
            year=index + 1,
            date=date(2025 + index, 1, 1),
            age_person_a=60 + index,
            age_person_b=58 + index,
            net_income=net,
            tsp_balance_person_a=balance,
        )
        for index, (net, balance) in enumerate(zip(net_incomes, balances))
    ]


@pytest.fixture
def service():
    return ScenarioService()


class TestSummaryMetrics:
    """Test the helpers that condense a projection."""

    def test_present_value(self):
        """Test discounting at 3% from the first year."""
        flows = make_flows([1030.0, 1060.9])
        assert present_value(flows) == pytest.approx(2060.0)

    def test_tsp_longevity(self):
        """Test the first depleted year."""
        assert tsp_longevity(make_flows([1, 1, 1], [10, 5, 0])) == 3
        assert tsp_longevity(make_flows([1, 1, 1])) == 3

    def test_success_rate_when_tsp_lasts(self):
        """Test the 100 and 95 outcomes."""
        growing = make_flows([1, 1], [100, 120])
        shrinking = make_flows([1, 1], [100, 80])
        assert deterministic_success_rate(growing, 2) == 100.0
        assert deterministic_success_rate(shrinking, 2) == 95.0

    def test_success_rate_when_depleted(self):
        """Test the longevity share with its floor."""
        flows = make_flows([1] * 25)
        assert deterministic_success_rate(flows, 10) == pytest.approx(40.0)
        assert deterministic_success_rate(flows, 2) == 10.0
        assert deterministic_success_rate(flows, 1) == pytest.approx(4.0)
        assert deterministic_success_rate([], 0) == 0.0

    def test_net_income_for_year(self):
        """Test lookup by calendar year."""
        flows = make_flows([10.0, 20.0])
        assert net_income_for_year(flows, 2026) == 20.0
        assert net_income_for_year(flows, 2030) == 0.0

    def test_pre_retirement_projection(self):
        """Test COLA growth of current pay."""
        assert project_pre_retirement_net_income(100000, 2027, 0.025, 2025) == pytest.approx(
            100000 * 1.025**2
        )
        assert project_pre_retirement_net_income(100000, 2024, 0.025, 2025) == 100000

    def test_income_change(self):
        """Test absolute, percentage and monthly change."""
        change = income_change("Retire", 100000, 90000)
        assert change.net_income_change == -10000
        assert change.percentage_change == pytest.approx(-10.0)
        assert change.monthly_change == pytest.approx(-10000 / 12)
        assert income_change("Retire", 0, 90000).percentage_change == 0.0


class TestAnalysis:
    """Test impact and long-term analysis."""

    def test_impact_recommends_highest_first_year(self):
        """Test the recommended scenario."""
        summaries = [
            ScenarioSummary(name="A", first_year_net_income=80000),
            ScenarioSummary(name="B", first_year_net_income=95000),
        ]
        impact = generate_impact_analysis(100000, summaries)
        assert impact.recommended_scenario == "B"
        assert impact.current_to_first_year.net_income_change == -5000
        assert [change.scenario_name for change in impact.per_scenario] == ["A", "B"]

    def test_long_term_keeps_first_on_ties(self):
        """Test best-scenario selection and tie handling."""
        summaries = [
            ScenarioSummary(name="A", total_lifetime_income=1e6, tsp_longevity=25),
            ScenarioSummary(name="B", total_lifetime_income=2e6, tsp_longevity=25),
        ]
        analysis = generate_long_term_analysis(summaries)
        assert analysis.best_scenario_for_income == "B"
        assert analysis.best_scenario_for_longevity == "A"
        assert analysis.recommendations


class TestScenarioService:
    """Test the ScenarioService class."""

    def test_retirement_before_hire_rejected(self, service, configuration, person_a):
        """Test the hire date precondition."""
        bad = Scenario(
            name="Too early",
            person_a=RetirementScenario(
                employee_name="Alex", retirement_date=date(1989, 1, 1), ss_start_age=62
            ),
            person_b=configuration.scenarios[0].person_b,
        )
        with pytest.raises(PreconditionError, match="hire date"):
            service.validate(configuration, bad)

    def test_inflation_out_of_range_rejected(self, service, configuration):
        """Test the inflation precondition."""
        hot = configuration.model_copy(
            update={"global_assumptions": GlobalAssumptions(inflation_rate=0.25)}
        )
        with pytest.raises(PreconditionError, match="inflation"):
            service.run_scenario(hot, hot.scenarios[0])

    def test_current_net_income(self, service, person_a, person_b, assumptions):
        """Test take-home pay while both people work."""
        net = service.current_net_income(person_a, person_b, assumptions)
        # 215,000 salary less federal, state, local, FICA, FEHB and TSP deferrals
        assert net == pytest.approx(122145.90, abs=0.01)

    def test_run_scenario(self, service, configuration, scenario):
        """Test a scenario summary."""
        summary = service.run_scenario(configuration, scenario)
        assert summary.name == "Retire 2027"
        assert len(summary.projection) == 25
        assert summary.first_year_net_income == summary.projection[0].net_income
        assert summary.year_10_net_income == summary.projection[9].net_income
        assert set(summary.net_income_by_year) == {2030, 2035, 2040}
        assert summary.net_income_by_year[2030] == summary.projection[5].net_income
        assert 0 <= summary.success_rate <= 100
        assert summary.initial_tsp_balance == summary.projection[0].total_tsp_balance()

    def test_run_scenarios(self, service, configuration):
        """Test a full comparison."""
        comparison = service.run_scenarios(configuration)
        assert [summary.name for summary in comparison.scenarios] == ["Retire 2027", "Retire Now"]
        assert comparison.baseline_net_income == pytest.approx(122145.90, abs=0.01)
        assert comparison.immediate_impact.recommended_scenario in {"Retire 2027", "Retire Now"}
        assert comparison.long_term_projection.best_scenario_for_income

    def test_fund_return_overrides_reach_projection(self, service, configuration, scenario):
        """Test that overrides are forwarded to the engine."""
        plain = service.project(configuration, scenario)
        overridden = service.project(configuration, scenario, {"C": 0.5})
        # Neither person has an allocation, so fund overrides do not apply.
        assert [row.net_income for row in plain] == [row.net_income for row in overridden]


class TestConfiguration:
    """Test configuration validation and loading."""

    def test_unique_scenario_names(self, person_a, person_b, scenario):
        """Test that duplicate scenario names are rejected."""
        with pytest.raises(ValueError, match="unique"):
            Configuration(person_a=person_a, person_b=person_b, scenarios=[scenario, scenario])

    def test_scenarios_required(self, person_a, person_b):
        """Test that at least one scenario is required."""
        with pytest.raises(ValueError):
            Configuration(person_a=person_a, person_b=person_b, scenarios=[])

    def test_scenario_lookup(self, configuration):
        """Test scenario lookup by name."""
        assert configuration.scenario("Retire Now").name == "Retire Now"
        with pytest.raises(KeyError):
            configuration.scenario("Never")

    def test_load_configuration(self, tmp_path, configuration):
        """Test round-tripping a configuration through a JSON file."""
        from fers_planner.models.configuration import load_configuration

        path = tmp_path / "config.json"
        path.write_text(configuration.model_dump_json(), encoding="utf-8")
        assert load_configuration(path) == configuration
