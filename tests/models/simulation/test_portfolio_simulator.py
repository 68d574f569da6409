"""
Tests for the single-portfolio drawdown simulator.
"""

import numpy as np
import pytest

from fers_planner.models.errors import HistoricalDataUnavailableError
from fers_planner.models.historical_data import HistoricalDataManager
from fers_planner.models.simulation.config import PortfolioMonteCarloConfig
from fers_planner.models.simulation.portfolio import (
    PortfolioMonteCarloSimulator,
    guardrails_withdrawal,
    planned_withdrawal,
    portfolio_return,
)
from fers_planner.models.simulation.result import MarketCondition


@pytest.fixture
def steady_history():
    """One historical year: C returns 10%, inflation and COLA are 2%."""
    return HistoricalDataManager(
        {"C": {2020: 0.10}, "inflation": {2020: 0.02}, "cola": {2020: 0.02}}
    )


def make_config(**overrides):
    values = {
        "num_simulations": 3,
        "projection_years": 3,
        "seed": 5,
        "asset_allocation": {"C": 1.0},
        "initial_balance": 100000,
        "annual_withdrawal": 5000,
    }
    values.update(overrides)
    return PortfolioMonteCarloConfig(**values)


MARKET = MarketCondition(year=2020, tsp_returns={"C": 0.10, "G": 0.04}, inflation_rate=0.02)


class TestWithdrawalRules:
    """Test per-year withdrawal planning."""

    def test_portfolio_return(self):
        """Test weighting over funds present in the sample."""
        assert portfolio_return({"C": 0.5, "G": 0.5}, MARKET) == pytest.approx(0.07)
        assert portfolio_return({"C": 0.5, "X": 0.5}, MARKET) == pytest.approx(0.05)

    def test_fixed_amount(self):
        """Test a constant dollar withdrawal."""
        assert planned_withdrawal(make_config(), 200000, 3, MARKET) == 5000

    def test_fixed_percentage(self):
        """Test a rate of the current balance."""
        config = make_config(withdrawal_strategy="fixed_percentage", annual_withdrawal=0.05)
        assert planned_withdrawal(config, 200000, 3, MARKET) == pytest.approx(10000)

    def test_inflation_adjusted(self):
        """Test inflation growth after the first year."""
        config = make_config(withdrawal_strategy="inflation_adjusted")
        assert planned_withdrawal(config, 200000, 1, MARKET) == pytest.approx(5000)
        assert planned_withdrawal(config, 200000, 3, MARKET) == pytest.approx(5000 * 1.02**2)

    def test_guardrails_cut(self):
        """Test the 10% cut above a 6% withdrawal rate."""
        config = make_config(withdrawal_strategy="guardrails", annual_withdrawal=8000)
        assert guardrails_withdrawal(config, 1, MARKET) == pytest.approx(7200)

    def test_guardrails_without_cut(self):
        """Test no cut below the threshold."""
        config = make_config(withdrawal_strategy="guardrails", annual_withdrawal=5000)
        assert guardrails_withdrawal(config, 2, MARKET) == pytest.approx(5100)


class TestPortfolioMonteCarloSimulator:
    """Test the PortfolioMonteCarloSimulator class."""

    def test_single_run_path(self, steady_history):
        """Test growth then withdrawal each year."""
        simulator = PortfolioMonteCarloSimulator(steady_history)
        outcome = simulator.run_single(make_config(), np.random.default_rng(1))
        balances = [year.balance for year in outcome.year_outcomes]
        assert balances == pytest.approx([105000, 110500, 116550])
        assert outcome.success
        assert outcome.portfolio_lasted == 3
        assert outcome.total_withdrawn == pytest.approx(15000)
        assert outcome.max_drawdown == 0.0

    def test_depletion_ends_run(self, steady_history):
        """Test that a run stops once the balance is exhausted."""
        simulator = PortfolioMonteCarloSimulator(steady_history)
        config = make_config(annual_withdrawal=60000, projection_years=10)
        outcome = simulator.run_single(config, np.random.default_rng(1))
        assert outcome.portfolio_lasted == 2
        assert outcome.ending_balance == 0.0
        assert not outcome.success
        assert outcome.year_outcomes[-1].withdrawal == pytest.approx(55000)
        assert outcome.max_drawdown == pytest.approx(1.0)

    def test_run_aggregates(self, steady_history):
        """Test aggregate statistics over identical runs."""
        result = PortfolioMonteCarloSimulator(steady_history).run(make_config())
        assert result.success_rate == 1.0
        assert result.median_ending_balance == pytest.approx(116550)
        assert result.percentile_ranges.p10 == pytest.approx(116550)
        assert result.seed == 5
        assert len(result.simulations) == 3

    def test_statistical_run_is_reproducible(self):
        """Test a seeded statistical run."""
        config = make_config(use_historical=False, num_simulations=20, projection_years=20)
        first = PortfolioMonteCarloSimulator().run(config)
        second = PortfolioMonteCarloSimulator().run(config)
        assert first.median_ending_balance == second.median_ending_balance
        assert 0.0 <= first.success_rate <= 1.0

    def test_historical_requires_data(self):
        """Test that historical sampling needs loaded data."""
        with pytest.raises(HistoricalDataUnavailableError):
            PortfolioMonteCarloSimulator().run(make_config())
