"""
Pytest configuration and shared fixtures for the FERS retirement planner tests.
"""

import os
from datetime import date
from unittest.mock import patch

import pytest

from fers_planner.config import reset_global_settings
from fers_planner.models.assumptions import GlobalAssumptions
from fers_planner.models.configuration import Configuration
from fers_planner.models.employee import Employee, RetirementScenario, Scenario
from fers_planner.models.historical_data import HistoricalDataManager

TEST_ENVIRONMENT = {"SECRET_KEY": "test-secret-key-123", "APP_ENV": "testing"}


@pytest.fixture
def person_a():
    """Create the first household member."""
    return Employee(
        name="Alex",
        birth_date=date(1965, 3, 15),
        hire_date=date(1990, 6, 1),
        current_salary=120000,
        high_3_salary=115000,
        tsp_balance_traditional=600000,
        tsp_balance_roth=50000,
        tsp_contribution_percent=0.10,
        ss_benefit_fra=3000,
        ss_benefit_62=2100,
        ss_benefit_70=3720,
        fehb_premium_per_pay_period=250,
        survivor_benefit_election_percent=0.5,
        sick_leave_hours=800,
    )


@pytest.fixture
def person_b():
    """Create the second household member."""
    return Employee(
        name="Blake",
        birth_date=date(1967, 7, 20),
        hire_date=date(1995, 9, 1),
        current_salary=95000,
        high_3_salary=90000,
        tsp_balance_traditional=350000,
        tsp_balance_roth=25000,
        tsp_contribution_percent=0.08,
        ss_benefit_fra=2400,
        ss_benefit_62=1680,
        ss_benefit_70=2976,
        survivor_benefit_election_percent=0.25,
    )


@pytest.fixture
def scenario():
    """Both people retire within two years and claim Social Security at 67."""
    return Scenario(
        name="Retire 2027",
        person_a=RetirementScenario(
            employee_name="Alex", retirement_date=date(2027, 6, 30), ss_start_age=67
        ),
        person_b=RetirementScenario(
            employee_name="Blake", retirement_date=date(2028, 12, 31), ss_start_age=67
        ),
    )


@pytest.fixture
def early_scenario():
    """Both people retire at the start of the projection and claim at 62."""
    return Scenario(
        name="Retire Now",
        person_a=RetirementScenario(
            employee_name="Alex", retirement_date=date(2025, 1, 1), ss_start_age=62
        ),
        person_b=RetirementScenario(
            employee_name="Blake", retirement_date=date(2025, 1, 1), ss_start_age=62
        ),
    )


@pytest.fixture
def assumptions():
    """Deterministic assumptions with a 25 year horizon."""
    return GlobalAssumptions(
        inflation_rate=0.025,
        fehb_premium_inflation=0.05,
        tsp_return_pre_retirement=0.06,
        tsp_return_post_retirement=0.05,
        cola_general_rate=0.025,
        projection_years=25,
    )


@pytest.fixture
def configuration(person_a, person_b, scenario, early_scenario, assumptions):
    """Create a household configuration with two scenarios."""
    return Configuration(
        person_a=person_a,
        person_b=person_b,
        global_assumptions=assumptions,
        scenarios=[scenario, early_scenario],
    )


@pytest.fixture
def configuration_payload(configuration):
    """JSON-ready configuration as an API client would send it."""
    return configuration.model_dump(mode="json")


@pytest.fixture
def historical_data():
    """Ten years of synthetic historical series."""
    years = range(2000, 2010)
    returns = {
        "C": [0.10, -0.09, -0.22, 0.28, 0.10, 0.05, 0.15, 0.05, -0.37, 0.26],
        "S": [-0.10, -0.02, -0.18, 0.42, 0.18, 0.10, 0.15, 0.05, -0.38, 0.34],
        "I": [-0.14, -0.21, -0.15, 0.37, 0.20, 0.13, 0.26, 0.11, -0.42, 0.30],
        "F": [0.11, 0.08, 0.10, 0.04, 0.04, 0.02, 0.04, 0.07, 0.05, 0.06],
        "G": [0.06, 0.05, 0.05, 0.04, 0.04, 0.04, 0.05, 0.05, 0.04, 0.03],
        "inflation": [0.034, 0.028, 0.016, 0.023, 0.027, 0.034, 0.032, 0.029, 0.038, -0.004],
        "cola": [0.035, 0.026, 0.014, 0.021, 0.027, 0.041, 0.033, 0.023, 0.058, 0.0],
    }
    return HistoricalDataManager(
        {name: dict(zip(years, values)) for name, values in returns.items()}
    )


@pytest.fixture
def app_environment():
    """Patch the environment with valid application settings."""
    reset_global_settings()
    with patch.dict(os.environ, TEST_ENVIRONMENT, clear=True):
        yield
    reset_global_settings()


@pytest.fixture
def app(app_environment):
    """Create a Flask application configured for testing."""
    from fers_planner import create_app

    return create_app("testing")


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()
