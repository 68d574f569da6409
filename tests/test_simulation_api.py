"""
Tests for the simulation API endpoints.

This module tests:
- Scenario projections and comparison
- Monte Carlo requests with and without historical data
- Break-even withdrawal rates and cumulative crossovers
- Error translation to HTTP status codes
"""

import json
from unittest.mock import patch


def post(client, path, payload):
    response = client.post(path, data=json.dumps(payload), content_type="application/json")
    return response, json.loads(response.data)


class TestProjectionsEndpoint:
    """Test POST /api/projections."""

    def test_projections_success(self, client, configuration_payload):
        """Test projecting every scenario of a configuration."""
        response, data = post(client, "/api/projections", {"configuration": configuration_payload})

        assert response.status_code == 200
        assert [summary["name"] for summary in data["scenarios"]] == ["Retire 2027", "Retire Now"]
        assert len(data["scenarios"][0]["projection"]) == 25
        assert data["baseline_net_income"] > 0
        assert "immediate_impact" in data
        assert "long_term_projection" in data

    def test_projections_invalid_payload(self, client):
        """Test that a malformed configuration is rejected."""
        response, data = post(client, "/api/projections", {"configuration": {"scenarios": []}})

        assert response.status_code == 400
        assert data["error"] == "Invalid request"
        assert data["details"]

    def test_projections_missing_body(self, client):
        """Test a request without JSON."""
        response = client.post("/api/projections")

        assert response.status_code == 400

    def test_projections_precondition_failure(self, client, configuration_payload):
        """Test a retirement date before the hire date."""
        configuration_payload["scenarios"][0]["person_a"]["retirement_date"] = "1989-01-01"

        response, data = post(client, "/api/projections", {"configuration": configuration_payload})

        assert response.status_code == 422
        assert "cannot be before hire date" in data["error"]

    def test_projections_internal_error(self, client, configuration_payload):
        """Test that unexpected errors are hidden behind a 500."""
        with patch(
            "fers_planner.blueprints.simulation.ScenarioService.run_scenarios",
            side_effect=RuntimeError("boom"),
        ):
            response, data = post(
                client, "/api/projections", {"configuration": configuration_payload}
            )

        assert response.status_code == 500
        assert data == {"error": "Internal server error"}


class TestMonteCarloEndpoint:
    """Test POST /api/monte-carlo."""

    def test_statistical_run(self, client, configuration_payload):
        """Test a seeded statistical run without per-run outcomes."""
        response, data = post(
            client,
            "/api/monte-carlo",
            {
                "configuration": configuration_payload,
                "num_simulations": 3,
                "seed": 42,
                "use_historical": False,
            },
        )

        assert response.status_code == 200
        assert data["num_simulations"] == 3
        assert data["seed"] == 42
        assert 0.0 <= data["success_rate"] <= 1.0
        assert "simulations" not in data

    def test_include_simulations(self, client, configuration_payload):
        """Test returning per-run outcomes on request."""
        response, data = post(
            client,
            "/api/monte-carlo",
            {
                "configuration": configuration_payload,
                "num_simulations": 3,
                "seed": 42,
                "use_historical": False,
                "include_simulations": True,
            },
        )

        assert response.status_code == 200
        assert len(data["simulations"]) == 3

    def test_seeded_runs_match(self, client, configuration_payload):
        """Test that the same seed gives the same aggregates."""
        payload = {
            "configuration": configuration_payload,
            "num_simulations": 3,
            "seed": 7,
            "use_historical": False,
        }
        _, first = post(client, "/api/monte-carlo", payload)
        _, second = post(client, "/api/monte-carlo", payload)

        assert first["median_net_income"] == second["median_net_income"]
        assert first["market_conditions"] == second["market_conditions"]

    def test_historical_run_without_data(self, client, configuration_payload):
        """Test that historical sampling needs loaded data."""
        response, data = post(
            client,
            "/api/monte-carlo",
            {"configuration": configuration_payload, "num_simulations": 3},
        )

        assert response.status_code == 409
        assert "historical data" in data["error"]

    def test_historical_run_with_data(self, app, configuration_payload, historical_data):
        """Test sampling from data loaded into the application."""
        app.extensions["historical_data"] = historical_data

        response, data = post(
            app.test_client(),
            "/api/monte-carlo",
            {"configuration": configuration_payload, "num_simulations": 3, "seed": 1},
        )

        assert response.status_code == 200
        assert data["use_historical"] is True
        for market in data["market_conditions"]:
            assert 2000 <= market["year"] <= 2009

    def test_invalid_simulation_count(self, client, configuration_payload):
        """Test that a non-positive run count is rejected."""
        response, data = post(
            client,
            "/api/monte-carlo",
            {"configuration": configuration_payload, "num_simulations": 0},
        )

        assert response.status_code == 400
        assert data["error"] == "Invalid request"


class TestBreakEvenEndpoint:
    """Test POST /api/break-even."""

    def test_break_even_rates(self, client, configuration_payload):
        """Test a break-even rate for each scenario."""
        response, data = post(client, "/api/break-even", {"configuration": configuration_payload})

        assert response.status_code == 200
        assert data["target_net_income"] > 0
        assert [result["scenario_name"] for result in data["results"]] == [
            "Retire 2027",
            "Retire Now",
        ]
        for result in data["results"]:
            assert 0.0 <= result["break_even_withdrawal_rate"] <= 1.0
        assert "cumulative_break_even" not in data

    def test_cumulative_break_even(self, client, configuration_payload):
        """Test comparing two named scenarios."""
        response, data = post(
            client,
            "/api/break-even",
            {
                "configuration": configuration_payload,
                "scenario_a": "Retire 2027",
                "scenario_b": "Retire Now",
            },
        )

        assert response.status_code == 200
        assert "cumulative_break_even" in data
        crossover = data["cumulative_break_even"]
        if crossover is not None:
            assert 1 <= crossover["break_even_month"] <= 12

    def test_unknown_scenario(self, client, configuration_payload):
        """Test that an unknown scenario name is reported."""
        response, data = post(
            client,
            "/api/break-even",
            {
                "configuration": configuration_payload,
                "scenario_a": "Retire 2027",
                "scenario_b": "Never",
            },
        )

        assert response.status_code == 404
        assert data == {"error": "scenario Never not found"}

    def test_horizon_exceeded(self, client, configuration_payload):
        """Test a projection too short to reach full retirement."""
        configuration_payload["global_assumptions"]["projection_years"] = 1

        response, data = post(client, "/api/break-even", {"configuration": configuration_payload})

        assert response.status_code == 422
        assert "exceeds projection length" in data["error"]
