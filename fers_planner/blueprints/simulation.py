"""
Simulation blueprint for retirement projections and risk analysis.

This module provides API endpoints for deterministic scenario projections,
Monte Carlo risk analysis and break-even withdrawal rates. Each endpoint
accepts a household configuration as JSON.
"""

import json
from typing import Any, Tuple

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from fers_planner.models.configuration import Configuration
from fers_planner.models.errors import (
    HistoricalDataUnavailableError,
    HorizonExceededError,
    PreconditionError,
)
from fers_planner.models.projection import ProjectionEngine
from fers_planner.models.simulation.config import FERSMonteCarloConfig
from fers_planner.models.simulation.engine import FERSMonteCarloEngine
from fers_planner.services.analysis_service import AnalysisService, cumulative_break_even
from fers_planner.services.scenario_service import ScenarioService

simulation_bp = Blueprint("simulation", __name__, url_prefix="/api")


def _scenario_service() -> ScenarioService:
    return ScenarioService(
        ProjectionEngine(
            current_app.extensions.get("historical_data"),
            current_app.extensions.get("lifecycle_funds"),
        )
    )


def _validation_error(e: ValidationError) -> Tuple[Any, int]:
    return jsonify({"error": "Invalid request", "details": json.loads(e.json(include_url=False))}), 400


def _domain_error(e: Exception) -> Tuple[Any, int]:
    """Translate a domain exception into a JSON error response."""
    if isinstance(e, HistoricalDataUnavailableError):
        return jsonify({"error": str(e)}), 409
    return jsonify({"error": str(e)}), 422


@simulation_bp.route("/projections", methods=["POST"])
def run_projections() -> Any:
    """Project and compare every scenario of a configuration.

    Returns:
        JSON ScenarioComparison including each scenario's projection
    """
    try:
        data = request.get_json(silent=True) or {}
        configuration = Configuration.model_validate(data.get("configuration") or {})
        comparison = _scenario_service().run_scenarios(configuration)
        return jsonify(comparison.model_dump(mode="json")), 200

    except ValidationError as e:
        return _validation_error(e)
    except (PreconditionError, HorizonExceededError, HistoricalDataUnavailableError) as e:
        return _domain_error(e)
    except Exception as e:
        current_app.logger.error(f"Error running projections: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@simulation_bp.route("/monte-carlo", methods=["POST"])
def run_monte_carlo() -> Any:
    """Run a Monte Carlo analysis.

    Request JSON:
        configuration: Household configuration
        num_simulations: Optional run count
        seed: Optional seed for reproducible results
        use_historical: Optional, defaults to true
        include_simulations: Optional, include per-run outcomes

    Returns:
        JSON FERSMonteCarloResult
    """
    try:
        data = request.get_json(silent=True) or {}
        configuration = Configuration.model_validate(data.get("configuration") or {})
        config = FERSMonteCarloConfig(
            num_simulations=data.get(
                "num_simulations", current_app.config["MONTE_CARLO_DEFAULT_SIMULATIONS"]
            ),
            seed=data.get("seed"),
            use_historical=data.get("use_historical", True),
            max_workers=current_app.config["MONTE_CARLO_MAX_WORKERS"],
            failed_run_policy=current_app.config["MONTE_CARLO_FAILED_RUN_POLICY"],
        )

        engine = FERSMonteCarloEngine(
            configuration,
            historical_data=current_app.extensions.get("historical_data"),
            lifecycle_funds=current_app.extensions.get("lifecycle_funds"),
        )
        result = engine.run(config)

        exclude = None if data.get("include_simulations") else {"simulations"}
        return jsonify(result.model_dump(mode="json", exclude=exclude)), 200

    except ValidationError as e:
        return _validation_error(e)
    except (PreconditionError, HorizonExceededError, HistoricalDataUnavailableError) as e:
        return _domain_error(e)
    except Exception as e:
        current_app.logger.error(f"Error running Monte Carlo analysis: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@simulation_bp.route("/break-even", methods=["POST"])
def run_break_even() -> Any:
    """Break-even TSP withdrawal rates for every scenario of a configuration.

    Request JSON:
        configuration: Household configuration
        scenario_a, scenario_b: Optional scenario names; when both are given
            the cumulative net income crossover between them is included

    Returns:
        JSON BreakEvenAnalysis, plus ``cumulative_break_even`` when requested
    """
    try:
        data = request.get_json(silent=True) or {}
        configuration = Configuration.model_validate(data.get("configuration") or {})
        scenario_service = _scenario_service()
        analysis_service = AnalysisService(scenario_service)

        response = analysis_service.break_even_analysis(configuration).model_dump(mode="json")

        if data.get("scenario_a") and data.get("scenario_b"):
            try:
                scenario_a = configuration.scenario(data["scenario_a"])
                scenario_b = configuration.scenario(data["scenario_b"])
            except KeyError as e:
                return jsonify({"error": str(e.args[0])}), 404
            crossover = cumulative_break_even(
                scenario_service.project(configuration, scenario_a),
                scenario_service.project(configuration, scenario_b),
            )
            response["cumulative_break_even"] = (
                crossover.model_dump(mode="json") if crossover is not None else None
            )

        return jsonify(response), 200

    except ValidationError as e:
        return _validation_error(e)
    except (PreconditionError, HorizonExceededError, HistoricalDataUnavailableError) as e:
        return _domain_error(e)
    except Exception as e:
        current_app.logger.error(f"Error running break-even analysis: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500
