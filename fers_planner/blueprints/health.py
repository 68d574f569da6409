"""Health check blueprint."""

from flask import Blueprint, Response, current_app, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.route("/healthz")
def health_check() -> Response:
    """Health check endpoint.

    Returns:
        JSON response with status information and which data sets are loaded
    """
    historical_data = current_app.extensions.get("historical_data")
    return jsonify(
        {
            "status": "ok",
            "historical_data_loaded": bool(historical_data is not None and historical_data.is_loaded),
            "lifecycle_funds_loaded": current_app.extensions.get("lifecycle_funds") is not None,
        }
    )
