"""FERS Retirement Planner Flask Application Factory."""

import logging
from typing import Optional

from flask import Flask

from fers_planner.config import Settings, get_global_settings

logger = logging.getLogger(__name__)


def load_data_providers(app: Flask, settings: Settings) -> None:
    """Load historical series and lifecycle glide paths into ``app.extensions``.

    Missing or unreadable data leaves the provider unset; endpoints that
    need it then answer with a data-unavailable error.
    """
    from fers_planner.models.errors import HistoricalDataUnavailableError
    from fers_planner.models.fund_allocation import LifecycleFundProvider
    from fers_planner.models.historical_data import HistoricalDataManager

    app.extensions["historical_data"] = None
    app.extensions["lifecycle_funds"] = None

    if settings.historical_data_path:
        try:
            app.extensions["historical_data"] = HistoricalDataManager.load_directory(
                settings.historical_data_path
            )
        except HistoricalDataUnavailableError as e:
            logger.warning(f"Historical data unavailable: {str(e)}")

    if settings.lifecycle_data_path:
        provider = LifecycleFundProvider()
        try:
            provider.load_directory(settings.lifecycle_data_path)
            app.extensions["lifecycle_funds"] = provider
        except (OSError, ValueError) as e:
            logger.warning(f"Lifecycle fund data unavailable: {str(e)}")


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_name: Configuration name (development, testing, production)

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)

    settings = get_global_settings()
    app.config.update(settings.flask_config(config_name))

    logging.basicConfig(level=settings.log_level)
    logging.getLogger().setLevel(settings.log_level)

    load_data_providers(app, settings)

    # Register blueprints
    from fers_planner.blueprints.health import health_bp
    from fers_planner.blueprints.simulation import simulation_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(simulation_bp)

    return app
