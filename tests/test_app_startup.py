"""Tests for Flask application startup with configuration."""

import os
from unittest.mock import patch

import pytest

from fers_planner import create_app
from fers_planner.config import reset_global_settings


def write_series(base, relative, rows):
    path = base / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("year,value\n" + "".join(f"{year},{value}\n" for year, value in rows))


class TestAppStartup:
    """Test cases for Flask application startup."""

    def setup_method(self):
        reset_global_settings()

    def teardown_method(self):
        reset_global_settings()

    def test_app_creation_with_valid_config(self):
        """Test that app creates successfully with valid configuration."""
        with patch.dict(os.environ, {"SECRET_KEY": "valid-secret-key-123"}, clear=True):
            app = create_app()

            assert app is not None
            assert app.config["SECRET_KEY"] == "valid-secret-key-123"
            assert app.config["MONTE_CARLO_MAX_WORKERS"] == 10
            assert app.config["MONTE_CARLO_DEFAULT_SIMULATIONS"] == 1000
            assert app.extensions["historical_data"] is None
            assert app.extensions["lifecycle_funds"] is None

    def test_app_creation_fails_with_placeholder_secret_key(self):
        """Test that app creation fails with placeholder SECRET_KEY."""
        with patch.dict(
            os.environ, {"SECRET_KEY": "your-secret-key-here-change-in-production"}, clear=True
        ):
            with pytest.raises(Exception) as exc_info:
                create_app()

            assert "SECRET_KEY must be set to a secure value" in str(exc_info.value)

    def test_app_uses_custom_environment_variables(self):
        """Test that app uses custom environment variables."""
        with patch.dict(
            os.environ,
            {
                "SECRET_KEY": "custom-secret-key",
                "APP_ENV": "production",
                "MONTE_CARLO_MAX_WORKERS": "4",
                "MONTE_CARLO_DEFAULT_SIMULATIONS": "250",
                "MONTE_CARLO_FAILED_RUN_POLICY": "exclude",
                "LOG_LEVEL": "ERROR",
            },
            clear=True,
        ):
            app = create_app()

            assert app.config["SECRET_KEY"] == "custom-secret-key"
            assert app.config["MONTE_CARLO_MAX_WORKERS"] == 4
            assert app.config["MONTE_CARLO_DEFAULT_SIMULATIONS"] == 250
            assert app.config["MONTE_CARLO_FAILED_RUN_POLICY"] == "exclude"
            assert app.config["ENV"] == "development"  # flask_env default
            assert app.config["DEBUG"] is False  # production env

    @pytest.mark.parametrize(
        "app_env,debug,testing",
        [("development", True, False), ("production", False, False), ("testing", False, True)],
    )
    def test_app_modes_based_on_environment(self, app_env, debug, testing):
        """Test that debug and testing modes follow APP_ENV."""
        with patch.dict(
            os.environ, {"SECRET_KEY": "valid-secret-key-123", "APP_ENV": app_env}, clear=True
        ):
            app = create_app()
            assert app.config["DEBUG"] is debug
            assert app.config["TESTING"] is testing

    def test_app_loads_data_providers(self, tmp_path):
        """Test loading historical series and glide paths at startup."""
        history = tmp_path / "historical"
        for relative in (
            "tsp-returns/c-fund-annual.csv",
            "tsp-returns/s-fund-annual.csv",
            "tsp-returns/i-fund-annual.csv",
            "tsp-returns/f-fund-annual.csv",
            "tsp-returns/g-fund-annual.csv",
            "inflation/cpi-annual.csv",
            "cola/ss-cola-annual.csv",
        ):
            write_series(history, relative, [(2020, 0.05), (2021, 0.06)])

        lifecycle = tmp_path / "lifecycle"
        lifecycle.mkdir()
        (lifecycle / "l2030_allocation.csv").write_text(
            "date,G,F,C,S,I\nJanuary 2025,40%,10%,30%,10%,10%\n"
        )

        with patch.dict(
            os.environ,
            {
                "SECRET_KEY": "valid-secret-key-123",
                "HISTORICAL_DATA_PATH": str(history),
                "LIFECYCLE_DATA_PATH": str(lifecycle),
            },
            clear=True,
        ):
            app = create_app()

            assert app.extensions["historical_data"].available_years() == (2020, 2021)
            assert app.extensions["lifecycle_funds"].available_funds() == ["L2030"]

    def test_missing_data_directory_is_tolerated(self, tmp_path):
        """Test that unreadable data leaves the provider unset."""
        with patch.dict(
            os.environ,
            {
                "SECRET_KEY": "valid-secret-key-123",
                "HISTORICAL_DATA_PATH": str(tmp_path / "missing"),
            },
            clear=True,
        ):
            app = create_app()

            assert app.extensions["historical_data"] is None
