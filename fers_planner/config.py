"""Planner configuration read from the environment with Pydantic Settings.

Data directories are optional: without them the projection engine runs on
statistical assumptions only and historical Monte Carlo requests are refused.
"""

from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_SECRET_KEY = "your-secret-key-here-change-in-production"
APP_ENVIRONMENTS = {"development", "testing", "production"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
FAILED_RUN_POLICIES = {"count_as_failure", "exclude"}


class Settings(BaseSettings):
    """Planner settings; every field maps to an upper-case environment variable."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    app_env: str = Field(default="development", alias="APP_ENV")
    secret_key: str = Field(..., alias="SECRET_KEY")
    flask_app: str = Field(default="wsgi.py", alias="FLASK_APP")
    flask_env: str = Field(default="development", alias="FLASK_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Directory with tsp-returns/, inflation/ and cola/ annual series
    historical_data_path: Optional[str] = Field(default=None, alias="HISTORICAL_DATA_PATH")
    # Directory with <fund>_allocation.csv glide paths
    lifecycle_data_path: Optional[str] = Field(default=None, alias="LIFECYCLE_DATA_PATH")

    monte_carlo_max_workers: int = Field(default=10, gt=0, le=64, alias="MONTE_CARLO_MAX_WORKERS")
    monte_carlo_default_simulations: int = Field(
        default=1000, gt=0, le=100000, alias="MONTE_CARLO_DEFAULT_SIMULATIONS"
    )
    monte_carlo_failed_run_policy: str = Field(
        default="count_as_failure", alias="MONTE_CARLO_FAILED_RUN_POLICY"
    )

    @field_validator("secret_key")
    @classmethod
    def reject_placeholder_key(cls, v):
        if not v or v == PLACEHOLDER_SECRET_KEY:
            raise ValueError("SECRET_KEY must be set to a secure value")
        return v

    @field_validator("app_env")
    @classmethod
    def check_app_env(cls, v):
        if v not in APP_ENVIRONMENTS:
            raise ValueError(f"APP_ENV must be one of {APP_ENVIRONMENTS}")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept any case, store upper case."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {LOG_LEVELS}")
        return level

    @field_validator("monte_carlo_failed_run_policy")
    @classmethod
    def check_failed_run_policy(cls, v):
        if v not in FAILED_RUN_POLICIES:
            raise ValueError(f"MONTE_CARLO_FAILED_RUN_POLICY must be one of {FAILED_RUN_POLICIES}")
        return v

    def flask_config(self, config_name: Optional[str] = None) -> Dict[str, Any]:
        """Values for ``app.config``.

        Args:
            config_name: Overrides ``app_env`` when deciding testing mode
        """
        return {
            "SECRET_KEY": self.secret_key,
            "ENV": self.flask_env,
            "DEBUG": self.app_env == "development",
            "TESTING": (config_name or self.app_env) == "testing",
            "MONTE_CARLO_MAX_WORKERS": self.monte_carlo_max_workers,
            "MONTE_CARLO_DEFAULT_SIMULATIONS": self.monte_carlo_default_simulations,
            "MONTE_CARLO_FAILED_RUN_POLICY": self.monte_carlo_failed_run_policy,
        }


def get_settings(env_file: Optional[str] = None) -> Settings:
    """Read settings, optionally from a specific env file."""
    return Settings(_env_file=env_file) if env_file is not None else Settings()


_settings: Optional[Settings] = None


def get_global_settings() -> Settings:
    """Return the process-wide settings, reading them on first call."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def reset_global_settings() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
