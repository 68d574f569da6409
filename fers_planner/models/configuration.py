"""Household planning configuration and JSON loading."""

import logging
from pathlib import Path
from typing import List, Union

from pydantic import BaseModel, Field, model_validator

from .assumptions import GlobalAssumptions
from .employee import Employee, Scenario

logger = logging.getLogger(__name__)


class Configuration(BaseModel):
    """Everything needed to project and compare a household's scenarios."""

    person_a: Employee = Field(..., description="First household member")
    person_b: Employee = Field(..., description="Second household member")
    global_assumptions: GlobalAssumptions = Field(default_factory=GlobalAssumptions)
    scenarios: List[Scenario] = Field(..., min_length=1, description="Scenarios to evaluate")

    @model_validator(mode="after")
    def validate_scenario_names(self) -> "Configuration":
        """Validate that scenario names are unique."""
        names = [scenario.name for scenario in self.scenarios]
        if len(names) != len(set(names)):
            raise ValueError("scenario names must be unique")
        return self

    def scenario(self, name: str) -> Scenario:
        for scenario in self.scenarios:
            if scenario.name == name:
                return scenario
        raise KeyError(f"scenario {name} not found")


def load_configuration(path: Union[str, Path]) -> Configuration:
    """Load and validate a configuration JSON file.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the contents are invalid
    """
    path = Path(path)
    configuration = Configuration.model_validate_json(path.read_text(encoding="utf-8"))
    logger.info(f"Loaded configuration with {len(configuration.scenarios)} scenarios from {path}")
    return configuration
