"""Death events within a projection horizon."""

from typing import Optional, Tuple

from .dates import fraction_of_year_before
from .employee import Employee, MortalitySpec, Scenario

AGE_ONLY_DEATH_FRACTION = 0.5


def death_year_index(
    spec: Optional[MortalitySpec], employee: Employee, base_year: int, projection_years: int
) -> Optional[int]:
    """Projection year index of a death, or None when outside the horizon."""
    if spec is None:
        return None
    if spec.death_date is not None:
        index = spec.death_date.year - base_year
    elif spec.death_age is not None:
        index = employee.birth_date.year + spec.death_age - base_year
    else:
        return None
    if 0 <= index < projection_years:
        return index
    return None


def derive_death_year_indexes(
    scenario: Scenario,
    person_a: Employee,
    person_b: Employee,
    base_year: int,
    projection_years: int,
) -> Tuple[Optional[int], Optional[int]]:
    if scenario.mortality is None:
        return None, None
    return (
        death_year_index(scenario.mortality.person_a, person_a, base_year, projection_years),
        death_year_index(scenario.mortality.person_b, person_b, base_year, projection_years),
    )


def death_fraction_in_year(
    death_index: Optional[int], year_index: int, spec: Optional[MortalitySpec]
) -> Optional[float]:
    """Fraction of the death year lived, or None outside the death year.

    Uses a flat 365-day year; an age-only death is assumed to fall mid-year.
    """
    if death_index is None or year_index != death_index:
        return None
    if spec is None or spec.death_date is None:
        return AGE_ONLY_DEATH_FRACTION
    return min(1.0, max(0.0, fraction_of_year_before(spec.death_date)))
