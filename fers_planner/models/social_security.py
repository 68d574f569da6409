"""
Social Security benefit formulas for retirement projections.

Benefits are derived from the monthly benefit at full retirement age (FRA):
early claiming is reduced, delayed claiming earns credits up to age 70, and
the benefit then grows by a general COLA for every year past the claiming age.
"""

from datetime import date

from .dates import age_at, full_retirement_age, year_end
from .employee import Employee

EARLIEST_CLAIMING_AGE = 62
LATEST_CREDIT_AGE = 70
EARLY_REDUCTION_FIRST_36 = 5.0 / 9.0 / 100.0
EARLY_REDUCTION_BEYOND_36 = 5.0 / 12.0 / 100.0
DELAYED_CREDIT_PER_MONTH = 2.0 / 3.0 / 100.0
MAX_DELAYED_MONTHS = 48

SURVIVOR_EARLIEST_AGE = 60
SURVIVOR_MIN_FACTOR = 0.715


def benefit_at_claiming_age(benefit_fra: float, birth_date: date, claiming_age: int) -> float:
    """Monthly benefit when claiming at ``claiming_age``.

    Args:
        benefit_fra: Monthly benefit at full retirement age
        birth_date: Date of birth, which determines the FRA
        claiming_age: Age at which benefits start

    Returns:
        Monthly benefit, 0 when claiming before 62
    """
    if claiming_age < EARLIEST_CLAIMING_AGE:
        return 0.0

    fra = full_retirement_age(birth_date)
    if claiming_age < fra:
        months_early = (fra - claiming_age) * 12
        if months_early <= 36:
            reduction = EARLY_REDUCTION_FIRST_36 * months_early
        else:
            reduction = (
                EARLY_REDUCTION_FIRST_36 * 36
                + EARLY_REDUCTION_BEYOND_36 * (months_early - 36)
            )
        return benefit_fra * (1 - reduction)

    if claiming_age > fra:
        months_delayed = min((claiming_age - fra) * 12, MAX_DELAYED_MONTHS)
        return benefit_fra * (1 + DELAYED_CREDIT_PER_MONTH * months_delayed)

    return benefit_fra


def ss_benefit_for_year(
    employee: Employee,
    start_age: int,
    year_index: int,
    cola_rate: float,
    base_year: int = 2025,
) -> float:
    """Annual Social Security benefit for a projection year.

    Age is evaluated at December 31 so that a person turning the claiming age
    during the year is counted as claimed; callers prorate that first year.
    COLA compounds once for every year of age past the claiming age.
    """
    age = employee.age(year_end(base_year + year_index))
    if age < start_age:
        return 0.0

    initial = benefit_at_claiming_age(employee.ss_benefit_fra, employee.birth_date, start_age)
    years_since_start = age - start_age
    return initial * (1 + cola_rate) ** years_since_start * 12


def survivor_ss_benefit(deceased_benefit: float, survivor_age: int, survivor_fra: int) -> float:
    """Survivor benefit based on the deceased spouse's current benefit.

    Full benefit at or after the survivor's FRA; between age 60 and FRA the
    factor rises linearly from 71.5% to 100%; nothing before 60.
    """
    if deceased_benefit <= 0:
        return 0.0
    if survivor_age >= survivor_fra:
        return deceased_benefit
    if survivor_age < SURVIVOR_EARLIEST_AGE:
        return 0.0

    ratio = (survivor_age - SURVIVOR_EARLIEST_AGE) / (survivor_fra - SURVIVOR_EARLIEST_AGE)
    factor = SURVIVOR_MIN_FACTOR + (1.0 - SURVIVOR_MIN_FACTOR) * ratio
    return deceased_benefit * factor


def interpolate_ss_benefit(
    benefit_62: float,
    benefit_fra: float,
    benefit_70: float,
    claiming_age: int,
    fra: int = 67,
) -> float:
    """Monthly benefit interpolated linearly between the 62/FRA/70 estimates."""
    if claiming_age <= EARLIEST_CLAIMING_AGE:
        return benefit_62
    if claiming_age == fra:
        return benefit_fra
    if claiming_age >= LATEST_CREDIT_AGE:
        return benefit_70
    if claiming_age < fra:
        ratio = (claiming_age - EARLIEST_CLAIMING_AGE) / (fra - EARLIEST_CLAIMING_AGE)
        return benefit_62 + (benefit_fra - benefit_62) * ratio
    ratio = (claiming_age - fra) / (LATEST_CREDIT_AGE - fra)
    return benefit_fra + (benefit_70 - benefit_fra) * ratio


def claiming_age_reached_during(birth_date: date, start_age: int, year: int) -> bool:
    """True when the person turns ``start_age`` during calendar ``year``."""
    return age_at(birth_date, date(year, 1, 1)) < start_age <= age_at(birth_date, year_end(year))
