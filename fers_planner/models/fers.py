"""
FERS basic annuity, cost-of-living adjustments and special retirement supplement.

The annuity is High-3 salary × creditable service × multiplier, reduced when a
survivor annuity is elected. COLAs follow the diet-COLA rule and are withheld
until the annuitant reaches 62.
"""

from datetime import date
from typing import Tuple

from pydantic import BaseModel, Field

from .dates import add_years
from .employee import Employee

STANDARD_MULTIPLIER = 0.010
ENHANCED_MULTIPLIER = 0.011
ENHANCED_MULTIPLIER_AGE = 62
ENHANCED_MULTIPLIER_SERVICE = 20
COLA_START_AGE = 62
SUPPLEMENT_END_AGE = 62
SUPPLEMENT_CAREER_YEARS = 40

# survivor election -> (share of annuity paid to the retiree, share paid to the survivor)
SURVIVOR_ELECTIONS = {
    0.5: (0.90, 0.50),
    0.25: (0.95, 0.25),
}


class FERSPensionCalculation(BaseModel):
    """Result of a FERS annuity computation at a retirement date."""

    high_3_salary: float = Field(..., description="Average of highest 3 salary years")
    service_years: float = Field(..., description="Creditable service including sick leave")
    retirement_age: int = Field(..., description="Age on the retirement date")
    multiplier: float = Field(..., description="Annuity multiplier (1.0% or 1.1%)")
    annual_pension: float = Field(..., description="Unreduced annual annuity")
    survivor_election: float = Field(..., description="Normalized survivor election (0, 0.25, 0.5)")
    reduced_pension: float = Field(..., description="Annuity payable to the retiree")
    survivor_annuity: float = Field(..., description="Annuity payable to a surviving spouse")


def determine_multiplier(retirement_age: int, service_years: float) -> float:
    if retirement_age >= ENHANCED_MULTIPLIER_AGE and service_years >= ENHANCED_MULTIPLIER_SERVICE:
        return ENHANCED_MULTIPLIER
    return STANDARD_MULTIPLIER


def normalize_survivor_election(election: float) -> float:
    """Snap an elected percentage to the 50% or 25% option, or to none."""
    if election > 0.4:
        election = 0.5
    elif 0.2 < election < 0.3:
        election = 0.25
    return election if election in SURVIVOR_ELECTIONS else 0.0


def calculate_fers_pension(employee: Employee, retirement_date: date) -> FERSPensionCalculation:
    """Compute the FERS annuity for a retirement on ``retirement_date``.

    Args:
        employee: The retiring employee
        retirement_date: Date of separation

    Returns:
        FERSPensionCalculation with unreduced, payable and survivor amounts
    """
    service_years = employee.years_of_service(retirement_date)
    retirement_age = employee.age(retirement_date)
    multiplier = determine_multiplier(retirement_age, service_years)
    annual_pension = employee.high_3_salary * service_years * multiplier

    election = normalize_survivor_election(employee.survivor_benefit_election_percent)
    paid_share, survivor_share = SURVIVOR_ELECTIONS.get(election, (1.0, 0.0))

    return FERSPensionCalculation(
        high_3_salary=employee.high_3_salary,
        service_years=service_years,
        retirement_age=retirement_age,
        multiplier=multiplier,
        annual_pension=annual_pension,
        survivor_election=election,
        reduced_pension=annual_pension * paid_share,
        survivor_annuity=annual_pension * survivor_share,
    )


def fers_cola_rate(inflation_rate: float) -> float:
    """Diet COLA: full CPI up to 2%, capped at 2% up to 3%, CPI minus 1% above."""
    if inflation_rate <= 0.02:
        return inflation_rate
    if inflation_rate <= 0.03:
        return 0.02
    return inflation_rate - 0.01


def apply_fers_cola(amount: float, inflation_rate: float, annuitant_age: int) -> float:
    if annuitant_age < COLA_START_AGE:
        return amount
    return amount * (1 + fers_cola_rate(inflation_rate))


def _compound_cola(
    amount: float, employee: Employee, retirement_date: date, years: int, inflation_rate: float
) -> float:
    # Age is re-evaluated on each retirement anniversary.
    for year in range(1, years + 1):
        age = employee.age(add_years(retirement_date, year))
        amount = apply_fers_cola(amount, inflation_rate, age)
    return amount


def pension_for_year(
    employee: Employee, retirement_date: date, years_since_retirement: int, inflation_rate: float
) -> float:
    """Payable annuity ``years_since_retirement`` years after retiring."""
    initial = calculate_fers_pension(employee, retirement_date).reduced_pension
    return _compound_cola(initial, employee, retirement_date, years_since_retirement, inflation_rate)


def survivor_annuity_for_year(
    deceased: Employee, retirement_date: date, years_since_retirement: int, inflation_rate: float
) -> float:
    """Survivor annuity grown with the deceased annuitant's COLA history."""
    base = calculate_fers_pension(deceased, retirement_date).survivor_annuity
    if base <= 0:
        return 0.0
    return _compound_cola(
        base, deceased, retirement_date, max(0, years_since_retirement), inflation_rate
    )


def special_retirement_supplement(ss_benefit_62: float, service_years: float, current_age: int) -> float:
    """Annual FERS supplement: the SS-at-62 estimate prorated by service over 40 years."""
    if current_age >= SUPPLEMENT_END_AGE:
        return 0.0
    return ss_benefit_62 * 12 * (service_years / SUPPLEMENT_CAREER_YEARS)


def fers_supplement_for_year(
    employee: Employee, retirement_date: date, years_since_retirement: int, inflation_rate: float
) -> float:
    """Supplement paid ``years_since_retirement`` years after retiring, inflation adjusted."""
    if years_since_retirement < 0:
        return 0.0
    age = employee.age(add_years(retirement_date, years_since_retirement))
    service_years = employee.years_of_service(retirement_date)
    supplement = special_retirement_supplement(employee.ss_benefit_62, service_years, age)
    return supplement * (1 + inflation_rate) ** years_since_retirement


def validate_fers_eligibility(employee: Employee, retirement_date: date) -> Tuple[bool, str]:
    """Check FERS immediate or deferred annuity eligibility on a date."""
    age = employee.age(retirement_date)
    service_years = employee.years_of_service(retirement_date)
    mra = employee.minimum_retirement_age()

    if age < mra:
        return False, "Employee has not reached Minimum Retirement Age"
    if service_years < 5:
        return False, "Employee has less than 5 years of service"
    if age >= 62:
        return True, "Eligible for immediate annuity at age 62+"
    if service_years >= 10:
        return True, "Eligible for immediate annuity at MRA with 10+ years"
    return True, "Eligible for deferred annuity (reduced benefits)"


def pension_reduction(employee: Employee, retirement_date: date) -> float:
    """Age reduction for MRA+10 retirements: 5% for each year under 62."""
    age = employee.age(retirement_date)
    service_years = employee.years_of_service(retirement_date)
    mra = employee.minimum_retirement_age()

    if (age >= 62 and service_years >= 5) or (age >= mra and service_years >= 20):
        return 0.0
    if age >= mra and 10 <= service_years < 20:
        return (62 - age) * 0.05
    return 0.0
