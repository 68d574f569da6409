"""
Household member and retirement scenario models.

These models hold the static inputs of a projection: the two people in the
household, their TSP accounts and the retirement decisions being compared.
They are immutable once validated so that a projection can never alter them.
"""

from datetime import date
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .dates import age_at, full_retirement_age, minimum_retirement_age, years_of_service

AGENCY_MATCH_RATE = 0.05

WithdrawalStrategyName = Literal["4_percent_rule", "need_based", "variable_percentage"]


class TSPAllocation(BaseModel):
    """Fixed TSP fund allocation as weights that sum to 1.0."""

    model_config = ConfigDict(frozen=True)

    c_fund: float = Field(default=0.0, ge=0, le=1, description="C Fund weight")
    s_fund: float = Field(default=0.0, ge=0, le=1, description="S Fund weight")
    i_fund: float = Field(default=0.0, ge=0, le=1, description="I Fund weight")
    f_fund: float = Field(default=0.0, ge=0, le=1, description="F Fund weight")
    g_fund: float = Field(default=0.0, ge=0, le=1, description="G Fund weight")

    @model_validator(mode="after")
    def validate_total_weight(self) -> "TSPAllocation":
        """Validate that the fund weights add up to 100%."""
        total = self.c_fund + self.s_fund + self.i_fund + self.f_fund + self.g_fund
        if not (0.99 <= total <= 1.01):  # Allow small rounding errors
            raise ValueError(f"TSP allocation must sum to 1.0, got {total:.6f}")
        return self

    @classmethod
    def default(cls) -> "TSPAllocation":
        """Balanced 60/20/10/10/0 allocation used when nothing else applies."""
        return cls(c_fund=0.6, s_fund=0.2, i_fund=0.1, f_fund=0.1, g_fund=0.0)

    def as_dict(self) -> Dict[str, float]:
        return {
            "C": self.c_fund,
            "S": self.s_fund,
            "I": self.i_fund,
            "F": self.f_fund,
            "G": self.g_fund,
        }


class TSPLifecycleFund(BaseModel):
    """Reference to a TSP Lifecycle (L) fund glide path."""

    model_config = ConfigDict(frozen=True)

    fund_name: str = Field(..., min_length=1, description="Lifecycle fund name, e.g. L2030")


class Employee(BaseModel):
    """A member of the household and their federal benefits."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Display name")
    birth_date: date = Field(..., description="Date of birth")
    hire_date: date = Field(..., description="Start of creditable federal service")
    current_salary: float = Field(..., gt=0, description="Current annual salary")
    high_3_salary: float = Field(..., gt=0, description="Average of highest 3 years")
    tsp_balance_traditional: float = Field(default=0.0, ge=0, description="Traditional TSP balance")
    tsp_balance_roth: float = Field(default=0.0, ge=0, description="Roth TSP balance")
    tsp_contribution_percent: float = Field(
        default=0.0, ge=0, le=1, description="Employee TSP contribution as a share of salary"
    )
    ss_benefit_fra: float = Field(..., gt=0, description="Monthly SS benefit at full retirement age")
    ss_benefit_62: float = Field(..., gt=0, description="Monthly SS benefit at 62")
    ss_benefit_70: float = Field(..., gt=0, description="Monthly SS benefit at 70")
    fehb_premium_per_pay_period: float = Field(
        default=0.0, ge=0, description="FEHB premium per biweekly pay period"
    )
    survivor_benefit_election_percent: float = Field(
        default=0.0, ge=0, le=1, description="Elected FERS survivor benefit (0, 0.25 or 0.5)"
    )
    sick_leave_hours: float = Field(default=0.0, ge=0, description="Unused sick leave hours")
    tsp_allocation: Optional[TSPAllocation] = Field(
        default=None, description="Fixed TSP allocation"
    )
    tsp_lifecycle_fund: Optional[TSPLifecycleFund] = Field(
        default=None, description="Lifecycle fund whose glide path drives the allocation"
    )

    @model_validator(mode="after")
    def validate_dates_and_benefits(self) -> "Employee":
        """Validate date ordering and the Social Security benefit progression."""
        if self.birth_date > self.hire_date:
            raise ValueError("birth date cannot be after hire date")
        if self.ss_benefit_62 > self.ss_benefit_fra:
            raise ValueError("SS benefit at 62 cannot be greater than at FRA")
        if self.ss_benefit_fra > self.ss_benefit_70:
            raise ValueError("SS benefit at FRA cannot be greater than at 70")
        return self

    def age(self, at: date) -> int:
        return age_at(self.birth_date, at)

    def years_of_service(self, at: date) -> float:
        return years_of_service(self.hire_date, at, self.sick_leave_hours)

    def full_retirement_age(self) -> int:
        return full_retirement_age(self.birth_date)

    def minimum_retirement_age(self) -> int:
        return minimum_retirement_age(self.birth_date)

    def annual_tsp_contribution(self) -> float:
        """Employee's own annual TSP deferral."""
        return self.current_salary * self.tsp_contribution_percent

    def agency_match(self) -> float:
        """Agency matching contribution, 5% of salary once the employee defers 5%."""
        if self.tsp_contribution_percent >= AGENCY_MATCH_RATE:
            return self.current_salary * AGENCY_MATCH_RATE
        return 0.0

    def total_annual_tsp_contribution(self) -> float:
        return self.annual_tsp_contribution() + self.agency_match()

    def total_tsp_balance(self) -> float:
        return self.tsp_balance_traditional + self.tsp_balance_roth

    def has_allocation(self) -> bool:
        """True when returns should be weighted by a fund allocation."""
        return self.tsp_allocation is not None or self.tsp_lifecycle_fund is not None


class RetirementScenario(BaseModel):
    """One person's retirement decisions within a scenario."""

    model_config = ConfigDict(frozen=True)

    employee_name: str = Field(..., min_length=1, description="Name of the retiring person")
    retirement_date: date = Field(..., description="Date of separation from service")
    ss_start_age: int = Field(..., ge=62, le=70, description="Social Security claiming age")
    tsp_withdrawal_strategy: WithdrawalStrategyName = Field(
        default="4_percent_rule", description="TSP withdrawal strategy"
    )
    tsp_withdrawal_target_monthly: Optional[float] = Field(
        default=None, gt=0, description="Monthly target for need_based withdrawals"
    )
    tsp_withdrawal_rate: Optional[float] = Field(
        default=None, gt=0, le=0.20, description="Annual rate for variable_percentage withdrawals"
    )

    @model_validator(mode="after")
    def validate_strategy_parameters(self) -> "RetirementScenario":
        """Validate that the chosen strategy has the parameter it needs."""
        if (
            self.tsp_withdrawal_strategy == "need_based"
            and self.tsp_withdrawal_target_monthly is None
        ):
            raise ValueError(
                "TSP withdrawal target monthly is required for need_based strategy"
            )
        if (
            self.tsp_withdrawal_strategy == "variable_percentage"
            and self.tsp_withdrawal_rate is None
        ):
            raise ValueError(
                "TSP withdrawal rate is required for variable_percentage strategy"
            )
        return self


class MortalitySpec(BaseModel):
    """When a person dies, given either as a date or as an age."""

    model_config = ConfigDict(frozen=True)

    death_date: Optional[date] = Field(default=None, description="Exact date of death")
    death_age: Optional[int] = Field(default=None, ge=0, le=120, description="Age at death")

    @model_validator(mode="after")
    def validate_single_source(self) -> "MortalitySpec":
        if self.death_date is not None and self.death_age is not None:
            raise ValueError("specify either death_date or death_age, not both")
        return self


class MortalityAssumptions(BaseModel):
    """How the household behaves after the first death."""

    model_config = ConfigDict(frozen=True)

    survivor_spending_factor: float = Field(
        default=1.0, ge=0.4, le=1.0, description="Share of discretionary spending kept by a survivor"
    )
    tsp_spousal_transfer: Literal["merge", "separate"] = Field(
        default="merge", description="Whether the deceased's TSP rolls into the survivor's"
    )
    filing_status_switch: Literal["next_year", "immediate"] = Field(
        default="next_year", description="When the survivor starts filing as single"
    )


class Mortality(BaseModel):
    """Optional mortality events for a scenario."""

    model_config = ConfigDict(frozen=True)

    person_a: Optional[MortalitySpec] = None
    person_b: Optional[MortalitySpec] = None
    assumptions: Optional[MortalityAssumptions] = None

    def resolved_assumptions(self) -> MortalityAssumptions:
        return self.assumptions or MortalityAssumptions()


class Scenario(BaseModel):
    """A named pair of retirement decisions evaluated together."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Scenario name")
    person_a: RetirementScenario = Field(..., description="First person's retirement decisions")
    person_b: RetirementScenario = Field(..., description="Second person's retirement decisions")
    mortality: Optional[Mortality] = Field(default=None, description="Mortality events")
