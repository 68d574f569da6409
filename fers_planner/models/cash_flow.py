"""
Projection output models.

AnnualCashFlow is one year of a household projection. ScenarioSummary and
ScenarioComparison condense projections into the figures used to compare
retirement scenarios.
"""

import datetime
from typing import Dict, List, Literal

from pydantic import BaseModel, Field

COMPARISON_YEARS = (2030, 2035, 2040)


class AnnualCashFlow(BaseModel):
    """Household income, deductions and balances for one projection year."""

    year: int = Field(..., ge=1, description="1-based projection year")
    date: datetime.date = Field(..., description="January 1 of the calendar year")
    age_person_a: int = Field(..., description="Person A's age on January 1")
    age_person_b: int = Field(..., description="Person B's age on January 1")

    salary_person_a: float = 0.0
    salary_person_b: float = 0.0
    pension_person_a: float = 0.0
    pension_person_b: float = 0.0
    survivor_pension_person_a: float = Field(
        default=0.0, description="Survivor annuity received by person A"
    )
    survivor_pension_person_b: float = Field(
        default=0.0, description="Survivor annuity received by person B"
    )
    tsp_withdrawal_person_a: float = 0.0
    tsp_withdrawal_person_b: float = 0.0
    ss_benefit_person_a: float = 0.0
    ss_benefit_person_b: float = 0.0
    fers_supplement_person_a: float = 0.0
    fers_supplement_person_b: float = 0.0
    total_gross_income: float = 0.0

    federal_tax: float = 0.0
    federal_taxable_income: float = 0.0
    federal_standard_deduction: float = 0.0
    federal_filing_status: Literal["mfj", "single"] = "mfj"
    federal_seniors_65_plus: int = 0
    state_tax: float = 0.0
    local_tax: float = 0.0
    fica_tax: float = 0.0
    tsp_contributions: float = 0.0
    fehb_premium: float = 0.0
    medicare_premium: float = 0.0
    net_income: float = 0.0

    tsp_balance_person_a: float = Field(default=0.0, ge=0)
    tsp_balance_person_b: float = Field(default=0.0, ge=0)
    tsp_balance_traditional: float = Field(default=0.0, ge=0)
    tsp_balance_roth: float = Field(default=0.0, ge=0)

    is_retired: bool = False
    is_medicare_eligible: bool = False
    is_rmd_year: bool = False
    rmd_amount: float = 0.0
    person_a_deceased: bool = False
    person_b_deceased: bool = False
    filing_status_single: bool = False

    def income_total(self) -> float:
        """Sum of the twelve per-person income fields."""
        return (
            self.salary_person_a
            + self.salary_person_b
            + self.pension_person_a
            + self.pension_person_b
            + self.survivor_pension_person_a
            + self.survivor_pension_person_b
            + self.tsp_withdrawal_person_a
            + self.tsp_withdrawal_person_b
            + self.ss_benefit_person_a
            + self.ss_benefit_person_b
            + self.fers_supplement_person_a
            + self.fers_supplement_person_b
        )

    def deductions_total(self) -> float:
        return (
            self.federal_tax
            + self.state_tax
            + self.local_tax
            + self.fica_tax
            + self.tsp_contributions
            + self.fehb_premium
            + self.medicare_premium
        )

    def total_tsp_balance(self) -> float:
        return self.tsp_balance_person_a + self.tsp_balance_person_b

    def is_tsp_depleted(self) -> bool:
        return self.total_tsp_balance() <= 0


class ScenarioSummary(BaseModel):
    """Key figures of one scenario's projection."""

    name: str
    first_year_net_income: float = 0.0
    year_5_net_income: float = 0.0
    year_10_net_income: float = 0.0
    net_income_by_year: Dict[int, float] = Field(
        default_factory=dict, description="Net income for fixed calendar comparison years"
    )
    pre_retirement_net_by_year: Dict[int, float] = Field(
        default_factory=dict,
        description="Current net income grown by COLA to the comparison years",
    )
    total_lifetime_income: float = Field(
        default=0.0, description="Present value of net income at a 3% discount rate"
    )
    tsp_longevity: int = Field(default=0, ge=0, description="Years until the TSP is depleted")
    initial_tsp_balance: float = 0.0
    final_tsp_balance: float = 0.0
    success_rate: float = Field(default=0.0, ge=0, le=100, description="Deterministic heuristic")
    projection: List[AnnualCashFlow] = Field(default_factory=list)


class IncomeChange(BaseModel):
    """Change in net income moving from the baseline to a scenario."""

    scenario_name: str
    net_income_change: float
    percentage_change: float
    monthly_change: float


class ImpactAnalysis(BaseModel):
    """Immediate impact of retiring, against current take-home pay."""

    current_to_first_year: IncomeChange
    per_scenario: List[IncomeChange] = Field(default_factory=list)
    recommended_scenario: str = ""
    key_considerations: List[str] = Field(default_factory=list)


class LongTermAnalysis(BaseModel):
    best_scenario_for_income: str = ""
    best_scenario_for_longevity: str = ""
    best_scenario_for_first_year_income: str = ""
    risk_assessment: str = ""
    recommendations: List[str] = Field(default_factory=list)


class ScenarioComparison(BaseModel):
    """All scenario summaries of a configuration with comparative analysis."""

    baseline_net_income: float
    scenarios: List[ScenarioSummary]
    immediate_impact: ImpactAnalysis
    long_term_projection: LongTermAnalysis
