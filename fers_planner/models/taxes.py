"""
Household tax calculations.

Federal income tax with filing-status-aware standard deductions and brackets,
Pennsylvania state income tax, local earned income tax (EIT), FICA and the
taxation of Social Security benefits through provisional income.
"""

from typing import List, Literal

from pydantic import BaseModel, Field

from .assumptions import FederalRules

FilingStatus = Literal["mfj", "single"]

SS_TAXABLE_LOWER_RATE = 0.5
SS_TAXABLE_UPPER_RATE = 0.85


class TaxableIncome(BaseModel):
    """Income components entering the federal and state computations."""

    salary: float = Field(default=0.0, ge=0)
    fers_pension: float = Field(default=0.0, ge=0)
    tsp_withdrawals_traditional: float = Field(default=0.0, ge=0)
    taxable_ss_benefits: float = Field(default=0.0, ge=0)
    other_taxable_income: float = Field(default=0.0, ge=0)
    wage_income: float = Field(default=0.0, ge=0)
    interest_income: float = Field(default=0.0, ge=0)

    def federal_total(self) -> float:
        return (
            self.salary
            + self.fers_pension
            + self.tsp_withdrawals_traditional
            + self.taxable_ss_benefits
            + self.other_taxable_income
        )


class HouseholdTaxes(BaseModel):
    """All taxes owed by the household for one projection year."""

    federal_tax: float = Field(default=0.0, ge=0)
    state_tax: float = Field(default=0.0, ge=0)
    local_tax: float = Field(default=0.0, ge=0)
    fica_tax: float = Field(default=0.0, ge=0)
    taxable_income_total: float = Field(default=0.0, ge=0)
    standard_deduction: float = Field(default=0.0, ge=0)
    filing_status: FilingStatus = "mfj"
    seniors_65_plus: int = Field(default=0, ge=0, le=2)
    taxable_ss_benefits: float = Field(default=0.0, ge=0)

    def total(self) -> float:
        return self.federal_tax + self.state_tax + self.local_tax + self.fica_tax


class TaxCalculator:
    """Tax formulas parameterized by a set of federal rules."""

    def __init__(self, federal_rules: FederalRules):
        self.rules = federal_rules

    def standard_deduction(self, filing_status: FilingStatus, seniors: int) -> float:
        config = self.rules.federal_tax_config
        base = (
            config.standard_deduction_single
            if filing_status == "single"
            else config.standard_deduction_mfj
        )
        return base + seniors * config.additional_standard_deduction

    def federal_tax(
        self, income: TaxableIncome, filing_status: FilingStatus = "mfj", seniors: int = 0
    ) -> float:
        """Federal income tax after the standard deduction.

        Brackets are walked by width: each bracket taxes at most
        ``max - min`` of the income remaining above the previous brackets.
        """
        taxable = max(0.0, income.federal_total() - self.standard_deduction(filing_status, seniors))
        brackets = self.rules.federal_tax_config.brackets_for(filing_status)

        remaining = taxable
        tax = 0.0
        for bracket in brackets:
            if remaining <= 0:
                break
            width = bracket.max - bracket.min
            if width <= 0:
                continue
            in_bracket = min(remaining, width)
            if taxable > bracket.min:
                tax += in_bracket * bracket.rate
                remaining -= in_bracket
        return tax

    def state_tax(self, income: TaxableIncome, is_retired: bool) -> float:
        """Pennsylvania tax; pensions, TSP and Social Security are exempt."""
        rate = self.rules.state_local_tax.state_income_tax_rate
        if is_retired:
            return (income.wage_income + income.interest_income + income.other_taxable_income) * rate
        return income.wage_income * rate

    def local_tax(self, wage_income: float, is_retired: bool) -> float:
        """Local earned income tax, which applies to wages only."""
        if is_retired:
            return 0.0
        return wage_income * self.rules.state_local_tax.local_earned_income_tax_rate

    def fica_tax(self, wages: float, household_wages: float) -> float:
        """FICA for one earner.

        Social Security tax is capped per person at the wage base. The
        additional Medicare tax applies to household wages above the joint
        threshold and is split in proportion to each earner's wages.
        """
        fica = self.rules.fica_tax
        ss_tax = min(wages, fica.social_security_wage_base) * fica.social_security_rate
        medicare_tax = wages * fica.medicare_rate

        additional = 0.0
        if household_wages > fica.high_income_threshold_mfj:
            excess = household_wages - fica.high_income_threshold_mfj
            additional = excess * fica.additional_medicare_rate * (wages / household_wages)

        return ss_tax + medicare_tax + additional

    def taxable_social_security(
        self, ss_benefits: float, provisional_income: float, filing_status: FilingStatus = "mfj"
    ) -> float:
        """Federally taxable portion of Social Security benefits."""
        thresholds = self.rules.social_security_tax_thresholds
        if filing_status == "single":
            lower, upper = thresholds.single_threshold_1, thresholds.single_threshold_2
        else:
            lower = thresholds.married_filing_jointly_threshold_1
            upper = thresholds.married_filing_jointly_threshold_2

        if provisional_income <= lower:
            return 0.0
        if provisional_income <= upper:
            return min(
                (provisional_income - lower) * SS_TAXABLE_LOWER_RATE,
                ss_benefits * SS_TAXABLE_LOWER_RATE,
            )
        if filing_status == "single":
            return min(
                ss_benefits * SS_TAXABLE_UPPER_RATE,
                (provisional_income - upper) * SS_TAXABLE_UPPER_RATE
                + SS_TAXABLE_LOWER_RATE * (upper - lower),
            )
        return ss_benefits * SS_TAXABLE_UPPER_RATE


def provisional_income(other_income: float, ss_benefits: float, nontaxable_interest: float = 0.0) -> float:
    """Other income plus non-taxable interest plus half of Social Security."""
    return other_income + nontaxable_interest + ss_benefits * 0.5


def calculate_household_taxes(
    calculator: TaxCalculator,
    working_incomes: List[float],
    pensions: List[float],
    survivor_pensions: List[float],
    withdrawals: List[float],
    ss_benefits: List[float],
    is_retired: bool,
    filing_status: FilingStatus,
    seniors: int,
) -> HouseholdTaxes:
    """Taxes for one projection year.

    Exactly one of three cases applies. A transition year has working income
    alongside any retirement income; a fully retired year has no working
    income and both people retired; otherwise only working income is taxed.

    Args:
        calculator: Tax formulas for the rule year
        working_incomes: Per-person salary actually earned this year
        pensions: Per-person FERS pensions paid this year
        survivor_pensions: Per-person survivor annuities received this year
        withdrawals: Per-person TSP withdrawals this year
        ss_benefits: Per-person Social Security benefits this year
        is_retired: True when both people are retired
        filing_status: Federal filing status in effect
        seniors: Number of filers aged 65 or older

    Returns:
        HouseholdTaxes for the year
    """
    total_working = sum(working_incomes)
    all_pensions = sum(pensions) + sum(survivor_pensions)
    total_withdrawals = sum(withdrawals)
    total_ss = sum(ss_benefits)
    standard_deduction = calculator.standard_deduction(filing_status, seniors)

    has_retirement_income = any(
        amount > 0 for amount in list(pensions) + list(withdrawals) + list(ss_benefits)
    )
    is_transition = total_working > 0 and has_retirement_income

    if is_transition or is_retired:
        other_income = all_pensions + total_withdrawals
        taxable_ss = calculator.taxable_social_security(
            total_ss, provisional_income(other_income, total_ss), filing_status
        )
        wages = total_working if is_transition else 0.0
        income = TaxableIncome(
            salary=wages,
            fers_pension=all_pensions,
            tsp_withdrawals_traditional=total_withdrawals,
            taxable_ss_benefits=taxable_ss,
            wage_income=wages,
        )
        if is_transition:
            fica = sum(calculator.fica_tax(w, total_working) for w in working_incomes)
            state = calculator.state_tax(income, is_retired=False)
            local = calculator.local_tax(total_working, is_retired=False)
        else:
            fica = 0.0
            state = calculator.state_tax(income, is_retired=True)
            local = calculator.local_tax(0.0, is_retired=True)

        return HouseholdTaxes(
            federal_tax=calculator.federal_tax(income, filing_status, seniors),
            state_tax=state,
            local_tax=local,
            fica_tax=fica,
            taxable_income_total=income.federal_total(),
            standard_deduction=standard_deduction,
            filing_status=filing_status,
            seniors_65_plus=seniors,
            taxable_ss_benefits=taxable_ss,
        )

    income = TaxableIncome(salary=total_working, wage_income=total_working)
    return HouseholdTaxes(
        federal_tax=calculator.federal_tax(income, filing_status, seniors),
        state_tax=calculator.state_tax(income, is_retired=False),
        local_tax=calculator.local_tax(total_working, is_retired=False),
        fica_tax=sum(calculator.fica_tax(w, total_working) for w in working_incomes),
        taxable_income_total=income.salary,
        standard_deduction=standard_deduction,
        filing_status=filing_status,
        seniors_65_plus=seniors,
    )
