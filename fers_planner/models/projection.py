"""
Annual projection engine.

Turns two people's static attributes, a retirement scenario and the global
economic assumptions into one AnnualCashFlow per projection year. Each year
depends on the balances carried out of the previous one, so years are
computed strictly in order.
"""

import logging
from datetime import date
from typing import Dict, List, Mapping, Optional, Tuple

from .assumptions import FederalRules, GlobalAssumptions
from .cash_flow import AnnualCashFlow
from .dates import (
    MEDICARE_ELIGIBILITY_AGE,
    birthday_in_year,
    fraction_of_year_after,
    is_rmd_year,
    work_fraction,
    year_end,
)
from .employee import Employee, MortalityAssumptions, MortalitySpec, RetirementScenario, Scenario
from .fers import fers_supplement_for_year, pension_for_year, survivor_annuity_for_year
from .fund_allocation import FundReturnResolver, LifecycleFundProvider
from .medicare import MedicareCalculator, household_medicare_premium
from .mortality import death_fraction_in_year, derive_death_year_indexes
from .rmd import rmd_for_year
from .social_security import ss_benefit_for_year, survivor_ss_benefit
from .taxes import TaxCalculator, calculate_household_taxes
from .withdrawal_rules import (
    WithdrawalStrategy,
    apply_rmd_floor_and_clamp,
    create_withdrawal_strategy,
)

logger = logging.getLogger(__name__)

FULL_SPENDING = 0.999


def fehb_premium_for_year(
    employee: Employee, year_index: int, premium_inflation: float, pay_periods_per_year: int
) -> float:
    """Annual FEHB premium, inflated once per projection year."""
    per_period = employee.fehb_premium_per_pay_period * (1 + premium_inflation) ** year_index
    return per_period * pay_periods_per_year


class _PersonState:
    """Mutable per-person state carried between projection years."""

    def __init__(
        self,
        employee: Employee,
        retirement: RetirementScenario,
        base_year: int,
        death_index: Optional[int],
        death_spec: Optional[MortalitySpec],
    ):
        self.employee = employee
        self.retirement = retirement
        self.retirement_index = retirement.retirement_date.year - base_year
        self.death_index = death_index
        self.death_spec = death_spec
        self.traditional = employee.tsp_balance_traditional
        self.roth = employee.tsp_balance_roth
        self.strategy: Optional[WithdrawalStrategy] = None
        self.deceased = False

    @property
    def balance(self) -> float:
        return self.traditional + self.roth

    def is_retired(self, year: int) -> bool:
        return year >= self.retirement_index

    def is_retirement_year(self, year: int) -> bool:
        return year == self.retirement_index and self.retirement_index >= 0

    def years_since_retirement(self, year: int) -> int:
        return year - self.retirement_index

    def withdrawal_year(self, year: int) -> int:
        """1-based count of retired projection years, starting at the first projected one."""
        return year - max(self.retirement_index, 0) + 1


class _YearIncome:
    """One person's income streams for a single year."""

    def __init__(self):
        self.salary = 0.0
        self.pension = 0.0
        self.survivor_pension = 0.0
        self.ss_benefit = 0.0
        self.supplement = 0.0
        self.withdrawal = 0.0
        self.rmd = 0.0
        self.is_rmd_year = False


class ProjectionEngine:
    """Deterministic year-by-year household cash flow projection.

    Args:
        historical_data: Optional historical series used for allocation-weighted
            returns when no override is supplied
        lifecycle_funds: Optional glide paths for lifecycle fund allocations
    """

    def __init__(
        self,
        historical_data=None,
        lifecycle_funds: Optional[LifecycleFundProvider] = None,
    ):
        self.historical_data = historical_data
        self.lifecycle_funds = lifecycle_funds
        self.logger = logging.getLogger(__name__)

    def project(
        self,
        person_a: Employee,
        person_b: Employee,
        scenario: Scenario,
        assumptions: GlobalAssumptions,
        federal_rules: Optional[FederalRules] = None,
        fund_return_overrides: Optional[Mapping[str, float]] = None,
    ) -> List[AnnualCashFlow]:
        """Project the household's cash flow for every year of the horizon.

        Args:
            person_a: First household member
            person_b: Second household member
            scenario: Retirement decisions and optional mortality events
            assumptions: Economic assumptions, including the horizon
            federal_rules: Tax and premium rules; defaults to the assumptions' rules
            fund_return_overrides: Per-fund returns that take precedence over
                historical and built-in values

        Returns:
            List of AnnualCashFlow, one per projection year
        """
        rules = federal_rules or assumptions.federal_rules
        tax_calculator = TaxCalculator(rules)
        medicare = MedicareCalculator(rules.medicare)
        resolver = FundReturnResolver(
            historical_data=self.historical_data,
            lifecycle_funds=self.lifecycle_funds,
            overrides=fund_return_overrides,
        )

        base_year = assumptions.projection_base_year
        horizon = assumptions.projection_years
        death_a, death_b = derive_death_year_indexes(
            scenario, person_a, person_b, base_year, horizon
        )
        mortality = scenario.mortality
        mortality_assumptions = (
            mortality.resolved_assumptions() if mortality is not None else MortalityAssumptions()
        )

        state_a = _PersonState(
            person_a,
            scenario.person_a,
            base_year,
            death_a,
            mortality.person_a if mortality is not None else None,
        )
        state_b = _PersonState(
            person_b,
            scenario.person_b,
            base_year,
            death_b,
            mortality.person_b if mortality is not None else None,
        )
        people = (state_a, state_b)

        projection: List[AnnualCashFlow] = []
        for year in range(horizon):
            calendar_year = base_year + year
            projection_date = date(calendar_year, 1, 1)

            for state in people:
                if state.death_index is not None and year >= state.death_index:
                    if not state.deceased:
                        self.logger.debug(
                            f"{state.employee.name} deceased from projection year {calendar_year}"
                        )
                    state.deceased = True

            survivor, deceased = self._survivor_pair(state_a, state_b)
            if survivor is not None and mortality_assumptions.tsp_spousal_transfer == "merge":
                survivor.traditional += deceased.traditional
                survivor.roth += deceased.roth
                deceased.traditional = 0.0
                deceased.roth = 0.0

            incomes = {
                id(state): self._base_income(state, year, calendar_year, assumptions)
                for state in people
            }

            if survivor is not None:
                self._apply_survivor_benefits(
                    survivor, deceased, incomes, year, calendar_year, assumptions
                )

            for state in people:
                self._apply_retirement_year_ss_rule(state, incomes[id(state)], year, calendar_year)

            target_income = sum(
                income.pension + income.ss_benefit + income.supplement
                for income in incomes.values()
            )
            for state in people:
                self._apply_withdrawal(
                    state, incomes[id(state)], year, projection_date, assumptions, target_income
                )

            for state in people:
                self._update_balances(
                    state, incomes[id(state)].withdrawal, year, projection_date, assumptions, resolver
                )

            income_a, income_b = incomes[id(state_a)], incomes[id(state_b)]
            filing_status = self._filing_status(
                state_a, state_b, year, mortality_assumptions.filing_status_switch
            )
            seniors = self._senior_count(state_a, state_b, projection_date, filing_status)

            taxes = calculate_household_taxes(
                tax_calculator,
                working_incomes=[income_a.salary, income_b.salary],
                pensions=[income_a.pension, income_b.pension],
                survivor_pensions=[income_a.survivor_pension, income_b.survivor_pension],
                withdrawals=[income_a.withdrawal, income_b.withdrawal],
                ss_benefits=[income_a.ss_benefit, income_b.ss_benefit],
                is_retired=state_a.is_retired(year) and state_b.is_retired(year),
                filing_status=filing_status,
                seniors=seniors,
            )

            fehb_premium = fehb_premium_for_year(
                person_a, year, assumptions.fehb_premium_inflation, rules.fehb.pay_periods_per_year
            )
            medicare_premium = household_medicare_premium(
                medicare,
                tax_calculator,
                pensions=[income_a.pension, income_b.pension],
                withdrawals=[income_a.withdrawal, income_b.withdrawal],
                ss_benefits=[income_a.ss_benefit, income_b.ss_benefit],
                enrolled=[
                    not state.deceased
                    and state.employee.age(projection_date) >= MEDICARE_ELIGIBILITY_AGE
                    for state in people
                ],
                years_from_base=year,
            )

            tsp_contributions = 0.0
            both_retired = state_a.is_retired(year) and state_b.is_retired(year)
            if not both_retired and not (state_a.deceased or state_b.deceased):
                tsp_contributions = sum(
                    state.employee.total_annual_tsp_contribution()
                    * work_fraction(state.retirement.retirement_date, calendar_year)
                    for state in people
                )

            if (state_a.deceased or state_b.deceased) and (
                mortality_assumptions.survivor_spending_factor < FULL_SPENDING
            ):
                factor = mortality_assumptions.survivor_spending_factor
                for income in (income_a, income_b):
                    income.withdrawal = max(income.withdrawal * factor, min(income.withdrawal, income.rmd))
                    income.pension *= factor

            cash_flow = AnnualCashFlow(
                year=year + 1,
                date=projection_date,
                age_person_a=person_a.age(projection_date),
                age_person_b=person_b.age(projection_date),
                salary_person_a=income_a.salary,
                salary_person_b=income_b.salary,
                pension_person_a=income_a.pension,
                pension_person_b=income_b.pension,
                survivor_pension_person_a=income_a.survivor_pension,
                survivor_pension_person_b=income_b.survivor_pension,
                tsp_withdrawal_person_a=income_a.withdrawal,
                tsp_withdrawal_person_b=income_b.withdrawal,
                ss_benefit_person_a=income_a.ss_benefit,
                ss_benefit_person_b=income_b.ss_benefit,
                fers_supplement_person_a=income_a.supplement,
                fers_supplement_person_b=income_b.supplement,
                federal_tax=taxes.federal_tax,
                federal_taxable_income=taxes.taxable_income_total,
                federal_standard_deduction=taxes.standard_deduction,
                federal_filing_status=filing_status,
                federal_seniors_65_plus=seniors,
                state_tax=taxes.state_tax,
                local_tax=taxes.local_tax,
                fica_tax=taxes.fica_tax,
                tsp_contributions=tsp_contributions,
                fehb_premium=fehb_premium,
                medicare_premium=medicare_premium,
                tsp_balance_person_a=state_a.balance,
                tsp_balance_person_b=state_b.balance,
                tsp_balance_traditional=state_a.traditional + state_b.traditional,
                tsp_balance_roth=state_a.roth + state_b.roth,
                is_retired=both_retired,
                is_medicare_eligible=any(
                    state.employee.age(projection_date) >= MEDICARE_ELIGIBILITY_AGE
                    for state in people
                ),
                is_rmd_year=income_a.is_rmd_year or income_b.is_rmd_year,
                rmd_amount=income_a.rmd + income_b.rmd,
                person_a_deceased=state_a.deceased,
                person_b_deceased=state_b.deceased,
                filing_status_single=filing_status == "single",
            )
            cash_flow.total_gross_income = cash_flow.income_total()
            cash_flow.net_income = cash_flow.total_gross_income - cash_flow.deductions_total()
            projection.append(cash_flow)

        return projection

    @staticmethod
    def _survivor_pair(
        state_a: _PersonState, state_b: _PersonState
    ) -> Tuple[Optional[_PersonState], Optional[_PersonState]]:
        """(survivor, deceased) when exactly one person has died, else (None, None)."""
        if state_a.deceased and not state_b.deceased:
            return state_b, state_a
        if state_b.deceased and not state_a.deceased:
            return state_a, state_b
        return None, None

    def _base_income(
        self, state: _PersonState, year: int, calendar_year: int, assumptions: GlobalAssumptions
    ) -> _YearIncome:
        """Salary, pension, supplement, SS and RMD for one person before survivor rules."""
        income = _YearIncome()
        if state.deceased:
            return income

        employee = state.employee
        retirement_date = state.retirement.retirement_date
        fraction_worked = work_fraction(retirement_date, calendar_year)
        retired_share = 1.0 - fraction_worked if state.is_retirement_year(year) else 1.0

        income.salary = employee.current_salary * fraction_worked

        if state.is_retired(year):
            years_since = state.years_since_retirement(year)
            income.pension = (
                pension_for_year(employee, retirement_date, years_since, assumptions.inflation_rate)
                * retired_share
            )
            income.supplement = (
                fers_supplement_for_year(
                    employee, retirement_date, years_since, assumptions.inflation_rate
                )
                * retired_share
            )

        income.ss_benefit = self._social_security(state, year, calendar_year, assumptions)

        # Still-working exception: no RMD from the TSP before separation.
        if not state.is_retired(year):
            return income

        income.rmd = rmd_for_year(state.traditional, employee.birth_date, calendar_year)
        income.is_rmd_year = (
            is_rmd_year(employee.birth_date, date(calendar_year, 1, 1)) or income.rmd > 0
        )
        return income

    @staticmethod
    def _social_security(
        state: _PersonState, year: int, calendar_year: int, assumptions: GlobalAssumptions
    ) -> float:
        """Own benefit with proration for the year the claiming age is reached.

        Birthday proration is skipped when the person also retires earlier in
        the same year before that birthday; the retirement-year rule applies
        instead.
        """
        employee = state.employee
        start_age = state.retirement.ss_start_age
        benefit = ss_benefit_for_year(
            employee, start_age, year, assumptions.cola_general_rate, assumptions.projection_base_year
        )

        age_start = employee.age(date(calendar_year, 1, 1))
        age_end = employee.age(year_end(calendar_year))
        if age_start < start_age <= age_end:
            birthday = birthday_in_year(employee.birth_date, calendar_year)
            retires_first = (
                state.is_retirement_year(year) and state.retirement.retirement_date < birthday
            )
            if not retires_first:
                benefit *= fraction_of_year_after(birthday)
        return benefit

    def _apply_survivor_benefits(
        self,
        survivor: _PersonState,
        deceased: _PersonState,
        incomes: Dict[int, _YearIncome],
        year: int,
        calendar_year: int,
        assumptions: GlobalAssumptions,
    ) -> None:
        """Survivor annuity and survivor Social Security for the living spouse."""
        income = incomes[id(survivor)]

        if deceased.is_retired(year):
            annuity = survivor_annuity_for_year(
                deceased.employee,
                deceased.retirement.retirement_date,
                max(0, deceased.years_since_retirement(year)),
                assumptions.inflation_rate,
            )
            fraction_before_death = death_fraction_in_year(
                deceased.death_index, year, deceased.death_spec
            )
            if fraction_before_death is not None:
                annuity *= 1.0 - fraction_before_death
            income.survivor_pension = annuity

        deceased_benefit = ss_benefit_for_year(
            deceased.employee,
            deceased.retirement.ss_start_age,
            year,
            assumptions.cola_general_rate,
            assumptions.projection_base_year,
        )
        survivor_age = survivor.employee.age(date(calendar_year, 1, 1))
        candidate = survivor_ss_benefit(
            deceased_benefit, survivor_age, survivor.employee.full_retirement_age()
        )
        income.ss_benefit = max(income.ss_benefit, candidate)

    @staticmethod
    def _apply_retirement_year_ss_rule(
        state: _PersonState, income: _YearIncome, year: int, calendar_year: int
    ) -> None:
        """Prorate or zero Social Security in the year of retirement."""
        if state.deceased or not state.is_retirement_year(year):
            return

        employee = state.employee
        retirement_date = state.retirement.retirement_date
        if employee.age(retirement_date) >= state.retirement.ss_start_age:
            birthday = birthday_in_year(employee.birth_date, calendar_year)
            if retirement_date < birthday:
                income.ss_benefit *= 1.0 - work_fraction(retirement_date, calendar_year)
        else:
            income.ss_benefit = 0.0

    def _apply_withdrawal(
        self,
        state: _PersonState,
        income: _YearIncome,
        year: int,
        projection_date: date,
        assumptions: GlobalAssumptions,
        target_income: float,
    ) -> None:
        """Withdrawal for a retired, living person, never below the RMD."""
        if state.deceased or not state.is_retired(year):
            return

        balance = state.balance
        if state.strategy is None:
            # The 4% rule is based on the balance when withdrawals begin.
            state.strategy = create_withdrawal_strategy(
                state.retirement, balance, assumptions.inflation_rate
            )

        amount = state.strategy.calculate_withdrawal(
            balance,
            state.withdrawal_year(year),
            target_income=target_income,
            age=state.employee.age(projection_date),
            is_rmd_year=income.is_rmd_year,
            rmd_amount=income.rmd,
        )
        if state.is_retirement_year(year):
            amount *= 1.0 - work_fraction(state.retirement.retirement_date, projection_date.year)
        income.withdrawal = apply_rmd_floor_and_clamp(
            amount, balance, income.is_rmd_year, income.rmd
        )

    @staticmethod
    def _update_balances(
        state: _PersonState,
        withdrawal: float,
        year: int,
        projection_date: date,
        assumptions: GlobalAssumptions,
        resolver: FundReturnResolver,
    ) -> None:
        """Apply contributions, withdrawals and growth to one person's TSP."""
        employee = state.employee

        if state.is_retired(year):
            if employee.has_allocation():
                if withdrawal > state.traditional:
                    overflow = withdrawal - state.traditional
                    state.traditional = 0.0
                    state.roth = max(0.0, state.roth - overflow)
                else:
                    state.traditional -= withdrawal
                growth = 1 + resolver.return_for(employee, projection_date)
                state.traditional = max(0.0, state.traditional * growth)
                state.roth = max(0.0, state.roth * growth)
            else:
                growth = 1 + assumptions.tsp_return_post_retirement
                state.traditional = max(0.0, state.traditional * growth)
                state.roth = max(0.0, state.roth * growth)
                if withdrawal <= state.roth:
                    state.roth -= withdrawal
                else:
                    overflow = withdrawal - state.roth
                    state.roth = 0.0
                    state.traditional = max(0.0, state.traditional - overflow)
            return

        if employee.has_allocation():
            rate = resolver.return_for(employee, projection_date)
        else:
            rate = assumptions.tsp_return_pre_retirement
        contribution = 0.0 if state.deceased else employee.total_annual_tsp_contribution()
        state.traditional = max(0.0, (state.traditional + contribution) * (1 + rate))
        state.roth = max(0.0, state.roth * (1 + rate))

    @staticmethod
    def _filing_status(
        state_a: _PersonState, state_b: _PersonState, year: int, switch: str
    ) -> str:
        """Joint unless exactly one person has died and the switch has taken effect."""
        if state_a.deceased == state_b.deceased:
            return "mfj"
        deceased = state_a if state_a.deceased else state_b
        if switch == "immediate":
            return "single"
        if deceased.death_index is not None and year > deceased.death_index:
            return "single"
        return "mfj"

    @staticmethod
    def _senior_count(
        state_a: _PersonState, state_b: _PersonState, at: date, filing_status: str
    ) -> int:
        if filing_status == "single":
            survivor = state_b if state_a.deceased else state_a
            return 1 if survivor.employee.age(at) >= MEDICARE_ELIGIBILITY_AGE else 0
        return sum(
            1 for state in (state_a, state_b) if state.employee.age(at) >= MEDICARE_ELIGIBILITY_AGE
        )
