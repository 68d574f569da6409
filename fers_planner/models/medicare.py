"""Medicare Part B premiums with income-related (IRMAA) surcharges."""

from typing import Sequence

from .assumptions import MedicareConfig
from .taxes import TaxCalculator, provisional_income

MONTHS_PER_YEAR = 12


class MedicareCalculator:
    """Part B premium calculator for a rule year.

    IRMAA surcharges are cumulative: every tier whose threshold the MAGI
    strictly exceeds adds its surcharge, stopping at the first tier that is
    not exceeded.
    """

    def __init__(self, config: MedicareConfig):
        self.config = config

    def irmaa_surcharge(self, magi: float, married_filing_jointly: bool = True) -> float:
        thresholds = (
            self.config.irmaa_thresholds_joint
            if married_filing_jointly
            else self.config.irmaa_thresholds_single
        )
        surcharge = 0.0
        for threshold, tier_surcharge in zip(thresholds, self.config.irmaa_surcharges):
            if magi > threshold:
                surcharge += tier_surcharge
            else:
                break
        return surcharge

    def part_b_monthly_premium(self, magi: float, married_filing_jointly: bool = True) -> float:
        return self.config.base_premium_2025 + self.irmaa_surcharge(magi, married_filing_jointly)

    def annual_part_b_cost(self, magi: float, married_filing_jointly: bool = True) -> float:
        return self.part_b_monthly_premium(magi, married_filing_jointly) * MONTHS_PER_YEAR

    def premium_with_inflation(
        self, magi: float, married_filing_jointly: bool, years_from_base: int
    ) -> float:
        """Annual cost grown by the configured premium inflation."""
        growth = (1 + self.config.premium_inflation) ** years_from_base
        return self.annual_part_b_cost(magi, married_filing_jointly) * growth


def estimate_magi(
    pension_income: float,
    tsp_withdrawals: float,
    taxable_ss_benefits: float,
    other_income: float = 0.0,
) -> float:
    return pension_income + tsp_withdrawals + taxable_ss_benefits + other_income


def household_medicare_premium(
    medicare: MedicareCalculator,
    tax_calculator: TaxCalculator,
    pensions: Sequence[float],
    withdrawals: Sequence[float],
    ss_benefits: Sequence[float],
    enrolled: Sequence[bool],
    years_from_base: int,
) -> float:
    """Total Part B cost for the household in one year.

    MAGI uses own pensions (survivor annuities excluded), TSP withdrawals and
    the jointly-taxable share of Social Security. Each enrolled person pays
    the joint-filer premium.

    Args:
        medicare: Premium calculator
        tax_calculator: Used for the taxable share of Social Security
        pensions: Per-person own FERS pensions
        withdrawals: Per-person TSP withdrawals
        ss_benefits: Per-person Social Security benefits
        enrolled: Per-person flag, True when the person pays Part B
        years_from_base: Years since the projection base year

    Returns:
        Annual premium for all enrolled people
    """
    other_income = sum(pensions) + sum(withdrawals)
    total_ss = sum(ss_benefits)
    taxable_ss = tax_calculator.taxable_social_security(
        total_ss, provisional_income(other_income, total_ss), "mfj"
    )
    magi = estimate_magi(sum(pensions), sum(withdrawals), taxable_ss)

    per_person = medicare.premium_with_inflation(magi, True, years_from_base)
    return per_person * sum(1 for is_enrolled in enrolled if is_enrolled)
