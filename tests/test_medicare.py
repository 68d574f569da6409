"""
Tests for Medicare Part B premiums.
"""

import pytest

from fers_planner.models.assumptions import FederalRules, MedicareConfig
from fers_planner.models.medicare import (
    MedicareCalculator,
    estimate_magi,
    household_medicare_premium,
)
from fers_planner.models.taxes import TaxCalculator


@pytest.fixture
def medicare():
    return MedicareCalculator(MedicareConfig())


class TestIRMAA:
    """Test income-related surcharges."""

    def test_no_surcharge_at_threshold(self, medicare):
        """Test that MAGI equal to the first threshold adds nothing."""
        assert medicare.irmaa_surcharge(206000) == 0.0

    def test_first_tier(self, medicare):
        """Test the first joint tier."""
        assert medicare.irmaa_surcharge(210000) == pytest.approx(69.90)
        assert medicare.part_b_monthly_premium(210000) == pytest.approx(254.90)

    def test_tiers_are_cumulative(self, medicare):
        """Test that surcharges accumulate across exceeded tiers."""
        assert medicare.irmaa_surcharge(260000) == pytest.approx(69.90 + 174.70)

    def test_single_thresholds(self, medicare):
        """Test single-filer thresholds."""
        assert medicare.irmaa_surcharge(110000, married_filing_jointly=False) == pytest.approx(69.90)

    def test_annual_cost(self, medicare):
        """Test the base annual premium."""
        assert medicare.annual_part_b_cost(100000) == pytest.approx(2220)

    def test_premium_inflation(self):
        """Test premium growth from the base year."""
        calculator = MedicareCalculator(MedicareConfig(premium_inflation=0.05))
        assert calculator.premium_with_inflation(100000, True, 2) == pytest.approx(2220 * 1.05**2)

    def test_mismatched_tiers_rejected(self):
        """Test that tier lists must line up."""
        with pytest.raises(ValueError):
            MedicareConfig(irmaa_surcharges=[69.90])


class TestHouseholdPremium:
    """Test household Part B premiums."""

    def test_magi(self):
        """Test the MAGI estimate."""
        assert estimate_magi(40000, 20000, 10000, 500) == 70500

    def test_only_enrolled_people_pay(self, medicare):
        """Test that only enrolled people are charged."""
        calculator = TaxCalculator(FederalRules())
        one = household_medicare_premium(
            medicare, calculator, [40000, 0], [0, 0], [0, 0], [True, False], 0
        )
        both = household_medicare_premium(
            medicare, calculator, [40000, 0], [0, 0], [0, 0], [True, True], 0
        )
        assert one == pytest.approx(2220)
        assert both == pytest.approx(4440)
