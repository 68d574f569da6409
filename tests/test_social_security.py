"""
Tests for Social Security benefit calculations.

This module tests early claiming reductions, delayed retirement credits,
COLA growth of annual benefits and the survivor benefit schedule.
"""

from datetime import date

import pytest

from fers_planner.models.social_security import (
    benefit_at_claiming_age,
    claiming_age_reached_during,
    interpolate_ss_benefit,
    ss_benefit_for_year,
    survivor_ss_benefit,
)

BORN_1965 = date(1965, 3, 15)


class TestClaimingAge:
    """Test benefit adjustments for the claiming age."""

    def test_claiming_at_fra(self):
        """Test that claiming at FRA pays the FRA benefit."""
        assert benefit_at_claiming_age(3000, BORN_1965, 67) == 3000

    def test_claiming_at_62_with_fra_67(self):
        """Test the 30% reduction for claiming five years early."""
        assert benefit_at_claiming_age(3000, BORN_1965, 62) == pytest.approx(2100)

    def test_claiming_within_36_months(self):
        """Test the 5/9 of 1% monthly reduction for the first 36 months."""
        assert benefit_at_claiming_age(3000, BORN_1965, 64) == pytest.approx(2400)

    def test_claiming_at_70(self):
        """Test delayed credits of 2/3 of 1% per month."""
        assert benefit_at_claiming_age(3000, BORN_1965, 70) == pytest.approx(3720)

    def test_claiming_before_62(self):
        """Test that no benefit is payable before 62."""
        assert benefit_at_claiming_age(3000, BORN_1965, 61) == 0.0

    def test_fra_66_cohort(self):
        """Test a person whose FRA is 66."""
        born_1955 = date(1955, 6, 1)
        assert benefit_at_claiming_age(2000, born_1955, 62) == pytest.approx(1500)
        assert benefit_at_claiming_age(2000, born_1955, 70) == pytest.approx(2640)


class TestAnnualBenefit:
    """Test annual benefits within a projection."""

    def test_no_benefit_before_claiming(self, person_a):
        """Test that nothing is paid before the claiming age."""
        assert ss_benefit_for_year(person_a, 67, 6, 0.025) == 0.0

    def test_first_year_uses_year_end_age(self, person_a):
        """Test that the year the claiming age is reached pays a full annual amount."""
        assert ss_benefit_for_year(person_a, 67, 7, 0.025) == pytest.approx(36000)

    def test_cola_compounds_per_year_of_age(self, person_a):
        """Test COLA growth after the claiming age."""
        assert ss_benefit_for_year(person_a, 67, 9, 0.025) == pytest.approx(36000 * 1.025**2)

    def test_claiming_age_reached_during(self):
        """Test detection of the claiming year."""
        assert claiming_age_reached_during(BORN_1965, 67, 2032)
        assert not claiming_age_reached_during(BORN_1965, 67, 2031)
        assert not claiming_age_reached_during(BORN_1965, 67, 2033)


class TestSurvivorBenefit:
    """Test survivor benefits."""

    def test_full_benefit_at_fra(self):
        """Test that a survivor at FRA receives the full benefit."""
        assert survivor_ss_benefit(40000, 67, 67) == 40000

    def test_reduced_at_60(self):
        """Test the 71.5% floor at age 60."""
        assert survivor_ss_benefit(40000, 60, 67) == pytest.approx(28600)

    def test_linear_between_60_and_fra(self):
        """Test the linear ramp between 60 and FRA."""
        expected = 40000 * (0.715 + 0.285 * 3.5 / 7)
        assert survivor_ss_benefit(40000, 63.5, 67) == pytest.approx(expected)

    def test_nothing_before_60(self):
        """Test that survivors under 60 receive nothing."""
        assert survivor_ss_benefit(40000, 59, 67) == 0.0

    def test_nothing_without_deceased_benefit(self):
        """Test that a deceased spouse without a benefit leaves nothing."""
        assert survivor_ss_benefit(0.0, 70, 67) == 0.0


class TestInterpolation:
    """Test interpolation between the benefit estimates."""

    def test_endpoints(self):
        """Test the three anchor ages."""
        assert interpolate_ss_benefit(1750, 2500, 3100, 62) == 1750
        assert interpolate_ss_benefit(1750, 2500, 3100, 67) == 2500
        assert interpolate_ss_benefit(1750, 2500, 3100, 70) == 3100

    def test_between_anchors(self):
        """Test linear interpolation on both sides of FRA."""
        assert interpolate_ss_benefit(1750, 2500, 3100, 64) == pytest.approx(2050)
        assert interpolate_ss_benefit(1750, 2500, 3100, 68) == pytest.approx(2700)
