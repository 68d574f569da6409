"""
TSP withdrawal strategies.

This module provides the withdrawal strategies a retiree can select for their
TSP: the inflation-adjusted 4% rule, a fixed monthly need, and a variable
percentage of the current balance. Every strategy honors the required minimum
distribution and never withdraws more than the available balance.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .employee import RetirementScenario

logger = logging.getLogger(__name__)

FOUR_PERCENT = 0.04


def apply_rmd_floor_and_clamp(
    amount: float, balance: float, is_rmd_year: bool, rmd_amount: float
) -> float:
    """Raise a withdrawal to the RMD when required, then cap it at the balance.

    Args:
        amount: Withdrawal proposed by a strategy
        balance: Balance available for withdrawal
        is_rmd_year: Whether an RMD applies this year
        rmd_amount: Required minimum distribution for the year

    Returns:
        Withdrawal between 0 and ``balance``
    """
    if is_rmd_year and amount < rmd_amount:
        amount = rmd_amount
    return max(0.0, min(amount, balance))


class WithdrawalStrategy(ABC):
    """Abstract base class for TSP withdrawal strategies."""

    name: str = ""

    @abstractmethod
    def base_withdrawal(self, balance: float, year_index: int) -> float:
        """
        Withdrawal the strategy wants before RMD and balance constraints.

        Args:
            balance: Current TSP balance
            year_index: Retirement year, 1 for the first year of retirement

        Returns:
            Desired withdrawal amount
        """

    def calculate_withdrawal(
        self,
        balance: float,
        year_index: int,
        target_income: float = 0.0,
        age: int = 0,
        is_rmd_year: bool = False,
        rmd_amount: float = 0.0,
    ) -> float:
        """
        Calculate the withdrawal for a retirement year.

        Args:
            balance: Current TSP balance
            year_index: Retirement year, 1 for the first year of retirement
            target_income: Household income target, unused by built-in strategies
            age: Age of the account owner
            is_rmd_year: Whether an RMD applies this year
            rmd_amount: Required minimum distribution for the year

        Returns:
            Withdrawal amount, at least the RMD when one applies and never
            more than ``balance``
        """
        amount = self.base_withdrawal(balance, year_index)
        return apply_rmd_floor_and_clamp(amount, balance, is_rmd_year, rmd_amount)


class FourPercentRule(WithdrawalStrategy):
    """4% of the balance at retirement, grown with inflation every year after."""

    name = "4_percent_rule"

    def __init__(self, initial_balance: float, inflation_rate: float):
        self.initial_balance = initial_balance
        self.inflation_rate = inflation_rate
        self.first_withdrawal = initial_balance * FOUR_PERCENT

    def base_withdrawal(self, balance: float, year_index: int) -> float:
        if year_index <= 1:
            return self.first_withdrawal
        return self.first_withdrawal * (1 + self.inflation_rate) ** (year_index - 1)


class NeedBasedWithdrawal(WithdrawalStrategy):
    """A fixed monthly target, withdrawn as an annual amount."""

    name = "need_based"

    def __init__(self, target_monthly: float):
        self.target_monthly = target_monthly

    def base_withdrawal(self, balance: float, year_index: int) -> float:
        return max(0.0, self.target_monthly * 12)


class VariablePercentageWithdrawal(WithdrawalStrategy):
    """A fixed percentage of whatever the balance is each year."""

    name = "variable_percentage"

    def __init__(self, withdrawal_rate: float):
        self.withdrawal_rate = withdrawal_rate

    def base_withdrawal(self, balance: float, year_index: int) -> float:
        return balance * self.withdrawal_rate


def create_withdrawal_strategy(
    retirement: RetirementScenario, initial_balance: float, inflation_rate: float
) -> WithdrawalStrategy:
    """Build the strategy a retirement scenario selects.

    Falls back to the 4% rule when the selected strategy is missing its
    parameter.
    """
    strategy_name = retirement.tsp_withdrawal_strategy
    target: Optional[float] = retirement.tsp_withdrawal_target_monthly
    rate: Optional[float] = retirement.tsp_withdrawal_rate

    if strategy_name == "need_based" and target is not None:
        return NeedBasedWithdrawal(target)
    if strategy_name == "variable_percentage" and rate is not None:
        return VariablePercentageWithdrawal(rate)
    if strategy_name != "4_percent_rule":
        logger.warning(
            f"Withdrawal strategy {strategy_name} missing its parameter, using 4% rule"
        )
    return FourPercentRule(initial_balance, inflation_rate)
