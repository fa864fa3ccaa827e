"""
Closed-form retirement math: compound growth, savings solver, inflation,
4% rule sizing and allocation-weighted portfolio statistics.
Pure functions, no I/O.
"""
from typing import Dict, Iterable, Sequence

import numpy as np

from models import Fraction, Investment, RetirementAccount, RiskLevel, as_float, to_fraction

DEFAULT_PORTFOLIO_RETURN = 0.07
DEFAULT_PORTFOLIO_VOLATILITY = 0.15
DEFAULT_WITHDRAWAL_RATE = 0.04

# Annual volatility assumed for each investment risk level
RISK_LEVEL_VOLATILITY: Dict[RiskLevel, float] = {
    RiskLevel.LOW: 0.05,
    RiskLevel.MEDIUM: 0.15,
    RiskLevel.HIGH: 0.25,
}


def compound_growth(principal: float,
                    monthly_contribution: float,
                    annual_rate: float,
                    years: float) -> float:
    """
    Future value of a balance plus level monthly contributions.

    The principal compounds annually; contributions are a monthly annuity
    at annual_rate / 12.

    Args:
        principal: Starting balance
        monthly_contribution: Amount added every month
        annual_rate: Annual return as a fraction (0.07 for 7%)
        years: Horizon in years

    Returns:
        Projected balance at the end of the horizon
    """
    monthly_rate = annual_rate / 12
    months = years * 12

    principal_growth = principal * (1 + annual_rate) ** years

    if monthly_rate > 0:
        contribution_growth = monthly_contribution * ((1 + monthly_rate) ** months - 1) / monthly_rate
    else:
        contribution_growth = monthly_contribution * months

    return principal_growth + contribution_growth


def required_monthly_savings(current_balance: float,
                             target_amount: float,
                             annual_rate: float,
                             years: float) -> float:
    """
    Solve for the monthly contribution that grows current_balance to target_amount.

    Args:
        current_balance: Balance today
        target_amount: Balance needed at the end of the horizon
        annual_rate: Annual return as a fraction
        years: Horizon in years

    Returns:
        Monthly savings needed, or 0 if the current balance alone reaches the target
    """
    monthly_rate = annual_rate / 12
    months = years * 12

    future_current = current_balance * (1 + annual_rate) ** years
    needed_from_contributions = target_amount - future_current

    if needed_from_contributions <= 0:
        return 0.0
    if months <= 0:
        return float("inf")

    if monthly_rate > 0:
        return needed_from_contributions * monthly_rate / ((1 + monthly_rate) ** months - 1)
    return needed_from_contributions / months


def inflation_adjusted_income(desired_income: float,
                              inflation_rate: Fraction,
                              years: float) -> float:
    """Income needed in retirement-year dollars"""
    return desired_income * (1 + inflation_rate) ** years


def retirement_nest_egg_needed(annual_income_needed: float,
                               withdrawal_rate: float = DEFAULT_WITHDRAWAL_RATE) -> float:
    """Balance that sustains annual_income_needed at the given withdrawal rate (4% rule)"""
    return annual_income_needed / withdrawal_rate


def _allocation_weights(investments: Sequence[Investment]) -> np.ndarray:
    """Allocation percentages normalized by their observed total (empty when total is zero)"""
    allocations = np.array([as_float(inv.allocation_percentage) for inv in investments], dtype=float)
    total = allocations.sum()
    if allocations.size == 0 or total <= 0:
        return np.zeros(0)
    return allocations / total


def calculate_portfolio_return(investments: Sequence[Investment],
                               default: float = DEFAULT_PORTFOLIO_RETURN) -> float:
    """
    Allocation-weighted expected return as a fraction.

    Allocation percentages need not sum to 100; each is divided by the observed
    total. Returns `default` for an empty set or a zero total.
    """
    weights = _allocation_weights(investments)
    if weights.size == 0:
        return default
    returns = np.array([to_fraction(inv.expected_return) for inv in investments], dtype=float)
    return float(np.sum(weights * returns))


def calculate_portfolio_volatility(investments: Sequence[Investment],
                                   default: float = DEFAULT_PORTFOLIO_VOLATILITY) -> float:
    """
    Allocation-weighted volatility from each investment's risk level.

    Simplified: ignores correlation between holdings.
    """
    weights = _allocation_weights(investments)
    if weights.size == 0:
        return default
    vols = np.array([RISK_LEVEL_VOLATILITY.get(inv.risk_level, default) for inv in investments], dtype=float)
    return float(np.sum(weights * vols))


def calculate_total_balance(accounts: Iterable[RetirementAccount]) -> float:
    """Sum of current balances"""
    return sum(as_float(account.current_balance) for account in accounts)


def calculate_total_contributions(accounts: Iterable[RetirementAccount]) -> float:
    """Sum of annual employee contributions plus employer matches"""
    return sum(as_float(account.annual_contribution) + as_float(account.employer_match)
               for account in accounts)
