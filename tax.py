"""
Simplified tax policy tables for contribution planning.
Statutory annual limits, age-banded marginal rates and the Roth/traditional
preference multipliers. Not a model of the tax code.
"""
from typing import Dict, List, Tuple

from models import AccountType

# 2024 employee contribution limits (simplified, no catch-up)
ANNUAL_CONTRIBUTION_LIMITS: Dict[AccountType, float] = {
    AccountType.K401: 23_000,
    AccountType.B403: 23_000,
    AccountType.IRA: 7_000,
    AccountType.ROTH_IRA: 7_000,
    AccountType.SEP_IRA: 69_000,
    AccountType.SIMPLE_IRA: 16_000,
}
DEFAULT_CONTRIBUTION_LIMIT = 6_000

# (age upper bound exclusive, marginal rate); the last row applies from 55 on
MARGINAL_RATE_BANDS: List[Tuple[float, float]] = [
    (30, 0.22),
    (45, 0.24),
    (55, 0.32),
    (float("inf"), 0.24),
]

# Employer match estimate: fraction of the employee's annual contribution
MATCH_RATES: Dict[AccountType, float] = {
    AccountType.K401: 0.5,
    AccountType.B403: 0.5,
}

TRADITIONAL_ACCOUNT_TYPES = {AccountType.K401, AccountType.B403, AccountType.IRA}
ROTH_ACCOUNT_TYPES = {AccountType.ROTH_IRA}
PRE_TAX_SAVINGS_ACCOUNT_TYPES = {AccountType.K401}

ROTH_PREFERENCE_MAX_AGE = 35  # exclusive
TRADITIONAL_PREFERENCE_MIN_AGE = 50  # exclusive
PREFERENCE_MULTIPLIER = 1.2


def get_annual_contribution_limit(account_type: AccountType) -> float:
    """Statutory annual limit for an account type"""
    return ANNUAL_CONTRIBUTION_LIMITS.get(account_type, DEFAULT_CONTRIBUTION_LIMIT)


def estimate_marginal_tax_rate(current_age: int) -> float:
    """
    Marginal rate assumed for an age.

    Args:
        current_age: Age of the saver

    Returns:
        Marginal tax rate as a fraction
    """
    for upper_age, rate in MARGINAL_RATE_BANDS:
        if current_age < upper_age:
            return rate
    return MARGINAL_RATE_BANDS[-1][1]


def estimate_max_employer_match(account_type: AccountType, annual_contribution: float) -> float:
    return annual_contribution * MATCH_RATES.get(account_type, 0.0)


def tax_advantage_multiplier(account_type: AccountType, current_age: int) -> float:
    """Favor Roth accounts when young and traditional accounts when older"""
    if account_type in ROTH_ACCOUNT_TYPES and current_age < ROTH_PREFERENCE_MAX_AGE:
        return PREFERENCE_MULTIPLIER
    if account_type in TRADITIONAL_ACCOUNT_TYPES and current_age > TRADITIONAL_PREFERENCE_MIN_AGE:
        return PREFERENCE_MULTIPLIER
    return 1.0
