"""
Contribution optimizer: splits a monthly savings budget across accounts.

Two stages share one remaining annual budget:
1. capture uncaptured employer match, in account order
2. fill statutory room by tax-advantage score, highest first
"""
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from errors import InvalidInputError
from models import ContributionAllocation, ContributionResult, RetirementAccount, as_float
from tax import (
    PRE_TAX_SAVINGS_ACCOUNT_TYPES,
    estimate_marginal_tax_rate,
    estimate_max_employer_match,
    get_annual_contribution_limit,
    tax_advantage_multiplier,
)

logger = logging.getLogger(__name__)

MATCH_REASON = "Maximize employer match"
TAX_REASON = "Tax optimization"
MATCH_PRIORITY_BONUS = 200


@dataclass
class MatchOpportunity:
    account: RetirementAccount
    current_match: float
    estimated_max_match: float

    @property
    def uncaptured_match(self) -> float:
        return max(0.0, self.estimated_max_match - self.current_match)


def calculate_match_opportunities(accounts: Sequence[RetirementAccount]) -> List[MatchOpportunity]:
    return [
        MatchOpportunity(
            account=account,
            current_match=as_float(account.employer_match),
            estimated_max_match=estimate_max_employer_match(
                account.account_type, as_float(account.annual_contribution))
        )
        for account in accounts
    ]


def calculate_priority_score(account: RetirementAccount, current_age: int) -> float:
    score = tax_advantage_multiplier(account.account_type, current_age) * 100
    if as_float(account.employer_match) > 0:
        score += MATCH_PRIORITY_BONUS
    return score


def remaining_room(account: RetirementAccount, already_allocated: float) -> float:
    """Statutory annual room left after current contributions and new allocations"""
    limit = get_annual_contribution_limit(account.account_type)
    return max(0.0, limit - as_float(account.annual_contribution) - already_allocated)


class ContributionOptimizer:
    """Match-first, then tax-scored allocation of a monthly budget"""

    def _allocate_for_matches(self,
                              accounts: Sequence[RetirementAccount],
                              budget: float,
                              allocated: List[float]) -> Tuple[List[ContributionAllocation], float]:
        allocations = []
        for index, opportunity in enumerate(calculate_match_opportunities(accounts)):
            if budget <= 0:
                break
            amount = min(opportunity.uncaptured_match, budget,
                         remaining_room(opportunity.account, allocated[index]))
            if amount <= 0:
                continue
            allocations.append(ContributionAllocation(
                account_name=opportunity.account.name,
                account_type=opportunity.account.account_type,
                monthly_amount=amount / 12,
                reason=MATCH_REASON,
                priority="high"
            ))
            allocated[index] += amount
            budget -= amount
        return allocations, budget

    def _allocate_for_taxes(self,
                            accounts: Sequence[RetirementAccount],
                            budget: float,
                            allocated: List[float],
                            current_age: int) -> Tuple[List[ContributionAllocation], float]:
        # sorted() is stable, so equal scores keep account order
        ranked = sorted(range(len(accounts)),
                        key=lambda i: calculate_priority_score(accounts[i], current_age),
                        reverse=True)
        allocations = []
        for index in ranked:
            if budget <= 0:
                break
            account = accounts[index]
            amount = min(remaining_room(account, allocated[index]), budget)
            if amount <= 0:
                continue
            allocations.append(ContributionAllocation(
                account_name=account.name,
                account_type=account.account_type,
                monthly_amount=amount / 12,
                reason=TAX_REASON,
                priority="medium"
            ))
            allocated[index] += amount
            budget -= amount
        return allocations, budget

    def optimize(self,
                 accounts: Sequence[RetirementAccount],
                 available_monthly_amount: float,
                 current_age: int) -> ContributionResult:
        """
        Allocate a monthly budget across accounts.

        Args:
            accounts: Candidate accounts, in priority order for the match stage
            available_monthly_amount: Monthly budget (must not be negative)
            current_age: Saver's age, drives Roth/traditional preference and tax rate

        Returns:
            ContributionResult with monthly allocations in the order they were made
        """
        if available_monthly_amount is None or available_monthly_amount < 0:
            raise InvalidInputError(
                f"available_monthly_amount must not be negative, got {available_monthly_amount}")

        accounts = list(accounts)
        allocated = [0.0] * len(accounts)
        budget = float(available_monthly_amount) * 12

        match_allocations, budget = self._allocate_for_matches(accounts, budget, allocated)
        tax_allocations, budget = self._allocate_for_taxes(accounts, budget, allocated, current_age)
        allocations = match_allocations + tax_allocations

        logger.debug("Contributions: %d match and %d tax allocations, %.2f/yr unallocated",
                     len(match_allocations), len(tax_allocations), budget)

        return ContributionResult(
            recommended_allocations=allocations,
            total_monthly_contributions=float(available_monthly_amount),
            employer_match_captured=calculate_total_match(allocations),
            tax_savings_estimate=calculate_tax_savings(allocations, current_age),
            optimization_notes=generate_contribution_notes(allocations)
        )


def calculate_total_match(allocations: Sequence[ContributionAllocation]) -> float:
    """Annual dollars directed at capturing employer match"""
    return sum(a.monthly_amount * 12 for a in allocations if a.reason == MATCH_REASON)


def calculate_tax_savings(allocations: Sequence[ContributionAllocation], current_age: int) -> float:
    """Pre-tax 401k dollars from the tax stage times the age-banded marginal rate"""
    pre_tax = sum(a.monthly_amount * 12 for a in allocations
                  if a.reason == TAX_REASON and a.account_type in PRE_TAX_SAVINGS_ACCOUNT_TYPES)
    return pre_tax * estimate_marginal_tax_rate(current_age)


def generate_contribution_notes(allocations: Sequence[ContributionAllocation]) -> List[str]:
    notes = []
    total_match = calculate_total_match(allocations)
    if any(a.reason == MATCH_REASON for a in allocations):
        notes.append(f"Capturing ${total_match:,.0f} in employer matching")
    if any(a.reason == TAX_REASON for a in allocations):
        notes.append("Optimized for current tax situation and retirement timeline")
    return notes
