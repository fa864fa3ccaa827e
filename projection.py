"""
Deterministic retirement projection using expected returns (no randomness).
Provides the point-estimate baseline that the optimizers are compared against.
"""
import logging
from typing import List, Optional, Sequence

from errors import NotFoundError
from financial_math import (
    DEFAULT_PORTFOLIO_RETURN,
    DEFAULT_WITHDRAWAL_RATE,
    calculate_portfolio_return,
    calculate_total_balance,
    calculate_total_contributions,
    compound_growth,
    inflation_adjusted_income,
    required_monthly_savings,
    retirement_nest_egg_needed,
)
from models import (
    Investment,
    ProjectionResult,
    ProjectionSchedule,
    RetirementAccount,
    RetirementGoal,
    SavingsScenario,
    as_float,
    to_fraction,
)

logger = logging.getLogger(__name__)

# Extra monthly savings shown next to the current path
SAVINGS_SCENARIO_INCREMENTS = [
    ("Conservative (+$500)", 500),
    ("Moderate (+$1000)", 1000),
    ("Aggressive (+$2000)", 2000),
]


class ProjectionEngine:
    """Point-estimate projection of a goal, its accounts and investments"""

    def __init__(self, withdrawal_rate: float = DEFAULT_WITHDRAWAL_RATE,
                 default_return: float = DEFAULT_PORTFOLIO_RETURN):
        self.withdrawal_rate = withdrawal_rate
        self.default_return = default_return

    def create_projection(self,
                          goal: Optional[RetirementGoal],
                          accounts: Sequence[RetirementAccount],
                          investments: Sequence[Investment]) -> ProjectionResult:
        """
        Project the balance at the target retirement age and size the gap.

        Args:
            goal: Retirement goal (None raises NotFoundError)
            accounts: Retirement accounts
            investments: Portfolio holdings

        Returns:
            ProjectionResult with shortfall floored at zero
        """
        if goal is None:
            raise NotFoundError()

        years = goal.years_until_retirement
        current_total_balance = calculate_total_balance(accounts)
        annual_contributions = calculate_total_contributions(accounts)
        portfolio_return = calculate_portfolio_return(investments, default=self.default_return)

        target_income = inflation_adjusted_income(
            as_float(goal.desired_annual_income),
            to_fraction(goal.inflation_rate),
            years
        )
        nest_egg_needed = retirement_nest_egg_needed(target_income, self.withdrawal_rate)

        projected_balance = compound_growth(
            current_total_balance,
            annual_contributions / 12,
            portfolio_return,
            years
        )

        shortfall = nest_egg_needed - projected_balance
        if shortfall > 0:
            recommended = required_monthly_savings(
                current_total_balance, nest_egg_needed, portfolio_return, years)
        else:
            recommended = 0.0

        logger.debug("Projection: %d years at %.4f return, balance %.2f vs nest egg %.2f",
                     years, portfolio_return, projected_balance, nest_egg_needed)

        return ProjectionResult(
            projected_balance=projected_balance,
            nest_egg_needed=nest_egg_needed,
            shortfall=max(shortfall, 0.0),
            recommended_monthly_savings=recommended,
            years_until_retirement=years,
            inflation_adjusted_income=target_income
        )

    def projection_schedule(self,
                            goal: Optional[RetirementGoal],
                            accounts: Sequence[RetirementAccount],
                            projection: ProjectionResult) -> ProjectionSchedule:
        """
        Year-by-year balance path from today to retirement at the default return,
        next to a flat target line at the projection's nest egg.
        """
        if goal is None:
            raise NotFoundError()

        current_total = calculate_total_balance(accounts)
        monthly_contributions = calculate_total_contributions(accounts) / 12

        ages = []
        balances = []
        for year in range(goal.years_until_retirement + 1):
            ages.append(goal.current_age + year)
            if year == 0:
                balances.append(current_total)
            else:
                balances.append(compound_growth(current_total, monthly_contributions,
                                                self.default_return, year))

        return ProjectionSchedule(
            ages=ages,
            projected_balances=balances,
            target_nest_egg=[projection.nest_egg_needed] * len(ages)
        )


def savings_scenarios(projection: ProjectionResult) -> List[SavingsScenario]:
    """Monthly savings for the current path and three stepped-up alternatives"""
    current_monthly = projection.recommended_monthly_savings if projection.shortfall > 0 else 0.0

    scenarios = [SavingsScenario("Current Path", current_monthly)]
    for label, increment in SAVINGS_SCENARIO_INCREMENTS:
        scenarios.append(SavingsScenario(label, current_monthly + increment))
    return scenarios
