"""
Retirement optimization orchestrator.

Runs the Monte Carlo, allocation, contribution and timeline optimizers, estimates
the impact of acting on each, and ranks the resulting actions. Also exposes the
engine's pure-function API over plain goal/account/investment records.
"""
import logging
from datetime import date, timedelta
from typing import Callable, Dict, Hashable, List, Mapping, Optional, Sequence, TypeVar

from config_utils import EngineConfig
from contributions import ContributionOptimizer
from errors import InvalidInputError, NotFoundError
from models import (
    AllocationResult,
    ComprehensiveResult,
    ContributionResult,
    ImpactRecord,
    Investment,
    MonteCarloResult,
    PriorityAction,
    ProjectionResult,
    RetirementAccount,
    RetirementGoal,
    TimelineResult,
)
from planning_store import PlanningStore
from portfolio import PortfolioOptimizer
from projection import ProjectionEngine
from simulation import MonteCarloSimulator
from timeline import TimelineOptimizer

logger = logging.getLogger(__name__)

RISK_REDUCTION = "risk_reduction"
ASSET_REBALANCING = "asset_rebalancing"
CONTRIBUTION_OPTIMIZATION = "contribution_optimization"
TIMELINE_OPTIMIZATION = "timeline_optimization"

BASE_PRIORITIES: Dict[str, int] = {
    CONTRIBUTION_OPTIMIZATION: 100,
    RISK_REDUCTION: 80,
    ASSET_REBALANCING: 60,
    TIMELINE_OPTIMIZATION: 40,
}
DEFAULT_BASE_PRIORITY = 50

IMPACT_MULTIPLIERS: Dict[str, float] = {
    "critical": 2.0,
    "high": 1.5,
    "medium": 1.2,
    "low": 1.0,
    "minimal": 0.8,
}

# (minimum success rate, potential improvement in points)
RISK_IMPROVEMENT_TIERS = [(90, 5), (80, 15), (70, 25), (60, 35)]
MAX_RISK_IMPROVEMENT = 50

# (minimum success rate, impact level)
RISK_IMPACT_TIERS = [(85, "low"), (70, "medium"), (55, "high")]

# (dollars strictly above, impact level)
CONTRIBUTION_IMPACT_TIERS = [(5000, "high"), (2000, "medium"), (500, "low")]

SIGNIFICANT_REBALANCE = 0.10
RETURN_IMPROVEMENT_PER_REBALANCE = 0.005

T = TypeVar("T")


# -----------------------------
# Pure-function API
# -----------------------------

def project(goal: Optional[RetirementGoal],
            accounts: Sequence[RetirementAccount],
            investments: Sequence[Investment],
            config: Optional[EngineConfig] = None) -> ProjectionResult:
    config = config or EngineConfig()
    engine = ProjectionEngine(config.withdrawal_rate, config.default_return)
    return engine.create_projection(goal, accounts, investments)


def simulate(goal: Optional[RetirementGoal],
             accounts: Sequence[RetirementAccount],
             investments: Sequence[Investment],
             num_simulations: Optional[int] = None,
             config: Optional[EngineConfig] = None) -> MonteCarloResult:
    config = config or EngineConfig()
    simulator = MonteCarloSimulator(
        seed=config.random_seed,
        max_workers=config.max_workers,
        shard_size=config.shard_size,
        default_return=config.default_return,
        default_volatility=config.default_volatility
    )
    if num_simulations is None:
        num_simulations = config.num_simulations
    return simulator.simulate(goal, accounts, investments, num_simulations)


def optimize_allocation(goal: Optional[RetirementGoal],
                        investments: Sequence[Investment],
                        risk_tolerance: Optional[str] = None,
                        config: Optional[EngineConfig] = None) -> AllocationResult:
    config = config or EngineConfig()
    if risk_tolerance is None:
        risk_tolerance = config.default_risk_tolerance
    return PortfolioOptimizer(config.risk_free_rate).optimize(goal, investments, risk_tolerance)


def optimize_contributions(goal: Optional[RetirementGoal],
                           accounts: Sequence[RetirementAccount],
                           monthly_amount: float) -> ContributionResult:
    if goal is None:
        raise NotFoundError()
    return ContributionOptimizer().optimize(accounts, monthly_amount, goal.current_age)


def optimize_timeline(goal: Optional[RetirementGoal],
                      accounts: Sequence[RetirementAccount],
                      preferences: Optional[Mapping] = None,
                      config: Optional[EngineConfig] = None) -> TimelineResult:
    config = config or EngineConfig()
    return TimelineOptimizer(config.timeline_return).optimize(goal, accounts, preferences)


# -----------------------------
# Impact estimation and ranking
# -----------------------------

def calculate_risk_improvement_potential(success_rate: float) -> int:
    for threshold, improvement in RISK_IMPROVEMENT_TIERS:
        if success_rate >= threshold:
            return improvement
    return MAX_RISK_IMPROVEMENT


def assess_impact_level(success_rate: float) -> str:
    for threshold, level in RISK_IMPACT_TIERS:
        if success_rate >= threshold:
            return level
    return "critical"


def calculate_return_improvement(allocation: AllocationResult) -> float:
    """0.5% per rebalancing action larger than 10 points"""
    significant = [r for r in allocation.rebalancing_recommendations
                   if abs(r.rebalancing_needed) > SIGNIFICANT_REBALANCE]
    return len(significant) * RETURN_IMPROVEMENT_PER_REBALANCE


def assess_contribution_impact(contributions: ContributionResult) -> str:
    total = contributions.employer_match_captured + contributions.tax_savings_estimate
    for threshold, level in CONTRIBUTION_IMPACT_TIERS:
        if total > threshold:
            return level
    return "minimal"


def calculate_optimization_impact(monte_carlo: Optional[MonteCarloResult],
                                  allocation: Optional[AllocationResult],
                                  contributions: Optional[ContributionResult],
                                  timeline: Optional[TimelineResult]) -> List[ImpactRecord]:
    """Impact records in the order risk, rebalancing, contribution, timeline"""
    impacts = []

    if monte_carlo is not None:
        impacts.append(ImpactRecord(
            action=RISK_REDUCTION,
            impact_level=assess_impact_level(monte_carlo.success_rate),
            details={
                'current_success_rate': monte_carlo.success_rate,
                'potential_improvement': calculate_risk_improvement_potential(monte_carlo.success_rate),
            }
        ))

    if allocation is not None and allocation.rebalancing_recommendations:
        impacts.append(ImpactRecord(
            action=ASSET_REBALANCING,
            impact_level="medium",
            details={
                'expected_return_improvement': calculate_return_improvement(allocation),
                'rebalancing_actions': len(allocation.rebalancing_recommendations),
            }
        ))

    if contributions is not None:
        impacts.append(ImpactRecord(
            action=CONTRIBUTION_OPTIMIZATION,
            impact_level=assess_contribution_impact(contributions),
            details={
                'additional_employer_match': contributions.employer_match_captured,
                'tax_savings': contributions.tax_savings_estimate,
            }
        ))

    if timeline is not None and timeline.optimal_retirement_age is not None:
        impacts.append(ImpactRecord(
            action=TIMELINE_OPTIMIZATION,
            impact_level="high",
            details={
                'optimal_age': timeline.optimal_retirement_age.retirement_age,
                'years_flexibility': timeline.years_flexibility,
            }
        ))

    return impacts


def calculate_action_priority(impact: ImpactRecord) -> int:
    base = BASE_PRIORITIES.get(impact.action, DEFAULT_BASE_PRIORITY)
    multiplier = IMPACT_MULTIPLIERS.get(impact.impact_level, IMPACT_MULTIPLIERS["low"])
    return round(base * multiplier)


def generate_action_description(impact: ImpactRecord) -> str:
    details = impact.details
    if impact.action == CONTRIBUTION_OPTIMIZATION:
        match_amount = details.get('additional_employer_match', 0)
        return f"Optimize contribution strategy (potential ${match_amount:,.0f} in additional matching)"
    if impact.action == RISK_REDUCTION:
        current_rate = details.get('current_success_rate', 0)
        return f"Improve retirement success probability from {current_rate:.1f}%"
    if impact.action == ASSET_REBALANCING:
        improvement = details.get('expected_return_improvement', 0) * 100
        return f"Rebalance portfolio for {improvement:.1f}% potential return improvement"
    if impact.action == TIMELINE_OPTIMIZATION:
        return f"Consider optimal retirement age of {details.get('optimal_age', 65)}"
    return "Optimization opportunity identified"


def rank_optimization_actions(impacts: Sequence[ImpactRecord]) -> List[PriorityAction]:
    """Actions by descending priority score; ties keep input order"""
    actions = [
        PriorityAction(
            action=impact.action,
            priority_score=calculate_action_priority(impact),
            impact_level=impact.impact_level,
            description=generate_action_description(impact)
        )
        for impact in impacts
    ]
    return sorted(actions, key=lambda a: a.priority_score, reverse=True)


# -----------------------------
# Orchestrator
# -----------------------------

class OptimizationOrchestrator:
    """Runs every optimizer for one user and ranks the recommended actions"""

    def __init__(self, store: PlanningStore,
                 config: Optional[EngineConfig] = None,
                 today: Optional[Callable[[], date]] = None):
        self.store = store
        self.config = config or EngineConfig()
        self._today = today or date.today

    def _run(self, name: str, errors: Dict[str, str], func: Callable[[], T]) -> Optional[T]:
        try:
            return func()
        except InvalidInputError as e:
            logger.warning("Optimizer %s failed: %s", name, e)
            errors[name] = str(e)
            return None

    def run_comprehensive(self, user_id: Hashable,
                          monthly_amount: Optional[float] = None,
                          lifestyle_preferences: Optional[Mapping] = None) -> ComprehensiveResult:
        """
        Run all optimizations for a user.

        Args:
            user_id: Key understood by the planning store
            monthly_amount: Monthly budget for contribution optimization; None skips it
            lifestyle_preferences: Passed to the timeline optimizer

        Returns:
            ComprehensiveResult; optimizers that failed are None with the message in errors

        Raises:
            NotFoundError: the user has no retirement goal
        """
        goal = self.store.get_goal(user_id)
        accounts = self.store.list_accounts(user_id)
        investments = self.store.list_investments(user_id)
        config = self.config
        errors: Dict[str, str] = {}

        logger.info("Running comprehensive optimization for user %s", user_id)

        monte_carlo = self._run(RISK_REDUCTION, errors, lambda: simulate(
            goal, accounts, investments, config.comprehensive_simulations, config))
        allocation = self._run(ASSET_REBALANCING, errors, lambda: optimize_allocation(
            goal, investments, config.default_risk_tolerance, config))
        contributions = None
        if monthly_amount is not None:
            contributions = self._run(CONTRIBUTION_OPTIMIZATION, errors, lambda: optimize_contributions(
                goal, accounts, monthly_amount))
        timeline = self._run(TIMELINE_OPTIMIZATION, errors, lambda: optimize_timeline(
            goal, accounts, lifestyle_preferences, config))

        impacts = calculate_optimization_impact(monte_carlo, allocation, contributions, timeline)
        actions = rank_optimization_actions(impacts)

        logger.info("Comprehensive optimization for user %s produced %d actions", user_id, len(actions))

        return ComprehensiveResult(
            risk_analysis=monte_carlo,
            asset_allocation=allocation,
            contribution_strategy=contributions,
            timeline_optimization=timeline,
            potential_improvements=impacts,
            priority_actions=actions,
            next_review_date=self._today() + timedelta(days=config.review_interval_days),
            errors=errors
        )
