"""
Retirement timeline optimizer.
Scores every candidate retirement age on funding and lifestyle fit and picks
optimal, conservative and aggressive options.
"""
import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from errors import NotFoundError
from financial_math import calculate_total_balance, calculate_total_contributions, compound_growth
from models import RetirementAccount, RetirementGoal, TimelineResult, TimelineScenario, as_float

logger = logging.getLogger(__name__)

TIMELINE_RETURN = 0.07
NEST_EGG_INCOME_MULTIPLE = 25
MIN_YEARS_TO_RETIREMENT = 5
MAX_YEARS_TO_RETIREMENT = 40
FEASIBLE_SUCCESS_RATE = 80
CONSERVATIVE_SUCCESS_RATE = 95
AGGRESSIVE_SUCCESS_RATE = 75
BASE_LIFESTYLE_SCORE = 50

INSUFFICIENT_TIME_REASON = "Insufficient time to accumulate adequate savings"

# (dimension, level) -> (comparison, threshold age, score if met, score otherwise)
LIFESTYLE_RULES: Dict[Tuple[str, str], Tuple[str, int, int, int]] = {
    ("health_priority", "high"): ("<=", 62, 20, -10),
    ("health_priority", "low"): (">=", 70, 10, 0),
    ("family_time", "high"): ("<=", 65, 15, 0),
    ("family_time", "low"): (">=", 67, 10, 0),
    ("career_satisfaction", "high"): (">=", 67, 15, -5),
    ("career_satisfaction", "low"): ("<=", 62, 15, 0),
}
LIFESTYLE_DIMENSIONS = ("health_priority", "family_time", "career_satisfaction")

# (feasible count upper bound exclusive, recommendation)
FEASIBILITY_RECOMMENDATIONS: List[Tuple[float, str]] = [
    (1, "Consider increasing contributions or extending retirement timeline"),
    (5, "Limited retirement options - consider optimizing savings strategy"),
    (15, "Good retirement flexibility with current strategy"),
    (float("inf"), "Excellent retirement flexibility - multiple viable options"),
]


def _preference_level(preferences: Mapping, dimension: str) -> str:
    value = preferences.get(dimension, "normal")
    return str(getattr(value, "value", value)).lower()


def calculate_lifestyle_score(retirement_age: int, preferences: Optional[Mapping] = None) -> float:
    """
    Lifestyle fit of a retirement age, clamped to [0, 100].

    Args:
        retirement_age: Candidate age
        preferences: health_priority / family_time / career_satisfaction, each
            "high", "low" or "normal" (missing means normal)
    """
    preferences = preferences or {}
    score = BASE_LIFESTYLE_SCORE
    for dimension in LIFESTYLE_DIMENSIONS:
        rule = LIFESTYLE_RULES.get((dimension, _preference_level(preferences, dimension)))
        if rule is None:
            continue
        comparison, threshold, met, otherwise = rule
        if comparison == "<=":
            matched = retirement_age <= threshold
        else:
            matched = retirement_age >= threshold
        score += met if matched else otherwise
    return max(0, min(100, score))


def analyze_retirement_scenario(retirement_age: int,
                                current_balance: float,
                                annual_contributions: float,
                                goal: RetirementGoal,
                                preferences: Optional[Mapping] = None,
                                annual_return: float = TIMELINE_RETURN) -> TimelineScenario:
    years = retirement_age - goal.current_age
    if years < MIN_YEARS_TO_RETIREMENT:
        return TimelineScenario(
            retirement_age=retirement_age,
            feasible=False,
            years_until_retirement=years,
            reason=INSUFFICIENT_TIME_REASON
        )

    projected = compound_growth(current_balance, annual_contributions / 12, annual_return, years)
    required = as_float(goal.desired_annual_income) * NEST_EGG_INCOME_MULTIPLE
    success_rate = min(100.0, projected / required * 100)
    lifestyle_score = calculate_lifestyle_score(retirement_age, preferences)

    return TimelineScenario(
        retirement_age=retirement_age,
        feasible=success_rate >= FEASIBLE_SUCCESS_RATE,
        years_until_retirement=years,
        projected_balance=projected,
        required_nest_egg=required,
        success_rate=success_rate,
        lifestyle_score=lifestyle_score,
        overall_score=(success_rate + lifestyle_score) / 2
    )


def find_optimal_retirement_age(scenarios: Sequence[TimelineScenario]) -> Optional[TimelineScenario]:
    """Highest overall score among feasible ages (earliest age wins ties)"""
    feasible = [s for s in scenarios if s.feasible]
    if not feasible:
        return None
    return max(feasible, key=lambda s: s.overall_score)


def _earliest_with_success(scenarios: Sequence[TimelineScenario], min_rate: float) -> Optional[TimelineScenario]:
    candidates = [s for s in scenarios if s.feasible and s.success_rate >= min_rate]
    if not candidates:
        return None
    return min(candidates, key=lambda s: s.retirement_age)


def find_conservative_retirement_age(scenarios: Sequence[TimelineScenario]) -> Optional[TimelineScenario]:
    return _earliest_with_success(scenarios, CONSERVATIVE_SUCCESS_RATE)


def find_aggressive_retirement_age(scenarios: Sequence[TimelineScenario]) -> Optional[TimelineScenario]:
    return _earliest_with_success(scenarios, AGGRESSIVE_SUCCESS_RATE)


def generate_timeline_recommendations(scenarios: Sequence[TimelineScenario]) -> List[str]:
    feasible = [s for s in scenarios if s.feasible]
    recommendations = []
    for upper_bound, message in FEASIBILITY_RECOMMENDATIONS:
        if len(feasible) < upper_bound:
            recommendations.append(message)
            break
    if feasible:
        earliest = min(feasible, key=lambda s: s.retirement_age)
        recommendations.append(f"Earliest feasible retirement: age {earliest.retirement_age}")
    return recommendations


def calculate_timeline_flexibility(scenarios: Sequence[TimelineScenario]) -> int:
    """Span in years between the earliest and latest feasible ages"""
    ages = [s.retirement_age for s in scenarios if s.feasible]
    if not ages:
        return 0
    return max(ages) - min(ages)


class TimelineOptimizer:
    """Evaluates retirement ages from current_age + 5 to current_age + 40"""

    def __init__(self, annual_return: float = TIMELINE_RETURN):
        self.annual_return = annual_return

    def optimize(self,
                 goal: Optional[RetirementGoal],
                 accounts: Sequence[RetirementAccount],
                 lifestyle_preferences: Optional[Mapping] = None) -> TimelineResult:
        if goal is None:
            raise NotFoundError()

        current_balance = calculate_total_balance(accounts)
        annual_contributions = calculate_total_contributions(accounts)

        first_age = goal.current_age + MIN_YEARS_TO_RETIREMENT
        last_age = goal.current_age + MAX_YEARS_TO_RETIREMENT
        scenarios = [
            analyze_retirement_scenario(age, current_balance, annual_contributions, goal,
                                        lifestyle_preferences, self.annual_return)
            for age in range(first_age, last_age + 1)
        ]

        optimal = find_optimal_retirement_age(scenarios)
        logger.debug("Timeline: %d of %d ages feasible, optimal %s",
                     sum(s.feasible for s in scenarios), len(scenarios),
                     optimal.retirement_age if optimal else None)

        return TimelineResult(
            scenarios_analyzed=scenarios,
            optimal_retirement_age=optimal,
            conservative_option=find_conservative_retirement_age(scenarios),
            aggressive_option=find_aggressive_retirement_age(scenarios),
            recommendations=generate_timeline_recommendations(scenarios),
            years_flexibility=calculate_timeline_flexibility(scenarios)
        )
