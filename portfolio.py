"""
Asset allocation optimizer over five asset classes.

The efficient frontier is tabulated: each target volatility maps to a hand-tuned
weight vector rather than the solution of a mean-variance program.
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from errors import NotFoundError
from models import (
    AllocationResult,
    FrontierPoint,
    Investment,
    RebalancingRecommendation,
    RetirementGoal,
    RiskTolerance,
    to_fraction,
)

logger = logging.getLogger(__name__)

US_STOCKS = "US Stocks"
INTERNATIONAL_STOCKS = "International Stocks"
BONDS = "Bonds"
REITS = "REITs"
COMMODITIES = "Commodities"

# (expected_return, volatility) per asset class
ASSET_CLASSES: Dict[str, Tuple[float, float]] = {
    US_STOCKS: (0.10, 0.20),
    INTERNATIONAL_STOCKS: (0.09, 0.22),
    BONDS: (0.04, 0.05),
    REITS: (0.08, 0.18),
    COMMODITIES: (0.06, 0.25),
}

FRONTIER_VOLATILITIES = [0.05, 0.08, 0.12, 0.16, 0.20, 0.25]
RISK_FREE_RATE = 0.02

# (upper volatility bound, weights); the last row applies above every bound
VOLATILITY_BUCKET_WEIGHTS: List[Tuple[float, Dict[str, float]]] = [
    (0.08, {US_STOCKS: 0.20, INTERNATIONAL_STOCKS: 0.10, BONDS: 0.60, REITS: 0.05, COMMODITIES: 0.05}),
    (0.12, {US_STOCKS: 0.40, INTERNATIONAL_STOCKS: 0.20, BONDS: 0.30, REITS: 0.05, COMMODITIES: 0.05}),
    (0.16, {US_STOCKS: 0.50, INTERNATIONAL_STOCKS: 0.25, BONDS: 0.15, REITS: 0.05, COMMODITIES: 0.05}),
    (0.20, {US_STOCKS: 0.60, INTERNATIONAL_STOCKS: 0.25, BONDS: 0.05, REITS: 0.05, COMMODITIES: 0.05}),
    (float("inf"), {US_STOCKS: 0.50, INTERNATIONAL_STOCKS: 0.30, BONDS: 0.05, REITS: 0.10, COMMODITIES: 0.05}),
]

# (minimum years until retirement, target volatility) per tolerance, checked top-down
TOLERANCE_VOLATILITY_RULES: Dict[RiskTolerance, List[Tuple[int, float]]] = {
    RiskTolerance.CONSERVATIVE: [(0, 0.08)],
    RiskTolerance.MODERATE: [(21, 0.16), (11, 0.12), (0, 0.08)],
    RiskTolerance.AGGRESSIVE: [(16, 0.20), (6, 0.16), (0, 0.12)],
}
HORIZON_ONLY_RULES: List[Tuple[int, float]] = [(26, 0.16), (11, 0.12), (0, 0.08)]

# Case-insensitive name keyword -> asset class, first match wins
NAME_KEYWORD_CLASSES: List[Tuple[str, str]] = [
    ("bond", BONDS),
    ("reit", REITS),
    ("international", INTERNATIONAL_STOCKS),
    ("commodity", COMMODITIES),
]

REBALANCE_THRESHOLD = 0.05


def weights_for_volatility(target_volatility: float) -> Dict[str, float]:
    """Tabulated weights for the bucket containing target_volatility"""
    for upper_bound, weights in VOLATILITY_BUCKET_WEIGHTS:
        if target_volatility <= upper_bound:
            return dict(weights)
    return dict(VOLATILITY_BUCKET_WEIGHTS[-1][1])


def portfolio_expected_return(weights: Dict[str, float]) -> float:
    return sum(weight * ASSET_CLASSES[asset][0] for asset, weight in weights.items())


def calculate_efficient_frontier(risk_free_rate: float = RISK_FREE_RATE) -> List[FrontierPoint]:
    """One frontier point per tabulated target volatility"""
    frontier = []
    for target_volatility in FRONTIER_VOLATILITIES:
        weights = weights_for_volatility(target_volatility)
        expected_return = portfolio_expected_return(weights)
        frontier.append(FrontierPoint(
            target_volatility=target_volatility,
            expected_return=expected_return,
            weights=weights,
            sharpe_ratio=(expected_return - risk_free_rate) / target_volatility
        ))
    return frontier


def _parse_tolerance(risk_tolerance: Union[RiskTolerance, str, None]) -> Optional[RiskTolerance]:
    try:
        return RiskTolerance(risk_tolerance)
    except ValueError:
        return None


def target_volatility_for(risk_tolerance: Union[RiskTolerance, str, None],
                          years_until_retirement: int) -> float:
    """
    Target volatility by tolerance and horizon.

    Unknown tolerances fall back to a horizon-only rule.
    """
    tolerance = _parse_tolerance(risk_tolerance)
    rules = TOLERANCE_VOLATILITY_RULES.get(tolerance, HORIZON_ONLY_RULES)
    for min_years, volatility in rules:
        if years_until_retirement >= min_years:
            return volatility
    return rules[-1][1]


def select_optimal_portfolio(frontier: Sequence[FrontierPoint],
                             risk_tolerance: Union[RiskTolerance, str, None],
                             years_until_retirement: int) -> FrontierPoint:
    """Frontier point whose volatility is closest to the target (first wins ties)"""
    target = target_volatility_for(risk_tolerance, years_until_retirement)
    logger.debug("Target volatility %.2f for tolerance %s over %d years",
                 target, risk_tolerance, years_until_retirement)
    return min(frontier, key=lambda point: abs(point.target_volatility - target))


def classify_investment(name: str) -> str:
    lowered = name.lower()
    for keyword, asset_class in NAME_KEYWORD_CLASSES:
        if keyword in lowered:
            return asset_class
    return US_STOCKS


def calculate_current_allocation(investments: Sequence[Investment]) -> Dict[str, float]:
    """
    Map holdings onto asset classes by name and sum their weights.

    Weights are allocation_percentage / 100 and are not renormalized.
    """
    allocation: Dict[str, float] = {}
    for investment in investments:
        asset_class = classify_investment(investment.name)
        allocation[asset_class] = allocation.get(asset_class, 0.0) + to_fraction(investment.allocation_percentage)
    return allocation


def get_rebalancing_action(difference: float) -> str:
    if difference > REBALANCE_THRESHOLD:
        return "Increase allocation"
    if difference < -REBALANCE_THRESHOLD:
        return "Decrease allocation"
    return "Maintain current allocation"


def calculate_rebalancing_needs(current_allocation: Dict[str, float],
                                optimal: FrontierPoint) -> List[RebalancingRecommendation]:
    """Recommendations for asset classes whose weight is off by more than 5 points"""
    all_assets = list(optimal.weights)
    all_assets += [asset for asset in current_allocation if asset not in optimal.weights]

    recommendations = []
    for asset in all_assets:
        current_weight = current_allocation.get(asset, 0.0)
        target_weight = optimal.weights.get(asset, 0.0)
        difference = target_weight - current_weight
        if abs(difference) > REBALANCE_THRESHOLD:
            recommendations.append(RebalancingRecommendation(
                asset_class=asset,
                current_allocation=current_weight,
                target_allocation=target_weight,
                rebalancing_needed=difference,
                action=get_rebalancing_action(difference)
            ))
    return recommendations


class PortfolioOptimizer:
    """Selects a frontier portfolio and compares it with current holdings"""

    def __init__(self, risk_free_rate: float = RISK_FREE_RATE):
        self.risk_free_rate = risk_free_rate

    def optimize(self,
                 goal: Optional[RetirementGoal],
                 investments: Sequence[Investment],
                 risk_tolerance: Union[RiskTolerance, str, None] = RiskTolerance.MODERATE) -> AllocationResult:
        if goal is None:
            raise NotFoundError()

        frontier = calculate_efficient_frontier(self.risk_free_rate)
        optimal = select_optimal_portfolio(frontier, risk_tolerance, goal.years_until_retirement)
        current = calculate_current_allocation(investments)
        rebalancing = calculate_rebalancing_needs(current, optimal)

        return AllocationResult(
            optimal_allocation=optimal,
            current_allocation=current,
            rebalancing_recommendations=rebalancing,
            expected_return=optimal.expected_return,
            expected_volatility=optimal.target_volatility,
            sharpe_ratio=optimal.sharpe_ratio,
            efficient_frontier=frontier
        )
