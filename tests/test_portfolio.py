"""
Unit tests for the asset allocation optimizer.
"""
import pytest
from portfolio import (
    PortfolioOptimizer, calculate_efficient_frontier, target_volatility_for,
    select_optimal_portfolio, classify_investment, calculate_current_allocation,
    calculate_rebalancing_needs, weights_for_volatility, get_rebalancing_action,
    US_STOCKS, INTERNATIONAL_STOCKS, BONDS, REITS, COMMODITIES
)
from models import RetirementGoal, Investment, RiskLevel, RiskTolerance
from errors import NotFoundError


@pytest.fixture
def goal():
    return RetirementGoal(30, 65, 80000, 2.5)


class TestEfficientFrontier:
    """Test tabulated frontier"""

    def test_one_point_per_volatility(self):
        """Test six frontier points in ascending volatility"""
        frontier = calculate_efficient_frontier()
        assert [p.target_volatility for p in frontier] == [0.05, 0.08, 0.12, 0.16, 0.20, 0.25]

    def test_weights_sum_to_one(self):
        """Test every bucket is fully invested"""
        for point in calculate_efficient_frontier():
            assert sum(point.weights.values()) == pytest.approx(1.0)

    def test_conservative_bucket_return_and_sharpe(self):
        """Test expected return and Sharpe ratio of the lowest bucket"""
        frontier = calculate_efficient_frontier()
        assert frontier[0].expected_return == pytest.approx(0.06)
        assert frontier[0].sharpe_ratio == pytest.approx((0.06 - 0.02) / 0.05)
        assert frontier[1].sharpe_ratio == pytest.approx(0.5)

    def test_growth_bucket_return(self):
        """Test expected return of the 16% bucket"""
        weights = weights_for_volatility(0.16)
        assert weights[US_STOCKS] == 0.50
        frontier = calculate_efficient_frontier()
        assert frontier[3].expected_return == pytest.approx(0.0855)

    def test_above_every_bound(self):
        """Test the last bucket applies to 25% volatility"""
        assert weights_for_volatility(0.25)[REITS] == 0.10


class TestTargetVolatility:
    """Test tolerance and horizon rules"""

    @pytest.mark.parametrize("tolerance,years,expected", [
        (RiskTolerance.CONSERVATIVE, 40, 0.08),
        ("moderate", 25, 0.16),
        ("moderate", 20, 0.12),
        ("moderate", 11, 0.12),
        ("moderate", 10, 0.08),
        ("aggressive", 16, 0.20),
        ("aggressive", 15, 0.16),
        ("aggressive", 6, 0.16),
        ("aggressive", 5, 0.12),
        ("yolo", 26, 0.16),
        ("yolo", 25, 0.12),
        (None, 10, 0.08),
    ])
    def test_rules(self, tolerance, years, expected):
        """Test target volatility per tolerance and years to retirement"""
        assert target_volatility_for(tolerance, years) == expected

    def test_select_nearest_point(self):
        """Test selection picks the point at the target volatility"""
        frontier = calculate_efficient_frontier()
        point = select_optimal_portfolio(frontier, "aggressive", 30)
        assert point.target_volatility == 0.20


class TestCurrentAllocation:
    """Test keyword classification of holdings"""

    @pytest.mark.parametrize("name,asset_class", [
        ("Vanguard Total BOND Market", BONDS),
        ("Real Estate REIT Index", REITS),
        ("International Growth", INTERNATIONAL_STOCKS),
        ("Broad Commodity Fund", COMMODITIES),
        ("S&P 500 Index", US_STOCKS),
        ("International Bond Fund", BONDS),
    ])
    def test_classify(self, name, asset_class):
        """Test first matching keyword wins, default is US stocks"""
        assert classify_investment(name) == asset_class

    def test_weights_summed_per_class(self):
        """Test holdings in the same class accumulate"""
        investments = [
            Investment("S&P 500", 35, 10, RiskLevel.HIGH),
            Investment("Total Market", 25, 10, RiskLevel.HIGH),
            Investment("Bond Fund", 40, 4, RiskLevel.LOW),
        ]
        allocation = calculate_current_allocation(investments)
        assert allocation[US_STOCKS] == pytest.approx(0.60)
        assert allocation[BONDS] == pytest.approx(0.40)
        assert INTERNATIONAL_STOCKS not in allocation


class TestRebalancing:
    """Test rebalancing recommendations"""

    def test_only_deltas_above_threshold(self):
        """Test every recommendation moves more than five points"""
        conservative = calculate_efficient_frontier()[1]
        recommendations = calculate_rebalancing_needs({US_STOCKS: 1.0}, conservative)

        assert [r.asset_class for r in recommendations] == [US_STOCKS, INTERNATIONAL_STOCKS, BONDS]
        assert all(abs(r.rebalancing_needed) > 0.05 for r in recommendations)
        assert recommendations[0].action == "Decrease allocation"
        assert recommendations[0].rebalancing_needed == pytest.approx(-0.8)
        assert recommendations[2].action == "Increase allocation"

    def test_empty_holdings(self):
        """Test empty holdings recommend buying every class above five points"""
        conservative = calculate_efficient_frontier()[1]
        recommendations = calculate_rebalancing_needs({}, conservative)
        assert {r.asset_class for r in recommendations} == {US_STOCKS, INTERNATIONAL_STOCKS, BONDS}
        assert all(r.current_allocation == 0 for r in recommendations)

    def test_action_labels(self):
        """Test action wording around the threshold"""
        assert get_rebalancing_action(0.2) == "Increase allocation"
        assert get_rebalancing_action(-0.2) == "Decrease allocation"
        assert get_rebalancing_action(0.01) == "Maintain current allocation"


class TestPortfolioOptimizer:
    """Test the full optimization"""

    def test_moderate_long_horizon(self, goal):
        """Test 35-year moderate investor lands on the 16% portfolio"""
        investments = [Investment("S&P 500", 100, 10, RiskLevel.HIGH)]
        result = PortfolioOptimizer().optimize(goal, investments, RiskTolerance.MODERATE)

        assert result.expected_volatility == 0.16
        assert result.expected_return == pytest.approx(0.0855)
        assert result.sharpe_ratio == pytest.approx((0.0855 - 0.02) / 0.16)
        assert result.current_allocation == {US_STOCKS: 1.0}
        assert len(result.efficient_frontier) == 6
        assert all(abs(r.rebalancing_needed) > 0.05 for r in result.rebalancing_recommendations)

    def test_missing_goal(self):
        """Test absent goal raises NotFoundError"""
        with pytest.raises(NotFoundError):
            PortfolioOptimizer().optimize(None, [])
