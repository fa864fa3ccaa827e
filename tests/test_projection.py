"""
Unit tests for the deterministic projection.
"""
import pytest
from decimal import Decimal
from projection import ProjectionEngine, savings_scenarios
from financial_math import compound_growth
from models import RetirementGoal, RetirementAccount, Investment, AccountType, RiskLevel
from errors import NotFoundError


@pytest.fixture
def goal():
    return RetirementGoal(
        current_age=30,
        target_retirement_age=65,
        desired_annual_income=Decimal("80000"),
        inflation_rate=Decimal("2.5")
    )


@pytest.fixture
def accounts():
    return [RetirementAccount("Employer 401k", AccountType.K401, Decimal("50000"),
                              annual_contribution=Decimal("6000"), employer_match=Decimal("3000"))]


class TestCreateProjection:
    """Test projection at the target retirement age"""

    def test_single_account_default_return(self, goal, accounts):
        """Test 35-year projection with no investments uses 7% return"""
        result = ProjectionEngine().create_projection(goal, accounts, [])

        monthly_rate = 0.07 / 12
        expected_balance = 50_000 * 1.07 ** 35 + 750 * ((1 + monthly_rate) ** 420 - 1) / monthly_rate
        expected_income = 80_000 * 1.025 ** 35
        expected_nest_egg = expected_income / 0.04

        assert result.years_until_retirement == 35
        assert result.projected_balance == pytest.approx(expected_balance)
        assert result.inflation_adjusted_income == pytest.approx(expected_income)
        assert result.nest_egg_needed == pytest.approx(expected_nest_egg)
        assert result.shortfall == pytest.approx(expected_nest_egg - expected_balance)
        assert result.shortfall > 0
        assert result.recommended_monthly_savings > 0

    def test_recommended_savings_reach_nest_egg(self, goal, accounts):
        """Test recommended savings grow the balance to the nest egg"""
        result = ProjectionEngine().create_projection(goal, accounts, [])
        reached = compound_growth(50_000, result.recommended_monthly_savings, 0.07, 35)
        assert reached == pytest.approx(result.nest_egg_needed, rel=1e-9)

    def test_no_shortfall_when_overfunded(self, goal):
        """Test shortfall floors at zero and no savings are recommended"""
        rich = [RetirementAccount("Brokerage IRA", AccountType.IRA, Decimal("5000000"))]
        result = ProjectionEngine().create_projection(goal, rich, [])
        assert result.shortfall == 0
        assert result.recommended_monthly_savings == 0

    def test_investments_set_return(self, goal, accounts):
        """Test portfolio return comes from investments when present"""
        investments = [Investment("Bond Fund", 100, 4, RiskLevel.LOW)]
        result = ProjectionEngine().create_projection(goal, accounts, investments)
        assert result.projected_balance == pytest.approx(compound_growth(50_000, 750, 0.04, 35))

    def test_missing_goal(self, accounts):
        """Test absent goal raises NotFoundError"""
        with pytest.raises(NotFoundError):
            ProjectionEngine().create_projection(None, accounts, [])


class TestProjectionSchedule:
    """Test year-by-year schedule"""

    def test_schedule_shape_and_endpoints(self, goal, accounts):
        """Test schedule spans current age to retirement age"""
        engine = ProjectionEngine()
        projection = engine.create_projection(goal, accounts, [])
        schedule = engine.projection_schedule(goal, accounts, projection)

        assert schedule.ages[0] == 30
        assert schedule.ages[-1] == 65
        assert len(schedule.projected_balances) == 36
        assert schedule.projected_balances[0] == 50_000
        assert schedule.projected_balances[-1] == pytest.approx(projection.projected_balance)
        assert all(target == projection.nest_egg_needed for target in schedule.target_nest_egg)

    def test_balances_increase(self, goal, accounts):
        """Test balances grow monotonically with positive return and contributions"""
        engine = ProjectionEngine()
        projection = engine.create_projection(goal, accounts, [])
        balances = engine.projection_schedule(goal, accounts, projection).projected_balances
        assert all(later > earlier for earlier, later in zip(balances, balances[1:]))


class TestSavingsScenarios:
    """Test stepped savings scenarios"""

    def test_scenarios_add_fixed_increments(self, goal, accounts):
        """Test scenario labels and increments over the current path"""
        projection = ProjectionEngine().create_projection(goal, accounts, [])
        scenarios = savings_scenarios(projection)

        assert [s.label for s in scenarios] == [
            "Current Path", "Conservative (+$500)", "Moderate (+$1000)", "Aggressive (+$2000)"
        ]
        base = projection.recommended_monthly_savings
        assert scenarios[0].monthly_savings == pytest.approx(base)
        assert scenarios[3].monthly_savings == pytest.approx(base + 2000)

    def test_current_path_zero_without_shortfall(self, goal):
        """Test current path needs no savings when already funded"""
        rich = [RetirementAccount("IRA", AccountType.IRA, Decimal("5000000"))]
        projection = ProjectionEngine().create_projection(goal, rich, [])
        scenarios = savings_scenarios(projection)
        assert scenarios[0].monthly_savings == 0
        assert scenarios[1].monthly_savings == 500
