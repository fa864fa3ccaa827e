"""
Unit tests for engine records and rate conversions.
"""
import pytest
from dataclasses import FrozenInstanceError
from decimal import Decimal
from models import (
    RetirementGoal, RetirementAccount, Investment, AccountType, RiskLevel,
    to_fraction, to_percent, as_float
)
from errors import InvalidInputError, RetirementPlannerError


class TestRateConversions:
    """Test Percent/Fraction helpers"""

    def test_to_fraction(self):
        """Test percent to fraction with Decimal and None"""
        assert to_fraction(Decimal("2.5")) == pytest.approx(0.025)
        assert to_fraction(None) == 0.0

    def test_to_percent(self):
        """Test fraction to percent"""
        assert to_percent(0.85) == pytest.approx(85.0)

    def test_as_float(self):
        """Test optional currency reading"""
        assert as_float(None) == 0.0
        assert as_float(Decimal("1500.25")) == 1500.25


class TestRetirementGoal:
    """Test goal validation"""

    def test_years_until_retirement(self):
        """Test derived horizon"""
        goal = RetirementGoal(30, 65, Decimal("80000"), Decimal("2.5"))
        assert goal.years_until_retirement == 35

    @pytest.mark.parametrize("current_age,target_age", [(0, 65), (30, 100), (65, 65), (66, 65)])
    def test_invalid_ages(self, current_age, target_age):
        """Test age bounds and ordering"""
        with pytest.raises(InvalidInputError):
            RetirementGoal(current_age, target_age, 80000, 2.5)

    def test_integral_ages_normalized_to_int(self):
        """Test whole-number floats and Decimals are stored as int"""
        goal = RetirementGoal(30.0, Decimal("65.0"), 80000, 2.5)
        assert goal.current_age == 30 and type(goal.current_age) is int
        assert goal.target_retirement_age == 65 and type(goal.target_retirement_age) is int
        assert list(range(goal.current_age, goal.target_retirement_age))[-1] == 64

    @pytest.mark.parametrize("current_age,target_age", [
        (30.5, 65), (30, Decimal("65.5")), (True, 65), ("30", 65), (float("nan"), 65)
    ])
    def test_fractional_or_non_numeric_ages(self, current_age, target_age):
        """Test ages must be whole numbers"""
        with pytest.raises(InvalidInputError, match="whole number"):
            RetirementGoal(current_age, target_age, 80000, 2.5)

    def test_invalid_income_and_inflation(self):
        """Test income must be positive and inflation within 0-20"""
        with pytest.raises(InvalidInputError, match="desired_annual_income"):
            RetirementGoal(30, 65, 0, 2.5)
        with pytest.raises(InvalidInputError, match="inflation_rate"):
            RetirementGoal(30, 65, 80000, 25)

    def test_goal_is_read_only(self):
        """Test input records cannot be mutated"""
        goal = RetirementGoal(30, 65, 80000, 2.5)
        with pytest.raises(FrozenInstanceError):
            goal.current_age = 40


class TestAccountsAndInvestments:
    """Test account and investment validation"""

    def test_account_type_coerced_from_string(self):
        """Test account types accept their display value"""
        account = RetirementAccount("Roth", "Roth IRA", 1000)
        assert account.account_type is AccountType.ROTH_IRA

    def test_unknown_account_type(self):
        """Test unknown account type raises a domain error"""
        with pytest.raises(InvalidInputError, match="account_type"):
            RetirementAccount("Mystery", "HSA", 1000)

    def test_negative_balance(self):
        """Test negative balances are rejected"""
        with pytest.raises(InvalidInputError):
            RetirementAccount("401k", AccountType.K401, -1)

    def test_investment_bounds(self):
        """Test allocation in (0, 100] and return in [0, 30]"""
        with pytest.raises(InvalidInputError, match="allocation_percentage"):
            Investment("Fund", 0, 7, RiskLevel.MEDIUM)
        with pytest.raises(InvalidInputError, match="expected_return"):
            Investment("Fund", 50, 31, RiskLevel.MEDIUM)

    def test_risk_level_coerced(self):
        """Test risk level accepts its display value"""
        investment = Investment("Fund", 50, 7, "High")
        assert investment.risk_level is RiskLevel.HIGH

    def test_errors_share_base_class(self):
        """Test domain errors are catchable as one family and as ValueError"""
        with pytest.raises(RetirementPlannerError):
            Investment("Fund", 50, 7, "Extreme")
        with pytest.raises(ValueError):
            Investment("Fund", 50, 7, "Extreme")
