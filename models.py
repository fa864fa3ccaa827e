"""
Data records consumed and produced by the retirement optimization engine.

Input records (goal, accounts, investments) are owned by the data-access layer
and treated as read-only here. Result records are created fresh on every call.

Rates cross this boundary in two shapes:
- Percent: 0-100 values as entered by users (allocation_percentage, inflation_rate,
  expected_return, success rates)
- Fraction: 0-1 values used internally (weights, returns, volatilities)
Use to_fraction()/to_percent() at the conversion points.
"""
import numbers
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, NewType, Optional, Union

import numpy as np

from errors import InvalidInputError

Money = Union[Decimal, float, int]
Percent = NewType("Percent", float)
Fraction = NewType("Fraction", float)


def to_fraction(value: Union[Percent, Decimal, float, int, None]) -> Fraction:
    """Convert a 0-100 percent value into a 0-1 fraction (None counts as 0)"""
    if value is None:
        return Fraction(0.0)
    return Fraction(float(value) / 100)


def to_percent(value: Union[Fraction, float]) -> Percent:
    """Convert a 0-1 fraction into a 0-100 percent value"""
    return Percent(float(value) * 100)


def as_float(value: Optional[Money]) -> float:
    """Read an optional currency value as float, treating None as zero"""
    return float(value) if value is not None else 0.0


class AccountType(str, Enum):
    K401 = "401k"
    B403 = "403b"
    IRA = "IRA"
    ROTH_IRA = "Roth IRA"
    SEP_IRA = "SEP-IRA"
    SIMPLE_IRA = "Simple IRA"
    PENSION = "Pension"
    OTHER = "Other"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RiskTolerance(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


def _coerce_enum(enum_cls, value, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(f"{field_name} must be one of: {allowed}; got {value!r}") from None


def whole_number(value, field_name: str) -> int:
    """Read an integral int, float or Decimal as int; bools and fractions are rejected"""
    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        raise InvalidInputError(f"{field_name} must be a whole number, got {value!r}")
    if not float(value).is_integer():
        raise InvalidInputError(f"{field_name} must be a whole number, got {value!r}")
    return int(value)


# -----------------------------
# Input records
# -----------------------------

@dataclass(frozen=True)
class RetirementGoal:
    """A user's retirement target"""
    current_age: int
    target_retirement_age: int
    desired_annual_income: Money
    inflation_rate: Money  # Percent, 0-20

    def __post_init__(self):
        object.__setattr__(self, "current_age", whole_number(self.current_age, "current_age"))
        object.__setattr__(self, "target_retirement_age",
                           whole_number(self.target_retirement_age, "target_retirement_age"))
        if not 1 <= self.current_age <= 99:
            raise InvalidInputError(f"current_age must be between 1 and 99, got {self.current_age}")
        if not 1 <= self.target_retirement_age <= 99:
            raise InvalidInputError(
                f"target_retirement_age must be between 1 and 99, got {self.target_retirement_age}")
        if self.target_retirement_age <= self.current_age:
            raise InvalidInputError("target_retirement_age must be greater than current_age")
        if float(self.desired_annual_income) <= 0:
            raise InvalidInputError("desired_annual_income must be positive")
        if not 0 <= float(self.inflation_rate) <= 20:
            raise InvalidInputError(f"inflation_rate must be between 0 and 20, got {self.inflation_rate}")

    @property
    def years_until_retirement(self) -> int:
        return self.target_retirement_age - self.current_age


@dataclass(frozen=True)
class RetirementAccount:
    """A retirement savings account"""
    name: str
    account_type: AccountType
    current_balance: Money = Decimal("0")
    annual_contribution: Optional[Money] = None
    employer_match: Optional[Money] = None
    id: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "account_type",
                           _coerce_enum(AccountType, self.account_type, "account_type"))
        if float(self.current_balance) < 0:
            raise InvalidInputError("current_balance cannot be negative")
        if as_float(self.annual_contribution) < 0:
            raise InvalidInputError("annual_contribution cannot be negative")
        if as_float(self.employer_match) < 0:
            raise InvalidInputError("employer_match cannot be negative")


@dataclass(frozen=True)
class Investment:
    """A holding with its share of the portfolio"""
    name: str
    allocation_percentage: Money  # Percent, 0 < x <= 100
    expected_return: Money  # Percent, 0-30
    risk_level: RiskLevel
    symbol: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "risk_level",
                           _coerce_enum(RiskLevel, self.risk_level, "risk_level"))
        if not 0 < float(self.allocation_percentage) <= 100:
            raise InvalidInputError(
                f"allocation_percentage must be in (0, 100], got {self.allocation_percentage}")
        if not 0 <= float(self.expected_return) <= 30:
            raise InvalidInputError(f"expected_return must be between 0 and 30, got {self.expected_return}")


# -----------------------------
# Projection results
# -----------------------------

@dataclass
class ProjectionResult:
    """Point-estimate projection at the target retirement age"""
    projected_balance: float
    nest_egg_needed: float
    shortfall: float
    recommended_monthly_savings: float
    years_until_retirement: int
    inflation_adjusted_income: float


@dataclass
class ProjectionSchedule:
    """Year-by-year projected balance against the target nest egg"""
    ages: List[int]
    projected_balances: List[float]
    target_nest_egg: List[float]


@dataclass
class SavingsScenario:
    label: str
    monthly_savings: float


# -----------------------------
# Optimization results
# -----------------------------

@dataclass
class MonteCarloResult:
    """Outcome of a Monte Carlo run"""
    success_rate: float  # Percent
    simulations_run: int
    recommendation: str
    risk_assessment: str
    expected_return: float
    volatility: float
    terminal_balances: np.ndarray = field(default_factory=lambda: np.zeros(0), repr=False)


@dataclass
class FrontierPoint:
    """One portfolio on the (tabulated) efficient frontier"""
    target_volatility: float
    expected_return: float
    weights: Dict[str, float]
    sharpe_ratio: float


@dataclass
class RebalancingRecommendation:
    asset_class: str
    current_allocation: float
    target_allocation: float
    rebalancing_needed: float
    action: str


@dataclass
class AllocationResult:
    optimal_allocation: FrontierPoint
    current_allocation: Dict[str, float]
    rebalancing_recommendations: List[RebalancingRecommendation]
    expected_return: float
    expected_volatility: float
    sharpe_ratio: float
    efficient_frontier: List[FrontierPoint] = field(default_factory=list)


@dataclass
class ContributionAllocation:
    account_name: str
    account_type: AccountType
    monthly_amount: float
    reason: str
    priority: str


@dataclass
class ContributionResult:
    recommended_allocations: List[ContributionAllocation]
    total_monthly_contributions: float
    employer_match_captured: float
    tax_savings_estimate: float
    optimization_notes: List[str]


@dataclass
class TimelineScenario:
    """Evaluation of one candidate retirement age"""
    retirement_age: int
    feasible: bool
    years_until_retirement: int
    reason: Optional[str] = None
    projected_balance: Optional[float] = None
    required_nest_egg: Optional[float] = None
    success_rate: Optional[float] = None
    lifestyle_score: Optional[float] = None
    overall_score: Optional[float] = None


@dataclass
class TimelineResult:
    scenarios_analyzed: List[TimelineScenario]
    optimal_retirement_age: Optional[TimelineScenario]
    conservative_option: Optional[TimelineScenario]
    aggressive_option: Optional[TimelineScenario]
    recommendations: List[str]
    years_flexibility: int = 0


@dataclass
class ImpactRecord:
    """Estimated benefit of acting on one optimization dimension"""
    action: str
    impact_level: str
    details: Dict[str, float] = field(default_factory=dict)


@dataclass
class PriorityAction:
    action: str
    priority_score: int
    impact_level: str
    description: str


@dataclass
class ComprehensiveResult:
    risk_analysis: Optional[MonteCarloResult]
    asset_allocation: Optional[AllocationResult]
    contribution_strategy: Optional[ContributionResult]
    timeline_optimization: Optional[TimelineResult]
    potential_improvements: List[ImpactRecord]
    priority_actions: List[PriorityAction]
    next_review_date: date
    errors: Dict[str, str] = field(default_factory=dict)
