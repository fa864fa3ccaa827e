"""
Monte Carlo retirement simulation engine.
Estimates the probability that savings reach the goal's nest egg by retirement.
Pure functions for simulation logic, decoupled from data access and UI.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from errors import InvalidInputError, NotFoundError
from financial_math import (
    DEFAULT_PORTFOLIO_RETURN,
    DEFAULT_PORTFOLIO_VOLATILITY,
    calculate_portfolio_return,
    calculate_portfolio_volatility,
    calculate_total_balance,
    calculate_total_contributions,
)
from models import Investment, MonteCarloResult, RetirementAccount, RetirementGoal, as_float, whole_number

logger = logging.getLogger(__name__)

# Terminal balance multiple of desired income treated as success (4% rule)
SUCCESS_INCOME_MULTIPLE = 25

# (minimum success rate, recommendation), checked top-down
RECOMMENDATION_THRESHOLDS: List[Tuple[float, str]] = [
    (90, "Excellent - Your current strategy has a very high probability of success"),
    (80, "Good - Minor adjustments could improve your success rate"),
    (70, "Moderate - Consider increasing contributions or adjusting timeline"),
    (60, "Concerning - Significant changes recommended to meet goals"),
]
HIGH_RISK_RECOMMENDATION = "High Risk - Major strategy revision needed"

RISK_TIERS: List[Tuple[float, str]] = [
    (85, "low"),
    (70, "moderate"),
    (55, "high"),
]
LOWEST_RISK_TIER = "very_high"

SeedLike = Union[None, int, np.random.SeedSequence]


def get_monte_carlo_recommendation(success_rate: float) -> str:
    """Qualitative verdict for a success rate in percent"""
    for threshold, message in RECOMMENDATION_THRESHOLDS:
        if success_rate >= threshold:
            return message
    return HIGH_RISK_RECOMMENDATION


def assess_risk_level(success_rate: float) -> str:
    """Risk tier for a success rate in percent"""
    for threshold, tier in RISK_TIERS:
        if success_rate >= threshold:
            return tier
    return LOWEST_RISK_TIER


def box_muller(rng: np.random.Generator, size: int) -> np.ndarray:
    """
    Standard normal draws via the Box-Muller transform.

    u1 is drawn from (0, 1] so log(u1) is always finite.
    """
    u1 = 1.0 - rng.random(size)
    u2 = rng.random(size)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def simulate_terminal_balances(rng: np.random.Generator,
                               num_trials: int,
                               start_balance: float,
                               annual_contributions: float,
                               years: int,
                               expected_return: float,
                               volatility: float) -> np.ndarray:
    """
    Run num_trials independent accumulation paths and return their terminal balances.

    Each year every path draws one return, grows, receives the annual contribution
    and is floored at zero.
    """
    balances = np.full(num_trials, start_balance, dtype=float)
    for _ in range(years):
        drawn_returns = expected_return + volatility * box_muller(rng, num_trials)
        balances = np.maximum(balances * (1 + drawn_returns) + annual_contributions, 0.0)
    return balances


class MonteCarloSimulator:
    """
    Monte Carlo success-probability estimator.

    Trials are split into shards; each shard gets its own generator spawned from one
    SeedSequence, so runs are reproducible for a given seed and shard size and shards
    can run on separate threads without sharing random state.
    """

    def __init__(self,
                 seed: SeedLike = None,
                 max_workers: int = 1,
                 shard_size: int = 1_000,
                 default_return: float = DEFAULT_PORTFOLIO_RETURN,
                 default_volatility: float = DEFAULT_PORTFOLIO_VOLATILITY):
        max_workers = whole_number(max_workers, "max_workers")
        shard_size = whole_number(shard_size, "shard_size")
        if max_workers < 1:
            raise InvalidInputError(f"max_workers must be at least 1, got {max_workers}")
        if shard_size < 1:
            raise InvalidInputError(f"shard_size must be at least 1, got {shard_size}")
        self.seed = seed
        self.max_workers = max_workers
        self.shard_size = shard_size
        self.default_return = default_return
        self.default_volatility = default_volatility

    def _seed_sequence(self) -> np.random.SeedSequence:
        if isinstance(self.seed, np.random.SeedSequence):
            return self.seed
        return np.random.SeedSequence(self.seed)

    def _shard_sizes(self, num_simulations: int) -> List[int]:
        full, remainder = divmod(num_simulations, self.shard_size)
        sizes = [self.shard_size] * full
        if remainder:
            sizes.append(remainder)
        return sizes

    def simulate(self,
                 goal: Optional[RetirementGoal],
                 accounts: Sequence[RetirementAccount],
                 investments: Sequence[Investment],
                 num_simulations: int = 10_000) -> MonteCarloResult:
        """
        Run Monte Carlo simulation of savings growth until retirement.

        Args:
            goal: Retirement goal (None raises NotFoundError)
            accounts: Accounts supplying the starting balance and annual contributions
            investments: Holdings supplying expected return and volatility
            num_simulations: Number of independent trials (must be positive)

        Returns:
            MonteCarloResult with success rate in percent
        """
        if goal is None:
            raise NotFoundError()
        num_simulations = whole_number(num_simulations, "num_simulations")
        if num_simulations <= 0:
            raise InvalidInputError(f"num_simulations must be positive, got {num_simulations}")

        years = goal.years_until_retirement
        start_balance = calculate_total_balance(accounts)
        annual_contributions = calculate_total_contributions(accounts)
        expected_return = calculate_portfolio_return(investments, default=self.default_return)
        volatility = calculate_portfolio_volatility(investments, default=self.default_volatility)
        # Uninflated income, unlike the deterministic projection
        required_balance = as_float(goal.desired_annual_income) * SUCCESS_INCOME_MULTIPLE

        sizes = self._shard_sizes(num_simulations)
        streams = [np.random.default_rng(child) for child in self._seed_sequence().spawn(len(sizes))]

        def run_shard(args):
            rng, size = args
            return simulate_terminal_balances(rng, size, start_balance, annual_contributions,
                                              years, expected_return, volatility)

        if self.max_workers > 1 and len(sizes) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                shard_results = list(executor.map(run_shard, zip(streams, sizes)))
        else:
            shard_results = [run_shard(args) for args in zip(streams, sizes)]

        successes = sum(int(np.count_nonzero(balances >= required_balance)) for balances in shard_results)
        terminal_balances = np.concatenate(shard_results)
        success_rate = successes / num_simulations * 100

        logger.debug("Monte Carlo: %d trials over %d years in %d shards, success %.1f%%",
                     num_simulations, years, len(sizes), success_rate)

        return MonteCarloResult(
            success_rate=success_rate,
            simulations_run=num_simulations,
            recommendation=get_monte_carlo_recommendation(success_rate),
            risk_assessment=assess_risk_level(success_rate),
            expected_return=expected_return,
            volatility=volatility,
            terminal_balances=terminal_balances
        )


def calculate_summary_stats(terminal_balances: np.ndarray) -> Dict[str, float]:
    """Calculate summary statistics for terminal balances"""
    if terminal_balances.size == 0:
        return {'mean': 0.0, 'p10': 0.0, 'p50': 0.0, 'p90': 0.0}
    return {
        'mean': float(np.mean(terminal_balances)),
        'p10': float(np.percentile(terminal_balances, 10)),
        'p50': float(np.percentile(terminal_balances, 50)),
        'p90': float(np.percentile(terminal_balances, 90)),
    }
