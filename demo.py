#!/usr/bin/env python3
"""
Demo script showing how to use the retirement optimization modules programmatically.
Runs every optimizer over a sample plan (or a plan JSON file) and prints the results.
"""
import argparse
import logging
from decimal import Decimal

from config_utils import EngineConfig, load_engine_config
from io_utils import format_currency, load_plan_json
from models import AccountType, Investment, RetirementAccount, RetirementGoal, RiskLevel
from optimization import OptimizationOrchestrator, project
from planning_store import InMemoryPlanningStore
from projection import savings_scenarios
from simulation import calculate_summary_stats

DEMO_USER = "demo"


def sample_plan():
    goal = RetirementGoal(
        current_age=35,
        target_retirement_age=65,
        desired_annual_income=Decimal("90000"),
        inflation_rate=Decimal("2.5")
    )
    accounts = [
        RetirementAccount("Employer 401k", AccountType.K401, Decimal("85000"),
                          annual_contribution=Decimal("9000"), employer_match=Decimal("2000")),
        RetirementAccount("Roth IRA", AccountType.ROTH_IRA, Decimal("30000"),
                          annual_contribution=Decimal("4000")),
    ]
    investments = [
        Investment("Total Market Index", Decimal("60"), Decimal("9.5"), RiskLevel.HIGH, symbol="VTI"),
        Investment("International Index", Decimal("20"), Decimal("8"), RiskLevel.HIGH, symbol="VXUS"),
        Investment("Aggregate Bond Fund", Decimal("20"), Decimal("4"), RiskLevel.LOW, symbol="BND"),
    ]
    return goal, accounts, investments


def build_config(config_path=None, seed=None) -> EngineConfig:
    """Engine config from an optional file; an explicit seed wins over the file's"""
    config = load_engine_config(config_path) if config_path else EngineConfig()
    if seed is not None:
        config.random_seed = seed
    return config


def main(argv=None):
    parser = argparse.ArgumentParser(description="Retirement optimization demo")
    parser.add_argument("plan", nargs="?", help="Plan JSON file (defaults to a built-in sample)")
    parser.add_argument("--monthly", type=float, default=1000.0, help="Monthly contribution budget")
    parser.add_argument("--seed", type=int, help="Monte Carlo random seed (overrides the config file)")
    parser.add_argument("--config", help="Engine config JSON file")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = build_config(args.config, args.seed)

    goal, accounts, investments = load_plan_json(args.plan) if args.plan else sample_plan()
    if goal is None:
        print(f"❌ Plan {args.plan} has no retirement goal, nothing to optimize")
        return 1
    store = InMemoryPlanningStore()
    store.load_plan(DEMO_USER, goal, accounts, investments)

    print("🚀 Retirement Optimization Demo")
    print("=" * 50)

    # 1. Deterministic projection
    projection = project(goal, accounts, investments, config)
    print(f"\n📉 Projection ({projection.years_until_retirement} years):")
    print(f"   Projected balance: {format_currency(projection.projected_balance, 1)}")
    print(f"   Nest egg needed:   {format_currency(projection.nest_egg_needed, 1)}")
    print(f"   Shortfall:         {format_currency(projection.shortfall, 1)}")
    for scenario in savings_scenarios(projection):
        print(f"   {scenario.label:<22} ${scenario.monthly_savings:,.0f}/month")

    # 2. Everything else through the orchestrator
    orchestrator = OptimizationOrchestrator(store, config)
    result = orchestrator.run_comprehensive(DEMO_USER, monthly_amount=args.monthly)

    mc = result.risk_analysis
    if mc is not None:
        stats = calculate_summary_stats(mc.terminal_balances)
        print(f"\n🎲 Monte Carlo ({mc.simulations_run:,} trials):")
        print(f"   Success rate: {mc.success_rate:.1f}% ({mc.risk_assessment} risk)")
        print(f"   {mc.recommendation}")
        print(f"   Terminal balance (P10/P50/P90): {format_currency(stats['p10'], 1)} / "
              f"{format_currency(stats['p50'], 1)} / {format_currency(stats['p90'], 1)}")

    alloc = result.asset_allocation
    if alloc is not None:
        print(f"\n📊 Target allocation ({alloc.expected_volatility:.0%} volatility, "
              f"{alloc.expected_return:.2%} return, Sharpe {alloc.sharpe_ratio:.2f}):")
        for asset, weight in alloc.optimal_allocation.weights.items():
            print(f"   {asset:<22} {weight:.0%}")
        for rec in alloc.rebalancing_recommendations:
            print(f"   -> {rec.action}: {rec.asset_class} ({rec.current_allocation:.0%} -> {rec.target_allocation:.0%})")

    contrib = result.contribution_strategy
    if contrib is not None:
        print(f"\n💰 Contributions (${contrib.total_monthly_contributions:,.0f}/month):")
        for allocation in contrib.recommended_allocations:
            print(f"   {allocation.account_name:<18} ${allocation.monthly_amount:,.0f}/month "
                  f"[{allocation.priority}] {allocation.reason}")
        print(f"   Estimated tax savings: ${contrib.tax_savings_estimate:,.0f}/year")

    timeline = result.timeline_optimization
    if timeline is not None:
        print(f"\n⏳ Timeline:")
        for label, option in (("Optimal", timeline.optimal_retirement_age),
                              ("Conservative", timeline.conservative_option),
                              ("Aggressive", timeline.aggressive_option)):
            print(f"   {label:<13} {option.retirement_age if option else 'n/a'}")
        for note in timeline.recommendations:
            print(f"   {note}")

    print(f"\n📋 Priority actions:")
    for action in result.priority_actions:
        print(f"   [{action.priority_score:>3}] {action.description}")
    print(f"\n   Next review: {result.next_review_date.isoformat()}")

    for name, message in result.errors.items():
        print(f"   ⚠️ {name} skipped: {message}")


if __name__ == "__main__":
    raise SystemExit(main())
