"""
IO utilities for loading retirement plans and exporting engine results.
Handles JSON parsing of plan records and CSV/JSON exports of results.
"""
import json
from dataclasses import asdict, fields, is_dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from errors import InvalidInputError
from models import (
    AllocationResult,
    ContributionResult,
    Investment,
    ProjectionSchedule,
    RetirementAccount,
    RetirementGoal,
    TimelineResult,
)

Plan = Tuple[Optional[RetirementGoal], List[RetirementAccount], List[Investment]]


def _build(record_cls, record_dict: Dict[str, Any]):
    """Construct a record from a dict, ignoring keys the record does not define"""
    if not isinstance(record_dict, dict):
        raise InvalidInputError(f"{record_cls.__name__} must be an object, got {record_dict!r}")
    known = {f.name for f in fields(record_cls)}
    try:
        return record_cls(**{k: v for k, v in record_dict.items() if k in known})
    except TypeError as e:
        raise InvalidInputError(f"Invalid {record_cls.__name__}: {e}") from e


def plan_from_dict(plan_dict: Dict[str, Any]) -> Plan:
    """
    Convert a plan dictionary into engine records.

    Args:
        plan_dict: {"goal": {...} | null, "accounts": [...], "investments": [...]}

    Returns:
        (goal or None, accounts, investments)
    """
    goal_dict = plan_dict.get('goal')
    goal = _build(RetirementGoal, goal_dict) if goal_dict is not None else None
    accounts = [_build(RetirementAccount, a) for a in _record_list(plan_dict, 'accounts')]
    investments = [_build(Investment, i) for i in _record_list(plan_dict, 'investments')]
    return goal, accounts, investments


def _record_list(plan_dict: Dict[str, Any], key: str) -> List[Any]:
    records = plan_dict.get(key) or []
    if not isinstance(records, list):
        raise InvalidInputError(f"'{key}' must be a list, got {records!r}")
    return records


def parse_plan_json(json_string: str) -> Plan:
    """Parse a plan JSON document; decimals are read as Decimal"""
    try:
        plan_dict = json.loads(json_string, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON: {e}") from e
    if not isinstance(plan_dict, dict):
        raise InvalidInputError("Plan JSON must be an object")
    return plan_from_dict(plan_dict)


def load_plan_json(filepath: str) -> Plan:
    with open(filepath, 'r') as f:
        return parse_plan_json(f.read())


def result_to_dict(value: Any) -> Any:
    """
    Convert engine records into JSON-safe structures.

    Dataclasses become dicts, numpy arrays lists, enums their values,
    dates ISO strings and Decimals floats.
    """
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: result_to_dict(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(result_to_dict(k)): result_to_dict(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [result_to_dict(v) for v in value]
    return value


def export_result_json(result: Any, include_terminal_balances: bool = False) -> str:
    """
    Serialize any result record to a JSON string.

    Monte Carlo terminal balances are dropped unless requested.
    """
    data = result_to_dict(result)
    if not include_terminal_balances:
        _drop_key(data, 'terminal_balances')
    return json.dumps(data, indent=2, default=str)


def _drop_key(data: Any, key: str) -> None:
    if isinstance(data, dict):
        data.pop(key, None)
        for v in data.values():
            _drop_key(v, key)
    elif isinstance(data, list):
        for v in data:
            _drop_key(v, key)


def export_projection_schedule_csv(schedule: ProjectionSchedule) -> str:
    df = pd.DataFrame({
        'age': schedule.ages,
        'projected_balance': schedule.projected_balances,
        'target_nest_egg': schedule.target_nest_egg
    })
    return df.to_csv(index=False)


def timeline_scenarios_dataframe(timeline: TimelineResult) -> pd.DataFrame:
    return pd.DataFrame([asdict(s) for s in timeline.scenarios_analyzed])


def export_timeline_scenarios_csv(timeline: TimelineResult) -> str:
    return timeline_scenarios_dataframe(timeline).to_csv(index=False)


def export_rebalancing_csv(allocation: AllocationResult) -> str:
    columns = ['asset_class', 'current_allocation', 'target_allocation', 'rebalancing_needed', 'action']
    df = pd.DataFrame([asdict(r) for r in allocation.rebalancing_recommendations], columns=columns)
    return df.to_csv(index=False)


def export_contributions_csv(contributions: ContributionResult) -> str:
    columns = ['account_name', 'account_type', 'monthly_amount', 'reason', 'priority']
    df = pd.DataFrame([result_to_dict(a) for a in contributions.recommended_allocations], columns=columns)
    return df.to_csv(index=False)


def format_currency(value: float, precision: int = 0) -> str:
    """
    Format currency values for display.

    Args:
        value: Numeric value to format
        precision: Number of decimal places

    Returns:
        Formatted string such as "$1.2M", "$350K" or "$900"
    """
    value = float(value)
    if abs(value) >= 1_000_000:
        return f"${value/1_000_000:.{precision}f}M"
    elif abs(value) >= 1_000:
        return f"${value/1_000:.{precision}f}K"
    return f"${value:.{precision}f}"
