"""
Data-access boundary for goals, accounts and investments.

The engine only reads through PlanningStore; persistence lives elsewhere.
InMemoryPlanningStore backs tests, the demo and callers that already hold
their records.
"""
from abc import ABC, abstractmethod
from typing import Dict, Hashable, Iterable, List, Optional

from errors import NotFoundError
from models import Investment, RetirementAccount, RetirementGoal


class PlanningStore(ABC):
    """Read interface the orchestrator consumes"""

    @abstractmethod
    def get_goal(self, user_id: Hashable) -> RetirementGoal:
        """Return the user's goal or raise NotFoundError"""

    @abstractmethod
    def list_accounts(self, user_id: Hashable) -> List[RetirementAccount]:
        ...

    @abstractmethod
    def list_investments(self, user_id: Hashable) -> List[Investment]:
        ...


class InMemoryPlanningStore(PlanningStore):
    """Dictionary-backed store, one goal per user"""

    def __init__(self):
        self._goals: Dict[Hashable, RetirementGoal] = {}
        self._accounts: Dict[Hashable, List[RetirementAccount]] = {}
        self._investments: Dict[Hashable, List[Investment]] = {}

    def put_goal(self, user_id: Hashable, goal: RetirementGoal) -> None:
        self._goals[user_id] = goal

    def add_account(self, user_id: Hashable, account: RetirementAccount) -> None:
        self._accounts.setdefault(user_id, []).append(account)

    def add_investment(self, user_id: Hashable, investment: Investment) -> None:
        self._investments.setdefault(user_id, []).append(investment)

    def load_plan(self, user_id: Hashable,
                  goal: Optional[RetirementGoal],
                  accounts: Iterable[RetirementAccount] = (),
                  investments: Iterable[Investment] = ()) -> None:
        """Replace everything stored for a user"""
        if goal is None:
            self._goals.pop(user_id, None)
        else:
            self._goals[user_id] = goal
        self._accounts[user_id] = list(accounts)
        self._investments[user_id] = list(investments)

    def get_goal(self, user_id: Hashable) -> RetirementGoal:
        try:
            return self._goals[user_id]
        except KeyError:
            raise NotFoundError(f"No retirement goal for user {user_id!r}", user_id=user_id) from None

    def list_accounts(self, user_id: Hashable) -> List[RetirementAccount]:
        return list(self._accounts.get(user_id, []))

    def list_investments(self, user_id: Hashable) -> List[Investment]:
        return list(self._investments.get(user_id, []))
