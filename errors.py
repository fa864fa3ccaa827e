"""
Error types raised by the retirement optimization engine.
"""
from typing import Any, Optional


class RetirementPlannerError(Exception):
    """Base class for all engine errors"""


class NotFoundError(RetirementPlannerError, LookupError):
    """No retirement goal exists for the requested user"""

    def __init__(self, message: str = "Retirement goal not found", user_id: Optional[Any] = None):
        super().__init__(message)
        self.user_id = user_id


class InvalidInputError(RetirementPlannerError, ValueError):
    """Caller supplied an out-of-domain value"""
