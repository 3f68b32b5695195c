"""
Selection Package

Plans ordered, reproducible question selections from a candidate set.
"""

from .apportion import allocate_with_capacity, largest_remainder
from .planner import (
    EmptyCandidateSetError,
    Planner,
    PlanResult,
    SelectionError,
    plan_selection,
)

__all__ = [
    "plan_selection",
    "Planner",
    "PlanResult",
    "SelectionError",
    "EmptyCandidateSetError",
    "largest_remainder",
    "allocate_with_capacity",
]
