"""
Session Package

Per-session serving state, difficulty progression, and session history.
"""

from .history import HistoryStats, SessionHistory
from .models import SessionState, SessionStatus, SessionSummary
from .policy import DifficultyPolicy, StepProgressionPolicy
from .tracker import SessionStateError, SessionTracker, UnknownSessionError

__all__ = [
    "SessionTracker",
    "SessionState",
    "SessionStatus",
    "SessionSummary",
    "SessionStateError",
    "UnknownSessionError",
    "DifficultyPolicy",
    "StepProgressionPolicy",
    "SessionHistory",
    "HistoryStats",
]
