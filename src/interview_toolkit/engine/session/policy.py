"""
Module: engine.session.policy

Purpose:
    Difficulty progression policies. The tracker calls ``on_served``
    after recording served questions and exposes ``next_difficulty`` so
    the engine can feed it into the next request's difficulty mix.
    Swapping the policy (spaced repetition, adaptive difficulty) leaves
    the tracker contract unchanged.

Key Classes:
    - DifficultyPolicy: Protocol
    - StepProgressionPolicy: Step up one tier every K served questions

Used By:
    - engine.session.tracker.SessionTracker
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Sequence

from interview_toolkit.core.models.questions import Difficulty, Question

from .models import SessionState

logger = logging.getLogger(__name__)


class DifficultyPolicy(Protocol):
    """Progression policy seam."""

    def on_served(self, state: SessionState, questions: Sequence[Question]) -> None:
        """Update progression fields of ``state`` (called under its lock)."""
        ...

    def next_difficulty(self, state: SessionState) -> Difficulty:
        """Tier the next selection should target."""
        ...


@dataclass(frozen=True)
class StepProgressionPolicy:
    """
    Monotonic progression: after ``step`` served questions at the
    current tier, move up one tier. Clamped at expert.

    Only questions whose difficulty equals the cursor count towards the
    step.

    Example:
        >>> policy = StepProgressionPolicy(step=2)
        >>> # two beginner questions served -> cursor becomes intermediate
    """

    step: int = 3

    def __post_init__(self) -> None:
        if self.step < 1:
            raise ValueError(f"step must be positive: {self.step}")

    def on_served(self, state: SessionState, questions: Sequence[Question]) -> None:
        for question in questions:
            if question.difficulty is not state.difficulty_cursor:
                continue
            state.served_at_cursor += 1
            if state.served_at_cursor >= self.step and state.difficulty_cursor is not Difficulty.EXPERT:
                previous = state.difficulty_cursor
                state.difficulty_cursor = previous.next()
                state.served_at_cursor = 0
                logger.debug(
                    f"Session {state.session_id} progressed {previous.value} -> "
                    f"{state.difficulty_cursor.value}"
                )

    def next_difficulty(self, state: SessionState) -> Difficulty:
        return state.difficulty_cursor
