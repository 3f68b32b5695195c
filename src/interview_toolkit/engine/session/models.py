"""
Module: engine.session.models

Purpose:
    Session data: the mutable per-session state owned by the tracker and
    the immutable summary produced when a session ends.

Key Classes:
    - SessionStatus: NOT_STARTED -> ACTIVE -> ENDED
    - SessionState: Served/skipped/excluded ids, time spent, progression
    - SessionSummary: Frozen record of an ended session

Dependencies:
    - dataclasses (std)
    - threading (std): Per-session lock

Used By:
    - engine.session.tracker.SessionTracker
    - engine.session.history.SessionHistory
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import RLock
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

from interview_toolkit.core.models.questions import Difficulty


class SessionStatus(str, Enum):
    """Session lifecycle state."""
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    ENDED = "ended"

    def __str__(self) -> str:
        return self.value


@dataclass
class SessionState:
    """
    Mutable state of one practice session.

    Only SessionTracker mutates a SessionState, and only while holding
    ``lock``. Readers that need a stable view should take the lock too
    or use ``excluded_snapshot``.

    Attributes:
        session_id: Session identifier
        status: Lifecycle state
        served: Served ids, chronological
        skipped: Explicitly skipped ids, chronological
        excluded: served + skipped; never selected again
        time_spent: Sum of time estimates of served questions
        difficulty_cursor: Current progression tier
        served_at_cursor: Served questions of the cursor tier since it was set
        time_limit: Total minutes for the session, if bounded
        category_counts: Served questions per category
        started_at / ended_at: Lifecycle timestamps
    """

    session_id: str
    status: SessionStatus = SessionStatus.NOT_STARTED
    served: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    excluded: Set[str] = field(default_factory=set)
    time_spent: int = 0
    difficulty_cursor: Difficulty = Difficulty.BEGINNER
    served_at_cursor: int = 0
    time_limit: Optional[int] = None
    category_counts: Dict[str, int] = field(default_factory=dict)
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    @property
    def remaining_time(self) -> Optional[int]:
        """Minutes left under ``time_limit``; None when unbounded."""
        if self.time_limit is None:
            return None
        return max(0, self.time_limit - self.time_spent)

    def excluded_snapshot(self) -> FrozenSet[str]:
        with self.lock:
            return frozenset(self.excluded)


@dataclass(frozen=True)
class SessionSummary:
    """
    Immutable record of an ended session.

    Attributes:
        session_id: Session identifier
        started_at / ended_at: Lifecycle timestamps
        served: Served ids, chronological
        skipped: Skipped ids, chronological
        time_spent: Total minutes served
        category_counts: Served questions per category
        final_difficulty: Progression tier when the session ended
    """

    session_id: str
    started_at: Optional[datetime]
    ended_at: Optional[datetime]
    served: Tuple[str, ...] = ()
    skipped: Tuple[str, ...] = ()
    time_spent: int = 0
    category_counts: Dict[str, int] = field(default_factory=dict)
    final_difficulty: Difficulty = Difficulty.BEGINNER

    @classmethod
    def from_state(cls, state: SessionState) -> SessionSummary:
        return cls(
            session_id=state.session_id,
            started_at=state.started_at,
            ended_at=state.ended_at,
            served=tuple(state.served),
            skipped=tuple(state.skipped),
            time_spent=state.time_spent,
            category_counts=dict(state.category_counts),
            final_difficulty=state.difficulty_cursor,
        )

    @property
    def question_count(self) -> int:
        return len(self.served)

    def to_dict(self) -> dict:
        """Serialize to a JSON-safe dict (timestamps as ISO strings)."""
        return {
            "session_id": self.session_id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "served": list(self.served),
            "skipped": list(self.skipped),
            "time_spent": self.time_spent,
            "category_counts": dict(self.category_counts),
            "final_difficulty": self.final_difficulty.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SessionSummary:
        started = data.get("started_at")
        ended = data.get("ended_at")
        return cls(
            session_id=data["session_id"],
            started_at=datetime.fromisoformat(started) if started else None,
            ended_at=datetime.fromisoformat(ended) if ended else None,
            served=tuple(data.get("served", [])),
            skipped=tuple(data.get("skipped", [])),
            time_spent=data.get("time_spent", 0),
            category_counts=dict(data.get("category_counts", {})),
            final_difficulty=Difficulty(data.get("final_difficulty", Difficulty.BEGINNER.value)),
        )
