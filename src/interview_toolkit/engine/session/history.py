"""
Module: engine.session.history

Purpose:
    Keeps the most recent ended sessions (newest first, bounded) and
    aggregate practice statistics over them. Optionally persists to a
    JSON file shared between processes under a portalocker lock.

Key Classes:
    - SessionHistory: Bounded, optionally persisted session archive
    - HistoryStats: Aggregates over the archived sessions

File format:
    {"sessions": [<SessionSummary.to_dict()>, ...]}   # newest first

Dependencies:
    - core.utils.file_locking: Locked JSON read / read-modify-write

Used By:
    - engine.controller.QueryEngine
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from interview_toolkit.core.utils.file_locking import (
    locked_read_json,
    locked_read_modify_write_json,
)

from .models import SessionSummary

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class HistoryStats:
    """
    Aggregates over archived sessions.

    Attributes:
        total_sessions: Sessions in history
        total_questions_served: Questions served across them
        total_time_spent: Minutes served across them
        sessions_by_category: Sessions that served at least one question
            of each category
        questions_by_category: Questions served per category
    """

    total_sessions: int = 0
    total_questions_served: int = 0
    total_time_spent: int = 0
    sessions_by_category: Dict[str, int] = field(default_factory=dict)
    questions_by_category: Dict[str, int] = field(default_factory=dict)

    @property
    def average_questions(self) -> float:
        if not self.total_sessions:
            return 0.0
        return self.total_questions_served / self.total_sessions


class SessionHistory:
    """
    Bounded archive of ended sessions.

    Example:
        >>> history = SessionHistory(limit=50, path=Path("history.json"))
        >>> history.record(summary)
        >>> history.stats().total_sessions
        1
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT, path: Optional[Path] = None) -> None:
        if limit < 0:
            raise ValueError(f"limit must be non-negative: {limit}")
        self.limit = limit
        self.path = Path(path) if path is not None else None
        self._sessions: List[SessionSummary] = []
        self._lock = threading.Lock()

    @classmethod
    def load(cls, path: Path, limit: int = DEFAULT_HISTORY_LIMIT) -> SessionHistory:
        """
        Load history from a JSON file; a missing file yields an empty history.

        Raises:
            ValueError: If the file is not valid history JSON
        """
        history = cls(limit=limit, path=path)
        data = locked_read_json(Path(path), default=lambda: {"sessions": []})
        if not isinstance(data, dict):
            raise ValueError(f"Invalid session history in {path}: expected an object")
        try:
            sessions = [SessionSummary.from_dict(item) for item in data.get("sessions", [])]
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid session history in {path}: {e}") from e
        history._sessions = sessions[:limit]
        logger.info(f"Loaded {len(history._sessions)} sessions from {path}")
        return history

    def record(self, summary: SessionSummary) -> None:
        """Archive an ended session, evicting the oldest beyond ``limit``."""
        with self._lock:
            self._sessions = [s for s in self._sessions if s.session_id != summary.session_id]
            self._sessions.insert(0, summary)
            del self._sessions[self.limit:]
        if self.path is not None:
            self._persist(summary)

    def _persist(self, summary: SessionSummary) -> None:
        """Merge ``summary`` into the shared file under an exclusive lock."""
        limit = self.limit

        def merge(existing: dict) -> dict:
            if not isinstance(existing, dict):
                raise ValueError(f"Invalid session history in {self.path}: expected an object")
            sessions = [
                item for item in existing.get("sessions", [])
                if item.get("session_id") != summary.session_id
            ]
            sessions.insert(0, summary.to_dict())
            return {"sessions": sessions[:limit]}

        locked_read_modify_write_json(self.path, merge, default=lambda: {"sessions": []})
        logger.debug(f"Persisted session {summary.session_id} to {self.path}")

    @property
    def sessions(self) -> Tuple[SessionSummary, ...]:
        """Archived sessions, newest first."""
        with self._lock:
            return tuple(self._sessions)

    def stats(self) -> HistoryStats:
        """Aggregate statistics over the archived sessions."""
        sessions = self.sessions
        sessions_by_category: Dict[str, int] = {}
        questions_by_category: Dict[str, int] = {}
        for summary in sessions:
            for category, count in summary.category_counts.items():
                sessions_by_category[category] = sessions_by_category.get(category, 0) + 1
                questions_by_category[category] = questions_by_category.get(category, 0) + count
        return HistoryStats(
            total_sessions=len(sessions),
            total_questions_served=sum(s.question_count for s in sessions),
            total_time_spent=sum(s.time_spent for s in sessions),
            sessions_by_category=dict(sorted(sessions_by_category.items())),
            questions_by_category=dict(sorted(questions_by_category.items())),
        )

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        return len(self.sessions)
